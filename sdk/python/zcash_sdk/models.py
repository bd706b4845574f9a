"""
Data models for the Zcash SDK
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, NamedTuple, Optional, Tuple

from .address import DEFAULT_RECEIVER_PREFERENCE, Address, ReceiverPreference, standalone_address
from .fees import ActionCount
from .utils import Utils

# Source address accepted by z_sendmany when no specific address funds the payment
ANY_TADDR = "ANY_TADDR"


@dataclass(frozen=True)
class Payment:
    """A single validated payment"""
    recipient: Address
    amount: int
    memo: Optional[bytes] = None

    @property
    def memo_hex(self) -> Optional[str]:
        return Utils.memo_to_hex(self.memo) if self.memo is not None else None


class Recipient(NamedTuple):
    """One z_sendmany output as sent to the node"""
    address: str
    amount: int
    memo: Optional[bytes] = None


@dataclass(frozen=True)
class PaymentRequest:
    """Payments ready for submission, with the fee already settled"""
    payments: Tuple[Payment, ...]
    fee: int
    actions: ActionCount
    from_address: Optional[Address] = None
    minconf: int = 1
    fee_override: bool = False
    privacy_policy: Optional[str] = None
    preference: ReceiverPreference = DEFAULT_RECEIVER_PREFERENCE

    @property
    def total_amount(self) -> int:
        return sum(p.amount for p in self.payments)

    @property
    def total_with_fee(self) -> int:
        return self.total_amount + self.fee

    @property
    def source(self) -> str:
        """Funding address as passed to z_sendmany."""
        return self.from_address.encode() if self.from_address is not None else ANY_TADDR

    def recipients(self) -> List[Recipient]:
        """Outputs with each address narrowed to the receiver that will be paid."""
        return [
            Recipient(standalone_address(p.recipient, self.preference).encode(), p.amount, p.memo)
            for p in self.payments
        ]


class OperationState(str, Enum):
    """Status strings reported by z_getoperationstatus"""
    QUEUED = "queued"
    EXECUTING = "executing"
    SUCCESS = "success"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def terminal(self) -> bool:
        return self in (OperationState.SUCCESS, OperationState.FAILED, OperationState.CANCELLED)


@dataclass
class OperationStatus:
    """Node-side view of an asynchronous operation"""
    operation_id: str
    state: OperationState
    txid: Optional[str] = None
    error_code: Optional[int] = None
    error_message: Optional[str] = None
    method: Optional[str] = None
    creation_time: Optional[int] = None
    execution_secs: Optional[Decimal] = None

    @classmethod
    def from_rpc(cls, data: Dict[str, Any]) -> "OperationStatus":
        """Raises ValueError when the entry has no id or an unknown status."""
        if not isinstance(data, dict) or not isinstance(data.get("id"), str):
            raise ValueError(f"operation entry without an id: {data!r}")
        try:
            state = OperationState(data.get("status"))
        except ValueError:
            raise ValueError(f"operation {data['id']} has unknown status {data.get('status')!r}") from None
        result = data.get("result") or {}
        error = data.get("error") or {}
        return cls(
            operation_id=data["id"],
            state=state,
            txid=result.get("txid"),
            error_code=error.get("code"),
            error_message=error.get("message"),
            method=data.get("method"),
            creation_time=data.get("creation_time"),
            execution_secs=data.get("execution_secs"),
        )


@dataclass
class BlockchainInfo:
    """Subset of getblockchaininfo"""
    chain: str
    blocks: int
    headers: int
    best_block_hash: str
    verification_progress: Decimal
    size_on_disk: Optional[int] = None
    initial_block_download_complete: Optional[bool] = None
    upgrades: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Balance:
    """Wallet balance in zatoshis"""
    transparent: int
    private: int
    total: int


@dataclass
class AddressValidation:
    """Node's opinion of an address, from z_validateaddress"""
    valid: bool
    kind: Optional[str] = None
    network: Optional[str] = None
