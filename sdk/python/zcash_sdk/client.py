"""
zcashd JSON-RPC client
"""

import itertools
import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional, Protocol, Sequence

import requests

from .errors import AuthFailed, NodeRejected, RpcError, Unreachable
from .models import AddressValidation, Balance, BlockchainInfo, OperationStatus, Recipient

logger = logging.getLogger(__name__)


class RpcGateway(Protocol):
    """
    Node operations the payment core depends on.

    Implementations must be safe to call from several threads; no call
    depends on state left behind by a previous one.
    """

    def submit_payment(
        self,
        from_address: str,
        recipients: Sequence[Recipient],
        minconf: int,
        fee: Optional[int],
        privacy_policy: Optional[str] = None,
    ) -> str:
        """Start a z_sendmany operation and return its operation id."""
        ...

    def get_operation_status(self, operation_id: str) -> OperationStatus:
        ...

    def get_operation_result(self, operation_id: str) -> Optional[OperationStatus]:
        ...

    def validate_address(self, address: str) -> AddressValidation:
        ...


def _zec(zatoshis: int) -> float:
    # zcashd parses JSON numbers and rounds to 8 decimal places
    return float(Decimal(zatoshis) / 100_000_000)


def _zatoshis(value: Any) -> int:
    return int((Decimal(str(value)) * 100_000_000).to_integral_value())


def _operation_status(data: Any, method: str) -> OperationStatus:
    try:
        return OperationStatus.from_rpc(data)
    except ValueError as exc:
        raise RpcError(f"unusable {method} response: {exc}", method) from exc


class ZcashRpcClient:
    """
    Client for the zcashd Payment API over JSON-RPC.

    Example:
        >>> client = ZcashRpcClient("http://127.0.0.1:8232", "rpcuser", "rpcpassword")
        >>> info = client.get_blockchain_info()
        >>> print(f"Height: {info.blocks}")
    """

    def __init__(
        self,
        url: str = "http://127.0.0.1:8232",
        user: str = "",
        password: str = "",
        timeout: float = 30,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize zcashd client.

        Args:
            url: RPC endpoint (default: http://127.0.0.1:8232)
            user: rpcuser for HTTP basic auth
            password: rpcpassword for HTTP basic auth
            timeout: Request timeout in seconds (default: 30)
            session: Optional pre-configured requests session
        """
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()
        if user or password:
            self.session.auth = (user, password)
        self.session.headers.update({
            'Content-Type': 'application/json',
        })
        self._ids = itertools.count(1)

    def call(self, method: str, params: Optional[List[Any]] = None) -> Any:
        """
        Make a JSON-RPC call.

        Numbers in the response are decoded as Decimal so amounts stay exact.

        Raises:
            Unreachable: Connection failure or timeout
            AuthFailed: HTTP 401/403
            NodeRejected: The node returned a JSON-RPC error object
            RpcError: Any other unusable response
        """
        payload = {
            "jsonrpc": "1.0",
            "id": next(self._ids),
            "method": method,
            "params": params or [],
        }
        logger.debug("RPC %s (id %s)", method, payload["id"])
        try:
            response = self.session.post(self.url, json=payload, timeout=self.timeout)
        except (requests.ConnectionError, requests.Timeout) as exc:
            raise Unreachable(f"cannot reach node at {self.url}: {exc}", method) from exc
        except requests.RequestException as exc:
            raise RpcError(f"request to {self.url} failed: {exc}", method) from exc

        if response.status_code in (401, 403):
            raise AuthFailed(f"node refused credentials (HTTP {response.status_code})", method)

        try:
            body = response.json(parse_float=Decimal)
        except ValueError:
            try:
                response.raise_for_status()
            except requests.HTTPError as exc:
                raise RpcError(f"HTTP {response.status_code} from node", method) from exc
            raise RpcError("node returned a non-JSON response", method)

        error = body.get("error") if isinstance(body, dict) else None
        if error:
            raise NodeRejected(error.get("code", -1), error.get("message", ""), method)
        if response.status_code >= 400:
            raise RpcError(f"HTTP {response.status_code} from node", method)
        return body.get("result")

    # Payment API

    def submit_payment(
        self,
        from_address: str,
        recipients: Sequence[Recipient],
        minconf: int = 1,
        fee: Optional[int] = None,
        privacy_policy: Optional[str] = None,
    ) -> str:
        """
        Send funds with z_sendmany.

        Args:
            from_address: Funding address or ANY_TADDR
            recipients: Outputs with amounts in zatoshis
            minconf: Minimum confirmations of spent notes
            fee: Fee in zatoshis, None for the node's ZIP 317 fee
            privacy_policy: Optional privacyPolicy string

        Returns:
            Operation id
        """
        amounts = []
        for recipient in recipients:
            entry = {"address": recipient.address, "amount": _zec(recipient.amount)}
            if recipient.memo is not None:
                entry["memo"] = recipient.memo.hex()
            amounts.append(entry)

        params: List[Any] = [from_address, amounts, minconf, _zec(fee) if fee is not None else None]
        if privacy_policy is not None:
            params.append(privacy_policy)
        return self.call("z_sendmany", params)

    def get_operation_status(self, operation_id: str) -> OperationStatus:
        """
        Get the status of an operation.

        Raises:
            NodeRejected: The node does not know the operation id
        """
        statuses = self.call("z_getoperationstatus", [[operation_id]])
        if not statuses:
            raise NodeRejected(-8, f"unknown operation id {operation_id}", "z_getoperationstatus")
        return _operation_status(statuses[0], "z_getoperationstatus")

    def get_operation_result(self, operation_id: str) -> Optional[OperationStatus]:
        """
        Collect a finished operation.

        The node forgets the operation once its result has been read.

        Returns:
            Final status, or None while the operation is still running
        """
        results = self.call("z_getoperationresult", [[operation_id]])
        return _operation_status(results[0], "z_getoperationresult") if results else None

    def list_operation_ids(self, state: Optional[str] = None) -> List[str]:
        return self.call("z_listoperationids", [state] if state else [])

    def validate_address(self, address: str) -> AddressValidation:
        """
        Ask the node whether it accepts an address.

        Returns:
            AddressValidation; `network` is the node's own chain
        """
        data = self.call("z_validateaddress", [address])
        if not data.get("isvalid"):
            return AddressValidation(valid=False)
        kind = data.get("address_type")
        if kind in ("p2pkh", "p2sh"):
            kind = "transparent"
        return AddressValidation(valid=True, kind=kind, network=self.get_blockchain_info().chain)

    # Node and wallet queries

    def get_blockchain_info(self) -> BlockchainInfo:
        data = self.call("getblockchaininfo")
        return BlockchainInfo(
            chain=data["chain"],
            blocks=data["blocks"],
            headers=data["headers"],
            best_block_hash=data["bestblockhash"],
            verification_progress=data["verificationprogress"],
            size_on_disk=data.get("size_on_disk"),
            initial_block_download_complete=data.get("initial_block_download_complete"),
            upgrades=data.get("upgrades", {}),
        )

    def get_block_count(self) -> int:
        return self.call("getblockcount")

    def get_balance(self, address: str, minconf: int = 1) -> int:
        """
        Balance of one address in zatoshis (z_getbalance).
        """
        return _zatoshis(self.call("z_getbalance", [address, minconf]))

    def get_total_balance(self, minconf: int = 1) -> Balance:
        """
        Wallet-wide balance in zatoshis (z_gettotalbalance).
        """
        data = self.call("z_gettotalbalance", [minconf])
        return Balance(
            transparent=_zatoshis(data["transparent"]),
            private=_zatoshis(data["private"]),
            total=_zatoshis(data["total"]),
        )

    def list_addresses(self) -> List[Dict[str, Any]]:
        return self.call("listaddresses")

    def close(self):
        """Close the session"""
        self.session.close()

    def __enter__(self):
        """Context manager entry"""
        return self

    def __exit__(self, *args):
        """Context manager exit"""
        self.close()
