"""
Payment request builder

Turns caller-supplied payments into a validated PaymentRequest. Nothing
here talks to the node.
"""

import logging
from enum import Enum
from typing import Iterable, Optional, Sequence, Tuple, Union

from .address import (
    DEFAULT_RECEIVER_PREFERENCE,
    Address,
    Network,
    Pool,
    coerce_address,
    standalone_address,
    validate_preference,
)
from .errors import (
    AddressError,
    AmountOverflow,
    EmptyRequest,
    InvalidAddress,
    InvalidAmount,
    InvalidParameter,
    MemoNotAllowed,
    MemoTooLong,
)
from .fees import count_logical_actions
from .models import Payment, PaymentRequest
from .utils import MAX_MONEY, MEMO_SIZE, Utils

logger = logging.getLogger(__name__)

PRIVACY_POLICIES = (
    "FullPrivacy",
    "AllowRevealedAmounts",
    "AllowRevealedRecipients",
    "AllowRevealedSenders",
    "AllowFullyTransparent",
    "AllowLinkingAccountAddresses",
    "NoPrivacy",
)

AddressLike = Union[str, Address]
MemoLike = Optional[Union[str, bytes]]
PaymentLike = Union[Payment, Tuple[AddressLike, int], Tuple[AddressLike, int, MemoLike]]


class MemoPolicy(str, Enum):
    """What to do with a memo for a recipient paid through a transparent receiver"""
    REJECT = "reject"
    DROP = "drop"


class PaymentRequestBuilder:
    """
    Validates payments and settles the fee for a z_sendmany request.

    Example:
        >>> builder = PaymentRequestBuilder(Network.TESTNET)
        >>> request = builder.build(
        ...     "utest1...",
        ...     [("ztestsapling1...", 150_000, "invoice 42")],
        ... )  # doctest: +SKIP
    """

    def __init__(
        self,
        network: Network,
        preference: Sequence[Pool] = DEFAULT_RECEIVER_PREFERENCE,
    ):
        """
        Args:
            network: Network every address must belong to
            preference: Pool order used to pick the receiver of a Unified Address
        """
        self.network = Network(network)
        self.preference = validate_preference(preference)

    def build(
        self,
        from_address: Optional[AddressLike],
        payments: Iterable[PaymentLike],
        memo_policy: MemoPolicy = MemoPolicy.REJECT,
        minconf: int = 1,
        fee_override: Optional[int] = None,
        privacy_policy: Optional[str] = None,
    ) -> PaymentRequest:
        """
        Validate payments and produce a PaymentRequest.

        Args:
            from_address: Funding address, or None for ANY_TADDR
            payments: Payment objects or (recipient, amount[, memo]) tuples;
                amounts are in zatoshis
            memo_policy: REJECT raises MemoNotAllowed for memos to
                recipients paid through a transparent receiver, DROP
                discards them
            minconf: Minimum confirmations of the notes being spent
            fee_override: Fee in zatoshis used instead of the ZIP 317 fee
            privacy_policy: zcashd privacyPolicy argument

        Returns:
            PaymentRequest

        Raises:
            ValidationError subclasses, never retried
        """
        memo_policy = MemoPolicy(memo_policy)
        source = self._source(from_address)
        validated = tuple(
            self._payment(index, item, memo_policy) for index, item in enumerate(payments)
        )
        if not validated:
            raise EmptyRequest()

        if isinstance(minconf, bool) or not isinstance(minconf, int) or minconf < 0:
            raise InvalidParameter(f"minconf must be a non-negative integer, got {minconf!r}", field="minconf")
        if privacy_policy is not None and privacy_policy not in PRIVACY_POLICIES:
            raise InvalidParameter(f"unknown privacy policy {privacy_policy!r}", field="privacy_policy")

        actions = count_logical_actions(source, (p.recipient for p in validated), self.preference)
        if fee_override is not None:
            self._check_amount(fee_override, field="fee", allow_zero=True)
            fee = fee_override
        else:
            fee = actions.fee

        total = sum(p.amount for p in validated)
        if total > MAX_MONEY:
            raise AmountOverflow(total, MAX_MONEY, field="payments")
        if total + fee > MAX_MONEY:
            raise AmountOverflow(total + fee, MAX_MONEY, field="fee")

        request = PaymentRequest(
            payments=validated,
            fee=fee,
            actions=actions,
            from_address=source,
            minconf=minconf,
            fee_override=fee_override is not None,
            privacy_policy=privacy_policy,
            preference=self.preference,
        )
        logger.debug(
            "Built request: %d payment(s), %s total, fee %s over %d logical actions",
            len(validated),
            Utils.format_zec(total),
            Utils.format_zec(fee),
            actions.total,
        )
        return request

    def _source(self, from_address: Optional[AddressLike]) -> Optional[Address]:
        if from_address is None:
            return None
        try:
            return coerce_address(from_address, self.network)
        except AddressError as exc:
            raise InvalidAddress(exc, field="from_address") from exc

    def _payment(self, index: int, item: PaymentLike, memo_policy: MemoPolicy) -> Payment:
        if isinstance(item, Payment):
            recipient, amount, memo = item.recipient, item.amount, item.memo
        elif isinstance(item, (str, bytes)):
            raise InvalidParameter("payment must be a Payment or a tuple, not a string", field="payments", index=index)
        else:
            try:
                recipient, amount, *rest = item
            except (TypeError, ValueError):
                raise InvalidParameter(
                    "payment must be a Payment or a (recipient, amount[, memo]) tuple",
                    field="payments",
                    index=index,
                )
            if len(rest) > 1:
                raise InvalidParameter("too many fields in payment tuple", field="payments", index=index)
            memo = rest[0] if rest else None

        try:
            address = coerce_address(recipient, self.network)
        except AddressError as exc:
            raise InvalidAddress(exc, field="recipient", index=index) from exc

        self._check_amount(amount, field="amount", index=index)
        if amount > MAX_MONEY:
            raise AmountOverflow(amount, MAX_MONEY, field="amount", index=index)

        try:
            memo_bytes = Utils.memo_bytes(memo)
        except TypeError as exc:
            raise InvalidParameter(str(exc), field="memo", index=index) from exc
        if memo_bytes is not None:
            if len(memo_bytes) > MEMO_SIZE:
                raise MemoTooLong(len(memo_bytes), MEMO_SIZE, index=index)
            # decided by the receiver that will be paid
            if not address.preferred_pool(self.preference).shielded:
                if memo_policy is MemoPolicy.REJECT:
                    raise MemoNotAllowed(index=index)
                logger.warning(
                    "Dropping memo for transparent recipient %s (payment %d)",
                    Utils.format_address(standalone_address(address, self.preference).encode()),
                    index,
                )
                memo_bytes = None

        return Payment(recipient=address, amount=amount, memo=memo_bytes)

    @staticmethod
    def _check_amount(amount, field: str, index: Optional[int] = None, allow_zero: bool = False) -> None:
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise InvalidAmount(
                f"{field} must be an integer number of zatoshis, got {amount!r}",
                amount=amount,
                field=field,
                index=index,
            )
        if amount < 0 or (amount == 0 and not allow_zero):
            bound = "non-negative" if allow_zero else "positive"
            raise InvalidAmount(f"{field} must be {bound}, got {amount}", amount=amount, field=field, index=index)
