"""
High-level payment client

Wires the builder, the tracker and an RPC gateway together:

    >>> payments = ZcashPayments.from_settings(NodeSettings())  # doctest: +SKIP
    >>> txid = payments.send_and_wait("u1...", [("zs1...", 100_000, "thanks")])  # doctest: +SKIP
"""

import logging
import threading
from typing import Iterable, Optional, Sequence

from .address import DEFAULT_RECEIVER_PREFERENCE, Network, Pool, coerce_address
from .builder import AddressLike, MemoLike, MemoPolicy, PaymentLike, PaymentRequestBuilder
from .client import RpcGateway, ZcashRpcClient
from .config import NodeSettings, PollingSettings
from .errors import AddressError, InvalidAddress, MalformedAddress, NetworkMismatch, RpcError
from .fees import ActionCount, count_logical_actions
from .models import PaymentRequest
from .tracker import OperationHandle, OperationTracker
from .utils import Utils
from .zip321 import parse_payment_uri

logger = logging.getLogger(__name__)


class ZcashPayments:
    """
    Build, submit and track payments against one node.

    Args:
        gateway: RPC gateway used for submission and polling
        network: Network every address must belong to
        polling: Backoff/timeout settings for the tracker
        preference: Pool order for choosing Unified Address receivers
        verify_addresses: Also ask the node to validate each recipient
    """

    def __init__(
        self,
        gateway: RpcGateway,
        network: Network = Network.MAINNET,
        polling: Optional[PollingSettings] = None,
        preference: Sequence[Pool] = DEFAULT_RECEIVER_PREFERENCE,
        verify_addresses: bool = False,
        tracker: Optional[OperationTracker] = None,
    ):
        self.gateway = gateway
        self.network = Network(network)
        self.builder = PaymentRequestBuilder(self.network, preference)
        self.tracker = tracker or OperationTracker(gateway, polling)
        self.verify_addresses = verify_addresses

    @classmethod
    def from_settings(
        cls,
        node: Optional[NodeSettings] = None,
        polling: Optional[PollingSettings] = None,
        **kwargs,
    ) -> "ZcashPayments":
        """Create an instance talking to zcashd over HTTP."""
        node = node or NodeSettings()
        client = ZcashRpcClient(node.url, node.user, node.password, node.timeout)
        return cls(client, network=node.network, polling=polling, **kwargs)

    def estimate_fee(self, from_address: Optional[AddressLike], recipients: Iterable[AddressLike]) -> int:
        """ZIP 317 fee in zatoshis for paying each recipient once."""
        return self.count_actions(from_address, recipients).fee

    def count_actions(self, from_address: Optional[AddressLike], recipients: Iterable[AddressLike]) -> ActionCount:
        source = self._coerce(from_address, "from_address") if from_address is not None else None
        targets = [self._coerce(r, "recipient", i) for i, r in enumerate(recipients)]
        return count_logical_actions(source, targets, self.builder.preference)

    def build(
        self,
        from_address: Optional[AddressLike],
        payments: Iterable[PaymentLike],
        memo_policy: MemoPolicy = MemoPolicy.REJECT,
        minconf: int = 1,
        fee: Optional[int] = None,
        privacy_policy: Optional[str] = None,
    ) -> PaymentRequest:
        request = self.builder.build(
            from_address,
            payments,
            memo_policy=memo_policy,
            minconf=minconf,
            fee_override=fee,
            privacy_policy=privacy_policy,
        )
        if self.verify_addresses:
            self._verify_with_node(request)
        return request

    def send_many(
        self,
        from_address: Optional[AddressLike],
        payments: Iterable[PaymentLike],
        memo_policy: MemoPolicy = MemoPolicy.REJECT,
        minconf: int = 1,
        fee: Optional[int] = None,
        privacy_policy: Optional[str] = None,
    ) -> OperationHandle:
        """
        Validate and submit a batch of payments.

        Returns:
            OperationHandle to pass to wait()
        """
        request = self.build(from_address, payments, memo_policy, minconf, fee, privacy_policy)
        return self.tracker.submit(request)

    def send_to_address(
        self,
        from_address: Optional[AddressLike],
        to_address: AddressLike,
        amount: int,
        memo: MemoLike = None,
        minconf: int = 1,
        fee: Optional[int] = None,
        privacy_policy: Optional[str] = None,
        memo_policy: MemoPolicy = MemoPolicy.REJECT,
    ) -> OperationHandle:
        """Submit a single payment of `amount` zatoshis."""
        return self.send_many(
            from_address,
            [(to_address, amount, memo)],
            memo_policy=memo_policy,
            minconf=minconf,
            fee=fee,
            privacy_policy=privacy_policy,
        )

    def build_zip321(self, from_address: Optional[AddressLike], uri: str, **kwargs) -> PaymentRequest:
        """
        Build a request from a ZIP 321 payment URI.

        Validation errors report the position of the payment in
        parameter-index order, not the URI index itself.
        """
        payments = parse_payment_uri(uri)
        logger.debug("Payment URI carries %d payment(s)", len(payments))
        return self.build(from_address, [p.as_payment() for p in payments], **kwargs)

    def send_zip321(self, from_address: Optional[AddressLike], uri: str, **kwargs) -> OperationHandle:
        """
        Validate and submit every payment in a ZIP 321 URI.

        Keyword arguments are those of send_many().
        """
        return self.tracker.submit(self.build_zip321(from_address, uri, **kwargs))

    def wait(
        self,
        handle: OperationHandle,
        max_wait: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> str:
        return self.tracker.wait(handle, max_wait=max_wait, cancel_event=cancel_event)

    def send_and_wait(
        self,
        from_address: Optional[AddressLike],
        payments: Iterable[PaymentLike],
        max_wait: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
        **kwargs,
    ) -> str:
        """
        Submit payments and block until the transaction id is known.

        Returns:
            Transaction id
        """
        handle = self.send_many(from_address, payments, **kwargs)
        return self.wait(handle, max_wait=max_wait, cancel_event=cancel_event)

    def _coerce(self, value: AddressLike, field: str, index: Optional[int] = None):
        try:
            return coerce_address(value, self.network)
        except AddressError as exc:
            raise InvalidAddress(exc, field=field, index=index) from exc

    def _verify_with_node(self, request: PaymentRequest) -> None:
        for index, recipient in enumerate(request.recipients()):
            try:
                verdict = self.gateway.validate_address(recipient.address)
            except RpcError as exc:
                logger.warning("Node could not validate %s: %s", Utils.format_address(recipient.address), exc)
                raise
            if not verdict.valid:
                raise InvalidAddress(
                    MalformedAddress("node rejected the address", recipient.address),
                    field="recipient",
                    index=index,
                )
            if verdict.network is not None and verdict.network != self.network.value:
                raise InvalidAddress(
                    NetworkMismatch(self.network, Network(verdict.network), recipient.address),
                    field="recipient",
                    index=index,
                )
