"""
Operation tracking

Submits a PaymentRequest through an RpcGateway and polls the resulting
node-side operation until it succeeds, fails, or the caller stops waiting.

    SUBMITTED -> POLLING -> SUCCEEDED | FAILED | TIMED_OUT | CANCELLED
    SUBMITTED -> FAILED                (submission rejected)

The node is authoritative for the operation; a timed-out or cancelled
wait does not cancel anything on the node.
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional

from .client import RpcGateway
from .config import PollingSettings
from .errors import (
    OperationCancelled,
    OperationFailed,
    OperationTimedOut,
    RpcError,
    SubmissionFailed,
    TrackerError,
)
from .models import OperationState, OperationStatus, PaymentRequest
from .utils import Utils

logger = logging.getLogger(__name__)

Clock = Callable[[], float]
Sleeper = Callable[[float, threading.Event], bool]


class TrackerState(str, Enum):
    SUBMITTED = "submitted"
    POLLING = "polling"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"

    @property
    def terminal(self) -> bool:
        return self not in (TrackerState.SUBMITTED, TrackerState.POLLING)


@dataclass
class OperationHandle:
    """
    Client-side record of one submitted request.

    Owned by whoever waits on it; the tracker keeps no reference.
    """
    request: PaymentRequest
    operation_id: Optional[str] = None
    state: TrackerState = TrackerState.SUBMITTED
    txid: Optional[str] = None
    error: Optional[TrackerError] = None
    poll_count: int = 0
    last_status: Optional[OperationStatus] = None
    history: List[TrackerState] = field(default_factory=lambda: [TrackerState.SUBMITTED])

    @property
    def done(self) -> bool:
        return self.state.terminal

    def _move(self, state: TrackerState) -> None:
        self.state = state
        self.history.append(state)


def _event_sleep(delay: float, cancel_event: threading.Event) -> bool:
    return cancel_event.wait(delay)


class OperationTracker:
    """
    Submits requests and waits for their operations to finish.

    Args:
        gateway: Node access, passed explicitly so tests can use a fake
        settings: Backoff and timeout configuration
        clock: Monotonic time source in seconds
        sleep: Called as sleep(delay, cancel_event); returns True if the
            event was set while sleeping
    """

    def __init__(
        self,
        gateway: RpcGateway,
        settings: Optional[PollingSettings] = None,
        clock: Clock = time.monotonic,
        sleep: Sleeper = _event_sleep,
    ):
        self.gateway = gateway
        self.settings = settings or PollingSettings()
        self._clock = clock
        self._sleep = sleep

    def submit(self, request: PaymentRequest) -> OperationHandle:
        """
        Hand a request to the node.

        A submission error does not raise here: the handle comes back
        already FAILED and wait() reports SubmissionFailed.
        """
        handle = OperationHandle(request=request)
        # fee=None: the node computes the ZIP 317 fee, change outputs included
        try:
            handle.operation_id = self.gateway.submit_payment(
                request.source,
                request.recipients(),
                request.minconf,
                request.fee if request.fee_override else None,
                request.privacy_policy,
            )
        except RpcError as exc:
            logger.error("Submission from %s failed: %s", Utils.format_address(request.source), exc)
            handle.error = SubmissionFailed(exc)
            handle._move(TrackerState.FAILED)
            return handle

        logger.info(
            "Submitted operation %s: %d payment(s), %s, fee %s",
            handle.operation_id,
            len(request.payments),
            Utils.format_zec(request.total_amount),
            Utils.format_zec(request.fee),
        )
        return handle

    def wait(
        self,
        handle: OperationHandle,
        max_wait: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> str:
        """
        Poll until the operation reaches a terminal state.

        Once a handle is terminal, further calls return (or raise) the
        same outcome without querying the node again.

        Args:
            handle: Handle returned by submit()
            max_wait: Seconds to keep polling (default: settings.max_wait)
            cancel_event: Setting this event stops polling promptly

        Returns:
            Transaction id

        Raises:
            SubmissionFailed, OperationFailed, OperationTimedOut, OperationCancelled
        """
        if handle.done:
            return self._outcome(handle)

        if max_wait is None:
            max_wait = self.settings.max_wait
        cancel_event = cancel_event or threading.Event()
        started = self._clock()
        deadline = started + max_wait
        interval = self.settings.initial_interval
        logger.debug("Waiting up to %s for operation %s", Utils.seconds_to_readable(max_wait), handle.operation_id)

        handle._move(TrackerState.POLLING)
        while True:
            if cancel_event.is_set():
                self._finish(handle, TrackerState.CANCELLED, error=OperationCancelled(handle.operation_id))
                break

            self._poll(handle)
            if handle.done:
                break

            remaining = deadline - self._clock()
            if remaining <= 0:
                waited = self._clock() - started
                self._finish(handle, TrackerState.TIMED_OUT, error=OperationTimedOut(handle.operation_id, waited))
                break

            if self._sleep(min(interval, remaining), cancel_event):
                self._finish(handle, TrackerState.CANCELLED, error=OperationCancelled(handle.operation_id))
                break
            interval = min(interval * self.settings.multiplier, self.settings.max_interval)

        return self._outcome(handle)

    def submit_and_wait(
        self,
        request: PaymentRequest,
        max_wait: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> str:
        return self.wait(self.submit(request), max_wait=max_wait, cancel_event=cancel_event)

    def _poll(self, handle: OperationHandle) -> None:
        handle.poll_count += 1
        try:
            status = self.gateway.get_operation_status(handle.operation_id)
        except RpcError as exc:
            logger.warning("Status query %d for %s failed, retrying: %s", handle.poll_count, handle.operation_id, exc)
            return

        handle.last_status = status
        logger.debug("Operation %s is %s (poll %d)", handle.operation_id, status.state.value, handle.poll_count)

        if status.state is OperationState.SUCCESS:
            if status.txid:
                self._finish(handle, TrackerState.SUCCEEDED, txid=status.txid)
            else:
                self._collect(handle)
        elif status.state is OperationState.FAILED:
            reason = status.error_message or "unknown error"
            self._finish(
                handle,
                TrackerState.FAILED,
                error=OperationFailed(reason, handle.operation_id, status.error_code),
            )
        elif status.state is OperationState.CANCELLED:
            self._finish(handle, TrackerState.FAILED, error=OperationFailed("cancelled", handle.operation_id))

    def _collect(self, handle: OperationHandle) -> None:
        # status reported success without a txid; the result call should carry it
        try:
            result = self.gateway.get_operation_result(handle.operation_id)
        except RpcError as exc:
            logger.warning("Result query for %s failed, retrying: %s", handle.operation_id, exc)
            return
        if result is not None and result.txid:
            self._finish(handle, TrackerState.SUCCEEDED, txid=result.txid)
        else:
            self._finish(
                handle,
                TrackerState.FAILED,
                error=OperationFailed("node reported success without a transaction id", handle.operation_id),
            )

    def _finish(
        self,
        handle: OperationHandle,
        state: TrackerState,
        txid: Optional[str] = None,
        error: Optional[TrackerError] = None,
    ) -> None:
        handle.txid = txid
        handle.error = error
        handle._move(state)
        if error is None:
            logger.info("Operation %s succeeded: txid %s", handle.operation_id, txid)
        else:
            logger.info("Operation %s ended %s: %s", handle.operation_id, state.value, error.message)

    @staticmethod
    def _outcome(handle: OperationHandle) -> str:
        if handle.error is not None:
            raise handle.error
        return handle.txid
