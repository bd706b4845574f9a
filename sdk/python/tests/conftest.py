"""
Shared fixtures: deterministic addresses, a scripted gateway and a fake clock.
"""

import threading
from typing import List, Optional

import pytest

from zcash_sdk import (
    Network,
    NodeRejected,
    PollingSettings,
    Receiver,
    ReceiverKind,
    SaplingAddress,
    TransparentAddress,
    UnifiedAddress,
    Unreachable,
)
from zcash_sdk.models import AddressValidation, OperationState, OperationStatus

HASH20 = bytes(range(20))
SAPLING43 = bytes(range(43))
ORCHARD43 = bytes(range(100, 143))

# Independently computed encodings of HASH20 / SAPLING43
T1_MAIN = "t1HsdDMzmJfq4vc7T17XYjEkLMLvbgM1fCi"
T3_MAIN = "t3JZe8uVCra9T1mot8DC99s7GVsDKFy2Xa2"
TM_TEST = "tm9iNYCVAhLLa4rJtfqqHauR5xL1REdpiDs"
T2_TEST = "t26YqBabLj2kpZUPd3xCBhVHucMSV83GWSw"
ZS_MAIN = "zs1qqqsyqcyq5rqwzqfpg9scrgwpugpzysnzs23v9ccrydpk8qarc0jqgfzyvjz2f389q5j5ctfvp5"
ZS_TEST = "ztestsapling1qqqsyqcyq5rqwzqfpg9scrgwpugpzysnzs23v9ccrydpk8qarc0jqgfzyvjz2f389q5j5sum0xq"


def unified(network=Network.MAINNET, kinds=(ReceiverKind.ORCHARD, ReceiverKind.SAPLING, ReceiverKind.P2PKH), **kwargs):
    data = {
        ReceiverKind.P2PKH: HASH20,
        ReceiverKind.P2SH: HASH20,
        ReceiverKind.SAPLING: SAPLING43,
        ReceiverKind.ORCHARD: ORCHARD43,
    }
    receivers = [Receiver(int(kind), data[kind]) for kind in kinds]
    return UnifiedAddress.from_receivers(network, receivers, **kwargs)


@pytest.fixture
def ua_main():
    return unified().encode()


@pytest.fixture
def ua_test():
    return unified(Network.TESTNET).encode()


@pytest.fixture
def sapling_main():
    return SaplingAddress(Network.MAINNET, SAPLING43)


@pytest.fixture
def transparent_main():
    return TransparentAddress(Network.MAINNET, HASH20)


class FakeClock:
    """Time that only moves when the tracker sleeps."""

    def __init__(self):
        self.now = 0.0
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, delay: float, cancel_event: threading.Event) -> bool:
        self.sleeps.append(delay)
        self.now += delay
        return cancel_event.is_set()


class ScriptedGateway:
    """
    In-memory RpcGateway.

    `script` is consumed one entry per status query: an OperationState,
    an exception instance to raise, or a full OperationStatus. The last
    entry repeats once the script runs out.
    """

    def __init__(self, script=None, txid="ab" * 32, submit_error: Optional[Exception] = None):
        self.script = list(script or [OperationState.SUCCESS])
        self.txid = txid
        self.submit_error = submit_error
        self.submissions = []
        self.status_calls = 0
        self.result_calls = 0
        self.validations = []
        self.verdict = None

    def submit_payment(self, from_address, recipients, minconf, fee, privacy_policy=None):
        if self.submit_error is not None:
            raise self.submit_error
        self.submissions.append(
            {
                "from_address": from_address,
                "recipients": list(recipients),
                "minconf": minconf,
                "fee": fee,
                "privacy_policy": privacy_policy,
            }
        )
        return f"opid-{len(self.submissions)}"

    def get_operation_status(self, operation_id):
        self.status_calls += 1
        step = self.script.pop(0) if len(self.script) > 1 else self.script[0]
        if isinstance(step, Exception):
            raise step
        if isinstance(step, OperationStatus):
            return step
        txid = self.txid if step is OperationState.SUCCESS else None
        status = OperationStatus(operation_id=operation_id, state=step, txid=txid)
        if step is OperationState.FAILED:
            status.error_code = -6
            status.error_message = "Insufficient funds"
        return status

    def get_operation_result(self, operation_id):
        self.result_calls += 1
        return OperationStatus(operation_id=operation_id, state=OperationState.SUCCESS, txid=self.txid)

    def validate_address(self, address):
        self.validations.append(address)
        return self.verdict or AddressValidation(valid=True, kind="unified", network="main")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def polling():
    return PollingSettings(initial_interval=0.01, multiplier=2.0, max_interval=0.05, max_wait=1.0)


@pytest.fixture
def unreachable():
    return Unreachable("connection refused", "z_sendmany")


@pytest.fixture
def rejected():
    return NodeRejected(-5, "Invalid from address", "z_sendmany")
