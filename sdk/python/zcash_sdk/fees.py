"""
ZIP 317 conventional fee calculation

fee = MARGINAL_FEE * max(GRACE_ACTIONS, logical_actions)

Logical actions are note spends, note outputs, transparent inputs and
transparent outputs. See https://zips.z.cash/zip-0317.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from .address import DEFAULT_RECEIVER_PREFERENCE, Address, Pool, ReceiverPreference

# The fee per logical action, in zatoshis.
MARGINAL_FEE = 5000

# The lower bound on the number of logical actions in a tx, for purposes of fee calculation.
GRACE_ACTIONS = 2

# The minimum ZIP 317 fee.
MINIMUM_FEE = MARGINAL_FEE * GRACE_ACTIONS


def compute_fee(action_count: int) -> int:
    """
    Conventional fee in zatoshis for a number of logical actions.

    Example:
        >>> compute_fee(1)
        10000
        >>> compute_fee(5)
        25000
    """
    if action_count < 0:
        raise ValueError(f"action count cannot be negative: {action_count}")
    return MARGINAL_FEE * max(GRACE_ACTIONS, action_count)


@dataclass(frozen=True)
class ActionCount:
    """Logical actions of a transaction, broken down by pool."""
    transparent_inputs: int = 0
    transparent_outputs: int = 0
    sapling_spends: int = 0
    sapling_outputs: int = 0
    orchard_spends: int = 0
    orchard_outputs: int = 0

    @property
    def total(self) -> int:
        return (
            self.transparent_inputs
            + self.transparent_outputs
            + self.sapling_spends
            + self.sapling_outputs
            + self.orchard_spends
            + self.orchard_outputs
        )

    @property
    def fee(self) -> int:
        return compute_fee(self.total)


def count_logical_actions(
    from_address: Optional[Address],
    recipients: Iterable[Address],
    preference: ReceiverPreference = DEFAULT_RECEIVER_PREFERENCE,
) -> ActionCount:
    """
    Estimate the logical actions of a payment.

    The funding source contributes one spend (or transparent input) in its
    preferred pool; a missing source means ANY_TADDR, i.e. one transparent
    input. Each recipient contributes one output in the pool of the
    receiver that will actually be paid. Change outputs chosen by the node
    are not known in advance and are not counted.
    """
    counts = {
        "transparent_inputs": 0,
        "transparent_outputs": 0,
        "sapling_spends": 0,
        "sapling_outputs": 0,
        "orchard_spends": 0,
        "orchard_outputs": 0,
    }

    source_pool = Pool.TRANSPARENT if from_address is None else from_address.preferred_pool(preference)
    counts[_slot(source_pool, spend=True)] += 1

    for recipient in recipients:
        counts[_slot(recipient.preferred_pool(preference), spend=False)] += 1

    return ActionCount(**counts)


def _slot(pool: Pool, spend: bool) -> str:
    if pool is Pool.TRANSPARENT:
        return "transparent_inputs" if spend else "transparent_outputs"
    if pool is Pool.SAPLING:
        return "sapling_spends" if spend else "sapling_outputs"
    if pool is Pool.ORCHARD:
        return "orchard_spends" if spend else "orchard_outputs"
    raise ValueError(f"unhandled pool {pool!r}")


def estimate_fee(
    from_address: Optional[Address],
    recipients: Iterable[Address],
    preference: ReceiverPreference = DEFAULT_RECEIVER_PREFERENCE,
) -> int:
    """Conventional fee in zatoshis for paying `recipients` from `from_address`."""
    return count_logical_actions(from_address, recipients, preference).fee
