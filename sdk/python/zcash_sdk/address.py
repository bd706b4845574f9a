"""
Zcash address model

Parses and re-encodes the three textual address kinds (transparent,
Sapling, Unified) and exposes the receivers each one carries. Orchard has
no standalone encoding and only appears as a receiver inside a Unified
Address.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Iterable, Optional, Sequence, Tuple, Union

from .crypto import BECH32_CONST, BECH32M_CONST, ZcashCrypto
from .errors import AddressError, MalformedAddress, NetworkMismatch, UnsupportedReceiver


class Network(str, Enum):
    """Chain an address belongs to. Values match getblockchaininfo's `chain`."""
    MAINNET = "main"
    TESTNET = "test"
    REGTEST = "regtest"


class Pool(str, Enum):
    """Value pool a receiver accepts funds into."""
    TRANSPARENT = "transparent"
    SAPLING = "sapling"
    ORCHARD = "orchard"

    @property
    def shielded(self) -> bool:
        return self is not Pool.TRANSPARENT


class AddressKind(str, Enum):
    TRANSPARENT = "transparent"
    SAPLING = "sapling"
    UNIFIED = "unified"


class ReceiverKind(int, Enum):
    """Unified Address receiver typecodes understood by this SDK."""
    P2PKH = 0x00
    P2SH = 0x01
    SAPLING = 0x02
    ORCHARD = 0x03

    @property
    def pool(self) -> Pool:
        if self in (ReceiverKind.P2PKH, ReceiverKind.P2SH):
            return Pool.TRANSPARENT
        if self is ReceiverKind.SAPLING:
            return Pool.SAPLING
        return Pool.ORCHARD


RECEIVER_LENGTHS = {
    ReceiverKind.P2PKH: 20,
    ReceiverKind.P2SH: 20,
    ReceiverKind.SAPLING: 43,
    ReceiverKind.ORCHARD: 43,
}

# Metadata typecodes (revision 1)
EXPIRY_HEIGHT_TYPECODE = 0xE0
EXPIRY_TIME_TYPECODE = 0xE1
_METADATA_LENGTHS = {EXPIRY_HEIGHT_TYPECODE: 4, EXPIRY_TIME_TYPECODE: 8}

_UNKNOWN_RECEIVER_RANGE = range(0x04, 0xC0)
_OPTIONAL_METADATA_RANGE = range(0xC0, 0xE0)
_MUST_UNDERSTAND_RANGE = range(0xE0, 0xFD)

ReceiverPreference = Tuple[Pool, ...]

DEFAULT_RECEIVER_PREFERENCE: ReceiverPreference = (Pool.ORCHARD, Pool.SAPLING, Pool.TRANSPARENT)

# Two-byte Base58Check version prefixes, keyed by (family, is_script)
_TRANSPARENT_PREFIXES = {
    (Network.MAINNET, False): b"\x1c\xb8",
    (Network.MAINNET, True): b"\x1c\xbd",
    (Network.TESTNET, False): b"\x1d\x25",
    (Network.TESTNET, True): b"\x1c\xba",
}
_TRANSPARENT_BY_PREFIX = {prefix: key for key, prefix in _TRANSPARENT_PREFIXES.items()}

_SAPLING_HRPS = {
    Network.MAINNET: "zs",
    Network.TESTNET: "ztestsapling",
    Network.REGTEST: "zregtestsapling",
}

_UNIFIED_HRPS = {
    (Network.MAINNET, 0): "u",
    (Network.TESTNET, 0): "utest",
    (Network.REGTEST, 0): "uregtest",
    (Network.MAINNET, 1): "ur",
    (Network.TESTNET, 1): "urtest",
    (Network.REGTEST, 1): "urregtest",
}

_SAPLING_BY_HRP = {hrp: network for network, hrp in _SAPLING_HRPS.items()}
_UNIFIED_BY_HRP = {hrp: key for key, hrp in _UNIFIED_HRPS.items()}

_PADDING_LENGTH = 16


def _transparent_family(network: Network) -> Network:
    # Regtest reuses the testnet transparent prefixes
    return Network.TESTNET if network is Network.REGTEST else network


def validate_preference(preference: Sequence[Pool]) -> ReceiverPreference:
    """Check that a receiver preference orders every pool exactly once."""
    preference = tuple(Pool(pool) for pool in preference)
    if sorted(preference) != sorted(Pool):
        raise ValueError(f"receiver preference must order each pool exactly once: {preference}")
    return preference


@dataclass(frozen=True)
class Receiver:
    """One typed receiver inside an address."""
    typecode: int
    data: bytes

    @property
    def kind(self) -> Optional[ReceiverKind]:
        try:
            return ReceiverKind(self.typecode)
        except ValueError:
            return None

    @property
    def pool(self) -> Optional[Pool]:
        kind = self.kind
        return kind.pool if kind is not None else None


@dataclass(frozen=True)
class MetadataItem:
    """A non-receiver item of a Unified Address."""
    typecode: int
    data: bytes


class _BaseAddress:
    """Behaviour shared by every address kind."""

    network: Network

    def receivers(self) -> Tuple[Receiver, ...]:
        raise NotImplementedError

    @property
    def pools(self) -> FrozenSet[Pool]:
        return frozenset(r.pool for r in self.receivers() if r.pool is not None)

    @property
    def supports_memo(self) -> bool:
        return any(pool.shielded for pool in self.pools)

    def preferred_receiver(self, preference: ReceiverPreference = DEFAULT_RECEIVER_PREFERENCE) -> Receiver:
        """
        Pick the receiver a sender should pay.

        Args:
            preference: Pools in descending order of preference

        Returns:
            The first receiver whose pool appears earliest in `preference`
        """
        by_pool: Dict[Pool, Receiver] = {}
        for receiver in self.receivers():
            if receiver.pool is not None:
                by_pool.setdefault(receiver.pool, receiver)
        for pool in preference:
            if pool in by_pool:
                return by_pool[pool]
        raise AddressError(f"no receiver in {sorted(p.value for p in by_pool)} matches the preference")

    def preferred_pool(self, preference: ReceiverPreference = DEFAULT_RECEIVER_PREFERENCE) -> Pool:
        return self.preferred_receiver(preference).pool

    def encode(self) -> str:
        raise NotImplementedError

    def __str__(self) -> str:
        return self.encode()


@dataclass(frozen=True)
class TransparentAddress(_BaseAddress):
    """Base58Check P2PKH or P2SH address."""
    network: Network
    hash: bytes
    is_script: bool = False

    def __post_init__(self):
        if len(self.hash) != 20:
            raise MalformedAddress(f"transparent hash must be 20 bytes, got {len(self.hash)}")

    @property
    def kind(self) -> AddressKind:
        return AddressKind.TRANSPARENT

    def receivers(self) -> Tuple[Receiver, ...]:
        typecode = ReceiverKind.P2SH if self.is_script else ReceiverKind.P2PKH
        return (Receiver(int(typecode), self.hash),)

    def encode(self) -> str:
        prefix = _TRANSPARENT_PREFIXES[(_transparent_family(self.network), self.is_script)]
        return ZcashCrypto.base58check_encode(prefix + self.hash)


@dataclass(frozen=True)
class SaplingAddress(_BaseAddress):
    """Bech32 Sapling payment address (diversifier || pk_d)."""
    network: Network
    data: bytes

    def __post_init__(self):
        if len(self.data) != RECEIVER_LENGTHS[ReceiverKind.SAPLING]:
            raise MalformedAddress(f"sapling address must be 43 bytes, got {len(self.data)}")

    @property
    def kind(self) -> AddressKind:
        return AddressKind.SAPLING

    def receivers(self) -> Tuple[Receiver, ...]:
        return (Receiver(int(ReceiverKind.SAPLING), self.data),)

    def encode(self) -> str:
        return ZcashCrypto.bech32_encode(_SAPLING_HRPS[self.network], self.data, BECH32_CONST)


@dataclass(frozen=True)
class UnifiedAddress(_BaseAddress):
    """
    Bech32m, F4Jumbled container of typed receivers.

    Items are kept exactly as decoded, including receivers and optional
    metadata this SDK does not understand, so encode() reproduces the
    original string.
    """
    network: Network
    items: Tuple[Receiver, ...]
    metadata: Tuple[MetadataItem, ...] = field(default=())
    revision: int = 0

    def __post_init__(self):
        if (self.network, self.revision) not in _UNIFIED_HRPS:
            raise MalformedAddress(f"unknown unified address revision {self.revision}")
        _check_unified_items(self.items, self.metadata, self.revision)

    @classmethod
    def from_receivers(
        cls,
        network: Network,
        receivers: Iterable[Receiver],
        metadata: Iterable[MetadataItem] = (),
        revision: int = 0,
    ) -> "UnifiedAddress":
        """Build a Unified Address, sorting items into canonical order."""
        return cls(
            network=network,
            items=tuple(sorted(receivers, key=lambda r: r.typecode)),
            metadata=tuple(sorted(metadata, key=lambda m: m.typecode)),
            revision=revision,
        )

    @property
    def kind(self) -> AddressKind:
        return AddressKind.UNIFIED

    @property
    def hrp(self) -> str:
        return _UNIFIED_HRPS[(self.network, self.revision)]

    def receivers(self) -> Tuple[Receiver, ...]:
        return self.items

    def receiver(self, kind: ReceiverKind) -> Optional[Receiver]:
        for item in self.items:
            if item.typecode == kind:
                return item
        return None

    @property
    def expiry_height(self) -> Optional[int]:
        return self._metadata_int(EXPIRY_HEIGHT_TYPECODE)

    @property
    def expiry_time(self) -> Optional[int]:
        return self._metadata_int(EXPIRY_TIME_TYPECODE)

    def _metadata_int(self, typecode: int) -> Optional[int]:
        for item in self.metadata:
            if item.typecode == typecode:
                return int.from_bytes(item.data, "little")
        return None

    def encode(self) -> str:
        ordered = sorted(list(self.items) + list(self.metadata), key=lambda i: i.typecode)
        raw = b"".join(
            ZcashCrypto.write_compact_size(item.typecode)
            + ZcashCrypto.write_compact_size(len(item.data))
            + item.data
            for item in ordered
        )
        raw += self.hrp.encode("ascii").ljust(_PADDING_LENGTH, b"\x00")
        try:
            jumbled = ZcashCrypto.f4jumble(raw)
        except ValueError as exc:
            raise MalformedAddress(str(exc)) from exc
        return ZcashCrypto.bech32_encode(self.hrp, jumbled, BECH32M_CONST)


Address = Union[TransparentAddress, SaplingAddress, UnifiedAddress]


def _check_unified_items(
    receivers: Sequence[Receiver], metadata: Sequence[MetadataItem], revision: int
) -> None:
    previous = -1
    for item in sorted(list(receivers) + list(metadata), key=lambda i: i.typecode):
        if item.typecode == previous:
            raise MalformedAddress(f"duplicate typecode 0x{item.typecode:02x}")
        previous = item.typecode

    for item in metadata:
        if item.typecode in _METADATA_LENGTHS:
            if revision < 1:
                raise UnsupportedReceiver(item.typecode)
            if len(item.data) != _METADATA_LENGTHS[item.typecode]:
                raise MalformedAddress(f"metadata 0x{item.typecode:02x} has wrong length {len(item.data)}")
        elif item.typecode in _MUST_UNDERSTAND_RANGE:
            raise UnsupportedReceiver(item.typecode)
        elif item.typecode not in _OPTIONAL_METADATA_RANGE:
            raise MalformedAddress(f"typecode 0x{item.typecode:02x} is not a metadata typecode")

    if not receivers:
        raise MalformedAddress("unified address has no receivers")
    known = set()
    for receiver in receivers:
        kind = receiver.kind
        if kind is None:
            if receiver.typecode not in _UNKNOWN_RECEIVER_RANGE:
                raise MalformedAddress(f"typecode 0x{receiver.typecode:02x} is not a receiver typecode")
            continue
        if len(receiver.data) != RECEIVER_LENGTHS[kind]:
            raise MalformedAddress(
                f"{kind.name.lower()} receiver must be {RECEIVER_LENGTHS[kind]} bytes, got {len(receiver.data)}"
            )
        known.add(kind)
    if not known:
        raise UnsupportedReceiver(receivers[0].typecode)
    if {ReceiverKind.P2PKH, ReceiverKind.P2SH} <= known:
        raise MalformedAddress("unified address carries both P2PKH and P2SH receivers")


def _check_network(expected: Network, actual: Network, text: str) -> None:
    if expected is not actual:
        raise NetworkMismatch(expected, actual, text)


def _parse_transparent(text: str, expected: Network) -> TransparentAddress:
    try:
        raw = ZcashCrypto.base58check_decode(text)
    except ValueError as exc:
        raise MalformedAddress(f"bad base58check encoding: {exc}", text) from exc
    if len(raw) != 22:
        raise MalformedAddress(f"transparent payload must be 22 bytes, got {len(raw)}", text)
    key = _TRANSPARENT_BY_PREFIX.get(raw[:2])
    if key is None:
        raise MalformedAddress(f"unknown transparent prefix {raw[:2].hex()}", text)
    family, is_script = key
    if family is not _transparent_family(expected):
        raise NetworkMismatch(expected, family, text)
    return TransparentAddress(network=expected, hash=raw[2:], is_script=is_script)


def _parse_sapling(text: str, network: Network, expected: Network) -> SaplingAddress:
    _check_network(expected, network, text)
    try:
        _, data = ZcashCrypto.bech32_decode(text, BECH32_CONST)
        return SaplingAddress(network=network, data=data)
    except ValueError as exc:
        raise MalformedAddress(f"bad sapling encoding: {exc}", text) from exc
    except AddressError as exc:
        exc.address = text
        raise


def _parse_unified(text: str, network: Network, revision: int, expected: Network) -> UnifiedAddress:
    _check_network(expected, network, text)
    try:
        hrp, jumbled = ZcashCrypto.bech32_decode(text, BECH32M_CONST)
        raw = ZcashCrypto.f4jumble_inv(jumbled)
    except ValueError as exc:
        raise MalformedAddress(f"bad unified encoding: {exc}", text) from exc

    padding = hrp.encode("ascii").ljust(_PADDING_LENGTH, b"\x00")
    if raw[-_PADDING_LENGTH:] != padding:
        raise MalformedAddress("unified address padding does not match its prefix", text)
    body = raw[:-_PADDING_LENGTH]

    receivers = []
    metadata = []
    offset = 0
    previous = -1
    try:
        while offset < len(body):
            typecode, offset = ZcashCrypto.read_compact_size(body, offset)
            length, offset = ZcashCrypto.read_compact_size(body, offset)
            if offset + length > len(body):
                raise MalformedAddress("truncated unified address item", text)
            data = body[offset:offset + length]
            offset += length
            if typecode <= previous:
                raise MalformedAddress("unified address items are not in ascending typecode order", text)
            previous = typecode
            if typecode >= 0xFD:
                raise MalformedAddress(f"reserved typecode 0x{typecode:x}", text)
            if typecode >= 0xC0:
                metadata.append(MetadataItem(typecode, data))
            else:
                receivers.append(Receiver(typecode, data))
        return UnifiedAddress(
            network=network, items=tuple(receivers), metadata=tuple(metadata), revision=revision
        )
    except ValueError as exc:
        raise MalformedAddress(f"bad unified address item: {exc}", text) from exc
    except AddressError as exc:
        exc.address = text
        raise


def parse_address(text: str, expected_network: Network) -> Address:
    """
    Parse an address string for the given network.

    The encoding is chosen from the human-readable prefix before any
    decoding is attempted, so a well-formed address for another network
    fails with NetworkMismatch rather than a checksum error.

    Args:
        text: Address string
        expected_network: Network the caller is operating on

    Returns:
        TransparentAddress, SaplingAddress or UnifiedAddress

    Raises:
        MalformedAddress, NetworkMismatch, UnsupportedReceiver
    """
    if not isinstance(text, str) or not text:
        raise MalformedAddress("address must be a non-empty string")
    expected_network = Network(expected_network)

    lowered = text.lower()
    separator = lowered.rfind("1")
    hrp = lowered[:separator] if separator > 0 else ""

    if hrp in _SAPLING_BY_HRP:
        return _parse_sapling(text, _SAPLING_BY_HRP[hrp], expected_network)
    if hrp in _UNIFIED_BY_HRP:
        network, revision = _UNIFIED_BY_HRP[hrp]
        return _parse_unified(text, network, revision, expected_network)
    if text.startswith("t"):
        return _parse_transparent(text, expected_network)
    raise MalformedAddress("unrecognised address prefix", text)


def coerce_address(value: Union[str, Address], expected_network: Network) -> Address:
    """Parse text, or check the network of an already parsed address."""
    if isinstance(value, str):
        return parse_address(value, expected_network)
    if isinstance(value, (TransparentAddress, SaplingAddress, UnifiedAddress)):
        expected_network = Network(expected_network)
        actual = value.network
        if isinstance(value, TransparentAddress):
            if _transparent_family(actual) is not _transparent_family(expected_network):
                raise NetworkMismatch(expected_network, actual, value.encode())
            if actual is not expected_network:
                value = TransparentAddress(expected_network, value.hash, value.is_script)
        elif actual is not expected_network:
            raise NetworkMismatch(expected_network, actual, value.encode())
        return value
    raise MalformedAddress(f"expected an address, got {type(value).__name__}")


def is_valid_address(text: str, network: Network) -> bool:
    try:
        parse_address(text, network)
    except AddressError:
        return False
    return True


def standalone_address(address: Address, preference: ReceiverPreference = DEFAULT_RECEIVER_PREFERENCE) -> Address:
    """
    Address to hand to the node for a payment to `address`.

    Unified Addresses are narrowed to their preferred receiver. Orchard has
    no standalone form, so an Orchard choice keeps the Unified Address as is.
    """
    if isinstance(address, (TransparentAddress, SaplingAddress)):
        return address
    if isinstance(address, UnifiedAddress):
        receiver = address.preferred_receiver(preference)
        kind = receiver.kind
        if kind is ReceiverKind.ORCHARD:
            return address
        if kind is ReceiverKind.SAPLING:
            return SaplingAddress(address.network, receiver.data)
        return TransparentAddress(address.network, receiver.data, is_script=kind is ReceiverKind.P2SH)
    raise TypeError(f"unhandled address type {type(address).__name__}")
