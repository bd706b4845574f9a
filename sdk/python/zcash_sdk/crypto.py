"""
Encoding primitives for Zcash addresses

Base58Check (transparent), Bech32 (Sapling), Bech32m and F4Jumble
(Unified Addresses), and Bitcoin-style CompactSize integers.
"""

from typing import List, Tuple

import base58
from bech32 import CHARSET, bech32_hrp_expand, bech32_polymod, convertbits
from nacl.encoding import RawEncoder
from nacl.hash import blake2b

BECH32_CONST = 1
BECH32M_CONST = 0x2BC830A3

# ZIP 316 bounds on the F4Jumble message length
F4JUMBLE_MIN_LENGTH = 48
F4JUMBLE_MAX_LENGTH = 4194368

_HASH_LENGTH = 64


def _xor(left: bytes, right: bytes) -> bytes:
    return bytes(a ^ b for a, b in zip(left, right))


def _h(round_index: int, data: bytes, length: int) -> bytes:
    person = b"UA_F4Jumble_H" + bytes([round_index, 0, 0])
    return blake2b(data, digest_size=length, person=person, encoder=RawEncoder)


def _g(round_index: int, data: bytes, length: int) -> bytes:
    blocks = []
    for j in range((length + _HASH_LENGTH - 1) // _HASH_LENGTH):
        person = b"UA_F4Jumble_G" + bytes([round_index]) + j.to_bytes(2, "little")
        blocks.append(blake2b(data, digest_size=_HASH_LENGTH, person=person, encoder=RawEncoder))
    return b"".join(blocks)[:length]


def _split_lengths(message: bytes) -> Tuple[int, int]:
    if not F4JUMBLE_MIN_LENGTH <= len(message) <= F4JUMBLE_MAX_LENGTH:
        raise ValueError(
            f"F4Jumble input must be {F4JUMBLE_MIN_LENGTH}..{F4JUMBLE_MAX_LENGTH} bytes, "
            f"got {len(message)}"
        )
    left = min(_HASH_LENGTH, len(message) // 2)
    return left, len(message) - left


class ZcashCrypto:
    """
    Codec helpers used by the address model.

    All decoders raise ValueError on malformed input; the address layer
    turns those into AddressError subclasses.
    """

    @staticmethod
    def f4jumble(message: bytes) -> bytes:
        """
        Apply the F4Jumble permutation from ZIP 316.

        Args:
            message: 48..4194368 bytes

        Returns:
            Jumbled bytes of the same length
        """
        left_len, right_len = _split_lengths(message)
        a, b = message[:left_len], message[left_len:]
        x = _xor(b, _g(0, a, right_len))
        y = _xor(a, _h(0, x, left_len))
        d = _xor(x, _g(1, y, right_len))
        c = _xor(y, _h(1, d, left_len))
        return c + d

    @staticmethod
    def f4jumble_inv(message: bytes) -> bytes:
        """
        Invert F4Jumble.

        Example:
            >>> raw = bytes(range(64))
            >>> ZcashCrypto.f4jumble_inv(ZcashCrypto.f4jumble(raw)) == raw
            True
        """
        left_len, right_len = _split_lengths(message)
        c, d = message[:left_len], message[left_len:]
        y = _xor(c, _h(1, d, left_len))
        x = _xor(d, _g(1, y, right_len))
        a = _xor(y, _h(0, x, left_len))
        b = _xor(x, _g(0, a, right_len))
        return a + b

    @staticmethod
    def base58check_encode(payload: bytes) -> str:
        return base58.b58encode_check(payload).decode("ascii")

    @staticmethod
    def base58check_decode(text: str) -> bytes:
        """Decode Base58Check text, raising ValueError on a bad character or checksum."""
        return base58.b58decode_check(text)

    @staticmethod
    def bech32_encode(hrp: str, data: bytes, const: int = BECH32_CONST) -> str:
        """
        Encode bytes as Bech32 (const=BECH32_CONST) or Bech32m (const=BECH32M_CONST).

        No overall length limit is applied: Unified Addresses are far
        longer than the 90 characters BIP 173 allows.
        """
        values = convertbits(list(data), 8, 5, True)
        polymod = bech32_polymod(bech32_hrp_expand(hrp) + values + [0] * 6) ^ const
        checksum = [(polymod >> 5 * (5 - i)) & 31 for i in range(6)]
        return hrp + "1" + "".join(CHARSET[v] for v in values + checksum)

    @staticmethod
    def bech32_decode(text: str, const: int = BECH32_CONST) -> Tuple[str, bytes]:
        """
        Decode Bech32 or Bech32m text.

        Returns:
            Tuple of (lower-case hrp, payload bytes)
        """
        if any(ord(ch) < 33 or ord(ch) > 126 for ch in text):
            raise ValueError("invalid character in bech32 string")
        if text.lower() != text and text.upper() != text:
            raise ValueError("mixed case bech32 string")
        text = text.lower()
        pos = text.rfind("1")
        if pos < 1 or pos + 7 > len(text):
            raise ValueError("missing or misplaced bech32 separator")
        hrp = text[:pos]
        values: List[int] = []
        for ch in text[pos + 1:]:
            index = CHARSET.find(ch)
            if index < 0:
                raise ValueError(f"invalid bech32 data character {ch!r}")
            values.append(index)
        if bech32_polymod(bech32_hrp_expand(hrp) + values) != const:
            raise ValueError("invalid bech32 checksum")
        payload = convertbits(values[:-6], 5, 8, False)
        if payload is None:
            raise ValueError("invalid bech32 padding")
        return hrp, bytes(payload)

    @staticmethod
    def write_compact_size(value: int) -> bytes:
        if value < 0xFD:
            return bytes([value])
        if value <= 0xFFFF:
            return b"\xfd" + value.to_bytes(2, "little")
        if value <= 0xFFFFFFFF:
            return b"\xfe" + value.to_bytes(4, "little")
        return b"\xff" + value.to_bytes(8, "little")

    @staticmethod
    def read_compact_size(data: bytes, offset: int) -> Tuple[int, int]:
        """
        Read a canonical CompactSize integer.

        Returns:
            Tuple of (value, offset just past the integer)
        """
        if offset >= len(data):
            raise ValueError("truncated compact size")
        first = data[offset]
        if first < 0xFD:
            return first, offset + 1
        width, minimum = {0xFD: (2, 0xFD), 0xFE: (4, 0x10000), 0xFF: (8, 0x100000000)}[first]
        end = offset + 1 + width
        if end > len(data):
            raise ValueError("truncated compact size")
        value = int.from_bytes(data[offset + 1:end], "little")
        if value < minimum:
            raise ValueError("non-canonical compact size")
        return value, end
