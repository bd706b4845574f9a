"""
Utility functions for Zcash amounts, memos and display
"""

from decimal import Decimal, ROUND_DOWN
from typing import Optional, Union

ZATOSHIS_PER_ZEC = 100_000_000

# Largest amount representable on chain (21 million ZEC)
MAX_MONEY = 21_000_000 * ZATOSHIS_PER_ZEC

MEMO_SIZE = 512

# ZIP 302: a memo field starting with 0xF6 followed by zeros means "no memo"
EMPTY_MEMO_MARKER = b"\xf6"


class Utils:
    """Helper utilities for Zcash operations"""

    @staticmethod
    def zec_to_zatoshis(zec: Union[Decimal, str, int, float]) -> int:
        """
        Convert ZEC to zatoshis (10^-8).

        Args:
            zec: Amount in ZEC; floats are converted through str() first

        Returns:
            Amount in zatoshis

        Example:
            >>> Utils.zec_to_zatoshis("1.5")
            150000000
        """
        amount = Decimal(str(zec)) if isinstance(zec, float) else Decimal(zec)
        if amount < 0:
            raise ValueError(f"amount cannot be negative: {zec}")
        zatoshis = amount * ZATOSHIS_PER_ZEC
        if zatoshis != zatoshis.to_integral_value(rounding=ROUND_DOWN):
            raise ValueError(f"amount has more than 8 decimal places: {zec}")
        return int(zatoshis)

    @staticmethod
    def zatoshis_to_zec(zatoshis: int) -> Decimal:
        """
        Convert zatoshis to ZEC.

        Args:
            zatoshis: Amount in zatoshis

        Returns:
            Amount in ZEC with 8 decimal places
        """
        return (Decimal(zatoshis) / ZATOSHIS_PER_ZEC).quantize(Decimal("0.00000001"))

    @staticmethod
    def format_zec(zatoshis: int) -> str:
        return f"{Utils.zatoshis_to_zec(zatoshis)} ZEC"

    @staticmethod
    def format_zatoshis(zatoshis: int) -> str:
        return f"{zatoshis} zatoshis"

    @staticmethod
    def format_address(address: str, keep_start: int = 8, keep_end: int = 6) -> str:
        """
        Shorten an address for display and logs.

        Args:
            address: Full address
            keep_start: Characters kept at the start
            keep_end: Characters kept at the end

        Returns:
            Address with the middle replaced by an ellipsis
        """
        if len(address) <= keep_start + keep_end + 1:
            return address
        return f"{address[:keep_start]}...{address[-keep_end:]}"

    @staticmethod
    def memo_bytes(memo: Optional[Union[str, bytes]]) -> Optional[bytes]:
        """Normalise a memo to bytes; empty memos become None."""
        if memo is None:
            return None
        if isinstance(memo, str):
            memo = memo.encode("utf-8")
        elif isinstance(memo, (bytearray, memoryview)):
            memo = bytes(memo)
        elif not isinstance(memo, bytes):
            raise TypeError(f"memo must be str or bytes, not {type(memo).__name__}")
        return memo or None

    @staticmethod
    def memo_to_hex(memo: bytes) -> str:
        return memo.hex()

    @staticmethod
    def memo_from_hex(memo_hex: str) -> Optional[bytes]:
        """
        Decode a memo field as returned by the node.

        Trailing zero padding is removed; the empty-memo marker decodes to None.
        """
        raw = bytes.fromhex(memo_hex)
        if not raw or raw.rstrip(b"\x00") == EMPTY_MEMO_MARKER:
            return None
        return raw.rstrip(b"\x00")

    @staticmethod
    def pad_memo(memo: Optional[bytes]) -> bytes:
        """
        Expand memo content to the fixed 512-byte memo field.

        Raises:
            ValueError: If the memo is longer than 512 bytes
        """
        if not memo:
            return EMPTY_MEMO_MARKER.ljust(MEMO_SIZE, b"\x00")
        if len(memo) > MEMO_SIZE:
            raise ValueError(f"memo is {len(memo)} bytes, limit is {MEMO_SIZE}")
        return memo.ljust(MEMO_SIZE, b"\x00")

    @staticmethod
    def seconds_to_readable(seconds: float) -> str:
        """
        Convert seconds to human-readable format.

        Args:
            seconds: Number of seconds

        Returns:
            Readable string (e.g., "45s", "2m", "3h")
        """
        seconds = int(seconds)
        if seconds < 60:
            return f"{seconds}s"
        elif seconds < 3600:
            return f"{seconds // 60}m"
        elif seconds < 86400:
            return f"{seconds // 3600}h"
        else:
            return f"{seconds // 86400}d"
