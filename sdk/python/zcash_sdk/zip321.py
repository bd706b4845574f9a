"""
ZIP 321 payment request URIs

Parses `zcash:` URIs into payments the request builder accepts:

    zcash:<address>?amount=1.5&memo=<base64url>&message=Thanks
    zcash:?address=<a>&amount=1&address.1=<b>&amount.1=0.25

Addresses are returned as text; network and receiver checks happen when
the payments are built.
"""

import base64
import binascii
import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple
from urllib.parse import unquote

from .errors import InvalidPaymentUri
from .utils import Utils

logger = logging.getLogger(__name__)

SCHEME = "zcash"

_PARAM = re.compile(r"^([A-Za-z][A-Za-z0-9+\-]*)(?:\.([1-9][0-9]{0,3}))?$")
_AMOUNT = re.compile(r"^[0-9]+(?:\.[0-9]{1,8})?$")
_KNOWN_PARAMS = ("address", "amount", "memo", "message", "label")


@dataclass(frozen=True)
class UriPayment:
    """One payment from a payment URI. `index` is its parameter index."""
    index: int
    address: str
    amount: int
    memo: Optional[bytes] = None
    message: Optional[str] = None
    label: Optional[str] = None

    def as_payment(self) -> Tuple[str, int, Optional[bytes]]:
        return (self.address, self.amount, self.memo)


def _decode_memo(value: str, index: int) -> bytes:
    # base64url without padding
    if "=" in value:
        raise InvalidPaymentUri("memo must be unpadded base64url", field="memo", index=index)
    try:
        return base64.b64decode(value + "=" * (-len(value) % 4), altchars=b"-_", validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidPaymentUri(f"memo is not valid base64url: {exc}", field="memo", index=index) from exc


def _decode_amount(value: str, index: int) -> int:
    if not _AMOUNT.match(value):
        raise InvalidPaymentUri(f"invalid amount {value!r}", field="amount", index=index)
    return Utils.zec_to_zatoshis(value)


def _decode_text(value: str, field: str, index: int) -> str:
    try:
        return unquote(value, errors="strict")
    except UnicodeDecodeError as exc:
        raise InvalidPaymentUri(f"{field} is not valid percent-encoded UTF-8", field=field, index=index) from exc


def _collect_params(path: str, query: str) -> Dict[int, Dict[str, str]]:
    params: Dict[int, Dict[str, str]] = {}
    if path:
        params[0] = {"address": path}
    for pair in query.split("&") if query else ():
        name, eq, value = pair.partition("=")
        match = _PARAM.match(name)
        if not eq or match is None:
            raise InvalidPaymentUri(f"malformed parameter {pair!r}", field="uri")
        key, index = match.group(1).lower(), int(match.group(2) or 0)
        if key.startswith("req-"):
            raise InvalidPaymentUri(f"unsupported required parameter {key!r}", field=key, index=index)
        if key not in _KNOWN_PARAMS:
            logger.debug("Ignoring payment URI parameter %s", name)
            continue
        entry = params.setdefault(index, {})
        if key in entry:
            raise InvalidPaymentUri(f"{key} given more than once", field=key, index=index)
        entry[key] = value
    return params


def parse_payment_uri(uri: str) -> List[UriPayment]:
    """
    Parse a ZIP 321 URI.

    Args:
        uri: `zcash:` URI with one or more payments

    Returns:
        Payments ordered by parameter index

    Raises:
        InvalidPaymentUri: Bad syntax, a payment without an address or
            amount, a repeated parameter, or an unknown `req-` parameter
    """
    if not isinstance(uri, str):
        raise InvalidPaymentUri("payment URI must be a string", field="uri")
    scheme, sep, rest = uri.partition(":")
    if not sep or scheme.lower() != SCHEME:
        raise InvalidPaymentUri(f"payment URI must start with {SCHEME}:", field="uri")
    path, _, query = rest.partition("?")

    params = _collect_params(path, query)
    if not params:
        raise InvalidPaymentUri("payment URI has no payments", field="uri")

    payments = []
    for index in sorted(params):
        entry = params[index]
        if "address" not in entry:
            raise InvalidPaymentUri("missing address", field="address", index=index)
        if "amount" not in entry:
            raise InvalidPaymentUri("missing amount", field="amount", index=index)
        memo = entry.get("memo")
        message = entry.get("message")
        label = entry.get("label")
        payments.append(
            UriPayment(
                index=index,
                address=entry["address"],
                amount=_decode_amount(entry["amount"], index),
                memo=_decode_memo(memo, index) if memo is not None else None,
                message=_decode_text(message, "message", index) if message is not None else None,
                label=_decode_text(label, "label", index) if label is not None else None,
            )
        )
    return payments
