"""
Exception hierarchy for the Zcash SDK

Every error carries structured attributes so callers can build an
actionable message without parsing the text.
"""

from typing import Any, Dict, Optional


class ZcashSDKError(Exception):
    """Base class for all SDK errors."""

    code = "SDK_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        """Structured view of the error."""
        data = {"code": self.code, "message": self.message}
        for key, value in vars(self).items():
            if key not in data and not key.startswith("_"):
                data[key] = value
        return data


# Address errors


class AddressError(ZcashSDKError):
    """An address string could not be accepted."""

    code = "ADDRESS_ERROR"

    def __init__(self, message: str, address: Optional[str] = None):
        super().__init__(message)
        self.address = address


class MalformedAddress(AddressError):
    """Bad checksum, bad length, bad padding or unknown prefix."""

    code = "MALFORMED_ADDRESS"


class NetworkMismatch(AddressError):
    """The address belongs to a different network than the one expected."""

    code = "NETWORK_MISMATCH"

    def __init__(self, expected, actual, address: Optional[str] = None):
        super().__init__(
            f"address is for {actual.value}, expected {expected.value}", address
        )
        self.expected = expected
        self.actual = actual

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["expected"] = self.expected.value
        data["actual"] = self.actual.value
        return data


class UnsupportedReceiver(AddressError):
    """A unified address carries an item this parser must understand but does not."""

    code = "UNSUPPORTED_RECEIVER"

    def __init__(self, typecode: int, address: Optional[str] = None):
        super().__init__(f"unsupported must-understand typecode 0x{typecode:02x}", address)
        self.typecode = typecode


# Validation errors


class ValidationError(ZcashSDKError):
    """A payment or request failed validation."""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: Optional[str] = None, index: Optional[int] = None):
        if index is not None:
            message = f"payment {index}: {message}"
        super().__init__(message)
        self.field = field
        self.index = index


class InvalidAddress(ValidationError):
    code = "INVALID_ADDRESS"

    def __init__(self, cause: AddressError, field: str, index: Optional[int] = None):
        super().__init__(f"invalid {field}: {cause.message}", field=field, index=index)
        self.cause = cause
        self.__cause__ = cause

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["cause"] = self.cause.to_dict()
        return data


class InvalidAmount(ValidationError):
    code = "INVALID_AMOUNT"

    def __init__(self, message: str, amount: Any = None, field: str = "amount", index: Optional[int] = None):
        super().__init__(message, field=field, index=index)
        self.amount = amount


class MemoTooLong(ValidationError):
    code = "MEMO_TOO_LONG"

    def __init__(self, length: int, limit: int, index: Optional[int] = None):
        super().__init__(f"memo is {length} bytes, limit is {limit}", field="memo", index=index)
        self.length = length
        self.limit = limit


class MemoNotAllowed(ValidationError):
    code = "MEMO_NOT_ALLOWED"

    def __init__(self, index: Optional[int] = None):
        super().__init__(
            "memos require a shielded receiver, recipient is paid through a transparent one",
            field="memo",
            index=index,
        )


class EmptyRequest(ValidationError):
    code = "EMPTY_REQUEST"

    def __init__(self):
        super().__init__("a payment request needs at least one payment", field="payments")


class AmountOverflow(ValidationError):
    code = "AMOUNT_OVERFLOW"

    def __init__(self, total: int, limit: int, field: str = "amount", index: Optional[int] = None):
        super().__init__(f"{total} zatoshi exceeds the {limit} zatoshi limit", field=field, index=index)
        self.total = total
        self.limit = limit


class InvalidParameter(ValidationError):
    code = "INVALID_PARAMETER"


class InvalidPaymentUri(ValidationError):
    """A ZIP 321 payment URI could not be parsed."""

    code = "INVALID_PAYMENT_URI"


# RPC errors


class RpcError(ZcashSDKError):
    """The node could not be reached or refused a call."""

    code = "RPC_ERROR"

    def __init__(self, message: str, method: Optional[str] = None):
        super().__init__(message)
        self.method = method


class Unreachable(RpcError):
    code = "UNREACHABLE"


class AuthFailed(RpcError):
    code = "AUTH_FAILED"


class NodeRejected(RpcError):
    code = "NODE_REJECTED"

    def __init__(self, rpc_code: int, rpc_message: str, method: Optional[str] = None):
        super().__init__(f"node rejected {method or 'call'}: {rpc_message} ({rpc_code})", method)
        self.rpc_code = rpc_code
        self.rpc_message = rpc_message


# Tracker errors


class TrackerError(ZcashSDKError):
    """An operation did not end in a transaction id."""

    code = "TRACKER_ERROR"

    def __init__(self, message: str, operation_id: Optional[str] = None):
        super().__init__(message)
        self.operation_id = operation_id


class SubmissionFailed(TrackerError):
    code = "SUBMISSION_FAILED"

    def __init__(self, cause: RpcError):
        super().__init__(f"submission failed: {cause.message}")
        self.cause = cause
        self.__cause__ = cause

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["cause"] = self.cause.to_dict()
        return data


class OperationFailed(TrackerError):
    code = "OPERATION_FAILED"

    def __init__(self, reason: str, operation_id: Optional[str] = None, rpc_code: Optional[int] = None):
        super().__init__(f"operation {operation_id} failed: {reason}", operation_id)
        self.reason = reason
        self.rpc_code = rpc_code


class OperationTimedOut(TrackerError):
    code = "TIMED_OUT"

    def __init__(self, operation_id: str, waited: float):
        super().__init__(f"operation {operation_id} still pending after {waited:.1f}s", operation_id)
        self.waited = waited


class OperationCancelled(TrackerError):
    code = "CANCELLED"

    def __init__(self, operation_id: str):
        super().__init__(f"waiting for operation {operation_id} was cancelled", operation_id)
