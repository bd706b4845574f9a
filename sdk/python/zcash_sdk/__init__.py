"""
Zcash Python SDK

Client-side payment layer for zcashd nodes.

Features:
- Transparent, Sapling and Unified Address parsing and encoding
- ZIP 317 conventional fee calculation
- Validated z_sendmany payment requests with memos
- Operation tracking with capped exponential backoff
- JSON-RPC client for the zcashd Payment API
- ZIP 321 payment request URIs
"""

__version__ = "0.1.0"
__author__ = "Zcash SDK Team"

from .address import (
    DEFAULT_RECEIVER_PREFERENCE,
    AddressKind,
    MetadataItem,
    Network,
    Pool,
    Receiver,
    ReceiverKind,
    SaplingAddress,
    TransparentAddress,
    UnifiedAddress,
    is_valid_address,
    parse_address,
)
from .builder import MemoPolicy, PaymentRequestBuilder
from .client import RpcGateway, ZcashRpcClient
from .config import NodeSettings, PollingSettings
from .crypto import ZcashCrypto
from .errors import (
    AddressError,
    AmountOverflow,
    AuthFailed,
    EmptyRequest,
    InvalidAddress,
    InvalidAmount,
    InvalidParameter,
    InvalidPaymentUri,
    MalformedAddress,
    MemoNotAllowed,
    MemoTooLong,
    NetworkMismatch,
    NodeRejected,
    OperationCancelled,
    OperationFailed,
    OperationTimedOut,
    RpcError,
    SubmissionFailed,
    TrackerError,
    Unreachable,
    UnsupportedReceiver,
    ValidationError,
    ZcashSDKError,
)
from .fees import MARGINAL_FEE, GRACE_ACTIONS, MINIMUM_FEE, ActionCount, compute_fee, count_logical_actions
from .models import OperationState, OperationStatus, Payment, PaymentRequest, Recipient
from .payments import ZcashPayments
from .tracker import OperationHandle, OperationTracker, TrackerState
from .utils import Utils
from .zip321 import UriPayment, parse_payment_uri

__all__ = [
    "ZcashPayments",
    "ZcashRpcClient",
    "RpcGateway",
    "PaymentRequestBuilder",
    "MemoPolicy",
    "OperationTracker",
    "OperationHandle",
    "TrackerState",
    "NodeSettings",
    "PollingSettings",
    "Network",
    "Pool",
    "AddressKind",
    "ReceiverKind",
    "Receiver",
    "MetadataItem",
    "TransparentAddress",
    "SaplingAddress",
    "UnifiedAddress",
    "DEFAULT_RECEIVER_PREFERENCE",
    "parse_address",
    "is_valid_address",
    "parse_payment_uri",
    "UriPayment",
    "compute_fee",
    "count_logical_actions",
    "ActionCount",
    "MARGINAL_FEE",
    "GRACE_ACTIONS",
    "MINIMUM_FEE",
    "Payment",
    "PaymentRequest",
    "Recipient",
    "OperationState",
    "OperationStatus",
    "ZcashCrypto",
    "Utils",
    "ZcashSDKError",
    "AddressError",
    "MalformedAddress",
    "NetworkMismatch",
    "UnsupportedReceiver",
    "ValidationError",
    "InvalidAddress",
    "InvalidAmount",
    "InvalidParameter",
    "InvalidPaymentUri",
    "MemoTooLong",
    "MemoNotAllowed",
    "EmptyRequest",
    "AmountOverflow",
    "RpcError",
    "Unreachable",
    "AuthFailed",
    "NodeRejected",
    "TrackerError",
    "SubmissionFailed",
    "OperationFailed",
    "OperationTimedOut",
    "OperationCancelled",
]
