import logging

import pytest

from conftest import SAPLING43, T1_MAIN, TM_TEST, ZS_MAIN, ZS_TEST, unified
from zcash_sdk import (
    AmountOverflow,
    EmptyRequest,
    InvalidAddress,
    InvalidAmount,
    InvalidParameter,
    MemoNotAllowed,
    MemoPolicy,
    MemoTooLong,
    Network,
    NetworkMismatch,
    Payment,
    PaymentRequestBuilder,
    Pool,
    ReceiverKind,
    SaplingAddress,
)
from zcash_sdk.models import ANY_TADDR
from zcash_sdk.utils import MAX_MONEY


@pytest.fixture
def builder():
    return PaymentRequestBuilder(Network.MAINNET)


class TestRecipients:
    def test_single_sapling_payment(self, builder, ua_main):
        request = builder.build(ua_main, [(ZS_MAIN, 150_000, "invoice 42")])
        assert request.total_amount == 150_000
        assert request.fee == 10000
        assert request.total_with_fee == 160_000
        assert request.source == ua_main
        assert not request.fee_override

        [payment] = request.payments
        assert isinstance(payment.recipient, SaplingAddress)
        assert payment.memo == b"invoice 42"
        assert payment.memo_hex == b"invoice 42".hex()

    def test_any_taddr_source(self, builder):
        request = builder.build(None, [(T1_MAIN, 1000)])
        assert request.source == ANY_TADDR
        assert request.from_address is None
        assert request.actions.transparent_inputs == 1

    def test_payment_objects_accepted(self, builder, sapling_main):
        request = builder.build(None, [Payment(sapling_main, 5, b"\x00\x01")])
        assert request.payments[0].memo == b"\x00\x01"

    def test_unified_recipient_keeps_orchard(self, builder, ua_main):
        request = builder.build(None, [(ua_main, 1000)])
        [recipient] = request.recipients()
        assert recipient.address == ua_main
        assert recipient.amount == 1000
        assert recipient.memo is None

    def test_unified_recipient_narrowed_to_sapling(self, ua_main):
        builder = PaymentRequestBuilder(Network.MAINNET, (Pool.SAPLING, Pool.ORCHARD, Pool.TRANSPARENT))
        request = builder.build(None, [(ua_main, 1000, "hi")])
        [recipient] = request.recipients()
        assert recipient.address == ZS_MAIN
        assert recipient.memo == b"hi"

    def test_fee_counts_every_output(self, builder, ua_main):
        payments = [(ZS_MAIN, 1000), (T1_MAIN, 1000), (ua_main, 1000), (ZS_MAIN, 1000)]
        request = builder.build(ua_main, payments)
        assert request.actions.total == 5
        assert request.fee == 25000

    def test_empty_memo_normalised(self, builder):
        request = builder.build(None, [(ZS_MAIN, 1000, ""), (T1_MAIN, 1000, b"")])
        assert [p.memo for p in request.payments] == [None, None]


class TestAddressErrors:
    def test_bad_recipient(self, builder):
        with pytest.raises(InvalidAddress) as excinfo:
            builder.build(None, [(ZS_MAIN, 1000), ("zs1notanaddress", 1000)])
        assert excinfo.value.field == "recipient"
        assert excinfo.value.index == 1
        assert str(excinfo.value).startswith("payment 1: ")

    def test_wrong_network_recipient(self, builder):
        with pytest.raises(InvalidAddress) as excinfo:
            builder.build(None, [(ZS_TEST, 1000)])
        assert isinstance(excinfo.value.cause, NetworkMismatch)
        assert excinfo.value.to_dict()["cause"]["code"] == "NETWORK_MISMATCH"

    def test_bad_source(self, builder):
        with pytest.raises(InvalidAddress) as excinfo:
            builder.build(TM_TEST, [(ZS_MAIN, 1000)])
        assert excinfo.value.field == "from_address"
        assert excinfo.value.index is None


class TestAmounts:
    @pytest.mark.parametrize("amount", [0, -1, 1.5, True, "1000", None])
    def test_invalid_amounts(self, builder, amount):
        with pytest.raises(InvalidAmount) as excinfo:
            builder.build(None, [(ZS_MAIN, amount)])
        assert excinfo.value.field == "amount"
        assert excinfo.value.index == 0

    def test_single_amount_overflow(self, builder):
        with pytest.raises(AmountOverflow) as excinfo:
            builder.build(None, [(ZS_MAIN, MAX_MONEY + 1)])
        assert excinfo.value.field == "amount"

    def test_total_overflow(self, builder):
        half = MAX_MONEY // 2 + 1
        with pytest.raises(AmountOverflow) as excinfo:
            builder.build(None, [(ZS_MAIN, half), (ZS_MAIN, half)])
        assert excinfo.value.field == "payments"
        assert excinfo.value.total == 2 * half

    def test_fee_pushes_total_over_limit(self, builder):
        with pytest.raises(AmountOverflow) as excinfo:
            builder.build(None, [(ZS_MAIN, MAX_MONEY)])
        assert excinfo.value.field == "fee"

    def test_fee_override(self, builder):
        request = builder.build(None, [(ZS_MAIN, 1000)], fee_override=0)
        assert request.fee == 0
        assert request.fee_override
        assert request.actions.fee == 10000

    @pytest.mark.parametrize("fee", [-1, 0.0001, False])
    def test_invalid_fee_override(self, builder, fee):
        with pytest.raises(InvalidAmount) as excinfo:
            builder.build(None, [(ZS_MAIN, 1000)], fee_override=fee)
        assert excinfo.value.field == "fee"


class TestMemos:
    def test_max_length_memo(self, builder):
        request = builder.build(None, [(ZS_MAIN, 1000, b"x" * 512)])
        assert len(request.payments[0].memo) == 512

    def test_memo_too_long(self, builder):
        with pytest.raises(MemoTooLong) as excinfo:
            builder.build(None, [(ZS_MAIN, 1000, b"x" * 513)])
        assert excinfo.value.length == 513
        assert excinfo.value.limit == 512

    def test_memo_length_is_utf8_bytes(self, builder):
        # 171 three-byte characters
        with pytest.raises(MemoTooLong):
            builder.build(None, [(ZS_MAIN, 1000, "€" * 171)])

    def test_memo_to_transparent_rejected(self, builder):
        with pytest.raises(MemoNotAllowed) as excinfo:
            builder.build(None, [(T1_MAIN, 1000, "hello")])
        assert excinfo.value.field == "memo"

    def test_memo_to_transparent_dropped(self, builder, caplog):
        with caplog.at_level(logging.WARNING, logger="zcash_sdk.builder"):
            request = builder.build(None, [(T1_MAIN, 1000, "hello")], memo_policy=MemoPolicy.DROP)
        assert request.payments[0].memo is None
        assert "Dropping memo" in caplog.text

    def test_memo_to_unified_with_shielded_receiver(self, builder):
        request = builder.build(None, [(unified(), 1000, "ok")])
        assert request.payments[0].memo == b"ok"

    def test_memo_to_transparent_only_unified(self, builder):
        with pytest.raises(MemoNotAllowed):
            builder.build(None, [(unified(kinds=(ReceiverKind.P2PKH,)), 1000, "no")])

    def test_memo_to_unified_paid_through_transparent_receiver(self):
        builder = PaymentRequestBuilder(Network.MAINNET, (Pool.TRANSPARENT, Pool.SAPLING, Pool.ORCHARD))
        address = unified(kinds=(ReceiverKind.SAPLING, ReceiverKind.P2PKH))
        assert address.supports_memo
        with pytest.raises(MemoNotAllowed) as excinfo:
            builder.build(None, [(ZS_MAIN, 1000), (address, 1000, "hello")])
        assert excinfo.value.index == 1

    def test_memo_dropped_for_unified_paid_through_transparent_receiver(self, caplog):
        builder = PaymentRequestBuilder(Network.MAINNET, (Pool.TRANSPARENT, Pool.SAPLING, Pool.ORCHARD))
        address = unified(kinds=(ReceiverKind.SAPLING, ReceiverKind.P2PKH))
        with caplog.at_level(logging.WARNING, logger="zcash_sdk.builder"):
            request = builder.build(None, [(address, 1000, "hello")], memo_policy=MemoPolicy.DROP)
        assert request.payments[0].memo is None
        [recipient] = request.recipients()
        assert recipient.address == T1_MAIN
        assert recipient.memo is None
        assert "Dropping memo" in caplog.text

    def test_dropped_memo_for_transparent_only_unified_is_logged(self, builder, caplog):
        address = unified(kinds=(ReceiverKind.P2PKH,))
        with caplog.at_level(logging.WARNING, logger="zcash_sdk.builder"):
            request = builder.build(None, [(address, 1000, "no")], memo_policy=MemoPolicy.DROP)
        assert request.payments[0].memo is None
        assert "t1HsdD" in caplog.text

    def test_memo_type_checked(self, builder):
        with pytest.raises(InvalidParameter):
            builder.build(None, [(ZS_MAIN, 1000, 12345)])


class TestRequestShape:
    def test_empty_request(self, builder):
        with pytest.raises(EmptyRequest):
            builder.build(None, [])

    @pytest.mark.parametrize("payment", ["zs1abc", (ZS_MAIN,), (ZS_MAIN, 1, "memo", "extra"), 5])
    def test_malformed_payment_entries(self, builder, payment):
        with pytest.raises(InvalidParameter):
            builder.build(None, [payment])

    @pytest.mark.parametrize("minconf", [-1, 1.0, True])
    def test_invalid_minconf(self, builder, minconf):
        with pytest.raises(InvalidParameter) as excinfo:
            builder.build(None, [(ZS_MAIN, 1000)], minconf=minconf)
        assert excinfo.value.field == "minconf"

    def test_privacy_policy(self, builder):
        request = builder.build(None, [(ZS_MAIN, 1000)], privacy_policy="AllowRevealedSenders")
        assert request.privacy_policy == "AllowRevealedSenders"
        with pytest.raises(InvalidParameter):
            builder.build(None, [(ZS_MAIN, 1000)], privacy_policy="Whatever")

    def test_zero_minconf(self, builder):
        assert builder.build(None, [(ZS_MAIN, 1000)], minconf=0).minconf == 0

    def test_bad_preference(self):
        with pytest.raises(ValueError):
            PaymentRequestBuilder(Network.MAINNET, (Pool.SAPLING,))

    def test_parsed_address_from_other_network(self):
        builder = PaymentRequestBuilder(Network.TESTNET)
        with pytest.raises(InvalidAddress):
            builder.build(None, [(SaplingAddress(Network.MAINNET, SAPLING43), 1000)])
