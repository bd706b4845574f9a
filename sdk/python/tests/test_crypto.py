import pytest

from zcash_sdk.crypto import BECH32_CONST, BECH32M_CONST, F4JUMBLE_MIN_LENGTH, ZcashCrypto


class TestBech32:
    @pytest.mark.parametrize("text", ["A12UEL5L", "a12uel5l", "abcdef1qpzry9x8gf2tvdw0s3jn54khce6mua7lmqqqxw"])
    def test_bip173_vectors(self, text):
        hrp, _ = ZcashCrypto.bech32_decode(text, BECH32_CONST)
        assert hrp == text.lower().rsplit("1", 1)[0]

    @pytest.mark.parametrize("text", ["A1LQFN3A", "a1lqfn3a", "abcdef1l7aum6echk45nj3s0wdvt2fg8x9yrzpqzd3ryx"])
    def test_bip350_vectors(self, text):
        hrp, _ = ZcashCrypto.bech32_decode(text, BECH32M_CONST)
        assert hrp == text.lower().rsplit("1", 1)[0]

    def test_variants_do_not_cross_validate(self):
        with pytest.raises(ValueError, match="checksum"):
            ZcashCrypto.bech32_decode("a12uel5l", BECH32M_CONST)
        with pytest.raises(ValueError, match="checksum"):
            ZcashCrypto.bech32_decode("a1lqfn3a", BECH32_CONST)

    def test_mixed_case_rejected(self):
        with pytest.raises(ValueError, match="mixed case"):
            ZcashCrypto.bech32_decode("A12uEL5L")

    def test_invalid_character_rejected(self):
        with pytest.raises(ValueError):
            ZcashCrypto.bech32_decode("a12uelbl")

    def test_long_strings_are_supported(self):
        payload = bytes(range(256)) * 2
        text = ZcashCrypto.bech32_encode("utest", payload, BECH32M_CONST)
        assert len(text) > 90
        assert ZcashCrypto.bech32_decode(text, BECH32M_CONST) == ("utest", payload)


F4JUMBLE_VECTORS = [
    (
        "5d7a8f739a2d9e945b0ce152a8049e294c4d6e66b164939daffa2ef6ee6921481cdd86b3cc4318d9614fc820905d042b",
        "0304d029141b995da5387c125970673504d6c764d91ea6c082123770c7139ccd88ee27368cd0c0921a0444c8e5858d22",
    ),
    (
        bytes(range(48)).hex(),
        "ad89bfac63c78b1cc325661c40cc56b291cf50be748dba7bc0b74851fc87ac797da311647be438dcd8df735a3361a8d1",
    ),
    (
        bytes(i % 251 for i in range(200)).hex(),
        "b23b9554c2ac6e0222c9546061472c0d67a83a782d4cbe7c7564cd5068adf74056036dabf15136f739a0703313c9888c"
        "34b51550424912a93fac0b0c87dbba19cbe304296511b8b26e4db1033c24e207e78de0834e17f41bd303cbfe6c70a306"
        "ed5a8e5fa88450779776cd0a5c651abfffcb49cf25db47a80ac1c6b80ecf963f2a33038fd0add7240185a86c6ddb4224"
        "93fe3e3d1a3f7a5e0e10886d638ff606a477aaaa01ea0ab6fa1baac3787d525a596f820c4f46b99e71ae3d7d117e5849"
        "aedd9ffcc16bbc55",
    ),
]


class TestF4Jumble:
    @pytest.mark.parametrize("message, jumbled", F4JUMBLE_VECTORS)
    def test_known_answers(self, message, jumbled):
        assert ZcashCrypto.f4jumble(bytes.fromhex(message)).hex() == jumbled
        assert ZcashCrypto.f4jumble_inv(bytes.fromhex(jumbled)).hex() == message

    @pytest.mark.parametrize("length", [F4JUMBLE_MIN_LENGTH, 64, 127, 128, 129, 1000])
    def test_inverse(self, length):
        message = bytes(i % 251 for i in range(length))
        jumbled = ZcashCrypto.f4jumble(message)
        assert len(jumbled) == length
        assert jumbled != message
        assert ZcashCrypto.f4jumble_inv(jumbled) == message

    def test_single_bit_change_spreads(self):
        message = bytes(80)
        flipped = bytes([1]) + bytes(79)
        a = ZcashCrypto.f4jumble(message)
        b = ZcashCrypto.f4jumble(flipped)
        assert sum(x != y for x, y in zip(a, b)) > 40

    def test_length_bounds(self):
        with pytest.raises(ValueError):
            ZcashCrypto.f4jumble(bytes(F4JUMBLE_MIN_LENGTH - 1))
        with pytest.raises(ValueError):
            ZcashCrypto.f4jumble_inv(bytes(10))


class TestCompactSize:
    @pytest.mark.parametrize("value", [0, 0xFC, 0xFD, 0xFFFF, 0x10000, 0xFFFFFFFF, 0x100000000])
    def test_roundtrip(self, value):
        encoded = ZcashCrypto.write_compact_size(value)
        assert ZcashCrypto.read_compact_size(encoded, 0) == (value, len(encoded))

    def test_non_canonical_rejected(self):
        with pytest.raises(ValueError, match="non-canonical"):
            ZcashCrypto.read_compact_size(b"\xfd\x10\x00", 0)

    def test_truncated(self):
        with pytest.raises(ValueError, match="truncated"):
            ZcashCrypto.read_compact_size(b"\xfe\x00\x00", 0)
        with pytest.raises(ValueError, match="truncated"):
            ZcashCrypto.read_compact_size(b"", 0)


class TestBase58Check:
    def test_known_bitcoin_address(self):
        payload = bytes.fromhex("00751e76e8199196d454941c45d1b3a323f1433bd6")
        assert ZcashCrypto.base58check_encode(payload) == "1BgGZ9tcN4rm9KBzDn7KprQz87SZ26SAMH"
        assert ZcashCrypto.base58check_decode("1BgGZ9tcN4rm9KBzDn7KprQz87SZ26SAMH") == payload

    def test_bad_checksum(self):
        with pytest.raises(ValueError):
            ZcashCrypto.base58check_decode("1BgGZ9tcN4rm9KBzDn7KprQz87SZ26SAMJ")
