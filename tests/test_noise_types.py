import pytest

from wgcore.noise_types import NoisePresharedKey, NoisePrivateKey, NoisePublicKey

SAMPLE_HEX = "0123456789abcdef" * 4


def test_public_key_hex_round_trip():
    key = NoisePublicKey.from_hex(SAMPLE_HEX)
    assert key.hex() == SAMPLE_HEX
    assert len(key) == 32


@pytest.mark.parametrize("cls", [NoisePublicKey, NoisePrivateKey, NoisePresharedKey])
@pytest.mark.parametrize("src", ["00" * 31, "00" * 33, "zz" * 32, "0" * 63, "00 " * 32])
def test_invalid_hex_rejected(cls, src):
    with pytest.raises(ValueError):
        cls.from_hex(src)


def test_private_key_is_clamped():
    key = NoisePrivateKey.from_hex("ff" * 32)
    assert key[0] & 7 == 0
    assert key[31] & 0x80 == 0
    assert key[31] & 0x40
    assert key[1:31] == b"\xff" * 30


def test_private_key_clamp_is_idempotent():
    key = NoisePrivateKey.from_hex(SAMPLE_HEX)
    assert NoisePrivateKey.from_hex(key.hex()) == key


def test_zero_private_key_handling():
    assert NoisePrivateKey.from_maybe_zero_hex("00" * 32).is_zero()
    assert not NoisePrivateKey.from_hex("00" * 32).is_zero()
    assert NoisePrivateKey().is_zero()


def test_maybe_zero_matches_from_hex_for_nonzero():
    assert NoisePrivateKey.from_maybe_zero_hex(SAMPLE_HEX) == NoisePrivateKey.from_hex(SAMPLE_HEX)


def test_public_key_zero():
    assert NoisePublicKey().is_zero()
    assert not NoisePublicKey.from_hex(SAMPLE_HEX).is_zero()


def test_equality_and_hashing():
    a = NoisePublicKey.from_hex(SAMPLE_HEX)
    b = NoisePublicKey.from_hex(SAMPLE_HEX)
    c = NoisePublicKey.from_hex("ff" * 32)
    assert a == b
    assert a != c
    assert {a: 1, b: 2} == {a: 2}
    assert len({a, b, c}) == 2


def test_preshared_key_not_clamped():
    key = NoisePresharedKey.from_hex("ff" * 32)
    assert key == b"\xff" * 32


def test_short_name_of_zero_key():
    assert NoisePublicKey().short_name() == "peer(AAAA…AAAA)"


def test_short_name_of_all_ones_key():
    assert NoisePublicKey(b"\xff" * 32).short_name() == "peer(////…///8)"


def test_wrong_raw_length_rejected():
    with pytest.raises(ValueError):
        NoisePublicKey(b"\x00" * 16)


def test_private_key_repr_hides_material():
    key = NoisePrivateKey.from_hex(SAMPLE_HEX)
    assert key.hex() not in repr(key)