"""Fixed-size Noise key types with hex loading and constant-time comparison."""

from __future__ import annotations

import base64
import binascii
import hmac
from typing import Optional

NOISE_PUBLIC_KEY_SIZE = 32
NOISE_PRIVATE_KEY_SIZE = 32
NOISE_PRESHARED_KEY_SIZE = 32

_BYTES_LIKE = (bytes, bytearray, memoryview)


def _load_exact_hex(src: str, size: int) -> bytes:
    try:
        data = binascii.unhexlify(src)
    except (binascii.Error, ValueError, TypeError) as exc:
        raise ValueError(f"invalid hex string: {exc}") from exc
    if len(data) != size:
        raise ValueError("hex string does not fit the slice")
    return data


def _constant_time_equal(key: bytes, other: object):
    if not isinstance(other, _BYTES_LIKE):
        return NotImplemented
    return hmac.compare_digest(bytes(key), bytes(other))


def _clamp(data: bytes) -> bytes:
    clamped = bytearray(data)
    clamped[0] &= 248
    clamped[31] = (clamped[31] & 127) | 64
    return bytes(clamped)


class _Key(bytes):
    """Immutable key material of a fixed size; the default value is all zeros."""

    SIZE = 32

    def __new__(cls, data: Optional[bytes] = None):
        raw = bytes(cls.SIZE) if data is None else bytes(data)
        if len(raw) != cls.SIZE:
            raise ValueError(f"{cls.__name__} must be {cls.SIZE} bytes, got {len(raw)}")
        return super().__new__(cls, raw)

    def __eq__(self, other: object):
        return _constant_time_equal(self, other)

    def __ne__(self, other: object):
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    __hash__ = bytes.__hash__

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.hex()})"


class NoisePrivateKey(_Key):
    """A Curve25519 private key, clamped when loaded from hex."""

    SIZE = NOISE_PRIVATE_KEY_SIZE

    @classmethod
    def from_hex(cls, src: str) -> "NoisePrivateKey":
        """Load and clamp a key from exactly 64 hex digits."""
        return cls(_clamp(_load_exact_hex(src, cls.SIZE)))

    @classmethod
    def from_maybe_zero_hex(cls, src: str) -> "NoisePrivateKey":
        """Like ``from_hex`` but an all-zero key is kept as is (meaning "no key")."""
        key = cls(_load_exact_hex(src, cls.SIZE))
        if key.is_zero():
            return key
        return cls(_clamp(key))

    def is_zero(self) -> bool:
        return hmac.compare_digest(bytes(self), bytes(self.SIZE))

    def __eq__(self, other: object):
        return _constant_time_equal(self, other)

    __hash__ = _Key.__hash__

    def __repr__(self) -> str:
        return "NoisePrivateKey(<hidden>)"


class NoisePublicKey(_Key):
    """A Curve25519 public key."""

    SIZE = NOISE_PUBLIC_KEY_SIZE

    @classmethod
    def from_hex(cls, src: str) -> "NoisePublicKey":
        """Load a key from exactly 64 hex digits."""
        return cls(_load_exact_hex(src, cls.SIZE))

    def is_zero(self) -> bool:
        return hmac.compare_digest(bytes(self), bytes(self.SIZE))

    def __eq__(self, other: object):
        return _constant_time_equal(self, other)

    __hash__ = _Key.__hash__

    def short_name(self) -> str:
        """Abbreviated base64 form used to name a peer, e.g. ``peer(AAAA…AAAA)``."""
        encoded = base64.b64encode(self).decode("ascii")
        return f"peer({encoded[:4]}…{encoded[39:43]})"


class NoisePresharedKey(_Key):
    """A symmetric pre-shared key."""

    SIZE = NOISE_PRESHARED_KEY_SIZE

    @classmethod
    def from_hex(cls, src: str) -> "NoisePresharedKey":
        """Load a key from exactly 64 hex digits."""
        return cls(_load_exact_hex(src, cls.SIZE))

    def __repr__(self) -> str:
        return "NoisePresharedKey(<hidden>)"