"""Wire formats of the handshake-related protocol messages."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import ClassVar, Tuple

MESSAGE_INITIATION_TYPE = 1
MESSAGE_RESPONSE_TYPE = 2
MESSAGE_COOKIE_REPLY_TYPE = 3
MESSAGE_TRANSPORT_TYPE = 4

POLY1305_TAG_SIZE = 16
BLAKE2S_SIZE_128 = 16
XNONCE_SIZE = 24
NOISE_PUBLIC_KEY_SIZE = 32
TAI64N_TIMESTAMP_SIZE = 12

MESSAGE_INITIATION_SIZE = 148
MESSAGE_RESPONSE_SIZE = 92
MESSAGE_COOKIE_REPLY_SIZE = 64
MESSAGE_TRANSPORT_HEADER_SIZE = 16
MESSAGE_TRANSPORT_SIZE = MESSAGE_TRANSPORT_HEADER_SIZE + POLY1305_TAG_SIZE
MESSAGE_KEEPALIVE_SIZE = MESSAGE_TRANSPORT_SIZE
MESSAGE_HANDSHAKE_SIZE = MESSAGE_INITIATION_SIZE

MESSAGE_TRANSPORT_OFFSET_RECEIVER = 4
MESSAGE_TRANSPORT_OFFSET_COUNTER = 8
MESSAGE_TRANSPORT_OFFSET_CONTENT = 16

_U32_MAX = (1 << 32) - 1


class MessageLengthError(ValueError):
    """Raised when a buffer does not have the exact size of its message."""

    def __init__(self, message: str = "message length mismatch") -> None:
        super().__init__(message)


def _zeros(size: int):
    return field(default_factory=lambda: bytes(size))


class _Message:
    """Shared packing logic; subclasses describe their layout."""

    _STRUCT: ClassVar[struct.Struct]
    _INTS: ClassVar[Tuple[str, ...]]
    _BLOBS: ClassVar[Tuple[Tuple[str, int], ...]]

    def __post_init__(self) -> None:
        for name in self._INTS:
            value = getattr(self, name)
            if not isinstance(value, int) or not 0 <= value <= _U32_MAX:
                raise ValueError(f"{name} must be an unsigned 32-bit integer, got {value!r}")
        for name, size in self._BLOBS:
            value = bytes(getattr(self, name))
            if len(value) != size:
                raise ValueError(f"{name} must be {size} bytes, got {len(value)}")
            object.__setattr__(self, name, value)

    @classmethod
    def _decode(cls, data: bytes):
        if len(data) != cls._STRUCT.size:
            raise MessageLengthError()
        values = cls._STRUCT.unpack(bytes(data))
        names = cls._INTS + tuple(name for name, _ in cls._BLOBS)
        return cls(**dict(zip(names, values)))

    def _encode(self) -> bytes:
        values = [getattr(self, name) for name in self._INTS]
        values += [getattr(self, name) for name, _ in self._BLOBS]
        return self._STRUCT.pack(*values)


@dataclass
class MessageInitiation(_Message):
    """First handshake message, sent by the initiator."""

    msg_type: int = MESSAGE_INITIATION_TYPE
    sender: int = 0
    ephemeral: bytes = _zeros(NOISE_PUBLIC_KEY_SIZE)
    static: bytes = _zeros(NOISE_PUBLIC_KEY_SIZE + POLY1305_TAG_SIZE)
    timestamp: bytes = _zeros(TAI64N_TIMESTAMP_SIZE + POLY1305_TAG_SIZE)
    mac1: bytes = _zeros(BLAKE2S_SIZE_128)
    mac2: bytes = _zeros(BLAKE2S_SIZE_128)

    _STRUCT: ClassVar[struct.Struct] = struct.Struct("<II32s48s28s16s16s")
    _INTS: ClassVar[Tuple[str, ...]] = ("msg_type", "sender")
    _BLOBS: ClassVar[Tuple[Tuple[str, int], ...]] = (
        ("ephemeral", NOISE_PUBLIC_KEY_SIZE),
        ("static", NOISE_PUBLIC_KEY_SIZE + POLY1305_TAG_SIZE),
        ("timestamp", TAI64N_TIMESTAMP_SIZE + POLY1305_TAG_SIZE),
        ("mac1", BLAKE2S_SIZE_128),
        ("mac2", BLAKE2S_SIZE_128),
    )

    @classmethod
    def unpack(cls, data: bytes) -> "MessageInitiation":
        """Decode an initiation from exactly MESSAGE_INITIATION_SIZE bytes."""
        return cls._decode(data)

    def pack(self) -> bytes:
        """Encode the initiation in its little-endian wire form."""
        return self._encode()


@dataclass
class MessageResponse(_Message):
    """Second handshake message, sent by the responder."""

    msg_type: int = MESSAGE_RESPONSE_TYPE
    sender: int = 0
    receiver: int = 0
    ephemeral: bytes = _zeros(NOISE_PUBLIC_KEY_SIZE)
    empty: bytes = _zeros(POLY1305_TAG_SIZE)
    mac1: bytes = _zeros(BLAKE2S_SIZE_128)
    mac2: bytes = _zeros(BLAKE2S_SIZE_128)

    _STRUCT: ClassVar[struct.Struct] = struct.Struct("<III32s16s16s16s")
    _INTS: ClassVar[Tuple[str, ...]] = ("msg_type", "sender", "receiver")
    _BLOBS: ClassVar[Tuple[Tuple[str, int], ...]] = (
        ("ephemeral", NOISE_PUBLIC_KEY_SIZE),
        ("empty", POLY1305_TAG_SIZE),
        ("mac1", BLAKE2S_SIZE_128),
        ("mac2", BLAKE2S_SIZE_128),
    )

    @classmethod
    def unpack(cls, data: bytes) -> "MessageResponse":
        """Decode a response from exactly MESSAGE_RESPONSE_SIZE bytes."""
        return cls._decode(data)

    def pack(self) -> bytes:
        """Encode the response in its little-endian wire form."""
        return self._encode()


@dataclass
class MessageCookieReply(_Message):
    """Cookie sent back to a handshake sender while under load."""

    msg_type: int = MESSAGE_COOKIE_REPLY_TYPE
    receiver: int = 0
    nonce: bytes = _zeros(XNONCE_SIZE)
    cookie: bytes = _zeros(BLAKE2S_SIZE_128 + POLY1305_TAG_SIZE)

    _STRUCT: ClassVar[struct.Struct] = struct.Struct("<II24s32s")
    _INTS: ClassVar[Tuple[str, ...]] = ("msg_type", "receiver")
    _BLOBS: ClassVar[Tuple[Tuple[str, int], ...]] = (
        ("nonce", XNONCE_SIZE),
        ("cookie", BLAKE2S_SIZE_128 + POLY1305_TAG_SIZE),
    )

    @classmethod
    def unpack(cls, data: bytes) -> "MessageCookieReply":
        """Decode a cookie reply from exactly MESSAGE_COOKIE_REPLY_SIZE bytes."""
        return cls._decode(data)

    def pack(self) -> bytes:
        """Encode the cookie reply in its little-endian wire form."""
        return self._encode()