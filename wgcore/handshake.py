"""Noise IKpsk2 handshake state and transcript hashing."""

from __future__ import annotations

import enum
import hashlib
import threading
from dataclasses import dataclass, field
from typing import Optional

from .noise_types import NoisePresharedKey, NoisePrivateKey, NoisePublicKey
from .tai64n import Timestamp

NOISE_CONSTRUCTION = "Noise_IKpsk2_25519_ChaChaPoly_BLAKE2s"
WG_IDENTIFIER = "WireGuard v1 zx2c4 [email]"
WG_LABEL_MAC1 = "mac1----"
WG_LABEL_COOKIE = "cookie--"

BLAKE2S_SIZE = 32
CHACHA20POLY1305_NONCE_SIZE = 12

ZERO_NONCE = bytes(CHACHA20POLY1305_NONCE_SIZE)


def mix_hash(h: bytes, data: bytes) -> bytes:
    """Return BLAKE2s-256 of ``h`` followed by ``data``."""
    digest = hashlib.blake2s(digest_size=BLAKE2S_SIZE)
    digest.update(bytes(h))
    digest.update(bytes(data))
    return digest.digest()


INITIAL_CHAIN_KEY = hashlib.blake2s(NOISE_CONSTRUCTION.encode("ascii")).digest()
INITIAL_HASH = mix_hash(INITIAL_CHAIN_KEY, WG_IDENTIFIER.encode("ascii"))


class HandshakeState(enum.IntEnum):
    """Progress of a handshake with one peer."""

    ZEROED = 0
    INITIATION_CREATED = 1
    INITIATION_CONSUMED = 2
    RESPONSE_CREATED = 3
    RESPONSE_CONSUMED = 4

    def __str__(self) -> str:
        return _STATE_LABELS[self]


_STATE_LABELS = {
    HandshakeState.ZEROED: "handshakeZeroed",
    HandshakeState.INITIATION_CREATED: "handshakeInitiationCreated",
    HandshakeState.INITIATION_CONSUMED: "handshakeInitiationConsumed",
    HandshakeState.RESPONSE_CREATED: "handshakeResponseCreated",
    HandshakeState.RESPONSE_CONSUMED: "handshakeResponseConsumed",
}


def _zero_hash() -> bytes:
    return bytes(BLAKE2S_SIZE)


@dataclass
class Handshake:
    """Per-peer handshake state; guard access with ``lock``."""

    state: HandshakeState = HandshakeState.ZEROED
    hash: bytes = field(default_factory=_zero_hash)
    chain_key: bytes = field(default_factory=_zero_hash)
    preshared_key: NoisePresharedKey = field(default_factory=NoisePresharedKey)
    local_ephemeral: NoisePrivateKey = field(default_factory=NoisePrivateKey)
    local_index: int = 0
    remote_index: int = 0
    remote_static: NoisePublicKey = field(default_factory=NoisePublicKey)
    remote_ephemeral: NoisePublicKey = field(default_factory=NoisePublicKey)
    precomputed_static_static: bytes = field(default_factory=_zero_hash)
    last_timestamp: Timestamp = field(default_factory=Timestamp)
    last_initiation_consumption: Optional[float] = None
    last_sent_handshake: Optional[float] = None
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False, compare=False)

    def clear(self) -> None:
        """Forget ephemeral keys and transcript and return to the zeroed state."""
        self.local_ephemeral = NoisePrivateKey()
        self.remote_ephemeral = NoisePublicKey()
        self.chain_key = _zero_hash()
        self.hash = _zero_hash()
        self.local_index = 0
        self.state = HandshakeState.ZEROED

    def mix_hash(self, data: bytes) -> None:
        """Fold ``data`` into the transcript hash."""
        self.hash = mix_hash(self.hash, data)