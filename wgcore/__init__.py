"""Building blocks of a userspace WireGuard implementation: replay filter, rate limiter, TAI64N timestamps, keys, messages, handshake state, timers and the configuration protocol."""

__version__ = "0.1.0"