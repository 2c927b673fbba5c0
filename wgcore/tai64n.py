"""TAI64N timestamps with whitened sub-second precision."""

from __future__ import annotations

import datetime
import struct
import time

TIMESTAMP_SIZE = 12
BASE = 0x400000000000000A
WHITENER_MASK = 0x1000000 - 1

_NANOS_PER_SECOND = 1_000_000_000
_U64 = (1 << 64) - 1
_FORMAT = struct.Struct(">QI")


class Timestamp(bytes):
    """A 12-byte big-endian TAI64N label; byte order equals time order."""

    def __new__(cls, data: bytes = bytes(TIMESTAMP_SIZE)) -> "Timestamp":
        if len(data) != TIMESTAMP_SIZE:
            raise ValueError(f"timestamp must be {TIMESTAMP_SIZE} bytes, got {len(data)}")
        return super().__new__(cls, data)

    def after(self, other: bytes) -> bool:
        """Return whether this timestamp is strictly later than ``other``."""
        return bytes(self) > bytes(other)

    def __str__(self) -> str:
        secs, nanos = _FORMAT.unpack(self)
        unix = (secs - BASE) & _U64
        if unix >= 1 << 63:
            unix -= 1 << 64
        unix += nanos // _NANOS_PER_SECOND
        nanos %= _NANOS_PER_SECOND
        moment = datetime.datetime(1970, 1, 1) + datetime.timedelta(seconds=unix)
        text = moment.strftime("%Y-%m-%d %H:%M:%S")
        fraction = f"{nanos:09d}".rstrip("0")
        if fraction:
            text += "." + fraction
        return text + " +0000 UTC"

    def __repr__(self) -> str:
        return f"Timestamp({bytes(self).hex()})"


def stamp(unix_nanos: int) -> Timestamp:
    """Build a whitened timestamp from nanoseconds since the Unix epoch."""
    secs, nanos = divmod(unix_nanos, _NANOS_PER_SECOND)
    return Timestamp(_FORMAT.pack((BASE + secs) & _U64, nanos & ~WHITENER_MASK))


def now() -> Timestamp:
    """Timestamp for the current wall-clock time."""
    return stamp(time.time_ns())