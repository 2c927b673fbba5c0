"""Per-source-address token bucket rate limiting for handshake messages."""

from __future__ import annotations

import ipaddress
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional, Union

PACKETS_PER_SECOND = 20
PACKETS_BURSTABLE = 5
GARBAGE_COLLECT_TIME = 1_000_000_000  # nanoseconds
PACKET_COST = 1_000_000_000 // PACKETS_PER_SECOND
MAX_TOKENS = PACKET_COST * PACKETS_BURSTABLE

_GC_INTERVAL = 1.0  # seconds

Address = Union[str, int, bytes, ipaddress.IPv4Address, ipaddress.IPv6Address]


@dataclass
class _Entry:
    last_time: int
    tokens: int


class Ratelimiter:
    """Token bucket limiter keyed by IP address.

    ``clock`` returns the current time in integer nanoseconds. A background
    thread purges stale entries once per second while the table is non-empty.
    """

    def __init__(self, clock: Optional[Callable[[], int]] = None) -> None:
        self._clock = clock or time.monotonic_ns
        self._lock = threading.Lock()
        self._table: dict = {}
        self._stop = threading.Event()
        self._gc_thread: Optional[threading.Thread] = None

    def __enter__(self) -> "Ratelimiter":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def allow(self, ip: Address) -> bool:
        """Return whether a packet from ``ip`` may be processed now."""
        addr = ipaddress.ip_address(ip)
        with self._lock:
            now = self._clock()
            entry = self._table.get(addr)
            if entry is None:
                self._table[addr] = _Entry(last_time=now, tokens=MAX_TOKENS - PACKET_COST)
                if len(self._table) == 1:
                    self._start_gc()
                return True

            entry.tokens = min(entry.tokens + (now - entry.last_time), MAX_TOKENS)
            entry.last_time = now
            if entry.tokens > PACKET_COST:
                entry.tokens -= PACKET_COST
                return True
            return False

    def cleanup(self) -> bool:
        """Drop entries idle for longer than the collection time; return whether the table is empty."""
        with self._lock:
            return self._cleanup_locked()

    def close(self) -> None:
        """Stop the background collector."""
        self._stop.set()
        with self._lock:
            thread = self._gc_thread
            self._gc_thread = None
        if thread is not None and thread is not threading.current_thread():
            thread.join()

    def _cleanup_locked(self) -> bool:
        now = self._clock()
        stale = [
            addr
            for addr, entry in self._table.items()
            if now - entry.last_time > GARBAGE_COLLECT_TIME
        ]
        for addr in stale:
            del self._table[addr]
        return not self._table

    def _start_gc(self) -> None:
        if self._stop.is_set():
            return
        if self._gc_thread is not None and self._gc_thread.is_alive():
            return
        thread = threading.Thread(target=self._gc_loop, name="ratelimiter-gc", daemon=True)
        self._gc_thread = thread
        thread.start()

    def _gc_loop(self) -> None:
        while not self._stop.wait(_GC_INTERVAL):
            with self._lock:
                if self._cleanup_locked():
                    if self._gc_thread is threading.current_thread():
                        self._gc_thread = None
                    return