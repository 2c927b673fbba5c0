"""Object pool with an optional cap on outstanding items."""

from __future__ import annotations

import threading
from typing import Callable, Generic, List, TypeVar

T = TypeVar("T")


class WaitPool(Generic[T]):
    """Reuses items made by ``factory``.

    When ``max_count`` is non-zero, ``get`` blocks while that many items are
    out and not yet returned; zero means no limit.
    """

    def __init__(self, max_count: int, factory: Callable[[], T]) -> None:
        if max_count < 0:
            raise ValueError("max_count must not be negative")
        self._max = max_count
        self._factory = factory
        self._free: List[T] = []
        self._count = 0
        self._cond = threading.Condition()

    @property
    def max_count(self) -> int:
        return self._max

    @property
    def outstanding(self) -> int:
        """Items handed out and not yet put back (tracked only when capped)."""
        with self._cond:
            return self._count

    def get(self) -> T:
        with self._cond:
            if self._max:
                while self._count >= self._max:
                    self._cond.wait()
                self._count += 1
            if self._free:
                return self._free.pop()
        return self._factory()

    def put(self, item: T) -> None:
        with self._cond:
            self._free.append(item)
            if self._max:
                self._count -= 1
                self._cond.notify()