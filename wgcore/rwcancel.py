"""Cancelable reads and writes on a non-blocking file descriptor."""

from __future__ import annotations

import errno
import os
import select


def retry_after_error(error: BaseException) -> bool:
    """Return whether ``error`` means the operation should simply be retried."""
    return isinstance(error, OSError) and error.errno in (errno.EAGAIN, errno.EWOULDBLOCK, errno.EINTR)


def _closed_error() -> OSError:
    return OSError(errno.EBADF, "file already closed")


class RWCancel:
    """Wraps ``fd`` so that blocked reads and writes can be woken by ``cancel``."""

    def __init__(self, fd: int) -> None:
        os.set_blocking(fd, False)
        self.fd = fd
        self._closing_reader, self._closing_writer = os.pipe()

    def __enter__(self) -> "RWCancel":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _wait(self, events: int) -> bool:
        poller = select.poll()
        poller.register(self.fd, events)
        poller.register(self._closing_reader, select.POLLIN)
        while True:
            try:
                ready = dict(poller.poll())
                break
            except OSError as exc:
                if not retry_after_error(exc):
                    return False
        if ready.get(self._closing_reader, 0):
            return False
        return bool(ready.get(self.fd, 0))

    def ready_read(self) -> bool:
        """Block until ``fd`` is readable; False if cancelled or failed."""
        return self._wait(select.POLLIN)

    def ready_write(self) -> bool:
        """Block until ``fd`` is writable; False if cancelled or failed."""
        return self._wait(select.POLLOUT)

    def read(self, size: int) -> bytes:
        """Read up to ``size`` bytes, waiting if necessary."""
        while True:
            try:
                return os.read(self.fd, size)
            except OSError as exc:
                if not retry_after_error(exc):
                    raise
            if not self.ready_read():
                raise _closed_error()

    def write(self, data: bytes) -> int:
        """Write ``data``, waiting if necessary; return the number of bytes written."""
        while True:
            try:
                return os.write(self.fd, data)
            except OSError as exc:
                if not retry_after_error(exc):
                    raise
            if not self.ready_write():
                raise _closed_error()

    def cancel(self) -> None:
        """Wake every pending and future wait so it gives up."""
        os.write(self._closing_writer, b"\0")

    def close(self) -> None:
        """Release the cancellation pipe; ``fd`` itself is left open."""
        for fd in (self._closing_reader, self._closing_writer):
            try:
                os.close(fd)
            except OSError:
                pass