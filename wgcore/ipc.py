"""UNIX-socket endpoint for the configuration protocol."""

from __future__ import annotations

import enum
import errno
import os
import queue
import selectors
import socket
import threading
from typing import Optional, Union

SOCKET_DIRECTORY = "/var/run/wireguard"

_POLL_INTERVAL = 0.1  # seconds


class IpcErrorCode(enum.IntEnum):
    """Status codes reported back to configuration clients."""

    IO = -errno.EIO
    PROTOCOL = -errno.EPROTO
    INVALID = -errno.EINVAL
    PORT_IN_USE = -errno.EADDRINUSE
    UNKNOWN = -55  # ENOANO


def socket_path(name: str, directory: str = SOCKET_DIRECTORY) -> str:
    """Path of the control socket for interface ``name``."""
    return f"{directory}/{name}.sock"


def _listen_unix(path: str) -> socket.socket:
    sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    try:
        sock.bind(path)
        sock.listen()
    except BaseException:
        sock.close()
        raise
    return sock


def _in_use(path: str) -> bool:
    with socket.socket(socket.AF_UNIX, socket.SOCK_STREAM) as probe:
        try:
            probe.connect(path)
        except OSError:
            return False
    return True


def uapi_open(name: str, directory: str = SOCKET_DIRECTORY) -> socket.socket:
    """Create and return a listening control socket for ``name``.

    A stale socket file left behind by a dead process is replaced; a socket
    that still accepts connections raises ``OSError(EADDRINUSE)``.
    """
    os.makedirs(directory, mode=0o755, exist_ok=True)
    path = socket_path(name, directory)
    old_umask = os.umask(0o077)
    try:
        try:
            return _listen_unix(path)
        except OSError:
            pass
        if _in_use(path):
            raise OSError(errno.EADDRINUSE, "unix socket in use", path)
        os.remove(path)
        return _listen_unix(path)
    finally:
        os.umask(old_umask)


class UAPIListener:
    """Accepts control connections until closed or until its socket file is removed."""

    def __init__(self, sock: socket.socket, path: str) -> None:
        self._sock = sock
        self._path = path
        self._items: "queue.Queue[Union[socket.socket, BaseException]]" = queue.Queue()
        self._error: Optional[BaseException] = None
        self._stop = threading.Event()
        self._close_lock = threading.Lock()
        self._closed = False
        self._watcher = threading.Thread(target=self._watch_path, name="uapi-watch", daemon=True)
        self._acceptor = threading.Thread(target=self._accept_loop, name="uapi-accept", daemon=True)
        self._watcher.start()
        self._acceptor.start()

    def __enter__(self) -> "UAPIListener":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _watch_path(self) -> None:
        while True:
            try:
                os.lstat(self._path)
            except FileNotFoundError as exc:
                self._items.put(exc)
                return
            except OSError:
                pass
            if self._stop.wait(_POLL_INTERVAL):
                return

    def _accept_loop(self) -> None:
        with selectors.DefaultSelector() as selector:
            selector.register(self._sock, selectors.EVENT_READ)
            while not self._stop.is_set():
                try:
                    if not selector.select(_POLL_INTERVAL):
                        continue
                    conn, _ = self._sock.accept()
                except OSError as exc:
                    if not self._stop.is_set():
                        self._items.put(exc)
                    return
                self._items.put(conn)

    def accept(self) -> socket.socket:
        """Wait for the next connection; raise once the listener has failed or closed."""
        if self._error is not None:
            raise self._error
        item = self._items.get()
        if isinstance(item, BaseException):
            self._error = item
            raise item
        return item

    def close(self) -> None:
        """Stop listening and remove the socket file."""
        with self._close_lock:
            if self._closed:
                return
            self._closed = True
        self._stop.set()
        for thread in (self._watcher, self._acceptor):
            if thread is not threading.current_thread():
                thread.join()
        self._sock.close()
        try:
            os.unlink(self._path)
        except FileNotFoundError:
            pass
        self._items.put(OSError(errno.EBADF, "use of closed network connection"))

    def address(self) -> str:
        """Filesystem path the listener is bound to."""
        return self._path


def uapi_listen(name: str, sock: socket.socket, directory: str = SOCKET_DIRECTORY) -> UAPIListener:
    """Serve connections on ``sock``, the socket previously opened for ``name``."""
    return UAPIListener(sock, socket_path(name, directory))