# wgcore

Pure-Python building blocks for a userspace WireGuard daemon. The
package has no dependencies beyond the standard library. Some modules
need a POSIX system: `wgcore.ipc` uses Unix sockets and
`wgcore.rwcancel` uses `select.poll`.

## What is inside

- `wgcore.replay` — `ReplayFilter`, a sliding-window anti-replay filter
  in the style of RFC 6479. Call `validate_counter(counter, limit)` for
  every received message counter. It returns `False` for counters seen
  before, for counters too far behind the window and for counters at or
  above `limit`. `reset()` empties the filter.
- `wgcore.ratelimiter` — `Ratelimiter`, a token bucket for each source
  address: 20 packets per second with bursts of 5. It provides
  `allow(ip)`, `cleanup()` and `close()`, and works as a context
  manager. Addresses may be anything `ipaddress.ip_address` accepts.
  `clock` is an optional callable that returns integer nanoseconds and
  defaults to `time.monotonic_ns`. While the table holds entries, a
  background thread drops entries idle for more than a second.
- `wgcore.tai64n` — `Timestamp`, a 12-byte TAI64N label, plus
  `stamp(unix_nanos)` and `now()`. The low nanosecond bits are whitened,
  so stamps less than about 16 ms apart compare equal.
  `Timestamp.after(other)` tests for a strictly later time.
- `wgcore.pools` — `WaitPool(max_count, factory)`, an object pool. Once
  `max_count` items are out, `get()` blocks until one is given back with
  `put()`. A `max_count` of 0 means no limit.
- `wgcore.rwcancel` — `RWCancel(fd)`, which gives cancelable `read` and
  `write` on a non-blocking file descriptor, plus `ready_read()`,
  `ready_write()`, `cancel()` and `close()`. After `cancel()`, waiting
  operations give up: the ready checks return `False`, and reads and
  writes raise `OSError(EBADF)`. The module also has
  `retry_after_error(error)`.
- `wgcore.noise_types` — `NoisePrivateKey`, `NoisePublicKey` and
  `NoisePresharedKey`, each a 32-byte `bytes` subclass.
  - Keys load with `from_hex`, which needs exactly 64 hex digits and
    raises `ValueError` otherwise. Private keys are clamped on loading.
    `NoisePrivateKey.from_maybe_zero_hex` keeps an all-zero key as it is.
  - Comparison runs in constant time.
  - `NoisePublicKey.short_name()` gives the abbreviated base64 form
    `peer(abcd…wxyz)`.
- `wgcore.ipc` — helpers for the control socket:
  - `socket_path(name, directory)`.
  - `uapi_open(name, directory)`. It creates the listening Unix socket
    with a 077 umask and replaces a stale socket file. It raises
    `OSError(EADDRINUSE)` if another process still serves the socket.
  - `uapi_listen(name, sock, directory)`, which returns a
    `UAPIListener`. `accept()` returns each new connection and raises
    once the listener is closed or its socket file has been removed.
    `close()` removes the socket file. `address()` gives the path.
  - The `IpcErrorCode` status values.
- `wgcore.messages` — `MessageInitiation`, `MessageResponse` and
  `MessageCookieReply` dataclasses. `pack()` produces the little-endian
  wire form and `unpack(data)` reads it back. A buffer of the wrong
  length raises `MessageLengthError`.
- `wgcore.handshake` — `HandshakeState`, the `Handshake` state
  dataclass with `clear()` and `mix_hash(data)`, the `mix_hash(h, data)`
  function (BLAKE2s-256 over the two inputs), and the
  `INITIAL_CHAIN_KEY` and `INITIAL_HASH` constants.
- `wgcore.timers` — `Timer(callback)`, a restartable one-shot timer.
  `mod(delay)` arms it for `delay` seconds, `delete()` disarms it,
  `delete_sync()` also waits for a running callback, and `is_pending()`
  reports whether it is armed.
- `wgcore.uapi` — the text configuration protocol:
  - `parse_set(text)` turns a "set" body into a `DeviceConfig` holding
    `PeerConfig` entries.
  - `format_get(config)` renders a "get" reply.
  - `ipc_handle(reader, writer, get_operation, set_operation)` serves
    `get=1` / `set=1` requests on binary streams and answers each with
    `errno=<code>`.
  - Protocol failures raise `IPCError`, which carries the status code.

## Example

```python
from wgcore.replay import ReplayFilter
from wgcore.tai64n import stamp
from wgcore.uapi import format_get, parse_set

window = ReplayFilter()
assert window.validate_counter(0, 2**64 - 2**13 - 1)
assert not window.validate_counter(0, 2**64 - 2**13 - 1)

earlier = stamp(0)
later = stamp(1_000_000_000)
assert later.after(earlier)

config = parse_set("listen_port=51820\npublic_key=" + "11" * 32 + "\nallowed_ip=10.0.0.0/24\n")
print(format_get(config))
```

## What this package does not do

These are components, not a daemon. The package has:

- no command to run;
- no TUN device handling;
- no UDP transport;
- no Curve25519 key agreement;
- no ChaCha20-Poly1305 encryption of handshake or data messages;
- no device or peer objects that tie the pieces together.

`ipc_handle` only parses and formats. Applying a `DeviceConfig`, and
producing one for "get", is left to the `get_operation` and
`set_operation` callables you supply.

## Running the tests

```
pip install -e .[test]
pytest
```