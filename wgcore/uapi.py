"""Text configuration protocol: parsing "set" requests, formatting "get" replies, serving a connection."""

from __future__ import annotations

import ipaddress
import json
import logging
import re
from dataclasses import dataclass, field
from typing import BinaryIO, Callable, List, Optional, Union

from .ipc import IpcErrorCode
from .noise_types import NoisePresharedKey, NoisePrivateKey, NoisePublicKey

log = logging.getLogger(__name__)

Network = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]

_NANOS_PER_SECOND = 1_000_000_000
_DIGITS = re.compile(r"[0-9]+")


class IPCError(Exception):
    """A protocol failure carrying the status code reported to the client."""

    def __init__(self, code: int, message: str) -> None:
        super().__init__(code, message)
        self.code = int(code)
        self.message = message

    def __str__(self) -> str:
        return f"IPC error {self.code}: {self.message}"


@dataclass
class PeerConfig:
    """Settings of one peer, as read from a "set" request or reported by "get".

    ``None`` fields were not mentioned in a request. The counters and the
    handshake time are only meaningful when reporting.
    """

    public_key: NoisePublicKey
    preshared_key: Optional[NoisePresharedKey] = None
    endpoint: Optional[str] = None
    persistent_keepalive_interval: Optional[int] = None
    allowed_ips: List[Network] = field(default_factory=list)
    removed_allowed_ips: List[Network] = field(default_factory=list)
    replace_allowed_ips: bool = False
    update_only: bool = False
    remove: bool = False
    last_handshake_nanos: int = 0
    tx_bytes: int = 0
    rx_bytes: int = 0


@dataclass
class DeviceConfig:
    """Interface-wide settings followed by the peers in the order given."""

    private_key: Optional[NoisePrivateKey] = None
    listen_port: Optional[int] = None
    fwmark: Optional[int] = None
    replace_peers: bool = False
    peers: List[PeerConfig] = field(default_factory=list)


def _quote(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)


def _parse_uint(value: str, bits: int, what: str) -> int:
    if not _DIGITS.fullmatch(value):
        raise IPCError(IpcErrorCode.INVALID, f"{what}: invalid syntax {_quote(value)}")
    number = int(value)
    if number >= 1 << bits:
        raise IPCError(IpcErrorCode.INVALID, f"{what}: value out of range {_quote(value)}")
    return number


def _require_true(value: str, what: str) -> None:
    if value != "true":
        raise IPCError(IpcErrorCode.INVALID, f"{what}, invalid value: {value}")


def _parse_prefix(value: str) -> Network:
    if "/" not in value:
        raise IPCError(IpcErrorCode.INVALID, f"failed to set allowed ip: no '/' in {_quote(value)}")
    try:
        return ipaddress.ip_network(value, strict=False)
    except ValueError as exc:
        raise IPCError(IpcErrorCode.INVALID, f"failed to set allowed ip: {exc}") from exc


def _device_line(config: DeviceConfig, key: str, value: str) -> None:
    if key == "private_key":
        try:
            config.private_key = NoisePrivateKey.from_maybe_zero_hex(value)
        except ValueError as exc:
            raise IPCError(IpcErrorCode.INVALID, f"failed to set private_key: {exc}") from exc
    elif key == "listen_port":
        config.listen_port = _parse_uint(value, 16, "failed to parse listen_port")
    elif key == "fwmark":
        config.fwmark = _parse_uint(value, 32, "invalid fwmark")
    elif key == "replace_peers":
        _require_true(value, "failed to set replace_peers")
        config.replace_peers = True
    else:
        raise IPCError(IpcErrorCode.INVALID, f"invalid UAPI device key: {key}")


def _peer_line(peer: PeerConfig, key: str, value: str) -> None:
    if key == "update_only":
        _require_true(value, "failed to set update only")
        peer.update_only = True
    elif key == "remove":
        _require_true(value, "failed to set remove")
        peer.remove = True
    elif key == "preshared_key":
        try:
            peer.preshared_key = NoisePresharedKey.from_hex(value)
        except ValueError as exc:
            raise IPCError(IpcErrorCode.INVALID, f"failed to set preshared key: {exc}") from exc
    elif key == "endpoint":
        host, sep, port = value.rpartition(":")
        if not sep or not host or not _DIGITS.fullmatch(port) or int(port) > 0xFFFF:
            raise IPCError(IpcErrorCode.INVALID, f"failed to set endpoint {value}: missing or invalid port")
        peer.endpoint = value
    elif key == "persistent_keepalive_interval":
        peer.persistent_keepalive_interval = _parse_uint(
            value, 16, "failed to set persistent keepalive interval"
        )
    elif key == "replace_allowed_ips":
        _require_true(value, "failed to replace allowedips")
        peer.replace_allowed_ips = True
    elif key == "allowed_ip":
        if value.startswith("-"):
            peer.removed_allowed_ips.append(_parse_prefix(value[1:]))
        else:
            peer.allowed_ips.append(_parse_prefix(value))
    elif key == "protocol_version":
        if value != "1":
            raise IPCError(IpcErrorCode.INVALID, f"invalid protocol version: {value}")
    else:
        raise IPCError(IpcErrorCode.INVALID, f"invalid UAPI peer key: {key}")


def parse_set(text: str) -> DeviceConfig:
    """Parse the body of a "set" request; a blank line ends it early."""
    config = DeviceConfig()
    peer: Optional[PeerConfig] = None
    for raw in text.split("\n"):
        line = raw[:-1] if raw.endswith("\r") else raw
        if line == "":
            break
        key, sep, value = line.partition("=")
        if not sep:
            raise IPCError(IpcErrorCode.PROTOCOL, f"failed to parse line {_quote(line)}")
        if key == "public_key":
            try:
                public_key = NoisePublicKey.from_hex(value)
            except ValueError as exc:
                raise IPCError(
                    IpcErrorCode.INVALID, f"failed to get peer by public key: {exc}"
                ) from exc
            peer = PeerConfig(public_key=public_key)
            config.peers.append(peer)
        elif peer is None:
            _device_line(config, key, value)
        else:
            _peer_line(peer, key, value)
    return config


def _split_nanos(nanos: int) -> "tuple[int, int]":
    secs = abs(nanos) // _NANOS_PER_SECOND
    rest = abs(nanos) % _NANOS_PER_SECOND
    if nanos < 0:
        return -secs, -rest
    return secs, rest


def format_get(config: DeviceConfig) -> str:
    """Render the reply to a "get" request, one ``key=value`` line each."""
    lines: List[str] = []
    if config.private_key is not None and not config.private_key.is_zero():
        lines.append(f"private_key={config.private_key.hex()}")
    if config.listen_port:
        lines.append(f"listen_port={config.listen_port}")
    if config.fwmark:
        lines.append(f"fwmark={config.fwmark}")
    for peer in config.peers:
        preshared = peer.preshared_key if peer.preshared_key is not None else NoisePresharedKey()
        lines.append(f"public_key={peer.public_key.hex()}")
        lines.append(f"preshared_key={preshared.hex()}")
        lines.append("protocol_version=1")
        if peer.endpoint is not None:
            lines.append(f"endpoint={peer.endpoint}")
        secs, nanos = _split_nanos(peer.last_handshake_nanos)
        lines.append(f"last_handshake_time_sec={secs}")
        lines.append(f"last_handshake_time_nsec={nanos}")
        lines.append(f"tx_bytes={peer.tx_bytes}")
        lines.append(f"rx_bytes={peer.rx_bytes}")
        lines.append(f"persistent_keepalive_interval={peer.persistent_keepalive_interval or 0}")
        lines.extend(f"allowed_ip={prefix}" for prefix in peer.allowed_ips)
    return "".join(line + "\n" for line in lines)


def _read_set_body(reader: BinaryIO) -> bytes:
    lines = []
    while True:
        line = reader.readline()
        if not line:
            break
        lines.append(line)
        if line.rstrip(b"\n").rstrip(b"\r") == b"" and line.endswith(b"\n"):
            break
    return b"".join(lines)


def ipc_handle(
    reader: BinaryIO,
    writer: BinaryIO,
    get_operation: Callable[[], DeviceConfig],
    set_operation: Callable[[DeviceConfig], None],
) -> None:
    """Serve "get=1" and "set=1" requests from one client until it leaves.

    Each request is answered with ``errno=<code>`` and a blank line. The
    streams are not closed here; that is left to the caller.
    """
    while True:
        op = reader.readline()
        if not op.endswith(b"\n"):
            return
        status: Optional[IPCError] = None
        try:
            if op == b"set=1\n":
                body = _read_set_body(reader).decode("utf-8", errors="surrogateescape")
                set_operation(parse_set(body))
            elif op == b"get=1\n":
                next_byte = reader.read(1)
                if not next_byte:
                    return
                if next_byte != b"\n":
                    raise IPCError(
                        IpcErrorCode.INVALID,
                        f"trailing character in UAPI get: {chr(next_byte[0])!r}",
                    )
                writer.write(format_get(get_operation()).encode("utf-8"))
            else:
                log.error("invalid UAPI operation: %s", op.decode("utf-8", errors="replace"))
                return
        except IPCError as exc:
            status = exc
        except Exception as exc:  # any other failure is reported as unknown
            status = IPCError(IpcErrorCode.UNKNOWN, f"other UAPI error: {exc}")
            status.__cause__ = exc

        if status is not None:
            log.error("%s", status)
            writer.write(f"errno={status.code}\n\n".encode("ascii"))
        else:
            writer.write(b"errno=0\n\n")
        writer.flush()