"""Byte channels between protocol parties, with traffic counters."""

from __future__ import annotations

import socket
import struct
import time
from typing import Iterable

from .config import Role

_U64 = struct.Struct("<Q")
_MASK64 = (1 << 64) - 1
_CONNECT_TIMEOUT = 30.0
_RETRY_DELAY = 0.05
_CHUNK = 1 << 20


class Channel:
    """A connected stream socket that counts the bytes it moves.

    Integers go over the wire as little-endian unsigned 64-bit words and
    wrap modulo 2**64, as fixed-width machine integers do.
    """

    def __init__(self, sock: socket.socket) -> None:
        self._sock = sock
        self.sent_bytes = 0
        self.recv_bytes = 0

    def __enter__(self) -> "Channel":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def send(self, data: bytes) -> None:
        """Send every byte of data."""
        payload = bytes(data)
        self._sock.sendall(payload)
        self.sent_bytes += len(payload)

    def recv(self, size: int) -> bytes:
        """Receive exactly size bytes."""
        if size < 0:
            raise ValueError(f"negative receive size: {size}")
        buffer = bytearray()
        while len(buffer) < size:
            chunk = self._sock.recv(min(size - len(buffer), _CHUNK))
            if not chunk:
                raise ConnectionError(
                    f"connection closed after {len(buffer)} of {size} bytes"
                )
            buffer += chunk
        self.recv_bytes += size
        return bytes(buffer)

    def send_u64(self, value: int) -> None:
        self.send(_U64.pack(value & _MASK64))

    def recv_u64(self) -> int:
        return _U64.unpack(self.recv(_U64.size))[0]

    def send_u64s(self, values: Iterable[int]) -> None:
        words = [value & _MASK64 for value in values]
        self.send(struct.pack(f"<{len(words)}Q", *words))

    def recv_u64s(self, count: int) -> list[int]:
        if count < 0:
            raise ValueError(f"negative count: {count}")
        return list(struct.unpack(f"<{count}Q", self.recv(_U64.size * count)))

    def send_text(self, text: str) -> None:
        """Send a 64-bit length followed by the ASCII bytes of text."""
        payload = text.encode("ascii")
        self.send_u64(len(payload))
        self.send(payload)

    def recv_text(self) -> str:
        length = self.recv_u64()
        return self.recv(length).decode("ascii")

    def reset_stats(self) -> None:
        """Zero both traffic counters."""
        self.sent_bytes = 0
        self.recv_bytes = 0

    def close(self) -> None:
        self._sock.close()


def _listen(address: str, port: int) -> socket.socket:
    with socket.create_server((address, port)) as listener:
        connection, _ = listener.accept()
    return connection


def _connect(address: str, port: int) -> socket.socket:
    deadline = time.monotonic() + _CONNECT_TIMEOUT
    while True:
        try:
            return socket.create_connection((address, port))
        except OSError as error:
            if time.monotonic() >= deadline:
                raise ConnectionError(f"cannot connect to {address}:{port}") from error
            time.sleep(_RETRY_DELAY)


def establish_connection(address: str, port: int, role: Role) -> Channel:
    """The server accepts one peer on (address, port); the client connects,
    retrying until the server is up."""
    if Role(role) is Role.SERVER:
        sock = _listen(address, port)
    else:
        sock = _connect(address, port)
    sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
    return Channel(sock)