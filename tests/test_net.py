import socket
import threading

import pytest

from smpaq.config import Role
from smpaq.net import Channel, establish_connection


@pytest.fixture
def pair():
    left, right = socket.socketpair()
    a, b = Channel(left), Channel(right)
    yield a, b
    a.close()
    b.close()


def test_bytes_round_trip_and_counters(pair):
    a, b = pair
    a.send(b"hello")
    assert b.recv(5) == b"hello"
    assert a.sent_bytes == 5
    assert b.recv_bytes == 5
    assert a.recv_bytes == 0


def test_recv_zero_bytes(pair):
    _, b = pair
    assert b.recv(0) == b""
    assert b.recv_bytes == 0


def test_u64_wire_format_is_little_endian(pair):
    a, b = pair
    a.send_u64(1)
    assert b.recv(8) == b"\x01" + b"\x00" * 7


def test_u64_wraps_negative(pair):
    a, b = pair
    a.send_u64(-1)
    assert b.recv_u64() == 2**64 - 1


def test_u64_round_trip(pair):
    a, b = pair
    a.send_u64(123456789012345)
    assert b.recv_u64() == 123456789012345


def test_u64s_round_trip(pair):
    a, b = pair
    values = [0, 1, 2**63, 2**64 - 1, 4000]
    a.send_u64s(values)
    assert a.sent_bytes == 8 * len(values)
    assert b.recv_u64s(len(values)) == values


def test_text_wire_format(pair):
    a, b = pair
    a.send_text("12|34")
    assert b.recv(8 + 5) == b"\x05" + b"\x00" * 7 + b"12|34"


def test_text_round_trip(pair):
    a, b = pair
    a.send_text("98765432109876543210")
    assert b.recv_text() == "98765432109876543210"


def test_recv_after_peer_closed_raises(pair):
    a, b = pair
    a.send(b"ab")
    a.close()
    with pytest.raises(ConnectionError):
        b.recv(4)


def test_negative_size_rejected(pair):
    _, b = pair
    with pytest.raises(ValueError):
        b.recv(-1)


def test_reset_stats(pair):
    a, b = pair
    a.send(b"xyz")
    b.recv(3)
    a.reset_stats()
    b.reset_stats()
    assert (a.sent_bytes, a.recv_bytes, b.sent_bytes, b.recv_bytes) == (0, 0, 0, 0)


def test_context_manager_closes():
    left, right = socket.socketpair()
    with Channel(left) as channel:
        channel.send(b"a")
    with pytest.raises(OSError):
        channel.send(b"b")
    right.close()


def _free_port():
    with socket.socket() as probe:
        probe.bind(("127.0.0.1", 0))
        return probe.getsockname()[1]


def test_establish_connection_pair():
    port = _free_port()
    result = {}

    def serve():
        with establish_connection("127.0.0.1", port, Role.SERVER) as server:
            result["value"] = server.recv_u64()
            server.send_text("done")

    thread = threading.Thread(target=serve)
    thread.start()
    with establish_connection("127.0.0.1", port, Role.CLIENT) as client:
        client.send_u64(2000)
        reply = client.recv_text()
    thread.join(timeout=30)
    assert result["value"] == 2000
    assert reply == "done"