import socket
import threading

import pytest

from smpaq.blocks import block_to_uint64_xor
from smpaq.config import PsiAnalyticsContext, PsmType, Role, Timings
from smpaq.functionalities import (
    SharedState,
    accumulate_communication,
    flatten,
    format_timings,
    from_client_oprf_data,
    from_server_oprf_data,
    generate_data,
    print_timings,
    reset_communication,
    shared_count,
    split_into_shares,
)
from smpaq.net import Channel


def _pair():
    a, b = socket.socketpair()
    return Channel(a), Channel(b)


def _run_all(*targets):
    errors = []

    def wrap(fn):
        def runner():
            try:
                fn()
            except BaseException as error:  # noqa: BLE001
                errors.append(error)

        return runner

    threads = [threading.Thread(target=wrap(t), daemon=True) for t in targets]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)
    assert not any(thread.is_alive() for thread in threads)
    if errors:
        raise errors[0]


def test_flatten_concatenates_in_order():
    assert flatten([[1, 2], [], [3]]) == [1, 2, 3]
    assert flatten([]) == []


def test_generate_data_is_reproducible_and_bounded():
    first = generate_data(50, 3)
    assert first == generate_data(50, 3)
    assert len(first) == 50
    assert all(0 <= value <= 1000 for value in first)
    assert generate_data(50, 4) != first


def test_from_client_oprf_data_truncates_to_size():
    blocks = [(5 << 64) | 3, (1 << 64) | 1, 7]
    assert from_client_oprf_data(blocks, 2) == [
        block_to_uint64_xor(blocks[0])[0],
        block_to_uint64_xor(blocks[1])[0],
    ]
    assert len(from_client_oprf_data(blocks, 10)) == 3


def test_from_server_oprf_data_keeps_snbins_rows():
    rows = [[(2 << 64) | 1, 9], [4]]
    table = from_server_oprf_data(rows, 8, 3)
    assert len(table) == 3
    assert table[0] == [block_to_uint64_xor(rows[0][0])[0], 9]
    assert table[1] == [4]
    assert table[2] == []
    assert from_server_oprf_data(rows, 8, 1) == [table[0]]


def test_shared_count_counts_false_entries():
    assert shared_count([True, False, False, True]) == 2
    assert shared_count([]) == 0


def test_split_into_shares_sums_back():
    for number in (0, 57, -12, 10**6):
        share1, share2 = split_into_shares(number)
        assert 1 <= share1 <= 100
        assert share1 + share2 == number


def test_format_timings_server_smpaq1():
    context = PsiAnalyticsContext(
        role=Role.SERVER,
        psm_type=PsmType.SMPAQ1,
        timings=Timings(vrf=1.5, encrypt=2.25),
    )
    text = format_timings(context)
    lines = text.splitlines()
    assert lines[0] == "Time for vrf 1.5 ms"
    assert "Time for encrypt 2.25 ms" in lines
    assert "Time for OPRF1 0 ms" in lines
    assert not any("decrypt" in line for line in lines)
    assert lines[-1] == "Total runtime w/o base OTs:0 ms"


def test_format_timings_client_variants():
    client1 = PsiAnalyticsContext(role=Role.CLIENT, psm_type=PsmType.SMPAQ1)
    client2 = PsiAnalyticsContext(role=Role.CLIENT, psm_type=PsmType.SMPAQ2)
    assert "Time for decrypt 0 ms" in format_timings(client1).splitlines()
    text2 = format_timings(client2)
    assert "crypt" not in text2
    assert "vrf" not in text2


def test_print_timings_writes_report(capsys):
    context = PsiAnalyticsContext(role=Role.CLIENT, psm_type=PsmType.SMPAQ2)
    print_timings(context)
    assert capsys.readouterr().out == format_timings(context)


def test_reset_communication_zeroes_counters():
    sock_a, sock_b = _pair()
    chl_a, chl_b = _pair()
    sock_a.send(b"abc")
    sock_b.recv(3)
    chl_a.send(b"xy")
    reset_communication(sock_a, chl_a, PsiAnalyticsContext())
    assert (sock_a.sent_bytes, chl_a.sent_bytes) == (0, 0)
    assert sock_b.recv_bytes == 3
    for channel in (sock_a, sock_b, chl_a, chl_b):
        channel.close()


def _accumulate_pair(client_ctx, server_ctx, payload=b"hello"):
    client_sock, server_sock = _pair()
    client_chl, server_chl = _pair()
    client_sock.send(payload)
    server_sock.recv(len(payload))
    _run_all(
        lambda: accumulate_communication(client_sock, client_chl, client_ctx),
        lambda: accumulate_communication(server_sock, server_chl, server_ctx),
    )
    result = (client_sock.sent_bytes, server_sock.sent_bytes)
    for channel in (client_sock, server_sock, client_chl, server_chl):
        channel.close()
    return result


def test_accumulate_client_smpaq2_keeps_socket_counts():
    client = PsiAnalyticsContext(role=Role.CLIENT, psm_type=PsmType.SMPAQ2, index=1, n=3)
    server = PsiAnalyticsContext(role=Role.SERVER, psm_type=PsmType.SMPAQ2, index=1, n=3, sneles=2)
    client_sent, server_sent = _accumulate_pair(client, server)
    assert client.sent_bytes_hint == len(b"hello")
    assert client.recv_bytes_hint == 0
    assert client.sent_bytes_oprf == 0
    assert client.recv_bytes_sci == 0 and server.recv_bytes_sci == 0
    assert client_sent == len(b"hello") + 8
    assert server_sent == 8


def test_accumulate_server_smpaq2_leader_and_center_receive_alike():
    leader = PsiAnalyticsContext(role=Role.SERVER, psm_type=PsmType.SMPAQ2, index=0, n=3, sneles=4)
    center = PsiAnalyticsContext(role=Role.SERVER, psm_type=PsmType.SMPAQ2, index=2, n=3, sneles=4)
    _accumulate_pair(PsiAnalyticsContext(role=Role.CLIENT, psm_type=PsmType.SMPAQ2), leader)
    _accumulate_pair(PsiAnalyticsContext(role=Role.CLIENT, psm_type=PsmType.SMPAQ2), center)
    assert leader.recv_bytes_hint == center.recv_bytes_hint
    assert leader.recv_bytes_hint > 0


def test_accumulate_server_smpaq1_grows_with_elements():
    small = PsiAnalyticsContext(role=Role.SERVER, psm_type=PsmType.SMPAQ1, index=1, n=4, sneles=1)
    large = PsiAnalyticsContext(role=Role.SERVER, psm_type=PsmType.SMPAQ1, index=1, n=4, sneles=2)
    _accumulate_pair(PsiAnalyticsContext(role=Role.CLIENT, psm_type=PsmType.SMPAQ1, index=1), small)
    _accumulate_pair(PsiAnalyticsContext(role=Role.CLIENT, psm_type=PsmType.SMPAQ1, index=1), large)
    assert large.sent_bytes_hint > small.sent_bytes_hint
    assert small.recv_bytes_hint == large.recv_bytes_hint


def test_accumulate_client_smpaq1_leader_wraps_unsigned():
    client = PsiAnalyticsContext(role=Role.CLIENT, psm_type=PsmType.SMPAQ1, index=0, n=3)
    server = PsiAnalyticsContext(role=Role.SERVER, psm_type=PsmType.SMPAQ1, index=1, n=3)
    _accumulate_pair(client, server, payload=b"")
    assert 1 << 63 < client.sent_bytes_hint < 1 << 64


def test_shared_state_slots_are_independent():
    first, second = SharedState(), SharedState()
    first.client_id.add([1], 0)
    assert second.client_id.get_by_pos(0) == []
    assert first.ng == [0, 0]
    assert first.original_sum is None