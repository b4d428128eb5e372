"""Server side of the SMPAQ protocols and the per-thread entry point."""

from __future__ import annotations

import secrets
from typing import Sequence

from .client import run_client
from .config import PsiAnalyticsContext, PsmType, Role
from .csvio import file_exists, read_int_csv, write_csv
from .functionalities import SharedState, from_server_oprf_data, generate_data
from .net import Channel
from .ots import ot_sender
from .paillier import encrypt, encrypt_number, random_numbers
from .sync import wait_for
from .timer import Timer

_MASK64 = (1 << 64) - 1


def _simple_table(inputs: Sequence[int], context: PsiAnalyticsContext) -> list[list[int]]:
    """Fill bins of sneles inputs each, in order, until the inputs run out."""
    table: list[list[int]] = [[] for _ in range(context.snbins)]
    for position in range(context.snbins):
        start = position * context.sneles
        if start >= len(inputs):
            break
        table[position] = list(inputs[start : start + context.sneles])
    return table


def _share_sum(
    client_values: Sequence[int],
    id_rows: Sequence[Sequence[int]],
    share_rows: Sequence[Sequence[int]],
) -> int:
    """Sum, modulo 2**64, the shares of every server entry matching a client value."""
    by_id: dict[int, int] = {}
    for ids, shares in zip(id_rows, share_rows):
        for ident, share in zip(ids, shares):
            by_id[ident] = (by_id.get(ident, 0) + share) & _MASK64
    return sum(by_id.get(value, 0) for value in client_values) & _MASK64


def _encrypted_match_sum(
    client_values: Sequence[int],
    id_rows: Sequence[Sequence[int]],
    cipher_rows: Sequence[Sequence[int]],
    n: int,
    g: int,
) -> int:
    """Homomorphically add the ciphertexts of every server entry matching a client value."""
    n_square = n * n
    by_id: dict[int, int] = {}
    for ids, ciphers in zip(id_rows, cipher_rows):
        for ident, cipher in zip(ids, ciphers):
            by_id[ident] = (by_id.get(ident, 1) * cipher) % n_square
    total = encrypt_number(0, n, g)
    for value in client_values:
        if value in by_id:
            total = (total * by_id[value]) % n_square
    return total


def _second_round(
    state: SharedState, context: PsiAnalyticsContext, chl: Channel
) -> list[list[int]]:
    oprf_value = ot_sender(state.server_id.data(), chl, context, context.n)
    return from_server_oprf_data(oprf_value, context.sneles, context.sneles)


def _run_smpaq2(
    table: list[list[int]],
    context: PsiAnalyticsContext,
    sock: Channel,
    chl: Channel,
    state: SharedState,
    is_leader: bool,
    is_center: bool,
) -> None:
    wholeoprf_timer = Timer()
    oprf_value = ot_sender(table, chl, context)
    raw_data = from_server_oprf_data(oprf_value, context.sneles, 1)
    state.server_id.add(raw_data[0], context.index)
    state.sf1.increment()
    wait_for(state.sf1, lambda: state.sf1.reset(0), is_center, context.n)

    share_center: list[int] = []
    share_leader: list[int] = []
    for value in generate_data(context.sneles, context.index):
        first = secrets.randbits(64)
        share_center.append(first)
        share_leader.append((value - first) & _MASK64)
    state.server_data_center.add(share_center, context.index)
    state.server_data_leader.add(share_leader, context.index)

    state.sf2.increment()
    wait_for(state.sf2, lambda: None, is_leader, context.n)

    if is_center or is_leader:
        rows = _second_round(state, context, chl)
        if is_center:
            target = state.server_id_center
        else:
            target = state.server_id_leader
            write_csv(rows, f"Server__leader_Oprf2_{context.index}.csv")
        for position, row in enumerate(rows):
            target.add(row, position)
        state.sf2.increment()
    wait_for(state.sf2, lambda: state.sf2.reset(0), is_center, 2)
    context.timings.wholeoprf = wholeoprf_timer.end()

    if is_center or is_leader:
        if is_center:
            id_rows = state.server_id_center.data()
            share_rows = state.server_data_center.data()
            id_file = "Server_Center_ID.csv"
        else:
            id_rows = state.server_id_leader.data()
            share_rows = state.server_data_leader.data()
            id_file = "Server_Leader_ID.csv"
        client_values = sock.recv_u64s(context.n * context.cnbins)
        write_csv(id_rows, id_file)

        search_timer = Timer()
        total = _share_sum(client_values, id_rows, share_rows)
        if is_center:
            print(f"sum_center is{total}")
        else:
            print(f"sum_leader is : {total}")
        sock.send_u64(total)
        context.timings.search = search_timer.end()


def _load_encrypted_data(context: PsiAnalyticsContext, n: int, g: int) -> list[int]:
    path = f"Server_Data_EncryptData_{context.index}.csv"
    if file_exists(path):
        return read_int_csv(path)[0]
    encrypted = encrypt(random_numbers(context.sneles), n, g)
    write_csv([encrypted], path)
    return encrypted


def _run_smpaq1(
    table: list[list[int]],
    context: PsiAnalyticsContext,
    sock: Channel,
    chl: Channel,
    state: SharedState,
    is_leader: bool,
    is_center: bool,
    psm_timer: Timer,
    encrypt_timer: Timer,
) -> None:
    if is_leader:
        n_text, _, g_text = sock.recv_text().partition("|")
        state.ng[0] = int(n_text)
        state.ng[1] = int(g_text)
    if not is_center:
        state.sf2_ng.increment()
    wait_for(state.sf2_ng, lambda: None, is_center, context.n - 1)

    n, g = state.ng
    encrypted = _load_encrypted_data(context, n, g)

    add_timer = Timer()
    state.server_data.add(encrypted, context.index)
    context.timings.addtime = add_timer.end()
    context.timings.encrypt = encrypt_timer.end()

    state.sf2.increment()
    captured: list[list[list[int]]] = []
    wait_for(state.sf2, lambda: captured.append(state.server_data.data()), is_leader, context.n)
    cipher_rows = captured[0] if captured else []

    psm_timer.start()
    first_bin = table[0] if table else []
    if not is_center:
        oprf_value = ot_sender(table, chl, context)
        raw_data = from_server_oprf_data(oprf_value, context.sneles, 1)
        state.server_id.add(raw_data[0], context.index)
        state.sf1.increment()
    wait_for(
        state.sf1, lambda: state.server_id.add(first_bin, context.index), is_center, context.n - 1
    )

    if is_center:
        for position, row in enumerate(_second_round(state, context, chl)):
            state.server_id.add(row, position)
    else:
        state.sf2.increment()
    wait_for(state.sf2, lambda: None, is_center, context.n - 1)

    if is_leader:
        client_values = sock.recv_u64s(context.n * context.cnbins)
        id_rows = state.server_id.data()
        search_timer = Timer()
        total = _encrypted_match_sum(client_values, id_rows, cipher_rows, n, g)
        sock.send_text(str(total))
        context.timings.search = search_timer.end()


def run_server(
    inputs: Sequence[int],
    context: PsiAnalyticsContext,
    sock: Channel,
    chl: Channel,
    state: SharedState,
) -> None:
    """Run one server thread of the protocol and record its timings in context."""
    is_leader = context.index == 0
    is_center = context.index == context.n - 1

    psm_timer = Timer()
    computation_timer = Timer()
    table = _simple_table(inputs, context)
    context.timings.hint_computation = computation_timer.end()

    encrypt_timer = Timer()
    psm_timer.start()
    if context.psm_type is PsmType.SMPAQ2:
        _run_smpaq2(table, context, sock, chl, state, is_leader, is_center)
    elif context.psm_type is PsmType.SMPAQ1:
        _run_smpaq1(
            table, context, sock, chl, state, is_leader, is_center, psm_timer, encrypt_timer
        )
    context.timings.psm = psm_timer.end()


def run_smpaq(
    inputs: Sequence[int],
    context: PsiAnalyticsContext,
    sock: Channel,
    chl: Channel,
    state: SharedState,
) -> None:
    """Run one protocol thread for the role in context and record the total time."""
    total_timer = Timer()
    if Role(context.role) is Role.CLIENT:
        run_client(inputs, context, sock, chl, state)
    else:
        run_server(inputs, context, sock, chl, state)
    context.timings.total = total_timer.end()