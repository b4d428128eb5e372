"""Client side of the SMPAQ protocols."""

from __future__ import annotations

import sys
from typing import Sequence

from .blocks import block_to_uint64_xor
from .config import PsiAnalyticsContext, PsmType
from .functionalities import SharedState, flatten, from_client_oprf_data
from .net import Channel
from .ots import ot_receiver
from .paillier import Paillier, decrypt_number
from .sync import wait_for
from .timer import Timer

_MASK64 = (1 << 64) - 1


def _send_ids(sock: Channel, rows: list[list[int]], context: PsiAnalyticsContext) -> None:
    """Send exactly n * cnbins identifiers, zero-padded."""
    count = context.n * context.cnbins
    values = flatten(rows)[:count]
    values.extend([0] * (count - len(values)))
    sock.send_u64s(values)


def _second_oprf(
    state: SharedState, context: PsiAnalyticsContext, chl: Channel
) -> list[list[int]]:
    blocks = ot_receiver(flatten(state.client_id.data()), chl, context, context.n)
    return [block_to_uint64_xor(block) for block in blocks]


def _combine_sums(state: SharedState) -> None:
    with state.lock:
        if state.received_count == 2:
            total = (state.sum_center + state.sum_leader) & _MASK64
            state.total_sum = total
            print(
                f"Center Sum = {state.sum_center}, Leader Sum = {state.sum_leader}, "
                f"Total Sum = {total}"
            )
            state.sum_center = 0
            state.sum_leader = 0
            state.received_count = 0
        else:
            print(
                f"warn: waitFor but g_received_count ({state.received_count}) != 2. may be error",
                file=sys.stderr,
            )
    state.cf2.reset(0)


def _run_smpaq2(
    table: list[int],
    context: PsiAnalyticsContext,
    sock: Channel,
    chl: Channel,
    state: SharedState,
    is_leader: bool,
    is_center: bool,
) -> None:
    oprf_value = ot_receiver(table, chl, context)
    state.client_id.add(from_client_oprf_data(oprf_value, context.cnbins), context.index)
    state.cf1.increment()
    wait_for(state.cf1, lambda: state.cf1.reset(0), is_center, context.n)

    second_timer = Timer()
    if is_center or is_leader:
        target = state.client_id_center if is_center else state.client_id_leader
        for position, row in enumerate(_second_oprf(state, context, chl)):
            target.add(row, position)
        state.cf2.increment()
    wait_for(state.cf2, lambda: state.cf2.reset(0), is_center, 2)
    context.timings.secondoprftime = second_timer.end()

    if is_center or is_leader:
        source = state.client_id_center if is_center else state.client_id_leader
        _send_ids(sock, source.data(), context)
        received = sock.recv_u64()
        with state.lock:
            if is_center:
                state.sum_center = received
            else:
                state.sum_leader = received
            state.received_count += 1
        state.cf2.increment()
    wait_for(state.cf2, lambda: _combine_sums(state), is_center, 2)


def _run_smpaq1(
    table: list[int],
    context: PsiAnalyticsContext,
    sock: Channel,
    chl: Channel,
    state: SharedState,
    is_leader: bool,
    is_center: bool,
    psm_timer: Timer,
) -> None:
    if is_leader:
        state.paillier = Paillier(1024)
        state.ng[0] = state.paillier.n
        state.ng[1] = state.paillier.g
        sock.send_text(f"{state.ng[0]}|{state.ng[1]}")

    psm_timer.start()
    if not is_center:
        oprf_value = ot_receiver(table, chl, context)
        state.client_id.add(from_client_oprf_data(oprf_value, context.cnbins), context.index)
        print(f"Client {context.index} flag:{state.cf1.increment()}")
    wait_for(
        state.cf1, lambda: state.client_id.add(table, context.index), is_center, context.n - 1
    )

    if is_center:
        for position, row in enumerate(_second_oprf(state, context, chl)):
            state.client_id.add(row, position)
    else:
        state.cf2.increment()
    wait_for(state.cf2, lambda: None, is_center, context.n - 1)

    if is_leader:
        _send_ids(sock, state.client_id.data(), context)
        encrypted_sum = int(sock.recv_text())
        paillier = state.paillier
        decrypt_timer = Timer()
        original_sum = decrypt_number(
            encrypted_sum, paillier.n, paillier.lambda_, paillier.lambda_inverse
        )
        context.timings.decrypt = decrypt_timer.end()
        print(f"original_sum : {original_sum}")
        state.original_sum = original_sum
        state.paillier = None


def run_client(
    inputs: Sequence[int],
    context: PsiAnalyticsContext,
    sock: Channel,
    chl: Channel,
    state: SharedState,
) -> None:
    """Run one client thread of the protocol and record its timings in context."""
    is_leader = context.index == 0
    is_center = context.index == context.n - 1

    psm_timer = Timer()
    computation_timer = Timer()
    cuckoo: list[list[int]] = [[] for _ in range(context.cnbins)]
    for position, value in enumerate(inputs):
        cuckoo[position % context.cnbins].append(value)
    context.timings.hint_computation = computation_timer.end()

    psm_timer.start()
    table = flatten(cuckoo)
    if context.psm_type is PsmType.SMPAQ2:
        _run_smpaq2(table, context, sock, chl, state, is_leader, is_center)
    elif context.psm_type is PsmType.SMPAQ1:
        _run_smpaq1(table, context, sock, chl, state, is_leader, is_center, psm_timer)
    context.timings.psm = psm_timer.end()