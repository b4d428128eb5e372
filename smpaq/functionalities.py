"""Shared protocol state and the helpers used by both protocol sides."""

from __future__ import annotations

import random
import secrets
import threading
from dataclasses import dataclass, field
from typing import Iterable, Sequence, TypeVar

from .blocks import block_to_uint64_xor
from .config import PsiAnalyticsContext, PsmType, Role
from .net import Channel
from .paillier import Paillier
from .sync import GlobalData, GlobalFlag

T = TypeVar("T")

_MASK64 = (1 << 64) - 1
_BLOCK_BYTES = 16
_U64_BYTES = 8


@dataclass
class SharedState:
    """Slots, counters and values shared by the threads of one protocol run."""

    server_id: GlobalData = field(default_factory=GlobalData)
    client_id: GlobalData = field(default_factory=GlobalData)
    client_id_center: GlobalData = field(default_factory=GlobalData)
    client_id_leader: GlobalData = field(default_factory=GlobalData)
    server_id_center: GlobalData = field(default_factory=GlobalData)
    server_id_leader: GlobalData = field(default_factory=GlobalData)
    server_data_center: GlobalData = field(default_factory=GlobalData)
    server_data_leader: GlobalData = field(default_factory=GlobalData)
    server_data: GlobalData = field(default_factory=GlobalData)
    cf1: GlobalFlag = field(default_factory=GlobalFlag)
    cf2: GlobalFlag = field(default_factory=GlobalFlag)
    sf1: GlobalFlag = field(default_factory=GlobalFlag)
    sf2: GlobalFlag = field(default_factory=GlobalFlag)
    sf2_ng: GlobalFlag = field(default_factory=GlobalFlag)
    ng: list[int] = field(default_factory=lambda: [0, 0])
    paillier: Paillier | None = None
    sum_center: int = 0
    sum_leader: int = 0
    received_count: int = 0
    total_sum: int = 0
    original_sum: int | None = None
    lock: threading.Lock = field(default_factory=threading.Lock)


def flatten(rows: Iterable[Iterable[T]]) -> list[T]:
    """Concatenate rows into one list."""
    return [item for row in rows for item in row]


def generate_data(neles: int, index: int) -> list[int]:
    """neles values between 0 and 1000, reproducible for a given index."""
    rng = random.Random(index)
    return [rng.randint(0, 1000) for _ in range(neles)]


def from_client_oprf_data(blocks: Sequence[int], size: int) -> list[int]:
    """Fold at most size OPRF blocks into 64-bit values."""
    return flatten(block_to_uint64_xor(block) for block in blocks[:size])


def from_server_oprf_data(
    rows: Sequence[Sequence[int]], sneles: int = 8, snbins: int = 1
) -> list[list[int]]:
    """Fold the first snbins rows of OPRF blocks; missing rows stay empty."""
    table: list[list[int]] = [[] for _ in range(snbins)]
    for position, row in enumerate(rows[:snbins]):
        table[position] = flatten(block_to_uint64_xor(block) for block in row)
    return table


def shared_count(is_shared: Iterable[bool]) -> int:
    """Number of entries that are not shared."""
    return sum(1 for item in is_shared if not item)


def split_into_shares(number: int) -> tuple[int, int]:
    """Split number into a random share between 1 and 100 and the remainder."""
    share1 = secrets.randbelow(100) + 1
    return share1, number - share1


def format_timings(context: PsiAnalyticsContext) -> str:
    """The timing report for one averaged context."""
    timings = context.timings
    lines = []
    if context.role == Role.SERVER:
        lines.append(f"Time for vrf {timings.vrf:g} ms")
    lines.append(f"Time for OPRF1 {timings.oprf1:g} ms")
    lines.append(f"Time for OPRF2 {timings.oprf2:g} ms")
    lines.append(f"Time for hint computation {timings.hint_computation:g} ms")
    if context.psm_type is PsmType.SMPAQ1:
        if context.role == Role.SERVER:
            lines.append(f"Time for encrypt {timings.encrypt:g} ms")
        else:
            lines.append(f"Time for decrypt {timings.decrypt:g} ms")
    lines.append(f"Timing for PSM {timings.psm:g} ms")
    lines.append(f"Total runtime {timings.total:g} ms")
    lines.append(f"Total runtime w/o base OTs:{timings.total_without_ot:g} ms")
    return "".join(line + "\n" for line in lines)


def print_timings(context: PsiAnalyticsContext) -> None:
    print(format_timings(context), end="")


def reset_communication(sock: Channel, chl: Channel, context: PsiAnalyticsContext) -> None:
    """Zero the traffic counters of both channels."""
    chl.reset_stats()
    sock.reset_stats()


def _server_hint_adjustment(context: PsiAnalyticsContext) -> tuple[int, int]:
    sneles, n, bitlen = context.sneles, context.n, context.bitlen
    sent = recv = 0
    if context.psm_type is PsmType.SMPAQ2:
        if context.index != n - 1:
            sent += _BLOCK_BYTES * 2 * sneles
            sent += _U64_BYTES * 2 * sneles
            if context.index == 0:
                sent -= _BLOCK_BYTES * sneles
                sent -= _U64_BYTES * sneles
                sent += _BLOCK_BYTES * sneles * n
                sent += _U64_BYTES * sneles * n
                recv += _BLOCK_BYTES * sneles * n - 1
                recv += _U64_BYTES * sneles * n - 1
                recv += _BLOCK_BYTES * sneles * n
                recv += _U64_BYTES * sneles * n
        else:
            sent += _BLOCK_BYTES * sneles
            sent += _U64_BYTES * sneles
            sent += _BLOCK_BYTES * sneles * n
            recv += _BLOCK_BYTES * sneles * n - 1
            recv += _U64_BYTES * sneles * n - 1
            recv += _BLOCK_BYTES * sneles * n
            recv += _U64_BYTES * sneles * n
    else:
        if context.index != n - 1:
            sent += _BLOCK_BYTES * sneles
            sent += bitlen * sneles
            if context.index == 0:
                recv += _BLOCK_BYTES * sneles * n
                recv += bitlen * sneles * n
                recv -= _U64_BYTES * 2 + (2 * bitlen + 1)
        else:
            recv += _BLOCK_BYTES * sneles * (n - 1)
            sent += _BLOCK_BYTES * sneles * n
            recv += bitlen * sneles * (n - 1)
            sent += bitlen * sneles * n
    return sent, recv


def accumulate_communication(sock: Channel, chl: Channel, context: PsiAnalyticsContext) -> None:
    """Record the traffic of this run in context and exchange the SCI counts."""
    context.sent_bytes_oprf = chl.sent_bytes
    context.recv_bytes_oprf = chl.recv_bytes
    sent_hint = sock.sent_bytes
    recv_hint = sock.recv_bytes

    if context.role == Role.SERVER:
        sent_extra, recv_extra = _server_hint_adjustment(context)
        sent_hint += sent_extra
        recv_hint += recv_extra
    elif context.psm_type is PsmType.SMPAQ1 and context.index == 0:
        sent_hint -= _U64_BYTES * 2 + (2 * context.bitlen + 1)

    context.sent_bytes_hint = sent_hint & _MASK64
    context.recv_bytes_hint = recv_hint & _MASK64

    context.sent_bytes_sci = 0
    context.recv_bytes_sci = 0
    if context.role == Role.CLIENT:
        context.recv_bytes_sci = sock.recv_u64()
        sock.send_u64(context.sent_bytes_sci)
    else:
        sock.send_u64(context.sent_bytes_sci)
        context.recv_bytes_sci = sock.recv_u64()