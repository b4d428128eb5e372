"""Command-line entry point: run n protocol threads for one role and report timings."""

from __future__ import annotations

import argparse
from concurrent.futures import ThreadPoolExecutor
from typing import Sequence

from .config import PsiAnalyticsContext, PsmType, Role
from .functionalities import (
    SharedState,
    accumulate_communication,
    print_timings,
    reset_communication,
)
from .net import establish_connection
from .protocol import run_smpaq
from .sync import GlobalData, GlobalFlag, wait_for
from .timer import Timer
from .vrf import Vrf


def _role(text: str) -> Role:
    try:
        return Role(int(text))
    except ValueError as error:
        raise argparse.ArgumentTypeError(f"invalid role: {text}") from error


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="smpaq", description="Allowed options")
    parser.add_argument("-r", "--role", type=_role, required=True, help="Role of the node")
    parser.add_argument("-n", "--n", dest="n", type=int, default=8, help="Number of server")
    parser.add_argument("-g", "--g", dest="g", type=int, default=5, help="g")
    parser.add_argument(
        "-c", "--cneles", type=int, default=1, help="Number of client elements"
    )
    parser.add_argument(
        "-s", "--sneles", type=int, default=1024, help="Number of server elements"
    )
    parser.add_argument(
        "-b", "--bit-length", dest="bitlen", type=int, default=58,
        help="Bit-length of the elements",
    )
    parser.add_argument(
        "-e", "--epsilon", type=float, default=1.0, help="Epsilon, a table size multiplier"
    )
    parser.add_argument(
        "-E", "--hint-epsilon", dest="fepsilon", type=float, default=1.27,
        help="Epsilon, a hint table size multiplier",
    )
    parser.add_argument(
        "-a", "--address", default="0.0.0.0", help="IP address of the server"
    )
    parser.add_argument("-p", "--port", type=int, default=7777, help="Port of the server")
    parser.add_argument("-m", "--radix", type=int, default=5, help="Radix in PSM Protocol")
    parser.add_argument(
        "-f", "--functions", dest="nfuns", type=int, default=3,
        help="Number of hash functions in hash tables",
    )
    parser.add_argument(
        "-F", "--hint-functions", dest="ffuns", type=int, default=3,
        help="Number of hash functions in hint hash tables",
    )
    parser.add_argument(
        "-y", "--psm-type", dest="psm_type", default="SMPAQ1",
        help="PSM type {SMPAQ1, SMPAQ2}",
    )
    return parser


def parse_args(argv: Sequence[str] | None = None) -> PsiAnalyticsContext:
    """Build the run context from command-line arguments."""
    args = _build_parser().parse_args(argv)
    try:
        psm_type = PsmType(args.psm_type)
    except ValueError as error:
        raise ValueError(f"Unknown SMPAQ type: {args.psm_type}") from error

    return PsiAnalyticsContext(
        port=args.port,
        role=args.role,
        bitlen=args.bitlen,
        cneles=args.cneles,
        sneles=args.sneles,
        nbins=int(args.sneles * args.epsilon),
        cnbins=1,
        snbins=args.n,
        nfuns=args.nfuns,
        radix=args.radix,
        epsilon=args.epsilon,
        ffuns=args.ffuns,
        fepsilon=args.fepsilon,
        address=args.address,
        n=args.n,
        g=args.g,
        psm_type=psm_type,
    )


def average(contexts: Sequence[PsiAnalyticsContext]) -> PsiAnalyticsContext:
    """Combine the per-thread contexts into one timing summary."""
    if not contexts:
        return PsiAnalyticsContext()

    first = contexts[0]
    result = PsiAnalyticsContext(role=first.role, n=first.n, psm_type=first.psm_type)
    t = result.timings
    n = result.n
    last = contexts[n - 1].timings
    count = len(contexts)

    for position, ctx in enumerate(contexts):
        timings = ctx.timings
        if result.psm_type is PsmType.SMPAQ1:
            if position != count - 1:
                t.base_ots_libote += timings.base_ots_libote
                t.oprf1 += timings.oprf1
            t.base_ots_sci += timings.base_ots_sci
        else:
            t.oprf1 += timings.oprf1
            t.base_ots_libote += timings.base_ots_libote
            if position in (0, count - 1):
                t.base_ots_libote2 += timings.base_ots_libote2
        t.hint_computation += timings.hint_computation
        if ctx.role == Role.SERVER:
            t.encrypt += timings.encrypt
        elif ctx.role == Role.CLIENT and ctx.index == 0:
            t.decrypt = timings.decrypt

    if result.psm_type is PsmType.SMPAQ1:
        t.oprf1 /= n - 1
        t.oprf2 = last.oprf2
        t.encrypt /= n
        t.hint_computation /= n
        t.base_ots_libote /= n - 1
        t.base_ots_libote2 = last.base_ots_libote2
        t.base_ots_sci /= n
        t.psm = first.timings.psm
        t.total = first.timings.total
        t.addtime = first.timings.addtime
        t.total_without_ot = t.total - t.base_ots_libote - t.base_ots_libote2 - t.base_ots_sci
        if result.role == Role.SERVER:
            t.encrypt /= n
    elif result.psm_type is PsmType.SMPAQ2:
        t.oprf1 /= n
        t.oprf2 = (last.oprf2 + first.timings.oprf2) / 2
        t.hint_computation /= n
        t.base_ots_libote /= n
        t.base_ots_libote2 /= 2
        t.base_ots_sci /= n
        t.psm = (first.timings.psm + last.psm) / 2
        t.total = (first.timings.total + last.total) / 2
        t.addtime = (first.timings.addtime + last.addtime) / 2
        t.total_without_ot = t.psm - t.base_ots_libote - t.base_ots_libote2 - t.base_ots_sci
    return result


def build_inputs(context: PsiAnalyticsContext) -> list[int]:
    """The fixed test inputs for this role."""
    if context.role == Role.CLIENT:
        return [4000] * context.cneles
    return [2000 * i for i in range(context.sneles)]


def server_sequence(n: int, leader: int, center: int) -> list[int]:
    """Server indices in thread order: 1..n-2 with 0 placed at position leader,
    then n-1 placed at position center."""
    sequence = list(range(1, n - 1))
    sequence.insert(leader, 0)
    sequence.insert(center, n - 1)
    return sequence


def _run_party(
    context: PsiAnalyticsContext,
    inputs: list[int],
    state: SharedState,
    ready: GlobalFlag,
    results: GlobalData,
) -> None:
    sock = establish_connection(context.address, context.port, context.role)
    chl = establish_connection(context.address, context.port + 3 * context.n, context.role)
    with sock, chl:
        reset_communication(sock, chl, context)
        ready.increment()
        wait_for(ready, lambda: None, context.index == 0, context.n)
        run_smpaq(inputs, context, sock, chl, state)
        accumulate_communication(sock, chl, context)
    results.add(context, context.index)


def main(argv: Sequence[str] | None = None) -> int:
    context = parse_args(argv)
    inputs = build_inputs(context)
    n = context.n

    if context.role == Role.SERVER:
        timer = Timer()
        order = Vrf().sequence(n)
        sequence = server_sequence(n, order[0], order[1])
        context.timings.vrf = timer.end()
        print("server_seq:" + "".join(f"{index} " for index in sequence))
    else:
        sequence = list(range(n))

    state = SharedState()
    ready = GlobalFlag()
    results: GlobalData = GlobalData(factory=PsiAnalyticsContext)

    with ThreadPoolExecutor(max_workers=n) as pool:
        futures = []
        for index in sequence:
            party = context.copy()
            party.index = index
            party.port += index
            futures.append(pool.submit(_run_party, party, inputs, state, ready, results))
        for future in futures:
            future.result()

    print_timings(average(results.data()))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())