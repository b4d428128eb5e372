"""Oblivious PRF evaluation between a receiver and a sender.

For every OT index i the sender holds a secret key k_i. The receiver learns
F(k_i, x_i) for its own input x_i and nothing about k_i; the sender learns
F(k_i, y) for every y in its bin i and nothing about x_i. Equal inputs at the
same index give equal 128-bit outputs.
"""

from __future__ import annotations

import hashlib
import math
import secrets
from typing import Iterable, Sequence

from .blocks import to_block
from .config import PsiAnalyticsContext
from .net import Channel
from .timer import Timer

GROUP_PRIME = (1 << 521) - 1
_ELEMENT_BYTES = (GROUP_PRIME.bit_length() + 7) // 8
_NONCE_BYTES = 16


def _hash_to_group(block: int) -> int:
    """Map a block to a quadratic residue other than 0 and 1."""
    data = block.to_bytes(16, "little")
    counter = 0
    while True:
        digest = hashlib.shake_256(
            b"smpaq-h1" + counter.to_bytes(4, "little") + data
        ).digest(_ELEMENT_BYTES + 16)
        element = pow(int.from_bytes(digest, "big") % GROUP_PRIME, 2, GROUP_PRIME)
        if element > 1:
            return element
        counter += 1


def _output(session: bytes, index: int, element: int) -> int:
    digest = hashlib.blake2b(
        session + index.to_bytes(8, "little") + _encode(element), digest_size=16
    ).digest()
    return int.from_bytes(digest, "little")


def _encode(element: int) -> bytes:
    return element.to_bytes(_ELEMENT_BYTES, "big")


def _decode_all(data: bytes) -> list[int]:
    elements = [
        int.from_bytes(data[offset : offset + _ELEMENT_BYTES], "big")
        for offset in range(0, len(data), _ELEMENT_BYTES)
    ]
    for element in elements:
        if not 0 < element < GROUP_PRIME:
            raise ValueError("received element outside the group")
    return elements


def _blinding_scalar() -> int:
    while True:
        r = secrets.randbelow(GROUP_PRIME - 3) + 2
        if math.gcd(r, GROUP_PRIME - 1) == 1:
            return r


def _random_key() -> int:
    return secrets.randbelow(GROUP_PRIME - 2) + 1


def _handshake(channel: Channel, initiator: bool) -> bytes:
    """Exchange fresh nonces and derive the session identifier."""
    own = secrets.token_bytes(_NONCE_BYTES)
    if initiator:
        channel.send(own)
        receiver_nonce, sender_nonce = own, channel.recv(_NONCE_BYTES)
    else:
        receiver_nonce = channel.recv(_NONCE_BYTES)
        channel.send(own)
        sender_nonce = own
    return hashlib.sha256(b"smpaq-session" + receiver_nonce + sender_nonce).digest()


def _record(
    context: PsiAnalyticsContext, num_ots: int, base_ms: float, oprf_ms: float
) -> bool:
    """Store the timings; True when this was the second-round OPRF."""
    if num_ots != context.n:
        context.timings.oprf1 = oprf_ms
        context.timings.base_ots_libote = base_ms
        return False
    context.timings.oprf2 = oprf_ms
    context.timings.base_ots_libote2 = base_ms
    return True


def ot_receiver(
    inputs: Sequence[int],
    channel: Channel,
    context: PsiAnalyticsContext,
    num_ots: int = 1,
) -> list[int]:
    """Client side: one PRF output block per OT index; indices without an
    input yield the zero block."""
    blocks = [to_block(value) for value in inputs]
    if len(blocks) > num_ots:
        raise IndexError(f"{len(blocks)} inputs for {num_ots} OTs")

    base_timer = Timer()
    session = _handshake(channel, initiator=True)
    base_ms = base_timer.end()

    oprf_timer = Timer()
    padded = blocks + [0] * (num_ots - len(blocks))
    blinds = [_blinding_scalar() for _ in padded]
    channel.send(
        b"".join(
            _encode(pow(_hash_to_group(block), r, GROUP_PRIME))
            for block, r in zip(padded, blinds)
        )
    )
    evaluated = _decode_all(channel.recv(num_ots * _ELEMENT_BYTES))
    outputs = [
        _output(session, index, pow(element, pow(r, -1, GROUP_PRIME - 1), GROUP_PRIME))
        for index, (element, r) in enumerate(zip(evaluated[: len(blocks)], blinds))
    ]
    outputs.extend([0] * (num_ots - len(blocks)))

    _record(context, num_ots, base_ms, oprf_timer.end())
    return outputs


def ot_sender(
    inputs: Iterable[Iterable[int]],
    channel: Channel,
    context: PsiAnalyticsContext,
    num_ots: int = 1,
) -> list[list[int]]:
    """Server side: for each OT index, the PRF output of every element in that
    index's bin, in order."""
    rows = [[to_block(value) for value in row] for row in inputs]
    if len(rows) < num_ots:
        raise IndexError(f"{len(rows)} bins for {num_ots} OTs")
    rows = rows[:num_ots]

    base_timer = Timer()
    session = _handshake(channel, initiator=False)
    base_ms = base_timer.end()

    oprf_timer = Timer()
    keys = [_random_key() for _ in range(num_ots)]
    requests = _decode_all(channel.recv(num_ots * _ELEMENT_BYTES))
    channel.send(
        b"".join(_encode(pow(element, key, GROUP_PRIME)) for element, key in zip(requests, keys))
    )
    outputs = [
        [
            _output(session, index, pow(_hash_to_group(block), key, GROUP_PRIME))
            for block in row
        ]
        for index, (row, key) in enumerate(zip(rows, keys))
    ]
    oprf_ms = oprf_timer.end()

    if _record(context, num_ots, base_ms, oprf_ms):
        print(f"The server {context.index}oprf2 time is {oprf_ms} ms")
    return outputs