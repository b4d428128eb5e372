"""128-bit OT blocks, held as non-negative integers below 2**128."""

from __future__ import annotations

from typing import Iterable

_MASK64 = (1 << 64) - 1
_BLOCK_LIMIT = 1 << 128


def _check_block(block: int) -> int:
    if not 0 <= block < _BLOCK_LIMIT:
        raise ValueError(f"block out of range: {block}")
    return block


def to_block(value: int) -> int:
    """Place a 64-bit value in the low half of a block."""
    if not 0 <= value <= _MASK64:
        raise ValueError(f"value does not fit in 64 bits: {value}")
    return value


def low_half(block: int) -> int:
    return _check_block(block) & _MASK64


def high_half(block: int) -> int:
    return _check_block(block) >> 64


def block_to_uint64_xor(block: int) -> list[int]:
    """Fold a block to one 64-bit value by xoring its halves."""
    return [high_half(block) ^ low_half(block)]


def block_to_hex(block: int) -> str:
    """Hex of the block's bytes in memory (little-endian) order."""
    return _check_block(block).to_bytes(16, "little").hex()


def to_blocks(values: Iterable[int]) -> list[int]:
    return [to_block(value) for value in values]


def to_block_rows(rows: Iterable[Iterable[int]]) -> list[list[int]]:
    return [to_blocks(row) for row in rows]


def to_values(blocks: Iterable[int]) -> list[int]:
    """Take the low half of each block."""
    return [low_half(block) for block in blocks]


def to_value_rows(rows: Iterable[Iterable[int]]) -> list[list[int]]:
    return [to_values(row) for row in rows]