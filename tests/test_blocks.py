import pytest

from smpaq.blocks import (
    block_to_hex,
    block_to_uint64_xor,
    high_half,
    low_half,
    to_block,
    to_block_rows,
    to_blocks,
    to_value_rows,
    to_values,
)


def test_to_block_fills_low_half():
    block = to_block(12345)
    assert low_half(block) == 12345
    assert high_half(block) == 0


def test_halves_of_composed_block():
    block = (7 << 64) | 9
    assert high_half(block) == 7
    assert low_half(block) == 9


def test_xor_of_equal_halves_is_zero():
    block = (0xABCD << 64) | 0xABCD
    assert block_to_uint64_xor(block) == [0]


def test_xor_with_zero_high_is_low():
    assert block_to_uint64_xor(to_block(42)) == [42]


def test_hex_is_little_endian():
    assert block_to_hex(to_block(1)) == "01" + "00" * 15


def test_round_trip_values():
    values = [0, 1, (1 << 64) - 1, 2000]
    assert to_values(to_blocks(values)) == values


def test_round_trip_rows():
    rows = [[1, 2], [], [3]]
    assert to_value_rows(to_block_rows(rows)) == rows


@pytest.mark.parametrize("value", [-1, 1 << 64])
def test_to_block_rejects_out_of_range(value):
    with pytest.raises(ValueError):
        to_block(value)


def test_block_range_checked():
    with pytest.raises(ValueError):
        low_half(1 << 128)