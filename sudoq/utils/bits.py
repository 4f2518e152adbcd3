"""Bitmask helpers for candidate sets.

A candidate set over ``n`` symbols is an ``int`` whose bit ``v`` is set when
symbol ``v`` is still possible.
"""

from __future__ import annotations

from typing import Iterator, List


def full_mask(symbols: int) -> int:
    return (1 << symbols) - 1


def bit(symbol: int) -> int:
    return 1 << symbol


def cardinality(mask: int) -> int:
    return bin(mask).count("1")


def single_symbol(mask: int) -> int:
    """Return the symbol of a one-bit mask."""
    return mask.bit_length() - 1


def iter_symbols(mask: int) -> Iterator[int]:
    while mask:
        low = mask & -mask
        yield low.bit_length() - 1
        mask ^= low


def symbols_of(mask: int) -> List[int]:
    return list(iter_symbols(mask))
