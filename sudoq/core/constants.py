"""Shared constants and enumerations for the puzzle generator."""

from __future__ import annotations

from enum import Enum, IntEnum
from typing import Dict

EMPTY = -1
"""Sentinel stored in a cell that holds no symbol."""

SYMBOL_CHARS = "123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"


class DifficultyLevel(str, Enum):
    """Requested puzzle difficulty, ordered from easiest to hardest.

    ``ARBITRARY`` is a sentinel: it carries no target band and is only used
    when the oracle should derive a solution instead of judging difficulty.
    """

    EASY = "easy"
    MEDIUM = "medium"
    DIFFICULT = "difficult"
    INFERNAL = "infernal"
    ARBITRARY = "arbitrary"

    @classmethod
    def targets(cls) -> tuple:
        """Levels that can be requested from the generator."""
        return (cls.EASY, cls.MEDIUM, cls.DIFFICULT, cls.INFERNAL)


class DifficultyRelation(IntEnum):
    """Measured difficulty of a candidate puzzle relative to its target band."""

    FAR_TOO_EASY = -2
    TOO_EASY = -1
    SATURATED = 0
    TOO_HARD = 1
    FAR_TOO_HARD = 2
    INVALID = 3

    @property
    def is_far(self) -> bool:
        return self in (DifficultyRelation.FAR_TOO_EASY, DifficultyRelation.FAR_TOO_HARD)

    @property
    def is_easy(self) -> bool:
        return self < DifficultyRelation.SATURATED

    @property
    def is_hard(self) -> bool:
        return DifficultyRelation.SATURATED < self < DifficultyRelation.INVALID


class GroupKind(str, Enum):
    """Shape of a constraint group."""

    ROW = "row"
    COLUMN = "column"
    BLOCK = "block"
    DIAGONAL = "diagonal"
    EXTRA = "extra"


class Technique(IntEnum):
    """Deduction techniques known to the difficulty oracle, cheapest first."""

    NAKED_SINGLE = 1
    HIDDEN_SINGLE = 2
    LOCKED_CANDIDATES = 3
    NAKED_PAIR = 4
    HIDDEN_PAIR = 5
    NAKED_TRIPLE = 6
    HIDDEN_TRIPLE = 7
    X_WING = 8
    BACKTRACKING = 9


DEFAULT_TECHNIQUE_WEIGHTS: Dict[Technique, int] = {
    Technique.NAKED_SINGLE: 10,
    Technique.HIDDEN_SINGLE: 12,
    Technique.LOCKED_CANDIDATES: 30,
    Technique.NAKED_PAIR: 40,
    Technique.HIDDEN_PAIR: 50,
    Technique.NAKED_TRIPLE: 60,
    Technique.HIDDEN_TRIPLE: 70,
    Technique.X_WING: 100,
    Technique.BACKTRACKING: 250,
}
