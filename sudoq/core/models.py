"""Data models supporting the puzzle generator."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Dict, FrozenSet, List, Mapping, NamedTuple, Optional, Tuple

from .constants import EMPTY, DifficultyLevel, DifficultyRelation, GroupKind, SYMBOL_CHARS, Technique
from .exceptions import CellStateError

if TYPE_CHECKING:
    from ..engine.board import BoardType


class Position(NamedTuple):
    """Cell coordinate; compares and hashes by value."""

    row: int
    col: int

    def __str__(self) -> str:
        return f"r{self.row}c{self.col}"


@dataclass
class Cell:
    """One cell of a board.

    ``solution`` stays ``None`` until a reference solution is known. A given
    cell always holds its solution symbol.
    """

    position: Position
    value: int = EMPTY
    solution: Optional[int] = None
    given: bool = False

    def is_empty(self) -> bool:
        return self.value == EMPTY

    def set_value(self, value: int) -> None:
        if self.given and value != self.solution:
            raise CellStateError(f"Given cell {self.position} must keep its solution value")
        self.value = value

    def mark_given(self) -> None:
        if self.solution is None or self.value != self.solution:
            raise CellStateError(
                f"Cell {self.position} cannot be given: value={self.value} solution={self.solution}"
            )
        self.given = True

    def clear(self) -> None:
        self.given = False
        self.value = EMPTY


@dataclass(frozen=True)
class ConstraintGroup:
    """Positions that must hold each symbol at most once."""

    name: str
    kind: GroupKind
    positions: Tuple[Position, ...]

    def __len__(self) -> int:
        return len(self.positions)

    def is_saturated(
        self,
        values: Mapping[Position, int],
        symbols: Optional[int] = None,
        require_complete: bool = False,
    ) -> bool:
        """True when no symbol repeats inside the group.

        With ``require_complete`` a fully assigned group spanning all
        ``symbols`` must also contain every symbol exactly once.
        """
        seen = set()
        for pos in self.positions:
            value = values.get(pos, EMPTY)
            if value == EMPTY:
                if require_complete:
                    return False
                continue
            if value in seen:
                return False
            seen.add(value)
        if require_complete and symbols is not None and len(self.positions) == symbols:
            return len(seen) == symbols
        return True


@dataclass(frozen=True)
class ComplexityConstraint:
    """Target for one (board type, difficulty level) pair."""

    level: DifficultyLevel
    average_givens: int
    min_score: float
    max_score: float
    max_technique: Technique

    @property
    def spread(self) -> float:
        return self.max_score - self.min_score

    def contains(self, score: float) -> bool:
        return self.min_score <= score <= self.max_score


@dataclass(frozen=True)
class Puzzle:
    """Immutable result of one generation run."""

    board_type: "BoardType"
    level: DifficultyLevel
    solution: Mapping[Position, int]
    givens: FrozenSet[Position]
    saturated: bool = True
    relation: DifficultyRelation = DifficultyRelation.SATURATED
    score: float = 0.0
    hardest_technique: Optional[Technique] = None
    iterations: int = 0
    strategy: str = ""
    validation_messages: List[str] = field(default_factory=list)

    @classmethod
    def assemble(cls, board_type: "BoardType", level: DifficultyLevel,
                 solution: Mapping[Position, int], givens, **kwargs) -> "Puzzle":
        frozen: Dict[Position, int] = dict(solution)
        return cls(
            board_type=board_type,
            level=level,
            solution=MappingProxyType(frozen),
            givens=frozenset(givens),
            **kwargs,
        )

    @property
    def given_count(self) -> int:
        return len(self.givens)

    def value_at(self, position: Position) -> int:
        if position in self.givens:
            return self.solution[position]
        return EMPTY

    def rows(self, show_solution: bool = False) -> List[str]:
        """Render one string per row: symbols, ``.`` for empty, space for holes."""
        lines = []
        for r in range(self.board_type.rows):
            chars = []
            for c in range(self.board_type.cols):
                pos = Position(r, c)
                if pos not in self.solution:
                    chars.append(" ")
                elif show_solution or pos in self.givens:
                    chars.append(SYMBOL_CHARS[self.solution[pos]])
                else:
                    chars.append(".")
            lines.append("".join(chars))
        return lines
