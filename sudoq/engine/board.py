"""Board topology and mutable board state."""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import cached_property
from typing import Dict, FrozenSet, List, Mapping, Optional, Sequence, Tuple

from ..core.constants import EMPTY, SYMBOL_CHARS, DifficultyLevel, GroupKind
from ..core.exceptions import BoardError, BoardTypeError
from ..core.models import Cell, ComplexityConstraint, ConstraintGroup, Position, Puzzle
from ..utils.bits import full_mask
from ..utils.logger import get_logger
from .complexity import build_complexity_table


LOGGER = get_logger(__name__)

LATTICE_KINDS = frozenset({GroupKind.ROW, GroupKind.COLUMN, GroupKind.BLOCK})


@dataclass(frozen=True)
class BoardType:
    """Immutable board topology shared by every board of this type."""

    name: str
    rows: int
    cols: int
    symbols: int
    groups: Tuple[ConstraintGroup, ...]
    holes: FrozenSet[Position] = frozenset()
    standard_allocation_factor: float = 0.25
    box_shape: Optional[Tuple[int, int]] = None
    complexity: Mapping[DifficultyLevel, ComplexityConstraint] = field(
        default_factory=dict, compare=False, repr=False
    )

    def __post_init__(self) -> None:
        if self.rows <= 0 or self.cols <= 0 or self.symbols <= 0:
            raise BoardTypeError(f"{self.name}: dimensions and symbol count must be positive")
        if self.symbols > len(SYMBOL_CHARS):
            raise BoardTypeError(f"{self.name}: at most {len(SYMBOL_CHARS)} symbols are supported")
        valid = self.position_set
        for group in self.groups:
            if len(group) > self.symbols:
                raise BoardTypeError(
                    f"{self.name}: group {group.name} has {len(group)} cells for {self.symbols} symbols"
                )
            for pos in group.positions:
                if pos not in valid:
                    raise BoardTypeError(f"{self.name}: group {group.name} uses invalid position {pos}")
        if not self.complexity:
            object.__setattr__(self, "complexity", build_complexity_table(self.area))

    # ------------------------------------------------------------------
    # Derived topology
    # ------------------------------------------------------------------
    @cached_property
    def positions(self) -> Tuple[Position, ...]:
        return tuple(
            Position(r, c)
            for r in range(self.rows)
            for c in range(self.cols)
            if Position(r, c) not in self.holes
        )

    @cached_property
    def position_set(self) -> FrozenSet[Position]:
        return frozenset(self.positions)

    @property
    def area(self) -> int:
        return len(self.positions)

    @property
    def full_mask(self) -> int:
        return full_mask(self.symbols)

    @cached_property
    def groups_of(self) -> Dict[Position, Tuple[int, ...]]:
        """Indices into ``groups`` for every position."""
        owners: Dict[Position, List[int]] = {pos: [] for pos in self.positions}
        for index, group in enumerate(self.groups):
            for pos in group.positions:
                owners[pos].append(index)
        return {pos: tuple(indices) for pos, indices in owners.items()}

    @cached_property
    def peers(self) -> Dict[Position, Tuple[Position, ...]]:
        result: Dict[Position, Tuple[Position, ...]] = {}
        for pos in self.positions:
            seen = set()
            for index in self.groups_of[pos]:
                seen.update(self.groups[index].positions)
            seen.discard(pos)
            result[pos] = tuple(sorted(seen))
        return result

    @cached_property
    def group_intersections(self) -> Tuple[Tuple[int, int, FrozenSet[Position]], ...]:
        """Ordered group pairs sharing at least two cells."""
        found = []
        sets = [frozenset(group.positions) for group in self.groups]
        for i, first in enumerate(sets):
            for j, second in enumerate(sets):
                if i == j:
                    continue
                common = first & second
                if len(common) >= 2 and common != first:
                    found.append((i, j, common))
        return tuple(found)

    @property
    def has_lattice_construction(self) -> bool:
        if self.box_shape is None or self.holes:
            return False
        height, width = self.box_shape
        if not (self.rows == self.cols == self.symbols == height * width):
            return False
        return all(group.kind in LATTICE_KINDS for group in self.groups)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def is_valid(self, pos: Position) -> bool:
        return pos in self.position_set

    def complexity_constraint(self, level: DifficultyLevel) -> ComplexityConstraint:
        try:
            return self.complexity[level]
        except KeyError as exc:
            raise BoardTypeError(f"{self.name}: no complexity constraint for {level}") from exc

    def check_solution(self, solution: Mapping[Position, int]) -> bool:
        """True when ``solution`` assigns every position and satisfies all groups."""
        if set(solution) != self.position_set:
            return False
        if any(not 0 <= value < self.symbols for value in solution.values()):
            return False
        return all(
            group.is_saturated(solution, self.symbols, require_complete=True)
            for group in self.groups
        )


class Board:
    """Mutable per-cell state of one board being generated."""

    def __init__(self, board_type: BoardType, level: DifficultyLevel = DifficultyLevel.ARBITRARY) -> None:
        self.board_type = board_type
        self.level = level
        self.cells: Dict[Position, Cell] = {pos: Cell(pos) for pos in board_type.positions}

    @classmethod
    def from_rows(
        cls,
        board_type: BoardType,
        rows: Sequence[str],
        level: DifficultyLevel = DifficultyLevel.ARBITRARY,
    ) -> "Board":
        """Parse rows of symbols; ``.`` or ``0`` marks an empty cell."""
        if len(rows) != board_type.rows:
            raise BoardError(f"Expected {board_type.rows} rows, got {len(rows)}")
        board = cls(board_type, level)
        for r, line in enumerate(rows):
            if len(line) != board_type.cols:
                raise BoardError(f"Row {r} has {len(line)} cells, expected {board_type.cols}")
            for c, char in enumerate(line):
                pos = Position(r, c)
                if not board_type.is_valid(pos) or char in ".0 ":
                    continue
                symbol = SYMBOL_CHARS.find(char.upper())
                if not 0 <= symbol < board_type.symbols:
                    raise BoardError(f"Unknown symbol {char!r} at {pos}")
                board.set_value(pos, symbol)
        return board

    @classmethod
    def from_puzzle(cls, puzzle: Puzzle) -> "Board":
        board = cls(puzzle.board_type, puzzle.level)
        board.load_solution(puzzle.solution, fill=False)
        for pos in puzzle.givens:
            board.set_given(pos)
        return board

    @property
    def complexity_constraint(self) -> ComplexityConstraint:
        return self.board_type.complexity_constraint(self.level)

    # ------------------------------------------------------------------
    # Cell access
    # ------------------------------------------------------------------
    def cell(self, pos: Position) -> Cell:
        try:
            return self.cells[pos]
        except KeyError as exc:
            raise BoardError(f"{pos} is not a cell of {self.board_type.name}") from exc

    def value(self, pos: Position) -> int:
        return self.cell(pos).value

    def set_value(self, pos: Position, value: int) -> None:
        if value != EMPTY and not 0 <= value < self.board_type.symbols:
            raise BoardError(f"Symbol {value} out of range at {pos}")
        self.cell(pos).set_value(value)

    def set_given(self, pos: Position) -> None:
        """Fill ``pos`` with its solution symbol and fix it as a clue."""
        cell = self.cell(pos)
        if cell.solution is not None:
            cell.value = cell.solution
        cell.mark_given()

    def clear(self, pos: Position) -> None:
        self.cell(pos).clear()

    def load_solution(self, solution: Mapping[Position, int], fill: bool = True) -> None:
        for pos, cell in self.cells.items():
            cell.given = False
            cell.solution = solution[pos]
            if fill:
                cell.value = cell.solution
                cell.given = True
            else:
                cell.value = EMPTY

    # ------------------------------------------------------------------
    # Bulk views
    # ------------------------------------------------------------------
    def values(self) -> Dict[Position, int]:
        return {pos: cell.value for pos, cell in self.cells.items()}

    def empty_positions(self) -> List[Position]:
        return [pos for pos, cell in self.cells.items() if cell.is_empty()]

    def filled_positions(self) -> List[Position]:
        return [pos for pos, cell in self.cells.items() if not cell.is_empty()]

    def given_positions(self) -> List[Position]:
        return [pos for pos, cell in self.cells.items() if cell.given]

    @property
    def filled_count(self) -> int:
        return sum(1 for cell in self.cells.values() if not cell.is_empty())

    def is_complete(self) -> bool:
        return all(not cell.is_empty() for cell in self.cells.values())
