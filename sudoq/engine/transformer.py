"""Solution-preserving symmetries used to disguise a synthesized solution."""

from __future__ import annotations

import random
from typing import TYPE_CHECKING, Dict, List, Mapping, Optional, Sequence, Tuple

from ..core.models import Position, Puzzle
from ..utils.logger import get_logger

if TYPE_CHECKING:
    from .board import BoardType

LOGGER = get_logger(__name__)


class Transformation:
    """Identity; subclasses override one or both mappings."""

    name = "identity"

    def map_position(self, pos: Position) -> Position:
        return pos

    def map_symbol(self, symbol: int) -> int:
        return symbol

    def apply(self, mapping: Mapping[Position, int]) -> Dict[Position, int]:
        return {self.map_position(pos): self.map_symbol(value) for pos, value in mapping.items()}

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class RelabelSymbols(Transformation):
    name = "relabel"

    def __init__(self, permutation: Sequence[int]) -> None:
        self.permutation = tuple(permutation)

    def map_symbol(self, symbol: int) -> int:
        return self.permutation[symbol]

    def __repr__(self) -> str:
        return f"RelabelSymbols({list(self.permutation)})"


class SwapRows(Transformation):
    name = "swap_rows"

    def __init__(self, first: int, second: int) -> None:
        self.first, self.second = first, second

    def map_position(self, pos: Position) -> Position:
        if pos.row == self.first:
            return Position(self.second, pos.col)
        if pos.row == self.second:
            return Position(self.first, pos.col)
        return pos

    def __repr__(self) -> str:
        return f"SwapRows({self.first}, {self.second})"


class SwapColumns(Transformation):
    name = "swap_columns"

    def __init__(self, first: int, second: int) -> None:
        self.first, self.second = first, second

    def map_position(self, pos: Position) -> Position:
        if pos.col == self.first:
            return Position(pos.row, self.second)
        if pos.col == self.second:
            return Position(pos.row, self.first)
        return pos

    def __repr__(self) -> str:
        return f"SwapColumns({self.first}, {self.second})"


class SwapBands(Transformation):
    """Swap two horizontal bands of ``height`` rows."""

    name = "swap_bands"

    def __init__(self, first: int, second: int, height: int) -> None:
        self.first, self.second, self.height = first, second, height

    def map_position(self, pos: Position) -> Position:
        band, offset = divmod(pos.row, self.height)
        if band == self.first:
            return Position(self.second * self.height + offset, pos.col)
        if band == self.second:
            return Position(self.first * self.height + offset, pos.col)
        return pos

    def __repr__(self) -> str:
        return f"SwapBands({self.first}, {self.second}, height={self.height})"


class SwapStacks(Transformation):
    """Swap two vertical stacks of ``width`` columns."""

    name = "swap_stacks"

    def __init__(self, first: int, second: int, width: int) -> None:
        self.first, self.second, self.width = first, second, width

    def map_position(self, pos: Position) -> Position:
        stack, offset = divmod(pos.col, self.width)
        if stack == self.first:
            return Position(pos.row, self.second * self.width + offset)
        if stack == self.second:
            return Position(pos.row, self.first * self.width + offset)
        return pos

    def __repr__(self) -> str:
        return f"SwapStacks({self.first}, {self.second}, width={self.width})"


class Rotate(Transformation):
    """Quarter turn clockwise on a ``size`` x ``size`` board."""

    name = "rotate"

    def __init__(self, size: int) -> None:
        self.size = size

    def map_position(self, pos: Position) -> Position:
        return Position(pos.col, self.size - 1 - pos.row)


class Transpose(Transformation):
    name = "transpose"

    def map_position(self, pos: Position) -> Position:
        return Position(pos.col, pos.row)


class MirrorRows(Transformation):
    """Flip top to bottom."""

    name = "mirror_rows"

    def __init__(self, rows: int) -> None:
        self.rows = rows

    def map_position(self, pos: Position) -> Position:
        return Position(self.rows - 1 - pos.row, pos.col)


class MirrorColumns(Transformation):
    """Flip left to right."""

    name = "mirror_columns"

    def __init__(self, cols: int) -> None:
        self.cols = cols

    def map_position(self, pos: Position) -> Position:
        return Position(pos.row, self.cols - 1 - pos.col)


class Transformer:
    """Draw and apply random symmetries of one board type.

    Box-structured types get the full set of row, column, band and stack
    permutations plus mirrors; rotation and transposition only when boxes
    are square. Every other type is limited to symbol relabeling. Each
    result is still verified against the board type before it is accepted.
    """

    def __init__(self, board_type: "BoardType") -> None:
        self.board_type = board_type
        self.kinds: List[str] = ["relabel"]
        if board_type.has_lattice_construction:
            height, width = board_type.box_shape
            self.kinds += ["swap_rows", "swap_columns", "swap_bands", "swap_stacks",
                           "mirror_rows", "mirror_columns"]
            if height == width:
                self.kinds += ["rotate", "transpose"]

    def random_transformation(self, rng: random.Random) -> Transformation:
        board_type = self.board_type
        kind = rng.choice(self.kinds)
        if kind == "relabel":
            permutation = list(range(board_type.symbols))
            rng.shuffle(permutation)
            return RelabelSymbols(permutation)
        if kind == "mirror_rows":
            return MirrorRows(board_type.rows)
        if kind == "mirror_columns":
            return MirrorColumns(board_type.cols)
        if kind == "rotate":
            return Rotate(board_type.rows)
        if kind == "transpose":
            return Transpose()

        height, width = board_type.box_shape
        if kind == "swap_rows":
            band = rng.randrange(board_type.rows // height)
            first, second = rng.sample(range(height), 2) if height > 1 else (0, 0)
            return SwapRows(band * height + first, band * height + second)
        if kind == "swap_columns":
            stack = rng.randrange(board_type.cols // width)
            first, second = rng.sample(range(width), 2) if width > 1 else (0, 0)
            return SwapColumns(stack * width + first, stack * width + second)
        if kind == "swap_bands":
            bands = board_type.rows // height
            first, second = rng.sample(range(bands), 2) if bands > 1 else (0, 0)
            return SwapBands(first, second, height)
        stacks = board_type.cols // width
        first, second = rng.sample(range(stacks), 2) if stacks > 1 else (0, 0)
        return SwapStacks(first, second, width)

    def apply(
        self, solution: Mapping[Position, int], transformation: Transformation
    ) -> Optional[Dict[Position, int]]:
        """Apply one transformation; None when the result breaks a group."""
        candidate = transformation.apply(solution)
        if not self.board_type.check_solution(candidate):
            LOGGER.debug("Transformer: %r rejected on %s", transformation, self.board_type.name)
            return None
        return candidate

    def transform_with_history(
        self, solution: Mapping[Position, int], rng: random.Random, rounds: int
    ) -> Tuple[Dict[Position, int], List[Transformation]]:
        current = dict(solution)
        applied: List[Transformation] = []
        for _ in range(rounds):
            transformation = self.random_transformation(rng)
            candidate = self.apply(current, transformation)
            if candidate is None:
                continue
            current = candidate
            applied.append(transformation)
        LOGGER.debug("Transformer: %d/%d transformation(s) applied", len(applied), rounds)
        return current, applied

    def transform(self, solution: Mapping[Position, int], rng: random.Random, rounds: int = 24) -> Dict[Position, int]:
        return self.transform_with_history(solution, rng, rounds)[0]


def transform_puzzle(puzzle: Puzzle, rng: random.Random, rounds: int = 24) -> Puzzle:
    """Return an equivalent puzzle with the same clue count and difficulty."""
    transformer = Transformer(puzzle.board_type)
    solution, applied = transformer.transform_with_history(puzzle.solution, rng, rounds)
    givens = set(puzzle.givens)
    for transformation in applied:
        givens = {transformation.map_position(pos) for pos in givens}
    return Puzzle.assemble(
        puzzle.board_type,
        puzzle.level,
        solution,
        givens,
        saturated=puzzle.saturated,
        relation=puzzle.relation,
        score=puzzle.score,
        hardest_technique=puzzle.hardest_technique,
        iterations=puzzle.iterations,
        strategy=puzzle.strategy,
        validation_messages=list(puzzle.validation_messages),
    )
