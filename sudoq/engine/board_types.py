"""Catalog of built-in board types."""

from __future__ import annotations

from typing import Callable, Dict, List, Sequence, Tuple

from ..core.constants import DifficultyLevel, GroupKind
from ..core.exceptions import BoardTypeError
from ..core.models import ConstraintGroup, Position
from .board import BoardType
from .complexity import build_complexity_table, profiles_up_to


def _rows_and_columns(rows: int, cols: int, offset: Tuple[int, int] = (0, 0), prefix: str = "") -> List[ConstraintGroup]:
    top, left = offset
    groups = [
        ConstraintGroup(f"{prefix}row{r}", GroupKind.ROW,
                        tuple(Position(top + r, left + c) for c in range(cols)))
        for r in range(rows)
    ]
    groups += [
        ConstraintGroup(f"{prefix}col{c}", GroupKind.COLUMN,
                        tuple(Position(top + r, left + c) for r in range(rows)))
        for c in range(cols)
    ]
    return groups


def _blocks(size: int, height: int, width: int, offset: Tuple[int, int] = (0, 0), prefix: str = "") -> List[ConstraintGroup]:
    top, left = offset
    groups = []
    for band in range(size // height):
        for stack in range(size // width):
            positions = tuple(
                Position(top + band * height + r, left + stack * width + c)
                for r in range(height)
                for c in range(width)
            )
            groups.append(ConstraintGroup(f"{prefix}block{band}{stack}", GroupKind.BLOCK, positions))
    return groups


def standard_type(
    height: int,
    width: int,
    name: str = "",
    hardest: DifficultyLevel = DifficultyLevel.INFERNAL,
) -> BoardType:
    """Classic board with ``height`` x ``width`` boxes, offering levels up to ``hardest``."""
    size = height * width
    groups = _rows_and_columns(size, size) + _blocks(size, height, width)
    return BoardType(
        name=name or f"standard_{size}x{size}",
        rows=size,
        cols=size,
        symbols=size,
        groups=tuple(groups),
        box_shape=(height, width),
        complexity=build_complexity_table(size * size, profiles_up_to(hardest)),
    )


def x_sudoku() -> BoardType:
    base = standard_type(3, 3)
    diagonals = (
        ConstraintGroup("diag_main", GroupKind.DIAGONAL, tuple(Position(i, i) for i in range(9))),
        ConstraintGroup("diag_anti", GroupKind.DIAGONAL, tuple(Position(i, 8 - i) for i in range(9))),
    )
    return BoardType(
        name="x_sudoku",
        rows=9,
        cols=9,
        symbols=9,
        groups=base.groups + diagonals,
        box_shape=(3, 3),
    )


def hyper_sudoku() -> BoardType:
    """Standard 9x9 plus four extra windows."""
    base = standard_type(3, 3)
    windows = tuple(
        ConstraintGroup(
            f"window{top}{left}",
            GroupKind.EXTRA,
            tuple(Position(top + r, left + c) for r in range(3) for c in range(3)),
        )
        for top in (1, 5)
        for left in (1, 5)
    )
    return BoardType(
        name="hyper_sudoku",
        rows=9,
        cols=9,
        symbols=9,
        groups=base.groups + windows,
        box_shape=(3, 3),
    )


def layout_type(
    name: str,
    rows: Sequence[str],
    standard_allocation_factor: float = 0.25,
    hardest: DifficultyLevel = DifficultyLevel.INFERNAL,
) -> BoardType:
    """Irregular board whose regions are drawn with letters; ``.`` marks a hole.

    Rows and columns of the drawing become row and column groups; every
    distinct letter becomes a block.
    """
    height = len(rows)
    width = len(rows[0]) if rows else 0
    if any(len(line) != width for line in rows):
        raise BoardTypeError(f"{name}: layout rows must have equal length")
    holes = frozenset(
        Position(r, c) for r, line in enumerate(rows) for c, char in enumerate(line) if char == "."
    )
    regions: Dict[str, List[Position]] = {}
    for r, line in enumerate(rows):
        for c, char in enumerate(line):
            if char != ".":
                regions.setdefault(char, []).append(Position(r, c))
    symbols = max(height, width)
    groups = [
        group for group in _rows_and_columns(height, width)
        if not holes.intersection(group.positions)
    ]
    groups += [
        ConstraintGroup(f"region{letter}", GroupKind.BLOCK, tuple(positions))
        for letter, positions in sorted(regions.items())
    ]
    return BoardType(
        name=name,
        rows=height,
        cols=width,
        symbols=symbols,
        groups=tuple(groups),
        holes=holes,
        standard_allocation_factor=standard_allocation_factor,
        complexity=build_complexity_table(height * width - len(holes), profiles_up_to(hardest)),
    )


SQUIGGLY_6X6_LAYOUT = (
    "AAABBB",
    "CAADBB",
    "CCADDB",
    "ECCFDD",
    "EECFFD",
    "EEEFFF",
)


def squiggly_6x6() -> BoardType:
    return layout_type("squiggly_6x6", SQUIGGLY_6X6_LAYOUT, hardest=DifficultyLevel.DIFFICULT)


SAMURAI_OFFSETS = ((0, 0), (0, 12), (12, 0), (12, 12), (6, 6))


def samurai() -> BoardType:
    """Five overlapping 9x9 grids; the corner blocks of the centre grid are shared."""
    groups: List[ConstraintGroup] = []
    seen = set()
    covered = set()
    for index, offset in enumerate(SAMURAI_OFFSETS):
        prefix = f"g{index}_"
        for group in _rows_and_columns(9, 9, offset, prefix) + _blocks(9, 3, 3, offset, prefix):
            key = frozenset(group.positions)
            covered.update(group.positions)
            if key in seen:
                continue
            seen.add(key)
            groups.append(group)
    holes = frozenset(
        Position(r, c) for r in range(21) for c in range(21) if Position(r, c) not in covered
    )
    return BoardType(
        name="samurai",
        rows=21,
        cols=21,
        symbols=9,
        groups=tuple(groups),
        holes=holes,
        standard_allocation_factor=0.2,
    )


BOARD_TYPES: Dict[str, Callable[[], BoardType]] = {
    "standard_4x4": lambda: standard_type(2, 2, hardest=DifficultyLevel.MEDIUM),
    "standard_6x6": lambda: standard_type(2, 3, hardest=DifficultyLevel.DIFFICULT),
    "standard_9x9": lambda: standard_type(3, 3),
    "standard_16x16": lambda: standard_type(4, 4),
    "x_sudoku": x_sudoku,
    "hyper_sudoku": hyper_sudoku,
    "squiggly_6x6": squiggly_6x6,
    "samurai": samurai,
}

_CACHE: Dict[str, BoardType] = {}


def get_board_type(name: str) -> BoardType:
    """Return the catalog board type called ``name``."""
    if name not in BOARD_TYPES:
        raise BoardTypeError(f"Unknown board type {name!r}; known: {', '.join(sorted(BOARD_TYPES))}")
    if name not in _CACHE:
        _CACHE[name] = BOARD_TYPES[name]()
    return _CACHE[name]
