"""Pretty-print helpers for generated puzzles."""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING

from ..core.constants import EMPTY, SYMBOL_CHARS
from ..core.models import Position

if TYPE_CHECKING:
    from ..core.models import Puzzle


def cell_symbol(puzzle: Puzzle, pos: Position, show_solution: bool = False) -> str:
    if not puzzle.board_type.is_valid(pos):
        return " "
    value = puzzle.solution[pos] if show_solution else puzzle.value_at(pos)
    return "." if value == EMPTY else SYMBOL_CHARS[value]


def format_puzzle(puzzle: Puzzle, show_solution: bool = False) -> str:
    board_type = puzzle.board_type
    width = board_type.cols
    header_cells = [f"{c:>2}" for c in range(width)]
    lines = ["    " + " ".join(header_cells)]
    lines.append("    " + "-" * (3 * width - 1))
    for r in range(board_type.rows):
        row_cells = [cell_symbol(puzzle, Position(r, c), show_solution) for c in range(width)]
        row_render = " ".join(f"{symbol:>2}" for symbol in row_cells)
        lines.append(f"{r:>2} | {row_render}")
    return "\n".join(lines)


def print_puzzle(puzzle: Puzzle, *, label: str | None = None, show_solution: bool = False, stream=None) -> None:
    """Print the puzzle in a human-friendly format."""

    stream = stream or sys.stdout
    if label:
        print(label, file=stream)
    print(format_puzzle(puzzle, show_solution), file=stream)


def print_puzzle_stats(puzzle: Puzzle, *, stream=None) -> None:
    """Print the puzzle followed by its difficulty and validation details."""

    stream = stream or sys.stdout
    print(format_puzzle(puzzle), file=stream)

    board_type = puzzle.board_type
    constraint = board_type.complexity_constraint(puzzle.level)
    print(file=stream)
    print("--- Board ---", file=stream)
    print(f"  Type:          {board_type.name} ({board_type.area} cells, {board_type.symbols} symbols)", file=stream)
    print(f"  Givens:        {puzzle.given_count} ({puzzle.given_count / board_type.area * 100:.0f}%)", file=stream)
    print(f"  Target givens: {constraint.average_givens}", file=stream)

    print(file=stream)
    print("--- Difficulty ---", file=stream)
    print(f"  Level:         {puzzle.level.value}", file=stream)
    print(f"  Score:         {puzzle.score:.1f} (band {constraint.min_score:.1f}-{constraint.max_score:.1f})", file=stream)
    hardest = puzzle.hardest_technique.name.lower() if puzzle.hardest_technique else "-"
    print(f"  Hardest step:  {hardest}", file=stream)
    print(f"  Relation:      {puzzle.relation.name.lower()}", file=stream)
    print(f"  Saturated:     {puzzle.saturated}", file=stream)
    print(f"  Strategy:      {puzzle.strategy} ({puzzle.iterations} iterations)", file=stream)

    if puzzle.validation_messages:
        print(file=stream)
        print("--- Validation ---", file=stream)
        for msg in puzzle.validation_messages:
            print(f"  {msg}", file=stream)
