"""Deterministic integrity checks for generated puzzles."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from ..core.exceptions import PuzzleValidationError
from ..core.models import Puzzle
from ..utils.logger import get_logger


LOGGER = get_logger(__name__)


@dataclass
class ValidationResult:
    ok: bool
    messages: List[str]


class PuzzleValidator:
    """Runs deterministic validation over a finished puzzle."""

    def validate(self, puzzle: Puzzle) -> ValidationResult:
        messages: List[str] = []
        try:
            self._check_solution_complete(puzzle)
            self._check_symbols_in_range(puzzle)
            self._check_groups(puzzle)
            self._check_givens(puzzle)
        except PuzzleValidationError as exc:
            messages.append(str(exc))
            LOGGER.error("Validation failed: %s", exc)
            return ValidationResult(ok=False, messages=messages)
        return ValidationResult(ok=True, messages=[])

    def _check_solution_complete(self, puzzle: Puzzle) -> None:
        board_type = puzzle.board_type
        missing = [pos for pos in board_type.positions if pos not in puzzle.solution]
        if missing:
            raise PuzzleValidationError(f"Solution misses {len(missing)} cell(s), first at {missing[0]}")
        extra = [pos for pos in puzzle.solution if not board_type.is_valid(pos)]
        if extra:
            raise PuzzleValidationError(f"Solution assigns non-cell {extra[0]}")

    def _check_symbols_in_range(self, puzzle: Puzzle) -> None:
        symbols = puzzle.board_type.symbols
        for pos, value in puzzle.solution.items():
            if not 0 <= value < symbols:
                raise PuzzleValidationError(f"Symbol {value} out of range at {pos}")

    def _check_groups(self, puzzle: Puzzle) -> None:
        board_type = puzzle.board_type
        for group in board_type.groups:
            if not group.is_saturated(puzzle.solution, board_type.symbols, require_complete=True):
                raise PuzzleValidationError(f"Group {group.name} repeats or misses a symbol")

    def _check_givens(self, puzzle: Puzzle) -> None:
        for pos in puzzle.givens:
            if not puzzle.board_type.is_valid(pos):
                raise PuzzleValidationError(f"Given at non-cell {pos}")
        if not puzzle.givens:
            raise PuzzleValidationError("Puzzle has no givens")
