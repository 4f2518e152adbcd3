"""Reference solution synthesis."""

from __future__ import annotations

import random
from functools import lru_cache
from typing import TYPE_CHECKING, Dict

from ..core.exceptions import BoardTypeError, SudoqError
from ..core.models import Position
from ..utils.logger import get_logger
from .solver import solve_board
from .transformer import RelabelSymbols, Transformer

if TYPE_CHECKING:
    from .board import BoardType

LOGGER = get_logger(__name__)


def lattice_solution(board_type: "BoardType") -> Dict[Position, int]:
    """Closed-form solution for box-structured boards.

    Row ``r`` is the base row shifted by ``w * (r % h) + r // h`` so that
    every row, column and ``h`` x ``w`` box holds each symbol once.
    """
    if not board_type.has_lattice_construction:
        raise BoardTypeError(f"{board_type.name} has no lattice construction")
    height, width = board_type.box_shape
    symbols = board_type.symbols
    return {
        pos: (width * (pos.row % height) + pos.row // height + pos.col) % symbols
        for pos in board_type.positions
    }


def synthesize_solution(board_type: "BoardType", rng: random.Random, rounds: int = 24) -> Dict[Position, int]:
    solution = Transformer(board_type).transform(lattice_solution(board_type), rng, rounds)
    LOGGER.debug("Synthesized lattice solution for %s", board_type.name)
    return solution


def solve_from_scratch(
    board_type: "BoardType",
    rng: random.Random,
    timeout: float = 30.0,
    attempts: int = 3,
) -> Dict[Position, int]:
    """Solve the empty board with CP-SAT, then relabel symbols at random.

    A search that runs out of time is retried with twice the time limit.
    Raises BoardTypeError when the board type provably has no solution.
    """
    for attempt in range(1, attempts + 1):
        result = solve_board(board_type, {}, limit=1, seed=rng.randrange(1 << 30), timeout=timeout)
        if result.solutions:
            permutation = list(range(board_type.symbols))
            rng.shuffle(permutation)
            return RelabelSymbols(permutation).apply(result.solutions[0])
        if result.complete:
            raise BoardTypeError(f"{board_type.name} has no solution")
        LOGGER.warning(
            "Search on empty %s timed out (attempt %d/%d, %.1fs)",
            board_type.name, attempt, attempts, timeout,
        )
        timeout *= 2
    raise SudoqError(f"no solution for {board_type.name} within {attempts} attempt(s)")


@lru_cache(maxsize=None)
def is_satisfiable(board_type: "BoardType", timeout: float = 30.0) -> bool:
    """Whether the empty board of ``board_type`` can be filled at all.

    Box-structured types are filled by construction. A search that times out
    counts as satisfiable; only a proof of infeasibility returns False.
    """
    if board_type.has_lattice_construction:
        return True
    result = solve_board(board_type, {}, limit=1, timeout=timeout)
    if not result.complete:
        LOGGER.warning("Satisfiability of %s undecided after %.1fs", board_type.name, timeout)
        return True
    return bool(result.solutions)
