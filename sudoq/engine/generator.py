"""Generation orchestration.

A request picks a strategy for the board type, then runs it on a worker
thread with its own board, oracle and random source. The finished
:class:`~sudoq.core.models.Puzzle` is handed to the caller's callback.
"""

from __future__ import annotations

import random
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor, wait as wait_futures
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple, Type, Union

from ..core.constants import DifficultyLevel, Technique
from ..core.exceptions import BoardTypeError, InvalidRequestError
from ..core.models import Puzzle
from ..utils.logger import get_logger
from .board import Board, BoardType
from .board_types import get_board_type
from .strategies import FastLatticeStrategy, GenerationStrategy, GenericSearchStrategy
from .synthesizer import is_satisfiable


LOGGER = get_logger(__name__)

PuzzleCallback = Union[Callable[[Puzzle], Any], Any]


@dataclass
class GeneratorConfig:
    max_iterations: int = 2000
    max_fill_steps: int = 20000
    max_fill_rounds: int = 50
    fill_backoff: int = 5
    allocation_divisor: int = 20
    allocation_factor: Optional[int] = None
    transform_rounds: int = 24
    max_workers: Optional[int] = None
    search_timeout: float = 10.0
    technique_weights: Optional[Dict[Technique, int]] = None


class Generator:
    """Accepts generation requests and delivers puzzles asynchronously."""

    def __init__(self, config: Optional[GeneratorConfig] = None, executor: Optional[Executor] = None) -> None:
        self.config = config or GeneratorConfig()
        self._executor = executor
        self._owns_executor = executor is None
        self._lock = threading.Lock()
        self._next_rng: Optional[random.Random] = None
        self._futures: List[Future] = []

    # ------------------------------------------------------------------
    # Public entrypoints
    # ------------------------------------------------------------------
    def set_random(self, rng: random.Random) -> None:
        """Use ``rng`` for the next request only; later requests get a fresh source."""
        with self._lock:
            self._next_rng = rng

    def generate(
        self,
        board_type: Union[BoardType, str, None],
        level: Union[DifficultyLevel, str, None],
        callback: Optional[PuzzleCallback],
    ) -> bool:
        """Start generating a puzzle; False when the request is rejected."""
        if callback is None:
            LOGGER.warning("Rejected request without callback")
            return False
        try:
            resolved_type, resolved_level = self._resolve_request(board_type, level)
        except InvalidRequestError as exc:
            LOGGER.warning("Rejected request: %s", exc)
            return False

        rng = self._take_rng()
        future = self._get_executor().submit(self._run, resolved_type, resolved_level, rng, callback)
        with self._lock:
            self._futures.append(future)
        future.add_done_callback(self._forget)
        LOGGER.info("Accepted %s request on %s", resolved_level.value, resolved_type.name)
        return True

    def generate_sync(
        self,
        board_type: Union[BoardType, str],
        level: Union[DifficultyLevel, str],
        rng: Optional[random.Random] = None,
    ) -> Puzzle:
        """Run one request on the calling thread and return the puzzle."""
        resolved_type, resolved_level = self._resolve_request(board_type, level)
        return self._build(resolved_type, resolved_level, rng or self._take_rng())

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until every accepted request finished; True if none is pending."""
        with self._lock:
            pending = list(self._futures)
        _, not_done = wait_futures(pending, timeout=timeout)
        with self._lock:
            self._futures = [future for future in self._futures if not future.done()]
        return not not_done

    def shutdown(self, wait: bool = True) -> None:
        if self._executor is not None and self._owns_executor:
            self._executor.shutdown(wait=wait)
            self._executor = None

    def __enter__(self) -> "Generator":
        return self

    def __exit__(self, *exc_info) -> None:
        self.shutdown(wait=True)

    @staticmethod
    def choose_strategy(board_type: BoardType) -> Type[GenerationStrategy]:
        if board_type.has_lattice_construction:
            return FastLatticeStrategy
        return GenericSearchStrategy

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _resolve_request(
        self,
        board_type: Union[BoardType, str, None],
        level: Union[DifficultyLevel, str, None],
    ) -> Tuple[BoardType, DifficultyLevel]:
        if board_type is None:
            raise InvalidRequestError("board type is missing")
        if isinstance(board_type, str):
            try:
                board_type = get_board_type(board_type)
            except BoardTypeError as exc:
                raise InvalidRequestError(str(exc)) from exc
        if not isinstance(board_type, BoardType):
            raise InvalidRequestError(f"unsupported board type {board_type!r}")

        if isinstance(level, str) and not isinstance(level, DifficultyLevel):
            try:
                level = DifficultyLevel(level.lower())
            except ValueError as exc:
                raise InvalidRequestError(f"unknown level {level!r}") from exc
        if not isinstance(level, DifficultyLevel):
            raise InvalidRequestError(f"unsupported level {level!r}")
        if level is DifficultyLevel.ARBITRARY:
            raise InvalidRequestError("arbitrary is not a generation target")
        if level not in board_type.complexity:
            raise InvalidRequestError(f"{board_type.name} does not offer {level.value} puzzles")
        if not is_satisfiable(board_type, self.config.search_timeout):
            raise InvalidRequestError(f"{board_type.name} has no solution")
        return board_type, level

    def _forget(self, future: Future) -> None:
        with self._lock:
            if future in self._futures:
                self._futures.remove(future)

    def _take_rng(self) -> random.Random:
        with self._lock:
            rng, self._next_rng = self._next_rng, None
        return rng or random.Random()

    def _get_executor(self) -> Executor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self.config.max_workers,
                thread_name_prefix="sudoq",
            )
        return self._executor

    def _build(self, board_type: BoardType, level: DifficultyLevel, rng: random.Random) -> Puzzle:
        board = Board(board_type, level)
        strategy = self.choose_strategy(board_type)(board, rng, self.config)
        puzzle = strategy.run()
        if puzzle.validation_messages:
            LOGGER.error("Puzzle failed integrity checks: %s", puzzle.validation_messages)
        LOGGER.info(
            "Generated %s puzzle on %s: %d givens, score %.1f, saturated=%s",
            level.value, board_type.name, puzzle.given_count, puzzle.score, puzzle.saturated,
        )
        return puzzle

    def _run(
        self,
        board_type: BoardType,
        level: DifficultyLevel,
        rng: random.Random,
        callback: PuzzleCallback,
    ) -> Puzzle:
        try:
            puzzle = self._build(board_type, level, rng)
        except Exception:
            LOGGER.exception("Generation failed on %s", board_type.name)
            raise
        self._deliver(callback, puzzle)
        return puzzle

    @staticmethod
    def _deliver(callback: PuzzleCallback, puzzle: Puzzle) -> None:
        handler = getattr(callback, "on_generated", callback)
        try:
            handler(puzzle)
        except Exception:
            LOGGER.exception("Puzzle callback raised")
