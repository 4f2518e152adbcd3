"""Given-cell search: turn a full solution into a puzzle of the requested level.

Both strategies share one calibration loop. The oracle rates the current
givens, and the strategy removes clues when the puzzle is too easy and adds
them back when it is too hard or ambiguous. Ambiguity is repaired with a cell
on which two completions disagree; a removal that overshoots is undone. Givens
shown to be needed are locked until every given is locked, at which point the
search reopens a few random cells and starts digging again.

The strategies differ in how the reference solution is obtained and in how
large each adjustment step is.
"""

from __future__ import annotations

import dataclasses
import random
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, List, Optional, Set

from ..core.constants import DifficultyLevel, DifficultyRelation
from ..core.models import Position, Puzzle
from ..utils.bits import cardinality
from ..utils.logger import get_logger
from .board import Board
from .oracle import DifficultyOracle
from .synthesizer import solve_from_scratch, synthesize_solution
from .validator import PuzzleValidator

if TYPE_CHECKING:
    from .generator import GeneratorConfig

LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class StepPolicy:
    """Number of givens removed or added per oracle verdict."""

    far_remove: int
    near_remove: int
    far_add: int
    near_add: int
    invalid_add: int


class GenerationStrategy:
    """Base class; subclasses provide ``_prepare`` and a :class:`StepPolicy`."""

    name = "base"

    def __init__(self, board: Board, rng: random.Random, config: "GeneratorConfig") -> None:
        self.board = board
        self.board_type = board.board_type
        self.rng = rng
        self.config = config
        self.constraint = board.complexity_constraint
        self.oracle = DifficultyOracle(
            board,
            weights=config.technique_weights,
            search_timeout=config.search_timeout,
        )
        self.solution: Dict[Position, int] = {}
        self.given: List[Position] = []
        self.free: List[Position] = []
        self.policy = StepPolicy(1, 1, 1, 1, 1)
        self.iterations = 0
        self.locked: Set[Position] = set()
        self.last_removed: List[Position] = []
        self.single_steps = False

    def run(self) -> Puzzle:
        LOGGER.info(
            "%s: generating %s puzzle on %s (area=%d, target givens=%d)",
            self.name, self.board.level.value, self.board_type.name,
            self.board_type.area, self.constraint.average_givens,
        )
        self._prepare()
        saturated = self._calibrate()
        return self._assemble(saturated)

    def _prepare(self) -> None:
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Given bookkeeping
    # ------------------------------------------------------------------
    def _load_full_board(self) -> None:
        self.board.load_solution(self.solution, fill=True)
        self.given = list(self.board_type.positions)
        self.free = []
        self.oracle.invalidate()

    def _clear(self, pos: Position) -> None:
        self.board.clear(pos)
        self.given.remove(pos)
        self.free.append(pos)
        self.oracle.invalidate()

    def _restore(self, pos: Position) -> None:
        self.board.set_given(pos)
        self.free.remove(pos)
        self.given.append(pos)
        self.oracle.invalidate()

    def _pick_free(self) -> Optional[Position]:
        if not self.free:
            return None
        return self.rng.choice(self.free)

    def remove_givens(self, count: int) -> int:
        """Clear up to ``count`` unlocked givens, always leaving one given on the board."""
        removable = [pos for pos in self.given if pos not in self.locked]
        count = min(count, len(removable), len(self.given) - 1)
        batch = self.rng.sample(removable, count) if count > 0 else []
        for pos in batch:
            self._clear(pos)
        self.last_removed = batch
        return len(batch)

    def add_givens(self, count: int) -> int:
        added = 0
        for _ in range(count):
            pos = self._pick_free()
            if pos is None:
                break
            self._restore(pos)
            added += 1
        return added

    def repair_ambiguity(self) -> int:
        """Restore one cell on which two completions of the board disagree.

        Cells from the last removal are preferred. The restored cell is locked,
        since the current givens need it. Without ambiguity information the
        policy's ``invalid_add`` cells are restored instead.
        """
        free = set(self.free)
        differing = [pos for pos in self.oracle.ambiguous if pos in free]
        if not differing:
            self.last_removed = []
            return self.add_givens(self.policy.invalid_add)
        recent = [pos for pos in differing if pos in self.last_removed]
        pos = self.rng.choice(recent or differing)
        self._restore(pos)
        self.locked.add(pos)
        if pos in self.last_removed:
            self.last_removed.remove(pos)
        return 1

    def undo_removal(self, count: int) -> int:
        """Put back the cells cleared by the last removal, or ``count`` free cells."""
        batch, self.last_removed = self.last_removed, []
        if not batch:
            return self.add_givens(count)
        free = set(self.free)
        restored = [pos for pos in batch if pos in free]
        for pos in restored:
            self._restore(pos)
        if len(batch) == 1:
            self.locked.update(batch)
        else:
            self.single_steps = True
        return len(restored)

    def _reopen(self) -> None:
        LOGGER.debug("%s: every given is locked; reopening %d cell(s)", self.name, self.policy.far_add)
        self.locked.clear()
        self.last_removed = []
        self.single_steps = False
        self.add_givens(self.policy.far_add)

    # ------------------------------------------------------------------
    # Calibration
    # ------------------------------------------------------------------
    def _validate(self) -> DifficultyRelation:
        return self.oracle.validate(self.solution, cross_check=True)

    def _act(self, relation: DifficultyRelation) -> None:
        policy = self.policy
        if relation.is_easy:
            count = policy.far_remove if relation.is_far and not self.single_steps else policy.near_remove
            if not self.remove_givens(count):
                self._reopen()
        elif relation.is_hard:
            self.undo_removal(policy.far_add if relation.is_far else policy.near_add)
        elif relation is DifficultyRelation.INVALID:
            self.repair_ambiguity()

    def _calibrate(self) -> bool:
        """Adjust givens until the oracle reports saturation or the budget runs out."""
        for iteration in range(1, self.config.max_iterations + 1):
            self.iterations = iteration
            relation = self._validate()
            LOGGER.debug(
                "%s: iteration %d givens=%d relation=%s score=%.1f",
                self.name, iteration, len(self.given), relation.name, self.oracle.score,
            )
            if relation is DifficultyRelation.SATURATED:
                LOGGER.info(
                    "%s: saturated after %d iteration(s) with %d givens (score %.1f)",
                    self.name, iteration, len(self.given), self.oracle.score,
                )
                return True
            self._act(relation)

        LOGGER.warning(
            "%s: no saturation within %d iterations; delivering closest valid puzzle",
            self.name, self.config.max_iterations,
        )
        while self._validate() is DifficultyRelation.INVALID and self.free:
            self.repair_ambiguity()
        return False

    def _assemble(self, saturated: bool) -> Puzzle:
        puzzle = Puzzle.assemble(
            self.board_type,
            self.board.level,
            self.solution,
            self.board.given_positions(),
            saturated=saturated,
            relation=self.oracle.relation,
            score=self.oracle.score,
            hardest_technique=self.oracle.hardest,
            iterations=self.iterations,
            strategy=self.name,
        )
        result = PuzzleValidator().validate(puzzle)
        return dataclasses.replace(puzzle, validation_messages=result.messages)


class FastLatticeStrategy(GenerationStrategy):
    """Box-structured boards: closed-form solution, transformed, then thinned out."""

    name = "fast_lattice"

    def __init__(self, board: Board, rng: random.Random, config: "GeneratorConfig") -> None:
        super().__init__(board, rng, config)
        self.protected: Set[Position] = set()

    def _prepare(self) -> None:
        self.solution = synthesize_solution(self.board_type, self.rng, self.config.transform_rounds)
        self._load_full_board()
        seeded = self._seed_free_cells()
        relaxed = self._relax()
        self.protected = set(seeded) | set(relaxed)
        LOGGER.debug(
            "%s: seeded %d and relaxed %d cell(s), %d givens left",
            self.name, len(seeded), len(relaxed), len(self.given),
        )

        factor = self.config.allocation_factor or max(1, self.board_type.area // self.config.allocation_divisor)
        self.policy = StepPolicy(
            far_remove=max(1, factor // 2),
            near_remove=1,
            far_add=factor,
            near_add=1,
            invalid_add=factor,
        )

    def _forced_after_clear(self, pos: Position) -> bool:
        """Clear ``pos`` and keep it cleared only if its symbol stays forced."""
        self._clear(pos)
        if cardinality(self.oracle.get_current_candidates(pos)) == 1:
            return True
        self._restore(pos)
        return False

    def _seed_free_cells(self) -> List[Position]:
        """One pass over the groups: open one cell in every fully assigned group."""
        removed = []
        for group in self.board_type.groups:
            if any(self.board.cell(pos).is_empty() for pos in group.positions):
                continue
            pos = self.rng.choice(group.positions)
            if self._forced_after_clear(pos):
                removed.append(pos)
        return removed

    def _relax(self) -> List[Position]:
        removed = []
        attempts = len(self.given)
        while attempts > 0 and len(self.given) > self.constraint.average_givens:
            attempts -= 1
            pos = self.rng.choice(self.given)
            if self._forced_after_clear(pos):
                removed.append(pos)
        return removed

    def _pick_free(self) -> Optional[Position]:
        if not self.free:
            return None
        open_cells = [pos for pos in self.free if pos not in self.protected]
        return self.rng.choice(open_cells or self.free)


class GenericSearchStrategy(GenerationStrategy):
    """Any topology: randomized fill plus satisfiability search, then thinned out."""

    name = "generic_search"

    def __init__(self, board: Board, rng: random.Random, config: "GeneratorConfig") -> None:
        super().__init__(board, rng, config)
        self.backoffs = 0

    def _prepare(self) -> None:
        self.solution = self._fill()
        self._load_full_board()

        symbols = self.board_type.symbols
        factor = self.config.allocation_factor or max(1, symbols * symbols // self.config.allocation_divisor)
        self.policy = StepPolicy(
            far_remove=factor,
            near_remove=1,
            far_add=factor,
            near_add=1,
            invalid_add=factor,
        )

    def _pick_free(self) -> Optional[Position]:
        return self.free[0] if self.free else None

    @property
    def fill_target(self) -> int:
        area = self.board_type.area
        return min(int(area * self.board_type.standard_allocation_factor), self.constraint.average_givens)

    def _fill(self) -> Dict[Position, int]:
        """Place random consistent symbols until the partial board is solvable."""
        target = self.fill_target
        steps = 0
        rounds = 0
        while steps < self.config.max_fill_steps and rounds < self.config.max_fill_rounds:
            rounds += 1
            steps += 1
            self._back_off(self.config.fill_backoff)
            while self.board.filled_count < target and steps < self.config.max_fill_steps:
                steps += 1
                if not self._place_random_given():
                    self.backoffs += 1
                    self._back_off(self.config.fill_backoff)
            if self.board.filled_count < target:
                break
            if self.oracle.solve_all(first_only=True):
                solution = self._capture_solution()
                if solution is not None:
                    LOGGER.debug(
                        "%s: solvable fill after %d step(s), %d back-off(s)",
                        self.name, steps, self.backoffs,
                    )
                    return solution
            self.backoffs += 1

        LOGGER.warning(
            "%s: fill budget exhausted on %s after %d step(s) in %d round(s); solving from scratch",
            self.name, self.board_type.name, steps, rounds,
        )
        for pos in self.board.filled_positions():
            self.board.clear(pos)
        return solve_from_scratch(self.board_type, self.rng, self.config.search_timeout)

    def _back_off(self, count: int) -> None:
        filled = self.board.filled_positions()
        for pos in self.rng.sample(filled, min(count, len(filled))):
            self.board.clear(pos)

    def _place_random_given(self) -> bool:
        empty = self.board.empty_positions()
        if not empty:
            return True
        pos = self.rng.choice(empty)
        values = self.board.values()
        symbols = self.board_type.symbols
        offset = self.rng.randrange(symbols)
        owners = [self.board_type.groups[index] for index in self.board_type.groups_of[pos]]
        for shift in range(symbols):
            symbol = (offset + shift) % symbols
            values[pos] = symbol
            if all(group.is_saturated(values) for group in owners):
                self.board.set_value(pos, symbol)
                return True
        return False

    def _capture_solution(self) -> Optional[Dict[Position, int]]:
        level = self.board.level
        self.board.level = DifficultyLevel.ARBITRARY
        try:
            relation = self.oracle.validate()
        finally:
            self.board.level = level
        if relation is DifficultyRelation.INVALID or self.oracle.solution is None:
            return None
        return dict(self.oracle.solution)
