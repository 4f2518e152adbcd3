"""Difficulty oracle: rates a partial board by the techniques it requires."""

from __future__ import annotations

from collections import Counter
from typing import Dict, List, Mapping, Optional

from ..core.constants import (
    DEFAULT_TECHNIQUE_WEIGHTS,
    EMPTY,
    DifficultyLevel,
    DifficultyRelation,
    Technique,
)
from ..core.exceptions import ContradictionError
from ..core.models import Position
from ..utils.bits import bit, cardinality
from ..utils.logger import get_logger
from .board import Board
from .solver import solve_board
from .techniques import SolveState, Step, next_step

LOGGER = get_logger(__name__)


class DifficultyOracle:
    """Solve a board like a human would and judge it against its level.

    The oracle reads the board's current values, never writes them, and keeps
    the outcome of the last call in ``relation``, ``score``, ``hardest``,
    ``technique_counts`` and ``solution``. When the board has more than one
    completion, ``ambiguous`` lists the open cells on which two of them differ.
    """

    def __init__(
        self,
        board: Board,
        weights: Optional[Mapping[Technique, int]] = None,
        search_seed: int = 0,
        search_timeout: float = 10.0,
    ) -> None:
        self.board = board
        self.weights: Dict[Technique, int] = dict(DEFAULT_TECHNIQUE_WEIGHTS)
        if weights:
            self.weights.update(weights)
        self.search_seed = search_seed
        self.search_timeout = search_timeout
        self._candidates: Dict[Position, int] = {}
        self._stale = True
        self.reset_results()

    def reset_results(self) -> None:
        self.relation: Optional[DifficultyRelation] = None
        self.score = 0.0
        self.hardest: Optional[Technique] = None
        self.technique_counts: Counter = Counter()
        self.solution: Optional[Dict[Position, int]] = None
        self.solution_count = 0
        self.ambiguous: List[Position] = []

    # ------------------------------------------------------------------
    # Candidates
    # ------------------------------------------------------------------
    def reset_candidates(self) -> None:
        """Recompute candidate masks from the board's current values."""
        board_type = self.board.board_type
        values = self.board.values()
        self._candidates = {}
        for pos in board_type.positions:
            value = values[pos]
            if value != EMPTY:
                self._candidates[pos] = bit(value)
                continue
            mask = board_type.full_mask
            for peer in board_type.peers[pos]:
                peer_value = values[peer]
                if peer_value != EMPTY:
                    mask &= ~bit(peer_value)
            self._candidates[pos] = mask
        self._stale = False

    def get_current_candidates(self, position: Position) -> int:
        """Candidate bitmask at ``position``: 0 means contradiction, one bit means forced."""
        if self._stale:
            self.reset_candidates()
        return self._candidates[position]

    def invalidate(self) -> None:
        self._stale = True

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------
    def validate(
        self,
        reference_solution: Optional[Mapping[Position, int]] = None,
        cross_check: bool = False,
    ) -> DifficultyRelation:
        """Solve the current board and classify it against the board's level."""
        self.reset_results()
        self._stale = True
        arbitrary = self.board.level == DifficultyLevel.ARBITRARY
        try:
            state = SolveState(self.board.board_type, self.board.values())
            self._deduce(state, arbitrary)
        except ContradictionError as exc:
            LOGGER.debug("Oracle: contradiction (%s)", exc)
            return self._finish(DifficultyRelation.INVALID)
        if self.relation is DifficultyRelation.INVALID:
            return self.relation

        self.solution = dict(state.values)
        self.solution_count = 1
        if cross_check and reference_solution is not None:
            mismatches = [pos for pos, value in self.solution.items() if reference_solution.get(pos) != value]
            if mismatches:
                LOGGER.debug("Oracle: %d cell(s) differ from the reference solution", len(mismatches))
                return self._finish(DifficultyRelation.INVALID)

        if arbitrary:
            return self._finish(DifficultyRelation.SATURATED)
        return self._finish(self._classify())

    def _deduce(self, state: SolveState, arbitrary: bool) -> None:
        searched: Optional[Dict[Position, int]] = None
        while not state.empty:
            step = next_step(state)
            if step is None:
                if searched is None:
                    result = solve_board(
                        state.board_type,
                        state.values,
                        state.candidates,
                        limit=1 if arbitrary else 2,
                        seed=self.search_seed,
                        timeout=self.search_timeout,
                    )
                    self.solution_count = result.count
                    if result.count == 0 or (not arbitrary and not result.is_unique):
                        LOGGER.debug("Oracle: search found %d solution(s), board rejected", result.count)
                        if result.count > 1:
                            first, second = result.solutions[:2]
                            self.ambiguous = sorted(pos for pos in state.candidates if first[pos] != second[pos])
                        self._finish(DifficultyRelation.INVALID)
                        return
                    searched = result.solutions[0]
                pos = min(state.candidates, key=lambda p: (cardinality(state.candidates[p]), p))
                step = Step(Technique.BACKTRACKING, fills={pos: searched[pos]})
            state.apply(step)
            self._charge(step)

    def _charge(self, step: Step) -> None:
        weight = self.weights[step.technique]
        if step.is_fill:
            self.score += weight * len(step.fills)
        else:
            self.score += weight
        self.technique_counts[step.technique] += 1
        if self.hardest is None or step.technique > self.hardest:
            self.hardest = step.technique

    def _classify(self) -> DifficultyRelation:
        constraint = self.board.complexity_constraint
        spread = constraint.spread
        if self.hardest is not None and self.hardest > constraint.max_technique:
            if self.hardest == Technique.BACKTRACKING:
                return DifficultyRelation.FAR_TOO_HARD
            return DifficultyRelation.TOO_HARD
        if self.score < constraint.min_score:
            if constraint.min_score - self.score > spread or self.board.filled_count > constraint.average_givens:
                return DifficultyRelation.FAR_TOO_EASY
            return DifficultyRelation.TOO_EASY
        if self.score > constraint.max_score:
            if self.score - constraint.max_score > spread:
                return DifficultyRelation.FAR_TOO_HARD
            return DifficultyRelation.TOO_HARD
        return DifficultyRelation.SATURATED

    def _finish(self, relation: DifficultyRelation) -> DifficultyRelation:
        self.relation = relation
        if relation is DifficultyRelation.INVALID:
            self.solution = None
        LOGGER.debug(
            "Oracle: relation=%s score=%.1f hardest=%s",
            relation.name, self.score, self.hardest.name if self.hardest else "-",
        )
        return relation

    # ------------------------------------------------------------------
    # Satisfiability
    # ------------------------------------------------------------------
    def solve_all(self, first_only: bool = True, exhaustive: bool = False) -> bool:
        """Check that the current board can be completed.

        ``first_only`` stops at the first completion. ``exhaustive`` looks for
        a second one and only succeeds when the completion is unique.
        """
        limit = 2 if exhaustive or not first_only else 1
        result = solve_board(
            self.board.board_type,
            self.board.values(),
            limit=limit,
            seed=self.search_seed,
            timeout=self.search_timeout,
        )
        self.solution_count = result.count
        self.solution = dict(result.solutions[0]) if result.solutions else None
        if exhaustive:
            return result.is_unique
        return result.count > 0
