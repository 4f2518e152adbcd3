"""CP-SAT completion search over a partially filled board, using OR-Tools."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Mapping, Optional

from ortools.sat.python import cp_model

from ..core.constants import EMPTY
from ..core.models import Position
from ..utils.bits import symbols_of
from ..utils.logger import get_logger

if TYPE_CHECKING:
    from .board import BoardType

LOGGER = get_logger(__name__)


@dataclass
class SearchResult:
    """Completions found by :func:`solve_board`.

    ``complete`` is False when the search stopped on the time limit before
    it could prove the list of solutions exhaustive.
    """

    solutions: List[Dict[Position, int]] = field(default_factory=list)
    complete: bool = True

    @property
    def count(self) -> int:
        return len(self.solutions)

    @property
    def is_unique(self) -> bool:
        return self.complete and len(self.solutions) == 1


class _SolutionCollector(cp_model.CpSolverSolutionCallback):
    """Record full assignments and stop after ``limit`` of them."""

    def __init__(self, cell_vars: Dict[Position, object], fixed: Mapping[Position, int], limit: int) -> None:
        super().__init__()
        self._cell_vars = cell_vars
        self._fixed = fixed
        self._limit = limit
        self.solutions: List[Dict[Position, int]] = []

    def on_solution_callback(self) -> None:
        solution = dict(self._fixed)
        for pos, var in self._cell_vars.items():
            solution[pos] = self.value(var)
        self.solutions.append(solution)
        if len(self.solutions) >= self._limit:
            self.stop_search()


def solve_board(
    board_type: "BoardType",
    values: Mapping[Position, int],
    candidates: Optional[Mapping[Position, int]] = None,
    limit: int = 1,
    seed: int = 0,
    timeout: float = 10.0,
) -> SearchResult:
    """Search completions of ``values`` that satisfy every group of ``board_type``.

    Args:
        board_type: Topology providing positions and groups.
        values: Current symbol per position (``EMPTY`` for open cells).
        candidates: Optional candidate bitmask per open cell used to narrow
            variable domains. Missing entries default to every symbol.
        limit: Stop after this many solutions. ``2`` is enough to prove or
            refute uniqueness.
        seed: CP-SAT random seed; a fixed seed keeps oracle runs reproducible.
        timeout: Solver time limit in seconds.

    Returns:
        SearchResult with at most ``limit`` solutions.
    """
    model = cp_model.CpModel()
    fixed: Dict[Position, int] = {
        pos: values[pos] for pos in board_type.positions if values.get(pos, EMPTY) != EMPTY
    }
    cell_vars: Dict[Position, object] = {}

    # ------------------------------------------------------------------
    # Step 1: Fixed symbols must not repeat inside a group
    # ------------------------------------------------------------------
    for group in board_type.groups:
        present = [fixed[pos] for pos in group.positions if pos in fixed]
        if len(present) != len(set(present)):
            LOGGER.debug("CP-SAT: duplicate symbol in %s, no completion", group.name)
            return SearchResult()

    # ------------------------------------------------------------------
    # Step 2: Cell variables, domains narrowed by fixed peers
    # ------------------------------------------------------------------
    for pos in board_type.positions:
        if pos in fixed:
            continue
        mask = board_type.full_mask
        if candidates is not None and pos in candidates:
            mask = candidates[pos]
        for peer in board_type.peers[pos]:
            if peer in fixed:
                mask &= ~(1 << fixed[peer])
        domain = symbols_of(mask)
        if not domain:
            LOGGER.debug("CP-SAT: empty domain at %s, no completion", pos)
            return SearchResult()
        cell_vars[pos] = model.new_int_var_from_domain(
            cp_model.Domain.from_values(domain), f"S_{pos.row}_{pos.col}"
        )

    if not cell_vars:
        return SearchResult(solutions=[dict(fixed)])

    for group in board_type.groups:
        members = [cell_vars[pos] for pos in group.positions if pos in cell_vars]
        if len(members) > 1:
            model.add_all_different(members)

    # ------------------------------------------------------------------
    # Step 3: Solve
    # ------------------------------------------------------------------
    solver = cp_model.CpSolver()
    solver.parameters.max_time_in_seconds = timeout
    solver.parameters.num_workers = 1
    solver.parameters.random_seed = seed
    if limit > 1:
        solver.parameters.enumerate_all_solutions = True

    collector = _SolutionCollector(cell_vars, fixed, limit)
    status = solver.solve(model, collector)

    LOGGER.debug(
        "CP-SAT: %d vars, status=%s, %d solution(s) in %.3fs",
        len(cell_vars), solver.status_name(status), len(collector.solutions), solver.wall_time,
    )

    if status == cp_model.INFEASIBLE:
        return SearchResult()
    # Stopping on the limit reports FEASIBLE; only OPTIMAL proves the list exhaustive.
    complete = status == cp_model.OPTIMAL or len(collector.solutions) >= limit
    if status == cp_model.UNKNOWN and not collector.solutions:
        LOGGER.warning("CP-SAT: search timed out after %.1fs", timeout)
        return SearchResult(complete=False)
    return SearchResult(solutions=collector.solutions[:limit], complete=complete)
