"""Human-style deduction techniques over a candidate grid.

Each finder inspects a :class:`SolveState` and returns the first
:class:`Step` it can justify, or ``None``. Finders never mutate the state;
the oracle applies the step and charges its technique weight.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import partial
from itertools import combinations
from typing import TYPE_CHECKING, Callable, Dict, List, Mapping, Optional, Tuple

from ..core.constants import EMPTY, GroupKind, Technique
from ..core.exceptions import ContradictionError
from ..core.models import ConstraintGroup, Position
from ..utils.bits import bit, cardinality, iter_symbols, single_symbol

if TYPE_CHECKING:
    from .board import BoardType


@dataclass
class Step:
    """One deduction: symbols to place and candidates to strike."""

    technique: Technique
    fills: Dict[Position, int] = field(default_factory=dict)
    eliminations: Dict[Position, int] = field(default_factory=dict)

    @property
    def is_fill(self) -> bool:
        return bool(self.fills)


class SolveState:
    """Values plus candidate masks for every open cell."""

    def __init__(self, board_type: "BoardType", values: Mapping[Position, int]) -> None:
        self.board_type = board_type
        self.values: Dict[Position, int] = {
            pos: values.get(pos, EMPTY) for pos in board_type.positions
        }
        self.check_consistency()
        self.candidates: Dict[Position, int] = {}
        for pos in board_type.positions:
            if self.values[pos] != EMPTY:
                continue
            mask = board_type.full_mask
            for peer in board_type.peers[pos]:
                value = self.values[peer]
                if value != EMPTY:
                    mask &= ~bit(value)
            if not mask:
                raise ContradictionError(f"No candidate left at {pos}")
            self.candidates[pos] = mask

    def check_consistency(self) -> None:
        for group in self.board_type.groups:
            if not group.is_saturated(self.values):
                raise ContradictionError(f"Repeated symbol in {group.name}")

    @property
    def empty(self) -> bool:
        return not self.candidates

    def open_cells(self, group: ConstraintGroup) -> List[Position]:
        return [pos for pos in group.positions if pos in self.candidates]

    def placed_mask(self, group: ConstraintGroup) -> int:
        mask = 0
        for pos in group.positions:
            value = self.values[pos]
            if value != EMPTY:
                mask |= bit(value)
        return mask

    def is_full(self, group: ConstraintGroup) -> bool:
        """True when the group must hold every symbol."""
        return len(group) == self.board_type.symbols

    def assign(self, pos: Position, value: int) -> None:
        mask = self.candidates.get(pos)
        if mask is None:
            raise ContradictionError(f"{pos} is already filled")
        if not mask & bit(value):
            raise ContradictionError(f"Symbol {value} is not a candidate at {pos}")
        del self.candidates[pos]
        self.values[pos] = value
        marker = bit(value)
        for peer in self.board_type.peers[pos]:
            peer_mask = self.candidates.get(peer)
            if peer_mask is not None and peer_mask & marker:
                peer_mask &= ~marker
                if not peer_mask:
                    raise ContradictionError(f"No candidate left at {peer}")
                self.candidates[peer] = peer_mask

    def eliminate(self, pos: Position, mask: int) -> None:
        current = self.candidates.get(pos)
        if current is None:
            return
        remaining = current & ~mask
        if not remaining:
            raise ContradictionError(f"No candidate left at {pos}")
        self.candidates[pos] = remaining

    def apply(self, step: Step) -> None:
        for pos, mask in step.eliminations.items():
            self.eliminate(pos, mask)
        for pos, value in step.fills.items():
            self.assign(pos, value)


# ------------------------------------------------------------------
# Singles
# ------------------------------------------------------------------
def find_naked_singles(state: SolveState) -> Optional[Step]:
    fills = {}
    for pos, mask in state.candidates.items():
        if cardinality(mask) == 1:
            fills[pos] = single_symbol(mask)
    if not fills:
        return None
    return Step(Technique.NAKED_SINGLE, fills=fills)


def find_hidden_singles(state: SolveState) -> Optional[Step]:
    fills: Dict[Position, int] = {}
    for group in state.board_type.groups:
        if not state.is_full(group):
            continue
        missing = state.board_type.full_mask & ~state.placed_mask(group)
        open_cells = state.open_cells(group)
        for symbol in iter_symbols(missing):
            marker = bit(symbol)
            places = [pos for pos in open_cells if state.candidates[pos] & marker]
            if not places:
                raise ContradictionError(f"Symbol {symbol} has no place in {group.name}")
            if len(places) == 1:
                pos = places[0]
                if fills.get(pos, symbol) != symbol:
                    raise ContradictionError(f"{pos} is the only place for two symbols")
                fills[pos] = symbol
    if not fills:
        return None
    return Step(Technique.HIDDEN_SINGLE, fills=fills)


# ------------------------------------------------------------------
# Intersections
# ------------------------------------------------------------------
def find_locked_candidates(state: SolveState) -> Optional[Step]:
    """Pointing and claiming: a symbol confined to the overlap of two groups."""
    groups = state.board_type.groups
    for first, second, common in state.board_type.group_intersections:
        base = groups[first]
        if not state.is_full(base):
            continue
        open_cells = state.open_cells(base)
        inside = 0
        for pos in common:
            inside |= state.candidates.get(pos, 0)
        for symbol in iter_symbols(inside):
            marker = bit(symbol)
            if any(state.candidates[pos] & marker for pos in open_cells if pos not in common):
                continue
            eliminations = {
                pos: marker
                for pos in state.open_cells(groups[second])
                if pos not in common and state.candidates[pos] & marker
            }
            if eliminations:
                return Step(Technique.LOCKED_CANDIDATES, eliminations=eliminations)
    return None


# ------------------------------------------------------------------
# Subsets
# ------------------------------------------------------------------
def find_naked_subset(state: SolveState, size: int, technique: Technique) -> Optional[Step]:
    for group in state.board_type.groups:
        open_cells = [
            pos for pos in state.open_cells(group)
            if 2 <= cardinality(state.candidates[pos]) <= size
        ]
        for combo in combinations(open_cells, size):
            union = 0
            for pos in combo:
                union |= state.candidates[pos]
            if cardinality(union) != size:
                continue
            eliminations = {
                pos: union
                for pos in state.open_cells(group)
                if pos not in combo and state.candidates[pos] & union
            }
            if eliminations:
                return Step(technique, eliminations=eliminations)
    return None


def find_hidden_subset(state: SolveState, size: int, technique: Technique) -> Optional[Step]:
    for group in state.board_type.groups:
        if not state.is_full(group):
            continue
        open_cells = state.open_cells(group)
        missing = state.board_type.full_mask & ~state.placed_mask(group)
        places: Dict[int, Tuple[Position, ...]] = {}
        for symbol in iter_symbols(missing):
            marker = bit(symbol)
            spots = tuple(pos for pos in open_cells if state.candidates[pos] & marker)
            if 2 <= len(spots) <= size:
                places[symbol] = spots
        for combo in combinations(sorted(places), size):
            cells = set()
            for symbol in combo:
                cells.update(places[symbol])
            if len(cells) != size:
                continue
            keep = 0
            for symbol in combo:
                keep |= bit(symbol)
            eliminations = {
                pos: state.candidates[pos] & ~keep
                for pos in sorted(cells)
                if state.candidates[pos] & ~keep
            }
            if eliminations:
                return Step(technique, eliminations=eliminations)
    return None


# ------------------------------------------------------------------
# Fish
# ------------------------------------------------------------------
def _line_index(board_type: "BoardType", kind: GroupKind) -> Optional[Dict[Position, int]]:
    """Map every position to its single group of ``kind``, or None if ambiguous."""
    index: Dict[Position, int] = {}
    for number, group in enumerate(board_type.groups):
        if group.kind != kind:
            continue
        for pos in group.positions:
            if pos in index:
                return None
            index[pos] = number
    if len(index) != board_type.area:
        return None
    return index


def find_x_wing(state: SolveState) -> Optional[Step]:
    board_type = state.board_type
    for base_kind, cover_kind in ((GroupKind.ROW, GroupKind.COLUMN), (GroupKind.COLUMN, GroupKind.ROW)):
        cover_of = _line_index(board_type, cover_kind)
        if cover_of is None or _line_index(board_type, base_kind) is None:
            continue
        for symbol in range(board_type.symbols):
            marker = bit(symbol)
            seen: Dict[Tuple[int, int], int] = {}
            for number, group in enumerate(board_type.groups):
                if group.kind != base_kind or not state.is_full(group):
                    continue
                spots = [pos for pos in state.open_cells(group) if state.candidates[pos] & marker]
                if len(spots) != 2:
                    continue
                covers = tuple(sorted(cover_of[pos] for pos in spots))
                if covers[0] == covers[1]:
                    continue
                if covers not in seen:
                    seen[covers] = number
                    continue
                bases = set(board_type.groups[seen[covers]].positions) | set(group.positions)
                eliminations = {
                    pos: marker
                    for cover in covers
                    for pos in state.open_cells(board_type.groups[cover])
                    if pos not in bases and state.candidates[pos] & marker
                }
                if eliminations:
                    return Step(Technique.X_WING, eliminations=eliminations)
    return None


Finder = Callable[[SolveState], Optional[Step]]

FINDERS: Tuple[Finder, ...] = (
    find_naked_singles,
    find_hidden_singles,
    find_locked_candidates,
    partial(find_naked_subset, size=2, technique=Technique.NAKED_PAIR),
    partial(find_hidden_subset, size=2, technique=Technique.HIDDEN_PAIR),
    partial(find_naked_subset, size=3, technique=Technique.NAKED_TRIPLE),
    partial(find_hidden_subset, size=3, technique=Technique.HIDDEN_TRIPLE),
    find_x_wing,
)
"""Finders in the order the oracle tries them, cheapest first."""


def next_step(state: SolveState) -> Optional[Step]:
    for finder in FINDERS:
        step = finder(state)
        if step is not None:
            return step
    return None
