"""Per-level difficulty targets derived from board area."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, List, Mapping, Optional

from ..core.constants import DifficultyLevel, Technique
from ..core.models import ComplexityConstraint

if TYPE_CHECKING:
    from .board import BoardType


@dataclass(frozen=True)
class ComplexityProfile:
    """Area-independent description of one difficulty level.

    Scores are expressed per open cell, i.e. per cell the solver has to fill
    once the board holds its target number of givens. Every fill costs at
    least the naked-single weight, so a band whose lower bound stays near that
    weight is reachable on any board that can be thinned to its target.
    """

    givens_ratio: float
    min_score_per_open_cell: float
    max_score_per_open_cell: float
    max_technique: Technique


DEFAULT_PROFILES: Dict[DifficultyLevel, ComplexityProfile] = {
    DifficultyLevel.EASY: ComplexityProfile(0.46, 9.0, 12.5, Technique.LOCKED_CANDIDATES),
    DifficultyLevel.MEDIUM: ComplexityProfile(0.38, 10.0, 15.0, Technique.HIDDEN_TRIPLE),
    DifficultyLevel.DIFFICULT: ComplexityProfile(0.33, 10.2, 21.0, Technique.BACKTRACKING),
    DifficultyLevel.INFERNAL: ComplexityProfile(0.28, 12.0, 26.0, Technique.BACKTRACKING),
}


def profiles_up_to(
    hardest: DifficultyLevel,
    profiles: Optional[Mapping[DifficultyLevel, ComplexityProfile]] = None,
) -> Dict[DifficultyLevel, ComplexityProfile]:
    """Profiles of every target level up to and including ``hardest``."""
    profiles = profiles or DEFAULT_PROFILES
    targets = DifficultyLevel.targets()
    offered = targets[:targets.index(hardest) + 1]
    return {level: profiles[level] for level in offered if level in profiles}


def build_complexity_table(
    area: int,
    profiles: Optional[Mapping[DifficultyLevel, ComplexityProfile]] = None,
) -> Dict[DifficultyLevel, ComplexityConstraint]:
    """Build the level -> constraint table for a board of ``area`` cells."""
    profiles = profiles or DEFAULT_PROFILES
    table: Dict[DifficultyLevel, ComplexityConstraint] = {}
    for level, profile in profiles.items():
        average_givens = max(1, round(area * profile.givens_ratio))
        open_cells = area - average_givens
        table[level] = ComplexityConstraint(
            level=level,
            average_givens=average_givens,
            min_score=open_cells * profile.min_score_per_open_cell,
            max_score=open_cells * profile.max_score_per_open_cell,
            max_technique=profile.max_technique,
        )
    table[DifficultyLevel.ARBITRARY] = ComplexityConstraint(
        level=DifficultyLevel.ARBITRARY,
        average_givens=area,
        min_score=0.0,
        max_score=math.inf,
        max_technique=Technique.BACKTRACKING,
    )
    return table


def offered_levels(board_type: "BoardType") -> List[DifficultyLevel]:
    return [level for level in DifficultyLevel.targets() if level in board_type.complexity]


def complexity_constraint(board_type: "BoardType", level: DifficultyLevel) -> ComplexityConstraint:
    return board_type.complexity_constraint(level)
