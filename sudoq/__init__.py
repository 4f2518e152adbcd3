"""Difficulty-targeted sudoku generation.

This package exposes the public API surface via:

- ``sudoq.engine.generator.Generator``: accepts requests and delivers puzzles.
- ``sudoq.engine.board_types``: catalog of built-in board topologies.
- ``sudoq.engine.oracle.DifficultyOracle``: rates a board by the techniques it needs.
"""

from .core.constants import DifficultyLevel, DifficultyRelation
from .core.models import Puzzle
from .engine.board_types import get_board_type
from .engine.generator import Generator, GeneratorConfig

__all__ = [
    "DifficultyLevel",
    "DifficultyRelation",
    "Generator",
    "GeneratorConfig",
    "Puzzle",
    "get_board_type",
]

__version__ = "0.1.0"
