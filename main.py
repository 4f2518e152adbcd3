"""CLI entrypoint for the difficulty-targeted puzzle generator."""

from __future__ import annotations

import argparse
import json
import logging
import random
from typing import Any, Dict

from sudoq.core.constants import DifficultyLevel
from sudoq.core.models import Puzzle
from sudoq.engine.board_types import BOARD_TYPES, get_board_type
from sudoq.engine.complexity import offered_levels
from sudoq.engine.generator import Generator, GeneratorConfig
from sudoq.utils.logger import configure_logging
from sudoq.utils.pretty import print_puzzle_stats


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate sudoku puzzles that match a difficulty level",
    )
    parser.add_argument(
        "--type",
        type=str,
        choices=sorted(BOARD_TYPES),
        default="standard_9x9",
        help="Board type from the built-in catalog",
    )
    parser.add_argument(
        "--level",
        type=str,
        choices=[level.value for level in DifficultyLevel.targets()],
        default="medium",
        help="Difficulty level",
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed for reproducibility")
    parser.add_argument("--count", type=int, default=1, help="Number of puzzles to generate")
    parser.add_argument(
        "--max-iterations",
        type=int,
        default=2000,
        help="Calibration budget per puzzle before a degraded result is delivered",
    )
    parser.add_argument("--workers", type=int, default=None, help="Worker threads for concurrent requests")
    parser.add_argument("--json", action="store_true", help="Print a JSON payload instead of the grid")
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        help="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    parser.add_argument("--list-types", action="store_true", help="List board types and exit")
    return parser


def puzzle_payload(puzzle: Puzzle) -> Dict[str, Any]:
    return {
        "type": puzzle.board_type.name,
        "level": puzzle.level.value,
        "puzzle": puzzle.rows(),
        "solution": puzzle.rows(show_solution=True),
        "givens": puzzle.given_count,
        "score": puzzle.score,
        "hardest_technique": puzzle.hardest_technique.name.lower() if puzzle.hardest_technique else None,
        "relation": puzzle.relation.name.lower(),
        "saturated": puzzle.saturated,
        "strategy": puzzle.strategy,
        "iterations": puzzle.iterations,
        "validation": puzzle.validation_messages,
    }


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    level = getattr(logging, args.log_level.upper(), logging.INFO)
    configure_logging(level)

    if args.list_types:
        for name in sorted(BOARD_TYPES):
            levels = ", ".join(level.value for level in offered_levels(get_board_type(name)))
            print(f"{name:<16} {levels}")
        return
    if args.count < 1:
        parser.error("--count must be at least 1")
    offered = [level.value for level in offered_levels(get_board_type(args.type))]
    if args.level not in offered:
        parser.error(f"{args.type} offers only: {', '.join(offered)}")

    config = GeneratorConfig(max_iterations=args.max_iterations, max_workers=args.workers)
    results: list[Puzzle] = []
    with Generator(config) as generator:
        if args.count == 1:
            rng = random.Random(args.seed) if args.seed is not None else None
            results.append(generator.generate_sync(args.type, args.level, rng))
        else:
            seeder = random.Random(args.seed)
            for _ in range(args.count):
                if args.seed is not None:
                    generator.set_random(random.Random(seeder.randrange(1 << 30)))
                generator.generate(args.type, args.level, results.append)
            generator.wait()

    if args.json:
        print(json.dumps([puzzle_payload(puzzle) for puzzle in results], ensure_ascii=False, indent=2))
        return
    for index, puzzle in enumerate(results, start=1):
        if len(results) > 1:
            print(f"# Puzzle {index}")
        print_puzzle_stats(puzzle)
        print()


if __name__ == "__main__":  # pragma: no cover
    main()
