import dataclasses
import random
import unittest

from sudoq.core.constants import DifficultyLevel, DifficultyRelation, Technique
from sudoq.core.models import Position
from sudoq.engine.board import Board
from sudoq.engine.board_types import get_board_type, standard_type
from sudoq.engine.complexity import ComplexityProfile, build_complexity_table
from sudoq.engine.generator import GeneratorConfig
from sudoq.engine.oracle import DifficultyOracle
from sudoq.engine.strategies import FastLatticeStrategy, GenericSearchStrategy
from sudoq.engine.synthesizer import lattice_solution


class FastLatticeStrategyTests(unittest.TestCase):
    def test_easy_classic_puzzle_is_saturated(self) -> None:
        board_type = get_board_type("standard_9x9")
        strategy = FastLatticeStrategy(Board(board_type, DifficultyLevel.EASY), random.Random(7), GeneratorConfig())
        puzzle = strategy.run()

        self.assertTrue(puzzle.saturated)
        self.assertEqual(puzzle.relation, DifficultyRelation.SATURATED)
        self.assertEqual(puzzle.validation_messages, [])
        self.assertEqual(puzzle.strategy, "fast_lattice")
        self.assertTrue(board_type.check_solution(puzzle.solution))

        replay = DifficultyOracle(Board.from_puzzle(puzzle))
        self.assertEqual(replay.validate(puzzle.solution, cross_check=True), DifficultyRelation.SATURATED)
        self.assertEqual(replay.score, puzzle.score)

    def test_step_policy_scales_with_area(self) -> None:
        board = Board(get_board_type("standard_9x9"), DifficultyLevel.MEDIUM)
        strategy = FastLatticeStrategy(board, random.Random(1), GeneratorConfig())
        strategy._prepare()
        self.assertEqual(strategy.policy.far_add, 4)
        self.assertEqual(strategy.policy.far_remove, 2)
        self.assertEqual(strategy.policy.near_add, 1)
        self.assertLessEqual(len(strategy.given) + len(strategy.free), board.board_type.area)
        self.assertEqual(sorted(strategy.given), sorted(board.given_positions()))

    def test_seeding_skips_groups_with_open_cells(self) -> None:
        board_type = standard_type(2, 2)
        board = Board(board_type, DifficultyLevel.EASY)
        board.load_solution(lattice_solution(board_type), fill=True)
        for pos in (Position(0, 0), Position(1, 2), Position(2, 1), Position(3, 3)):
            board.clear(pos)
        strategy = FastLatticeStrategy(board, random.Random(3), GeneratorConfig())
        self.assertEqual(strategy._seed_free_cells(), [])
        self.assertEqual(board.filled_count, 12)

    def test_exhausted_budget_delivers_degraded_puzzle(self) -> None:
        board_type = get_board_type("standard_9x9")
        config = GeneratorConfig(max_iterations=1)
        strategy = FastLatticeStrategy(Board(board_type, DifficultyLevel.INFERNAL), random.Random(4), config)
        puzzle = strategy.run()

        self.assertFalse(puzzle.saturated)
        self.assertEqual(puzzle.iterations, 1)
        self.assertNotEqual(puzzle.relation, DifficultyRelation.INVALID)
        self.assertEqual(puzzle.validation_messages, [])


class GenericSearchStrategyTests(unittest.TestCase):
    def test_irregular_puzzle_is_saturated(self) -> None:
        board_type = get_board_type("squiggly_6x6")
        lenient = build_complexity_table(
            board_type.area,
            {DifficultyLevel.MEDIUM: ComplexityProfile(0.4, 3.0, 1000.0, Technique.BACKTRACKING)},
        )
        board_type = dataclasses.replace(board_type, complexity=lenient)
        strategy = GenericSearchStrategy(Board(board_type, DifficultyLevel.MEDIUM), random.Random(11), GeneratorConfig())
        puzzle = strategy.run()

        self.assertTrue(puzzle.saturated)
        self.assertEqual(puzzle.strategy, "generic_search")
        self.assertEqual(puzzle.validation_messages, [])
        self.assertLess(puzzle.given_count, board_type.area)
        replay = DifficultyOracle(Board.from_puzzle(puzzle))
        self.assertEqual(replay.validate(), DifficultyRelation.SATURATED)

    def test_dead_ends_back_off(self) -> None:
        base = standard_type(3, 3)
        dense = build_complexity_table(
            base.area, {DifficultyLevel.EASY: ComplexityProfile(1.0, 0.0, 1.0, Technique.NAKED_SINGLE)}
        )
        board_type = dataclasses.replace(base, standard_allocation_factor=1.0, complexity=dense)
        config = GeneratorConfig(max_fill_steps=3000)
        strategy = GenericSearchStrategy(Board(board_type, DifficultyLevel.EASY), random.Random(2), config)
        self.assertEqual(strategy.fill_target, 81)

        strategy._prepare()

        self.assertGreaterEqual(strategy.backoffs, 1)
        self.assertTrue(board_type.check_solution(strategy.solution))
        self.assertTrue(strategy.board.is_complete())

    def test_step_policy_uses_symbol_count(self) -> None:
        board = Board(get_board_type("squiggly_6x6"), DifficultyLevel.EASY)
        strategy = GenericSearchStrategy(board, random.Random(5), GeneratorConfig())
        strategy._prepare()
        self.assertEqual(strategy.policy.far_remove, 1)
        self.assertEqual(strategy.policy.invalid_add, 1)
        self.assertTrue(board.board_type.check_solution(strategy.solution))


class CalibrationStepTests(unittest.TestCase):
    def setUp(self) -> None:
        board_type = get_board_type("standard_4x4")
        self.strategy = FastLatticeStrategy(Board(board_type, DifficultyLevel.EASY), random.Random(6), GeneratorConfig())
        self.strategy.solution = lattice_solution(board_type)
        self.strategy._load_full_board()

    def test_ambiguity_is_repaired_from_differing_cells(self) -> None:
        strategy = self.strategy
        for pos in list(strategy.given)[1:]:
            strategy._clear(pos)
        self.assertEqual(strategy._validate(), DifficultyRelation.INVALID)
        differing = list(strategy.oracle.ambiguous)

        strategy._act(DifficultyRelation.INVALID)

        self.assertEqual(len(strategy.given), 2)
        restored = strategy.given[-1]
        self.assertIn(restored, differing)
        self.assertIn(restored, strategy.locked)

    def test_overshooting_removal_is_undone(self) -> None:
        strategy = self.strategy
        strategy.remove_givens(3)
        strategy._act(DifficultyRelation.TOO_HARD)
        self.assertEqual(len(strategy.given), 16)
        self.assertTrue(strategy.single_steps)
        self.assertEqual(strategy.locked, set())

        strategy.remove_givens(1)
        single = strategy.last_removed[0]
        strategy._act(DifficultyRelation.FAR_TOO_HARD)
        self.assertEqual(len(strategy.given), 16)
        self.assertEqual(strategy.locked, {single})

    def test_locked_givens_stay_until_reopened(self) -> None:
        strategy = self.strategy
        unlocked = strategy.given[0]
        strategy.locked.update(strategy.given[1:])
        self.assertEqual(strategy.remove_givens(5), 1)
        self.assertNotIn(unlocked, strategy.given)
        self.assertEqual(strategy.remove_givens(5), 0)

        strategy._act(DifficultyRelation.TOO_EASY)

        self.assertEqual(strategy.locked, set())
        self.assertIn(unlocked, strategy.given)


def _generate(name: str, level: DifficultyLevel, seed: int):
    board_type = get_board_type(name)
    strategy_class = FastLatticeStrategy if board_type.has_lattice_construction else GenericSearchStrategy
    strategy = strategy_class(Board(board_type, level), random.Random(seed), GeneratorConfig())
    return strategy, strategy.run()


class ConvergenceTests(unittest.TestCase):
    """Default tables on catalog types saturate within the iteration budget."""

    def _assert_saturated(self, name: str, level: DifficultyLevel, seed: int) -> None:
        _, puzzle = _generate(name, level, seed)
        constraint = puzzle.board_type.complexity[level]
        self.assertTrue(puzzle.saturated, f"{name} {level.value}: {puzzle.relation.name} at {puzzle.score}")
        self.assertEqual(puzzle.relation, DifficultyRelation.SATURATED)
        self.assertTrue(constraint.contains(puzzle.score))
        self.assertEqual(puzzle.validation_messages, [])

    def test_small_classic_medium(self) -> None:
        self._assert_saturated("standard_4x4", DifficultyLevel.MEDIUM, 5)

    def test_classic_difficult(self) -> None:
        self._assert_saturated("standard_9x9", DifficultyLevel.DIFFICULT, 8)

    def test_classic_infernal(self) -> None:
        self._assert_saturated("standard_9x9", DifficultyLevel.INFERNAL, 9)

    def test_large_classic_medium(self) -> None:
        self._assert_saturated("standard_16x16", DifficultyLevel.MEDIUM, 1)

    def test_samurai_medium(self) -> None:
        self._assert_saturated("samurai", DifficultyLevel.MEDIUM, 1)

    def test_irregular_medium_backs_off_and_saturates(self) -> None:
        backoffs = 0
        for seed in range(20):
            strategy, puzzle = _generate("squiggly_6x6", DifficultyLevel.MEDIUM, seed)
            with self.subTest(seed=seed):
                self.assertTrue(puzzle.saturated)
                self.assertEqual(puzzle.validation_messages, [])
            backoffs += strategy.backoffs
            if backoffs:
                break
        self.assertGreaterEqual(backoffs, 1)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
