import math
import unittest

from sudoq.core.constants import DifficultyLevel, Technique
from sudoq.engine.board_types import get_board_type
from sudoq.engine.complexity import (
    DEFAULT_PROFILES,
    ComplexityProfile,
    build_complexity_table,
    complexity_constraint,
    offered_levels,
    profiles_up_to,
)


class ComplexityTableTests(unittest.TestCase):
    def test_easy_9x9_band(self) -> None:
        constraint = build_complexity_table(81)[DifficultyLevel.EASY]
        self.assertEqual(constraint.average_givens, 37)
        self.assertAlmostEqual(constraint.min_score, 396.0)
        self.assertAlmostEqual(constraint.max_score, 550.0)
        self.assertEqual(constraint.max_technique, Technique.LOCKED_CANDIDATES)
        self.assertTrue(constraint.contains(400))
        self.assertFalse(constraint.contains(600))

    def test_levels_get_harder_with_fewer_givens(self) -> None:
        table = build_complexity_table(81)
        levels = DifficultyLevel.targets()
        for easier, harder in zip(levels, levels[1:]):
            with self.subTest(easier=easier, harder=harder):
                self.assertLess(table[easier].min_score, table[harder].min_score)
                self.assertGreater(table[easier].average_givens, table[harder].average_givens)
                self.assertLessEqual(table[easier].max_technique, table[harder].max_technique)

    def test_arbitrary_has_open_band(self) -> None:
        constraint = build_complexity_table(36)[DifficultyLevel.ARBITRARY]
        self.assertEqual(constraint.average_givens, 36)
        self.assertEqual(constraint.min_score, 0.0)
        self.assertTrue(math.isinf(constraint.max_score))

    def test_custom_profiles_replace_defaults(self) -> None:
        profile = ComplexityProfile(0.5, 1.0, 2.0, Technique.NAKED_SINGLE)
        table = build_complexity_table(16, {DifficultyLevel.EASY: profile})
        self.assertEqual(set(table), {DifficultyLevel.EASY, DifficultyLevel.ARBITRARY})
        self.assertEqual(table[DifficultyLevel.EASY].average_givens, 8)
        self.assertEqual(table[DifficultyLevel.EASY].max_score, 16.0)

    def test_lookup_uses_board_type_table(self) -> None:
        board_type = get_board_type("standard_9x9")
        for level in DEFAULT_PROFILES:
            self.assertIs(complexity_constraint(board_type, level), board_type.complexity[level])

    def test_bands_scale_with_open_cells(self) -> None:
        table = build_complexity_table(256)
        medium = table[DifficultyLevel.MEDIUM]
        self.assertEqual(medium.average_givens, 97)
        self.assertAlmostEqual(medium.min_score, 159 * 10.0)
        self.assertAlmostEqual(medium.max_score, 159 * 15.0)

    def test_singles_reach_lower_bound_of_gentle_levels(self) -> None:
        # Every fill costs at least one naked single, so a board thinned to its
        # target givens scores at least this much.
        for name in ("standard_9x9", "standard_16x16", "samurai", "squiggly_6x6"):
            board_type = get_board_type(name)
            for level in (DifficultyLevel.EASY, DifficultyLevel.MEDIUM):
                constraint = board_type.complexity[level]
                with self.subTest(board_type=name, level=level):
                    reachable = 10 * (board_type.area - constraint.average_givens)
                    self.assertLessEqual(constraint.min_score, reachable)

    def test_small_boards_offer_fewer_levels(self) -> None:
        self.assertEqual(offered_levels(get_board_type("standard_4x4")),
                         [DifficultyLevel.EASY, DifficultyLevel.MEDIUM])
        self.assertEqual(offered_levels(get_board_type("standard_6x6")),
                         [DifficultyLevel.EASY, DifficultyLevel.MEDIUM, DifficultyLevel.DIFFICULT])
        self.assertEqual(offered_levels(get_board_type("standard_9x9")), list(DifficultyLevel.targets()))
        self.assertIn(DifficultyLevel.ARBITRARY, get_board_type("standard_4x4").complexity)

    def test_profiles_up_to_keeps_easier_levels(self) -> None:
        self.assertEqual(list(profiles_up_to(DifficultyLevel.MEDIUM)),
                         [DifficultyLevel.EASY, DifficultyLevel.MEDIUM])


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
