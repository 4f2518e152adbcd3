import random
import unittest
from unittest.mock import patch

from sudoq.core.constants import DifficultyLevel, GroupKind
from sudoq.core.exceptions import BoardTypeError
from sudoq.core.models import ConstraintGroup, Position, Puzzle
from sudoq.engine.board import BoardType
from sudoq.engine.board_types import get_board_type, standard_type
from sudoq.engine.solver import SearchResult
from sudoq.engine.synthesizer import is_satisfiable, lattice_solution, solve_from_scratch, synthesize_solution
from sudoq.engine.transformer import (
    MirrorRows,
    RelabelSymbols,
    Rotate,
    SwapBands,
    Transformer,
    Transpose,
    transform_puzzle,
)


class TransformationTests(unittest.TestCase):
    def setUp(self) -> None:
        self.board_type = standard_type(3, 3)
        self.solution = lattice_solution(self.board_type)

    def test_symmetries_keep_classic_solution_valid(self) -> None:
        transformer = Transformer(self.board_type)
        for transformation in (Rotate(9), Transpose(), MirrorRows(9), SwapBands(0, 2, 3),
                               RelabelSymbols([8, 7, 6, 5, 4, 3, 2, 1, 0])):
            with self.subTest(transformation=transformation):
                self.assertIsNotNone(transformer.apply(self.solution, transformation))

    def test_transposition_breaks_rectangular_boxes(self) -> None:
        board_type = standard_type(2, 3)
        transformer = Transformer(board_type)
        self.assertIsNone(transformer.apply(lattice_solution(board_type), Transpose()))
        self.assertNotIn("transpose", transformer.kinds)

    def test_random_sequence_stays_valid(self) -> None:
        transformer = Transformer(self.board_type)
        rng = random.Random(5)
        result = transformer.transform(self.solution, rng, rounds=40)
        self.assertTrue(self.board_type.check_solution(result))
        self.assertNotEqual(result, self.solution)

    def test_irregular_types_only_relabel(self) -> None:
        self.assertEqual(Transformer(get_board_type("squiggly_6x6")).kinds, ["relabel"])

    def test_relabel_maps_symbols(self) -> None:
        relabel = RelabelSymbols([1, 0, 3, 2])
        self.assertEqual(relabel.apply({Position(0, 0): 0, Position(0, 1): 3}),
                         {Position(0, 0): 1, Position(0, 1): 2})


class SynthesizerTests(unittest.TestCase):
    def test_lattice_requires_box_structure(self) -> None:
        with self.assertRaises(BoardTypeError):
            lattice_solution(get_board_type("x_sudoku"))

    def test_synthesized_solution_is_reproducible(self) -> None:
        board_type = standard_type(2, 3)
        first = synthesize_solution(board_type, random.Random(9))
        second = synthesize_solution(board_type, random.Random(9))
        self.assertEqual(first, second)
        self.assertTrue(board_type.check_solution(first))

    def test_solve_from_scratch_on_irregular_board(self) -> None:
        for name in ("squiggly_6x6", "x_sudoku"):
            board_type = get_board_type(name)
            with self.subTest(board_type=name):
                self.assertTrue(board_type.check_solution(solve_from_scratch(board_type, random.Random(1))))

    def test_solve_from_scratch_retries_after_timeout(self) -> None:
        board_type = get_board_type("squiggly_6x6")
        solution = solve_from_scratch(board_type, random.Random(1))
        outcomes = [SearchResult(complete=False), SearchResult(solutions=[solution])]
        with patch("sudoq.engine.synthesizer.solve_board", side_effect=outcomes) as search:
            result = solve_from_scratch(board_type, random.Random(2), timeout=1.0)
        self.assertTrue(board_type.check_solution(result))
        self.assertEqual(search.call_count, 2)
        self.assertEqual(search.call_args.kwargs["timeout"], 2.0)

    def test_unsatisfiable_type_is_reported(self) -> None:
        cells = [Position(0, col) for col in range(3)]
        groups = tuple(
            ConstraintGroup(f"pair{i}", GroupKind.EXTRA, pair)
            for i, pair in enumerate([(cells[0], cells[1]), (cells[1], cells[2]), (cells[0], cells[2])])
        )
        board_type = BoardType(name="odd_cycle", rows=1, cols=3, symbols=2, groups=groups)
        self.assertFalse(is_satisfiable(board_type))
        with self.assertRaises(BoardTypeError):
            solve_from_scratch(board_type, random.Random(0))

    def test_satisfiable_types(self) -> None:
        self.assertTrue(is_satisfiable(get_board_type("x_sudoku")))
        self.assertTrue(is_satisfiable(get_board_type("standard_16x16")))


class TransformPuzzleTests(unittest.TestCase):
    def test_transformed_puzzle_keeps_shape(self) -> None:
        board_type = standard_type(3, 3)
        solution = lattice_solution(board_type)
        givens = [pos for pos in board_type.positions if (pos.row + pos.col) % 3 == 0]
        puzzle = Puzzle.assemble(board_type, DifficultyLevel.MEDIUM, solution, givens, score=512.0)

        moved = transform_puzzle(puzzle, random.Random(2), rounds=30)

        self.assertEqual(moved.given_count, puzzle.given_count)
        self.assertTrue(board_type.check_solution(moved.solution))
        self.assertEqual(moved.score, puzzle.score)
        self.assertEqual(moved.level, DifficultyLevel.MEDIUM)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
