import unittest
import tempfile
import os
import shutil
import random
import io
from contextlib import redirect_stdout
from pathlib import Path
from unittest.mock import patch

from sudokusat.PuzzleGenerator import PuzzleGenerator, UnsatisfiablePuzzleError, random_cells
from sudokusat.Runner import Runner, ExecConfig
from sudokusat.SudokuToCNF import SudokuEncoder, read_cnf
from sudokusat.parser import Result

SOLVED_4 = [
    [1, 2, 3, 4],
    [3, 4, 1, 2],
    [2, 1, 4, 3],
    [4, 3, 2, 1],
]


def results(*statuses):
    return [Result(solver="mock", status=s) for s in statuses]


class TestRandomCells(unittest.TestCase):

    def test_all_positions_once(self):
        cells = random_cells(9, random.Random(1))
        self.assertEqual(len(cells), 81)
        self.assertEqual(set(cells), {(i, j) for i in range(9) for j in range(9)})

    def test_seeded_order_is_reproducible(self):
        self.assertEqual(random_cells(4, random.Random(7)), random_cells(4, random.Random(7)))


class TestPuzzleGenerator(unittest.TestCase):

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.cnf_path = os.path.join(self.temp_dir, "input.cnf")
        solver = os.path.join(self.temp_dir, "solver.sh")
        with open(solver, "w") as f:
            f.write("#!/bin/bash\necho 'SATISFIABLE'\n")
        os.chmod(solver, 0o755)
        self.runner = Runner()
        self.runner.set_config(ExecConfig(name="dummy", path=Path(solver)))

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def make_generator(self, **kwargs):
        return PuzzleGenerator(SudokuEncoder(4), self.runner, self.cnf_path, seed=3, verbose=False, **kwargs)

    @patch("sudokusat.Runner.Runner.run")
    def test_unsatisfiable_start(self, mock_run):
        mock_run.side_effect = results("UNSAT")
        with self.assertRaises(UnsatisfiablePuzzleError):
            self.make_generator().generate(SOLVED_4)

    @patch("sudokusat.Runner.Runner.run")
    def test_removes_until_first_alternative(self, mock_run):
        mock_run.side_effect = results("SAT", "UNSAT", "UNSAT", "SAT")
        generator = self.make_generator()
        puzzle = generator.generate(SOLVED_4)

        self.assertEqual(mock_run.call_count, 4)
        self.assertEqual([s.removed for s in generator.steps], [True, True, False])
        self.assertEqual(sum(v == 0 for row in puzzle for v in row), 2)
        kept = generator.steps[-1]
        self.assertEqual(puzzle[kept.row - 1][kept.column - 1], kept.digit)
        # input grid untouched
        self.assertEqual(SOLVED_4[0], [1, 2, 3, 4])

    @patch("sudokusat.Runner.Runner.run")
    def test_continue_past_failures(self, mock_run):
        mock_run.side_effect = results("SAT", *(["SAT", "UNSAT"] * 8))
        generator = self.make_generator(stop_at_first_failure=False)
        puzzle = generator.generate(SOLVED_4)

        self.assertEqual(len(generator.steps), 16)
        self.assertEqual(sum(v == 0 for row in puzzle for v in row), 8)

    @patch("sudokusat.Runner.Runner.run")
    def test_timeout_keeps_digit(self, mock_run):
        mock_run.side_effect = results("SAT", "TIMEOUT")
        generator = self.make_generator()
        puzzle = generator.generate(SOLVED_4)
        self.assertEqual(puzzle, SOLVED_4)
        self.assertEqual(generator.steps[0].status, "TIMEOUT")

    @patch("sudokusat.Runner.Runner.run")
    def test_empty_cells_are_skipped(self, mock_run):
        board = [[0] * 4 for _ in range(4)]
        board[2][1] = 1
        mock_run.side_effect = results("SAT", "UNSAT")
        generator = self.make_generator()
        puzzle = generator.generate(board)
        self.assertEqual(mock_run.call_count, 2)
        self.assertEqual(puzzle, [[0] * 4 for _ in range(4)])

    @patch("sudokusat.Runner.Runner.run")
    def test_tested_cell_is_written_negated(self, mock_run):
        written = []

        def fake_run(cnf_path, timeout=None):
            written.append(read_cnf(cnf_path)[1][-16:])
            return Result(status="SAT" if len(written) == 1 else "UNSAT")

        mock_run.side_effect = fake_run
        generator = self.make_generator()
        generator.generate(SOLVED_4)
        self.assertTrue(all(len(c) == 1 and c[0] > 0 for c in written[0]))
        self.assertEqual(sum(c[0] < 0 for c in written[1]), 1)

    @patch("sudokusat.Runner.Runner.run")
    def test_excluded_cells_in_input_are_kept(self, mock_run):
        board = [row[:] for row in SOLVED_4]
        board[0][0] = -1
        mock_run.side_effect = results("SAT", *(["UNSAT"] * 15))
        generator = self.make_generator()
        puzzle = generator.generate(board)
        self.assertEqual(mock_run.call_count, 16)
        self.assertEqual(puzzle[0][0], -1)
        self.assertNotIn((1, 1), [(s.row, s.column) for s in generator.steps])

    def test_check_prints_solver_verdict_line(self):
        generator = PuzzleGenerator(SudokuEncoder(4), self.runner, self.cnf_path, verbose=True)
        out = io.StringIO()
        with redirect_stdout(out):
            generator.check(SOLVED_4)
        self.assertEqual(out.getvalue().strip(), "Result: SATISFIABLE")

    def test_check_runs_solver(self):
        generator = self.make_generator()
        result = generator.check(SOLVED_4)
        self.assertEqual(result.status, "SAT")
        self.assertTrue(os.path.exists(self.cnf_path))


if __name__ == "__main__":
    unittest.main()
