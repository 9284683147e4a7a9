import unittest
import tempfile
import os
import shutil

from sudokusat.board import read_board, validate_board, format_board, filled_cells, write_board


class TestBoard(unittest.TestCase):

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.puzzle = os.path.join(self.temp_dir, "puzzle.txt")

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def write(self, text):
        with open(self.puzzle, "w") as f:
            f.write(text)

    def test_read_board(self):
        self.write("1,0,3,4\n3, 4,1,2\n\n2,1,0,3\n4,3,2,1\n")
        board = read_board(self.puzzle)
        self.assertEqual(board[1], [3, 4, 1, 2])
        self.assertEqual(len(board), 4)
        self.assertEqual(validate_board(board), 4)

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            read_board(os.path.join(self.temp_dir, "nope.txt"))

    def test_bad_integer(self):
        self.write("1,2,x,4\n")
        with self.assertRaises(ValueError) as ctx:
            read_board(self.puzzle)
        self.assertIn("line 1, field 3", str(ctx.exception))

    def test_validate_rejects_shapes_and_values(self):
        with self.assertRaises(ValueError):
            validate_board([])
        with self.assertRaises(ValueError):
            validate_board([[1, 2], [2, 1]])
        with self.assertRaises(ValueError):
            validate_board([[0] * 4, [0] * 4, [0] * 3, [0] * 4])
        with self.assertRaises(ValueError):
            validate_board([[5, 0, 0, 0]] + [[0] * 4] * 3)
        self.assertEqual(validate_board([[-4, 0, 0, 0]] + [[0] * 4] * 3), 4)

    def test_format_and_filled(self):
        board = [[1, 0, 0, 0], [0] * 4, [0] * 4, [0, 0, 0, 2]]
        self.assertEqual(format_board(board).splitlines()[0], "[1 0 0 0]")
        self.assertEqual(filled_cells(board), [(0, 0), (3, 3)])

    def test_write_board_is_readable(self):
        board = [[1, 0, 0, 0], [0] * 4, [0] * 4, [0, 0, 0, 2]]
        write_board(board, self.puzzle)
        self.assertEqual(read_board(self.puzzle), board)


if __name__ == "__main__":
    unittest.main()
