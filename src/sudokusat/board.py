from pathlib import Path
from math import isqrt
from typing import List, Tuple, Union

Board = List[List[int]]


def read_board(path: Union[str, Path]) -> Board:
    """Read a Sudoku grid from a comma-separated file, one row per line."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Puzzle file not found: {path}")
    board: Board = []
    with open(path, "r", encoding="UTF-8") as f:
        for line_no, line in enumerate(f, start=1):
            s = line.strip()
            if not s:
                continue
            row: List[int] = []
            for field_no, num_str in enumerate(s.split(","), start=1):
                try:
                    row.append(int(num_str.strip()))
                except ValueError:
                    raise ValueError(
                        f"Error converting string to int at line {line_no}, field {field_no}: {num_str!r}"
                    ) from None
            board.append(row)
    return board


def validate_board(board: Board) -> int:
    """
    Checks that the grid is N x N with N = n*n >= 4 and every value in -N..N.

    Returns:
        int: the grid size N.

    Raises:
        ValueError: On any shape or range violation.
    """
    size = len(board)
    if size == 0:
        raise ValueError("Empty puzzle")
    for r, row in enumerate(board):
        if len(row) != size:
            raise ValueError(f"Puzzle must be N x N, got row {r + 1} of length {len(row)} for N={size}")
    block = isqrt(size)
    if block * block != size or block < 2:
        raise ValueError(f"N must be a perfect square of at least 4; got N={size}")
    for r, row in enumerate(board):
        for c, v in enumerate(row):
            if abs(v) > size:
                raise ValueError(f"Cell ({r + 1},{c + 1}) has value {v} outside allowed range 0..{size}")
    return size


def copy_board(board: Board) -> Board:
    return [list(row) for row in board]


def filled_cells(board: Board) -> List[Tuple[int, int]]:
    return [(r, c) for r, row in enumerate(board) for c, v in enumerate(row) if v != 0]


def format_board(board: Board) -> str:
    return "\n".join("[" + " ".join(str(v) for v in row) + "]" for row in board)


def write_board(board: Board, path: Union[str, Path]) -> None:
    with open(path, "w", encoding="UTF-8") as f:
        for row in board:
            f.write(",".join(str(v) for v in row) + "\n")
