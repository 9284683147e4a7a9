from pathlib import Path
from math import isqrt
from typing import List, Tuple, Union, Optional
from .board import Board, validate_board

Clause = List[int]


def varnum(row: int, column: int, digit: int, size: int = 9) -> int:
    """
    DIMACS variable for "the cell at (row, column) holds digit".
    All three arguments are 1-based; the result is in 1..size**3.
    """
    if not (1 <= row <= size and 1 <= column <= size and 1 <= digit <= size):
        raise ValueError(f"({row}, {column}, {digit}) out of range for size {size}")
    return (row - 1) * size * size + (column - 1) * size + digit


def clause_count(size: int) -> int:
    """Number of clauses produced by generate_clauses(size)."""
    return size * size + 3 * size * size * size * (size - 1) // 2


def generate_clauses(size: int = 9) -> List[Clause]:
    """Base Sudoku constraints for an N x N grid, independent of the clues."""
    block = isqrt(size)
    if block * block != size:
        raise ValueError(f"N must be a perfect square; got N={size}")
    clauses: List[Clause] = []

    # each cell contains at least one digit
    for row in range(1, size + 1):
        for column in range(1, size + 1):
            clauses.append([varnum(row, column, digit, size) for digit in range(1, size + 1)])

    # each digit at most once per row
    for row in range(1, size + 1):
        for digit in range(1, size + 1):
            for column1 in range(1, size + 1):
                for column2 in range(column1 + 1, size + 1):
                    clauses.append([-varnum(row, column1, digit, size), -varnum(row, column2, digit, size)])

    # each digit at most once per column
    for column in range(1, size + 1):
        for digit in range(1, size + 1):
            for row1 in range(1, size + 1):
                for row2 in range(row1 + 1, size + 1):
                    clauses.append([-varnum(row1, column, digit, size), -varnum(row2, column, digit, size)])

    # each digit at most once per block
    for digit in range(1, size + 1):
        for row_start in range(1, size + 1, block):
            for column_start in range(1, size + 1, block):
                for pos in range(size):
                    for pos2 in range(pos + 1, size):
                        r1 = row_start + pos // block
                        c1 = column_start + pos % block
                        r2 = row_start + pos2 // block
                        c2 = column_start + pos2 % block
                        clauses.append([-varnum(r1, c1, digit, size), -varnum(r2, c2, digit, size)])

    return clauses


def to_clauses(board: Board) -> List[Clause]:
    """
    Unit clauses for the known cells. A negative value -d excludes digit d
    from its cell; zero cells add nothing.
    """
    size = len(board)
    clauses: List[Clause] = []
    for i, row in enumerate(board):
        for j, v in enumerate(row):
            if v == 0:
                continue
            literal = varnum(i + 1, j + 1, abs(v), size)
            clauses.append([-literal if v < 0 else literal])
    return clauses


def write_cnf(clauses: List[Clause], num_vars: int, path: Union[str, Path]) -> Path:
    """Overwrites path with the DIMACS CNF text of clauses."""
    path = Path(path)
    with open(path, "w") as f:
        f.write(f"p cnf {num_vars} {len(clauses)}\n")
        for clause in clauses:
            f.write("".join(f"{literal} " for literal in clause) + "0\n")
    return path


def read_cnf(path: Union[str, Path]) -> Tuple[int, List[Clause]]:
    """
    Parses a DIMACS CNF file.

    Returns:
        tuple: (number of variables, clauses without the terminating 0).

    Raises:
        ValueError: If the header is missing or malformed, or its counts
            disagree with the body.
    """
    num_vars: Optional[int] = None
    num_clauses: Optional[int] = None
    clauses: List[Clause] = []
    pending: Clause = []
    with open(path, "r") as f:
        for line in f:
            s = line.strip()
            if not s or s.startswith("c"):
                continue
            if s.startswith("p"):
                parts = s.split()
                if len(parts) != 4 or parts[1] != "cnf":
                    raise ValueError(f"Malformed header line: {s!r}")
                num_vars, num_clauses = int(parts[2]), int(parts[3])
                continue
            if num_vars is None:
                raise ValueError("Clause found before the 'p cnf' header")
            for token in s.split():
                literal = int(token)
                if literal == 0:
                    clauses.append(pending)
                    pending = []
                else:
                    if abs(literal) > num_vars:
                        raise ValueError(f"Literal {literal} exceeds declared variable count {num_vars}")
                    pending.append(literal)
    if num_vars is None or num_clauses is None:
        raise ValueError("Missing 'p cnf' header")
    if pending:
        raise ValueError("Last clause is not terminated by 0")
    if len(clauses) != num_clauses:
        raise ValueError(f"Header declares {num_clauses} clauses, body has {len(clauses)}")
    return num_vars, clauses


class SudokuEncoder:
    """
    Encodes grids of one size. The base clauses depend only on the size,
    so they are built once and reused for every grid.
    """

    def __init__(self, size: int = 9) -> None:
        self.size: int = size
        self.base_clauses: List[Clause] = generate_clauses(size)

    @property
    def num_vars(self) -> int:
        return self.size ** 3

    def encode(self, board: Board) -> List[Clause]:
        size = validate_board(board)
        if size != self.size:
            raise ValueError(f"Encoder is for {self.size}x{self.size} grids, got {size}x{size}")
        return self.base_clauses + to_clauses(board)

    def write(self, board: Board, path: Union[str, Path]) -> Path:
        return write_cnf(self.encode(board), self.num_vars, path)
