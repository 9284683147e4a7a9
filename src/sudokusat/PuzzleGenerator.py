import random
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple, Union
from .board import Board, copy_board, filled_cells, format_board
from .parser import Result, Status
from .Runner import Runner
from .SudokuToCNF import SudokuEncoder


class UnsatisfiablePuzzleError(RuntimeError):
    pass


@dataclass
class Step:
    step: int
    row: int
    column: int
    digit: int
    status: Status
    removed: bool
    time: float = 0.0
    memory_peak_mb: float = 0.0


def random_cells(size: int, rng: Optional[random.Random] = None) -> List[Tuple[int, int]]:
    """All 0-based (row, column) positions of the grid in random order."""
    rng = rng or random.Random()
    combinations = [(i, j) for i in range(size) for j in range(size)]
    rng.shuffle(combinations)
    return combinations


class PuzzleGenerator:
    """
    Turns a solved (or partially solved) grid into a puzzle by blanking
    cells in random order while the solution stays unique.

    A cell is tested by excluding its digit: if the solver still finds a
    solution, another completion exists and the digit has to stay.

    Attributes:
        encoder (SudokuEncoder): Encoder for the grid size.
        runner (Runner): Configured solver runner.
        cnf_path (Path): File rewritten before every solver call.
        timeout (Optional[float]): Per-call solver timeout in seconds.
        stop_at_first_failure (bool): Stop at the first cell that cannot be
            removed instead of trying the remaining ones.
        steps (List[Step]): Trace of the last generate() call.
    """

    def __init__(
        self,
        encoder: SudokuEncoder,
        runner: Runner,
        cnf_path: Union[str, Path],
        timeout: Optional[float] = None,
        seed: Optional[int] = None,
        stop_at_first_failure: bool = True,
        verbose: bool = True,
    ) -> None:
        self.encoder: SudokuEncoder = encoder
        self.runner: Runner = runner
        self.cnf_path: Path = Path(cnf_path)
        self.timeout: Optional[float] = timeout
        self.rng: random.Random = random.Random(seed)
        self.stop_at_first_failure: bool = stop_at_first_failure
        self.verbose: bool = verbose
        self.steps: List[Step] = []

    def check(self, board: Board) -> Result:
        """Writes the CNF for board and runs the solver on it."""
        self.encoder.write(board, self.cnf_path)
        result = self.runner.run(self.cnf_path, self.timeout)
        if self.verbose:
            print(f"Result: {result.last_line or result.status}")
        return result

    def generate(self, board: Board) -> Board:
        """
        Runs the removal loop on a copy of board and returns the puzzle.

        Raises:
            UnsatisfiablePuzzleError: If the starting grid has no solution.
        """
        sudoku = copy_board(board)
        self.steps = []

        first = self.check(sudoku)
        if first.status != "SAT":
            raise UnsatisfiablePuzzleError(f"Error the file is not satisfiable (solver status {first.status})")

        candidates = set(filled_cells(sudoku))
        for i, j in random_cells(self.encoder.size, self.rng):
            digit = sudoku[i][j]
            # cells given as -d are exclusions, not digits to remove
            if (i, j) not in candidates or digit < 0:
                continue
            sudoku[i][j] = -digit
            result = self.check(sudoku)
            # TIMEOUT/ERROR/UNKNOWN cannot prove uniqueness either, so the digit stays.
            removed = result.status == "UNSAT"
            self.steps.append(Step(
                step=len(self.steps) + 1,
                row=i + 1,
                column=j + 1,
                digit=digit,
                status=result.status,
                removed=removed,
                time=result.time,
                memory_peak_mb=result.memory_peak_mb,
            ))
            if removed:
                sudoku[i][j] = 0
                continue
            sudoku[i][j] = digit
            if self.stop_at_first_failure:
                break

        if self.verbose:
            print(format_board(sudoku))
        return sudoku
