from .SudokuToCNF import SudokuEncoder, varnum, generate_clauses, clause_count, to_clauses, write_cnf, read_cnf
from .board import read_board, validate_board

__version__ = "0.1.0"
