from pathlib import Path
import argparse
import json
import sys
from dataclasses import dataclass, field
from typing import Dict, List, Optional
from .board import read_board, validate_board, format_board, write_board
from .parser import PARSERS, get_parser
from .PuzzleGenerator import PuzzleGenerator
from .Runner import Runner, ExecConfig, log_results
from .SudokuToCNF import SudokuEncoder, clause_count
from . import report


@dataclass
class Config:
    solver: ExecConfig = field(default_factory=lambda: ExecConfig(name="minisat", path=Path("minisat")))
    result_parser: str = "last_line"
    cnf_path: Optional[str] = None
    timeout: Optional[float] = None
    seed: Optional[int] = None
    stop_at_first_failure: bool = True
    results_csv: Optional[str] = None
    verbose: bool = True

    def cnf_path_for(self, size: int) -> Path:
        return Path(self.cnf_path or f"create_minisat_input_{size}x{size}.txt")


def _parse_solver(data: Dict) -> ExecConfig:
    """Parse solver configuration from dictionary"""
    path = data.get("path", "minisat")
    return ExecConfig(
        name=data.get("name", Path(path).name),
        path=Path(path),
        options=list(data.get("options", [])),
        enabled=data.get("enabled", True),
    )


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load and validate configuration from JSON file into dataclass"""
    if config_path is None:
        return Config()
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with config_path.open() as f:
        data = json.load(f)

    result_parser = data.get("result_parser", "last_line")
    if result_parser not in PARSERS:
        raise ValueError(f"Unknown result_parser in config: {result_parser}")

    return Config(
        solver=_parse_solver(data.get("solver", {})),
        result_parser=result_parser,
        cnf_path=data.get("cnf_path"),
        timeout=data.get("timeout"),
        seed=data.get("seed"),
        stop_at_first_failure=data.get("stop_at_first_failure", True),
        results_csv=data.get("results_csv"),
        verbose=data.get("verbose", True),
    )


def make_runner(config: Config) -> Runner:
    if not config.solver.enabled:
        raise RuntimeError(f"Solver {config.solver.name} is disabled in the config.")
    runner = Runner(get_parser(config.result_parser))
    runner.set_config(config.solver)
    return runner


def cmd_encode(args: argparse.Namespace, config: Config) -> int:
    board = read_board(args.puzzle)
    size = validate_board(board)
    encoder = SudokuEncoder(size)
    out = Path(args.output) if args.output else config.cnf_path_for(size)
    clauses = encoder.encode(board)
    encoder.write(board, out)
    print(f"Wrote {out}: {encoder.num_vars} variables, {len(clauses)} clauses "
          f"({clause_count(size)} base + {len(clauses) - clause_count(size)} clues)")
    return 0


def cmd_solve(args: argparse.Namespace, config: Config) -> int:
    board = read_board(args.puzzle)
    size = validate_board(board)
    print(format_board(board))
    runner = make_runner(config)
    generator = PuzzleGenerator(SudokuEncoder(size), runner, config.cnf_path_for(size),
                                timeout=config.timeout, verbose=True)
    result = generator.check(board)
    print(result.status == "SAT")
    return 0


def cmd_generate(args: argparse.Namespace, config: Config) -> int:
    board = read_board(args.puzzle)
    size = validate_board(board)
    print(format_board(board))
    runner = make_runner(config)
    generator = PuzzleGenerator(
        SudokuEncoder(size),
        runner,
        config.cnf_path_for(size),
        timeout=config.timeout,
        seed=args.seed if args.seed is not None else config.seed,
        stop_at_first_failure=config.stop_at_first_failure and not args.keep_going,
        verbose=config.verbose,
    )
    puzzle = generator.generate(board)
    if not config.verbose:
        print(format_board(puzzle))
    results_csv = args.log or config.results_csv
    if results_csv and generator.steps:
        log_results(generator.steps, results_csv)
    if args.output:
        write_board(puzzle, args.output)
        print(f"Puzzle written to {args.output}")
    return 0


def cmd_report(args: argparse.Namespace, config: Config) -> int:
    df = report.read_results_from_csv(args.csv)
    if df is None:
        return 1
    for key, value in report.summarize(df).items():
        print(f"{key}: {value}")
    if args.plot:
        report.plot_steps(df, args.plot)
        print(f"Plot written to {args.plot}")
    return 0


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="sudokusat", description="Encode Sudoku grids as DIMACS CNF and check them with an external SAT solver")
    p.add_argument("--config", type=Path, default=None, help="JSON config file")
    sub = p.add_subparsers(dest="command", required=True)

    enc = sub.add_parser("encode", help="Write the CNF for a puzzle")
    enc.add_argument("puzzle", type=Path, help="Comma-separated grid file")
    enc.add_argument("-o", "--output", default=None, help="CNF output path")
    enc.set_defaults(func=cmd_encode)

    solve = sub.add_parser("solve", help="Check whether a puzzle is satisfiable")
    solve.add_argument("puzzle", type=Path, help="Comma-separated grid file")
    solve.set_defaults(func=cmd_solve)

    gen = sub.add_parser("generate", help="Remove cells while the solution stays unique")
    gen.add_argument("puzzle", type=Path, help="Comma-separated grid file")
    gen.add_argument("--seed", type=int, default=None, help="Seed for the cell order")
    gen.add_argument("--continue", dest="keep_going", action="store_true",
                     help="Try every cell instead of stopping at the first one that must stay")
    gen.add_argument("--log", default=None, help="Append the removal trace to this CSV")
    gen.add_argument("-o", "--output", default=None, help="Write the puzzle to this file")
    gen.set_defaults(func=cmd_generate)

    rep = sub.add_parser("report", help="Summarize a removal trace CSV")
    rep.add_argument("csv", type=Path)
    rep.add_argument("--plot", default=None, help="Save a plot of solver time per step")
    rep.set_defaults(func=cmd_report)
    return p


def main(argv: Optional[List[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)
    try:
        config = load_config(args.config)
        return args.func(args, config)
    except (OSError, ValueError, RuntimeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
