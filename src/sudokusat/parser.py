from dataclasses import dataclass
from typing import Optional, Dict, Type
from typing_extensions import Literal
from abc import ABC, abstractmethod

Status = Literal["ERROR", "UNKNOWN", "TIMEOUT", "SAT", "UNSAT"]


@dataclass
class Result:
    solver: Optional[str] = None
    cnf: Optional[str] = None
    status: Status = "UNKNOWN"
    error: str = ""
    exit_code: int = -1
    memory_peak_mb: float = 0.0
    time: float = 0.0
    cpu_time: float = 0.0
    stdout: str = ""
    stderr: str = ""

    @property
    def last_line(self) -> str:
        """Final non-empty line of the solver output, "" when it printed nothing."""
        lines = [line.strip() for line in self.stdout.splitlines() if line.strip()]
        return lines[-1] if lines else ""


class ResultParser(ABC):
    """
    Strategy Design Pattern for the ways a solver reports its answer
    """

    @abstractmethod
    def parse_status(self, result: Result) -> Status:
        pass


class LastLineParser(ResultParser):
    """Reads the verdict from the last non-empty line of stdout, as minisat prints it."""

    def parse_status(self, result: Result) -> Status:
        last = result.last_line
        if last == "SATISFIABLE":
            return "SAT"
        elif last == "UNSATISFIABLE":
            return "UNSAT"
        else:
            return "UNKNOWN"


class ExitCodeParser(ResultParser):
    def parse_status(self, result: Result) -> Status:
        if result.exit_code == 10:
            return "SAT"
        elif result.exit_code == 20:
            return "UNSAT"
        else:
            return "UNKNOWN"


PARSERS: Dict[str, Type[ResultParser]] = {
    "last_line": LastLineParser,
    "exit_code": ExitCodeParser,
}


def get_parser(name: str) -> ResultParser:
    if name not in PARSERS:
        raise ValueError(f"Unknown result parser: {name} (expected one of {', '.join(PARSERS)})")
    return PARSERS[name]()
