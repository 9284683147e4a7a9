import subprocess
import tempfile
import shutil
import time
import os
import psutil
from pathlib import Path
import csv
from typing import List, Optional, Tuple, Union, Sequence
from dataclasses import dataclass, field, asdict, is_dataclass
from .parser import Result, ResultParser, LastLineParser


@dataclass
class ExecConfig:
    name: str
    path: Path
    options: List[str] = field(default_factory=list)
    enabled: bool = True


TIMEOUT_EXIT_CODE = -1


def resolve_executable(path: Union[str, Path]) -> Path:
    """
    Returns the solver executable as a path. A bare command name such as
    ``minisat`` is looked up on PATH.

    Raises:
        FileNotFoundError: If neither the path nor a PATH lookup finds it.
    """
    if os.path.exists(path):
        return Path(path)
    found = shutil.which(str(path))
    if found is None:
        raise FileNotFoundError(f"Solver path not found: {path}")
    return Path(found)


class Runner:
    """
    Class to execute a SAT solver on a CNF file, monitor its performance,
    and collect statistics such as CPU time, peak memory and execution time.

    The solver runs in the foreground: the calling thread polls the process
    until it exits or the timeout is reached.
    """

    poll_interval: float = 0.05

    def __init__(self, strategy: Optional[ResultParser] = None) -> None:
        """
        Initializes the Runner with the strategy used to read the solver verdict.

        Args:
            strategy (ResultParser): Output interpretation. Defaults to the
                last-line parser (``SATISFIABLE`` on the final stdout line).
        """
        self._strategy: ResultParser = strategy or LastLineParser()
        self._path: Optional[Path] = None
        self._name: Optional[str] = None
        self._options: List[str] = []

    def set_config(self, config: ExecConfig) -> None:
        """
        Raises:
            FileNotFoundError: If the solver path does not exist.
        """
        self._path = resolve_executable(config.path)
        self._name = config.name
        self._options = list(config.options)

    @property
    def name(self) -> Optional[str]:
        return self._name

    @property
    def strategy(self) -> ResultParser:
        return self._strategy

    @strategy.setter
    def strategy(self, strategy: ResultParser) -> None:
        self._strategy = strategy

    @staticmethod
    def _sample(process: psutil.Process) -> Tuple[float, float]:
        """Memory (MB) and CPU time (s) of the process and all its children."""
        current_mem = 0.0
        total_cpu_time = 0.0
        try:
            all_processes = [process] + process.children(recursive=True)
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            return current_mem, total_cpu_time
        for p in all_processes:
            try:
                with p.oneshot():
                    current_mem += p.memory_info().rss / (1024 * 1024)
                    t = p.cpu_times()
                    total_cpu_time += t.user + t.system
            except (psutil.NoSuchProcess, psutil.AccessDenied):
                continue
        return current_mem, total_cpu_time

    @staticmethod
    def _kill(process: psutil.Process) -> None:
        try:
            children = process.children(recursive=True)
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            children = []
        for p in children + [process]:
            try:
                p.kill()
            except (psutil.NoSuchProcess, psutil.AccessDenied):
                continue

    def run(self, cnf_path: Union[str, Path], timeout: Optional[float] = None) -> Result:
        """
        Executes the SAT solver on the specified CNF file with a time limit.

        Args:
            cnf_path (str | Path): Path to the CNF input file.
            timeout (float | None): Seconds after which the solver is killed.

        Returns:
            Result: exit code, wall and CPU time, peak memory, raw output and
            the status decided by the parsing strategy ("SAT", "UNSAT",
            "UNKNOWN", "TIMEOUT" or "ERROR").

        Raises:
            RuntimeError: If no solver config was set.
            FileNotFoundError: If the CNF input file does not exist.
        """
        if self._path is None or self._name is None:
            raise RuntimeError("Config of the solver to run not set.")
        cnf_path = Path(cnf_path)
        if not cnf_path.exists():
            raise FileNotFoundError(f"CNF file not found: {cnf_path}")

        result = Result(solver=self._name, cnf=str(cnf_path))
        cmd: List[str] = [str(self._path)] + self._options + [str(cnf_path)]

        start_time: float = time.time()
        peak_memory: float = 0.0
        main_cpu_time: float = 0.0
        timed_out = False

        # Output goes to files rather than pipes so polling cannot block on a full buffer.
        with tempfile.TemporaryFile() as out, tempfile.TemporaryFile() as err:
            try:
                process = subprocess.Popen(cmd, stdout=out, stderr=err)
            except OSError as e:
                result.status = "ERROR"
                result.error = f"Execution error: {e}"
                result.time = time.time() - start_time
                return result

            try:
                ps_process = psutil.Process(process.pid)
            except psutil.NoSuchProcess:
                ps_process = None

            while process.poll() is None:
                if ps_process is not None:
                    current_mem, cpu_time = self._sample(ps_process)
                    peak_memory = max(peak_memory, current_mem)
                    main_cpu_time = max(main_cpu_time, cpu_time)
                if timeout is not None and time.time() - start_time > timeout:
                    if ps_process is not None:
                        self._kill(ps_process)
                    else:
                        process.kill()
                    process.wait()
                    timed_out = True
                    break
                time.sleep(self.poll_interval)

            out.seek(0)
            err.seek(0)
            result.stdout = out.read().decode("utf-8", errors="replace").strip()
            result.stderr = err.read().decode("utf-8", errors="replace").strip()

        result.time = time.time() - start_time
        result.cpu_time = main_cpu_time
        result.memory_peak_mb = peak_memory
        if timed_out:
            result.exit_code = TIMEOUT_EXIT_CODE
            result.status = "TIMEOUT"
            result.error = "Timeout reached"
            return result

        result.exit_code = process.returncode
        result.status = self._strategy.parse_status(result)
        return result

    def is_satisfiable(self, cnf_path: Union[str, Path], timeout: Optional[float] = None) -> bool:
        return self.run(cnf_path, timeout).status == "SAT"


def log_results(results, output_path: Union[str, Path] = Path("results.csv")) -> None:
    """
    Appends the results of one or more runs to a CSV file.

    Args:
        results (dataclass or list of dataclasses): ``Result`` or ``Step`` records.
        output_path (str | Path): Path to the output CSV file (default: "results.csv").

    Notes:
        If the file does not exist or is empty, a header row is written first.

    Raises:
        ValueError: If the file already holds rows with a different header.
    """
    output_path = Path(output_path)
    rows: Sequence = results if isinstance(results, list) else [results]
    if not rows:
        return
    dicts = [asdict(r) if is_dataclass(r) else dict(r) for r in rows]
    fieldnames = list(dicts[0].keys())
    write_header = not output_path.exists() or os.stat(output_path).st_size == 0

    if not write_header:
        with open(output_path, mode="r", newline="") as file:
            existing = next(csv.reader(file), [])
        if existing != fieldnames:
            raise ValueError(
                f"{output_path} has columns {existing}, refusing to append rows with columns {fieldnames}"
            )

    with open(output_path, mode="a", newline="") as file:
        writer = csv.DictWriter(file, fieldnames=fieldnames)
        if write_header:
            writer.writeheader()
        writer.writerows(dicts)
