"""
Oracle Runner

Wraps the external verification command that decides whether a candidate
is still interesting. The candidate has already been written to `path`
when `run()` is called; the oracle only launches the command and
classifies its outcome.

Rust Pattern: Minimal runtime, command delegation
"""

import logging
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional, Sequence

logger = logging.getLogger(__name__)


class Verdict(Enum):
    INTERESTING = "interesting"
    NOT_INTERESTING = "not-interesting"


@dataclass
class OracleResult:
    """
    Outcome of one oracle invocation.

    `launch_error` is set when the command could not be started at all;
    such a result is NOT_INTERESTING but is not a semantic rejection.
    """
    verdict: Verdict
    message: str = ""
    launch_error: Optional[str] = None

    @property
    def interesting(self) -> bool:
        return self.verdict is Verdict.INTERESTING

    @classmethod
    def accept(cls, message: str = "") -> "OracleResult":
        return cls(Verdict.INTERESTING, message)

    @classmethod
    def reject(cls, message: str) -> "OracleResult":
        return cls(Verdict.NOT_INTERESTING, message)

    @classmethod
    def failed_to_launch(cls, error: str) -> "OracleResult":
        return cls(Verdict.NOT_INTERESTING, f"failed to execute: {error}", launch_error=error)


class Oracle(ABC):
    """
    An external predicate over the file at `path`.

    `root` is the project directory (the formatter runs there);
    `path` is the file the command reads and the reducer rewrites.
    """

    def __init__(self, command: Sequence[str], path: Path, root: Optional[Path] = None):
        if not command:
            raise ValueError("oracle command must not be empty")
        self.command: List[str] = [str(part) for part in command]
        self.path = Path(path)
        self.root = Path(root) if root is not None else self.path.parent

    @abstractmethod
    def run(self) -> OracleResult:
        raise NotImplementedError

    def _launch_failure(self, argv: List[str], error: OSError) -> OracleResult:
        logger.warning(f"Oracle command {argv[0]!r} could not be launched: {error}")
        return OracleResult.failed_to_launch(str(error))


class ExitCodeOracle(Oracle):
    """
    Interesting iff `command... <path>` exits with status 0.

    Output is discarded. This is the `rust-reduce` mode.
    """

    def run(self) -> OracleResult:
        argv = self.command + [str(self.path)]
        try:
            completed = subprocess.run(argv, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL, check=False)
        except OSError as e:
            return self._launch_failure(argv, e)
        if completed.returncode == 0:
            return OracleResult.accept()
        result = OracleResult.reject(f"exit code was non-zero ({completed.returncode})")
        logger.debug(f"Candidate rejected: {result.message}")
        return result


class MarkerOracle(Oracle):
    """
    Interesting iff `marker` appears in the command's stdout or stderr.

    The command runs in `root` and is not given the file path; it is
    expected to build the project (e.g. `cargo test`). This is the
    `cargo-reduce` mode.
    """

    def __init__(self, command: Sequence[str], marker: str, path: Path, root: Optional[Path] = None):
        super().__init__(command, path, root)
        self.marker = marker

    def run(self) -> OracleResult:
        try:
            completed = subprocess.run(self.command, cwd=str(self.root), capture_output=True, check=False)
        except OSError as e:
            return self._launch_failure(self.command, e)
        stdout = completed.stdout.decode("utf-8", errors="replace")
        stderr = completed.stderr.decode("utf-8", errors="replace")
        if self.marker in stdout or self.marker in stderr:
            return OracleResult.accept()
        result = OracleResult.reject(
            f"could not find `{self.marker}` in:\nout:\n{stdout}\nerr:\n{stderr}"
        )
        logger.debug(f"Candidate rejected: `{self.marker}` not in output (exit code {completed.returncode})")
        return result
