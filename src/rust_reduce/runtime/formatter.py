"""
Formatter collaborator

Runs `cargo fmt` (project mode) or `rustfmt <file>` (single-file mode) on
the final result. A missing or failing formatter is never fatal.
"""

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from ..utils.config import CARGO_FMT_COMMAND, RUSTFMT_COMMAND

logger = logging.getLogger(__name__)


@dataclass
class FormatterResult:
    ok: bool
    message: str = ""


def run_formatter(argv: Sequence[str], cwd: Optional[Path] = None) -> FormatterResult:
    """Run a formatter command, downgrading every failure to a warning."""
    argv = [str(part) for part in argv]
    try:
        completed = subprocess.run(
            argv,
            cwd=str(cwd) if cwd is not None else None,
            capture_output=True,
            check=False,
        )
    except OSError as e:
        logger.warning(f"{argv[0]} could not be launched, result left unformatted: {e}")
        return FormatterResult(ok=False, message=str(e))
    if completed.returncode != 0:
        stderr = completed.stderr.decode("utf-8", errors="replace").strip()
        logger.warning(f"{' '.join(argv)} exited with {completed.returncode}, result left unformatted: {stderr}")
        return FormatterResult(ok=False, message=stderr)
    logger.debug(f"Formatted with {' '.join(argv)}")
    return FormatterResult(ok=True)


def format_project(root: Path) -> FormatterResult:
    return run_formatter(CARGO_FMT_COMMAND, cwd=root)


def format_file(path: Path) -> FormatterResult:
    return run_formatter(list(RUSTFMT_COMMAND) + [str(path)])
