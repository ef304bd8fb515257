"""
Reduction Driver

Rust Pattern: rustc_driver::driver
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

from ..analysis.module_system import ModuleInliner
from ..passes.base import PassManager, PassStats
from ..passes.prune_items import PruneItemsPass
from ..passes.remove_attrs import RemoveDeriveAttrsPass, RemoveDocAttrsPass
from ..passes.empty_blocks import EmptyBlocksPass
from ..passes.clear_blocks import ClearBlocksPass
from ..passes.privatiser import PrivatiserPass
from ..runtime.formatter import FormatterResult
from ..runtime.oracle import Oracle, OracleResult
from ..shared.errors import ErrorReporter, InitialRunNotInterestingError, ReduceError
from ..shared.nodes import SourceFile
from ..shared.serialization import serialize_source
from ..utils.config import BIN_ENTRY_POINT, LIB_ENTRY_POINT
from ..utils.io_utils import backup_file, read_source_file, save_minimised_copy, write_source_file

logger = logging.getLogger(__name__)

Formatter = Callable[[], FormatterResult]


def find_entry_point(root: Path) -> Path:
    """
    The crate root file of the project at `root`.

    `src/main.rs` if it exists, otherwise `src/lib.rs`.
    """
    root = Path(root)
    for candidate in (BIN_ENTRY_POINT, LIB_ENTRY_POINT):
        path = root / candidate
        if path.is_file():
            return path
    raise ReduceError(f"could not find `{BIN_ENTRY_POINT}` or `{LIB_ENTRY_POINT}` in {root}")


@dataclass
class ReductionSummary:
    """What one reduction run did"""
    path: Path
    backup_path: Path
    minimised_path: Optional[Path] = None
    original_size: int = 0
    final_size: int = 0
    oracle_calls: int = 0
    formatted: bool = False
    pass_stats: List[PassStats] = field(default_factory=list)

    @property
    def accepted(self) -> int:
        return sum(stats.accepted for stats in self.pass_stats)


class ReductionResult:
    """Reduction result"""
    def __init__(
        self,
        summary: Optional[ReductionSummary] = None,
        reporter: Optional[ErrorReporter] = None,
        success: bool = False
    ):
        self.summary = summary
        self.reporter = reporter if reporter is not None else ErrorReporter()
        self.success = success

    def has_errors(self) -> bool:
        return self.reporter.has_errors()


def default_pass_manager() -> PassManager:
    """
    The six reduction passes in their fixed order:
    prune items, strip derives, strip docs, empty bodies, clear bodies,
    demote visibility.
    """
    manager = PassManager()
    for pass_class in (
        PruneItemsPass,
        RemoveDeriveAttrsPass,
        RemoveDocAttrsPass,
        EmptyBlocksPass,
        ClearBlocksPass,
        PrivatiserPass,
    ):
        manager.register_pass(pass_class)
    return manager


class ReductionDriver:
    """
    Reduction driver (Rust naming: rustc_driver::driver).

    Rust Pattern: rustc_driver::driver

    Phases:
    1. Check the unmodified input is interesting
    2. Back up the input, inline its modules
    3. Check the inlined input is interesting
    4. Run every pass to its fixpoint
    5. Write the final tree, format it, save a `.min` copy

    The working file always holds the last interesting candidate
    between oracle runs, so an interrupted run leaves a usable result.
    """

    def __init__(
        self,
        oracle: Oracle,
        formatter: Optional[Formatter] = None,
        inliner: Optional[ModuleInliner] = None,
        pass_manager: Optional[PassManager] = None,
    ):
        self.oracle = oracle
        self.formatter = formatter
        self.inliner = inliner or ModuleInliner()
        self.pass_manager = pass_manager or default_pass_manager()
        self.oracle_calls = 0
        self._accepted_source: Optional[str] = None

    @property
    def path(self) -> Path:
        return self.oracle.path

    def run(self) -> ReductionResult:
        """
        Reduce, collecting fatal errors into a reporter instead of raising.

        File system failures are reported like any other fatal error.
        """
        reporter = ErrorReporter()
        try:
            summary = self.reduce()
        except ReduceError as e:
            reporter.report_exception(e)
            return ReductionResult(reporter=reporter, success=False)
        except OSError as e:
            # Backup, module or working file could not be read or written
            reporter.report_error(
                f"could not access `{e.filename or self.path}`: {e.strerror or e}",
                None,
            )
            return ReductionResult(reporter=reporter, success=False)
        return ReductionResult(summary=summary, reporter=reporter, success=True)

    def reduce(self) -> ReductionSummary:
        """
        Run the whole pipeline.

        Raises:
            InitialRunNotInterestingError: the input (or its inlined form) is not interesting
            UnresolvedModulesError, CircularModuleError, ParseError: the input cannot be loaded
        """
        initial = self._check()
        if not initial.interesting:
            raise InitialRunNotInterestingError(initial.message)

        backup = backup_file(self.path)
        tree = self.inliner.inline_file(self.path)
        original_size = sum(len(read_source_file(p).encode()) for p in self.inliner.loaded_files)

        inlined_source = serialize_source(tree)
        inlined = self._write_and_check(inlined_source)
        if not inlined.interesting:
            raise InitialRunNotInterestingError(inlined.message, stage="inlined input")
        self._accepted_source = inlined_source

        pass_stats = self.pass_manager.run_all(tree, self.try_candidate)

        final = self._write_and_check(serialize_source(tree))
        if not final.interesting:
            logger.warning(f"Final candidate was not interesting on re-check: {final.message}")

        summary = ReductionSummary(
            path=self.path,
            backup_path=backup,
            original_size=original_size,
            pass_stats=pass_stats,
        )
        if self.formatter is not None:
            summary.formatted = self.formatter().ok
        summary.minimised_path = save_minimised_copy(self.path)
        summary.final_size = len(read_source_file(self.path).encode())
        summary.oracle_calls = self.oracle_calls
        logger.info(f"Reduced {self.path}: {summary.original_size} -> {summary.final_size} bytes")
        return summary

    def try_candidate(self, tree: SourceFile) -> bool:
        """
        Write `tree` where the oracle reads it and ask the oracle.

        A rejected candidate is replaced on disk by the last accepted one.
        """
        source = serialize_source(tree)
        result = self._write_and_check(source)
        if result.interesting:
            self._accepted_source = source
        elif self._accepted_source is not None:
            write_source_file(self.path, self._accepted_source)
        return result.interesting

    def _write_and_check(self, source: str) -> OracleResult:
        write_source_file(self.path, source)
        return self._check()

    def _check(self) -> OracleResult:
        self.oracle_calls += 1
        return self.oracle.run()
