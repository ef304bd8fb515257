"""
Base Pass System

Rust Pattern: rustc_mir::transform::MirPass
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Type

from typing_extensions import TypeAlias

from ..shared.nodes import SourceFile

logger = logging.getLogger(__name__)

# Writes the candidate where the oracle reads it and reports whether it is interesting
TryCandidate: TypeAlias = Callable[[SourceFile], bool]


class MutationResult(Enum):
    MUTATED = "mutated"
    # The addressed slot exists but the mutation would not change the tree
    SKIPPED = "skipped"


@dataclass
class PassStats:
    """Per-pass counters reported by the driver."""
    name: str
    attempts: int = 0
    accepted: int = 0
    skipped: int = 0
    sweeps: int = 0


class ReductionPass(ABC):
    """
    Base class for all reduction passes.

    Rust Pattern: rustc_mir::transform::MirPass

    Every pass is a greedy, oracle-verified search:
    - snapshot the tree, apply one mutation, ask the oracle
    - interesting: keep it and retry the same position, since the
      following targets have shifted into it
    - not interesting: restore the snapshot and advance
    - a no-op mutation is skipped without consulting the oracle
    - sweeps repeat until one accepts nothing
    """
    requires: List[Type['ReductionPass']] = []  # Dependencies (empty by default)
    name: str = ""
    description: str = ""

    def run(self, tree: SourceFile, try_candidate: TryCandidate) -> PassStats:
        """
        Run the pass to its fixpoint.

        Returns: counters for this pass
        """
        stats = PassStats(self.name or type(self).__name__)
        logger.info(self.description or stats.name)
        while True:
            stats.sweeps += 1
            accepted = self._sweep(tree, try_candidate, stats)
            logger.debug(f"{stats.name}: sweep {stats.sweeps} accepted {accepted}")
            if accepted == 0:
                break
        return stats

    def _sweep(self, tree: SourceFile, try_candidate: TryCandidate, stats: PassStats) -> int:
        accepted = 0
        index = 0
        while True:
            snapshot = tree.snapshot()
            result = self.mutate(tree, index)
            if result is None:
                return accepted
            if self._settle(tree, snapshot, result, try_candidate, stats):
                accepted += 1
            else:
                index += 1

    def _settle(
        self,
        tree: SourceFile,
        snapshot: SourceFile,
        result: MutationResult,
        try_candidate: TryCandidate,
        stats: PassStats,
    ) -> bool:
        """
        Verify one applied mutation. True iff it was accepted, in which
        case the caller must retry the same position.
        """
        if result is MutationResult.SKIPPED:
            stats.skipped += 1
            return False
        stats.attempts += 1
        if try_candidate(tree):
            stats.accepted += 1
            return True
        logger.debug(f"{stats.name}: candidate rejected, restoring snapshot")
        tree.restore(snapshot)
        return False

    @abstractmethod
    def mutate(self, tree: SourceFile, index: int) -> Optional[MutationResult]:
        """
        Apply the mutation addressed by `index` in place.

        Returns: None when `index` addresses no target (end of sweep)
        """
        raise NotImplementedError


class PassManager:
    """
    Pass manager with dependency resolution.

    Rust Pattern: rustc driver with pass scheduling

    Passes run strictly one after another; each one runs to its own
    fixpoint before the next starts.
    """

    def __init__(self):
        self.passes: List[Type[ReductionPass]] = []
        self._dependency_graph: dict[Type[ReductionPass], set[Type[ReductionPass]]] = {}

    def register_pass(self, pass_class: Type[ReductionPass]) -> None:
        """Register a pass"""
        self.passes.append(pass_class)
        self._dependency_graph[pass_class] = set(pass_class.requires)

    def run_all(self, tree: SourceFile, try_candidate: TryCandidate) -> List[PassStats]:
        """
        Run all passes in dependency order.

        Rust Pattern: rustc driver schedules passes based on dependencies
        """
        results = []
        for pass_class in self._topological_sort():
            stats = pass_class().run(tree, try_candidate)
            logger.debug(
                f"{stats.name}: {stats.accepted} accepted, {stats.attempts} attempts, "
                f"{stats.skipped} skipped, {stats.sweeps} sweeps"
            )
            results.append(stats)
        return results

    def _topological_sort(self) -> List[Type[ReductionPass]]:
        """Topological sort of passes by dependencies"""
        in_degree = {p: len(self._dependency_graph[p]) for p in self.passes}
        queue = [p for p, degree in in_degree.items() if degree == 0]
        result = []

        while queue:
            pass_class = queue.pop(0)
            result.append(pass_class)

            for other_pass in self.passes:
                if pass_class in self._dependency_graph[other_pass]:
                    in_degree[other_pass] -= 1
                    if in_degree[other_pass] == 0:
                        queue.append(other_pass)

        if len(result) != len(self.passes):
            raise RuntimeError("Circular dependency detected in passes")

        return result
