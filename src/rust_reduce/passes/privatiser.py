"""
Visibility Demotion Pass ("privatisation")

Flips one public visibility to private: on a top-level function, a named
struct field or a method. Targets sit at different depths, so they are
addressed by a (level, index) pair instead of a flat list:

- level 0 scans the top-level items; each item is one slot, and a slot
  holding anything but a public function is skipped
- level L > 0 recurses into every container (inline module, struct, impl
  block, enum) at level L - 1, consuming the remaining index as it goes
- struct fields and impl items are leaves that answer at every level
  below LEAF_LEVEL_LIMIT; enums contribute no slots

A level is exhausted when an index addresses no slot. Level 0 is always
finished before anything nested is touched.
"""

import logging
from typing import List, Optional

from .base import MutationResult, PassStats, ReductionPass, TryCandidate
from .clear_blocks import ClearBlocksPass
from .visitor_helpers import Cursor
from ..shared.nodes import (
    Declaration, FunctionDefinition, ImplBlock, ImplItem, MethodDefinition,
    ModuleDefinition, PRIVATE, SourceFile, StructDefinition, StructStyle,
)
from ..utils.config import LEAF_LEVEL_LIMIT

logger = logging.getLogger(__name__)


def _demote(node) -> MutationResult:
    if node.visibility.is_private:
        return MutationResult.SKIPPED
    node.visibility = PRIVATE
    return MutationResult.MUTATED


class PrivatiserPass(ReductionPass):
    requires = [ClearBlocksPass]
    name = "privatiser"
    description = "Removing pub"

    def _sweep(self, tree: SourceFile, try_candidate: TryCandidate, stats: PassStats) -> int:
        accepted = 0
        level, index = 0, 0
        while True:
            snapshot = tree.snapshot()
            result = self.privatise(tree, level, index)
            if result is None:
                if index == 0:
                    return accepted
                logger.debug(f"privatiser: level {level} exhausted after {index} slots")
                level, index = level + 1, 0
                continue
            if self._settle(tree, snapshot, result, try_candidate, stats):
                accepted += 1
            else:
                index += 1

    def mutate(self, tree: SourceFile, index: int) -> Optional[MutationResult]:
        return self.privatise(tree, 0, index)

    def privatise(self, tree: SourceFile, level: int, index: int) -> Optional[MutationResult]:
        """
        Demote the slot addressed by (level, index).

        Returns: None if no such slot exists
        """
        return self._items(tree.items, level, Cursor(index))

    def _items(self, items: List[Declaration], level: int, cursor: Cursor) -> Optional[MutationResult]:
        if level == 0:
            position = cursor.take(len(items))
            if position is None:
                return None
            item = items[position]
            if isinstance(item, FunctionDefinition):
                return _demote(item)
            return MutationResult.SKIPPED

        for item in items:
            result = self._container(item, level - 1, cursor)
            if result is not None:
                return result
        return None

    def _container(self, item: Declaration, level: int, cursor: Cursor) -> Optional[MutationResult]:
        if isinstance(item, ModuleDefinition) and not item.is_external:
            return self._items(item.items, level, cursor)
        if isinstance(item, StructDefinition):
            return self._fields(item, level, cursor)
        if isinstance(item, ImplBlock):
            return self._impl_items(item.items, level, cursor)
        # Enums are containers without slots: variants have no demotion operator
        return None

    def _fields(self, struct: StructDefinition, level: int, cursor: Cursor) -> Optional[MutationResult]:
        if level >= LEAF_LEVEL_LIMIT or struct.style is not StructStyle.NAMED:
            return None
        position = cursor.take(len(struct.fields))
        if position is None:
            return None
        return _demote(struct.fields[position])

    def _impl_items(self, items: List[ImplItem], level: int, cursor: Cursor) -> Optional[MutationResult]:
        if level >= LEAF_LEVEL_LIMIT:
            return None
        position = cursor.take(len(items))
        if position is None:
            return None
        item = items[position]
        if isinstance(item, MethodDefinition):
            return _demote(item)
        return MutationResult.SKIPPED
