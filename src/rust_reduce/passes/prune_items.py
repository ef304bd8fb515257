"""
Item Pruning Pass

Deletes one declaration at a time, at any depth: top-level items, module
members and impl items. Targets are numbered in depth-first pre-order, so
a whole module (or impl block) is tried before any of its members.
"""

from typing import Optional

from .base import MutationResult, ReductionPass
from .visitor_helpers import iter_declarations, nth
from ..shared.nodes import SourceFile


class PruneItemsPass(ReductionPass):
    """
    Rust Pattern: dead item elimination, driven by the oracle instead of
    reachability.
    """
    name = "prune-items"
    description = "Pruning items"

    def mutate(self, tree: SourceFile, index: int) -> Optional[MutationResult]:
        slot = nth(iter_declarations(tree.items), index)
        if slot is None:
            return None
        owner, position, _ = slot
        del owner[position]
        return MutationResult.MUTATED
