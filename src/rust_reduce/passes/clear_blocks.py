"""
Block Clearing Pass

Replaces one function or method body with `{ unimplemented!() }`, which
type-checks for any return type. Fallback for bodies that could not be
emptied.
"""

from typing import Optional

from .base import MutationResult, ReductionPass
from .empty_blocks import EmptyBlocksPass
from .visitor_helpers import iter_body_owners, nth
from ..shared.nodes import Block, SourceFile


class ClearBlocksPass(ReductionPass):
    requires = [EmptyBlocksPass]
    name = "clear-blocks"
    description = "Clearing block bodies - unimplemented"

    def mutate(self, tree: SourceFile, index: int) -> Optional[MutationResult]:
        owner = nth(iter_body_owners(tree.items), index)
        if owner is None:
            return None
        # Already as small as this pass can make it
        if owner.body.is_empty() or owner.body.is_placeholder():
            return MutationResult.SKIPPED
        owner.body = Block.placeholder()
        return MutationResult.MUTATED
