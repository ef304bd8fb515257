"""
Block Emptying Pass

Replaces one function or method body with `{}`. Only accepted where the
return type allows an empty body, so it runs before block clearing.
"""

from typing import Optional

from .base import MutationResult, ReductionPass
from .remove_attrs import RemoveDocAttrsPass
from .visitor_helpers import iter_body_owners, nth
from ..shared.nodes import Block, SourceFile


class EmptyBlocksPass(ReductionPass):
    requires = [RemoveDocAttrsPass]
    name = "empty-blocks"
    description = "Clearing block bodies - {}"

    def mutate(self, tree: SourceFile, index: int) -> Optional[MutationResult]:
        owner = nth(iter_body_owners(tree.items), index)
        if owner is None:
            return None
        if owner.body.is_empty():
            return MutationResult.SKIPPED
        owner.body = Block.empty()
        return MutationResult.MUTATED
