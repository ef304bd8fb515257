"""
Attribute Stripping Passes

Remove one `#[derive(...)]` or one doc attribute (`///`, `/** */`,
`#[doc = ...]`) at a time. Holders are visited in declaration order,
each struct followed by its fields; attributes in list order. Inner
attributes and attributes inside opaque items are left alone.
"""

from typing import Optional

from .base import MutationResult, ReductionPass
from .prune_items import PruneItemsPass
from .visitor_helpers import iter_attributes, nth
from ..shared.nodes import AttributeKind, SourceFile


class RemoveAttrsPass(ReductionPass):
    """Removes attributes of kind `target`"""
    target: AttributeKind = AttributeKind.OTHER

    def mutate(self, tree: SourceFile, index: int) -> Optional[MutationResult]:
        slot = nth(iter_attributes(tree.items, self.target), index)
        if slot is None:
            return None
        attrs, position = slot
        del attrs[position]
        return MutationResult.MUTATED


class RemoveDeriveAttrsPass(RemoveAttrsPass):
    requires = [PruneItemsPass]
    name = "remove-derive-attrs"
    description = "Removing #[derive] attributes"
    target = AttributeKind.DERIVE


class RemoveDocAttrsPass(RemoveAttrsPass):
    requires = [RemoveDeriveAttrsPass]
    name = "remove-doc-attrs"
    description = "Removing #[doc] attributes"
    target = AttributeKind.DOC
