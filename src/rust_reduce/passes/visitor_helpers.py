"""
Visitor Helper Utilities

Deterministic traversals of the declaration tree shared by the passes.
Every walker yields the list that owns a node together with the node's
position in it, so a pass can replace or delete the node in place.
"""

from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

from typing_extensions import TypeAlias

from ..shared.nodes import (
    Attribute, BodyOwner, Declaration, EnumDefinition, FunctionDefinition, ImplBlock,
    MethodDefinition, ModuleDefinition, StructDefinition,
)

DeclarationSlot: TypeAlias = Tuple[List[Declaration], int, Declaration]
AttributeSlot: TypeAlias = Tuple[List[Attribute], int]

# Declarations with an outer attribute list the reducer may edit
ATTRIBUTE_HOLDERS = (
    ModuleDefinition, FunctionDefinition, StructDefinition, EnumDefinition, ImplBlock, MethodDefinition,
)


@dataclass
class Cursor:
    """
    Remaining-budget counter for index addressing.

    Walkers decrement `remaining` by the size of every container they
    pass over; the addressed slot is the one reached at zero.
    """
    remaining: int

    def take(self, count: int) -> Optional[int]:
        """Position inside a container of `count` slots, or None after consuming them."""
        if self.remaining < count:
            return self.remaining
        self.remaining -= count
        return None


def iter_declarations(items: List[Declaration]) -> Iterator[DeclarationSlot]:
    """
    All declarations in depth-first pre-order.

    An outer declaration is yielded before its children, so a module or
    impl block comes before any of its members.
    """
    for position, item in enumerate(items):
        yield items, position, item
        yield from iter_declarations(item.children())


def iter_attribute_lists(items: List[Declaration]) -> Iterator[List[Attribute]]:
    """Outer attribute lists in declaration order, each struct followed by its fields."""
    for _, _, item in iter_declarations(items):
        if isinstance(item, ATTRIBUTE_HOLDERS):
            yield item.attrs
        if isinstance(item, StructDefinition):
            for field in item.fields:
                yield field.attrs


def iter_attributes(items: List[Declaration], kind) -> Iterator[AttributeSlot]:
    for attrs in iter_attribute_lists(items):
        for position, attr in enumerate(attrs):
            if attr.kind is kind:
                yield attrs, position


def iter_body_owners(items: List[Declaration]) -> Iterator[BodyOwner]:
    """Functions and methods in declaration order."""
    for _, _, item in iter_declarations(items):
        if isinstance(item, (FunctionDefinition, MethodDefinition)):
            yield item


def nth(iterator: Iterator, index: int):
    """The `index`-th element of `iterator`, or None."""
    for position, value in enumerate(iterator):
        if position == index:
            return value
    return None
