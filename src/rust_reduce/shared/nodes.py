"""
Declaration Tree Definitions

The structural model every reduction pass operates on. Only the parts of
a Rust file that some pass can mutate are modelled; everything else is
kept as verbatim source text so it round-trips byte-identically.

Rust Pattern: syn::File / syn::Item (the subset the reducer understands)
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union

from .source_location import SourceLocation
from ..utils.config import EMPTY_BLOCK, PLACEHOLDER_BLOCK, PLACEHOLDER_STATEMENT


class AttributeKind(Enum):
    """Attribute kinds the attribute-stripping passes distinguish"""
    DERIVE = "derive"
    DOC = "doc"
    OTHER = "other"


@dataclass
class Attribute:
    """An outer attribute (`#[...]`) or outer doc comment (`///`, `/** */`)."""
    kind: AttributeKind
    source: str

    def __str__(self) -> str:
        return self.source


@dataclass(frozen=True)
class Visibility:
    """
    Visibility marker.

    `text` is the marker as written (`pub`, `pub(crate)`, `pub(in a::b)`);
    the empty string is inherited (private) visibility.
    """
    text: str = ""

    @property
    def is_public(self) -> bool:
        return bool(self.text)

    @property
    def is_private(self) -> bool:
        return not self.text

    def __str__(self) -> str:
        return self.text


PRIVATE = Visibility()
PUBLIC = Visibility("pub")


@dataclass
class Block:
    """A function body, braces included. Passes replace it whole."""
    source: str

    @classmethod
    def empty(cls) -> "Block":
        return cls(EMPTY_BLOCK)

    @classmethod
    def placeholder(cls) -> "Block":
        return cls(PLACEHOLDER_BLOCK)

    def _inner(self) -> str:
        return self.source.strip()[1:-1].strip()

    def is_empty(self) -> bool:
        return self._inner() == ""

    def is_placeholder(self) -> bool:
        inner = self._inner().rstrip(";").strip()
        return inner == PLACEHOLDER_STATEMENT

    def __str__(self) -> str:
        return self.source


class Declaration:
    """
    Base class for top-level and module-level declarations.

    Subclasses that own nested declarations override `children()`.
    """

    def children(self) -> List["Declaration"]:
        return []


@dataclass
class ModuleDefinition(Declaration):
    """
    `mod name { ... }` or, before inlining, `mod name;`.

    `items is None` marks an external module whose contents live in
    another file; only the module inliner ever sees one.
    """
    name: str
    visibility: Visibility = PRIVATE
    items: Optional[List[Declaration]] = None
    inner_attrs: List[str] = field(default_factory=list)
    attrs: List[Attribute] = field(default_factory=list)
    location: Optional[SourceLocation] = None

    @property
    def is_external(self) -> bool:
        return self.items is None

    def children(self) -> List[Declaration]:
        return self.items if self.items is not None else []


@dataclass
class FunctionDefinition(Declaration):
    """A free function. `signature` runs from the qualifiers up to the body."""
    signature: str
    body: Block
    visibility: Visibility = PRIVATE
    attrs: List[Attribute] = field(default_factory=list)


class StructStyle(Enum):
    NAMED = "named"   # struct S { a: T }
    TUPLE = "tuple"   # struct S(T);
    UNIT = "unit"     # struct S;


@dataclass
class StructField:
    """A struct field; `name` is None for tuple struct fields."""
    type: str
    name: Optional[str] = None
    visibility: Visibility = PRIVATE
    attrs: List[Attribute] = field(default_factory=list)


@dataclass
class StructDefinition(Declaration):
    """
    `header` is `struct Name<...> where ...` (everything before the fields);
    `tail` is what follows a tuple field list, e.g. a where clause.
    """
    header: str
    style: StructStyle
    fields: List[StructField] = field(default_factory=list)
    visibility: Visibility = PRIVATE
    tail: str = ""
    attrs: List[Attribute] = field(default_factory=list)


@dataclass
class EnumDefinition(Declaration):
    """`enum Name { ... }`. Variants are read-only verbatim text."""
    header: str
    variants: List[str] = field(default_factory=list)
    visibility: Visibility = PRIVATE
    attrs: List[Attribute] = field(default_factory=list)


@dataclass
class OtherItem(Declaration):
    """Any item the passes do not model. Deleted whole or kept verbatim."""
    source: str


class ImplItem(Declaration):
    """Base class for items inside an impl block"""


@dataclass
class MethodDefinition(ImplItem):
    signature: str
    body: Block
    visibility: Visibility = PRIVATE
    attrs: List[Attribute] = field(default_factory=list)


@dataclass
class OtherImplItem(ImplItem):
    """Associated consts, types, macro invocations and body-less fns."""
    source: str


@dataclass
class ImplBlock(Declaration):
    """`impl<...> Trait for Type where ... { items }`; `header` excludes the braces."""
    header: str
    items: List[ImplItem] = field(default_factory=list)
    inner_attrs: List[str] = field(default_factory=list)
    attrs: List[Attribute] = field(default_factory=list)

    def children(self) -> List[Declaration]:
        return self.items


BodyOwner = Union[FunctionDefinition, MethodDefinition]


@dataclass
class SourceFile:
    """
    The whole (inlined) program: file-level inner attributes plus items.

    Passes receive the instance by reference and mutate it in place;
    `snapshot()` and `restore()` implement speculative edits.
    """
    items: List[Declaration] = field(default_factory=list)
    inner_attrs: List[str] = field(default_factory=list)
    path: Optional[str] = None

    def snapshot(self) -> "SourceFile":
        return copy.deepcopy(self)

    def restore(self, snapshot: "SourceFile") -> None:
        self.items = snapshot.items
        self.inner_attrs = snapshot.inner_attrs

    def external_modules(self) -> List[ModuleDefinition]:
        """All `mod name;` declarations still awaiting inlining, in source order."""
        found: List[ModuleDefinition] = []

        def walk(items: List[Declaration]) -> None:
            for item in items:
                if isinstance(item, ModuleDefinition) and item.is_external:
                    found.append(item)
                walk(item.children())

        walk(self.items)
        return found
