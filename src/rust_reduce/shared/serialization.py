"""
Source Serialization
====================

Renders a declaration tree back to Rust source text.

Only the structure the passes can change is regenerated; every opaque
piece (signatures, headers, field types, enum variants, bodies, other
items) is emitted verbatim. Each attribute goes on its own line so that
`///` doc comments never swallow the code that follows them.

Layout is deliberately plain; the formatter collaborator tidies the
final result.
"""

from typing import Callable, Dict, List, Type

from .nodes import (
    Attribute, Declaration, EnumDefinition, FunctionDefinition, ImplBlock,
    MethodDefinition, ModuleDefinition, OtherImplItem, OtherItem, SourceFile,
    StructDefinition, StructField, StructStyle, Visibility,
)

INDENT = "    "


class SourceSerializer:
    """Declaration tree -> Rust text"""

    def __init__(self):
        self._handlers: Dict[Type[Declaration], Callable[[Declaration, int], List[str]]] = {
            ModuleDefinition: self._serialize_module,
            FunctionDefinition: self._serialize_function,
            MethodDefinition: self._serialize_function,
            StructDefinition: self._serialize_struct,
            EnumDefinition: self._serialize_enum,
            ImplBlock: self._serialize_impl,
            OtherItem: self._serialize_verbatim,
            OtherImplItem: self._serialize_verbatim,
        }

    def serialize(self, tree: SourceFile) -> str:
        lines: List[str] = list(tree.inner_attrs)
        if tree.inner_attrs and tree.items:
            lines.append("")
        lines.extend(self._serialize_items(tree.items, 0))
        return "\n".join(lines) + "\n" if lines else ""

    # ------------------------------------------------------------------

    def _serialize_items(self, items: List[Declaration], depth: int) -> List[str]:
        lines: List[str] = []
        for index, item in enumerate(items):
            if index:
                lines.append("")
            handler = self._handlers.get(type(item))
            if handler is None:
                raise TypeError(f"cannot serialize {type(item).__name__}")
            lines.extend(handler(item, depth))
        return lines

    @staticmethod
    def _pad(depth: int) -> str:
        return INDENT * depth

    def _attrs(self, attrs: List[Attribute], depth: int) -> List[str]:
        return [self._pad(depth) + attr.source for attr in attrs]

    @staticmethod
    def _vis(visibility: Visibility) -> str:
        return f"{visibility.text} " if visibility.is_public else ""

    def _body_lines(self, inner_attrs: List[str], items: List[Declaration], depth: int) -> List[str]:
        lines = [self._pad(depth + 1) + attr for attr in inner_attrs]
        if inner_attrs and items:
            lines.append("")
        lines.extend(self._serialize_items(items, depth + 1))
        return lines

    # ------------------------------------------------------------------

    def _serialize_module(self, node: ModuleDefinition, depth: int) -> List[str]:
        lines = self._attrs(node.attrs, depth)
        head = f"{self._pad(depth)}{self._vis(node.visibility)}mod {node.name}"
        if node.is_external:
            lines.append(head + ";")
            return lines
        lines.append(head + " {")
        lines.extend(self._body_lines(node.inner_attrs, node.items, depth))
        lines.append(self._pad(depth) + "}")
        return lines

    def _serialize_function(self, node, depth: int) -> List[str]:
        lines = self._attrs(node.attrs, depth)
        lines.append(f"{self._pad(depth)}{self._vis(node.visibility)}{node.signature} {node.body.source}")
        return lines

    def _field(self, node: StructField, depth: int) -> List[str]:
        lines = self._attrs(node.attrs, depth)
        name = f"{node.name}: " if node.name is not None else ""
        lines.append(f"{self._pad(depth)}{self._vis(node.visibility)}{name}{node.type},")
        return lines

    def _serialize_struct(self, node: StructDefinition, depth: int) -> List[str]:
        lines = self._attrs(node.attrs, depth)
        head = f"{self._pad(depth)}{self._vis(node.visibility)}{node.header}"
        if node.style is StructStyle.UNIT:
            lines.append(head + ";")
            return lines
        if node.style is StructStyle.TUPLE:
            lines.append(head + "(")
            for field in node.fields:
                lines.extend(self._field(field, depth + 1))
            tail = f" {node.tail}" if node.tail else ""
            lines.append(f"{self._pad(depth)}){tail};")
            return lines
        lines.append(head + " {")
        for field in node.fields:
            lines.extend(self._field(field, depth + 1))
        lines.append(self._pad(depth) + "}")
        return lines

    def _serialize_enum(self, node: EnumDefinition, depth: int) -> List[str]:
        lines = self._attrs(node.attrs, depth)
        lines.append(f"{self._pad(depth)}{self._vis(node.visibility)}{node.header} {{")
        lines.extend(f"{self._pad(depth + 1)}{variant}," for variant in node.variants)
        lines.append(self._pad(depth) + "}")
        return lines

    def _serialize_impl(self, node: ImplBlock, depth: int) -> List[str]:
        lines = self._attrs(node.attrs, depth)
        lines.append(f"{self._pad(depth)}{node.header} {{")
        lines.extend(self._body_lines(node.inner_attrs, node.items, depth))
        lines.append(self._pad(depth) + "}")
        return lines

    def _serialize_verbatim(self, node, depth: int) -> List[str]:
        return [self._pad(depth) + node.source]


def serialize_source(tree: SourceFile) -> str:
    """Render `tree` as Rust source text."""
    return SourceSerializer().serialize(tree)
