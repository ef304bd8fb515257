"""
Item Reader

Splits a token-tree sequence into declarations. Item kinds are recognised
by their leading keywords; anything the reduction passes do not model is
kept as a verbatim slice of the source.

Rust Pattern: rustc_parse::parser::item (keyword-driven item dispatch)
"""

import logging
from typing import List, Optional, Tuple

from lark.lexer import Token

from ...shared.nodes import (
    Attribute, AttributeKind, Block, Declaration, EnumDefinition, FunctionDefinition,
    ImplBlock, ImplItem, MethodDefinition, ModuleDefinition, OtherImplItem, OtherItem,
    SourceFile, StructDefinition, StructField, StructStyle, Visibility, PRIVATE,
)
from ...shared.source_location import SourceLocation
from .base import Group, TokenTree, is_group, is_ident, is_punct, tt_end, tt_start

logger = logging.getLogger(__name__)

# Keywords that may precede `fn` / `impl` / `extern` blocks
QUALIFIERS = frozenset({"const", "async", "unsafe", "default", "safe"})
# Items that always end at the first top-level `;`
SEMICOLON_ITEMS = frozenset({"const", "static", "type", "use"})
RESTRICTED_VISIBILITY = frozenset({"crate", "self", "super", "in"})


class ItemReader:
    """
    Token trees -> declaration tree.

    `source` must be the exact text the token trees were lexed from;
    opaque declarations are sliced out of it by byte offset.
    """

    def __init__(self, source: str, source_file: str):
        self.source = source
        self.source_file = source_file

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _text(self, first: TokenTree, last: TokenTree) -> str:
        return self.source[tt_start(first):tt_end(last)]

    def _location(self, tt: TokenTree) -> SourceLocation:
        return SourceLocation(file=self.source_file, line=tt.line, column=tt.column)

    def _error(self, message: str, tt: Optional[TokenTree]):
        from ..parser import ParseError
        location = self._location(tt) if tt is not None else None
        return ParseError(message, self.source_file, location)

    # =========================================================================
    # FILE / CONTAINER STRUCTURE
    # =========================================================================

    def read_file(self, tts: List[TokenTree]) -> SourceFile:
        inner_attrs, pos = self._read_inner_attrs(tts, 0)
        items = self._read_items(tts, pos, in_impl=False)
        return SourceFile(items=items, inner_attrs=inner_attrs, path=self.source_file)

    def _read_inner_attrs(self, tts: List[TokenTree], pos: int) -> Tuple[List[str], int]:
        """`#![...]` and `//!` at the start of a file, module or impl body."""
        attrs: List[str] = []
        while pos < len(tts):
            tt = tts[pos]
            if isinstance(tt, Token) and tt.type == "DOC_INNER":
                attrs.append(str(tt))
                pos += 1
            elif (is_punct(tt, "#") and pos + 2 < len(tts)
                  and is_punct(tts[pos + 1], "!") and is_group(tts[pos + 2], "[")):
                attrs.append(self._text(tt, tts[pos + 2]))
                pos += 3
            else:
                break
        return attrs, pos

    def _read_items(self, tts: List[TokenTree], pos: int, in_impl: bool) -> list:
        items = []
        while pos < len(tts):
            if is_punct(tts[pos], ";"):
                # Stray semicolon between items
                pos += 1
                continue
            item, pos = self._read_item(tts, pos, in_impl)
            items.append(item)
        return items

    def _read_outer_attrs(self, tts: List[TokenTree], pos: int) -> Tuple[List[Attribute], int]:
        attrs: List[Attribute] = []
        while pos < len(tts):
            tt = tts[pos]
            if isinstance(tt, Token) and tt.type == "DOC_OUTER":
                attrs.append(Attribute(AttributeKind.DOC, str(tt)))
                pos += 1
            elif is_punct(tt, "#") and pos + 1 < len(tts) and is_group(tts[pos + 1], "["):
                group = tts[pos + 1]
                attrs.append(Attribute(self._attribute_kind(group), self._text(tt, group)))
                pos += 2
            else:
                break
        return attrs, pos

    @staticmethod
    def _attribute_kind(group: Group) -> AttributeKind:
        if group.children and is_ident(group.children[0], "derive"):
            return AttributeKind.DERIVE
        if group.children and is_ident(group.children[0], "doc"):
            return AttributeKind.DOC
        return AttributeKind.OTHER

    def _read_visibility(self, tts: List[TokenTree], pos: int) -> Tuple[Visibility, int]:
        if pos >= len(tts) or not is_ident(tts[pos], "pub"):
            return PRIVATE, pos
        first = tts[pos]
        last = first
        if pos + 1 < len(tts) and is_group(tts[pos + 1], "("):
            group = tts[pos + 1]
            if group.children and is_ident(group.children[0], *RESTRICTED_VISIBILITY):
                last = group
        end = pos + (2 if last is not first else 1)
        return Visibility(self._text(first, last)), end

    # =========================================================================
    # ITEMS
    # =========================================================================

    def _classify(self, tts: List[TokenTree], pos: int) -> Tuple[str, int]:
        """
        Return (kind, keyword index). Qualifiers are skipped only when a
        `fn` or `impl` follows them, so `const X: T = ..;` stays opaque.
        """
        j = pos
        while j < len(tts):
            if is_ident(tts[j], *QUALIFIERS):
                j += 1
            elif is_ident(tts[j], "extern") and j + 1 < len(tts) and not is_ident(tts[j + 1], "crate"):
                j += 1
                if j < len(tts) and isinstance(tts[j], Token) and tts[j].type in ("STRING", "RAW_STRING"):
                    j += 1
            else:
                break
        if j < len(tts) and is_ident(tts[j], "fn"):
            return "fn", j
        if j < len(tts) and is_ident(tts[j], "impl"):
            return "impl", j
        if j == pos and pos < len(tts) and is_ident(tts[pos], "struct", "enum", "mod"):
            return tts[pos].value, pos
        return "other", pos

    def _read_item(self, tts: List[TokenTree], pos: int, in_impl: bool) -> Tuple[Declaration, int]:
        start = pos
        attrs, pos = self._read_outer_attrs(tts, pos)
        if pos >= len(tts):
            raise self._error("expected item after attributes", tts[start])
        visibility, pos = self._read_visibility(tts, pos)
        if pos >= len(tts):
            raise self._error("expected item after visibility", tts[pos - 1])

        kind, keyword = self._classify(tts, pos)
        if kind == "fn":
            return self._read_fn(tts, start, pos, keyword, attrs, visibility, in_impl)
        if not in_impl:
            if kind == "impl":
                return self._read_impl(tts, pos, keyword, attrs)
            if kind == "struct":
                return self._read_struct(tts, pos, attrs, visibility)
            if kind == "enum":
                return self._read_enum(tts, pos, attrs, visibility)
            if kind == "mod":
                return self._read_mod(tts, pos, attrs, visibility)
        return self._read_other(tts, start, pos, in_impl)

    def _find_end(self, tts: List[TokenTree], pos: int, semicolon_only: bool, what: str) -> int:
        """Index of the token tree ending an item: the first top-level `;` (or `{}`)."""
        for k in range(pos, len(tts)):
            if is_punct(tts[k], ";"):
                return k
            if not semicolon_only and is_group(tts[k], "{"):
                return k
        raise self._error(f"unterminated {what}", tts[pos] if pos < len(tts) else tts[-1])

    def _read_other(self, tts: List[TokenTree], start: int, pos: int, in_impl: bool) -> Tuple[Declaration, int]:
        head = tts[pos]
        semicolon_only = (
            is_ident(head, *SEMICOLON_ITEMS)
            or (is_ident(head, "extern") and pos + 1 < len(tts) and is_ident(tts[pos + 1], "crate"))
        )
        end = self._find_end(tts, pos, semicolon_only, "item")
        if is_group(tts[end], "{") and end + 1 < len(tts) and is_punct(tts[end + 1], ";"):
            # `macro! { ... };`
            end += 1
        source = self._text(tts[start], tts[end])
        node = OtherImplItem(source) if in_impl else OtherItem(source)
        return node, end + 1

    def _read_fn(self, tts, start, pos, keyword, attrs, visibility, in_impl) -> Tuple[Declaration, int]:
        end = self._find_end(tts, keyword, False, "function")
        if is_punct(tts[end], ";"):
            # Body-less signature (foreign or trait-style); nothing to reduce
            source = self._text(tts[start], tts[end])
            return (OtherImplItem(source) if in_impl else OtherItem(source)), end + 1
        signature = self._text(tts[pos], tts[end - 1])
        body = Block(self._text(tts[end], tts[end]))
        if in_impl:
            return MethodDefinition(signature=signature, body=body, visibility=visibility, attrs=attrs), end + 1
        return FunctionDefinition(signature=signature, body=body, visibility=visibility, attrs=attrs), end + 1

    def _read_impl(self, tts, pos, keyword, attrs) -> Tuple[Declaration, int]:
        end = self._find_end(tts, keyword, False, "impl block")
        if not is_group(tts[end], "{"):
            raise self._error("expected `{` after impl header", tts[end])
        group = tts[end]
        inner_attrs, inner_pos = self._read_inner_attrs(group.children, 0)
        items: List[ImplItem] = self._read_items(group.children, inner_pos, in_impl=True)
        header = self._text(tts[pos], tts[end - 1])
        return ImplBlock(header=header, items=items, inner_attrs=inner_attrs, attrs=attrs), end + 1

    def _read_mod(self, tts, pos, attrs, visibility) -> Tuple[Declaration, int]:
        keyword = tts[pos]
        if pos + 1 >= len(tts) or not is_ident(tts[pos + 1]):
            raise self._error("expected module name", keyword)
        name = tts[pos + 1].value
        location = self._location(keyword)
        if pos + 2 < len(tts) and is_punct(tts[pos + 2], ";"):
            return ModuleDefinition(name=name, visibility=visibility, items=None,
                                    attrs=attrs, location=location), pos + 3
        if pos + 2 < len(tts) and is_group(tts[pos + 2], "{"):
            group = tts[pos + 2]
            inner_attrs, inner_pos = self._read_inner_attrs(group.children, 0)
            items = self._read_items(group.children, inner_pos, in_impl=False)
            return ModuleDefinition(name=name, visibility=visibility, items=items,
                                    inner_attrs=inner_attrs, attrs=attrs, location=location), pos + 3
        raise self._error(f"expected `;` or `{{` after `mod {name}`", tts[pos + 1])

    # =========================================================================
    # STRUCTS AND ENUMS
    # =========================================================================

    def _skip_generics(self, tts: List[TokenTree], pos: int) -> int:
        """Skip a `<...>` parameter list starting at `pos` (if any)."""
        if pos >= len(tts) or not is_punct(tts[pos], "<"):
            return pos
        depth = 0
        for k in range(pos, len(tts)):
            if is_punct(tts[k], "<"):
                depth += 1
            elif is_punct(tts[k], ">"):
                depth -= 1
                if depth == 0:
                    return k + 1
        raise self._error("unclosed generic parameter list", tts[pos])

    def _read_struct(self, tts, pos, attrs, visibility) -> Tuple[Declaration, int]:
        if pos + 1 >= len(tts) or not is_ident(tts[pos + 1]):
            raise self._error("expected struct name", tts[pos])
        after_generics = self._skip_generics(tts, pos + 2)
        if after_generics >= len(tts):
            raise self._error("unterminated struct", tts[pos])
        nxt = tts[after_generics]

        if is_group(nxt, "("):
            semi = self._find_end(tts, after_generics + 1, True, "tuple struct")
            tail = self.source[tt_end(nxt):tt_start(tts[semi])].strip()
            return StructDefinition(
                header=self._text(tts[pos], tts[after_generics - 1]),
                style=StructStyle.TUPLE,
                fields=self._read_fields(nxt.children, named=False),
                visibility=visibility,
                tail=tail,
                attrs=attrs,
            ), semi + 1

        end = self._find_end(tts, after_generics, False, "struct")
        header = self._text(tts[pos], tts[end - 1])
        if is_punct(tts[end], ";"):
            return StructDefinition(header=header, style=StructStyle.UNIT,
                                    visibility=visibility, attrs=attrs), end + 1
        return StructDefinition(
            header=header,
            style=StructStyle.NAMED,
            fields=self._read_fields(tts[end].children, named=True),
            visibility=visibility,
            attrs=attrs,
        ), end + 1

    def _split_commas(self, tts: List[TokenTree], track_angles: bool) -> List[List[TokenTree]]:
        """Split on top-level commas; generic arguments hide theirs when `track_angles`."""
        segments: List[List[TokenTree]] = [[]]
        depth = 0
        for tt in tts:
            if track_angles and is_punct(tt, "<"):
                depth += 1
            elif track_angles and is_punct(tt, ">") and depth > 0:
                depth -= 1
            elif depth == 0 and is_punct(tt, ","):
                segments.append([])
                continue
            segments[-1].append(tt)
        return [segment for segment in segments if segment]

    def _read_fields(self, tts: List[TokenTree], named: bool) -> List[StructField]:
        fields: List[StructField] = []
        for segment in self._split_commas(tts, track_angles=True):
            attrs, pos = self._read_outer_attrs(segment, 0)
            visibility, pos = self._read_visibility(segment, pos)
            name = None
            if named:
                if pos + 1 >= len(segment) or not is_ident(segment[pos]) or not is_punct(segment[pos + 1], ":"):
                    raise self._error("expected `name: Type` field", segment[min(pos, len(segment) - 1)])
                name = segment[pos].value
                pos += 2
            if pos >= len(segment):
                raise self._error("expected field type", segment[-1])
            fields.append(StructField(
                type=self._text(segment[pos], segment[-1]),
                name=name,
                visibility=visibility,
                attrs=attrs,
            ))
        return fields

    def _read_enum(self, tts, pos, attrs, visibility) -> Tuple[Declaration, int]:
        end = self._find_end(tts, pos, False, "enum")
        if not is_group(tts[end], "{"):
            raise self._error("expected `{` after enum header", tts[end])
        variants = [
            self._text(segment[0], segment[-1])
            for segment in self._split_commas(tts[end].children, track_angles=False)
        ]
        return EnumDefinition(
            header=self._text(tts[pos], tts[end - 1]),
            variants=variants,
            visibility=visibility,
            attrs=attrs,
        ), end + 1
