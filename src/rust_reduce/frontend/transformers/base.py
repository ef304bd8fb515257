"""
Token Tree Transformer

Converts the Lark parse tree into plain token trees: Lark `Token`s for
leaves and `Group`s for balanced delimiters. Every node keeps its byte
offsets so the item reader can slice verbatim text out of the source.
"""

from dataclasses import dataclass
from typing import List, Union

from lark import Transformer, v_args
from lark.lexer import Token
from typing_extensions import TypeAlias


@dataclass
class Group:
    """A balanced `( )`, `[ ]` or `{ }` group, delimiters included."""
    open: Token
    children: List["TokenTree"]
    close: Token

    @property
    def delimiter(self) -> str:
        return self.open.value

    @property
    def start(self) -> int:
        return self.open.start_pos

    @property
    def end(self) -> int:
        return self.close.end_pos

    @property
    def line(self) -> int:
        return self.open.line

    @property
    def column(self) -> int:
        return self.open.column


TokenTree: TypeAlias = Union[Token, Group]


def tt_start(tt: TokenTree) -> int:
    return tt.start if isinstance(tt, Group) else tt.start_pos


def tt_end(tt: TokenTree) -> int:
    return tt.end if isinstance(tt, Group) else tt.end_pos


def is_punct(tt: TokenTree, value: str) -> bool:
    return isinstance(tt, Token) and tt.type == "PUNCT" and tt.value == value


def is_ident(tt: TokenTree, *values: str) -> bool:
    if not isinstance(tt, Token) or tt.type != "IDENT":
        return False
    return not values or tt.value in values


def is_group(tt: TokenTree, delimiter: str) -> bool:
    return isinstance(tt, Group) and tt.delimiter == delimiter


@v_args(inline=True)
class TokenTreeTransformer(Transformer):
    """
    Lark tree -> token trees.

    `?tt` is inlined by the grammar, so rule callbacks only ever see
    tokens and already-transformed groups.
    """

    def start(self, *tts: TokenTree) -> List[TokenTree]:
        return list(tts)

    def _group(self, open_: Token, *rest: TokenTree) -> Group:
        *children, close = rest
        return Group(open=open_, children=list(children), close=close)

    paren_group = _group
    bracket_group = _group
    brace_group = _group
