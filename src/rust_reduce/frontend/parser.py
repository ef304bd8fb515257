"""
Parser

Rust Pattern: rustc_parse
"""

import logging
from pathlib import Path
from typing import Optional

from lark import Lark
from lark.exceptions import UnexpectedToken, UnexpectedCharacters, UnexpectedEOF, ParseError as LarkParseError

from ..shared.errors import ReduceError
from ..shared.nodes import SourceFile
from ..shared.source_location import SourceLocation
from ..utils.config import DEFAULT_PARSER_CACHE_FILE
from .transformers.base import TokenTreeTransformer
from .transformers.items import ItemReader

logger = logging.getLogger(__name__)


class Parser:
    """
    Parser (Rust naming: rustc_parse).

    Rust Pattern: rustc_parse::parse_crate_from_file()

    Lexes a file into token trees with Lark, then splits the token trees
    into declarations with `ItemReader`. Every declaration keeps enough
    verbatim source to be re-emitted unchanged.
    """

    def __init__(self, cache_file: str = DEFAULT_PARSER_CACHE_FILE):
        grammar_path = Path(__file__).parent / "grammar.lark"
        self.parser = Lark.open(
            grammar_path,
            start='start',
            parser='lalr',
            regex=True,
            cache=cache_file,
            propagate_positions=True,
            maybe_placeholders=False,
        )
        self.transformer = TokenTreeTransformer()

    def parse(self, source: str, source_file: str = "main.rs") -> SourceFile:
        """
        Parse one Rust source file.

        `mod name;` declarations are left external; resolving them is the
        module inliner's job.
        """
        try:
            tree = self.parser.parse(source)
        except UnexpectedEOF as e:
            raise ParseError("unexpected end of file (unclosed delimiter)", source_file) from e
        except (UnexpectedToken, UnexpectedCharacters) as e:
            location = SourceLocation(file=source_file, line=e.line, column=e.column)
            raise ParseError(f"unexpected input: {_describe(e)}", source_file, location) from e
        except LarkParseError as e:
            raise ParseError(f"parse error: {e}", source_file) from e

        tts = self.transformer.transform(tree)
        parsed = ItemReader(source, source_file).read_file(tts)
        logger.debug(f"Parsed {source_file}: {len(parsed.items)} top-level items")
        return parsed


def _describe(e: Exception) -> str:
    if isinstance(e, UnexpectedToken) and e.token.type == "$END":
        return "end of file (unclosed delimiter)"
    if isinstance(e, UnexpectedToken):
        return f"unexpected token `{e.token}`"
    if isinstance(e, UnexpectedCharacters):
        return f"unexpected character `{e.char}`"
    return str(e)


class ParseError(ReduceError):
    """Parse error with source location"""
    def __init__(self, message: str, source_file: str, location: Optional[SourceLocation] = None):
        if location is None:
            location = SourceLocation(file=source_file, line=1, column=1)
        super().__init__(message, location)
        self.source_file = source_file


_default_parser: Optional[Parser] = None


def parse_source(source: str, source_file: str = "main.rs") -> SourceFile:
    """Parse with a shared, lazily built parser."""
    global _default_parser
    if _default_parser is None:
        _default_parser = Parser()
    return _default_parser.parse(source, source_file)
