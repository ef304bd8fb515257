"""
Module Inliner

Loads the entry file and replaces every `mod name;` declaration,
recursively, with an inline module holding the parsed contents of its
backing file. The result is one self-contained declaration tree.

Rust Pattern: rustc_expand::module (out-of-line module loading)

This class handles:
- Submodule discovery from `mod name;` declarations
- `#[path]` overrides and mod-rs directory rules
- Collecting every unresolved module before failing
- Circular inclusion detection
"""

import logging
from pathlib import Path
from typing import Any, List, Optional

from .module_info import ModuleDeclaration
from .path_resolver import ModuleDirectory, PathResolver, path_attribute
from ...shared.errors import Error, ReduceError
from ...shared.nodes import Declaration, ModuleDefinition, SourceFile
from ...utils.io_utils import read_source_file

logger = logging.getLogger(__name__)


class UnresolvedModulesError(ReduceError):
    """One or more `mod name;` declarations have no backing file."""

    def __init__(self, declarations: List[ModuleDeclaration]):
        self.declarations = declarations
        names = ", ".join(str(decl) for decl in declarations)
        count = len(declarations)
        super().__init__(f"{count} unresolved module{'s' if count != 1 else ''}: {names}")

    def diagnostics(self) -> List[Error]:
        errors = []
        for decl in self.declarations:
            tried = " or ".join(f"`{path}`" for path in decl.tried)
            errors.append(Error(
                message=f"file not found for module `{decl.name}`",
                location=decl.location,
                code="E0583",
                label="unresolved module",
                help=f"create {tried}" if tried else None,
            ))
        return errors


class CircularModuleError(ReduceError):
    """A file includes itself through a chain of `mod` declarations."""

    def __init__(self, chain: List[Path], declaration: Optional[ModuleDefinition] = None):
        self.chain = chain
        rendered = " -> ".join(str(path) for path in chain)
        super().__init__(
            f"circular module inclusion: {rendered}",
            declaration.location if declaration is not None else None,
        )


class ModuleInliner:
    """
    Builds the single inlined declaration tree for a crate.

    Rust Pattern: rustc_expand::expand::MacroExpander (out-of-line `mod`)

    `cfg` attributes are never evaluated: a `#[cfg(test)] mod tests;`
    is inlined like any other module.
    """

    def __init__(self, parser: Optional[Any] = None, path_resolver: Optional[PathResolver] = None):
        if parser is None:
            from ...frontend.parser import Parser
            self.parser = Parser()
        else:
            self.parser = parser
        self.path_resolver = path_resolver or PathResolver()
        self.unresolved: List[ModuleDeclaration] = []
        self.loaded_files: List[Path] = []

    def inline_file(self, entry: Path) -> SourceFile:
        """
        Parse `entry` and inline all of its out-of-line modules.

        Raises:
            UnresolvedModulesError: if any module has no backing file
            CircularModuleError: if a file includes itself
            ParseError: if any loaded file fails to parse
        """
        entry = Path(entry)
        tree = self._parse(entry)
        return self.inline_tree(tree, entry)

    def inline_tree(self, tree: SourceFile, entry: Path) -> SourceFile:
        """
        Inline the out-of-line modules of an already parsed entry file.

        A tree with no `mod name;` declarations is returned unchanged.
        """
        entry = Path(entry)
        self.unresolved = []
        self.loaded_files = [entry]
        if tree.external_modules():
            directory = self.path_resolver.directory_for(entry, self.path_resolver.is_mod_rs(entry, is_entry=True))
            self._inline_items(tree.items, directory, [entry.resolve()])
        if self.unresolved:
            raise UnresolvedModulesError(self.unresolved)
        logger.debug(f"Inlined {len(self.loaded_files) - 1} module files into {entry}")
        return tree

    def _parse(self, path: Path) -> SourceFile:
        return self.parser.parse(read_source_file(path), str(path))

    def _inline_items(self, items: List[Declaration], directory: ModuleDirectory, stack: List[Path]) -> None:
        for item in items:
            if not isinstance(item, ModuleDefinition):
                continue
            if item.is_external:
                self._inline_module(item, directory, stack)
            else:
                self._inline_items(item.items, directory.nested(item.name), stack)

    def _inline_module(self, module: ModuleDefinition, directory: ModuleDirectory, stack: List[Path]) -> None:
        backing = self.path_resolver.resolve(module, directory)
        if backing is None:
            self.unresolved.append(ModuleDeclaration(
                name=module.name,
                location=module.location,
                tried=self.path_resolver.candidates(module, directory),
            ))
            return

        key = backing.resolve()
        if key in stack:
            raise CircularModuleError(stack[stack.index(key):] + [key], module)

        parsed = self._parse(backing)
        self.loaded_files.append(backing)
        module.items = parsed.items
        module.inner_attrs = parsed.inner_attrs
        via_path = path_attribute(module.attrs) is not None
        if via_path:
            # The attribute no longer names anything once the contents are inline
            module.attrs = [attr for attr in module.attrs if path_attribute([attr]) is None]

        mod_rs = self.path_resolver.is_mod_rs(backing, via_path_attribute=via_path)
        child_directory = self.path_resolver.directory_for(backing, mod_rs)
        self._inline_items(module.items, child_directory, stack + [key])
