"""
Module Path Resolution

Pure path resolution for `mod name;` declarations, following Rust's
module file rules.

Rust Pattern: rustc_expand::module::mod_file_path

This class is stateless and can be shared/reused.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from ...shared.nodes import Attribute, ModuleDefinition
from ...utils.config import MOD_RS_FILE, MOD_RS_FILE_NAMES, MODULE_FILE_EXTENSION, PATH_ATTRIBUTE

logger = logging.getLogger(__name__)

_PATH_ATTR_RE = re.compile(r'^#\[\s*' + PATH_ATTRIBUTE + r'\s*=\s*"((?:\\.|[^"\\])*)"\s*\]$')


@dataclass(frozen=True)
class ModuleDirectory:
    """
    Where the submodules of the module currently being read live.

    `owner_dir` is the directory of the file that holds the declarations;
    `search_dir` additionally includes the non-mod-rs stem (`a.rs` -> `a/`)
    and one component per enclosing inline `mod x { }` block.
    """
    owner_dir: Path
    search_dir: Path
    inline_depth: int = 0

    def nested(self, name: str) -> "ModuleDirectory":
        """Directory for the members of an inline `mod name { ... }`."""
        return ModuleDirectory(self.owner_dir, self.search_dir / name, self.inline_depth + 1)


def path_attribute(attrs: List[Attribute]) -> Optional[str]:
    """The value of a `#[path = "..."]` attribute, if present."""
    for attr in attrs:
        match = _PATH_ATTR_RE.match(attr.source.strip())
        if match:
            return match.group(1)
    return None


class PathResolver:
    """
    Resolves module declarations to backing files.

    Rust Pattern: rustc_expand::module::default_submod_path

    - `mod.rs`, `lib.rs`, `main.rs`, the crate entry file and any file
      reached through `#[path]` are "mod-rs" files; their submodules live
      next to them.
    - Any other file `a.rs` keeps its submodules in `a/`.
    - `mod name;` tries `name.rs`, then `name/mod.rs`.
    """

    @staticmethod
    def is_mod_rs(file_path: Path, via_path_attribute: bool = False, is_entry: bool = False) -> bool:
        return is_entry or via_path_attribute or file_path.name in MOD_RS_FILE_NAMES

    def directory_for(self, file_path: Path, mod_rs: bool) -> ModuleDirectory:
        """Module directory for the top level of `file_path`."""
        owner = file_path.parent
        if mod_rs:
            return ModuleDirectory(owner, owner)
        return ModuleDirectory(owner, owner / file_path.stem)

    def candidates(self, module: ModuleDefinition, directory: ModuleDirectory) -> List[Path]:
        """Files that may back `module`, in lookup order."""
        explicit = path_attribute(module.attrs)
        if explicit is not None:
            # Outside inline blocks `#[path]` is relative to the declaring file
            base = directory.search_dir if directory.inline_depth else directory.owner_dir
            return [base / explicit]
        return [
            directory.search_dir / f"{module.name}{MODULE_FILE_EXTENSION}",
            directory.search_dir / module.name / MOD_RS_FILE,
        ]

    def resolve(self, module: ModuleDefinition, directory: ModuleDirectory) -> Optional[Path]:
        """
        Backing file for `module`, or None when no candidate exists.

        Returns: the first existing candidate
        """
        for candidate in self.candidates(module, directory):
            if candidate.is_file():
                logger.debug(f"Resolved `mod {module.name};` to {candidate}")
                return candidate
        return None
