"""
Module System Types

Rust Pattern: rustc_expand::module::ModError
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from ...shared.source_location import SourceLocation


@dataclass
class ModuleDeclaration:
    """
    A `mod name;` declaration that could not be resolved.

    `tried` lists the candidate files in lookup order.
    """
    name: str
    location: Optional[SourceLocation] = None
    tried: List[Path] = field(default_factory=list)

    def __str__(self) -> str:
        where = f" ({self.location})" if self.location else ""
        return f"mod {self.name};{where}"
