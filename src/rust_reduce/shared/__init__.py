"""
Shared components for the reducer.

Rust Pattern: Shared foundational types and utilities
"""

from .source_location import SourceLocation
from .errors import Error, ErrorReporter, ReduceError, InitialRunNotInterestingError
from .nodes import (
    Attribute, AttributeKind, Visibility, PRIVATE, PUBLIC, Block, Declaration,
    ModuleDefinition, FunctionDefinition, StructStyle, StructField, StructDefinition,
    EnumDefinition, OtherItem, ImplItem, MethodDefinition, OtherImplItem, ImplBlock,
    BodyOwner, SourceFile,
)
from .serialization import SourceSerializer, serialize_source
