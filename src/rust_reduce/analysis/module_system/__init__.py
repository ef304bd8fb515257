"""Module system: path resolution and module inlining."""

from .path_resolver import PathResolver, ModuleDirectory, path_attribute
from .module_info import ModuleDeclaration
from .module_loader import ModuleInliner, UnresolvedModulesError, CircularModuleError

__all__ = [
    'PathResolver',
    'ModuleDirectory',
    'path_attribute',
    'ModuleDeclaration',
    'ModuleInliner',
    'UnresolvedModulesError',
    'CircularModuleError',
]
