"""
Rust Source Transformers
========================

Token-tree construction and declaration splitting.
"""

from .base import Group, TokenTree, TokenTreeTransformer
from .items import ItemReader

__all__ = [
    'Group',
    'TokenTree',
    'TokenTreeTransformer',
    'ItemReader',
]
