"""
rust-reduce utilities package
"""

from .io_utils import (
    read_source_file,
    write_source_file,
    backup_file,
    save_minimised_copy,
    with_suffix_appended,
)

__all__ = [
    "read_source_file",
    "write_source_file",
    "backup_file",
    "save_minimised_copy",
    "with_suffix_appended",
]
