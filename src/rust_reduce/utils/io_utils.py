"""
Centralized file I/O utilities.

- Single place for encoding and backup handling
- Use Path.read_text()/write_text() consistently (no raw open/read)
"""

import logging
import shutil
from pathlib import Path
from typing import Union

from .config import DEFAULT_FILE_ENCODING, BACKUP_SUFFIX, MINIMISED_SUFFIX

logger = logging.getLogger(__name__)


def read_source_file(path: Union[Path, str]) -> str:
    """Read source file with standard encoding."""
    p = Path(path) if not isinstance(path, Path) else path
    return p.read_text(encoding=DEFAULT_FILE_ENCODING)


def write_source_file(path: Union[Path, str], source: str) -> None:
    """Overwrite a source file with standard encoding."""
    p = Path(path) if not isinstance(path, Path) else path
    p.write_text(source, encoding=DEFAULT_FILE_ENCODING)


def with_suffix_appended(path: Union[Path, str], suffix: str) -> Path:
    """`src/lib.rs` + `.orig` -> `src/lib.rs.orig`."""
    p = Path(path)
    return p.with_name(p.name + suffix)


def backup_file(path: Union[Path, str]) -> Path:
    """
    Copy `path` to `path.orig` unless a backup already exists.

    An existing backup is the pristine input of an earlier, interrupted run
    and must not be clobbered by a partially reduced file.
    """
    backup = with_suffix_appended(path, BACKUP_SUFFIX)
    if backup.exists():
        logger.info(f"Keeping existing backup {backup}")
        return backup
    shutil.copyfile(path, backup)
    logger.debug(f"Backed up {path} to {backup}")
    return backup


def save_minimised_copy(path: Union[Path, str]) -> Path:
    """Copy the final reduced file next to the original as `path.min`."""
    target = with_suffix_appended(path, MINIMISED_SUFFIX)
    shutil.copyfile(path, target)
    return target
