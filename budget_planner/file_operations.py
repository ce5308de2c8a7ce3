"""File operation utilities for budget name checking and crash-safe writes."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from .config import TEMP_SUFFIX
from .errors import InvalidNameError, StorageIOError

logger = logging.getLogger(__name__)

_FORBIDDEN_SEQUENCES = ('/', '\\', '..', '\x00')


def validate_budget_name(name: str) -> str:
    """Check that a user-provided budget name is safe to use as a filename.

    Names are never rewritten: a name either maps to a file unchanged or is
    rejected, so every stored name round-trips through its filename.

    Args:
        name: The budget name to check

    Returns:
        The name, unchanged

    Raises:
        InvalidNameError: If the name is empty or contains a path separator,
            a parent-directory sequence or a NUL byte

    Example:
        >>> validate_budget_name("my-budget_2024")
        'my-budget_2024'
    """
    if not isinstance(name, str) or not name.strip():
        raise InvalidNameError(str(name), "name cannot be empty")
    for sequence in _FORBIDDEN_SEQUENCES:
        if sequence in name:
            raise InvalidNameError(name, f"must not contain {sequence!r}")
    return name


def ensure_directory(path: Path) -> Path:
    """Ensure a directory exists, creating it if necessary.

    Args:
        path: The directory path to ensure exists

    Returns:
        The path object (for chaining)

    Raises:
        StorageIOError: If the directory cannot be created
    """
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise StorageIOError("create directory", path, e) from e
    return path


def temp_path_for(target: Path) -> Path:
    """Sibling path used while ``target`` is being written."""
    return target.with_name(target.name + TEMP_SUFFIX)


def atomic_write_text(target: Path, text: str) -> None:
    """Replace ``target`` with ``text`` so readers see either old or new content.

    The text goes to a temporary sibling file which is flushed and fsynced,
    then renamed onto ``target`` in one step. A crash before the rename leaves
    ``target`` untouched; the stray temporary file is not cleaned up here.

    Raises:
        StorageIOError: If any step fails; ``operation`` names the step
    """
    tmp = temp_path_for(target)
    try:
        handle = tmp.open('w', encoding='utf-8', newline='\n')
    except OSError as e:
        raise StorageIOError("create temp file", tmp, e) from e

    with handle:
        try:
            handle.write(text)
        except OSError as e:
            raise StorageIOError("write temp file", tmp, e) from e
        try:
            handle.flush()
            os.fsync(handle.fileno())
        except OSError as e:
            raise StorageIOError("sync temp file", tmp, e) from e

    try:
        os.replace(tmp, target)
    except OSError as e:
        raise StorageIOError("rename temp file", target, e) from e
    logger.debug("Wrote %d characters to %s", len(text), target)
