"""Budget storage and file I/O operations.

This module handles all file operations for budgets including loading,
saving, listing and deleting budget files below a storage root:

    <storage_root>/budgets/<name>.json       one file per budget
    <storage_root>/budgets/<name>.json.tmp   only while a save is in flight

There is no locking. Two saves of the same name race at the rename and the
last one wins; the file itself is never left half-written.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Union

from .codec import decode_budget, encode_budget
from .config import BUDGET_EXTENSION, budgets_dir, resolve_storage_root
from .errors import DecodeError, NotFoundError, StorageIOError
from .file_operations import atomic_write_text, ensure_directory, validate_budget_name
from .models import BudgetTemplate

logger = logging.getLogger(__name__)


class BudgetStorage:
    """Handles budget file storage operations."""

    def __init__(self, storage_root: Optional[Union[str, Path]] = None):
        """Initialize budget storage.

        Args:
            storage_root: Per-user data directory. Defaults to
                ``config.DEFAULT_STORAGE_ROOT``. Nothing is created until the
                first save.
        """
        self.storage_root = resolve_storage_root(storage_root)

    @property
    def budgets_dir(self) -> Path:
        return budgets_dir(self.storage_root)

    def resolve_name(self, name: str) -> Path:
        """Get the file path for a budget by name.

        Args:
            name: Budget name

        Returns:
            Path object for the budget file

        Raises:
            InvalidNameError: If the name is empty or could escape the budgets
                directory
        """
        validate_budget_name(name)
        return self.budgets_dir / f"{name}{BUDGET_EXTENSION}"

    def exists(self, name: str) -> bool:
        return self.resolve_name(name).is_file()

    def load(self, name: str) -> BudgetTemplate:
        """Load a budget from disk.

        Raises:
            InvalidNameError: If the name is unsafe
            NotFoundError: If no budget with this name exists
            DecodeError: If the file is not a valid budget document
            StorageIOError: If the file cannot be read
        """
        path = self.resolve_name(name)
        try:
            text = path.read_text(encoding='utf-8')
        except FileNotFoundError as e:
            raise NotFoundError(name, path) from e
        except UnicodeDecodeError as e:
            raise DecodeError(f"Budget file is not UTF-8: {e}", path) from e
        except OSError as e:
            raise StorageIOError("read budget", path, e) from e

        try:
            document = decode_budget(text)
        except DecodeError as e:
            logger.warning("Could not decode budget %r: %s", name, e)
            raise DecodeError(str(e), path) from e
        logger.debug("Loaded budget %r from %s", name, path)
        return document

    def save(self, document: BudgetTemplate) -> Path:
        """Save a budget to disk, replacing any previous version atomically.

        The whole document is rewritten on every save.

        Args:
            document: Budget to persist; ``document.name`` selects the file

        Returns:
            Path of the written file

        Raises:
            InvalidNameError: If the document name is unsafe
            ValidationError: If scenario ids repeat or an amount is not finite
            StorageIOError: If the file cannot be written
        """
        target = self.resolve_name(document.name)
        document.validate()
        text = encode_budget(document)

        ensure_directory(target.parent)
        atomic_write_text(target, text)
        logger.info("Saved budget %r to %s", document.name, target)
        return target

    def list_names(self) -> List[str]:
        """Return the names of all stored budgets in ascending order.

        Only regular files ending in ``.json`` count; in-flight ``.json.tmp``
        files are skipped.

        Raises:
            StorageIOError: If the budgets directory cannot be read
        """
        directory = self.budgets_dir
        if not directory.exists():
            return []

        try:
            entries = list(directory.iterdir())
        except OSError as e:
            raise StorageIOError("list budgets", directory, e) from e

        names = [
            entry.name[:-len(BUDGET_EXTENSION)]
            for entry in entries
            if entry.name.endswith(BUDGET_EXTENSION) and entry.is_file()
        ]
        names.sort()
        logger.debug("Found %d budgets in %s", len(names), directory)
        return names

    def delete(self, name: str) -> None:
        """Delete a budget file from disk.

        Deleting a budget that does not exist succeeds silently.

        Raises:
            InvalidNameError: If the name is unsafe
            StorageIOError: If the file exists but cannot be removed
        """
        target = self.resolve_name(name)

        try:
            target.unlink()
        except FileNotFoundError:
            return  # Silently ignore non-existent files
        except OSError as e:
            raise StorageIOError("delete budget", target, e) from e
        logger.info("Deleted budget %r (%s)", name, target)
