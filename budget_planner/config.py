"""Configuration management for the budget planner.

This module centralizes path layout, document defaults and environment
variable overrides. Nothing here is mutated at runtime; the storage root is
handed to :class:`~budget_planner.storage.BudgetStorage` explicitly.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional, Union

# Per-user data root
DEFAULT_STORAGE_ROOT = Path(
    os.getenv("BUDGETPLANNER_HOME", Path.home() / ".budgetplanner")
).expanduser()

# Layout below the storage root
BUDGETS_DIRNAME = "budgets"
BUDGET_EXTENSION = ".json"
TEMP_SUFFIX = ".tmp"
APP_CONFIG_FILENAME = "config.json"

# Document defaults
DOCUMENT_VERSION = "1.0.0"
DEFAULT_CURRENCY = "EUR"

# Language model
DEFAULT_MODEL = os.getenv("BUDGETPLANNER_MODEL", "gpt-4.1-nano")
CHAT_COMPLETIONS_URL = "https://api.openai.com/v1/chat/completions"
CHAT_TIMEOUT_SECONDS = 60


def resolve_storage_root(root: Optional[Union[str, Path]] = None) -> Path:
    """Return ``root`` as a Path, or the default per-user root when omitted."""
    if root is None:
        return DEFAULT_STORAGE_ROOT
    return Path(root).expanduser()


def budgets_dir(root: Union[str, Path]) -> Path:
    """Directory holding one JSON file per budget below ``root``."""
    return Path(root) / BUDGETS_DIRNAME

