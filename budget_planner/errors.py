"""Exception types raised by the budget planner core.

Every failure the store can produce maps to exactly one of these classes so
the calling layer can render its own message per kind.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class BudgetPlannerError(Exception):
    """Base class for all budget planner errors."""


class InvalidNameError(BudgetPlannerError, ValueError):
    """Raised when a budget name is empty or could escape the storage root."""

    def __init__(self, name: str, reason: str) -> None:
        self.name = name
        self.reason = reason
        super().__init__(f"Invalid budget name {name!r}: {reason}")


class NotFoundError(BudgetPlannerError, LookupError):
    """Raised when a budget (or a scenario inside one) does not exist."""

    def __init__(self, name: str, path: Optional[Path] = None, kind: str = "Budget") -> None:
        self.name = name
        self.path = path
        self.kind = kind
        location = f" at {path}" if path is not None else ""
        super().__init__(f"{kind} {name!r} not found{location}")


class DecodeError(BudgetPlannerError, ValueError):
    """Raised when persisted content is not a well-formed document."""

    def __init__(self, message: str, path: Optional[Path] = None) -> None:
        self.path = path
        location = f" ({path})" if path is not None else ""
        super().__init__(f"{message}{location}")


class ValidationError(BudgetPlannerError, ValueError):
    """Raised when a document is structurally sound but cannot be saved."""


class StorageIOError(BudgetPlannerError, OSError):
    """Raised when an underlying filesystem operation fails.

    Attributes:
        operation: Short label of the step that failed (``read``, ``rename``...)
        path: Path the operation targeted
        cause: The native exception
    """

    def __init__(self, operation: str, path: Optional[Path], cause: BaseException) -> None:
        self.operation = operation
        self.path = path
        self.cause = cause
        target = f" {path}" if path is not None else ""
        super().__init__(f"Failed to {operation}{target}: {cause}")


class ProviderError(StorageIOError):
    """Raised when an external data provider call terminates abnormally."""

    def __init__(self, operation: str, cause: BaseException) -> None:
        super().__init__(operation, None, cause)


class ChatCompletionError(BudgetPlannerError):
    """Raised when the remote language-model API call fails."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        self.status_code = status_code
        super().__init__(message)
