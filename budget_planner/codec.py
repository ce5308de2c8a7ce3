"""JSON encoding and decoding of budget documents.

Both directions are pure; file handling lives in :mod:`budget_planner.storage`.
Output is indented, key-sorted and newline-terminated so that re-saving an
unchanged document reproduces the same bytes and diffs stay readable.
"""

from __future__ import annotations

import json
from typing import Any, Dict

from .errors import DecodeError, ValidationError
from .models import BudgetTemplate


def dumps(payload: Dict[str, Any]) -> str:
    """Serialize a plain mapping in the canonical on-disk style."""
    try:
        text = json.dumps(payload, indent=2, sort_keys=True, ensure_ascii=False, allow_nan=False)
    except ValueError as e:
        raise ValidationError(f"Cannot encode document: {e}") from e
    try:
        text.encode('utf-8')
    except UnicodeEncodeError as e:
        raise ValidationError(f"Cannot encode document as UTF-8: {e.reason} at position {e.start}") from e
    return text + '\n'


def loads(text: str) -> Any:
    """Parse JSON text, raising :class:`DecodeError` when it is malformed."""
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise DecodeError(f"Malformed JSON at line {e.lineno} column {e.colno}: {e.msg}") from e
    except (ValueError, RecursionError) as e:
        # oversized integer literals or nesting too deep to parse
        raise DecodeError(f"Unreadable JSON: {e}") from e


def encode_budget(document: BudgetTemplate) -> str:
    """Encode a budget document to its canonical JSON text.

    Empty optional collections and absent optional fields are left out.

    Raises:
        ValidationError: If an amount is NaN or infinite
    """
    return dumps(document.to_dict())


def decode_budget(text: str) -> BudgetTemplate:
    """Decode JSON text into a :class:`BudgetTemplate`.

    Unknown fields are ignored; optional collections default to empty.

    Raises:
        DecodeError: If the text is not JSON or a required field is missing
            or has the wrong shape
    """
    return BudgetTemplate.from_dict(loads(text))
