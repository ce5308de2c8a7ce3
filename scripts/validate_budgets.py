#!/usr/bin/env python3
"""Lightweight validator for stored budget documents."""

from __future__ import annotations

import sys
from typing import Dict, List, Optional

from budget_planner.config import resolve_storage_root
from budget_planner.errors import BudgetPlannerError
from budget_planner.storage import BudgetStorage


def validate_budget(storage: BudgetStorage, name: str) -> Dict[str, str]:
    try:
        document = storage.load(name)
        document.validate()
    except BudgetPlannerError as e:
        return {"name": name, "errors": str(e)}

    errors: List[str] = []
    if document.name != name:
        errors.append(f"stored name {document.name!r} does not match file name")
    if errors:
        return {"name": name, "errors": "; ".join(errors)}
    return {}


def main(argv: Optional[List[str]] = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    root = resolve_storage_root(args[0] if args else None)
    storage = BudgetStorage(root)
    if not storage.budgets_dir.exists():
        print(f"Budget directory not found: {storage.budgets_dir}")
        return 1

    issues = []
    for name in storage.list_names():
        result = validate_budget(storage, name)
        if result:
            issues.append((name, result['errors']))

    if issues:
        print("Budget validation failed:")
        for name, message in issues:
            print(f"  - {name}: {message}")
        return 1

    print("All budgets validated successfully.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
