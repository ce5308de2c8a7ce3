"""Top-level package for the budget planner core.

The primary modules are:

* ``models`` – the budget template document (settings, entries, scenarios)
* ``codec`` – canonical JSON encoding/decoding of documents
* ``storage`` – one-file-per-budget store with atomic saves
* ``scenarios`` – composing scenario overlays over the base template
* ``editing`` – in-place edits made between saves

Typical use:

```python
from budget_planner import BudgetStorage

store = BudgetStorage("~/.budgetplanner")
budget = store.load("2024-plan")
store.save(budget)
```
"""

from .errors import (
    BudgetPlannerError,
    ChatCompletionError,
    DecodeError,
    InvalidNameError,
    NotFoundError,
    ProviderError,
    StorageIOError,
    ValidationError,
)
from .models import (
    BudgetSettings,
    BudgetTemplate,
    LineItem,
    Scenario,
    ScenarioOverride,
    TemplateEntry,
    UnplannedTransaction,
    VirtualItem,
)
from .codec import decode_budget, encode_budget
from .storage import BudgetStorage
from .scenarios import ScenarioView, apply_scenario, new_scenario

__all__ = [
    # Errors
    'BudgetPlannerError',
    'ChatCompletionError',
    'DecodeError',
    'InvalidNameError',
    'NotFoundError',
    'ProviderError',
    'StorageIOError',
    'ValidationError',
    # Document model
    'BudgetSettings',
    'BudgetTemplate',
    'LineItem',
    'Scenario',
    'ScenarioOverride',
    'TemplateEntry',
    'UnplannedTransaction',
    'VirtualItem',
    # Codec and storage
    'decode_budget',
    'encode_budget',
    'BudgetStorage',
    # Scenarios
    'ScenarioView',
    'apply_scenario',
    'new_scenario',
]
