"""Client for the remote chat-completion API used by the advisory features.

Independent of the budget store: it only needs an API key, a model name and
the conversation so far. ``build_template_context`` turns a budget into the
plain-text system prompt the advisor starts from.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import List, Optional, Sequence

import requests

from .config import CHAT_COMPLETIONS_URL, CHAT_TIMEOUT_SECONDS
from .errors import ChatCompletionError
from .models import BudgetTemplate
from .scenarios import apply_scenario

logger = logging.getLogger(__name__)


@dataclass
class ChatMessage:
    role: str
    content: str


def chat_completion(
    api_key: str,
    model: str,
    messages: Sequence[ChatMessage],
    session: Optional[requests.Session] = None,
    timeout: float = CHAT_TIMEOUT_SECONDS,
) -> str:
    """Send the conversation and return the first choice's text.

    Raises:
        ChatCompletionError: On transport failure, a non-2xx status or a
            response without message content
    """
    post = session.post if session is not None else requests.post
    payload = {'model': model, 'messages': [asdict(m) for m in messages]}
    try:
        response = post(
            CHAT_COMPLETIONS_URL,
            json=payload,
            headers={'Authorization': f'Bearer {api_key}'},
            timeout=timeout,
        )
    except requests.RequestException as e:
        logger.warning("Chat completion request failed: %s", e)
        raise ChatCompletionError(f"Request failed: {e}") from e

    if not response.ok:
        raise ChatCompletionError(
            f"API error ({response.status_code}): {response.text}",
            status_code=response.status_code,
        )

    try:
        content = response.json()['choices'][0]['message']['content']
    except (ValueError, KeyError, IndexError, TypeError) as e:
        raise ChatCompletionError(f"Failed to parse response: {e}", status_code=response.status_code) from e
    if not isinstance(content, str):
        raise ChatCompletionError("No content in response", status_code=response.status_code)
    return content


def build_template_context(document: BudgetTemplate, scenario_id: Optional[str] = None) -> str:
    """Describe the planned budget, optionally under a scenario, as prompt text."""
    view = apply_scenario(document, scenario_id)
    settings = document.settings
    income = set(settings.income_categories)
    excluded = set(settings.excluded_categories)

    parts: List[str] = [
        "You are a helpful financial advisor analyzing a personal budget.",
        f"Budget: {document.name} (currency {settings.currency}, starting {settings.start_date})",
    ]
    if view.scenario is not None:
        parts.append(f'Active scenario: "{view.scenario.name}"')

    income_lines: List[str] = []
    expense_lines: List[str] = []
    for key in sorted(view.entries):
        if key in excluded:
            continue
        entry = view.entries[key]
        line = f"{key}: planned {entry.amount:.2f}"
        if entry.note:
            line += f" ({entry.note})"
        (income_lines if key in income else expense_lines).append(line)
    for item in view.virtual_items:
        line = f"{item.name}: planned {item.amount:.2f} (scenario only)"
        (income_lines if item.is_income else expense_lines).append(line)

    parts += ['', '== Income ==', *income_lines, '', '== Expenses ==', *expense_lines]
    return '\n'.join(parts)
