"""Interrupt extraction and human response helpers.

Interrupt payloads reach the client in several shapes depending on where they
were read from (live ``values`` events, thread history, thread search results):

- a direct approval object ``{"action_request": {...}, "config": {...}}``
- a list of such objects
- a ``{"value": ...}`` wrapper around any of the above
- a list of ``[index, {"value": ...}]`` or ``[index, obj]`` tuples
- a JSON-encoded string of any of the above

``extract_interrupts`` normalizes all of them. It never fails: when nothing
valid is found it returns the improper schema sentinel, so an interrupted
thread always has something the UI can offer (ignoring it).
"""

import json
from typing import Any

from agentrun_core.models.interrupts import (
    IMPROPER_SCHEMA,
    ActionRequest,
    HumanInterrupt,
    HumanResponseWithEdits,
    InterruptConfig,
    SubmitType,
)


def improper_schema_interrupt() -> HumanInterrupt:
    """The sentinel returned when an interrupt value matches no known schema."""
    return HumanInterrupt(
        action_request=ActionRequest(action=IMPROPER_SCHEMA),
        config=InterruptConfig.improper_schema(),
    )


def is_valid_interrupt(value: Any) -> bool:
    """An object is an interrupt if it has ``action_request.action`` and ``config``."""
    if not isinstance(value, dict) or "config" not in value:
        return False
    request = value.get("action_request")
    return isinstance(request, dict) and "action" in request


def extract_interrupts(value: Any) -> list[HumanInterrupt]:
    """Normalize an interrupt value into approval requests.

    Args:
        value: Raw interrupt value at any supported nesting depth.

    Returns:
        Interrupts in encounter order, or a single improper schema sentinel.
    """
    interrupts = _collect(value)
    if not interrupts:
        return [improper_schema_interrupt()]
    return interrupts


def _collect(value: Any) -> list[HumanInterrupt]:
    if isinstance(value, str):
        return _collect_json_string(value)
    if isinstance(value, list):
        return _collect_list(value)
    if is_valid_interrupt(value):
        return [HumanInterrupt.from_payload(value)]
    if isinstance(value, dict) and "value" in value:
        return _collect(value["value"])
    return []


def _collect_json_string(text: str) -> list[HumanInterrupt]:
    stripped = text.strip()
    if not stripped.startswith(("[", "{")):
        return []
    try:
        parsed = json.loads(stripped)
    except json.JSONDecodeError:
        return []
    if isinstance(parsed, str):
        return []
    return _collect(parsed)


def _collect_list(items: list[Any]) -> list[HumanInterrupt]:
    interrupts: list[HumanInterrupt] = []
    for item in items:
        if isinstance(item, list):
            # [index, {"value": ...}] or [index, obj]
            if len(item) >= 2:
                interrupts.extend(_collect(item[1]))
            continue
        interrupts.extend(_collect(item))
    return interrupts


def interrupts_from_history_entry(entry: Any) -> list[Any]:
    """Raw interrupt payloads of a thread history checkpoint.

    The ``__interrupt__`` key of the checkpoint values takes precedence; pending
    task interrupts are used when the values do not carry it.
    """
    if not isinstance(entry, dict):
        return []
    values = entry.get("values")
    if isinstance(values, dict):
        reserved = values.get("__interrupt__")
        if isinstance(reserved, list) and reserved:
            return reserved

    found: list[Any] = []
    tasks = entry.get("tasks")
    if isinstance(tasks, list):
        for task in tasks:
            if isinstance(task, dict) and isinstance(task.get("interrupts"), list):
                found.extend(task["interrupts"])
    return found


def default_human_responses(
    interrupts: list[HumanInterrupt],
) -> tuple[list[HumanResponseWithEdits], SubmitType | None, bool]:
    """Build the response drafts offered for the first interrupt.

    Returns:
        ``(responses, default_submit_type, has_accept)``. The default submit type
        prefers accept over response.
    """
    if not interrupts:
        return [], None, False

    interrupt = interrupts[0]
    responses: list[HumanResponseWithEdits] = []

    if interrupt.config.allow_accept:
        responses.append(
            HumanResponseWithEdits(
                type="accept",
                args=interrupt.action_request,
                accept_allowed=True,
            )
        )
    if interrupt.config.allow_respond:
        responses.append(HumanResponseWithEdits(type="response", args=""))
    if interrupt.config.allow_ignore:
        responses.append(HumanResponseWithEdits(type="ignore"))

    has_accept = interrupt.config.allow_accept
    default_submit: SubmitType | None = None
    if has_accept:
        default_submit = "accept"
    elif any(r.type == "response" for r in responses):
        default_submit = "response"

    return responses, default_submit, has_accept


def have_args_changed(args: Any, initial_values: dict[str, str]) -> bool:
    """Whether any edited argument differs from its initial string form."""
    if not isinstance(args, dict):
        return False
    for key, value in args.items():
        if isinstance(value, str):
            current = value
        elif isinstance(value, (int, float)) and not isinstance(value, bool):
            current = str(value)
        else:
            current = json.dumps(value)
        initial = initial_values.get(key)
        if initial is not None and initial != current:
            return True
    return False
