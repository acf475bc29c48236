"""Deep-copy helper for diagnostic state snapshots.

Snapshots handed to diagnostics must never alias the view's live state,
otherwise later mutations would leak into earlier traces.
"""

from __future__ import annotations

import copy
from typing import Any

from pydantic import BaseModel


def clone_state(value: Any) -> Any:
    """Return a deep copy of *value* suitable for a diagnostic snapshot.

    Cycles, shared references and container types are preserved. Only
    leaves that cannot be copied at all (locks, sockets, ...) are replaced
    by their ``repr``.
    """
    if isinstance(value, BaseModel):
        return value.model_copy(deep=True)
    try:
        return copy.deepcopy(value)
    except (TypeError, copy.Error):
        return _clone_with_fallback(value, {})


def _clone_with_fallback(value: Any, memo: dict[int, Any]) -> Any:
    """Walk containers whose deep copy failed, copying each item on its own."""
    if id(value) in memo:
        return memo[id(value)]

    if isinstance(value, dict):
        result: Any = {}
        memo[id(value)] = result
        for key, item in value.items():
            result[key] = _clone_item(item, memo)
        return result

    if isinstance(value, list):
        result = []
        memo[id(value)] = result
        result.extend(_clone_item(item, memo) for item in value)
        return result

    if isinstance(value, tuple):
        return tuple(_clone_item(item, memo) for item in value)

    return repr(value)


def _clone_item(value: Any, memo: dict[int, Any]) -> Any:
    if id(value) in memo:
        return memo[id(value)]
    try:
        return copy.deepcopy(value)
    except (TypeError, copy.Error):
        return _clone_with_fallback(value, memo)
