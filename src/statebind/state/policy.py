"""Action relevance policy.

A view only commits a recomputation triggered by an action broadcast when
the derived state actually refers to that action.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any


def token_of(value: Any) -> Any:
    """Return the action token carried by *value*, or ``None``."""
    if value is None:
        return None
    if isinstance(value, Mapping):
        return value.get("token")
    return getattr(value, "token", None)


def is_action_that_changed(value: Any, token: Any) -> bool:
    if token is None:
        return False
    return token_of(value) == token


def is_relevant(candidate: Any, token: Any) -> bool:
    """Decide whether a derived candidate state should be committed.

    Policy:
    - the candidate itself carries the token, or
    - any value of a candidate mapping (a named fragment) carries it.

    A partial match is enough; the whole candidate is committed.
    """
    if not candidate:
        return False
    if is_action_that_changed(candidate, token):
        return True
    if isinstance(candidate, Mapping):
        return any(is_action_that_changed(fragment, token) for fragment in candidate.values())
    return False
