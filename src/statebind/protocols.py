"""Structural interfaces consumed by the binding layer.

Stores, subscriptions and views are all external collaborators. Having
protocols here makes it easy to pass test doubles while keeping the
bundled implementations in :mod:`statebind.state` and :mod:`statebind.view`
concrete.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any, Protocol, runtime_checkable

State = Mapping[str, Any]


@runtime_checkable
class Subscription(Protocol):
    """Handle returned by ``add_change_listener``; disposed exactly once."""

    def dispose(self) -> None: ...


@runtime_checkable
class StateSource(Protocol):
    """The store capability: readable state plus change notifications."""

    def get_state(self) -> Any: ...

    def add_change_listener(self, listener: Callable[..., Any]) -> Subscription: ...


@runtime_checkable
class ViewLike(Protocol):
    """A consumer whose committed state is owned by the host framework."""

    props: Mapping[str, Any]
    state: Mapping[str, Any]

    def set_state(self, state: Mapping[str, Any]) -> None: ...


def is_state_source(value: Any) -> bool:
    """Return ``True`` when *value* exposes the store capability.

    ``runtime_checkable`` only checks attribute presence, so callability is
    verified explicitly.
    """
    if value is None or isinstance(value, type):
        return False
    return callable(getattr(value, "get_state", None)) and callable(getattr(value, "add_change_listener", None))
