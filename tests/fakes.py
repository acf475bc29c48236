"""Test doubles for stores and views."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any


@dataclass(eq=False)
class FakeSubscription:
    store: FakeStore
    listener: Callable[..., Any]
    dispose_calls: int = 0

    def dispose(self) -> None:
        self.dispose_calls += 1
        if self in self.store.subscriptions:
            self.store.subscriptions.remove(self)


@dataclass(eq=False)
class FakeStore:
    """Store double recording every live subscription."""

    state: Any = field(default_factory=dict)
    action: Any = None
    subscriptions: list[FakeSubscription] = field(default_factory=list)
    get_state_error: Exception | None = None

    def get_state(self) -> Any:
        if self.get_state_error is not None:
            raise self.get_state_error
        return self.state

    def add_change_listener(self, listener: Callable[..., Any]) -> FakeSubscription:
        subscription = FakeSubscription(self, listener)
        self.subscriptions.append(subscription)
        return subscription

    def emit(self, *args: Any) -> None:
        for subscription in list(self.subscriptions):
            subscription.listener(*args)


@dataclass
class FakeView:
    """Records every commit instead of merging."""

    props: Mapping[str, Any] = field(default_factory=dict)
    state: Mapping[str, Any] = field(default_factory=dict)
    commits: list[Mapping[str, Any]] = field(default_factory=list)

    def set_state(self, state: Mapping[str, Any]) -> None:
        self.commits.append(state)
        self.state = state
