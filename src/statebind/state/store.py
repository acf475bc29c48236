"""In-memory observable stores.

``Store`` holds a mapping and notifies ``(state, store)`` listeners on every
change. ``ActionsStore`` keeps :class:`ActionRecord` objects by token and
notifies ``(state, store, token)`` listeners.
"""

from __future__ import annotations

import copy
import itertools
import logging
import secrets
from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from typing import Any

from statebind.exceptions import UnknownActionError
from statebind.state.events import ActionRecord, ActionStatus

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _new_token() -> str:
    return secrets.token_hex(8)


class ListenerSubscription:
    """Removes one listener from its store. Disposing twice is a no-op."""

    def __init__(self, registry: dict[int, Callable[..., Any]], listener_id: int) -> None:
        self._registry = registry
        self._listener_id = listener_id
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        self._registry.pop(self._listener_id, None)


class _Observable:
    """Listener registry shared by both store kinds."""

    def __init__(self, *, name: str | None = None) -> None:
        self.name = name or type(self).__name__
        self.action: ActionRecord | None = None
        self._listeners: dict[int, Callable[..., Any]] = {}
        self._ids = itertools.count()

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def add_change_listener(self, listener: Callable[..., Any]) -> ListenerSubscription:
        listener_id = next(self._ids)
        self._listeners[listener_id] = listener
        return ListenerSubscription(self._listeners, listener_id)

    def _notify(self, action: ActionRecord | None, *args: Any) -> None:
        previous = self.action
        self.action = action
        try:
            # Listeners may unsubscribe (themselves or others) while being notified.
            for listener_id, listener in list(self._listeners.items()):
                if listener_id in self._listeners:
                    listener(*args)
        finally:
            self.action = previous

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r} listeners={self.listener_count}>"


class Store(_Observable):
    """Key/value store with change notifications.

    ``get_state`` always returns a deep copy so callers cannot mutate the
    store behind its back.
    """

    def __init__(self, initial: Mapping[str, Any] | None = None, *, name: str | None = None) -> None:
        super().__init__(name=name)
        self._state: dict[str, Any] = copy.deepcopy(dict(initial)) if initial else {}

    def get_state(self) -> dict[str, Any]:
        return copy.deepcopy(self._state)

    def set_state(self, patch: Mapping[str, Any], *, action: ActionRecord | None = None) -> None:
        """Shallow-merge *patch* and notify listeners.

        *action* is exposed as ``store.action`` while listeners run, which
        lets diagnostics correlate the resulting view updates with it.
        """
        self._state.update(copy.deepcopy(dict(patch)))
        _logger.debug("%s changed keys=%s", self.name, sorted(patch))
        self._notify(action, self.get_state(), self)

    def replace_state(self, state: Mapping[str, Any], *, action: ActionRecord | None = None) -> None:
        self._state = copy.deepcopy(dict(state))
        self._notify(action, self.get_state(), self)


class ActionsStore(_Observable):
    """Tracks actions by token and broadcasts every status change."""

    def __init__(
        self,
        *,
        name: str | None = None,
        clock: Callable[[], datetime] = _utcnow,
        token_factory: Callable[[], str] = _new_token,
    ) -> None:
        super().__init__(name=name)
        self._clock = clock
        self._token_factory = token_factory
        self._actions: dict[str, ActionRecord] = {}

    def get_state(self) -> dict[str, ActionRecord]:
        # Records are frozen, a shallow copy is enough.
        return dict(self._actions)

    def get(self, token: str) -> ActionRecord | None:
        return self._actions.get(token)

    def start(self, action_type: str, *, token: str | None = None, **fields: Any) -> ActionRecord:
        """Register a new pending action and broadcast it."""
        record = ActionRecord(
            token=token or self._token_factory(),
            type=action_type,
            created_at=self._clock(),
            **fields,
        )
        self._actions[record.token] = record
        self._emit(record)
        return record

    def update(self, token: str, **fields: Any) -> ActionRecord:
        """Patch the fragment fields of an existing action and broadcast it."""
        existing = self._actions.get(token)
        if existing is None:
            raise UnknownActionError(f"No action with token {token!r}", token=token)
        record = ActionRecord(**{**existing.model_dump(), **fields})
        self._actions[token] = record
        self._emit(record)
        return record

    def done(self, token: str, **fields: Any) -> ActionRecord:
        return self.update(token, status=ActionStatus.DONE, **fields)

    def fail(self, token: str, error: BaseException | str) -> ActionRecord:
        return self.update(token, status=ActionStatus.FAILED, error=str(error))

    def _emit(self, record: ActionRecord) -> None:
        _logger.debug("%s broadcasting %s action %s (%s)", self.name, record.type, record.token, record.status)
        self._notify(record, self.get_state(), self, record.token)


_default_actions_store: ActionsStore | None = None


def default_actions_store() -> ActionsStore:
    """Process-wide actions store used when a binding is not given one."""
    global _default_actions_store
    if _default_actions_store is None:
        _default_actions_store = ActionsStore(name="actions")
    return _default_actions_store
