"""State binding between a view and its stores.

A :class:`StateBinding` subscribes a view to every configured store and to
the actions store, recomputes the view's full state on every notification
and commits it through ``view.set_state``. Action broadcasts are only
committed when the derived state refers to the broadcast token.

Derivation errors never escape :meth:`StateBinding.try_get_state`; they are
reported to diagnostics and masked as an empty state.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Mapping
from typing import Any

from statebind._clone import clone_state
from statebind.config import BindingOptions
from statebind.diagnostics import Diagnostics, ViewHandler, default_diagnostics
from statebind.protocols import StateSource, Subscription, ViewLike
from statebind.sources import Options, SourceConfig, coerce_options, resolve_sources
from statebind.state.policy import is_relevant
from statebind.state.store import default_actions_store

_logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class Ok:
    state: Mapping[str, Any]


@dataclasses.dataclass(frozen=True)
class Failed:
    error: Exception


DerivationResult = Ok | Failed


class StateBinding:
    """Keeps one view consistent with its stores.

    Parameters
    ----------
    view : ViewLike
        The consumer. Only ``props``, ``state`` and ``set_state`` are used.
    options : StateSource, BindingOptions or mapping
        A single store (direct mode) or a source declaration.
    actions_store : StateSource, optional
        Store broadcasting ``(state, store, token)``. Defaults to the
        process-wide actions store.
    diagnostics : Diagnostics, optional
        Defaults to the process-wide diagnostics context.
    name : str, optional
        Label for diagnostics traces. Falls back to ``options.name`` and
        then to the view's class name.
    """

    def __init__(
        self,
        view: ViewLike,
        options: Options | None,
        *,
        actions_store: StateSource | None = None,
        diagnostics: Diagnostics | None = None,
        name: str | None = None,
    ) -> None:
        coerced = coerce_options(options)
        self._options: BindingOptions | None = coerced if isinstance(coerced, BindingOptions) else None
        self._config: SourceConfig = resolve_sources(coerced)
        self._view = view
        self._actions_store = actions_store
        self._diagnostics = diagnostics
        self._name = name or (self._options.name if self._options else None) or type(view).__name__
        self._subscriptions: list[Subscription] = []
        self._last_state: Any = None

    @property
    def view(self) -> ViewLike:
        return self._view

    @property
    def name(self) -> str:
        return self._name

    @property
    def config(self) -> SourceConfig:
        return self._config

    @property
    def listen_to_actions(self) -> bool:
        if self._options is None:
            return True
        return self._options.listen_to_actions

    @property
    def actions_store(self) -> StateSource:
        if self._actions_store is None:
            return default_actions_store()
        return self._actions_store

    @property
    def diagnostics(self) -> Diagnostics:
        if self._diagnostics is None:
            return default_diagnostics()
        return self._diagnostics

    @property
    def subscriptions(self) -> tuple[Subscription, ...]:
        return tuple(self._subscriptions)

    @property
    def last_state(self) -> Any:
        """Deep copy of the view state seen by the last diagnostics handler."""
        return self._last_state

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def mount(self) -> None:
        """Subscribe to every store (and the actions store, unless opted out)."""
        actions_store = self.actions_store if self.listen_to_actions else None
        for store in self._config.stores:
            # The actions store gets a single, token-gated listener.
            if store is actions_store:
                continue
            self._subscriptions.append(store.add_change_listener(self.on_store_changed))

        if actions_store is not None:
            self._subscriptions.append(actions_store.add_change_listener(self.on_action_changed))

        _logger.debug("Mounted %s with %d subscriptions", self._name, len(self._subscriptions))

    def unmount(self) -> None:
        """Dispose every subscription recorded by :meth:`mount`."""
        subscriptions, self._subscriptions = self._subscriptions, []
        for subscription in subscriptions:
            subscription.dispose()
        _logger.debug("Unmounted %s (%d subscriptions disposed)", self._name, len(subscriptions))

    def __enter__(self) -> StateBinding:
        self.mount()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.unmount()

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def on_store_changed(self, state: Any = None, store: Any = None, *_: Any) -> None:
        """Recompute the full state and commit it, whichever store changed."""
        self._view.set_state(self.try_get_state(store))

    def on_action_changed(self, state: Any, store: Any, token: Any) -> None:
        """Commit the recomputed state only if it refers to *token*."""
        result = self._derive_traced(store)
        if isinstance(result, Failed) or not result.state:
            return

        if is_relevant(result.state, token):
            self._view.set_state(result.state)
        else:
            _logger.debug("%s ignored action %s", self._name, token)

    # ------------------------------------------------------------------
    # Derivation
    # ------------------------------------------------------------------

    def get_state(self) -> Mapping[str, Any]:
        """Derive the composite state. Errors propagate."""
        state = self._config.derive(self._view)
        return {} if state is None else state

    def derive(self) -> DerivationResult:
        try:
            return Ok(self.get_state())
        except Exception as exc:
            return Failed(exc)

    def try_get_state(self, source: Any = None) -> Mapping[str, Any]:
        """Derive the composite state, masking failures as ``{}``."""
        result = self._derive_traced(source)
        if isinstance(result, Failed):
            return {}
        return result.state

    def _derive_traced(self, source: Any) -> DerivationResult:
        handler = self._open_handler(source)
        try:
            result = self.derive()
            if isinstance(result, Failed):
                _logger.debug("State derivation failed for %s", self._name, exc_info=result.error)
                if handler is not None:
                    handler.failed(result.error)
            return result
        finally:
            if handler is not None:
                handler.dispose()
                # Snapshot what the view has committed, not what was just derived.
                self._last_state = clone_state(self._view.state)

    def _open_handler(self, source: Any) -> ViewHandler | None:
        diagnostics = self.diagnostics
        if not diagnostics.enabled:
            return None
        action = getattr(source, "action", None)
        if action is None:
            return None
        return diagnostics.add_view_handler(self._name, self._view, self._last_state, action=action)

    def get_initial_state(self) -> dict[str, Any]:
        """Defaults shallow-merged under the derived state (derived keys win)."""
        defaults: Mapping[str, Any] = {}
        if self._options is not None and self._options.initial_state is not None:
            defaults = self._options.initial_state() or {}
        else:
            default_state = getattr(self._view, "default_state", None)
            if callable(default_state):
                defaults = default_state() or {}

        state = {**defaults, **self.get_state()}

        if self.diagnostics.enabled:
            self._last_state = clone_state(state)

        return state

    def receive_props(self, next_props: Mapping[str, Any]) -> None:
        """Recompute state as if the view already had *next_props* and commit it.

        The view's props are restored before committing; the host framework
        is responsible for actually applying *next_props*.
        """
        old_props = self._view.props
        self._view.props = next_props
        try:
            next_state = self.get_state()
        finally:
            self._view.props = old_props
        self._view.set_state(next_state)
