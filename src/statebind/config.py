"""Binding and diagnostics configuration for statebind."""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from statebind.exceptions import StateBindConfigError
from statebind.protocols import StateSource, is_state_source

#: Option keys that are never treated as named field sources.
RESERVED_KEYS: frozenset[str] = frozenset({"listen_to", "get_state"})

_KEY_ALIASES: dict[str, str] = {
    "listenTo": "listen_to",
    "getState": "get_state",
    "listenToActions": "listen_to_actions",
    "getInitialState": "get_initial_state",
    "initialState": "get_initial_state",
    "initial_state": "get_initial_state",
}


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


@dataclasses.dataclass(frozen=True)
class DiagnosticsConfig:
    """Diagnostics configuration.

    Parameters
    ----------
    enabled : bool
        Open a view handler for every derivation triggered by an in-flight
        action and keep a last-known-state snapshot per binding.
        Disabled by default; it only costs time and memory.
    max_traces : int
        Maximum number of finished view traces kept in memory. Oldest
        traces are dropped first.
    """

    enabled: bool = False
    max_traces: int = 100

    @classmethod
    def from_env(cls, **overrides: Any) -> DiagnosticsConfig:
        """Create configuration from environment variables.

        Reads ``STATEBIND_DIAGNOSTICS`` and
        ``STATEBIND_DIAGNOSTICS_MAX_TRACES``. Explicit keyword arguments
        override environment values.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        if "enabled" not in overrides:
            config_kwargs["enabled"] = _env_bool(env.get("STATEBIND_DIAGNOSTICS"), False)

        max_traces_env = env.get("STATEBIND_DIAGNOSTICS_MAX_TRACES")
        if max_traces_env is not None and "max_traces" not in overrides:
            config_kwargs["max_traces"] = int(max_traces_env)

        config_kwargs.update(overrides)
        return cls(**config_kwargs)


@dataclasses.dataclass(frozen=True)
class BindingOptions:
    """Declarative source list for a single view.

    Parameters
    ----------
    listen_to : StateSource or sequence of StateSource, optional
        Stores whose changes trigger a recomputation but whose state is not
        copied into the view.
    sources : mapping of str to StateSource
        Named field sources. ``state[name]`` is ``sources[name].get_state()``.
        These stores are listened to as well.
    derive : callable, optional
        Custom derivation called with the view. Its result is shallow-merged
        over the field mapping; custom keys win.
    initial_state : callable, optional
        Returns the view's default initial state. Derived keys win over it.
    listen_to_actions : bool
        Subscribe to the actions store as well. Defaults to ``True``.
    name : str, optional
        Label used for diagnostics traces.
    """

    listen_to: StateSource | Sequence[StateSource] | None = None
    sources: Mapping[str, StateSource] = dataclasses.field(default_factory=dict)
    derive: Callable[[Any], Mapping[str, Any]] | None = None
    initial_state: Callable[[], Mapping[str, Any]] | None = None
    listen_to_actions: bool = True
    name: str | None = None

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any] | None) -> BindingOptions:
        """Build options from a loose option mapping.

        Every entry outside :data:`RESERVED_KEYS` whose value is a store
        becomes a named field source. camelCase spellings of the known keys
        (``listenTo``, ``getState``, ...) are accepted.
        """
        if options is None:
            raise StateBindConfigError("The state binding is expecting some options")

        normalized: dict[str, Any] = {}
        for key, value in options.items():
            canonical = _KEY_ALIASES.get(key, key)
            if canonical in normalized:
                raise StateBindConfigError(f"Option {key!r} duplicates {canonical!r}")
            normalized[canonical] = value

        sources: dict[str, StateSource] = {}
        for key, value in normalized.items():
            if key not in RESERVED_KEYS and is_state_source(value):
                sources[key] = value

        listen_to_actions = normalized.get("listen_to_actions")
        return cls(
            listen_to=normalized.get("listen_to"),
            sources=sources,
            derive=normalized.get("get_state"),
            initial_state=normalized.get("get_initial_state"),
            listen_to_actions=True if listen_to_actions is None else bool(listen_to_actions),
            name=normalized.get("name"),
        )
