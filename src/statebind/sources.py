"""Configuration resolution: turn binding options into a ``SourceConfig``.

Two shapes are supported:

* *direct*: the options object is itself a store. The view listens to it
  and its raw state is the derived state.
* *composite*: a set of stores to listen to, a mapping of named field
  sources whose state is copied under their name, and an optional custom
  derivation merged on top.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Callable, Iterable, Mapping
from enum import StrEnum
from typing import Any

from statebind.config import BindingOptions
from statebind.exceptions import StateBindConfigError, StateSourceError
from statebind.protocols import StateSource, is_state_source

Options = StateSource | BindingOptions | Mapping[str, Any]


class SourceMode(StrEnum):
    DIRECT = "direct"
    COMPOSITE = "composite"


@dataclasses.dataclass(frozen=True)
class SourceConfig:
    """Resolved sources of one binding.

    ``stores`` is ordered and holds each source once. ``derive`` is called
    with the view and returns the full composite state.
    """

    mode: SourceMode
    stores: tuple[StateSource, ...]
    derive: Callable[[Any], Mapping[str, Any]]
    fields: Mapping[str, StateSource] = dataclasses.field(default_factory=dict)


def coerce_options(options: Options | None) -> StateSource | BindingOptions:
    """Normalize loose option mappings into :class:`BindingOptions`."""
    if options is None:
        raise StateBindConfigError("The state binding is expecting some options")
    if is_state_source(options) or isinstance(options, BindingOptions):
        return options
    if isinstance(options, Mapping):
        return BindingOptions.from_mapping(options)
    raise StateBindConfigError(f"Unsupported binding options: {type(options).__name__}")


def resolve_sources(options: Options | None) -> SourceConfig:
    coerced = coerce_options(options)
    if isinstance(coerced, BindingOptions):
        return _composite_config(coerced)
    return _direct_config(coerced)


def _direct_config(store: StateSource) -> SourceConfig:
    def derive(_view: Any) -> Mapping[str, Any]:
        return store.get_state()

    return SourceConfig(mode=SourceMode.DIRECT, stores=(store,), derive=derive)


def _composite_config(options: BindingOptions) -> SourceConfig:
    listen_to = _normalize_listen_to(options.listen_to)
    for index, store in enumerate(listen_to):
        if not is_state_source(store):
            raise StateSourceError(
                f"Can only listen to stores (listen_to[{index}] is {type(store).__name__})",
                key=f"listen_to[{index}]",
                value=store,
            )

    fields: dict[str, StateSource] = {}
    for name, store in options.sources.items():
        if not is_state_source(store):
            raise StateSourceError(f"Source {name!r} is not a store", key=name, value=store)
        fields[name] = store

    custom = options.derive

    def derive(view: Any) -> Mapping[str, Any]:
        state: dict[str, Any] = {name: store.get_state() for name, store in fields.items()}
        if custom is not None:
            custom_state = custom(view)
            if custom_state:
                state.update(custom_state)
        return state

    return SourceConfig(
        mode=SourceMode.COMPOSITE,
        stores=_dedupe((*listen_to, *fields.values())),
        derive=derive,
        fields=fields,
    )


def _normalize_listen_to(value: Any) -> tuple[Any, ...]:
    if value is None:
        return ()
    if is_state_source(value):
        return (value,)
    if isinstance(value, Iterable) and not isinstance(value, (str, bytes, Mapping)):
        return tuple(value)
    return (value,)


def _dedupe(stores: tuple[StateSource, ...]) -> tuple[StateSource, ...]:
    # Stores are compared by identity; they need not be hashable.
    seen: set[int] = set()
    unique: list[StateSource] = []
    for store in stores:
        if id(store) in seen:
            continue
        seen.add(id(store))
        unique.append(store)
    return tuple(unique)
