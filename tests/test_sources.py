from __future__ import annotations

import pytest

from statebind.config import BindingOptions
from statebind.exceptions import StateBindConfigError, StateSourceError
from statebind.sources import SourceMode, resolve_sources
from tests.fakes import FakeStore


def test_direct_mode_returns_raw_store_state() -> None:
    store = FakeStore(state={"count": 1})

    config = resolve_sources(store)

    assert config.mode == SourceMode.DIRECT
    assert config.stores == (store,)
    assert config.derive(object()) == {"count": 1}


def test_composite_mode_maps_named_sources() -> None:
    store_a = FakeStore(state={"x": 1})
    store_b = FakeStore(state={"y": 2})

    config = resolve_sources({"a": store_a, "b": store_b})

    assert config.mode == SourceMode.COMPOSITE
    assert config.derive(object()) == {"a": {"x": 1}, "b": {"y": 2}}
    assert config.stores == (store_a, store_b)


def test_listen_to_single_store_is_normalized() -> None:
    store = FakeStore()

    config = resolve_sources({"listen_to": store})

    assert config.stores == (store,)
    # listen_to stores contribute no state
    assert config.derive(object()) == {}


def test_listen_to_and_named_sources_are_deduplicated() -> None:
    shared = FakeStore(state={"x": 1})
    other = FakeStore()

    config = resolve_sources({"listenTo": [shared, other], "shared": shared})

    assert config.stores == (shared, other)
    assert config.derive(object()) == {"shared": {"x": 1}}


def test_listen_to_rejects_non_stores() -> None:
    with pytest.raises(StateSourceError) as excinfo:
        resolve_sources({"listen_to": [FakeStore(), "not a store"]})

    assert excinfo.value.key == "listen_to[1]"
    assert excinfo.value.value == "not a store"


def test_missing_options_is_a_config_error() -> None:
    with pytest.raises(StateBindConfigError):
        resolve_sources(None)


def test_reserved_keys_are_never_field_sources() -> None:
    store = FakeStore(state={"x": 1})

    config = resolve_sources({"listen_to": store, "get_state": None})

    assert config.fields == {}


def test_non_store_values_in_mapping_are_ignored() -> None:
    store = FakeStore(state={"x": 1})

    config = resolve_sources({"todos": store, "name": "TodoList", "limit": 10})

    assert dict(config.fields) == {"todos": store}


def test_explicit_sources_must_be_stores() -> None:
    with pytest.raises(StateSourceError):
        resolve_sources(BindingOptions(sources={"todos": object()}))  # type: ignore[dict-item]


def test_custom_derivation_wins_on_key_collision() -> None:
    store = FakeStore(state={"x": 1})
    seen_views: list[object] = []

    def derive(view: object) -> dict[str, object]:
        seen_views.append(view)
        return {"todos": "custom", "extra": True}

    config = resolve_sources(BindingOptions(sources={"todos": store}, derive=derive))
    view = object()

    assert config.derive(view) == {"todos": "custom", "extra": True}
    assert seen_views == [view]


def test_custom_derivation_returning_none_keeps_field_state() -> None:
    store = FakeStore(state={"x": 1})

    config = resolve_sources(BindingOptions(sources={"a": store}, derive=lambda _view: None))  # type: ignore[arg-type,return-value]

    assert config.derive(object()) == {"a": {"x": 1}}


def test_listen_to_accepts_any_iterable_of_stores() -> None:
    first = FakeStore()
    second = FakeStore()
    registry = {"first": first, "second": second}

    from_values = resolve_sources({"listen_to": registry.values()})
    from_generator = resolve_sources({"listen_to": (store for store in (first, second))})

    assert from_values.stores == (first, second)
    assert from_generator.stores == (first, second)


def test_listen_to_string_is_not_treated_as_many_stores() -> None:
    with pytest.raises(StateSourceError) as excinfo:
        resolve_sources({"listen_to": "todos"})

    assert excinfo.value.value == "todos"
