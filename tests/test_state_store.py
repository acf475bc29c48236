from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

import pytest
from pydantic import ValidationError

from statebind.exceptions import UnknownActionError
from statebind.state.events import ActionRecord, ActionStatus
from statebind.state.policy import is_action_that_changed, is_relevant, token_of
from statebind.state.store import ActionsStore, Store


def _dt() -> datetime:
    return datetime(2026, 1, 1, tzinfo=UTC)


def test_get_state_returns_a_copy() -> None:
    store = Store({"todos": [1]})

    state = store.get_state()
    state["todos"].append(2)

    assert store.get_state() == {"todos": [1]}


def test_set_state_merges_and_notifies() -> None:
    store = Store({"a": 1, "b": 2}, name="todos")
    calls: list[tuple[Any, Any]] = []
    store.add_change_listener(lambda state, source: calls.append((state, source)))

    store.set_state({"b": 3})

    assert calls == [({"a": 1, "b": 3}, store)]


def test_replace_state_drops_old_keys() -> None:
    store = Store({"a": 1})

    store.replace_state({"b": 2})

    assert store.get_state() == {"b": 2}


def test_action_is_exposed_only_while_notifying() -> None:
    store = Store()
    action = ActionRecord(token="T1", type="ADD_TODO")
    seen: list[Any] = []
    store.add_change_listener(lambda _state, source: seen.append(source.action))

    store.set_state({"x": 1}, action=action)

    assert seen == [action]
    assert store.action is None


def test_disposed_listener_is_not_called() -> None:
    store = Store()
    calls: list[int] = []
    subscription = store.add_change_listener(lambda *_: calls.append(1))

    subscription.dispose()
    subscription.dispose()
    store.set_state({"x": 1})

    assert calls == []
    assert store.listener_count == 0
    assert subscription.disposed


def test_listener_disposed_during_notification_is_skipped() -> None:
    store = Store()
    calls: list[str] = []
    second = None

    def first(*_: Any) -> None:
        calls.append("first")
        assert second is not None
        second.dispose()

    store.add_change_listener(first)
    second = store.add_change_listener(lambda *_: calls.append("second"))

    store.set_state({"x": 1})

    assert calls == ["first"]


def test_listener_errors_propagate() -> None:
    store = Store()

    def broken(*_: Any) -> None:
        raise RuntimeError("listener failed")

    store.add_change_listener(broken)

    with pytest.raises(RuntimeError):
        store.set_state({"x": 1}, action=ActionRecord(token="T1"))
    assert store.action is None


def test_actions_store_broadcasts_token() -> None:
    tokens = iter(["T1", "T2"])
    store = ActionsStore(clock=_dt, token_factory=lambda: next(tokens))
    calls: list[tuple[Any, Any, Any]] = []
    store.add_change_listener(lambda state, source, token: calls.append((state, source, token)))

    record = store.start("ADD_TODO", text="milk")

    assert record.token == "T1"
    assert record.created_at == _dt()
    assert record.status == ActionStatus.PENDING
    assert calls == [({"T1": record}, store, "T1")]
    assert record.text == "milk"  # type: ignore[attr-defined]


def test_actions_store_update_and_finish() -> None:
    store = ActionsStore(token_factory=lambda: "T1")
    seen_actions: list[Any] = []
    store.add_change_listener(lambda _state, source, _token: seen_actions.append(source.action))
    store.start("SAVE")

    store.update("T1", progress=50)
    done = store.done("T1")

    assert done.status == ActionStatus.DONE
    assert done.progress == 50  # type: ignore[attr-defined]
    assert not done.is_pending
    assert [a.status for a in seen_actions] == [ActionStatus.PENDING, ActionStatus.PENDING, ActionStatus.DONE]


def test_actions_store_fail_records_error() -> None:
    store = ActionsStore()
    record = store.start("SAVE", token="T9")

    failed = store.fail(record.token, ValueError("nope"))

    assert failed.status == ActionStatus.FAILED
    assert failed.error == "nope"
    assert store.get("T9") == failed


def test_unknown_token_raises() -> None:
    store = ActionsStore()

    with pytest.raises(UnknownActionError) as excinfo:
        store.update("missing", x=1)
    assert excinfo.value.token == "missing"


def test_action_token_must_be_non_empty() -> None:
    with pytest.raises(ValidationError):
        ActionRecord(token="   ")


def test_token_of_mapping_and_record() -> None:
    assert token_of({"token": "T1"}) == "T1"
    assert token_of(ActionRecord(token="T2")) == "T2"
    assert token_of(None) is None
    assert token_of(3) is None


def test_is_action_that_changed_needs_a_token() -> None:
    assert not is_action_that_changed({}, None)
    assert is_action_that_changed({"token": "T1"}, "T1")


def test_relevance_matches_candidate_or_fragment() -> None:
    assert is_relevant({"token": "T1"}, "T1")
    assert is_relevant({"save": ActionRecord(token="T1"), "count": 1}, "T1")
    assert not is_relevant({"token": "T2"}, "T1")
    assert not is_relevant({"save": {"token": "T2"}, "count": 1}, "T1")
    assert not is_relevant({}, "T1")
