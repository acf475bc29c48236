"""Diagnostics context correlating view recomputations with actions.

When enabled, every state derivation triggered by an in-flight action opens
a :class:`ViewHandler`. Disposing the handler records a :class:`ViewTrace`
holding the view's state before and after the action.

Diagnostics is disabled by default. A disabled context hands out
:class:`NullViewHandler` objects that honour the same contract.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, Field

from statebind._clone import clone_state
from statebind.config import DiagnosticsConfig
from statebind.state.policy import token_of

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class TraceStatus(StrEnum):
    DONE = "done"
    FAILED = "failed"


class ViewTrace(BaseModel):
    """One finished derivation attempt of one view for one action."""

    model_config = ConfigDict(frozen=True)

    name: str
    action_token: str | None = None
    action_type: str | None = None
    last_state: Any = None
    next_state: Any = None
    error: str | None = None
    status: TraceStatus = TraceStatus.DONE
    started_at: datetime
    finished_at: datetime = Field(default_factory=_utcnow)


class ViewHandler(Protocol):
    def failed(self, error: BaseException) -> None: ...

    def dispose(self) -> None: ...


class NullViewHandler:
    """Handler returned while diagnostics is disabled."""

    def failed(self, error: BaseException) -> None:
        return None

    def dispose(self) -> None:
        return None


class RecordingViewHandler:
    """Collects the outcome of one derivation attempt."""

    def __init__(
        self,
        diagnostics: Diagnostics,
        *,
        name: str,
        view: Any,
        last_state: Any,
        action: Any = None,
    ) -> None:
        self._diagnostics = diagnostics
        self._name = name
        self._view = view
        self._last_state = last_state
        self._action = action
        self._started_at = diagnostics.now()
        self._error: BaseException | None = None
        self._disposed = False

    def failed(self, error: BaseException) -> None:
        self._error = error

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True

        token = token_of(self._action)
        trace = ViewTrace(
            name=self._name,
            action_token=None if token is None else str(token),
            action_type=getattr(self._action, "type", None),
            last_state=self._last_state,
            next_state=clone_state(getattr(self._view, "state", None)),
            error=None if self._error is None else repr(self._error),
            status=TraceStatus.FAILED if self._error is not None else TraceStatus.DONE,
            started_at=self._started_at,
            finished_at=self._diagnostics.now(),
        )
        self._diagnostics.record(trace)


class Diagnostics:
    """Process-wide diagnostics context. Inject it into bindings explicitly
    or rely on :func:`default_diagnostics`."""

    def __init__(
        self,
        config: DiagnosticsConfig | None = None,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._config = config or DiagnosticsConfig()
        self._enabled = self._config.enabled
        self._clock = clock
        self._traces: deque[ViewTrace] = deque(maxlen=max(self._config.max_traces, 1))

    @property
    def enabled(self) -> bool:
        return self._enabled

    def enable(self) -> None:
        self._enabled = True

    def disable(self) -> None:
        self._enabled = False

    def now(self) -> datetime:
        return self._clock()

    def add_view_handler(
        self,
        name: str,
        view: Any,
        last_state: Any,
        *,
        action: Any = None,
    ) -> ViewHandler:
        if not self._enabled:
            return NullViewHandler()
        return RecordingViewHandler(self, name=name, view=view, last_state=last_state, action=action)

    def record(self, trace: ViewTrace) -> None:
        self._traces.append(trace)
        if trace.status == TraceStatus.FAILED:
            _logger.debug("View %s failed to derive state for action %s: %s", trace.name, trace.action_token, trace.error)
        else:
            _logger.debug("View %s handled action %s", trace.name, trace.action_token)

    @property
    def traces(self) -> list[ViewTrace]:
        return list(self._traces)

    def traces_for(self, token: str) -> list[ViewTrace]:
        return [trace for trace in self._traces if trace.action_token == token]

    def clear(self) -> None:
        self._traces.clear()


_default_diagnostics: Diagnostics | None = None


def default_diagnostics() -> Diagnostics:
    """Return the process-wide context, configured from the environment on first use."""
    global _default_diagnostics
    if _default_diagnostics is None:
        _default_diagnostics = Diagnostics(DiagnosticsConfig.from_env())
    return _default_diagnostics


def set_default_diagnostics(diagnostics: Diagnostics | None) -> Diagnostics | None:
    """Replace the process-wide context and return the previous one."""
    global _default_diagnostics
    previous = _default_diagnostics
    _default_diagnostics = diagnostics
    return previous
