"""Host-agnostic view implementation.

UI frameworks own their component state; :class:`View` is the minimal
stand-in that satisfies :class:`statebind.protocols.ViewLike` and can be
subclassed or used directly in headless code and tests.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from statebind.binding import StateBinding
from statebind.exceptions import StateBindError
from statebind.sources import Options


class View:
    """A consumer with props, committed state and an optional binding."""

    def __init__(self, props: Mapping[str, Any] | None = None, *, state: Mapping[str, Any] | None = None) -> None:
        self.props: Mapping[str, Any] = dict(props or {})
        self.state: dict[str, Any] = dict(state or {})
        self.commit_count = 0
        self.binding: StateBinding | None = None

    def default_state(self) -> Mapping[str, Any]:
        """Defaults for the initial state; derived keys override them."""
        return {}

    def set_state(self, state: Mapping[str, Any]) -> None:
        # Shallow merge, like most component frameworks.
        self.state = {**self.state, **state}
        self.commit_count += 1

    def bind(self, options: Options, **kwargs: Any) -> StateBinding:
        """Attach a binding and seed ``state`` with its initial state."""
        binding = StateBinding(self, options, **kwargs)
        self.state = binding.get_initial_state()
        self.binding = binding
        return binding

    def mount(self) -> None:
        self._require_binding().mount()

    def unmount(self) -> None:
        self._require_binding().unmount()

    def receive_props(self, next_props: Mapping[str, Any]) -> None:
        self._require_binding().receive_props(next_props)
        self.props = dict(next_props)

    def _require_binding(self) -> StateBinding:
        if self.binding is None:
            raise StateBindError(f"{type(self).__name__} is not bound to any store")
        return self.binding

    def __repr__(self) -> str:
        return f"<{type(self).__name__} props={self.props!r} state={self.state!r}>"
