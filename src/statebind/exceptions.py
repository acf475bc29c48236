"""Custom exception hierarchy for statebind."""

from __future__ import annotations

from typing import Any


class StateBindError(Exception):
    """Base exception for all statebind errors."""


class StateBindConfigError(StateBindError):
    """Invalid or missing binding configuration."""


class StateSourceError(StateBindConfigError):
    """A value that was declared as a source does not satisfy the store capability.

    Raised when an entry of ``listen_to`` lacks ``get_state`` or
    ``add_change_listener``.
    """

    def __init__(
        self,
        message: str,
        *,
        key: str = "",
        value: Any = None,
    ) -> None:
        self.key = key
        self.value = value
        super().__init__(message)


class UnknownActionError(StateBindError):
    """The actions store has no record for the requested token."""

    def __init__(self, message: str, *, token: str = "") -> None:
        self.token = token
        super().__init__(message)
