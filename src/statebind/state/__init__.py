"""Reference store layer.

Minimal observable stores implementing the store capability consumed by
:class:`statebind.binding.StateBinding`: a plain key/value ``Store`` and the
``ActionsStore`` that broadcasts action progress by token.
"""

from statebind.state.events import ActionRecord, ActionStatus
from statebind.state.policy import is_action_that_changed, is_relevant, token_of
from statebind.state.store import ActionsStore, ListenerSubscription, Store, default_actions_store

__all__ = [
    "ActionRecord",
    "ActionStatus",
    "ActionsStore",
    "ListenerSubscription",
    "Store",
    "default_actions_store",
    "is_action_that_changed",
    "is_relevant",
    "token_of",
]
