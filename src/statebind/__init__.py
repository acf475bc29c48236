"""statebind - keep views in sync with observable stores and action broadcasts."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("statebind")
except PackageNotFoundError:
    __version__ = "0+local"
from statebind._clone import clone_state
from statebind.binding import DerivationResult, Failed, Ok, StateBinding
from statebind.config import RESERVED_KEYS, BindingOptions, DiagnosticsConfig
from statebind.diagnostics import (
    Diagnostics,
    NullViewHandler,
    ViewHandler,
    ViewTrace,
    default_diagnostics,
    set_default_diagnostics,
)
from statebind.exceptions import (
    StateBindConfigError,
    StateBindError,
    StateSourceError,
    UnknownActionError,
)
from statebind.protocols import StateSource, Subscription, ViewLike, is_state_source
from statebind.sources import SourceConfig, SourceMode, resolve_sources
from statebind.state import ActionRecord, ActionStatus, ActionsStore, Store, default_actions_store
from statebind.view import View

__all__ = [
    "__version__",
    "RESERVED_KEYS",
    "ActionRecord",
    "ActionStatus",
    "ActionsStore",
    "BindingOptions",
    "DerivationResult",
    "Diagnostics",
    "DiagnosticsConfig",
    "Failed",
    "NullViewHandler",
    "Ok",
    "SourceConfig",
    "SourceMode",
    "StateBindConfigError",
    "StateBindError",
    "StateBinding",
    "StateSource",
    "StateSourceError",
    "Store",
    "Subscription",
    "UnknownActionError",
    "View",
    "ViewHandler",
    "ViewLike",
    "ViewTrace",
    "clone_state",
    "default_actions_store",
    "default_diagnostics",
    "is_state_source",
    "resolve_sources",
    "set_default_diagnostics",
]
