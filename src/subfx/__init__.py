"""subfx: lazy derived state and declarative effects for Python."""

from importlib.metadata import version as _version

__version__ = _version("subfx")

from subfx._anchor import Identifier, LibraryState
from subfx._tracking import get_pending_count, rendering
from subfx.config import get_library_state, initialize
from subfx.equivalence import are_equivalent
from subfx.errors import (
    CircularValueError,
    DependencyError,
    NotInitializedError,
    SubfxError,
    UnknownIdentifierError,
)
from subfx.fx_handlers import dispatch, register_fx_handler, set_scheduler
from subfx.fxs import execute_fx, register_core_fx, register_fx
from subfx.subscribers import (
    Subscriber,
    SubscriptionValue,
    forget_observer,
    get_subscriber,
    is_subscription_value,
    register_subscriber,
    subscribe,
)
from subfx.update_app_state import UPDATE_APP_STATE
# textual NOT auto-imported, opt-in only

__all__ = [
    "Identifier",
    "LibraryState",
    "initialize",
    "get_library_state",
    "are_equivalent",
    "register_subscriber",
    "get_subscriber",
    "subscribe",
    "Subscriber",
    "SubscriptionValue",
    "is_subscription_value",
    "forget_observer",
    "rendering",
    "get_pending_count",
    "register_fx",
    "register_core_fx",
    "execute_fx",
    "register_fx_handler",
    "dispatch",
    "set_scheduler",
    "UPDATE_APP_STATE",
    "SubfxError",
    "UnknownIdentifierError",
    "DependencyError",
    "CircularValueError",
    "NotInitializedError",
]
