"""Library setup: install the process-wide state before anything else.

initialize() must be called once before any other subfx operation. Calling
it again discards every registered subscriber, fx and fx handler, which is
mostly useful in tests.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence

from subfx import _anchor
from subfx._anchor import Identifier, LibraryState
from subfx.subscribers import SubscriberFn, _register
from subfx.update_app_state import register_update_app_state


def initialize(
    app_state: Mapping | None = None,
    *,
    fxs: Mapping[Identifier, Callable] | None = None,
    fx_handlers: Mapping[Identifier, Callable] | None = None,
    subscribers: Mapping[Identifier, tuple[Sequence[Identifier], SubscriberFn]] | None = None,
) -> LibraryState:
    """Install a fresh library state and the core state-update fx.

    subscribers maps pre-made Identifiers to (dependencies, fn) pairs. They
    are registered in mapping order, so a subscriber may only depend on
    entries listed before it.

    Usage:
        subfx.initialize({"age": 5})
    """
    state = LibraryState(app_state, fxs=fxs, fx_handlers=fx_handlers)
    _anchor.install(state)
    register_update_app_state()
    for subscriber_id, (deps, fn) in (subscribers or {}).items():
        _register(tuple(deps), fn, subscriber_id)
    return state


def get_library_state() -> LibraryState:
    return _anchor.current()
