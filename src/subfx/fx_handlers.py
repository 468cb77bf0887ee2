"""Fx handlers and dispatch: commands that describe their effects.

A handler receives the current app state plus the dispatch arguments and
returns a mapping of fx Identifier -> payload. dispatch() runs the
state-update fx first, so every other fx observes the new snapshot, then
the remaining fxs in mapping order. Observer notifications are batched
until the whole dispatch is done.

Thread safety: call set_scheduler() once from the owning thread. After
that, any dispatch() from another thread is auto-marshaled. Same-thread
dispatch remains synchronous.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Mapping
from typing import Any

from subfx import _anchor
from subfx._anchor import Identifier
from subfx.errors import UnknownIdentifierError
from subfx._tracking import begin_batch, end_batch
from subfx.fxs import execute_fx
from subfx.update_app_state import UPDATE_APP_STATE

logger = logging.getLogger("subfx.fx_handlers")

FxHandlerFn = Callable[..., Mapping[Identifier, Any] | None]

# ─── Auto-marshal ────────────────────────────────────────────────────────────
_scheduler = None
_scheduler_thread = None


def set_scheduler(scheduler) -> None:
    """Set the global thread scheduler for cross-thread dispatches.

    Call once from the main/UI thread:
        subfx.set_scheduler(app.call_from_thread)

    After this, any dispatch() from a background thread is handed to the
    scheduler. Pass None to go back to running every dispatch in place.
    """
    global _scheduler, _scheduler_thread
    _scheduler = scheduler
    _scheduler_thread = threading.current_thread() if scheduler is not None else None


def register_fx_handler(fn: FxHandlerFn) -> Identifier:
    """Register a command handler. Works as a decorator.

    Usage:
        @register_fx_handler
        def BIRTHDAY(state):
            return {UPDATE_APP_STATE: {**state, "age": state["age"] + 1}}

        dispatch(BIRTHDAY)
    """
    handler_id = Identifier("subfx-fx-handler")
    _anchor.current().fx_handlers[handler_id] = fn
    return handler_id


def dispatch(handler_id: Identifier, *args: Any) -> None:
    """Run the handler and execute every fx it asks for."""
    if _scheduler is not None and threading.current_thread() != _scheduler_thread:
        _scheduler(lambda: _dispatch_direct(handler_id, *args))
    else:
        _dispatch_direct(handler_id, *args)


def _dispatch_direct(handler_id: Identifier, *args: Any) -> None:
    state = _anchor.current()
    handler = state.fx_handlers.get(handler_id)
    if handler is None:
        raise UnknownIdentifierError(f"Could not find the fx handler {handler_id!r}")

    response = handler(state.app_state, *args) or {}
    logger.debug("dispatch(%r) -> %d fxs", handler_id, len(response))

    begin_batch()
    try:
        if UPDATE_APP_STATE in response:
            execute_fx(UPDATE_APP_STATE, response[UPDATE_APP_STATE])
        for fx_id, payload in response.items():
            if fx_id is UPDATE_APP_STATE:
                continue
            execute_fx(fx_id, payload)
    finally:
        end_batch()
