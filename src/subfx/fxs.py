"""Fxs: named side effects, invoked by Identifier.

Fx handlers never run side effects themselves, they return a mapping of
fx Identifier -> payload and dispatch() executes the matching fxs.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from subfx import _anchor
from subfx._anchor import Identifier
from subfx.errors import UnknownIdentifierError

FxFn = Callable[..., None]


def register_core_fx(fx_id: Identifier, fn: FxFn) -> None:
    """Register fn under a well-known Identifier, replacing any previous fx."""
    _anchor.current().fxs[fx_id] = fn


def register_fx(fn: FxFn) -> Identifier:
    """Register fn under a fresh Identifier. Works as a decorator.

    Usage:
        @register_fx
        def LOG(message):
            print(message)

        execute_fx(LOG, "hello")
    """
    fx_id = Identifier("subfx-fx")
    register_core_fx(fx_id, fn)
    return fx_id


def execute_fx(fx_id: Identifier, *args: Any) -> None:
    fn = _anchor.current().fxs.get(fx_id)
    if fn is None:
        raise UnknownIdentifierError(f"Could not find the fx {fx_id!r}")
    fn(*args)
