"""Textual integration for subfx. Opt-in, requires textual.

Widgets become observers: render under observing(app, fn) and every
subscriber read inside it calls fn again when its value changes.

    class AgeLabel(Static):
        def on_mount(self) -> None:
            self.show_age()

        def show_age(self) -> None:
            with stx.observing(self.app, self.show_age):
                self.update(str(subfx.subscribe(AGE).value))

The guard, NoMatches handling and thread marshaling live here, not at
call sites. Core subfx stays framework-agnostic.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from textual.css.query import NoMatches

from subfx._tracking import rendering
from subfx.subscribers import forget_observer

# Module-owned pause state, keyed by id(app) so multiple apps work in tests.
_paused_apps: set[int] = set()

# (id(app), fn) -> observer, so repeated renders register one observer.
_observers: dict[tuple[int, Callable], Callable[[], None]] = {}


@contextmanager
def pause(app):
    """Suspend observer delivery during widget replacement."""
    key = id(app)
    _paused_apps.add(key)
    try:
        yield
    finally:
        _paused_apps.discard(key)


def is_safe(app) -> bool:
    """Is the widget tree in a queryable state?"""
    return app.is_running and id(app) not in _paused_apps


def observer(app, fn: Callable[[], object]) -> Callable[[], None]:
    """The observer that safely bridges subscriber changes to fn.

    Skips delivery during pause/not-running, catches NoMatches from widget
    queries, and marshals cross-thread calls via call_from_thread.
    """
    key = (id(app), fn)
    existing = _observers.get(key)
    if existing is not None:
        return existing

    _main = threading.get_ident()

    def _guarded():
        if not is_safe(app):
            return
        if threading.get_ident() != _main:
            app.call_from_thread(_safe)
        else:
            _safe()

    def _safe():
        try:
            fn()
        except NoMatches:
            pass

    _observers[key] = _guarded
    return _guarded


@contextmanager
def observing(app, fn: Callable[[], object]) -> Iterator[Callable[[], None]]:
    """Render with fn as the current observer."""
    with rendering(observer(app, fn)) as current:
        yield current


def forget(app, fn: Callable[[], object]) -> None:
    """Stop notifying fn, typically when its widget is unmounted."""
    existing = _observers.pop((id(app), fn), None)
    if existing is not None:
        forget_observer(existing)
