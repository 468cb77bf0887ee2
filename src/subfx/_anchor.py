"""Data anchor: the library state every behavior module reads and writes.

One LibraryState object holds the current app state snapshot, the subscriber
arena, the fx and fx handler registries, and the subscriber -> observer
index. Behavior modules keep no state of their own: they go through the
LibraryState installed by subfx.initialize().

Subscribers are stored column-wise, keyed by their Identifier. The Subscriber
class in subfx.subscribers is a thin handle over these tables.
"""

from __future__ import annotations

import itertools
from collections.abc import Callable, Mapping

from subfx.errors import NotInitializedError

# ID generation: itertools.count is thread-safe (C-level GIL atomic)
_id_counter = itertools.count(1)

# Marker for "never computed" / "cleared" subscriber values.
UNSET = object()


class Identifier:
    """Opaque, process-unique handle for subscribers, fxs and fx handlers.

    Compared and hashed by identity, so it can never collide with a string
    key chosen by the application.
    """

    __slots__ = ("_serial", "description")

    def __init__(self, description: str = "") -> None:
        self._serial = next(_id_counter)
        self.description = description

    def __repr__(self) -> str:
        return f"Identifier({self.description or '?'}#{self._serial})"


class LibraryState:
    """The process-wide context: app state plus every registry."""

    __slots__ = (
        "app_state",
        "subscribers",
        "dependencies",
        "subscriber_fns",
        "cached_values",
        "outdated_flags",
        "fxs",
        "fx_handlers",
        "subscriber_observers",
    )

    def __init__(
        self,
        app_state: Mapping | None = None,
        fxs: Mapping[Identifier, Callable] | None = None,
        fx_handlers: Mapping[Identifier, Callable] | None = None,
    ) -> None:
        self.app_state: Mapping = {} if app_state is None else app_state

        # Subscriber arena
        self.subscribers: dict[Identifier, object] = {}  # id -> Subscriber handle
        self.dependencies: dict[Identifier, tuple[Identifier, ...]] = {}
        self.subscriber_fns: dict[Identifier, Callable] = {}
        self.cached_values: dict[Identifier, object] = {}
        self.outdated_flags: dict[Identifier, bool] = {}

        self.fxs: dict[Identifier, Callable] = dict(fxs or {})
        self.fx_handlers: dict[Identifier, Callable] = dict(fx_handlers or {})

        # subscriber id -> observers to notify when it changes
        self.subscriber_observers: dict[Identifier, set] = {}

    def __repr__(self) -> str:
        return (
            f"LibraryState({len(self.subscribers)} subscribers, "
            f"{len(self.fxs)} fxs, {len(self.fx_handlers)} fx handlers)"
        )


_current: LibraryState | None = None


def install(state: LibraryState) -> None:
    global _current
    _current = state


def current() -> LibraryState:
    """The installed LibraryState. Raises if initialize() was never called."""
    if _current is None:
        raise NotInitializedError(
            "subfx has not been initialized; call subfx.initialize() first"
        )
    return _current
