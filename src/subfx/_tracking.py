"""Observer tracking: who is rendering, and who needs to hear about changes.

The render layer publishes the observer it is currently rendering through
a contextvar. Any subscribe() call made while it is set registers that
observer against the subscriber it read. subfx itself only reads it.

Batching: notifications raised inside a dispatch or a state update are
collected and delivered once per observer when the outermost scope exits,
so an observer never sees a half-applied update.
"""

from __future__ import annotations

import contextvars
import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager

logger = logging.getLogger("subfx._tracking")

Observer = Callable[[], object]

# The observer currently rendering, if any.
current_observer: contextvars.ContextVar[Observer | None] = contextvars.ContextVar(
    "current_observer", default=None
)

# Batch depth counter. When > 0, notifications are deferred.
_batch_depth: int = 0

# Observers notified during a batch, awaiting flush. A dict keeps them
# ordered by first notification and de-duplicated.
_pending: dict[Observer, None] = {}


@contextmanager
def rendering(observer: Observer) -> Iterator[Observer]:
    """Mark observer as the one currently rendering.

    Usage:
        with rendering(widget.refresh):
            label = subscribe(USERNAME).value
        # widget.refresh() is called whenever USERNAME changes
    """
    token = current_observer.set(observer)
    try:
        yield observer
    finally:
        current_observer.reset(token)


def begin_batch() -> None:
    """Enter a batching scope. Nested batches are supported."""
    global _batch_depth
    _batch_depth += 1


def end_batch() -> None:
    """Exit a batching scope. When the outermost scope exits, flush pending observers."""
    global _batch_depth
    _batch_depth -= 1
    if _batch_depth == 0:
        _flush_pending()


def schedule(observer: Observer) -> None:
    """Notify an observer.

    If inside a batch, defers. Otherwise, calls it immediately.
    """
    if _batch_depth > 0:
        _pending[observer] = None
    else:
        observer()


def _flush_pending() -> None:
    """Call all pending observers. Handles observers scheduled during flush.

    An observer that raises does not stop the others: every pending
    observer is called, then the first error is re-raised.
    """
    first_error: Exception | None = None
    while _pending:
        # Snapshot and clear, observers may dispatch and schedule new ones.
        batch = list(_pending)
        _pending.clear()
        for observer in batch:
            try:
                observer()
            except Exception as exc:
                if first_error is None:
                    first_error = exc
                else:
                    logger.exception("Observer %r failed during flush", observer)
    if first_error is not None:
        raise first_error


def get_pending_count() -> int:
    """Number of observers waiting to be notified. Useful for testing."""
    return len(_pending)
