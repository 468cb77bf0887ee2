"""The state-update fx: the only way the app state changes.

Roots are recomputed eagerly against the new snapshot. When a root's value
is not equivalent to its previous one, its whole descendant closure is
marked outdated and every observer of the affected subscribers is notified.
Descendants recompute lazily, on their next subscribe().
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from subfx import _anchor
from subfx._anchor import UNSET, Identifier
from subfx._tracking import begin_batch, end_batch, schedule
from subfx.equivalence import are_equivalent
from subfx.fxs import register_core_fx
from subfx.subscribers import (
    Subscriber,
    get_all_subscribers_children,
    get_root_subscribers,
    get_subscriber_direct_children,
)

logger = logging.getLogger("subfx.update_app_state")

UPDATE_APP_STATE = Identifier("subfx/fx/update_app_state")


def _notify_observers(subscriber_id: Identifier) -> None:
    observers = _anchor.current().subscriber_observers.get(subscriber_id, ())
    for observer in list(observers):
        schedule(observer)


def update_app_state(new_state: Mapping) -> None:
    state = _anchor.current()

    if new_state is state.app_state:
        logger.warning(
            '"update_app_state" has been called without any modification. '
            "This is a bad smell and could lead to potential performance issues."
        )

    begin_batch()
    try:
        # Every root is recomputed, whether or not anyone reads it.
        root_values = [(root, root.fn(new_state)) for root in get_root_subscribers()]

        # A failed comparison must leave observers and caches untouched.
        changed_roots = [
            root for root, new_value in root_values
            if state.cached_values[root.id] is UNSET
            or not are_equivalent(state.cached_values[root.id], new_value)
        ]

        outdated: list[Subscriber] = []
        for root in changed_roots:
            outdated.extend(get_subscriber_direct_children(root))
            _notify_observers(root.id)

        for root, new_value in root_values:
            state.cached_values[root.id] = new_value
            state.outdated_flags[root.id] = False

        for subscriber in outdated + get_all_subscribers_children(outdated):
            _notify_observers(subscriber.id)
            state.cached_values[subscriber.id] = UNSET
            state.outdated_flags[subscriber.id] = True

        state.app_state = new_state
    finally:
        end_batch()


def register_update_app_state() -> None:
    register_core_fx(UPDATE_APP_STATE, update_app_state)
