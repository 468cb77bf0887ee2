"""Subscribers: memoized derived values arranged in a dependency graph.

A root subscriber (no dependencies) computes from the whole app state.
A dependent subscriber computes from the values of the subscribers it
depends on, passed as a list in declaration order.

Subscribers are lazy: they only compute when read through subscribe().
Root subscribers are the exception: the state-update effect recomputes
them eagerly (see subfx.update_app_state) and marks the descendants of
any root whose value changed as outdated.

All state lives in the library state arena. Subscriber instances are thin
handles holding an Identifier.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from typing import Any, Generic, TypeVar, overload

from subfx import _anchor
from subfx._anchor import UNSET, Identifier
from subfx._tracking import current_observer
from subfx.errors import DependencyError, UnknownIdentifierError

logger = logging.getLogger("subfx.subscribers")

T = TypeVar("T")

SubscriberFn = Callable[..., Any]

SUBSCRIPTION_TYPE = "subfx_subscription"


class Subscriber:
    """A node of the subscriber graph."""

    __slots__ = ("_id",)

    def __init__(self, subscriber_id: Identifier) -> None:
        self._id = subscriber_id

    @property
    def id(self) -> Identifier:
        return self._id

    @property
    def depends_on(self) -> tuple[Identifier, ...]:
        return _anchor.current().dependencies[self._id]

    @property
    def fn(self) -> SubscriberFn:
        return _anchor.current().subscriber_fns[self._id]

    @property
    def is_root(self) -> bool:
        return not self.depends_on

    @property
    def is_outdated(self) -> bool:
        return _anchor.current().outdated_flags[self._id]

    @property
    def has_value(self) -> bool:
        return _anchor.current().cached_values[self._id] is not UNSET

    @property
    def value(self) -> Any:
        """Last computed value, or None if it was never computed or was cleared."""
        value = _anchor.current().cached_values[self._id]
        return None if value is UNSET else value

    def __repr__(self) -> str:
        state = "outdated" if self.is_outdated else f"cached={self.value!r}"
        return f"Subscriber({self._id!r}, {len(self.depends_on)} deps, {state})"


class SubscriptionValue(Generic[T]):
    """A computed value tagged so the render layer can recognize and unwrap it."""

    __slots__ = ("value",)

    __subfx_type__ = SUBSCRIPTION_TYPE

    def __init__(self, value: T) -> None:
        self.value = value

    def __repr__(self) -> str:
        return f"SubscriptionValue({self.value!r})"


def is_subscription_value(obj: object) -> bool:
    return getattr(type(obj), "__subfx_type__", None) == SUBSCRIPTION_TYPE


@overload
def register_subscriber(fn: SubscriberFn, /) -> Identifier: ...


@overload
def register_subscriber(
    deps: Sequence[Identifier], fn: SubscriberFn, /
) -> Identifier: ...


@overload
def register_subscriber(
    deps: Sequence[Identifier], /
) -> Callable[[SubscriberFn], Identifier]: ...


def register_subscriber(deps_or_fn, fn=None, /):
    """Register a subscriber and return its Identifier.

    Root form takes the app state; dependent form takes the list of its
    dependencies' values. Passing only a dependency list returns a decorator.

    Usage:
        AGE = register_subscriber(lambda state: state.get("age"))

        @register_subscriber([AGE])
        def AGE_SQUARED(values):
            (age,) = values
            return age * age
    """
    if fn is None and callable(deps_or_fn):
        return _register((), deps_or_fn)
    if fn is None:
        deps = tuple(deps_or_fn)
        return lambda decorated: _register(deps, decorated)
    return _register(tuple(deps_or_fn), fn)


def _register(
    deps: tuple[Identifier, ...],
    fn: SubscriberFn,
    subscriber_id: Identifier | None = None,
) -> Identifier:
    state = _anchor.current()

    if len(set(deps)) != len(deps):
        raise DependencyError(
            "A subscriber can not depend multiple times on the same subscriber"
        )
    for dep_id in deps:
        # Dependencies must already exist, so the graph can never hold a cycle.
        if dep_id not in state.subscribers:
            raise DependencyError(f"Unknown dependency {dep_id!r}")

    if subscriber_id is None:
        subscriber_id = Identifier("subfx-subscriber")
    elif subscriber_id in state.subscribers:
        raise DependencyError(f"Subscriber {subscriber_id!r} is already registered")
    state.subscribers[subscriber_id] = Subscriber(subscriber_id)
    state.dependencies[subscriber_id] = deps
    state.subscriber_fns[subscriber_id] = fn
    state.cached_values[subscriber_id] = UNSET
    state.outdated_flags[subscriber_id] = True
    return subscriber_id


def get_subscriber(subscriber_id: Identifier) -> Subscriber | None:
    return _anchor.current().subscribers.get(subscriber_id)


def get_root_subscribers() -> list[Subscriber]:
    state = _anchor.current()
    return [s for s in state.subscribers.values() if not state.dependencies[s.id]]


def get_subscriber_direct_children(subscriber: Subscriber) -> list[Subscriber]:
    """Every subscriber that directly depends on this one, in registration order."""
    state = _anchor.current()
    return [
        s for s in state.subscribers.values()
        if subscriber.id in state.dependencies[s.id]
    ]


def get_all_subscribers_children(subscribers: Iterable[Subscriber]) -> list[Subscriber]:
    """Every descendant of the given subscribers, each listed once."""
    children: list[Subscriber] = []
    seen: set[Identifier] = set()
    frontier = list(subscribers)
    while frontier:
        next_frontier = []
        for subscriber in frontier:
            for child in get_subscriber_direct_children(subscriber):
                if child.id not in seen:
                    seen.add(child.id)
                    children.append(child)
                    next_frontier.append(child)
        frontier = next_frontier
    return children


def get_all_dependencies(subscribers: Iterable[Subscriber]) -> list[Subscriber]:
    """Every ancestor of the given subscribers, each listed once.

    The order matters: a subscriber always comes before its own
    dependencies, so the reversed list runs from the roots to the leaves
    and is a valid computation order.
    """
    state = _anchor.current()
    ordered: list[Subscriber] = []  # roots first while collecting
    seen: set[Identifier] = set()

    def visit(subscriber: Subscriber) -> None:
        for dep_id in state.dependencies[subscriber.id]:
            if dep_id in seen:
                continue
            parent = state.subscribers.get(dep_id)
            if parent is None:
                raise DependencyError(
                    f"{subscriber!r} depends on unregistered subscriber {dep_id!r}"
                )
            seen.add(dep_id)
            visit(parent)
            ordered.append(parent)

    for subscriber in subscribers:
        visit(subscriber)

    ordered.reverse()
    return ordered


def _inputs(subscriber_id: Identifier) -> Any:
    state = _anchor.current()
    deps = state.dependencies[subscriber_id]
    if not deps:
        return state.app_state
    return [state.cached_values[dep_id] for dep_id in deps]


def compute_subscriber_value(subscriber: Subscriber, *args: Any) -> Any:
    """Bring every outdated ancestor up to date, then compute the subscriber.

    Extra args are passed to the subscriber's own fn only.
    """
    state = _anchor.current()

    for parent in reversed(get_all_dependencies([subscriber])):
        if not state.outdated_flags[parent.id]:
            continue
        state.cached_values[parent.id] = state.subscriber_fns[parent.id](_inputs(parent.id))
        state.outdated_flags[parent.id] = False

    value = state.subscriber_fns[subscriber.id](_inputs(subscriber.id), *args)
    state.cached_values[subscriber.id] = value
    state.outdated_flags[subscriber.id] = False
    return value


def subscribe(subscriber_id: Identifier, *args: Any) -> SubscriptionValue:
    """Read a subscriber's value, computing it only if outdated.

    If an observer is rendering, it is registered to be notified when
    this subscriber changes.

    Usage:
        with rendering(widget.refresh):
            subscribe(AGE_SQUARED).value  # 25
    """
    state = _anchor.current()
    subscriber = state.subscribers.get(subscriber_id)
    if subscriber is None:
        raise UnknownIdentifierError(f"Could not find the subscriber {subscriber_id!r}")

    observer = current_observer.get()
    if observer is not None:
        state.subscriber_observers.setdefault(subscriber_id, set()).add(observer)
    else:
        logger.debug("subscribe(%r) called outside a reactive context", subscriber_id)

    if state.outdated_flags[subscriber_id]:
        return SubscriptionValue(compute_subscriber_value(subscriber, *args))
    return SubscriptionValue(state.cached_values[subscriber_id])


def forget_observer(observer) -> None:
    """Stop notifying observer about every subscriber it read."""
    state = _anchor.current()
    for observers in state.subscriber_observers.values():
        observers.discard(observer)
