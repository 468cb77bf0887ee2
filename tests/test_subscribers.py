"""Tests for subscriber registration, traversal and lazy computation."""

import logging

import pytest

import subfx
from subfx import (
    DependencyError,
    Identifier,
    UnknownIdentifierError,
    get_library_state,
    get_subscriber,
    is_subscription_value,
    register_subscriber,
    rendering,
    subscribe,
)
from subfx.subscribers import (
    compute_subscriber_value,
    get_all_dependencies,
    get_all_subscribers_children,
    get_root_subscribers,
    get_subscriber_direct_children,
)


def _tree():
    """root1, root2 -> child1(root1, root2) -> child2(child1, root2) -> child3(child1, child2)"""
    root1 = register_subscriber(lambda state: 42)
    root2 = register_subscriber(lambda state: "test")
    child1 = register_subscriber([root1, root2], lambda values: f"{values[0]}{values[1]}")
    child2 = register_subscriber([child1, root2], lambda values: values[0] + values[1])
    child3 = register_subscriber([child1, child2], lambda values: len(values[1]))
    return root1, root2, child1, child2, child3


class TestRegisterSubscriber:
    def test_root(self):
        def fn(state):
            return 42

        sub_id = register_subscriber(fn)
        sub = get_subscriber(sub_id)

        assert len(get_library_state().subscribers) == 1
        assert sub.fn is fn
        assert sub.is_outdated
        assert sub.value is None
        assert not sub.has_value
        assert sub.depends_on == ()
        assert sub.is_root

    def test_dependent(self):
        root_id = register_subscriber(lambda state: 42)
        child_id = register_subscriber([root_id], lambda values: values[0] * values[0])

        child = get_subscriber(child_id)
        assert child.depends_on == (root_id,)
        assert child.is_outdated
        assert not child.is_root

    def test_multiple_dependencies_keep_order(self):
        root1, root2, child1, child2, _ = _tree()
        assert get_subscriber(child1).depends_on == (root1, root2)
        assert get_subscriber(child2).depends_on == (child1, root2)

    def test_identifiers_are_unique_tokens(self):
        a = register_subscriber(lambda state: 1)
        b = register_subscriber(lambda state: 1)
        assert isinstance(a, Identifier)
        assert a is not b
        assert a != b

    def test_duplicate_dependency_rejected(self):
        root_id = register_subscriber(lambda state: 1)
        with pytest.raises(DependencyError):
            register_subscriber([root_id, root_id], lambda values: 2)
        assert len(get_library_state().subscribers) == 1

    def test_unknown_dependency_rejected(self):
        with pytest.raises(DependencyError):
            register_subscriber([Identifier("ghost")], lambda values: 2)
        assert len(get_library_state().subscribers) == 0

    def test_decorator_forms(self):
        @register_subscriber
        def AGE(state):
            return 5

        @register_subscriber([AGE])
        def AGE_SQUARED(values):
            return values[0] ** 2

        assert isinstance(AGE, Identifier)
        assert get_subscriber(AGE_SQUARED).depends_on == (AGE,)
        assert subscribe(AGE_SQUARED).value == 25


class TestTraversal:
    def test_direct_children_of_leafless_root(self):
        for _ in range(3):
            register_subscriber(lambda state: None)
        sub_id = register_subscriber(lambda state: 42)
        assert get_subscriber_direct_children(get_subscriber(sub_id)) == []

    def test_direct_children_in_registration_order(self):
        _, root2, child1, child2, _ = _tree()
        children = get_subscriber_direct_children(get_subscriber(root2))
        assert [c.id for c in children] == [child1, child2]

    def test_all_children(self):
        root1, root2, child1, child2, child3 = _tree()
        children = get_all_subscribers_children([get_subscriber(root1)])
        assert {c.id for c in children} == {child1, child2, child3}
        assert len(children) == 3

    def test_root_subscribers(self):
        root1, root2, *_ = _tree()
        assert [s.id for s in get_root_subscribers()] == [root1, root2]

    def test_all_dependencies_order(self):
        root1, root2, child1, child2, child3 = _tree()
        deps = get_all_dependencies([get_subscriber(child3)])
        ids = [d.id for d in deps]

        assert set(ids) == {root1, root2, child1, child2}
        assert len(ids) == 4
        # every subscriber comes before its own dependencies
        for position, sub in enumerate(deps):
            for dep_id in sub.depends_on:
                assert ids.index(dep_id) > position

    def test_all_dependencies_of_root(self):
        root_id = register_subscriber(lambda state: 1)
        assert get_all_dependencies([get_subscriber(root_id)]) == []

    def test_unresolved_dependency(self):
        root_id = register_subscriber(lambda state: 1)
        child_id = register_subscriber([root_id], lambda values: 2)
        get_library_state().dependencies[child_id] = (Identifier("ghost"),)
        with pytest.raises(DependencyError):
            get_all_dependencies([get_subscriber(child_id)])


class TestSubscribe:
    def test_unknown_subscriber(self):
        state = get_library_state()
        with rendering(lambda: None):
            with pytest.raises(UnknownIdentifierError):
                subscribe(Identifier("nope"))
        assert state.subscriber_observers == {}

    def test_returns_subscription_value(self):
        sub_id = register_subscriber(lambda state: 42)
        result = subscribe(sub_id)
        assert is_subscription_value(result)
        assert result.value == 42
        assert not is_subscription_value(42)

    def test_computes_only_if_outdated(self):
        root_calls = []
        child1_calls = []
        child2_calls = []

        root_id = register_subscriber(lambda state: root_calls.append(state))
        assert get_subscriber(root_id).is_outdated

        subscribe(root_id)
        assert root_calls == [get_library_state().app_state]
        assert not get_subscriber(root_id).is_outdated

        child1_id = register_subscriber([root_id], lambda values: child1_calls.append(values))
        assert not get_subscriber(root_id).is_outdated
        assert get_subscriber(child1_id).is_outdated

        subscribe(child1_id)
        assert len(root_calls) == 1
        assert child1_calls == [[None]]
        assert not get_subscriber(child1_id).is_outdated

        register_subscriber([child1_id], lambda values: child2_calls.append(values))
        subscribe(child1_id)
        assert len(root_calls) == 1
        assert len(child1_calls) == 1
        assert child2_calls == []

    def test_repeated_reads_do_not_recompute(self):
        calls = []

        def fn(state):
            calls.append(1)
            return 7

        sub_id = register_subscriber(fn)
        for _ in range(5):
            assert subscribe(sub_id).value == 7
        assert len(calls) == 1

    def test_computes_ancestors_first(self):
        root1, root2, child1, child2, child3 = _tree()
        assert subscribe(child3).value == len("42testtest")
        for sub_id in (root1, root2, child1, child2, child3):
            assert not get_subscriber(sub_id).is_outdated
        assert get_subscriber(child2).value == "42testtest"

    def test_extra_args_go_to_the_subscriber(self):
        root_args = []
        root_id = register_subscriber(lambda state, *args: root_args.append(args) or 3)
        child_id = register_subscriber([root_id], lambda values, factor: values[0] * factor)

        assert subscribe(child_id, 10).value == 30
        assert root_args == [()]

    def test_root_reads_app_state(self):
        subfx.initialize({"age": 5})
        age = register_subscriber(lambda state: state["age"])
        assert subscribe(age).value == 5

    def test_registers_current_observer(self):
        sub_id = register_subscriber(lambda state: 1)

        def observer():
            pass

        with rendering(observer):
            subscribe(sub_id)
            subscribe(sub_id)

        assert get_library_state().subscriber_observers[sub_id] == {observer}

    def test_outside_reactive_context_logs(self, caplog):
        sub_id = register_subscriber(lambda state: 1)
        with caplog.at_level(logging.DEBUG, logger="subfx.subscribers"):
            subscribe(sub_id)
        assert "outside a reactive context" in caplog.text
        assert get_library_state().subscriber_observers == {}

    def test_forget_observer(self):
        sub_id = register_subscriber(lambda state: 1)

        def observer():
            pass

        with rendering(observer):
            subscribe(sub_id)
        subfx.forget_observer(observer)
        assert get_library_state().subscriber_observers[sub_id] == set()


class TestComputeSubscriberValue:
    def test_stores_value(self):
        sub_id = register_subscriber(lambda state: "value")
        sub = get_subscriber(sub_id)
        assert compute_subscriber_value(sub) == "value"
        assert sub.value == "value"
        assert sub.has_value
        assert not sub.is_outdated

    def test_always_recomputes_target(self):
        calls = []
        sub_id = register_subscriber(lambda state: calls.append(1))
        sub = get_subscriber(sub_id)
        compute_subscriber_value(sub)
        compute_subscriber_value(sub)
        assert len(calls) == 2
