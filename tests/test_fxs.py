"""Tests for fx registration and execution."""

import pytest

from subfx import (
    Identifier,
    UnknownIdentifierError,
    execute_fx,
    get_library_state,
    register_core_fx,
    register_fx,
)


class TestRegister:
    def test_register_core_fx(self):
        fxs = get_library_state().fxs
        initial_size = len(fxs)
        fx_id = Identifier("custom")

        def fx_fn():
            pass

        register_core_fx(fx_id, fx_fn)

        assert len(fxs) == initial_size + 1
        assert fxs[fx_id] is fx_fn

    def test_register_fx(self):
        fxs = get_library_state().fxs
        initial_size = len(fxs)

        def fx_fn():
            pass

        fx_id = register_fx(fx_fn)

        assert isinstance(fx_id, Identifier)
        assert len(fxs) == initial_size + 1
        assert fxs[fx_id] is fx_fn

    def test_register_fx_as_decorator(self):
        log = []

        @register_fx
        def LOG(message):
            log.append(message)

        execute_fx(LOG, "hello")
        assert log == ["hello"]

    def test_update_app_state_is_preregistered(self):
        from subfx import UPDATE_APP_STATE

        assert UPDATE_APP_STATE in get_library_state().fxs


class TestExecute:
    def test_unknown_fx(self):
        fxs_before = dict(get_library_state().fxs)
        with pytest.raises(UnknownIdentifierError):
            execute_fx(Identifier("nope"))
        assert get_library_state().fxs == fxs_before

    def test_without_params(self):
        calls = []
        fx_id = register_fx(lambda *args: calls.append(args))
        assert calls == []

        execute_fx(fx_id)
        assert calls == [()]

    def test_with_params(self):
        calls = []
        fx_id = register_fx(lambda *args: calls.append(args))

        execute_fx(fx_id, 1, 2)
        assert calls == [(1, 2)]
