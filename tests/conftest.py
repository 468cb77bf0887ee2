"""Shared pytest fixtures for subfx tests."""

import pytest

import subfx


@pytest.fixture(autouse=True)
def library_state():
    """Install a fresh library state before each test to prevent leakage."""
    state = subfx.initialize()
    yield state
    subfx.set_scheduler(None)
