# tests/conftest.py
from __future__ import annotations

import os

import pytest

from digitizer.gateway.mock_gateway import MockInferenceGateway
from digitizer.store.memory import InMemoryEntityStore
from tests.utils import make_property_input, make_submissions


# -------- Global env hygiene --------
@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    for key in list(os.environ):
        if key.startswith("DIGITIZER_"):
            monkeypatch.delenv(key, raising=False)
    yield


# -------- Backends --------
@pytest.fixture
def gateway():
    return MockInferenceGateway()


@pytest.fixture
def store():
    return InMemoryEntityStore()


# -------- Domain fixtures --------
@pytest.fixture
def property_input():
    """Factory for canonical property input (overridable)."""

    def _factory(**overrides):
        return make_property_input(**overrides)

    return _factory


@pytest.fixture
def submissions():
    return make_submissions()


# -------- Pytest markers --------
def pytest_configure(config):
    config.addinivalue_line("markers", "integration: marks integration tests")
