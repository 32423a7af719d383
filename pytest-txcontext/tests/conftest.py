"""Test fixtures for pytest-txcontext test suite."""

from __future__ import annotations

import pytest
from txcontext import api
from txcontext.core.namespace import reset_namespaces

pytest_plugins = ["pytester"]


@pytest.fixture(autouse=True)
def _unpatch_after_test():
    yield
    api.unpatch_twisted()
    reset_namespaces()
