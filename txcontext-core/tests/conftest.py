"""Shared fixtures for the txcontext core test suite."""

from __future__ import annotations

import itertools

import pytest
from twisted.internet import task
from txcontext import api
from txcontext._impl.patch.installer import PatchInstaller
from txcontext._impl.patch.targets import twisted_targets
from txcontext._internal.methods.classifier import MethodClassifier
from txcontext.core.binder import CallbackBinder
from txcontext.core.namespace import create_namespace, reset_namespaces
from txcontext.hooks import get_plugin_manager, reset_plugin_manager

_namespace_ids = itertools.count(1)


@pytest.fixture(autouse=True)
def _isolate_globals():
    """Every test gets fresh namespaces, hooks and installer state."""
    reset_namespaces()
    reset_plugin_manager()
    yield
    api.unpatch_twisted()
    reset_namespaces()
    reset_plugin_manager()


@pytest.fixture
def namespace():
    return create_namespace(f"test-{next(_namespace_ids)}")


@pytest.fixture
def binder(namespace):
    return CallbackBinder(namespace)


@pytest.fixture
def plugin_manager():
    return get_plugin_manager()


@pytest.fixture
def installer(binder, plugin_manager):
    return PatchInstaller(binder, MethodClassifier(plugin_manager=plugin_manager), plugin_manager)


@pytest.fixture
def patched(installer):
    """Twisted patched for the duration of one test."""
    targets = twisted_targets()
    for target in targets:
        installer.install(target)
    yield installer
    for target in reversed(targets):
        if installer.is_installed(target):
            installer.uninstall(target)


@pytest.fixture
def clock():
    return task.Clock()
