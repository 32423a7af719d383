"""Main pytest plugin for txcontext context propagation."""

from __future__ import annotations

import logging
from collections.abc import Generator
from typing import Any

import pytest
from twisted.internet import task
from txcontext import api as txcontext_api
from txcontext._internal.config import TxContextConfig
from txcontext._internal.constants import DEFAULT_NAMESPACE, LOGGER_NAME, PYTEST_LOGGER_NAME
from txcontext.core.models import PatchRecord
from txcontext.core.namespace import Namespace, get_namespace
from txcontext.hooks import get_plugin_manager, hookimpl, reset_plugin_manager

from .config import (
    register_options,
    resolve_options,
    setup_pytest_ini_options,
)

logger = logging.getLogger(PYTEST_LOGGER_NAME)

MARKER = "txcontext"


class TxContextPytestPlugin:
    """Main txcontext pytest plugin class."""

    def __init__(self, config: TxContextConfig):
        self.config = config
        self.patched_by_session = False
        self.records: list[PatchRecord] = []

    def get_namespace(self) -> Namespace:
        return get_namespace(self.config.namespace, create=True)

    def _get_context_values(self, item: pytest.Item) -> dict[str, Any] | None:
        """Merge kwargs of every ``txcontext`` marker, closest marker winning."""
        markers = list(item.iter_markers(name=MARKER))
        if not markers:
            return None
        values: dict[str, Any] = {}
        for mark in markers:
            values.update({key: value for key, value in mark.kwargs.items() if key not in values})
        return values

    @pytest.hookimpl(tryfirst=True)
    def pytest_sessionstart(self, session: pytest.Session) -> None:
        self.config.apply_log_level(LOGGER_NAME)
        if not self.config.enabled:
            return
        if txcontext_api.is_patched():
            logger.debug("Twisted already patched; leaving session patch alone")
            return
        self.patched_by_session = True
        txcontext_api.patch_twisted(
            self.config.namespace,
            include_task=self.config.patch_task,
            config=self.config,
        )

    @pytest.hookimpl(hookwrapper=True)
    def pytest_runtest_call(self, item: pytest.Item) -> Generator[None, None, None]:
        values = self._get_context_values(item)
        if values is None:
            yield
            return
        with self.get_namespace().scope(**values):
            yield

    @pytest.hookimpl(trylast=True)
    def pytest_sessionfinish(self, session: pytest.Session, exitstatus: int) -> None:
        if self.patched_by_session:
            txcontext_api.unpatch_twisted()
            self.patched_by_session = False

    @pytest.hookimpl(trylast=True)
    def pytest_terminal_summary(self, terminalreporter):
        if not self.records:
            return
        terminalreporter.write_sep("-", f"txcontext ({self.config.namespace})")
        for record in self.records:
            terminalreporter.write_line(record.summary())

    @hookimpl
    def txcontext_target_patched(self, target: Any, record: PatchRecord) -> None:
        if self.patched_by_session:
            self.records.append(record)


@pytest.fixture
def txcontext_namespace(request: pytest.FixtureRequest) -> Namespace:
    """The namespace the plugin propagates."""
    plugin = getattr(request.config, "_txcontext", None)
    if plugin is not None:
        return plugin.get_namespace()
    return get_namespace(DEFAULT_NAMESPACE, create=True)


@pytest.fixture
def txcontext_clock() -> task.Clock:
    """A deterministic reactor clock for firing Deferreds by hand."""
    return task.Clock()


@pytest.fixture
def txcontext_patched(txcontext_namespace: Namespace) -> Generator[Any, None, None]:
    """Patch Twisted for one test unless the session already did."""
    if txcontext_api.is_patched():
        yield txcontext_api.get_installer()
        return
    installer = txcontext_api.patch_twisted(txcontext_namespace)
    try:
        yield installer
    finally:
        txcontext_api.unpatch_twisted()


def pytest_addoption(parser: pytest.Parser) -> None:
    """Add command line options."""
    register_options(parser)
    setup_pytest_ini_options(parser)


def pytest_configure(config: pytest.Config) -> None:
    pm = get_plugin_manager()

    config.addinivalue_line(
        "markers", "txcontext(**values): run the test inside a txcontext scope holding values"
    )

    txcontext_config = resolve_options(config)

    _plugin_instance = TxContextPytestPlugin(txcontext_config)
    config._txcontext = _plugin_instance
    config.pluginmanager.register(_plugin_instance, "txcontext_plugin")
    pm.register(_plugin_instance, "pytest_txcontext")


def pytest_unconfigure(config: pytest.Config) -> None:
    plugin = getattr(config, "_txcontext", None)
    if plugin is not None:
        del config._txcontext
        config.pluginmanager.unregister(plugin, "txcontext_plugin")
        if plugin.patched_by_session:
            txcontext_api.unpatch_twisted()
        reset_plugin_manager()
