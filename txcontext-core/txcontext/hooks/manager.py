"""Plugin manager for txcontext hooks."""

from __future__ import annotations

import logging
from typing import Any

import pluggy

from .._internal.constants import LOGGER_NAME
from .specs import TxContextHookSpecs

logger = logging.getLogger(LOGGER_NAME)


class TxContextPluginManager(pluggy.PluginManager):
    """pluggy plugin manager preloaded with txcontext hook specs."""

    def __init__(self) -> None:
        super().__init__("txcontext")
        self.add_hookspecs(TxContextHookSpecs)

    def register(self, plugin: Any, name: str | None = None) -> str | None:
        registered = super().register(plugin, name)
        logger.debug("Registered txcontext plugin %s", registered)
        return registered


_plugin_manager: TxContextPluginManager | None = None


def get_plugin_manager() -> TxContextPluginManager:
    """Get the global plugin manager instance."""
    global _plugin_manager
    if _plugin_manager is None:
        _plugin_manager = TxContextPluginManager()
    return _plugin_manager


def reset_plugin_manager() -> None:
    """Drop the global plugin manager (used by tests)."""
    global _plugin_manager
    _plugin_manager = None
