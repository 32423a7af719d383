"""Hook system for txcontext plugin architecture."""

from .manager import TxContextPluginManager, get_plugin_manager, reset_plugin_manager
from .specs import TxContextHookSpecs, hookimpl, hookspec

__all__ = [
    "hookspec",
    "hookimpl",
    "TxContextHookSpecs",
    "get_plugin_manager",
    "TxContextPluginManager",
    "reset_plugin_manager",
]
