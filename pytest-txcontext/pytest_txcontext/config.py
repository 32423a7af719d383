"""Configuration system for pytest-txcontext plugin."""

from __future__ import annotations

import os
from typing import Any

import pytest
from txcontext._internal.config import TxContextConfig, parse_bool


def register_options(parser: pytest.Parser) -> None:
    """Register pytest command line options for txcontext."""
    group = parser.getgroup("txcontext", "Context propagation for Twisted Deferreds")

    group.addoption(
        "--txcontext",
        action="store_true",
        default=None,
        help="Patch Twisted for the whole session so callbacks keep their context",
    )
    group.addoption(
        "--txcontext-namespace",
        action="store",
        default=None,
        help="Namespace used for context propagation (default: txcontext)",
    )
    group.addoption(
        "--txcontext-no-task",
        action="store_true",
        default=None,
        help="Do not patch twisted.internet.task (deferLater, LoopingCall)",
    )
    group.addoption(
        "--txcontext-log-level",
        action="store",
        default=None,
        help="Log level for the TxContext logger",
    )


def resolve_options(config: pytest.Config) -> TxContextConfig:
    """Resolve txcontext configuration from CLI, environment, and pytest.ini.

    Priority: CLI > ENV > pytest.ini > defaults
    """

    def get_option(
        name: str | None,
        env_name: str,
        ini_name: str,
        default: Any = None,
        type_func: Any = None,
    ) -> Any:
        """Get option value with priority: CLI > ENV > INI > default."""
        # CLI option (highest priority)
        cli_value = config.getoption(name, default=None) if name else None
        if cli_value is not None:
            return cli_value

        # Environment variable
        env_value = os.getenv(env_name)
        if env_value is not None:
            if type_func is bool:
                return parse_bool(env_value)
            return env_value

        # pytest.ini value
        ini_value = config.getini(ini_name)
        if ini_value:
            if type_func is bool:
                return parse_bool(ini_value)
            return ini_value

        return default

    return TxContextConfig(
        namespace=get_option(
            "txcontext_namespace", "TXCONTEXT_NAMESPACE", "txcontext_namespace", "txcontext"
        ),
        enabled=get_option("txcontext", "TXCONTEXT_ENABLED", "txcontext_enabled", False, bool),
        patch_task=False
        if config.getoption("txcontext_no_task", default=None)
        else get_option(None, "TXCONTEXT_PATCH_TASK", "txcontext_patch_task", True, bool),
        log_level=get_option(
            "txcontext_log_level", "TXCONTEXT_LOG_LEVEL", "txcontext_log_level"
        ),
    )


def setup_pytest_ini_options(parser: pytest.Parser) -> None:
    """Setup pytest.ini configuration options."""
    parser.addini("txcontext_enabled", "Patch Twisted for the whole session", default="false")
    parser.addini("txcontext_namespace", "Namespace for context propagation", default="txcontext")
    parser.addini("txcontext_patch_task", "Patch twisted.internet.task as well", default="true")
    parser.addini("txcontext_log_level", "Log level for the TxContext logger")
