"""Environment-driven configuration for txcontext."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass

from .constants import DEFAULT_NAMESPACE


@dataclass
class TxContextConfig:
    """Settings used by :func:`txcontext.patch_twisted` and the pytest plugin."""

    namespace: str = DEFAULT_NAMESPACE
    enabled: bool = False
    patch_task: bool = True
    log_level: str | None = None

    def apply_log_level(self, logger_name: str) -> None:
        if self.log_level:
            logging.getLogger(logger_name).setLevel(self.log_level.upper())


def parse_bool(value: str | bool) -> bool:
    """Parse boolean from string."""
    if isinstance(value, bool):
        return value
    return value.strip().lower() in ("true", "1", "yes", "on")


def load_config(environ: Mapping[str, str] | None = None) -> TxContextConfig:
    """Build a config from ``TXCONTEXT_*`` environment variables."""
    env = os.environ if environ is None else environ
    config = TxContextConfig()
    if env.get("TXCONTEXT_NAMESPACE"):
        config.namespace = env["TXCONTEXT_NAMESPACE"]
    if "TXCONTEXT_ENABLED" in env:
        config.enabled = parse_bool(env["TXCONTEXT_ENABLED"])
    if "TXCONTEXT_PATCH_TASK" in env:
        config.patch_task = parse_bool(env["TXCONTEXT_PATCH_TASK"])
    if env.get("TXCONTEXT_LOG_LEVEL"):
        config.log_level = env["TXCONTEXT_LOG_LEVEL"]
    return config


__all__ = ["TxContextConfig", "load_config", "parse_bool"]
