"""Logging integration: stamp namespace values onto log records."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from .namespace import Namespace


class NamespaceLogFilter(logging.Filter):
    """Copy values from the active context onto each ``LogRecord``.

    Example:
        handler.addFilter(NamespaceLogFilter(ns, keys=["request_id"]))
        logging.Formatter("%(request_id)s %(message)s")

    Keys missing from the active context are set to *default* so format
    strings never fail. With ``keys=None`` every value is copied and the
    whole mapping is also exposed as ``record.txcontext``.
    """

    def __init__(
        self,
        namespace: Namespace,
        keys: Iterable[str] | None = None,
        default: str = "-",
    ) -> None:
        super().__init__()
        self.namespace = namespace
        self.keys = list(keys) if keys is not None else None
        self.default = default

    def filter(self, record: logging.LogRecord) -> bool:
        ctx = self.namespace.capture()
        if self.keys is None:
            values = dict(ctx.values)
            record.txcontext = values
            for key, value in values.items():
                if not hasattr(record, key):
                    setattr(record, key, value)
        else:
            for key in self.keys:
                setattr(record, key, ctx.get(key, self.default))
        return True


__all__ = ["NamespaceLogFilter"]
