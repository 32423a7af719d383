"""Look up method specs for a class or module."""

from __future__ import annotations

import inspect
from collections.abc import Mapping
from types import ModuleType
from typing import Any

from ...core.models import MethodSpec
from ...hooks.manager import TxContextPluginManager
from .table import TWISTED_METHOD_TABLE


def qualified_name(target: Any) -> str:
    if isinstance(target, ModuleType):
        return target.__name__
    return f"{target.__module__}.{target.__qualname__}"


class MethodClassifier:
    """Resolve which operations of a target carry callbacks.

    Class lookups merge the tables of every class in the MRO, base first, so
    a subclass inherits its parents' classification and may override it.
    Specs contributed through the ``txcontext_method_specs`` hook are merged
    last.
    """

    def __init__(
        self,
        tables: Mapping[str, tuple[MethodSpec, ...]] | None = None,
        plugin_manager: TxContextPluginManager | None = None,
    ):
        self.tables = dict(TWISTED_METHOD_TABLE if tables is None else tables)
        self.plugin_manager = plugin_manager

    def register(self, target: Any, specs: tuple[MethodSpec, ...] | list[MethodSpec]) -> None:
        """Add or replace specs for *target*."""
        key = target if isinstance(target, str) else qualified_name(target)
        merged = {spec.name: spec for spec in self.tables.get(key, ())}
        merged.update((spec.name, spec) for spec in specs)
        self.tables[key] = tuple(merged.values())

    def table_for(self, target: Any) -> dict[str, MethodSpec]:
        """Return every known spec for *target*, keyed by operation name."""
        if inspect.isclass(target):
            chain = reversed(target.__mro__)
        else:
            chain = iter((target,))

        specs: dict[str, MethodSpec] = {}
        for owner in chain:
            for spec in self.tables.get(qualified_name(owner), ()):
                specs[spec.name] = spec

        if self.plugin_manager is not None:
            for contributed in self.plugin_manager.hook.txcontext_method_specs(target=target):
                for spec in contributed or ():
                    specs[spec.name] = spec
        return specs

    def classify(self, target: Any, name: str) -> MethodSpec | None:
        return self.table_for(target).get(name)

    def knows(self, target: Any) -> bool:
        return bool(self.table_for(target))


__all__ = ["MethodClassifier", "qualified_name"]
