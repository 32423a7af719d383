"""Data models for contexts, bindings, method specs and patch records."""

from __future__ import annotations

import itertools
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

_context_ids = itertools.count(1)


class Convention(str, Enum):
    """How an operation is invoked on its target."""

    INSTANCE = "instance"
    CLASS = "class"
    STATIC = "static"


class ValueKind(str, Enum):
    """Classification of a value returned through a patched operation."""

    OWN_TYPE = "own_type"  # instance of a patched class
    NATIVE_LIKE = "native_like"  # instance of an unpatched subclass of a patched class
    FOREIGN = "foreign"


@dataclass(frozen=True, eq=False)
class Context:
    """Immutable set of values active for one logical flow.

    Contexts compare by identity: two contexts holding equal values are still
    different flows.
    """

    namespace: str
    values: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    parent: Context | None = None
    context_id: int = field(default_factory=lambda: next(_context_ids))

    def __post_init__(self) -> None:
        if not isinstance(self.values, MappingProxyType):
            object.__setattr__(self, "values", MappingProxyType(dict(self.values)))

    def get(self, key: str, default: Any = None) -> Any:
        return self.values.get(key, default)

    def new_child(self, values: Mapping[str, Any] | None = None) -> Context:
        """Derive a context that inherits this one's values and overlays *values*."""
        merged = dict(self.values)
        if values:
            merged.update(values)
        return Context(namespace=self.namespace, values=merged, parent=self)

    def __repr__(self) -> str:
        return f"<Context {self.namespace}#{self.context_id} {dict(self.values)!r}>"


@dataclass(frozen=True)
class BindingRecord:
    """Attached to a bound callback: what it wraps and which context it restores."""

    original: Callable[..., Any]
    context: Context


@dataclass(frozen=True)
class CallbackSlot:
    """A parameter of an operation that carries a user callback.

    ``position`` counts positional parameters after ``self``/``cls``.
    """

    position: int
    name: str
    positional_only: bool = False


@dataclass(frozen=True)
class MethodSpec:
    """Static description of one operation of a chaining API.

    ``shared_across_elements`` is descriptive only: it marks handlers that are
    invoked many times. The binder cache already gives such a handler one
    wrapper per context, so the installer does not read the flag.
    """

    name: str
    convention: Convention = Convention.INSTANCE
    callbacks: tuple[CallbackSlot, ...] = ()
    bindable: bool = False
    shared_across_elements: bool = False

    @property
    def is_static(self) -> bool:
        return self.convention is not Convention.INSTANCE

    @property
    def callback_positions(self) -> tuple[int, ...]:
        return tuple(slot.position for slot in self.callbacks)

    @property
    def needs_wrapper(self) -> bool:
        """True when installing this operation means replacing it."""
        return self.bindable and bool(self.callbacks)


@dataclass
class PatchRecord:
    """Marker stored on a patched class or module.

    Holds everything needed to undo the patch, plus a summary of the
    decisions taken per operation.
    """

    target_name: str
    namespace: str
    originals: dict[str, Any] = field(default_factory=dict)
    patched: list[str] = field(default_factory=list)
    passthrough: list[str] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)
    unsupported: list[str] = field(default_factory=list)
    children: list[Any] = field(default_factory=list)

    def summary(self) -> str:
        parts = [f"{self.target_name}: {len(self.patched)} patched"]
        if self.children:
            parts.append(f"{len(self.children)} subclasses")
        if self.missing:
            parts.append(f"missing {', '.join(self.missing)}")
        if self.unsupported:
            parts.append(f"unsupported {', '.join(self.unsupported)}")
        return ", ".join(parts)


__all__ = [
    "BindingRecord",
    "CallbackSlot",
    "Context",
    "Convention",
    "MethodSpec",
    "PatchRecord",
    "ValueKind",
]
