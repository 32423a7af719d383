"""Continuation-local namespaces backed by :mod:`contextvars`."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Protocol, TypeVar, runtime_checkable

from .._internal.constants import LOGGER_NAME
from ..errors import NamespaceError
from .models import Context

logger = logging.getLogger(LOGGER_NAME)

T = TypeVar("T")


@runtime_checkable
class ContextCapture(Protocol):
    """What the binder needs from a context provider."""

    def capture(self) -> Context: ...

    def enter(self, ctx: Context) -> Context: ...

    def exit(self, prior: Context) -> None: ...


class Namespace:
    """A named slot holding the active :class:`Context`.

    Each namespace owns one ``ContextVar``, so threads and asyncio tasks see
    their own active context while Twisted callbacks see whatever was last
    entered on the reactor thread.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self.root = Context(namespace=name)
        self._var: ContextVar[Context] = ContextVar(f"txcontext:{name}", default=self.root)

    def __repr__(self) -> str:
        return f"<Namespace {self.name!r} active={self.active!r}>"

    # ========== ContextCapture ==========

    def capture(self) -> Context:
        return self._var.get()

    def enter(self, ctx: Context) -> Context:
        """Make *ctx* active and return the context it replaced."""
        prior = self._var.get()
        self._var.set(ctx)
        return prior

    def exit(self, prior: Context) -> None:
        """Restore *prior* as the active context.

        This is an absolute restore rather than a pop, so an unbalanced
        enter inside user code cannot leak past the caller.
        """
        self._var.set(prior)

    # ========== Convenience API ==========

    @property
    def active(self) -> Context:
        return self._var.get()

    def get(self, key: str, default: Any = None) -> Any:
        return self._var.get().get(key, default)

    def set(self, key: str, value: Any) -> Context:
        """Replace the active context with a child carrying ``key=value``."""
        ctx = self._var.get().new_child({key: value})
        self._var.set(ctx)
        return ctx

    def create_context(self, **values: Any) -> Context:
        return self._var.get().new_child(values)

    @contextmanager
    def scope(self, **values: Any) -> Iterator[Context]:
        """Run a block inside a child of the active context."""
        ctx = self.create_context(**values)
        prior = self.enter(ctx)
        try:
            yield ctx
        finally:
            self.exit(prior)

    def run(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        with self.scope():
            return fn(*args, **kwargs)


_namespaces: dict[str, Namespace] = {}


def create_namespace(name: str) -> Namespace:
    """Register a new namespace.

    Raises:
        NamespaceError: If *name* is already registered.
    """
    if name in _namespaces:
        raise NamespaceError(f"Namespace {name!r} already exists")
    ns = Namespace(name)
    _namespaces[name] = ns
    logger.debug("Created namespace %s", name)
    return ns


def get_namespace(name: str, create: bool = False) -> Namespace:
    """Look up a registered namespace, optionally creating it."""
    ns = _namespaces.get(name)
    if ns is None:
        if not create:
            raise NamespaceError(f"Namespace {name!r} does not exist")
        ns = create_namespace(name)
    return ns


def destroy_namespace(name: str) -> None:
    _namespaces.pop(name, None)


def reset_namespaces() -> None:
    """Forget every registered namespace (used by tests)."""
    _namespaces.clear()


__all__ = [
    "ContextCapture",
    "Namespace",
    "create_namespace",
    "destroy_namespace",
    "get_namespace",
    "reset_namespaces",
]
