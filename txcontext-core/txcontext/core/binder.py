"""Wrap callbacks so they run under the context active at registration."""

from __future__ import annotations

import functools
import inspect
import weakref
from collections.abc import Callable
from typing import Any

from .._internal.constants import BINDING_ATTR
from .models import BindingRecord, Context
from .namespace import ContextCapture


def get_binding(fn: Any) -> BindingRecord | None:
    record = getattr(fn, BINDING_ATTR, None)
    return record if isinstance(record, BindingRecord) else None


def is_bound(fn: Any) -> bool:
    return get_binding(fn) is not None


class CallbackBinder:
    """Produces context-restoring wrappers for one context provider.

    Wrappers are cached weakly per raw callable and per captured context, so
    handing the same handler to several chain operations under one context
    yields one wrapper, while a different context yields a fresh one.
    """

    def __init__(self, namespace: ContextCapture):
        self.namespace = namespace
        self._cache: weakref.WeakKeyDictionary[Any, dict[int, weakref.ref]] = (
            weakref.WeakKeyDictionary()
        )

    def bind(self, fn: Any) -> Any:
        """Return *fn* wrapped to run under the currently captured context.

        Non-callables are returned unchanged. A callable already bound to the
        current context is returned as is.
        """
        if not callable(fn):
            return fn

        ctx = self.namespace.capture()

        record = get_binding(fn)
        if record is not None and record.context is ctx:
            return fn

        cached = self._lookup(fn, ctx)
        if cached is not None:
            return cached

        bound = self._wrap(fn, ctx)
        self._store(fn, ctx, bound)
        return bound

    @staticmethod
    def unwrap(fn: Any) -> Any:
        """Strip every binding layer from *fn*."""
        record = get_binding(fn)
        while record is not None:
            fn = record.original
            record = get_binding(fn)
        return fn

    def _wrap(self, fn: Callable[..., Any], ctx: Context) -> Callable[..., Any]:
        namespace = self.namespace

        if inspect.iscoroutinefunction(fn):

            async def bound(*args: Any, **kwargs: Any) -> Any:
                prior = namespace.enter(ctx)
                try:
                    return await fn(*args, **kwargs)
                finally:
                    namespace.exit(prior)

        else:

            def bound(*args: Any, **kwargs: Any) -> Any:
                prior = namespace.enter(ctx)
                try:
                    return fn(*args, **kwargs)
                finally:
                    namespace.exit(prior)

        functools.update_wrapper(bound, fn)
        # update_wrapper copies __dict__, which may carry the inner record
        setattr(bound, BINDING_ATTR, BindingRecord(original=fn, context=ctx))
        return bound

    def _lookup(self, fn: Any, ctx: Context) -> Callable[..., Any] | None:
        try:
            per_context = self._cache.get(fn)
        except TypeError:
            return None
        if not per_context:
            return None
        ref = per_context.get(id(ctx))
        bound = ref() if ref is not None else None
        if bound is None:
            return None
        record = get_binding(bound)
        # id() may be reused once a context is collected
        if record is None or record.context is not ctx:
            return None
        return bound

    def _store(self, fn: Any, ctx: Context, bound: Callable[..., Any]) -> None:
        try:
            per_context = self._cache.get(fn)
            if per_context is None:
                per_context = {}
                self._cache[fn] = per_context
        except TypeError:
            # unhashable or not weak-referenceable
            return
        ctx_id = id(ctx)

        def _discard(_ref: weakref.ref, per_context: dict[int, weakref.ref] = per_context) -> None:
            if per_context.get(ctx_id) is _ref:
                del per_context[ctx_id]

        per_context[ctx_id] = weakref.ref(bound, _discard)


__all__ = ["CallbackBinder", "get_binding", "is_bound"]
