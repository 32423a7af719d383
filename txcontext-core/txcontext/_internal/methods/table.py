"""Which arguments of Twisted's chaining surface are user callbacks.

Tables are keyed by the qualified name of the class (``module.QualName``) or
by the module name for module-level functions. Only entries with callback
slots are ever replaced. The rest are listed so the installer can report
them as intentionally passed through.
"""

from __future__ import annotations

from types import MappingProxyType

from ...core.models import CallbackSlot, Convention, MethodSpec

INSTANCE = Convention.INSTANCE
CLASS = Convention.CLASS
STATIC = Convention.STATIC


def _bindable(
    name: str,
    *slots: CallbackSlot,
    convention: Convention = INSTANCE,
    shared: bool = False,
) -> MethodSpec:
    return MethodSpec(
        name=name,
        convention=convention,
        callbacks=tuple(slots),
        bindable=True,
        shared_across_elements=shared,
    )


def _passthrough(*names: str, convention: Convention = INSTANCE) -> tuple[MethodSpec, ...]:
    return tuple(MethodSpec(name=name, convention=convention) for name in names)


DEFERRED_SPECS: tuple[MethodSpec, ...] = (
    # The canceller runs later, from cancel(), under whoever cancels.
    _bindable("__init__", CallbackSlot(0, "canceller")),
    _bindable("addCallbacks", CallbackSlot(0, "callback"), CallbackSlot(1, "errback")),
    _bindable("addCallback", CallbackSlot(0, "callback")),
    _bindable("addErrback", CallbackSlot(0, "errback")),
    _bindable("addBoth", CallbackSlot(0, "callback")),
    _bindable("addTimeout", CallbackSlot(2, "onTimeoutCancel")),
    # Delegate to addCallbacks/addBoth, which are already bound.
    *_passthrough("chainDeferred", "asFuture"),
    *_passthrough("callback", "errback", "cancel", "pause", "unpause"),
    *_passthrough("fromFuture", "fromCoroutine", convention=CLASS),
)

DEFER_MODULE_SPECS: tuple[MethodSpec, ...] = _passthrough(
    "succeed",
    "fail",
    "gatherResults",
    "race",
    "ensureDeferred",
    # Run their callable before returning, under the caller's own context.
    "execute",
    "maybeDeferred",
    # Twisted already runs generators and coroutines in a copied context.
    "inlineCallbacks",
    convention=STATIC,
)

CONCURRENCY_PRIMITIVE_SPECS: tuple[MethodSpec, ...] = (
    _bindable("run", CallbackSlot(0, "f", positional_only=True)),
    *_passthrough("acquire", "release"),
)

TASK_MODULE_SPECS: tuple[MethodSpec, ...] = (
    _bindable("deferLater", CallbackSlot(2, "callable"), convention=STATIC),
    *_passthrough("coiterate", "cooperate", convention=STATIC),
)

LOOPING_CALL_SPECS: tuple[MethodSpec, ...] = (
    # One bound function serves every iteration.
    _bindable("__init__", CallbackSlot(0, "f"), shared=True),
    _bindable("withCount", CallbackSlot(0, "countCallable"), convention=CLASS, shared=True),
)

TWISTED_METHOD_TABLE = MappingProxyType(
    {
        "twisted.internet.defer.Deferred": DEFERRED_SPECS,
        "twisted.internet.defer": DEFER_MODULE_SPECS,
        "twisted.internet.defer.DeferredLock": CONCURRENCY_PRIMITIVE_SPECS,
        "twisted.internet.defer.DeferredSemaphore": CONCURRENCY_PRIMITIVE_SPECS,
        "twisted.internet.task": TASK_MODULE_SPECS,
        "twisted.internet.task.LoopingCall": LOOPING_CALL_SPECS,
    }
)


__all__ = [
    "CONCURRENCY_PRIMITIVE_SPECS",
    "DEFERRED_SPECS",
    "DEFER_MODULE_SPECS",
    "LOOPING_CALL_SPECS",
    "TASK_MODULE_SPECS",
    "TWISTED_METHOD_TABLE",
]
