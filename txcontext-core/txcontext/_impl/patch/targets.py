"""The Twisted classes and modules that carry callbacks."""

from __future__ import annotations

from typing import Any

from twisted.internet import defer, task


def twisted_targets(include_task: bool = True) -> list[Any]:
    """Return patch targets in install order.

    ``twisted.internet.task`` is optional because it imports the global
    reactor lazily (``LoopingCall``) and some applications never use it.
    """
    targets: list[Any] = [
        defer.Deferred,
        defer.DeferredLock,
        defer.DeferredSemaphore,
        defer,
    ]
    if include_task:
        targets.extend([task, task.LoopingCall])
    return targets
