"""Public API: patch Twisted and bind callbacks by hand."""

from __future__ import annotations

import logging
import weakref
from typing import Any

from ._impl.patch.installer import PatchInstaller, get_patch_record
from ._impl.patch.targets import twisted_targets
from ._internal.config import TxContextConfig, load_config
from ._internal.constants import LOGGER_NAME
from ._internal.methods.classifier import MethodClassifier
from .core.binder import CallbackBinder
from .core.namespace import ContextCapture, get_namespace
from .hooks.manager import get_plugin_manager

logger = logging.getLogger(LOGGER_NAME)

_installer: PatchInstaller | None = None
_patched_targets: list[Any] = []
_binders: weakref.WeakKeyDictionary[Any, CallbackBinder] = weakref.WeakKeyDictionary()


def _resolve_namespace(namespace: str | ContextCapture | None, config: TxContextConfig) -> Any:
    if namespace is None:
        return get_namespace(config.namespace, create=True)
    if isinstance(namespace, str):
        return get_namespace(namespace, create=True)
    return namespace


def _binder_for(namespace: Any) -> CallbackBinder:
    if _installer is not None and _installer.binder.namespace is namespace:
        return _installer.binder
    binder = _binders.get(namespace)
    if binder is None:
        binder = CallbackBinder(namespace)
        _binders[namespace] = binder
    return binder


def get_installer(namespace: str | ContextCapture | None = None) -> PatchInstaller:
    """Return the process-wide installer, creating it on first use."""
    global _installer
    if _installer is None:
        config = load_config()
        ns = _resolve_namespace(namespace, config)
        pm = get_plugin_manager()
        _installer = PatchInstaller(
            _binder_for(ns),
            MethodClassifier(plugin_manager=pm),
            plugin_manager=pm,
        )
    return _installer


def patch_twisted(
    namespace: str | ContextCapture | None = None,
    *,
    include_task: bool | None = None,
    config: TxContextConfig | None = None,
) -> PatchInstaller:
    """Make Twisted callbacks run under the context active at registration.

    Args:
        namespace: Namespace name or provider; defaults to the configured one
        include_task: Also patch ``twisted.internet.task``; defaults to config
        config: Explicit configuration instead of ``TXCONTEXT_*`` variables

    Returns:
        The installer that holds the patch.
    """
    config = config or load_config()
    config.apply_log_level(LOGGER_NAME)
    ns = _resolve_namespace(namespace, config)
    if include_task is None:
        include_task = config.patch_task

    if _patched_targets:
        installer = get_installer()
        if installer.binder.namespace is not ns:
            logger.warning(
                "Twisted is already patched for namespace %s; ignoring %s",
                installer.namespace_name,
                getattr(ns, "name", ns),
            )
            return installer
    elif _installer is not None and _installer.binder.namespace is not ns:
        reset_installer()

    installer = get_installer(ns)
    for target in twisted_targets(include_task):
        if target in _patched_targets:
            continue
        installer.install(target)
        _patched_targets.append(target)

    logger.info("Patched Twisted for namespace %s", installer.namespace_name)
    return installer


def unpatch_twisted() -> None:
    """Undo :func:`patch_twisted`. Safe to call when nothing is patched."""
    if _installer is not None:
        for target in reversed(_patched_targets):
            if _installer.is_installed(target):
                _installer.uninstall(target)
    _patched_targets.clear()
    reset_installer()


def reset_installer() -> None:
    global _installer
    _installer = None


def is_patched(target: Any = None) -> bool:
    """Whether *target* (``Deferred`` by default) carries a patch marker."""
    if target is None:
        from twisted.internet.defer import Deferred

        target = Deferred
    return get_patch_record(target) is not None


def adapt(cls: type, namespace: str | ContextCapture | None = None) -> type:
    """Return a subclass of *cls* that binds callbacks, without patching *cls*."""
    if namespace is None and _installer is not None:
        return _installer.adapt(cls)
    ns = _resolve_namespace(namespace, load_config())
    pm = get_plugin_manager()
    installer = PatchInstaller(_binder_for(ns), MethodClassifier(plugin_manager=pm), pm)
    return installer.adapt(cls)


def bind(fn: Any, namespace: str | ContextCapture | None = None) -> Any:
    """Bind *fn* to the current context of *namespace*.

    Useful for callbacks handed to APIs that are not patched, such as
    ``reactor.callLater``.
    """
    if namespace is None and _installer is not None:
        return _installer.binder.bind(fn)
    ns = _resolve_namespace(namespace, load_config())
    return _binder_for(ns).bind(fn)


__all__ = [
    "adapt",
    "bind",
    "get_installer",
    "is_patched",
    "patch_twisted",
    "reset_installer",
    "unpatch_twisted",
]
