"""Install context-binding wrappers over a chaining API."""

from __future__ import annotations

import functools
import inspect
import logging
from collections.abc import Callable
from types import ModuleType
from typing import Any

from ..._internal.constants import LOGGER_NAME, PATCH_ATTR, PATCHED_OP_ATTR
from ..._internal.methods.classifier import MethodClassifier, qualified_name
from ...core.binder import CallbackBinder
from ...core.models import Convention, MethodSpec, PatchRecord, ValueKind
from ...errors import PatchError
from ...hooks.manager import TxContextPluginManager

logger = logging.getLogger(LOGGER_NAME)

# Stored in PatchRecord.originals when the replaced attribute was inherited.
_INHERITED = object()

_POSITIONAL = (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)


def get_patch_record(target: Any) -> PatchRecord | None:
    record = vars(target).get(PATCH_ATTR)
    return record if isinstance(record, PatchRecord) else None


def classify_value(value: Any) -> ValueKind:
    """Tell instances of patched classes from instances of their unpatched subclasses."""
    cls = type(value)
    if PATCH_ATTR in cls.__dict__:
        return ValueKind.OWN_TYPE
    for base in cls.__mro__[1:]:
        if PATCH_ATTR in base.__dict__:
            return ValueKind.NATIVE_LIKE
    return ValueKind.FOREIGN


def _nearest_patched_base(cls: type) -> type | None:
    for base in cls.__mro__[1:]:
        if PATCH_ATTR in base.__dict__:
            return base
    return None


def _argument_offset(target: Any, spec: MethodSpec, attribute: Any) -> int:
    if isinstance(target, ModuleType) or isinstance(attribute, staticmethod):
        return 0
    if spec.convention is Convention.STATIC:
        return 0
    return 1


def _signature_matches(func: Callable[..., Any], spec: MethodSpec, offset: int) -> bool:
    try:
        signature = inspect.signature(func)
    except (TypeError, ValueError):
        # No introspectable signature; trust the table.
        return True
    params = [p for p in signature.parameters.values() if p.kind in _POSITIONAL]
    for slot in spec.callbacks:
        index = slot.position + offset
        if index >= len(params) or params[index].name != slot.name:
            return False
    return True


class PatchInstaller:
    """Patch classes and modules in place so their callbacks get bound.

    Only operations whose spec declares callback slots are replaced. Each
    replacement binds the callbacks in those slots, calls the original, and
    hands back its result untouched. Subclasses are patched as well: eagerly
    for those that exist at install time, lazily for those first seen as the
    result of a patched operation.
    """

    def __init__(
        self,
        binder: CallbackBinder,
        classifier: MethodClassifier | None = None,
        plugin_manager: TxContextPluginManager | None = None,
    ):
        self.binder = binder
        self.classifier = classifier or MethodClassifier(plugin_manager=plugin_manager)
        self.plugin_manager = plugin_manager

    @property
    def namespace_name(self) -> str:
        namespace = self.binder.namespace
        return getattr(namespace, "name", type(namespace).__name__)

    def is_installed(self, target: Any) -> bool:
        return get_patch_record(target) is not None

    def install(self, target: Any) -> Any:
        """Patch *target* (a class or a module) and its existing subclasses.

        Installing twice is a no-op.

        Returns:
            The target itself.

        Raises:
            PatchError: If *target* is neither a class nor a module.
        """
        if not (inspect.isclass(target) or isinstance(target, ModuleType)):
            raise PatchError(f"Cannot patch {target!r}: expected a class or a module")
        self._install(target, own_only=False)
        return target

    def uninstall(self, target: Any) -> None:
        """Restore every operation replaced on *target* and its patched subclasses.

        Raises:
            PatchError: If *target* is not patched.
        """
        record = get_patch_record(target)
        if record is None:
            raise PatchError(f"{qualified_name(target)} is not patched")

        for child in record.children:
            if self.is_installed(child):
                self.uninstall(child)

        for name, original in record.originals.items():
            if original is _INHERITED:
                delattr(target, name)
            else:
                setattr(target, name, original)
        delattr(target, PATCH_ATTR)
        logger.debug("Restored %s", record.target_name)

        if self.plugin_manager is not None:
            self.plugin_manager.hook.txcontext_target_unpatched(target=target)

    def adapt(self, cls: type) -> type:
        """Build a context-binding subclass of *cls*, leaving *cls* untouched.

        Only code that constructs the returned class gets bound callbacks;
        values produced by the unpatched base are not affected.

        Raises:
            PatchError: If *cls* is not a class.
        """
        if not inspect.isclass(cls):
            raise PatchError(f"Cannot adapt {cls!r}: expected a class")

        name = f"Context{cls.__name__}"
        record = PatchRecord(
            target_name=f"{cls.__module__}.{name}", namespace=self.namespace_name
        )
        body: dict[str, Any] = {"__module__": cls.__module__, "__qualname__": name}
        for op_name, spec in self.classifier.table_for(cls).items():
            if not spec.needs_wrapper:
                record.passthrough.append(op_name)
                continue
            prepared = self._prepare_operation(cls, spec, record, unwrap_patched=True)
            if prepared is not None:
                body[op_name] = prepared[1]
                record.patched.append(op_name)
        body[PATCH_ATTR] = record

        adapted = type(cls)(name, (cls,), body)
        logger.debug("Adapted %s", record.summary())
        if self.plugin_manager is not None:
            self.plugin_manager.hook.txcontext_target_patched(target=adapted, record=record)
        return adapted

    # ========== Installation ==========

    def _install(self, target: Any, own_only: bool) -> PatchRecord | None:
        existing = get_patch_record(target)
        if existing is not None:
            if existing.namespace != self.namespace_name:
                logger.warning(
                    "%s is already patched for namespace %s; ignoring request for %s",
                    existing.target_name,
                    existing.namespace,
                    self.namespace_name,
                )
            return None

        record = PatchRecord(target_name=qualified_name(target), namespace=self.namespace_name)
        own = vars(target)

        for name, spec in self.classifier.table_for(target).items():
            if own_only and name not in own:
                # Inherited from a base that is patched already.
                continue
            if not spec.needs_wrapper:
                record.passthrough.append(name)
                continue
            prepared = self._prepare_operation(target, spec, record)
            if prepared is not None:
                attribute, wrapper = prepared
                record.originals[name] = attribute if name in own else _INHERITED
                setattr(target, name, wrapper)
                record.patched.append(name)

        setattr(target, PATCH_ATTR, record)

        if inspect.isclass(target):
            for subclass in target.__subclasses__():
                if self._install(subclass, own_only=True) is not None:
                    record.children.append(subclass)

        logger.debug("Patched %s", record.summary())
        if self.plugin_manager is not None:
            self.plugin_manager.hook.txcontext_target_patched(target=target, record=record)
        return record

    def _prepare_operation(
        self,
        target: Any,
        spec: MethodSpec,
        record: PatchRecord,
        unwrap_patched: bool = False,
    ) -> tuple[Any, Any] | None:
        """Return the current attribute and its replacement, or None to leave it.

        With *unwrap_patched*, an operation already patched on a base is
        wrapped again from its original instead of being skipped.
        """
        name = spec.name
        try:
            attribute = inspect.getattr_static(target, name)
        except AttributeError:
            logger.debug("Skipping %s.%s: not present", record.target_name, name)
            record.missing.append(name)
            return None

        if isinstance(attribute, (classmethod, staticmethod)):
            func = attribute.__func__
        else:
            func = attribute

        if getattr(func, PATCHED_OP_ATTR, False):
            if not unwrap_patched:
                return None
            while getattr(func, PATCHED_OP_ATTR, False):
                func = func.__wrapped__
        if not callable(func):
            logger.debug("Skipping %s.%s: not callable", record.target_name, name)
            record.unsupported.append(name)
            return None

        offset = _argument_offset(target, spec, attribute)
        if not _signature_matches(func, spec, offset):
            logger.debug(
                "Skipping %s.%s: signature does not match %s",
                record.target_name,
                name,
                [slot.name for slot in spec.callbacks],
            )
            record.unsupported.append(name)
            return None

        wrapper: Any = self._make_wrapper(func, spec, offset)
        if isinstance(attribute, classmethod):
            wrapper = classmethod(wrapper)
        elif isinstance(attribute, staticmethod):
            wrapper = staticmethod(wrapper)
        return attribute, wrapper

    def _make_wrapper(
        self, original: Callable[..., Any], spec: MethodSpec, offset: int
    ) -> Callable[..., Any]:
        bind = self.binder.bind
        observe = self._observe
        slots = [(slot.position + offset, slot) for slot in spec.callbacks]
        observe_self = spec.name == "__init__" and offset == 1

        @functools.wraps(original)
        def patched(*args: Any, **kwargs: Any) -> Any:
            args_list = list(args)
            for index, slot in slots:
                if index < len(args_list):
                    args_list[index] = bind(args_list[index])
                elif not slot.positional_only and slot.name in kwargs:
                    kwargs[slot.name] = bind(kwargs[slot.name])
            result = original(*args_list, **kwargs)
            observe(args_list[0] if observe_self else result)
            return result

        setattr(patched, PATCHED_OP_ATTR, True)
        return patched

    def _observe(self, value: Any) -> None:
        if classify_value(value) is not ValueKind.NATIVE_LIKE:
            return
        cls = type(value)
        patched_base = _nearest_patched_base(cls)
        pending = [k for k in cls.__mro__ if issubclass(k, patched_base) and k is not patched_base]
        # Closest to the patched base first, so every parent is marked
        # before its subclasses.
        for klass in reversed(pending):
            parent = _nearest_patched_base(klass)
            if self._install(klass, own_only=True) is not None:
                get_patch_record(parent).children.append(klass)
                logger.debug("Patched late subclass %s", qualified_name(klass))


__all__ = ["PatchInstaller", "classify_value", "get_patch_record"]
