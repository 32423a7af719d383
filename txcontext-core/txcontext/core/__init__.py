"""Core context-binding primitives."""

from .binder import CallbackBinder, get_binding, is_bound
from .models import (
    BindingRecord,
    CallbackSlot,
    Context,
    Convention,
    MethodSpec,
    PatchRecord,
    ValueKind,
)
from .namespace import (
    ContextCapture,
    Namespace,
    create_namespace,
    destroy_namespace,
    get_namespace,
    reset_namespaces,
)

__all__ = [
    "BindingRecord",
    "CallbackBinder",
    "CallbackSlot",
    "Context",
    "ContextCapture",
    "Convention",
    "MethodSpec",
    "Namespace",
    "PatchRecord",
    "ValueKind",
    "create_namespace",
    "destroy_namespace",
    "get_binding",
    "get_namespace",
    "is_bound",
    "reset_namespaces",
]
