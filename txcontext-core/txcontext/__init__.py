"""txcontext - continuation-local context for Twisted Deferred callbacks."""

from __future__ import annotations

# Public API facade
from txcontext.api import (
    adapt,
    bind,
    get_installer,
    is_patched,
    patch_twisted,
    unpatch_twisted,
)

# Core primitives
from txcontext.core.binder import CallbackBinder
from txcontext.core.log_filter import NamespaceLogFilter
from txcontext.core.models import BindingRecord, Context, MethodSpec, PatchRecord
from txcontext.core.namespace import (
    ContextCapture,
    Namespace,
    create_namespace,
    destroy_namespace,
    get_namespace,
)
from txcontext.errors import NamespaceError, PatchError, TxContextError

# Version info
__version__ = "0.1.0"
__author__ = "txcontext Team"

# Public API
__all__ = [
    # Version
    "__version__",
    "__author__",
    # Public API
    "adapt",
    "bind",
    "get_installer",
    "is_patched",
    "patch_twisted",
    "unpatch_twisted",
    # Core
    "BindingRecord",
    "CallbackBinder",
    "Context",
    "ContextCapture",
    "MethodSpec",
    "Namespace",
    "NamespaceLogFilter",
    "PatchRecord",
    "create_namespace",
    "destroy_namespace",
    "get_namespace",
    # Errors
    "NamespaceError",
    "PatchError",
    "TxContextError",
]
