"""Attribute and logger names shared across txcontext."""

from __future__ import annotations

# Attached to every bound callback; holds a BindingRecord.
BINDING_ATTR = "__txcontext_binding__"

# Stored in a patched target's own __dict__; holds a PatchRecord.
PATCH_ATTR = "__txcontext_patch__"

# Set on installed wrappers so they are never wrapped twice.
PATCHED_OP_ATTR = "__txcontext_patched_op__"

DEFAULT_NAMESPACE = "txcontext"

LOGGER_NAME = "TxContext"
PYTEST_LOGGER_NAME = "TxContextPytestPlugin"
