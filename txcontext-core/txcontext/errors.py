"""Exceptions raised by txcontext."""

from __future__ import annotations


class TxContextError(Exception):
    """Base class for txcontext errors."""


class NamespaceError(TxContextError, LookupError):
    """A namespace name was registered twice or could not be found."""


class PatchError(TxContextError, TypeError):
    """A target could not be patched or unpatched."""


__all__ = ["TxContextError", "NamespaceError", "PatchError"]
