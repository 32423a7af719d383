"""Hook specifications for the txcontext plugin system."""

from __future__ import annotations

from typing import Any

from pluggy import HookimplMarker, HookspecMarker

from ..core.models import MethodSpec, PatchRecord

hookspec = HookspecMarker("txcontext")
hookimpl = HookimplMarker("txcontext")


class TxContextHookSpecs:
    """Hook specifications for extending and observing txcontext."""

    # ========== Classification Hooks ==========

    @hookspec
    def txcontext_method_specs(self, target: Any) -> list[MethodSpec] | None:
        """Contribute method specs for a class or module about to be patched.

        Specs returned here override built-in ones with the same name.

        Args:
            target: Class or module being classified
        """

    # ========== Patch Lifecycle Hooks ==========

    @hookspec
    def txcontext_target_patched(self, target: Any, record: PatchRecord) -> None:
        """Called after a class or module has been patched.

        Args:
            target: The patched class or module
            record: Marker describing what was replaced
        """

    @hookspec
    def txcontext_target_unpatched(self, target: Any) -> None:
        """Called after a class or module has been restored.

        Args:
            target: The restored class or module
        """
