from __future__ import annotations

import types
from unittest.mock import Mock

import pytest
from twisted.internet import defer, task
from txcontext._impl.patch.installer import PatchInstaller, classify_value, get_patch_record
from txcontext._internal.methods.classifier import MethodClassifier
from txcontext.core.binder import CallbackBinder
from txcontext.core.models import CallbackSlot, MethodSpec, ValueKind
from txcontext.core.namespace import Namespace
from txcontext.errors import PatchError


def _recording_handler(namespace, seen):
    def handler(result):
        seen.append(namespace.get("tag"))
        return result

    return handler


class TestInstallBasics:
    def test_install_sets_marker(self, installer) -> None:
        assert installer.install(defer.Deferred) is defer.Deferred
        try:
            record = get_patch_record(defer.Deferred)
            assert record.namespace == installer.namespace_name
            assert "addCallback" in record.patched
            assert "callback" in record.passthrough
            assert installer.is_installed(defer.Deferred)
        finally:
            installer.uninstall(defer.Deferred)

    def test_second_install_is_noop(self, installer) -> None:
        installer.install(defer.Deferred)
        try:
            first = vars(defer.Deferred)["addCallback"]
            installer.install(defer.Deferred)
            assert vars(defer.Deferred)["addCallback"] is first
        finally:
            installer.uninstall(defer.Deferred)

    def test_conflicting_namespace_logs_warning(self, installer, caplog) -> None:
        other = PatchInstaller(CallbackBinder(Namespace("other")))
        installer.install(defer.Deferred)
        try:
            with caplog.at_level("WARNING", logger="TxContext"):
                other.install(defer.Deferred)
            assert "already patched" in caplog.text
            assert get_patch_record(defer.Deferred).namespace == installer.namespace_name
        finally:
            installer.uninstall(defer.Deferred)

    def test_passthrough_operations_untouched(self, installer) -> None:
        before = {name: vars(defer.Deferred)[name] for name in ("callback", "errback", "cancel")}
        installer.install(defer.Deferred)
        try:
            for name, original in before.items():
                assert vars(defer.Deferred)[name] is original
        finally:
            installer.uninstall(defer.Deferred)

    def test_rejects_non_targets(self, installer) -> None:
        with pytest.raises(PatchError):
            installer.install(defer.Deferred())
        with pytest.raises(PatchError, match="is not patched"):
            installer.uninstall(defer.Deferred)


class TestPatchedOperations:
    def test_returns_original_result(self, patched, namespace) -> None:
        d = defer.Deferred()
        assert d.addCallback(lambda r: r) is d
        assert d.addCallbacks(lambda r: r, lambda f: f) is d

    def test_keyword_callbacks_are_bound(self, patched, namespace) -> None:
        seen = []
        d = defer.Deferred()
        with namespace.scope(tag="kw"):
            d.addCallbacks(
                callback=_recording_handler(namespace, seen),
                errback=_recording_handler(namespace, seen),
            )
        d.callback(None)
        assert seen == ["kw"]

    def test_classmethods_stay_classmethods(self, patched) -> None:
        assert isinstance(vars(task.LoopingCall)["withCount"], classmethod)

    def test_module_function_is_replaced(self, patched) -> None:
        record = get_patch_record(task)
        assert record.patched == ["deferLater"]
        assert set(record.passthrough) >= {"coiterate", "cooperate"}

    def test_zero_slot_operations_never_touch_namespace(self, namespace) -> None:
        spy = Mock(wraps=namespace)
        spy.name = "spy"
        installer = PatchInstaller(CallbackBinder(spy))
        succeed = defer.succeed
        installer.install(defer)
        installer.install(defer.Deferred)
        try:
            spy.reset_mock()
            d = defer.succeed(1)
            d.pause()
            d.unpause()
            assert defer.succeed is succeed
            assert spy.capture.call_count == 0
            assert spy.enter.call_count == 0
        finally:
            installer.uninstall(defer.Deferred)
            installer.uninstall(defer)

    def test_inherited_operation_is_shadowed_and_restored(self, installer) -> None:
        assert "run" not in vars(defer.DeferredLock)
        installer.install(defer.DeferredLock)
        assert "run" in vars(defer.DeferredLock)
        installer.uninstall(defer.DeferredLock)
        assert "run" not in vars(defer.DeferredLock)

    def test_uninstall_restores_originals(self, installer) -> None:
        before = dict(vars(defer.Deferred))
        installer.install(defer.Deferred)
        installer.uninstall(defer.Deferred)

        after = dict(vars(defer.Deferred))
        assert after.keys() == before.keys()
        for name, value in before.items():
            assert after[name] is value


class TestVersionDrift:
    def test_missing_operations_are_skipped(self, binder, caplog) -> None:
        module = types.ModuleType("fake_promises")
        module.then = lambda fn: fn
        classifier = MethodClassifier(
            tables={
                "fake_promises": (
                    MethodSpec("then", bindable=True, callbacks=(CallbackSlot(0, "fn"),)),
                    MethodSpec("gone", bindable=True, callbacks=(CallbackSlot(0, "fn"),)),
                )
            }
        )
        installer = PatchInstaller(binder, classifier)

        with caplog.at_level("DEBUG", logger="TxContext"):
            installer.install(module)

        record = get_patch_record(module)
        assert record.patched == ["then"]
        assert record.missing == ["gone"]
        assert "not present" in caplog.text

    def test_signature_drift_is_skipped(self, binder) -> None:
        class Chain:
            def then(self, onward, handler):
                return handler

        classifier = MethodClassifier(
            tables={
                f"{__name__}.{Chain.__qualname__}": (
                    MethodSpec("then", bindable=True, callbacks=(CallbackSlot(0, "handler"),)),
                )
            }
        )
        installer = PatchInstaller(binder, classifier)
        installer.install(Chain)

        record = get_patch_record(Chain)
        assert record.unsupported == ["then"]
        assert record.patched == []

    def test_deferred_list_init_is_left_alone(self, patched) -> None:
        record = get_patch_record(defer.DeferredList)
        assert record.unsupported == ["__init__"]
        assert defer.DeferredList in get_patch_record(defer.Deferred).children


class TestSubclasses:
    def test_existing_subclass_overrides_are_patched(self, installer, namespace) -> None:
        class Tracked(defer.Deferred):
            def addCallback(self, callback, *args, **kwargs):
                return super().addCallback(callback, *args, **kwargs)

        installer.install(defer.Deferred)
        try:
            assert installer.is_installed(Tracked)
            seen = []
            d = Tracked()
            with namespace.scope(tag="sub"):
                d.addCallback(_recording_handler(namespace, seen))
            d.callback(None)
            assert seen == ["sub"]
        finally:
            installer.uninstall(defer.Deferred)
        assert not installer.is_installed(Tracked)

    def test_late_subclass_is_patched_on_construction(self, installer, namespace) -> None:
        installer.install(defer.Deferred)
        try:

            class Late(defer.Deferred):
                def addErrback(self, errback, *args, **kwargs):
                    return super().addErrback(errback, *args, **kwargs)

            assert not installer.is_installed(Late)
            assert classify_value(Late()) is ValueKind.OWN_TYPE
            assert installer.is_installed(Late)
            assert Late in get_patch_record(defer.Deferred).children

            seen = []
            d = Late()
            with namespace.scope(tag="late"):
                d.addErrback(lambda f: seen.append(namespace.get("tag")))
            d.errback(ValueError("x"))
            assert seen == ["late"]
        finally:
            installer.uninstall(defer.Deferred)
        assert not installer.is_installed(Late)


class TestAdapt:
    def test_adapted_class_binds_callbacks(self, installer, namespace) -> None:
        before = dict(vars(defer.Deferred))
        ContextDeferred = installer.adapt(defer.Deferred)

        assert ContextDeferred.__name__ == "ContextDeferred"
        assert issubclass(ContextDeferred, defer.Deferred)
        assert not installer.is_installed(defer.Deferred)
        assert dict(vars(defer.Deferred)) == before

        seen = []
        d = ContextDeferred()
        with namespace.scope(tag="adapted"):
            d.addCallback(_recording_handler(namespace, seen))
        d.callback(None)
        assert seen == ["adapted"]

    def test_base_class_stays_unbound(self, installer, namespace) -> None:
        installer.adapt(defer.Deferred)
        seen = []
        d = defer.Deferred()
        with namespace.scope(tag="base"):
            d.addCallback(_recording_handler(namespace, seen))
        d.callback(None)
        assert seen == [None]

    def test_adapted_instances_are_own_type(self, installer) -> None:
        ContextDeferred = installer.adapt(defer.Deferred)
        record = get_patch_record(ContextDeferred)

        assert classify_value(ContextDeferred()) is ValueKind.OWN_TYPE
        assert "addCallbacks" in record.patched
        assert "callback" in record.passthrough
        assert "callback" not in vars(ContextDeferred)

    def test_install_on_adapted_class_is_noop(self, installer) -> None:
        ContextDeferred = installer.adapt(defer.Deferred)
        wrapper = vars(ContextDeferred)["addCallback"]

        installer.install(ContextDeferred)

        assert vars(ContextDeferred)["addCallback"] is wrapper

    def test_adapted_class_outlives_base_patch(self, installer, namespace) -> None:
        installer.install(defer.Deferred)
        try:
            ContextDeferred = installer.adapt(defer.Deferred)
        finally:
            installer.uninstall(defer.Deferred)

        assert "addCallback" in get_patch_record(ContextDeferred).patched
        seen = []
        d = ContextDeferred()
        with namespace.scope(tag="A"):
            d.addCallback(_recording_handler(namespace, seen))
        d.callback(None)
        assert seen == ["A"]

    def test_adapted_over_patched_base_binds_once(
        self, installer, namespace, monkeypatch
    ) -> None:
        installer.install(defer.Deferred)
        try:
            ContextDeferred = installer.adapt(defer.Deferred)
            wrap = Mock(side_effect=installer.binder._wrap)
            monkeypatch.setattr(installer.binder, "_wrap", wrap)
            d = ContextDeferred()
            with namespace.scope(tag="once"):
                d.addCallback(lambda r: r)
            assert wrap.call_count == 1
        finally:
            installer.uninstall(defer.Deferred)

    def test_rejects_non_classes(self, installer) -> None:
        with pytest.raises(PatchError, match="expected a class"):
            installer.adapt(defer)


class TestClassifyValue:
    def test_kinds(self, installer) -> None:
        assert classify_value(defer.Deferred()) is ValueKind.FOREIGN
        assert classify_value(3) is ValueKind.FOREIGN
        installer.install(defer.Deferred)
        try:
            assert classify_value(defer.Deferred()) is ValueKind.OWN_TYPE
            assert classify_value(object()) is ValueKind.FOREIGN
        finally:
            installer.uninstall(defer.Deferred)

    def test_native_like(self, installer) -> None:
        installer.install(defer.Deferred)
        try:

            class Unseen(defer.Deferred):
                pass

            instance = object.__new__(Unseen)
            assert classify_value(instance) is ValueKind.NATIVE_LIKE
        finally:
            installer.uninstall(defer.Deferred)

