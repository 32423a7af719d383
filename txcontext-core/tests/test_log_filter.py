from __future__ import annotations

import logging

import pytest
from twisted.internet import defer
from txcontext.core.log_filter import NamespaceLogFilter


@pytest.fixture
def records():
    captured: list[logging.LogRecord] = []

    class ListHandler(logging.Handler):
        def emit(self, record):
            captured.append(record)

    return captured, ListHandler()


class TestNamespaceLogFilter:
    def test_selected_keys_with_default(self, namespace, records) -> None:
        captured, handler = records
        handler.addFilter(NamespaceLogFilter(namespace, keys=["request_id"]))
        logger = logging.getLogger("TxContext.test-filter-keys")
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
        try:
            logger.info("outside")
            with namespace.scope(request_id="r-1"):
                logger.info("inside")
        finally:
            logger.removeHandler(handler)

        assert [r.request_id for r in captured] == ["-", "r-1"]

    def test_all_values(self, namespace, records) -> None:
        captured, handler = records
        handler.addFilter(NamespaceLogFilter(namespace))
        logger = logging.getLogger("TxContext.test-filter-all")
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
        try:
            with namespace.scope(user="dana", msg="must not clobber"):
                logger.info("hello")
        finally:
            logger.removeHandler(handler)

        record = captured[0]
        assert record.txcontext == {"user": "dana", "msg": "must not clobber"}
        assert record.user == "dana"
        assert record.getMessage() == "hello"

    def test_correlates_deferred_callbacks(self, patched, namespace, records) -> None:
        captured, handler = records
        handler.addFilter(NamespaceLogFilter(namespace, keys=["request_id"]))
        logger = logging.getLogger("TxContext.test-filter-deferred")
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
        try:
            d = defer.Deferred()
            with namespace.scope(request_id="r-2"):
                d.addCallback(lambda _: logger.info("callback ran"))
            d.callback(None)
        finally:
            logger.removeHandler(handler)

        assert captured[0].request_id == "r-2"
