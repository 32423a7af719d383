from __future__ import annotations

import logging

from txcontext._internal.config import TxContextConfig, load_config, parse_bool


class TestTxContextConfig:
    def test_defaults(self) -> None:
        config = TxContextConfig()
        assert config.namespace == "txcontext"
        assert config.enabled is False
        assert config.patch_task is True
        assert config.log_level is None

    def test_apply_log_level(self) -> None:
        logger = logging.getLogger("TxContext.test-config")
        TxContextConfig(log_level="debug").apply_log_level(logger.name)
        assert logger.level == logging.DEBUG

        logger.setLevel(logging.NOTSET)
        TxContextConfig().apply_log_level(logger.name)
        assert logger.level == logging.NOTSET


class TestLoadConfig:
    def test_empty_environment(self) -> None:
        assert load_config({}) == TxContextConfig()

    def test_reads_variables(self) -> None:
        config = load_config(
            {
                "TXCONTEXT_NAMESPACE": "requests",
                "TXCONTEXT_ENABLED": "yes",
                "TXCONTEXT_PATCH_TASK": "0",
                "TXCONTEXT_LOG_LEVEL": "INFO",
            }
        )
        assert config.namespace == "requests"
        assert config.enabled is True
        assert config.patch_task is False
        assert config.log_level == "INFO"

    def test_blank_namespace_keeps_default(self) -> None:
        assert load_config({"TXCONTEXT_NAMESPACE": ""}).namespace == "txcontext"

    def test_reads_process_environment(self, monkeypatch) -> None:
        monkeypatch.setenv("TXCONTEXT_NAMESPACE", "from-env")
        assert load_config().namespace == "from-env"


def test_parse_bool() -> None:
    for value in ("true", "1", "YES", " on ", True):
        assert parse_bool(value) is True
    for value in ("false", "0", "no", "", False):
        assert parse_bool(value) is False
