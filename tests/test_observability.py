"""Tests for logging configuration."""

import json

import structlog

from taskboard.observability import configure_logging


class TestConfigureLogging:
    def test_production_renders_json(self, capsys, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "INFO")
        configure_logging(environment="production")

        structlog.get_logger("test").info("move_committed", task_id=3)

        line = capsys.readouterr().err.strip()
        record = json.loads(line)
        assert record["event"] == "move_committed"
        assert record["task_id"] == 3
        assert record["level"] == "info"
        assert "timestamp" in record

    def test_default_level_hides_info(self, capsys, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        configure_logging(environment="production")

        log = structlog.get_logger("test")
        log.info("quiet")
        log.warning("loud")

        err = capsys.readouterr().err
        assert "quiet" not in err
        assert "loud" in err

    def test_format_from_env(self, capsys, monkeypatch):
        monkeypatch.setenv("TASKBOARD_LOG_FORMAT", "development")
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        configure_logging()

        structlog.get_logger("test").warning("move_rejected", reason="self_drop")

        err = capsys.readouterr().err
        assert "move_rejected" in err
        assert "self_drop" in err
        assert not err.lstrip().startswith("{")

    def test_logs_stay_off_stdout(self, capsys, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        configure_logging(environment="production")

        structlog.get_logger("test").debug("move_reconciled")

        captured = capsys.readouterr()
        assert captured.out == ""
        assert "move_reconciled" in captured.err
