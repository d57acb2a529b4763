"""
Tests for structlog configuration.
"""

import structlog

from fga_typegen.logging import configure_logging


class TestConfigureLogging:
    """Test renderer and level selection."""

    def test_json_when_not_a_terminal(self, monkeypatch):
        monkeypatch.delenv("FORCE_COLOR", raising=False)
        configure_logging()
        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)

    def test_force_color(self, monkeypatch):
        monkeypatch.setenv("FORCE_COLOR", "1")
        configure_logging()
        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)

    def test_info_level_by_default(self, monkeypatch, capsys):
        monkeypatch.delenv("FORCE_COLOR", raising=False)
        configure_logging()
        logger = structlog.get_logger("test")
        logger.debug("hidden")
        logger.info("shown", answer=42)
        err = capsys.readouterr().err
        assert "hidden" not in err
        assert '"event": "shown"' in err
        assert '"answer": 42' in err

    def test_verbose_enables_debug(self, monkeypatch, capsys):
        monkeypatch.delenv("FORCE_COLOR", raising=False)
        configure_logging(verbose=True)
        structlog.get_logger("test").debug("visible")
        assert '"event": "visible"' in capsys.readouterr().err
