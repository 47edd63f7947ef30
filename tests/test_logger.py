"""Tests for logger.py — setup_logging() and JsonFormatter.

Covers:
- stderr handler always installed
- Optional file handler (argument or LOG_FILE env var)
- Level selection: debug flag > level argument > LOG_LEVEL > INFO
- JSON formatter output

Strategy: Mock logging.basicConfig to verify setup_logging passes correct args,
since pytest's log capture plugin interferes with actual basicConfig calls.
"""

import json
import logging
import sys
from unittest.mock import patch

import pytest

from rewrite.logger import JsonFormatter, setup_logging


def _close(handlers):
    for h in handlers:
        if isinstance(h, logging.FileHandler):
            h.close()


# ---------------------------------------------------------------------------
# setup_logging tests
# ---------------------------------------------------------------------------


class TestSetupLogging:
    """Tests for setup_logging()."""

    @patch("rewrite.logger.logging.basicConfig")
    def test_logs_to_stderr(self, mock_basic):
        """A StreamHandler(stderr) is always passed to basicConfig."""
        setup_logging()

        mock_basic.assert_called_once()
        kwargs = mock_basic.call_args[1]
        handlers = kwargs["handlers"]
        assert len(handlers) == 1
        assert isinstance(handlers[0], logging.StreamHandler)
        assert handlers[0].stream is sys.stderr
        assert kwargs["force"] is True

    @patch("rewrite.logger.logging.basicConfig")
    def test_default_level_is_info(self, mock_basic):
        setup_logging()
        assert mock_basic.call_args[1]["level"] == logging.INFO

    @patch("rewrite.logger.logging.basicConfig")
    def test_debug_overrides_level(self, mock_basic):
        setup_logging(debug=True, level="ERROR")
        assert mock_basic.call_args[1]["level"] == logging.DEBUG

    @patch("rewrite.logger.logging.basicConfig")
    def test_env_log_level_honored(self, mock_basic, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "error")
        setup_logging()
        assert mock_basic.call_args[1]["level"] == logging.ERROR

    @patch("rewrite.logger.logging.basicConfig")
    def test_level_argument_beats_env(self, mock_basic, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "ERROR")
        setup_logging(level="WARNING")
        assert mock_basic.call_args[1]["level"] == logging.WARNING

    @patch("rewrite.logger.logging.basicConfig")
    def test_unknown_level_falls_back_to_info(self, mock_basic, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "chatty")
        setup_logging()
        assert mock_basic.call_args[1]["level"] == logging.INFO

    @patch("rewrite.logger.logging.basicConfig")
    def test_log_file_adds_file_handler(self, mock_basic, tmp_path):
        log_file = str(tmp_path / "rewrite.log")
        setup_logging(log_file=log_file)

        handlers = mock_basic.call_args[1]["handlers"]
        file_handlers = [h for h in handlers if isinstance(h, logging.FileHandler)]
        assert len(handlers) == 2
        assert file_handlers[0].baseFilename == log_file
        _close(handlers)

    @patch("rewrite.logger.logging.basicConfig")
    def test_log_file_from_env(self, mock_basic, tmp_path, monkeypatch):
        log_file = str(tmp_path / "env.log")
        monkeypatch.setenv("LOG_FILE", log_file)
        setup_logging()

        handlers = mock_basic.call_args[1]["handlers"]
        assert any(
            isinstance(h, logging.FileHandler) and h.baseFilename == log_file
            for h in handlers
        )
        _close(handlers)

    @patch("rewrite.logger.logging.basicConfig")
    def test_file_lines_carry_logger_name(self, mock_basic, tmp_path):
        setup_logging(log_file=str(tmp_path / "x.log"))

        stderr_handler, file_handler = mock_basic.call_args[1]["handlers"]
        assert "%(name)s" not in stderr_handler.formatter._fmt
        assert "%(name)s" in file_handler.formatter._fmt
        _close([file_handler])

    @pytest.mark.parametrize("with_file", [False, True])
    @patch("rewrite.logger.logging.basicConfig")
    def test_json_format_uses_json_formatter(self, mock_basic, tmp_path, with_file):
        log_file = str(tmp_path / "json.log") if with_file else None
        setup_logging(debug_format="json", log_file=log_file)

        handlers = mock_basic.call_args[1]["handlers"]
        assert all(isinstance(h.formatter, JsonFormatter) for h in handlers)
        _close(handlers)


# ---------------------------------------------------------------------------
# JsonFormatter tests
# ---------------------------------------------------------------------------


def _record(msg, args=(), level=logging.INFO, exc_info=None, name="rewrite.project"):
    return logging.LogRecord(
        name=name,
        level=level,
        pathname="project.py",
        lineno=1,
        msg=msg,
        args=args,
        exc_info=exc_info,
    )


class TestJsonFormatter:
    """Tests for JsonFormatter."""

    def test_basic_output(self):
        """Formatted output is valid JSON with required keys."""
        formatter = JsonFormatter(datefmt="%Y-%m-%d %H:%M:%S")
        data = json.loads(formatter.format(_record("Loaded %d source(s)", (3,))))

        assert "ts" in data
        assert data["level"] == "INFO"
        assert data["logger"] == "rewrite.project"
        assert data["msg"] == "Loaded 3 source(s)"

    def test_includes_exception(self):
        """Exception info is included in 'exc' key."""
        formatter = JsonFormatter(datefmt="%Y-%m-%d %H:%M:%S")
        try:
            raise ValueError("test error")
        except ValueError:
            exc_info = sys.exc_info()

        data = json.loads(
            formatter.format(_record("Hook failed", level=logging.ERROR, exc_info=exc_info))
        )
        assert "ValueError" in data["exc"]
        assert "test error" in data["exc"]

    def test_single_line_output(self):
        """Output is a single line even for multi-line messages."""
        formatter = JsonFormatter()
        output = formatter.format(_record("first\nsecond"))
        assert "\n" not in output
        assert json.loads(output)["msg"] == "first\nsecond"
