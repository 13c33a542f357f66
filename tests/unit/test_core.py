"""Unit tests for configuration, logging and exceptions."""

import logging

import orjson
import pytest
from pydantic import ValidationError

from pytemplate.core.config import Settings, settings
from pytemplate.core.exceptions import (
    ColumnUpdateError,
    FormulaValidationError,
    NotFoundError,
    PyTemplateException,
)
from pytemplate.core.logging import ConsoleFormatter, JSONFormatter, get_logger, setup_logging


def make_record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="pytemplate.test",
        level=logging.WARNING,
        pathname=__file__,
        lineno=10,
        msg="Cascade update failed for column %s",
        args=("total_0",),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture
def restore_root_logger():
    """Put the root logger back the way the test runner configured it."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    lark_level = logging.getLogger("lark").level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)
    logging.getLogger("lark").setLevel(lark_level)


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self):
        """Test default settings."""
        config = Settings()
        assert config.formula_max_length == 10000
        assert config.preview_decimal_places == 2

    def test_log_level_normalized(self):
        """Test that the log level accepts any casing."""
        assert Settings(log_level=" debug ").log_level == "DEBUG"

    def test_environment_override(self, monkeypatch):
        """Test reading settings from the environment."""
        monkeypatch.setenv("FORMULA_MAX_LENGTH", "500")
        assert Settings().formula_max_length == 500

    @pytest.mark.parametrize(
        "field, value",
        [("formula_max_length", 0), ("preview_decimal_places", -1), ("preview_decimal_places", 11)],
    )
    def test_bounds(self, field, value):
        """Test that out-of-range values are rejected."""
        with pytest.raises(ValidationError):
            Settings(**{field: value})


class TestLogging:
    """Tests for log formatters."""

    def test_json_formatter(self):
        """Test that records become JSON with extras."""
        line = JSONFormatter().format(make_record(updated=2, failed=1))
        data = orjson.loads(line)
        assert data["level"] == "WARNING"
        assert data["logger"] == "pytemplate.test"
        assert data["message"] == "Cascade update failed for column total_0"
        assert data["extra"] == {"updated": 2, "failed": 1}

    def test_json_formatter_without_extras(self):
        """Test that no extra block is written when there are no extras."""
        data = orjson.loads(JSONFormatter().format(make_record()))
        assert "extra" not in data

    def test_console_formatter_keeps_record(self):
        """Test that colouring the level does not alter the record."""
        record = make_record()
        output = ConsoleFormatter("%(levelname)s %(message)s").format(record)
        assert "Cascade update failed for column total_0" in output
        assert record.levelname == "WARNING"


class TestExceptions:
    """Tests for the exception hierarchy."""

    def test_to_dict(self):
        """Test the API error shape."""
        error = FormulaValidationError("Missing operators between columns", column_key="total_0")
        assert error.to_dict() == {
            "error": {
                "code": "INVALID_FORMULA",
                "message": "Missing operators between columns",
                "details": {"column_key": "total_0"},
            }
        }

    def test_default_code(self):
        """Test that the class name is the default code."""
        assert PyTemplateException("boom").code == "PyTemplateException"

    def test_not_found(self):
        """Test NotFoundError defaults."""
        error = NotFoundError(column_id="c1")
        assert error.message == "Column not found"
        assert error.details == {"column_id": "c1"}
        assert isinstance(error, PyTemplateException)

    def test_column_update_error(self):
        """Test ColumnUpdateError details."""
        error = ColumnUpdateError("c1", "timeout")
        assert error.code == "COLUMN_UPDATE_FAILED"
        assert str(error) == "Failed to update column 'c1': timeout"


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_json_logs(self, restore_root_logger):
        """Test that production logging installs the JSON formatter."""
        setup_logging(log_level="debug", json_logs=True)

        assert restore_root_logger.level == logging.DEBUG
        assert len(restore_root_logger.handlers) == 1
        assert isinstance(restore_root_logger.handlers[0].formatter, JSONFormatter)
        assert logging.getLogger("lark").level == logging.WARNING

    def test_console_logs(self, restore_root_logger):
        """Test that development logging uses the console formatter and custom format."""
        setup_logging(log_level="WARNING", log_format="%(levelname)s %(message)s")

        formatter = restore_root_logger.handlers[0].formatter
        assert isinstance(formatter, ConsoleFormatter)
        assert formatter._fmt == "%(levelname)s %(message)s"
        assert restore_root_logger.level == logging.WARNING

    def test_defaults_from_settings(self, restore_root_logger, monkeypatch):
        """Test that level and format come from settings when not given."""
        monkeypatch.setattr(settings, "log_level", "ERROR")
        monkeypatch.setattr(settings, "json_logs", True)

        setup_logging()

        assert restore_root_logger.level == logging.ERROR
        assert isinstance(restore_root_logger.handlers[0].formatter, JSONFormatter)

    def test_get_logger(self):
        """Test that module loggers are named after the module."""
        assert get_logger("pytemplate.formula.parser").name == "pytemplate.formula.parser"
