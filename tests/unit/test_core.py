"""Unit tests for configuration, exceptions and logging."""

import logging

import orjson
import pytest
from pydantic import ValidationError as PydanticValidationError

from labportal.core.config import Settings
from labportal.core.exceptions import (
    InvalidTableShapeError,
    MalformedFormulaError,
    NonNumericResultError,
    PayloadTooLargeError,
    UnresolvedVariableError,
)
from labportal.core.logging import ConsoleFormatter, JSONFormatter


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self):
        settings = Settings(_env_file=None)
        assert settings.variable_column == "Variable"
        assert "LOQ" in settings.metadata_columns
        assert settings.comparison_epsilon == 1e-10
        assert settings.formula_column_workers == 1

    def test_comma_separated_lists(self):
        settings = Settings(
            _env_file=None,
            metadata_columns="id, Variable ,Unit",
            cors_origins="http://a.test,http://b.test",
        )
        assert settings.metadata_columns == ["id", "Variable", "Unit"]
        assert settings.cors_origins == ["http://a.test", "http://b.test"]

    def test_from_environment(self, monkeypatch):
        monkeypatch.setenv("FORMULA_COLUMN_WORKERS", "4")
        monkeypatch.setenv("VARIABLE_COLUMN", "Parametre")
        settings = Settings(_env_file=None)
        assert settings.formula_column_workers == 4
        assert settings.variable_column == "Parametre"

    def test_highlight_colors_normalized(self):
        settings = Settings(_env_file=None, default_highlight_color="FFEB3B")
        assert settings.default_highlight_color == "#ffeb3b"

    def test_invalid_values(self):
        with pytest.raises(PydanticValidationError):
            Settings(_env_file=None, error_highlight_color="red")
        with pytest.raises(PydanticValidationError):
            Settings(_env_file=None, comparison_epsilon=0)


class TestExceptions:
    """Tests for the formula error hierarchy."""

    def test_malformed_formula(self):
        error = MalformedFormulaError("[A] >", "missing right-hand expression")
        assert error.status_code == 400
        assert error.to_dict() == {
            "error": {
                "code": "MALFORMED_FORMULA",
                "message": "Malformed formula '[A] >': missing right-hand expression",
                "details": {"formula": "[A] >", "reason": "missing right-hand expression"},
            }
        }

    def test_unresolved_variable_deduplicates(self):
        error = UnresolvedVariableError(["A", "B", "A"])
        assert error.names == ["A", "B"]
        assert error.details == {"variables": ["A", "B"]}

    def test_non_numeric_result(self):
        error = NonNumericResultError("1 / 0", ZeroDivisionError("division by zero"))
        assert error.code == "NON_NUMERIC_RESULT"
        assert error.details["result"] == "division by zero"

    def test_table_errors(self):
        assert InvalidTableShapeError("no column", missing_column="Variable").status_code == 422
        error = PayloadTooLargeError("table rows", 10, 11)
        assert error.status_code == 413
        assert error.details == {"what": "table rows", "limit": 10, "received": 11}


class TestLogging:
    """Tests for log formatters."""

    def _record(self, **extra):
        record = logging.LogRecord(
            name="labportal.test",
            level=logging.WARNING,
            pathname=__file__,
            lineno=1,
            msg="Skipping malformed formula '%s'",
            args=("Bozuk",),
            exc_info=None,
        )
        record.__dict__.update(extra)
        return record

    def test_json_formatter(self):
        output = JSONFormatter().format(self._record(formula_id="İletkenlik-1"))
        payload = orjson.loads(output)
        assert payload["level"] == "WARNING"
        assert payload["message"] == "Skipping malformed formula 'Bozuk'"
        assert payload["extra"] == {"formula_id": "İletkenlik-1"}

    def test_console_formatter_restores_level(self):
        record = self._record()
        output = ConsoleFormatter("%(levelname)s %(message)s").format(record)
        assert "WARNING" in output
        assert record.levelname == "WARNING"
