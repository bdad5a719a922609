"""Tests for formula constants and logging configuration."""

import json
import logging

import pytest

from mortgage_calc.config import (
    CONSTANTS_ENV_VAR,
    DEFAULT_CONSTANTS,
    FormulaConstants,
    load_constants,
    resolve_constants,
)
from mortgage_calc.exceptions import ConfigurationError
from mortgage_calc.fees import notary_fees
from mortgage_calc.logging import JsonFormatter, get_logger, setup_logging


class TestFormulaConstants:
    """Test defaults and overrides of the formula constants."""

    def test_defaults(self) -> None:
        constants = FormulaConstants()
        assert constants.debt_ratio == 0.35
        assert constants.insurance_rates.up_to_40 == 0.00235
        assert constants.emoluments.thresholds == (6500.0, 17000.0, 60000.0)
        assert constants.iteration.max_iterations == 10
        assert constants.taeg.max_rate == 0.1

    def test_resolve_defaults(self) -> None:
        assert resolve_constants(None) is DEFAULT_CONSTANTS
        custom = FormulaConstants(debt_ratio=0.33)
        assert resolve_constants(custom) is custom

    def test_partial_override_keeps_other_values(self) -> None:
        constants = FormulaConstants.from_dict(
            {"debt_ratio": 0.33, "property_tax": {"old": 0.0580665}, "iteration": {"max_iterations": 20}}
        )
        assert constants.debt_ratio == 0.33
        assert constants.property_tax.old == 0.0580665
        assert constants.property_tax.new == 0.00715
        assert constants.iteration.max_iterations == 20
        assert isinstance(constants.iteration.max_iterations, int)
        assert constants.guarantee == DEFAULT_CONSTANTS.guarantee

    def test_tuple_override(self) -> None:
        constants = FormulaConstants.from_dict({"emoluments": {"thresholds": [5000, 15000, 50000]}})
        assert constants.emoluments.thresholds == (5000.0, 15000.0, 50000.0)

    def test_unknown_key(self) -> None:
        with pytest.raises(ConfigurationError, match="iteration.max_iteration"):
            FormulaConstants.from_dict({"iteration": {"max_iteration": 5}})

    def test_invalid_value(self) -> None:
        with pytest.raises(ConfigurationError, match="debt_ratio"):
            FormulaConstants.from_dict({"debt_ratio": "a third"})

    def test_group_must_be_mapping(self) -> None:
        with pytest.raises(ConfigurationError, match="must be a mapping"):
            FormulaConstants.from_dict({"taeg": 0.1})

    def test_invalid_group_is_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            FormulaConstants.from_dict({"emoluments": {"rates": [0.04, 0.02]}})

    def test_round_trip_through_dict(self) -> None:
        constants = FormulaConstants.from_dict({"disbursements": 1200})
        assert FormulaConstants.from_dict(constants.to_dict()) == constants

    def test_overrides_reach_the_formulas(self) -> None:
        constants = FormulaConstants.from_dict({"disbursements": 0, "contribution": {"minimum": 0}})
        assert notary_fees(200000, "old", constants=constants) == pytest.approx(
            notary_fees(200000, "old") - 1000
        )


class TestLoadConstants:
    """Test loading constants from files and the environment."""

    def test_load_from_file(self, tmp_path) -> None:
        path = tmp_path / "constants.json"
        path.write_text(json.dumps({"debt_ratio": 0.33}), encoding="utf-8")
        assert load_constants(path).debt_ratio == 0.33

    def test_missing_file(self, tmp_path) -> None:
        with pytest.raises(ConfigurationError, match="not found"):
            load_constants(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path) -> None:
        path = tmp_path / "constants.json"
        path.write_text("{debt_ratio: }", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="Invalid JSON"):
            load_constants(path)

    def test_from_env(self, tmp_path, monkeypatch) -> None:
        path = tmp_path / "constants.json"
        path.write_text(json.dumps({"guarantee": {"minimum": 800}}), encoding="utf-8")
        monkeypatch.setenv(CONSTANTS_ENV_VAR, str(path))
        assert FormulaConstants.from_env().guarantee.minimum == 800

    def test_from_env_unset(self, monkeypatch) -> None:
        monkeypatch.delenv(CONSTANTS_ENV_VAR, raising=False)
        assert FormulaConstants.from_env() == FormulaConstants()


class TestLogging:
    """Test logging setup."""

    def test_setup_standard(self) -> None:
        setup_logging("DEBUG")
        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert logging.getLogger("mortgage_calc").level == logging.DEBUG

    def test_setup_json(self) -> None:
        setup_logging("INFO", format_type="json")
        assert isinstance(logging.getLogger().handlers[0].formatter, JsonFormatter)

    def test_unknown_level_falls_back_to_warning(self) -> None:
        setup_logging("chatty")
        assert logging.getLogger().level == logging.WARNING

    def test_json_formatter(self) -> None:
        record = logging.LogRecord(
            name="mortgage_calc.engine",
            level=logging.INFO,
            pathname=__file__,
            lineno=1,
            msg="Recalculated: loan=%.2f",
            args=(169068.73,),
            exc_info=None,
        )
        data = json.loads(JsonFormatter().format(record))
        assert data["level"] == "INFO"
        assert data["logger"] == "mortgage_calc.engine"
        assert data["message"] == "Recalculated: loan=169068.73"
        assert "timestamp" in data

    def test_get_logger(self) -> None:
        assert get_logger("mortgage_calc.test").name == "mortgage_calc.test"

    def test_json_timestamp_is_the_record_time(self) -> None:
        record = logging.LogRecord("mortgage_calc", logging.WARNING, __file__, 1, "capped", None, None)
        record.created = 0.0
        data = json.loads(JsonFormatter().format(record))
        assert data["timestamp"] == "1970-01-01T00:00:00+00:00"
