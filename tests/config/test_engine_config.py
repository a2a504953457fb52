"""
Tests for engine configuration loading, validation and bridging.

Covers:
- Loader (load_config_set) -- YAML parsing, settings, checksum
- Validator -- structural and formula errors, one-sided warnings
- Integrity -- APPROVED_FINGERPRINT pinning
- End-to-end (get_active_config) -- default set and custom directories
- Bridges -- GenerationSettings and a seeded repository
"""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path

import pytest
import yaml

from journal_config import (
    ConfigIntegrityError,
    ConfigValidationError,
    get_active_config,
)
from journal_config.bridges import build_generation_settings, build_pattern_repository
from journal_config.integrity import PINFILE_NAME
from journal_config.loader import compute_checksum, load_config_set
from journal_config.validator import validate_configuration
from journal_kernel.services import JournalGenerationService
from journal_kernel.services.memory import InMemoryJournalPoster

from tests.builders import make_request

SALE_PATTERN = {
    "code": "P001",
    "name": "Cash sale",
    "source_table_name": "sales",
    "lines": [
        {"line_number": 1, "debit_credit_type": "D", "account_code": "1100",
         "amount_formula": "amount", "description_template": "Sale {invoice_no}"},
        {"line_number": 2, "debit_credit_type": "C", "account_code": "4100",
         "amount_formula": "amount"},
    ],
}


def _write_set(
    directory: Path,
    patterns: list[dict] | None = None,
    settings: dict | None = None,
    config_id: str = "test-set",
) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    engine = {"config_id": config_id, "version": 2, "settings": settings or {}}
    (directory / "engine.yaml").write_text(yaml.safe_dump(engine))
    if patterns is not None:
        (directory / "patterns.yaml").write_text(yaml.safe_dump({"patterns": patterns}))
    return directory


# =========================================================================
# Loader
# =========================================================================


class TestLoader:

    def test_loads_patterns_and_settings(self, tmp_path):
        _write_set(
            tmp_path,
            [SALE_PATTERN],
            {"balance_tolerance": "0.05", "strict_placeholders": False},
        )
        config = load_config_set(tmp_path)

        assert config.config_id == "test-set"
        assert config.version == 2
        assert config.settings.balance_tolerance == Decimal("0.05")
        assert config.settings.strict_placeholders is False
        (pattern,) = config.patterns
        assert pattern.code == "P001"
        assert pattern.is_active
        assert pattern.lines[0].description_template == "Sale {invoice_no}"
        assert config.pattern("P001") is pattern
        assert config.pattern("NOPE") is None

    def test_default_settings(self, tmp_path):
        config = load_config_set(_write_set(tmp_path, [SALE_PATTERN]))
        assert config.settings.balance_tolerance == Decimal("0.01")
        assert config.settings.strict_placeholders is True

    def test_float_tolerance_kept_exact(self, tmp_path):
        config = load_config_set(
            _write_set(tmp_path, [SALE_PATTERN], {"balance_tolerance": 0.01})
        )
        assert config.settings.balance_tolerance == Decimal("0.01")

    def test_non_numeric_tolerance(self, tmp_path):
        _write_set(tmp_path, [SALE_PATTERN], {"balance_tolerance": "lots"})
        with pytest.raises(ValueError, match="balance_tolerance"):
            load_config_set(tmp_path)

    @pytest.mark.parametrize("raw", ["false", "no", 0, None])
    def test_non_boolean_strict_placeholders(self, tmp_path, raw):
        _write_set(tmp_path, [SALE_PATTERN], {"strict_placeholders": raw})
        with pytest.raises(ValueError, match="strict_placeholders"):
            load_config_set(tmp_path)

    def test_quoted_is_active_rejected(self, tmp_path):
        _write_set(tmp_path, [dict(SALE_PATTERN, is_active="false")])
        with pytest.raises(ValueError, match="is_active"):
            load_config_set(tmp_path)

    def test_missing_patterns_file(self, tmp_path):
        assert load_config_set(_write_set(tmp_path)).patterns == ()

    def test_missing_engine_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config_set(tmp_path)

    def test_missing_required_key(self, tmp_path):
        broken = {k: v for k, v in SALE_PATTERN.items() if k != "name"}
        with pytest.raises(KeyError):
            load_config_set(_write_set(tmp_path, [broken]))

    def test_checksum_tracks_content(self, tmp_path):
        first = load_config_set(_write_set(tmp_path / "a", [SALE_PATTERN])).checksum
        same = load_config_set(_write_set(tmp_path / "b", [SALE_PATTERN])).checksum
        edited = dict(SALE_PATTERN, name="Edited")
        changed = load_config_set(_write_set(tmp_path / "c", [edited])).checksum
        assert first == same
        assert first != changed

    def test_compute_checksum_is_key_order_independent(self):
        assert compute_checksum({"a": 1, "b": 2}) == compute_checksum({"b": 2, "a": 1})


# =========================================================================
# Validator
# =========================================================================


class TestValidator:

    def _validate(self, tmp_path, patterns, settings=None):
        return validate_configuration(load_config_set(_write_set(tmp_path, patterns, settings)))

    def test_valid_set(self, tmp_path):
        result = self._validate(tmp_path, [SALE_PATTERN])
        assert result.is_valid
        assert result.warnings == []

    def test_duplicate_codes(self, tmp_path):
        result = self._validate(tmp_path, [SALE_PATTERN, SALE_PATTERN])
        assert any("Duplicate pattern code: P001" in e for e in result.errors)

    def test_pattern_without_lines(self, tmp_path):
        result = self._validate(tmp_path, [dict(SALE_PATTERN, lines=[])])
        assert any("has no lines" in e for e in result.errors)

    def test_duplicate_line_numbers(self, tmp_path):
        lines = [dict(line, line_number=1) for line in SALE_PATTERN["lines"]]
        result = self._validate(tmp_path, [dict(SALE_PATTERN, lines=lines)])
        assert any("duplicate line number 1" in e for e in result.errors)

    def test_bad_line_number(self, tmp_path):
        lines = [dict(SALE_PATTERN["lines"][0], line_number=0), SALE_PATTERN["lines"][1]]
        result = self._validate(tmp_path, [dict(SALE_PATTERN, lines=lines)])
        assert any("positive integer" in e for e in result.errors)

    def test_bad_side(self, tmp_path):
        lines = [dict(SALE_PATTERN["lines"][0], debit_credit_type="X"), SALE_PATTERN["lines"][1]]
        result = self._validate(tmp_path, [dict(SALE_PATTERN, lines=lines)])
        assert any("'D' or 'C'" in e for e in result.errors)

    def test_every_bad_formula_reported(self, tmp_path):
        lines = [
            dict(SALE_PATTERN["lines"][0], amount_formula="amount *"),
            dict(SALE_PATTERN["lines"][1], amount_formula="(amount"),
        ]
        result = self._validate(tmp_path, [dict(SALE_PATTERN, lines=lines)])
        assert len(result.errors) == 2
        assert "line 1" in result.errors[0]
        assert "line 2" in result.errors[1]

    def test_negative_tolerance(self, tmp_path):
        result = self._validate(tmp_path, [SALE_PATTERN], {"balance_tolerance": "-0.01"})
        assert any("balance_tolerance" in e for e in result.errors)

    def test_one_sided_pattern_warns(self, tmp_path):
        lines = [SALE_PATTERN["lines"][0]]
        result = self._validate(tmp_path, [dict(SALE_PATTERN, lines=lines)])
        assert result.is_valid
        assert any("only debit lines" in w for w in result.warnings)


# =========================================================================
# get_active_config / integrity
# =========================================================================


class TestGetActiveConfig:

    def test_default_set_loads(self):
        config = get_active_config()
        assert config.config_id == "default"
        assert {p.code for p in config.patterns} >= {"P001", "P002", "P003"}

    def test_custom_directory(self, tmp_path):
        config = get_active_config(_write_set(tmp_path, [SALE_PATTERN]))
        assert config.config_id == "test-set"

    def test_accepts_string_path(self, tmp_path):
        config = get_active_config(str(_write_set(tmp_path, [SALE_PATTERN])))
        assert config.patterns[0].code == "P001"

    def test_invalid_set_raises(self, tmp_path):
        _write_set(tmp_path, [SALE_PATTERN, SALE_PATTERN])
        with pytest.raises(ConfigValidationError) as exc_info:
            get_active_config(tmp_path)
        assert exc_info.value.config_id == "test-set"
        assert exc_info.value.code == "CONFIG_VALIDATION_FAILED"

    def test_matching_pin_accepted(self, tmp_path):
        _write_set(tmp_path, [SALE_PATTERN])
        checksum = load_config_set(tmp_path).checksum
        (tmp_path / PINFILE_NAME).write_text(checksum + "\n")
        assert get_active_config(tmp_path).checksum == checksum

    def test_stale_pin_rejected(self, tmp_path):
        _write_set(tmp_path, [SALE_PATTERN])
        (tmp_path / PINFILE_NAME).write_text("0" * 64 + "\n")
        with pytest.raises(ConfigIntegrityError) as exc_info:
            get_active_config(tmp_path)
        assert exc_info.value.expected == "0" * 64


# =========================================================================
# Bridges
# =========================================================================


class TestBridges:

    def test_generation_settings(self, tmp_path):
        config = get_active_config(
            _write_set(tmp_path, [SALE_PATTERN], {"balance_tolerance": "0.10"})
        )
        settings = build_generation_settings(config)
        assert settings.balance_tolerance == Decimal("0.10")
        assert settings.strict_placeholders is True

    def test_seeded_repository_generates(self):
        config = get_active_config()
        service = JournalGenerationService(
            build_pattern_repository(config),
            InMemoryJournalPoster(),
            settings=build_generation_settings(config),
        )
        result = service.generate(
            make_request(
                "P002",
                variable_values={"net": "1000", "tax": "100"},
                description_context={"invoice_no": "INV-9"},
            )
        )
        assert result.entry.total_debit == Decimal("1100.00")
        assert result.entry.lines[2].description == "Output tax INV-9"

    def test_default_depreciation_pattern(self):
        config = get_active_config()
        service = JournalGenerationService(
            build_pattern_repository(config), InMemoryJournalPoster()
        )
        result = service.generate(
            make_request(
                "P003",
                variable_values={"cost": "36000"},
                description_context={"period": "2024-03"},
            )
        )
        assert [line.amount for line in result.entry.lines] == [
            Decimal("3000.00"),
            Decimal("3000.00"),
        ]
