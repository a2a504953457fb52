"""
Configuration Loader (``journal_config.loader``).

Responsibility
--------------
Loads the YAML files of one configuration set directory and parses them
into typed ``journal_config.schema`` dataclass instances. Runtime callers
go through ``journal_config.get_active_config()`` instead.

Files
-----
* ``engine.yaml``   -- ``config_id``, ``version``, ``settings``
* ``patterns.yaml`` -- ``patterns: [...]`` (optional; absent means none)

Failure modes
-------------
* Missing ``engine.yaml``  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Unparseable tolerance  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from journal_config.schema import (
    EngineConfiguration,
    EngineSettingsDef,
    PatternDef,
    PatternLineDef,
)

ENGINE_FILE = "engine.yaml"
PATTERNS_FILE = "patterns.yaml"


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_decimal_setting(name: str, value: Any) -> Decimal:
    """Parse a decimal setting. Floats go through str() to keep 0.01 exact."""
    if isinstance(value, bool):
        raise ValueError(f"Setting '{name}' must be a number, got {value!r}")
    try:
        parsed = Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"Setting '{name}' must be a number, got {value!r}") from None
    if not parsed.is_finite():
        raise ValueError(f"Setting '{name}' must be finite, got {value!r}")
    return parsed


def parse_bool_setting(name: str, value: Any) -> bool:
    """Parse a boolean setting. Only YAML booleans are accepted, never strings."""
    if not isinstance(value, bool):
        raise ValueError(f"Setting '{name}' must be true or false, got {value!r}")
    return value


def parse_settings(data: dict[str, Any]) -> EngineSettingsDef:
    defaults = EngineSettingsDef()
    return EngineSettingsDef(
        balance_tolerance=parse_decimal_setting(
            "balance_tolerance", data.get("balance_tolerance", defaults.balance_tolerance)
        ),
        strict_placeholders=parse_bool_setting(
            "strict_placeholders",
            data.get("strict_placeholders", defaults.strict_placeholders),
        ),
    )


def parse_pattern_line(data: dict[str, Any]) -> PatternLineDef:
    """Parse a PatternLineDef. Values are kept as authored; the validator judges them."""
    return PatternLineDef(
        line_number=data["line_number"],
        debit_credit_type=str(data["debit_credit_type"]),
        account_code=str(data["account_code"]),
        amount_formula=str(data["amount_formula"]),
        description_template=data.get("description_template"),
    )


def parse_pattern(data: dict[str, Any]) -> PatternDef:
    """
    Parse a ``PatternDef`` from a dict.

    Raises:
        KeyError: if ``code``, ``name`` or ``source_table_name`` is missing,
            or a line lacks a required key.
        ValueError: if ``is_active`` is not a boolean.
    """
    return PatternDef(
        code=str(data["code"]),
        name=data["name"],
        source_table_name=data["source_table_name"],
        lines=tuple(parse_pattern_line(line) for line in data.get("lines", [])),
        description=data.get("description"),
        is_active=parse_bool_setting("is_active", data.get("is_active", True)),
    )


def load_config_set(config_dir: Path) -> EngineConfiguration:
    """
    Load one configuration set directory.

    Postconditions:
        - ``checksum`` is the SHA-256 of the canonical JSON of both raw
          files, so any content change changes it.
    """
    config_dir = Path(config_dir)
    engine_raw = load_yaml_file(config_dir / ENGINE_FILE)
    patterns_path = config_dir / PATTERNS_FILE
    patterns_raw = load_yaml_file(patterns_path) if patterns_path.is_file() else {}

    return EngineConfiguration(
        config_id=engine_raw["config_id"],
        version=int(engine_raw.get("version", 1)),
        settings=parse_settings(engine_raw.get("settings") or {}),
        patterns=tuple(parse_pattern(p) for p in patterns_raw.get("patterns") or []),
        checksum=compute_checksum({"engine": engine_raw, "patterns": patterns_raw}),
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
