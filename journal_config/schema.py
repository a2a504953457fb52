"""
EngineConfiguration schema.

Defines the human-authored, reviewable source artifact for the journal
engine. YAML files are parsed into these types by the loader, checked by
the validator, and turned into kernel inputs by the bridges.

Key distinction:
  PatternDef / PatternLineDef = source artifact (raw, as authored)
  journal_kernel Pattern      = runtime value (validated on construction)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

# ---------------------------------------------------------------------------
# Engine settings
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EngineSettingsDef:
    """Generation knobs from engine.yaml."""

    balance_tolerance: Decimal = Decimal("0.01")
    strict_placeholders: bool = True


# ---------------------------------------------------------------------------
# Pattern definitions (declarative data, no executable logic)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PatternLineDef:
    """One authored pattern line. Fields are kept as written."""

    line_number: Any
    debit_credit_type: str
    account_code: str
    amount_formula: str
    description_template: str | None = None


@dataclass(frozen=True)
class PatternDef:
    """An authored pattern with its lines."""

    code: str
    name: str
    source_table_name: str
    lines: tuple[PatternLineDef, ...] = ()
    description: str | None = None
    is_active: bool = True


# ---------------------------------------------------------------------------
# Root artifact
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EngineConfiguration:
    """The complete configuration set loaded from one directory."""

    config_id: str
    version: int
    settings: EngineSettingsDef = field(default_factory=EngineSettingsDef)
    patterns: tuple[PatternDef, ...] = ()
    checksum: str = ""

    def pattern(self, code: str) -> PatternDef | None:
        for p in self.patterns:
            if p.code == code:
                return p
        return None
