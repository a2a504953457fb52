"""
Pattern -- immutable auto-journal pattern definitions.

Responsibility:
    Defines Pattern (a reusable template for a multi-line journal entry),
    PatternLine (one debit or credit line with an account and an amount
    formula), and PatternSnapshot (the frozen capture a generation call
    evaluates against).

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - A pattern has at least one line.
    - Line numbers are >= 1 and unique within a pattern.
    - A pattern's code never changes (with_changes refuses it).
    - SNAPSHOT_ISOLATION -- patterns are frozen and their lines are tuples, so
      a captured snapshot cannot be changed by later edits.

Failure modes:
    - InvalidPatternLineError on a malformed line field
    - EmptyPatternError on a pattern with no lines
    - DuplicateLineNumberError on repeated line numbers
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Iterable

from journal_kernel.domain.formula import validate_formula
from journal_kernel.exceptions import (
    DuplicateLineNumberError,
    EmptyPatternError,
    FormulaSyntaxError,
    InvalidPatternLineError,
)


class DebitCreditType(str, Enum):
    """Which side of the entry a pattern line lands on."""

    DEBIT = "D"
    CREDIT = "C"

    @classmethod
    def _missing_(cls, value: object) -> DebitCreditType | None:
        if isinstance(value, str):
            normalized = value.strip().upper()
            aliases = {"D": cls.DEBIT, "DEBIT": cls.DEBIT, "C": cls.CREDIT, "CREDIT": cls.CREDIT}
            return aliases.get(normalized)
        return None


@dataclass(frozen=True, slots=True)
class PatternLine:
    """
    One debit or credit line within a pattern.

    Contract:
        ``line_number`` defines emission order. ``account_code`` is a foreign
        reference owned by the chart of accounts. ``amount_formula`` is only
        checked for presence here; grammar checks happen at authoring time
        (PatternService) and at evaluation time (line evaluator).
    """

    line_number: int
    debit_credit_type: DebitCreditType
    account_code: str
    amount_formula: str
    description_template: str | None = None

    def __post_init__(self) -> None:
        if isinstance(self.line_number, bool) or not isinstance(self.line_number, int):
            raise InvalidPatternLineError(None, "line_number", "must be an integer")
        if self.line_number < 1:
            raise InvalidPatternLineError(self.line_number, "line_number", "must be >= 1")

        try:
            side = DebitCreditType(self.debit_credit_type)
        except ValueError:
            raise InvalidPatternLineError(
                self.line_number,
                "debit_credit_type",
                f"must be 'D' or 'C', got {self.debit_credit_type!r}",
            ) from None
        object.__setattr__(self, "debit_credit_type", side)

        for name in ("account_code", "amount_formula"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise InvalidPatternLineError(self.line_number, name, "is required")
        object.__setattr__(self, "account_code", self.account_code.strip())

        if self.description_template is not None and not isinstance(
            self.description_template, str
        ):
            raise InvalidPatternLineError(
                self.line_number, "description_template", "must be a string"
            )

    @property
    def is_debit(self) -> bool:
        return self.debit_credit_type == DebitCreditType.DEBIT


@dataclass(frozen=True, slots=True)
class Pattern:
    """
    Reusable template describing how to build a journal entry.

    Contract:
        Immutable. Edits produce a new Pattern via ``with_changes``; the
        repository swaps whole values, so readers never see a half-edited
        pattern.

    Guarantees:
        - ``lines`` is always a tuple with at least one PatternLine
        - line numbers are unique
        - ``code`` is non-blank and cannot be changed by ``with_changes``
    """

    code: str
    name: str
    source_table_name: str
    lines: tuple[PatternLine, ...]
    description: str | None = None
    is_active: bool = True

    def __post_init__(self) -> None:
        if not isinstance(self.code, str) or not self.code.strip():
            raise ValueError("Pattern code is required")
        if not isinstance(self.name, str) or not self.name.strip():
            raise ValueError("Pattern name is required")
        if not isinstance(self.source_table_name, str) or not self.source_table_name.strip():
            raise ValueError("Pattern source_table_name is required")

        lines = tuple(
            line if isinstance(line, PatternLine) else build_lines([line])[0]
            for line in self.lines
        )
        if not lines:
            raise EmptyPatternError(self.code)
        seen: set[int] = set()
        for line in lines:
            if line.line_number in seen:
                raise DuplicateLineNumberError(self.code, line.line_number)
            seen.add(line.line_number)
        object.__setattr__(self, "lines", lines)

    @property
    def sorted_lines(self) -> tuple[PatternLine, ...]:
        """Lines in ascending line-number (emission) order."""
        return tuple(sorted(self.lines, key=lambda line: line.line_number))

    def with_changes(self, **changes: Any) -> Pattern:
        """Return an edited copy. Every field except ``code`` may change."""
        if "code" in changes and changes["code"] != self.code:
            raise ValueError(
                f"Pattern code is immutable: cannot change {self.code!r} "
                f"to {changes['code']!r}"
            )
        changes.pop("code", None)
        return replace(self, **changes)

    def formula_errors(self) -> list[tuple[int, FormulaSyntaxError]]:
        """(line_number, error) for every line whose formula fails to parse."""
        errors: list[tuple[int, FormulaSyntaxError]] = []
        for line in self.sorted_lines:
            for err in validate_formula(line.amount_formula):
                errors.append((line.line_number, err))
        return errors

    def activate(self) -> Pattern:
        return replace(self, is_active=True)

    def deactivate(self) -> Pattern:
        return replace(self, is_active=False)


def build_lines(raw_lines: Iterable[dict[str, Any]]) -> tuple[PatternLine, ...]:
    """Build PatternLines from plain dicts (API payloads, YAML)."""
    return tuple(
        PatternLine(
            line_number=raw["line_number"],
            debit_credit_type=raw["debit_credit_type"],
            account_code=raw["account_code"],
            amount_formula=raw["amount_formula"],
            description_template=raw.get("description_template"),
        )
        for raw in raw_lines
    )


@dataclass(frozen=True, slots=True)
class PatternSnapshot:
    """
    Frozen capture of a pattern taken at the start of a generation call.

    The pipeline reads ONLY from the snapshot, so a concurrent edit of the
    live pattern cannot change an in-flight call's result.
    """

    pattern_code: str
    pattern_name: str
    is_active: bool
    lines: tuple[PatternLine, ...]
    captured_at: datetime | None = field(default=None, compare=False)

    @classmethod
    def capture(cls, pattern: Pattern, captured_at: datetime | None = None) -> PatternSnapshot:
        return cls(
            pattern_code=pattern.code,
            pattern_name=pattern.name,
            is_active=pattern.is_active,
            lines=pattern.sorted_lines,
            captured_at=captured_at,
        )
