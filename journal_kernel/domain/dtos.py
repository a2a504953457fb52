"""
DTOs -- Pure domain data transfer objects.

Responsibility:
    Defines the immutable data structures that flow through the generation
    pipeline: GenerationRequest (input), DraftJournalLine and
    DraftJournalEntry (output), GenerationResult (service output), and the
    ValidationError record used for aggregated input errors.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Request maps are copied and frozen at construction, so a caller
      mutating its own dict after submitting cannot affect the call.
    - Draft lines carry non-negative Decimal amounts at MONEY_SCALE.
    - A DraftJournalEntry has at least one line.

Data flow:
    GenerationRequest -> DraftJournalEntry -> GenerationResult
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from types import MappingProxyType
from typing import Any, Mapping

from journal_kernel.domain.money import ZERO, round_money
from journal_kernel.domain.pattern import DebitCreditType


@dataclass(frozen=True)
class ValidationError:
    """
    A single validation error.

    Contract:
        Carries a machine-readable code, human-readable message, and the
        field (variable name) it applies to.
    """

    code: str
    message: str
    field: str | None = None
    details: dict[str, Any] | None = None


@dataclass(frozen=True)
class GenerationRequest:
    """
    One request to generate a journal entry from a pattern.

    Ephemeral: created and consumed within a single call, never persisted.

    Guarantees:
        - ``variable_values`` and ``description_context`` are read-only
          copies of what the caller passed in.
    """

    pattern_code: str
    journal_date: date
    variable_values: Mapping[str, Any] = field(default_factory=dict)
    description_context: Mapping[str, str] = field(default_factory=dict)
    override_description: str | None = None
    requested_by: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.pattern_code, str) or not self.pattern_code.strip():
            raise ValueError("pattern_code is required")
        if not isinstance(self.journal_date, date):
            raise ValueError("journal_date is required")
        if self.variable_values is None:
            raise ValueError("variable_values is required")
        object.__setattr__(
            self, "variable_values", MappingProxyType(dict(self.variable_values))
        )
        object.__setattr__(
            self,
            "description_context",
            MappingProxyType(dict(self.description_context or {})),
        )


@dataclass(frozen=True)
class DraftJournalLine:
    """One evaluated line of a draft journal entry."""

    line_number: int
    account_code: str
    debit_credit_type: DebitCreditType
    amount: Decimal
    description: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            raise TypeError(f"amount must be Decimal, got {type(self.amount).__name__}")
        if self.amount < 0:
            raise ValueError(f"DraftJournalLine amount cannot be negative: {self.amount}")
        object.__setattr__(self, "amount", round_money(self.amount))

    @property
    def is_debit(self) -> bool:
        return self.debit_credit_type == DebitCreditType.DEBIT

    def to_dict(self) -> dict[str, Any]:
        return {
            "line_number": self.line_number,
            "account_code": self.account_code,
            "debit_credit_type": self.debit_credit_type.value,
            "amount": str(self.amount),
            "description": self.description,
        }


@dataclass(frozen=True)
class DraftJournalEntry:
    """
    Balanced, evaluated result of applying a pattern to concrete values.

    Contract:
        Contains everything the posting collaborator needs. No side effects.

    Guarantees:
        - At least one line
        - Lines in pattern line-number order
    """

    pattern_code: str
    journal_date: date
    lines: tuple[DraftJournalLine, ...]
    description: str = ""

    def __post_init__(self) -> None:
        lines = tuple(self.lines)
        if not lines:
            raise ValueError("DraftJournalEntry must have at least one line")
        object.__setattr__(self, "lines", lines)

    @property
    def total_debit(self) -> Decimal:
        return sum((line.amount for line in self.lines if line.is_debit), ZERO)

    @property
    def total_credit(self) -> Decimal:
        return sum((line.amount for line in self.lines if not line.is_debit), ZERO)

    @property
    def difference(self) -> Decimal:
        """Absolute imbalance between debits and credits."""
        return abs(self.total_debit - self.total_credit)

    def is_balanced(self, tolerance: Decimal = ZERO) -> bool:
        return self.difference <= tolerance

    def to_dict(self) -> dict[str, Any]:
        return {
            "pattern_code": self.pattern_code,
            "journal_date": self.journal_date.isoformat(),
            "description": self.description,
            "total_debit": str(self.total_debit),
            "total_credit": str(self.total_credit),
            "lines": [line.to_dict() for line in self.lines],
        }


@dataclass(frozen=True)
class GenerationResult:
    """Outcome of a successful generation handed to the posting collaborator."""

    journal_entry_id: str
    entry: DraftJournalEntry
