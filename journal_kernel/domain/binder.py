"""
Variable Binder -- derives a pattern's variables and binds raw inputs.

Responsibility:
    Computes the ordered set of free variables a pattern's formulas reference
    and converts raw user inputs into an immutable name -> Decimal binding,
    collecting every violation in one pass.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Failure modes:
    - BindingResult with REQUIRED_FIELD_MISSING, NOT_A_NUMBER or OUT_OF_RANGE
      errors (bind_or_raise turns them into one VariableBindingError)
    - LineEvaluationError wrapping FormulaSyntaxError when a formula cannot
      be scanned, so the offending line stays identifiable
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from types import MappingProxyType
from typing import Any, Iterable, Mapping

from journal_kernel.domain.dtos import ValidationError
from journal_kernel.domain.formula import extract_variables
from journal_kernel.domain.money import MAX_AMOUNT, is_within_range, parse_decimal
from journal_kernel.domain.pattern import Pattern, PatternSnapshot
from journal_kernel.exceptions import (
    FormulaSyntaxError,
    LineEvaluationError,
    VariableBindingError,
)

REQUIRED_FIELD_MISSING = "REQUIRED_FIELD_MISSING"
NOT_A_NUMBER = "NOT_A_NUMBER"
OUT_OF_RANGE = "OUT_OF_RANGE"


@dataclass(frozen=True)
class BindingResult:
    """
    Bound variables or the full list of violations.

    Contract:
        ``bindings`` is populated only when ``errors`` is empty.
    """

    bindings: Mapping[str, Decimal] = field(
        default_factory=lambda: MappingProxyType({})
    )
    errors: tuple[ValidationError, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def __bool__(self) -> bool:
        return self.is_valid


def derive_variables(pattern: Pattern | PatternSnapshot) -> tuple[str, ...]:
    """
    Ordered, de-duplicated variables across all of a pattern's formulas.

    Lines are scanned in line-number order, then formula-scan order within
    each line.
    """
    lines = pattern.sorted_lines if isinstance(pattern, Pattern) else pattern.lines
    variables: dict[str, None] = {}
    for line in lines:
        try:
            names = extract_variables(line.amount_formula)
        except FormulaSyntaxError as e:
            raise LineEvaluationError(line.line_number, e) from e
        for name in names:
            variables.setdefault(name, None)
    return tuple(variables)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def bind(variables: Iterable[str], raw_inputs: Mapping[str, Any]) -> BindingResult:
    """
    Validate and convert raw inputs for the given variables.

    Every variable is checked; nothing fails fast. Inputs that no variable
    references are ignored.
    """
    bound: dict[str, Decimal] = {}
    errors: list[ValidationError] = []

    for name in variables:
        raw = raw_inputs.get(name)
        if _is_blank(raw):
            errors.append(
                ValidationError(
                    code=REQUIRED_FIELD_MISSING,
                    message=f"{name} is required",
                    field=name,
                )
            )
            continue
        try:
            value = parse_decimal(raw)
        except ValueError:
            errors.append(
                ValidationError(
                    code=NOT_A_NUMBER,
                    message=f"{name} must be a number",
                    field=name,
                    details={"value": str(raw)},
                )
            )
            continue
        if not is_within_range(value):
            errors.append(
                ValidationError(
                    code=OUT_OF_RANGE,
                    message=f"{name} exceeds the maximum amount {MAX_AMOUNT}",
                    field=name,
                    details={"value": str(raw)},
                )
            )
            continue
        bound[name] = value

    if errors:
        return BindingResult(errors=tuple(errors))
    return BindingResult(bindings=MappingProxyType(bound))


def bind_or_raise(
    variables: Iterable[str], raw_inputs: Mapping[str, Any]
) -> Mapping[str, Decimal]:
    """Like ``bind`` but raises VariableBindingError carrying all violations."""
    result = bind(variables, raw_inputs)
    if not result.is_valid:
        raise VariableBindingError(result.errors)
    return result.bindings
