"""
Configuration Validator (``journal_config.validator``).

Responsibility
--------------
Validates an ``EngineConfiguration`` before any pattern reaches a
repository, so a bad YAML edit fails at load time rather than on the
first generation call.

Invariants enforced
-------------------
* Pattern code uniqueness.
* Every pattern has at least one line; line numbers are positive
  integers and unique within the pattern.
* Debit/credit markers are ``D`` or ``C``; account codes are present.
* Every amount formula parses under the formula grammar.
* Balance tolerance is not negative.

Failure modes
-------------
* Errors (``ConfigValidationResult.errors``)  -> configuration MUST NOT be
  used; ``get_active_config`` raises ``ConfigValidationError``.
* Warnings  -> usable but should be reviewed (e.g. a pattern with only
  debit lines can never balance).
"""

from __future__ import annotations

from dataclasses import dataclass, field

from journal_config.schema import EngineConfiguration, PatternDef
from journal_kernel.domain.formula import validate_formula
from journal_kernel.domain.pattern import DebitCreditType


@dataclass
class ConfigValidationResult:
    """
    Result of configuration validation.

    Contract
    --------
    * ``is_valid`` returns ``True`` only when ``errors`` is empty.
    * Warnings do not block loading but should be reviewed.
    """

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)


class ConfigValidationError(ValueError):
    """A configuration set failed validation.

    Attributes:
        config_id: The configuration set identifier.
        errors: Every validation error message.
    """

    code: str = "CONFIG_VALIDATION_FAILED"

    def __init__(self, config_id: str, errors: list[str]):
        self.config_id = config_id
        self.errors = tuple(errors)
        super().__init__(
            f"Configuration validation failed for '{config_id}':\n"
            + "\n".join(f"  - {e}" for e in self.errors)
        )


def validate_configuration(config: EngineConfiguration) -> ConfigValidationResult:
    """
    Validate a configuration set.

    Postconditions:
        - Returns a ``ConfigValidationResult`` with errors and warnings.
    """
    result = ConfigValidationResult()

    _validate_settings(config, result)
    _validate_pattern_uniqueness(config, result)
    for pattern in config.patterns:
        _validate_pattern_lines(pattern, result)
        _validate_pattern_sides(pattern, result)

    return result


def _validate_settings(config: EngineConfiguration, result: ConfigValidationResult) -> None:
    if not str(config.config_id).strip():
        result.add_error("config_id is required")
    if config.settings.balance_tolerance < 0:
        result.add_error(
            f"balance_tolerance cannot be negative: {config.settings.balance_tolerance}"
        )


def _validate_pattern_uniqueness(
    config: EngineConfiguration, result: ConfigValidationResult
) -> None:
    """Check that pattern codes are unique."""
    seen: set[str] = set()
    for pattern in config.patterns:
        if not pattern.code.strip():
            result.add_error(f"Pattern '{pattern.name}' has a blank code")
        elif pattern.code in seen:
            result.add_error(f"Duplicate pattern code: {pattern.code}")
        seen.add(pattern.code)


def _validate_pattern_lines(pattern: PatternDef, result: ConfigValidationResult) -> None:
    if not pattern.lines:
        result.add_error(f"Pattern '{pattern.code}' has no lines")
        return

    seen: set[int] = set()
    for line in pattern.lines:
        number = line.line_number
        if isinstance(number, bool) or not isinstance(number, int) or number < 1:
            result.add_error(
                f"Pattern '{pattern.code}' line {number!r}: "
                "line_number must be a positive integer"
            )
        elif number in seen:
            result.add_error(f"Pattern '{pattern.code}': duplicate line number {number}")
        else:
            seen.add(number)

        try:
            DebitCreditType(line.debit_credit_type)
        except ValueError:
            result.add_error(
                f"Pattern '{pattern.code}' line {number}: debit_credit_type must be "
                f"'D' or 'C', got {line.debit_credit_type!r}"
            )

        if not line.account_code.strip():
            result.add_error(f"Pattern '{pattern.code}' line {number}: account_code is required")

        for err in validate_formula(line.amount_formula):
            result.add_error(
                f"Pattern '{pattern.code}' line {number}: {err.reason} "
                f"at position {err.position} (formula: {line.amount_formula})"
            )


def _validate_pattern_sides(pattern: PatternDef, result: ConfigValidationResult) -> None:
    """Warn when a pattern has lines on only one side; it can never balance."""
    sides = set()
    for line in pattern.lines:
        try:
            sides.add(DebitCreditType(line.debit_credit_type))
        except ValueError:
            continue
    if len(sides) == 1:
        (side,) = sides
        result.add_warning(
            f"Pattern '{pattern.code}' has only {side.name.lower()} lines "
            "and cannot produce a balanced entry"
        )
