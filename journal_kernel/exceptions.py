"""
Typed Exception Hierarchy for the Journal Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Journal generation fails for very different reasons, and each reason is fixed
by a different person:
  - A preparer mistyped an amount        -> fix the input and retry
  - A formula divides by a zero input    -> fix the input or the pattern
  - A pattern's formulas do not net out  -> the pattern author must edit it

Callers therefore catch by TYPE (or by CATEGORY), never by message text.
Every exception carries:
  1. A ``code`` class attribute (machine-readable, API-safe)
  2. A ``category`` class attribute (routes the fix: input/computation/...)
  3. Structured attributes (line number, variable name, position, totals)

Example:
    try:
        result = service.generate(request)
    except VariableBindingError as e:
        show_field_errors({err.field: err.message for err in e.errors})
    except UnbalancedEntryError as e:
        notify_pattern_owner(e.total_debit, e.total_credit, e.difference)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    JournalKernelError (base)
    |
    +-- FormulaError
    |   +-- FormulaSyntaxError
    |   +-- UndefinedVariableError
    |   +-- DivisionByZeroError
    |   +-- AmountOutOfRangeError
    |
    +-- BindingError
    |   +-- VariableBindingError
    |
    +-- LineError
    |   +-- LineEvaluationError
    |   +-- NonPositiveAmountError
    |
    +-- PostingError
    |   +-- UnbalancedEntryError
    |
    +-- TemplateError
    |   +-- UnresolvedPlaceholderError
    |
    +-- PatternError
    |   +-- PatternNotFoundError
    |   +-- DuplicatePatternCodeError
    |   +-- EmptyPatternError
    |   +-- DuplicateLineNumberError
    |   +-- InvalidPatternLineError
    |   +-- InvalidPatternFormulaError
    |   +-- PatternReferencedError
    |
    +-- AccountError
        +-- AccountNotFoundError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category     | Code                      | When Raised
-------------|---------------------------|------------------------------------
input        | FORMULA_SYNTAX_ERROR      | Malformed amount formula
             | UNDEFINED_VARIABLE        | Formula names an unbound variable
             | VARIABLE_BINDING_FAILED   | Required input blank or invalid
             | UNRESOLVED_PLACEHOLDER    | {token} missing from context
             | ACCOUNT_NOT_FOUND         | Line account code unknown
-------------|---------------------------|------------------------------------
computation  | DIVISION_BY_ZERO          | Divisor evaluated to zero
             | NON_POSITIVE_AMOUNT       | Line amount <= 0
             | AMOUNT_OUT_OF_RANGE       | Amount beyond the money range
-------------|---------------------------|------------------------------------
invariant    | UNBALANCED_ENTRY          | Debits != Credits beyond tolerance
-------------|---------------------------|------------------------------------
pattern      | PATTERN_NOT_FOUND         | No pattern with that code
             | DUPLICATE_PATTERN_CODE    | Code already taken
             | EMPTY_PATTERN             | Pattern has no lines
             | DUPLICATE_LINE_NUMBER     | Line number repeated in a pattern
             | INVALID_PATTERN_LINE      | Bad D/C type, blank account, ...
             | INVALID_PATTERN_FORMULA   | Formula fails to parse at authoring
             | PATTERN_REFERENCED        | Delete blocked by generated entries

LineEvaluationError (LINE_EVALUATION_FAILED) takes the category of its cause.

===============================================================================
DESIGN DECISIONS
===============================================================================

1. Collaborator failures (repository lookup, posting) are NOT wrapped.
   The kernel performs no partial writes, so it has nothing to compensate
   and callers keep the collaborator's own retry semantics.

2. UnbalancedEntryError is an INVARIANT error, never an input error.
   Retrying with different numbers cannot fix a pattern whose formulas are
   not constructed to net to zero.
"""

from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from journal_kernel.domain.dtos import ValidationError


class ErrorCategory(str, Enum):
    """Who has to act to fix the error."""

    INPUT = "input"
    COMPUTATION = "computation"
    INVARIANT = "invariant"
    PATTERN = "pattern"


class JournalKernelError(Exception):
    """
    Base exception for all journal kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "JOURNAL_KERNEL_ERROR"
    category: ErrorCategory = ErrorCategory.INPUT


# Formula exceptions


class FormulaError(JournalKernelError):
    """Base exception for amount-formula errors."""

    code: str = "FORMULA_ERROR"


class FormulaSyntaxError(FormulaError):
    """Formula does not match the arithmetic grammar.

    ``position`` is the 0-based character offset where parsing stopped.
    """

    code: str = "FORMULA_SYNTAX_ERROR"

    def __init__(self, expression: str, position: int, reason: str):
        self.expression = expression
        self.position = position
        self.reason = reason
        super().__init__(
            f"Syntax error at position {position} in formula {expression!r}: {reason}"
        )


class UndefinedVariableError(FormulaError):
    """Formula references a variable with no binding."""

    code: str = "UNDEFINED_VARIABLE"

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Undefined variable: {name}")


class DivisionByZeroError(FormulaError):
    """A divisor evaluated to zero."""

    code: str = "DIVISION_BY_ZERO"
    category: ErrorCategory = ErrorCategory.COMPUTATION

    def __init__(self, expression: str):
        self.expression = expression
        super().__init__(f"Division by zero in formula {expression!r}")


class AmountOutOfRangeError(FormulaError):
    """A computed amount is outside the representable money range."""

    code: str = "AMOUNT_OUT_OF_RANGE"
    category: ErrorCategory = ErrorCategory.COMPUTATION

    def __init__(self, value: Decimal, limit: Decimal):
        self.value = value
        self.limit = limit
        super().__init__(f"Amount {value} exceeds the maximum magnitude {limit}")


# Binding exceptions


class BindingError(JournalKernelError):
    """Base exception for variable-binding errors."""

    code: str = "BINDING_ERROR"


class VariableBindingError(BindingError):
    """
    One or more variable inputs are missing, not numeric, or out of range.

    Carries EVERY violation found in a single pass so the caller can fix all
    fields at once.
    """

    code: str = "VARIABLE_BINDING_FAILED"

    def __init__(self, errors: Sequence[ValidationError]):
        self.errors = tuple(errors)
        fields = ", ".join(e.field or "?" for e in self.errors)
        super().__init__(
            f"Variable binding failed with {len(self.errors)} error(s): {fields}"
        )

    @property
    def fields(self) -> tuple[str, ...]:
        return tuple(e.field for e in self.errors if e.field is not None)


# Line exceptions


class LineError(JournalKernelError):
    """Base exception for per-line evaluation errors."""

    code: str = "LINE_ERROR"


class LineEvaluationError(LineError):
    """A pattern line's formula failed to evaluate.

    The category follows the wrapped cause, so a division by zero stays a
    computation error and an undefined variable stays an input error.
    """

    code: str = "LINE_EVALUATION_FAILED"

    def __init__(self, line_number: int, cause: JournalKernelError):
        self.line_number = line_number
        self.cause = cause
        self.cause_code = cause.code
        self.category = cause.category
        super().__init__(f"Line {line_number}: {cause}")


class NonPositiveAmountError(LineError):
    """A line evaluated to zero or a negative amount."""

    code: str = "NON_POSITIVE_AMOUNT"
    category: ErrorCategory = ErrorCategory.COMPUTATION

    def __init__(self, line_number: int, amount: Decimal):
        self.line_number = line_number
        self.amount = amount
        super().__init__(
            f"Line {line_number} evaluated to non-positive amount {amount}"
        )


# Posting exceptions


class PostingError(JournalKernelError):
    """Base exception for entry-level errors."""

    code: str = "POSTING_ERROR"


class UnbalancedEntryError(PostingError):
    """Journal entry debits do not equal credits.

    Always a pattern-authoring defect; generation aborts and nothing reaches
    the posting collaborator.
    """

    code: str = "UNBALANCED_ENTRY"
    category: ErrorCategory = ErrorCategory.INVARIANT

    def __init__(self, total_debit: Decimal, total_credit: Decimal, difference: Decimal):
        self.total_debit = total_debit
        self.total_credit = total_credit
        self.difference = difference
        super().__init__(
            f"Unbalanced entry: debits={total_debit}, credits={total_credit}, "
            f"difference={difference}"
        )


# Template exceptions


class TemplateError(JournalKernelError):
    """Base exception for description template errors."""

    code: str = "TEMPLATE_ERROR"


class UnresolvedPlaceholderError(TemplateError):
    """A {token} in a description template has no value in the context."""

    code: str = "UNRESOLVED_PLACEHOLDER"

    def __init__(
        self,
        token: str,
        line_number: int | None = None,
        missing: Sequence[tuple[int | None, str]] | None = None,
    ):
        self.token = token
        self.line_number = line_number
        self.missing = tuple(missing) if missing else ((line_number, token),)
        super().__init__(
            "Unresolved placeholder(s): "
            + ", ".join(_describe_placeholder(ln, tok) for ln, tok in self.missing)
        )

    @classmethod
    def aggregate(
        cls, missing: Sequence[tuple[int | None, str]]
    ) -> UnresolvedPlaceholderError:
        """One error for every (line_number, token) pair, first pair leading."""
        line_number, token = missing[0]
        return cls(token, line_number, missing)

    @property
    def tokens(self) -> tuple[str, ...]:
        return tuple(dict.fromkeys(tok for _, tok in self.missing))


def _describe_placeholder(line_number: int | None, token: str) -> str:
    where = f" on line {line_number}" if line_number is not None else ""
    return f"{{{token}}}{where}"


# Pattern exceptions


class PatternError(JournalKernelError):
    """Base exception for pattern authoring and lifecycle errors."""

    code: str = "PATTERN_ERROR"
    category: ErrorCategory = ErrorCategory.PATTERN


class PatternNotFoundError(PatternError):
    """No pattern exists with the given code."""

    code: str = "PATTERN_NOT_FOUND"

    def __init__(self, pattern_code: str):
        self.pattern_code = pattern_code
        super().__init__(f"Pattern not found: {pattern_code}")


class DuplicatePatternCodeError(PatternError):
    """A pattern with the given code already exists."""

    code: str = "DUPLICATE_PATTERN_CODE"

    def __init__(self, pattern_code: str):
        self.pattern_code = pattern_code
        super().__init__(f"Pattern code already in use: {pattern_code}")


class EmptyPatternError(PatternError):
    """Pattern has no lines."""

    code: str = "EMPTY_PATTERN"

    def __init__(self, pattern_code: str):
        self.pattern_code = pattern_code
        super().__init__(f"Pattern {pattern_code} must have at least one line")


class DuplicateLineNumberError(PatternError):
    """Two lines of a pattern share a line number."""

    code: str = "DUPLICATE_LINE_NUMBER"

    def __init__(self, pattern_code: str, line_number: int):
        self.pattern_code = pattern_code
        self.line_number = line_number
        super().__init__(
            f"Pattern {pattern_code} has duplicate line number {line_number}"
        )


class InvalidPatternLineError(PatternError):
    """A pattern line field is missing or malformed."""

    code: str = "INVALID_PATTERN_LINE"

    def __init__(self, line_number: int | None, field: str, reason: str):
        self.line_number = line_number
        self.field = field
        self.reason = reason
        super().__init__(f"Line {line_number} field '{field}': {reason}")


class InvalidPatternFormulaError(PatternError):
    """One or more line formulas fail to parse.

    ``errors`` holds ``(line_number, FormulaSyntaxError)`` pairs for every
    offending line.
    """

    code: str = "INVALID_PATTERN_FORMULA"

    def __init__(
        self,
        pattern_code: str,
        errors: Sequence[tuple[int, FormulaSyntaxError]],
    ):
        self.pattern_code = pattern_code
        self.errors = tuple(errors)
        lines = ", ".join(str(n) for n, _ in self.errors)
        super().__init__(
            f"Pattern {pattern_code} has invalid formulas on line(s) {lines}"
        )

    @property
    def line_numbers(self) -> tuple[int, ...]:
        return tuple(n for n, _ in self.errors)


class PatternReferencedError(PatternError):
    """Pattern cannot be deleted; generated entries reference it."""

    code: str = "PATTERN_REFERENCED"

    def __init__(self, pattern_code: str):
        self.pattern_code = pattern_code
        super().__init__(
            f"Pattern {pattern_code} is referenced by generated entries; "
            f"deactivate it instead"
        )


# Account exceptions


class AccountError(JournalKernelError):
    """Base exception for account reference errors."""

    code: str = "ACCOUNT_ERROR"


class AccountNotFoundError(AccountError):
    """One or more line account codes do not exist in the chart of accounts."""

    code: str = "ACCOUNT_NOT_FOUND"

    def __init__(self, account_codes: Sequence[str]):
        self.account_codes = tuple(account_codes)
        super().__init__(
            f"Account code(s) not found: {', '.join(self.account_codes)}"
        )
