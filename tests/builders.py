"""Builders for patterns and requests shared across the test suite."""

from datetime import date, datetime, timezone

from journal_kernel.domain.dtos import GenerationRequest
from journal_kernel.domain.pattern import DebitCreditType, Pattern, PatternLine

FIXED_TIME = datetime(2024, 3, 31, 9, 0, tzinfo=timezone.utc)
JOURNAL_DATE = date(2024, 3, 31)


def make_line(
    line_number: int,
    side: str,
    account_code: str,
    formula: str,
    template: str | None = None,
) -> PatternLine:
    return PatternLine(
        line_number=line_number,
        debit_credit_type=DebitCreditType(side),
        account_code=account_code,
        amount_formula=formula,
        description_template=template,
    )


def make_pattern(code: str = "P001", lines=None, **kwargs) -> Pattern:
    """P001-style pattern: debit 1100 / credit 4100 on ``amount`` unless lines are given."""
    if lines is None:
        lines = (
            make_line(1, "D", "1100", "amount", "Sale {invoice_no}"),
            make_line(2, "C", "4100", "amount", "Revenue {invoice_no}"),
        )
    kwargs.setdefault("name", "Cash sale")
    kwargs.setdefault("source_table_name", "sales")
    return Pattern(code=code, lines=tuple(lines), **kwargs)


def make_request(pattern_code: str = "P001", **kwargs) -> GenerationRequest:
    kwargs.setdefault("journal_date", JOURNAL_DATE)
    kwargs.setdefault("variable_values", {"amount": "1200"})
    kwargs.setdefault("description_context", {"invoice_no": "INV-7"})
    return GenerationRequest(pattern_code=pattern_code, **kwargs)
