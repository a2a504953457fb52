"""
Balance Validator -- enforces the double-entry invariant.

Invariants enforced:
    DOUBLE_ENTRY_BALANCE -- |total_debit - total_credit| <= tolerance.

Failure modes:
    UnbalancedEntryError. Fatal and not fixable by retrying with different
    amounts: the pattern's formulas are not constructed to net to zero.
"""

from __future__ import annotations

from decimal import Decimal

from journal_kernel.domain.dtos import DraftJournalEntry
from journal_kernel.domain.money import DEFAULT_BALANCE_TOLERANCE
from journal_kernel.exceptions import UnbalancedEntryError
from journal_kernel.logging_config import get_logger

logger = get_logger("domain.balance")


def validate_balance(
    entry: DraftJournalEntry,
    tolerance: Decimal = DEFAULT_BALANCE_TOLERANCE,
) -> DraftJournalEntry:
    """
    Check the entry balances within ``tolerance`` and return it unchanged.

    Raises:
        UnbalancedEntryError: When the absolute difference exceeds tolerance.
        ValueError: On a negative tolerance.
    """
    if tolerance < 0:
        raise ValueError(f"Balance tolerance cannot be negative: {tolerance}")

    total_debit = entry.total_debit
    total_credit = entry.total_credit
    difference = abs(total_debit - total_credit)
    if difference > tolerance:
        logger.warning(
            "balance_rejected",
            extra={
                "pattern_code": entry.pattern_code,
                "total_debit": str(total_debit),
                "total_credit": str(total_credit),
                "difference": str(difference),
            },
        )
        raise UnbalancedEntryError(
            total_debit=total_debit,
            total_credit=total_credit,
            difference=difference,
        )
    logger.debug(
        "balance_validated",
        extra={"pattern_code": entry.pattern_code, "total_debit": str(total_debit)},
    )
    return entry
