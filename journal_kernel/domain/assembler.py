"""
Entry Assembler -- builds a DraftJournalEntry from evaluated lines.

Responsibility:
    One DraftJournalLine per pattern line, preserving line order and copying
    the debit/credit type verbatim. Totals are exposed by the entry itself
    (DraftJournalEntry.total_debit / total_credit).

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import Mapping, Sequence

from journal_kernel.domain.dtos import DraftJournalEntry, DraftJournalLine
from journal_kernel.domain.line_evaluator import EvaluatedLine


def assemble_entry(
    pattern_code: str,
    journal_date: date,
    evaluated_lines: Sequence[EvaluatedLine],
    *,
    description: str = "",
    line_descriptions: Mapping[int, str] | None = None,
) -> DraftJournalEntry:
    """
    Assemble a draft entry.

    Raises:
        ValueError: If ``evaluated_lines`` is empty.
    """
    line_descriptions = line_descriptions or {}
    lines = tuple(
        DraftJournalLine(
            line_number=ev.line.line_number,
            account_code=ev.line.account_code,
            debit_credit_type=ev.line.debit_credit_type,
            amount=ev.amount,
            description=line_descriptions.get(ev.line.line_number, ""),
        )
        for ev in evaluated_lines
    )
    return DraftJournalEntry(
        pattern_code=pattern_code,
        journal_date=journal_date,
        lines=lines,
        description=description,
    )


def with_descriptions(
    entry: DraftJournalEntry,
    line_descriptions: Mapping[int, str],
    description: str | None = None,
) -> DraftJournalEntry:
    """Return a copy of ``entry`` with line (and optionally entry) descriptions set."""
    lines = tuple(
        replace(line, description=line_descriptions.get(line.line_number, line.description))
        for line in entry.lines
    )
    if description is None:
        return replace(entry, lines=lines)
    return replace(entry, lines=lines, description=description)

