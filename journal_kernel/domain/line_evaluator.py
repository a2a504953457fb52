"""Line Evaluator -- evaluates each pattern line's amount formula in order."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Mapping

from journal_kernel.domain.formula import evaluate
from journal_kernel.domain.pattern import PatternLine, PatternSnapshot
from journal_kernel.exceptions import (
    FormulaError,
    LineEvaluationError,
    NonPositiveAmountError,
)


@dataclass(frozen=True, slots=True)
class EvaluatedLine:
    line: PatternLine
    amount: Decimal


def evaluate_lines(
    snapshot: PatternSnapshot, bindings: Mapping[str, Decimal]
) -> tuple[EvaluatedLine, ...]:
    """
    Evaluate every line of the snapshot in ascending line-number order.

    Raises:
        LineEvaluationError: A formula failed; ``cause`` holds the original
            FormulaError (syntax, undefined variable, division by zero or
            out-of-range amount).
        NonPositiveAmountError: A line evaluated to zero or less. Reversals
            are a separate feature, so this always signals a defect.
    """
    evaluated: list[EvaluatedLine] = []
    for line in sorted(snapshot.lines, key=lambda ln: ln.line_number):
        try:
            amount = evaluate(line.amount_formula, bindings)
        except FormulaError as e:
            raise LineEvaluationError(line.line_number, e) from e
        if amount <= 0:
            raise NonPositiveAmountError(line.line_number, amount)
        evaluated.append(EvaluatedLine(line=line, amount=amount))
    return tuple(evaluated)
