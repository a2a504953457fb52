"""
Generator -- the pure journal generation pipeline.

Responsibility:
    Applies a PatternSnapshot to a GenerationRequest and returns a balanced
    DraftJournalEntry, or raises. Single entry point for all generation
    computations in the kernel.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    No repository access, no clock, no posting. All inputs are arguments.

Pipeline:
    REQUESTED -> VARIABLES_BOUND -> LINES_EVALUATED -> ASSEMBLED
              -> VALIDATED -> COMPLETED | FAILED

Invariants enforced:
    ALL_OR_NOTHING       -- an entry is returned only after every stage passed
    DOUBLE_ENTRY_BALANCE -- delegated to balance.validate_balance
    SNAPSHOT_ISOLATION   -- reads only from the snapshot passed in
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from journal_kernel.domain.assembler import assemble_entry, with_descriptions
from journal_kernel.domain.balance import validate_balance
from journal_kernel.domain.binder import bind_or_raise, derive_variables
from journal_kernel.domain.dtos import DraftJournalEntry, GenerationRequest
from journal_kernel.domain.line_evaluator import evaluate_lines
from journal_kernel.domain.money import DEFAULT_BALANCE_TOLERANCE
from journal_kernel.domain.pattern import PatternSnapshot
from journal_kernel.domain.templater import expand_template, find_unresolved
from journal_kernel.exceptions import JournalKernelError, UnresolvedPlaceholderError
from journal_kernel.logging_config import get_logger

logger = get_logger("domain.generator")


class GenerationStage(str, Enum):
    REQUESTED = "requested"
    VARIABLES_BOUND = "variables_bound"
    LINES_EVALUATED = "lines_evaluated"
    ASSEMBLED = "assembled"
    VALIDATED = "validated"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class GenerationSettings:
    """Tunable knobs. Neither can switch off a kernel invariant."""

    balance_tolerance: Decimal = DEFAULT_BALANCE_TOLERANCE
    strict_placeholders: bool = True

    def __post_init__(self) -> None:
        if not isinstance(self.balance_tolerance, Decimal):
            object.__setattr__(self, "balance_tolerance", Decimal(str(self.balance_tolerance)))
        if self.balance_tolerance < 0:
            raise ValueError(
                f"balance_tolerance cannot be negative: {self.balance_tolerance}"
            )


DEFAULT_SETTINGS = GenerationSettings()


def generate_draft(
    snapshot: PatternSnapshot,
    request: GenerationRequest,
    settings: GenerationSettings = DEFAULT_SETTINGS,
) -> DraftJournalEntry:
    """
    Run the full pipeline against a snapshot.

    Raises:
        VariableBindingError: Missing / non-numeric inputs (all of them).
        LineEvaluationError: A line formula failed (wraps the formula error).
        NonPositiveAmountError: A line evaluated to <= 0.
        UnbalancedEntryError: Debits and credits differ beyond tolerance.
        UnresolvedPlaceholderError: Strict mode, every {token} without a
            value across all lines.
    """
    stage = GenerationStage.REQUESTED
    _log_stage(snapshot, stage)
    try:
        variables = derive_variables(snapshot)
        bindings = bind_or_raise(variables, request.variable_values)
        stage = GenerationStage.VARIABLES_BOUND
        _log_stage(snapshot, stage, variable_count=len(bindings))

        evaluated = evaluate_lines(snapshot, bindings)
        stage = GenerationStage.LINES_EVALUATED
        _log_stage(snapshot, stage, line_count=len(evaluated))

        entry = assemble_entry(snapshot.pattern_code, request.journal_date, evaluated)
        stage = GenerationStage.ASSEMBLED
        _log_stage(
            snapshot,
            stage,
            total_debit=str(entry.total_debit),
            total_credit=str(entry.total_credit),
        )

        validate_balance(entry, settings.balance_tolerance)
        stage = GenerationStage.VALIDATED
        _log_stage(snapshot, stage)

        if settings.strict_placeholders:
            _check_placeholders(snapshot, request)
        line_descriptions = {
            line.line_number: expand_template(
                line.description_template,
                request.description_context,
                strict=settings.strict_placeholders,
                line_number=line.line_number,
            )
            for line in snapshot.lines
        }
        description = request.override_description or snapshot.pattern_name
        entry = with_descriptions(entry, line_descriptions, description)
    except JournalKernelError as e:
        logger.debug(
            "generation_stage_failed",
            extra={
                "pattern_code": snapshot.pattern_code,
                "failed_after": stage.value,
                "stage": GenerationStage.FAILED.value,
                "error_code": e.code,
            },
        )
        raise

    _log_stage(snapshot, GenerationStage.COMPLETED)
    return entry


def _log_stage(snapshot: PatternSnapshot, stage: GenerationStage, **fields: object) -> None:
    logger.debug(
        "generation_stage",
        extra={"pattern_code": snapshot.pattern_code, "stage": stage.value, **fields},
    )


def _check_placeholders(snapshot: PatternSnapshot, request: GenerationRequest) -> None:
    missing = [
        (line.line_number, token)
        for line in snapshot.lines
        for token in find_unresolved(line.description_template, request.description_context)
    ]
    if missing:
        raise UnresolvedPlaceholderError.aggregate(missing)
