"""
PatternService -- authoring and lifecycle of auto-journal patterns.

Responsibility:
    Create, edit, activate/deactivate, and delete patterns; serve the active
    pick-list and the required-variable list for a pattern.

Architecture position:
    Kernel > Services -- imperative shell over PatternRepository and
    JournalPoster (reference checks for deletion).

Invariants enforced:
    PATTERN_CODE_IMMUTABLE -- codes are unique at creation and never edited.
    - Every stored pattern has >= 1 line, unique line numbers, and formulas
      that parse.
    - A pattern referenced by generated entries is never deleted; it can
      only be deactivated.

Failure modes:
    - PatternNotFoundError, DuplicatePatternCodeError
    - EmptyPatternError, DuplicateLineNumberError, InvalidPatternLineError
    - InvalidPatternFormulaError (every offending line at once)
    - PatternReferencedError on delete
    - ValueError when an update tries to change the code
"""

from __future__ import annotations

from typing import Any

from journal_kernel.domain.binder import derive_variables
from journal_kernel.domain.pattern import Pattern, PatternLine, build_lines
from journal_kernel.exceptions import (
    DuplicatePatternCodeError,
    InvalidPatternFormulaError,
    PatternNotFoundError,
    PatternReferencedError,
)
from journal_kernel.logging_config import get_logger
from journal_kernel.services.ports import JournalPoster, PatternRepository

logger = get_logger("services.pattern_service")

_EDITABLE_FIELDS = frozenset(
    {"name", "source_table_name", "description", "is_active", "lines"}
)


class PatternService:
    """
    Pattern authoring service.

    Contract:
        Every write validates the whole pattern before touching the
        repository; a rejected write leaves the stored pattern unchanged.
    """

    def __init__(self, repository: PatternRepository, poster: JournalPoster | None = None):
        self._repository = repository
        self._poster = poster

    def create_pattern(self, pattern: Pattern) -> Pattern:
        """
        Store a new pattern. Its code must not already exist.

        The uniqueness check and the insert are one repository call, so two
        concurrent creates with the same code cannot both succeed.
        """
        self._check_formulas(pattern)
        try:
            saved = self._repository.add(pattern)
        except DuplicatePatternCodeError:
            logger.warning(
                "pattern_create_rejected",
                extra={"pattern_code": pattern.code, "reason": "duplicate_code"},
            )
            raise
        logger.info(
            "pattern_created",
            extra={
                "pattern_code": saved.code,
                "line_count": len(saved.lines),
                "is_active": saved.is_active,
            },
        )
        return saved

    def update_pattern(self, pattern_code: str, **changes: Any) -> Pattern:
        """
        Edit a pattern in place. Every field except ``code`` may change.

        ``lines`` may be given as PatternLine objects or plain dicts.
        """
        unknown = set(changes) - _EDITABLE_FIELDS - {"code"}
        if unknown:
            raise TypeError(f"Unknown pattern field(s): {', '.join(sorted(unknown))}")

        current = self.get_pattern(pattern_code)
        if "lines" in changes:
            changes["lines"] = tuple(
                line if isinstance(line, PatternLine) else build_lines([line])[0]
                for line in changes["lines"]
            )
        updated = current.with_changes(**changes)

        self._check_formulas(updated)
        saved = self._repository.save(updated)
        logger.info(
            "pattern_updated",
            extra={
                "pattern_code": saved.code,
                "changed_fields": sorted(set(changes) - {"code"}),
            },
        )
        return saved

    def activate(self, pattern_code: str) -> Pattern:
        saved = self._repository.save(self.get_pattern(pattern_code).activate())
        logger.info("pattern_activated", extra={"pattern_code": pattern_code})
        return saved

    def deactivate(self, pattern_code: str) -> Pattern:
        """Hide a pattern from active pick-lists. It stays viewable and editable."""
        saved = self._repository.save(self.get_pattern(pattern_code).deactivate())
        logger.info("pattern_deactivated", extra={"pattern_code": pattern_code})
        return saved

    def delete_pattern(self, pattern_code: str) -> None:
        """
        Delete a pattern that no generated entry references.

        Raises:
            PatternReferencedError: Generated entries reference the pattern;
                deactivate it instead.
        """
        self.get_pattern(pattern_code)
        if self._poster is not None and self._poster.is_pattern_referenced(pattern_code):
            logger.warning(
                "pattern_delete_rejected",
                extra={"pattern_code": pattern_code, "reason": "referenced"},
            )
            raise PatternReferencedError(pattern_code)
        self._repository.delete(pattern_code)
        logger.info("pattern_deleted", extra={"pattern_code": pattern_code})

    def get_pattern(self, pattern_code: str) -> Pattern:
        pattern = self._repository.get(pattern_code)
        if pattern is None:
            raise PatternNotFoundError(pattern_code)
        return pattern

    def list_active_patterns(self) -> list[Pattern]:
        """Active patterns for pick-lists, sorted by code."""
        return sorted(
            (p for p in self._repository.list_all() if p.is_active),
            key=lambda p: p.code,
        )

    def required_variables(self, pattern_code: str) -> tuple[str, ...]:
        """Input fields a caller must fill to generate from this pattern."""
        return derive_variables(self.get_pattern(pattern_code))

    def _check_formulas(self, pattern: Pattern) -> None:
        errors = pattern.formula_errors()
        if errors:
            logger.warning(
                "pattern_formula_invalid",
                extra={
                    "pattern_code": pattern.code,
                    "line_numbers": [n for n, _ in errors],
                },
            )
            raise InvalidPatternFormulaError(pattern.code, errors)
