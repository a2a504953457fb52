"""
Generation Log -- one execution record per generation attempt.

Every call to JournalGenerationService.generate that reaches the pipeline
produces exactly one GenerationLog, SUCCESS or FAILED, handed to the
GenerationLogSink collaborator.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class GenerationStatus(str, Enum):
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


@dataclass(frozen=True)
class GenerationLog:
    """
    Execution record for a single generation attempt.

    A single request processes one pattern, so ``processed_count`` is 1 and
    ``generated_count`` is 1 on success, 0 on failure.
    """

    pattern_code: str
    executed_at: datetime
    status: GenerationStatus
    message: str
    processed_count: int = 1
    generated_count: int = 0
    journal_entry_id: str | None = None
    error_code: str | None = None
    error_detail: str | None = None

    def __post_init__(self) -> None:
        if not self.pattern_code:
            raise ValueError("pattern_code is required")

    @classmethod
    def success(
        cls, pattern_code: str, executed_at: datetime, journal_entry_id: str
    ) -> GenerationLog:
        return cls(
            pattern_code=pattern_code,
            executed_at=executed_at,
            status=GenerationStatus.SUCCESS,
            message=f"Journal entry {journal_entry_id} generated",
            generated_count=1,
            journal_entry_id=journal_entry_id,
        )

    @classmethod
    def failure(
        cls,
        pattern_code: str,
        executed_at: datetime,
        error_code: str,
        message: str,
        error_detail: str | None = None,
    ) -> GenerationLog:
        return cls(
            pattern_code=pattern_code,
            executed_at=executed_at,
            status=GenerationStatus.FAILED,
            message=message,
            generated_count=0,
            error_code=error_code,
            error_detail=error_detail,
        )

    @property
    def is_success(self) -> bool:
        return self.status == GenerationStatus.SUCCESS
