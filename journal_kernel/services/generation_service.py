"""
JournalGenerationService -- imperative shell around the generation pipeline.

Responsibility:
    Looks up a pattern, captures a snapshot, runs the pure pipeline,
    checks account codes, hands the balanced entry to the posting
    collaborator, and records one GenerationLog per attempt.

Architecture position:
    Kernel > Services -- owns all I/O for generation. The pipeline itself
    (journal_kernel.domain.generator) is pure.

Invariants enforced:
    ALL_OR_NOTHING     -- nothing is posted unless every stage passed
    SNAPSHOT_ISOLATION -- the snapshot is captured once, before evaluation

Failure modes:
    - PatternNotFoundError: unknown pattern code
    - Any pipeline error (binding, line, balance, template)
    - AccountNotFoundError: one or more line accounts unknown to the
      AccountDirectory (all of them listed)
    - Collaborator exceptions (repository, poster, log sink) propagate
      unchanged and are not logged as generation failures
"""

from __future__ import annotations

from journal_kernel.domain.clock import Clock, SystemClock
from journal_kernel.domain.dtos import (
    DraftJournalEntry,
    GenerationRequest,
    GenerationResult,
)
from journal_kernel.domain.generation_log import GenerationLog
from journal_kernel.domain.generator import (
    DEFAULT_SETTINGS,
    GenerationSettings,
    generate_draft,
)
from journal_kernel.domain.pattern import PatternSnapshot
from journal_kernel.exceptions import (
    AccountNotFoundError,
    JournalKernelError,
    PatternNotFoundError,
)
from journal_kernel.logging_config import LogContext, get_logger
from journal_kernel.services.ports import (
    AccountDirectory,
    GenerationLogSink,
    JournalPoster,
    PatternRepository,
)

logger = get_logger("services.generation_service")


class JournalGenerationService:
    """
    Generates and posts journal entries from patterns.

    Contract:
        ``generate`` either returns a GenerationResult for a posted,
        balanced entry or raises; on engine errors a FAILED GenerationLog
        is recorded before re-raising.

    Non-goals:
        Does not retry, batch, or schedule. One request, one entry.
    """

    def __init__(
        self,
        repository: PatternRepository,
        poster: JournalPoster,
        log_sink: GenerationLogSink | None = None,
        account_directory: AccountDirectory | None = None,
        clock: Clock | None = None,
        settings: GenerationSettings = DEFAULT_SETTINGS,
    ):
        self._repository = repository
        self._poster = poster
        self._log_sink = log_sink
        self._account_directory = account_directory
        self._clock = clock or SystemClock()
        self._settings = settings

    def generate(self, request: GenerationRequest) -> GenerationResult:
        """Generate, post and log one journal entry."""
        with LogContext.bind(
            pattern_code=request.pattern_code,
            actor_id=request.requested_by,
        ):
            logger.info(
                "generation_started",
                extra={"journal_date": request.journal_date.isoformat()},
            )
            try:
                entry = self._build(request)
            except JournalKernelError as e:
                logger.warning(
                    "generation_failed",
                    extra={"error_code": e.code, "error_category": e.category.value},
                )
                self._record(
                    GenerationLog.failure(
                        pattern_code=request.pattern_code,
                        executed_at=self._clock.now(),
                        error_code=e.code,
                        message="Journal generation failed",
                        error_detail=str(e),
                    )
                )
                raise

            journal_entry_id = self._poster.post(entry)
            with LogContext.bind(journal_entry_id=journal_entry_id):
                self._record(
                    GenerationLog.success(
                        pattern_code=request.pattern_code,
                        executed_at=self._clock.now(),
                        journal_entry_id=journal_entry_id,
                    )
                )
                logger.info(
                    "generation_completed",
                    extra={
                        "line_count": len(entry.lines),
                        "total_debit": str(entry.total_debit),
                        "total_credit": str(entry.total_credit),
                    },
                )
            return GenerationResult(journal_entry_id=journal_entry_id, entry=entry)

    def preview(self, request: GenerationRequest) -> DraftJournalEntry:
        """Run the pipeline without posting or logging a GenerationLog."""
        with LogContext.bind(
            pattern_code=request.pattern_code,
            actor_id=request.requested_by,
        ):
            entry = self._build(request)
            logger.info("generation_previewed", extra={"line_count": len(entry.lines)})
            return entry

    def _build(self, request: GenerationRequest) -> DraftJournalEntry:
        pattern = self._repository.get(request.pattern_code)
        if pattern is None:
            raise PatternNotFoundError(request.pattern_code)

        snapshot = PatternSnapshot.capture(pattern, captured_at=self._clock.now())
        if not snapshot.is_active:
            logger.warning("generation_from_inactive_pattern")

        entry = generate_draft(snapshot, request, self._settings)
        self._check_accounts(entry)
        return entry

    def _record(self, log: GenerationLog) -> None:
        if self._log_sink is not None:
            self._log_sink.record(log)

    def _check_accounts(self, entry: DraftJournalEntry) -> None:
        if self._account_directory is None:
            return
        missing = sorted(
            {
                line.account_code
                for line in entry.lines
                if not self._account_directory.exists(line.account_code)
            }
        )
        if missing:
            raise AccountNotFoundError(missing)
