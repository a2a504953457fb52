"""
Tests for JournalGenerationService.

Verifies:
- A successful generation posts once, logs SUCCESS, and returns the id
- Engine failures post nothing and log FAILED with the error code
- Collaborator failures propagate unchanged without a FAILED log
- Inactive patterns still generate when addressed by code
- Account codes are checked (all unknown codes reported together)
"""

import json
import logging
from decimal import Decimal
from io import StringIO

import pytest

from journal_kernel.domain.generation_log import GenerationStatus
from journal_kernel.exceptions import (
    AccountNotFoundError,
    LineEvaluationError,
    PatternNotFoundError,
    UnbalancedEntryError,
    VariableBindingError,
)
from journal_kernel.logging_config import (
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from journal_kernel.services import JournalGenerationService
from journal_kernel.services.memory import InMemoryAccountDirectory

from tests.builders import FIXED_TIME, make_line, make_pattern, make_request


class _FailingPoster:
    """Poster whose storage is down."""

    def post(self, entry):
        raise ConnectionError("ledger unavailable")

    def is_pattern_referenced(self, pattern_code):
        return False


class TestGenerateSuccess:

    def test_posts_and_returns_result(self, generation_service, poster):
        result = generation_service.generate(make_request())

        assert result.journal_entry_id == "1"
        assert poster.get("1") == result.entry
        assert result.entry.total_debit == Decimal("1200.00")
        assert [line.amount for line in result.entry.lines] == [
            Decimal("1200.00"),
            Decimal("1200.00"),
        ]

    def test_success_log_recorded(self, generation_service, log_sink):
        result = generation_service.generate(make_request())

        (log,) = log_sink.logs
        assert log.status == GenerationStatus.SUCCESS
        assert log.is_success
        assert log.pattern_code == "P001"
        assert log.journal_entry_id == result.journal_entry_id
        assert log.processed_count == 1
        assert log.generated_count == 1
        assert log.executed_at == FIXED_TIME

    def test_works_without_log_sink(self, repository, poster):
        service = JournalGenerationService(repository, poster)
        assert service.generate(make_request()).journal_entry_id == "1"

    def test_sequential_ids(self, generation_service):
        first = generation_service.generate(make_request())
        second = generation_service.generate(make_request())
        assert (first.journal_entry_id, second.journal_entry_id) == ("1", "2")


class TestGenerateFailure:

    def test_unknown_pattern(self, generation_service, poster, log_sink):
        with pytest.raises(PatternNotFoundError):
            generation_service.generate(make_request("NOPE"))
        assert poster.entries == {}
        (log,) = log_sink.logs
        assert log.status == GenerationStatus.FAILED
        assert log.error_code == "PATTERN_NOT_FOUND"
        assert log.generated_count == 0

    def test_unbalanced_pattern_posts_nothing(self, generation_service, poster, log_sink):
        with pytest.raises(UnbalancedEntryError) as exc_info:
            generation_service.generate(
                make_request("P900", variable_values={"amount": "1000"})
            )
        assert exc_info.value.difference == Decimal("100.00")
        assert poster.entries == {}
        (log,) = log_sink.logs
        assert log.error_code == "UNBALANCED_ENTRY"
        assert "difference=100.00" in log.error_detail

    def test_binding_failure_logged(self, generation_service, log_sink):
        with pytest.raises(VariableBindingError):
            generation_service.generate(make_request(variable_values={"amount": "abc"}))
        assert log_sink.logs[0].error_code == "VARIABLE_BINDING_FAILED"

    @pytest.mark.parametrize("raw", ["1e400", "123456789012345678901234567890.5"])
    def test_oversized_input_logged_as_failure(self, generation_service, poster, log_sink, raw):
        with pytest.raises(VariableBindingError):
            generation_service.generate(make_request(variable_values={"amount": raw}))
        assert poster.entries == {}
        (log,) = log_sink.logs
        assert log.status == GenerationStatus.FAILED
        assert log.error_code == "VARIABLE_BINDING_FAILED"

    def test_overflowing_formula_logged_as_failure(self, generation_service, repository, log_sink):
        repository.save(
            make_pattern(
                "P901",
                lines=(
                    make_line(1, "D", "1100", "amount * 1000000000"),
                    make_line(2, "C", "4100", "amount * 1000000000"),
                ),
            )
        )
        with pytest.raises(LineEvaluationError) as exc_info:
            generation_service.generate(
                make_request("P901", variable_values={"amount": "999999999999"})
            )
        assert exc_info.value.cause_code == "AMOUNT_OUT_OF_RANGE"
        (log,) = log_sink.logs
        assert log.error_code == "LINE_EVALUATION_FAILED"
        assert "exceeds the maximum magnitude" in log.error_detail

    def test_poster_failure_propagates_unchanged(self, repository, log_sink):
        service = JournalGenerationService(repository, _FailingPoster(), log_sink=log_sink)
        with pytest.raises(ConnectionError, match="ledger unavailable"):
            service.generate(make_request())
        assert log_sink.logs == []


class TestInactivePattern:

    def test_inactive_pattern_still_generates(self, generation_service, repository):
        repository.save(repository.get("P001").deactivate())
        result = generation_service.generate(make_request())
        assert result.entry.pattern_code == "P001"

    def test_inactive_pattern_logs_warning(self, generation_service, repository):
        stream = StringIO()
        handler = logging.StreamHandler(stream)
        handler.setFormatter(StructuredFormatter())
        reset_logging()
        configure_logging(handler=handler)
        try:
            repository.save(repository.get("P001").deactivate())
            generation_service.generate(make_request())
        finally:
            reset_logging()

        records = [json.loads(line) for line in stream.getvalue().splitlines() if line]
        warnings = [r for r in records if r["message"] == "generation_from_inactive_pattern"]
        assert len(warnings) == 1
        assert warnings[0]["level"] == "WARNING"
        assert warnings[0]["pattern_code"] == "P001"


class TestAccountCheck:

    def test_known_accounts_pass(self, repository, poster, account_directory):
        service = JournalGenerationService(
            repository, poster, account_directory=account_directory
        )
        service.generate(make_request())

    def test_unknown_accounts_reported_together(self, repository, poster, log_sink):
        service = JournalGenerationService(
            repository,
            poster,
            log_sink=log_sink,
            account_directory=InMemoryAccountDirectory(["1100"]),
        )
        with pytest.raises(AccountNotFoundError) as exc_info:
            service.generate(
                make_request("P002", variable_values={"net": "100", "tax": "10"})
            )
        assert exc_info.value.account_codes == ("2200", "4100")
        assert poster.entries == {}
        assert log_sink.logs[0].error_code == "ACCOUNT_NOT_FOUND"


class TestPreview:

    def test_preview_does_not_post(self, generation_service, poster, log_sink):
        entry = generation_service.preview(make_request())
        assert entry.total_credit == Decimal("1200.00")
        assert poster.entries == {}
        assert log_sink.logs == []

    def test_preview_raises_engine_errors(self, generation_service):
        with pytest.raises(UnbalancedEntryError):
            generation_service.preview(make_request("P900", variable_values={"amount": "10"}))
