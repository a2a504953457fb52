"""
Pytest fixtures for the journal engine test suite.

Provides:
- Sample patterns (balanced, tax split, deliberately unbalanced)
- In-memory collaborators (repository, poster, account directory, log sink)
- Wired PatternService / JournalGenerationService instances
- A deterministic clock

Everything runs in memory; no external services are required.
"""

from decimal import Decimal

import pytest

from journal_kernel.domain.clock import DeterministicClock
from journal_kernel.domain.generator import GenerationSettings
from journal_kernel.domain.pattern import Pattern, PatternSnapshot
from journal_kernel.logging_config import LogContext
from journal_kernel.services import JournalGenerationService, PatternService
from journal_kernel.services.memory import (
    InMemoryAccountDirectory,
    InMemoryGenerationLogSink,
    InMemoryJournalPoster,
    InMemoryPatternRepository,
)

from tests.builders import FIXED_TIME, make_line, make_pattern


@pytest.fixture(autouse=True)
def _clear_log_context():
    LogContext.clear()
    yield
    LogContext.clear()


# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------


@pytest.fixture
def sales_pattern() -> Pattern:
    """P001: debit 1100 / credit 4100, both ``amount``."""
    return make_pattern()


@pytest.fixture
def tax_pattern() -> Pattern:
    """P002: gross receipt split into net revenue and output tax."""
    return make_pattern(
        "P002",
        name="Sale with output tax",
        lines=(
            make_line(1, "D", "1100", "net + tax", "Sale {invoice_no}"),
            make_line(2, "C", "4100", "net", "Net revenue {invoice_no}"),
            make_line(3, "C", "2200", "tax", "Output tax {invoice_no}"),
        ),
    )


@pytest.fixture
def unbalanced_pattern() -> Pattern:
    """P900: credits only 90% of the debit."""
    return make_pattern(
        "P900",
        name="Broken discount",
        lines=(
            make_line(1, "D", "1100", "amount"),
            make_line(2, "C", "4100", "amount * 0.9"),
        ),
    )


@pytest.fixture
def sales_snapshot(sales_pattern) -> PatternSnapshot:
    return PatternSnapshot.capture(sales_pattern)


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------


@pytest.fixture
def clock() -> DeterministicClock:
    return DeterministicClock(FIXED_TIME)


@pytest.fixture
def repository(sales_pattern, tax_pattern, unbalanced_pattern) -> InMemoryPatternRepository:
    return InMemoryPatternRepository([sales_pattern, tax_pattern, unbalanced_pattern])


@pytest.fixture
def poster() -> InMemoryJournalPoster:
    return InMemoryJournalPoster()


@pytest.fixture
def log_sink() -> InMemoryGenerationLogSink:
    return InMemoryGenerationLogSink()


@pytest.fixture
def account_directory() -> InMemoryAccountDirectory:
    return InMemoryAccountDirectory(["1100", "2200", "4100"])


@pytest.fixture
def pattern_service(repository, poster) -> PatternService:
    return PatternService(repository, poster)


@pytest.fixture
def generation_service(repository, poster, log_sink, clock) -> JournalGenerationService:
    return JournalGenerationService(
        repository,
        poster,
        log_sink=log_sink,
        clock=clock,
        settings=GenerationSettings(balance_tolerance=Decimal("0.01")),
    )
