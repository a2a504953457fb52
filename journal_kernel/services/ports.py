"""
Ports -- collaborator protocols the kernel services depend on.

Persistence of patterns and generated entries, the chart of accounts, and
the generation log store are all owned outside the kernel. Services receive
implementations through their constructors.

Collaborator exceptions are never wrapped by the kernel: whatever an
implementation raises propagates to the caller unchanged.
"""

from __future__ import annotations

from typing import Iterable, Protocol, runtime_checkable

from journal_kernel.domain.dtos import DraftJournalEntry
from journal_kernel.domain.generation_log import GenerationLog
from journal_kernel.domain.pattern import Pattern


@runtime_checkable
class PatternRepository(Protocol):
    """
    Pattern storage keyed by the unique, immutable pattern code.

    ``save`` replaces the whole Pattern value; readers holding an earlier
    value are unaffected.
    """

    def get(self, pattern_code: str) -> Pattern | None: ...

    def exists(self, pattern_code: str) -> bool: ...

    def add(self, pattern: Pattern) -> Pattern:
        """Insert a pattern whose code is not yet stored, atomically.

        Raises:
            DuplicatePatternCodeError: The code is already taken.
        """
        ...

    def save(self, pattern: Pattern) -> Pattern: ...

    def delete(self, pattern_code: str) -> None: ...

    def list_all(self) -> Iterable[Pattern]: ...


@runtime_checkable
class JournalPoster(Protocol):
    """Posting collaborator that receives balanced draft entries."""

    def post(self, entry: DraftJournalEntry) -> str:
        """Persist the entry and return its journal entry id."""
        ...

    def is_pattern_referenced(self, pattern_code: str) -> bool:
        """True when generated entries reference the pattern."""
        ...


@runtime_checkable
class AccountDirectory(Protocol):
    """Chart-of-accounts lookup. Optional for generation."""

    def exists(self, account_code: str) -> bool: ...


@runtime_checkable
class GenerationLogSink(Protocol):
    """Receives one GenerationLog per generation attempt."""

    def record(self, log: GenerationLog) -> None: ...
