"""
In-memory collaborator implementations.

Reference implementations of the ports in journal_kernel.services.ports.
Used by tests, the command-line script, and the config bridges. All are
thread-safe: generation calls may run fully in parallel.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable
from itertools import count

from journal_kernel.domain.dtos import DraftJournalEntry
from journal_kernel.domain.generation_log import GenerationLog
from journal_kernel.domain.pattern import Pattern
from journal_kernel.exceptions import DuplicatePatternCodeError


class InMemoryPatternRepository:
    """Dict-backed PatternRepository. Values are frozen Patterns."""

    def __init__(self, patterns: Iterable[Pattern] = ()):
        self._lock = threading.Lock()
        self._patterns: dict[str, Pattern] = {p.code: p for p in patterns}

    def get(self, pattern_code: str) -> Pattern | None:
        with self._lock:
            return self._patterns.get(pattern_code)

    def exists(self, pattern_code: str) -> bool:
        with self._lock:
            return pattern_code in self._patterns

    def add(self, pattern: Pattern) -> Pattern:
        with self._lock:
            if pattern.code in self._patterns:
                raise DuplicatePatternCodeError(pattern.code)
            self._patterns[pattern.code] = pattern
        return pattern

    def save(self, pattern: Pattern) -> Pattern:
        with self._lock:
            self._patterns[pattern.code] = pattern
        return pattern

    def delete(self, pattern_code: str) -> None:
        with self._lock:
            self._patterns.pop(pattern_code, None)

    def list_all(self) -> list[Pattern]:
        with self._lock:
            return list(self._patterns.values())


class InMemoryJournalPoster:
    """
    JournalPoster that keeps posted entries in memory.

    Entry ids are sequential strings ("1", "2", ...). A pattern counts as
    referenced once any entry generated from it has been posted.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._ids = count(1)
        self._entries: dict[str, DraftJournalEntry] = {}

    def post(self, entry: DraftJournalEntry) -> str:
        with self._lock:
            entry_id = str(next(self._ids))
            self._entries[entry_id] = entry
        return entry_id

    def is_pattern_referenced(self, pattern_code: str) -> bool:
        with self._lock:
            return any(e.pattern_code == pattern_code for e in self._entries.values())

    def get(self, entry_id: str) -> DraftJournalEntry | None:
        with self._lock:
            return self._entries.get(entry_id)

    @property
    def entries(self) -> dict[str, DraftJournalEntry]:
        with self._lock:
            return dict(self._entries)


class InMemoryAccountDirectory:
    """AccountDirectory over a fixed set of account codes."""

    def __init__(self, account_codes: Iterable[str]):
        self._codes = frozenset(account_codes)

    def exists(self, account_code: str) -> bool:
        return account_code in self._codes


class InMemoryGenerationLogSink:
    """GenerationLogSink that appends to a list."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._logs: list[GenerationLog] = []

    def record(self, log: GenerationLog) -> None:
        with self._lock:
            self._logs.append(log)

    @property
    def logs(self) -> list[GenerationLog]:
        with self._lock:
            return list(self._logs)
