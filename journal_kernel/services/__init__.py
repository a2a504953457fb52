"""
Kernel services -- the imperative shell.

PatternService manages pattern lifecycle; JournalGenerationService runs the
pure generation pipeline and talks to the collaborators declared in
``ports``.
"""

from journal_kernel.services.generation_service import JournalGenerationService
from journal_kernel.services.pattern_service import PatternService

__all__ = ["JournalGenerationService", "PatternService"]
