"""
Config -> Kernel Bridges.

Functions that convert an EngineConfiguration into kernel inputs. These
live in journal_config (the producer) because the kernel must NEVER
import journal_config.

Usage:
    from journal_config.bridges import build_generation_settings, build_pattern_repository

    config = get_active_config()
    settings = build_generation_settings(config)
    repository = build_pattern_repository(config)
"""

from __future__ import annotations

from journal_config.schema import EngineConfiguration, PatternDef
from journal_kernel.domain.generator import GenerationSettings
from journal_kernel.domain.pattern import Pattern, PatternLine
from journal_kernel.services.memory import InMemoryPatternRepository


def build_generation_settings(config: EngineConfiguration) -> GenerationSettings:
    return GenerationSettings(
        balance_tolerance=config.settings.balance_tolerance,
        strict_placeholders=config.settings.strict_placeholders,
    )


def build_pattern(pattern_def: PatternDef) -> Pattern:
    """Turn an authored PatternDef into a kernel Pattern (validated on construction)."""
    return Pattern(
        code=pattern_def.code,
        name=pattern_def.name,
        source_table_name=pattern_def.source_table_name,
        description=pattern_def.description,
        is_active=pattern_def.is_active,
        lines=tuple(
            PatternLine(
                line_number=line.line_number,
                debit_credit_type=line.debit_credit_type,
                account_code=line.account_code,
                amount_formula=line.amount_formula,
                description_template=line.description_template,
            )
            for line in pattern_def.lines
        ),
    )


def build_pattern_repository(config: EngineConfiguration) -> InMemoryPatternRepository:
    """Seed an in-memory repository with every configured pattern."""
    return InMemoryPatternRepository(build_pattern(p) for p in config.patterns)
