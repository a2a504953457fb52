#!/usr/bin/env python3
"""
Generate one journal entry from a configured pattern and print it as JSON.

Patterns and settings come from the active config (get_active_config).
Entries are posted to an in-memory poster, so the printed
journal_entry_id is only meaningful within this run.

Usage:
    python3 scripts/generate_journal.py --pattern <code> --date YYYY-MM-DD [options]

Examples:
    # Cash sale of 1200
    python3 scripts/generate_journal.py --pattern P001 --date 2024-03-31 \\
        --var amount=1200 --context invoice_no=INV-7 --context customer=Acme

    # Which inputs does P002 need?
    python3 scripts/generate_journal.py --pattern P002 --variables-only

    # Dry run (no posting)
    python3 scripts/generate_journal.py --pattern P003 --date 2024-03-31 \\
        --var cost=36000 --context period=2024-03 --preview
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import date
from pathlib import Path

# Project root on sys.path
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))


def _key_value(raw: str) -> tuple[str, str]:
    name, sep, value = raw.partition("=")
    if not sep or not name.strip():
        raise argparse.ArgumentTypeError(f"expected name=value, got {raw!r}")
    return name.strip(), value


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Generate a journal entry from an auto-journal pattern.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--config-dir",
        type=Path,
        default=None,
        help="Configuration set directory (default: journal_config/sets/default).",
    )
    parser.add_argument("--pattern", required=True, help="Pattern code.")
    parser.add_argument(
        "--date",
        type=lambda s: date.fromisoformat(s),
        default=None,
        help="Journal date (YYYY-MM-DD). Required unless --variables-only.",
    )
    parser.add_argument(
        "--var",
        action="append",
        type=_key_value,
        default=[],
        metavar="NAME=VALUE",
        help="Variable value for the amount formulas (repeatable).",
    )
    parser.add_argument(
        "--context",
        action="append",
        type=_key_value,
        default=[],
        metavar="TOKEN=VALUE",
        help="Value for a {token} in line description templates (repeatable).",
    )
    parser.add_argument(
        "--description",
        default=None,
        help="Entry description (default: the pattern name).",
    )
    parser.add_argument(
        "--variables-only",
        action="store_true",
        help="Print the variables the pattern requires and exit.",
    )
    parser.add_argument(
        "--preview",
        action="store_true",
        help="Build and validate the entry without posting it.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Emit structured debug logs on stderr.",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)

    from journal_config import get_active_config
    from journal_config.bridges import build_generation_settings, build_pattern_repository
    from journal_kernel.domain.dtos import GenerationRequest
    from journal_kernel.exceptions import JournalKernelError
    from journal_kernel.logging_config import configure_logging
    from journal_kernel.services import JournalGenerationService, PatternService
    from journal_kernel.services.memory import (
        InMemoryGenerationLogSink,
        InMemoryJournalPoster,
    )

    configure_logging(level=logging.DEBUG if args.verbose else logging.ERROR)

    try:
        config = get_active_config(args.config_dir)
    except Exception as e:
        print(f"ERROR: Failed to load config: {e}", file=sys.stderr)
        return 1

    repository = build_pattern_repository(config)
    poster = InMemoryJournalPoster()

    try:
        if args.variables_only:
            variables = PatternService(repository, poster).required_variables(args.pattern)
            print(json.dumps({"pattern_code": args.pattern, "variables": list(variables)}, indent=2))
            return 0

        if args.date is None:
            print("ERROR: --date is required", file=sys.stderr)
            return 1

        service = JournalGenerationService(
            repository,
            poster,
            log_sink=InMemoryGenerationLogSink(),
            settings=build_generation_settings(config),
        )
        request = GenerationRequest(
            pattern_code=args.pattern,
            journal_date=args.date,
            variable_values=dict(args.var),
            description_context=dict(args.context),
            override_description=args.description,
        )

        if args.preview:
            output = {"journal_entry_id": None, "entry": service.preview(request).to_dict()}
        else:
            result = service.generate(request)
            output = {
                "journal_entry_id": result.journal_entry_id,
                "entry": result.entry.to_dict(),
            }
    except JournalKernelError as e:
        error = {"code": e.code, "category": e.category.value, "message": str(e)}
        print(json.dumps({"error": error}, indent=2), file=sys.stderr)
        return 1

    print(json.dumps(output, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
