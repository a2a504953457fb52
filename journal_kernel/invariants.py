"""
Kernel Invariants Contract.

These invariants are structural law for journal generation. No engine
setting, pattern definition, or caller option may switch them off.

This module exists solely to declare these invariants explicitly. The
enforcement is distributed across the binder, line evaluator, balance
validator, templater, generator, and PatternService.
"""

from enum import Enum, unique


@unique
class KernelInvariant(str, Enum):
    """Non-configurable invariants enforced by the kernel.

    Configuration may tune the balance tolerance or placeholder strictness,
    but never *whether* these rules apply.
    """

    DOUBLE_ENTRY_BALANCE = "double_entry_balance"
    """Total debits equal total credits (within tolerance) in every generated
    entry. Enforced by balance.validate_balance before the entry exists."""

    POSITIVE_LINE_AMOUNT = "positive_line_amount"
    """Every evaluated line amount is strictly positive. Enforced by
    line_evaluator.evaluate_lines."""

    DECIMAL_ARITHMETIC = "decimal_arithmetic"
    """Formula literals and arithmetic use Decimal at scale 2 with
    ROUND_HALF_UP; binary floating point never touches an amount.
    Enforced by formula.evaluate."""

    PATTERN_CODE_IMMUTABLE = "pattern_code_immutable"
    """A pattern's code is unique and never changes after creation.
    Enforced by PatternService.create_pattern / update_pattern."""

    SNAPSHOT_ISOLATION = "snapshot_isolation"
    """A generation call evaluates only against the pattern snapshot
    captured at its start. Enforced by PatternSnapshot.capture."""

    NO_UNEXPANDED_PLACEHOLDER = "no_unexpanded_placeholder"
    """No emitted description contains a literal {token}. Enforced by
    templater.expand_template."""

    ALL_OR_NOTHING = "all_or_nothing"
    """Generation returns a complete, validated entry or raises; no partial
    entry ever reaches the posting collaborator. Enforced by
    generator.generate_draft and JournalGenerationService.generate."""


# All invariants as a frozenset for programmatic checks.
ALL_KERNEL_INVARIANTS: frozenset[KernelInvariant] = frozenset(KernelInvariant)

# The kernel package may not import from these packages.
# This is enforced by tests/architecture/test_kernel_boundary.py.
FORBIDDEN_KERNEL_IMPORTS: tuple[str, ...] = (
    "journal_config",
    "scripts",
)
