"""
Kernel Boundary & Invariants Contract.

Tests that enforce the kernel's architectural boundaries:

1. journal_kernel/** may NOT import journal_config or scripts.
   The kernel never depends upward.

2. journal_kernel/domain/** is the pure core: it may not import the
   services layer or YAML.

3. The kernel invariants declaration is complete and non-empty.

These tests read source code via AST; they cannot break anything.
"""

import ast
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _python_files(package: str) -> list[Path]:
    """Return all .py files under a top-level package directory."""
    return sorted((ROOT / package).rglob("*.py"))


def _extract_imports(filepath: Path) -> list[tuple[int, str]]:
    """Extract (line_number, module_string) for all imports in a file."""
    try:
        tree = ast.parse(filepath.read_text(), filename=str(filepath))
    except (SyntaxError, UnicodeDecodeError):
        return []

    results: list[tuple[int, str]] = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                results.append((node.lineno, alias.name))
        elif isinstance(node, ast.ImportFrom):
            if node.module:
                results.append((node.lineno, node.module))
    return results


def _violations(package: str, forbidden: tuple[str, ...]) -> list[str]:
    violations: list[str] = []
    for filepath in _python_files(package):
        for lineno, module in _extract_imports(filepath):
            for prefix in forbidden:
                if module == prefix or module.startswith(f"{prefix}."):
                    rel = filepath.relative_to(ROOT)
                    violations.append(f"  {rel}:{lineno} imports '{module}'")
    return violations


# ---------------------------------------------------------------------------
# Test: Kernel has no upward dependencies
# ---------------------------------------------------------------------------

class TestKernelNoUpwardDependencies:
    """journal_kernel/** must not import journal_config or scripts."""

    def test_kernel_does_not_import_forbidden_packages(self):
        from journal_kernel.invariants import FORBIDDEN_KERNEL_IMPORTS

        violations = _violations("journal_kernel", FORBIDDEN_KERNEL_IMPORTS)
        assert not violations, (
            "Kernel boundary violation: journal_kernel/** must not import "
            "upward packages:\n" + "\n".join(violations)
        )

    def test_kernel_files_found(self):
        """Guard against the scan silently checking nothing."""
        assert len(_python_files("journal_kernel")) > 5


# ---------------------------------------------------------------------------
# Test: Domain purity
# ---------------------------------------------------------------------------

class TestDomainPurity:
    """journal_kernel/domain/** must not reach into services or I/O libraries."""

    FORBIDDEN_MODULES = (
        "journal_kernel.services",
        "yaml",
    )

    def test_domain_has_no_service_or_io_imports(self):
        violations = _violations("journal_kernel/domain", self.FORBIDDEN_MODULES)
        assert not violations, (
            "Domain purity violation: journal_kernel/domain/** must not "
            "import services or YAML:\n" + "\n".join(violations)
        )


# ---------------------------------------------------------------------------
# Test: Invariants declaration exists and is complete
# ---------------------------------------------------------------------------

class TestKernelInvariantsDeclaration:
    """The kernel invariants contract must be declared and complete."""

    def test_invariants_module_exists(self):
        from journal_kernel.invariants import ALL_KERNEL_INVARIANTS
        assert len(ALL_KERNEL_INVARIANTS) > 0

    def test_required_invariants_declared(self):
        from journal_kernel.invariants import KernelInvariant

        required = {
            "DOUBLE_ENTRY_BALANCE",
            "POSITIVE_LINE_AMOUNT",
            "DECIMAL_ARITHMETIC",
            "PATTERN_CODE_IMMUTABLE",
            "SNAPSHOT_ISOLATION",
            "NO_UNEXPANDED_PLACEHOLDER",
            "ALL_OR_NOTHING",
        }
        declared = {inv.name for inv in KernelInvariant}
        missing = required - declared
        assert not missing, f"Missing kernel invariants: {missing}"

    def test_forbidden_imports_declared(self):
        from journal_kernel.invariants import FORBIDDEN_KERNEL_IMPORTS

        assert "journal_config" in FORBIDDEN_KERNEL_IMPORTS


# ---------------------------------------------------------------------------
# Test: Every kernel exception carries a code
# ---------------------------------------------------------------------------

class TestExceptionCodes:
    """Every JournalKernelError subclass declares its own machine-readable code."""

    def test_codes_are_unique(self):
        from journal_kernel import exceptions

        classes = [
            obj for obj in vars(exceptions).values()
            if isinstance(obj, type) and issubclass(obj, exceptions.JournalKernelError)
        ]
        codes = [cls.code for cls in classes]
        assert len(codes) == len(set(codes)), "Duplicate exception codes"
        for cls in classes:
            assert cls.code and cls.code == cls.code.upper()
