"""
Description Templater -- expands {token} placeholders in line descriptions.

Syntax:
    ``{identifier}`` where identifier matches ``[A-Za-z_][A-Za-z0-9_]*``.
    Values are substituted verbatim. There is no escape for literal braces;
    braces that do not enclose an identifier are left untouched.

Invariants enforced:
    NO_UNEXPANDED_PLACEHOLDER -- strict mode raises on a missing token,
    lenient mode substitutes an empty string. Either way no literal
    ``{token}`` reaches an emitted description.
"""

from __future__ import annotations

import re
from typing import Mapping

from journal_kernel.exceptions import UnresolvedPlaceholderError

PLACEHOLDER_PATTERN = re.compile(r"\{([A-Za-z_][A-Za-z0-9_]*)\}")


def find_placeholders(template: str | None) -> tuple[str, ...]:
    """Distinct placeholder tokens in order of first appearance."""
    if not template:
        return ()
    return tuple(dict.fromkeys(PLACEHOLDER_PATTERN.findall(template)))


def find_unresolved(template: str | None, context: Mapping[str, str]) -> tuple[str, ...]:
    """Placeholder tokens in ``template`` that ``context`` has no value for."""
    return tuple(token for token in find_placeholders(template) if token not in context)


def expand_template(
    template: str | None,
    context: Mapping[str, str],
    *,
    strict: bool = True,
    line_number: int | None = None,
) -> str:
    """
    Expand every ``{token}`` in ``template`` from ``context``.

    A blank or missing template expands to "". Substituted values are not
    re-scanned, so a value containing braces is emitted as-is.

    Raises:
        UnresolvedPlaceholderError: In strict mode, listing every token with
            no value in ``context``.
    """
    if not template:
        return ""

    if strict:
        missing = find_unresolved(template, context)
        if missing:
            raise UnresolvedPlaceholderError.aggregate(
                [(line_number, token) for token in missing]
            )

    def _substitute(match: re.Match[str]) -> str:
        token = match.group(1)
        if token in context:
            return str(context[token])
        return ""

    return PLACEHOLDER_PATTERN.sub(_substitute, template)
