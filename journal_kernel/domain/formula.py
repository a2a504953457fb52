"""
Formula -- restricted arithmetic parser and evaluator for amount formulas.

Responsibility:
    Parses amount formulas into a small tagged-union AST and evaluates them
    against an immutable name -> Decimal binding.

Grammar (recursive descent):
    expression := term (('+' | '-') term)*
    term       := factor (('*' | '/') factor)*
    factor     := number | identifier | '(' expression ')' | '-' factor

    number     := [0-9]+ ('.' [0-9]+)?
    identifier := [A-Za-z_][A-Za-z0-9_]*        (case-sensitive)

Rejected:
    function calls, comparisons, booleans, exponent notation, any character
    outside the grammar. Nothing is handed to ``eval`` or ``ast``.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    DECIMAL_ARITHMETIC -- literals are parsed straight to Decimal; the result
    of every operator is quantized to MONEY_SCALE with ROUND_HALF_UP.

Failure modes:
    - FormulaSyntaxError(position) on malformed input
    - UndefinedVariableError(name) when a variable has no binding
    - DivisionByZeroError when a divisor evaluates to zero
    - AmountOutOfRangeError when an operand or result exceeds MAX_AMOUNT
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, Overflow, localcontext
from functools import lru_cache
from typing import Iterator, Mapping, Union

from journal_kernel.domain.money import (
    MAX_AMOUNT,
    is_within_range,
    parse_decimal,
    round_money,
)
from journal_kernel.exceptions import (
    AmountOutOfRangeError,
    DivisionByZeroError,
    FormulaSyntaxError,
    UndefinedVariableError,
)

# Deeper nesting than this is rejected as a syntax error instead of
# exhausting the interpreter stack.
MAX_NESTING_DEPTH = 64

_OPERATORS = frozenset("+-*/")

# Working precision for intermediate products before quantization.
_EVAL_PRECISION = 50


# ---------------------------------------------------------------------------
# AST
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class NumberLiteral:
    value: Decimal


@dataclass(frozen=True, slots=True)
class Variable:
    name: str
    position: int = 0


@dataclass(frozen=True, slots=True)
class BinaryOp:
    op: str
    left: Node
    right: Node


@dataclass(frozen=True, slots=True)
class UnaryNeg:
    operand: Node


Node = Union[NumberLiteral, Variable, BinaryOp, UnaryNeg]


# ---------------------------------------------------------------------------
# Tokenizer
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class _Token:
    kind: str  # "number", "ident", "op", "lparen", "rparen", "end"
    text: str
    position: int


def _tokenize(expression: str) -> list[_Token]:
    tokens: list[_Token] = []
    i = 0
    n = len(expression)
    while i < n:
        ch = expression[i]
        if ch.isspace():
            i += 1
        elif ch.isascii() and ch.isdigit():
            start = i
            while i < n and expression[i].isascii() and expression[i].isdigit():
                i += 1
            if i < n and expression[i] == ".":
                i += 1
                if i >= n or not (expression[i].isascii() and expression[i].isdigit()):
                    raise FormulaSyntaxError(
                        expression, i, "expected digit after decimal point"
                    )
                while i < n and expression[i].isascii() and expression[i].isdigit():
                    i += 1
            tokens.append(_Token("number", expression[start:i], start))
        elif ch == "_" or (ch.isascii() and ch.isalpha()):
            start = i
            while i < n and (
                expression[i] == "_"
                or (expression[i].isascii() and expression[i].isalnum())
            ):
                i += 1
            tokens.append(_Token("ident", expression[start:i], start))
        elif ch in _OPERATORS:
            tokens.append(_Token("op", ch, i))
            i += 1
        elif ch == "(":
            tokens.append(_Token("lparen", ch, i))
            i += 1
        elif ch == ")":
            tokens.append(_Token("rparen", ch, i))
            i += 1
        else:
            raise FormulaSyntaxError(expression, i, f"unexpected character {ch!r}")
    tokens.append(_Token("end", "", n))
    return tokens


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


class _Parser:
    """Recursive-descent parser over a token list. One instance per parse."""

    def __init__(self, expression: str):
        self._expression = expression
        self._tokens = _tokenize(expression)
        self._index = 0
        self._depth = 0

    @property
    def _current(self) -> _Token:
        return self._tokens[self._index]

    def _advance(self) -> _Token:
        token = self._tokens[self._index]
        self._index += 1
        return token

    def _error(self, reason: str, token: _Token | None = None) -> FormulaSyntaxError:
        position = (token or self._current).position
        return FormulaSyntaxError(self._expression, position, reason)

    def parse(self) -> Node:
        if self._current.kind == "end":
            raise self._error("empty formula")
        node = self._parse_expression()
        if self._current.kind != "end":
            raise self._error(f"unexpected {self._current.text!r}")
        return node

    def _parse_expression(self) -> Node:
        node = self._parse_term()
        while self._current.kind == "op" and self._current.text in "+-":
            op = self._advance().text
            node = BinaryOp(op, node, self._parse_term())
        return node

    def _parse_term(self) -> Node:
        node = self._parse_factor()
        while self._current.kind == "op" and self._current.text in "*/":
            op = self._advance().text
            node = BinaryOp(op, node, self._parse_factor())
        return node

    def _parse_factor(self) -> Node:
        token = self._current
        if token.kind == "number":
            self._advance()
            return NumberLiteral(Decimal(token.text))
        if token.kind == "ident":
            self._advance()
            return Variable(token.text, token.position)
        if token.kind == "lparen":
            self._enter(token)
            self._advance()
            node = self._parse_expression()
            if self._current.kind != "rparen":
                raise self._error("expected ')'")
            self._advance()
            self._depth -= 1
            return node
        if token.kind == "op" and token.text == "-":
            self._enter(token)
            self._advance()
            node = UnaryNeg(self._parse_factor())
            self._depth -= 1
            return node
        if token.kind == "end":
            raise self._error("unexpected end of formula")
        raise self._error(f"unexpected {token.text!r}")

    def _enter(self, token: _Token) -> None:
        self._depth += 1
        if self._depth > MAX_NESTING_DEPTH:
            raise self._error(
                f"nesting deeper than {MAX_NESTING_DEPTH} levels", token
            )


@lru_cache(maxsize=1024)
def parse_formula(expression: str) -> Node:
    """
    Parse an amount formula into an AST.

    Pure and cached: AST nodes are frozen, so the same tree is safely shared
    between concurrent generation calls.

    Raises:
        FormulaSyntaxError: On malformed input (position is a 0-based offset).
    """
    if not isinstance(expression, str):
        raise TypeError(f"formula must be str, got {type(expression).__name__}")
    return _Parser(expression).parse()


def validate_formula(expression: str) -> list[FormulaSyntaxError]:
    """Validate a formula against the grammar.

    Returns a list of errors. Empty list means the formula is valid.
    """
    try:
        parse_formula(expression)
    except FormulaSyntaxError as e:
        return [e]
    return []


# ---------------------------------------------------------------------------
# Variables
# ---------------------------------------------------------------------------


def _walk_variables(node: Node) -> Iterator[str]:
    # Left-to-right traversal matches source order.
    if isinstance(node, Variable):
        yield node.name
    elif isinstance(node, BinaryOp):
        yield from _walk_variables(node.left)
        yield from _walk_variables(node.right)
    elif isinstance(node, UnaryNeg):
        yield from _walk_variables(node.operand)


def extract_variables(expression: str | Node) -> tuple[str, ...]:
    """
    Distinct identifiers referenced by a formula, in first-appearance order.

    Does not evaluate anything; used to drive required-input collection.

    Raises:
        FormulaSyntaxError: If the formula is malformed.
    """
    node = parse_formula(expression) if isinstance(expression, str) else expression
    return tuple(dict.fromkeys(_walk_variables(node)))


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------


def evaluate(
    expression: str | Node,
    bindings: Mapping[str, Decimal | int | str],
    *,
    source: str | None = None,
) -> Decimal:
    """
    Evaluate a formula against a variable binding.

    Args:
        expression: Formula text or a pre-parsed AST.
        bindings: Variable name -> value. Non-Decimal values are converted
            with parse_decimal.
        source: Formula text for error messages when ``expression`` is an AST.

    Returns:
        The result quantized to MONEY_SCALE (ROUND_HALF_UP).

    Raises:
        FormulaSyntaxError: Malformed formula text.
        UndefinedVariableError: A referenced variable has no binding.
        DivisionByZeroError: A divisor evaluated to zero.
        AmountOutOfRangeError: An operand or intermediate result exceeds
            MAX_AMOUNT.
    """
    if isinstance(expression, str):
        source = expression
        node = parse_formula(expression)
    else:
        node = expression
    with localcontext() as ctx:
        ctx.prec = _EVAL_PRECISION
        # Overflow yields Infinity, which round_money reports as out of range.
        ctx.traps[Overflow] = False
        return round_money(_eval(node, bindings, source or ""))


def _eval(node: Node, bindings: Mapping[str, Decimal | int | str], source: str) -> Decimal:
    if isinstance(node, NumberLiteral):
        return _in_range(node.value)

    if isinstance(node, Variable):
        if node.name not in bindings:
            raise UndefinedVariableError(node.name)
        value = bindings[node.name]
        return _in_range(value if isinstance(value, Decimal) else parse_decimal(value))

    if isinstance(node, UnaryNeg):
        return -_eval(node.operand, bindings, source)

    if isinstance(node, BinaryOp):
        left = _eval(node.left, bindings, source)
        right = _eval(node.right, bindings, source)
        if node.op == "+":
            return round_money(left + right)
        if node.op == "-":
            return round_money(left - right)
        if node.op == "*":
            return round_money(left * right)
        if node.op == "/":
            if right == 0:
                raise DivisionByZeroError(source)
            return round_money(left / right)
        raise ValueError(f"Unknown operator: {node.op}")

    raise TypeError(f"Unknown formula node: {type(node).__name__}")


def _in_range(value: Decimal) -> Decimal:
    if not is_within_range(value):
        raise AmountOutOfRangeError(value, MAX_AMOUNT)
    return value
