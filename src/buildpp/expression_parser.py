"""
Condition parser (raw #if text -> Expression AST).

Precedence, lowest first:
    ||
    &&
    == != === !==
    < > <= >=
    !
    primary: identifier, literal, ( ... )

Every token must be consumed; trailing garbage is a syntax error.
"""

import re
from typing import List, Tuple

from buildpp.expressions import (
    Expression,
    BinaryExpression,
    BinaryOperator,
    VariableReference,
    Literal,
    UnaryExpression,
    UnaryOperator,
)


class ExpressionSyntaxError(Exception):
    """Raised when a condition cannot be parsed."""
    pass


_TOKEN_RE = re.compile(
    r"""\s*(?:
        (?P<token>
            ===|!==|==|!=|<=|>=|&&|\|\||[()<>!]
            |"(?:[^"\\]|\\.)*"
            |'(?:[^'\\]|\\.)*'
            |\d+(?:\.\d*)?|\.\d+
            |[A-Za-z_$][A-Za-z0-9_$]*
        )
        |(?P<bad>\S)
    )""",
    re.VERBOSE,
)

_NUMBER_RE = re.compile(r'^(\d+(\.\d*)?|\.\d+)$')
_IDENTIFIER_RE = re.compile(r'^[A-Za-z_$][A-Za-z0-9_$]*$')

_KEYWORDS = {
    'true': True,
    'false': False,
    'null': None,
}

_EQUALITY_OPERATORS = {
    '==': BinaryOperator.EQUALS,
    '!=': BinaryOperator.NOT_EQUALS,
    '===': BinaryOperator.STRICT_EQUALS,
    '!==': BinaryOperator.STRICT_NOT_EQUALS,
}

_COMPARISON_OPERATORS = {
    '<': BinaryOperator.LESS_THAN,
    '>': BinaryOperator.GREATER_THAN,
    '<=': BinaryOperator.LESS_EQUAL,
    '>=': BinaryOperator.GREATER_EQUAL,
}


def tokenize(source: str) -> List[str]:
    """Split a condition into tokens."""
    tokens = []
    for m in _TOKEN_RE.finditer(source):
        if m.group('bad') is not None:
            raise ExpressionSyntaxError(
                f"Unexpected character {m.group('bad')!r} at offset {m.start('bad')}"
            )
        tokens.append(m.group('token'))
    return tokens


def parse_expression(source: str) -> Expression:
    """
    Parse a condition string into an Expression tree.

    Args:
        source: Condition text, e.g. "GENERIC && !CHROME"

    Returns:
        Expression AST

    Raises:
        ExpressionSyntaxError: If the text is not a valid condition
    """
    tokens = tokenize(source)
    ast, pos = _parse_or_expression(tokens, 0)
    if pos < len(tokens):
        raise ExpressionSyntaxError(f"Unexpected token: {tokens[pos]}")
    return ast


def _parse_or_expression(tokens: List[str], pos: int) -> Tuple[Expression, int]:
    """Parse || (lowest precedence)."""
    left, pos = _parse_and_expression(tokens, pos)

    while pos < len(tokens) and tokens[pos] == '||':
        right, pos = _parse_and_expression(tokens, pos + 1)
        left = BinaryExpression(BinaryOperator.OR, left, right)

    return left, pos


def _parse_and_expression(tokens: List[str], pos: int) -> Tuple[Expression, int]:
    """Parse &&."""
    left, pos = _parse_equality_expression(tokens, pos)

    while pos < len(tokens) and tokens[pos] == '&&':
        right, pos = _parse_equality_expression(tokens, pos + 1)
        left = BinaryExpression(BinaryOperator.AND, left, right)

    return left, pos


def _parse_equality_expression(tokens: List[str], pos: int) -> Tuple[Expression, int]:
    left, pos = _parse_comparison_expression(tokens, pos)

    while pos < len(tokens) and tokens[pos] in _EQUALITY_OPERATORS:
        op = _EQUALITY_OPERATORS[tokens[pos]]
        right, pos = _parse_comparison_expression(tokens, pos + 1)
        left = BinaryExpression(op, left, right)

    return left, pos


def _parse_comparison_expression(tokens: List[str], pos: int) -> Tuple[Expression, int]:
    left, pos = _parse_unary_expression(tokens, pos)

    while pos < len(tokens) and tokens[pos] in _COMPARISON_OPERATORS:
        op = _COMPARISON_OPERATORS[tokens[pos]]
        right, pos = _parse_unary_expression(tokens, pos + 1)
        left = BinaryExpression(op, left, right)

    return left, pos


def _parse_unary_expression(tokens: List[str], pos: int) -> Tuple[Expression, int]:
    """Parse unary expression (!), right-associative."""
    if pos < len(tokens) and tokens[pos] == '!':
        operand, pos = _parse_unary_expression(tokens, pos + 1)
        return UnaryExpression(UnaryOperator.NOT, operand), pos

    return _parse_primary_expression(tokens, pos)


def _parse_primary_expression(tokens: List[str], pos: int) -> Tuple[Expression, int]:
    """Parse primary expression (literal, identifier or parenthesized)."""
    if pos >= len(tokens):
        raise ExpressionSyntaxError("Unexpected end of expression")

    token = tokens[pos]

    if token == '(':
        expr, pos = _parse_or_expression(tokens, pos + 1)
        if pos >= len(tokens) or tokens[pos] != ')':
            raise ExpressionSyntaxError("Missing closing parenthesis")
        return expr, pos + 1

    if token[0] in '"\'':
        return Literal(_unquote(token)), pos + 1

    if _NUMBER_RE.match(token):
        value = float(token) if '.' in token else int(token)
        return Literal(value), pos + 1

    if token in _KEYWORDS:
        return Literal(_KEYWORDS[token]), pos + 1

    if _IDENTIFIER_RE.match(token):
        return VariableReference(token), pos + 1

    raise ExpressionSyntaxError(f"Unexpected token: {token}")


def _unquote(token: str) -> str:
    # Backslash escapes the next character verbatim; no \n style escapes.
    return re.sub(r'\\(.)', r'\1', token[1:-1])


__all__ = [
    "ExpressionSyntaxError",
    "parse_expression",
    "tokenize",
]
