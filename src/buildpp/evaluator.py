"""
Evaluates condition ASTs against a defines mapping.

The mapping is only read. Evaluation holds no state between calls,
so the same tree can be evaluated against any number of mappings.
"""

import operator
from typing import Any, Mapping

from buildpp.expressions import (
    Expression,
    BinaryExpression,
    BinaryOperator,
    VariableReference,
    Literal,
    UnaryExpression,
    UnaryOperator,
)


class UndefinedNameError(Exception):
    """Raised when a condition references a name missing from the defines."""
    pass


_COMPARATORS = {
    BinaryOperator.EQUALS: operator.eq,
    BinaryOperator.NOT_EQUALS: operator.ne,
    BinaryOperator.STRICT_EQUALS: operator.eq,
    BinaryOperator.STRICT_NOT_EQUALS: operator.ne,
    BinaryOperator.GREATER_THAN: operator.gt,
    BinaryOperator.GREATER_EQUAL: operator.ge,
    BinaryOperator.LESS_THAN: operator.lt,
    BinaryOperator.LESS_EQUAL: operator.le,
}


def evaluate(expr: Expression, defines: Mapping[str, Any]) -> Any:
    """
    Evaluate an expression tree.

    && and || short-circuit and return the operand that decided the
    result, so `NAME || 'fallback'` yields a string, not a bool.

    Raises:
        UndefinedNameError: If a referenced name is not defined
        TypeError: If operands cannot be ordered (e.g. 'a' < 1)
    """
    if isinstance(expr, Literal):
        return expr.value

    if isinstance(expr, VariableReference):
        if expr.name not in defines:
            raise UndefinedNameError(f"{expr.name} is not defined")
        return defines[expr.name]

    if isinstance(expr, UnaryExpression):
        if expr.operator == UnaryOperator.NOT:
            return not evaluate(expr.operand, defines)
        raise TypeError(f"Unsupported unary operator: {expr.operator}")

    if isinstance(expr, BinaryExpression):
        left = evaluate(expr.left, defines)
        if expr.operator == BinaryOperator.AND:
            return evaluate(expr.right, defines) if left else left
        if expr.operator == BinaryOperator.OR:
            return left if left else evaluate(expr.right, defines)
        return _COMPARATORS[expr.operator](left, evaluate(expr.right, defines))

    raise TypeError(f"Unsupported Expression type: {type(expr)}")


__all__ = ["UndefinedNameError", "evaluate"]
