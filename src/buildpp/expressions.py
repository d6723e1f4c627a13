"""
Expression System for #if / #elif conditions

Conditions are parsed into small Abstract Syntax Trees before they are
evaluated. Nothing is ever handed to a general-purpose interpreter.

The grammar is deliberately bounded:
    - identifiers (looked up in the defines mapping)
    - string, number, boolean and null literals
    - ! && ||
    - == != === !== < > <= >=
    - parentheses

ARCHITECTURAL RULE:
    This module is structure only.
    Parsing lives in expression_parser, evaluation lives in evaluator.
"""

from abc import ABC
from dataclasses import dataclass
from enum import Enum
from typing import Union


class Expression(ABC):
    """
    Base class for all condition expressions.

    It exists to provide type-safety for the expression hierarchy.
    """
    pass


class BinaryOperator(Enum):
    """
    Binary operators supported in conditions.

    The strict forms (=== and !==) are accepted because conditions are
    usually written next to JavaScript code; they compare the same way
    as their loose counterparts.
    """

    # Logical operators
    AND = "&&"
    OR = "||"

    # Equality operators
    EQUALS = "=="
    NOT_EQUALS = "!="
    STRICT_EQUALS = "==="
    STRICT_NOT_EQUALS = "!=="

    # Comparison operators
    GREATER_THAN = ">"
    GREATER_EQUAL = ">="
    LESS_THAN = "<"
    LESS_EQUAL = "<="


@dataclass(frozen=True)
class BinaryExpression(Expression):
    """
    Represents a binary logical or comparison expression.

    Example:
        GENERIC || (CHROME && !MOZCENTRAL)

    Becomes:
        BinaryExpression(
            operator=BinaryOperator.OR,
            left=VariableReference("GENERIC"),
            right=BinaryExpression(
                operator=BinaryOperator.AND,
                left=VariableReference("CHROME"),
                right=UnaryExpression(
                    operator=UnaryOperator.NOT,
                    operand=VariableReference("MOZCENTRAL"),
                ),
            ),
        )

    IMPORTANT:
        This object is immutable (frozen=True).
        It does NOT evaluate itself.
    """

    operator: BinaryOperator
    left: "Expression"
    right: "Expression"


@dataclass(frozen=True)
class VariableReference(Expression):
    """
    References a define by name.

    Existence is not checked here; an unknown name is an
    evaluation failure, not a parse failure.
    """

    name: str


@dataclass(frozen=True)
class Literal(Expression):
    """
    Represents a literal constant value.

    Examples:
        - 'firefox'
        - 42
        - true
        - null  (value is None)
    """

    value: Union[int, float, str, bool, None]


class UnaryOperator(Enum):
    """Unary operators."""
    NOT = "!"


@dataclass(frozen=True)
class UnaryExpression(Expression):
    """
    Represents a unary operation.

    Example:
        !MOZCENTRAL

    Becomes:
        UnaryExpression(
            operator=UnaryOperator.NOT,
            operand=VariableReference("MOZCENTRAL")
        )
    """

    operator: UnaryOperator
    operand: Expression
