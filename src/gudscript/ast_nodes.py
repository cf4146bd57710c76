"""AST node definitions for the GudScript language.

Every node carries a ``span``; spans are excluded from equality so two
trees parsed from differently laid out source compare equal when their
structure matches.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar

from gudscript.tokens import NumberLiteralType

if TYPE_CHECKING:
    from gudscript.source import Span


def _span():
    return field(default=None, compare=False, repr=False)


class Node:
    span: Span


class Statement(Node):
    pass


class Expression(Statement):
    # Only Variable and MemberAccess may be assigned to or incremented.
    assignable: ClassVar[bool] = False


# ── Primaries ────────────────────────────────────────────────────


@dataclass(frozen=True)
class Number(Expression):
    value: int | float
    literal: str = field(default="", compare=False)
    number_type: NumberLiteralType = field(
        default=NumberLiteralType.INTEGER, compare=False,
    )
    span: Span = _span()


@dataclass(frozen=True)
class Boolean(Expression):
    value: bool
    span: Span = _span()


@dataclass(frozen=True)
class Variable(Expression):
    assignable: ClassVar[bool] = True

    name: str
    span: Span = _span()


@dataclass(frozen=True)
class MemberAccess(Expression):
    """``parent.property`` or, when ``computed``, ``parent[property]``."""

    assignable: ClassVar[bool] = True

    parent: Expression
    property: Expression
    computed: bool = field(default=False, compare=False)
    span: Span = _span()


@dataclass(frozen=True)
class FunctionCall(Expression):
    callee: Expression
    parameters: list[Expression]
    span: Span = _span()


# ── Unary ────────────────────────────────────────────────────────


@dataclass(frozen=True)
class UnaryExpression(Expression):
    expression: Expression
    span: Span = _span()


class Not(UnaryExpression):
    pass


class Negate(UnaryExpression):
    pass


@dataclass(frozen=True)
class UpdateExpression(Expression):
    """Increment or decrement of an assignable target."""

    target: Expression
    span: Span = _span()


class PostfixIncrement(UpdateExpression):
    pass


class PostfixDecrement(UpdateExpression):
    pass


class PrefixIncrement(UpdateExpression):
    pass


class PrefixDecrement(UpdateExpression):
    pass


# ── Binary ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class BinaryExpression(Expression):
    left: Expression
    right: Expression
    span: Span = _span()


class Exponentiate(BinaryExpression):
    pass


class Multiply(BinaryExpression):
    pass


class Divide(BinaryExpression):
    pass


class Modulo(BinaryExpression):
    pass


class Add(BinaryExpression):
    pass


class Subtract(BinaryExpression):
    pass


class LeftShift(BinaryExpression):
    pass


class RightShift(BinaryExpression):
    pass


class LesserEqual(BinaryExpression):
    pass


class GreaterEqual(BinaryExpression):
    pass


class Lesser(BinaryExpression):
    pass


class Greater(BinaryExpression):
    pass


class Equal(BinaryExpression):
    pass


class NotEqual(BinaryExpression):
    pass


class BitAnd(BinaryExpression):
    pass


class BitOr(BinaryExpression):
    pass


class BitXor(BinaryExpression):
    pass


class LogicalAnd(BinaryExpression):
    pass


class LogicalOr(BinaryExpression):
    pass


@dataclass(frozen=True)
class Ternary(Expression):
    condition: Expression
    if_true: Expression
    if_false: Expression
    span: Span = _span()


# ── Statements ───────────────────────────────────────────────────


@dataclass(frozen=True)
class VariableDefine(Statement):
    target: Variable
    value: Expression | None = None
    span: Span = _span()


@dataclass(frozen=True)
class Assign(Statement):
    target: Expression
    value: Expression
    span: Span = _span()


@dataclass(frozen=True)
class Program(Node):
    statements: list[Statement]
    span: Span = _span()
