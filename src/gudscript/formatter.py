"""AST-walking pretty-printer for GudScript source code.

Produces canonical source text that parses back to the same tree. Number
literals keep their original spelling; parentheses are emitted only where
precedence or associativity requires them. Comments are not part of the
AST and are not preserved.
"""

from __future__ import annotations

from gudscript.ast_nodes import (
    Add,
    Assign,
    BinaryExpression,
    BitAnd,
    BitOr,
    BitXor,
    Boolean,
    Divide,
    Equal,
    Exponentiate,
    FunctionCall,
    Greater,
    GreaterEqual,
    LeftShift,
    Lesser,
    LesserEqual,
    LogicalAnd,
    LogicalOr,
    MemberAccess,
    Modulo,
    Multiply,
    Negate,
    Node,
    Not,
    NotEqual,
    Number,
    PostfixDecrement,
    PostfixIncrement,
    PrefixDecrement,
    PrefixIncrement,
    Program,
    RightShift,
    Subtract,
    Ternary,
    UpdateExpression,
    Variable,
    VariableDefine,
)

# Precedence levels (higher binds tighter), matching the parser's grammar.
_TERNARY = 1
_PREFIX = 13
_POSTFIX = 14
_ACCESS = 15
_PRIMARY = 16

_BINARY: dict[type[BinaryExpression], tuple[str, int]] = {
    LogicalOr: ("||", 2),
    LogicalAnd: ("&&", 3),
    BitXor: ("^", 4),
    BitOr: ("|", 5),
    BitAnd: ("&", 6),
    Equal: ("==", 7),
    NotEqual: ("!=", 7),
    LesserEqual: ("<=", 8),
    GreaterEqual: (">=", 8),
    Lesser: ("<", 8),
    Greater: (">", 8),
    LeftShift: ("<<", 9),
    RightShift: (">>", 9),
    Add: ("+", 10),
    Subtract: ("-", 10),
    Multiply: ("*", 11),
    Divide: ("/", 11),
    Modulo: ("%", 11),
    Exponentiate: ("**", 12),
}

_PREFIX_OPS: dict[type, str] = {
    Not: "!",
    Negate: "-",
    PrefixIncrement: "++",
    PrefixDecrement: "--",
}

_POSTFIX_OPS: dict[type, str] = {
    PostfixIncrement: "++",
    PostfixDecrement: "--",
}


def precedence(node: Node) -> int:
    if isinstance(node, BinaryExpression):
        return _BINARY[type(node)][1]
    if isinstance(node, Ternary):
        return _TERNARY
    if type(node) in _PREFIX_OPS:
        return _PREFIX
    if type(node) in _POSTFIX_OPS:
        return _POSTFIX
    if isinstance(node, (MemberAccess, FunctionCall)):
        return _ACCESS
    return _PRIMARY


class GudFormatter:
    """Format a parsed statement or program back to canonical source text."""

    def format(self, node: Node) -> str:
        if isinstance(node, Program):
            return "".join(f"{self.format(stmt)}\n" for stmt in node.statements)
        if isinstance(node, VariableDefine):
            name = node.target.name
            if node.value is None:
                return f"var {name}"
            return f"var {name} = {self._expr(node.value, 0)}"
        if isinstance(node, Assign):
            return f"{self._expr(node.target, 0)} = {self._expr(node.value, 0)}"
        return self._expr(node, 0)

    def _expr(self, expr: Node, min_prec: int) -> str:
        text = self._format_expr(expr)
        if precedence(expr) < min_prec:
            return f"({text})"
        return text

    def _format_expr(self, expr: Node) -> str:
        if isinstance(expr, Number):
            return expr.literal or repr(expr.value)
        if isinstance(expr, Boolean):
            return "true" if expr.value else "false"
        if isinstance(expr, Variable):
            return expr.name
        if isinstance(expr, MemberAccess):
            return self._format_member(expr)
        if isinstance(expr, FunctionCall):
            args = ", ".join(self._expr(p, 0) for p in expr.parameters)
            return f"{self._expr(expr.callee, _ACCESS)}({args})"
        if isinstance(expr, BinaryExpression):
            return self._format_binary(expr)
        if isinstance(expr, Ternary):
            # The condition sits at the logical-or level; the else branch
            # is itself a ternary, so only a nested condition needs parens.
            return (f"{self._expr(expr.condition, _TERNARY + 1)} ? "
                    f"{self._expr(expr.if_true, 0)} : "
                    f"{self._expr(expr.if_false, _TERNARY)}")
        if type(expr) in _PREFIX_OPS:
            return self._format_prefix(expr)
        if type(expr) in _POSTFIX_OPS:
            return f"{self._expr(expr.target, _ACCESS)}{_POSTFIX_OPS[type(expr)]}"
        raise TypeError(f"cannot format {type(expr).__name__}")

    def _format_member(self, expr: MemberAccess) -> str:
        parent = self._expr(expr.parent, _ACCESS)
        if isinstance(expr.parent, Number):
            # `1.x` would lex as a malformed decimal literal.
            parent = f"({parent})"
        if isinstance(expr.property, Variable) and not expr.computed:
            return f"{parent}.{expr.property.name}"
        return f"{parent}[{self._expr(expr.property, 0)}]"

    def _format_binary(self, expr: BinaryExpression) -> str:
        op, prec = _BINARY[type(expr)]
        if isinstance(expr, Exponentiate):
            # Right-associative, and its left operand is a prefix expression.
            left = self._expr(expr.left, _PREFIX)
            right = self._expr(expr.right, prec)
        else:
            left = self._expr(expr.left, prec)
            right = self._expr(expr.right, prec + 1)
        return f"{left} {op} {right}"

    def _format_prefix(self, expr: Node) -> str:
        op = _PREFIX_OPS[type(expr)]
        operand = expr.target if isinstance(expr, UpdateExpression) else expr.expression
        text = self._expr(operand, _PREFIX)
        # `- -x` must not collapse into the `--` operator.
        if op == "-" and text.startswith("-"):
            return f"{op} {text}"
        return f"{op}{text}"
