"""Parser for the GudScript language.

Transforms a token list into an AST by precedence climbing: each grammar
level folds the operators of one precedence band over the next tighter
level. The first error aborts the parse.
"""

from __future__ import annotations

import dataclasses
import logging
import math
from collections.abc import Callable
from typing import TypeVar

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
    Expression,
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
    Not,
    NotEqual,
    Number,
    PostfixDecrement,
    PostfixIncrement,
    PrefixDecrement,
    PrefixIncrement,
    Program,
    RightShift,
    Statement,
    Subtract,
    Ternary,
    UpdateExpression,
    Variable,
    VariableDefine,
)
from gudscript.errors import (
    InvalidNumericLiteral,
    NestingTooDeep,
    NonAssignableTarget,
    UnexpectedToken,
)
from gudscript.lexer import Lexer
from gudscript.tokens import NumberLiteralType, Token, TokenKind

logger = logging.getLogger(__name__)

INT_MIN = -(2 ** 63)
INT_MAX = 2 ** 63 - 1

_OPERATOR_KINDS = (TokenKind.PUNCTUATION, TokenKind.MULTI_CHAR_OPERATOR)

T = TypeVar("T")
E = TypeVar("E")

SwitchEat = dict[str, Callable[[Token], T]]
SwitchFold = dict[str, Callable[[Token, E], E]]


def number_value(token: Token) -> int | float:
    """Convert a number literal token to its value.

    Integer, binary and hex literals must fit a signed 64-bit integer;
    decimal literals must be finite.
    """
    number_type = token.number_type or NumberLiteralType.INTEGER
    name = number_type.display_name
    if number_type is NumberLiteralType.DECIMAL:
        try:
            value = float(token.value)
        except ValueError as e:
            raise InvalidNumericLiteral(f"invalid {name} literal: {e}", token.span) from e
        if math.isinf(value):
            raise InvalidNumericLiteral(
                f"invalid {name} literal: value out of range", token.span,
            )
        return value

    try:
        value = int(token.value, number_type.radix)
    except ValueError as e:
        raise InvalidNumericLiteral(f"invalid {name} literal: {e}", token.span) from e
    if not INT_MIN <= value <= INT_MAX:
        raise InvalidNumericLiteral(
            f"invalid {name} literal: value does not fit in 64 bits",
            token.span,
            help=f"the largest {name} literal is {INT_MAX}",
        )
    return value


class Parser:
    """Parses a list of tokens into a GudScript AST."""

    def __init__(self, tokens: list[Token]) -> None:
        if not tokens or tokens[-1].kind != TokenKind.END_OF_SOURCE:
            raise ValueError("token list must end with END_OF_SOURCE")
        self.tokens = [t for t in tokens if t.kind != TokenKind.COMMENT]
        self.pos = 0

    @classmethod
    def from_source(cls, source: str, url: str = "<stdin>") -> Parser:
        return cls(Lexer(source, url).lex())

    # ── Entry points ─────────────────────────────────────────────

    def parse(self) -> Statement:
        """Parse exactly one statement surrounded only by newlines."""
        self._skip_newlines()
        stmt = self._bounded(self.statement)
        self._skip_newlines()
        self._expect_end()
        return stmt

    def program(self) -> Program:
        """Parse newline or ``;`` separated statements up to end of source."""
        statements: list[Statement] = []
        start = self.peek().span
        self._skip_separators()
        while self.peek().kind != TokenKind.END_OF_SOURCE:
            statements.append(self._bounded(self.statement))
            if self.peek().kind == TokenKind.END_OF_SOURCE:
                break
            self.expect(self._separator(), "newline or `;`")
            self._skip_separators()
        logger.debug("parsed %d statements", len(statements))
        return Program(statements, start.expand(self.peek().span))

    def statement(self) -> Statement:
        """Parse a single statement: declaration, assignment, or expression."""
        return self.expect(self.declare() or self.assignment(), "statement")

    def expression(self) -> Expression | None:
        return self.ternary()

    # ── Cursor and combinators ───────────────────────────────────

    def peek(self) -> Token:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return self.tokens[-1]

    def _advance(self) -> Token:
        tok = self.peek()
        if self.pos < len(self.tokens) - 1:
            self.pos += 1
        return tok

    def eat(self, kind: TokenKind) -> Token | None:
        if self.peek().kind != kind:
            return None
        return self._advance()

    def eat_if_value(self, kind: TokenKind, value: str) -> Token | None:
        tok = self.peek()
        if tok.kind != kind or tok.value != value:
            return None
        return self._advance()

    def eat_switch(self, cases: SwitchEat[T]) -> T | None:
        """Dispatch a single operator token to its builder."""
        tok = self.peek()
        if tok.kind not in _OPERATOR_KINDS or tok.value not in cases:
            return None
        self._advance()
        return cases[tok.value](tok)

    def switch_fold(self, initial: E | None, cases: SwitchFold[E]) -> E | None:
        """Left-fold operators from ``cases`` over ``initial``."""
        if initial is None:
            return None
        acc = initial
        while True:
            tok = self.peek()
            if tok.kind not in _OPERATOR_KINDS or tok.value not in cases:
                return acc
            self._advance()
            acc = cases[tok.value](tok, acc)

    def fold(self, initial: E | None, step: Callable[[E], E | None]) -> E | None:
        """Apply ``step`` to the accumulator until it returns None."""
        if initial is None:
            return None
        acc = initial
        while True:
            result = step(acc)
            if result is None:
                return acc
            acc = result

    def expect(self, value: T | None, description: str) -> T:
        if value is None:
            tok = self.peek()
            raise UnexpectedToken(
                f"expected {description}, found {tok.readable_name}",
                tok.span,
                expected=description,
                primary_label=f"expected {description}",
            )
        return value

    def punctuation(self, char: str) -> Token | None:
        return self.eat_if_value(TokenKind.PUNCTUATION, char)

    def operator(self, value: str) -> Token | None:
        return self.eat_if_value(TokenKind.MULTI_CHAR_OPERATOR, value)

    def keyword(self, name: str) -> Token | None:
        return self.eat_if_value(TokenKind.KEYWORD, name)

    def expect_punctuation(self, char: str) -> Token:
        return self.expect(self.punctuation(char), f"`{char}`")

    def _separator(self) -> Token | None:
        return self.eat(TokenKind.NEWLINE) or self.punctuation(";")

    def _skip_separators(self) -> None:
        while self._separator() is not None:
            pass

    def _skip_newlines(self) -> None:
        while self.eat(TokenKind.NEWLINE) is not None:
            pass

    def _bounded(self, rule: Callable[[], T]) -> T:
        """Run a grammar rule, turning interpreter stack exhaustion into a diagnostic."""
        try:
            return rule()
        except RecursionError:
            raise NestingTooDeep(
                "expression is nested too deeply",
                self.peek().span,
                primary_label="nesting limit reached here",
                help="split the expression into smaller statements",
            ) from None

    def _expect_end(self) -> None:
        self.expect(self.eat(TokenKind.END_OF_SOURCE), "end of source")

    def _require_assignable(self, operator: Token, operand: Expression, what: str) -> None:
        if operand.assignable:
            return
        raise NonAssignableTarget(
            f"{what} must be assignable",
            operator.span,
            primary_label=f"`{operator.value}` needs a variable or member",
            secondary={operand.span: "this expression is not assignable"},
            help="only variables and member accesses can be assigned to",
        )

    # ── Statements ───────────────────────────────────────────────

    def declare(self) -> Statement | None:
        key = self.keyword("var")
        if key is None:
            return None
        target = self.expect(self.variable(), "variable name")
        value = None
        if self.punctuation("=") is not None:
            value = self.expect(self.expression(), "expression")
        span = key.span.expand((value or target).span)
        return VariableDefine(target, value, span)

    def assignment(self) -> Statement | None:
        target = self.expression()
        if target is None:
            return None
        op = self.punctuation("=")
        if op is None:
            return target
        self._require_assignable(op, target, "assignment target")
        value = self.expect(self.expression(), "expression")
        return Assign(target, value, target.span.expand(value.span))

    # ── Expressions, lowest precedence first ─────────────────────

    def _binary(
        self,
        node_type: type[BinaryExpression],
        operand: Callable[[], Expression | None],
    ) -> Callable[[Token, Expression], Expression]:
        def build(operator: Token, left: Expression) -> Expression:
            right = self.expect(operand(), f"expression after {operator.readable_name}")
            return node_type(left, right, left.span.expand(right.span))
        return build

    def ternary(self) -> Expression | None:
        def step(condition: Expression) -> Expression | None:
            if self.punctuation("?") is None:
                return None
            if_true = self.expect(self.expression(), "expression")
            self.expect_punctuation(":")
            if_false = self.expect(self.ternary(), "expression")
            return Ternary(condition, if_true, if_false,
                           condition.span.expand(if_false.span))
        return self.fold(self.logical_or(), step)

    def logical_or(self) -> Expression | None:
        return self.switch_fold(self.logical_and(), {
            "||": self._binary(LogicalOr, self.logical_and),
        })

    def logical_and(self) -> Expression | None:
        return self.switch_fold(self.bitwise_xor(), {
            "&&": self._binary(LogicalAnd, self.bitwise_xor),
        })

    def bitwise_xor(self) -> Expression | None:
        return self.switch_fold(self.bitwise_or(), {
            "^": self._binary(BitXor, self.bitwise_or),
        })

    def bitwise_or(self) -> Expression | None:
        return self.switch_fold(self.bitwise_and(), {
            "|": self._binary(BitOr, self.bitwise_and),
        })

    def bitwise_and(self) -> Expression | None:
        return self.switch_fold(self.equality(), {
            "&": self._binary(BitAnd, self.equality),
        })

    def equality(self) -> Expression | None:
        return self.switch_fold(self.relational(), {
            "==": self._binary(Equal, self.relational),
            "!=": self._binary(NotEqual, self.relational),
        })

    def relational(self) -> Expression | None:
        return self.switch_fold(self.bitwise_shift(), {
            "<=": self._binary(LesserEqual, self.bitwise_shift),
            ">=": self._binary(GreaterEqual, self.bitwise_shift),
            "<": self._binary(Lesser, self.bitwise_shift),
            ">": self._binary(Greater, self.bitwise_shift),
        })

    def bitwise_shift(self) -> Expression | None:
        return self.switch_fold(self.additive(), {
            "<<": self._binary(LeftShift, self.additive),
            ">>": self._binary(RightShift, self.additive),
        })

    def additive(self) -> Expression | None:
        return self.switch_fold(self.multiplicative(), {
            "+": self._binary(Add, self.multiplicative),
            "-": self._binary(Subtract, self.multiplicative),
        })

    def multiplicative(self) -> Expression | None:
        return self.switch_fold(self.exponentiation(), {
            "*": self._binary(Multiply, self.exponentiation),
            "/": self._binary(Divide, self.exponentiation),
            "%": self._binary(Modulo, self.exponentiation),
        })

    def exponentiation(self) -> Expression | None:
        # Right-associative: the right operand recurses instead of folding.
        def step(left: Expression) -> Expression | None:
            operator = self.operator("**")
            if operator is None:
                return None
            right = self.expect(self.exponentiation(), "expression after `**`")
            return Exponentiate(left, right, left.span.expand(right.span))
        return self.fold(self.prefix(), step)

    def prefix(self) -> Expression | None:
        def unary(node_type: type[Not] | type[Negate]) -> Callable[[Token], Expression]:
            def build(operator: Token) -> Expression:
                operand = self.expect(self.prefix(), f"expression after {operator.readable_name}")
                return node_type(operand, operator.span.expand(operand.span))
            return build

        def update(node_type: type[UpdateExpression]) -> Callable[[Token], Expression]:
            def build(operator: Token) -> Expression:
                operand = self.expect(self.prefix(), f"expression after {operator.readable_name}")
                self._require_assignable(operator, operand, f"operand of `{operator.value}`")
                return node_type(operand, operator.span.expand(operand.span))
            return build

        return self.eat_switch({
            "!": unary(Not),
            "-": unary(Negate),
            "++": update(PrefixIncrement),
            "--": update(PrefixDecrement),
        }) or self.postfix()

    def postfix(self) -> Expression | None:
        def update(node_type: type[UpdateExpression]) -> Callable[[Token, Expression], Expression]:
            def build(operator: Token, operand: Expression) -> Expression:
                self._require_assignable(operator, operand, f"operand of `{operator.value}`")
                return node_type(operand, operand.span.expand(operator.span))
            return build

        return self.switch_fold(self.access_call(), {
            "++": update(PostfixIncrement),
            "--": update(PostfixDecrement),
        })

    def access_call(self) -> Expression | None:
        def member(_dot: Token, parent: Expression) -> Expression:
            prop = self.expect(self.variable(), "property name")
            return MemberAccess(parent, prop, span=parent.span.expand(prop.span))

        def index(_open: Token, parent: Expression) -> Expression:
            prop = self.expect(self.expression(), "expression")
            close = self.expect_punctuation("]")
            return MemberAccess(parent, prop, computed=True, span=parent.span.expand(close.span))

        def call(_open: Token, callee: Expression) -> Expression:
            parameters: list[Expression] = []
            close = self.punctuation(")")
            while close is None:
                parameters.append(self.expect(self.expression(), "expression"))
                if self.punctuation(",") is None:
                    close = self.expect(self.punctuation(")"), "`,` or `)`")
            return FunctionCall(callee, parameters, callee.span.expand(close.span))

        return self.switch_fold(self.primitive(), {
            ".": member,
            "[": index,
            "(": call,
        })

    # ── Primitives ───────────────────────────────────────────────

    def primitive(self) -> Expression | None:
        return self.number() or self.variable() or self.boolean() or self.grouping()

    def number(self) -> Number | None:
        tok = self.eat(TokenKind.NUMBER_LITERAL)
        if tok is None:
            return None
        number_type = tok.number_type or NumberLiteralType.INTEGER
        return Number(number_value(tok), tok.value, number_type, tok.span)

    def variable(self) -> Variable | None:
        tok = self.eat(TokenKind.IDENTIFIER)
        if tok is None:
            return None
        return Variable(tok.value, tok.span)

    def boolean(self) -> Boolean | None:
        tok = self.keyword("true") or self.keyword("false")
        if tok is None:
            return None
        return Boolean(tok.value == "true", tok.span)

    def grouping(self) -> Expression | None:
        open_paren = self.punctuation("(")
        if open_paren is None:
            return None
        expr = self.expect(self.expression(), "expression")
        close = self.expect_punctuation(")")
        return dataclasses.replace(expr, span=open_paren.span.expand(close.span))
