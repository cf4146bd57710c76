"""Tests for the GudScript formatter (AST pretty-printer)."""

from __future__ import annotations

import pytest

from gudscript.ast_nodes import (
    Add,
    Exponentiate,
    MemberAccess,
    Multiply,
    Negate,
    Number,
    PrefixDecrement,
    Subtract,
    Ternary,
    Variable,
)
from gudscript.formatter import GudFormatter
from gudscript.parser import Parser


def _parse(source: str):
    return Parser.from_source(source, "<test>").program()


def _roundtrip(source: str) -> str:
    """Parse source and format back to text."""
    return GudFormatter().format(_parse(source))


class TestFormatterBasic:
    def test_canonical_spacing(self):
        assert _roundtrip("x=1+2*3") == "x = 1 + 2 * 3\n"

    def test_var(self):
        assert _roundtrip("var  x") == "var x\n"
        assert _roundtrip("var x=f( a,b )") == "var x = f(a, b)\n"

    def test_statements_one_per_line(self):
        assert _roundtrip("a; b\n\n\nc") == "a\nb\nc\n"

    def test_comments_dropped(self):
        assert _roundtrip("// header\nx // trailing\n") == "x\n"

    def test_literal_spelling_kept(self):
        assert _roundtrip("0xFF + 1_000 + 0b1 + 2.5e3") == "0xFF + 1_000 + 0b1 + 2.5e3\n"

    def test_index_and_member(self):
        assert _roundtrip("a [ i + 1 ] . b") == "a[i + 1].b\n"

    def test_index_by_variable_keeps_brackets(self):
        assert _roundtrip("items[i] = items[j]") == "items[i] = items[j]\n"
        assert _roundtrip("a[i].b") == "a[i].b\n"
        assert _roundtrip("a.i[b]") == "a.i[b]\n"

    def test_updates(self):
        assert _roundtrip("x ++ ; -- y") == "x++\n--y\n"


class TestFormatterParens:
    def test_redundant_parens_removed(self):
        assert _roundtrip("(a) + (b * c)") == "a + b * c\n"

    def test_needed_parens_kept(self):
        assert _roundtrip("(a + b) * c") == "(a + b) * c\n"

    def test_left_associative_right_operand(self):
        assert _roundtrip("a - (b - c)") == "a - (b - c)\n"
        assert _roundtrip("(a - b) - c") == "a - b - c\n"

    def test_exponent_right_associative(self):
        assert _roundtrip("2 ** (3 ** 2)") == "2 ** 3 ** 2\n"
        assert _roundtrip("(2 ** 3) ** 2") == "(2 ** 3) ** 2\n"

    def test_ternary_condition(self):
        assert _roundtrip("(a ? b : c) ? d : e") == "(a ? b : c) ? d : e\n"
        assert _roundtrip("a ? b : (c ? d : e)") == "a ? b : c ? d : e\n"

    def test_double_negation_is_spaced(self):
        assert _roundtrip("-(-x)") == "- -x\n"
        assert _roundtrip("-(--x)") == "- --x\n"

    def test_number_member_parenthesized(self):
        assert _roundtrip("(1).x") == "(1).x\n"

    def test_call_on_group(self):
        assert _roundtrip("(a + b)(c)") == "(a + b)(c)\n"


class TestFormatterNodes:
    def test_format_expression_node(self):
        expr = Add(Number(1, "1"), Multiply(Number(2, "2"), Variable("x")))
        assert GudFormatter().format(expr) == "1 + 2 * x"

    def test_number_without_literal(self):
        assert GudFormatter().format(Number(42)) == "42"

    def test_built_tree_gets_parens(self):
        expr = Exponentiate(Subtract(Variable("a"), Variable("b")), Negate(Variable("c")))
        assert GudFormatter().format(expr) == "(a - b) ** -c"

    def test_prefix_decrement_of_member(self):
        expr = PrefixDecrement(MemberAccess(Variable("a"), Variable("b")))
        assert GudFormatter().format(expr) == "--a.b"

    def test_computed_member_node(self):
        expr = MemberAccess(Variable("a"), Variable("b"), computed=True)
        assert GudFormatter().format(expr) == "a[b]"

    def test_unknown_node(self):
        with pytest.raises(TypeError):
            GudFormatter().format(object())


IDEMPOTENCE_CASES = [
    "1 + 2 * 3",
    "(1 + 2) * 3",
    "2 ** 3 ** 2",
    "(2 ** 3) ** 2",
    "-x ** 2",
    "(-x) ** 2",
    "- -x",
    "-(x ** 2)",
    "!(a == b)",
    "a || b && c ^ d | e & f == g < h << i + j * k ** l",
    "((a || b) && c) ^ d",
    "a ? b ? c : d : e ? f : g",
    "(a ? b : c) ? d : e",
    "x = y ? 1 : 0",
    "a.b[c + 1](d, e).f = g(h)(i)",
    "a[i] = b.c[d]",
    "(1).x",
    "(1.5)[0]",
    "f()",
    "x++; --y; ++a.b; c[0]--",
    "var total = 0xFF",
    "var unset",
    "a - -b",
    "a - (b - c) - (d + e)",
    "a / (b * c) % d",
    "(a << b) << c >> (d >> e)",
    "true && !false || (x != 1_000)",
]


class TestIdempotence:
    @pytest.mark.parametrize("source", IDEMPOTENCE_CASES)
    def test_reparse_gives_same_tree(self, source):
        tree = _parse(source)
        formatted = GudFormatter().format(tree)
        assert _parse(formatted) == tree

    @pytest.mark.parametrize("source", IDEMPOTENCE_CASES)
    def test_formatting_is_stable(self, source):
        once = _roundtrip(source)
        assert _roundtrip(once) == once

    def test_ternary_structure_survives(self):
        tree = _parse("(a ? b : c) ? d : e")
        assert tree.statements[0] == Ternary(
            Ternary(Variable("a"), Variable("b"), Variable("c")),
            Variable("d"), Variable("e"),
        )
        assert _parse(_roundtrip("(a ? b : c) ? d : e")) == tree
