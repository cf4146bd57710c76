"""Token kinds and token representation for the GudScript lexer."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from gudscript.source import Span


class TokenKind(Enum):
    END_OF_SOURCE = auto()
    NEWLINE = auto()
    IDENTIFIER = auto()
    NUMBER_LITERAL = auto()
    COMMENT = auto()
    PLAIN_TEXT = auto()
    PUNCTUATION = auto()
    MULTI_CHAR_OPERATOR = auto()
    KEYWORD = auto()


class NumberLiteralType(Enum):
    INTEGER = (10, "integer")
    DECIMAL = (10, "floating-point")
    BINARY = (2, "binary")
    HEX = (16, "hex")

    def __init__(self, radix: int, display_name: str) -> None:
        self.radix = radix
        self.display_name = display_name


SPACES: frozenset[str] = frozenset({
    "\u0009",  # TAB
    "\u000b",  # VT
    "\u000c",  # FF
    "\u0020",  # SP
    "\u00a0",  # NBSP
    "\u1680",  # Ogham space mark
    "\u2000", "\u2001", "\u2002", "\u2003", "\u2004", "\u2005",
    "\u2006", "\u2007", "\u2008", "\u2009", "\u200a",
    "\u202f",  # NNBSP
    "\u205f",  # MMSP
    "\u3000",  # Ideographic space
    "\ufeff",  # ZWNBSP
})

NEWLINES: frozenset[str] = frozenset({"\n", "\r", "\u2028", "\u2029"})

PUNCTUATION: frozenset[str] = frozenset("!%&()*+,-./:;<=>?^{|}[]")

# String delimiters and the interpolation sigil are only produced inside
# string literals.
STRING_PUNCTUATION: frozenset[str] = frozenset({'"', "'", "$"})

MULTI_CHAR_OPERATORS: frozenset[str] = frozenset({
    "&&", "**", "++", "--", "..", "<<", "==", ">>", "!=", ">=", "<=", "||",
})

KEYWORDS: frozenset[str] = frozenset({
    "break", "case", "continue", "default", "do", "else", "false", "for",
    "if", "in", "null", "on", "return", "switch", "true", "var", "when",
    "while",
})

_ESCAPES = {
    "\0": "\\0",
    "\b": "\\b",
    "\t": "\\t",
    "\n": "\\n",
    "\v": "\\v",
    "\f": "\\f",
    "\r": "\\r",
    "\\": "\\\\",
}


def readable(text: str) -> str:
    """Render ``text`` with control characters spelled as escapes."""
    out = []
    for ch in text:
        code = ord(ch)
        if ch in _ESCAPES:
            out.append(_ESCAPES[ch])
        elif code < 0x20 or code == 0x7F:
            out.append(f"\\x{code:02x}")
        elif code > 0x7F and not ch.isprintable():
            out.append(f"\\u{code:04x}")
        else:
            out.append(ch)
    return "".join(out)


@dataclass(frozen=True)
class Token:
    """A classified lexeme. Equality and hashing ignore the span."""

    kind: TokenKind
    value: str
    span: Span = field(compare=False, repr=False)
    number_type: NumberLiteralType | None = field(default=None, compare=False)

    @property
    def readable_name(self) -> str:
        match self.kind:
            case TokenKind.END_OF_SOURCE:
                return "end of source"
            case TokenKind.NEWLINE:
                return "newline"
            case TokenKind.IDENTIFIER:
                return "identifier"
            case TokenKind.NUMBER_LITERAL:
                number_type = self.number_type or NumberLiteralType.INTEGER
                return f"{number_type.display_name} literal"
            case TokenKind.PLAIN_TEXT:
                return "string text"
            case _:
                return f"`{readable(self.value)}`"

    def is_operator(self, value: str) -> bool:
        return (self.kind in (TokenKind.PUNCTUATION, TokenKind.MULTI_CHAR_OPERATOR)
                and self.value == value)

    def __str__(self) -> str:
        name = self.kind.name.title().replace("_", "")
        return f"{name}[{self.span.start_line}:{self.span.start_col}]: {readable(self.value)}"
