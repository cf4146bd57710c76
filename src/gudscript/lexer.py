"""Lexer for the GudScript language.

Produces a lazy stream of tokens from source text. String literals are
split into delimiter, plain-text and interpolation tokens; ``${...}``
re-enters the tokenizer on the same cursor until the closing brace.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator

from gudscript.errors import (
    InvalidEscape,
    InvalidNumericLiteral,
    InvalidSeparatorPlacement,
    UnexpectedCharacter,
    UnterminatedString,
)
from gudscript.source import SourceFile, Span
from gudscript.tokens import (
    KEYWORDS,
    MULTI_CHAR_OPERATORS,
    NEWLINES,
    PUNCTUATION,
    SPACES,
    NumberLiteralType,
    Token,
    TokenKind,
)

logger = logging.getLogger(__name__)

_QUOTES = frozenset({'"', "'"})
_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")

_SIMPLE_ESCAPES = {
    "$": "$",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "v": "\v",
    "0": "\0",
}


def _is_alpha(ch: str) -> bool:
    return "a" <= ch <= "z" or "A" <= ch <= "Z"


def _is_base10(ch: str) -> bool:
    return "0" <= ch <= "9"


def _is_base2(ch: str) -> bool:
    return ch in ("0", "1")


def _is_base16(ch: str) -> bool:
    return ch in _HEX_DIGITS


def _is_identifier_char(ch: str) -> bool:
    return _is_alpha(ch) or _is_base10(ch) or ch in ("_", "$")


class Lexer:
    """Tokenizes GudScript source code."""

    def __init__(self, source: str, url: str = "<stdin>") -> None:
        self.source = SourceFile(source, url)
        self.text = source
        self.pos = 0

    def lex(self) -> list[Token]:
        """Tokenize the entire source and return the token list."""
        tokens = list(self.tokenize())
        logger.debug("lexed %d tokens from %s", len(tokens), self.source.url)
        return tokens

    def tokenize(self) -> Iterator[Token]:
        """Yield tokens until the source is exhausted, then END_OF_SOURCE."""
        return self._tokens(None)

    # ── Helpers ───────────────────────────────────────────────────

    @property
    def _eos(self) -> bool:
        return self.pos >= len(self.text)

    @property
    def _current(self) -> str:
        return self.text[self.pos] if self.pos < len(self.text) else ""

    def _peek(self, offset: int = 1) -> str:
        idx = self.pos + offset
        return self.text[idx] if idx < len(self.text) else ""

    def _span_from(self, start: int) -> Span:
        return self.source.span(start, self.pos)

    def _eat_while(self, test: Callable[[str], bool]) -> str:
        start = self.pos
        while self.pos < len(self.text) and test(self.text[self.pos]):
            self.pos += 1
        return self.text[start:self.pos]

    def _emit(self, kind: TokenKind, value: str, start: int) -> Token:
        return Token(kind, value, self._span_from(start))

    # ── Driver ────────────────────────────────────────────────────

    def _tokens(self, string_start: Span | None) -> Iterator[Token]:
        """Scan tokens; inside ``${`` stop after the closing ``}``."""
        while True:
            self._eat_while(lambda ch: ch in SPACES)

            if self._eos:
                if string_start is not None:
                    raise UnterminatedString(
                        "unterminated string literal",
                        string_start,
                        primary_label="string starts here",
                        help="the interpolation `${` is never closed with `}`",
                    )
                yield Token(TokenKind.END_OF_SOURCE, "", self.source.span(len(self.text)))
                return

            token = (
                self._newline()
                or self._comment()
                or self._multi_char()
                or self._punctuation()
                or self._identifier()
                or self._number()
            )
            if token is not None:
                yield token
                if string_start is not None and token.is_operator("}"):
                    return
                continue

            if self._current in _QUOTES:
                yield from self._string()
                continue

            raise UnexpectedCharacter(
                f"unexpected character `{self._current}`",
                self.source.span(self.pos, self.pos + 1),
                primary_label="not recognized",
            )

    # ── Simple tokens ─────────────────────────────────────────────

    def _newline(self) -> Token | None:
        if self._current not in NEWLINES:
            return None
        start = self.pos
        if self._current == "\r" and self._peek() == "\n":
            self.pos += 2
        else:
            self.pos += 1
        return self._emit(TokenKind.NEWLINE, "\r\n", start)

    def _comment(self) -> Token | None:
        if self._current != "/" or self._peek() != "/":
            return None
        start = self.pos
        self.pos += 2
        text = self._eat_while(lambda ch: ch not in NEWLINES)
        return self._emit(TokenKind.COMMENT, text, start)

    def _multi_char(self) -> Token | None:
        two = self.text[self.pos:self.pos + 2]
        if two not in MULTI_CHAR_OPERATORS:
            return None
        start = self.pos
        self.pos += 2
        return self._emit(TokenKind.MULTI_CHAR_OPERATOR, two, start)

    def _punctuation(self) -> Token | None:
        ch = self._current
        if ch not in PUNCTUATION:
            return None
        start = self.pos
        self.pos += 1
        return self._emit(TokenKind.PUNCTUATION, ch, start)

    def _identifier(self) -> Token | None:
        if _is_base10(self._current):
            return None
        start = self.pos
        word = self._eat_while(_is_identifier_char)
        if not word:
            return None
        kind = TokenKind.KEYWORD if word in KEYWORDS else TokenKind.IDENTIFIER
        return self._emit(kind, word, start)

    # ── Numbers ───────────────────────────────────────────────────

    def _number(self) -> Token | None:
        if not _is_base10(self._current):
            return None
        prefix = self.text[self.pos:self.pos + 2]
        if prefix == "0b":
            return self._radix_literal(_is_base2, NumberLiteralType.BINARY)
        if prefix == "0x":
            return self._radix_literal(_is_base16, NumberLiteralType.HEX)
        return self._decimal_literal()

    def _digits(self, test: Callable[[str], bool]) -> bool:
        """Consume a digit run with single ``_`` group separators.

        Returns False without consuming anything if the run is empty.
        """
        if not test(self._current):
            return False
        while True:
            self._eat_while(test)
            if self._current != "_":
                return True
            following = self._peek()
            if following and test(following):
                self.pos += 1
                continue
            if following == "_":
                start = self.pos
                self._eat_while(lambda ch: ch == "_")
                raise InvalidSeparatorPlacement(
                    "only one underscore can be used as a numeric separator",
                    self._span_from(start),
                    primary_label="only one allowed",
                )
            raise InvalidSeparatorPlacement(
                "number literals cannot end with a numeric separator",
                self.source.span(self.pos, self.pos + 1),
                primary_label="remove this",
            )

    def _radix_literal(
        self, test: Callable[[str], bool], number_type: NumberLiteralType,
    ) -> Token:
        start = self.pos
        self.pos += 2
        if not self._digits(test):
            raise InvalidNumericLiteral(
                f"invalid base-{number_type.radix} literal",
                self._span_from(start),
                primary_label="expected digits after the prefix",
            )
        return Token(
            TokenKind.NUMBER_LITERAL,
            self.text[start:self.pos],
            self._span_from(start),
            number_type,
        )

    def _decimal_literal(self) -> Token:
        start = self.pos
        self._digits(_is_base10)
        number_type = NumberLiteralType.INTEGER

        if self._current == ".":
            number_type = NumberLiteralType.DECIMAL
            self.pos += 1
            self._require_digits(start)

        if self._current in ("e", "E"):
            number_type = NumberLiteralType.DECIMAL
            self.pos += 1
            if self._current in ("+", "-"):
                self.pos += 1
            self._require_digits(start)

        return Token(
            TokenKind.NUMBER_LITERAL,
            self.text[start:self.pos],
            self._span_from(start),
            number_type,
        )

    def _require_digits(self, start: int) -> None:
        if not self._digits(_is_base10):
            raise InvalidNumericLiteral(
                "invalid decimal literal",
                self.source.span(start, self.pos + 1),
                primary_label="expected a digit",
            )

    # ── Strings ───────────────────────────────────────────────────

    def _string(self) -> Iterator[Token]:
        quote = self._current
        start = self.pos
        self.pos += 1
        opening = self._emit(TokenKind.PUNCTUATION, quote, start)
        yield opening

        while not self._eos and self._current != quote:
            text = self._plain_text(quote)
            if text is not None:
                yield text
            else:
                yield from self._template(opening.span)

        if self._eos:
            raise UnterminatedString(
                "unterminated string literal",
                opening.span,
                primary_label="string starts here",
                fix=f"close the string with {quote}",
            )

        close = self.pos
        self.pos += 1
        yield self._emit(TokenKind.PUNCTUATION, quote, close)

    def _plain_text(self, quote: str) -> Token | None:
        if self._eos or self._current in (quote, "$"):
            return None
        start = self.pos
        parts: list[str] = []
        while not self._eos and self._current not in (quote, "$"):
            if self._current == "\\":
                parts.append(self._escape(quote))
            else:
                parts.append(self._eat_while(
                    lambda ch: ch != quote and ch != "$" and ch != "\\"
                ))
        return self._emit(TokenKind.PLAIN_TEXT, "".join(parts), start)

    def _escape(self, quote: str) -> str:
        start = self.pos
        ch = self._peek()
        if ch == quote:
            self.pos += 2
            return quote
        if ch in _SIMPLE_ESCAPES:
            self.pos += 2
            return _SIMPLE_ESCAPES[ch]
        if ch == "c":
            control = self._peek(2)
            if control and _is_alpha(control):
                self.pos += 3
                return chr(ord(control) % 26)
        elif ch in ("x", "u"):
            width = 2 if ch == "x" else 4
            digits = self.text[self.pos + 2:self.pos + 2 + width]
            if len(digits) == width and all(d in _HEX_DIGITS for d in digits):
                self.pos += 2 + width
                return chr(int(digits, 16))

        end = start + 2
        if ch == "c":
            end = start + 3
        elif ch in ("x", "u"):
            end = start + (4 if ch == "x" else 6)
        raise InvalidEscape(
            "invalid character escape",
            self.source.span(start, end),
            primary_label="unknown escape",
            help="valid escapes are \\f \\n \\r \\t \\v \\0 \\$ \\cX \\xHH \\uHHHH"
                 " and an escaped quote",
        )

    def _template(self, string_start: Span) -> Iterator[Token]:
        """Tokens for ``$name`` or ``${expression}`` inside a string."""
        start = self.pos
        self.pos += 1
        yield self._emit(TokenKind.PUNCTUATION, "$", start)

        if self._current == "{":
            brace = self.pos
            self.pos += 1
            yield self._emit(TokenKind.PUNCTUATION, "{", brace)
            yield from self._tokens(string_start)
            return

        ident = self._identifier() if not self._eos else None
        if ident is not None:
            yield ident
