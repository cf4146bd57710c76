"""Tests for the GudScript LSP server."""

from __future__ import annotations

import pytest
from lsprotocol import types as lsp

from gudscript.errors import NonAssignableTarget
from gudscript.lsp import (
    _analyze,
    _state,
    _syntax_diag,
    completion,
    document_symbol,
    formatting,
    span_to_range,
)
from gudscript.parser import Parser
from gudscript.source import SourceFile


def _doc(uri: str) -> lsp.TextDocumentIdentifier:
    return lsp.TextDocumentIdentifier(uri=uri)


def _complete_labels(uri: str) -> set[str]:
    """Return the set of completion labels for a URI."""
    params = lsp.CompletionParams(
        text_document=_doc(uri),
        position=lsp.Position(line=0, character=0),
    )
    return {item.label for item in completion(params).items}


class TestSpanConversion:
    def test_span_to_range_basic(self):
        span = SourceFile("hello world").span(0, 5)
        r = span_to_range(span)
        assert (r.start.line, r.start.character) == (0, 0)
        assert (r.end.line, r.end.character) == (0, 5)

    def test_span_to_range_multiline(self):
        span = SourceFile("ab\ncdef\nghi").span(1, 9)
        r = span_to_range(span)
        assert (r.start.line, r.start.character) == (0, 1)
        assert (r.end.line, r.end.character) == (2, 1)

    def test_span_to_range_empty(self):
        span = SourceFile("abc").span(3)
        r = span_to_range(span)
        assert (r.start.line, r.start.character) == (0, 3)
        assert (r.end.line, r.end.character) == (0, 4)


class TestAnalyze:
    def test_analyze_valid_source(self):
        ds = _analyze("file:///ok.gud", "var x = 1\nx = x * 2\n")
        assert ds.program is not None
        assert len(ds.program.statements) == 2
        assert ds.diagnostics == []
        _state.pop("file:///ok.gud", None)

    def test_analyze_lex_error(self):
        ds = _analyze("file:///lex.gud", "x = 'abc\n")
        assert ds.program is None
        assert len(ds.diagnostics) == 1
        diag = ds.diagnostics[0]
        assert diag.code == "E101"
        assert diag.source == "gudscript"
        assert diag.message.startswith("[E101] unterminated string literal")
        assert diag.range.start == lsp.Position(line=0, character=4)
        _state.pop("file:///lex.gud", None)

    def test_analyze_parse_error(self):
        ds = _analyze("file:///parse.gud", "a\nb +\n")
        assert ds.tokens
        assert ds.program is None
        assert ds.diagnostics[0].code == "E201"
        assert ds.diagnostics[0].range.start.line == 1
        _state.pop("file:///parse.gud", None)

    def test_analyze_deep_nesting(self):
        ds = _analyze("file:///deep.gud", "(" * 3000 + "1" + ")" * 3000)
        assert ds.program is None
        assert ds.diagnostics[0].code == "E203"
        _state.pop("file:///deep.gud", None)

    def test_analyze_caches_state(self):
        uri = "file:///cache_test.gud"
        ds = _analyze(uri, "x\n")
        assert _state.get(uri) is ds
        _state.pop(uri, None)


class TestSyntaxDiag:
    def test_secondary_labels_become_related_information(self):
        with pytest.raises(NonAssignableTarget) as exc:
            Parser.from_source("1++", "file:///t.gud").parse()
        diag = _syntax_diag(exc.value)
        assert diag.severity == lsp.DiagnosticSeverity.Error
        assert diag.code == "E202"
        assert "note: only variables" in diag.message
        assert diag.related_information is not None
        related = diag.related_information[0]
        assert related.message == "this expression is not assignable"
        assert related.location.uri == "file:///t.gud"
        assert related.location.range.start.character == 0


class TestCompletion:
    def test_keywords_always_present(self):
        _analyze("<test://kw>", "")
        labels = _complete_labels("<test://kw>")
        for kw in ("var", "true", "false", "if", "while"):
            assert kw in labels, f"keyword '{kw}' missing from completions"
        _state.pop("<test://kw>", None)

    def test_identifiers_from_document(self):
        _analyze("<test://ids>", "var total = count + offset\n")
        labels = _complete_labels("<test://ids>")
        assert {"total", "count", "offset"} <= labels
        _state.pop("<test://ids>", None)

    def test_unknown_document(self):
        labels = _complete_labels("<test://never-opened>")
        assert "var" in labels

    def test_no_duplicates(self):
        _analyze("<test://dup>", "a + a + a\n")
        params = lsp.CompletionParams(
            text_document=_doc("<test://dup>"),
            position=lsp.Position(line=0, character=0),
        )
        items = [item.label for item in completion(params).items]
        assert items.count("a") == 1
        _state.pop("<test://dup>", None)


class TestDocumentSymbols:
    def test_var_declarations(self):
        _analyze("<test://sym>", "var a = 1\nb = 2\nvar c\n")
        params = lsp.DocumentSymbolParams(text_document=_doc("<test://sym>"))
        symbols = document_symbol(params)
        assert [s.name for s in symbols] == ["a", "c"]
        assert symbols[1].range.start.line == 2
        assert symbols[0].kind == lsp.SymbolKind.Variable
        _state.pop("<test://sym>", None)

    def test_broken_document(self):
        _analyze("<test://sym-bad>", "var\n")
        params = lsp.DocumentSymbolParams(text_document=_doc("<test://sym-bad>"))
        assert document_symbol(params) == []
        _state.pop("<test://sym-bad>", None)


class TestFormatting:
    def _format(self, uri: str) -> list[lsp.TextEdit] | None:
        params = lsp.DocumentFormattingParams(
            text_document=_doc(uri),
            options=lsp.FormattingOptions(tab_size=4, insert_spaces=True),
        )
        return formatting(params)

    def test_formats_whole_document(self):
        _analyze("<test://fmt>", "x=1+2\ny=x\n")
        edits = self._format("<test://fmt>")
        assert edits is not None and len(edits) == 1
        assert edits[0].new_text == "x = 1 + 2\ny = x\n"
        assert edits[0].range.end == lsp.Position(line=2, character=0)
        _state.pop("<test://fmt>", None)

    def test_range_ends_at_last_character_without_newline(self):
        _analyze("<test://fmt-eof>", "x=1+2")
        edits = self._format("<test://fmt-eof>")
        assert edits is not None
        assert edits[0].range.end == lsp.Position(line=0, character=5)
        _state.pop("<test://fmt-eof>", None)

    def test_range_after_crlf(self):
        _analyze("<test://fmt-crlf>", "x=1\r\ny=2\r\n")
        edits = self._format("<test://fmt-crlf>")
        assert edits is not None
        assert edits[0].range.end == lsp.Position(line=2, character=0)
        _state.pop("<test://fmt-crlf>", None)

    def test_already_formatted(self):
        _analyze("<test://fmt-ok>", "x = 1\n")
        assert self._format("<test://fmt-ok>") is None
        _state.pop("<test://fmt-ok>", None)

    def test_broken_document_not_formatted(self):
        _analyze("<test://fmt-bad>", "x = \n")
        assert self._format("<test://fmt-bad>") is None
        _state.pop("<test://fmt-bad>", None)
