"""GudScript Language Server: pygls-based LSP for .gud files.

Publishes syntax diagnostics, completes keywords and names seen in the
document, lists ``var`` declarations as document symbols and formats
whole documents, all over stdio.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from lsprotocol import types as lsp
from pygls.lsp.server import LanguageServer

from gudscript import __version__
from gudscript.ast_nodes import Program, VariableDefine
from gudscript.errors import GudSyntaxError
from gudscript.formatter import GudFormatter
from gudscript.lexer import Lexer
from gudscript.parser import Parser
from gudscript.source import SourceFile, Span
from gudscript.tokens import KEYWORDS, Token, TokenKind

logger = logging.getLogger(__name__)

_KEYWORD_COMPLETIONS = sorted(KEYWORDS)


def span_to_range(span: Span) -> lsp.Range:
    """Convert a 1-indexed Span to a 0-indexed LSP Range."""
    return lsp.Range(
        start=lsp.Position(line=span.start_line - 1, character=span.start_col - 1),
        end=lsp.Position(line=span.end_line - 1, character=span.end_col),
    )


# ── Per-document state ────────────────────────────────────────────


@dataclass
class DocumentState:
    """Cached analysis results for a single open document."""

    source: str = ""
    tokens: list[Token] = field(default_factory=list)
    program: Program | None = None
    diagnostics: list[lsp.Diagnostic] = field(default_factory=list)


# ── Server ────────────────────────────────────────────────────────

server = LanguageServer(
    "gudscript-lsp", __version__,
    text_document_sync_kind=lsp.TextDocumentSyncKind.Full,
)
_state: dict[str, DocumentState] = {}


def _syntax_diag(err: GudSyntaxError) -> lsp.Diagnostic:
    """Convert a GudSyntaxError to an LSP Diagnostic."""
    message = err.message
    if err.help:
        message = f"{message}\nnote: {err.help}"
    related = [
        lsp.DiagnosticRelatedInformation(
            location=lsp.Location(uri=span.file, range=span_to_range(span)),
            message=label,
        )
        for span, label in err.secondary.items()
    ]
    return lsp.Diagnostic(
        range=span_to_range(err.span),
        severity=lsp.DiagnosticSeverity.Error,
        source="gudscript",
        code=err.code,
        message=f"[{err.code}] {message}",
        related_information=related or None,
    )


def _analyze(uri: str, source: str) -> DocumentState:
    """Run Lexer and Parser, cache results, return state."""
    ds = DocumentState(source=source)
    try:
        ds.tokens = Lexer(source, uri).lex()
        ds.program = Parser(ds.tokens).program()
    except GudSyntaxError as e:
        logger.debug("%s: %s", uri, e.message)
        ds.diagnostics = [_syntax_diag(e)]
    _state[uri] = ds
    return ds


def _publish(uri: str, ds: DocumentState) -> None:
    server.text_document_publish_diagnostics(lsp.PublishDiagnosticsParams(
        uri=uri,
        diagnostics=ds.diagnostics,
    ))


# ── LSP Feature Handlers ─────────────────────────────────────────


@server.feature(lsp.TEXT_DOCUMENT_DID_OPEN)
def did_open(params: lsp.DidOpenTextDocumentParams) -> None:
    uri = params.text_document.uri
    _publish(uri, _analyze(uri, params.text_document.text))


@server.feature(lsp.TEXT_DOCUMENT_DID_CHANGE)
def did_change(params: lsp.DidChangeTextDocumentParams) -> None:
    uri = params.text_document.uri
    # Full sync: the last change holds the whole document
    source = params.content_changes[-1].text if params.content_changes else ""
    _publish(uri, _analyze(uri, source))


@server.feature(lsp.TEXT_DOCUMENT_DID_CLOSE)
def did_close(params: lsp.DidCloseTextDocumentParams) -> None:
    _state.pop(params.text_document.uri, None)


@server.feature(
    lsp.TEXT_DOCUMENT_COMPLETION,
    lsp.CompletionOptions(trigger_characters=["."]),
)
def completion(params: lsp.CompletionParams) -> lsp.CompletionList:
    ds = _state.get(params.text_document.uri)
    items = [
        lsp.CompletionItem(label=kw, kind=lsp.CompletionItemKind.Keyword)
        for kw in _KEYWORD_COMPLETIONS
    ]

    if ds is not None:
        seen: set[str] = set()
        for tok in ds.tokens:
            if tok.kind == TokenKind.IDENTIFIER and tok.value not in seen:
                seen.add(tok.value)
                items.append(lsp.CompletionItem(
                    label=tok.value,
                    kind=lsp.CompletionItemKind.Variable,
                ))

    return lsp.CompletionList(is_incomplete=False, items=items)


@server.feature(lsp.TEXT_DOCUMENT_DOCUMENT_SYMBOL)
def document_symbol(params: lsp.DocumentSymbolParams) -> list[lsp.DocumentSymbol]:
    ds = _state.get(params.text_document.uri)
    if ds is None or ds.program is None:
        return []

    symbols: list[lsp.DocumentSymbol] = []
    for stmt in ds.program.statements:
        if isinstance(stmt, VariableDefine):
            symbols.append(lsp.DocumentSymbol(
                name=stmt.target.name,
                kind=lsp.SymbolKind.Variable,
                range=span_to_range(stmt.span),
                selection_range=span_to_range(stmt.target.span),
            ))
    return symbols


@server.feature(lsp.TEXT_DOCUMENT_FORMATTING)
def formatting(params: lsp.DocumentFormattingParams) -> list[lsp.TextEdit] | None:
    ds = _state.get(params.text_document.uri)
    if ds is None or ds.program is None:
        return None

    formatted = GudFormatter().format(ds.program)
    if formatted == ds.source:
        return None

    # Replace entire document
    source = SourceFile(ds.source)
    end = len(source)

    return [lsp.TextEdit(
        range=lsp.Range(
            start=lsp.Position(0, 0),
            end=lsp.Position(source.line_number(end) - 1, source.column(end) - 1),
        ),
        new_text=formatted,
    )]


def main() -> None:
    """Start the GudScript language server on stdio."""
    server.start_io()
