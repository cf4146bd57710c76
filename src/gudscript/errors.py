"""Syntax errors and Rust-style diagnostic rendering."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from gudscript.source import Span


# ANSI color codes
_RED = "\033[31m"
_BLUE = "\033[34m"
_CYAN = "\033[36m"
_RESET = "\033[0m"


@dataclass(frozen=True)
class DiagnosticLabel:
    """Points to a specific source location."""

    span: Span
    message: str
    style: str = "primary"  # "primary" or "secondary"


@dataclass(frozen=True)
class Suggestion:
    """A suggested fix; ``replacement`` is the literal text to insert, if known."""

    message: str
    replacement: str = ""


@dataclass
class Diagnostic:
    """A single diagnostic message with optional labels and suggestions."""

    code: str
    message: str
    labels: list[DiagnosticLabel] = field(default_factory=list)
    suggestions: list[Suggestion] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)

    @property
    def primary(self) -> DiagnosticLabel | None:
        for label in self.labels:
            if label.style == "primary":
                return label
        return None


class DiagnosticRenderer:
    """Renders diagnostics with source excerpts, optionally colored."""

    def __init__(self, *, color: bool = True) -> None:
        self.color = color

    def _c(self, code: str) -> str:
        return code if self.color else ""

    def render(self, diag: Diagnostic) -> str:
        lines = [f"{self._c(_RED)}Syntax Error{self._c(_RESET)}: {diag.message}"]

        primary = diag.primary
        if primary is not None:
            secondary = {
                label.span: label.message
                for label in diag.labels
                if label is not primary
            }
            lines.append(
                f"  {self._c(_BLUE)}--->{self._c(_RESET)} {primary.span.location}"
            )
            lines.append(primary.span.highlight(
                primary.message, secondary, color=self.color,
            ))

        for note in diag.notes:
            lines.append(f"{self._c(_CYAN)}note{self._c(_RESET)}: {note}")

        for suggestion in diag.suggestions:
            lines.append(
                f"{self._c(_CYAN)}try{self._c(_RESET)}: {suggestion.message}"
            )

        return "\n".join(lines)


class GudSyntaxError(Exception):
    """A fatal lexical or grammar error located in the source.

    ``help`` becomes a ``note:`` line and ``fix`` a ``try:`` line when the
    error is rendered. ``secondary`` maps extra spans to their labels.
    """

    code = "E100"

    def __init__(
        self,
        message: str,
        span: Span,
        *,
        help: str | None = None,
        fix: str | None = None,
        primary_label: str = "here",
        secondary: dict[Span, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.span = span
        self.help = help
        self.fix = fix
        self.primary_label = primary_label
        self.secondary = dict(secondary or {})

    def to_diagnostic(self) -> Diagnostic:
        labels = [DiagnosticLabel(self.span, self.primary_label)]
        labels.extend(
            DiagnosticLabel(span, label, style="secondary")
            for span, label in self.secondary.items()
        )
        return Diagnostic(
            code=self.code,
            message=self.message,
            labels=labels,
            notes=[self.help] if self.help else [],
            suggestions=[Suggestion(self.fix)] if self.fix else [],
        )

    def render(self, *, color: bool = False) -> str:
        return DiagnosticRenderer(color=color).render(self.to_diagnostic())


class UnterminatedString(GudSyntaxError):
    code = "E101"


class InvalidEscape(GudSyntaxError):
    code = "E102"


class InvalidNumericLiteral(GudSyntaxError):
    code = "E103"


class InvalidSeparatorPlacement(GudSyntaxError):
    code = "E104"


class UnexpectedCharacter(GudSyntaxError):
    code = "E105"


class UnexpectedToken(GudSyntaxError):
    code = "E201"

    def __init__(self, message: str, span: Span, *, expected: str, **kwargs) -> None:
        super().__init__(message, span, **kwargs)
        self.expected = expected


class NonAssignableTarget(GudSyntaxError):
    code = "E202"


class NestingTooDeep(GudSyntaxError):
    code = "E203"
