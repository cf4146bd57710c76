"""Source file representation and span tracking for diagnostics."""

from __future__ import annotations

import re
from bisect import bisect_right
from dataclasses import dataclass, field
from pathlib import Path

# CRLF counts as a single line break.
_LINE_BREAK = re.compile("\r\n|[\n\r\u2028\u2029]")

_BLUE = "\033[34m"
_RED = "\033[31m"
_YELLOW = "\033[33m"
_RESET = "\033[0m"


class SourceFile:
    """A loaded source buffer with offset to line/column mapping."""

    def __init__(self, text: str, url: str = "<stdin>") -> None:
        self.text = text
        self.url = url
        self._line_starts = [0] + [m.end() for m in _LINE_BREAK.finditer(text)]

    @classmethod
    def from_path(cls, path: Path) -> SourceFile:
        return cls(path.read_text(encoding="utf-8"), str(path))

    def __len__(self) -> int:
        return len(self.text)

    def span(self, start: int, end: int | None = None) -> Span:
        """Return the span covering ``[start, end)``, clamped to the buffer."""
        if end is None:
            end = start
        start = max(0, min(start, len(self.text)))
        end = max(start, min(end, len(self.text)))
        return Span(self, start, end)

    def line_number(self, offset: int) -> int:
        """Return the 1-indexed line containing ``offset``."""
        return bisect_right(self._line_starts, offset)

    def column(self, offset: int) -> int:
        """Return the 1-indexed column of ``offset`` within its line."""
        return offset - self._line_starts[self.line_number(offset) - 1] + 1

    def line_at(self, n: int) -> str:
        """Return the 1-indexed line without its terminator, or empty string."""
        if not 1 <= n <= len(self._line_starts):
            return ""
        start = self._line_starts[n - 1]
        end = self._line_starts[n] if n < len(self._line_starts) else len(self.text)
        return _LINE_BREAK.sub("", self.text[start:end])


@dataclass(frozen=True, eq=False)
class Span:
    """A range ``[start, end)`` within a source file."""

    source: SourceFile = field(repr=False, compare=False)
    start: int
    end: int

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError(f"span end {self.end} precedes start {self.start}")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Span):
            return NotImplemented
        return (self.source is other.source
                and self.start == other.start and self.end == other.end)

    def __hash__(self) -> int:
        return hash((id(self.source), self.start, self.end))

    def __str__(self) -> str:
        return self.location

    @property
    def file(self) -> str:
        return self.source.url

    @property
    def start_line(self) -> int:
        return self.source.line_number(self.start)

    @property
    def start_col(self) -> int:
        return self.source.column(self.start)

    @property
    def end_line(self) -> int:
        return self.source.line_number(self._last)

    @property
    def end_col(self) -> int:
        """Column of the last covered character (inclusive)."""
        return self.source.column(self._last)

    @property
    def _last(self) -> int:
        return max(self.start, self.end - 1)

    @property
    def location(self) -> str:
        return f"{self.file}:{self.start_line}:{self.start_col}"

    @property
    def text(self) -> str:
        return self.source.text[self.start:self.end]

    def expand(self, other: Span) -> Span:
        """Return the smallest span covering both ``self`` and ``other``."""
        if other.source is not self.source:
            raise ValueError("cannot expand spans from different sources")
        return Span(self.source, min(self.start, other.start), max(self.end, other.end))

    def highlight(
        self,
        label: str = "",
        secondary: dict[Span, str] | None = None,
        *,
        color: bool = False,
    ) -> str:
        """Render the source lines under this span and any secondary spans.

        The primary span is underlined with ``^`` and each secondary span
        with ``-``, every marker line followed by its label. Multi-line
        spans are underlined to the end of their first line.
        """
        def c(code: str) -> str:
            return code if color else ""

        marks: list[tuple[Span, str, bool]] = [(self, label, True)]
        for span, text in (secondary or {}).items():
            marks.append((span, text, False))

        by_line: dict[int, list[tuple[Span, str, bool]]] = {}
        for mark in marks:
            by_line.setdefault(mark[0].start_line, []).append(mark)

        width = len(str(max(by_line)))
        blank = " " * width
        lines = [f"{c(_BLUE)}{blank} |{c(_RESET)}"]
        previous: int | None = None
        for line_num in sorted(by_line):
            if previous is not None and line_num > previous + 1:
                lines.append(f"{c(_BLUE)}{'.' * width}{c(_RESET)}")
            previous = line_num
            source_line = self.source.line_at(line_num)
            lines.append(f"{c(_BLUE)}{line_num:>{width}} |{c(_RESET)} {source_line}")
            for span, text, primary in sorted(by_line[line_num], key=lambda m: m[0].start_col):
                start_col = span.start_col
                if span.end_line == span.start_line:
                    length = max(1, span.end - span.start)
                else:
                    length = max(1, len(source_line) - start_col + 1)
                marker = ("^" if primary else "-") * length
                tint = _RED if primary else _YELLOW
                suffix = f" {text}" if text else ""
                lines.append(
                    f"{c(_BLUE)}{blank} |{c(_RESET)} {' ' * (start_col - 1)}"
                    f"{c(tint)}{marker}{suffix}{c(_RESET)}"
                )
        lines.append(f"{c(_BLUE)}{blank} |{c(_RESET)}")
        return "\n".join(lines)
