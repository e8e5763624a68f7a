"""Diagnostics, scan errors, and Rust-style colored rendering."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from bashtyped.source import SourceFile, Span


class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"
    NOTE = "note"


# ANSI color codes
ANSI_COLORS = {
    "red": "\033[1;31m",
    "green": "\033[1;32m",
    "yellow": "\033[1;33m",
    "blue": "\033[1;34m",
    "magenta": "\033[1;35m",
    "cyan": "\033[1;36m",
    "white": "\033[1;37m",
}
_SEVERITY_COLORS = {
    Severity.ERROR: ANSI_COLORS["red"],
    Severity.WARNING: ANSI_COLORS["yellow"],
    Severity.NOTE: ANSI_COLORS["cyan"],
}
_BOLD = "\033[1m"
_BLUE = "\033[1;34m"
_RESET = "\033[0m"


@dataclass(frozen=True)
class DiagnosticLabel:
    """Points to a specific source location."""

    span: Span
    message: str
    style: str = "primary"  # "primary", "declared" or "inferred"


@dataclass
class Diagnostic:
    """A single diagnostic message with optional labels."""

    severity: Severity
    code: str
    message: str
    labels: list[DiagnosticLabel] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class LabelColors:
    """Color names used for each label style."""

    declared: str = "blue"
    inferred: str = "magenta"
    error: str = "red"

    def for_style(self, style: str) -> str:
        if style == "declared":
            return self.declared
        if style == "inferred":
            return self.inferred
        return self.error


class DiagnosticRenderer:
    """Renders diagnostics in Rust-style format with colors."""

    def __init__(self, *, color: bool = True, colors: LabelColors | None = None) -> None:
        self.color = color
        self.colors = colors or LabelColors()

    def _c(self, code: str) -> str:
        return code if self.color else ""

    def render(self, diag: Diagnostic, source: SourceFile) -> str:
        lines: list[str] = []
        sev = diag.severity
        color = _SEVERITY_COLORS[sev]

        # Header: error[E200]: message
        lines.append(
            f"{self._c(color)}{sev.value}[{diag.code}]{self._c(_RESET)}"
            f"{self._c(_BOLD)}: {diag.message}{self._c(_RESET)}"
        )

        for label in diag.labels:
            label_color = ANSI_COLORS[self.colors.for_style(label.style)]
            start_line, start_col = source.location(label.span.start)
            end_line, end_col = source.location(label.span.end)
            lines.append(
                f"  {self._c(_BLUE)}-->{self._c(_RESET)} "
                f"{source.name}:{start_line}:{start_col}"
            )
            gutter = f"{start_line:>4}"
            lines.append(f"  {self._c(_BLUE)}   |{self._c(_RESET)}")
            lines.append(
                f"  {self._c(_BLUE)}{gutter} |{self._c(_RESET)} "
                f"{source.line_at(start_line)}"
            )

            # Multi-line spans only underline the first line
            if end_line != start_line:
                end_col = len(source.line_at(start_line)) + 1
            caret_len = max(1, end_col - start_col)
            padding = " " * (start_col - 1)
            lines.append(
                f"  {self._c(_BLUE)}   |{self._c(_RESET)} "
                f"{padding}{self._c(label_color)}{'^' * caret_len}{self._c(_RESET)}"
            )

            if label.message:
                lines.append(
                    f"  {self._c(_BLUE)}   |{self._c(_RESET)}   "
                    f"{self._c(label_color)}{label.message}{self._c(_RESET)}"
                )

        for note in diag.notes:
            lines.append(f"  {self._c(_BLUE)}={self._c(_RESET)} note: {note}")

        return "\n".join(lines)


# ── Scan errors ─────────────────────────────────────────────────


class ScanError(Exception):
    """Malformed input found while handling a single syntax node.

    The checker reports it as a diagnostic and carries on with the scan.
    """

    code = "E100"

    def __init__(self, message: str, span: Span) -> None:
        self.message = message
        self.span = span
        super().__init__(message)

    def to_diagnostic(self) -> Diagnostic:
        return Diagnostic(
            severity=Severity.ERROR,
            code=self.code,
            message=self.message,
            labels=[DiagnosticLabel(span=self.span, message=self.message)],
        )


class InvalidUnicodeError(ScanError):
    code = "E100"

    def __init__(self, span: Span) -> None:
        super().__init__("invalid unicode in source", span)


class MissingArgumentError(ScanError):
    code = "E101"

    def __init__(self, expected: int, received: int, span: Span) -> None:
        self.expected = expected
        self.received = received
        super().__init__(f"expected {expected} arguments, but found {received}", span)


class UnknownVariableError(ScanError):
    code = "E102"

    def __init__(self, name: str, span: Span) -> None:
        self.name = name
        super().__init__(f"found unknown variable `{name}`", span)


class UnsupportedExpressionError(ScanError):
    code = "E103"

    def __init__(self, kind: str, span: Span) -> None:
        self.kind = kind
        super().__init__(f"cannot infer a type for `{kind}` expressions", span)


class MalformedTypeError(ScanError):
    code = "E104"

    def __init__(self, text: str, span: Span) -> None:
        self.text = text
        super().__init__(f"malformed type expression `{text}`", span)


class InvalidVariableNameError(ScanError):
    code = "E105"

    def __init__(self, name: str, span: Span) -> None:
        self.name = name
        super().__init__(f"`{name}` is not a valid variable name", span)
