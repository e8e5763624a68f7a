"""Source file representation and byte-span tracking for diagnostics."""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class Span:
    """A byte range within a source file, end exclusive."""

    file: str
    start: int
    end: int

    def combine(self, other: Span) -> Span:
        """Smallest span covering both."""
        return Span(self.file, min(self.start, other.start), max(self.end, other.end))

    def __str__(self) -> str:
        return f"{self.file}:{self.start}..{self.end}"


class SourceFile:
    """A loaded script with line access for diagnostics.

    The content is kept as raw bytes; spans index into it directly.
    """

    def __init__(self, content: bytes | str, name: str = "<input>") -> None:
        if isinstance(content, str):
            content = content.encode("utf-8")
        self.name = name
        self.content = content
        text = content.decode("utf-8", errors="replace")
        self.lines = [line.rstrip("\r") for line in text.split("\n")]
        self._line_starts = [0]
        for i, byte in enumerate(content):
            if byte == 0x0A:
                self._line_starts.append(i + 1)

    @classmethod
    def from_path(cls, path: Path) -> SourceFile:
        return cls(path.read_bytes(), str(path))

    def line_at(self, n: int) -> str:
        """Return the 1-indexed line, or empty string if out of range."""
        if 1 <= n <= len(self.lines):
            return self.lines[n - 1]
        return ""

    def location(self, offset: int) -> tuple[int, int]:
        """Map a byte offset to a 1-indexed (line, column) pair.

        Columns count characters, not bytes.
        """
        offset = max(0, min(offset, len(self.content)))
        index = bisect_right(self._line_starts, offset) - 1
        start = self._line_starts[index]
        prefix = self.content[start:offset].decode("utf-8", errors="replace")
        return index + 1, len(prefix) + 1

    def offset(self, line: int, column: int) -> int | None:
        """Map a 1-indexed (line, column) pair back to a byte offset.

        Returns None when the position is outside the file. A column one
        past the end of the line is allowed.
        """
        if not 1 <= line <= len(self.lines):
            return None
        text = self.lines[line - 1]
        if not 1 <= column <= len(text) + 1:
            return None
        return self._line_starts[line - 1] + len(text[:column - 1].encode("utf-8"))

    def span_text(self, span: Span) -> str:
        """Extract the text covered by a span."""
        return self.content[span.start:span.end].decode("utf-8", errors="replace")
