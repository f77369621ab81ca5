import re
from bisect import bisect_right

from .types import Position, Range
from .utils import Signal


LINE_BREAK = re.compile(r"\r\n|\r|\n")


class TextBuffer:
    """An in-memory text document with 1-based line/column positions.

    Stands in for the editor's text model: converts offsets to positions,
    applies line-range edits atomically and notifies listeners on change.
    """

    def __init__(self, text: str = "", uri: str | None = None) -> None:
        self.uri = uri
        self.on_did_change_content = Signal()
        self._disposed = False
        self._set_text(text)

    def _set_text(self, text: str) -> None:
        self._text = text
        self._line_starts = [0] + [m.end() for m in LINE_BREAK.finditer(text)]

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    @property
    def line_count(self) -> int:
        return len(self._line_starts)

    def get_value(self) -> str:
        return self._text

    def get_line(self, line: int) -> str:
        start = self._line_starts[line - 1]
        end = self._line_starts[line] if line < self.line_count else len(self._text)
        return self._text[start:end].rstrip("\r\n")

    def position_at(self, offset: int) -> Position:
        offset = min(max(offset, 0), len(self._text))
        index = bisect_right(self._line_starts, offset) - 1
        return Position(line=index + 1, column=offset - self._line_starts[index] + 1)

    def offset_at(self, position: Position) -> int:
        line = min(max(position.line, 1), self.line_count)
        start = self._line_starts[line - 1]
        column = min(max(position.column, 1), len(self.get_line(line)) + 1)
        return start + column - 1

    def set_value(self, text: str) -> None:
        self._set_text(text)
        self.on_did_change_content.fire()

    def apply_edit(self, range: Range, text: str) -> int:
        """Replace the given range with text. Returns the new line count."""
        if self._disposed:
            raise ValueError(f"Cannot edit disposed buffer {self.uri!r}.")

        start = self.offset_at(range.start)
        end = self.offset_at(range.end)
        self._set_text(self._text[:start] + text + self._text[end:])
        self.on_did_change_content.fire()

        return self.line_count

    def find_matches(self, query: str, search_range: Range) -> list[Range]:
        """Case-insensitive literal matches of the query within a range."""
        if not query:
            return []

        start = self.offset_at(search_range.start)
        end = self.offset_at(search_range.end)
        pattern = re.compile(re.escape(query), re.IGNORECASE)

        return [
            Range.from_positions(
                self.position_at(match.start()),
                self.position_at(match.end()),
            )
            for match in pattern.finditer(self._text, start, end)
        ]

    def dispose(self) -> None:
        self._disposed = True
