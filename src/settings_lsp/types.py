from dataclasses import dataclass, field, replace
from typing import Any, Iterator, Self

from lsprotocol import types as lsp


@dataclass(frozen=True, order=True)
class Position:
    """A 1-based line/column position in a document."""

    line: int
    column: int

    def to_lsp(self) -> lsp.Position:
        return lsp.Position(line=self.line - 1, character=self.column - 1)

    @classmethod
    def from_lsp(cls, position: lsp.Position) -> Self:
        return cls(line=position.line + 1, column=position.character + 1)


@dataclass(frozen=True)
class Range:
    """A 1-based range. The end column is exclusive."""

    start_line: int
    start_column: int
    end_line: int
    end_column: int

    @property
    def start(self) -> Position:
        return Position(self.start_line, self.start_column)

    @property
    def end(self) -> Position:
        return Position(self.end_line, self.end_column)

    @classmethod
    def from_positions(cls, start: Position, end: Position) -> Self:
        return cls(
            start_line=start.line,
            start_column=start.column,
            end_line=end.line,
            end_column=end.column,
        )

    def with_end(self, end: Position) -> "Range":
        return replace(self, end_line=end.line, end_column=end.column)

    def shift_lines(self, delta: int) -> "Range":
        return replace(
            self,
            start_line=self.start_line + delta,
            end_line=self.end_line + delta,
        )

    def contains(self, position: Position) -> bool:
        return self.start <= position < self.end

    def to_lsp(self) -> lsp.Range:
        return lsp.Range(start=self.start.to_lsp(), end=self.end.to_lsp())


@dataclass
class Setting:
    """A single key/value entry of a settings document.

    Ranges are `None` until the setting was either parsed from a document or
    emitted by a content builder.
    """

    key: str
    value: Any = None

    description: list[str] = field(default_factory=list)
    """Comment lines shown above the entry."""

    range: Range | None = None
    """Full extent, from the first description line to the end of the value."""

    key_range: Range | None = None
    value_range: Range | None = None
    description_ranges: list[Range] = field(default_factory=list)

    overrides: list["Setting"] = field(default_factory=list)
    """Nested settings, for language/scope override entries only."""

    override_of: str | None = None
    """Key of the override entry this setting belongs to."""

    @property
    def is_complete(self) -> bool:
        return (
            self.range is not None
            and self.key_range is not None
            and self.value_range is not None
        )

    def copy_for_display(self) -> "Setting":
        return Setting(
            key=self.key,
            value=self.value,
            description=list(self.description),
        )


@dataclass
class Section:
    settings: list[Setting] = field(default_factory=list)
    title: str | None = None
    title_range: Range | None = None


@dataclass
class Group:
    sections: list[Section] = field(default_factory=list)
    id: str | None = None
    title: str | None = None
    title_range: Range | None = None
    range: Range | None = None

    def settings(self) -> Iterator[Setting]:
        for section in self.sections:
            yield from section.settings


@dataclass
class FilterMatch:
    setting: Setting

    matches: list[Range]
    """Match ranges, relative to the start line of the setting."""


@dataclass
class FilterResult:
    all_groups: list[Group]
    filtered_groups: list[Group]
    matches: list[Range]
    query: str
