from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Protocol

from ..types import Position


PropertyPath = tuple[str | None, ...]
"""Property names under which each currently open container sits.

`None` stands for the document root and for array items.
"""

OffsetToPosition = Callable[[int], Position]


class ParseErrorCode(Enum):
    INVALID_SYMBOL = "invalid-symbol"
    INVALID_NUMBER_FORMAT = "invalid-number-format"
    PROPERTY_NAME_EXPECTED = "property-name-expected"
    VALUE_EXPECTED = "value-expected"
    COLON_EXPECTED = "colon-expected"
    COMMA_EXPECTED = "comma-expected"
    CLOSE_BRACE_EXPECTED = "close-brace-expected"
    CLOSE_BRACKET_EXPECTED = "close-bracket-expected"
    END_OF_FILE_EXPECTED = "end-of-file-expected"
    UNEXPECTED_END_OF_STRING = "unexpected-end-of-string"


@dataclass(frozen=True)
class JsonEvent:
    """A structural event reported while visiting a JSON document."""

    offset: int
    """0-based character offset of the token."""

    length: int


@dataclass(frozen=True)
class ObjectBegin(JsonEvent):
    pass


@dataclass(frozen=True)
class ObjectEnd(JsonEvent):
    pass


@dataclass(frozen=True)
class ArrayBegin(JsonEvent):
    pass


@dataclass(frozen=True)
class ArrayEnd(JsonEvent):
    pass


@dataclass(frozen=True)
class PropertyName(JsonEvent):
    name: str


@dataclass(frozen=True)
class LiteralValue(JsonEvent):
    value: Any


@dataclass(frozen=True)
class Separator(JsonEvent):
    char: str


@dataclass(frozen=True)
class ParseError(JsonEvent):
    code: ParseErrorCode


class SettingsRootRule(Protocol):
    """Decides whether the object about to open is the settings root.

    Called on every object begin with the property the object is the value of
    (`None` for the document root and array items) and the path of the
    enclosing containers.
    """

    def __call__(self, property: str | None, path: PropertyPath) -> bool: ...


def DOCUMENT_ROOT(property: str | None, path: PropertyPath) -> bool:
    """The document's top-level object holds the settings."""
    return len(path) == 0


def nested_root(name: str) -> SettingsRootRule:
    """Settings live under a property of the top-level object, eg `{"settings": {...}}`."""

    def rule(property: str | None, path: PropertyPath) -> bool:
        return property == name and len(path) == 1

    return rule


def any_root(*rules: SettingsRootRule) -> SettingsRootRule:
    def rule(property: str | None, path: PropertyPath) -> bool:
        return any(r(property, path) for r in rules)

    return rule
