import re

from persil import regex

from ..types import Range
from .types import OffsetToPosition


OVERRIDE_PROPERTY_PATTERN = re.compile(r"^\[.*\]$")
"""Keys of language/scope override entries, eg `[markdown]`."""

# Whitespace, line comments and (possibly unterminated) block comments.
trivia = regex(r"(?:\s+|//[^\n\r]*|/\*[\s\S]*?(?:\*/|\Z))*")


def is_override_key(key: str) -> bool:
    return OVERRIDE_PROPERTY_PATTERN.match(key) is not None


def range_from_offsets(
    offset_to_position: OffsetToPosition,
    offset: int,
    length: int,
) -> Range:
    return Range.from_positions(
        offset_to_position(offset),
        offset_to_position(offset + length),
    )
