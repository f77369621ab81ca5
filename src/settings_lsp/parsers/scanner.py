"""
Tokenizer and event visitor for JSON with comments.

The visitor walks the document once and yields structural events in document
order. Syntax errors are reported as `ParseError` events and parsing recovers
at the next separator or closing token, so a document in the middle of an edit
still produces events for its valid prefix.
"""

import re
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Generator, Iterator

from persil import regex, string
from persil.result import Ok

from .types import (
    ArrayBegin,
    ArrayEnd,
    JsonEvent,
    LiteralValue,
    ObjectBegin,
    ObjectEnd,
    ParseError,
    ParseErrorCode,
    PropertyName,
    Separator,
)
from .utils import trivia


class TokenKind(Enum):
    OPEN_BRACE = auto()
    CLOSE_BRACE = auto()
    OPEN_BRACKET = auto()
    CLOSE_BRACKET = auto()
    COLON = auto()
    COMMA = auto()
    STRING = auto()
    NUMBER = auto()
    TRUE = auto()
    FALSE = auto()
    NULL = auto()
    UNKNOWN = auto()
    EOF = auto()


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    offset: int
    length: int
    value: Any = None
    error: ParseErrorCode | None = None


VALUE_TOKENS = frozenset(
    {
        TokenKind.STRING,
        TokenKind.NUMBER,
        TokenKind.TRUE,
        TokenKind.FALSE,
        TokenKind.NULL,
    }
)

PUNCTUATION = {
    "{": TokenKind.OPEN_BRACE,
    "}": TokenKind.CLOSE_BRACE,
    "[": TokenKind.OPEN_BRACKET,
    "]": TokenKind.CLOSE_BRACKET,
    ":": TokenKind.COLON,
    ",": TokenKind.COMMA,
}

KEYWORDS = {
    "true": (TokenKind.TRUE, True),
    "false": (TokenKind.FALSE, False),
    "null": (TokenKind.NULL, None),
}

NUMBER_PATTERN = re.compile(r"-?(?:0|[1-9][0-9]*)(?:\.[0-9]+)?(?:[eE][+-]?[0-9]+)?")
SURROGATE_PAIR_PATTERN = re.compile("[\ud800-\udbff][\udc00-\udfff]")


def _number(text: str) -> tuple[TokenKind, Any, ParseErrorCode | None]:
    if NUMBER_PATTERN.fullmatch(text) is None:
        return TokenKind.NUMBER, 0, ParseErrorCode.INVALID_NUMBER_FORMAT
    if any(c in text for c in ".eE"):
        return TokenKind.NUMBER, float(text), None
    return TokenKind.NUMBER, int(text), None


def _word(text: str) -> tuple[TokenKind, Any, ParseErrorCode | None]:
    kind, value = KEYWORDS.get(text, (TokenKind.UNKNOWN, text))
    return kind, value, None


def _malformed_string(text: str) -> tuple[TokenKind, Any, ParseErrorCode | None]:
    if len(text) > 1 and text.endswith('"'):
        # Terminated, so the escape sequence is what failed.
        return TokenKind.STRING, text[1:-1], ParseErrorCode.INVALID_SYMBOL
    return TokenKind.STRING, text[1:], ParseErrorCode.UNEXPECTED_END_OF_STRING


def _surrogate_pair(match: re.Match[str]) -> str:
    high, low = match[0]
    return chr(0x10000 + ((ord(high) - 0xD800) << 10) + (ord(low) - 0xDC00))


def _join_surrogates(text: str) -> str:
    # Escaped surrogate pairs decode to one character, lone surrogates are kept.
    return SURROGATE_PAIR_PATTERN.sub(_surrogate_pair, text)


dquote = string('"')
backslash = string("\\")

string_part = regex(r'[^"\\\n\r]+')
string_esc = backslash >> (
    backslash
    | string("/")
    | string('"')
    | string("b").result("\b")
    | string("f").result("\f")
    | string("n").result("\n")
    | string("r").result("\r")
    | string("t").result("\t")
    | regex(r"u[0-9a-fA-F]{4}").map(lambda s: chr(int(s[1:], 16)))
)

string_body = (string_part | string_esc).many().map(lambda s: _join_surrogates("".join(s)))

json_string = (
    (dquote >> string_body).combine(dquote).map(lambda t: (TokenKind.STRING, t[0], None))
)

malformed_string = regex(r'"(?:[^"\\\n\r]|\\.)*"?').map(_malformed_string)

punctuation = regex(r"[{}\[\]:,]").map(lambda s: (PUNCTUATION[s], s, None))

number = regex(r"-?[0-9][0-9.eE+\-]*").map(_number)

word = regex(r'[^\s{}\[\]:,"/]+').map(_word)

any_char = regex(r"[\s\S]").map(lambda s: (TokenKind.UNKNOWN, s, None))

token = (
    punctuation | json_string | malformed_string | number | word | any_char
).desc("token")


def scan(content: str) -> Iterator[Token]:
    """Split the content into tokens, skipping whitespace and comments.

    The last token is always `TokenKind.EOF`.
    """
    index = 0

    while True:
        index = trivia.wrapped_fn(content, index).index

        if index >= len(content):
            yield Token(kind=TokenKind.EOF, offset=len(content), length=0)
            return

        result = token.wrapped_fn(content, index)
        if not isinstance(result, Ok):
            raise ValueError(f"No token at offset {index}")

        kind, value, error = result.value
        yield Token(
            kind=kind,
            offset=index,
            length=result.index - index,
            value=value,
            error=error,
        )
        index = result.index


Events = Generator[JsonEvent, None, bool]


class _Visitor:
    def __init__(self, content: str, allow_trailing_comma: bool) -> None:
        self._tokens = scan(content)
        self._allow_trailing_comma = allow_trailing_comma
        self.token = Token(kind=TokenKind.UNKNOWN, offset=0, length=0)

    def _scan_next(self) -> Iterator[JsonEvent]:
        while True:
            if self.token.kind is not TokenKind.EOF:
                self.token = next(self._tokens)

            if self.token.error is not None:
                yield self._error_event(self.token.error)

            if self.token.kind is TokenKind.UNKNOWN:
                yield self._error_event(ParseErrorCode.INVALID_SYMBOL)
                continue

            return

    def _error_event(self, code: ParseErrorCode) -> ParseError:
        return ParseError(offset=self.token.offset, length=self.token.length, code=code)

    def _error(
        self,
        code: ParseErrorCode,
        skip_until_after: tuple[TokenKind, ...] = (),
        skip_until: tuple[TokenKind, ...] = (),
    ) -> Iterator[JsonEvent]:
        yield self._error_event(code)

        if not (skip_until_after or skip_until):
            return

        while self.token.kind is not TokenKind.EOF:
            if self.token.kind in skip_until_after:
                yield from self._scan_next()
                break
            if self.token.kind in skip_until:
                break
            yield from self._scan_next()

    def visit(self) -> Iterator[JsonEvent]:
        yield from self._scan_next()

        if self.token.kind is TokenKind.EOF:
            return

        if not (yield from self._value()):
            yield from self._error(ParseErrorCode.VALUE_EXPECTED)
        elif self.token.kind is not TokenKind.EOF:
            yield from self._error(ParseErrorCode.END_OF_FILE_EXPECTED)

    def _value(self) -> Events:
        current = self.token

        if current.kind is TokenKind.OPEN_BRACE:
            yield from self._object()
            return True

        if current.kind is TokenKind.OPEN_BRACKET:
            yield from self._array()
            return True

        if current.kind in VALUE_TOKENS:
            yield LiteralValue(
                offset=current.offset,
                length=current.length,
                value=current.value,
            )
            yield from self._scan_next()
            return True

        return False

    def _property(self) -> Events:
        current = self.token

        if current.kind is not TokenKind.STRING:
            yield from self._error(
                ParseErrorCode.PROPERTY_NAME_EXPECTED,
                skip_until=(TokenKind.CLOSE_BRACE, TokenKind.COMMA),
            )
            return False

        yield PropertyName(offset=current.offset, length=current.length, name=current.value)
        yield from self._scan_next()

        if self.token.kind is TokenKind.COLON:
            yield Separator(offset=self.token.offset, length=1, char=":")
            yield from self._scan_next()

            if not (yield from self._value()):
                yield from self._error(
                    ParseErrorCode.VALUE_EXPECTED,
                    skip_until=(TokenKind.CLOSE_BRACE, TokenKind.COMMA),
                )
        else:
            yield from self._error(
                ParseErrorCode.COLON_EXPECTED,
                skip_until=(TokenKind.CLOSE_BRACE, TokenKind.COMMA),
            )

        return True

    def _object(self) -> Iterator[JsonEvent]:
        yield ObjectBegin(offset=self.token.offset, length=self.token.length)
        yield from self._scan_next()

        needs_comma = False
        while self.token.kind not in (TokenKind.CLOSE_BRACE, TokenKind.EOF):
            if self.token.kind is TokenKind.COMMA:
                if not needs_comma:
                    yield from self._error(ParseErrorCode.VALUE_EXPECTED)
                yield Separator(offset=self.token.offset, length=1, char=",")
                yield from self._scan_next()
                if (
                    self.token.kind is TokenKind.CLOSE_BRACE
                    and self._allow_trailing_comma
                ):
                    break
            elif needs_comma:
                yield from self._error(ParseErrorCode.COMMA_EXPECTED)

            if not (yield from self._property()):
                yield from self._error(
                    ParseErrorCode.VALUE_EXPECTED,
                    skip_until=(TokenKind.CLOSE_BRACE, TokenKind.COMMA),
                )
            needs_comma = True

        yield ObjectEnd(offset=self.token.offset, length=self.token.length)

        if self.token.kind is not TokenKind.CLOSE_BRACE:
            yield from self._error(
                ParseErrorCode.CLOSE_BRACE_EXPECTED,
                skip_until_after=(TokenKind.CLOSE_BRACE,),
            )
        else:
            yield from self._scan_next()

    def _array(self) -> Iterator[JsonEvent]:
        yield ArrayBegin(offset=self.token.offset, length=self.token.length)
        yield from self._scan_next()

        needs_comma = False
        while self.token.kind not in (TokenKind.CLOSE_BRACKET, TokenKind.EOF):
            if self.token.kind is TokenKind.COMMA:
                if not needs_comma:
                    yield from self._error(ParseErrorCode.VALUE_EXPECTED)
                yield Separator(offset=self.token.offset, length=1, char=",")
                yield from self._scan_next()
                if (
                    self.token.kind is TokenKind.CLOSE_BRACKET
                    and self._allow_trailing_comma
                ):
                    break
            elif needs_comma:
                yield from self._error(ParseErrorCode.COMMA_EXPECTED)

            if not (yield from self._value()):
                yield from self._error(
                    ParseErrorCode.VALUE_EXPECTED,
                    skip_until=(TokenKind.CLOSE_BRACKET, TokenKind.COMMA),
                )
            needs_comma = True

        yield ArrayEnd(offset=self.token.offset, length=self.token.length)

        if self.token.kind is not TokenKind.CLOSE_BRACKET:
            yield from self._error(
                ParseErrorCode.CLOSE_BRACKET_EXPECTED,
                skip_until_after=(TokenKind.CLOSE_BRACKET,),
            )
        else:
            yield from self._scan_next()


def visit(content: str, allow_trailing_comma: bool = True) -> Iterator[JsonEvent]:
    """Yield the structural events of a JSON-with-comments document."""
    return _Visitor(content, allow_trailing_comma).visit()
