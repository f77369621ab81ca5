from typing import Any

import pytest

from settings_lsp.parsers.scanner import TokenKind, scan, visit
from settings_lsp.parsers.types import (
    LiteralValue,
    ParseError,
    ParseErrorCode,
    PropertyName,
)


def kinds(content: str) -> list[TokenKind]:
    return [token.kind for token in scan(content)]


def error_codes(content: str, **kwargs) -> list[ParseErrorCode]:
    return [e.code for e in visit(content, **kwargs) if isinstance(e, ParseError)]


def test_scan_skips_comments():
    content = '// comment\n{"a": /* inline */ 1}'
    assert kinds(content) == [
        TokenKind.OPEN_BRACE,
        TokenKind.STRING,
        TokenKind.COLON,
        TokenKind.NUMBER,
        TokenKind.CLOSE_BRACE,
        TokenKind.EOF,
    ]


def test_scan_offsets():
    tokens = list(scan('{"key": true}'))
    assert [(t.offset, t.length) for t in tokens] == [
        (0, 1),
        (1, 5),
        (6, 1),
        (8, 4),
        (12, 1),
        (13, 0),
    ]


def test_string_token_includes_closing_quote():
    (string, word, eof) = scan('"abc" x')

    assert (string.kind, string.offset, string.length, string.value) == (
        TokenKind.STRING,
        0,
        5,
        "abc",
    )
    assert string.error is None
    assert (word.offset, word.length) == (6, 1)
    assert eof.offset == 7


def test_scan_empty():
    assert kinds("") == [TokenKind.EOF]
    assert kinds("  // nothing but a comment") == [TokenKind.EOF]


@pytest.mark.parametrize(
    "content,value",
    [
        ('"a\\nb"', "a\nb"),
        ('"\\u00e9"', "é"),
        ('"\\ud83d\\ude00"', "\U0001f600"),
        ('"\\ud83d"', "\ud83d"),
        ('"quote \\" inside"', 'quote " inside'),
        ("12", 12),
        ("-1.5e2", -150.0),
        ("true", True),
        ("false", False),
        ("null", None),
    ],
)
def test_literal_values(content: str, value: Any):
    assert list(visit(content)) == [
        LiteralValue(offset=0, length=len(content), value=value)
    ]


def test_visit_events():
    events = list(visit('{"a": [1, {"b": null}]}'))
    assert [type(e).__name__ for e in events] == [
        "ObjectBegin",
        "PropertyName",
        "Separator",
        "ArrayBegin",
        "LiteralValue",
        "Separator",
        "ObjectBegin",
        "PropertyName",
        "Separator",
        "LiteralValue",
        "ObjectEnd",
        "ArrayEnd",
        "ObjectEnd",
    ]


def test_valid_document_has_no_errors():
    assert error_codes('{"a": {"b": [1, 2.5, "c"]}, "d": false}') == []


def test_trailing_comma():
    assert error_codes('{"a": 1,}') == []
    assert error_codes('{"a": 1,}', allow_trailing_comma=False) == [
        ParseErrorCode.PROPERTY_NAME_EXPECTED,
        ParseErrorCode.VALUE_EXPECTED,
    ]


@pytest.mark.parametrize(
    "content,codes",
    [
        ('{"a": "abc', [ParseErrorCode.UNEXPECTED_END_OF_STRING, ParseErrorCode.CLOSE_BRACE_EXPECTED]),
        ('{"a" 1}', [ParseErrorCode.COLON_EXPECTED]),
        ('{"a": 1 "b": 2}', [ParseErrorCode.COMMA_EXPECTED]),
        ('{"a": 01}', [ParseErrorCode.INVALID_NUMBER_FORMAT]),
        ('{"a": nope}', [ParseErrorCode.INVALID_SYMBOL, ParseErrorCode.VALUE_EXPECTED]),
        ("[1, 2", [ParseErrorCode.CLOSE_BRACKET_EXPECTED]),
        ("{} {}", [ParseErrorCode.END_OF_FILE_EXPECTED]),
    ],
)
def test_errors(content: str, codes: list[ParseErrorCode]):
    assert error_codes(content) == codes


def test_recovers_after_error():
    events = list(visit('{"a": nope, "b": 2}'))
    names = [e.name for e in events if isinstance(e, PropertyName)]
    values = [e.value for e in events if isinstance(e, LiteralValue)]

    assert names == ["a", "b"]
    assert values == [2]
