import pytest

from settings_lsp.filtering import EmptyFilterError, filter_settings
from settings_lsp.types import Group, Range, Section, Setting


def ranged(key: str, line: int) -> Setting:
    return Setting(key, None, range=Range(line, 1, line + 2, 1))


GROUPS = [
    Group(
        id="editor",
        sections=[Section(settings=[ranged("editor.fontSize", 4), ranged("editor.tabSize", 7)])],
    ),
    Group(
        id="files",
        sections=[Section(settings=[ranged("files.exclude", 12)])],
    ),
]


def key_matcher(query: str):
    def match(setting: Setting) -> list[Range]:
        assert setting.range is not None
        index = setting.key.find(query)
        if index < 0:
            return []
        line = setting.range.start_line + 1
        return [Range(line, index + 4, line, index + 4 + len(query))]

    return match


def test_empty_filter():
    with pytest.raises(EmptyFilterError):
        filter_settings(GROUPS, "", lambda g: False, key_matcher("x"))


def test_nothing_matches():
    assert filter_settings(GROUPS, "x", lambda g: False, lambda s: []) == []


def test_matches_are_relative():
    result = filter_settings(GROUPS, "tab", lambda g: False, key_matcher("tab"))

    assert len(result) == 1
    (match,) = result
    assert match.setting.key == "editor.tabSize"
    assert match.matches == [Range(1, 11, 1, 14)]


def test_group_match_includes_every_setting():
    result = filter_settings(GROUPS, "@files", lambda g: g.id == "files", lambda s: [])

    assert [m.setting.key for m in result] == ["files.exclude"]
    assert result[0].matches == []


def test_document_order():
    result = filter_settings(GROUPS, "e", lambda g: False, key_matcher("e"))
    assert [m.setting.key for m in result] == [
        "editor.fontSize",
        "editor.tabSize",
        "files.exclude",
    ]
