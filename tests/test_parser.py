from settings_lsp.document import TextBuffer
from settings_lsp.parsers import DOCUMENT_ROOT, any_root, nested_root, parse
from settings_lsp.parsers.settings import ParserState
from settings_lsp.parsers.types import SettingsRootRule
from settings_lsp.types import Group, Range, Setting

SETTINGS = """{
  // comment
  "editor.fontSize": 14,
  "files.exclude": {
    "**/.git": true
  },
  "[markdown]": {
    "editor.wordWrap": "on"
  }
}"""

WORKSPACE = """{
  "folders": [{"path": "."}],
  "settings": {
    "editor.tabSize": 2
  },
  "extensions": {"recommendations": []}
}"""


def parse_text(content: str, rule: SettingsRootRule = DOCUMENT_ROOT) -> list[Group]:
    return parse(content, TextBuffer(content).position_at, rule)


def top_level(content: str, rule: SettingsRootRule = DOCUMENT_ROOT) -> list[Setting]:
    return [setting for group in parse_text(content, rule) for setting in group.settings()]


def test_settings():
    settings = top_level(SETTINGS)

    assert [s.key for s in settings] == ["editor.fontSize", "files.exclude", "[markdown]"]
    assert [s.value for s in settings] == [
        14,
        {"**/.git": True},
        {"editor.wordWrap": "on"},
    ]


def test_parser_state():
    state = ParserState()

    assert state.depth == 0
    assert state.pending_property is None
    assert state.value_owner() is None


def test_single_setting():
    (setting,) = top_level('{"editor.fontSize": 14}')

    assert setting.key == "editor.fontSize"
    assert setting.value == 14
    assert setting.key_range == Range(1, 3, 1, 18)
    assert setting.value_range == Range(1, 21, 1, 23)


def test_setting_ranges():
    font_size, exclude, markdown = top_level(SETTINGS)

    assert font_size.key_range == Range(3, 4, 3, 19)
    assert font_size.value_range == Range(3, 22, 3, 24)
    assert font_size.range == Range(3, 3, 3, 24)

    assert exclude.value_range == Range(4, 20, 6, 4)
    assert exclude.range == Range(4, 3, 6, 4)

    assert markdown.range == Range(7, 3, 9, 4)


def test_group_range():
    (group,) = parse_text(SETTINGS)
    assert group.range == Range(1, 1, 10, 1)
    assert len(group.sections) == 1


def test_ranges_follow_document_order():
    settings = top_level(SETTINGS)

    for setting in settings:
        assert setting.range is not None
        assert setting.key_range is not None
        assert setting.value_range is not None
        assert setting.range.start <= setting.key_range.start
        assert setting.key_range.end <= setting.value_range.start
        assert setting.value_range.end <= setting.range.end

    for previous, current in zip(settings, settings[1:]):
        assert previous.range.end <= current.range.start


def test_overrides():
    *_, markdown = top_level(SETTINGS)

    (override,) = markdown.overrides
    assert override.key == "editor.wordWrap"
    assert override.value == "on"
    assert override.override_of == "[markdown]"
    assert override.key_range == Range(8, 6, 8, 21)
    assert override.range == Range(8, 5, 8, 28)


def test_nested_objects_are_not_settings():
    *_, exclude, _ = top_level(SETTINGS)
    assert exclude.overrides == []


def test_override_with_scalar_value():
    settings = top_level('{"[json]": 1, "b": {"c": 1}}')

    assert [s.key for s in settings] == ["[json]", "b"]
    assert settings[1].value == {"c": 1}
    assert all(not s.overrides for s in settings)


def test_incomplete_settings_are_discarded():
    settings = top_level('{"foo.bar": 1, "foo.ba')
    assert [s.key for s in settings] == ["foo.bar"]


def test_unterminated_value_keeps_previous_setting():
    settings = top_level('{"a": 1, "b": "unterminated')

    assert [s.key for s in settings] == ["a"]
    assert settings[0].value == 1


def test_unclosed_root_spans_to_end():
    content = '{\n  "a": 1,\n'
    (group,) = parse_text(content)
    assert group.range == Range(1, 1, 3, 1)


def test_values():
    (a, c) = top_level('{"a": [1, {"b": [true, null]}], "c": "d"}')
    assert a.value == [1, {"b": [True, None]}]
    assert c.value == "d"


def test_nested_root():
    (group,) = parse_text(WORKSPACE, nested_root("settings"))

    assert [s.key for s in group.settings()] == ["editor.tabSize"]
    assert group.range == Range(3, 15, 5, 3)


def test_document_root_on_workspace():
    assert [s.key for s in top_level(WORKSPACE)] == ["folders", "settings", "extensions"]


def test_any_root():
    rule = any_root(nested_root("settings"), nested_root("launch"))
    content = '{"launch": {"version": "0.2.0"}}'
    assert [s.key for s in top_level(content, rule)] == ["version"]


def test_no_settings():
    assert parse_text("") == []
    assert parse_text("{}") == []
    assert parse_text('{"a": 1}', nested_root("settings")) == []
