from settings_lsp.builder import SettingsContentBuilder
from settings_lsp.document import TextBuffer
from settings_lsp.parsers import parse, visit
from settings_lsp.parsers.types import ParseError
from settings_lsp.types import Group, Range, Section, Setting


def editor_group() -> Group:
    return Group(
        id="editor",
        title="Editor",
        sections=[
            Section(
                settings=[
                    Setting("editor.fontSize", 14, ["Controls the font size."]),
                    Setting("editor.rulers", [80, 120]),
                ]
            )
        ],
    )


def python_group() -> Group:
    override = Setting(
        "[python]",
        {"editor.tabSize": 4, "editor.insertSpaces": True},
        overrides=[
            Setting("editor.tabSize", 4, override_of="[python]"),
            Setting("editor.insertSpaces", True, override_of="[python]"),
        ],
    )
    return Group(sections=[Section(settings=[override])])


def render(*groups: Group, line_offset: int = 0) -> str:
    builder = SettingsContentBuilder(line_offset)
    builder.push_groups(groups)
    return builder.get_content()


def test_content():
    content = render(editor_group())

    assert content.split("\n") == [
        "{",
        "",
        "",
        "  // Controls the font size.",
        '  "editor.fontSize": 14,',
        "",
        '  "editor.rulers": [',
        "    80,",
        "    120",
        "  ]",
        "",
        "}",
    ]


def test_ranges():
    group = editor_group()
    render(group)

    font_size, rulers = group.settings()

    assert font_size.description_ranges == [Range(4, 6, 4, 29)]
    assert font_size.key_range == Range(5, 4, 5, 19)
    assert font_size.value_range == Range(5, 22, 5, 24)
    assert font_size.range == Range(4, 1, 6, 1)

    assert rulers.value_range == Range(7, 20, 10, 4)
    assert group.range == Range(4, 1, 11, 1)


def test_last_setting_ends_before_closing_brace():
    group = editor_group()
    lines = render(group).split("\n")

    *_, last = group.settings()
    assert last.range is not None
    assert lines[last.range.end_line] == "}"


def test_rendered_content_is_strict_json():
    content = render(editor_group(), python_group())
    errors = [e for e in visit(content, allow_trailing_comma=False) if isinstance(e, ParseError)]
    assert errors == []


def test_round_trip():
    group = editor_group()
    content = render(group)

    (parsed,) = parse(content, TextBuffer(content).position_at)

    for expected, setting in zip(group.settings(), parsed.settings(), strict=True):
        assert setting.key == expected.key
        assert setting.value == expected.value
        assert setting.key_range == expected.key_range
        assert setting.value_range == expected.value_range


def test_overrides():
    group = python_group()
    lines = render(group).split("\n")

    assert lines[3:8] == [
        '  "[python]": {',
        '    "editor.tabSize": 4,',
        '    "editor.insertSpaces": true',
        "  }",
        "",
    ]

    (setting,) = group.settings()
    assert [o.range for o in setting.overrides] == [
        Range(5, 1, 5, 25),
        Range(6, 1, 6, 32),
    ]


def test_overrides_round_trip():
    content = render(python_group())

    (parsed,) = parse(content, TextBuffer(content).position_at)
    (setting,) = parsed.settings()

    assert [(o.key, o.value) for o in setting.overrides] == [
        ("editor.tabSize", 4),
        ("editor.insertSpaces", True),
    ]


def test_line_offset():
    group = editor_group()
    render(group, line_offset=99)

    font_size, _ = group.settings()
    assert font_size.key_range == Range(104, 4, 104, 19)
    assert group.range == Range(103, 1, 110, 1)


def test_section_title():
    section = Section(settings=[Setting("a", 1)], title="Commonly Used")
    render(Group(sections=[section]))
    assert section.title_range == Range(4, 1, 4, 19)


def test_empty_group():
    group = Group(sections=[Section()])
    assert render(group).split("\n") == ["{", "", "", "}"]
    assert group.range == Range(4, 1, 4, 1)


def test_padding():
    builder = SettingsContentBuilder()
    builder.push_groups([editor_group()], pad_to=20)

    assert len(builder.lines) == 20
    assert builder.lines[-1] == "}"

    assert len(builder.get_content(30).split("\n")) == 30
