import json
from typing import Sequence

from .types import Group, Position, Range, Setting


INDENT = "  "


class SettingsContentBuilder:
    """Renders settings groups as JSON-with-comments, line by line.

    Every emitted setting, section title and group gets its ranges stamped as
    a side effect. Ranges are expressed in the numbering of the document the
    content ends up in: `line_offset` is the line right before the first line
    emitted by this builder.
    """

    def __init__(self, line_offset: int = 0) -> None:
        self._lines = list[str]()
        self._line_offset = line_offset

    @property
    def lines(self) -> list[str]:
        return self._lines

    @property
    def _last_line_number(self) -> int:
        return len(self._lines) + self._line_offset

    @property
    def _last_line(self) -> str:
        return self._lines[-1] if self._lines else ""

    def _index(self, line_number: int) -> int:
        return line_number - self._line_offset - 1

    def push_line(self, *text: str) -> None:
        self._lines.extend(text)

    def push_groups(self, groups: Sequence[Group], pad_to: int = 0) -> None:
        """Emit the groups within a single object literal.

        With `pad_to`, blank lines are inserted before the closing brace so
        that the builder holds at least `pad_to` lines.
        """
        last_setting: Setting | None = None

        self._lines.append("{")
        self._lines.append("")
        for group in groups:
            self._lines.append("")
            last_setting = self._push_group(group) or last_setting

        if last_setting is not None:
            self._strip_trailing_comma(last_setting)

        if pad_to and len(self._lines) < pad_to - 1:
            self._lines.extend([""] * (pad_to - 1 - len(self._lines)))

        self._lines.append("}")

    def get_content(self, pad_to: int = 0) -> str:
        if pad_to and len(self._lines) < pad_to:
            self._lines.extend([""] * (pad_to - len(self._lines)))

        return "\n".join(self._lines)

    def _push_group(self, group: Group) -> Setting | None:
        last_setting: Setting | None = None
        group_start = self._last_line_number + 1

        for section in group.sections:
            if section.title:
                title_start = self._last_line_number + 1
                self._push_description([section.title], INDENT)
                section.title_range = Range(
                    start_line=title_start,
                    start_column=1,
                    end_line=self._last_line_number,
                    end_column=len(self._last_line) + 1,
                )

            for setting in section.settings:
                self._push_setting(setting, INDENT)
                last_setting = setting

        if self._last_line_number < group_start:
            group.range = Range(group_start, 1, group_start, 1)
        else:
            group.range = Range(
                start_line=group_start,
                start_column=1,
                end_line=self._last_line_number,
                end_column=len(self._last_line) + 1,
            )

        return last_setting

    def _push_setting(self, setting: Setting, indent: str, separated: bool = True) -> None:
        setting_start = self._last_line_number + 1

        prefix = indent + "// "
        setting.description_ranges = []
        for line in setting.description:
            self._lines.append(prefix + line)
            setting.description_ranges.append(
                Range(
                    start_line=self._last_line_number,
                    start_column=len(prefix) + 1,
                    end_line=self._last_line_number,
                    end_column=len(self._last_line) + 1,
                )
            )

        key_string = json.dumps(setting.key, ensure_ascii=False)
        key_line = self._last_line_number + 1
        key_column = len(indent) + 2
        setting.key_range = Range(
            start_line=key_line,
            start_column=key_column,
            end_line=key_line,
            end_column=key_column + len(key_string) - 2,
        )

        pre_value = f"{indent}{key_string}: "
        value_start = self._last_line_number + 1
        self._push_value(setting, pre_value, indent)
        setting.value_range = Range(
            start_line=value_start,
            start_column=len(pre_value) + 1,
            end_line=self._last_line_number,
            end_column=len(self._last_line) + 1,
        )

        self._lines[-1] += ","
        if separated:
            self._lines.append("")

        setting.range = Range(
            start_line=setting_start,
            start_column=1,
            end_line=self._last_line_number,
            end_column=len(self._last_line) + 1,
        )

    def _push_value(self, setting: Setting, pre_value: str, indent: str) -> None:
        if isinstance(setting.value, dict) and setting.overrides:
            self._lines.append(pre_value + "{")
            for override in setting.overrides:
                self._push_setting(override, indent + indent, separated=False)
            self._strip_trailing_comma(setting.overrides[-1])
            self._lines.append(indent + "}")
            return

        first, *rest = json.dumps(setting.value, indent=indent, ensure_ascii=False).split("\n")
        self._lines.append(pre_value + first)
        self._lines.extend(indent + line for line in rest)

    def _strip_trailing_comma(self, setting: Setting) -> None:
        if setting.value_range is None:
            return

        line_number = setting.value_range.end_line
        index = self._index(line_number)
        content = self._lines[index]
        if not content.endswith(","):
            return

        self._lines[index] = content[:-1]
        if setting.range is not None and setting.range.end_line == line_number:
            setting.range = setting.range.with_end(Position(line_number, len(content)))

    def _push_description(self, description: list[str], indent: str) -> None:
        for line in description:
            self._lines.append(indent + "// " + line)
