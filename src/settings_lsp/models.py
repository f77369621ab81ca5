"""
Editor models over settings documents.

`SettingsEditorModel` parses a user-editable document; `DefaultSettingsEditorModel`
shows the registered defaults and renders filter/search results into fixed
line slots at the end of its buffer.
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from gettext import gettext as _
from typing import Protocol

from .builder import SettingsContentBuilder
from .catalog import DefaultSettings
from .document import TextBuffer
from .filtering import GroupFilter, SettingMatcher, filter_settings
from .parsers import DOCUMENT_ROOT, SettingsRootRule, nested_root, parse
from .registry import ConfigurationScope
from .types import (
    FilterMatch,
    FilterResult,
    Group,
    Position,
    Range,
    Section,
    Setting,
)
from .utils import Derived, Signal

logger = logging.getLogger(__name__)


class ConfigurationTarget(Enum):
    USER = "user"
    WORKSPACE = "workspace"
    WORKSPACE_FOLDER = "workspace-folder"


class AbstractSettingsModel(ABC):
    @property
    @abstractmethod
    def settings_groups(self) -> list[Group]: ...

    @abstractmethod
    def find_value_matches(self, filter: str, setting: Setting) -> list[Range]: ...

    @property
    def groups_terms(self) -> list[str]:
        return [f"@{group.id}" for group in self.settings_groups if group.id]

    def filter_settings(
        self,
        filter: str,
        group_filter: GroupFilter,
        setting_matcher: SettingMatcher,
    ) -> list[FilterMatch]:
        return filter_settings(self.settings_groups, filter, group_filter, setting_matcher)

    def filter_by_group_term(self, filter: str) -> Group | None:
        if filter not in self.groups_terms:
            return None
        group_id = filter[1:]
        return next((g for g in self.settings_groups if g.id == group_id), None)

    def get_preference(self, key: str) -> Setting | None:
        for group in self.settings_groups:
            for setting in group.settings():
                if setting.key == key:
                    return setting
        return None


class SettingsEditorModel(AbstractSettingsModel):
    """Settings parsed from an editable document, re-parsed after every change."""

    def __init__(
        self,
        buffer: TextBuffer,
        configuration_target: ConfigurationTarget = ConfigurationTarget.USER,
        root_rule: SettingsRootRule = DOCUMENT_ROOT,
    ) -> None:
        self._buffer = buffer
        self._configuration_target = configuration_target
        self._root_rule = root_rule
        self._settings_groups = Derived(lambda: self._parse(self._root_rule))

        self.on_did_change_groups = Signal()
        self._unsubscribe = buffer.on_did_change_content.subscribe(self._on_content_change)

    def _on_content_change(self) -> None:
        self._settings_groups.invalidate()
        self.on_did_change_groups.fire()

    def _parse(self, root_rule: SettingsRootRule) -> list[Group]:
        if self._buffer.is_disposed:
            return []
        return parse(self._buffer.get_value(), self._buffer.position_at, root_rule)

    @property
    def uri(self) -> str | None:
        return self._buffer.uri

    @property
    def configuration_target(self) -> ConfigurationTarget:
        return self._configuration_target

    @property
    def settings_groups(self) -> list[Group]:
        return self._settings_groups.get()

    @property
    def content(self) -> str:
        return self._buffer.get_value()

    def find_value_matches(self, filter: str, setting: Setting) -> list[Range]:
        if setting.value_range is None:
            return []
        return self._buffer.find_matches(filter, setting.value_range)

    def _absolute_matches(self, matches: list[FilterMatch]) -> list[Range]:
        return [
            match.shift_lines(m.setting.range.start_line if m.setting.range else 0)
            for m in matches
            for match in m.matches
        ]

    def render_filtered_matches(self, filtered_matches: list[FilterMatch], filter: str) -> FilterResult:
        return FilterResult(
            all_groups=self.settings_groups,
            filtered_groups=self.settings_groups,
            matches=self._absolute_matches(filtered_matches),
            query=filter,
        )

    def render_search_matches(self, search_matches: list[FilterMatch], filter: str) -> FilterResult:
        return FilterResult(
            all_groups=self.settings_groups,
            filtered_groups=self.settings_groups,
            matches=self._absolute_matches(search_matches),
            query=filter,
        )

    def get_setting_at(self, position: Position) -> Setting | None:
        """The innermost setting whose range contains the position."""
        for group in self.settings_groups:
            for setting in group.settings():
                if setting.range is None or not setting.range.contains(position):
                    continue
                for override in setting.overrides:
                    if override.range is not None and override.range.contains(position):
                        return override
                return setting
        return None

    def dispose(self) -> None:
        self._unsubscribe()


class WorkspaceConfigurationEditorModel(SettingsEditorModel):
    """A workspace file, whose settings live under its `settings` property."""

    def __init__(
        self,
        buffer: TextBuffer,
        configuration_target: ConfigurationTarget = ConfigurationTarget.WORKSPACE,
    ) -> None:
        super().__init__(buffer, configuration_target, root_rule=nested_root("settings"))
        self._configuration_groups = Derived(lambda: self._parse(DOCUMENT_ROOT))

    def _on_content_change(self) -> None:
        self._configuration_groups.invalidate()
        super()._on_content_change()

    @property
    def configuration_groups(self) -> list[Group]:
        """Every top-level property of the workspace file, as settings."""
        return self._configuration_groups.get()


class DefaultSettingsEditorModel(AbstractSettingsModel):
    """The default settings document, with result slots after the catalog.

    Filter results are rendered into the `group_size` lines following the
    catalog, search results into the `group_size` lines after those. Each
    rendering replaces its slot with a single edit, leaving the line numbers
    of everything else untouched.
    """

    GROUP_SIZE = 1000

    def __init__(
        self,
        uri: str,
        buffer: TextBuffer,
        configuration_scope: ConfigurationScope,
        default_settings: DefaultSettings,
        group_size: int = GROUP_SIZE,
    ) -> None:
        self._uri = uri
        self._buffer = buffer
        self.configuration_scope = configuration_scope
        self._default_settings = default_settings
        self._group_size = group_size

        self._filter_group_start_line = 0
        self._search_group_start_line = 0
        self._filter_slot_rendered = False

        self.on_did_change_groups = Signal()
        self._unsubscribe = default_settings.on_did_change.subscribe(
            self.on_did_change_groups.fire
        )

    @property
    def uri(self) -> str:
        return self._uri

    @property
    def settings_groups(self) -> list[Group]:
        return self._default_settings.settings_groups

    @property
    def content(self) -> str:
        return self._buffer.get_value()

    def find_value_matches(self, filter: str, setting: Setting) -> list[Range]:
        return []

    def find_key_matches(self, filter: str, setting: Setting) -> list[Range]:
        if setting.key_range is None:
            return []
        return self._buffer.find_matches(filter, setting.key_range)

    def _filter_group_start(self) -> int:
        if not self._filter_group_start_line:
            groups = self.settings_groups
            last_range = groups[-1].range if groups else None
            if last_range is None:
                raise ValueError("Default settings groups must be ranged to place result slots")
            self._filter_group_start_line = last_range.end_line + 2
        return self._filter_group_start_line

    def render_filtered_matches(self, filtered_matches: list[FilterMatch], filter: str) -> FilterResult:
        literal_group = self._results_group(
            "literalResults",
            _("Literal Results"),
            filtered_matches,
        )
        matches = self._render_group(literal_group, self._filter_group_start(), filtered_matches)
        self._filter_slot_rendered = True

        return FilterResult(
            all_groups=self.settings_groups,
            filtered_groups=[literal_group],
            matches=matches,
            query=filter,
        )

    def render_search_matches(self, search_matches: list[FilterMatch], filter: str) -> FilterResult:
        if not self._search_group_start_line:
            filter_start = self._filter_group_start()
            if not self._filter_slot_rendered:
                # Reserve the filter slot, so that the search slot sits after it.
                self.render_filtered_matches([], filter)
            self._search_group_start_line = filter_start + self._group_size

        search_group = self._results_group(
            "searchResults",
            _("Search Results"),
            search_matches,
        )
        matches = self._render_group(search_group, self._search_group_start_line, search_matches)

        return FilterResult(
            all_groups=self.settings_groups,
            filtered_groups=[search_group],
            matches=matches,
            query=filter,
        )

    def _results_group(self, group_id: str, title: str, matches: list[FilterMatch]) -> Group:
        return Group(
            id=group_id,
            title=title,
            sections=[Section(settings=[m.setting.copy_for_display() for m in matches])],
        )

    def _render_group(self, group: Group, start_line: int, matches: list[FilterMatch]) -> list[Range]:
        builder = SettingsContentBuilder(start_line - 1)
        builder.push_line(",")
        builder.push_groups([group])
        builder.push_line("")

        if len(builder.lines) > self._group_size:
            logger.warning(
                "%s spans %d lines, more than its %d-line slot",
                group.id,
                len(builder.lines),
                self._group_size,
            )

        # The builder stamped the copies with their new ranges.
        fixed_matches = list[Range]()
        for setting, match in zip(group.sections[0].settings, matches):
            if setting.range is None:
                continue
            fixed_matches.extend(r.shift_lines(setting.range.start_line) for r in match.matches)

        content = builder.get_content(self._group_size + 1)
        end_line = min(start_line + self._group_size, self._buffer.line_count)
        self._buffer.apply_edit(Range(start_line, 1, end_line, 1), content)

        return fixed_matches

    def dispose(self) -> None:
        self._unsubscribe()


class KeybindingsProvider(Protocol):
    def get_default_keybindings_content(self) -> str: ...


def default_keybindings_contents(provider: KeybindingsProvider) -> str:
    header = "// " + _("Overwrite key bindings by placing them into your key bindings file.")
    return header + "\n" + provider.get_default_keybindings_content()


class DefaultKeybindingsEditorModel:
    def __init__(self, uri: str, provider: KeybindingsProvider) -> None:
        self._uri = uri
        self._content = Derived(lambda: default_keybindings_contents(provider))

    @property
    def uri(self) -> str:
        return self._uri

    @property
    def content(self) -> str:
        return self._content.get()

    def get_preference(self, key: str) -> None:
        return None
