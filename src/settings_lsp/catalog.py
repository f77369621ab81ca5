"""
Assembly of the default settings catalog from the configuration registry.
"""

import logging
from copy import deepcopy
from dataclasses import dataclass
from gettext import gettext as _
from typing import Any, Sequence

from .builder import SettingsContentBuilder
from .parsers import is_override_key
from .registry import (
    ConfigurationNode,
    ConfigurationRegistry,
    ConfigurationScope,
    PropertySchema,
)
from .types import Group, Section, Setting
from .utils import Derived, Memo, Signal

logger = logging.getLogger(__name__)


MOST_COMMONLY_USED_ID = "mostCommonlyUsed"


def node_sort_key(node: ConfigurationNode) -> tuple[bool, float, str]:
    """Order first, nodes without order last, then title."""
    return (node.order is None, node.order or 0, node.title or "")


def remove_empty_settings_groups(groups: list[Group]) -> list[Group]:
    result = list[Group]()
    for group in groups:
        group.sections = [section for section in group.sections if section.settings]
        if group.sections:
            result.append(group)
    return result


def parse_override_settings(key: str, overrides: Any) -> list[Setting]:
    if not isinstance(overrides, dict):
        return []
    return [
        Setting(key=name, value=value, override_of=key)
        for name, value in overrides.items()
    ]


def to_content(as_array: bool, *group_lists: Sequence[Group]) -> str:
    """Render lists of groups, one object per list.

    With `as_array`, the objects are wrapped in a JSON array.
    """
    builder = SettingsContentBuilder()

    if as_array:
        builder.push_line("[")

    for i, groups in enumerate(group_lists):
        builder.push_groups(groups)
        if i != len(group_lists) - 1:
            builder.push_line(",")

    if as_array:
        builder.push_line("]")

    return builder.get_content()


class CatalogAssembler:
    """Turns registered configuration nodes into settings groups."""

    def __init__(
        self,
        registry: ConfigurationRegistry,
        scope: ConfigurationScope = ConfigurationScope.WINDOW,
    ) -> None:
        self.registry = registry
        self.scope = scope

    def get_registered_groups(self) -> list[Group]:
        configurations = sorted(self.registry.get_configurations(), key=node_sort_key)

        result = list[Group]()
        for configuration in configurations:
            self._parse_config(configuration, result, configurations)

        return remove_empty_settings_groups(result)

    def _resolve_title(
        self,
        node: ConfigurationNode,
        configurations: list[ConfigurationNode],
    ) -> str | None:
        if node.title:
            return node.title
        if node.id is None:
            return None
        return next(
            (c.title for c in configurations if c.id == node.id and c.title),
            None,
        )

    def _parse_config(
        self,
        node: ConfigurationNode,
        result: list[Group],
        configurations: list[ConfigurationNode],
        group: Group | None = None,
    ) -> None:
        title = self._resolve_title(node, configurations)

        if title:
            if group is None:
                group = next((g for g in result if g.title == title), None)
                if group is None:
                    group = Group(sections=[Section()], id=node.id, title=title)
                    result.append(group)
            elif group.sections[-1].settings:
                group.sections.append(Section(title=title))
            else:
                group.sections[-1].title = title

        if node.properties:
            if group is None:
                group = next((g for g in result if g.title == node.id), None)
                if group is None:
                    group = Group(sections=[Section()], id=node.id, title=node.id)
                    result.append(group)

            section = group.sections[-1]
            section.settings = sorted(
                [*section.settings, *self._parse_settings(node.properties)],
                key=lambda setting: setting.key,
            )

        for child in node.all_of or ():
            self._parse_config(child, result, configurations, group)

    def _parse_settings(self, properties: dict[str, PropertySchema]) -> list[Setting]:
        result = list[Setting]()

        for key, schema in properties.items():
            if schema.deprecation_message or not self._matches_scope(schema):
                continue

            value = deepcopy(schema.default)
            result.append(
                Setting(
                    key=key,
                    value=value,
                    description=schema.description.split("\n") if schema.description else [],
                    overrides=parse_override_settings(key, value) if is_override_key(key) else [],
                )
            )

        return result

    def _matches_scope(self, schema: PropertySchema) -> bool:
        if self.scope is ConfigurationScope.WINDOW:
            return True
        return schema.scope == self.scope


@dataclass
class Catalog:
    groups: list[Group]
    """Commonly used settings first, then every registered group."""

    content: str
    settings_by_name: dict[str, Setting]


class DefaultSettings:
    """The default settings document, derived from the configuration registry."""

    def __init__(
        self,
        registry: ConfigurationRegistry,
        most_commonly_used_keys: Sequence[str] = (),
        configuration_scope: ConfigurationScope = ConfigurationScope.WINDOW,
        raw_cache: Memo[str] | None = None,
    ) -> None:
        self.configuration_scope = configuration_scope
        self.on_did_change = Signal()

        self._most_commonly_used_keys = list(most_commonly_used_keys)
        self._assembler = CatalogAssembler(registry, configuration_scope)
        self._raw_cache = raw_cache if raw_cache is not None else Memo[str]()
        self._catalog = Derived(self._parse)
        self._unsubscribe = registry.on_did_change.subscribe(self._on_registry_change)

    def _on_registry_change(self) -> None:
        self._catalog.invalidate()
        self.on_did_change.fire()

    @property
    def content(self) -> str:
        return self._catalog.get().content

    @property
    def settings_groups(self) -> list[Group]:
        return self._catalog.get().groups

    @property
    def raw(self) -> str:
        """All registered groups as a single object, shared through the raw cache."""
        return self._raw_cache.get_or_compute(
            lambda: to_content(False, self._assembler.get_registered_groups())
        )

    def get_setting_by_name(self, name: str) -> Setting | None:
        return self._catalog.get().settings_by_name.get(name)

    def _parse(self) -> Catalog:
        groups = self._assembler.get_registered_groups()
        settings_by_name = {
            setting.key: setting for group in groups for setting in group.settings()
        }
        most_commonly_used = self._most_commonly_used_group(settings_by_name)

        logger.debug(
            "Assembled %d default settings in %d groups",
            len(settings_by_name),
            len(groups),
        )

        return Catalog(
            groups=[most_commonly_used, *groups],
            content=to_content(True, [most_commonly_used], groups),
            settings_by_name=settings_by_name,
        )

    def _most_commonly_used_group(self, settings_by_name: dict[str, Setting]) -> Group:
        settings = [
            settings_by_name[key].copy_for_display()
            for key in self._most_commonly_used_keys
            if key in settings_by_name
        ]

        return Group(
            id=MOST_COMMONLY_USED_ID,
            title=_("Commonly Used"),
            sections=[Section(settings=settings)],
        )

    def dispose(self) -> None:
        self._unsubscribe()
