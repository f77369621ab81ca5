import logging
from dataclasses import dataclass, field
from functools import reduce
from typing import Any

from ..types import Group, Position, Range, Section, Setting
from .scanner import visit
from .types import (
    DOCUMENT_ROOT,
    ArrayBegin,
    ArrayEnd,
    JsonEvent,
    LiteralValue,
    ObjectBegin,
    ObjectEnd,
    OffsetToPosition,
    ParseError,
    PropertyName,
    SettingsRootRule,
)
from .utils import is_override_key, range_from_offsets

logger = logging.getLogger(__name__)


Container = dict[str, Any] | list[Any]


@dataclass
class ParserState:
    """Everything the settings parser tracks between two events."""

    settings: list[Setting] = field(default_factory=list)
    """Top-level settings, in document order."""

    parents: list[Container] = field(default_factory=list)
    """Open objects and arrays, innermost last."""

    path: list[str | None] = field(default_factory=list)
    """Property name under which each open container sits."""

    pending_property: str | None = None
    """Name of the property whose value comes next."""

    root_depth: int | None = None
    """Number of containers around the settings root, while it is open."""

    root_closed: bool = False

    override: Setting | None = None
    """Override entry whose value object is currently open."""

    last_opened: tuple[list[Setting], Setting] | None = None
    """Most recently opened setting, with the list that holds it."""

    root_start: Position | None = None
    root_end: Position | None = None

    @property
    def depth(self) -> int:
        return len(self.parents)

    def is_top_level(self) -> bool:
        return self.root_depth is not None and self.depth == self.root_depth + 1

    def is_in_override(self) -> bool:
        return (
            self.root_depth is not None
            and self.override is not None
            and self.depth == self.root_depth + 2
        )

    def value_owner(self) -> Setting | None:
        """The setting whose value sits at the current depth, if any."""
        if self.is_top_level():
            return self.settings[-1] if self.settings else None

        if self.is_in_override() and self.override is not None:
            overrides = self.override.overrides
            return overrides[-1] if overrides else None

        return None


class SettingsTransition:
    """Folds JSON events into a `ParserState`, one event at a time."""

    def __init__(
        self,
        offset_to_position: OffsetToPosition,
        is_settings_root: SettingsRootRule,
    ) -> None:
        self.offset_to_position = offset_to_position
        self.is_settings_root = is_settings_root

    def __call__(self, state: ParserState, event: JsonEvent) -> ParserState:
        match event:
            case ObjectBegin():
                self.object_begin(state, event)
            case ObjectEnd():
                self.container_end(state, event)
                self.object_end(state, event)
            case ArrayBegin():
                array = list[Any]()
                self.on_value(state, array, event)
                self.push(state, array)
            case ArrayEnd():
                self.container_end(state, event)
            case PropertyName(name=name):
                self.property_name(state, name, event)
            case LiteralValue(value=value):
                self.on_value(state, value, event)
            case ParseError(code=code):
                logger.debug("Syntax error %s at offset %d", code.value, event.offset)
                self.error(state)
        return state

    def position(self, offset: int) -> Position:
        return self.offset_to_position(offset)

    def push(self, state: ParserState, container: Container) -> None:
        state.parents.append(container)
        state.path.append(state.pending_property)
        state.pending_property = None

    def on_value(self, state: ParserState, value: Any, event: JsonEvent) -> None:
        if state.parents:
            parent = state.parents[-1]
            if isinstance(parent, list):
                parent.append(value)
            elif state.pending_property is not None:
                parent[state.pending_property] = value

        setting = state.value_owner()
        # A setting discarded after an error leaves its value without owner.
        if setting is None or setting.value_range is not None:
            return

        value_range = range_from_offsets(self.position, event.offset, event.length)
        setting.value = value
        setting.value_range = value_range
        if setting.range is not None:
            setting.range = setting.range.with_end(value_range.end)

    def object_begin(self, state: ParserState, event: ObjectBegin) -> None:
        if (
            state.root_depth is None
            and not state.root_closed
            and self.is_settings_root(state.pending_property, tuple(state.path))
        ):
            state.root_depth = state.depth
            state.root_start = self.position(event.offset)

        container = dict[str, Any]()
        self.on_value(state, container, event)
        self.push(state, container)

    def container_end(self, state: ParserState, event: JsonEvent) -> None:
        container = state.parents.pop()
        state.path.pop()
        state.pending_property = None

        setting = state.value_owner()
        if setting is None or setting.value is not container:
            return

        end = self.position(event.offset + event.length)
        if setting.value_range is not None:
            setting.value_range = setting.value_range.with_end(end)
        if setting.range is not None:
            setting.range = setting.range.with_end(end)

    def object_end(self, state: ParserState, event: ObjectEnd) -> None:
        if state.is_top_level():
            state.override = None

        if state.root_depth is not None and state.depth == state.root_depth:
            state.root_end = self.position(event.offset)
            state.root_depth = None
            state.root_closed = True
            state.override = None

    def property_name(self, state: ParserState, name: str, event: PropertyName) -> None:
        state.pending_property = name

        top_level = state.is_top_level()
        if not (top_level or state.is_in_override()):
            return

        start = self.position(event.offset)
        end = self.position(event.offset + event.length)

        setting = Setting(
            key=name,
            # Without the surrounding quotes.
            key_range=Range(
                start_line=start.line,
                start_column=start.column + 1,
                end_line=end.line,
                end_column=max(end.column - 1, start.column + 1),
            ),
            range=Range.from_positions(start, end),
        )

        if top_level:
            state.settings.append(setting)
            state.last_opened = (state.settings, setting)
            state.override = setting if is_override_key(name) else None
        elif state.override is not None:
            setting.override_of = state.override.key
            state.override.overrides.append(setting)
            state.last_opened = (state.override.overrides, setting)

    def error(self, state: ParserState) -> None:
        if state.last_opened is None:
            return

        container, setting = state.last_opened
        if setting.is_complete:
            return

        if container and container[-1] is setting:
            logger.debug("Discarding incomplete setting %r", setting.key)
            container.pop()
        if state.override is setting:
            state.override = None
        state.last_opened = None


def parse(
    content: str,
    offset_to_position: OffsetToPosition,
    is_settings_root: SettingsRootRule = DOCUMENT_ROOT,
) -> list[Group]:
    """Parse a settings document into range-annotated groups.

    Returns an empty list if the document has no settings root or the root
    holds no settings. Otherwise, a single group with a single section holding
    the top-level settings. Override entries keep their nested settings in
    `Setting.overrides`.
    """

    transition = SettingsTransition(offset_to_position, is_settings_root)
    state = reduce(transition, visit(content), ParserState())

    if not state.settings:
        return []

    start = state.root_start or offset_to_position(0)
    end = state.root_end or offset_to_position(len(content))

    return [
        Group(
            sections=[Section(settings=state.settings)],
            range=Range.from_positions(start, end),
        )
    ]
