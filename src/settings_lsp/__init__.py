from .builder import SettingsContentBuilder
from .catalog import CatalogAssembler, DefaultSettings
from .document import TextBuffer
from .filtering import EmptyFilterError, filter_settings
from .models import (
    ConfigurationTarget,
    DefaultKeybindingsEditorModel,
    DefaultSettingsEditorModel,
    SettingsEditorModel,
    WorkspaceConfigurationEditorModel,
)
from .parsers import parse
from .registry import ConfigurationNode, ConfigurationRegistry, ConfigurationScope
from .types import FilterMatch, FilterResult, Group, Position, Range, Section, Setting

__all__ = [
    "CatalogAssembler",
    "ConfigurationNode",
    "ConfigurationRegistry",
    "ConfigurationScope",
    "ConfigurationTarget",
    "DefaultKeybindingsEditorModel",
    "DefaultSettings",
    "DefaultSettingsEditorModel",
    "EmptyFilterError",
    "FilterMatch",
    "FilterResult",
    "Group",
    "Position",
    "Range",
    "Section",
    "Setting",
    "SettingsContentBuilder",
    "SettingsEditorModel",
    "TextBuffer",
    "WorkspaceConfigurationEditorModel",
    "filter_settings",
    "parse",
]
