from .scanner import visit
from .settings import ParserState, SettingsTransition, parse
from .types import (
    DOCUMENT_ROOT,
    ParseErrorCode,
    PropertyPath,
    SettingsRootRule,
    any_root,
    nested_root,
)
from .utils import OVERRIDE_PROPERTY_PATTERN, is_override_key

__all__ = [
    "DOCUMENT_ROOT",
    "OVERRIDE_PROPERTY_PATTERN",
    "ParseErrorCode",
    "ParserState",
    "PropertyPath",
    "SettingsRootRule",
    "SettingsTransition",
    "any_root",
    "is_override_key",
    "nested_root",
    "parse",
    "visit",
]
