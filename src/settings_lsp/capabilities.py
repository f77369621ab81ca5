import json
from dataclasses import dataclass
from typing import Any, Callable, Self

from lsprotocol.types import (
    CompletionItem,
    CompletionItemKind,
    Diagnostic,
    DiagnosticSeverity,
    DocumentSymbol,
    InsertTextFormat,
    MarkupContent,
    MarkupKind,
    SymbolKind,
)
from lsprotocol.types import Position as LspPosition
from lsprotocol.types import Range as LspRange
from pygls.workspace import TextDocument

from .catalog import MOST_COMMONLY_USED_ID, DefaultSettings
from .parsers import is_override_key
from .types import Group, Position, Range, Setting

RangeConverter = Callable[[Range], LspRange]


@dataclass
class SettingDescription:
    key: str
    description: str | None
    default: Any

    @classmethod
    def from_setting(cls, setting: Setting) -> Self:
        return cls(
            key=setting.key,
            description="\n".join(setting.description) or None,
            default=setting.value,
        )

    @property
    def markdown(self) -> str:
        default = json.dumps(self.default, indent=2, ensure_ascii=False)
        parts = [f"**{self.key}**"]
        if self.description:
            parts.append(self.description)
        parts.append(f"Default:\n```json\n{default}\n```")
        return "\n\n".join(parts)

    def to_markup(self) -> MarkupContent:
        return MarkupContent(kind=MarkupKind.Markdown, value=self.markdown)


def client_ranges(document: TextDocument) -> RangeConverter:
    """Convert code point ranges to the position encoding negotiated with the client.

    LSP columns count UTF-16 code units by default, so characters outside
    the basic multilingual plane shift every column after them.
    """
    lines = document.lines
    codec = document.position_codec

    def convert(range: Range) -> LspRange:
        return codec.range_to_client_units(lines, range.to_lsp())

    return convert


def client_position(document: TextDocument, position: LspPosition) -> Position:
    codec = document.position_codec
    server_position = codec.position_from_client_units(document.lines, position)
    return Position(line=server_position.line + 1, column=server_position.character + 1)


def setting_symbol(
    setting: Setting,
    to_client: RangeConverter = Range.to_lsp,
) -> DocumentSymbol | None:
    if setting.range is None or setting.key_range is None:
        return None

    children = [
        symbol
        for override in setting.overrides
        if (symbol := setting_symbol(override, to_client)) is not None
    ]

    return DocumentSymbol(
        name=setting.key,
        kind=SymbolKind.Namespace if is_override_key(setting.key) else SymbolKind.Property,
        range=to_client(setting.range),
        selection_range=to_client(setting.key_range),
        children=children or None,
    )


def document_symbols(
    groups: list[Group],
    to_client: RangeConverter = Range.to_lsp,
) -> list[DocumentSymbol]:
    return [
        symbol
        for group in groups
        for setting in group.settings()
        if (symbol := setting_symbol(setting, to_client)) is not None
    ]


def unknown_setting_diagnostics(
    groups: list[Group],
    defaults: DefaultSettings,
    to_client: RangeConverter = Range.to_lsp,
) -> list[Diagnostic]:
    """Warn about keys the configuration registry does not know."""

    diagnostics = list[Diagnostic]()

    def check(setting: Setting) -> None:
        if setting.key_range is None:
            return
        if defaults.get_setting_by_name(setting.key) is not None:
            return
        diagnostics.append(
            Diagnostic(
                range=to_client(setting.key_range),
                message=f"Unknown configuration setting `{setting.key}`.",
                severity=DiagnosticSeverity.Warning,
                source="settings-lsp",
            )
        )

    for group in groups:
        for setting in group.settings():
            if is_override_key(setting.key):
                for override in setting.overrides:
                    check(override)
            else:
                check(setting)

    return diagnostics


def setting_completions(defaults: DefaultSettings) -> list[CompletionItem]:
    items = list[CompletionItem]()

    for group in defaults.settings_groups:
        if group.id == MOST_COMMONLY_USED_ID:
            continue
        for setting in group.settings():
            description = SettingDescription.from_setting(setting)
            detail = description.description or ""
            items.append(
                CompletionItem(
                    label=setting.key,
                    kind=CompletionItemKind.Property,
                    detail=detail[:50] + "..." if len(detail) > 50 else detail,
                    documentation=description.to_markup(),
                    insert_text=setting.key,
                    insert_text_format=InsertTextFormat.PlainText,
                )
            )

    return items
