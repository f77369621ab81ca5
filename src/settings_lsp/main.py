"""
Settings LSP server with symbols, hover, completion and unknown-key diagnostics.
"""

import logging
from typing import Optional

from lsprotocol.types import (
    INITIALIZE,
    TEXT_DOCUMENT_COMPLETION,
    TEXT_DOCUMENT_DID_CHANGE,
    TEXT_DOCUMENT_DID_OPEN,
    TEXT_DOCUMENT_DID_SAVE,
    TEXT_DOCUMENT_DOCUMENT_SYMBOL,
    TEXT_DOCUMENT_HOVER,
    CompletionList,
    CompletionParams,
    DidChangeTextDocumentParams,
    DidOpenTextDocumentParams,
    DidSaveTextDocumentParams,
    DocumentSymbol,
    DocumentSymbolParams,
    Hover,
    HoverParams,
    InitializeParams,
    PublishDiagnosticsParams,
)
from pygls.lsp.server import LanguageServer
from pygls.workspace import TextDocument

from .capabilities import (
    SettingDescription,
    client_position,
    client_ranges,
    document_symbols,
    setting_completions,
    unknown_setting_diagnostics,
)
from .catalog import MOST_COMMONLY_USED_ID, DefaultSettings
from .config import Settings
from .document import TextBuffer
from .filtering import filter_settings
from .models import (
    DefaultSettingsEditorModel,
    SettingsEditorModel,
    WorkspaceConfigurationEditorModel,
)
from .registry import ConfigurationRegistry, load_plugins

logger = logging.getLogger(__name__)


SETTINGS_SUFFIXES = (".json", ".jsonc")
WORKSPACE_SUFFIX = ".code-workspace"
DEFAULT_SETTINGS_URI = "settings-lsp:/defaultSettings.jsonc"
SEARCH_DEFAULT_SETTINGS_COMMAND = "settings-lsp.searchDefaultSettings"


class SettingsLanguageServer(LanguageServer):
    """Language server for JSON settings documents."""

    def __init__(self, *args, config: Settings | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.config = config or Settings()
        self.registry = ConfigurationRegistry()
        self.defaults = DefaultSettings(
            self.registry,
            self.config.most_commonly_used,
            self.config.scope,
        )
        self._models = dict[str, tuple[TextBuffer, SettingsEditorModel]]()

        self._default_model: DefaultSettingsEditorModel | None = None
        self.defaults.on_did_change.subscribe(self._reset_default_model)

    def _reset_default_model(self) -> None:
        if self._default_model is not None:
            self._default_model.dispose()
        self._default_model = None

    @property
    def default_model(self) -> DefaultSettingsEditorModel:
        """The default settings document, rebuilt after registry changes."""
        if self._default_model is None:
            self._default_model = DefaultSettingsEditorModel(
                DEFAULT_SETTINGS_URI,
                TextBuffer(self.defaults.content, uri=DEFAULT_SETTINGS_URI),
                self.config.scope,
                self.defaults,
                self.config.group_size,
            )
        return self._default_model

    def parse(
        self,
        text_document: TextDocument,
    ) -> SettingsEditorModel | None:
        uri = text_document.uri
        source = text_document.source

        if uri in self._models:
            buffer, model = self._models[uri]
            if buffer.get_value() != source:
                buffer.set_value(source)
            return model

        buffer = TextBuffer(source, uri=uri)

        if uri.endswith(WORKSPACE_SUFFIX):
            model = WorkspaceConfigurationEditorModel(buffer)
        elif uri.endswith(SETTINGS_SUFFIXES):
            model = SettingsEditorModel(buffer)
        else:
            return None

        self._models[uri] = (buffer, model)

        return model


server = SettingsLanguageServer("settings-lsp", "v0.1")


def publish_diagnostics(ls: SettingsLanguageServer, uri: str) -> None:
    doc = ls.workspace.get_text_document(uri)
    model = ls.parse(doc)

    if model is None:
        return

    diagnostics = unknown_setting_diagnostics(
        model.settings_groups,
        ls.defaults,
        client_ranges(doc),
    )
    payload = PublishDiagnosticsParams(
        uri=doc.uri,
        diagnostics=diagnostics,
    )
    ls.text_document_publish_diagnostics(payload)


@server.feature(INITIALIZE)
def initialize(ls: SettingsLanguageServer, params: InitializeParams) -> None:
    """Load the configuration contributed by installed packages."""
    load_plugins(ls.registry, ls.config.plugin_group)


@server.feature(TEXT_DOCUMENT_DID_OPEN)
async def did_open(ls: SettingsLanguageServer, params: DidOpenTextDocumentParams):
    publish_diagnostics(ls, params.text_document.uri)


@server.feature(TEXT_DOCUMENT_DID_CHANGE)
async def did_change(ls: SettingsLanguageServer, params: DidChangeTextDocumentParams):
    publish_diagnostics(ls, params.text_document.uri)


@server.feature(TEXT_DOCUMENT_DID_SAVE)
async def did_save(ls: SettingsLanguageServer, params: DidSaveTextDocumentParams):
    publish_diagnostics(ls, params.text_document.uri)


@server.feature(TEXT_DOCUMENT_HOVER)
async def hover(ls: SettingsLanguageServer, params: HoverParams) -> Optional[Hover]:
    """Show the description and default value of the setting under the cursor."""

    doc = ls.workspace.get_text_document(params.text_document.uri)
    model = ls.parse(doc)

    if model is None:
        return None

    setting = model.get_setting_at(client_position(doc, params.position))

    if setting is None:
        return None

    default = ls.defaults.get_setting_by_name(setting.key)

    if default is None:
        return None

    return Hover(
        contents=SettingDescription.from_setting(default).to_markup(),
        range=client_ranges(doc)(setting.key_range) if setting.key_range else None,
    )


@server.feature(TEXT_DOCUMENT_DOCUMENT_SYMBOL)
async def document_symbol(
    ls: SettingsLanguageServer,
    params: DocumentSymbolParams,
) -> list[DocumentSymbol] | None:
    doc = ls.workspace.get_text_document(params.text_document.uri)
    model = ls.parse(doc)

    if model is None:
        return None

    return document_symbols(model.settings_groups, client_ranges(doc))


@server.feature(TEXT_DOCUMENT_COMPLETION)
async def completion(
    ls: SettingsLanguageServer,
    params: CompletionParams,
) -> Optional[CompletionList]:
    """Complete setting keys from the default settings catalog."""

    doc = ls.workspace.get_text_document(params.text_document.uri)
    model = ls.parse(doc)

    if model is None:
        return None

    return CompletionList(is_incomplete=False, items=setting_completions(ls.defaults))


@server.command(SEARCH_DEFAULT_SETTINGS_COMMAND)
def search_default_settings(ls: SettingsLanguageServer, query: str | None = None) -> dict:
    """Render the default settings whose key contains the query into the filter slot."""

    model = ls.default_model

    if not query:
        return dict(uri=model.uri, content=model.content, matches=[])

    groups = [g for g in model.settings_groups if g.id != MOST_COMMONLY_USED_ID]
    matches = filter_settings(
        groups,
        query,
        lambda group: False,
        lambda setting: model.find_key_matches(query, setting),
    )
    result = model.render_filtered_matches(matches, query)
    to_client = client_ranges(TextDocument(model.uri, source=model.content))

    return dict(
        uri=model.uri,
        content=model.content,
        matches=[to_client(match) for match in result.matches],
    )


def run():
    logging.basicConfig(
        filename=server.config.log_file,
        level=logging.DEBUG,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger.info("LSP server started")
    server.start_io()


if __name__ == "__main__":
    run()
