from pathlib import Path

import pytest
from pygls.workspace import TextDocument

from settings_lsp.config import Settings
from settings_lsp.main import SettingsLanguageServer, search_default_settings
from settings_lsp.models import SettingsEditorModel, WorkspaceConfigurationEditorModel


@pytest.fixture
def ls(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> SettingsLanguageServer:
    monkeypatch.chdir(tmp_path)
    return SettingsLanguageServer("settings-lsp-test", "v0", config=Settings())


def test_models_by_uri(ls: SettingsLanguageServer):
    settings = ls.parse(TextDocument("file:///settings.json", source='{"a": 1}'))
    workspace = ls.parse(
        TextDocument("file:///project.code-workspace", source='{"settings": {"b": 2}}')
    )

    assert type(settings) is SettingsEditorModel
    assert isinstance(workspace, WorkspaceConfigurationEditorModel)
    assert ls.parse(TextDocument("file:///pyproject.toml", source="")) is None


def test_model_follows_document(ls: SettingsLanguageServer):
    model = ls.parse(TextDocument("file:///settings.json", source='{"a": 1}'))
    assert model is not None
    assert model.get_preference("a") is not None

    updated = ls.parse(TextDocument("file:///settings.json", source='{"b": 1}'))

    assert updated is model
    assert model.get_preference("a") is None
    assert model.get_preference("b") is not None


def test_search_default_settings(ls: SettingsLanguageServer):
    ls.registry.register_configuration(
        {
            "id": "editor",
            "title": "Editor",
            "properties": {
                "editor.fontSize": {"default": 14},
                "editor.tabSize": {"default": 4},
            },
        }
    )

    result = search_default_settings(ls, "FONT")
    lines = result["content"].split("\n")

    assert result["uri"] == ls.default_model.uri
    assert result["content"].count('"editor.fontSize"') == 2
    assert result["content"].count('"editor.tabSize"') == 1

    (match,) = result["matches"]
    line = lines[match.start.line]
    assert line[match.start.character : match.end.character] == "font"


def test_default_model_follows_registry(ls: SettingsLanguageServer):
    model = ls.default_model
    assert ls.default_model is model

    ls.registry.register_configuration({"id": "files", "properties": {"files.exclude": {}}})

    assert ls.default_model is not model
    assert '"files.exclude"' in ls.default_model.content
