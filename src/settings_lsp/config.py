import re
from typing import Annotated

from pydantic import AfterValidator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    PyprojectTomlConfigSettingsSource,
    SettingsConfigDict,
)

from .registry import ConfigurationScope


SETTING_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_\-]+(\.[A-Za-z0-9_\-]+)*$")


def _validate_setting_key(key: str) -> str:
    """Check that a commonly used entry looks like a dotted setting key."""

    if SETTING_KEY_PATTERN.match(key):
        return key
    raise ValueError(f"Not a setting key: {key}")


SettingKey = Annotated[str, AfterValidator(_validate_setting_key)]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        pyproject_toml_table_header=("tool", "settings-lsp"),
    )

    most_commonly_used: list[SettingKey] = list()
    """Settings shown first in the default settings document."""

    scope: ConfigurationScope = ConfigurationScope.WINDOW
    """Scope of the default settings catalog."""

    group_size: int = 1000
    """Number of lines reserved for each result block."""

    plugin_group: str = "settings_lsp"
    """Entry point group holding configuration contributions."""

    log_file: str = "/tmp/settings-lsp.log"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (init_settings, PyprojectTomlConfigSettingsSource(settings_cls))
