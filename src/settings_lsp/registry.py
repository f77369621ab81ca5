import logging
from enum import StrEnum
from importlib.metadata import entry_points
from typing import Any, Callable, Iterator, Self

from pydantic import BaseModel, ConfigDict, Field

from .utils import Signal

logger = logging.getLogger(__name__)


class ConfigurationScope(StrEnum):
    WINDOW = "window"
    RESOURCE = "resource"


class PropertySchema(BaseModel):
    """Schema of a single contributed setting."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    type: str | list[str] | None = None
    default: Any = None
    description: str | None = None
    scope: ConfigurationScope = ConfigurationScope.WINDOW
    deprecation_message: str | None = Field(default=None, alias="deprecationMessage")


class ConfigurationNode(BaseModel):
    """A configuration contribution, possibly split into sub-schemas."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str | None = None
    title: str | None = None
    order: int | float | None = None
    properties: dict[str, PropertySchema] | None = None
    all_of: list["ConfigurationNode"] | None = Field(default=None, alias="allOf")

    def walk(self) -> Iterator[Self]:
        yield self
        for child in self.all_of or ():
            yield from child.walk()


Contribution = ConfigurationNode | dict[str, Any]


class ConfigurationRegistry:
    """Registered configuration nodes, in registration order."""

    def __init__(self) -> None:
        self._configurations = list[ConfigurationNode]()
        self.on_did_change = Signal()

    def register_configuration(self, node: Contribution) -> ConfigurationNode:
        return self.register_configurations(node)[0]

    def register_configurations(self, *nodes: Contribution) -> list[ConfigurationNode]:
        validated = [ConfigurationNode.model_validate(node) for node in nodes]
        self._configurations.extend(validated)
        logger.debug("Registered %d configuration node(s)", len(validated))
        self.on_did_change.fire()
        return validated

    def deregister_configuration(self, node: ConfigurationNode) -> None:
        self._configurations = [c for c in self._configurations if c is not node]
        self.on_did_change.fire()

    def get_configurations(self) -> list[ConfigurationNode]:
        return list(self._configurations)

    def get_configuration_properties(self) -> dict[str, PropertySchema]:
        return {
            key: schema
            for configuration in self._configurations
            for node in configuration.walk()
            for key, schema in (node.properties or {}).items()
        }


Plugin = Contribution | list[Contribution] | Callable[[ConfigurationRegistry], None]


def load_plugins(registry: ConfigurationRegistry, group: str = "settings_lsp") -> None:
    """Register the configuration contributed by installed packages.

    An entry point may reference a node, a list of nodes, or a callable that
    receives the registry.
    """
    for plugin in entry_points(group=group):
        contribution: Plugin = plugin.load()
        logger.info("Loading configuration from %s", plugin.name)

        if isinstance(contribution, (ConfigurationNode, dict)):
            registry.register_configuration(contribution)
        elif isinstance(contribution, list):
            registry.register_configurations(*contribution)
        elif callable(contribution):
            contribution(registry)
        else:
            raise ValueError(
                f"Entry point {plugin.name!r} should provide configuration nodes "
                f"or a callable, got {type(contribution).__name__}."
            )
