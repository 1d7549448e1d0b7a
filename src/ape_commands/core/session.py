"""
Session wiring.

One session holds exactly one command registry, one converter, one plugin
registry and one executor, constructed together and passed explicitly.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from .commands.executor import CommandExecutor
from .commands.parser import CommandParser
from .commands.registry import CommandRegistry
from .llm.client import CompletionClient, create_completion_client
from ..config.models import ApeCommandsConfig
from ..nlp.converter import NaturalLanguageConverter
from ..nlp.profiles import builtin_profiles
from ..plugins.discovery import PluginDiscovery
from ..plugins.registry import PluginRegistry
from ..utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class CommandSession:
    """Everything a caller needs to resolve and run commands."""

    config: ApeCommandsConfig
    registry: CommandRegistry
    parser: CommandParser
    converter: NaturalLanguageConverter
    executor: CommandExecutor
    plugins: PluginRegistry
    discovery: PluginDiscovery

    async def initialize(self):
        """Initialize registered plugins; returns ``{plugin_id: ok}``."""
        return await self.plugins.initialize()

    async def run(self, text: str):
        return await self.executor.execute_from_string(text)


def create_session(
    config: Optional[ApeCommandsConfig] = None,
    llm: Optional[CompletionClient] = None,
    plugin_dirs: Optional[Iterable[str]] = None,
    discover: bool = True,
) -> CommandSession:
    """
    Build a session from configuration.

    Args:
        config: Configuration (defaults when omitted)
        llm: Completion client; when omitted one is created from ``config.llm``
        plugin_dirs: Extra plugin directories on top of the configured ones
        discover: Whether to run plugin discovery
    """
    config = config or ApeCommandsConfig()
    if llm is None:
        llm = create_completion_client(config.llm)

    registry = CommandRegistry()
    parser = CommandParser(registry, config.parser)
    converter = NaturalLanguageConverter(llm=llm, config=config.nlp)
    for profile in builtin_profiles().values():
        converter.register_profile(profile)

    executor = CommandExecutor(registry, parser=parser, converter=converter, config=config.executor)
    plugins = PluginRegistry(registry, converter)
    discovery = PluginDiscovery(plugins)

    if discover:
        plugins_config = config.plugins
        if plugin_dirs:
            plugins_config = plugins_config.model_copy(
                update={"plugin_directories": list(plugins_config.plugin_directories) + list(plugin_dirs)}
            )
        discovery.discover_and_register(plugins_config)

    logger.info(
        f"Session ready: {len(registry)} commands, {len(plugins)} plugins, "
        f"LLM {'enabled' if converter.llm_enabled else 'disabled'}"
    )
    return CommandSession(
        config=config,
        registry=registry,
        parser=parser,
        converter=converter,
        executor=executor,
        plugins=plugins,
        discovery=discovery,
    )
