"""
ape-commands: command resolution for chat-style agents.

    session = create_session(load_config())
    result = await session.run("@git:status")
"""

__version__ = "0.1.0"

from .core.commands.types import (
    Command,
    CommandConversion,
    CommandDomain,
    CommandPrefix,
    CommandResult,
    CommandType,
    CommandUsage,
    ParsedCommand,
)
from .core.commands.executor import CommandExecutor
from .core.commands.parser import CommandParser
from .core.commands.registry import CommandRegistry
from .core.session import CommandSession, create_session
from .nlp.converter import NaturalLanguageConverter
from .plugins import BasePlugin, PluginCommand, PluginKind, PluginRegistry

__all__ = [
    "__version__",
    "Command",
    "CommandConversion",
    "CommandDomain",
    "CommandPrefix",
    "CommandResult",
    "CommandType",
    "CommandUsage",
    "ParsedCommand",
    "CommandExecutor",
    "CommandParser",
    "CommandRegistry",
    "CommandSession",
    "create_session",
    "NaturalLanguageConverter",
    "BasePlugin",
    "PluginCommand",
    "PluginKind",
    "PluginRegistry",
]
