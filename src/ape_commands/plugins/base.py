"""
Base class for command plugins.

A plugin owns a domain (its agent id), the commands registered under it and,
optionally, the language profile the converter uses for natural-language
input addressed to that domain.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from ..core.commands.handlers import CancellationToken, CommandHandler, as_handler
from ..core.commands.types import CommandDomain
from ..nlp.patterns import DomainLanguageProfile
from ..utils.error_handling import CommandExecutionError
from ..utils.logging import get_logger


class PluginKind(str, Enum):
    """Where a plugin came from."""

    INTERNAL = "internal"
    EXTERNAL = "external"


@dataclass
class PluginCommand:
    """A command owned by a plugin."""

    id: str
    handler: CommandHandler
    description: str = ""
    syntax: str = ""
    examples: List[str] = field(default_factory=list)
    name: Optional[str] = None
    args: List[str] = field(default_factory=list)
    options: List[str] = field(default_factory=list)
    detailed_help: str = ""

    def meta(self) -> Dict[str, Any]:
        """Usage metadata handed to the command registry."""
        return {
            "description": self.description,
            "syntax": self.syntax,
            "examples": self.examples,
            "args": self.args,
            "options": self.options,
            "detailed_help": self.detailed_help,
        }


class BasePlugin(ABC):
    """
    Base for every plugin.

    Subclasses define ``id``, ``name`` and ``domain`` and register their
    commands in ``__init__`` (or ``initialize``) with ``register_command``.
    """

    def __init__(self):
        self.logger = get_logger(f"{__name__}.{self.id}")
        self._commands: Dict[str, PluginCommand] = {}
        self._enabled = True

    @property
    @abstractmethod
    def id(self) -> str:
        """Unique plugin id."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Display name."""

    @property
    def domain(self) -> str:
        """Agent id the plugin's commands live under; defaults to the plugin id."""
        return self.id

    @property
    def command_domain(self) -> CommandDomain:
        return CommandDomain.from_agent_id(self.domain) or CommandDomain.CUSTOM

    @property
    def description(self) -> str:
        return ""

    def is_enabled(self) -> bool:
        return self._enabled

    def set_enabled(self, enabled: bool) -> None:
        self._enabled = bool(enabled)
        self.logger.info(f"Plugin {self.id} {'enabled' if self._enabled else 'disabled'}")

    async def initialize(self) -> None:
        """Connect to back-ends, load settings. Default does nothing."""

    def get_language_profile(self) -> Optional[DomainLanguageProfile]:
        """Trigger phrases for natural-language input; ``None`` disables Tier 1."""
        return None

    def register_command(self, command: PluginCommand) -> bool:
        """Add or replace a command by id; ``False`` for an empty id."""
        command_id = (command.id or "").strip().lower()
        if not command_id:
            self.logger.warning(f"Plugin {self.id}: refusing command with empty id")
            return False

        command.id = command_id
        replaced = command_id in self._commands
        self._commands[command_id] = command
        self.logger.debug(f"Plugin {self.id}: {'replaced' if replaced else 'registered'} command {command_id}")
        return True

    def create_command(
        self,
        command_id: str,
        handler: Any,
        description: str = "",
        syntax: str = "",
        examples: Optional[List[str]] = None,
        **kwargs,
    ) -> PluginCommand:
        """Build a ``PluginCommand`` with the plugin's default syntax."""
        command_handler = as_handler(handler)
        if command_handler is None:
            raise TypeError(f"Handler for {self.id}:{command_id} is not callable")

        return PluginCommand(
            id=command_id,
            handler=command_handler,
            description=description,
            syntax=syntax or f"@{self.domain}:{command_id}",
            examples=list(examples or []),
            **kwargs,
        )

    def get_commands(self) -> List[PluginCommand]:
        return list(self._commands.values())

    def find_command(self, name: str) -> Optional[PluginCommand]:
        """Find a command by id or display name."""
        key = (name or "").strip().lower()
        if key in self._commands:
            return self._commands[key]
        for command in self._commands.values():
            if command.name and command.name.lower() == key:
                return command
        return None

    async def execute_command(
        self,
        name: str,
        args: Optional[List[str]] = None,
        flags: Optional[Dict[str, Any]] = None,
        options: Optional[Dict[str, Any]] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Any:
        """
        Run one of this plugin's commands directly.

        Raises:
            CommandExecutionError: If the command does not exist or the plugin is disabled
        """
        if not self.is_enabled():
            raise CommandExecutionError(f"Plugin {self.id} is disabled", command=name)

        command = self.find_command(name)
        if command is None:
            raise CommandExecutionError(
                f"Plugin {self.id} has no command '{name}'",
                command=name,
                suggestions=[f"@{self.domain}:{c.id}" for c in self.get_commands()],
            )

        return await command.handler.execute(list(args or []), dict(flags or {}), dict(options or {}), cancel_token)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={self.id!r} domain={self.domain!r} commands={len(self._commands)}>"
