"""
Shared types for command resolution and dispatch.
"""

import time
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any, Union
from enum import Enum


SYSTEM_AGENT_ID = "core"


class CommandPrefix(str, Enum):
    """Leading character that selects a namespace."""

    NONE = ""
    AT = "@"
    SLASH = "/"


class CommandType(str, Enum):
    """Grammar a line was parsed with.

    Mirrors the prefix, except a line can carry a prefix and still fail
    every grammar rule, in which case its type stays ``NONE``.
    """

    NONE = "none"
    AT = "at"
    SLASH = "slash"


class CommandDomain(str, Enum):
    """Known plugin domains for At-commands."""

    VERSION_CONTROL = "git"
    ISSUE_TRACKER = "jira"
    BUILD_SYSTEM = "swdp"
    FILE_STORE = "pocket"
    DOCUMENTS = "doc"
    KNOWLEDGE_VAULT = "vault"
    RULES = "rules"
    # Agent ids registered by plugins outside the set above
    CUSTOM = "custom"

    @classmethod
    def from_agent_id(cls, agent_id: str) -> Optional["CommandDomain"]:
        """Map an agent id to its domain, ``None`` when it is not a known domain."""
        if not agent_id:
            return None
        try:
            domain = cls(agent_id.lower())
        except ValueError:
            return None
        return None if domain is cls.CUSTOM else domain


class ParseErrorKind(Enum):
    """Why a prefixed line could not be parsed into a command."""

    UNKNOWN_DOMAIN = "unknown_domain"
    UNKNOWN_COMMAND = "unknown_command"
    UNTERMINATED_QUOTE = "unterminated_quote"
    MISSING_COMMAND = "missing_command"


class DisplayMode(str, Enum):
    """How the host should render a result."""

    TEXT = "text"
    MARKDOWN = "markdown"
    JSON = "json"
    HTML = "html"
    NONE = "none"


class ConversionSource(Enum):
    """Which tier produced a natural-language conversion."""

    HEURISTIC = "heuristic"
    LLM = "llm"
    FALLBACK = "fallback"


FlagValue = Union[bool, str]


@dataclass
class Command:
    """A resolved invocation, ready for dispatch."""

    prefix: CommandPrefix = CommandPrefix.NONE
    type: CommandType = CommandType.NONE
    domain: Optional[CommandDomain] = None
    agent_id: str = ""
    command: str = ""
    sub_command: Optional[str] = None
    args: List[str] = field(default_factory=list)
    flags: Dict[str, FlagValue] = field(default_factory=dict)
    options: Dict[str, Any] = field(default_factory=dict)
    raw_input: str = ""
    short_flags: List[str] = field(default_factory=list)

    @property
    def is_natural_language(self) -> bool:
        """At-command whose free text still has to be converted."""
        return self.type == CommandType.AT and self.command == ""

    @property
    def namespace(self) -> str:
        """Registry namespace: the agent id, or ``core`` for system commands."""
        if self.type == CommandType.SLASH:
            return SYSTEM_AGENT_ID
        return self.agent_id

    @property
    def command_id(self) -> str:
        """Registry id of the command, including any sub-command."""
        if self.sub_command:
            return f"{self.command}:{self.sub_command}"
        return self.command

    def to_dict(self) -> Dict[str, Any]:
        return {
            "prefix": self.prefix.value,
            "type": self.type.value,
            "domain": self.domain.value if self.domain else None,
            "agent_id": self.agent_id,
            "command": self.command,
            "sub_command": self.sub_command,
            "args": list(self.args),
            "flags": dict(self.flags),
            "options": dict(self.options),
            "short_flags": list(self.short_flags),
            "raw_input": self.raw_input,
        }


@dataclass
class ParsedCommand(Command):
    """Parser output for the UI path; never dispatched while ``has_error``."""

    has_error: bool = False
    error_message: Optional[str] = None
    error_kind: Optional[ParseErrorKind] = None
    suggestions: List[str] = field(default_factory=list)

    @property
    def is_command(self) -> bool:
        return self.type != CommandType.NONE and not self.has_error

    def to_command(self) -> Command:
        """Drop the parse diagnostics."""
        return Command(
            prefix=self.prefix,
            type=self.type,
            domain=self.domain,
            agent_id=self.agent_id,
            command=self.command,
            sub_command=self.sub_command,
            args=list(self.args),
            flags=dict(self.flags),
            options=dict(self.options),
            raw_input=self.raw_input,
            short_flags=list(self.short_flags),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "has_error": self.has_error,
            "error_message": self.error_message,
            "error_kind": self.error_kind.value if self.error_kind else None,
            "suggestions": list(self.suggestions),
        })
        return data


def _clamp_confidence(value: float) -> float:
    return max(0.0, min(1.0, float(value)))


@dataclass
class ConversionAlternative:
    """A lower-ranked reading of natural-language input."""

    command: str
    args: List[str] = field(default_factory=list)
    confidence: float = 0.0

    def __post_init__(self):
        self.confidence = _clamp_confidence(self.confidence)


@dataclass
class CommandConversion:
    """Natural-language converter output."""

    command: str
    args: List[str] = field(default_factory=list)
    confidence: float = 0.0
    explanation: str = ""
    alternatives: List[ConversionAlternative] = field(default_factory=list)
    source: ConversionSource = ConversionSource.HEURISTIC

    def __post_init__(self):
        self.confidence = _clamp_confidence(self.confidence)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "command": self.command,
            "args": list(self.args),
            "confidence": self.confidence,
            "explanation": self.explanation,
            "alternatives": [
                {"command": alt.command, "args": list(alt.args), "confidence": alt.confidence}
                for alt in self.alternatives
            ],
            "source": self.source.value,
        }


@dataclass(frozen=True)
class CommandUsage:
    """Static registry metadata for one command."""

    agent_id: str
    command: str
    description: str = ""
    syntax: str = ""
    examples: tuple = ()
    args: tuple = ()
    options: tuple = ()
    detailed_help: str = ""
    domain: Optional[CommandDomain] = None

    @property
    def is_system(self) -> bool:
        return self.agent_id == SYSTEM_AGENT_ID

    @property
    def command_id(self) -> str:
        """The command as a user would type it."""
        if self.is_system:
            return f"/{self.command}"
        return f"@{self.agent_id}:{self.command}"


@dataclass
class CommandResult:
    """Dispatch output; created fresh per invocation."""

    success: bool
    message: Optional[str] = None
    data: Any = None
    error: Optional[str] = None
    display_mode: DisplayMode = DisplayMode.TEXT
    suggested_next_commands: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, message: Optional[str] = None, data: Any = None,
           display_mode: DisplayMode = DisplayMode.TEXT, **kwargs) -> "CommandResult":
        return cls(success=True, message=message, data=data, display_mode=display_mode, **kwargs)

    @classmethod
    def failure(cls, error: str, suggestions: Optional[List[str]] = None,
                message: Optional[str] = None, **kwargs) -> "CommandResult":
        return cls(
            success=False,
            message=message or error,
            error=error,
            suggested_next_commands=list(suggestions or []),
            **kwargs
        )


@dataclass
class ExecutionRecord:
    """One entry of the executor's in-memory history."""

    command_id: str
    command: Command
    result: Optional[CommandResult] = None
    timestamp: float = field(default_factory=time.time)
    end_time: Optional[float] = None

    @classmethod
    def start(cls, command_id: str, command: Command) -> "ExecutionRecord":
        return cls(command_id=command_id, command=command)

    def complete(self, result: CommandResult) -> None:
        self.end_time = time.time()
        self.result = result

    @property
    def duration(self) -> Optional[float]:
        if self.end_time is None:
            return None
        return self.end_time - self.timestamp

    def to_dict(self) -> Dict[str, Any]:
        return {
            "command_id": self.command_id,
            "input": self.command.raw_input,
            "namespace": self.command.namespace,
            "command": self.command.command_id,
            "success": self.result.success if self.result else None,
            "timestamp": self.timestamp,
            "duration": self.duration,
        }
