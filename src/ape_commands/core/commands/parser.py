"""
Grammar parser for chat command lines.

Two namespaces are recognised:

    @<domain>:<command>[:<sub>] [args...] [--flag] [--key=value]
    @<domain> <free text>                      (natural language)
    /<command> [args...] [--flag] [--key=value]

Anything else is plain text. The parser never raises; malformed lines come
back as a ``ParsedCommand`` with ``has_error`` set and, where possible,
ranked suggestions.
"""

import json
import re
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

from .registry import CommandRegistry
from .similarity import rank_candidates
from .types import (
    Command, CommandDomain, CommandPrefix, CommandType, ParsedCommand,
    ParseErrorKind, SYSTEM_AGENT_ID,
)
from ...config.models import ParserConfig
from ...utils.logging import get_logger


_SHORT_FLAG = re.compile(r"^-[A-Za-z]+$")
_NUMBER = re.compile(r"^-?\d+(\.\d+)?$")
_AGENT_TOKEN = re.compile(r"^[A-Za-z][\w-]*$")


@dataclass
class Token:
    """A lexical token; quoted tokens are never treated as flags or options."""

    text: str
    quoted: bool = False


class UnterminatedQuoteError(ValueError):
    """Raised by ``tokenize`` when a quote is never closed."""

    def __init__(self, quote: str, position: int):
        super().__init__(f"Unterminated {quote} quote starting at position {position}")
        self.quote = quote
        self.position = position


def tokenize(text: str) -> List[Token]:
    """
    Split on whitespace, keeping quoted spans together.

    ``'...'`` and ``"..."`` produce a single token with the quotes removed;
    only a token that opens with a quote is marked ``quoted``, so
    ``--name="Kim Lee"`` is still an option.
    A backslash escapes the next character inside or outside quotes.

    Raises:
        UnterminatedQuoteError: If a quote is opened and never closed
    """
    tokens: List[Token] = []
    current: List[str] = []
    quoted = False
    in_token = False
    quote_char: Optional[str] = None
    quote_start = 0
    i = 0

    while i < len(text):
        char = text[i]

        if char == "\\" and i + 1 < len(text):
            current.append(text[i + 1])
            in_token = True
            i += 2
            continue

        if quote_char:
            if char == quote_char:
                quote_char = None
            else:
                current.append(char)
        elif char in ("'", '"'):
            quote_char = char
            quote_start = i
            if not in_token:
                quoted = True
            in_token = True
        elif char.isspace():
            if in_token:
                tokens.append(Token("".join(current), quoted))
                current, quoted, in_token = [], False, False
        else:
            current.append(char)
            in_token = True
        i += 1

    if quote_char:
        raise UnterminatedQuoteError(quote_char, quote_start)

    if in_token:
        tokens.append(Token("".join(current), quoted))

    return tokens


def parse_value(value: str) -> Any:
    """Coerce an option value: booleans, numbers, JSON containers, else the string."""
    lowered = value.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False

    if _NUMBER.match(value):
        return float(value) if "." in value else int(value)

    if value[:1] in ("{", "["):
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            return value

    return value


class CommandParser:
    """
    Turns raw chat input into commands.

    With a registry attached the parser also checks that the addressed
    command exists and ranks suggestions against the registered commands.
    Without one it only validates the grammar and the closed domain set.
    """

    def __init__(self, registry: Optional[CommandRegistry] = None, config: Optional[ParserConfig] = None):
        self.registry = registry
        self.config = config or ParserConfig()
        self.logger = get_logger(__name__)

    def parse(self, text: str) -> Optional[Command]:
        """Fast path: a ``Command`` for valid input, ``None`` otherwise."""
        parsed = self.parse_with_suggestions(text)
        if parsed.type == CommandType.NONE or parsed.has_error:
            return None
        return parsed.to_command()

    def parse_with_suggestions(self, text: str) -> ParsedCommand:
        """Parse for the UI; always returns a ``ParsedCommand``."""
        raw = text if isinstance(text, str) else ""
        trimmed = raw.strip()

        if not trimmed:
            return ParsedCommand(raw_input=raw)

        prefix = trimmed[0]
        if prefix == CommandPrefix.AT.value:
            parsed = self._parse_at_command(trimmed[1:], raw)
        elif prefix == CommandPrefix.SLASH.value:
            parsed = self._parse_slash_command(trimmed[1:], raw)
        else:
            return ParsedCommand(raw_input=raw)

        if parsed.has_error:
            self.logger.debug(f"Parse error ({parsed.error_kind.value}): {parsed.error_message}")
        return parsed

    def is_command(self, text: str) -> bool:
        """True when the text carries an ``@`` or ``/`` prefix."""
        trimmed = (text or "").strip()
        return len(trimmed) > 1 and trimmed[0] in (CommandPrefix.AT.value, CommandPrefix.SLASH.value)

    def extract_domain(self, text: str) -> Optional[CommandDomain]:
        """Domain addressed by an At-command, if it is a known one."""
        trimmed = (text or "").strip()
        if not trimmed.startswith(CommandPrefix.AT.value):
            return None
        head = re.split(r"[\s:]", trimmed[1:], maxsplit=1)[0]
        return CommandDomain.from_agent_id(head)

    def _parse_at_command(self, body: str, raw: str) -> ParsedCommand:
        head, _, rest = self._split_head(body)
        agent_part, colon, command_part = head.partition(":")
        agent_id = agent_part.lower()

        parsed = ParsedCommand(
            prefix=CommandPrefix.AT,
            agent_id=agent_id,
            raw_input=raw,
        )

        domain = self._resolve_domain(agent_id)
        if domain is None:
            parsed.command = command_part.lower()
            return self._fail(
                parsed,
                ParseErrorKind.UNKNOWN_DOMAIN,
                f"Unknown domain '{agent_part}'" if agent_part else "Missing domain after '@'",
                self._domain_suggestions(agent_id, command_part.lower()),
            )

        parsed.type = CommandType.AT
        parsed.domain = domain

        if not colon:
            # Natural language: the free text goes through untouched
            free_text = rest.strip()
            parsed.args = [free_text] if free_text else []
            return parsed

        command, _, sub_command = command_part.partition(":")
        parsed.command = command.lower()
        parsed.sub_command = sub_command.lower() or None

        if not parsed.command:
            return self._fail(
                parsed,
                ParseErrorKind.MISSING_COMMAND,
                f"Missing command after '@{agent_id}:'",
                self._namespace_commands(agent_id),
            )

        if not self._apply_arguments(parsed, rest):
            return parsed

        return self._check_registered(parsed)

    def _parse_slash_command(self, body: str, raw: str) -> ParsedCommand:
        head, _, rest = self._split_head(body)
        command, _, sub_command = head.partition(":")

        parsed = ParsedCommand(
            prefix=CommandPrefix.SLASH,
            type=CommandType.SLASH,
            agent_id=SYSTEM_AGENT_ID,
            command=command.lower(),
            sub_command=sub_command.lower() or None,
            raw_input=raw,
        )

        if not parsed.command:
            return self._fail(
                parsed,
                ParseErrorKind.MISSING_COMMAND,
                "Missing command after '/'",
                self._namespace_commands(SYSTEM_AGENT_ID),
            )

        if not self._apply_arguments(parsed, rest):
            return parsed

        return self._check_registered(parsed)

    @staticmethod
    def _split_head(body: str) -> Tuple[str, str, str]:
        match = re.match(r"(\S*)(\s*)(.*)", body, re.DOTALL)
        return match.group(1), match.group(2), match.group(3)

    def _apply_arguments(self, parsed: ParsedCommand, rest: str) -> bool:
        try:
            tokens = tokenize(rest)
        except UnterminatedQuoteError as e:
            self._fail(parsed, ParseErrorKind.UNTERMINATED_QUOTE, str(e), [])
            return False

        for token in tokens:
            text = token.text
            if token.quoted:
                parsed.args.append(text)
            elif text.startswith("--") and len(text) > 2:
                name, equals, value = text[2:].partition("=")
                if equals:
                    parsed.options[name] = self._option_value(value)
                else:
                    parsed.flags[name] = True
            elif _SHORT_FLAG.match(text):
                parsed.short_flags.extend(text[1:])
            elif "=" in text and not text.startswith("=") and _AGENT_TOKEN.match(text.split("=", 1)[0]):
                name, _, value = text.partition("=")
                parsed.options[name] = self._option_value(value)
            else:
                parsed.args.append(text)

        return True

    def _option_value(self, value: str) -> Any:
        if self.config.coerce_option_values:
            return parse_value(value)
        return value

    def _resolve_domain(self, agent_id: str) -> Optional[CommandDomain]:
        if not agent_id or not _AGENT_TOKEN.match(agent_id):
            return None
        domain = CommandDomain.from_agent_id(agent_id)
        if domain is not None:
            return domain
        if agent_id != SYSTEM_AGENT_ID and self.registry is not None and self.registry.has_namespace(agent_id):
            return CommandDomain.CUSTOM
        return None

    def _check_registered(self, parsed: ParsedCommand) -> ParsedCommand:
        if self.registry is None or not self.config.validate_commands:
            return parsed

        namespace = parsed.namespace
        if self.registry.has_command(namespace, parsed.command_id):
            return parsed
        if parsed.sub_command and self.registry.has_command(namespace, parsed.command):
            return parsed

        typed = self.format_command(parsed)
        return self._fail(
            parsed,
            ParseErrorKind.UNKNOWN_COMMAND,
            f"Unknown command '{typed}'",
            self.suggest_similar_commands(typed),
        )

    @staticmethod
    def _fail(parsed: ParsedCommand, kind: ParseErrorKind, message: str, suggestions: List[str]) -> ParsedCommand:
        parsed.has_error = True
        parsed.error_kind = kind
        parsed.error_message = message
        parsed.suggestions = suggestions
        return parsed

    def _domain_suggestions(self, agent_id: str, command: str) -> List[str]:
        if command:
            suggestions = self.suggest_similar_commands(f"@{agent_id}:{command}")
            if suggestions:
                return suggestions

        known = [domain.value for domain in CommandDomain if domain is not CommandDomain.CUSTOM]
        if self.registry is not None:
            known.extend(ns for ns in self.registry.namespaces() if ns != SYSTEM_AGENT_ID)

        return [
            f"@{name}"
            for name in rank_candidates(
                agent_id, known,
                threshold=self.config.suggestion_threshold,
                limit=self.config.max_suggestions,
            )
        ]

    def _namespace_commands(self, namespace: str) -> List[str]:
        if self.registry is None:
            return []
        return [usage.command_id for usage in self.registry.get_domain_commands(namespace)][:self.config.max_suggestions]

    def suggest_similar_commands(self, text: str, limit: Optional[int] = None) -> List[str]:
        """
        Rank registered commands by normalized edit distance to ``text``.

        ``text`` is compared in its typed form (``@git:statu``) against every
        registered ``@agent:command`` and ``/command``.
        """
        if self.registry is None:
            return []

        query = (text or "").strip().split()[0] if (text or "").strip() else ""
        if not query:
            return []

        return rank_candidates(
            query,
            self.registry.command_ids(),
            threshold=self.config.suggestion_threshold,
            limit=limit or self.config.max_suggestions,
        )

    @staticmethod
    def format_command(command: Command) -> str:
        """Render the command head the way a user would type it."""
        if command.type == CommandType.SLASH or command.prefix == CommandPrefix.SLASH:
            return f"/{command.command_id}"
        if command.command:
            return f"@{command.agent_id}:{command.command_id}"
        return f"@{command.agent_id}"

    @classmethod
    def format_command_with_args(cls, command: Command) -> str:
        """Render the full command line, quoting arguments that need it."""
        parts = [cls.format_command(command)]

        if command.is_natural_language:
            parts.extend(command.args)
        else:
            parts.extend(_quote(arg) for arg in command.args)
        for letter in command.short_flags:
            parts.append(f"-{letter}")
        for name, value in command.flags.items():
            parts.append(f"--{name}" if value is True else f"--{name}={_quote(str(value))}")
        for name, value in command.options.items():
            rendered = json.dumps(value, ensure_ascii=False) if isinstance(value, (dict, list)) else _render_scalar(value)
            parts.append(f"--{name}={_quote(rendered)}")

        return " ".join(parts)


def _render_scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _quote(value: str) -> str:
    if value and not re.search(r"[\s'\"\\]", value):
        return value
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'
