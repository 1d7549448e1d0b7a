"""
Command executor (dispatcher).

Entry point for callers: ``execute_from_string`` parses a line, resolves
natural language through the converter, looks the handler up in the
registry, runs it and normalizes whatever it returns. Every failure on the
way comes back as a failed ``CommandResult``.
"""

import secrets
import threading
import time
from collections import deque
from typing import TYPE_CHECKING, Any, Deque, Dict, List, Mapping, Optional, Tuple

from .handlers import CancellationToken, CommandHandler
from .parser import CommandParser
from .registry import CommandRegistry
from .types import (
    Command, CommandConversion, CommandResult, CommandType, ConversionSource,
    DisplayMode, ExecutionRecord, ParsedCommand, SYSTEM_AGENT_ID,
)
from ...config.models import ExecutorConfig, ParserConfig
from ...utils.error_handling import CommandCancelledError, CommandExecutionError
from ...utils.logging import get_logger, log_performance

if TYPE_CHECKING:
    from ...nlp.converter import NaturalLanguageConverter


HELP_COMMAND = "/help"


def generate_command_id() -> str:
    """``cmd_<epoch ms>_<random hex>``."""
    return f"cmd_{int(time.time() * 1000)}_{secrets.token_hex(4)}"


class CommandExecutor:
    """
    Resolves and runs commands against a ``CommandRegistry``.

    Args:
        registry: Shared command registry
        parser: Parser bound to the same registry (created when omitted)
        converter: Natural-language converter (created, heuristics only, when omitted)
        config: History size, low-confidence threshold, core commands
        parser_config: Used only when the parser is created here
    """

    def __init__(
        self,
        registry: CommandRegistry,
        parser: Optional[CommandParser] = None,
        converter: Optional["NaturalLanguageConverter"] = None,
        config: Optional[ExecutorConfig] = None,
        parser_config: Optional[ParserConfig] = None,
    ):
        self.registry = registry
        self.parser = parser or CommandParser(registry, parser_config)
        if converter is None:
            from ...nlp.converter import NaturalLanguageConverter
            converter = NaturalLanguageConverter()
        self.converter = converter
        self.config = config or ExecutorConfig()
        self.logger = get_logger(__name__)

        self._history: Deque[ExecutionRecord] = deque(maxlen=self.config.history_limit)
        self._pending: Dict[str, CancellationToken] = {}
        self._pending_lock = threading.Lock()

        if self.config.register_core_commands:
            from .system_commands import register_core_commands
            register_core_commands(self)

    async def execute_from_string(
        self,
        raw: str,
        command_id: Optional[str] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> CommandResult:
        """Parse ``raw`` and execute it."""
        parsed = self.parser.parse_with_suggestions(raw)

        if parsed.has_error:
            self.logger.info(f"Rejected input: {parsed.error_message}")
            return CommandResult.failure(
                parsed.error_message or "Invalid command",
                suggestions=parsed.suggestions or self._fallback_suggestions(),
                metadata={"error_kind": parsed.error_kind.value if parsed.error_kind else None},
            )

        if parsed.type == CommandType.NONE:
            routed = self._route_plain_text(parsed)
            if routed is None:
                return CommandResult.failure(
                    "Not a command. Start with '@<domain>' or '/'",
                    suggestions=self._fallback_suggestions(),
                )
            parsed = routed

        return await self.execute(parsed.to_command(), command_id=command_id, cancel_token=cancel_token)

    def _route_plain_text(self, parsed: ParsedCommand) -> Optional[ParsedCommand]:
        agent = self.config.default_agent
        text = parsed.raw_input.strip()
        if not agent or not text:
            return None

        routed = self.parser.parse_with_suggestions(f"@{agent} {text}")
        if routed.has_error:
            self.logger.warning(f"Default agent '{agent}' is not usable: {routed.error_message}")
            return None
        routed.raw_input = parsed.raw_input
        return routed

    async def execute(
        self,
        command: Command,
        command_id: Optional[str] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> CommandResult:
        """Execute an already-parsed command."""
        command_id = command_id or generate_command_id()
        token = cancel_token or CancellationToken()
        record = ExecutionRecord.start(command_id, command)

        with self._pending_lock:
            self._pending[command_id] = token

        try:
            result = await self._execute(command, command_id, token)
        finally:
            with self._pending_lock:
                self._pending.pop(command_id, None)

        result.metadata.setdefault("command_id", command_id)
        if token.is_cancelled:
            result.metadata["cancelled"] = True

        record.complete(result)
        self._history.append(record)
        return result

    async def _execute(self, command: Command, command_id: str, token: CancellationToken) -> CommandResult:
        conversion: Optional[CommandConversion] = None

        if command.is_natural_language:
            conversion = await self._convert(command)
            command.command = conversion.command
            command.sub_command = None
            command.args = list(conversion.args)

        resolved = self._resolve_handler(command)
        if resolved is None:
            typed = self.parser.format_command(command)
            self.logger.info(f"No handler for {typed}")
            result = CommandResult.failure(
                f"Unknown command '{typed}'",
                suggestions=self.parser.suggest_similar_commands(typed) or self._fallback_suggestions(),
            )
        else:
            handler, args = resolved
            result = await self._invoke(handler, command, args, command_id, token)

        if conversion is not None:
            self._attach_conversion(result, conversion)

        return result

    async def _convert(self, command: Command) -> CommandConversion:
        text = command.args[0] if command.args else ""
        catalog = self.registry.get_domain_commands(command.agent_id)
        conversion = await self.converter.convert(command.agent_id, text, catalog)
        self.logger.debug(
            f"Converted '{text}' to @{command.agent_id}:{conversion.command} "
            f"({conversion.source.value}, {conversion.confidence:.2f})"
        )
        return conversion

    def _resolve_handler(self, command: Command) -> Optional[Tuple[CommandHandler, List[str]]]:
        namespace = command.namespace
        handler = self.registry.get_handler(namespace, command.command_id)
        if handler is not None:
            return handler, list(command.args)

        if command.sub_command:
            handler = self.registry.get_handler(namespace, command.command)
            if handler is not None:
                return handler, [command.sub_command] + list(command.args)

        return None

    async def _invoke(
        self,
        handler: CommandHandler,
        command: Command,
        args: List[str],
        command_id: str,
        token: CancellationToken,
    ) -> CommandResult:
        typed = self.parser.format_command(command)
        flags = dict(command.flags)
        for letter in command.short_flags:
            flags.setdefault(letter, True)

        try:
            token.raise_if_cancelled()
            with log_performance(f"{typed} [{command_id}]"):
                value = await handler.execute(args, flags, dict(command.options), token)

        except CommandCancelledError as e:
            self.logger.info(f"{typed} cancelled: {e.message}")
            return CommandResult.failure(e.message, message="Command cancelled", metadata={"cancelled": True})

        except CommandExecutionError as e:
            self.logger.warning(f"{typed} failed: {e.message}")
            return CommandResult.failure(e.message, suggestions=e.suggestions, metadata={"details": e.details})

        except Exception as e:
            self.logger.error(f"{typed} raised {type(e).__name__}: {e}", exc_info=True)
            return CommandResult.failure(
                f"{type(e).__name__}: {e}",
                message=f"Command {typed} failed",
                suggestions=[HELP_COMMAND] if self.registry.has_command(SYSTEM_AGENT_ID, "help") else [],
            )

        return self.normalize_result(value)

    @staticmethod
    def normalize_result(value: Any) -> CommandResult:
        """Coerce a handler's return value into a ``CommandResult``."""
        if value is None:
            return CommandResult.ok("Command executed")

        if isinstance(value, CommandResult):
            return value

        if isinstance(value, str):
            markdown = "#" in value or "**" in value
            return CommandResult.ok(value, display_mode=DisplayMode.MARKDOWN if markdown else DisplayMode.TEXT)

        if isinstance(value, Mapping):
            if "success" in value:
                return _result_from_mapping(value)
            if "content" in value:
                return CommandResult.ok(
                    str(value["content"]),
                    data=dict(value),
                    display_mode=DisplayMode.MARKDOWN,
                )

        return CommandResult.ok(data=value, display_mode=DisplayMode.JSON)

    def _attach_conversion(self, result: CommandResult, conversion: CommandConversion) -> None:
        result.metadata["conversion"] = conversion.to_dict()
        if conversion.alternatives and not result.suggested_next_commands:
            result.suggested_next_commands = [alt.command for alt in conversion.alternatives]

        fell_back = conversion.source == ConversionSource.FALLBACK
        if fell_back or conversion.confidence < self.config.low_confidence_threshold:
            result.metadata["low_confidence"] = True
            warning = (
                f"Low confidence ({conversion.confidence:.2f}) interpreting the request as "
                f"'{conversion.command}': {conversion.explanation}"
            )
            result.message = f"{warning}\n\n{result.message}" if result.message else warning

    def _fallback_suggestions(self) -> List[str]:
        if self.registry.has_command(SYSTEM_AGENT_ID, "help"):
            return [HELP_COMMAND]
        return self.registry.command_ids()[:self.parser.config.max_suggestions]

    def cancel(self, command_id: str) -> bool:
        """Signal cancellation of a running command; ``False`` if it is not running."""
        with self._pending_lock:
            token = self._pending.get(command_id)
        if token is None:
            return False
        self.logger.info(f"Cancelling {command_id}")
        token.cancel()
        return True

    def cancel_all(self) -> int:
        with self._pending_lock:
            tokens = list(self._pending.values())
        return sum(1 for token in tokens if token.cancel())

    def pending_commands(self) -> List[str]:
        with self._pending_lock:
            return list(self._pending)

    def get_execution_history(self, limit: int = 10) -> List[ExecutionRecord]:
        """Most recent records last."""
        if limit <= 0:
            return []
        return list(self._history)[-limit:]

    def clear_history(self) -> None:
        self._history.clear()
        self.logger.debug("Execution history cleared")

    def get_statistics(self) -> Dict[str, Any]:
        records = list(self._history)
        return {
            "history_size": len(records),
            "history_limit": self._history.maxlen,
            "successful": sum(1 for r in records if r.result and r.result.success),
            "failed": sum(1 for r in records if r.result and not r.result.success),
            "pending": len(self.pending_commands()),
        }


def _result_from_mapping(value: Mapping[str, Any]) -> CommandResult:
    mode = value.get("display_mode") or value.get("displayMode") or DisplayMode.TEXT
    try:
        display_mode = DisplayMode(mode)
    except ValueError:
        display_mode = DisplayMode.TEXT

    return CommandResult(
        success=bool(value["success"]),
        message=value.get("message"),
        data=value.get("data"),
        error=value.get("error"),
        display_mode=display_mode,
        suggested_next_commands=list(
            value.get("suggested_next_commands") or value.get("suggestedNextCommands") or []
        ),
    )
