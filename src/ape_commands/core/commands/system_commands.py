"""
Core slash commands registered by the executor.
"""

from typing import TYPE_CHECKING, List

from .types import CommandResult, CommandUsage, DisplayMode

if TYPE_CHECKING:
    from .executor import CommandExecutor


CORE_OWNER = "core"


def _format_usage(usage: CommandUsage) -> str:
    lines = [f"## {usage.command_id}", ""]
    if usage.description:
        lines.extend([usage.description, ""])
    lines.append(f"**Syntax:** `{usage.syntax}`")
    if usage.examples:
        lines.append("")
        lines.append("**Examples:**")
        lines.extend(f"- `{example}`" for example in usage.examples)
    if usage.args:
        lines.append("")
        lines.append("**Arguments:**")
        lines.extend(f"- {arg}" for arg in usage.args)
    if usage.options:
        lines.append("")
        lines.append("**Options:**")
        lines.extend(f"- {option}" for option in usage.options)
    if usage.detailed_help:
        lines.extend(["", usage.detailed_help])
    return "\n".join(lines)


def _catalogue(usages: List[CommandUsage]) -> str:
    system = [u for u in usages if u.is_system]
    agents = [u for u in usages if not u.is_system]

    lines = ["# Commands", "", "## System"]
    lines.extend(f"- `{u.command_id}`: {u.description}" for u in system)

    current_agent = None
    for usage in agents:
        if usage.agent_id != current_agent:
            current_agent = usage.agent_id
            lines.extend(["", f"## @{current_agent}"])
        lines.append(f"- `{usage.command_id}`: {usage.description}")

    lines.extend(["", "Natural language works too: `@<domain> <what you want>`"])
    return "\n".join(lines)


def register_core_commands(executor: "CommandExecutor") -> None:
    """Register ``/help``, ``/history`` and ``/debug`` on the executor's registry."""
    registry = executor.registry

    def help_command(args, flags, options):
        if not args:
            usages = sorted(registry.get_all_command_usages(), key=lambda u: (not u.is_system, u.agent_id))
            return CommandResult.ok(_catalogue(usages), display_mode=DisplayMode.MARKDOWN)

        target = args[0].strip()
        parsed = executor.parser.parse_with_suggestions(target if target[:1] in "@/" else f"/{target}")
        usage = registry.get_usage(parsed.namespace, parsed.command_id) if parsed.command else None
        if usage is None:
            return CommandResult.failure(
                f"No help for '{target}'",
                suggestions=executor.parser.suggest_similar_commands(target),
            )
        return CommandResult.ok(_format_usage(usage), display_mode=DisplayMode.MARKDOWN)

    def history_command(args, flags, options):
        limit = options.get("limit", args[0] if args else 10)
        try:
            limit = int(limit)
        except (TypeError, ValueError):
            return CommandResult.failure(f"Invalid history limit: {limit}")

        records = executor.get_execution_history(limit)
        return CommandResult.ok(
            f"Last {len(records)} command(s)",
            data=[record.to_dict() for record in records],
            display_mode=DisplayMode.JSON,
        )

    def debug_command(args, flags, options):
        return CommandResult.ok(
            "Registry and executor state",
            data={
                "registry": registry.get_statistics(),
                "executor": executor.get_statistics(),
                "llm_enabled": executor.converter.llm_enabled,
            },
            display_mode=DisplayMode.JSON,
        )

    registry.register_system_command("help", help_command, {
        "description": "List commands or show one command's usage",
        "syntax": "/help [command]",
        "examples": ["/help", "/help @git:status", "/help history"],
    }, owner=CORE_OWNER)
    registry.register_system_command("history", history_command, {
        "description": "Show recently executed commands",
        "syntax": "/history [limit] [--limit=N]",
        "examples": ["/history", "/history 5"],
    }, owner=CORE_OWNER)
    registry.register_system_command("debug", debug_command, {
        "description": "Show registry and executor statistics",
        "syntax": "/debug",
    }, owner=CORE_OWNER)
