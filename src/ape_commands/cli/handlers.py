"""
CLI command handlers for ape-commands.
"""

import asyncio
import json
import sys
import threading

from ..config import load_config, ConfigurationError
from ..core.commands.types import CommandResult, DisplayMode
from ..core.session import CommandSession, create_session
from ..utils import setup_logging, get_logger

EXIT_WORDS = ("exit", "quit", "bye")


def handle_cli_command(args) -> int:
    """
    Handle CLI commands based on parsed arguments.

    Returns:
        int: Exit code (0 for success, non-zero for error)
    """
    try:
        config = load_config(args.config)
        setup_logging(config, verbose=args.verbose)

        if args.parse:
            return _handle_parse(config, args)

        session = create_session(config, plugin_dirs=args.plugin_dirs)
        return asyncio.run(_run_session(session, args))

    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        get_logger(__name__).error(f"Unexpected error: {e}", exc_info=True)
        print(f"Unexpected error: {e}", file=sys.stderr)
        return 1


async def _run_session(session: CommandSession, args) -> int:
    """Initialize plugins and serve the chosen mode on one event loop."""
    await session.initialize()

    if args.list_commands:
        return _handle_list_commands(session)
    elif args.execute:
        return await _handle_execute(session, args.execute)
    else:
        return await _handle_interactive(session)


def _handle_parse(config, args) -> int:
    """Print how a line parses, without executing it."""
    session = create_session(config, plugin_dirs=args.plugin_dirs)
    parsed = session.parser.parse_with_suggestions(args.parse)
    print(json.dumps(parsed.to_dict(), ensure_ascii=False, indent=2))
    return 1 if parsed.has_error else 0


def _handle_list_commands(session: CommandSession) -> int:
    usages = session.registry.get_all_command_usages()
    if not usages:
        print("No commands registered")
        return 0

    for usage in usages:
        print(f"  {usage.command_id:<28} {usage.description}")
    return 0


async def _handle_execute(session: CommandSession, text: str) -> int:
    result = await session.run(text)
    print(format_result(result))
    return 0 if result.success else 1


async def _handle_interactive(session: CommandSession) -> int:
    print("ape-commands interactive mode. Type /help for commands, 'exit' to quit.")

    while True:
        try:
            line = (await _read_line("> ")).strip()
        except (KeyboardInterrupt, EOFError):
            print()
            break

        if not line:
            continue
        if line.lower() in EXIT_WORDS:
            break

        result = await session.run(line)
        print(format_result(result))

    print("Goodbye!")
    return 0


async def _read_line(prompt: str) -> str:
    """``input()`` on a daemon thread, so the event loop keeps running while the user types."""
    loop = asyncio.get_running_loop()
    future = loop.create_future()

    def read():
        try:
            line = input(prompt)
        except Exception as e:
            loop.call_soon_threadsafe(_settle, future, None, e)
        else:
            loop.call_soon_threadsafe(_settle, future, line, None)

    threading.Thread(target=read, name="ape-commands-input", daemon=True).start()
    return await future


def _settle(future: asyncio.Future, line, error) -> None:
    if future.done():
        return
    if error is not None:
        future.set_exception(error)
    else:
        future.set_result(line)


def format_result(result: CommandResult) -> str:
    """Render a result for the terminal."""
    lines = []
    if result.message:
        lines.append(result.message)
    if result.error and result.error != result.message:
        lines.append(f"Error: {result.error}")

    if result.data is not None and result.display_mode != DisplayMode.NONE:
        if result.display_mode == DisplayMode.JSON or not isinstance(result.data, str):
            lines.append(json.dumps(result.data, ensure_ascii=False, indent=2, default=str))
        else:
            lines.append(result.data)

    if result.suggested_next_commands:
        lines.append("Suggestions: " + ", ".join(result.suggested_next_commands))

    return "\n".join(lines)
