"""
Fake plugins used across the test suite.

They record every call so tests can assert what the executor dispatched.
"""

from typing import Any, Dict, List

from ape_commands.core.commands.types import CommandResult, DisplayMode
from ape_commands.nlp.profiles import issue_tracker_profile, version_control_profile
from ape_commands.plugins.base import BasePlugin
from ape_commands.utils.error_handling import CommandExecutionError


class RecordingPlugin(BasePlugin):
    """Base for fakes: keeps a log of ``(command, args, flags, options)``."""

    def __init__(self):
        super().__init__()
        self.calls: List[Dict[str, Any]] = []

    def _record(self, command, args, flags, options):
        self.calls.append({"command": command, "args": list(args), "flags": dict(flags), "options": dict(options)})


class FakeGitPlugin(RecordingPlugin):
    id = "git"
    name = "Git"

    def __init__(self):
        super().__init__()
        self.status_result = CommandResult.ok("On branch main, nothing to commit")
        self.register_command(self.create_command(
            "status", self.status, "Show working tree status",
            examples=["@git:status"],
        ))
        self.register_command(self.create_command(
            "commit", self.commit, "Record changes", syntax='@git:commit -m "message"',
        ))
        self.register_command(self.create_command("log", self.log, "Show commit history"))
        self.register_command(self.create_command("push", self.fail, "Push to the remote"))

    def get_language_profile(self):
        return version_control_profile()

    def status(self, args, flags, options):
        self._record("status", args, flags, options)
        return self.status_result

    def commit(self, args, flags, options):
        self._record("commit", args, flags, options)
        return f"Committed: {args[0] if args else ''}"

    async def log(self, args, flags, options):
        self._record("log", args, flags, options)
        return {"content": "## History", "count": int(args[0]) if args else 10}

    def fail(self, args, flags, options):
        raise CommandExecutionError("Remote rejected the push", command="push", suggestions=["@git:status"])


class FakeJiraPlugin(RecordingPlugin):
    id = "jira"
    name = "Jira"

    def __init__(self):
        super().__init__()
        for command_id in ("list", "issue", "create", "search"):
            self.register_command(self.create_command(
                command_id, self._handler_for(command_id), f"Jira {command_id}",
            ))

    def get_language_profile(self):
        return issue_tracker_profile()

    def _handler_for(self, command_id):
        def handler(args, flags, options):
            self._record(command_id, args, flags, options)
            return CommandResult.ok(f"jira {command_id}", data={"args": list(args)}, display_mode=DisplayMode.JSON)
        return handler


class BrokenInitPlugin(BasePlugin):
    id = "broken"
    name = "Broken"

    async def initialize(self):
        raise RuntimeError("backend unreachable")
