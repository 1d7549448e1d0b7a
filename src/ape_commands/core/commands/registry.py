"""
Command registry.

A lookup table keyed by ``(namespace, command)`` where the namespace is an
agent id (``git``, ``jira``, ...) or ``core`` for slash commands. Each entry
holds the handler and its usage together, so adding or removing a command
is a single dictionary operation under the registry lock.
"""

import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, Union

from .handlers import CommandHandler, as_handler
from .types import CommandDomain, CommandUsage, SYSTEM_AGENT_ID
from ...utils.logging import get_logger


@dataclass
class CommandEntry:
    """A registered command: handler and usage bound together."""

    namespace: str
    command: str
    handler: CommandHandler
    usage: CommandUsage
    owner: Optional[str] = None
    registered_at: float = field(default_factory=time.time)

    @property
    def command_id(self) -> str:
        return self.usage.command_id


def _normalize(name: Union[str, CommandDomain, None]) -> str:
    if isinstance(name, CommandDomain):
        return name.value
    return (name or "").strip().lower()


def build_usage(namespace: str, command: str, meta: Optional[Mapping[str, Any]] = None) -> CommandUsage:
    """Create the read-only usage record for a command."""
    meta = meta or {}
    is_system = namespace == SYSTEM_AGENT_ID
    default_syntax = f"/{command}" if is_system else f"@{namespace}:{command}"

    return CommandUsage(
        agent_id=namespace,
        command=command,
        description=meta.get("description", ""),
        syntax=meta.get("syntax") or default_syntax,
        examples=tuple(meta.get("examples", ())),
        args=tuple(meta.get("args", ())),
        options=tuple(meta.get("options", ())),
        detailed_help=meta.get("detailed_help", ""),
        domain=None if is_system else (CommandDomain.from_agent_id(namespace) or CommandDomain.CUSTOM),
    )


class CommandRegistry:
    """
    Holds every invocable command and its metadata.

    Writes happen under a re-entrant lock; reads take the same lock, so a
    lookup sees the registry either before or after a mutation. Use
    ``transaction()`` to make a batch of mutations appear as one.
    """

    def __init__(self):
        self.logger = get_logger(__name__)
        self._lock = threading.RLock()
        self._entries: Dict[Tuple[str, str], CommandEntry] = {}

    @contextmanager
    def transaction(self) -> Iterator["CommandRegistry"]:
        """Hold the write lock across several mutations."""
        with self._lock:
            yield self

    def register_agent_command(
        self,
        domain: Union[str, CommandDomain],
        command: str,
        handler: Any,
        meta: Optional[Mapping[str, Any]] = None,
        owner: Optional[str] = None,
    ) -> bool:
        """
        Register an At-command under a domain namespace.

        Re-registering the same ``(domain, command)`` replaces the entry in
        place. Returns ``False`` for an empty id or an unusable handler.
        """
        namespace = _normalize(domain)
        if namespace == SYSTEM_AGENT_ID:
            self.logger.warning(f"Refusing agent command in reserved namespace '{SYSTEM_AGENT_ID}': {command}")
            return False
        return self._register(namespace, command, handler, meta, owner)

    def register_system_command(
        self,
        command: str,
        handler: Any,
        meta: Optional[Mapping[str, Any]] = None,
        owner: Optional[str] = None,
    ) -> bool:
        """Register a slash command; a leading ``/`` on the name is ignored."""
        return self._register(SYSTEM_AGENT_ID, (command or "").lstrip("/"), handler, meta, owner)

    def _register(self, namespace, command, handler, meta, owner) -> bool:
        command = _normalize(command)
        if not namespace or not command:
            self.logger.warning(f"Rejected command registration with empty id: '{namespace}:{command}'")
            return False

        command_handler = as_handler(handler)
        if command_handler is None:
            self.logger.warning(f"Rejected command '{namespace}:{command}': handler is not callable")
            return False

        entry = CommandEntry(
            namespace=namespace,
            command=command,
            handler=command_handler,
            usage=build_usage(namespace, command, meta),
            owner=owner,
        )

        with self._lock:
            replaced = (namespace, command) in self._entries
            self._entries[(namespace, command)] = entry

        action = "Replaced" if replaced else "Registered"
        self.logger.debug(f"{action} command: {entry.command_id} (owner: {owner or '-'})")
        return True

    def unregister(self, namespace: Union[str, CommandDomain], command: str) -> bool:
        """Remove a command; handler and usage disappear together."""
        key = (_normalize(namespace), _normalize(command).lstrip("/"))
        with self._lock:
            entry = self._entries.pop(key, None)

        if entry is None:
            return False
        self.logger.debug(f"Unregistered command: {entry.command_id}")
        return True

    def unregister_owner(self, owner: str) -> int:
        """Remove every command registered by ``owner``; returns the count."""
        with self._lock:
            keys = [key for key, entry in self._entries.items() if entry.owner == owner]
            for key in keys:
                del self._entries[key]

        if keys:
            self.logger.debug(f"Unregistered {len(keys)} commands owned by {owner}")
        return len(keys)

    def get_entry(self, agent_id: Union[str, CommandDomain], command: str) -> Optional[CommandEntry]:
        with self._lock:
            return self._entries.get((_normalize(agent_id), _normalize(command)))

    def get_handler(self, agent_id: Union[str, CommandDomain], command: str) -> Optional[CommandHandler]:
        entry = self.get_entry(agent_id, command)
        return entry.handler if entry else None

    def get_usage(self, agent_id: Union[str, CommandDomain], command: str) -> Optional[CommandUsage]:
        entry = self.get_entry(agent_id, command)
        return entry.usage if entry else None

    def has_command(self, agent_id: Union[str, CommandDomain], command: str) -> bool:
        return self.get_entry(agent_id, command) is not None

    def has_namespace(self, agent_id: Union[str, CommandDomain]) -> bool:
        namespace = _normalize(agent_id)
        with self._lock:
            return any(key[0] == namespace for key in self._entries)

    def namespaces(self) -> List[str]:
        """Namespaces in first-registration order."""
        with self._lock:
            return list(dict.fromkeys(key[0] for key in self._entries))

    def get_domain_commands(self, domain: Union[str, CommandDomain]) -> List[CommandUsage]:
        """Usages registered under one agent namespace, in registration order."""
        namespace = _normalize(domain)
        with self._lock:
            return [entry.usage for key, entry in self._entries.items() if key[0] == namespace]

    def get_all_command_usages(self) -> List[CommandUsage]:
        with self._lock:
            return [entry.usage for entry in self._entries.values()]

    def get_system_command_usages(self) -> List[CommandUsage]:
        return self.get_domain_commands(SYSTEM_AGENT_ID)

    def get_agent_command_usages(self) -> List[CommandUsage]:
        with self._lock:
            return [entry.usage for key, entry in self._entries.items() if key[0] != SYSTEM_AGENT_ID]

    def command_ids(self) -> List[str]:
        """Every command as typed by a user (``@git:status``, ``/help``)."""
        with self._lock:
            return [entry.command_id for entry in self._entries.values()]

    def get_statistics(self) -> Dict[str, Any]:
        with self._lock:
            per_namespace: Dict[str, int] = {}
            owners = set()
            for (namespace, _), entry in self._entries.items():
                per_namespace[namespace] = per_namespace.get(namespace, 0) + 1
                if entry.owner:
                    owners.add(entry.owner)

            return {
                "total_commands": len(self._entries),
                "namespaces": per_namespace,
                "owners": sorted(owners),
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, command_id: str) -> bool:
        return command_id in self.command_ids()
