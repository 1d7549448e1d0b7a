"""
Plugin registry.

Owns plugin instances and keeps the command registry (and the converter's
language profiles) in step with plugin lifecycle. Registering or removing a
plugin happens under one lock and one command-registry transaction, so a
concurrent lookup never sees half of a plugin's commands.
"""

import threading
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

from .base import BasePlugin, PluginCommand, PluginKind
from ..core.commands.registry import CommandRegistry
from ..core.commands.types import SYSTEM_AGENT_ID
from ..nlp.patterns import DomainLanguageProfile
from ..utils.error_handling import CommandExecutionError, PluginRegistrationError
from ..utils.logging import get_logger

if TYPE_CHECKING:
    from ..nlp.converter import NaturalLanguageConverter


class PluginRegistry:
    """
    Lifecycle owner for internal (bundled) and external (discovered) plugins.

    Args:
        command_registry: Registry that receives the plugins' commands
        converter: Converter that receives the plugins' language profiles
    """

    def __init__(
        self,
        command_registry: CommandRegistry,
        converter: Optional["NaturalLanguageConverter"] = None,
    ):
        self.command_registry = command_registry
        self.converter = converter
        self.logger = get_logger(__name__)
        self._lock = threading.RLock()
        self._plugins: Dict[PluginKind, Dict[str, BasePlugin]] = {
            PluginKind.INTERNAL: {},
            PluginKind.EXTERNAL: {},
        }
        # plugin id -> (domain, profile it displaced) for profiles a plugin installed
        self._published_profiles: Dict[str, Tuple[str, Optional[DomainLanguageProfile]]] = {}

    def register_plugin(self, plugin: BasePlugin, kind: PluginKind = PluginKind.INTERNAL) -> bool:
        """
        Register a plugin and publish its commands.

        Raises:
            PluginRegistrationError: For an empty or duplicate id, or a plugin
                that claims the reserved system namespace
        """
        plugin_id = (plugin.id or "").strip()
        if not plugin_id:
            raise PluginRegistrationError("Plugin id must not be empty", plugin_id=plugin_id)
        if (plugin.domain or "").lower() == SYSTEM_AGENT_ID:
            raise PluginRegistrationError(
                f"Plugin {plugin_id} cannot use the reserved '{SYSTEM_AGENT_ID}' domain",
                plugin_id=plugin_id,
            )

        kind = PluginKind(kind)
        with self._lock:
            if self._find(plugin_id) is not None:
                raise PluginRegistrationError(f"Plugin already registered: {plugin_id}", plugin_id=plugin_id)

            owner = self.get_plugin_by_domain(plugin.domain)
            if owner is not None:
                raise PluginRegistrationError(
                    f"Domain '{plugin.domain}' is already served by plugin {owner.id}",
                    plugin_id=plugin_id,
                    details={"domain": plugin.domain, "owner": owner.id},
                )

            self._plugins[kind][plugin_id] = plugin
            published = self._publish(plugin) if plugin.is_enabled() else 0

        self.logger.info(f"Registered {kind.value} plugin: {plugin_id} ({published} commands)")
        return True

    def unregister_plugin(self, plugin_id: str, kind: Optional[PluginKind] = None) -> bool:
        """Remove a plugin and every command it published."""
        with self._lock:
            kinds = [PluginKind(kind)] if kind is not None else list(self._plugins)
            plugin = None
            for candidate_kind in kinds:
                plugin = self._plugins[candidate_kind].pop(plugin_id, None)
                if plugin is not None:
                    break

            if plugin is None:
                return False

            removed = self._withdraw(plugin)

        self.logger.info(f"Unregistered plugin: {plugin_id} ({removed} commands removed)")
        return True

    def _publish(self, plugin: BasePlugin) -> int:
        count = 0
        with self.command_registry.transaction():
            self.command_registry.unregister_owner(plugin.id)
            for command in plugin.get_commands():
                if self.command_registry.register_agent_command(
                    plugin.domain, command.id, command.handler, command.meta(), owner=plugin.id
                ):
                    count += 1
                else:
                    self.logger.warning(f"Plugin {plugin.id}: command '{command.id}' was rejected")

            profile = plugin.get_language_profile()
            if profile is not None and self.converter is not None:
                if profile.domain != plugin.domain.lower():
                    self.logger.warning(
                        f"Plugin {plugin.id}: language profile domain '{profile.domain}' "
                        f"does not match '{plugin.domain}', ignoring it"
                    )
                else:
                    self._install_profile(plugin, profile)
        return count

    def _install_profile(self, plugin: BasePlugin, profile: DomainLanguageProfile) -> None:
        domain = profile.domain
        if plugin.id not in self._published_profiles:
            self._published_profiles[plugin.id] = (domain, self.converter.get_profile(domain))
        self.converter.register_profile(profile)

    def _withdraw(self, plugin: BasePlugin) -> int:
        with self.command_registry.transaction():
            removed = self.command_registry.unregister_owner(plugin.id)
            published = self._published_profiles.pop(plugin.id, None)
            if published is not None and self.converter is not None:
                domain, displaced = published
                if displaced is not None:
                    self.converter.register_profile(displaced)
                else:
                    self.converter.unregister_profile(domain)
        return removed

    def _find(self, plugin_id: str) -> Optional[BasePlugin]:
        for plugins in self._plugins.values():
            if plugin_id in plugins:
                return plugins[plugin_id]
        return None

    def get_plugin(self, plugin_id: str) -> Optional[BasePlugin]:
        with self._lock:
            return self._find(plugin_id)

    def get_plugin_by_domain(self, domain: str) -> Optional[BasePlugin]:
        key = (domain or "").lower()
        with self._lock:
            for plugins in self._plugins.values():
                for plugin in plugins.values():
                    if plugin.domain.lower() == key:
                        return plugin
        return None

    def get_plugins(self, kind: Optional[PluginKind] = None) -> List[BasePlugin]:
        with self._lock:
            if kind is not None:
                return list(self._plugins[PluginKind(kind)].values())
            return [plugin for plugins in self._plugins.values() for plugin in plugins.values()]

    def get_enabled_plugins(self) -> List[BasePlugin]:
        return [plugin for plugin in self.get_plugins() if plugin.is_enabled()]

    def get_all_commands(self) -> List[PluginCommand]:
        """Commands of every enabled plugin."""
        return [command for plugin in self.get_enabled_plugins() for command in plugin.get_commands()]

    def find_command(self, domain: str, name: str) -> Optional[PluginCommand]:
        plugin = self.get_plugin_by_domain(domain)
        if plugin is None or not plugin.is_enabled():
            return None
        return plugin.find_command(name)

    def set_plugin_enabled(self, plugin_id: str, enabled: bool) -> bool:
        """Enable or disable a plugin, publishing or withdrawing its commands."""
        with self._lock:
            plugin = self._find(plugin_id)
            if plugin is None:
                return False

            plugin.set_enabled(enabled)
            if enabled:
                self._publish(plugin)
            else:
                self._withdraw(plugin)
        return True

    def refresh_commands(self) -> int:
        """Re-publish every enabled plugin, e.g. after plugins added commands at runtime."""
        total = 0
        with self._lock:
            with self.command_registry.transaction():
                for plugin in self.get_plugins():
                    if plugin.is_enabled():
                        total += self._publish(plugin)
                    else:
                        self._withdraw(plugin)

        self.logger.debug(f"Refreshed plugin commands: {total} published")
        return total

    async def initialize(self) -> Dict[str, bool]:
        """
        Initialize every enabled plugin in registration order.

        A failing plugin is logged and reported as ``False``; the rest still
        initialize. Commands are re-published afterwards so anything a plugin
        registered during ``initialize`` becomes visible.
        """
        results: Dict[str, bool] = {}
        for plugin in self.get_enabled_plugins():
            try:
                await plugin.initialize()
                results[plugin.id] = True
            except Exception as e:
                self.logger.error(f"Plugin {plugin.id} failed to initialize: {e}", exc_info=True)
                results[plugin.id] = False

        self.refresh_commands()
        return results

    async def execute_command(
        self,
        plugin_id: str,
        name: str,
        args: Optional[List[str]] = None,
        flags: Optional[Dict[str, Any]] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """
        Run a plugin command bypassing the parser.

        Raises:
            CommandExecutionError: If the plugin is unknown, disabled or lacks the command
        """
        plugin = self.get_plugin(plugin_id)
        if plugin is None:
            raise CommandExecutionError(f"Unknown plugin: {plugin_id}", command=name)
        return await plugin.execute_command(name, args, flags, options)

    def __len__(self) -> int:
        return len(self.get_plugins())
