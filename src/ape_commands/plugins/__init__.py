"""
Plugin system.

Plugins own a domain, its commands and optionally a language profile:

    registry = PluginRegistry(command_registry, converter)
    registry.register_plugin(GitPlugin())
    PluginDiscovery(registry).discover_and_register(config.plugins)
"""

from .base import BasePlugin, PluginCommand, PluginKind
from .registry import PluginRegistry
from .discovery import PluginDiscovery

__all__ = [
    "BasePlugin",
    "PluginCommand",
    "PluginKind",
    "PluginRegistry",
    "PluginDiscovery",
]
