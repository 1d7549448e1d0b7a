"""
Plugin discovery.

Finds external plugins in plugin directories and in ``module:Class`` entries
from the configuration, and registers them with a ``PluginRegistry``.
"""

import importlib
import importlib.util
import inspect
from pathlib import Path
from typing import Iterable, List, Type

from .base import BasePlugin, PluginKind
from .registry import PluginRegistry
from ..config.models import PluginsConfig
from ..utils.error_handling import PluginRegistrationError
from ..utils.logging import get_logger


class PluginDiscovery:
    """Discovers and loads plugins from directories and import paths."""

    def __init__(self, registry: PluginRegistry):
        self.registry = registry
        self.logger = get_logger(__name__)

    def _extract_plugin_classes_from_module(self, module) -> List[Type[BasePlugin]]:
        """Concrete ``BasePlugin`` subclasses defined in a module."""
        plugin_classes = []

        for _, obj in inspect.getmembers(module, inspect.isclass):
            if (issubclass(obj, BasePlugin) and
                    obj is not BasePlugin and
                    obj.__module__ == module.__name__ and
                    not inspect.isabstract(obj)):
                plugin_classes.append(obj)

        return plugin_classes

    def _load_plugins_from_file(self, file_path: Path) -> List[Type[BasePlugin]]:
        spec = importlib.util.spec_from_file_location(f"ape_plugin_{file_path.stem}", file_path)
        if not spec or not spec.loader:
            return []

        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)
        return self._extract_plugin_classes_from_module(module)

    def load_from_directories(self, plugin_dirs: Iterable) -> List[Type[BasePlugin]]:
        """Load plugin classes from ``*.py`` files (not starting with ``_``) in each directory."""
        plugins = []

        for plugin_dir in plugin_dirs:
            plugin_path = Path(plugin_dir).expanduser()
            if not plugin_path.is_dir():
                self.logger.warning(f"Plugin directory does not exist: {plugin_dir}")
                continue

            for py_file in sorted(plugin_path.glob("*.py")):
                if py_file.name.startswith("_"):
                    continue

                try:
                    plugins.extend(self._load_plugins_from_file(py_file))
                except Exception as e:
                    self.logger.warning(f"Failed to load plugins from {py_file}: {e}")

        self.logger.info(f"Loaded {len(plugins)} plugin classes from directories")
        return plugins

    def load_from_entries(self, entries: Iterable[str]) -> List[Type[BasePlugin]]:
        """Load plugin classes from ``package.module:ClassName`` entries."""
        plugins = []

        for entry in entries:
            module_name, _, class_name = entry.partition(":")
            try:
                module = importlib.import_module(module_name)
                plugin_class = getattr(module, class_name)
            except (ImportError, AttributeError) as e:
                self.logger.warning(f"Cannot import plugin {entry}: {e}")
                continue

            if not (inspect.isclass(plugin_class) and issubclass(plugin_class, BasePlugin)):
                self.logger.warning(f"{entry} is not a BasePlugin subclass")
                continue
            if inspect.isabstract(plugin_class):
                self.logger.warning(f"{entry} is abstract")
                continue

            plugins.append(plugin_class)

        return plugins

    def register_classes(self, plugin_classes: Iterable[Type[BasePlugin]], disabled: Iterable[str] = ()) -> int:
        """Instantiate and register plugin classes as external plugins."""
        disabled_ids = {plugin_id.lower() for plugin_id in disabled}
        registered_count = 0

        for plugin_class in plugin_classes:
            try:
                plugin = plugin_class()
            except Exception as e:
                self.logger.warning(f"Failed to instantiate plugin {plugin_class.__name__}: {e}")
                continue

            if plugin.id.lower() in disabled_ids:
                plugin.set_enabled(False)

            try:
                self.registry.register_plugin(plugin, PluginKind.EXTERNAL)
                registered_count += 1
            except PluginRegistrationError as e:
                self.logger.warning(f"Failed to register plugin {plugin_class.__name__}: {e.message}")

        return registered_count

    def discover_and_register(self, config: PluginsConfig) -> int:
        """Discover everything the plugin configuration points at and register it."""
        plugin_classes = self.load_from_directories(config.plugin_directories)
        plugin_classes.extend(self.load_from_entries(config.external_plugins))

        registered_count = self.register_classes(plugin_classes, config.disabled)
        self.logger.info(f"Plugin discovery completed: {registered_count} plugins registered")
        return registered_count
