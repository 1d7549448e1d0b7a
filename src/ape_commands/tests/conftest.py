"""
Shared pytest configuration for ape-commands tests.

Fixtures build one explicit registry/converter/executor set per test, wired
the same way ``create_session`` wires them.
"""

import pytest

from ape_commands.config.models import ExecutorConfig, NaturalLanguageConfig
from ape_commands.core.commands.executor import CommandExecutor
from ape_commands.core.commands.parser import CommandParser
from ape_commands.core.commands.registry import CommandRegistry
from ape_commands.nlp.converter import NaturalLanguageConverter
from ape_commands.plugins.registry import PluginRegistry

from .fixtures.plugins import FakeGitPlugin, FakeJiraPlugin


@pytest.fixture
def registry():
    return CommandRegistry()


@pytest.fixture
def converter():
    return NaturalLanguageConverter(config=NaturalLanguageConfig())


@pytest.fixture
def plugin_registry(registry, converter):
    plugins = PluginRegistry(registry, converter)
    plugins.register_plugin(FakeGitPlugin())
    plugins.register_plugin(FakeJiraPlugin())
    return plugins


@pytest.fixture
def parser(registry, plugin_registry):
    return CommandParser(registry)


@pytest.fixture
def executor(registry, converter, plugin_registry):
    return CommandExecutor(registry, converter=converter, config=ExecutorConfig())


def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
