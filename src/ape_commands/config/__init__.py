"""
ape-commands configuration

    from ape_commands.config import get_config, load_config

    config = load_config("configs/local.yaml")
    print(config.nlp.accept_threshold)      # 0.8
    print(config.executor.history_limit)    # 50
"""

from .loader import (
    ConfigLoader,
    load_config,
    get_config,
    reload_config,
    validate_config_file,
)

from ..utils.error_handling import ConfigurationError

from .models import (
    ApeCommandsConfig,
    LoggingConfig,
    ParserConfig,
    NaturalLanguageConfig,
    DomainThresholds,
    ExecutorConfig,
    PluginsConfig,
    LLMConfig,
    LogLevel,
    Provider,
)

__all__ = [
    "ConfigLoader",
    "get_config",
    "load_config",
    "reload_config",
    "validate_config_file",
    "ConfigurationError",
    "ApeCommandsConfig",
    "LoggingConfig",
    "ParserConfig",
    "NaturalLanguageConfig",
    "DomainThresholds",
    "ExecutorConfig",
    "PluginsConfig",
    "LLMConfig",
    "LogLevel",
    "Provider",
]
