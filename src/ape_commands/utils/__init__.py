"""
ape-commands utilities

Logging setup and the shared error hierarchy.
"""

from .logging import (
    setup_logging,
    get_logger,
    log_performance,
    is_logging_initialized,
)

from .error_handling import (
    ApeCommandsError,
    ConfigurationError,
    ProviderError,
    ValidationError,
    ConversionError,
    RegistrationError,
    PluginRegistrationError,
    CommandExecutionError,
    CommandCancelledError,
    handle_provider_operation,
    call_with_timeout,
)

__all__ = [
    # Logging utilities
    "setup_logging",
    "get_logger",
    "log_performance",
    "is_logging_initialized",

    # Error handling utilities
    "ApeCommandsError",
    "ConfigurationError",
    "ProviderError",
    "ValidationError",
    "ConversionError",
    "RegistrationError",
    "PluginRegistrationError",
    "CommandExecutionError",
    "CommandCancelledError",
    "handle_provider_operation",
    "call_with_timeout",
]
