"""
Error types and error-handling helpers for ape-commands.

Nothing raised here is meant to reach the host UI: the executor converts
every one of these into a failed ``CommandResult``. They exist so the layers
below it can fail with a precise, loggable reason.
"""

import asyncio
import functools
from typing import Any, Callable, Dict, Optional

from .logging import get_logger


class ApeCommandsError(Exception):
    """Base exception for all ape-commands errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(ApeCommandsError):
    """Configuration loading or validation failed."""
    pass


class ProviderError(ApeCommandsError):
    """The LLM collaborator failed, timed out or was unreachable."""
    pass


class ValidationError(ApeCommandsError):
    """Input validation error."""
    pass


class ConversionError(ApeCommandsError):
    """An LLM reply could not be decoded into a command conversion."""
    pass


class RegistrationError(ApeCommandsError):
    """A command or plugin registration was rejected."""
    pass


class PluginRegistrationError(RegistrationError):
    """A plugin could not be registered (duplicate or empty id)."""

    def __init__(self, message: str, plugin_id: str = "", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.plugin_id = plugin_id
        self.details.setdefault("plugin_id", plugin_id)


class CommandExecutionError(ApeCommandsError):
    """A command handler failed.

    Handlers may raise this themselves to attach a user-facing message and
    suggestions; anything else they raise is wrapped into one by the executor.
    """

    def __init__(
        self,
        message: str,
        command: str = "",
        suggestions: Optional[list] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.command = command
        self.suggestions = suggestions or []


class CommandCancelledError(CommandExecutionError):
    """A handler observed its cancellation token and stopped."""
    pass


def handle_provider_operation(operation_name: str, timeout: Optional[float] = None):
    """
    Decorator that maps LLM collaborator failures to ``ProviderError``.

    Args:
        operation_name: Human-readable name of the operation
        timeout: Optional timeout in seconds for coroutine functions
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs) -> Any:
            logger = get_logger(f"ape_commands.providers.{operation_name}")

            try:
                logger.debug(f"Starting {operation_name}")

                if timeout:
                    result = await asyncio.wait_for(func(*args, **kwargs), timeout=timeout)
                else:
                    result = await func(*args, **kwargs)

                logger.debug(f"{operation_name} completed successfully")
                return result

            except ProviderError:
                raise

            except asyncio.TimeoutError:
                logger.error(f"{operation_name} timed out after {timeout}s")
                raise ProviderError(
                    f"{operation_name} timed out",
                    details={"error_type": "timeout", "timeout_seconds": timeout}
                )

            except ConnectionError as e:
                logger.error(f"{operation_name} failed - connection error: {e}")
                raise ProviderError(
                    f"{operation_name} failed: Connection error",
                    details={"error_type": "connection", "original_error": str(e)}
                ) from e

            except Exception as e:
                logger.error(f"{operation_name} failed - unexpected error: {e}", exc_info=True)
                raise ProviderError(
                    f"{operation_name} failed: {e}",
                    details={"error_type": "unexpected", "original_error": str(e)}
                ) from e

        if not asyncio.iscoroutinefunction(func):
            raise TypeError(f"handle_provider_operation requires a coroutine function, got {func!r}")

        return async_wrapper

    return decorator


async def call_with_timeout(awaitable, operation_name: str, timeout: Optional[float]) -> Any:
    """Await ``awaitable`` with a caller-supplied bound.

    Raises:
        ProviderError: With ``error_type`` ``timeout`` when the bound is hit
    """
    if not timeout:
        return await awaitable

    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError:
        raise ProviderError(
            f"{operation_name} timed out",
            details={"error_type": "timeout", "timeout_seconds": timeout}
        )
