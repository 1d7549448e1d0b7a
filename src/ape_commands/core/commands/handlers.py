"""
Handler capability bound to registered commands.

A handler is an object with one async ``execute`` method. Plugins own their
handlers; the command registry only keeps a reference for as long as the
owning plugin stays registered.
"""

import asyncio
import inspect
import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional

from ...utils.error_handling import CommandCancelledError


class CancellationToken:
    """Cooperative cancellation signal for one command invocation.

    Handlers poll ``is_cancelled``, call ``raise_if_cancelled`` between
    steps, or await ``wait`` alongside their own I/O. Nothing is preempted.
    """

    def __init__(self):
        self._cancelled = threading.Event()
        self._callbacks: List[Callable[[], Any]] = []
        self._lock = threading.Lock()

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> bool:
        """Signal cancellation; returns ``False`` if it was already signalled."""
        with self._lock:
            if self._cancelled.is_set():
                return False
            self._cancelled.set()
            callbacks = list(self._callbacks)

        for callback in callbacks:
            callback()
        return True

    def add_callback(self, callback: Callable[[], Any]) -> None:
        """Run ``callback`` on cancellation (immediately if already cancelled)."""
        with self._lock:
            if not self._cancelled.is_set():
                self._callbacks.append(callback)
                return
        callback()

    def raise_if_cancelled(self, message: str = "Command was cancelled") -> None:
        if self.is_cancelled:
            raise CommandCancelledError(message)

    async def wait(self, poll_interval: float = 0.05) -> None:
        """Return once the token is cancelled."""
        while not self.is_cancelled:
            await asyncio.sleep(poll_interval)


class CommandHandler(ABC):
    """Executable behavior bound to a registered command."""

    @abstractmethod
    async def execute(
        self,
        args: List[str],
        flags: Dict[str, Any],
        options: Dict[str, Any],
        cancel_token: Optional[CancellationToken] = None,
    ) -> Any:
        """Run the command and return any value the executor can normalize."""


class FunctionHandler(CommandHandler):
    """Adapts a plain sync or async callable to ``CommandHandler``.

    The callable receives ``(args, flags, options)``; it also receives
    ``cancel_token=`` when its signature declares that parameter.
    """

    def __init__(self, func: Callable[..., Any]):
        if not callable(func):
            raise TypeError(f"Handler must be callable, got {type(func).__name__}")
        self.func = func
        self._accepts_token = self._declares_token(func)

    @staticmethod
    def _declares_token(func: Callable[..., Any]) -> bool:
        try:
            parameters = inspect.signature(func).parameters
        except (TypeError, ValueError):
            return False
        return "cancel_token" in parameters or any(
            p.kind is inspect.Parameter.VAR_KEYWORD for p in parameters.values()
        )

    async def execute(self, args, flags, options, cancel_token=None):
        kwargs = {"cancel_token": cancel_token} if self._accepts_token else {}
        result = self.func(args, flags, options, **kwargs)
        if inspect.isawaitable(result):
            result = await result
        return result

    def __repr__(self) -> str:
        name = getattr(self.func, "__qualname__", repr(self.func))
        return f"FunctionHandler({name})"


def as_handler(handler: Any) -> Optional[CommandHandler]:
    """Return ``handler`` as a ``CommandHandler``; ``None`` if it is unusable."""
    if isinstance(handler, CommandHandler):
        return handler
    if callable(handler):
        return FunctionHandler(handler)
    return None
