"""
Test suite for handler adapters and cancellation tokens.
"""

import asyncio
from unittest.mock import Mock

import pytest

from ape_commands.core.commands.handlers import (
    CancellationToken, CommandHandler, FunctionHandler, as_handler,
)
from ape_commands.utils.error_handling import CommandCancelledError


class TestCancellationToken:
    """Test cooperative cancellation."""

    def test_cancel_once(self):
        token = CancellationToken()
        assert not token.is_cancelled
        assert token.cancel() is True
        assert token.is_cancelled
        assert token.cancel() is False

    def test_callbacks_run_on_cancel(self):
        token = CancellationToken()
        callback = Mock()
        token.add_callback(callback)
        callback.assert_not_called()

        token.cancel()
        callback.assert_called_once_with()

    def test_callback_added_after_cancel_runs_immediately(self):
        token = CancellationToken()
        token.cancel()
        callback = Mock()
        token.add_callback(callback)
        callback.assert_called_once_with()

    def test_raise_if_cancelled(self):
        token = CancellationToken()
        token.raise_if_cancelled()

        token.cancel()
        with pytest.raises(CommandCancelledError):
            token.raise_if_cancelled()

    @pytest.mark.asyncio
    async def test_wait_returns_after_cancel(self):
        token = CancellationToken()
        asyncio.get_running_loop().call_later(0.01, token.cancel)
        await asyncio.wait_for(token.wait(poll_interval=0.005), timeout=1.0)
        assert token.is_cancelled


class TestFunctionHandler:
    """Test adapting plain callables."""

    @pytest.mark.asyncio
    async def test_sync_function(self):
        handler = FunctionHandler(lambda args, flags, options: (args, flags, options))
        result = await handler.execute(["a"], {"f": True}, {"o": 1})
        assert result == (["a"], {"f": True}, {"o": 1})

    @pytest.mark.asyncio
    async def test_async_function(self):
        async def run(args, flags, options):
            await asyncio.sleep(0)
            return "done"

        assert await FunctionHandler(run).execute([], {}, {}) == "done"

    @pytest.mark.asyncio
    async def test_token_passed_when_declared(self):
        seen = {}

        def run(args, flags, options, cancel_token=None):
            seen["token"] = cancel_token

        token = CancellationToken()
        await FunctionHandler(run).execute([], {}, {}, token)
        assert seen["token"] is token

    @pytest.mark.asyncio
    async def test_token_not_passed_when_not_declared(self):
        calls = []

        def run(args, flags, options):
            calls.append((args, flags, options))
            return "ok"

        assert await FunctionHandler(run).execute([], {}, {}, CancellationToken()) == "ok"
        assert calls == [([], {}, {})]

    def test_rejects_non_callable(self):
        with pytest.raises(TypeError):
            FunctionHandler("nope")


class TestAsHandler:
    """Test handler coercion."""

    def test_handler_instance_passes_through(self):
        class Handler(CommandHandler):
            async def execute(self, args, flags, options, cancel_token=None):
                return None

        handler = Handler()
        assert as_handler(handler) is handler

    def test_callable_is_wrapped(self):
        assert isinstance(as_handler(lambda a, f, o: None), FunctionHandler)

    def test_non_callable_is_none(self):
        assert as_handler(42) is None
