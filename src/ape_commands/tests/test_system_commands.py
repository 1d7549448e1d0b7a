"""
Tests for the core slash commands: /help, /history and /debug.
"""

import pytest

from ape_commands.core.commands.types import DisplayMode


class TestHelpCommand:

    @pytest.mark.asyncio
    async def test_catalogue_lists_every_namespace(self, executor):
        result = await executor.execute_from_string("/help")

        assert result.success
        assert result.display_mode == DisplayMode.MARKDOWN
        assert "## System" in result.message
        assert "`/help`" in result.message
        assert "## @git" in result.message
        assert "`@jira:search`: Jira search" in result.message
        assert result.message.index("## System") < result.message.index("## @git")

    @pytest.mark.asyncio
    async def test_single_command_usage(self, executor):
        result = await executor.execute_from_string("/help @git:status")

        assert result.success
        assert "## @git:status" in result.message
        assert "Show working tree status" in result.message
        assert "- `@git:status`" in result.message

    @pytest.mark.asyncio
    async def test_system_command_without_slash(self, executor):
        result = await executor.execute_from_string("/help history")

        assert result.success
        assert "## /history" in result.message

    @pytest.mark.asyncio
    async def test_unknown_target(self, executor):
        result = await executor.execute_from_string("/help @git:statu")

        assert not result.success
        assert "@git:status" in result.suggested_next_commands


class TestHistoryCommand:

    @pytest.mark.asyncio
    async def test_lists_recent_records(self, executor):
        await executor.execute_from_string("@git:status")
        await executor.execute_from_string("@jira:list")

        result = await executor.execute_from_string("/history 1")

        assert result.success
        assert result.display_mode == DisplayMode.JSON
        assert len(result.data) == 1
        assert result.data[0]["command"] == "list"
        assert result.data[0]["namespace"] == "jira"

    @pytest.mark.asyncio
    async def test_limit_option(self, executor):
        for _ in range(3):
            await executor.execute_from_string("@git:status")

        result = await executor.execute_from_string("/history --limit=2")

        assert len(result.data) == 2

    @pytest.mark.asyncio
    async def test_invalid_limit(self, executor):
        result = await executor.execute_from_string("/history lots")

        assert not result.success
        assert "Invalid history limit" in result.error


class TestDebugCommand:

    @pytest.mark.asyncio
    async def test_reports_statistics(self, executor):
        result = await executor.execute_from_string("/debug")

        assert result.success
        assert result.data["registry"]["namespaces"]["git"] == 4
        assert result.data["registry"]["namespaces"]["core"] == 3
        assert result.data["executor"]["pending"] == 1
        assert result.data["llm_enabled"] is False
