"""Tests for the operator console and the shared lifecycle control."""

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from conftest import USER_ID
from tribot.ui import console
from tribot.ui.console import ConsoleControl, close_bot_instance, handle_console_command


@pytest.fixture
def printed(monkeypatch):
    lines = []
    monkeypatch.setattr(console, "console_print", lambda message, style="": lines.append(message))
    return lines


@pytest.mark.asyncio
async def test_close_bot_instance_with_none():
    assert await close_bot_instance(None) is False


@pytest.mark.asyncio
async def test_close_bot_instance_with_closed_bot():
    bot = MagicMock()
    bot.is_closed.return_value = True

    assert await close_bot_instance(bot) is False

    bot.close.assert_not_called()


@pytest.mark.asyncio
async def test_close_bot_instance_closes_open_bot():
    bot = MagicMock()
    bot.is_closed.return_value = False
    bot.close = AsyncMock()

    assert await close_bot_instance(bot, log_close=True) is True

    bot.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_request_exit_stop_closes_bot():
    control = ConsoleControl()
    bot = MagicMock()
    bot.is_closed.return_value = False
    bot.close = AsyncMock()
    control.set_bot(bot)

    await control.request_exit(0)

    assert control.exit_code == 0
    assert control.is_shutdown_requested()
    assert not control.is_restart_requested()
    bot.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_request_exit_restart_sets_restart_flag():
    control = ConsoleControl()

    await control.request_exit(42)

    assert control.exit_code == 42
    assert control.is_shutdown_requested()
    assert control.is_restart_requested()


@pytest.mark.asyncio
async def test_save_command_writes_state(store, state_path, printed):
    control = ConsoleControl(store)

    await handle_console_command("save", control)

    assert json.loads(state_path.read_text(encoding="utf-8"))["admins"]
    assert printed[-1] == "State saved."


@pytest.mark.asyncio
async def test_status_reports_state(store, printed):
    async with store.session() as state:
        state.ban(USER_ID)
    control = ConsoleControl(store)

    await handle_console_command("STATUS", control)

    assert "  Bot:        not initialized" in printed
    assert "  Banned:     1" in printed
    assert "  Unsaved:    yes" in printed


@pytest.mark.asyncio
async def test_shutdown_alias(printed):
    control = ConsoleControl()

    await handle_console_command("quit", control)

    assert control.exit_code == 0
    assert control.is_shutdown_requested()


@pytest.mark.asyncio
async def test_restart_command(printed):
    control = ConsoleControl()

    await handle_console_command("restart", control)

    assert control.exit_code == 42
    assert control.is_restart_requested()


@pytest.mark.asyncio
async def test_unknown_command(printed):
    await handle_console_command("dance", ConsoleControl())
    assert printed == ["Unknown command 'dance'. Type 'help' for available commands."]


@pytest.mark.asyncio
async def test_blank_line_is_ignored(printed):
    await handle_console_command("   ", ConsoleControl())
    assert printed == []


@pytest.mark.asyncio
async def test_guilds_without_bot(printed):
    await handle_console_command("guilds", ConsoleControl())
    assert printed == ["Not in any guilds (or not connected yet)."]


@pytest.mark.asyncio
async def test_help_lists_every_command(printed):
    await handle_console_command("help", ConsoleControl())
    text = "\n".join(printed)
    for name in ("help", "status", "guilds", "save", "clear", "restart", "shutdown"):
        assert f"\n  {name}" in text


@pytest.mark.asyncio
async def test_close_bot_instance_reports_failed_close():
    bot = MagicMock()
    bot.is_closed.return_value = False
    bot.close = AsyncMock(side_effect=discord.DiscordException("gateway gone"))

    assert await close_bot_instance(bot) is False


@pytest.mark.asyncio
async def test_status_with_connected_bot(printed):
    control = ConsoleControl()
    control.set_bot(SimpleNamespace(
        is_closed=lambda: False,
        user="TriBot#0001",
        guilds=[object(), object()],
        latency=0.042,
    ))

    await handle_console_command("stat", control)

    assert "  Bot:        connected as TriBot#0001" in printed
    assert "  Guilds:     2" in printed
    assert "  Latency:    42ms" in printed


@pytest.mark.asyncio
async def test_guilds_are_listed_by_name(printed):
    def guild(guild_id, name, channels):
        return SimpleNamespace(id=guild_id, name=name, text_channels=[object()] * channels)

    control = ConsoleControl()
    control.set_bot(SimpleNamespace(guilds=[guild(2, "zebra", 1), guild(1, "Apple", 3)]))

    await handle_console_command("g", control)

    assert printed[1:] == [
        "  1  Apple (3 text channels)",
        "  2  zebra (1 text channels)",
    ]


@pytest.mark.asyncio
async def test_clear_uses_prompt_toolkit(monkeypatch, printed):
    cleared = MagicMock()
    monkeypatch.setattr(console, "clear", cleared)

    await handle_console_command("cls", ConsoleControl())

    cleared.assert_called_once_with()


@pytest.mark.asyncio
async def test_failing_command_is_reported(monkeypatch, printed):
    monkeypatch.setattr(console.COMMANDS[0], "handler", AsyncMock(side_effect=RuntimeError("boom")))

    await handle_console_command("help", ConsoleControl())

    assert printed == ["Error: boom"]
