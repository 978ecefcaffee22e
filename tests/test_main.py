"""Tests for process bootstrap, exit codes and restart handling."""

import logging
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

import tribot.main as main_module
import tribot.util.logger as logger_module
from tribot.state.state_store import StateSnapshot, StateStore


@pytest.fixture(autouse=True)
def no_dotenv(monkeypatch):
    monkeypatch.setattr(main_module, "load_dotenv", lambda **kwargs: None)


def test_load_environment_reads_token_and_state_file(monkeypatch, tmp_path: Path):
    monkeypatch.setenv("DISCORD_BOT_TOKEN", "token")
    monkeypatch.setenv("DISCORD_STATE_FILE", str(tmp_path / "s.json"))

    token, state_file = main_module.load_environment()

    assert token == "token"
    assert state_file == tmp_path / "s.json"


def test_load_environment_defaults_state_file_to_config(monkeypatch):
    monkeypatch.setenv("DISCORD_BOT_TOKEN", "token")
    monkeypatch.delenv("DISCORD_STATE_FILE", raising=False)

    _, state_file = main_module.load_environment()

    assert state_file == main_module.app_config.state_file


def test_load_environment_requires_token(monkeypatch):
    monkeypatch.delenv("DISCORD_BOT_TOKEN", raising=False)

    with pytest.raises(SystemExit):
        main_module.load_environment()


def test_build_intents():
    intents = main_module.build_intents()
    assert intents.message_content is True
    assert intents.reactions is True
    assert intents.guilds is True


def test_configure_logging_uses_first_argument(monkeypatch):
    previous = logger_module.CURRENT_LEVEL
    try:
        main_module.configure_logging(["tribot", "debug"])
        assert logger_module.CURRENT_LEVEL == logging.DEBUG
    finally:
        logger_module.set_log_level(previous)


@pytest.mark.asyncio
async def test_async_main_fails_on_unreadable_state(monkeypatch, tmp_path: Path):
    bad = tmp_path / "state.json"
    bad.write_text("not json", encoding="utf-8")
    monkeypatch.setattr(main_module, "load_environment", lambda: ("token", bad))
    create_bot = MagicMock()
    monkeypatch.setattr(main_module, "create_bot", create_bot)

    assert await main_module.async_main() == 1
    create_bot.assert_not_called()


@pytest.mark.asyncio
@pytest.mark.parametrize("requested, expected", [(0, 0), (42, 42)])
async def test_async_main_returns_requested_exit_code(monkeypatch, tmp_path: Path, requested, expected):
    monkeypatch.setattr(main_module, "load_environment", lambda: ("token", tmp_path / "state.json"))
    monkeypatch.setattr(main_module, "create_bot", MagicMock())

    async def fake_session(bot, token, control, store):
        await control.request_exit(requested)
        return 0

    monkeypatch.setattr(main_module, "run_bot_session", fake_session)

    assert await main_module.async_main() == expected


@pytest.mark.asyncio
async def test_shutdown_runtime_saves_dirty_state(tmp_path: Path):
    path = tmp_path / "state.json"
    store = StateStore(StateSnapshot(source_path=path, dirty=True))

    await main_module.shutdown_runtime(None, store)

    assert path.exists()


@pytest.mark.asyncio
async def test_shutdown_runtime_logs_save_failure(tmp_path: Path):
    store = StateStore(StateSnapshot(dirty=True))

    await main_module.shutdown_runtime(None, store)

    async with store.session() as state:
        assert state.dirty is True


def test_main_restarts_with_execv(monkeypatch):
    monkeypatch.setattr(main_module, "async_main", AsyncMock(return_value=42))
    execv = MagicMock()
    monkeypatch.setattr(main_module.os, "execv", execv)

    main_module.main()

    execv.assert_called_once()


def test_main_returns_exit_code(monkeypatch):
    monkeypatch.setattr(main_module, "async_main", AsyncMock(return_value=0))
    assert main_module.main() == 0


def test_main_converts_system_exit(monkeypatch):
    monkeypatch.setattr(main_module, "async_main", AsyncMock(side_effect=SystemExit(1)))
    assert main_module.main() == 1


@pytest.mark.asyncio
async def test_async_main_writes_new_state_file(monkeypatch, tmp_path: Path):
    path = tmp_path / "data" / "state.json"
    monkeypatch.setattr(main_module, "load_environment", lambda: ("token", path))
    monkeypatch.setattr(main_module, "create_bot", MagicMock())
    monkeypatch.setattr(main_module, "run_bot_session", AsyncMock(return_value=0))

    assert await main_module.async_main() == 0
    assert path.exists()
