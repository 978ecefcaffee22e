"""Tests for command parsing, permission gating and write-back in the dispatcher."""

import json
from pathlib import Path

import pytest

from conftest import ADMIN_ID, OTHER_ID, USER_ID
from tribot.commands.dispatcher import NOT_AUTHORISED, CommandDispatcher, parse_command
from tribot.datatypes.command_datatypes import Command, MentionedUser, PresenceChange, Reply
from tribot.datatypes.discord_datatypes import UserID
from tribot.state.state_store import StateSnapshot, StateStore


@pytest.fixture
def dispatcher(store, clock):
    return CommandDispatcher(store, clock=clock)


def mention(user_id: int, name: str) -> MentionedUser:
    return MentionedUser(UserID(user_id), name)


class TestParseCommand:

    def test_name_and_args(self):
        parsed = parse_command(";roll 2d6", ";")
        assert parsed.name == "roll"
        assert parsed.args == "2d6"

    def test_surrounding_whitespace_is_trimmed(self):
        parsed = parse_command("  ;say   hi there  ", ";")
        assert parsed.name == "say"
        assert parsed.args == "hi there"

    def test_no_args(self):
        assert parse_command(";ping", ";").args == ""

    @pytest.mark.parametrize("text", ["hello", ";", ";  ", ";ro.ll", ";a(b)", "roll;"])
    def test_not_commands(self, text):
        assert parse_command(text, ";") is None

    def test_custom_prefix(self):
        assert parse_command("!ping", "!").name == "ping"
        assert parse_command(";ping", "!") is None


class TestGating:

    @pytest.mark.asyncio
    async def test_plain_message_is_ignored(self, dispatcher):
        assert await dispatcher.evaluate_command("hello world", USER_ID, "bob") is None

    @pytest.mark.asyncio
    async def test_admin_command_from_user_is_refused(self, dispatcher):
        reply = await dispatcher.evaluate_command(";stop", USER_ID, "bob")
        assert reply.content == NOT_AUTHORISED
        assert reply.exit_code is None

    @pytest.mark.asyncio
    async def test_admin_command_from_admin_runs(self, dispatcher, state_path: Path):
        reply = await dispatcher.evaluate_command(";stop", ADMIN_ID, "root")

        assert reply.content == ":wave: Cya!"
        assert reply.exit_code == 0
        assert reply.presence == PresenceChange(status="invisible")
        assert state_path.exists()

    @pytest.mark.asyncio
    async def test_restart_exit_code(self, dispatcher):
        reply = await dispatcher.evaluate_command(";restart", ADMIN_ID, "root")
        assert reply.exit_code == 42

    @pytest.mark.asyncio
    async def test_banned_user_is_silently_dropped(self, store, dispatcher):
        async with store.session() as state:
            state.ban(USER_ID)

        assert await dispatcher.evaluate_command(";ping", USER_ID, "bob") is None
        assert await dispatcher.evaluate_command(";nope", USER_ID, "bob") is None

    @pytest.mark.asyncio
    async def test_unknown_command(self, dispatcher):
        reply = await dispatcher.evaluate_command(";nope", USER_ID, "bob")
        assert reply.content == ":x: Invalid command. Use `;help` for help."

    @pytest.mark.asyncio
    async def test_alias_resolves(self, dispatcher):
        reply = await dispatcher.evaluate_command(";dice 3", USER_ID, "bob")
        assert reply.content == ":game_die: Rolls: `3` (Sum: **3**)"

    @pytest.mark.asyncio
    async def test_handler_errors_propagate(self, store):
        async def broken(ctx):
            raise RuntimeError("boom")

        dispatcher = CommandDispatcher(store, commands=[Command(name="broken", handler=broken, short="", description="")])
        with pytest.raises(RuntimeError):
            await dispatcher.evaluate_command(";broken", USER_ID, "bob")


class TestBanCommands:

    @pytest.mark.asyncio
    async def test_ban_and_unban(self, dispatcher, store):
        reply = await dispatcher.evaluate_command(";ban @bob", ADMIN_ID, "root", mentions=[mention(USER_ID, "bob")])
        assert reply.content == ":crab: Banned bob"
        assert await store.is_banned(USER_ID)
        assert await dispatcher.evaluate_command(";ping", USER_ID, "bob") is None

        reply = await dispatcher.evaluate_command(";unban @bob", ADMIN_ID, "root", mentions=[mention(USER_ID, "bob")])
        assert reply.content == ":crab: Unbanned bob"
        assert not await store.is_banned(USER_ID)

    @pytest.mark.asyncio
    async def test_ban_requires_mention(self, dispatcher):
        reply = await dispatcher.evaluate_command(";ban bob", ADMIN_ID, "root")
        assert reply.content == ":x: No user specified"

    @pytest.mark.asyncio
    async def test_ban_admin_refused(self, dispatcher, store):
        reply = await dispatcher.evaluate_command(";ban @root", ADMIN_ID, "root", mentions=[mention(ADMIN_ID, "root")])
        assert reply.content == ":x: Cannot ban an admin"
        assert not await store.is_banned(ADMIN_ID)

    @pytest.mark.asyncio
    async def test_ban_twice(self, dispatcher):
        mentions = [mention(USER_ID, "bob")]
        await dispatcher.evaluate_command(";ban @bob", ADMIN_ID, "root", mentions=mentions)
        reply = await dispatcher.evaluate_command(";ban @bob", ADMIN_ID, "root", mentions=mentions)
        assert reply.content == ":x: User is already banned"

    @pytest.mark.asyncio
    async def test_unban_unknown(self, dispatcher):
        reply = await dispatcher.evaluate_command(";unban @al", ADMIN_ID, "root", mentions=[mention(OTHER_ID, "al")])
        assert reply.content == ":x: User is not banned"

    @pytest.mark.asyncio
    async def test_only_first_mention_is_banned(self, dispatcher, store):
        mentions = [mention(USER_ID, "bob"), mention(OTHER_ID, "al")]
        await dispatcher.evaluate_command(";ban @bob @al", ADMIN_ID, "root", mentions=mentions)
        assert await store.is_banned(USER_ID)
        assert not await store.is_banned(OTHER_ID)


class TestCustomCommands:

    @pytest.mark.asyncio
    async def test_add_run_remove(self, dispatcher):
        reply = await dispatcher.evaluate_command(";add hi hello there", ADMIN_ID, "root")
        assert reply.content == ":white_check_mark: Command `hi` added"

        reply = await dispatcher.evaluate_command(";hi", USER_ID, "bob")
        assert reply.content == "bob: hello there"

        reply = await dispatcher.evaluate_command(";rm hi", ADMIN_ID, "root")
        assert reply.content == ":wastebasket: Command `hi` removed"

        reply = await dispatcher.evaluate_command(";hi", USER_ID, "bob")
        assert reply.content.startswith(":x: Invalid command")

    @pytest.mark.asyncio
    async def test_builtin_names_cannot_be_shadowed(self, dispatcher):
        reply = await dispatcher.evaluate_command(";add dice nope", ADMIN_ID, "root")
        assert reply.content == ":x: `dice` is a built-in command"

    @pytest.mark.asyncio
    async def test_add_requires_text(self, dispatcher):
        reply = await dispatcher.evaluate_command(";add hi", ADMIN_ID, "root")
        assert reply.content == ":x: Usage: `;add <name> <text>`"

    @pytest.mark.asyncio
    async def test_add_rejects_forbidden_characters(self, dispatcher):
        reply = await dispatcher.evaluate_command(";add h.i text", ADMIN_ID, "root")
        assert reply.content == ":x: Invalid command name"

    @pytest.mark.asyncio
    async def test_users_cannot_add(self, dispatcher):
        reply = await dispatcher.evaluate_command(";add hi text", USER_ID, "bob")
        assert reply.content == NOT_AUTHORISED


class TestWriteBack:

    @pytest.mark.asyncio
    async def test_state_is_saved_after_mutating_command(self, dispatcher, state_path: Path):
        await dispatcher.evaluate_command(";count", USER_ID, "bob")

        data = json.loads(state_path.read_text(encoding="utf-8"))
        assert data["counters"] == {str(USER_ID): 1}

    @pytest.mark.asyncio
    async def test_read_only_command_does_not_write(self, dispatcher, state_path: Path):
        await dispatcher.evaluate_command(";ping", USER_ID, "bob")
        assert not state_path.exists()

    @pytest.mark.asyncio
    async def test_force_save(self, dispatcher, state_path: Path):
        reply = await dispatcher.evaluate_command(";force_save", ADMIN_ID, "root")
        assert reply.content == ":floppy_disk: State will be saved."
        assert state_path.exists()

    @pytest.mark.asyncio
    async def test_save_failure_is_logged_not_raised(self, clock):
        store = StateStore(StateSnapshot())
        dispatcher = CommandDispatcher(store, clock=clock)

        reply = await dispatcher.evaluate_command(";count", USER_ID, "bob")

        assert reply.content.startswith(":hash: Count increased to 1!")
        async with store.session() as state:
            assert state.dirty is True

    @pytest.mark.asyncio
    async def test_custom_command_table(self, store):
        async def hello(ctx):
            return Reply(content=f"hi {ctx.author_name}")

        dispatcher = CommandDispatcher(
            store,
            prefix="!",
            commands=[Command(name="hello", handler=hello, short="", description="", aliases=("hey",))],
        )
        reply = await dispatcher.evaluate_command("!hey", USER_ID, "bob")
        assert reply.content == "hi bob"
