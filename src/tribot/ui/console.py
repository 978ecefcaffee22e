"""Operator console that runs next to the bot in the same terminal.

Commands act on the shared :class:`StateStore` and :class:`ConsoleControl`,
so ``save`` and ``restart`` here behave exactly like their chat equivalents.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass

import discord
from prompt_toolkit import print_formatted_text
from prompt_toolkit.formatted_text import FormattedText
from prompt_toolkit.patch_stdout import patch_stdout
from prompt_toolkit.shortcuts import PromptSession, clear

from tribot.commands.handlers import RESTART_EXIT_CODE, STOP_EXIT_CODE
from tribot.state.state_store import StateSaveError, StateStore
from tribot.util.logger import get_logger

logger = get_logger("console")

RULE_WIDTH = 40

ConsoleHandler = Callable[["ConsoleControl", list[str]], Awaitable[None]]


def heading(title: str) -> str:
    """Return ``title`` padded with a rule to a fixed width."""
    return f"── {title} ".ljust(RULE_WIDTH, "─")


@dataclass
class ConsoleCommand:
    """Console command name, aliases and handler."""
    name: str
    handler: ConsoleHandler
    aliases: list[str]
    description: str

    def matches(self, input_cmd: str) -> bool:
        return input_cmd == self.name or input_cmd in self.aliases


def console_print(message: str, style: str = "") -> None:
    """Render text via prompt_toolkit without breaking the active prompt."""
    formatted: FormattedText | str
    if style:
        formatted = FormattedText([(style, message)])
    else:
        formatted = message
    print_formatted_text(formatted)


class ConsoleControl:
    """Lifecycle controls shared by the console and chat commands.

    Either side may ask the bot to exit with a code; ``RESTART_EXIT_CODE``
    marks a restart request.
    """

    def __init__(self, store: StateStore | None = None) -> None:
        self.store = store
        self.shutdown_event = asyncio.Event()
        self.restart_event = asyncio.Event()
        self.exit_code: int | None = None
        self._bot: discord.Bot | None = None

    def set_bot(self, bot: discord.Bot | None) -> None:
        self._bot = bot

    @property
    def bot(self) -> discord.Bot | None:
        return self._bot

    def request_shutdown(self) -> None:
        self.shutdown_event.set()

    def is_shutdown_requested(self) -> bool:
        return self.shutdown_event.is_set()

    def is_restart_requested(self) -> bool:
        return self.restart_event.is_set()

    async def request_exit(self, exit_code: int) -> None:
        """Record ``exit_code``, flag shutdown (or restart) and close the bot."""
        self.exit_code = exit_code
        if exit_code == RESTART_EXIT_CODE:
            self.restart_event.set()
        self.request_shutdown()
        await close_bot_instance(self._bot)


async def close_bot_instance(bot: discord.Bot | None, *, log_close: bool = False) -> bool:
    """Close ``bot`` if it is still connected; return whether a close happened."""
    if bot is None or bot.is_closed():
        return False

    try:
        await bot.close()
    except discord.DiscordException as exc:
        logger.error("Error while closing Discord connection: %s", exc)
        return False
    if log_close:
        logger.info("Discord connection closed.")
    return True


async def cmd_help(control: ConsoleControl, args: list[str]) -> None:
    console_print(heading("Console commands"), "ansigreen")
    width = max(len(cmd.name) for cmd in COMMANDS)
    for cmd in COMMANDS:
        aliases = f"  [{', '.join(cmd.aliases)}]" if cmd.aliases else ""
        console_print(f"  {cmd.name.ljust(width)}  {cmd.description}{aliases}")


async def cmd_status(control: ConsoleControl, args: list[str]) -> None:
    """Print connection details and a summary of the loaded state."""
    console_print(heading("Status"), "ansiblue")

    bot = control.bot
    if bot is None:
        console_print("  Bot:        not initialized")
    elif bot.is_closed():
        console_print("  Bot:        disconnected")
    else:
        console_print(f"  Bot:        connected as {bot.user}")
        console_print(f"  Guilds:     {len(bot.guilds)}")
        console_print(f"  Latency:    {bot.latency * 1000:.0f}ms")

    if control.store is not None:
        async with control.store.session() as state:
            console_print(f"  State file: {state.source_path}")
            console_print(f"  Unsaved:    {'yes' if state.dirty else 'no'}")
            console_print(f"  Admins:     {len(state.admins)}")
            console_print(f"  Banned:     {len(state.banned)}")
            console_print(f"  Counters:   {len(state.counters)}")
            console_print(f"  Custom cmds:{len(state.custom_commands):>2}")


async def cmd_guilds(control: ConsoleControl, args: list[str]) -> None:
    guilds = control.bot.guilds if control.bot is not None else []
    if not guilds:
        console_print("Not in any guilds (or not connected yet).", "ansiyellow")
        return

    console_print(heading(f"Guilds ({len(guilds)})"), "ansiblue")
    for guild in sorted(guilds, key=lambda g: g.name.lower()):
        console_print(f"  {guild.id}  {guild.name} ({len(guild.text_channels)} text channels)")


async def cmd_save(control: ConsoleControl, args: list[str]) -> None:
    """Force the state file to be written now."""
    if control.store is None:
        console_print("No state loaded.", "ansiyellow")
        return

    async with control.store.session() as state:
        state.force_dirty()
    try:
        await control.store.save_if_dirty()
    except StateSaveError as exc:
        logger.error("Console save failed: %s", exc)
        console_print(f"Save failed: {exc}", "ansired")
        return
    console_print("State saved.", "ansigreen")


async def cmd_clear(control: ConsoleControl, args: list[str]) -> None:
    clear()


async def cmd_restart(control: ConsoleControl, args: list[str]) -> None:
    console_print("Restarting...", "ansiyellow")
    await control.request_exit(RESTART_EXIT_CODE)


async def cmd_shutdown(control: ConsoleControl, args: list[str]) -> None:
    console_print("Shutting down...", "ansiyellow")
    await control.request_exit(STOP_EXIT_CODE)


COMMANDS: list[ConsoleCommand] = [
    ConsoleCommand("help", cmd_help, ["h", "?"], "List console commands"),
    ConsoleCommand("status", cmd_status, ["stat", "info"], "Connection info and state summary"),
    ConsoleCommand("guilds", cmd_guilds, ["servers", "g"], "List connected guilds"),
    ConsoleCommand("save", cmd_save, ["force_save"], "Write the state file now"),
    ConsoleCommand("clear", cmd_clear, ["cls"], "Clear the terminal"),
    ConsoleCommand("restart", cmd_restart, ["reboot"], "Save state and restart the process"),
    ConsoleCommand("shutdown", cmd_shutdown, ["stop", "quit", "exit"], "Save state and exit"),
]


async def handle_console_command(command: str, control: ConsoleControl) -> None:
    """Run one console line; the command name is case-insensitive."""
    parts = command.split()
    if not parts:
        return

    cmd_name, args = parts[0].lower(), parts[1:]
    cmd = next((c for c in COMMANDS if c.matches(cmd_name)), None)
    if cmd is None:
        console_print(f"Unknown command '{cmd_name}'. Type 'help' for available commands.", "ansired")
        return

    try:
        await cmd.handler(control, args)
    except Exception as exc:
        logger.exception("Console command '%s' failed: %s", cmd_name, exc)
        console_print(f"Error: {exc}", "ansired")


async def run_console(control: ConsoleControl) -> None:
    """Read console lines until shutdown; EOF or Ctrl+C counts as ``shutdown``."""
    session = PromptSession("tribot> ")
    console_print("Operator console ready. Type 'help' for commands.", "ansibrightblack")

    with patch_stdout():
        while not control.is_shutdown_requested():
            try:
                line = await session.prompt_async()
            except (EOFError, KeyboardInterrupt):
                await cmd_shutdown(control, [])
                break
            await handle_console_command(line, control)


@asynccontextmanager
async def console_session(control: ConsoleControl, enabled: bool = True) -> AsyncIterator[ConsoleControl]:
    """Run the console alongside the bot, cleaning up automatically."""
    if not enabled:
        yield control
        return

    console_task = asyncio.create_task(run_console(control))
    try:
        yield control
    finally:
        control.request_shutdown()
        console_task.cancel()
        try:
            await console_task
        except asyncio.CancelledError:
            pass
