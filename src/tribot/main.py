"""
TriBot
======

A small Discord bot with prefix commands, dice, per-user counters and polls
whose reactions behave like radio buttons. All durable data lives in a single
JSON state file that is written back whenever a command changes it.
"""

import os
import sys
from pathlib import Path

def resolve_base_dir() -> Path:
    """Determine the base directory of the project.

    Resolution order:
    1. TRIBOT_HOME environment variable, if set.
    2. If running in a frozen/compiled context (e.g., PyInstaller, Nuitka), use the executable's directory.
    3. Otherwise, assume running from source and use the grandparent of this file's directory.
    """
    if env_home := os.getenv("TRIBOT_HOME"):
        return Path(env_home).resolve()

    if getattr(sys, "frozen", False) or getattr(sys, "compiled", False):
        return Path(sys.argv[0]).resolve().parent

    return Path(__file__).resolve().parents[2]

BASE_DIR = resolve_base_dir()
os.chdir(BASE_DIR)

import asyncio
import discord
from dotenv import load_dotenv

from tribot.bot.presence import PresenceManager
from tribot.commands.dispatcher import CommandDispatcher
from tribot.commands.handlers import RESTART_EXIT_CODE
from tribot.configuration.app_configuration import app_config
from tribot.polls.discord_transport import DiscordReactionTransport
from tribot.polls.poll_reconciler import PollReconciler
from tribot.state.state_store import StateLoadError, StateSaveError, StateStore
from tribot.ui.console import ConsoleControl, close_bot_instance, console_session
from tribot.util.logger import LEVEL_NAMES, get_logger, handle_exception, parse_level, set_log_level


logger = get_logger("main")


def load_environment() -> tuple[str, Path]:
    """Load environment variables and return the bot token and state file path.

    Returns
    -------
    tuple[str, Path]
        Discord bot token, and the state file from ``DISCORD_STATE_FILE`` or
        the ``state.file`` config key.

    Raises
    ------
    SystemExit
        If the required ``DISCORD_BOT_TOKEN`` variable is missing.
    """
    load_dotenv(dotenv_path=BASE_DIR / ".env")
    token = os.getenv("DISCORD_BOT_TOKEN")
    if not token:
        logger.critical("'DISCORD_BOT_TOKEN' environment variable not set. Bot cannot start.")
        sys.exit(1)

    state_file = os.getenv("DISCORD_STATE_FILE")
    return token, Path(state_file) if state_file else app_config.state_file


def configure_logging(argv: list[str]) -> None:
    """Apply the log level from the first CLI argument, falling back to the config."""
    level_name = argv[1] if len(argv) > 1 else app_config.log_level
    if level_name.strip().lower() not in LEVEL_NAMES:
        logger.warning("Invalid log level %r; using INFO", level_name)
    set_log_level(parse_level(level_name))


def build_intents() -> discord.Intents:
    """Construct the Discord intents required for TriBot runtime features.

    Returns
    -------
    discord.Intents
        Intents enabling guild, message content and reaction events.
    """
    intents = discord.Intents.default()
    intents.message_content = True
    intents.guilds = True
    intents.messages = True
    intents.reactions = True
    return intents


def load_cogs(
    discord_bot_instance: discord.Bot,
    dispatcher: CommandDispatcher,
    reconciler: PollReconciler,
    control: ConsoleControl,
    presence: PresenceManager,
) -> None:
    """Register all operational cogs with the provided Discord bot instance."""
    from tribot.bot.cogs import command_listener, events_listener, poll_listener

    events_listener.setup(discord_bot_instance, presence)
    command_listener.setup(discord_bot_instance, dispatcher, control, presence)
    poll_listener.setup(discord_bot_instance, reconciler)

    logger.info("All cogs loaded successfully.")


def create_bot(store: StateStore, control: ConsoleControl) -> discord.Bot:
    """Instantiate the Discord bot and wire the shared state store into the cogs."""
    bot = discord.Bot(intents=build_intents())

    dispatcher = CommandDispatcher(
        store,
        prefix=app_config.command_prefix,
        poll_color=app_config.poll_color,
    )
    transport = DiscordReactionTransport(bot, timeout=app_config.request_timeout)
    reconciler = PollReconciler(
        transport,
        poll_color=app_config.poll_color,
        reactor_fetch_limit=app_config.reactor_fetch_limit,
    )
    presence = PresenceManager(bot, app_config.default_activity)

    load_cogs(bot, dispatcher, reconciler, control, presence)
    return bot


async def start_bot(bot: discord.Bot, token: str) -> None:
    """Start the Discord bot and handle lifecycle logging around the connection."""
    logger.info("Attempting to connect to Discord…")
    try:
        await bot.start(token)
    except asyncio.CancelledError:
        logger.info("Discord bot start cancelled; shutting down")
    finally:
        logger.info("Discord bot start routine finished.")


async def shutdown_runtime(bot: discord.Bot | None, store: StateStore) -> None:
    """Close the Discord connection and write back any unsaved state.

    Parameters
    ----------
    bot:
        Optional bot instance to close before saving.
    store:
        The state store to flush.
    """
    await close_bot_instance(bot, log_close=True)

    try:
        await store.save_if_dirty()
    except StateSaveError as exc:
        logger.error("Final state save failed: %s", exc)

    logger.info("Shutdown complete.")


async def run_bot_session(bot: discord.Bot, token: str, control: ConsoleControl, store: StateStore) -> int:
    """Run the bot alongside the console, returning an exit code."""
    control.set_bot(bot)
    exit_code = 0

    try:
        async with console_session(control, enabled=app_config.console_enabled):
            try:
                await start_bot(bot, token)
            except asyncio.CancelledError:
                logger.info("Bot start cancelled; proceeding to shutdown")
            except Exception as exc:
                logger.critical("Discord bot runtime error: %s", exc)
                exit_code = 1
    finally:
        control.set_bot(None)
        await shutdown_runtime(bot, store)

    return exit_code


async def async_main() -> int:
    """Load state, build the bot and run it, returning an exit code.

    Returns
    -------
    int
        Process exit code: the code a command or the console asked for,
        ``RESTART_EXIT_CODE`` for a restart, or 1 on startup failure.
    """
    token, state_file = load_environment()

    try:
        logger.info("Loading state from %s", state_file)
        store = StateStore.open(state_file)
    except StateLoadError as exc:
        logger.critical("Error loading state file %s: %s", state_file, exc)
        return 1

    # A freshly created state is written out before connecting
    try:
        await store.save_if_dirty()
    except StateSaveError as exc:
        logger.error("Could not write initial state: %s", exc)

    control = ConsoleControl(store)
    try:
        bot = create_bot(store, control)
    except Exception as exc:
        logger.critical("Failed to initialize Discord bot: %s", exc)
        return 1

    exit_code = await run_bot_session(bot, token, control, store)

    if control.is_restart_requested():
        logger.info("Restart requested, returning exit code %d to trigger restart", RESTART_EXIT_CODE)
        return RESTART_EXIT_CODE

    if control.exit_code is not None:
        return control.exit_code
    return exit_code


def main() -> int:
    """Entrypoint that orchestrates the async runtime and returns the process code.

    Returns
    -------
    int
        Exit code propagated to the operating system. ``RESTART_EXIT_CODE``
        replaces the process with a fresh instance instead of returning.
    """
    configure_logging(sys.argv)
    logger.info("Starting TriBot…")
    try:
        exit_code = asyncio.run(async_main())

        if exit_code == RESTART_EXIT_CODE:
            logger.info("Restart requested; replacing current process with new instance.")
            # execv keeps stdin/stdout/stderr so the console survives the restart
            os.execv(sys.executable, [sys.executable] + sys.argv)
            return 0  # pragma: no cover

        return exit_code
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user.")
        return 0
    except SystemExit as exit_exc:
        code = exit_exc.code
        if isinstance(code, int):
            return code
        if code is None:
            return 1
        try:
            return int(code)
        except (ValueError, TypeError):
            logger.warning("SystemExit.code is not an int (%r); defaulting to 1", code)
            return 1
    except Exception as exc:
        logger.critical("An unexpected error occurred while running the bot: %s", exc)
        return 1


if __name__ == "__main__":
    sys.excepthook = handle_exception
    sys.exit(main())
