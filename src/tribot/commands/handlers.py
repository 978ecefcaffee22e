"""
Handlers for the built-in chat commands.

Each handler takes a :class:`CommandContext` and returns a :class:`Reply` (or
``None`` for no response). Validation problems are answered with a short
``:x:`` message instead of raising. State access always goes through
``ctx.store.session()``, and name lookups happen after the session is released.
"""

from __future__ import annotations

from typing import Optional

from tribot import __version__
from tribot.datatypes.command_datatypes import CommandContext, EmbedSpec, PresenceChange, Reply
from tribot.datatypes.discord_datatypes import UserID
from tribot.dice.coin_flip import CoinLimitError, eight_ball, flip_coin, flip_coins
from tribot.dice.dice_roller import DiceError, roll_dice
from tribot.state.state_store import StateError
from tribot.util.format_utils import latency_millis, timeformat
from tribot.util.logger import get_logger

logger = get_logger("command_handlers")

HELP_COLOR = 0x228844
WEB_COLOR = 0x339988

STOP_EXIT_CODE = 0
RESTART_EXIT_CODE = 42

MESSAGE_LIMIT = 2000
LEADERBOARD_SIZE = 10
MAX_POLL_OPTIONS = 9

VOTE_EMOJIS = ("\u2b06", "\u2b07")
NUM_EMOJIS = tuple(f"{digit}\ufe0f\u20e3" for digit in range(10))

ACTIVITY_TYPES = ("playing", "listening", "watching", "competing")
STATUSES = ("online", "idle", "dnd", "invisible")


def error_reply(message: str) -> Reply:
    return Reply(content=f":x: {message}")


# ==================== Admin commands ====================

async def cmd_force_save(ctx: CommandContext) -> Reply:
    async with ctx.store.session() as state:
        state.force_dirty()
    return Reply(content=":floppy_disk: State will be saved.")


async def shutdown(ctx: CommandContext, exit_code: int) -> Reply:
    """Say goodbye, force a final save, go invisible and ask the process to exit."""
    logger.debug("Shutdown requested by %s (exit code %d)", ctx.author_name, exit_code)
    async with ctx.store.session() as state:
        state.force_dirty()
    return Reply(
        content=":wave: Cya!",
        presence=PresenceChange(status="invisible"),
        exit_code=exit_code,
    )


async def cmd_stop(ctx: CommandContext) -> Reply:
    return await shutdown(ctx, STOP_EXIT_CODE)


async def cmd_restart(ctx: CommandContext) -> Reply:
    return await shutdown(ctx, RESTART_EXIT_CODE)


async def ban_unban(ctx: CommandContext, ban: bool) -> Reply:
    if not ctx.mentions:
        return error_reply("No user specified")
    target = ctx.mentions[0]

    try:
        async with ctx.store.session() as state:
            if ban:
                state.ban(target.user_id)
            else:
                state.unban(target.user_id)
    except StateError as exc:
        return error_reply(exc.user_message)

    verb = "Banned" if ban else "Unbanned"
    logger.debug("User %s (%s) %s by %s", target.name, target.user_id, verb.lower(), ctx.author_name)
    return Reply(content=f":crab: {verb} {target.name}")


async def cmd_ban(ctx: CommandContext) -> Reply:
    return await ban_unban(ctx, ban=True)


async def cmd_unban(ctx: CommandContext) -> Reply:
    return await ban_unban(ctx, ban=False)


async def cmd_activity(ctx: CommandContext) -> Reply:
    if ctx.args == "reset":
        logger.debug("Activity reset by %s", ctx.author_name)
        return Reply(presence=PresenceChange(reset=True))

    kind, _, text = ctx.args.partition(" ")
    text = text.strip()
    if not text:
        return error_reply("No activity specified")
    if kind not in ACTIVITY_TYPES:
        return error_reply("Invalid activity type")

    logger.debug("Activity changed to %s %r by %s", kind, text, ctx.author_name)
    return Reply(presence=PresenceChange(activity_type=kind, activity_name=text))


async def cmd_status(ctx: CommandContext) -> Reply:
    if ctx.args == "reset":
        return Reply(presence=PresenceChange(reset=True))
    if ctx.args not in STATUSES:
        return error_reply("Invalid status")
    return Reply(presence=PresenceChange(status=ctx.args))


async def cmd_add(ctx: CommandContext) -> Reply:
    from tribot.commands.registry import find_command, is_valid_command_name

    name, _, text = ctx.args.partition(" ")
    text = text.strip()
    if not name or not text:
        return error_reply(f"Usage: `{ctx.prefix}add <name> <text>`")
    if not is_valid_command_name(name):
        return error_reply("Invalid command name")
    if find_command(name) is not None:
        return error_reply(f"`{name}` is a built-in command")

    async with ctx.store.session() as state:
        state.add_custom_command(name, text)
    logger.debug("Command added: %s", name)
    return Reply(content=f":white_check_mark: Command `{name}` added")


async def cmd_rm(ctx: CommandContext) -> Reply:
    name = ctx.args
    if not name:
        return error_reply(f"Usage: `{ctx.prefix}rm <name>`")

    async with ctx.store.session() as state:
        state.remove_custom_command(name)
    logger.debug("Command removed: %s", name)
    return Reply(content=f":wastebasket: Command `{name}` removed")


# ==================== Public commands ====================

async def cmd_version(ctx: CommandContext) -> Reply:
    return Reply(content=f"TriBot v{__version__}\n<https://github.com/trimill/tribot>")


async def cmd_say(ctx: CommandContext) -> Optional[Reply]:
    if not ctx.args:
        return None
    return Reply(content=ctx.args)


async def cmd_ping(ctx: CommandContext) -> Reply:
    diff = latency_millis(ctx.sent_at) if ctx.sent_at is not None else 0
    return Reply(content=f":ping_pong: Pong! in {diff}ms")


async def cmd_count(ctx: CommandContext) -> Reply:
    now = ctx.clock() if ctx.clock is not None else None
    async with ctx.store.session() as state:
        remaining = state.count_up(ctx.author_id, now=now)
        count = state.get_count(ctx.author_id)

    if remaining == 0:
        return Reply(content=f":hash: Count increased to {count}! You can count again in 1hr.")
    return Reply(content=f":x: You must wait {timeformat(remaining)} before doing that!")


async def resolve_name(ctx: CommandContext, user_id: UserID) -> str:
    if ctx.resolve_user_name is None:
        return str(user_id)
    try:
        return await ctx.resolve_user_name(user_id)
    except Exception as exc:
        logger.warning("Could not resolve user %s: %s", user_id, exc)
        return str(user_id)


async def cmd_counttop(ctx: CommandContext) -> Reply:
    async with ctx.store.session() as state:
        ranked = state.get_count_ranked()
        own_count = state.get_count(ctx.author_id)

    top = ranked[:LEADERBOARD_SIZE]
    lines = []
    for position, (user_id, count) in enumerate(top, start=1):
        name = await resolve_name(ctx, user_id)
        lines.append(f"**#{position}** {name} (**{count}**)")

    if not any(user_id == ctx.author_id for user_id, _ in top):
        position = next((i for i, (user_id, _) in enumerate(ranked, start=1) if user_id == ctx.author_id), None)
        rank = f"#{position}" if position is not None else "#-"
        lines.append("...")
        lines.append(f"**{rank}** {ctx.author_name} (**{own_count}**)")

    return Reply(embed=EmbedSpec(
        title="Top count (global)",
        color=WEB_COLOR,
        description="\n".join(lines),
    ))


async def cmd_roll(ctx: CommandContext) -> Reply:
    expression = ctx.args
    sort = True
    if expression.startswith("nosort "):
        sort = False
        expression = expression[len("nosort "):]

    try:
        rolls = roll_dice(expression, sort)
    except DiceError as exc:
        return error_reply(f"Error rolling dice: {exc}")

    if not rolls:
        return Reply(content=":game_die: No dice rolled")

    total = sum(rolls)
    content = f":game_die: Rolls: `{', '.join(str(r) for r in rolls)}` (Sum: **{total}**)"
    if len(content) > MESSAGE_LIMIT:
        content = f":game_die: Too many rolls to display. Sum: **{total}**"
    return Reply(content=content)


async def cmd_flip(ctx: CommandContext) -> Reply:
    if not ctx.args:
        return Reply(content=f":coin: {'Heads' if flip_coin() else 'Tails'}!")
    if not ctx.args.isascii() or not ctx.args.isdigit():
        return error_reply("Invalid number of coins")

    count = int(ctx.args)
    try:
        heads, tails = flip_coins(count)
    except CoinLimitError:
        return error_reply("Too many coins")
    return Reply(content=f":coin: Flipped {count} coins, got {heads} heads and {tails} tails.")


async def cmd_eightball(ctx: CommandContext) -> Reply:
    if not ctx.args:
        return Reply(content=":8ball: You must ask the Magic Eight Ball a question.")
    return Reply(content=f":8ball: {eight_ball()}")


async def cmd_vote(ctx: CommandContext) -> Reply:
    if not ctx.args:
        return error_reply(f"No question specified. See `{ctx.prefix}help vote`.")
    return Reply(
        embed=EmbedSpec(title=ctx.args, color=ctx.poll_color, footer=ctx.author_name),
        reactions=list(VOTE_EMOJIS),
    )


async def cmd_poll(ctx: CommandContext) -> Reply:
    parts = ctx.args.split(";")
    if len(parts) < 2:
        return error_reply(f"Not enough arguments. See `{ctx.prefix}help poll`.")
    if len(parts) > MAX_POLL_OPTIONS + 1:
        return error_reply(f"Too many arguments. See `{ctx.prefix}help poll`.")

    question = parts[0].strip()
    options = [option.strip() for option in parts[1:]]
    body = "\n".join(f"{NUM_EMOJIS[i]}: {option}" for i, option in enumerate(options, start=1))
    return Reply(
        embed=EmbedSpec(title=question, description=body, color=ctx.poll_color, footer=ctx.author_name),
        reactions=[NUM_EMOJIS[i] for i in range(1, len(options) + 1)],
    )
