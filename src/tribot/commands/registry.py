"""
Command registry: every built-in command, its aliases and its help text.

Alias resolution is a pure lookup over :data:`COMMANDS`; the dispatcher never
branches on command names itself.
"""

from __future__ import annotations

from typing import Dict, Optional

from tribot.commands import handlers
from tribot.datatypes.command_datatypes import Command, CommandContext, EmbedSpec, Reply

FORBIDDEN_NAME_CHARS = frozenset("()[]{};.,:")


def is_valid_command_name(name: str) -> bool:
    return bool(name) and not any(char in FORBIDDEN_NAME_CHARS for char in name)


# ==================== Help ====================

def format_list(values, prefix: str, separator: str) -> str:
    return separator.join(f"`{prefix}{value}`" for value in values)


async def cmd_help(ctx: CommandContext) -> Reply:
    if ctx.args:
        return help_for_command(ctx, ctx.args)

    body = "\n".join(
        f"`{ctx.prefix}{cmd.usage[0]}`: {cmd.short}"
        for cmd in COMMANDS
        if not cmd.admin_only
    )
    return Reply(embed=EmbedSpec(title="TriBot Help", color=handlers.HELP_COLOR, description=body))


def help_for_command(ctx: CommandContext, name: str) -> Reply:
    cmd = find_command(name)
    if cmd is None or cmd.admin_only:
        return handlers.error_reply(f"Unknown command `{name}`")

    embed = EmbedSpec(title=f"Help for command `{cmd.name}`", color=handlers.HELP_COLOR)
    if cmd.aliases:
        embed.add_field("Aliases", format_list(cmd.aliases, "", " | "))
    embed.add_field("Usage", format_list(cmd.usage, ctx.prefix, " | "))
    embed.add_field("Description", cmd.description)
    if cmd.examples:
        embed.add_field("Examples", format_list(cmd.examples, ctx.prefix, "\n"))
    return Reply(embed=embed)


# ==================== Command Registry ====================

COMMANDS: list[Command] = [
    Command(
        name="version",
        handler=handlers.cmd_version,
        short="Show version information",
        description="Show version information.",
        usage=("version",),
    ),
    Command(
        name="say",
        handler=handlers.cmd_say,
        short="Make the bot say something",
        description="Make the bot say something.",
        usage=("say <message>",),
    ),
    Command(
        name="ping",
        handler=handlers.cmd_ping,
        aliases=("pong",),
        short="Ping the bot, showing the ping time",
        description="Ping the bot, showing the time between sending the message and the bot receiving it.",
        usage=("ping",),
    ),
    Command(
        name="count",
        handler=handlers.cmd_count,
        short="Increase your count by 1",
        description="Increase your count by 1. This can be done once per hour per user. "
                    "View the global leaderboard with `counttop`.",
        usage=("count",),
    ),
    Command(
        name="counttop",
        handler=handlers.cmd_counttop,
        short="View the top players by count",
        description="View the top players by count, as well as your place on the leaderboard.",
        usage=("counttop",),
    ),
    Command(
        name="roll",
        handler=handlers.cmd_roll,
        aliases=("dice",),
        short="Roll dice",
        description="Roll dice. Supports dice with arbitrary sides and constants. "
                    "See <https://en.wikipedia.org/wiki/Dice_notation> for dice notation information. "
                    "Results are sorted unless the expression starts with `nosort`. "
                    "Total number of dice must not exceed 2048.",
        usage=("roll <dice>", "roll nosort <dice>"),
        examples=("roll 2d6", "roll 1d20-1", "roll 2d8+1d6"),
    ),
    Command(
        name="flip",
        handler=handlers.cmd_flip,
        aliases=("coinflip",),
        short="Flip coins",
        description="Flip the number of coins specified, or one by default. Number of coins must not exceed 2048.",
        usage=("flip", "flip <n>"),
        examples=("flip 6", "flip"),
    ),
    Command(
        name="8ball",
        handler=handlers.cmd_eightball,
        aliases=("eightball",),
        short="Ask the Magic Eight Ball a question",
        description="Ask the Magic Eight Ball a yes/no question, returning an extremely accurate answer.",
        usage=("8ball <question>",),
        examples=("8ball will it rain tomorrow?",),
    ),
    Command(
        name="vote",
        handler=handlers.cmd_vote,
        short="Create a poll with two options",
        description="Create a poll with the options :arrow_up: and :arrow_down:. Users may only select one option.",
        usage=("vote <question>",),
        examples=("vote Are waffles better than pancakes?",),
    ),
    Command(
        name="poll",
        handler=handlers.cmd_poll,
        short="Create a poll with multiple options",
        description="Create a poll with multiple options. Arguments are separated by semicolons, and the first "
                    "argument is the poll question. Number of options must be between 1 and 9 inclusive. "
                    "Users may only select one option.",
        usage=("poll <question>;<options...>",),
        examples=("poll Best breakfast food; Waffles; Pancakes; Toast",),
    ),
    Command(
        name="help",
        handler=cmd_help,
        aliases=("?",),
        short="Show help",
        description="Show help for a specific command, or show a list of commands if no command is specified.",
        usage=("help", "help <cmd>"),
        examples=("help", "help roll", "help help"),
    ),
    # Admin only
    Command(
        name="force_save",
        handler=handlers.cmd_force_save,
        short="Write the state file now",
        description="Mark the state as changed so it is written back after this command.",
        usage=("force_save",),
        admin_only=True,
    ),
    Command(
        name="stop",
        handler=handlers.cmd_stop,
        short="Stop the bot",
        description="Save state and shut the bot down.",
        usage=("stop",),
        admin_only=True,
    ),
    Command(
        name="restart",
        handler=handlers.cmd_restart,
        short="Restart the bot",
        description="Save state and restart the bot process.",
        usage=("restart",),
        admin_only=True,
    ),
    Command(
        name="ban",
        handler=handlers.cmd_ban,
        short="Ban a user from using the bot",
        description="Ban the first mentioned user from using any command. Admins cannot be banned.",
        usage=("ban <@user>",),
        admin_only=True,
    ),
    Command(
        name="unban",
        handler=handlers.cmd_unban,
        short="Unban a user",
        description="Allow the first mentioned user to use commands again.",
        usage=("unban <@user>",),
        admin_only=True,
    ),
    Command(
        name="activity",
        handler=handlers.cmd_activity,
        short="Change the bot's activity",
        description="Set the bot's activity (playing, listening, watching or competing), or reset it.",
        usage=("activity <type> <text>", "activity reset"),
        admin_only=True,
    ),
    Command(
        name="status",
        handler=handlers.cmd_status,
        short="Change the bot's status",
        description="Set the bot's status to online, idle, dnd or invisible, or reset it.",
        usage=("status <status>", "status reset"),
        admin_only=True,
    ),
    Command(
        name="add",
        handler=handlers.cmd_add,
        short="Add a custom command",
        description="Add or replace a custom command that replies with the given text.",
        usage=("add <name> <text>",),
        admin_only=True,
    ),
    Command(
        name="rm",
        handler=handlers.cmd_rm,
        short="Remove a custom command",
        description="Remove a custom command. Removing an unknown command does nothing.",
        usage=("rm <name>",),
        admin_only=True,
    ),
]

COMMAND_TABLE: Dict[str, Command] = {
    key: cmd for cmd in COMMANDS for key in (cmd.name, *cmd.aliases)
}


def find_command(name: str) -> Optional[Command]:
    """Look up a built-in command by name or alias."""
    return COMMAND_TABLE.get(name)
