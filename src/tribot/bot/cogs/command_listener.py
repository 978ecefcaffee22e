"""Command listener Cog for TriBot.

Feeds every non-bot message into the :class:`CommandDispatcher` and turns the
returned :class:`Reply` into Discord side effects: a message (text and/or
embed), reactions on that message, a presence change, and possibly a process
exit.
"""

import discord
from discord.ext import commands

from tribot.bot.presence import PresenceManager
from tribot.commands.dispatcher import CommandDispatcher
from tribot.datatypes.command_datatypes import MentionedUser, Reply
from tribot.datatypes.discord_datatypes import UserID
from tribot.ui.console import ConsoleControl
from tribot.ui.embeds import build_embed
from tribot.util.logger import get_logger

logger = get_logger("command_listener_cog")

FAILURE_NOTICE = ":x: Something went wrong while running that command."


class CommandListenerCog(commands.Cog):
    """Cog that runs prefix commands found in incoming messages."""

    def __init__(
        self,
        discord_bot_instance,
        dispatcher: CommandDispatcher,
        control: ConsoleControl,
        presence: PresenceManager,
    ):
        self.bot = discord_bot_instance
        self.dispatcher = dispatcher
        self.control = control
        self.presence = presence
        logger.info("Command listener cog loaded")

    async def resolve_user_name(self, user_id: UserID) -> str:
        """Look a user up in the cache, then over the API, and return their name."""
        user = self.bot.get_user(user_id.to_int())
        if user is None:
            user = await self.bot.fetch_user(user_id.to_int())
        return user.name

    @commands.Cog.listener(name='on_message')
    async def on_message(self, message: discord.Message):
        if message.author.bot:
            return

        mentions = [MentionedUser(UserID.from_user(user), str(user)) for user in message.mentions]
        try:
            reply = await self.dispatcher.evaluate_command(
                message.content,
                UserID.from_user(message.author),
                message.author.name,
                mentions=mentions,
                sent_at=message.created_at,
                resolve_user_name=self.resolve_user_name,
            )
            if reply is not None:
                await self.deliver(message, reply)
        except Exception as exc:
            logger.error("Error while running '%s': %s", message.content, exc, exc_info=True)
            try:
                await message.channel.send(FAILURE_NOTICE)
            except discord.HTTPException as send_exc:
                logger.error("Could not send failure notice: %s", send_exc)

    async def deliver(self, message: discord.Message, reply: Reply) -> None:
        """Send the reply, add its reactions and apply presence; exit requests are honoured regardless."""
        try:
            if reply.has_message:
                embed = build_embed(reply.embed) if reply.embed is not None else None
                sent = await message.channel.send(content=reply.content, embed=embed)
                for emoji in reply.reactions:
                    try:
                        await sent.add_reaction(emoji)
                    except discord.HTTPException as exc:
                        logger.warning("Could not add reaction %s: %s", emoji, exc)

            if reply.presence is not None:
                try:
                    await self.presence.apply(reply.presence)
                except discord.HTTPException as exc:
                    logger.warning("Could not change presence: %s", exc)
        finally:
            if reply.exit_code is not None:
                logger.info("Command requested exit with code %d", reply.exit_code)
                await self.control.request_exit(reply.exit_code)


def setup(discord_bot_instance, dispatcher, control, presence):
    """Register the CommandListenerCog with the bot."""
    discord_bot_instance.add_cog(CommandListenerCog(discord_bot_instance, dispatcher, control, presence))
