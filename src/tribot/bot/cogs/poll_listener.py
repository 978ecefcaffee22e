"""Poll listener Cog for TriBot.

Uses the raw reaction event so reactions on messages outside the client cache
(older polls) are still reconciled.
"""

import discord
from discord.ext import commands

from tribot.datatypes.discord_datatypes import ChannelID, MessageID, UserID
from tribot.datatypes.poll_datatypes import ReactionEvent
from tribot.polls.poll_reconciler import PollReconciler
from tribot.util.logger import get_logger

logger = get_logger("poll_listener_cog")


class PollListenerCog(commands.Cog):
    """Cog forwarding reaction-add events to the poll reconciler."""

    def __init__(self, discord_bot_instance, reconciler: PollReconciler):
        self.bot = discord_bot_instance
        self.reconciler = reconciler
        logger.info("Poll listener cog loaded")

    @commands.Cog.listener(name='on_raw_reaction_add')
    async def on_raw_reaction_add(self, payload: discord.RawReactionActionEvent):
        event = ReactionEvent(
            channel_id=ChannelID(payload.channel_id),
            message_id=MessageID(payload.message_id),
            emoji=str(payload.emoji),
            user_id=UserID(payload.user_id),
        )
        outcome = await self.reconciler.reconcile_poll_reaction(event)
        if outcome.ignored:
            logger.debug("Reaction %s on %s ignored: %s", event.emoji, event.message_id, outcome.ignored_reason)
        elif outcome.failed:
            logger.warning("Poll %s: could not reconcile %s", event.message_id, ", ".join(outcome.failed))


def setup(discord_bot_instance, reconciler):
    """Register the PollListenerCog with the bot."""
    discord_bot_instance.add_cog(PollListenerCog(discord_bot_instance, reconciler))
