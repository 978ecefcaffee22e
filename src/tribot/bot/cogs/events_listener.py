"""Event listener Cog for TriBot.

Handles bot lifecycle events. Messages and reactions are handled by the
CommandListenerCog and PollListenerCog.
"""

from discord.ext import commands

from tribot.bot.presence import PresenceManager
from tribot.util.logger import get_logger

logger = get_logger("events_listener_cog")


class EventsListenerCog(commands.Cog):
    """Cog containing bot lifecycle handlers."""

    def __init__(self, discord_bot_instance, presence: PresenceManager):
        """Initialize the events listener cog.

        Parameters
        ----------
        discord_bot_instance:
            The Discord bot instance to attach this cog to.
        presence:
            Presence manager holding the configured default activity.
        """
        self.bot = discord_bot_instance
        self.presence = presence
        logger.info("Events listener cog loaded")

    @commands.Cog.listener(name='on_ready')
    async def on_ready(self):
        """Apply the current presence and report the connection."""
        if self.bot.user:
            await self.presence.apply()
            logger.info(f"Bot connected as {self.bot.user} (ID: {self.bot.user.id})")
            logger.info(f"Serving {len(self.bot.guilds)} guild(s)")
        else:
            logger.warning("Bot partially connected, but user information not yet available.")

        logger.info("--==--==--==--==--==--==--==--==--==--==--==--==--==--==--==--==--")


def setup(discord_bot_instance, presence):
    """Register the EventsListenerCog with the bot.

    Parameters
    ----------
    discord_bot_instance:
        The Discord bot instance to add this cog to.
    presence:
        Presence manager shared with the command listener.
    """
    discord_bot_instance.add_cog(EventsListenerCog(discord_bot_instance, presence))
