"""Tracks and applies the bot's Discord presence."""

from __future__ import annotations

import discord

from tribot.datatypes.command_datatypes import PresenceChange
from tribot.util.logger import get_logger

logger = get_logger("presence")

ACTIVITY_TYPE_MAP = {
    "playing": discord.ActivityType.playing,
    "listening": discord.ActivityType.listening,
    "watching": discord.ActivityType.watching,
    "competing": discord.ActivityType.competing,
}

STATUS_MAP = {
    "online": discord.Status.online,
    "idle": discord.Status.idle,
    "dnd": discord.Status.dnd,
    "invisible": discord.Status.invisible,
}


class PresenceManager:
    """Remembers the current status and activity so either can change alone.

    A :class:`PresenceChange` that only sets a status keeps the current
    activity, and vice versa. ``reset`` returns to online and the default
    activity.
    """

    def __init__(self, bot, default_activity: str, default_activity_type: str = "playing"):
        self.bot = bot
        self.default_activity = default_activity
        self.default_activity_type = default_activity_type
        self.status = "online"
        self.activity_type = default_activity_type
        self.activity_name = default_activity

    def merge(self, change: PresenceChange) -> None:
        if change.reset:
            self.status = "online"
            self.activity_type = self.default_activity_type
            self.activity_name = self.default_activity
            return
        if change.status is not None:
            self.status = change.status
        if change.activity_name is not None:
            self.activity_type = change.activity_type or self.activity_type
            self.activity_name = change.activity_name

    def build_activity(self) -> discord.Activity:
        return discord.Activity(
            type=ACTIVITY_TYPE_MAP.get(self.activity_type, discord.ActivityType.playing),
            name=self.activity_name,
        )

    async def apply(self, change: PresenceChange | None = None) -> None:
        """Merge ``change`` (if any) and push the resulting presence to Discord."""
        if change is not None:
            self.merge(change)
        logger.debug("Presence -> %s, %s %s", self.status, self.activity_type, self.activity_name)
        await self.bot.change_presence(
            status=STATUS_MAP.get(self.status, discord.Status.online),
            activity=self.build_activity(),
        )
