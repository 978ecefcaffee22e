"""py-cord implementation of :class:`~tribot.polls.poll_reconciler.ReactionTransport`."""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, List, TypeVar

import discord

from tribot.datatypes.discord_datatypes import ChannelID, MessageID, UserID
from tribot.datatypes.poll_datatypes import FetchedMessage, ReactionHandle, ReactorInfo

T = TypeVar("T")


def embed_color_value(embed: discord.Embed) -> int | None:
    colour = getattr(embed, "colour", None)
    return getattr(colour, "value", None)


class DiscordReactionTransport:
    """Reaction queries and deletions against the Discord API.

    Every request is bounded by ``timeout`` seconds; a timeout surfaces as
    :class:`asyncio.TimeoutError` like any other transport failure.
    """

    def __init__(self, bot: discord.Bot, timeout: float = 10.0) -> None:
        self.bot = bot
        self.timeout = timeout

    async def _bounded(self, awaitable: Awaitable[T]) -> T:
        return await asyncio.wait_for(awaitable, timeout=self.timeout)

    @property
    def self_user_id(self) -> UserID | None:
        user = self.bot.user
        return UserID(user.id) if user is not None else None

    async def fetch_user(self, user_id: UserID) -> ReactorInfo:
        user = self.bot.get_user(user_id.to_int())
        if user is None:
            user = await self._bounded(self.bot.fetch_user(user_id.to_int()))
        return ReactorInfo(user_id=UserID(user.id), bot=bool(user.bot))

    async def fetch_message(self, channel_id: ChannelID, message_id: MessageID) -> FetchedMessage:
        channel: Any = self.bot.get_channel(channel_id.to_int())
        if channel is None:
            channel = await self._bounded(self.bot.fetch_channel(channel_id.to_int()))
        message: discord.Message = await self._bounded(channel.fetch_message(message_id.to_int()))
        return FetchedMessage(
            channel_id=channel_id,
            message_id=MessageID(message.id),
            author_id=UserID(message.author.id),
            embed_colors=[embed_color_value(embed) for embed in message.embeds],
            reactions=[ReactionHandle(emoji=str(reaction.emoji), source=reaction) for reaction in message.reactions],
            source=message,
        )

    async def fetch_reaction_users(
        self, message: FetchedMessage, reaction: ReactionHandle, limit: int
    ) -> List[UserID]:
        async def collect() -> List[UserID]:
            return [UserID(user.id) async for user in reaction.source.users(limit=limit)]

        return await self._bounded(collect())

    async def remove_user_reaction(
        self, message: FetchedMessage, reaction: ReactionHandle, user_id: UserID
    ) -> None:
        await self._bounded(message.source.remove_reaction(reaction.source.emoji, discord.Object(id=user_id.to_int())))
