"""
Exclusive-choice poll reconciliation.

A poll is any message authored by the bot whose first embed carries the poll
colour. When a user adds a reaction to a poll, every other reaction of theirs
on that message is removed, so each user holds at most one option.

There is no local poll object: the live reaction list fetched from the
transport is the source of truth on every event. The transport offers no
atomic read-then-delete, so two reconciliations racing on the same message can
briefly leave a user holding two options; each later event cleans up again.
This is best-effort and is intentionally not serialized behind a local lock.
"""

from __future__ import annotations

from typing import List, Protocol

from tribot.datatypes.discord_datatypes import ChannelID, MessageID, UserID
from tribot.datatypes.poll_datatypes import (
    FetchedMessage,
    ReactionEvent,
    ReactionHandle,
    ReactorInfo,
    ReconcileOutcome,
)
from tribot.util.logger import get_logger

logger = get_logger("poll_reconciler")

DEFAULT_REACTOR_FETCH_LIMIT = 50


class ReactionTransport(Protocol):
    """Capabilities the reconciler needs from the chat transport.

    Every coroutine may raise; the reconciler treats any exception
    (timeouts included) as a failure of that single step.
    """

    @property
    def self_user_id(self) -> UserID | None: ...

    async def fetch_user(self, user_id: UserID) -> ReactorInfo: ...

    async def fetch_message(self, channel_id: ChannelID, message_id: MessageID) -> FetchedMessage: ...

    async def fetch_reaction_users(
        self, message: FetchedMessage, reaction: ReactionHandle, limit: int
    ) -> List[UserID]: ...

    async def remove_user_reaction(
        self, message: FetchedMessage, reaction: ReactionHandle, user_id: UserID
    ) -> None: ...


class PollReconciler:
    """Keep each user's reactions on bot-authored polls mutually exclusive."""

    def __init__(
        self,
        transport: ReactionTransport,
        poll_color: int,
        reactor_fetch_limit: int = DEFAULT_REACTOR_FETCH_LIMIT,
    ) -> None:
        self.transport = transport
        self.poll_color = poll_color
        self.reactor_fetch_limit = reactor_fetch_limit

    def is_poll(self, message: FetchedMessage, bot_id: UserID) -> bool:
        """Bot-authored, has an embed, and the first embed uses the poll colour."""
        return (
            message.author_id == bot_id
            and bool(message.embed_colors)
            and message.first_embed_color == self.poll_color
        )

    async def reconcile_poll_reaction(self, event: ReactionEvent) -> ReconcileOutcome:
        """Remove ``event.user_id``'s other option reactions on a poll message.

        Parameters
        ----------
        event:
            The reaction that was just added.

        Returns
        -------
        ReconcileOutcome
            Which emojis were removed or failed, or why the event was ignored.
        """
        bot_id = self.transport.self_user_id
        if bot_id is None:
            logger.warning("Bot user not available yet; ignoring reaction on message %s", event.message_id)
            return ReconcileOutcome(ignored_reason="bot not ready")
        if event.user_id == bot_id:
            return ReconcileOutcome(ignored_reason="own reaction")

        try:
            reactor = await self.transport.fetch_user(event.user_id)
        except Exception as exc:
            logger.warning("Could not get reactor user %s: %s", event.user_id, exc)
            return ReconcileOutcome(ignored_reason="reactor unavailable")
        if reactor.bot:
            return ReconcileOutcome(ignored_reason="reactor is a bot")

        try:
            message = await self.transport.fetch_message(event.channel_id, event.message_id)
        except Exception as exc:
            logger.warning("Could not get reaction message %s: %s", event.message_id, exc)
            return ReconcileOutcome(ignored_reason="message unavailable")
        if not self.is_poll(message, bot_id):
            return ReconcileOutcome(ignored_reason="not a poll")

        outcome = ReconcileOutcome()
        for reaction in message.reactions:
            if reaction.emoji == event.emoji:
                continue

            try:
                reactors = await self.transport.fetch_reaction_users(message, reaction, self.reactor_fetch_limit)
            except Exception as exc:
                logger.warning("Error retrieving reactions for %s on message %s: %s", reaction.emoji, message.message_id, exc)
                outcome.failed.append(reaction.emoji)
                continue

            if event.user_id not in reactors:
                continue

            try:
                await self.transport.remove_user_reaction(message, reaction, event.user_id)
            except Exception as exc:
                logger.warning("Could not remove reaction %s from user %s: %s", reaction.emoji, event.user_id, exc)
                outcome.failed.append(reaction.emoji)
                continue

            logger.debug("Removed reaction %s from user %s on poll %s", reaction.emoji, event.user_id, message.message_id)
            outcome.removed.append(reaction.emoji)

        return outcome
