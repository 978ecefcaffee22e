"""
Data structures exchanged between the poll reconciler and its reaction transport.

Emojis are identified by their string form: the character itself for unicode
emojis and ``<:name:id>`` (or ``<a:name:id>``) for custom ones, which is what
``str()`` yields for every emoji type py-cord hands out.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional

from tribot.datatypes.discord_datatypes import ChannelID, MessageID, UserID


@dataclass(slots=True, frozen=True)
class ReactionEvent:
    """Notification that ``user_id`` added ``emoji`` to a message."""

    channel_id: ChannelID
    message_id: MessageID
    emoji: str
    user_id: UserID


@dataclass(slots=True, frozen=True)
class ReactorInfo:
    """Resolved account behind a reaction."""

    user_id: UserID
    bot: bool


@dataclass(slots=True)
class ReactionHandle:
    """One reaction type present on a message.

    ``source`` is the transport's own reaction object and is passed back to
    the transport untouched.
    """

    emoji: str
    source: Any = None


@dataclass(slots=True)
class FetchedMessage:
    """Snapshot of a message as returned by the transport."""

    channel_id: ChannelID
    message_id: MessageID
    author_id: UserID
    embed_colors: List[Optional[int]] = field(default_factory=list)
    reactions: List[ReactionHandle] = field(default_factory=list)
    source: Any = None

    @property
    def first_embed_color(self) -> Optional[int]:
        return self.embed_colors[0] if self.embed_colors else None


@dataclass(slots=True)
class ReconcileOutcome:
    """What a single reconciliation did.

    Attributes:
        ignored_reason: Set when the event was skipped before any reaction was inspected.
        removed: Emojis whose reaction by the user was deleted.
        failed: Emojis for which fetching reactors or deleting the reaction failed.
    """

    ignored_reason: Optional[str] = None
    removed: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)

    @property
    def ignored(self) -> bool:
        return self.ignored_reason is not None
