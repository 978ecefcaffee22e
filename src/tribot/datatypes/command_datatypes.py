"""
Command registry entries, invocation context, and reply directives.

Handlers never talk to Discord directly. They receive a :class:`CommandContext`
and return a :class:`Reply` describing what the transport should send: plain
text, an embed, reactions to add to the sent message, a presence change, and
optionally an exit code asking the process to shut down.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Awaitable, Callable, List, Optional, Tuple

from tribot.datatypes.discord_datatypes import UserID

if TYPE_CHECKING:
    from tribot.state.state_store import StateStore


NameResolver = Callable[[UserID], Awaitable[str]]
Clock = Callable[[], int]


@dataclass(slots=True)
class EmbedField:
    name: str
    value: str
    inline: bool = False


@dataclass(slots=True)
class EmbedSpec:
    """Transport-neutral description of a rich embed."""

    title: Optional[str] = None
    description: Optional[str] = None
    color: Optional[int] = None
    url: Optional[str] = None
    footer: Optional[str] = None
    fields: List[EmbedField] = field(default_factory=list)

    def add_field(self, name: str, value: str, inline: bool = False) -> "EmbedSpec":
        self.fields.append(EmbedField(name=name, value=value, inline=inline))
        return self


@dataclass(slots=True, frozen=True)
class PresenceChange:
    """Requested change of the bot's presence.

    ``status`` is one of ``online``, ``idle``, ``dnd`` or ``invisible``;
    ``activity_type`` is one of ``playing``, ``listening``, ``watching`` or
    ``competing``. ``reset`` restores the configured default presence.
    """

    status: Optional[str] = None
    activity_type: Optional[str] = None
    activity_name: Optional[str] = None
    reset: bool = False


@dataclass(slots=True)
class Reply:
    """Result of evaluating one command."""

    content: Optional[str] = None
    embed: Optional[EmbedSpec] = None
    reactions: List[str] = field(default_factory=list)
    presence: Optional[PresenceChange] = None
    exit_code: Optional[int] = None

    @property
    def has_message(self) -> bool:
        return bool(self.content) or self.embed is not None


@dataclass(slots=True, frozen=True)
class MentionedUser:
    user_id: UserID
    name: str


@dataclass(slots=True)
class CommandContext:
    """Everything a handler may use while executing a command.

    Attributes:
        store: The single owner of the bot state; handlers enter
            ``store.session()`` for every read-modify-write.
        author_id: Invoking user.
        author_name: Display name of the invoking user.
        args: Remainder of the message after the command name, trimmed.
        prefix: Command prefix, used when rendering help text.
        mentions: Users mentioned in the message, in order.
        sent_at: Timestamp of the invoking message (for ``ping``).
        resolve_user_name: Coroutine turning a user id into a display name.
            Must be awaited outside ``store.session()``.
        clock: Returns the current time in epoch milliseconds.
        poll_color: Embed colour that marks a message as a poll.
    """

    store: "StateStore"
    author_id: UserID
    author_name: str
    args: str = ""
    prefix: str = ";"
    mentions: List[MentionedUser] = field(default_factory=list)
    sent_at: Optional[datetime] = None
    resolve_user_name: Optional[NameResolver] = None
    clock: Optional[Clock] = None
    poll_color: int = 0x225599


CommandHandler = Callable[[CommandContext], Awaitable[Optional[Reply]]]


@dataclass(slots=True)
class Command:
    """Definition of a chat command.

    ``usage`` and ``examples`` are written without the prefix; help output
    adds it.
    """

    name: str
    handler: CommandHandler
    short: str
    description: str
    aliases: Tuple[str, ...] = ()
    usage: Tuple[str, ...] = ()
    examples: Tuple[str, ...] = ()
    admin_only: bool = False
