"""
Chat command dispatcher.

Turns raw message text into a :class:`Reply`:

1. Parse ``<prefix><name> <args>``; names containing ``()[]{};.,:`` are ignored.
2. Silently drop commands from banned users.
3. Resolve the name through the registry; admin-only commands answer
   non-admins with a "not authorised" message.
4. Unknown names fall back to the custom command table.
5. Write the state back if the command changed it.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional

from tribot.commands import registry
from tribot.datatypes.command_datatypes import (
    Clock,
    Command,
    CommandContext,
    MentionedUser,
    NameResolver,
    Reply,
)
from tribot.datatypes.discord_datatypes import UserID
from tribot.state.state_store import StateSaveError, StateStore
from tribot.util.logger import get_logger

logger = get_logger("command_dispatcher")

NOT_AUTHORISED = ":x: You aren't authorised to do that!"


@dataclass(slots=True, frozen=True)
class ParsedCommand:
    name: str
    args: str


def parse_command(raw_text: str, prefix: str) -> Optional[ParsedCommand]:
    """Split a message into command name and argument text.

    Returns ``None`` when the text is not a command: it lacks the prefix, has
    no name, or the name contains a forbidden character.
    """
    content = raw_text.strip()
    if not content.startswith(prefix):
        return None

    parts = content[len(prefix):].split(maxsplit=1)
    if not parts or not registry.is_valid_command_name(parts[0]):
        return None
    args = parts[1].strip() if len(parts) > 1 else ""
    return ParsedCommand(name=parts[0], args=args)


class CommandDispatcher:
    """Entry point for chat commands; owns no state beyond the store reference."""

    def __init__(
        self,
        store: StateStore,
        prefix: str = ";",
        poll_color: int = 0x225599,
        commands: Iterable[Command] | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.store = store
        self.prefix = prefix
        self.poll_color = poll_color
        self.clock = clock
        if commands is None:
            self.command_table = registry.COMMAND_TABLE
        else:
            self.command_table = {key: cmd for cmd in commands for key in (cmd.name, *cmd.aliases)}

    def find_command(self, name: str) -> Optional[Command]:
        return self.command_table.get(name)

    async def evaluate_command(
        self,
        raw_text: str,
        author_id: UserID | int,
        author_name: str = "",
        *,
        mentions: List[MentionedUser] | None = None,
        sent_at: datetime | None = None,
        resolve_user_name: NameResolver | None = None,
    ) -> Optional[Reply]:
        """Evaluate one chat message and return what to send back.

        Parameters
        ----------
        raw_text:
            Full message content.
        author_id:
            Sender of the message.
        author_name:
            Display name of the sender, used in replies.
        mentions:
            Users mentioned in the message, in order.
        sent_at:
            Message timestamp.
        resolve_user_name:
            Coroutine resolving user ids to display names.

        Returns
        -------
        Reply | None
            ``None`` when the message is not a command, the sender is banned,
            or the command has nothing to say. ``Reply.exit_code`` set means
            the process should shut down.
        """
        parsed = parse_command(raw_text, self.prefix)
        if parsed is None:
            return None

        author_id = UserID(author_id)
        async with self.store.session() as state:
            banned = state.is_banned(author_id)
            admin = state.is_admin(author_id)
        if banned:
            logger.debug("Ignoring command '%s' from banned user %s", parsed.name, author_id)
            return None

        logger.debug("Command '%s' from %s (%s)", parsed.name, author_name, author_id)
        ctx = CommandContext(
            store=self.store,
            author_id=author_id,
            author_name=author_name,
            args=parsed.args,
            prefix=self.prefix,
            mentions=list(mentions or []),
            sent_at=sent_at,
            resolve_user_name=resolve_user_name,
            clock=self.clock,
            poll_color=self.poll_color,
        )

        try:
            command = self.find_command(parsed.name)
            if command is None:
                return await self.run_custom_command(ctx, parsed.name)
            if command.admin_only and not admin:
                return Reply(content=NOT_AUTHORISED)
            return await command.handler(ctx)
        finally:
            await self.save_state()

    async def run_custom_command(self, ctx: CommandContext, name: str) -> Reply:
        async with self.store.session() as state:
            text = state.run_custom_command(name)
        if text is None:
            return Reply(content=f":x: Invalid command. Use `{self.prefix}help` for help.")
        return Reply(content=f"{ctx.author_name}: {text}")

    async def save_state(self) -> bool:
        """Write back dirty state; failures are logged and the state stays dirty."""
        try:
            return await self.store.save_if_dirty()
        except StateSaveError as exc:
            logger.error("Attempt to save dirty state failed: %s", exc)
            return False
