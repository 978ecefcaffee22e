"""
Persistent bot state: moderation lists, rate-limited counters and custom commands.

Responsibilities:
- Hold the authoritative in-memory :class:`StateSnapshot` for the process lifetime
- Enforce the ban/admin invariants and the per-user counter cooldown
- Write the whole snapshot back to a single JSON file when it is dirty

Persistence format (one JSON object, unknown keys ignored, missing keys defaulted)::

    {
      "banned": [123, ...],
      "admins": [456, ...],
      "counters": {"123": 4, ...},
      "cooldowns": {"123": 1700000000000, ...},
      "custom_commands": {"hello": "world", ...}
    }

Write-back truncates and rewrites the file in place. A crash in the middle of a
write can leave a corrupt file; this is accepted for non-critical bot state.

Concurrency: :class:`StateStore` is the single owner of the snapshot. Every
read-modify-write (``ban``, ``count_up``, saving) must happen inside one
``async with store.session()`` block. Never hold the session across network
calls.
"""

from __future__ import annotations

import asyncio
import json
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, AsyncIterator, Dict, List, Optional, Set, Tuple

from tribot.datatypes.discord_datatypes import UserID
from tribot.util.format_utils import now_millis
from tribot.util.logger import get_logger

logger = get_logger("state_store")

COOLDOWN_WINDOW_MS = 60 * 60 * 1000


# ==================== Errors ====================

class StateError(Exception):
    """Base class for state failures; ``user_message`` is safe to show in chat."""

    default_message = "State error"

    def __init__(self, user_message: str | None = None) -> None:
        self.user_message = user_message or self.default_message
        super().__init__(self.user_message)


class AlreadyBannedError(StateError):
    default_message = "User is already banned"


class AdminProtectedError(StateError):
    default_message = "Cannot ban an admin"


class NotBannedError(StateError):
    default_message = "User is not banned"


class StateLoadError(StateError):
    default_message = "Could not load state"


class StateFileError(StateLoadError):
    default_message = "Could not open file"


class StateParseError(StateLoadError):
    default_message = "Could not parse file"


class StateSaveError(StateError):
    default_message = "Could not save state"


# ==================== Snapshot ====================

def _parse_id_list(data: Dict[str, Any], key: str) -> Set[UserID]:
    raw = data.get(key, [])
    if not isinstance(raw, list):
        raise StateParseError(f"Could not parse file: '{key}' must be a list")
    try:
        return {UserID(value) for value in raw}
    except (TypeError, ValueError) as exc:
        raise StateParseError(f"Could not parse file: bad user id in '{key}': {exc}") from exc


def _parse_id_map(data: Dict[str, Any], key: str) -> Dict[UserID, int]:
    raw = data.get(key, {})
    if not isinstance(raw, dict):
        raise StateParseError(f"Could not parse file: '{key}' must be an object")
    parsed: Dict[UserID, int] = {}
    for user, value in raw.items():
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise StateParseError(f"Could not parse file: '{key}' value for {user} must be a non-negative integer")
        try:
            parsed[UserID(user)] = value
        except ValueError as exc:
            raise StateParseError(f"Could not parse file: bad user id in '{key}': {exc}") from exc
    return parsed


@dataclass(slots=True)
class StateSnapshot:
    """The complete bot state, loaded and saved as one unit.

    Attributes:
        banned: Users barred from issuing any command.
        admins: Users exempt from bans and allowed to run privileged commands.
        counters: Per-user counts; they only ever increase.
        cooldowns: Epoch millis of each user's last counter increment.
        custom_commands: User-defined command name -> reply text (case-sensitive).
        source_path: File the snapshot is written back to (not persisted).
        dirty: Whether there are mutations not yet written back (not persisted).
    """

    banned: Set[UserID] = field(default_factory=set)
    admins: Set[UserID] = field(default_factory=set)
    counters: Dict[UserID, int] = field(default_factory=dict)
    cooldowns: Dict[UserID, int] = field(default_factory=dict)
    custom_commands: Dict[str, str] = field(default_factory=dict)
    source_path: Optional[Path] = field(default=None, compare=False)
    dirty: bool = field(default=False, compare=False)

    # --------------------------
    # Loading / serialization
    # --------------------------
    @classmethod
    def from_dict(cls, data: Any) -> "StateSnapshot":
        """Build a snapshot from decoded JSON, defaulting every missing key."""
        if not isinstance(data, dict):
            raise StateParseError("Could not parse file: top level must be an object")

        custom = data.get("custom_commands", {})
        if not isinstance(custom, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in custom.items()
        ):
            raise StateParseError("Could not parse file: 'custom_commands' must map strings to strings")

        snapshot = cls(
            banned=_parse_id_list(data, "banned"),
            admins=_parse_id_list(data, "admins"),
            counters=_parse_id_map(data, "counters"),
            cooldowns=_parse_id_map(data, "cooldowns"),
            custom_commands=dict(custom),
        )

        conflicting = snapshot.banned & snapshot.admins
        if conflicting:
            logger.warning(
                "[STATE] Dropping %d admin(s) found in the ban list: %s",
                len(conflicting), ", ".join(sorted(str(u) for u in conflicting)),
            )
            snapshot.banned -= conflicting
            snapshot.dirty = True
        return snapshot

    def to_dict(self) -> Dict[str, Any]:
        """Return the persisted fields as a JSON-compatible mapping."""
        return {
            "banned": sorted(user.to_int() for user in self.banned),
            "admins": sorted(user.to_int() for user in self.admins),
            "counters": {str(user): count for user, count in sorted(self.counters.items())},
            "cooldowns": {str(user): stamp for user, stamp in sorted(self.cooldowns.items())},
            "custom_commands": dict(sorted(self.custom_commands.items())),
        }

    @classmethod
    def load(cls, path: Path | str) -> "StateSnapshot":
        """Read a snapshot from ``path`` and remember the path for write-back.

        Raises:
            StateFileError: The file cannot be opened or read.
            StateParseError: The file is not a valid snapshot.
        """
        path = Path(path)
        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise StateFileError(f"Could not open file {path}: {exc}") from exc

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise StateParseError(f"Could not parse file {path}: {exc}") from exc

        snapshot = cls.from_dict(data)
        snapshot.source_path = path
        logger.info(
            "[STATE] Loaded %s (%d banned, %d admins, %d counters, %d custom commands)",
            path, len(snapshot.banned), len(snapshot.admins),
            len(snapshot.counters), len(snapshot.custom_commands),
        )
        return snapshot

    @classmethod
    def load_or_create(cls, path: Path | str) -> "StateSnapshot":
        """Like :meth:`load`, but a missing file yields a dirty default snapshot bound to ``path``."""
        path = Path(path)
        if not path.exists():
            logger.warning("[STATE] State file %s does not exist; starting from an empty state.", path)
            return cls(source_path=path, dirty=True)
        return cls.load(path)

    # --------------------------
    # Moderation lists
    # --------------------------
    def ban(self, user: UserID | int) -> None:
        """Add ``user`` to the ban list.

        Raises:
            AdminProtectedError: ``user`` is an admin.
            AlreadyBannedError: ``user`` is already banned.
        """
        user = UserID(user)
        if user in self.admins:
            raise AdminProtectedError()
        if user in self.banned:
            raise AlreadyBannedError()
        self.banned.add(user)
        self.dirty = True

    def unban(self, user: UserID | int) -> None:
        """Remove ``user`` from the ban list.

        Raises:
            NotBannedError: ``user`` is not banned.
        """
        user = UserID(user)
        if user not in self.banned:
            raise NotBannedError()
        self.banned.discard(user)
        self.dirty = True

    def is_admin(self, user: UserID | int) -> bool:
        return UserID(user) in self.admins

    def is_banned(self, user: UserID | int) -> bool:
        return UserID(user) in self.banned

    # --------------------------
    # Counters
    # --------------------------
    def count_up(self, user: UserID | int, now: int | None = None) -> int:
        """Increment ``user``'s counter unless they are still cooling down.

        Returns ``0`` when the counter was incremented, otherwise the number of
        milliseconds left before the next increment is allowed (always > 0).
        """
        user = UserID(user)
        now = now_millis() if now is None else now
        last = self.cooldowns.get(user)
        if last is not None:
            elapsed = now - last
            if elapsed <= COOLDOWN_WINDOW_MS:
                return max(COOLDOWN_WINDOW_MS - elapsed, 1)

        self.counters[user] = self.counters.get(user, 0) + 1
        self.cooldowns[user] = now
        self.dirty = True
        return 0

    def get_count(self, user: UserID | int) -> int:
        return self.counters.get(UserID(user), 0)

    def get_count_ranked(self) -> List[Tuple[UserID, int]]:
        """All counted users, highest count first; ties ordered by user id ascending."""
        return sorted(self.counters.items(), key=lambda item: (-item[1], item[0].to_int()))

    # --------------------------
    # Custom commands
    # --------------------------
    def add_custom_command(self, name: str, text: str) -> None:
        self.custom_commands[name] = text
        self.dirty = True

    def remove_custom_command(self, name: str) -> None:
        self.custom_commands.pop(name, None)
        self.dirty = True

    def run_custom_command(self, name: str) -> Optional[str]:
        return self.custom_commands.get(name)

    # --------------------------
    # Persistence
    # --------------------------
    def force_dirty(self) -> None:
        self.dirty = True

    def save_if_dirty(self) -> bool:
        """Write the snapshot to ``source_path`` if it has unsaved changes.

        Returns:
            ``True`` if the file was written, ``False`` if nothing was dirty.

        Raises:
            StateSaveError: No path is set or the write failed. The snapshot
                stays dirty so a later call can retry.
        """
        if not self.dirty:
            return False
        if self.source_path is None:
            raise StateSaveError("No file set")

        payload = json.dumps(self.to_dict(), indent=2)
        try:
            self.source_path.parent.mkdir(parents=True, exist_ok=True)
            with self.source_path.open("w", encoding="utf-8") as f:
                f.write(payload)
        except OSError as exc:
            raise StateSaveError(f"Could not write {self.source_path}: {exc}") from exc

        self.dirty = False
        return True


# ==================== Owner ====================

class StateStore:
    """Single owner of the :class:`StateSnapshot`, guarded by one asyncio lock.

    Quick usage example::

        async with store.session() as state:
            remaining = state.count_up(user_id)
            count = state.get_count(user_id)
        await store.save_if_dirty()
    """

    def __init__(self, snapshot: StateSnapshot | None = None) -> None:
        self._snapshot = snapshot if snapshot is not None else StateSnapshot()
        self._lock = asyncio.Lock()

    @classmethod
    def open(cls, path: Path | str) -> "StateStore":
        """Load (or create) the snapshot at ``path`` and wrap it in a store."""
        return cls(StateSnapshot.load_or_create(path))

    @asynccontextmanager
    async def session(self) -> AsyncIterator[StateSnapshot]:
        """Hold exclusive access to the snapshot for the duration of the block."""
        async with self._lock:
            yield self._snapshot

    @property
    def locked(self) -> bool:
        return self._lock.locked()

    async def is_banned(self, user: UserID | int) -> bool:
        async with self.session() as state:
            return state.is_banned(user)

    async def is_admin(self, user: UserID | int) -> bool:
        async with self.session() as state:
            return state.is_admin(user)

    async def save_if_dirty(self) -> bool:
        """Write back the snapshot if dirty, without blocking the event loop.

        The lock is held for the whole write so no mutation can interleave.

        Raises:
            StateSaveError: The write failed; the snapshot stays dirty.
        """
        async with self._lock:
            saved = await asyncio.to_thread(self._snapshot.save_if_dirty)
        if saved:
            logger.info("[STATE] State saved to %s", self._snapshot.source_path)
        return saved
