from __future__ import annotations
from pathlib import Path
import fcntl
from typing import Any, Dict
import yaml

from tribot.util.logger import get_logger

logger = get_logger("app_configuration")


CONFIG_PATH = Path("./config/app_config.yml").resolve()

DEFAULT_COMMAND_PREFIX = ";"
DEFAULT_STATE_FILE = "data/state.json"
DEFAULT_POLL_COLOR = 0x225599
DEFAULT_REACTOR_FETCH_LIMIT = 50
DEFAULT_REQUEST_TIMEOUT = 10.0
DEFAULT_ACTIVITY = "your mother"


class AppConfig:
    """File-lock based accessor around the YAML-based application configuration.

    The class caches contents of ``./config/app_config.yml`` and exposes
    dictionary-like access helpers plus typed shortcuts for the settings the
    bot consumes. Every shortcut falls back to a default when the key is
    missing or has the wrong shape, so a missing config file still yields a
    runnable bot.
    """

    def __init__(self, config_path: Path) -> None:
        self.config_path = config_path
        self._data: Dict[str, Any] = {}
        self.reload()

    # --------------------------
    # Private helpers
    # --------------------------
    def load_from_disk(self) -> Dict[str, Any]:
        try:
            with self.config_path.open("r", encoding="utf-8") as f:
                # Acquire a shared lock for reading
                fcntl.flock(f.fileno(), fcntl.LOCK_SH)
                data = yaml.safe_load(f)

                fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        except FileNotFoundError:
            logger.error("[APP CONFIGURATION] Config file %s not found.", self.config_path)
            return {}
        except Exception as exc:
            logger.error("[APP CONFIGURATION] Failed to load config %s: %s", self.config_path, exc)
            return {}

        if not isinstance(data, dict):
            logger.error("[APP CONFIGURATION] Config %s is not a mapping; ignoring it.", self.config_path)
            return {}
        return data

    def section(self, key: str) -> Dict[str, Any]:
        value = self._data.get(key, {})
        return value if isinstance(value, dict) else {}

    # --------------------------
    # Public API
    # --------------------------
    def reload(self) -> Dict[str, Any]:
        """Reload configuration from disk and return the loaded mapping.

        Returns the raw mapping that was loaded (an empty dict on error).
        """
        self._data = self.load_from_disk()
        return self._data

    @property
    def data(self) -> Dict[str, Any]:
        """Return the current cached configuration mapping.

        The returned dict is the internal cache (shallow reference). Callers
        should not mutate it.
        """
        return self._data

    def get(self, key: str, default: Any = None) -> Any:
        """Safe lookup for top-level configuration keys."""
        return self._data.get(key, default)

    # --------------------------
    # High-level shortcuts
    # --------------------------
    @property
    def command_prefix(self) -> str:
        """Prefix that marks a chat message as a command (default ``;``)."""
        value = self._data.get("command_prefix")
        return str(value) if value else DEFAULT_COMMAND_PREFIX

    @property
    def state_file(self) -> Path:
        """Path of the persisted state snapshot, relative to the working directory."""
        value = self.section("state").get("file")
        return Path(str(value)) if value else Path(DEFAULT_STATE_FILE)

    @property
    def log_level(self) -> str:
        return str(self.section("logging").get("level") or "info")

    @property
    def poll_color(self) -> int:
        """Embed colour that tags a bot message as a poll."""
        value = self.section("polls").get("color", DEFAULT_POLL_COLOR)
        try:
            return int(value, 0) if isinstance(value, str) else int(value)
        except (TypeError, ValueError):
            logger.warning("[APP CONFIGURATION] Invalid poll color %r; using default.", value)
            return DEFAULT_POLL_COLOR

    @property
    def reactor_fetch_limit(self) -> int:
        """Maximum number of reactors fetched per emoji while reconciling a poll."""
        try:
            return int(self.section("polls").get("reactor_fetch_limit", DEFAULT_REACTOR_FETCH_LIMIT))
        except (TypeError, ValueError):
            return DEFAULT_REACTOR_FETCH_LIMIT

    @property
    def request_timeout(self) -> float:
        """Seconds allowed for each reaction/message request made by the poll transport."""
        try:
            return float(self.section("polls").get("request_timeout_seconds", DEFAULT_REQUEST_TIMEOUT))
        except (TypeError, ValueError):
            return DEFAULT_REQUEST_TIMEOUT

    @property
    def default_activity(self) -> str:
        return str(self.section("presence").get("activity") or DEFAULT_ACTIVITY)

    @property
    def console_enabled(self) -> bool:
        return bool(self.section("console").get("enabled", True))


# Shared application-wide configuration instance
app_config = AppConfig(CONFIG_PATH)
