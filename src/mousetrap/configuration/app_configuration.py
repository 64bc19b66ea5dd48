from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
import fcntl
from typing import Any, Dict, FrozenSet
import yaml

from mousetrap.util.logger import get_logger

logger = get_logger("app_configuration")


CONFIG_PATH = Path("./config/app_config.yml").resolve()

DEFAULT_GUARD_CONFIG_PATH = "data/mousetrap-config.json"
DEFAULT_BAN_REASON = "Triggered the anti-spam mousetrap channel."
DEFAULT_DELETE_MESSAGE_SECONDS = 3600
DEFAULT_LOG_CONTENT_LIMIT = 1018
DEFAULT_IMMUNE_PERMISSIONS: FrozenSet[str] = frozenset({"manage_messages"})

# Discord caps ban message purges at seven days
MAX_DELETE_MESSAGE_SECONDS = 7 * 24 * 60 * 60
# Leaves room for the code fence inside a 1024 character embed field
MAX_LOG_CONTENT_LIMIT = 1018


@dataclass(frozen=True, slots=True)
class GuardSettings:
    """Tunable behaviour of the mousetrap guard."""

    config_path: Path = field(default_factory=lambda: Path(DEFAULT_GUARD_CONFIG_PATH).resolve())
    ban_reason: str = DEFAULT_BAN_REASON
    delete_message_seconds: int = DEFAULT_DELETE_MESSAGE_SECONDS
    log_content_limit: int = DEFAULT_LOG_CONTENT_LIMIT
    immune_permissions: FrozenSet[str] = DEFAULT_IMMUNE_PERMISSIONS

    @classmethod
    def from_mapping(cls, raw: Any) -> "GuardSettings":
        """Build settings from the ``guard`` section, falling back per key on bad values."""
        if not isinstance(raw, dict):
            return cls()

        config_path = Path(str(raw.get("config_path") or DEFAULT_GUARD_CONFIG_PATH)).resolve()
        ban_reason = str(raw.get("ban_reason") or DEFAULT_BAN_REASON)

        try:
            delete_seconds = int(raw.get("delete_message_seconds", DEFAULT_DELETE_MESSAGE_SECONDS))
        except (TypeError, ValueError):
            logger.warning("[APP CONFIGURATION] Invalid guard.delete_message_seconds; using %s", DEFAULT_DELETE_MESSAGE_SECONDS)
            delete_seconds = DEFAULT_DELETE_MESSAGE_SECONDS
        delete_seconds = max(0, min(delete_seconds, MAX_DELETE_MESSAGE_SECONDS))

        try:
            content_limit = int(raw.get("log_content_limit", DEFAULT_LOG_CONTENT_LIMIT))
        except (TypeError, ValueError):
            logger.warning("[APP CONFIGURATION] Invalid guard.log_content_limit; using %s", DEFAULT_LOG_CONTENT_LIMIT)
            content_limit = DEFAULT_LOG_CONTENT_LIMIT
        content_limit = max(1, min(content_limit, MAX_LOG_CONTENT_LIMIT))

        permissions = raw.get("immune_permissions")
        if isinstance(permissions, (list, tuple, set)) and permissions:
            immune_permissions = frozenset(str(name) for name in permissions)
        else:
            immune_permissions = DEFAULT_IMMUNE_PERMISSIONS

        return cls(
            config_path=config_path,
            ban_reason=ban_reason,
            delete_message_seconds=delete_seconds,
            log_content_limit=content_limit,
            immune_permissions=immune_permissions,
        )


class AppConfig:
    """File-lock based accessor around the YAML-based application configuration.

    The class caches contents of ``./config/app_config.yml`` and exposes
    dictionary-like access helpers plus the typed :class:`GuardSettings`.
    Uses fcntl file locks for safe concurrent access across processes.
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
                fcntl.flock(f.fileno(), fcntl.LOCK_SH)
                try:
                    data = yaml.safe_load(f)
                finally:
                    fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        except FileNotFoundError:
            logger.warning("[APP CONFIGURATION] Config file %s not found; using defaults.", self.config_path)
            return {}
        except Exception as exc:
            logger.error("[APP CONFIGURATION] Failed to load config %s: %s", self.config_path, exc)
            return {}

        if data is None:
            return {}
        if not isinstance(data, dict):
            logger.error("[APP CONFIGURATION] Config %s must be a mapping, got %s", self.config_path, type(data).__name__)
            return {}
        return data

    # --------------------------
    # Public API
    # --------------------------
    def reload(self) -> Dict[str, Any]:
        """Re-read the YAML file, replace the in-memory cache and return it.

        The returned mapping is empty when the file is missing or malformed.
        """
        self._data = self.load_from_disk()
        return self._data

    @property
    def data(self) -> Dict[str, Any]:
        """Return the cached configuration mapping. Callers should not mutate it."""
        return self._data

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    # --------------------------
    # High-level shortcuts
    # --------------------------
    @property
    def guard_settings(self) -> GuardSettings:
        """Return the ``guard`` section as :class:`GuardSettings`."""
        return GuardSettings.from_mapping(self._data.get("guard", {}))

    @property
    def presence_text(self) -> str:
        """Activity text shown under the bot's name."""
        bot_section = self._data.get("bot", {})
        if isinstance(bot_section, dict) and bot_section.get("presence"):
            return str(bot_section["presence"])
        return "the mousetrap channels"


# Shared application-wide configuration instance
app_config = AppConfig(CONFIG_PATH)
