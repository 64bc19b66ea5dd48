"""
Per-guild mousetrap configuration.

A guild is armed when it has a trap channel. The optional log channel only has
meaning while a trap exists, so the two are always stored, replaced and removed
together as one GuildGuardConfig.

Persisted record shape (one entry per guild)::

    {"<guild_id>": {"trap": "<channel_id>", "log": "<channel_id>"}}
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Dict, Optional

from mousetrap.datatypes.discord_datatypes import ChannelID

TRAP_KEY = "trap"
LOG_KEY = "log"


@dataclass(frozen=True, slots=True)
class GuildGuardConfig:
    """Trap and audit log channel assignment for one guild."""

    trap_channel_id: ChannelID
    log_channel_id: Optional[ChannelID] = None

    def with_trap(self, channel_id: ChannelID) -> "GuildGuardConfig":
        return replace(self, trap_channel_id=channel_id)

    def with_log(self, channel_id: Optional[ChannelID]) -> "GuildGuardConfig":
        return replace(self, log_channel_id=channel_id)

    def to_record(self) -> Dict[str, str]:
        """Serialize to the JSON-friendly mapping stored on disk."""
        record = {TRAP_KEY: str(self.trap_channel_id)}
        if self.log_channel_id is not None:
            record[LOG_KEY] = str(self.log_channel_id)
        return record

    @classmethod
    def from_record(cls, record: Any) -> "GuildGuardConfig":
        """
        Build a config from a stored mapping.

        Raises:
            ValueError: If the record is not a mapping or has no usable trap id.
        """
        if not isinstance(record, dict):
            raise ValueError(f"expected an object, got {type(record).__name__}")
        trap = record.get(TRAP_KEY)
        if trap in (None, ""):
            raise ValueError("missing trap channel")
        log = record.get(LOG_KEY)
        return cls(
            trap_channel_id=ChannelID(trap),
            log_channel_id=ChannelID(log) if log not in (None, "") else None,
        )
