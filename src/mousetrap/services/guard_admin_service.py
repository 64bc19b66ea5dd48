"""
Admin interface over the mousetrap configuration.

Used by the /mousetrap and /mousetrap-log commands. Logical precondition
failures (no trap yet, nothing to disable) are ordinary outcomes; only a
ConfigIOError from the store is raised, because the caller has to tell the
administrator that their change was not saved.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from mousetrap.datatypes.discord_datatypes import ChannelID, GuildID
from mousetrap.datatypes.guard_config import GuildGuardConfig
from mousetrap.settings.guard_config_store import GuardConfigStore
from mousetrap.util.logger import get_logger

logger = get_logger("guard_admin_service")


class AdminOutcome(Enum):
    TRAP_SET = "trap_set"
    TRAP_DISABLED = "trap_disabled"
    LOG_SET = "log_set"
    LOG_DISABLED = "log_disabled"
    ACTIVE = "active"
    NOT_ACTIVE = "not_active"
    NOT_CONFIGURED = "not_configured"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class AdminResult:
    outcome: AdminOutcome
    config: Optional[GuildGuardConfig] = None


class GuardAdminService:
    """Transactional configuration operations for one store."""

    def __init__(self, store: GuardConfigStore) -> None:
        self.store = store

    async def set_trap(self, guild_id: GuildID, channel_id: ChannelID) -> AdminResult:
        config = await self.store.set_trap(GuildID(guild_id), ChannelID(channel_id))
        logger.info("[GUARD ADMIN] Mousetrap armed in guild %s on channel %s", guild_id, channel_id)
        return AdminResult(AdminOutcome.TRAP_SET, config)

    async def disable_trap(self, guild_id: GuildID) -> AdminResult:
        if await self.store.clear_trap(GuildID(guild_id)):
            logger.info("[GUARD ADMIN] Mousetrap disabled in guild %s", guild_id)
            return AdminResult(AdminOutcome.TRAP_DISABLED)
        return AdminResult(AdminOutcome.NOT_ACTIVE)

    def status(self, guild_id: GuildID) -> AdminResult:
        config = self.store.status(GuildID(guild_id))
        if config is None:
            return AdminResult(AdminOutcome.NOT_ACTIVE)
        return AdminResult(AdminOutcome.ACTIVE, config)

    async def set_log(self, guild_id: GuildID, channel_id: ChannelID) -> AdminResult:
        changed, config = await self.store.set_log_config(GuildID(guild_id), ChannelID(channel_id))
        if not changed:
            return AdminResult(AdminOutcome.NOT_CONFIGURED)
        logger.info("[GUARD ADMIN] Mousetrap log channel for guild %s set to %s", guild_id, channel_id)
        return AdminResult(AdminOutcome.LOG_SET, config)

    async def disable_log(self, guild_id: GuildID) -> AdminResult:
        guild_id = GuildID(guild_id)
        removed, config = await self.store.clear_log_config(guild_id)
        if removed:
            logger.info("[GUARD ADMIN] Mousetrap logging disabled in guild %s", guild_id)
            return AdminResult(AdminOutcome.LOG_DISABLED, config)
        if config is None:
            return AdminResult(AdminOutcome.NOT_CONFIGURED)
        return AdminResult(AdminOutcome.NOT_ACTIVE, config)
