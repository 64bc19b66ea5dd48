"""
discord_utils.py
================

Low-level Discord helpers for Mousetrap.

DiscordGateway is the only place where guard actions touch the Discord API.
Every call takes plain snowflake wrappers, resolves the Discord objects (cache
first, then fetch) and reports the outcome as a StepResult instead of raising,
mapping py-cord exceptions to FailureKind values.
"""

import discord

from mousetrap.datatypes.action_datatypes import ActionStep, FailureKind, StepResult
from mousetrap.datatypes.discord_datatypes import ChannelID, GuildID, MessageID, UserID
from mousetrap.util.logger import get_logger

logger = get_logger("discord_utils")


def can_ban_member(guild: discord.Guild, member: discord.Member) -> bool:
    """
    Determine whether the bot is able to ban ``member`` in ``guild``.

    The bot needs the Ban Members permission and a top role strictly above the
    member's. Nobody can ban the guild owner.

    Args:
        guild (discord.Guild): The guild context to resolve the bot's member object.
        member (discord.Member): The member about to be banned.

    Returns:
        bool: True if a ban is expected to succeed, False otherwise.
    """
    me = getattr(guild, "me", None)
    if me is None:
        return False
    if member.id == guild.owner_id:
        return False
    if not me.guild_permissions.ban_members:
        return False
    if me.id == guild.owner_id:
        return True
    return me.top_role > member.top_role


def classify_http_error(exc: discord.HTTPException, default: FailureKind = FailureKind.HTTP) -> FailureKind:
    """Map a py-cord HTTP error to a FailureKind."""
    if isinstance(exc, discord.Forbidden):
        return FailureKind.PERMISSION
    if isinstance(exc, discord.NotFound):
        return FailureKind.NOT_FOUND
    return default


class DiscordGateway:
    """Executes guard side effects against a connected py-cord bot."""

    def __init__(self, bot: discord.Bot) -> None:
        self.bot = bot

    def bot_mention(self) -> str:
        user = self.bot.user
        return user.mention if user is not None else "Mousetrap"

    async def _resolve_channel(self, channel_id: ChannelID):
        channel = self.bot.get_channel(channel_id.to_int())
        if channel is None:
            channel = await self.bot.fetch_channel(channel_id.to_int())
        return channel

    async def delete_message(self, channel_id: ChannelID, message_id: MessageID) -> StepResult:
        """
        Delete one message.

        Returns:
            StepResult: NOT_FOUND when the channel or message is gone,
            PERMISSION when the bot lacks Manage Messages.
        """
        try:
            channel = await self._resolve_channel(channel_id)
            await channel.get_partial_message(message_id.to_int()).delete()
        except discord.HTTPException as exc:
            return StepResult.failed(ActionStep.DELETE, classify_http_error(exc), str(exc))
        return StepResult.success(ActionStep.DELETE)

    async def send_direct_message(self, user_id: UserID, text: str) -> StepResult:
        """
        Best-effort DM.

        Users with DMs disabled make Discord answer 403, which is reported as
        DELIVERY rather than PERMISSION.
        """
        try:
            user = self.bot.get_user(user_id.to_int())
            if user is None:
                user = await self.bot.fetch_user(user_id.to_int())
            await user.send(text)
        except discord.NotFound as exc:
            return StepResult.failed(ActionStep.DIRECT_MESSAGE, FailureKind.NOT_FOUND, str(exc))
        except discord.HTTPException as exc:
            return StepResult.failed(ActionStep.DIRECT_MESSAGE, FailureKind.DELIVERY, str(exc))
        return StepResult.success(ActionStep.DIRECT_MESSAGE)

    async def send_channel_embed(self, channel_id: ChannelID, embed: discord.Embed) -> StepResult:
        """Post an embed to a guild channel (the audit log)."""
        try:
            channel = await self._resolve_channel(channel_id)
            if not isinstance(channel, discord.abc.Messageable):
                return StepResult.failed(
                    ActionStep.AUDIT_LOG, FailureKind.NOT_FOUND, f"channel {channel_id} cannot receive messages"
                )
            await channel.send(embed=embed)
        except discord.HTTPException as exc:
            return StepResult.failed(ActionStep.AUDIT_LOG, classify_http_error(exc), str(exc))
        return StepResult.success(ActionStep.AUDIT_LOG)

    async def ban_member(
        self,
        guild_id: GuildID,
        user_id: UserID,
        reason: str,
        delete_message_seconds: int,
    ) -> StepResult:
        """
        Ban a user, purging their recent messages.

        When the user is still a cached member, role hierarchy and permissions
        are checked first and an UNBANNABLE result is returned without calling
        the API.
        """
        try:
            guild = self.bot.get_guild(guild_id.to_int())
            if guild is None:
                guild = await self.bot.fetch_guild(guild_id.to_int())

            member = guild.get_member(user_id.to_int())
            if member is not None and not can_ban_member(guild, member):
                return StepResult.failed(
                    ActionStep.BAN,
                    FailureKind.UNBANNABLE,
                    "member has a higher role, owns the guild, or the bot lacks Ban Members",
                )

            await guild.ban(
                member if member is not None else discord.Object(id=user_id.to_int()),
                reason=reason,
                delete_message_seconds=delete_message_seconds,
            )
        except discord.HTTPException as exc:
            return StepResult.failed(ActionStep.BAN, classify_http_error(exc), str(exc))
        logger.debug("Banned user %s from guild %s (purged %ss of messages)", user_id, guild_id, delete_message_seconds)
        return StepResult.success(ActionStep.BAN)
