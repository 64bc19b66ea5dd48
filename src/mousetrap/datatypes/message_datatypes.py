"""
Platform-neutral view of an inbound Discord message.

The guard never looks at a ``discord.Message`` directly. The listener converts
each message into a GuardMessage once, so evaluation only depends on plain
values and can be tested without Discord objects.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, Optional

import discord

from mousetrap.datatypes.discord_datatypes import ChannelID, GuildID, MessageID, UserID


def capabilities_of(author: discord.abc.User) -> FrozenSet[str]:
    """
    Return the names of the guild-level permission flags held by an author.

    Users outside a guild context (``discord.User``) hold no capabilities.
    """
    permissions = getattr(author, "guild_permissions", None)
    if not isinstance(author, discord.Member) or permissions is None:
        return frozenset()
    return frozenset(name for name, enabled in permissions if enabled)


@dataclass(frozen=True, slots=True)
class GuardMessage:
    """Everything the guard needs to know about one message."""

    guild_id: Optional[GuildID]
    channel_id: ChannelID
    message_id: MessageID
    author_id: UserID
    author_tag: str
    author_is_bot: bool
    is_text_channel: bool
    content: str = ""
    guild_name: str = ""
    capabilities: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def from_discord(cls, message: discord.Message) -> "GuardMessage":
        guild = message.guild
        # Threads, announcement channels, voice text and DMs all carry other types.
        is_text_channel = getattr(message.channel, "type", None) == discord.ChannelType.text
        return cls(
            guild_id=GuildID(guild.id) if guild is not None else None,
            guild_name=guild.name if guild is not None else "",
            channel_id=ChannelID(message.channel.id),
            message_id=MessageID(message.id),
            author_id=UserID(message.author.id),
            author_tag=str(message.author),
            author_is_bot=bool(message.author.bot),
            is_text_channel=is_text_channel,
            capabilities=capabilities_of(message.author),
            content=message.content or "",
        )
