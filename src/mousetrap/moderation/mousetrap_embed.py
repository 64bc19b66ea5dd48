"""
Messages sent by the mousetrap: the audit log embed and the DM texts.
"""

import datetime

import discord

from mousetrap.configuration.app_configuration import DEFAULT_LOG_CONTENT_LIMIT
from mousetrap.datatypes.action_datatypes import Punish, Warn

AUDIT_COLOR = 0xFF4C4C
NO_CONTENT = "[No Content]"


def truncate_content(content: str, limit: int = DEFAULT_LOG_CONTENT_LIMIT) -> str:
    """Clip message content for an embed field, substituting a marker when empty."""
    clipped = (content or "")[:limit]
    return clipped or NO_CONTENT


def create_audit_embed(
    decision: Punish,
    enforcer_mention: str,
    content_limit: int = DEFAULT_LOG_CONTENT_LIMIT,
) -> discord.Embed:
    """
    Build the audit record posted to a guild's log channel before a ban.

    Args:
        decision: The punish decision being executed.
        enforcer_mention: Mention of the bot account issuing the ban.
        content_limit: Maximum number of characters of the trigger message to include.

    Returns:
        discord.Embed: Formatted embed
    """
    embed = discord.Embed(
        title="Mousetrap Activated: User Banned",
        color=AUDIT_COLOR,
        timestamp=datetime.datetime.now(datetime.timezone.utc),
    )
    embed.add_field(name="👤 User", value=f"{decision.author_tag} ({decision.author_id.mention()})", inline=False)
    embed.add_field(name="🛡️ Banned By", value=enforcer_mention, inline=False)
    embed.add_field(name="#️⃣ Trap Channel", value=decision.channel_id.mention(), inline=True)
    embed.add_field(
        name="✍️ Trigger Message",
        value=f"```{truncate_content(decision.content, content_limit)}```",
        inline=False,
    )
    return embed


def build_warning_text(decision: Warn) -> str:
    """DM sent to an immune author whose message was removed from the trap."""
    return (
        f"🔔 **Heads up!** You just sent a message in the mousetrap channel ({decision.channel_id.mention()}) "
        f"on the server **{decision.guild_name}**."
        "\n\nBecause you have moderator permissions, I have deleted your message but have **not** banned you."
    )


def build_ban_notice_text(decision: Punish) -> str:
    """DM sent to an ordinary member right before they are banned."""
    return (
        f"You have been banned from **{decision.guild_name}** "
        "for posting in a channel reserved for spam detection."
    )
