"""
Per-message mousetrap decision.

GuardEvaluator only reads: it looks at the message and the guild's current
configuration and classifies the message as Ignore, Warn or Punish. All side
effects belong to the ActionExecutor.
"""
from __future__ import annotations

from mousetrap.datatypes.action_datatypes import Decision, Ignore, IgnoreReason, Punish, Warn
from mousetrap.datatypes.message_datatypes import GuardMessage
from mousetrap.moderation.immunity_policy import ImmunityPolicy, default_policy
from mousetrap.settings.guard_config_store import GuardConfigStore


class GuardEvaluator:
    """Turns inbound messages into decisions against the configuration store."""

    def __init__(self, store: GuardConfigStore, policy: ImmunityPolicy = default_policy) -> None:
        self.store = store
        self.policy = policy

    def evaluate(self, message: GuardMessage) -> Decision:
        if message.guild_id is None:
            return Ignore(IgnoreReason.NO_GUILD)
        if message.author_is_bot:
            return Ignore(IgnoreReason.BOT_AUTHOR)
        if not message.is_text_channel:
            return Ignore(IgnoreReason.NOT_TEXT_CHANNEL)

        config = self.store.get(message.guild_id)
        if config is None:
            return Ignore(IgnoreReason.NOT_CONFIGURED)
        if message.channel_id != config.trap_channel_id:
            return Ignore(IgnoreReason.NOT_TRAP_CHANNEL)

        if self.policy.is_immune(message.capabilities):
            return Warn(
                guild_id=message.guild_id,
                guild_name=message.guild_name,
                channel_id=message.channel_id,
                message_id=message.message_id,
                author_id=message.author_id,
                author_tag=message.author_tag,
                content=message.content,
            )

        return Punish(
            guild_id=message.guild_id,
            guild_name=message.guild_name,
            channel_id=message.channel_id,
            message_id=message.message_id,
            author_id=message.author_id,
            author_tag=message.author_tag,
            content=message.content,
            log_channel_id=config.log_channel_id,
        )
