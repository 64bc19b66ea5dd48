import pytest
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import discord

from conftest import GUILD, TRAP, USER
from mousetrap.cog.listener import message_listener
from mousetrap.datatypes.action_datatypes import ActionStep, Ignore, IgnoreReason
from mousetrap.datatypes.message_datatypes import GuardMessage, capabilities_of
from mousetrap.moderation.action_executor import ActionExecutor
from mousetrap.moderation.guard_evaluator import GuardEvaluator


def make_member(permissions: discord.Permissions, bot=False):
    author = MagicMock(spec=discord.Member)
    author.id = 3001
    author.bot = bot
    author.guild_permissions = permissions
    author.__str__.return_value = "spammer#0001"
    return author


def make_discord_message(author=None, channel_type=discord.ChannelType.text, channel_id=2001, guild=True, content="spam"):
    return SimpleNamespace(
        id=4001,
        content=content,
        author=author or make_member(discord.Permissions(send_messages=True)),
        channel=SimpleNamespace(id=channel_id, type=channel_type),
        guild=SimpleNamespace(id=1001, name="Test Guild") if guild else None,
    )


class TestGuardMessageConversion:
    def test_from_discord(self):
        message = GuardMessage.from_discord(make_discord_message())

        assert message.guild_id == GUILD
        assert message.guild_name == "Test Guild"
        assert message.channel_id == TRAP
        assert message.author_id == USER
        assert message.author_tag == "spammer#0001"
        assert message.author_is_bot is False
        assert message.is_text_channel is True
        assert message.content == "spam"
        assert "send_messages" in message.capabilities
        assert "manage_messages" not in message.capabilities

    def test_threads_are_not_text_channels(self):
        message = GuardMessage.from_discord(make_discord_message(channel_type=discord.ChannelType.public_thread))
        assert message.is_text_channel is False

    def test_direct_message_has_no_guild(self):
        message = GuardMessage.from_discord(make_discord_message(guild=False))
        assert message.guild_id is None
        assert message.guild_name == ""

    def test_none_content_becomes_empty(self):
        message = GuardMessage.from_discord(make_discord_message(content=None))
        assert message.content == ""

    def test_capabilities_of_plain_user(self):
        user = MagicMock(spec=discord.User)
        assert capabilities_of(user) == frozenset()

    def test_capabilities_of_moderator(self):
        author = make_member(discord.Permissions(manage_messages=True, kick_members=True))
        assert capabilities_of(author) == frozenset({"manage_messages", "kick_members"})


@pytest.fixture()
def listener_parts(store, gateway):
    evaluator = GuardEvaluator(store)
    executor = ActionExecutor(gateway)
    cog = message_listener.MessageListenerCog(SimpleNamespace(), evaluator, executor)
    return cog, store, gateway


def test_setup_adds_cog(store, gateway):
    captured = {}
    fake_bot = SimpleNamespace(add_cog=lambda cog: captured.setdefault("cog", cog))

    message_listener.setup(fake_bot, GuardEvaluator(store), ActionExecutor(gateway))

    assert isinstance(captured["cog"], message_listener.MessageListenerCog)


@pytest.mark.asyncio
async def test_trap_message_from_member_bans(listener_parts):
    cog, store, gateway = listener_parts
    await store.set_trap(GUILD, TRAP)

    await cog.on_message(make_discord_message())

    assert gateway.calls == [ActionStep.DIRECT_MESSAGE, ActionStep.BAN]


@pytest.mark.asyncio
async def test_trap_message_from_moderator_is_deleted(listener_parts):
    cog, store, gateway = listener_parts
    await store.set_trap(GUILD, TRAP)
    moderator = make_member(discord.Permissions(manage_messages=True))

    await cog.on_message(make_discord_message(author=moderator))

    assert gateway.calls == [ActionStep.DELETE, ActionStep.DIRECT_MESSAGE]


@pytest.mark.asyncio
async def test_bot_authors_and_other_channels_are_ignored(listener_parts):
    cog, store, gateway = listener_parts
    await store.set_trap(GUILD, TRAP)

    await cog.on_message(make_discord_message(author=make_member(discord.Permissions(), bot=True)))
    await cog.on_message(make_discord_message(channel_id=2003))

    assert gateway.calls == []


@pytest.mark.asyncio
async def test_ignore_never_reaches_executor():
    evaluator = MagicMock()
    evaluator.evaluate = MagicMock(return_value=Ignore(IgnoreReason.NOT_CONFIGURED))
    executor = MagicMock()
    executor.execute = AsyncMock()
    cog = message_listener.MessageListenerCog(SimpleNamespace(), evaluator, executor)

    await cog.on_message(make_discord_message())

    executor.execute.assert_not_awaited()


@pytest.mark.asyncio
async def test_listener_survives_errors():
    evaluator = MagicMock()
    evaluator.evaluate = MagicMock(side_effect=RuntimeError("boom"))
    cog = message_listener.MessageListenerCog(SimpleNamespace(), evaluator, MagicMock())

    with patch.object(message_listener, "logger") as mock_logger:
        await cog.on_message(make_discord_message())

    mock_logger.exception.assert_called_once()
