from unittest.mock import AsyncMock

import discord
import pytest

from conftest import GUILD, LOG, TRAP, USER
from mousetrap.configuration.app_configuration import GuardSettings
from mousetrap.datatypes.action_datatypes import (
    ActionStep,
    FailureKind,
    Ignore,
    IgnoreReason,
    Punish,
    StepResult,
    Warn,
)
from mousetrap.datatypes.discord_datatypes import MessageID
from mousetrap.moderation.action_executor import ActionExecutor


def make_punish(log_channel_id=LOG, content="spam") -> Punish:
    return Punish(
        guild_id=GUILD,
        guild_name="Test Guild",
        channel_id=TRAP,
        message_id=MessageID(4001),
        author_id=USER,
        author_tag="spammer#0001",
        content=content,
        log_channel_id=log_channel_id,
    )


def make_warn() -> Warn:
    return Warn(
        guild_id=GUILD,
        guild_name="Test Guild",
        channel_id=TRAP,
        message_id=MessageID(4001),
        author_id=USER,
        author_tag="moderator#0001",
        content="oops",
    )


@pytest.mark.asyncio
async def test_ignore_performs_no_side_effects(gateway):
    report = await ActionExecutor(gateway).execute(Ignore(IgnoreReason.NOT_TRAP_CHANNEL))

    assert report.results == []
    assert report.ok
    assert gateway.calls == []


@pytest.mark.asyncio
async def test_punish_runs_audit_dm_then_ban(gateway):
    report = await ActionExecutor(gateway).execute(make_punish())

    assert gateway.calls == [ActionStep.AUDIT_LOG, ActionStep.DIRECT_MESSAGE, ActionStep.BAN]
    assert report.steps == gateway.calls
    assert report.ok


@pytest.mark.asyncio
async def test_punish_without_log_channel_skips_audit(gateway):
    report = await ActionExecutor(gateway).execute(make_punish(log_channel_id=None))

    assert gateway.calls == [ActionStep.DIRECT_MESSAGE, ActionStep.BAN]
    assert report.result_for(ActionStep.AUDIT_LOG) is None
    gateway.send_channel_embed.assert_not_awaited()


@pytest.mark.asyncio
async def test_punish_uses_configured_ban_settings(gateway):
    settings = GuardSettings(ban_reason="Caught by the trap", delete_message_seconds=60)

    await ActionExecutor(gateway, settings).execute(make_punish())

    gateway.ban_member.assert_awaited_once_with(GUILD, USER, "Caught by the trap", 60)


@pytest.mark.asyncio
async def test_default_ban_purges_one_hour(gateway):
    await ActionExecutor(gateway).execute(make_punish())

    args = gateway.ban_member.await_args.args
    assert args[2] == "Triggered the anti-spam mousetrap channel."
    assert args[3] == 3600


@pytest.mark.asyncio
async def test_audit_embed_describes_the_ban(gateway):
    await ActionExecutor(gateway).execute(make_punish())

    channel_id, embed = gateway.send_channel_embed.await_args.args
    assert channel_id == LOG
    assert isinstance(embed, discord.Embed)
    assert embed.title == "Mousetrap Activated: User Banned"
    values = {field.name: field.value for field in embed.fields}
    assert values["👤 User"] == "spammer#0001 (<@3001>)"
    assert values["🛡️ Banned By"] == "<@999>"
    assert values["#️⃣ Trap Channel"] == "<#2001>"
    assert values["✍️ Trigger Message"] == "```spam```"


@pytest.mark.asyncio
async def test_audit_content_is_truncated(gateway):
    settings = GuardSettings(log_content_limit=10)

    await ActionExecutor(gateway, settings).execute(make_punish(content="x" * 50))

    embed = gateway.send_channel_embed.await_args.args[1]
    trigger = next(field for field in embed.fields if field.name == "✍️ Trigger Message")
    assert trigger.value == "```" + "x" * 10 + "```"


@pytest.mark.asyncio
async def test_ban_notice_dm_names_the_guild(gateway):
    await ActionExecutor(gateway).execute(make_punish())

    user_id, text = gateway.send_direct_message.await_args.args
    assert user_id == USER
    assert "**Test Guild**" in text
    assert "banned" in text


@pytest.mark.asyncio
async def test_audit_failure_does_not_stop_dm_or_ban(gateway):
    gateway.send_channel_embed.side_effect = None
    gateway.send_channel_embed.return_value = StepResult.failed(ActionStep.AUDIT_LOG, FailureKind.PERMISSION, "403")

    report = await ActionExecutor(gateway).execute(make_punish())

    gateway.send_direct_message.assert_awaited_once()
    gateway.ban_member.assert_awaited_once()
    assert [failure.step for failure in report.failures] == [ActionStep.AUDIT_LOG]
    assert report.result_for(ActionStep.BAN).ok


@pytest.mark.asyncio
async def test_dm_failure_does_not_stop_ban(gateway):
    gateway.send_direct_message.side_effect = None
    gateway.send_direct_message.return_value = StepResult.failed(
        ActionStep.DIRECT_MESSAGE, FailureKind.DELIVERY, "Cannot send messages to this user"
    )

    report = await ActionExecutor(gateway).execute(make_punish())

    gateway.ban_member.assert_awaited_once()
    assert report.result_for(ActionStep.DIRECT_MESSAGE).failure is FailureKind.DELIVERY
    assert report.result_for(ActionStep.BAN).ok


@pytest.mark.asyncio
async def test_unexpected_exception_becomes_failed_step(gateway):
    gateway.send_channel_embed = AsyncMock(side_effect=RuntimeError("boom"))

    report = await ActionExecutor(gateway).execute(make_punish())

    audit = report.result_for(ActionStep.AUDIT_LOG)
    assert not audit.ok
    assert audit.failure is FailureKind.HTTP
    assert "boom" in audit.detail
    assert report.result_for(ActionStep.BAN).ok


@pytest.mark.asyncio
async def test_unbannable_member_is_reported(gateway):
    gateway.ban_member.side_effect = None
    gateway.ban_member.return_value = StepResult.failed(ActionStep.BAN, FailureKind.UNBANNABLE)

    report = await ActionExecutor(gateway).execute(make_punish())

    assert not report.ok
    assert report.failures[0].failure is FailureKind.UNBANNABLE


@pytest.mark.asyncio
async def test_warn_deletes_then_notifies_and_never_bans(gateway):
    report = await ActionExecutor(gateway).execute(make_warn())

    assert gateway.calls == [ActionStep.DELETE, ActionStep.DIRECT_MESSAGE]
    gateway.delete_message.assert_awaited_once_with(TRAP, MessageID(4001))
    gateway.ban_member.assert_not_awaited()
    gateway.send_channel_embed.assert_not_awaited()
    assert report.ok


@pytest.mark.asyncio
async def test_warn_dm_mentions_trap_channel(gateway):
    await ActionExecutor(gateway).execute(make_warn())

    text = gateway.send_direct_message.await_args.args[1]
    assert "<#2001>" in text
    assert "**not** banned" in text


@pytest.mark.asyncio
async def test_warn_delete_failure_still_sends_dm(gateway):
    gateway.delete_message.side_effect = None
    gateway.delete_message.return_value = StepResult.failed(ActionStep.DELETE, FailureKind.NOT_FOUND)

    report = await ActionExecutor(gateway).execute(make_warn())

    gateway.send_direct_message.assert_awaited_once()
    assert report.steps == [ActionStep.DELETE, ActionStep.DIRECT_MESSAGE]
    assert not report.ok
