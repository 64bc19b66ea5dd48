"""
Side effects of a mousetrap decision.

Warn (immune author):
    1. delete the triggering message
    2. DM the author why it was removed

Punish (ordinary member), in this order:
    1. audit embed to the log channel, if one is configured
    2. DM the author that they are being banned (before the ban, while the
       bot still shares a guild with them)
    3. ban with the configured reason and message purge window

Every step runs regardless of earlier failures. Failures are logged and
returned in the ExecutionReport; nothing is raised to the caller.
"""
from __future__ import annotations

from typing import Awaitable, Callable, Protocol

import discord

from mousetrap.configuration.app_configuration import GuardSettings
from mousetrap.datatypes.action_datatypes import (
    ActionStep,
    Decision,
    ExecutionReport,
    FailureKind,
    Ignore,
    Punish,
    StepResult,
    Warn,
)
from mousetrap.datatypes.discord_datatypes import ChannelID, GuildID, MessageID, UserID
from mousetrap.moderation import mousetrap_embed
from mousetrap.util.logger import get_logger

logger = get_logger("action_executor")

# Failures of these steps are expected (closed DMs) and only warrant a warning.
BEST_EFFORT_STEPS = {ActionStep.DIRECT_MESSAGE}


class ModerationGateway(Protocol):
    def bot_mention(self) -> str: ...

    async def delete_message(self, channel_id: ChannelID, message_id: MessageID) -> StepResult: ...

    async def send_direct_message(self, user_id: UserID, text: str) -> StepResult: ...

    async def send_channel_embed(self, channel_id: ChannelID, embed: discord.Embed) -> StepResult: ...

    async def ban_member(
        self, guild_id: GuildID, user_id: UserID, reason: str, delete_message_seconds: int
    ) -> StepResult: ...


class ActionExecutor:
    """Carries out Warn and Punish decisions through a moderation gateway."""

    def __init__(self, gateway: ModerationGateway, settings: GuardSettings | None = None) -> None:
        self.gateway = gateway
        self.settings = settings or GuardSettings()

    async def execute(self, decision: Decision) -> ExecutionReport:
        report = ExecutionReport(decision=decision)

        match decision:
            case Ignore():
                pass
            case Warn():
                await self._warn(decision, report)
            case Punish():
                await self._punish(decision, report)
            case _:
                logger.error("[ACTION EXECUTOR] Unknown decision type %r", decision)

        return report

    # ========== Paths ==========

    async def _warn(self, decision: Warn, report: ExecutionReport) -> None:
        logger.info(
            "[ACTION EXECUTOR] Immune member %s (%s) posted in trap channel %s of guild %s; deleting",
            decision.author_tag, decision.author_id, decision.channel_id, decision.guild_id,
        )
        await self._run_step(
            report, decision, ActionStep.DELETE,
            lambda: self.gateway.delete_message(decision.channel_id, decision.message_id),
        )
        await self._run_step(
            report, decision, ActionStep.DIRECT_MESSAGE,
            lambda: self.gateway.send_direct_message(decision.author_id, mousetrap_embed.build_warning_text(decision)),
        )

    async def _punish(self, decision: Punish, report: ExecutionReport) -> None:
        logger.info(
            "[ACTION EXECUTOR] Member %s (%s) sprang the trap in channel %s of guild %s; banning",
            decision.author_tag, decision.author_id, decision.channel_id, decision.guild_id,
        )

        if decision.log_channel_id is not None:
            await self._run_step(report, decision, ActionStep.AUDIT_LOG, lambda: self._send_audit(decision))

        await self._run_step(
            report, decision, ActionStep.DIRECT_MESSAGE,
            lambda: self.gateway.send_direct_message(decision.author_id, mousetrap_embed.build_ban_notice_text(decision)),
        )

        ban_result = await self._run_step(
            report, decision, ActionStep.BAN,
            lambda: self.gateway.ban_member(
                decision.guild_id,
                decision.author_id,
                self.settings.ban_reason,
                self.settings.delete_message_seconds,
            ),
        )
        if ban_result.ok:
            logger.info("[ACTION EXECUTOR] Banned %s (%s) from guild %s", decision.author_tag, decision.author_id, decision.guild_id)

    async def _send_audit(self, decision: Punish) -> StepResult:
        embed = mousetrap_embed.create_audit_embed(
            decision,
            enforcer_mention=self.gateway.bot_mention(),
            content_limit=self.settings.log_content_limit,
        )
        return await self.gateway.send_channel_embed(decision.log_channel_id, embed)

    # ========== Step isolation ==========

    async def _run_step(
        self,
        report: ExecutionReport,
        decision: Warn | Punish,
        step: ActionStep,
        action: Callable[[], Awaitable[StepResult]],
    ) -> StepResult:
        """Run one side effect, turning any escaped exception into a failed StepResult."""
        try:
            result = await action()
        except Exception as exc:
            logger.exception("[ACTION EXECUTOR] Unexpected error during %s", step)
            result = StepResult.failed(step, FailureKind.HTTP, f"{type(exc).__name__}: {exc}")

        report.results.append(result)
        if not result.ok:
            self._log_failure(decision, result)
        return result

    @staticmethod
    def _log_failure(decision: Warn | Punish, result: StepResult) -> None:
        log = logger.warning if result.step in BEST_EFFORT_STEPS else logger.error
        log(
            "[ACTION EXECUTOR] %s failed (%s) for user %s (%s) in guild %s, channel %s: %s",
            result.step, result.failure, decision.author_tag, decision.author_id,
            decision.guild_id, decision.channel_id, result.detail or "no details",
        )
