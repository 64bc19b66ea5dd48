"""
Decisions and action results for the mousetrap pipeline.

The evaluator turns every message into exactly one Decision:

- Ignore: nothing to do (no guild, bot author, wrong channel, guard disabled)
- Warn: an immune author posted in the trap; delete and DM, never ban
- Punish: an ordinary member posted in the trap; audit log, DM, then ban

The executor reports what happened as an ExecutionReport of StepResults, one
per side effect attempted, in execution order.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union

from mousetrap.datatypes.discord_datatypes import ChannelID, GuildID, MessageID, UserID


class IgnoreReason(Enum):
    """Why a message was not acted upon."""

    NO_GUILD = "no_guild"
    BOT_AUTHOR = "bot_author"
    NOT_TEXT_CHANNEL = "not_text_channel"
    NOT_CONFIGURED = "not_configured"
    NOT_TRAP_CHANNEL = "not_trap_channel"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class Ignore:
    reason: IgnoreReason


@dataclass(frozen=True, slots=True)
class Warn:
    """Delete the message of an immune author and tell them why."""

    guild_id: GuildID
    guild_name: str
    channel_id: ChannelID
    message_id: MessageID
    author_id: UserID
    author_tag: str
    content: str


@dataclass(frozen=True, slots=True)
class Punish:
    """Log, notify and ban an ordinary member who sprang the trap."""

    guild_id: GuildID
    guild_name: str
    channel_id: ChannelID
    message_id: MessageID
    author_id: UserID
    author_tag: str
    content: str
    log_channel_id: Optional[ChannelID] = None


Decision = Union[Ignore, Warn, Punish]


class ActionStep(Enum):
    """Individual side effects the executor can attempt."""

    DELETE = "delete"
    DIRECT_MESSAGE = "direct_message"
    AUDIT_LOG = "audit_log"
    BAN = "ban"

    def __str__(self) -> str:
        return self.value


class FailureKind(Enum):
    """Classification of a failed side effect."""

    PERMISSION = "permission"
    NOT_FOUND = "not_found"
    DELIVERY = "delivery"
    UNBANNABLE = "unbannable"
    HTTP = "http"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class StepResult:
    step: ActionStep
    ok: bool
    failure: Optional[FailureKind] = None
    detail: str = ""

    @classmethod
    def success(cls, step: ActionStep) -> "StepResult":
        return cls(step=step, ok=True)

    @classmethod
    def failed(cls, step: ActionStep, failure: FailureKind, detail: str = "") -> "StepResult":
        return cls(step=step, ok=False, failure=failure, detail=detail)


@dataclass(slots=True)
class ExecutionReport:
    """Ordered record of the side effects attempted for one decision."""

    decision: Decision
    results: List[StepResult] = field(default_factory=list)

    @property
    def steps(self) -> List[ActionStep]:
        return [result.step for result in self.results]

    @property
    def failures(self) -> List[StepResult]:
        return [result for result in self.results if not result.ok]

    @property
    def ok(self) -> bool:
        return not self.failures

    def result_for(self, step: ActionStep) -> Optional[StepResult]:
        for result in self.results:
            if result.step is step:
                return result
        return None
