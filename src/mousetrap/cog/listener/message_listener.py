"""Message listener Cog for Mousetrap.

This cog has exactly ONE responsibility: hand every message to the guard.
The evaluator decides, the executor acts; nothing else lives here.
"""

import discord
from discord.ext import commands

from mousetrap.datatypes.action_datatypes import Ignore
from mousetrap.datatypes.message_datatypes import GuardMessage
from mousetrap.moderation.action_executor import ActionExecutor
from mousetrap.moderation.guard_evaluator import GuardEvaluator
from mousetrap.util.logger import get_logger

logger = get_logger("message_listener_cog")


class MessageListenerCog(commands.Cog):
    """
    Thin event listener that runs the mousetrap on each message.

    Parameters
    ----------
    bot:
        Discord bot instance.
    evaluator:
        Classifies each message against the guild's configuration.
    executor:
        Performs the side effects of Warn and Punish decisions.
    """

    def __init__(self, bot: discord.Bot, evaluator: GuardEvaluator, executor: ActionExecutor) -> None:
        self.bot = bot
        self._evaluator = evaluator
        self._executor = executor
        logger.info("[MESSAGE LISTENER] Message listener cog loaded")

    @commands.Cog.listener(name="on_message")
    async def on_message(self, message: discord.Message) -> None:
        """Evaluate the message and execute whatever the guard decided."""
        try:
            decision = self._evaluator.evaluate(GuardMessage.from_discord(message))
            if isinstance(decision, Ignore):
                return
            await self._executor.execute(decision)
        except Exception:
            # One broken message must not take the listener down for the rest.
            logger.exception("[MESSAGE LISTENER] Failed to run the mousetrap on message %s", getattr(message, "id", "?"))


def setup(bot: discord.Bot, evaluator: GuardEvaluator, executor: ActionExecutor) -> None:
    """Register the MessageListenerCog with the bot."""
    bot.add_cog(MessageListenerCog(bot, evaluator, executor))
