"""Event listener Cog for Mousetrap.

Handles bot lifecycle events: sets the presence once connected and reports
how many guilds have an armed mousetrap.
"""

import discord
from discord.ext import commands

from mousetrap.settings.guard_config_store import GuardConfigStore
from mousetrap.util.logger import get_logger

logger = get_logger("events_listener")


class EventsListenerCog(commands.Cog):
    """Handles Discord bot lifecycle events."""

    def __init__(self, bot: discord.Bot, store: GuardConfigStore, presence_text: str = "the mousetrap channels") -> None:
        self.bot = bot
        self.store = store
        self.presence_text = presence_text
        logger.info("[EVENTS LISTENER] Events listener cog loaded")

    @commands.Cog.listener(name="on_ready")
    async def on_ready(self) -> None:
        """Set bot presence and log the armed guilds."""
        if not self.bot.user:
            logger.warning("[EVENTS LISTENER] Bot partially connected, user info not yet available.")
            return

        await self.bot.change_presence(
            status=discord.Status.online,
            activity=discord.Activity(type=discord.ActivityType.watching, name=self.presence_text),
        )
        logger.info("Bot connected as %s (ID: %s)", self.bot.user, self.bot.user.id)

        configs = self.store.all_configs()
        joined = {guild.id for guild in self.bot.guilds}
        armed_here = [guild_id for guild_id in configs if guild_id.to_int() in joined]
        logger.info(
            "[EVENTS LISTENER] Mousetrap armed in %d of %d guild(s)",
            len(armed_here),
            len(joined),
        )


def setup(bot: discord.Bot, store: GuardConfigStore, presence_text: str = "the mousetrap channels") -> None:
    """Register the EventsListenerCog with the bot."""
    bot.add_cog(EventsListenerCog(bot, store, presence_text))
