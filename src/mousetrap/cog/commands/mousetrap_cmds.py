"""
Mousetrap configuration commands.

This cog exposes two slash command groups:
- /mousetrap set|disable|status: arm, disarm and inspect the honeypot channel
- /mousetrap-log set|disable: manage the channel that receives ban records

All changes require the Manage Server permission.
Responses are ephemeral to avoid leaking configuration in public channels.
"""

import discord
from discord.ext import commands

from mousetrap.datatypes.guard_config import GuildGuardConfig
from mousetrap.services.guard_admin_service import AdminOutcome, GuardAdminService
from mousetrap.util.errors import ConfigIOError
from mousetrap.util.logger import get_logger

logger = get_logger("mousetrap_commands")

GUILD_ONLY_TEXT = "This command can only be used in a server."
MISSING_PERMISSION_TEXT = "You need the Manage Server permission to configure the mousetrap."
SAVE_FAILED_TEXT = (
    "⚠️ The mousetrap configuration could not be saved, so this change did **not** take effect. "
    "Please try again later."
)
NOT_ACTIVE_TEXT = "ℹ️ The mousetrap is not currently active on this server."
NEEDS_TRAP_TEXT = (
    "⚠️ You must set a mousetrap channel first using `/mousetrap set` before you can configure logging."
)

MANAGE_GUILD = discord.Permissions(manage_guild=True)


def format_status(config: GuildGuardConfig) -> str:
    """Render the /mousetrap status reply for an armed guild."""
    lines = [f"ℹ️ The mousetrap is active in {config.trap_channel_id.mention()}."]
    if config.log_channel_id is not None:
        lines.append(f"Bans are being logged to {config.log_channel_id.mention()}.")
    else:
        lines.append("Ban logging is not configured. Use `/mousetrap-log set` to enable it.")
    return "\n".join(lines)


class MousetrapCog(commands.Cog):
    """Guild-level configuration of the honeypot channel and its audit log."""

    mousetrap = discord.SlashCommandGroup(
        "mousetrap",
        "Manages the server's anti-spam honeypot channel.",
        default_member_permissions=MANAGE_GUILD,
    )
    mousetrap_log = discord.SlashCommandGroup(
        "mousetrap-log",
        "Manages the logging channel for the mousetrap.",
        default_member_permissions=MANAGE_GUILD,
    )

    def __init__(self, discord_bot_instance, admin_service: GuardAdminService):
        self.discord_bot_instance = discord_bot_instance
        self.admin_service = admin_service
        logger.info("[MOUSETRAP CMDS] Mousetrap cog loaded")

    async def _ensure_guild_context(self, ctx: discord.ApplicationContext) -> bool:
        if not ctx.guild_id:
            await ctx.respond(GUILD_ONLY_TEXT, ephemeral=True)
            return False
        return True

    def _has_manage_permission(self, ctx: discord.ApplicationContext) -> bool:
        permissions = getattr(ctx.user, "guild_permissions", None)
        return bool(getattr(permissions, "manage_guild", False))

    async def _check_permissions(self, ctx: discord.ApplicationContext) -> bool:
        if not await self._ensure_guild_context(ctx):
            return False
        if not self._has_manage_permission(ctx):
            await ctx.respond(MISSING_PERMISSION_TEXT, ephemeral=True)
            return False
        return True

    # ---------- /mousetrap ----------

    @mousetrap.command(name="set", description="Sets a channel as the mousetrap. Anyone who talks here will be banned.")
    async def mousetrap_set(
        self,
        ctx: discord.ApplicationContext,
        channel: discord.Option(discord.TextChannel, "The channel to use as the honeypot."),
    ):
        if not await self._check_permissions(ctx):
            return
        try:
            await self.admin_service.set_trap(ctx.guild_id, channel.id)
        except ConfigIOError as exc:
            logger.error("[MOUSETRAP CMDS] Failed to arm mousetrap in guild %s: %s", ctx.guild_id, exc)
            await ctx.respond(SAVE_FAILED_TEXT, ephemeral=True)
            return

        await ctx.respond(
            f"✅ **Mousetrap armed!** Anyone (except moderators) who types in {channel.mention} will be instantly banned.",
            ephemeral=True,
        )

    @mousetrap.command(name="disable", description="Disables the mousetrap for this server.")
    async def mousetrap_disable(self, ctx: discord.ApplicationContext):
        if not await self._check_permissions(ctx):
            return
        try:
            result = await self.admin_service.disable_trap(ctx.guild_id)
        except ConfigIOError as exc:
            logger.error("[MOUSETRAP CMDS] Failed to disable mousetrap in guild %s: %s", ctx.guild_id, exc)
            await ctx.respond(SAVE_FAILED_TEXT, ephemeral=True)
            return

        if result.outcome is AdminOutcome.TRAP_DISABLED:
            await ctx.respond(
                "✅ **Mousetrap disabled.** The honeypot and its logging are no longer active.",
                ephemeral=True,
            )
        else:
            await ctx.respond(NOT_ACTIVE_TEXT, ephemeral=True)

    @mousetrap.command(name="status", description="Checks the current status of the mousetrap.")
    async def mousetrap_status(self, ctx: discord.ApplicationContext):
        if not await self._check_permissions(ctx):
            return
        result = self.admin_service.status(ctx.guild_id)
        if result.outcome is AdminOutcome.ACTIVE and result.config is not None:
            await ctx.respond(format_status(result.config), ephemeral=True)
        else:
            await ctx.respond(NOT_ACTIVE_TEXT, ephemeral=True)

    # ---------- /mousetrap-log ----------

    @mousetrap_log.command(name="set", description="Sets a channel to log mousetrap bans.")
    async def mousetrap_log_set(
        self,
        ctx: discord.ApplicationContext,
        channel: discord.Option(discord.TextChannel, "The channel where ban logs should be sent."),
    ):
        if not await self._check_permissions(ctx):
            return
        try:
            result = await self.admin_service.set_log(ctx.guild_id, channel.id)
        except ConfigIOError as exc:
            logger.error("[MOUSETRAP CMDS] Failed to set log channel in guild %s: %s", ctx.guild_id, exc)
            await ctx.respond(SAVE_FAILED_TEXT, ephemeral=True)
            return

        if result.outcome is AdminOutcome.NOT_CONFIGURED:
            await ctx.respond(NEEDS_TRAP_TEXT, ephemeral=True)
            return
        await ctx.respond(
            f"✅ **Log Channel Set!** Mousetrap bans will now be logged in {channel.mention}.",
            ephemeral=True,
        )

    @mousetrap_log.command(name="disable", description="Disables logging for the mousetrap on this server.")
    async def mousetrap_log_disable(self, ctx: discord.ApplicationContext):
        if not await self._check_permissions(ctx):
            return
        try:
            result = await self.admin_service.disable_log(ctx.guild_id)
        except ConfigIOError as exc:
            logger.error("[MOUSETRAP CMDS] Failed to disable logging in guild %s: %s", ctx.guild_id, exc)
            await ctx.respond(SAVE_FAILED_TEXT, ephemeral=True)
            return

        match result.outcome:
            case AdminOutcome.NOT_CONFIGURED:
                await ctx.respond(NEEDS_TRAP_TEXT, ephemeral=True)
            case AdminOutcome.LOG_DISABLED:
                await ctx.respond("✅ **Mousetrap logging disabled.**", ephemeral=True)
            case _:
                await ctx.respond("ℹ️ Mousetrap logging is not currently active on this server.", ephemeral=True)


def setup(discord_bot_instance, admin_service: GuardAdminService) -> None:
    discord_bot_instance.add_cog(MousetrapCog(discord_bot_instance, admin_service))
