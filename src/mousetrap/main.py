"""
Mousetrap Discord Bot
=====================

A Discord bot that guards one honeypot channel per server: ordinary members
who post there are banned as spammers, moderators are only warned.
"""

import os
import sys
from pathlib import Path

def resolve_base_dir() -> Path:
    """Determine the base directory of the project.

    Resolution order:
    1. MOUSETRAP_HOME environment variable, if set.
    2. If running in a frozen/compiled context (e.g., PyInstaller, Nuitka), use the executable's directory.
    3. Otherwise, assume running from source and use the grandparent of this file's directory.
    """
    if env_home := os.getenv("MOUSETRAP_HOME"):
        return Path(env_home).resolve()

    if getattr(sys, "frozen", False) or getattr(sys, "compiled", False):
        return Path(sys.argv[0]).resolve().parent

    return Path(__file__).resolve().parents[2]

BASE_DIR = resolve_base_dir()
os.chdir(BASE_DIR)

import asyncio
import discord
from dotenv import load_dotenv

from mousetrap.configuration.app_configuration import GuardSettings
from mousetrap.moderation.action_executor import ActionExecutor
from mousetrap.moderation.guard_evaluator import GuardEvaluator
from mousetrap.moderation.immunity_policy import CapabilityImmunityPolicy
from mousetrap.services.guard_admin_service import GuardAdminService
from mousetrap.settings.guard_config_store import GuardConfigStore
from mousetrap.util.discord_utils import DiscordGateway
from mousetrap.util.logger import get_logger, handle_exception


logger = get_logger("main")


def load_environment() -> str:
    """Load environment variables and return the Discord bot token.

    Raises
    ------
    SystemExit
        If the required ``DISCORD_BOT_TOKEN`` variable is missing.
    """
    load_dotenv(dotenv_path=BASE_DIR / ".env")
    token = os.getenv("DISCORD_BOT_TOKEN")
    if not token:
        logger.critical("'DISCORD_BOT_TOKEN' environment variable not set. Bot cannot start.")
        sys.exit(1)
    return token


def build_intents() -> discord.Intents:
    """Construct the Discord intents the guard needs.

    Message content is required for the audit log, members for the role
    hierarchy check before banning.
    """
    intents = discord.Intents.default()
    intents.message_content = True
    intents.guilds = True
    intents.messages = True
    intents.members = True
    return intents


def load_cogs(discord_bot_instance: discord.Bot, store: GuardConfigStore, settings: GuardSettings, presence_text: str) -> None:
    """Build the guard services and register all cogs with the bot."""
    from mousetrap.cog.commands import mousetrap_cmds
    from mousetrap.cog.listener import events_listener, message_listener

    evaluator = GuardEvaluator(store, CapabilityImmunityPolicy(settings.immune_permissions))
    executor = ActionExecutor(DiscordGateway(discord_bot_instance), settings)

    mousetrap_cmds.setup(discord_bot_instance, GuardAdminService(store))
    message_listener.setup(discord_bot_instance, evaluator, executor)
    events_listener.setup(discord_bot_instance, store, presence_text)

    logger.info("All cogs loaded successfully.")


def create_bot() -> discord.Bot:
    """Instantiate the Discord bot and register all cogs."""
    from mousetrap.configuration.app_configuration import app_config

    settings = app_config.guard_settings
    store = GuardConfigStore(settings.config_path)
    bot = discord.Bot(intents=build_intents())
    load_cogs(bot, store, settings, app_config.presence_text)
    return bot


async def start_bot(bot: discord.Bot, token: str) -> None:
    """Start the Discord bot and handle lifecycle logging around the connection."""
    logger.info("Attempting to connect to Discord…")
    try:
        await bot.start(token)
    except asyncio.CancelledError:
        logger.info("Discord bot start cancelled; shutting down")
    finally:
        logger.info("Discord bot start routine finished.")


async def shutdown_runtime(bot: discord.Bot | None = None) -> None:
    """Close the Discord connection if it is still open."""
    if bot is not None and not bot.is_closed():
        try:
            await bot.close()
        except Exception as exc:
            logger.exception("Error while closing the Discord client: %s", exc)
    logger.info("Shutdown complete.")


async def async_main() -> int:
    """Bootstrap and run the bot, returning an exit code."""
    token = load_environment()

    try:
        bot = create_bot()
    except Exception as exc:
        logger.critical("Failed to initialize Discord bot: %s", exc)
        return 1

    exit_code = 0
    try:
        await start_bot(bot, token)
    except discord.LoginFailure as exc:
        logger.critical("Discord rejected the bot token: %s", exc)
        exit_code = 1
    except Exception as exc:
        logger.critical("Discord bot runtime error: %s", exc)
        exit_code = 1
    finally:
        await shutdown_runtime(bot)

    return exit_code


def main() -> int:
    """Entrypoint that orchestrates the async runtime and returns the process code."""
    logger.info("Starting Mousetrap…")
    try:
        return asyncio.run(async_main())
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user.")
        return 0
    except SystemExit as exit_exc:
        code = exit_exc.code
        if isinstance(code, int):
            return code
        return 1
    except Exception as exc:
        logger.critical("An unexpected error occurred while running the bot: %s", exc)
        return 1


if __name__ == "__main__":
    sys.excepthook = handle_exception
    sys.exit(main())
