"""
Utility functions and helpers for Mousetrap.

- **logger.py**: Centralized logging configuration with colored console output
  through prompt_toolkit and a per-session rotating log file.

- **discord_utils.py**: DiscordGateway, the adapter that performs deletes, DMs,
  audit posts and bans and reports each outcome as a StepResult.

- **errors.py**: Exception hierarchy of the guard.
"""
