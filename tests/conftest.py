"""
Pytest configuration and fixtures for Mousetrap tests.
"""

import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

# Add src directory to path so imports work
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from mousetrap.datatypes.action_datatypes import ActionStep, StepResult  # noqa: E402
from mousetrap.datatypes.discord_datatypes import ChannelID, GuildID, MessageID, UserID  # noqa: E402
from mousetrap.datatypes.message_datatypes import GuardMessage  # noqa: E402
from mousetrap.settings.guard_config_store import GuardConfigStore  # noqa: E402

GUILD = GuildID(1001)
TRAP = ChannelID(2001)
LOG = ChannelID(2002)
OTHER_CHANNEL = ChannelID(2003)
USER = UserID(3001)


@pytest.fixture()
def config_file(tmp_path: Path) -> Path:
    return tmp_path / "data" / "mousetrap-config.json"


@pytest.fixture()
def store(config_file: Path) -> GuardConfigStore:
    return GuardConfigStore(config_file)


@pytest.fixture()
def make_message():
    """Factory for GuardMessage instances posted in the trap channel by default."""

    def factory(**overrides) -> GuardMessage:
        fields = dict(
            guild_id=GUILD,
            guild_name="Test Guild",
            channel_id=TRAP,
            message_id=MessageID(4001),
            author_id=USER,
            author_tag="spammer#0001",
            author_is_bot=False,
            is_text_channel=True,
            capabilities=frozenset({"send_messages", "read_messages"}),
            content="spam",
        )
        fields.update(overrides)
        return GuardMessage(**fields)

    return factory


@pytest.fixture()
def gateway():
    """Gateway double whose calls all succeed and are recorded in ``calls``."""
    fake = MagicMock()
    fake.calls = []
    fake.bot_mention = MagicMock(return_value="<@999>")

    def recorder(step: ActionStep):
        async def record(*args, **kwargs):
            fake.calls.append(step)
            return StepResult.success(step)
        return AsyncMock(side_effect=record)

    fake.delete_message = recorder(ActionStep.DELETE)
    fake.send_direct_message = recorder(ActionStep.DIRECT_MESSAGE)
    fake.send_channel_embed = recorder(ActionStep.AUDIT_LOG)
    fake.ban_member = recorder(ActionStep.BAN)
    return fake
