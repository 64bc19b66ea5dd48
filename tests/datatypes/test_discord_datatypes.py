import pytest

from mousetrap.datatypes.discord_datatypes import (
    ChannelID,
    GuildID,
    MessageID,
    UserID,
)


def test_userid_from_int_and_str_and_equality_and_hash():
    u1 = UserID(12345)
    assert u1.to_int() == 12345
    assert str(u1) == "12345"

    u2 = UserID("12345")
    assert u1 == u2
    assert hash(u1) == hash(u2)

    u3 = UserID.from_int(67890)
    assert isinstance(u3, UserID)
    assert u3.to_int() == 67890

    # equality with raw types
    assert u1 == 12345
    assert u1 == "12345"
    assert u1 != 54321


def test_whitespace_is_stripped_from_strings():
    assert ChannelID(" 42 ") == ChannelID(42)


def test_copy_from_same_kind():
    original = GuildID(7)
    assert GuildID(original) == original


@pytest.mark.parametrize("bad", ["abc", "", None, 1.5, True])
def test_invalid_values_raise(bad):
    with pytest.raises(ValueError):
        ChannelID(bad)


def test_different_kinds_are_not_equal():
    assert ChannelID(5) != GuildID(5)
    assert len({ChannelID(5), ChannelID("5")}) == 1


def test_mentions():
    assert ChannelID(2001).mention() == "<#2001>"
    assert UserID(3001).mention() == "<@3001>"


def test_repr_names_the_kind():
    assert repr(MessageID(9)) == "MessageID('9')"
