"""
Tests for channel models.
"""

from rooms.tests.factories import VoiceChannelFactory


class TestVoiceChannelCapacity:
    """Tests for VoiceChannel.has_room_for()."""

    def test_unlimited_channel_always_has_room(self, db):
        channel = VoiceChannelFactory(max_users=0)

        assert channel.is_unlimited
        assert channel.has_room_for(10_000)

    def test_limited_channel(self, db):
        channel = VoiceChannelFactory(max_users=2)

        assert channel.has_room_for(0)
        assert channel.has_room_for(1)
        assert not channel.has_room_for(2)
