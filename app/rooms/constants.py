"""
Constants for channel provisioning.

Import example:
    from rooms.constants import CHANNEL_CONFIG
"""

from typing import Final


class CHANNEL_CONFIG:
    """Configuration for channel rows."""

    MAX_NAME_LENGTH: Final[int] = 100
    MAX_DESCRIPTION_LENGTH: Final[int] = 500
    DEFAULT_BITRATE: Final[int] = 64000

    # Private voice channels hold exactly the two friends
    DM_VOICE_MAX_USERS: Final[int] = 2
    DM_TEXT_NAME_TEMPLATE: Final[str] = "dm-{low}-{high}"
    DM_VOICE_NAME_TEMPLATE: Final[str] = "dm-voice-{low}-{high}"
