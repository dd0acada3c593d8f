"""
Constants for the role and permission system.

Import example:
    from roles.constants import Permissions, ROLE_CONFIG
"""

from typing import Final


class Permissions:
    """Permission names in the seeded catalog."""

    # General
    ADMINISTRATOR: Final[str] = "administrator"
    MANAGE_CHANNELS: Final[str] = "manage_channels"
    MANAGE_ROLES: Final[str] = "manage_roles"

    # Membership
    KICK_MEMBERS: Final[str] = "kick_members"
    BAN_MEMBERS: Final[str] = "ban_members"

    # Text
    SEND_MESSAGES: Final[str] = "send_messages"
    MANAGE_MESSAGES: Final[str] = "manage_messages"
    EMBED_LINKS: Final[str] = "embed_links"
    ATTACH_FILES: Final[str] = "attach_files"
    READ_HISTORY: Final[str] = "read_history"
    MENTION_EVERYONE: Final[str] = "mention_everyone"

    # Voice
    USE_VOICE: Final[str] = "use_voice"
    SPEAK: Final[str] = "speak"
    MUTE_MEMBERS: Final[str] = "mute_members"
    DEAFEN_MEMBERS: Final[str] = "deafen_members"
    MOVE_MEMBERS: Final[str] = "move_members"
    MANAGE_SOUNDS: Final[str] = "manage_sounds"


# (name, description, category) in catalog order
PERMISSION_CATALOG: Final[tuple[tuple[str, str, str], ...]] = (
    (Permissions.ADMINISTRATOR, "Full access to all server settings and features", "general"),
    (Permissions.MANAGE_CHANNELS, "Create, edit, and delete channels", "general"),
    (Permissions.MANAGE_ROLES, "Create, edit, and delete roles", "general"),
    (Permissions.KICK_MEMBERS, "Kick members from the server", "membership"),
    (Permissions.BAN_MEMBERS, "Ban members from the server", "membership"),
    (Permissions.SEND_MESSAGES, "Send messages in text channels", "text"),
    (Permissions.MANAGE_MESSAGES, "Delete and pin messages from other users", "text"),
    (Permissions.EMBED_LINKS, "Embed links in messages", "text"),
    (Permissions.ATTACH_FILES, "Upload files and images", "text"),
    (Permissions.READ_HISTORY, "Read message history", "text"),
    (Permissions.MENTION_EVERYONE, "Use @everyone and @here mentions", "text"),
    (Permissions.USE_VOICE, "Connect to voice channels", "voice"),
    (Permissions.SPEAK, "Speak in voice channels", "voice"),
    (Permissions.MUTE_MEMBERS, "Mute other members in voice", "voice"),
    (Permissions.DEAFEN_MEMBERS, "Deafen other members in voice", "voice"),
    (Permissions.MOVE_MEMBERS, "Move members between voice channels", "voice"),
    (Permissions.MANAGE_SOUNDS, "Manage soundboard sounds", "voice"),
)


class ROLE_CONFIG:
    """Configuration for role validation."""

    MAX_NAME_LENGTH: Final[int] = 50
    DEFAULT_COLOR: Final[str] = "#99AAB5"
    COLOR_PATTERN: Final[str] = r"^#[0-9A-Fa-f]{6}$"


# (name, color, position, is_default, permission names) created by migration
SEED_ROLES: Final[tuple[tuple[str, str, int, bool, tuple[str, ...]], ...]] = (
    ("Admin", "#E74C3C", 100, False, (Permissions.ADMINISTRATOR,)),
    (
        "Moderator",
        "#3498DB",
        50,
        False,
        (
            Permissions.KICK_MEMBERS,
            Permissions.MANAGE_MESSAGES,
            Permissions.MUTE_MEMBERS,
            Permissions.DEAFEN_MEMBERS,
            Permissions.MOVE_MEMBERS,
        ),
    ),
    (
        "Member",
        ROLE_CONFIG.DEFAULT_COLOR,
        0,
        True,
        (
            Permissions.SEND_MESSAGES,
            Permissions.EMBED_LINKS,
            Permissions.ATTACH_FILES,
            Permissions.READ_HISTORY,
            Permissions.USE_VOICE,
            Permissions.SPEAK,
        ),
    ),
)
