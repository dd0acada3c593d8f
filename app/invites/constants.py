"""
Constants for invite codes.

Import example:
    from invites.constants import INVITE_CONFIG
"""

import string
from typing import Final


class INVITE_CONFIG:
    """Configuration for invite code generation and storage."""

    ALPHABET: Final[str] = string.ascii_uppercase + string.digits
    DEFAULT_CODE_LENGTH: Final[int] = 8
    DEFAULT_MAX_ATTEMPTS: Final[int] = 10

    # Column width leaves room for longer codes configured later
    MAX_CODE_LENGTH: Final[int] = 20
