"""
Authentication models.

This module defines the user identity model:
- User: Custom user model with email-based authentication

Every other app references users by their integer id only. Role,
voice, friendship and invite rows point at users through foreign keys
that cascade on user deletion.

Related files:
    - managers.py: Custom user manager for email-based creation
    - roles/signals.py: Assigns the default role on user creation
"""

import re

from django.contrib.auth.base_user import AbstractBaseUser
from django.core.exceptions import ValidationError
from django.db import models

from authentication.managers import UserManager


def validate_username_format(value):
    """Validate username format: 3-50 chars, alphanumeric + _ + - + ."""
    if not re.match(r"^[a-zA-Z0-9_.-]{3,50}$", value):
        raise ValidationError(
            "Username must be 3-50 characters and contain only "
            "letters, numbers, dots, underscores, and hyphens."
        )


class User(AbstractBaseUser):
    """
    Custom User model using email as the primary identifier.

    Fields:
        email: Primary identifier, unique, used for login
        username: Unique public handle shown in member lists
        display_name: Optional friendly name
        is_active: Whether the user account is active
        is_staff: Whether the user can access operator tooling
        date_joined: When the user account was created
        updated_at: When the user record was last modified

    Usage:
        user = User.objects.create_user(
            email='user@example.com',
            password='securepassword',
            username='user',
        )
    """

    email = models.EmailField(
        unique=True,
        db_index=True,
        max_length=254,
        help_text="User's email address (primary identifier)",
    )

    username = models.CharField(
        max_length=50,
        unique=True,
        validators=[validate_username_format],
        help_text="Unique public handle",
    )

    display_name = models.CharField(
        max_length=100,
        blank=True,
        default="",
        help_text="Optional display name",
    )

    is_active = models.BooleanField(
        default=True,
        help_text="Whether this user account is active. Deselect instead of deleting.",
    )
    is_staff = models.BooleanField(
        default=False,
        help_text="Whether the user can access operator tooling.",
    )

    date_joined = models.DateTimeField(
        auto_now_add=True,
        help_text="When the user account was created",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="When the user record was last modified",
    )

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = ["username"]

    objects = UserManager()

    class Meta:
        db_table = "users"
        verbose_name = "user"
        verbose_name_plural = "users"
        ordering = ["-date_joined"]

    def __str__(self):
        """Return the user's email as string representation."""
        return self.email

    def get_full_name(self):
        """Return display name, falling back to username."""
        return self.display_name or self.username

    def get_short_name(self):
        """Return the public handle."""
        return self.username
