"""
Custom user manager for email-based authentication.

This module provides the UserManager class that handles user creation
with email as the primary identifier instead of username.

Related files:
    - models.py: User model that uses this manager

Security:
    - Passwords are automatically hashed via set_password()
    - Email addresses are normalized (lowercase domain)
"""

from django.contrib.auth.base_user import BaseUserManager
from django.db import transaction


class UserManager(BaseUserManager):
    """
    Custom manager for User model with email-based authentication.

    Usage:
        user = User.objects.create_user(
            email='user@example.com',
            password='securepassword',
            username='user',
        )
    """

    def create_user(self, email, password=None, **extra_fields):
        """
        Create and save a regular user with the given email and password.

        When no username is given, the local part of the email is used.

        Args:
            email: User's email address (required)
            password: User's password (optional)
            **extra_fields: Additional fields to set on the user

        Returns:
            User: The created user instance

        Raises:
            ValueError: If email is not provided
        """
        if not email:
            raise ValueError("The Email field must be set")

        email = self.normalize_email(email)

        extra_fields.setdefault("is_staff", False)
        extra_fields.setdefault("username", email.split("@")[0])

        user = self.model(email=email, **extra_fields)

        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()

        # post_save assigns the default role; both commit or neither does
        with transaction.atomic(using=self._db):
            user.save(using=self._db)
        return user

    def create_staff_user(self, email, password=None, **extra_fields):
        """
        Create and save a staff user.

        Raises:
            ValueError: If is_staff is explicitly set to something other than True
        """
        extra_fields.setdefault("is_staff", True)

        if extra_fields.get("is_staff") is not True:
            raise ValueError("Staff user must have is_staff=True.")

        return self.create_user(email, password, **extra_fields)
