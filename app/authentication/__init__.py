"""
Authentication application.

This app owns user identity for the access-control core. Session
handling, login and registration are done by the outer web layer; the
core only needs a stable integer id per user.

Key components:
    - User model: Custom email-based user with an integer primary key
    - UserManager: Email-normalizing user creation

Usage:
    from authentication.models import User
"""
