"""
Tests for the authentication app.

Modules:
- test_managers.py: UserManager creation paths and User display helpers
"""
