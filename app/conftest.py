"""
Root pytest configuration for the Django project.

This module configures pytest-django and provides project-wide fixtures.
App-specific fixtures are defined in each app's tests/conftest.py.
"""

import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--require-postgres",
        action="store_true",
        default=False,
        help="Fail, instead of skip, PostgreSQL-only tests on other backends",
    )


def pytest_configure():
    """Adjust Django settings before tests run."""
    from django.conf import settings

    # Use fast password hasher for tests (PBKDF2 is too slow with 870K iterations)
    settings.PASSWORD_HASHERS = [
        "django.contrib.auth.hashers.MD5PasswordHasher",
    ]

    # Domain events are broadcast in-process instead of through Redis
    settings.CHANNEL_LAYERS = {
        "default": {"BACKEND": "channels.layers.InMemoryChannelLayer"},
    }

    settings.CELERY_TASK_ALWAYS_EAGER = True


def pytest_collection_modifyitems(items):
    """
    Auto-mark tests based on filename patterns.

    Mapping:
    - test_concurrency.py → concurrency (threaded, PostgreSQL only)
    - test_services.py, test_tasks.py, test_events.py, etc. → integration
    - test_models.py, test_decorators.py, test_exceptions.py, etc. → unit
    - Unmatched files → integration (safe default for Django)

    Explicit markers on test functions/classes take precedence.
    """
    concurrency_patterns = ["test_concurrency.py"]

    integration_patterns = [
        "test_services.py",
        "test_tasks.py",
        "test_events.py",
        "test_migrations.py",
    ]

    unit_patterns = [
        "test_models.py",
        "test_managers.py",
        "test_signals.py",
        "test_decorators.py",
        "test_exceptions.py",
    ]

    for item in items:
        existing_markers = {m.name for m in item.iter_markers()}
        if existing_markers & {"unit", "integration", "concurrency"}:
            continue

        filename = str(item.fspath).split("/")[-1]

        if any(pattern in filename for pattern in concurrency_patterns):
            item.add_marker(pytest.mark.concurrency)
        elif any(pattern in filename for pattern in integration_patterns):
            item.add_marker(pytest.mark.integration)
        elif any(pattern in filename for pattern in unit_patterns):
            item.add_marker(pytest.mark.unit)
        else:
            item.add_marker(pytest.mark.integration)


@pytest.fixture
def postgres_only(request):
    """
    Skip unless running against PostgreSQL (row locks, real concurrency).

    With --require-postgres the test fails instead, so a CI run against
    PostgreSQL cannot pass with the concurrency suite silently skipped:

        DATABASE_URL=postgres://postgres:postgres@db:5432/app_test \\
            pytest -m concurrency --require-postgres
    """
    from django.db import connection

    if connection.vendor != "postgresql":
        message = f"Requires PostgreSQL for row-level locking, got {connection.vendor}"
        if request.config.getoption("--require-postgres"):
            pytest.fail(message)
        pytest.skip(message)


@pytest.fixture
def domain_events():
    """
    Collect domain events published during the test.

    Events are only published on commit, so wrap the call under test in
    ``django_capture_on_commit_callbacks(execute=True)``.

    Usage:
        def test_emits(domain_events, django_capture_on_commit_callbacks):
            with django_capture_on_commit_callbacks(execute=True):
                VoiceMembershipService.leave(user.id)
            assert [e.event_type for e in domain_events] == ["voice.left"]
    """
    from core.events import domain_event

    received = []

    def _collect(sender, event, **kwargs):
        received.append(event)

    domain_event.connect(_collect, weak=False)
    yield received
    domain_event.disconnect(_collect)


def _patch_postgresql_flush_for_cascade():
    """
    Patch PostgreSQL flush to always use CASCADE.

    Transactional concurrency tests flush the database with TRUNCATE,
    which fails on tables referenced by foreign keys unless CASCADE is
    used.
    """
    from django.db.backends.postgresql import operations

    original_sql_flush = operations.DatabaseOperations.sql_flush

    def sql_flush_with_cascade(
        self, style, tables, *, reset_sequences=False, allow_cascade=False
    ):
        return original_sql_flush(
            self, style, tables, reset_sequences=reset_sequences, allow_cascade=True
        )

    operations.DatabaseOperations.sql_flush = sql_flush_with_cascade


_patch_postgresql_flush_for_cascade()
