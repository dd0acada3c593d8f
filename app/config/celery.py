"""
Celery configuration for the Django application.

Celery runs the periodic maintenance jobs of the access-control core
(currently the hourly purge of spent invite codes). Schedules are stored
in the database by django-celery-beat and created by data migrations.

Tasks are auto-discovered from all installed Django apps.

Usage:
    # Define a task in any app's tasks.py:
    from celery import shared_task

    @shared_task
    def purge_spent_invite_codes():
        ...

    # Call the task asynchronously:
    purge_spent_invite_codes.delay()
"""

import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("config")

# All Celery settings are prefixed with CELERY_ in settings.py
app.config_from_object("django.conf:settings", namespace="CELERY")

app.autodiscover_tasks()
