"""
Add the Celery Beat schedule that purges spent invite codes.
"""

from django.db import migrations

TASK_NAME = "Invites: Purge Spent Codes"


def create_periodic_tasks(apps, schema_editor):
    """Schedule the hourly purge of expired and exhausted codes."""
    IntervalSchedule = apps.get_model("django_celery_beat", "IntervalSchedule")
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    schedule_1hour, _ = IntervalSchedule.objects.get_or_create(
        every=1,
        period="hours",
    )

    PeriodicTask.objects.get_or_create(
        name=TASK_NAME,
        defaults={
            "task": "invites.tasks.purge_spent_invite_codes",
            "interval": schedule_1hour,
            "enabled": True,
            "description": (
                "Deletes invite codes that have expired or reached their "
                "maximum number of uses."
            ),
        },
    )


def remove_periodic_tasks(apps, schema_editor):
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")
    PeriodicTask.objects.filter(name=TASK_NAME).delete()


class Migration(migrations.Migration):
    dependencies = [
        ("invites", "0001_initial"),
        ("django_celery_beat", "0019_alter_periodictasks_options"),
    ]

    operations = [
        migrations.RunPython(create_periodic_tasks, remove_periodic_tasks),
    ]
