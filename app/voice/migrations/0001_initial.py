"""
Initial schema for voice channel membership.
"""

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("rooms", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="VoiceMember",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("muted", models.BooleanField(default=False)),
                ("deafened", models.BooleanField(default=False)),
                ("joined_at", models.DateTimeField(auto_now_add=True)),
                (
                    "channel",
                    models.ForeignKey(
                        help_text="Occupied voice channel",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="members",
                        to="rooms.voicechannel",
                    ),
                ),
                (
                    "user",
                    models.OneToOneField(
                        help_text="Member; a user occupies at most one channel",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="voice_membership",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "voice_members",
                "ordering": ["joined_at", "id"],
            },
        ),
    ]
