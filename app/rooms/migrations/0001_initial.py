"""
Initial schema for text channels, voice channels and DM participants.
"""

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


def _timestamps():
    return [
        (
            "created_at",
            models.DateTimeField(
                auto_now_add=True,
                db_index=True,
                help_text="Timestamp when this record was created",
            ),
        ),
        (
            "updated_at",
            models.DateTimeField(
                auto_now=True,
                help_text="Timestamp when this record was last modified",
            ),
        ),
    ]


def _id():
    return (
        "id",
        models.BigAutoField(
            auto_created=True,
            primary_key=True,
            serialize=False,
            verbose_name="ID",
        ),
    )


CHANNEL_TYPE_FIELD = models.CharField(
    choices=[("public", "Public"), ("dm", "Direct Message")],
    db_index=True,
    default="public",
    help_text="Public server channel or private DM channel",
    max_length=10,
)


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="TextChannel",
            fields=[
                _id(),
                *_timestamps(),
                ("name", models.CharField(help_text="Channel name", max_length=100)),
                (
                    "description",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Channel topic",
                        max_length=500,
                    ),
                ),
                ("channel_type", CHANNEL_TYPE_FIELD.clone()),
                (
                    "position",
                    models.IntegerField(
                        default=0, help_text="Sort order in the channel list"
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        help_text="User who created the channel",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="created_text_channels",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "text_channels",
                "ordering": ["position", "id"],
            },
        ),
        migrations.CreateModel(
            name="VoiceChannel",
            fields=[
                _id(),
                *_timestamps(),
                ("name", models.CharField(help_text="Channel name", max_length=100)),
                ("channel_type", CHANNEL_TYPE_FIELD.clone()),
                (
                    "max_users",
                    models.PositiveIntegerField(
                        default=0,
                        help_text="Maximum simultaneous members (0 = unlimited)",
                    ),
                ),
                (
                    "bitrate",
                    models.PositiveIntegerField(
                        default=64000,
                        help_text="Audio bitrate in bits per second",
                    ),
                ),
                (
                    "position",
                    models.IntegerField(
                        default=0, help_text="Sort order in the channel list"
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        help_text="User who created the channel",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="created_voice_channels",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "voice_channels",
                "ordering": ["position", "id"],
            },
        ),
        migrations.CreateModel(
            name="ChannelParticipant",
            fields=[
                _id(),
                (
                    "channel_kind",
                    models.CharField(
                        choices=[("text", "Text"), ("voice", "Voice")],
                        default="text",
                        max_length=10,
                    ),
                ),
                (
                    "channel_id",
                    models.PositiveBigIntegerField(
                        help_text="Id of the TextChannel or VoiceChannel"
                    ),
                ),
                ("joined_at", models.DateTimeField(auto_now_add=True)),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="channel_participations",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "channel_participants",
                "constraints": [
                    models.UniqueConstraint(
                        fields=("channel_kind", "channel_id", "user"),
                        name="unique_channel_participant",
                    ),
                ],
                "indexes": [
                    models.Index(
                        fields=["channel_kind", "channel_id"],
                        name="channel_participants_chan_idx",
                    ),
                ],
            },
        ),
    ]
