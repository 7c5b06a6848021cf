# Generated for the initial dealership schema

import uuid

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="StatusHistoryEvent",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "entity_type",
                    models.CharField(
                        choices=[("order", "Order"), ("vehicle_request", "Dealer Vehicle Request")],
                        max_length=32,
                    ),
                ),
                ("entity_id", models.UUIDField()),
                ("sequence", models.PositiveIntegerField()),
                ("old_status", models.CharField(blank=True, default="", max_length=32)),
                ("new_status", models.CharField(max_length=32)),
                ("actor_role", models.CharField(blank=True, default="", max_length=32)),
                ("notes", models.TextField(blank=True, default="")),
                ("payload", models.JSONField(blank=True, default=dict)),
                ("timestamp", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "actor",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="status_events",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["entity_type", "entity_id", "sequence"],
                "indexes": [
                    models.Index(fields=["entity_type", "entity_id"], name="idx_history_entity"),
                    models.Index(fields=["timestamp"], name="idx_history_timestamp"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("entity_type", "entity_id", "sequence"),
                        name="uniq_history_entity_sequence",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("sequence__gte", 1)),
                        name="chk_history_sequence_gte_one",
                    ),
                ],
            },
        ),
    ]
