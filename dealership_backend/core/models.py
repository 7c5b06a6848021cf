# core/models.py

"""
STATUS HISTORY (APPEND-ONLY)

One row per state transition of any workflow aggregate.

GUARANTEES:
- Keyed by (entity_type, entity_id, sequence), sequence starts at 1
- Created once, never edited, never deleted
- Forward-chronological order == sequence order
"""

import uuid

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone


class StatusHistoryEvent(models.Model):
    class EntityType(models.TextChoices):
        ORDER = "order", "Order"
        VEHICLE_REQUEST = "vehicle_request", "Dealer Vehicle Request"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    entity_type = models.CharField(max_length=32, choices=EntityType.choices)
    entity_id = models.UUIDField()
    sequence = models.PositiveIntegerField()

    old_status = models.CharField(max_length=32, blank=True, default="")
    new_status = models.CharField(max_length=32)

    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="status_events",
    )
    actor_role = models.CharField(max_length=32, blank=True, default="")

    notes = models.TextField(blank=True, default="")
    payload = models.JSONField(default=dict, blank=True)

    timestamp = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["entity_type", "entity_id", "sequence"]
        constraints = [
            models.UniqueConstraint(
                fields=["entity_type", "entity_id", "sequence"],
                name="uniq_history_entity_sequence",
            ),
            models.CheckConstraint(
                condition=models.Q(sequence__gte=1),
                name="chk_history_sequence_gte_one",
            ),
        ]
        indexes = [
            models.Index(fields=["entity_type", "entity_id"], name="idx_history_entity"),
            models.Index(fields=["timestamp"], name="idx_history_timestamp"),
        ]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("StatusHistoryEvent records are immutable")
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("StatusHistoryEvent records are immutable and cannot be deleted")

    def __str__(self):
        return f"{self.entity_type}:{self.entity_id} #{self.sequence} {self.old_status or '-'} -> {self.new_status}"
