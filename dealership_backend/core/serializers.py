# core/serializers.py

from rest_framework import serializers

from core.models import StatusHistoryEvent


class StatusHistoryEventSerializer(serializers.ModelSerializer):
    actor_email = serializers.SerializerMethodField()

    class Meta:
        model = StatusHistoryEvent
        fields = [
            "id",
            "sequence",
            "old_status",
            "new_status",
            "actor",
            "actor_email",
            "actor_role",
            "notes",
            "payload",
            "timestamp",
        ]
        read_only_fields = fields

    def get_actor_email(self, obj):
        return getattr(obj.actor, "email", None)
