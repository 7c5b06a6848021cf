# core/admin.py

from django.contrib import admin

from core.models import StatusHistoryEvent


@admin.register(StatusHistoryEvent)
class StatusHistoryEventAdmin(admin.ModelAdmin):
    list_display = (
        "entity_type",
        "entity_id",
        "sequence",
        "old_status",
        "new_status",
        "actor",
        "timestamp",
    )
    list_filter = ("entity_type", "new_status")
    search_fields = ("entity_id", "notes")
    readonly_fields = [f.name for f in StatusHistoryEvent._meta.fields]

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
