# vehicles/admin.py

from django.contrib import admin

from vehicles.models import StockEntry, StockMovement, StockReservation, Vehicle


@admin.register(Vehicle)
class VehicleAdmin(admin.ModelAdmin):
    list_display = ("model_name", "version", "manufacturer", "price", "wholesale_price", "is_active")
    list_filter = ("manufacturer", "is_active")
    search_fields = ("model_name", "version")


@admin.register(StockEntry)
class StockEntryAdmin(admin.ModelAdmin):
    """
    Read-only: quantities only change through the stock ledger.
    """

    list_display = (
        "vehicle",
        "color",
        "owner_type",
        "owner_id",
        "total_quantity",
        "total_sold",
        "reserved_quantity",
        "version",
    )
    list_filter = ("owner_type", "color")
    search_fields = ("vehicle__model_name", "color")
    readonly_fields = [f.name for f in StockEntry._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(StockMovement)
class StockMovementAdmin(admin.ModelAdmin):
    list_display = ("entry", "reason", "movement_type", "quantity", "reference_type", "reference_id", "created_at")
    list_filter = ("reason", "movement_type")
    readonly_fields = [f.name for f in StockMovement._meta.fields]

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(StockReservation)
class StockReservationAdmin(admin.ModelAdmin):
    list_display = ("entry", "reference_type", "reference_id", "quantity", "status", "created_at", "closed_at")
    list_filter = ("status",)
    readonly_fields = [f.name for f in StockReservation._meta.fields]
