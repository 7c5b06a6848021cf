# vehicle_requests/admin.py

from django.contrib import admin

from vehicle_requests.models import DealerVehicleRequest, DealerVehicleRequestItem


class DealerVehicleRequestItemInline(admin.TabularInline):
    model = DealerVehicleRequestItem
    extra = 0
    can_delete = False
    readonly_fields = [f.name for f in DealerVehicleRequestItem._meta.fields]


@admin.register(DealerVehicleRequest)
class DealerVehicleRequestAdmin(admin.ModelAdmin):
    list_display = ("code", "dealership", "manufacturer", "status", "created_at")
    list_filter = ("status", "manufacturer", "dealership")
    search_fields = ("code",)
    readonly_fields = [f.name for f in DealerVehicleRequest._meta.fields]
    inlines = [DealerVehicleRequestItemInline]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
