# debts/admin.py

from django.contrib import admin

from debts.models import ManufacturerDebt, ManufacturerDebtItem, ManufacturerDebtPayment


class ManufacturerDebtItemInline(admin.TabularInline):
    model = ManufacturerDebtItem
    extra = 0
    can_delete = False
    readonly_fields = [f.name for f in ManufacturerDebtItem._meta.fields]


class ManufacturerDebtPaymentInline(admin.TabularInline):
    model = ManufacturerDebtPayment
    extra = 0
    can_delete = False
    readonly_fields = [f.name for f in ManufacturerDebtPayment._meta.fields]


@admin.register(ManufacturerDebt)
class ManufacturerDebtAdmin(admin.ModelAdmin):
    list_display = ("dealership", "manufacturer", "total_amount", "paid_amount", "remaining_amount", "status")
    list_filter = ("manufacturer", "dealership")
    readonly_fields = [f.name for f in ManufacturerDebt._meta.fields]
    inlines = [ManufacturerDebtItemInline, ManufacturerDebtPaymentInline]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
