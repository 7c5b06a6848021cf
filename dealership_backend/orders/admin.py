# orders/admin.py

from django.contrib import admin

from orders.models import ContractDocument, Customer, Order, OrderContract, OrderItem, OrderPayment, Quote


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ("full_name", "dealership", "phone", "email", "created_at")
    list_filter = ("dealership",)
    search_fields = ("full_name", "phone", "email")


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    can_delete = False
    readonly_fields = [f.name for f in OrderItem._meta.fields]


class OrderPaymentInline(admin.TabularInline):
    model = OrderPayment
    extra = 0
    can_delete = False
    readonly_fields = [f.name for f in OrderPayment._meta.fields]


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    """
    Read-only: orders move only through the workflow API.
    """

    list_display = ("code", "dealership", "customer", "status", "final_amount", "paid_amount", "created_at")
    list_filter = ("status", "delivery_status", "dealership")
    search_fields = ("code", "customer__full_name")
    readonly_fields = [f.name for f in Order._meta.fields]
    inlines = [OrderItemInline, OrderPaymentInline]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


class ContractDocumentInline(admin.TabularInline):
    model = ContractDocument
    extra = 0
    can_delete = False
    readonly_fields = [f.name for f in ContractDocument._meta.fields]


@admin.register(OrderContract)
class OrderContractAdmin(admin.ModelAdmin):
    list_display = ("order", "contract_number", "status", "signed_at")
    list_filter = ("status",)
    search_fields = ("contract_number", "order__code")
    readonly_fields = [f.name for f in OrderContract._meta.fields]
    inlines = [ContractDocumentInline]

    def has_add_permission(self, request):
        return False


@admin.register(Quote)
class QuoteAdmin(admin.ModelAdmin):
    list_display = ("code", "dealership", "customer", "status", "final_amount", "end_date", "created_at")
    list_filter = ("status", "dealership")
    search_fields = ("code", "customer__full_name")
    readonly_fields = [f.name for f in Quote._meta.fields]

    def has_add_permission(self, request):
        return False
