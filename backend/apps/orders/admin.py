"""
Order admin configuration.
Read-only: orders change only through OrderService.
"""
from django.contrib import admin
from apps.orders.models import Order, Bid, OrderStateLog, Settlement


class BidInline(admin.TabularInline):
    model = Bid
    extra = 0
    readonly_fields = ['rider', 'amount', 'created_at', 'updated_at']
    can_delete = False


class OrderStateLogInline(admin.TabularInline):
    model = OrderStateLog
    extra = 0
    readonly_fields = ['from_state', 'to_state', 'changed_by', 'reason', 'created_at']
    can_delete = False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ['id', 'store', 'rider', 'product_name', 'status', 'product_price', 'created_at']
    list_filter = ['status', 'store_escrow_paid', 'rider_escrow_paid', 'created_at']
    search_fields = ['id', 'product_name', 'store__email', 'rider__email']
    readonly_fields = [
        'id', 'store', 'rider', 'selected_bid', 'product_name', 'product_price',
        'delivery_fee_offer', 'delivery_address', 'client_name', 'client_phone',
        'status', 'store_escrow_paid', 'rider_escrow_paid', 'store_reviewed',
        'rider_reviewed', 'created_at', 'updated_at', 'completed_at', 'settled_at'
    ]
    inlines = [BidInline, OrderStateLogInline]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Settlement)
class SettlementAdmin(admin.ModelAdmin):
    list_display = ['id', 'order', 'fee', 'product_price', 'used_fee_fallback', 'created_at']
    list_filter = ['used_fee_fallback']
    search_fields = ['order__id']
    readonly_fields = ['id', 'order', 'fee', 'product_price', 'used_fee_fallback', 'created_at']

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
