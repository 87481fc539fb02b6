"""
Wallet admin configuration.
Everything is read-only; money moves only through the ledger.
"""
from django.contrib import admin
from apps.wallets.models import Wallet, Transaction


class TransactionInline(admin.TabularInline):
    model = Transaction
    extra = 0
    readonly_fields = ['amount', 'direction', 'description', 'reference', 'created_at']
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Wallet)
class WalletAdmin(admin.ModelAdmin):
    list_display = ['user', 'balance', 'escrow_held', 'updated_at']
    search_fields = ['user__email']
    readonly_fields = ['user', 'balance', 'escrow_held', 'created_at', 'updated_at']
    inlines = [TransactionInline]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    list_display = ['id', 'wallet', 'direction', 'amount', 'description', 'created_at']
    list_filter = ['direction', 'created_at']
    search_fields = ['wallet__user__email', 'reference']
    readonly_fields = ['wallet', 'amount', 'direction', 'description', 'reference', 'created_at']

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
