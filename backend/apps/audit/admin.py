"""
Audit admin configuration.
"""
from django.contrib import admin
from apps.audit.models import AuditLog


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ['category', 'action', 'order_id', 'user', 'created_at']
    list_filter = ['category', 'action', 'created_at']
    search_fields = ['action', 'description', 'user__email', 'order_id']
    readonly_fields = [
        'id', 'category', 'action', 'description', 'user',
        'order_id', 'metadata', 'created_at'
    ]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
