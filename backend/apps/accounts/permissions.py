from rest_framework.permissions import BasePermission

from apps.accounts.models import User


class IsAdmin(BasePermission):
    """
    Platform staff: active ADMIN-role accounts.
    Used for maintenance endpoints such as order reconciliation.
    """
    message = "Only administrators can access this resource."

    def has_permission(self, request, view):
        user = request.user
        return (
            user.is_authenticated and
            user.is_active and
            user.role == User.Role.ADMIN
        )
