"""
Reusable role permission classes for the marketplace application.
"""
from rest_framework.permissions import BasePermission


class IsStore(BasePermission):
    """
    Permission check for store accounts.
    Stores post delivery jobs and pick the winning bid.
    """
    message = "Only store accounts can perform this action."

    def has_permission(self, request, view):
        return (
            request.user.is_authenticated and
            request.user.role == 'STORE'
        )


class IsRider(BasePermission):
    """
    Permission check for rider accounts.
    """
    message = "Only rider accounts can perform this action."

    def has_permission(self, request, view):
        return (
            request.user.is_authenticated and
            request.user.role == 'RIDER'
        )


class IsActiveUser(BasePermission):
    """
    Permission check to ensure user account is active.
    """
    message = "Your account is inactive. Please contact support."

    def has_permission(self, request, view):
        if not request.user.is_authenticated:
            return True  # Let authentication handle this

        return request.user.is_active
