"""
Order permissions.
"""
from rest_framework import permissions


class IsOrderParticipant(permissions.BasePermission):
    """
    Permission: User must be the store or the assigned rider of the order.
    """
    def has_object_permission(self, request, view, obj):
        return obj.is_participant(request.user)


class CanViewOrder(permissions.BasePermission):
    """
    Permission: Participants always; any rider while the order is open for bids.
    """
    message = "You can only view your own orders or orders open for bidding."

    def has_object_permission(self, request, view, obj):
        if obj.is_participant(request.user):
            return True
        return obj.status == obj.BIDDING and getattr(request.user, 'is_rider', False)
