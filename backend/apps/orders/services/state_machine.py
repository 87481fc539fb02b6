"""
Order state machine service.
Handles ALL status transitions with validation.
Callers hold the order row lock (see StateMachine.lock) for the whole
read-check-write sequence.
"""
import logging
from typing import Optional

from django.core.exceptions import ValidationError
from django.utils import timezone

from apps.orders.models import Order, OrderStateLog
from apps.orders.signals import emit, EVENT_STATUS_CHANGED
from common.exceptions import Forbidden, InvalidTransition, NotFound

logger = logging.getLogger('orders')


class StateMachine:
    """
    Order state machine with strict forward-only transition rules.
    """

    # Valid status transitions; forward only, one step at a time
    TRANSITIONS = {
        Order.BIDDING: [Order.AWAITING_ESCROW],
        Order.AWAITING_ESCROW: [Order.READY_FOR_PICKUP],
        Order.READY_FOR_PICKUP: [Order.IN_TRANSIT],
        Order.IN_TRANSIT: [Order.DELIVERED],
        Order.DELIVERED: [Order.COMPLETED],
        Order.COMPLETED: [],  # Terminal state
    }

    # Reached only through bid selection and escrow deposits
    SYSTEM_TRANSITIONS = {Order.AWAITING_ESCROW, Order.READY_FOR_PICKUP}

    # Party allowed to drive each manual transition
    TRANSITION_ACTORS = {
        Order.IN_TRANSIT: 'rider',     # Rider confirms pickup
        Order.DELIVERED: 'rider',      # Rider confirms delivery
        Order.COMPLETED: 'store',      # Store confirms receipt
    }

    @classmethod
    def can_transition(cls, from_state: str, to_state: str) -> bool:
        """Check if transition is valid."""
        return to_state in cls.TRANSITIONS.get(from_state, [])

    @classmethod
    def next_status(cls, status: str) -> Optional[str]:
        allowed = cls.TRANSITIONS.get(status, [])
        return allowed[0] if allowed else None

    @staticmethod
    def lock(order) -> Order:
        """
        Re-read the order under SELECT ... FOR UPDATE.
        Must be called inside transaction.atomic.
        """
        order_id = getattr(order, 'pk', order)
        try:
            return Order.objects.select_for_update().get(pk=order_id)
        except (Order.DoesNotExist, ValidationError, ValueError):
            raise NotFound(f"Order {order_id} does not exist")

    @classmethod
    def transition(
        cls,
        order: Order,
        to_state: str,
        user=None,
        reason: str = "",
    ) -> Order:
        """
        Move a locked order to its next status.

        Args:
            order: Order instance obtained from StateMachine.lock
            to_state: Target status
            user: User making the change (None for system)
            reason: Reason for transition

        Returns:
            Updated order

        Raises:
            InvalidTransition: If the move is not in the transition table
        """
        if not cls.can_transition(order.status, to_state):
            raise InvalidTransition(
                f"Cannot transition from {order.status} to {to_state}"
            )

        old_state = order.status
        order.status = to_state

        update_fields = ['status', 'updated_at']
        if to_state == Order.COMPLETED:
            order.completed_at = timezone.now()
            update_fields.append('completed_at')

        order.save(update_fields=update_fields)

        OrderStateLog.objects.create(
            order=order,
            from_state=old_state,
            to_state=to_state,
            changed_by=user,
            reason=reason
        )

        logger.info(
            f"Order {order.id}: {old_state} -> {to_state} "
            f"by {'system' if user is None else f'user {user.pk}'}"
        )
        emit(EVENT_STATUS_CHANGED, order, actor=user, from_status=old_state, reason=reason)

        return order

    @classmethod
    def validate_user_can_transition(cls, order: Order, user, to_state: str) -> None:
        """
        Validate that user is the party allowed to make this transition.

        Raises:
            Forbidden: If user cannot make this transition
        """
        party = cls.TRANSITION_ACTORS.get(to_state)

        if party == 'rider' and order.is_rider(user):
            return
        if party == 'store' and order.is_store(user):
            return
        if party is None:
            # Escrow and selection transitions are not driven directly
            raise Forbidden(f"{to_state} is set by the system, not by a user")

        raise Forbidden(
            f"Only the order's {party} can move this order to {to_state}"
        )
