"""
Audit logging utilities.
Persists order events published on apps.orders.signals.order_event.
"""
import logging
from typing import Optional, Dict, Any
from apps.audit.models import AuditLog
from apps.orders import signals as order_signals

logger = logging.getLogger('audit')

EVENT_CATEGORIES = {
    order_signals.EVENT_ORDER_CREATED: AuditLog.ORDER,
    order_signals.EVENT_STATUS_CHANGED: AuditLog.ORDER,
    order_signals.EVENT_BID_PLACED: AuditLog.BID,
    order_signals.EVENT_BID_UPDATED: AuditLog.BID,
    order_signals.EVENT_BID_SELECTED: AuditLog.BID,
    order_signals.EVENT_ESCROW_PAID: AuditLog.ESCROW,
    order_signals.EVENT_SETTLEMENT_COMPLETE: AuditLog.SETTLEMENT,
    order_signals.EVENT_ORDER_REVIEWED: AuditLog.REVIEW,
}


class AuditLogger:
    """
    Centralized audit logging service.
    """

    @staticmethod
    def log_event(
        category: str,
        action: str,
        description: str,
        user_id: Optional[int] = None,
        order_id=None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> AuditLog:
        """
        Log general system event.

        Args:
            category: Event category
            action: Action name
            description: Event description
            user_id: Acting user, None for system actions
            order_id: Order the event belongs to
            metadata: Additional context

        Returns:
            Created AuditLog
        """
        return AuditLog.objects.create(
            category=category,
            action=action[:100],
            description=description,
            user_id=user_id,
            order_id=order_id,
            metadata=metadata or {},
        )


def record_order_event(sender, event, order_id, status, actor_id, payload, **kwargs):
    """order_event receiver: one audit row per published event."""
    category = EVENT_CATEGORIES.get(event, AuditLog.ORDER)
    AuditLogger.log_event(
        category=category,
        action=event,
        description=f"Order {order_id} {event.replace('_', ' ')} (status {status})",
        user_id=actor_id,
        order_id=order_id,
        metadata={'status': status, **payload},
    )
    logger.debug(f"Audited {event} for order {order_id}")
