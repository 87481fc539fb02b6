"""
Order event stream.

Every state-changing operation publishes an ``order_event`` once its
database transaction commits. Receivers get keyword arguments:

    event     - one of the EVENT_* names below
    order_id  - UUID of the order
    status    - order status after the change
    actor_id  - id of the acting user, or None for system actions
    payload   - dict with event-specific details
"""
import logging

from django.db import transaction
from django.dispatch import Signal

logger = logging.getLogger('orders')

EVENT_ORDER_CREATED = 'order_created'
EVENT_BID_PLACED = 'bid_placed'
EVENT_BID_UPDATED = 'bid_updated'
EVENT_BID_SELECTED = 'bid_selected'
EVENT_ESCROW_PAID = 'escrow_paid'
EVENT_STATUS_CHANGED = 'status_changed'
EVENT_SETTLEMENT_COMPLETE = 'settlement_complete'
EVENT_ORDER_REVIEWED = 'order_reviewed'

order_event = Signal()


def emit(event, order, actor=None, **payload):
    """Publish an order event after the surrounding transaction commits."""
    kwargs = {
        'event': event,
        'order_id': order.pk,
        'status': order.status,
        'actor_id': getattr(actor, 'pk', None),
        'payload': payload,
    }

    def _send():
        logger.debug(f"Publishing {event} for order {kwargs['order_id']}")
        responses = order_event.send_robust(sender=order.__class__, **kwargs)
        for receiver, result in responses:
            if isinstance(result, Exception):
                logger.error(f"Receiver {receiver!r} failed on {event}: {result}")

    transaction.on_commit(_send)
