"""
Reconciliation - periodic self-healing pass over order state.

Deposits advance the order themselves, so a healthy database never has a
fully funded order left in AWAITING_ESCROW. This pass repairs any that
slipped through, and reports completed orders with no settlement record.
"""
import logging
from dataclasses import dataclass, field
from typing import List

from django.db import transaction

from apps.orders.models import Order
from apps.orders.services.state_machine import StateMachine

logger = logging.getLogger('orders')


@dataclass
class ReconciliationReport:
    healed: List[str] = field(default_factory=list)
    unsettled: List[str] = field(default_factory=list)


def find_stuck_orders():
    """Fully funded orders still waiting on the escrow gate."""
    return Order.objects.filter(
        status=Order.AWAITING_ESCROW,
        store_escrow_paid=True,
        rider_escrow_paid=True,
    ).order_by('created_at')


def find_unsettled_orders():
    """Completed orders that never got a settlement record."""
    return Order.objects.filter(
        status=Order.COMPLETED,
        settlement__isnull=True,
    ).order_by('completed_at')


def reconcile_stuck_orders(dry_run: bool = False) -> ReconciliationReport:
    """
    Advance stuck orders to READY_FOR_PICKUP.
    Wallets and settlements are never touched here.
    """
    report = ReconciliationReport()

    for order_id in find_stuck_orders().values_list('id', flat=True):
        if dry_run:
            report.healed.append(str(order_id))
            continue

        with transaction.atomic():
            locked = StateMachine.lock(order_id)
            # Re-check under the lock; a deposit may have advanced it meanwhile
            if locked.status != Order.AWAITING_ESCROW or not locked.escrow_funded:
                continue
            StateMachine.transition(
                locked,
                Order.READY_FOR_PICKUP,
                reason="Reconciliation: both escrow deposits present"
            )

        logger.warning(f"Reconciliation advanced stuck order {order_id} to READY_FOR_PICKUP")
        report.healed.append(str(order_id))

    for order_id in find_unsettled_orders().values_list('id', flat=True):
        logger.warning(f"Order {order_id} is COMPLETED but has no settlement record")
        report.unsettled.append(str(order_id))

    return report
