"""
Tests for the audit trail of order events.
"""
from apps.audit.models import AuditLog
from apps.orders.models import Order
from apps.orders.services.order_service import OrderService
from common.testing import MarketplaceTestCase


class AuditTrailTestCase(MarketplaceTestCase):
    """Every committed order event leaves one audit row."""

    def test_order_creation_audited(self):
        with self.captureOnCommitCallbacks(execute=True):
            order = self.create_order()

        entry = AuditLog.objects.get()
        self.assertEqual(entry.category, AuditLog.ORDER)
        self.assertEqual(entry.action, 'order_created')
        self.assertEqual(entry.order_id, order.id)
        self.assertEqual(entry.user, self.store)
        self.assertEqual(entry.metadata['status'], Order.BIDDING)

    def test_escrow_and_gate_audited(self):
        order = self.order_awaiting_escrow()

        with self.captureOnCommitCallbacks(execute=True):
            OrderService.deposit_store_escrow(order, self.store)
            OrderService.deposit_rider_escrow(order, self.rider_b)

        escrow = AuditLog.objects.filter(category=AuditLog.ESCROW)
        self.assertEqual(escrow.count(), 2)
        self.assertEqual(
            sorted(entry.metadata['side'] for entry in escrow),
            ['rider', 'store']
        )

        gate = AuditLog.objects.get(action='status_changed')
        self.assertEqual(gate.metadata['status'], Order.READY_FOR_PICKUP)
        self.assertEqual(gate.metadata['from_status'], Order.AWAITING_ESCROW)

    def test_nothing_audited_without_commit(self):
        self.create_order()

        self.assertFalse(AuditLog.objects.exists())

    def test_entries_are_immutable(self):
        with self.captureOnCommitCallbacks(execute=True):
            self.create_order()

        entry = AuditLog.objects.get()
        entry.description = 'edited'
        with self.assertRaises(ValueError):
            entry.save()
