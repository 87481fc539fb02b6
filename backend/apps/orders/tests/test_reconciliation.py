"""
Tests for the reconciliation pass and its management command.
"""
from decimal import Decimal
from io import StringIO

from django.core.management import call_command

from apps.orders.models import Order, OrderStateLog, Settlement
from apps.orders.services.reconciliation import reconcile_stuck_orders
from common.testing import MarketplaceTestCase, create_user


class ReconciliationTestCase(MarketplaceTestCase):
    """Test healing of orders stuck behind the escrow gate."""

    def setUp(self):
        super().setUp()
        self.stuck = self.order_awaiting_escrow()
        # Both flags set without the gate having fired
        Order.objects.filter(pk=self.stuck.pk).update(store_escrow_paid=True, rider_escrow_paid=True)

    def test_stuck_order_advanced(self):
        with self.assertLogs('orders', level='WARNING'):
            report = reconcile_stuck_orders()

        self.assertEqual(report.healed, [str(self.stuck.id)])

        self.stuck.refresh_from_db()
        self.assertEqual(self.stuck.status, Order.READY_FOR_PICKUP)
        log = OrderStateLog.objects.get(order=self.stuck, to_state=Order.READY_FOR_PICKUP)
        self.assertIsNone(log.changed_by)

    def test_wallets_untouched(self):
        reconcile_stuck_orders()

        self.assertEqual(self.wallet_of(self.store).balance, Decimal('1000.00'))
        self.assertEqual(self.wallet_of(self.rider_b).escrow_held, Decimal('0.00'))

    def test_partially_funded_order_left_alone(self):
        order = self.order_awaiting_escrow(rider=self.rider_a)
        Order.objects.filter(pk=order.pk).update(store_escrow_paid=True)

        report = reconcile_stuck_orders()

        order.refresh_from_db()
        self.assertEqual(order.status, Order.AWAITING_ESCROW)
        self.assertNotIn(str(order.id), report.healed)

    def test_dry_run_changes_nothing(self):
        report = reconcile_stuck_orders(dry_run=True)

        self.assertEqual(report.healed, [str(self.stuck.id)])
        self.stuck.refresh_from_db()
        self.assertEqual(self.stuck.status, Order.AWAITING_ESCROW)

    def test_completed_without_settlement_reported_not_paid(self):
        order = self.order_awaiting_escrow(rider=self.rider_a)
        Order.objects.filter(pk=order.pk).update(status=Order.COMPLETED)

        report = reconcile_stuck_orders()

        self.assertEqual(report.unsettled, [str(order.id)])
        self.assertFalse(Settlement.objects.filter(order=order).exists())
        self.assertEqual(self.wallet_of(self.rider_a).balance, Decimal('500.00'))

    def test_command_output(self):
        out = StringIO()

        call_command('reconcile_orders', stdout=out)

        self.assertIn('Advanced 1 stuck orders', out.getvalue())
        self.assertIn(str(self.stuck.id), out.getvalue())

    def test_command_dry_run(self):
        out = StringIO()

        call_command('reconcile_orders', '--dry-run', stdout=out)

        self.assertIn('DRY RUN', out.getvalue())
        self.stuck.refresh_from_db()
        self.assertEqual(self.stuck.status, Order.AWAITING_ESCROW)


class ReconcileEndpointTestCase(MarketplaceTestCase):
    """Admin trigger for reconciliation."""

    def test_admin_only(self):
        self.authenticate(self.store)
        response = self.client.post('/api/orders/reconcile/')
        self.assertEqual(response.status_code, 403)

        admin = create_user('admin@test.com', 'ADMIN')
        self.authenticate(admin)
        response = self.client.post('/api/orders/reconcile/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data, {'healed': [], 'unsettled': []})
