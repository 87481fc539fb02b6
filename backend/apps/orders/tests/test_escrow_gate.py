"""
Tests for the dual escrow deposits and the funding gate.
"""
from decimal import Decimal

from django.contrib.auth import get_user_model

from apps.orders.models import Order, OrderStateLog
from apps.orders.services.order_service import OrderService
from apps.wallets.models import Transaction
from common.exceptions import Forbidden, InsufficientFunds, InvalidTransition
from common.testing import MarketplaceTestCase, create_user

User = get_user_model()


class EscrowDepositTestCase(MarketplaceTestCase):
    """Test each side's deposit."""

    def setUp(self):
        super().setUp()
        # product price 50, selected fee 6
        self.order = self.order_awaiting_escrow(amount='6.00')

    def test_store_deposit_moves_fee_to_escrow(self):
        order = OrderService.deposit_store_escrow(self.order, self.store)

        self.assertTrue(order.store_escrow_paid)
        self.assertFalse(order.rider_escrow_paid)
        self.assertEqual(order.status, Order.AWAITING_ESCROW)

        wallet = self.wallet_of(self.store)
        self.assertEqual(wallet.balance, Decimal('994.00'))
        self.assertEqual(wallet.escrow_held, Decimal('6.00'))

        entry = wallet.transactions.first()
        self.assertEqual(entry.direction, Transaction.OUT)
        self.assertEqual(entry.amount, Decimal('6.00'))
        self.assertEqual(entry.description, 'Escrow deposit for Running shoes')
        self.assertEqual(entry.reference, str(self.order.id))

    def test_rider_deposit_moves_collateral_to_escrow(self):
        order = OrderService.deposit_rider_escrow(self.order, self.rider_b)

        self.assertTrue(order.rider_escrow_paid)
        self.assertEqual(order.status, Order.AWAITING_ESCROW)

        wallet = self.wallet_of(self.rider_b)
        self.assertEqual(wallet.balance, Decimal('450.00'))
        self.assertEqual(wallet.escrow_held, Decimal('50.00'))
        self.assertEqual(
            wallet.transactions.first().description,
            'Product collateral for Running shoes'
        )

    def test_duplicate_deposit_rejected(self):
        OrderService.deposit_store_escrow(self.order, self.store)

        with self.assertRaises(InvalidTransition):
            OrderService.deposit_store_escrow(self.order, self.store)

        self.assertEqual(self.wallet_of(self.store).escrow_held, Decimal('6.00'))

    def test_wrong_parties_forbidden(self):
        with self.assertRaises(Forbidden):
            OrderService.deposit_store_escrow(self.order, self.outsider)

        # rider_a bid but was not selected
        with self.assertRaises(Forbidden):
            OrderService.deposit_rider_escrow(self.order, self.rider_a)

        with self.assertRaises(Forbidden):
            OrderService.deposit_rider_escrow(self.order, self.store)

    def test_deposit_before_selection_rejected(self):
        order = self.create_order()

        with self.assertRaises(InvalidTransition):
            OrderService.deposit_store_escrow(order, self.store)

        self.assertEqual(self.wallet_of(self.store).balance, Decimal('1000.00'))

    def test_store_insufficient_funds_leaves_everything_untouched(self):
        poor_store = create_user('poor@test.com', User.Role.STORE, '3.00')
        order = self.create_order(store=poor_store)
        bid, _ = OrderService.place_bid(order, self.rider_b, Decimal('6.00'))
        OrderService.select_bid(order, poor_store, bid.id)

        with self.assertRaises(InsufficientFunds):
            OrderService.deposit_store_escrow(order, poor_store)

        wallet = self.wallet_of(poor_store)
        self.assertEqual(wallet.balance, Decimal('3.00'))
        self.assertEqual(wallet.escrow_held, Decimal('0.00'))
        self.assertEqual(wallet.transactions.count(), 1)

        order.refresh_from_db()
        self.assertFalse(order.store_escrow_paid)
        self.assertEqual(order.status, Order.AWAITING_ESCROW)

    def test_rider_insufficient_funds(self):
        order = self.create_order(product_price='600.00')
        bid, _ = OrderService.place_bid(order, self.rider_a, Decimal('5.00'))
        OrderService.select_bid(order, self.store, bid.id)

        with self.assertRaises(InsufficientFunds):
            OrderService.deposit_rider_escrow(order, self.rider_a)

        order.refresh_from_db()
        self.assertFalse(order.rider_escrow_paid)
        self.assertEqual(self.wallet_of(self.rider_a).balance, Decimal('500.00'))


class FundingGateTestCase(MarketplaceTestCase):
    """READY_FOR_PICKUP once both sides are funded, in either order."""

    def setUp(self):
        super().setUp()
        self.order = self.order_awaiting_escrow()

    def assert_ready(self, order):
        self.assertEqual(order.status, Order.READY_FOR_PICKUP)
        self.assertTrue(order.escrow_funded)
        log = OrderStateLog.objects.get(order=order, to_state=Order.READY_FOR_PICKUP)
        self.assertEqual(log.from_state, Order.AWAITING_ESCROW)

    def test_store_first_then_rider(self):
        OrderService.deposit_store_escrow(self.order, self.store)
        order = OrderService.deposit_rider_escrow(self.order, self.rider_b)

        self.assert_ready(order)

    def test_rider_first_then_store(self):
        OrderService.deposit_rider_escrow(self.order, self.rider_b)
        order = OrderService.deposit_store_escrow(self.order, self.store)

        self.assert_ready(order)

    def test_single_deposit_does_not_open_gate(self):
        OrderService.deposit_rider_escrow(self.order, self.rider_b)

        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.AWAITING_ESCROW)
        self.assertFalse(
            OrderStateLog.objects.filter(order=self.order, to_state=Order.READY_FOR_PICKUP).exists()
        )

    def test_ready_for_pickup_cannot_be_requested_directly(self):
        OrderService.deposit_store_escrow(self.order, self.store)

        with self.assertRaises(InvalidTransition):
            OrderService.advance_status(self.order, self.store, Order.READY_FOR_PICKUP)

        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.AWAITING_ESCROW)
