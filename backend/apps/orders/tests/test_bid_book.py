"""
Tests for rider bidding.
"""
import uuid
from decimal import Decimal

from django.db import IntegrityError, transaction

from apps.orders.models import Bid, Order
from apps.orders.services.bid_book import BidBook
from apps.orders.services.order_service import OrderService
from common.exceptions import Forbidden, InvalidAmount, InvalidState, InvalidTransition, NotFound
from common.testing import MarketplaceTestCase


class BidBookTestCase(MarketplaceTestCase):
    """Test placing, amending and listing bids."""

    def setUp(self):
        super().setUp()
        self.order = self.create_order(product_price='50.00', fee='10.00')

    def test_place_bid(self):
        bid, created = OrderService.place_bid(self.order, self.rider_a, Decimal('8.00'))

        self.assertTrue(created)
        self.assertEqual(bid.amount, Decimal('8.00'))
        self.assertEqual(bid.rider, self.rider_a)
        self.assertEqual(bid.order_id, self.order.id)

    def test_repeat_bid_amends_in_place(self):
        first, _ = OrderService.place_bid(self.order, self.rider_a, Decimal('8.00'))
        second, created = OrderService.place_bid(self.order, self.rider_a, Decimal('7.50'))

        self.assertFalse(created)
        self.assertEqual(first.id, second.id)
        self.assertEqual(Bid.objects.filter(order=self.order, rider=self.rider_a).count(), 1)
        self.assertEqual(Bid.objects.get(pk=first.id).amount, Decimal('7.50'))

    def test_bid_above_fee_offer_allowed(self):
        bid, _ = OrderService.place_bid(self.order, self.rider_a, Decimal('12.00'))
        self.assertEqual(bid.amount, Decimal('12.00'))

    def test_duplicate_bid_blocked_by_database(self):
        OrderService.place_bid(self.order, self.rider_a, Decimal('8.00'))

        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                Bid.objects.create(order=self.order, rider=self.rider_a, amount=Decimal('7.00'))

        self.assertEqual(Bid.objects.filter(order=self.order, rider=self.rider_a).count(), 1)

    def test_non_positive_bid_rejected(self):
        for amount in (Decimal('0'), Decimal('-1.00')):
            with self.assertRaises(InvalidAmount):
                OrderService.place_bid(self.order, self.rider_a, amount)

        self.assertFalse(Bid.objects.filter(order=self.order).exists())

    def test_store_cannot_bid(self):
        with self.assertRaises(Forbidden):
            OrderService.place_bid(self.order, self.store, Decimal('5.00'))

    def test_amend_own_bid(self):
        bid, _ = OrderService.place_bid(self.order, self.rider_a, Decimal('8.00'))

        amended = OrderService.amend_bid(self.order, bid.id, self.rider_a, Decimal('6.50'))

        self.assertEqual(amended.amount, Decimal('6.50'))

    def test_amend_other_riders_bid_forbidden(self):
        bid, _ = OrderService.place_bid(self.order, self.rider_a, Decimal('8.00'))

        with self.assertRaises(Forbidden):
            OrderService.amend_bid(self.order, bid.id, self.rider_b, Decimal('1.00'))

        self.assertEqual(Bid.objects.get(pk=bid.id).amount, Decimal('8.00'))

    def test_amend_unknown_bid(self):
        with self.assertRaises(NotFound):
            OrderService.amend_bid(self.order, uuid.uuid4(), self.rider_a, Decimal('5.00'))

    def test_bids_listed_in_placement_order(self):
        OrderService.place_bid(self.order, self.rider_a, Decimal('8.00'))
        OrderService.place_bid(self.order, self.rider_b, Decimal('6.00'))

        bids = list(BidBook.list(self.order))
        self.assertCountEqual([bid.rider for bid in bids], [self.rider_a, self.rider_b])
        self.assertLessEqual(bids[0].created_at, bids[1].created_at)

    def test_bid_from_another_order_not_found(self):
        other = self.create_order()
        bid, _ = OrderService.place_bid(other, self.rider_a, Decimal('5.00'))

        with self.assertRaises(NotFound):
            BidBook.get(self.order, bid.id)


class BidSelectionTestCase(MarketplaceTestCase):
    """Test the store choosing a winner."""

    def setUp(self):
        super().setUp()
        self.order = self.create_order()
        self.bid_a, _ = OrderService.place_bid(self.order, self.rider_a, Decimal('8.00'))
        self.bid_b, _ = OrderService.place_bid(self.order, self.rider_b, Decimal('6.00'))

    def test_select_bid_assigns_rider_and_fee(self):
        order = OrderService.select_bid(self.order, self.store, self.bid_b.id)

        self.assertEqual(order.status, Order.AWAITING_ESCROW)
        self.assertEqual(order.rider, self.rider_b)
        self.assertEqual(order.selected_bid_id, self.bid_b.id)
        self.assertEqual(order.agreed_fee, Decimal('6.00'))

    def test_only_owning_store_selects(self):
        with self.assertRaises(Forbidden):
            OrderService.select_bid(self.order, self.outsider, self.bid_b.id)

        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.BIDDING)

    def test_select_twice_rejected(self):
        OrderService.select_bid(self.order, self.store, self.bid_b.id)

        with self.assertRaises(InvalidTransition):
            OrderService.select_bid(self.order, self.store, self.bid_a.id)

        self.order.refresh_from_db()
        self.assertEqual(self.order.selected_bid_id, self.bid_b.id)

    def test_select_unknown_bid(self):
        with self.assertRaises(NotFound):
            OrderService.select_bid(self.order, self.store, uuid.uuid4())

    def test_bids_frozen_after_selection(self):
        OrderService.select_bid(self.order, self.store, self.bid_b.id)

        with self.assertRaises(InvalidState):
            OrderService.place_bid(self.order, self.rider_a, Decimal('4.00'))

        with self.assertRaises(InvalidState):
            OrderService.amend_bid(self.order, self.bid_a.id, self.rider_a, Decimal('4.00'))

        self.assertEqual(Bid.objects.get(pk=self.bid_a.id).amount, Decimal('8.00'))
