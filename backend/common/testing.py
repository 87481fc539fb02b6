"""
Shared fixtures for the test suites.
"""
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIClient

from apps.orders.services.order_service import OrderService
from apps.wallets.services.ledger import WalletLedger

User = get_user_model()


def create_user(email, role, balance=Decimal('0.00'), name=''):
    """Create a user with an opened wallet."""
    user = User.objects.create_user(
        email=email,
        password='testpass123',
        role=role,
        name=name,
    )
    WalletLedger.open_wallet(user, Decimal(balance))
    return user


class MarketplaceTestCase(TestCase):
    """Base test case with a store, two riders and an API client."""

    def setUp(self):
        """Set up test fixtures."""
        self.client = APIClient()

        self.store = create_user('store@test.com', User.Role.STORE, '1000.00', name='Corner Store')
        self.rider_a = create_user('rider.a@test.com', User.Role.RIDER, '500.00', name='Rider A')
        self.rider_b = create_user('rider.b@test.com', User.Role.RIDER, '500.00', name='Rider B')
        self.outsider = create_user('outsider@test.com', User.Role.STORE, '1000.00')

    def authenticate(self, user):
        """Authenticate a user for API requests."""
        self.client.force_authenticate(user=user)

    def wallet_of(self, user):
        return WalletLedger.get_wallet(user)

    # Order fixtures, each built through the service layer

    def create_order(self, product_price='50.00', fee='10.00', store=None):
        return OrderService.create_order(
            store=store or self.store,
            product_name='Running shoes',
            product_price=Decimal(product_price),
            delivery_fee_offer=Decimal(fee),
            delivery_address='12 Nile Street, Cairo',
            client_name='Mona',
            client_phone='+201000000000',
        )

    def order_awaiting_escrow(self, amount='6.00', rider=None):
        """Order with a selected bid, waiting for both deposits."""
        order = self.create_order()
        bid, _ = OrderService.place_bid(order, rider or self.rider_b, Decimal(amount))
        return OrderService.select_bid(order, self.store, bid.id)

    def order_ready_for_pickup(self):
        order = self.order_awaiting_escrow()
        OrderService.deposit_store_escrow(order, self.store)
        return OrderService.deposit_rider_escrow(order, self.rider_b)
