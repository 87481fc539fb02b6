"""
API tests for the order lifecycle, end to end over HTTP.
"""
import uuid
from decimal import Decimal

from django.urls import reverse
from rest_framework import status

from apps.orders.models import Bid, Order
from apps.orders.services.order_service import OrderService
from apps.orders.signals import order_event
from common.exceptions import InsufficientFunds
from common.testing import MarketplaceTestCase


class OrderAPITestCase(MarketplaceTestCase):
    """Test order endpoints."""

    def setUp(self):
        super().setUp()
        self.order_data = {
            'product_name': 'Running shoes',
            'product_price': '50.00',
            'delivery_fee_offer': '10.00',
            'delivery_address': '12 Nile Street, Cairo',
            'client_name': 'Mona',
            'client_phone': '+201000000000',
        }

    def url(self, name, order, **kwargs):
        return reverse(f'orders:{name}', kwargs={'pk': order.pk if hasattr(order, 'pk') else order, **kwargs})

    def test_create_order_success(self):
        self.authenticate(self.store)

        response = self.client.post(reverse('orders:list-create'), self.order_data, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], Order.BIDDING)
        self.assertEqual(response.data['store']['id'], self.store.id)
        self.assertEqual(response.data['next_status'], Order.AWAITING_ESCROW)
        self.assertIsNone(response.data['rider'])
        self.assertTrue(Order.objects.filter(pk=response.data['id']).exists())

    def test_create_order_unauthorized(self):
        response = self.client.post(reverse('orders:list-create'), self.order_data, format='json')

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_rider_cannot_create_order(self):
        self.authenticate(self.rider_a)

        response = self.client.post(reverse('orders:list-create'), self.order_data, format='json')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['error'], 'forbidden')
        self.assertFalse(Order.objects.exists())

    def test_create_order_invalid_price(self):
        self.authenticate(self.store)

        data = dict(self.order_data, product_price='0')
        response = self.client.post(reverse('orders:list-create'), data, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('product_price', response.data)

    def test_list_orders_by_participant(self):
        mine = self.create_order()
        self.create_order(store=self.outsider)

        self.authenticate(self.store)
        response = self.client.get(reverse('orders:list-create'))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row['id'] for row in response.data], [str(mine.id)])

        response = self.client.get(reverse('orders:list-create'), {'status': Order.COMPLETED})
        self.assertEqual(response.data, [])

    def test_open_orders_for_riders(self):
        self.create_order()
        self.order_awaiting_escrow()

        self.authenticate(self.rider_a)
        response = self.client.get(reverse('orders:open'))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['status'], Order.BIDDING)

        self.authenticate(self.store)
        response = self.client.get(reverse('orders:open'))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_order_detail_visibility(self):
        order = self.create_order()

        self.authenticate(self.rider_a)
        self.assertEqual(self.client.get(self.url('detail', order)).status_code, status.HTTP_200_OK)

        self.authenticate(self.outsider)
        self.assertEqual(self.client.get(self.url('detail', order)).status_code, status.HTTP_403_FORBIDDEN)

        self.authenticate(self.store)
        response = self.client.get(self.url('detail', uuid.uuid4()))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_place_and_amend_bid(self):
        order = self.create_order()
        self.authenticate(self.rider_a)

        response = self.client.post(self.url('bids', order), {'amount': '8.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        bid_id = response.data['id']

        response = self.client.post(self.url('bids', order), {'amount': '7.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['id'], bid_id)

        response = self.client.patch(
            self.url('bid-amend', order, bid_id=bid_id), {'amount': '6.50'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Decimal(response.data['amount']), Decimal('6.50'))
        self.assertEqual(Bid.objects.filter(order=order).count(), 1)

    def test_invalid_bid_amount(self):
        order = self.create_order()
        self.authenticate(self.rider_a)

        response = self.client.post(self.url('bids', order), {'amount': '-1'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_bids_hidden_from_outsiders(self):
        order = self.order_awaiting_escrow()

        self.authenticate(self.outsider)
        response = self.client.get(self.url('bids', order))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.authenticate(self.store)
        response = self.client.get(self.url('bids', order))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)

    def test_select_bid_past_bidding_conflict(self):
        order = self.order_awaiting_escrow()
        bid = Bid.objects.get(order=order)

        self.authenticate(self.store)
        response = self.client.post(self.url('select-bid', order), {'bid_id': str(bid.id)}, format='json')

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['error'], 'invalid_transition')
        self.assertIn('detail', response.data)

    def test_insufficient_funds_payload(self):
        order = self.create_order(product_price='600.00')
        bid = Bid.objects.create(order=order, rider=self.rider_a, amount=Decimal('5.00'))

        self.authenticate(self.store)
        self.client.post(self.url('select-bid', order), {'bid_id': str(bid.id)}, format='json')

        self.authenticate(self.rider_a)
        response = self.client.post(self.url('escrow-rider', order))

        self.assertEqual(response.status_code, status.HTTP_402_PAYMENT_REQUIRED)
        self.assertEqual(response.data['error'], 'insufficient_funds')

    def test_advance_status_wrong_party(self):
        order = self.order_ready_for_pickup()

        self.authenticate(self.store)
        response = self.client.post(self.url('status', order), {'status': Order.IN_TRANSIT}, format='json')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_advance_status_skipping_rejected(self):
        order = self.order_ready_for_pickup()

        self.authenticate(self.rider_b)
        response = self.client.post(self.url('status', order), {'status': Order.DELIVERED}, format='json')

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        order.refresh_from_db()
        self.assertEqual(order.status, Order.READY_FOR_PICKUP)

    def test_advance_status_unknown_value(self):
        order = self.order_ready_for_pickup()

        self.authenticate(self.rider_b)
        response = self.client.post(self.url('status', order), {'status': 'LOST'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class EndToEndScenarioTestCase(MarketplaceTestCase):
    """
    Product price 50, fee offer 10. Rider A bids 8, rider B bids 6,
    store selects B and the order runs to completion.
    """

    def post(self, user, path, data=None):
        self.authenticate(user)
        return self.client.post(path, data or {}, format='json')

    def test_full_lifecycle(self):
        response = self.post(self.store, reverse('orders:list-create'), {
            'product_name': 'Running shoes',
            'product_price': '50.00',
            'delivery_fee_offer': '10.00',
            'delivery_address': '12 Nile Street, Cairo',
            'client_name': 'Mona',
            'client_phone': '+201000000000',
        })
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        order_id = response.data['id']

        def path(name, **kwargs):
            return reverse(f'orders:{name}', kwargs={'pk': order_id, **kwargs})

        self.post(self.rider_a, path('bids'), {'amount': '8.00'})
        response = self.post(self.rider_b, path('bids'), {'amount': '6.00'})
        bid_b = response.data['id']

        response = self.post(self.store, path('select-bid'), {'bid_id': bid_b})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], Order.AWAITING_ESCROW)
        self.assertEqual(Decimal(response.data['agreed_fee']), Decimal('6.00'))
        self.assertEqual(response.data['rider']['id'], self.rider_b.id)

        response = self.post(self.store, path('escrow-store'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['store_escrow_paid'])
        self.assertFalse(response.data['rider_escrow_paid'])
        self.assertEqual(response.data['status'], Order.AWAITING_ESCROW)

        response = self.post(self.rider_b, path('escrow-rider'))
        self.assertEqual(response.data['status'], Order.READY_FOR_PICKUP)

        response = self.post(self.rider_b, path('status'), {'status': Order.IN_TRANSIT})
        self.assertEqual(response.data['status'], Order.IN_TRANSIT)

        response = self.post(self.rider_b, path('status'), {'status': Order.DELIVERED})
        self.assertEqual(response.data['status'], Order.DELIVERED)

        response = self.post(self.store, path('status'), {'status': Order.COMPLETED})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], Order.COMPLETED)
        self.assertIsNotNone(response.data['settled_at'])
        self.assertIsNone(response.data['next_status'])

        store_wallet = self.wallet_of(self.store)
        self.assertEqual(store_wallet.balance, Decimal('1044.00'))
        self.assertEqual(store_wallet.escrow_held, Decimal('0.00'))

        rider_wallet = self.wallet_of(self.rider_b)
        self.assertEqual(rider_wallet.balance, Decimal('506.00'))
        self.assertEqual(rider_wallet.escrow_held, Decimal('0.00'))

        # Rider A never won, so their wallet never moved
        self.assertEqual(self.wallet_of(self.rider_a).balance, Decimal('500.00'))

        response = self.post(self.store, path('status'), {'status': Order.COMPLETED})
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['error'], 'already_settled')

        self.authenticate(self.store)
        response = self.client.get(path('detail'))
        self.assertEqual(
            [log['to_state'] for log in response.data['state_logs']][::-1],
            [Order.AWAITING_ESCROW, Order.READY_FOR_PICKUP, Order.IN_TRANSIT,
             Order.DELIVERED, Order.COMPLETED]
        )


class OrderEventTestCase(MarketplaceTestCase):
    """Events go out after commit, never for rolled back work."""

    def setUp(self):
        super().setUp()
        self.events = []
        order_event.connect(self.record, dispatch_uid='order-event-test')
        self.addCleanup(order_event.disconnect, dispatch_uid='order-event-test')

    def record(self, sender, event, order_id, status, actor_id, payload, **kwargs):
        self.events.append((event, status, actor_id))

    def test_events_published_on_commit(self):
        with self.captureOnCommitCallbacks(execute=True):
            order = self.create_order()

        self.assertEqual(self.events, [('order_created', Order.BIDDING, self.store.id)])

        with self.captureOnCommitCallbacks(execute=True):
            self.order_awaiting_escrow()

        names = [event for event, _, _ in self.events]
        self.assertIn('bid_placed', names)
        self.assertIn('status_changed', names)
        self.assertIn('bid_selected', names)
        self.assertIsNotNone(order)

    def test_failed_operation_publishes_nothing(self):
        order = self.create_order(product_price='600.00')
        bid = Bid.objects.create(order=order, rider=self.rider_a, amount=Decimal('5.00'))
        OrderService.select_bid(order, self.store, bid.id)

        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            with self.assertRaises(InsufficientFunds):
                OrderService.deposit_rider_escrow(order, self.rider_a)

        self.assertEqual(callbacks, [])
        self.assertEqual(self.events, [])
