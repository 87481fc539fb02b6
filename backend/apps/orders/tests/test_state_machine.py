"""
Tests for the order state machine.
"""
import uuid

from apps.orders.models import Order, OrderStateLog
from apps.orders.services.state_machine import StateMachine
from common.exceptions import Forbidden, InvalidTransition, NotFound
from common.testing import MarketplaceTestCase


class StateMachineTableTestCase(MarketplaceTestCase):
    """Test the transition table."""

    def test_forward_single_steps_allowed(self):
        lifecycle = [
            Order.BIDDING, Order.AWAITING_ESCROW, Order.READY_FOR_PICKUP,
            Order.IN_TRANSIT, Order.DELIVERED, Order.COMPLETED,
        ]
        for current, following in zip(lifecycle, lifecycle[1:]):
            self.assertTrue(StateMachine.can_transition(current, following))
            self.assertEqual(StateMachine.next_status(current), following)

    def test_backward_and_skipping_moves_rejected(self):
        self.assertFalse(StateMachine.can_transition(Order.AWAITING_ESCROW, Order.BIDDING))
        self.assertFalse(StateMachine.can_transition(Order.BIDDING, Order.READY_FOR_PICKUP))
        self.assertFalse(StateMachine.can_transition(Order.READY_FOR_PICKUP, Order.DELIVERED))
        self.assertFalse(StateMachine.can_transition(Order.DELIVERED, Order.DELIVERED))

    def test_completed_is_terminal(self):
        self.assertIsNone(StateMachine.next_status(Order.COMPLETED))
        for status, _ in Order.STATUS_CHOICES:
            self.assertFalse(StateMachine.can_transition(Order.COMPLETED, status))


class StateMachineTransitionTestCase(MarketplaceTestCase):
    """Test transitions against the database."""

    def setUp(self):
        super().setUp()
        self.order = self.create_order()

    def test_transition_logs_state_change(self):
        locked = StateMachine.lock(self.order)

        StateMachine.transition(locked, Order.AWAITING_ESCROW, user=self.store, reason="Selected")

        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.AWAITING_ESCROW)

        log = OrderStateLog.objects.get(order=self.order)
        self.assertEqual(log.from_state, Order.BIDDING)
        self.assertEqual(log.to_state, Order.AWAITING_ESCROW)
        self.assertEqual(log.changed_by, self.store)
        self.assertEqual(log.reason, "Selected")

    def test_invalid_transition_leaves_order_untouched(self):
        locked = StateMachine.lock(self.order)

        with self.assertRaises(InvalidTransition):
            StateMachine.transition(locked, Order.IN_TRANSIT)

        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.BIDDING)
        self.assertFalse(OrderStateLog.objects.filter(order=self.order).exists())

    def test_transition_is_logged(self):
        locked = StateMachine.lock(self.order)

        with self.assertLogs('orders', level='INFO') as logs:
            StateMachine.transition(locked, Order.AWAITING_ESCROW)

        self.assertTrue(any('BIDDING -> AWAITING_ESCROW' in line for line in logs.output))

    def test_completed_sets_timestamp(self):
        order = self.order_ready_for_pickup()
        for status in (Order.IN_TRANSIT, Order.DELIVERED, Order.COMPLETED):
            StateMachine.transition(StateMachine.lock(order), status)

        order.refresh_from_db()
        self.assertEqual(order.status, Order.COMPLETED)
        self.assertIsNotNone(order.completed_at)

    def test_lock_unknown_order(self):
        with self.assertRaises(NotFound):
            StateMachine.lock(uuid.uuid4())

        with self.assertRaises(NotFound):
            StateMachine.lock('not-a-uuid')


class TransitionActorTestCase(MarketplaceTestCase):
    """Test who may drive each manual transition."""

    def setUp(self):
        super().setUp()
        self.order = self.order_ready_for_pickup()

    def test_rider_drives_pickup_and_delivery(self):
        StateMachine.validate_user_can_transition(self.order, self.rider_b, Order.IN_TRANSIT)
        StateMachine.validate_user_can_transition(self.order, self.rider_b, Order.DELIVERED)

        with self.assertRaises(Forbidden):
            StateMachine.validate_user_can_transition(self.order, self.store, Order.IN_TRANSIT)

    def test_unassigned_rider_rejected(self):
        with self.assertRaises(Forbidden):
            StateMachine.validate_user_can_transition(self.order, self.rider_a, Order.IN_TRANSIT)

    def test_store_drives_completion(self):
        StateMachine.validate_user_can_transition(self.order, self.store, Order.COMPLETED)

        with self.assertRaises(Forbidden):
            StateMachine.validate_user_can_transition(self.order, self.rider_b, Order.COMPLETED)

    def test_system_transitions_not_user_driven(self):
        for status in StateMachine.SYSTEM_TRANSITIONS:
            with self.assertRaises(Forbidden):
                StateMachine.validate_user_can_transition(self.order, self.store, status)
