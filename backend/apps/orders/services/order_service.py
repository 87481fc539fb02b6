"""
Order service - main business logic for the delivery lifecycle.
Orchestrates state machine, bid book, wallet ledger and settlement.

Every public operation runs in one database transaction and starts by
locking the order row, so concurrent requests on one order are serialized
and a failure at any step leaves nothing behind.
"""
import logging
from decimal import Decimal

from django.db import transaction

from apps.orders.models import Bid, Order
from apps.orders.services.bid_book import BidBook
from apps.orders.services.settlement import SettlementEngine
from apps.orders.services.state_machine import StateMachine
from apps.orders.signals import (
    emit,
    EVENT_BID_PLACED,
    EVENT_BID_SELECTED,
    EVENT_BID_UPDATED,
    EVENT_ESCROW_PAID,
    EVENT_ORDER_CREATED,
    EVENT_ORDER_REVIEWED,
)
from apps.wallets.services.ledger import WalletLedger, to_amount
from common.exceptions import (
    AlreadySettled,
    Forbidden,
    InvalidState,
    InvalidTransition,
)

logger = logging.getLogger('orders')


class OrderService:
    """
    Main service for order operations.
    """

    @classmethod
    @transaction.atomic
    def create_order(
        cls,
        store,
        product_name: str,
        product_price: Decimal,
        delivery_fee_offer: Decimal,
        delivery_address: str,
        client_name: str,
        client_phone: str,
    ) -> Order:
        """
        Post a new delivery job in BIDDING.

        Raises:
            Forbidden: If the user is not a store
            InvalidAmount: If price or fee offer is not positive
        """
        if not getattr(store, 'is_store', False):
            raise Forbidden("Only store accounts can post delivery jobs")

        order = Order.objects.create(
            store=store,
            product_name=product_name[:200],
            product_price=to_amount(product_price),
            delivery_fee_offer=to_amount(delivery_fee_offer),
            delivery_address=delivery_address[:500],
            client_name=client_name[:120],
            client_phone=client_phone[:30],
            status=Order.BIDDING,
        )

        logger.info(f"Store {store.pk} created order {order.id}")
        emit(EVENT_ORDER_CREATED, order, actor=store)
        return order

    # ==================== Bidding ====================

    @classmethod
    @transaction.atomic
    def place_bid(cls, order, rider, amount) -> tuple:
        """
        Place a bid, or amend the rider's existing one.

        Returns:
            (bid, created) tuple

        Raises:
            Forbidden: If the user is not a rider
            InvalidState: If the order is no longer BIDDING
        """
        if not getattr(rider, 'is_rider', False):
            raise Forbidden("Only rider accounts can bid on delivery jobs")

        locked = StateMachine.lock(order)
        bid, created = BidBook.place(locked, rider, amount)

        emit(
            EVENT_BID_PLACED if created else EVENT_BID_UPDATED,
            locked, actor=rider, bid_id=str(bid.id), amount=str(bid.amount)
        )
        return bid, created

    @classmethod
    @transaction.atomic
    def amend_bid(cls, order, bid_id, rider, amount) -> Bid:
        """
        Change the amount of the rider's own bid while bidding is open.
        """
        locked = StateMachine.lock(order)
        bid = BidBook.amend(locked, bid_id, rider, amount)

        emit(EVENT_BID_UPDATED, locked, actor=rider, bid_id=str(bid.id), amount=str(bid.amount))
        return bid

    @classmethod
    @transaction.atomic
    def select_bid(cls, order, store, bid_id) -> Order:
        """
        Store picks the winning bid: locks in the fee and assigns the rider.
        BIDDING -> AWAITING_ESCROW

        Raises:
            Forbidden: If the user is not the order's store
            InvalidTransition: If a bid was already selected
            NotFound: If the bid does not belong to this order
        """
        locked = StateMachine.lock(order)

        if not locked.is_store(store):
            raise Forbidden("Only the store that posted this order can select a bid")

        if locked.status != Order.BIDDING or locked.selected_bid_id is not None:
            raise InvalidTransition(
                f"Order {locked.id} is {locked.status}; a bid can only be selected while BIDDING"
            )

        bid = BidBook.get(locked, bid_id)

        locked.selected_bid = bid
        locked.rider_id = bid.rider_id
        locked.save(update_fields=['selected_bid', 'rider', 'updated_at'])

        StateMachine.transition(
            locked,
            Order.AWAITING_ESCROW,
            user=store,
            reason=f"Store selected bid {bid.id} at {bid.amount}"
        )

        emit(
            EVENT_BID_SELECTED, locked, actor=store,
            bid_id=str(bid.id), rider_id=bid.rider_id, amount=str(bid.amount)
        )
        return locked

    # ==================== Escrow ====================

    @classmethod
    @transaction.atomic
    def deposit_store_escrow(cls, order, store) -> Order:
        """
        Store locks the agreed delivery fee in escrow.

        Raises:
            Forbidden: If the user is not the order's store
            InvalidTransition: If not AWAITING_ESCROW or already funded
            InsufficientFunds: If the store balance is below the fee
        """
        locked = StateMachine.lock(order)

        if not locked.is_store(store):
            raise Forbidden("Only the store that posted this order can pay its escrow")

        cls._ensure_awaiting_escrow(locked, already_paid=locked.store_escrow_paid, side='store')

        fee = locked.agreed_fee
        WalletLedger.move_to_escrow(
            store,
            fee,
            f"Escrow deposit for {locked.product_name}",
            reference=str(locked.id)
        )

        locked.store_escrow_paid = True
        locked.save(update_fields=['store_escrow_paid', 'updated_at'])

        logger.info(f"Store escrow of {fee} paid for order {locked.id}")
        emit(EVENT_ESCROW_PAID, locked, actor=store, side='store', amount=str(fee))

        return cls._advance_if_funded(locked, store)

    @classmethod
    @transaction.atomic
    def deposit_rider_escrow(cls, order, rider) -> Order:
        """
        Assigned rider locks the product price as collateral.

        Raises:
            Forbidden: If the user is not the assigned rider
            InvalidTransition: If not AWAITING_ESCROW or already funded
            InsufficientFunds: If the rider balance is below the product price
        """
        locked = StateMachine.lock(order)

        if not locked.is_rider(rider):
            raise Forbidden("Only the assigned rider can pay the collateral")

        cls._ensure_awaiting_escrow(locked, already_paid=locked.rider_escrow_paid, side='rider')

        collateral = locked.product_price
        WalletLedger.move_to_escrow(
            rider,
            collateral,
            f"Product collateral for {locked.product_name}",
            reference=str(locked.id)
        )

        locked.rider_escrow_paid = True
        locked.save(update_fields=['rider_escrow_paid', 'updated_at'])

        logger.info(f"Rider collateral of {collateral} paid for order {locked.id}")
        emit(EVENT_ESCROW_PAID, locked, actor=rider, side='rider', amount=str(collateral))

        return cls._advance_if_funded(locked, rider)

    @staticmethod
    def _ensure_awaiting_escrow(order: Order, already_paid: bool, side: str) -> None:
        if order.status != Order.AWAITING_ESCROW:
            raise InvalidTransition(
                f"Order {order.id} is {order.status}; escrow is only accepted while AWAITING_ESCROW"
            )
        if already_paid:
            raise InvalidTransition(f"The {side} escrow for order {order.id} is already funded")

    @staticmethod
    def _advance_if_funded(order: Order, user) -> Order:
        """
        Single funding gate, evaluated under the order lock:
        READY_FOR_PICKUP once both sides are funded, whichever paid first.
        """
        if order.status == Order.AWAITING_ESCROW and order.escrow_funded:
            StateMachine.transition(
                order,
                Order.READY_FOR_PICKUP,
                user=user,
                reason="Both escrow deposits received"
            )
        return order

    # ==================== Manual transitions ====================

    @classmethod
    @transaction.atomic
    def advance_status(cls, order, user, target_status: str) -> Order:
        """
        Party-driven moves: pickup and delivery by the rider, receipt by the store.
        Completing the order settles it in the same transaction.

        Raises:
            Forbidden: If user is not the party for this move
            AlreadySettled: If the order is already COMPLETED
            InvalidTransition: If target is not the next manual status
        """
        locked = StateMachine.lock(order)

        if target_status in StateMachine.TRANSITION_ACTORS:
            StateMachine.validate_user_can_transition(locked, user, target_status)

        if locked.status == Order.COMPLETED and target_status == Order.COMPLETED:
            logger.warning(f"Duplicate completion request for order {locked.id}")
            raise AlreadySettled(f"Order {locked.id} is already completed and settled")

        if (
            target_status in StateMachine.SYSTEM_TRANSITIONS
            or not StateMachine.can_transition(locked.status, target_status)
        ):
            raise InvalidTransition(
                f"Cannot move order {locked.id} from {locked.status} to {target_status}"
            )

        reasons = {
            Order.IN_TRANSIT: "Rider confirmed pickup",
            Order.DELIVERED: "Rider confirmed delivery",
            Order.COMPLETED: "Store confirmed receipt",
        }
        StateMachine.transition(locked, target_status, user=user, reason=reasons[target_status])

        if target_status == Order.COMPLETED:
            SettlementEngine.settle(locked, actor=user)
            locked.refresh_from_db()

        return locked

    # ==================== Reviews ====================

    @classmethod
    @transaction.atomic
    def mark_reviewed(cls, order, user) -> Order:
        """
        Record that one side reviewed a completed order.

        Raises:
            InvalidState: If not COMPLETED or this side already reviewed
            Forbidden: If user is neither the store nor the rider
        """
        locked = StateMachine.lock(order)

        if locked.is_store(user):
            field = 'store_reviewed'
        elif locked.is_rider(user):
            field = 'rider_reviewed'
        else:
            raise Forbidden("Only the store or the assigned rider can review this order")

        if locked.status != Order.COMPLETED:
            raise InvalidState(f"Order {locked.id} is {locked.status}; reviews open at COMPLETED")

        if getattr(locked, field):
            raise InvalidState(f"Order {locked.id} was already reviewed by this party")

        setattr(locked, field, True)
        locked.save(update_fields=[field, 'updated_at'])

        emit(EVENT_ORDER_REVIEWED, locked, actor=user, side=field.split('_')[0])
        return locked
