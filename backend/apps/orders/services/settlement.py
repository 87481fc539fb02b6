"""
Settlement engine - pays out a completed order exactly once.

compute_settlement() is pure: it turns an order into the list of wallet
mutations. SettlementEngine.settle() applies them under the order lock and
records a Settlement row, whose one-to-one key on the order makes a second
payout impossible.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import List

from django.db import transaction
from django.utils import timezone

from apps.orders.models import Order, Settlement
from apps.orders.services.state_machine import StateMachine
from apps.orders.signals import emit, EVENT_SETTLEMENT_COMPLETE
from apps.wallets.services.ledger import WalletLedger
from common.exceptions import AlreadySettled, InvalidTransition

logger = logging.getLogger('orders')

RELEASE = 'release'
CREDIT = 'credit'


@dataclass(frozen=True)
class WalletMutation:
    user_id: int
    operation: str
    amount: Decimal
    description: str = ""


def settlement_fee(order) -> tuple:
    """
    Fee owed to the rider, and whether the fee offer had to stand in.
    """
    selected_bid = order.selected_bid
    if selected_bid is not None:
        return selected_bid.amount, False

    logger.warning(
        f"Order {order.id} reached settlement without a selected bid; "
        f"falling back to fee offer {order.delivery_fee_offer}"
    )
    return order.delivery_fee_offer, True


def compute_settlement(order, fee=None) -> List[WalletMutation]:
    """
    Wallet mutations that close out a completed order.
    The fee is resolved from the order unless given.

    Store: escrowed fee is released, product price is credited.
    Rider: collateral is released, fee + collateral is credited.
    """
    if fee is None:
        fee, _ = settlement_fee(order)
    price = order.product_price

    return [
        WalletMutation(order.store_id, RELEASE, fee),
        WalletMutation(
            order.store_id, CREDIT, price,
            f"Product payment for {order.product_name}"
        ),
        WalletMutation(order.rider_id, RELEASE, price),
        WalletMutation(
            order.rider_id, CREDIT, fee + price,
            f"Payout & collateral release for {order.product_name}"
        ),
    ]


class SettlementEngine:
    """
    Applies settlement mutations to wallets, once per order.
    """

    @staticmethod
    def apply(mutations: List[WalletMutation], reference: str = "") -> None:
        """Apply mutations in order. Caller provides the transaction."""
        for mutation in mutations:
            if mutation.operation == RELEASE:
                WalletLedger.release_from_escrow(mutation.user_id, mutation.amount)
            elif mutation.operation == CREDIT:
                WalletLedger.credit(
                    mutation.user_id, mutation.amount, mutation.description, reference
                )
            else:
                raise ValueError(f"Unknown wallet mutation {mutation.operation!r}")

    @staticmethod
    @transaction.atomic
    def settle(order, actor=None) -> Settlement:
        """
        Pay out a COMPLETED order.

        Raises:
            AlreadySettled: If the order was paid out before
            InvalidTransition: If the order is not COMPLETED
        """
        locked = StateMachine.lock(order)

        if locked.settled_at is not None or Settlement.objects.filter(order=locked).exists():
            logger.warning(f"Duplicate settlement attempt for order {locked.id}")
            raise AlreadySettled(f"Order {locked.id} has already been settled")

        if locked.status != Order.COMPLETED:
            raise InvalidTransition(
                f"Order {locked.id} is {locked.status}; only COMPLETED orders settle"
            )

        fee, used_fallback = settlement_fee(locked)
        mutations = compute_settlement(locked, fee)

        # Lock both wallets up front, lowest user id first
        WalletLedger.lock_many([locked.store_id, locked.rider_id])
        SettlementEngine.apply(mutations, reference=str(locked.id))

        settlement = Settlement.objects.create(
            order=locked,
            fee=fee,
            product_price=locked.product_price,
            used_fee_fallback=used_fallback,
        )
        locked.settled_at = timezone.now()
        locked.save(update_fields=['settled_at', 'updated_at'])

        logger.info(
            f"Order {locked.id} settled: fee {fee}, product price {locked.product_price}"
        )
        emit(
            EVENT_SETTLEMENT_COMPLETE, locked, actor=actor,
            fee=str(fee), product_price=str(locked.product_price)
        )
        return settlement
