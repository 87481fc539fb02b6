"""
Bid book - rider offers on an order.
All functions expect the order to be locked by the caller.
"""
import logging

from django.core.exceptions import ValidationError
from django.db.models import QuerySet

from apps.orders.models import Bid, Order
from apps.wallets.services.ledger import to_amount
from common.exceptions import Forbidden, InvalidState, NotFound

logger = logging.getLogger('orders')


class BidBook:
    """
    At most one bid per rider per order, amended in place.
    Frozen once the order leaves BIDDING.
    """

    @staticmethod
    def _ensure_open(order: Order) -> None:
        if order.status != Order.BIDDING:
            raise InvalidState(
                f"Order {order.id} is {order.status}; bids are closed"
            )

    @staticmethod
    def place(order: Order, rider, amount) -> tuple:
        """
        Place a bid, or amend the rider's existing bid on this order.

        Returns:
            (bid, created) tuple

        Raises:
            InvalidState: If the order is not BIDDING
        """
        BidBook._ensure_open(order)
        amount = to_amount(amount)

        bid = Bid.objects.select_for_update().filter(order=order, rider=rider).first()
        if bid is not None:
            old_amount = bid.amount
            bid.amount = amount
            bid.save(update_fields=['amount', 'updated_at'])
            logger.info(
                f"Rider {rider.pk} amended bid on order {order.id}: {old_amount} -> {amount}"
            )
            return bid, False

        bid = Bid.objects.create(order=order, rider=rider, amount=amount)
        logger.info(f"Rider {rider.pk} bid {amount} on order {order.id}")
        return bid, True

    @staticmethod
    def amend(order: Order, bid_id, rider, amount) -> Bid:
        """
        Change the amount of an existing bid.

        Raises:
            InvalidState: If the order is not BIDDING
            NotFound: If the bid is not on this order
            Forbidden: If the rider is not the bid's author
        """
        BidBook._ensure_open(order)
        amount = to_amount(amount)

        bid = BidBook.get(order, bid_id, for_update=True)
        if bid.rider_id != rider.pk:
            raise Forbidden("Only the rider who placed a bid can amend it")

        bid.amount = amount
        bid.save(update_fields=['amount', 'updated_at'])
        logger.info(f"Rider {rider.pk} amended bid {bid.id} to {amount}")
        return bid

    @staticmethod
    def get(order: Order, bid_id, for_update: bool = False) -> Bid:
        """Fetch a bid that belongs to this order."""
        queryset = Bid.objects.select_for_update() if for_update else Bid.objects.all()
        try:
            return queryset.get(pk=bid_id, order=order)
        except (Bid.DoesNotExist, ValidationError, ValueError):
            raise NotFound(f"Bid {bid_id} does not exist on order {order.id}")

    @staticmethod
    def list(order: Order) -> QuerySet:
        """Bids in placement order."""
        return Bid.objects.filter(order=order).select_related('rider').order_by('created_at', 'id')
