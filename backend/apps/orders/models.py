"""
Orders models - delivery jobs, rider bids, status audit trail, settlements.
"""
import uuid
from decimal import Decimal
from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models


class Order(models.Model):
    """
    A delivery job posted by a store.
    The status only moves forward; see StateMachine for the rules.
    """
    # Order statuses, in lifecycle order
    BIDDING = 'BIDDING'
    AWAITING_ESCROW = 'AWAITING_ESCROW'
    READY_FOR_PICKUP = 'READY_FOR_PICKUP'
    IN_TRANSIT = 'IN_TRANSIT'
    DELIVERED = 'DELIVERED'
    COMPLETED = 'COMPLETED'

    STATUS_CHOICES = [
        (BIDDING, 'Bidding'),
        (AWAITING_ESCROW, 'Awaiting Escrow'),
        (READY_FOR_PICKUP, 'Ready for Pickup'),
        (IN_TRANSIT, 'In Transit'),
        (DELIVERED, 'Delivered'),
        (COMPLETED, 'Completed'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    # Relations
    store = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,  # Don't delete users with orders
        related_name='store_orders'
    )
    rider = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='rider_orders',
        help_text="Assigned when a bid is selected"
    )
    selected_bid = models.ForeignKey(
        'orders.Bid',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='+'
    )

    # Job details
    product_name = models.CharField(max_length=200)
    product_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))],
        help_text="Collateral the rider locks in escrow"
    )
    delivery_fee_offer = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))],
        help_text="Delivery fee the store offers"
    )
    delivery_address = models.CharField(max_length=500)
    client_name = models.CharField(max_length=120)
    client_phone = models.CharField(max_length=30)

    # Lifecycle
    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default=BIDDING,
        db_index=True
    )
    store_escrow_paid = models.BooleanField(default=False)
    rider_escrow_paid = models.BooleanField(default=False)
    store_reviewed = models.BooleanField(default=False)
    rider_reviewed = models.BooleanField(default=False)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    settled_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['-created_at']
        verbose_name = 'Order'
        verbose_name_plural = 'Orders'
        indexes = [
            models.Index(fields=['store', 'status', '-created_at'], name='orders_store_status_idx'),
            models.Index(fields=['rider', 'status', '-created_at'], name='orders_rider_status_idx'),
            models.Index(fields=['status', '-created_at'], name='orders_status_idx'),
        ]

    def __str__(self):
        return f"Order {self.id} - {self.status}"

    def is_store(self, user):
        """Check if user is the store that posted the job."""
        return user is not None and self.store_id == user.pk

    def is_rider(self, user):
        """Check if user is the assigned rider."""
        return user is not None and self.rider_id is not None and self.rider_id == user.pk

    def is_participant(self, user):
        """Check if user is the store or the assigned rider."""
        return self.is_store(user) or self.is_rider(user)

    @property
    def agreed_fee(self):
        """Fee locked in by selection; the offer until then."""
        if self.selected_bid_id is not None:
            return self.selected_bid.amount
        return self.delivery_fee_offer

    @property
    def escrow_funded(self):
        return self.store_escrow_paid and self.rider_escrow_paid


class Bid(models.Model):
    """
    A rider's proposed fee for an order.
    One per rider per order; amended in place while the order is bidding.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order = models.ForeignKey(
        Order,
        on_delete=models.PROTECT,
        related_name='bids'
    )
    rider = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='bids'
    )
    amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))]
    )

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['created_at', 'id']
        verbose_name = 'Bid'
        verbose_name_plural = 'Bids'
        constraints = [
            models.UniqueConstraint(fields=['order', 'rider'], name='one_bid_per_rider_per_order'),
        ]

    def __str__(self):
        return f"Bid {self.amount} by {self.rider} on {self.order_id}"


class OrderStateLog(models.Model):
    """
    Audit trail for order status transitions.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order = models.ForeignKey(
        Order,
        on_delete=models.CASCADE,
        related_name='state_logs'
    )
    from_state = models.CharField(max_length=20)
    to_state = models.CharField(max_length=20)
    changed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        help_text="User who triggered change (null for system)"
    )
    reason = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ['-created_at']
        verbose_name = 'Order State Log'
        verbose_name_plural = 'Order State Logs'
        indexes = [
            models.Index(fields=['order', '-created_at'], name='orders_statelog_order_idx'),
        ]

    def __str__(self):
        return f"{self.order_id}: {self.from_state} -> {self.to_state}"


class Settlement(models.Model):
    """
    Payout record for a completed order.
    The one-to-one on order is the database-level exactly-once guard.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order = models.OneToOneField(
        Order,
        on_delete=models.PROTECT,
        related_name='settlement'
    )
    fee = models.DecimalField(max_digits=10, decimal_places=2)
    product_price = models.DecimalField(max_digits=12, decimal_places=2)
    used_fee_fallback = models.BooleanField(
        default=False,
        help_text="True when no bid was selected and the fee offer was paid"
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = 'Settlement'
        verbose_name_plural = 'Settlements'

    def __str__(self):
        return f"Settlement for Order {self.order_id} - fee {self.fee}"
