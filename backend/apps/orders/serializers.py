"""
Order serializers.
Handles API input/output for order operations.
"""
from decimal import Decimal
from rest_framework import serializers
from apps.accounts.serializers import UserSummarySerializer
from apps.orders.models import Order, Bid, OrderStateLog
from apps.orders.services.state_machine import StateMachine


class OrderStateLogSerializer(serializers.ModelSerializer):
    """Serializer for order state change logs."""
    changed_by_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = OrderStateLog
        fields = ['id', 'from_state', 'to_state', 'changed_by_id', 'reason', 'created_at']
        read_only_fields = fields


class BidSerializer(serializers.ModelSerializer):
    """Serializer for rider bids."""
    rider = UserSummarySerializer(read_only=True)
    order_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = Bid
        fields = ['id', 'order_id', 'rider', 'amount', 'created_at', 'updated_at']
        read_only_fields = fields


class OrderListSerializer(serializers.ModelSerializer):
    """Serializer for order list view."""
    store = UserSummarySerializer(read_only=True)
    rider = UserSummarySerializer(read_only=True)

    class Meta:
        model = Order
        fields = [
            'id', 'store', 'rider', 'product_name', 'product_price',
            'delivery_fee_offer', 'status', 'store_escrow_paid',
            'rider_escrow_paid', 'created_at', 'updated_at'
        ]
        read_only_fields = fields


class OrderDetailSerializer(serializers.ModelSerializer):
    """Serializer for detailed order view."""
    store = UserSummarySerializer(read_only=True)
    rider = UserSummarySerializer(read_only=True)
    selected_bid_id = serializers.UUIDField(read_only=True)
    agreed_fee = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)
    next_status = serializers.SerializerMethodField()
    bids = BidSerializer(many=True, read_only=True)
    state_logs = OrderStateLogSerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            'id', 'store', 'rider', 'selected_bid_id', 'product_name',
            'product_price', 'delivery_fee_offer', 'agreed_fee',
            'delivery_address', 'client_name', 'client_phone', 'status',
            'next_status', 'store_escrow_paid', 'rider_escrow_paid',
            'store_reviewed', 'rider_reviewed', 'created_at', 'updated_at',
            'completed_at', 'settled_at', 'bids', 'state_logs'
        ]
        read_only_fields = fields

    def get_next_status(self, obj):
        return StateMachine.next_status(obj.status)


class CreateOrderSerializer(serializers.Serializer):
    """Serializer for posting a delivery job."""
    product_name = serializers.CharField(max_length=200)
    product_price = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=Decimal('0.01')
    )
    delivery_fee_offer = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=Decimal('0.01')
    )
    delivery_address = serializers.CharField(max_length=500)
    client_name = serializers.CharField(max_length=120)
    client_phone = serializers.CharField(max_length=30)

    def create(self, validated_data):
        """Create order via OrderService."""
        from apps.orders.services.order_service import OrderService

        return OrderService.create_order(
            store=self.context['request'].user,
            **validated_data
        )

    def to_representation(self, instance):
        return OrderDetailSerializer(instance, context=self.context).data


class PlaceBidSerializer(serializers.Serializer):
    """Serializer for placing or amending a bid."""
    amount = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=Decimal('0.01')
    )


class SelectBidSerializer(serializers.Serializer):
    """Serializer for the store choosing the winning bid."""
    bid_id = serializers.UUIDField()


class AdvanceStatusSerializer(serializers.Serializer):
    """Serializer for party-driven status changes."""
    status = serializers.ChoiceField(choices=Order.STATUS_CHOICES)
