"""
Order views and API endpoints.
Domain errors raised by the services are rendered by the project's
exception handler, so views only translate requests into service calls.
"""
import logging

from django.db.models import Q
from django.shortcuts import get_object_or_404
from drf_spectacular.utils import extend_schema
from rest_framework import status, generics, permissions
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from apps.accounts.permissions import IsAdmin
from apps.orders.models import Order
from apps.orders.permissions import CanViewOrder
from apps.orders.serializers import (
    AdvanceStatusSerializer,
    BidSerializer,
    CreateOrderSerializer,
    OrderDetailSerializer,
    OrderListSerializer,
    PlaceBidSerializer,
    SelectBidSerializer,
)
from apps.orders.services.bid_book import BidBook
from apps.orders.services.order_service import OrderService
from apps.orders.services.reconciliation import reconcile_stuck_orders
from common.exceptions import Forbidden
from common.permissions import IsRider

logger = logging.getLogger('orders')


def _detail(order, request):
    return OrderDetailSerializer(order, context={'request': request}).data


@extend_schema(tags=['Orders'])
class OrderListCreateView(generics.ListCreateAPIView):
    """
    List the user's orders (as store or rider) and post new delivery jobs.
    """
    permission_classes = [permissions.IsAuthenticated]

    def get_serializer_class(self):
        if self.request.method == 'POST':
            return CreateOrderSerializer
        return OrderListSerializer

    def get_queryset(self):
        """
        Return orders where user is store or assigned rider.
        """
        user = self.request.user
        queryset = Order.objects.filter(
            Q(store=user) | Q(rider=user)
        ).select_related('store', 'rider')

        status_filter = self.request.query_params.get('status')
        if status_filter:
            queryset = queryset.filter(status=status_filter)

        return queryset.order_by('-created_at')


@extend_schema(tags=['Orders'])
class OpenOrdersView(generics.ListAPIView):
    """
    Orders still open for bidding, newest first.
    """
    serializer_class = OrderListSerializer
    permission_classes = [permissions.IsAuthenticated, IsRider]

    def get_queryset(self):
        return Order.objects.filter(
            status=Order.BIDDING
        ).select_related('store').order_by('-created_at')


@extend_schema(tags=['Orders'])
class OrderDetailView(generics.RetrieveAPIView):
    """
    Get order details with bids and status history.
    """
    serializer_class = OrderDetailSerializer
    permission_classes = [permissions.IsAuthenticated, CanViewOrder]

    def get_queryset(self):
        return Order.objects.select_related(
            'store', 'rider', 'selected_bid'
        ).prefetch_related(
            'bids__rider', 'state_logs'
        )


# ==================== Bids ====================

@extend_schema(tags=['Bids'], methods=['GET'], responses=BidSerializer(many=True))
@extend_schema(tags=['Bids'], methods=['POST'], request=PlaceBidSerializer, responses={201: BidSerializer})
@api_view(['GET', 'POST'])
@permission_classes([permissions.IsAuthenticated])
def order_bids(request, pk):
    """
    GET: bids on the order, visible to its store and to riders while open.
    POST: rider places a bid; a repeat bid amends the existing one.
    """
    order = get_object_or_404(Order, pk=pk)

    if request.method == 'GET':
        if not (order.is_participant(request.user) or
                (order.status == Order.BIDDING and request.user.is_rider)):
            raise Forbidden("You cannot view bids on this order")
        return Response(BidSerializer(BidBook.list(order), many=True).data)

    serializer = PlaceBidSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    bid, created = OrderService.place_bid(
        order=order,
        rider=request.user,
        amount=serializer.validated_data['amount']
    )

    return Response(
        BidSerializer(bid).data,
        status=status.HTTP_201_CREATED if created else status.HTTP_200_OK
    )


@extend_schema(tags=['Bids'], request=PlaceBidSerializer, responses=BidSerializer)
@api_view(['PATCH'])
@permission_classes([permissions.IsAuthenticated])
def amend_bid(request, pk, bid_id):
    """
    Rider changes the amount of their own bid while the order is BIDDING.
    """
    order = get_object_or_404(Order, pk=pk)

    serializer = PlaceBidSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    bid = OrderService.amend_bid(
        order=order,
        bid_id=bid_id,
        rider=request.user,
        amount=serializer.validated_data['amount']
    )
    return Response(BidSerializer(bid).data)


@extend_schema(tags=['Bids'], request=SelectBidSerializer, responses=OrderDetailSerializer)
@api_view(['POST'])
@permission_classes([permissions.IsAuthenticated])
def select_bid(request, pk):
    """
    Store selects the winning bid.
    Transitions: BIDDING → AWAITING_ESCROW
    """
    order = get_object_or_404(Order, pk=pk)

    serializer = SelectBidSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    updated_order = OrderService.select_bid(
        order=order,
        store=request.user,
        bid_id=serializer.validated_data['bid_id']
    )
    return Response(_detail(updated_order, request))


# ==================== Escrow ====================

@extend_schema(tags=['Escrow'], request=None, responses=OrderDetailSerializer)
@api_view(['POST'])
@permission_classes([permissions.IsAuthenticated])
def deposit_store_escrow(request, pk):
    """
    Store locks the agreed delivery fee.
    Once both deposits are in: AWAITING_ESCROW → READY_FOR_PICKUP
    """
    order = get_object_or_404(Order, pk=pk)
    updated_order = OrderService.deposit_store_escrow(order=order, store=request.user)
    return Response(_detail(updated_order, request))


@extend_schema(tags=['Escrow'], request=None, responses=OrderDetailSerializer)
@api_view(['POST'])
@permission_classes([permissions.IsAuthenticated])
def deposit_rider_escrow(request, pk):
    """
    Assigned rider locks the product price as collateral.
    Once both deposits are in: AWAITING_ESCROW → READY_FOR_PICKUP
    """
    order = get_object_or_404(Order, pk=pk)
    updated_order = OrderService.deposit_rider_escrow(order=order, rider=request.user)
    return Response(_detail(updated_order, request))


# ==================== Status ====================

@extend_schema(tags=['Orders'], request=AdvanceStatusSerializer, responses=OrderDetailSerializer)
@api_view(['POST'])
@permission_classes([permissions.IsAuthenticated])
def advance_status(request, pk):
    """
    Party-driven transitions:
    rider: READY_FOR_PICKUP → IN_TRANSIT → DELIVERED
    store: DELIVERED → COMPLETED (settles the order)
    """
    order = get_object_or_404(Order, pk=pk)

    serializer = AdvanceStatusSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    updated_order = OrderService.advance_status(
        order=order,
        user=request.user,
        target_status=serializer.validated_data['status']
    )
    return Response(_detail(updated_order, request))


@extend_schema(tags=['Orders'], request=None)
@api_view(['POST'])
@permission_classes([IsAdmin])
def reconcile_orders(request):
    """
    Admin-only trigger for the reconciliation pass.
    """
    report = reconcile_stuck_orders()
    logger.info(
        f"Admin {request.user.pk} ran reconciliation: "
        f"{len(report.healed)} healed, {len(report.unsettled)} unsettled"
    )
    return Response({'healed': report.healed, 'unsettled': report.unsettled})
