"""
Order URL patterns.
"""
from django.urls import path
from apps.orders import views

app_name = 'orders'

urlpatterns = [
    # Orders
    path('', views.OrderListCreateView.as_view(), name='list-create'),
    path('open/', views.OpenOrdersView.as_view(), name='open'),
    path('reconcile/', views.reconcile_orders, name='reconcile'),
    path('<uuid:pk>/', views.OrderDetailView.as_view(), name='detail'),

    # Bidding
    path('<uuid:pk>/bids/', views.order_bids, name='bids'),
    path('<uuid:pk>/bids/<uuid:bid_id>/', views.amend_bid, name='bid-amend'),
    path('<uuid:pk>/select-bid/', views.select_bid, name='select-bid'),

    # Escrow
    path('<uuid:pk>/escrow/store/', views.deposit_store_escrow, name='escrow-store'),
    path('<uuid:pk>/escrow/rider/', views.deposit_rider_escrow, name='escrow-rider'),

    # State transitions
    path('<uuid:pk>/status/', views.advance_status, name='status'),
]
