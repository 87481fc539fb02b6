"""
Orders app configuration.
Handles delivery jobs, rider bidding, the dual escrow gate and settlement.
"""
from django.apps import AppConfig


class OrdersConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.orders'
    verbose_name = 'Orders'
