"""
Wallets app configuration.
Handles balances, escrow holdings and the transaction log.
"""
from django.apps import AppConfig


class WalletsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.wallets'
    verbose_name = 'Wallets'
