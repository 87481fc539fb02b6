"""
Wallet models - spendable balance, escrow holdings, transaction log.
"""
from decimal import Decimal
from django.conf import settings
from django.db import models
from django.utils import timezone


class Wallet(models.Model):
    """
    One wallet per user.
    Only WalletLedger mutates balances; everything else reads.
    """
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='wallet'
    )

    balance = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00'),
        help_text="Spendable funds"
    )
    escrow_held = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00'),
        help_text="Funds locked pending settlement"
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Wallet'
        verbose_name_plural = 'Wallets'
        constraints = [
            models.CheckConstraint(
                condition=models.Q(balance__gte=0),
                name='wallet_balance_non_negative'
            ),
            models.CheckConstraint(
                condition=models.Q(escrow_held__gte=0),
                name='wallet_escrow_non_negative'
            ),
        ]

    def __str__(self):
        return f"Wallet of {self.user} - {self.balance} (+{self.escrow_held} held)"


class Transaction(models.Model):
    """
    Immutable ledger entry.
    Appended once per balance-affecting operation, never edited or removed.
    """
    IN = 'IN'
    OUT = 'OUT'

    DIRECTION_CHOICES = [
        (IN, 'In'),
        (OUT, 'Out'),
    ]

    wallet = models.ForeignKey(
        Wallet,
        on_delete=models.PROTECT,
        related_name='transactions'
    )
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    direction = models.CharField(max_length=3, choices=DIRECTION_CHOICES)
    description = models.CharField(max_length=255)
    reference = models.CharField(
        max_length=64,
        blank=True,
        help_text="Order id this entry belongs to, if any"
    )
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        ordering = ['-created_at', '-id']
        verbose_name = 'Transaction'
        verbose_name_plural = 'Transactions'
        indexes = [
            models.Index(fields=['wallet', '-created_at'], name='wallets_txn_wallet_idx'),
        ]

    def __str__(self):
        return f"{self.direction} {self.amount} - {self.description}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError("Transactions are append-only and cannot be modified")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError("Transactions are append-only and cannot be deleted")
