"""
Wallet ledger - the only code that moves money.
Every operation locks the wallet row and runs inside a transaction, so
concurrent callers on the same wallet are serialized.
"""
import logging
from decimal import Decimal, InvalidOperation
from typing import Optional

from django.db import transaction

from apps.wallets.models import Wallet, Transaction
from common.exceptions import InsufficientFunds, InvalidAmount, NotFound

logger = logging.getLogger('wallets')

CENTS = Decimal('0.01')


def _user_id(user):
    return getattr(user, 'pk', user)


def to_amount(value) -> Decimal:
    """Coerce to a positive two-decimal amount or raise InvalidAmount."""
    try:
        amount = Decimal(str(value)).quantize(CENTS)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidAmount(f"Invalid amount: {value!r}")
    if not amount.is_finite() or amount <= 0:
        raise InvalidAmount(f"Amount must be positive, got {value!r}")
    return amount


class WalletLedger:
    """
    Atomic credit/debit/escrow operations on user wallets.
    """

    @staticmethod
    def _lock(user) -> Wallet:
        """Fetch the wallet row under SELECT ... FOR UPDATE."""
        try:
            return Wallet.objects.select_for_update().get(user_id=_user_id(user))
        except Wallet.DoesNotExist:
            raise NotFound(f"No wallet for user {_user_id(user)}")

    @staticmethod
    def _append(wallet: Wallet, amount: Decimal, direction: str,
                description: str, reference: str = "") -> Transaction:
        return Transaction.objects.create(
            wallet=wallet,
            amount=amount,
            direction=direction,
            description=description[:255],
            reference=str(reference)[:64],
        )

    @staticmethod
    def get_wallet(user) -> Wallet:
        try:
            return Wallet.objects.get(user_id=_user_id(user))
        except Wallet.DoesNotExist:
            raise NotFound(f"No wallet for user {_user_id(user)}")

    @staticmethod
    @transaction.atomic
    def open_wallet(user, starting_balance: Optional[Decimal] = None) -> Wallet:
        """
        Create the user's wallet, seeded with an optional starting balance.
        The seed is recorded as a regular IN transaction.
        """
        wallet, created = Wallet.objects.get_or_create(user_id=_user_id(user))
        if created and starting_balance:
            WalletLedger.credit(user, starting_balance, "Starting balance")
            wallet.refresh_from_db()
        return wallet

    @staticmethod
    @transaction.atomic
    def credit(user, amount, description: str, reference: str = "") -> Wallet:
        """Add funds to the spendable balance."""
        amount = to_amount(amount)
        wallet = WalletLedger._lock(user)

        wallet.balance += amount
        wallet.save(update_fields=['balance', 'updated_at'])
        WalletLedger._append(wallet, amount, Transaction.IN, description, reference)

        logger.info(f"Credited {amount} to wallet of user {wallet.user_id}: {description}")
        return wallet

    @staticmethod
    @transaction.atomic
    def debit(user, amount, description: str, reference: str = "") -> Wallet:
        """
        Remove funds from the spendable balance.

        Raises:
            InsufficientFunds: If balance < amount
        """
        amount = to_amount(amount)
        wallet = WalletLedger._lock(user)

        if wallet.balance < amount:
            logger.warning(
                f"Debit of {amount} rejected for user {wallet.user_id}: balance {wallet.balance}"
            )
            raise InsufficientFunds(
                f"Balance {wallet.balance} is lower than required {amount}"
            )

        wallet.balance -= amount
        wallet.save(update_fields=['balance', 'updated_at'])
        WalletLedger._append(wallet, amount, Transaction.OUT, description, reference)

        logger.info(f"Debited {amount} from wallet of user {wallet.user_id}: {description}")
        return wallet

    @staticmethod
    @transaction.atomic
    def move_to_escrow(user, amount, description: str = "Escrow deposit",
                       reference: str = "") -> Wallet:
        """
        Move funds from balance into escrow_held in one step.

        Raises:
            InsufficientFunds: If balance < amount
        """
        amount = to_amount(amount)
        wallet = WalletLedger._lock(user)

        if wallet.balance < amount:
            logger.warning(
                f"Escrow deposit of {amount} rejected for user {wallet.user_id}: "
                f"balance {wallet.balance}"
            )
            raise InsufficientFunds(
                f"Balance {wallet.balance} is lower than required escrow {amount}"
            )

        wallet.balance -= amount
        wallet.escrow_held += amount
        wallet.save(update_fields=['balance', 'escrow_held', 'updated_at'])
        WalletLedger._append(wallet, amount, Transaction.OUT, description, reference)

        logger.info(f"Moved {amount} to escrow for user {wallet.user_id}")
        return wallet

    @staticmethod
    @transaction.atomic
    def release_from_escrow(user, amount) -> Wallet:
        """
        Reduce escrow_held without touching the balance.
        Pair with a credit when the funds go to a counterparty.
        """
        amount = to_amount(amount)
        wallet = WalletLedger._lock(user)

        if wallet.escrow_held < amount:
            logger.error(
                f"Escrow release of {amount} exceeds held {wallet.escrow_held} "
                f"for user {wallet.user_id}"
            )
            raise InvalidAmount(
                f"Cannot release {amount}: only {wallet.escrow_held} held in escrow"
            )

        wallet.escrow_held -= amount
        wallet.save(update_fields=['escrow_held', 'updated_at'])

        logger.info(f"Released {amount} from escrow for user {wallet.user_id}")
        return wallet

    @staticmethod
    def lock_many(users) -> list:
        """
        Lock several wallets in ascending user id order.
        Must be called inside an atomic block.
        """
        ids = sorted({_user_id(user) for user in users})
        wallets = list(
            Wallet.objects.select_for_update().filter(user_id__in=ids).order_by('user_id')
        )
        if len(wallets) != len(ids):
            found = {wallet.user_id for wallet in wallets}
            missing = [user_id for user_id in ids if user_id not in found]
            raise NotFound(f"No wallet for user(s) {missing}")
        return wallets
