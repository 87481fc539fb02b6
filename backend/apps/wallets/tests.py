"""
Tests for the wallet ledger and wallet endpoints.
"""
from decimal import Decimal
from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.test import TestCase
from rest_framework import status
from rest_framework.test import APIClient

from apps.wallets.models import Wallet, Transaction
from apps.wallets.services.ledger import WalletLedger, to_amount
from common.exceptions import InsufficientFunds, InvalidAmount, NotFound
from common.testing import create_user

User = get_user_model()


class WalletLedgerTestCase(TestCase):
    """Test ledger operations."""

    def setUp(self):
        self.user = create_user('rider@test.com', User.Role.RIDER, '100.00')

    def wallet(self):
        return Wallet.objects.get(user=self.user)

    def test_open_wallet_records_seed_transaction(self):
        wallet = self.wallet()
        self.assertEqual(wallet.balance, Decimal('100.00'))
        seed = wallet.transactions.get()
        self.assertEqual(seed.direction, Transaction.IN)
        self.assertEqual(seed.amount, Decimal('100.00'))

    def test_open_wallet_twice_does_not_reseed(self):
        WalletLedger.open_wallet(self.user, Decimal('100.00'))
        self.assertEqual(self.wallet().balance, Decimal('100.00'))
        self.assertEqual(self.wallet().transactions.count(), 1)

    def test_credit_appends_in_transaction(self):
        WalletLedger.credit(self.user, Decimal('25.50'), 'Bonus', reference='ord-1')

        wallet = self.wallet()
        self.assertEqual(wallet.balance, Decimal('125.50'))
        latest = wallet.transactions.first()
        self.assertEqual(latest.direction, Transaction.IN)
        self.assertEqual(latest.amount, Decimal('25.50'))
        self.assertEqual(latest.reference, 'ord-1')

    def test_debit_appends_out_transaction(self):
        WalletLedger.debit(self.user, '40', 'Fee')

        wallet = self.wallet()
        self.assertEqual(wallet.balance, Decimal('60.00'))
        self.assertEqual(wallet.transactions.first().direction, Transaction.OUT)

    def test_debit_insufficient_funds_leaves_wallet_untouched(self):
        with self.assertRaises(InsufficientFunds):
            WalletLedger.debit(self.user, Decimal('100.01'), 'Too much')

        wallet = self.wallet()
        self.assertEqual(wallet.balance, Decimal('100.00'))
        self.assertEqual(wallet.transactions.count(), 1)

    def test_debit_entire_balance_allowed(self):
        WalletLedger.debit(self.user, Decimal('100.00'), 'All of it')
        self.assertEqual(self.wallet().balance, Decimal('0.00'))

    def test_move_to_escrow(self):
        WalletLedger.move_to_escrow(self.user, Decimal('30.00'), 'Collateral')

        wallet = self.wallet()
        self.assertEqual(wallet.balance, Decimal('70.00'))
        self.assertEqual(wallet.escrow_held, Decimal('30.00'))
        latest = wallet.transactions.first()
        self.assertEqual(latest.direction, Transaction.OUT)
        self.assertEqual(latest.description, 'Collateral')

    def test_move_to_escrow_insufficient_funds(self):
        with self.assertRaises(InsufficientFunds):
            WalletLedger.move_to_escrow(self.user, Decimal('150.00'))

        wallet = self.wallet()
        self.assertEqual(wallet.balance, Decimal('100.00'))
        self.assertEqual(wallet.escrow_held, Decimal('0.00'))

    def test_release_from_escrow_keeps_balance(self):
        WalletLedger.move_to_escrow(self.user, Decimal('30.00'))
        count = self.wallet().transactions.count()

        WalletLedger.release_from_escrow(self.user, Decimal('30.00'))

        wallet = self.wallet()
        self.assertEqual(wallet.balance, Decimal('70.00'))
        self.assertEqual(wallet.escrow_held, Decimal('0.00'))
        # Release is not a balance change, so nothing is appended
        self.assertEqual(wallet.transactions.count(), count)

    def test_release_more_than_held_rejected(self):
        WalletLedger.move_to_escrow(self.user, Decimal('10.00'))

        with self.assertRaises(InvalidAmount):
            WalletLedger.release_from_escrow(self.user, Decimal('10.01'))

        self.assertEqual(self.wallet().escrow_held, Decimal('10.00'))

    def test_non_positive_amounts_rejected(self):
        for amount in ('0', '-5', 'abc', None):
            with self.assertRaises(InvalidAmount):
                WalletLedger.credit(self.user, amount, 'Nope')

        self.assertEqual(self.wallet().balance, Decimal('100.00'))

    def test_to_amount_quantizes(self):
        self.assertEqual(to_amount('6'), Decimal('6.00'))
        self.assertEqual(to_amount(Decimal('6.005')), Decimal('6.00'))

    def test_transactions_newest_first(self):
        WalletLedger.credit(self.user, '1', 'first')
        WalletLedger.credit(self.user, '2', 'second')
        WalletLedger.debit(self.user, '3', 'third')

        descriptions = list(
            self.wallet().transactions.values_list('description', flat=True)
        )
        self.assertEqual(descriptions[:3], ['third', 'second', 'first'])

    def test_missing_wallet_is_not_found(self):
        walletless = User.objects.create_user(email='nowallet@test.com', password='x')
        with self.assertRaises(NotFound):
            WalletLedger.credit(walletless, '1', 'Nope')

    def test_lock_many_reports_missing(self):
        walletless = User.objects.create_user(email='nowallet@test.com', password='x')
        with transaction.atomic():
            wallets = WalletLedger.lock_many([self.user])
            self.assertEqual(wallets[0].user_id, self.user.id)
            with self.assertRaises(NotFound):
                WalletLedger.lock_many([self.user, walletless])

    def test_transaction_is_append_only(self):
        txn = self.wallet().transactions.first()
        txn.amount = Decimal('1.00')
        with self.assertRaises(ValueError):
            txn.save()
        with self.assertRaises(ValueError):
            txn.delete()

    def test_negative_balance_blocked_by_database(self):
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                Wallet.objects.filter(user=self.user).update(balance=Decimal('-1.00'))


class WalletAPITestCase(TestCase):
    """Test wallet endpoints."""

    def setUp(self):
        self.client = APIClient()
        self.user = create_user('store@test.com', User.Role.STORE, '1000.00')
        WalletLedger.move_to_escrow(self.user, Decimal('6.00'), 'Escrow deposit')

    def test_wallet_requires_auth(self):
        response = self.client.get('/api/wallets/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_my_wallet(self):
        self.client.force_authenticate(user=self.user)
        response = self.client.get('/api/wallets/me/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Decimal(response.data['balance']), Decimal('994.00'))
        self.assertEqual(Decimal(response.data['escrow_held']), Decimal('6.00'))
        self.assertEqual(len(response.data['recent_transactions']), 2)
        self.assertEqual(response.data['recent_transactions'][0]['direction'], 'OUT')

    def test_my_transactions(self):
        self.client.force_authenticate(user=self.user)
        response = self.client.get('/api/wallets/me/transactions/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 2)
        self.assertEqual(response.data[0]['description'], 'Escrow deposit')

    def test_wallet_missing_returns_404(self):
        walletless = User.objects.create_user(email='nowallet@test.com', password='x')
        self.client.force_authenticate(user=walletless)
        response = self.client.get('/api/wallets/me/')

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error'], 'not_found')
