"""
Wallet serializers.
"""
from rest_framework import serializers
from apps.wallets.models import Wallet, Transaction


class TransactionSerializer(serializers.ModelSerializer):
    """Serializer for ledger entries."""

    class Meta:
        model = Transaction
        fields = ['id', 'amount', 'direction', 'description', 'reference', 'created_at']
        read_only_fields = fields


class WalletSerializer(serializers.ModelSerializer):
    """Serializer for wallet balances with the most recent entries."""
    recent_transactions = serializers.SerializerMethodField()

    class Meta:
        model = Wallet
        fields = ['balance', 'escrow_held', 'updated_at', 'recent_transactions']
        read_only_fields = fields

    def get_recent_transactions(self, obj):
        return TransactionSerializer(obj.transactions.all()[:10], many=True).data
