"""
Wallet views.
Read-only: balances only change through order operations.
"""
from drf_spectacular.utils import extend_schema
from rest_framework import generics, permissions
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from apps.wallets.serializers import WalletSerializer, TransactionSerializer
from apps.wallets.services.ledger import WalletLedger


@extend_schema(tags=['Wallets'], responses=WalletSerializer)
@api_view(['GET'])
@permission_classes([permissions.IsAuthenticated])
def my_wallet(request):
    """Balance, escrow held and the latest ten transactions."""
    wallet = WalletLedger.get_wallet(request.user)
    return Response(WalletSerializer(wallet).data)


@extend_schema(tags=['Wallets'])
class MyTransactionsView(generics.ListAPIView):
    """
    Full transaction history, newest first.
    """
    serializer_class = TransactionSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):
        wallet = WalletLedger.get_wallet(self.request.user)
        return wallet.transactions.all()
