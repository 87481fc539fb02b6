"""
Wallet URL patterns.
"""
from django.urls import path
from apps.wallets import views

app_name = 'wallets'

urlpatterns = [
    path('me/', views.my_wallet, name='me'),
    path('me/transactions/', views.MyTransactionsView.as_view(), name='transactions'),
]
