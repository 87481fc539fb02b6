from django.conf import settings
from django.contrib.auth.password_validation import validate_password
from django.db import transaction
from rest_framework import serializers

from apps.wallets.services.ledger import WalletLedger
from .models import User
import logging

logger = logging.getLogger('security')


# ============================
# Register Serializer
# ============================

class RegisterSerializer(serializers.ModelSerializer):
    """
    Serializer for user registration.
    Creates the user and opens a wallet seeded with the role's starting balance.
    """

    password = serializers.CharField(
        write_only=True,
        validators=[validate_password],
        style={'input_type': 'password'}
    )
    password_confirm = serializers.CharField(
        write_only=True,
        style={'input_type': 'password'}
    )
    role = serializers.ChoiceField(
        choices=[User.Role.STORE, User.Role.RIDER]
    )

    class Meta:
        model = User
        fields = ("email", "name", "role", "password", "password_confirm")

    def validate(self, attrs):
        """Validate that passwords match."""
        if attrs['password'] != attrs['password_confirm']:
            raise serializers.ValidationError({
                "password_confirm": "Passwords do not match"
            })
        return attrs

    @transaction.atomic
    def create(self, validated_data):
        validated_data.pop('password_confirm')

        user = User.objects.create_user(
            email=validated_data["email"],
            password=validated_data["password"],
            name=validated_data.get("name", ""),
            role=validated_data["role"],
        )

        starting_balance = settings.WALLET_STARTING_BALANCES.get(user.role)
        WalletLedger.open_wallet(user, starting_balance)

        return user


# ============================
# User Serializer
# ============================

class UserSerializer(serializers.ModelSerializer):
    """Current user with wallet summary."""
    balance = serializers.DecimalField(
        source='wallet.balance', max_digits=12, decimal_places=2, read_only=True
    )
    escrow_held = serializers.DecimalField(
        source='wallet.escrow_held', max_digits=12, decimal_places=2, read_only=True
    )

    class Meta:
        model = User
        fields = ("id", "email", "name", "role", "balance", "escrow_held", "date_joined")
        read_only_fields = fields


class UserSummarySerializer(serializers.ModelSerializer):
    """Public view of a marketplace participant."""
    name = serializers.CharField(source='display_name', read_only=True)

    class Meta:
        model = User
        fields = ("id", "name", "role")
        read_only_fields = fields
