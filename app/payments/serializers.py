"""
DRF serializers for payments app.

This module provides serializers for:
- Escrow display and creation
- Payment status polling results
- Payout requests, history and admin actions
- Freelancer earnings

Related files:
    - models/: Escrow, Payout
    - views.py: Payment API views

Usage:
    serializer = EscrowSerializer(escrow)
    data = serializer.data
"""

from __future__ import annotations

from django.conf import settings
from rest_framework import serializers

from payments.models import Escrow, Payout


class EscrowSerializer(serializers.ModelSerializer):
    """
    Escrow for API responses.

    The session token is only returned by the create/renew endpoints
    (see EscrowCheckoutSerializer), never on reads.
    """

    class Meta:
        model = Escrow
        fields = [
            "id",
            "project",
            "client",
            "freelancer",
            "total_amount",
            "platform_fee",
            "freelancer_amount",
            "status",
            "gateway_order_id",
            "funded_at",
            "released_at",
            "refunded_at",
            "disputed_at",
            "created_at",
        ]
        read_only_fields = fields


class EscrowCreateSerializer(serializers.Serializer):
    project_id = serializers.UUIDField()


class EscrowCheckoutSerializer(serializers.Serializer):
    """Escrow plus what the client-side checkout widget needs."""

    escrow = EscrowSerializer(read_only=True)
    session_token = serializers.CharField(read_only=True)
    redirect_url = serializers.CharField(read_only=True)
    client_key = serializers.SerializerMethodField()

    def get_client_key(self, obj) -> str:
        return settings.MIDTRANS_CLIENT_KEY


class PaymentStatusSerializer(serializers.Serializer):
    status = serializers.CharField(read_only=True)
    updated = serializers.BooleanField(read_only=True)
    transaction_status = serializers.CharField(read_only=True, allow_null=True)


class PayoutSerializer(serializers.ModelSerializer):
    """
    Payout for API responses.

    Only the last four digits of the account number are exposed.
    """

    account_number = serializers.SerializerMethodField()

    class Meta:
        model = Payout
        fields = [
            "id",
            "escrow",
            "amount",
            "status",
            "bank_code",
            "bank_name",
            "account_number",
            "account_holder_name",
            "processed_at",
            "completed_at",
            "failed_at",
            "failed_reason",
            "created_at",
        ]
        read_only_fields = fields

    def get_account_number(self, obj) -> str:
        if not obj.account_number:
            return ""
        return f"****{obj.account_number[-4:]}"


class PayoutRequestSerializer(serializers.Serializer):
    """
    Serializer for a payout request.

    The amount band is enforced by PayoutService so the error names the
    configured limits; here we only require a positive integer.
    """

    amount = serializers.IntegerField()


class PayoutFailSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=1000)


class EarningsSerializer(serializers.Serializer):
    total_earned = serializers.IntegerField(read_only=True)
    in_escrow = serializers.IntegerField(read_only=True)
    this_month = serializers.IntegerField(read_only=True)
    available_balance = serializers.IntegerField(read_only=True)
    recent_payouts = PayoutSerializer(many=True, read_only=True)
    recent_escrows = EscrowSerializer(many=True, read_only=True)
