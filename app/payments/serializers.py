"""
DRF serializers for the payments API.

Amounts travel over the wire in major units (e.g. Naira) as two-place
decimals. Request serializers validate the decimal; views convert it to
minor units once before calling a service. Response serializers read the
models' ``amount`` properties.

Usage:
    serializer = InitializePaymentSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
"""

from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers

from notifications.models import NotificationType
from payments.models import Payment, Refund, Transaction
from payments.state_machines import RefundStatus, TransactionStatus

MIN_AMOUNT = Decimal("0.01")


# =============================================================================
# Request Serializers
# =============================================================================


class InitializePaymentSerializer(serializers.Serializer):
    """
    Body of POST initialize/{provider}/.

    Keys are camelCase to match the storefront client.
    """

    orderId = serializers.UUIDField()
    amount = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=MIN_AMOUNT)
    email = serializers.EmailField()
    paymentMethod = serializers.CharField(max_length=32, required=False, allow_blank=True)
    customerName = serializers.CharField(max_length=255, required=False, allow_blank=True)
    customerPhone = serializers.CharField(max_length=32, required=False, allow_blank=True)


class InitializePaymentResponseSerializer(serializers.Serializer):
    provider = serializers.CharField()
    providerReference = serializers.CharField()
    redirectUrl = serializers.URLField()
    authorizationUrl = serializers.URLField(required=False)
    accessCode = serializers.CharField(required=False)


class RefundRequestSerializer(serializers.Serializer):
    """Body of POST refund/{transactionId}/. Amount defaults to the full payment."""

    amount = serializers.DecimalField(
        max_digits=14,
        decimal_places=2,
        min_value=MIN_AMOUNT,
        required=False,
    )
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True)


class RefundStatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(
        choices=[RefundStatus.COMPLETED, RefundStatus.FAILED, RefundStatus.REJECTED],
    )
    reason = serializers.CharField(required=False, allow_blank=True)


class TransactionHistoryQuerySerializer(serializers.Serializer):
    """Query parameters for GET transactions/."""

    date_from = serializers.DateField(required=False)
    date_to = serializers.DateField(required=False)
    status = serializers.ChoiceField(choices=TransactionStatus.choices, required=False)
    page = serializers.IntegerField(min_value=1, required=False, default=1)
    limit = serializers.IntegerField(min_value=1, max_value=100, required=False, default=10)

    def validate(self, attrs):
        date_from = attrs.get("date_from")
        date_to = attrs.get("date_to")
        if date_from and date_to and date_from > date_to:
            raise serializers.ValidationError({"to": "Must not be before 'from'."})
        return attrs


class SendNotificationSerializer(serializers.Serializer):
    """Body of POST notifications/send/ (admin)."""

    userId = serializers.IntegerField()
    type = serializers.ChoiceField(choices=NotificationType.choices)
    data = serializers.DictField(required=False, default=dict)


# =============================================================================
# Response Serializers
# =============================================================================


class RefundSerializer(serializers.ModelSerializer):
    amount = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)
    payment_reference = serializers.CharField(source="payment.transaction_id", read_only=True)

    class Meta:
        model = Refund
        fields = [
            "id",
            "payment",
            "payment_reference",
            "amount",
            "currency",
            "reason",
            "status",
            "failure_reason",
            "processed_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class PaymentSerializer(serializers.ModelSerializer):
    """Payment with its refunds, for the payer's own history."""

    amount = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)
    reference = serializers.CharField(source="transaction_id", read_only=True)
    refunds = RefundSerializer(many=True, read_only=True)

    class Meta:
        model = Payment
        fields = [
            "id",
            "order",
            "amount",
            "currency",
            "provider",
            "payment_method",
            "reference",
            "status",
            "completed_at",
            "failed_at",
            "failure_reason",
            "refunds",
            "created_at",
        ]
        read_only_fields = fields


class TransactionSerializer(serializers.ModelSerializer):
    amount = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)

    class Meta:
        model = Transaction
        fields = [
            "id",
            "reference",
            "provider",
            "kind",
            "status",
            "amount",
            "currency",
            "order",
            "refund",
            "description",
            "created_at",
        ]
        read_only_fields = fields


class TransactionHistorySerializer(serializers.Serializer):
    transactions = TransactionSerializer(many=True)
    total = serializers.IntegerField()
    page = serializers.IntegerField()
    limit = serializers.IntegerField()
    total_pages = serializers.IntegerField()


class ProviderStatusSerializer(serializers.Serializer):
    provider = serializers.CharField()
    configured = serializers.BooleanField()


class ReconciliationResultSerializer(serializers.Serializer):
    """Schema-only description of ReconciliationResult.to_dict()."""

    success = serializers.BooleanField()
    status = serializers.CharField()
    message = serializers.CharField()
    orderId = serializers.CharField(allow_null=True)
    reference = serializers.CharField(allow_null=True)
    provider = serializers.CharField(allow_null=True)
    transitioned = serializers.BooleanField()
    verification = serializers.DictField(required=False)
    warnings = serializers.ListField(child=serializers.CharField(), required=False)
