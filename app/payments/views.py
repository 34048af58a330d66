"""
DRF views for the payments API.

Endpoints (all under /api/v1/payments/):
    POST  initialize/{provider}/            - Start a hosted checkout
    GET   verify/{provider}/{reference}/    - Verify and reconcile a payment
    POST  refund/{transactionId}/           - Record a refund request (admin)
    PATCH refunds/{refundId}/               - Update refund status (admin)
    GET   transactions/                     - Ledger history (admin)
    GET   transactions/{id}/                - Ledger entry (admin)
    GET   providers/                        - Which providers are configured
    GET   ""                                - Caller's payments
    GET   {id}/                             - One of the caller's payments
    POST  notifications/send/               - Send a payment notification (admin)

Webhook endpoints live in payments.webhooks.views.

Errors raised by services are BaseApplicationError subclasses and are
rendered by core.exceptions.api_exception_handler.
"""

from __future__ import annotations

import logging

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import generics, status
from rest_framework.permissions import AllowAny, IsAdminUser, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from notifications.services import NotificationService
from payments.adapters import build_adapters
from payments.models import Payment
from payments.money import to_minor_units
from payments.serializers import (
    InitializePaymentResponseSerializer,
    InitializePaymentSerializer,
    PaymentSerializer,
    ProviderStatusSerializer,
    ReconciliationResultSerializer,
    RefundRequestSerializer,
    RefundSerializer,
    RefundStatusUpdateSerializer,
    SendNotificationSerializer,
    TransactionHistoryQuerySerializer,
    TransactionHistorySerializer,
    TransactionSerializer,
)
from payments.services import ReconciliationService, RefundService, TransactionService
from payments.state_machines import PaymentProvider

logger = logging.getLogger(__name__)


# =============================================================================
# Checkout
# =============================================================================


class InitializePaymentView(APIView):
    """
    Start a hosted checkout with Flutterwave or Paystack.

    POST /api/v1/payments/initialize/{provider}/

    Request body:
        {
            "orderId": "7c9e6679-7425-40de-944b-e07fc1f90ae7",
            "amount": "5000.00",
            "email": "buyer@example.com",
            "paymentMethod": "card"
        }

    Guests may pay; the payer is attached when the request is authenticated.
    """

    permission_classes = [AllowAny]

    @extend_schema(
        request=InitializePaymentSerializer,
        responses={201: InitializePaymentResponseSerializer},
        tags=["Payments"],
    )
    def post(self, request, provider: str):
        serializer = InitializePaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = ReconciliationService.initialize_payment(
            order_id=data["orderId"],
            amount_minor=to_minor_units(data["amount"]),
            email=data["email"],
            provider=provider,
            payment_method=data.get("paymentMethod") or None,
            user=request.user,
            customer_name=data.get("customerName") or None,
            customer_phone=data.get("customerPhone") or None,
        )

        body = {
            "provider": result.provider,
            "providerReference": result.provider_reference,
            "redirectUrl": result.redirect_url,
        }
        if result.provider == PaymentProvider.PAYSTACK:
            body["authorizationUrl"] = result.redirect_url
        if result.access_code:
            body["accessCode"] = result.access_code
        return Response(body, status=status.HTTP_201_CREATED)


class VerifyPaymentView(APIView):
    """
    Verify a payment with its provider and reconcile the order.

    GET /api/v1/payments/verify/{provider}/{reference}/

    Safe to call repeatedly and concurrently with the provider's webhook;
    only one caller moves the order to PROCESSING.
    """

    permission_classes = [AllowAny]

    @extend_schema(responses={200: ReconciliationResultSerializer}, tags=["Payments"])
    def get(self, request, provider: str, reference: str):
        result = ReconciliationService.verify_payment(reference, provider)
        return Response(result.to_dict())


class ProviderStatusView(APIView):
    """GET /api/v1/payments/providers/"""

    permission_classes = [AllowAny]

    @extend_schema(responses={200: ProviderStatusSerializer(many=True)}, tags=["Payments"])
    def get(self, request):
        adapters = build_adapters()
        data = [
            {"provider": provider, "configured": adapter.is_configured}
            for provider, adapter in adapters.items()
        ]
        return Response(ProviderStatusSerializer(data, many=True).data)


# =============================================================================
# Payer History
# =============================================================================


class PaymentListView(generics.ListAPIView):
    """GET /api/v1/payments/ - the caller's payments, newest first."""

    permission_classes = [IsAuthenticated]
    serializer_class = PaymentSerializer

    def get_queryset(self):
        return (
            Payment.objects.filter(user=self.request.user)
            .prefetch_related("refunds")
            .order_by("-created_at")
        )


class PaymentDetailView(generics.RetrieveAPIView):
    """GET /api/v1/payments/{id}/"""

    permission_classes = [IsAuthenticated]
    serializer_class = PaymentSerializer

    def get_queryset(self):
        return Payment.objects.filter(user=self.request.user).prefetch_related("refunds")


# =============================================================================
# Refunds (admin)
# =============================================================================


class RefundCreateView(APIView):
    """
    Record a refund against a ledger payment.

    POST /api/v1/payments/refund/{transactionId}/

    ``transactionId`` is the payment reference (or the ledger entry id).
    The refund is created PENDING; no provider call is made.
    """

    permission_classes = [IsAdminUser]

    @extend_schema(
        request=RefundRequestSerializer,
        responses={201: RefundSerializer},
        tags=["Refunds"],
    )
    def post(self, request, transaction_id: str):
        serializer = RefundRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        amount = data.get("amount")
        refund = RefundService.initiate_refund(
            transaction_id=transaction_id,
            amount_minor=to_minor_units(amount) if amount is not None else None,
            reason=data.get("reason") or None,
            requested_by=request.user,
        )
        return Response(RefundSerializer(refund).data, status=status.HTTP_201_CREATED)


class RefundStatusView(APIView):
    """PATCH /api/v1/payments/refunds/{refundId}/"""

    permission_classes = [IsAdminUser]

    @extend_schema(
        request=RefundStatusUpdateSerializer,
        responses={200: RefundSerializer},
        tags=["Refunds"],
    )
    def patch(self, request, refund_id: str):
        serializer = RefundStatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        refund = RefundService.update_refund_status(
            refund_id,
            serializer.validated_data["status"],
            reason=serializer.validated_data.get("reason") or None,
        )
        return Response(RefundSerializer(refund).data)


# =============================================================================
# Ledger (admin)
# =============================================================================


class TransactionHistoryView(APIView):
    """GET /api/v1/payments/transactions/?from=&to=&status=&page=&limit="""

    permission_classes = [IsAdminUser]

    @extend_schema(
        parameters=[
            OpenApiParameter("from", str, description="Start date (YYYY-MM-DD)"),
            OpenApiParameter("to", str, description="End date (YYYY-MM-DD), inclusive"),
            OpenApiParameter("status", str),
            OpenApiParameter("page", int),
            OpenApiParameter("limit", int),
        ],
        responses={200: TransactionHistorySerializer},
        tags=["Transactions"],
    )
    def get(self, request):
        params = request.query_params
        query = {
            key: value
            for key, value in {
                "date_from": params.get("from"),
                "date_to": params.get("to"),
                "status": params.get("status"),
                "page": params.get("page"),
                "limit": params.get("limit"),
            }.items()
            if value
        }
        serializer = TransactionHistoryQuerySerializer(data=query)
        serializer.is_valid(raise_exception=True)

        history = TransactionService.get_transaction_history(**serializer.validated_data)
        return Response(TransactionHistorySerializer(history).data)


class TransactionDetailView(APIView):
    """GET /api/v1/payments/transactions/{id}/"""

    permission_classes = [IsAdminUser]

    @extend_schema(responses={200: TransactionSerializer}, tags=["Transactions"])
    def get(self, request, transaction_id: str):
        entry = TransactionService.get_transaction_details(transaction_id)
        return Response(TransactionSerializer(entry).data)


# =============================================================================
# Notifications (admin)
# =============================================================================


class SendNotificationView(APIView):
    """
    Send a payment notification to a user.

    POST /api/v1/payments/notifications/send/

    Request body:
        {"userId": 42, "type": "payment_success", "data": {"order_id": "..."}}
    """

    permission_classes = [IsAdminUser]

    @extend_schema(request=SendNotificationSerializer, tags=["Notifications"])
    def post(self, request):
        serializer = SendNotificationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = NotificationService.send_payment_notification(
            data["userId"],
            data["type"],
            data["data"],
        )
        if not result.success:
            code = (
                status.HTTP_404_NOT_FOUND
                if result.error_code == "USER_NOT_FOUND"
                else status.HTTP_400_BAD_REQUEST
            )
            return Response(
                {"success": False, "message": result.error, "error_code": result.error_code},
                status=code,
            )

        return Response(
            {"success": True, "message": "Notification sent", "id": str(result.data.id)},
            status=status.HTTP_201_CREATED,
        )
