"""
URL configuration for the payments app.

All routes are prefixed with /api/v1/payments/ when included in the main URLconf.

Usage:
    # In config/urls.py
    api_v1_patterns = [
        path("payments/", include("payments.urls")),
    ]
"""

from django.urls import path

from payments import views
from payments.webhooks.views import flutterwave_webhook, paystack_webhook

app_name = "payments"

urlpatterns = [
    # Checkout
    path("initialize/<str:provider>/", views.InitializePaymentView.as_view(), name="initialize"),
    path("verify/<str:provider>/<str:reference>/", views.VerifyPaymentView.as_view(), name="verify"),
    path("providers/", views.ProviderStatusView.as_view(), name="providers"),
    # Webhook endpoints
    path("webhook/flutterwave/", flutterwave_webhook, name="flutterwave_webhook"),
    path("webhook/paystack/", paystack_webhook, name="paystack_webhook"),
    # Refunds
    path("refund/<str:transaction_id>/", views.RefundCreateView.as_view(), name="refund-create"),
    path("refunds/<str:refund_id>/", views.RefundStatusView.as_view(), name="refund-status"),
    # Ledger
    path("transactions/", views.TransactionHistoryView.as_view(), name="transaction-list"),
    path(
        "transactions/<str:transaction_id>/",
        views.TransactionDetailView.as_view(),
        name="transaction-detail",
    ),
    # Notifications
    path("notifications/send/", views.SendNotificationView.as_view(), name="notification-send"),
    # Payer history
    path("", views.PaymentListView.as_view(), name="payment-list"),
    path("<uuid:pk>/", views.PaymentDetailView.as_view(), name="payment-detail"),
]
