"""
Webhook handling for Midtrans payment notifications.

Notifications are verified and applied synchronously by
EscrowService.handle_webhook; the endpoint always acknowledges.

Usage:
    # In urls.py
    from payments.webhooks.views import midtrans_webhook

    urlpatterns = [
        path("webhooks/midtrans/", midtrans_webhook, name="midtrans_webhook"),
    ]
"""
