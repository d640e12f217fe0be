"""
Webhook endpoint view for Midtrans payment notifications.

The view:
1. Parses the JSON notification body
2. Hands it to EscrowService.handle_webhook (prefix, signature, lookup)
3. Returns 200 whatever happened

Midtrans retries any non-2xx answer, so rejected notifications (bad
signature, unknown order, malformed body) are logged and acknowledged
rather than answered with an error.

Usage:
    # In urls.py
    from payments.webhooks.views import midtrans_webhook

    urlpatterns = [
        path("webhooks/midtrans/", midtrans_webhook, name="midtrans_webhook"),
    ]
"""

from __future__ import annotations

import json
import logging

from django.http import HttpRequest, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from payments.services import EscrowService

logger = logging.getLogger(__name__)


@csrf_exempt
@require_POST
def midtrans_webhook(request: HttpRequest) -> JsonResponse:
    """
    Receive a Midtrans payment notification.

    Security:
    - The SHA-512 signature_key is verified by the service before any
      state change
    - CSRF exemption required for external webhooks
    - Only POST requests accepted

    Returns:
        JsonResponse 200 with {"received": true, "outcome": ...}
    """
    try:
        notification = json.loads(request.body or b"{}")
    except (json.JSONDecodeError, UnicodeDecodeError):
        logger.warning("Webhook with malformed body discarded")
        return JsonResponse({"received": True, "outcome": "malformed"})

    if not isinstance(notification, dict):
        logger.warning("Webhook with non-object body discarded")
        return JsonResponse({"received": True, "outcome": "malformed"})

    try:
        outcome = EscrowService.handle_webhook(notification)
    except Exception:
        # A 5xx would only make the gateway retry into the same failure
        logger.exception(
            "Unexpected error handling webhook",
            extra={"order_id": notification.get("order_id")},
        )
        outcome = "error"

    return JsonResponse({"received": True, "outcome": outcome})
