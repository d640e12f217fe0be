"""
Midtrans Snap adapter for hosted-checkout payment operations.

This module provides the MidtransAdapter class which encapsulates all
payment gateway HTTP calls. Escrow code talks to the gateway only through
this adapter so that timeouts, error translation and logging are uniform.

Features:
- Per-call timeout on every request (never hangs a worker)
- requests failures and non-2xx responses translated to GatewayError
- Structured logging with timing metrics
- Webhook signature verification (SHA-512, constant-time compare)

Configuration (via settings):
- MIDTRANS_SERVER_KEY: Server key (basic-auth username, signature secret)
- MIDTRANS_IS_PRODUCTION: Use production endpoints when True
- MIDTRANS_API_TIMEOUT_SECONDS: Request timeout (default: 10)
- ESCROW_CHECKOUT_EXPIRY_HOURS: Lifetime of a checkout session (default: 24)

Usage:
    from payments.adapters import MidtransAdapter

    gateway = MidtransAdapter.from_settings()
    session = gateway.create_transaction(
        order_id="esc-1a2b3c4d5e6f-1718000000000",
        amount=1_150_000,
        payer_email="client@example.com",
        description="Logo redesign",
    )
    session.token  # hand to the Snap checkout widget
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import time
from dataclasses import dataclass, field
from typing import Any

import requests
from django.conf import settings

from payments.exceptions import GatewayError

# Snap item names are capped by the gateway
ITEM_NAME_MAX_LENGTH = 50

SUCCESS_STATUSES = frozenset({"settlement"})
EXPIRED_OR_CANCELLED_STATUSES = frozenset({"expire", "cancel", "deny"})


# =============================================================================
# Data Types
# =============================================================================


@dataclass
class CheckoutSession:
    """
    Result of creating a Snap transaction.

    Attributes:
        token: Session token for the client-side checkout widget
        redirect_url: Hosted payment page for clients without the widget
    """

    token: str
    redirect_url: str = ""


@dataclass
class TransactionStatus:
    """
    Current gateway-side state of an order.

    Attributes:
        transaction_status: capture, settlement, pending, expire, cancel, deny, ...
        fraud_status: accept, challenge or deny (defaults to accept when absent)
        raw_response: Full response body (for debugging)
    """

    transaction_status: str
    fraud_status: str = "accept"
    raw_response: dict[str, Any] = field(default_factory=dict)


# =============================================================================
# Status Helpers
# =============================================================================


def is_payment_success(transaction_status: str, fraud_status: str | None) -> bool:
    """Card captures count only when fraud screening accepted them."""
    if transaction_status == "capture":
        return fraud_status == "accept"
    return transaction_status in SUCCESS_STATUSES


def is_payment_expired_or_cancelled(transaction_status: str) -> bool:
    return transaction_status in EXPIRED_OR_CANCELLED_STATUSES


# =============================================================================
# Midtrans Adapter
# =============================================================================


class MidtransAdapter:
    """
    Client for the Midtrans Snap and Core status APIs.

    Instances are cheap and hold only configuration. EscrowService keeps
    one at class level; tests replace it through EscrowService.set_gateway().
    """

    SANDBOX_SNAP_URL = "https://app.sandbox.midtrans.com/snap/v1/transactions"
    PRODUCTION_SNAP_URL = "https://app.midtrans.com/snap/v1/transactions"
    SANDBOX_API_URL = "https://api.sandbox.midtrans.com/v2"
    PRODUCTION_API_URL = "https://api.midtrans.com/v2"

    def __init__(
        self,
        server_key: str,
        is_production: bool = False,
        timeout: float = 10,
        expiry_hours: int = 24,
    ):
        self.server_key = server_key
        self.is_production = is_production
        self.timeout = timeout
        self.expiry_hours = expiry_hours
        self.snap_url = self.PRODUCTION_SNAP_URL if is_production else self.SANDBOX_SNAP_URL
        self.api_url = self.PRODUCTION_API_URL if is_production else self.SANDBOX_API_URL

    @classmethod
    def from_settings(cls) -> MidtransAdapter:
        return cls(
            server_key=settings.MIDTRANS_SERVER_KEY,
            is_production=settings.MIDTRANS_IS_PRODUCTION,
            timeout=getattr(settings, "MIDTRANS_API_TIMEOUT_SECONDS", 10),
            expiry_hours=getattr(settings, "ESCROW_CHECKOUT_EXPIRY_HOURS", 24),
        )

    @classmethod
    def get_logger(cls) -> logging.Logger:
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    # =========================================================================
    # Core Operations
    # =========================================================================

    def create_transaction(
        self,
        order_id: str,
        amount: int,
        payer_email: str,
        description: str,
    ) -> CheckoutSession:
        """
        Create a Snap checkout session.

        Args:
            order_id: Unique order id (the gateway caps its length)
            amount: Whole currency units, rounded before sending
            payer_email: Client's email for the receipt
            description: Item name shown on the checkout page

        Returns:
            CheckoutSession with the session token

        Raises:
            GatewayError: Network failure, timeout, or non-2xx response
        """
        gross_amount = int(round(amount))
        payload = {
            "transaction_details": {
                "order_id": order_id,
                "gross_amount": gross_amount,
            },
            "customer_details": {"email": payer_email},
            "item_details": [
                {
                    "id": order_id,
                    "price": gross_amount,
                    "quantity": 1,
                    "name": description[:ITEM_NAME_MAX_LENGTH],
                }
            ],
            "expiry": {"unit": "hours", "duration": self.expiry_hours},
        }
        body = self._request(
            "POST",
            self.snap_url,
            log_context={"operation": "create_transaction", "order_id": order_id},
            json=payload,
        )

        token = body.get("token")
        if not token:
            raise GatewayError(
                "Payment gateway did not return a session token",
                details={"order_id": order_id},
            )
        return CheckoutSession(token=token, redirect_url=body.get("redirect_url", ""))

    def get_transaction_status(self, order_id: str) -> TransactionStatus:
        """
        Poll the gateway for an order's status.

        An order the gateway has never seen (checkout not opened yet) is
        reported as ``pending``.

        Raises:
            GatewayError: Network failure, timeout, or non-2xx response
        """
        body = self._request(
            "GET",
            f"{self.api_url}/{order_id}/status",
            log_context={"operation": "get_transaction_status", "order_id": order_id},
            allow_not_found=True,
        )
        if str(body.get("status_code")) == "404":
            return TransactionStatus(transaction_status="pending", raw_response=body)

        return TransactionStatus(
            transaction_status=body.get("transaction_status", ""),
            fraud_status=body.get("fraud_status") or "accept",
            raw_response=body,
        )

    # =========================================================================
    # Webhook Helpers
    # =========================================================================

    def compute_signature(self, order_id: str, status_code: str, gross_amount: str) -> str:
        raw = f"{order_id}{status_code}{gross_amount}{self.server_key}"
        return hashlib.sha512(raw.encode("utf-8")).hexdigest()

    def verify_signature(self, notification: dict[str, Any]) -> bool:
        """
        Check the notification's signature_key.

        Returns False when any of order_id, status_code, gross_amount or
        signature_key is missing.
        """
        order_id = notification.get("order_id")
        status_code = notification.get("status_code")
        gross_amount = notification.get("gross_amount")
        signature = notification.get("signature_key")
        if not all((order_id, status_code, gross_amount, signature)):
            return False

        expected = self.compute_signature(str(order_id), str(status_code), str(gross_amount))
        return hmac.compare_digest(expected, str(signature))

    def is_payment_success(self, transaction_status: str, fraud_status: str | None) -> bool:
        return is_payment_success(transaction_status, fraud_status)

    def is_payment_expired_or_cancelled(self, transaction_status: str) -> bool:
        return is_payment_expired_or_cancelled(transaction_status)

    # =========================================================================
    # Internal Helpers
    # =========================================================================

    def _request(
        self,
        method: str,
        url: str,
        log_context: dict[str, Any],
        allow_not_found: bool = False,
        **kwargs: Any,
    ) -> dict[str, Any]:
        """
        Send one request and translate every failure to GatewayError.
        """
        logger = self.get_logger()
        start_time = time.time()
        logger.info("Starting gateway operation", extra=log_context)

        try:
            response = requests.request(
                method,
                url,
                auth=(self.server_key, ""),
                headers={"Accept": "application/json"},
                timeout=self.timeout,
                **kwargs,
            )
        except requests.exceptions.Timeout as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(
                "Gateway request timed out",
                extra={**log_context, "duration_ms": duration_ms},
            )
            raise GatewayError(
                "Payment gateway timed out",
                error_code="GATEWAY_TIMEOUT",
                details={"operation": log_context.get("operation")},
                is_retryable=True,
            ) from e
        except requests.exceptions.RequestException as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(
                f"Gateway request failed: {e}",
                extra={**log_context, "duration_ms": duration_ms},
            )
            raise GatewayError(
                "Payment gateway unavailable",
                details={"operation": log_context.get("operation")},
                is_retryable=True,
            ) from e

        duration_ms = (time.time() - start_time) * 1000

        if allow_not_found and response.status_code == 404:
            logger.info(
                "Gateway has no record of order",
                extra={**log_context, "duration_ms": duration_ms},
            )
            return {"status_code": "404"}

        if response.status_code >= 400:
            logger.error(
                "Gateway returned an error response",
                extra={
                    **log_context,
                    "http_status": response.status_code,
                    "duration_ms": duration_ms,
                },
            )
            raise GatewayError(
                "Payment gateway rejected the request",
                details={
                    "operation": log_context.get("operation"),
                    "http_status": response.status_code,
                },
                is_retryable=response.status_code >= 500,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise GatewayError(
                "Payment gateway returned an unreadable response",
                details={"operation": log_context.get("operation")},
            ) from e

        logger.info(
            "Gateway operation completed",
            extra={**log_context, "duration_ms": duration_ms},
        )
        return body
