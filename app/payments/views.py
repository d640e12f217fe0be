"""
DRF views for payments app.

This module provides API views for:
- Escrow creation, checkout renewal and release
- Payment status polling (fallback for missed webhooks)
- Freelancer earnings, balance and payouts
- Admin payout processing

Related files:
    - services/: EscrowService, PayoutService
    - serializers.py: Request/response serializers
    - urls.py: URL routing

Endpoints:
    POST /api/v1/payments/escrows/ - Create escrow for a project
    GET /api/v1/payments/escrows/{id}/ - Get escrow
    POST /api/v1/payments/escrows/{id}/renew/ - New checkout for a pending escrow
    POST /api/v1/payments/escrows/{id}/check-status/ - Poll the gateway
    POST /api/v1/payments/escrows/{id}/release/ - Release to the freelancer
    GET /api/v1/payments/earnings/ - Freelancer earnings summary
    GET /api/v1/payments/payouts/ - Payout history
    POST /api/v1/payments/payouts/ - Request a payout
    GET /api/v1/payments/payouts/balance/ - Available balance
    DELETE /api/v1/payments/payouts/{id}/ - Cancel a pending payout
    POST /api/v1/payments/admin/payouts/{id}/process/ - PENDING -> PROCESSING
    POST /api/v1/payments/admin/payouts/{id}/complete/ - PROCESSING -> COMPLETED
    POST /api/v1/payments/admin/payouts/{id}/fail/ - -> FAILED
    POST /api/v1/payments/webhooks/midtrans/ - Midtrans notification endpoint

Security:
    - All endpoints require authentication except the webhook
    - The webhook verifies the Midtrans signature
"""

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from authentication.permissions import IsClient, IsFreelancer, IsPlatformAdmin
from core.pagination import page_params, page_payload

from .serializers import (
    EarningsSerializer,
    EscrowCheckoutSerializer,
    EscrowCreateSerializer,
    EscrowSerializer,
    PaymentStatusSerializer,
    PayoutFailSerializer,
    PayoutRequestSerializer,
    PayoutSerializer,
)
from .services import EscrowService, PayoutService

# =============================================================================
# Escrow
# =============================================================================


class EscrowCreateView(APIView):
    """
    Create the escrow for a project with an accepted bid.

    POST /api/v1/payments/escrows/

    Request body:
        {"project_id": "uuid"}

    Returns:
        {"escrow": {...}, "session_token": "...", "redirect_url": "...", "client_key": "..."}
    """

    permission_classes = [IsAuthenticated, IsClient]

    @extend_schema(
        operation_id="create_escrow",
        summary="Create escrow",
        tags=["Payments - Escrow"],
        request=EscrowCreateSerializer,
        responses={201: EscrowCheckoutSerializer},
    )
    def post(self, request):
        serializer = EscrowCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        checkout = EscrowService.create_escrow(
            serializer.validated_data["project_id"], request.user.id
        )
        return Response(EscrowCheckoutSerializer(checkout).data, status=status.HTTP_201_CREATED)


class EscrowDetailView(APIView):
    """GET /api/v1/payments/escrows/{id}/"""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="get_escrow",
        summary="Get escrow",
        tags=["Payments - Escrow"],
        responses=EscrowSerializer,
    )
    def get(self, request, escrow_id):
        escrow = EscrowService.get_escrow(escrow_id, request.user)
        return Response(EscrowSerializer(escrow).data)


class EscrowRenewView(APIView):
    """
    Issue a fresh checkout for a PENDING escrow whose session expired.

    POST /api/v1/payments/escrows/{id}/renew/
    """

    permission_classes = [IsAuthenticated, IsClient]

    @extend_schema(
        operation_id="renew_escrow_checkout",
        summary="Renew escrow checkout",
        tags=["Payments - Escrow"],
        request=None,
        responses=EscrowCheckoutSerializer,
    )
    def post(self, request, escrow_id):
        checkout = EscrowService.renew_checkout(escrow_id, request.user.id)
        return Response(EscrowCheckoutSerializer(checkout).data)


class EscrowCheckStatusView(APIView):
    """
    Poll the gateway for a pending escrow.

    POST /api/v1/payments/escrows/{id}/check-status/

    Returns:
        {"status": "FUNDED", "updated": true, "transaction_status": "settlement"}
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="check_escrow_payment_status",
        summary="Check payment status",
        tags=["Payments - Escrow"],
        request=None,
        responses=PaymentStatusSerializer,
    )
    def post(self, request, escrow_id):
        result = EscrowService.check_payment_status(escrow_id, request.user.id)
        return Response(PaymentStatusSerializer(result).data)


class EscrowReleaseView(APIView):
    """POST /api/v1/payments/escrows/{id}/release/"""

    permission_classes = [IsAuthenticated, IsClient]

    @extend_schema(
        operation_id="release_escrow",
        summary="Release escrow",
        tags=["Payments - Escrow"],
        request=None,
        responses=EscrowSerializer,
    )
    def post(self, request, escrow_id):
        escrow = EscrowService.release(escrow_id, request.user.id)
        return Response(EscrowSerializer(escrow).data)


class EarningsView(APIView):
    """GET /api/v1/payments/earnings/"""

    permission_classes = [IsAuthenticated, IsFreelancer]

    @extend_schema(
        operation_id="get_earnings",
        summary="Get freelancer earnings",
        tags=["Payments - Payouts"],
        responses=EarningsSerializer,
    )
    def get(self, request):
        earnings = EscrowService.get_earnings(request.user.id)
        return Response(EarningsSerializer(earnings).data)


# =============================================================================
# Payouts
# =============================================================================


class PayoutListView(APIView):
    """
    Payout history and payout requests.

    GET /api/v1/payments/payouts/?page=1&page_size=20
    POST /api/v1/payments/payouts/

    Request body:
        {"amount": 250000}
    """

    permission_classes = [IsAuthenticated, IsFreelancer]

    @extend_schema(
        operation_id="list_payouts",
        summary="List payouts",
        tags=["Payments - Payouts"],
        responses=PayoutSerializer(many=True),
    )
    def get(self, request):
        page_number, page_size = page_params(request)
        page = PayoutService.get_history(request.user.id, page=page_number, page_size=page_size)
        return Response(page_payload(page, PayoutSerializer))

    @extend_schema(
        operation_id="request_payout",
        summary="Request payout",
        tags=["Payments - Payouts"],
        request=PayoutRequestSerializer,
        responses={201: PayoutSerializer},
    )
    def post(self, request):
        serializer = PayoutRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        payout = PayoutService.request_payout(
            request.user.id, serializer.validated_data["amount"]
        )
        return Response(PayoutSerializer(payout).data, status=status.HTTP_201_CREATED)


class PayoutBalanceView(APIView):
    """GET /api/v1/payments/payouts/balance/"""

    permission_classes = [IsAuthenticated, IsFreelancer]

    @extend_schema(
        operation_id="get_payout_balance",
        summary="Get available balance",
        tags=["Payments - Payouts"],
    )
    def get(self, request):
        balance = PayoutService.get_available_balance(request.user.id)
        return Response({"available_balance": balance})


class PayoutCancelView(APIView):
    """DELETE /api/v1/payments/payouts/{id}/"""

    permission_classes = [IsAuthenticated, IsFreelancer]

    @extend_schema(
        operation_id="cancel_payout",
        summary="Cancel pending payout",
        tags=["Payments - Payouts"],
        responses={204: None},
    )
    def delete(self, request, payout_id):
        PayoutService.cancel_payout(payout_id, request.user.id)
        return Response(status=status.HTTP_204_NO_CONTENT)


# =============================================================================
# Admin
# =============================================================================


class AdminPayoutProcessView(APIView):
    """POST /api/v1/payments/admin/payouts/{id}/process/"""

    permission_classes = [IsAuthenticated, IsPlatformAdmin]

    @extend_schema(
        operation_id="admin_process_payout",
        summary="Start processing payout",
        tags=["Payments - Admin"],
        request=None,
        responses=PayoutSerializer,
    )
    def post(self, request, payout_id):
        payout = PayoutService.process_payout(payout_id, request.user)
        return Response(PayoutSerializer(payout).data)


class AdminPayoutCompleteView(APIView):
    """POST /api/v1/payments/admin/payouts/{id}/complete/"""

    permission_classes = [IsAuthenticated, IsPlatformAdmin]

    @extend_schema(
        operation_id="admin_complete_payout",
        summary="Complete payout",
        tags=["Payments - Admin"],
        request=None,
        responses=PayoutSerializer,
    )
    def post(self, request, payout_id):
        payout = PayoutService.complete_payout(payout_id, request.user)
        return Response(PayoutSerializer(payout).data)


class AdminPayoutFailView(APIView):
    """
    Mark a payout as failed.

    POST /api/v1/payments/admin/payouts/{id}/fail/

    Request body:
        {"reason": "Bank rejected transfer"}
    """

    permission_classes = [IsAuthenticated, IsPlatformAdmin]

    @extend_schema(
        operation_id="admin_fail_payout",
        summary="Fail payout",
        tags=["Payments - Admin"],
        request=PayoutFailSerializer,
        responses=PayoutSerializer,
    )
    def post(self, request, payout_id):
        serializer = PayoutFailSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        payout = PayoutService.fail_payout(
            payout_id, request.user, serializer.validated_data["reason"]
        )
        return Response(PayoutSerializer(payout).data)
