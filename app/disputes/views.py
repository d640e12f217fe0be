"""
DRF views for disputes app.

Endpoints:
    GET /api/v1/disputes/ - List disputes (admins: all, others: own projects)
    POST /api/v1/disputes/ - Open a dispute
    GET /api/v1/disputes/{id}/ - Get dispute
    POST /api/v1/disputes/{id}/review/ - Admin takes the dispute
    POST /api/v1/disputes/{id}/resolve/ - Admin resolves
"""

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from authentication.permissions import IsPlatformAdmin
from core.pagination import page_params, page_payload
from disputes.serializers import (
    DisputeCreateSerializer,
    DisputeResolveSerializer,
    DisputeSerializer,
)
from disputes.services import DisputeService


class DisputeListView(APIView):
    """
    List or open disputes.

    GET /api/v1/disputes/?status=OPEN
    POST /api/v1/disputes/

    Request body:
        {"project_id": "uuid", "reason": "Work not delivered", "description": "..."}
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="list_disputes",
        summary="List disputes",
        tags=["Disputes"],
        responses=DisputeSerializer(many=True),
    )
    def get(self, request):
        page_number, page_size = page_params(request)
        page = DisputeService.list_disputes(
            request.user,
            status=request.query_params.get("status"),
            page=page_number,
            page_size=page_size,
        )
        return Response(page_payload(page, DisputeSerializer))

    @extend_schema(
        operation_id="create_dispute",
        summary="Open dispute",
        tags=["Disputes"],
        request=DisputeCreateSerializer,
        responses={201: DisputeSerializer},
    )
    def post(self, request):
        serializer = DisputeCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        dispute = DisputeService.create_dispute(
            request.user.id,
            serializer.validated_data["project_id"],
            serializer.validated_data["reason"],
            serializer.validated_data["description"],
        )
        return Response(DisputeSerializer(dispute).data, status=status.HTTP_201_CREATED)


class DisputeDetailView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="get_dispute",
        summary="Get dispute",
        tags=["Disputes"],
        responses=DisputeSerializer,
    )
    def get(self, request, dispute_id):
        dispute = DisputeService.get_dispute(dispute_id, request.user)
        return Response(DisputeSerializer(dispute).data)


class DisputeReviewView(APIView):
    permission_classes = [IsAuthenticated, IsPlatformAdmin]

    @extend_schema(
        operation_id="review_dispute",
        summary="Start dispute review",
        tags=["Disputes - Admin"],
        request=None,
        responses=DisputeSerializer,
    )
    def post(self, request, dispute_id):
        dispute = DisputeService.start_review(dispute_id, request.user)
        return Response(DisputeSerializer(dispute).data)


class DisputeResolveView(APIView):
    """
    Resolve a dispute and settle its escrow.

    POST /api/v1/disputes/{id}/resolve/

    Request body:
        {"outcome": "FULL_REFUND", "resolution": "Work was never delivered"}
    """

    permission_classes = [IsAuthenticated, IsPlatformAdmin]

    @extend_schema(
        operation_id="resolve_dispute",
        summary="Resolve dispute",
        tags=["Disputes - Admin"],
        request=DisputeResolveSerializer,
        responses=DisputeSerializer,
    )
    def post(self, request, dispute_id):
        serializer = DisputeResolveSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        dispute = DisputeService.resolve(
            dispute_id,
            request.user,
            serializer.validated_data["outcome"],
            serializer.validated_data["resolution"],
        )
        return Response(DisputeSerializer(dispute).data)
