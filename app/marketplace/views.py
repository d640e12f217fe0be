"""
DRF views for marketplace app.

Endpoints:
    GET /api/v1/marketplace/categories/ - List categories (cached)
    GET /api/v1/marketplace/projects/ - List open projects
    POST /api/v1/marketplace/projects/ - Post a project
    GET /api/v1/marketplace/projects/{id}/ - Get project
    POST /api/v1/marketplace/projects/{id}/deliver/ - Freelancer delivers
    GET /api/v1/marketplace/projects/{id}/bids/ - List bids
    POST /api/v1/marketplace/projects/{id}/bids/ - Place a bid
    POST /api/v1/marketplace/bids/{id}/accept/ - Client accepts a bid
    POST /api/v1/marketplace/bids/{id}/withdraw/ - Freelancer withdraws
    POST /api/v1/marketplace/projects/{id}/reviews/ - Review the other party
    GET /api/v1/marketplace/freelancers/{user_id}/ - Reputation profile
    POST /api/v1/marketplace/admin/freelancers/{user_id}/tier/ - Tier override
    DELETE /api/v1/marketplace/admin/projects/{id}/ - Admin delete
"""

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from authentication.permissions import IsClient, IsFreelancer, IsPlatformAdmin
from core.exceptions import NotFoundError
from core.pagination import page_params, page_payload
from marketplace.models import FreelancerProfile
from marketplace.serializers import (
    BidCreateSerializer,
    BidSerializer,
    CategorySerializer,
    FreelancerProfileSerializer,
    ProjectCreateSerializer,
    ProjectSerializer,
    ReviewCreateSerializer,
    ReviewSerializer,
    TierAdjustSerializer,
)
from marketplace.services import (
    BidService,
    CategoryService,
    ProjectService,
    ReviewService,
    TierService,
)


class CategoryListView(APIView):
    permission_classes = [AllowAny]

    @extend_schema(
        operation_id="list_categories",
        summary="List categories",
        tags=["Marketplace"],
        responses=CategorySerializer(many=True),
    )
    def get(self, request):
        categories = CategoryService.list_categories()
        return Response(CategorySerializer(categories, many=True).data)


class ProjectListView(APIView):
    """
    List open projects or post a new one.

    GET /api/v1/marketplace/projects/?category=1&page=1
    POST /api/v1/marketplace/projects/
    """

    def get_permissions(self):
        if self.request.method == "POST":
            return [IsAuthenticated(), IsClient()]
        return [IsAuthenticated()]

    @extend_schema(
        operation_id="list_projects",
        summary="List open projects",
        tags=["Marketplace"],
        responses=ProjectSerializer(many=True),
    )
    def get(self, request):
        page_number, page_size = page_params(request)
        category = request.query_params.get("category")
        page = ProjectService.list_open_projects(
            category_id=int(category) if category and category.isdigit() else None,
            page=page_number,
            page_size=page_size,
        )
        return Response(page_payload(page, ProjectSerializer))

    @extend_schema(
        operation_id="create_project",
        summary="Post project",
        tags=["Marketplace"],
        request=ProjectCreateSerializer,
        responses={201: ProjectSerializer},
    )
    def post(self, request):
        serializer = ProjectCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        project = ProjectService.create_project(request.user, **serializer.validated_data)
        return Response(ProjectSerializer(project).data, status=status.HTTP_201_CREATED)


class ProjectDetailView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="get_project",
        summary="Get project",
        tags=["Marketplace"],
        responses=ProjectSerializer,
    )
    def get(self, request, project_id):
        project = ProjectService.get_project(project_id)
        return Response(ProjectSerializer(project).data)


class ProjectDeliverView(APIView):
    """POST /api/v1/marketplace/projects/{id}/deliver/"""

    permission_classes = [IsAuthenticated, IsFreelancer]

    @extend_schema(
        operation_id="deliver_project",
        summary="Mark project delivered",
        tags=["Marketplace"],
        request=None,
        responses=ProjectSerializer,
    )
    def post(self, request, project_id):
        project = ProjectService.mark_delivered(project_id, request.user.id)
        return Response(ProjectSerializer(project).data)


class ProjectBidListView(APIView):
    """
    Bids on a project.

    GET /api/v1/marketplace/projects/{id}/bids/
    POST /api/v1/marketplace/projects/{id}/bids/

    Request body:
        {"amount": 1500000, "proposal": "...", "estimated_days": 10}
    """

    def get_permissions(self):
        if self.request.method == "POST":
            return [IsAuthenticated(), IsFreelancer()]
        return [IsAuthenticated()]

    @extend_schema(
        operation_id="list_project_bids",
        summary="List bids",
        tags=["Marketplace - Bids"],
        responses=BidSerializer(many=True),
    )
    def get(self, request, project_id):
        bids = BidService.list_for_project(project_id, request.user)
        return Response(BidSerializer(bids, many=True).data)

    @extend_schema(
        operation_id="create_bid",
        summary="Place bid",
        tags=["Marketplace - Bids"],
        request=BidCreateSerializer,
        responses={201: BidSerializer},
    )
    def post(self, request, project_id):
        serializer = BidCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        bid = BidService.create_bid(request.user.id, project_id, **serializer.validated_data)
        return Response(BidSerializer(bid).data, status=status.HTTP_201_CREATED)


class BidAcceptView(APIView):
    permission_classes = [IsAuthenticated, IsClient]

    @extend_schema(
        operation_id="accept_bid",
        summary="Accept bid",
        tags=["Marketplace - Bids"],
        request=None,
        responses=BidSerializer,
    )
    def post(self, request, bid_id):
        bid = BidService.accept_bid(bid_id, request.user.id)
        return Response(BidSerializer(bid).data)


class BidWithdrawView(APIView):
    permission_classes = [IsAuthenticated, IsFreelancer]

    @extend_schema(
        operation_id="withdraw_bid",
        summary="Withdraw bid",
        tags=["Marketplace - Bids"],
        request=None,
        responses=BidSerializer,
    )
    def post(self, request, bid_id):
        bid = BidService.withdraw_bid(bid_id, request.user.id)
        return Response(BidSerializer(bid).data)


class ProjectReviewView(APIView):
    """
    Review the other participant of a completed project.

    POST /api/v1/marketplace/projects/{id}/reviews/

    Request body:
        {"reviewee_id": 42, "rating": 5, "comment": "Great work"}
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="create_review",
        summary="Create review",
        tags=["Marketplace"],
        request=ReviewCreateSerializer,
        responses={201: ReviewSerializer},
    )
    def post(self, request, project_id):
        serializer = ReviewCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        review = ReviewService.create_review(
            request.user.id,
            project_id,
            serializer.validated_data["reviewee_id"],
            serializer.validated_data["rating"],
            comment=serializer.validated_data["comment"],
        )
        return Response(ReviewSerializer(review).data, status=status.HTTP_201_CREATED)


class FreelancerProfileView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="get_freelancer_profile",
        summary="Get freelancer reputation",
        tags=["Marketplace"],
        responses=FreelancerProfileSerializer,
    )
    def get(self, request, user_id):
        profile = FreelancerProfile.objects.select_related("user").filter(user_id=user_id).first()
        if profile is None:
            raise NotFoundError("Freelancer profile not found")
        return Response(FreelancerProfileSerializer(profile).data)


# =============================================================================
# Admin
# =============================================================================


class AdminTierAdjustView(APIView):
    """POST /api/v1/marketplace/admin/freelancers/{user_id}/tier/"""

    permission_classes = [IsAuthenticated, IsPlatformAdmin]

    @extend_schema(
        operation_id="admin_adjust_tier",
        summary="Override freelancer tier",
        tags=["Marketplace - Admin"],
        request=TierAdjustSerializer,
        responses=FreelancerProfileSerializer,
    )
    def post(self, request, user_id):
        serializer = TierAdjustSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        profile = TierService.manual_tier_adjust(
            user_id, serializer.validated_data["tier"], request.user
        )
        return Response(FreelancerProfileSerializer(profile).data)


class AdminProjectDeleteView(APIView):
    """DELETE /api/v1/marketplace/admin/projects/{id}/"""

    permission_classes = [IsAuthenticated, IsPlatformAdmin]

    @extend_schema(
        operation_id="admin_delete_project",
        summary="Delete project",
        tags=["Marketplace - Admin"],
        responses={204: None},
    )
    def delete(self, request, project_id):
        ProjectService.admin_delete(project_id, request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)
