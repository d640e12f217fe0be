"""
Marketplace services.

This module provides:
- CategoryService: Cached category lookups
- ProjectService: Project creation, delivery, admin deletion
- BidService: Bid placement, acceptance and withdrawal
- ReviewService: Post-completion reviews
- TierService: Freelancer reputation tier recalculation

Usage:
    from marketplace.services import BidService, TierService

    bid = BidService.create_bid(freelancer_id, project_id, amount=1_500_000)
    BidService.accept_bid(bid.id, client_id)

    result = TierService.recalculate(freelancer_id)
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from django.core.cache import cache
from django.core.paginator import Page, Paginator
from django.db import IntegrityError
from django.db.models import Avg, Count, Q

from core.exceptions import (
    BusinessRuleError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from core.services import BaseService
from marketplace.models import (
    Bid,
    BidStatus,
    Category,
    FreelancerProfile,
    FreelancerTier,
    Project,
    ProjectStatus,
    Review,
)

# Cache configuration
CATEGORY_CACHE_TTL = 300  # 5 minutes
CATEGORY_CACHE_KEY = "marketplace:categories"


# =============================================================================
# Categories
# =============================================================================


class CategoryService(BaseService):
    """Categories change rarely; the list is cached in the shared cache."""

    @classmethod
    def list_categories(cls, use_cache: bool = True) -> list[Category]:
        if use_cache:
            cached = cache.get(CATEGORY_CACHE_KEY)
            if cached is not None:
                return cached

        categories = list(Category.objects.order_by("name"))

        if use_cache:
            cache.set(CATEGORY_CACHE_KEY, categories, timeout=CATEGORY_CACHE_TTL)
        return categories

    @classmethod
    def invalidate_cache(cls) -> None:
        cache.delete(CATEGORY_CACHE_KEY)


# =============================================================================
# Projects
# =============================================================================


class ProjectService(BaseService):
    """Service for the client/freelancer side of the project lifecycle."""

    @classmethod
    def create_project(
        cls,
        client,
        title: str,
        budget_min: int,
        budget_max: int,
        category_id=None,
        description: str = "",
        deadline=None,
    ) -> Project:
        """
        Post a new OPEN project.

        Raises:
            PermissionDeniedError: Caller is not a client
            NotFoundError: Unknown category
            ValidationError: Budget range invalid
            BusinessRuleError: Budget below the category minimum
        """
        if not client.is_client:
            raise PermissionDeniedError("Only clients can post projects")
        if budget_min > budget_max:
            raise ValidationError(
                "Minimum budget cannot exceed maximum budget",
                details={"field": "budget_min"},
            )

        category = None
        if category_id is not None:
            category = Category.objects.filter(id=category_id).first()
            if category is None:
                raise NotFoundError("Category not found")
            if budget_min < category.min_price:
                raise BusinessRuleError(
                    f"Minimum budget for {category.name} is Rp {category.min_price:,}",
                    details={"field": "budget_min", "minimum": category.min_price},
                )

        project = Project.objects.create(
            client=client,
            category=category,
            title=title,
            description=description,
            budget_min=budget_min,
            budget_max=budget_max,
            deadline=deadline,
        )
        cls.get_logger().info(
            "Project created",
            extra={"project_id": str(project.id), "client_id": str(client.id)},
        )
        return project

    @classmethod
    def list_open_projects(cls, category_id=None, page: int = 1, page_size: int = 20) -> Page:
        """OPEN projects, newest first, optionally narrowed to one category."""
        queryset = Project.objects.select_related("category", "client").filter(
            status=ProjectStatus.OPEN
        )
        if category_id is not None:
            queryset = queryset.filter(category_id=category_id)
        return Paginator(queryset.order_by("-created_at"), page_size).get_page(page)

    @classmethod
    def get_project(cls, project_id) -> Project:
        project = (
            Project.objects.select_related("category", "client", "selected_freelancer")
            .filter(id=project_id)
            .first()
        )
        if project is None:
            raise NotFoundError("Project not found")
        return project

    @classmethod
    def mark_delivered(cls, project_id, freelancer_id) -> Project:
        """
        Assigned freelancer hands in the work: IN_PROGRESS -> DELIVERED.

        Raises:
            PermissionDeniedError: Caller is not the assigned freelancer
            BusinessRuleError: Project is not IN_PROGRESS
        """
        from payments.locks import lock_for_update

        with cls.atomic():
            project = lock_for_update(Project, project_id, "Project not found")
            if project.selected_freelancer_id != freelancer_id:
                raise PermissionDeniedError("Only the assigned freelancer can deliver")
            if project.status != ProjectStatus.IN_PROGRESS:
                raise BusinessRuleError(
                    "Project must be in progress to deliver",
                    details={"current_status": project.status},
                )
            project.status = ProjectStatus.DELIVERED
            project.save(update_fields=["status", "updated_at"])

        cls.get_logger().info(
            "Project delivered",
            extra={"project_id": str(project.id), "freelancer_id": str(freelancer_id)},
        )
        return project

    @classmethod
    def admin_delete(cls, project_id, admin) -> None:
        """
        Delete a project and everything hanging off it.

        Rejected once its escrow ever received payment (funded, released,
        or refunded after funding) or a payout references it. Released escrow
        totals must keep covering every payout of the freelancer.

        Raises:
            PermissionDeniedError: Caller is not an admin
            BusinessRuleError: Escrow received payment or has payouts
        """
        from payments.audit import record_admin_action
        from payments.locks import lock_for_update
        from payments.models import Escrow, Payout
        from payments.state_machines import AdminActionType, AdminTargetType

        if not admin.is_platform_admin:
            raise PermissionDeniedError("Only admins can delete projects")

        with cls.atomic():
            project = lock_for_update(Project, project_id, "Project not found")
            escrow = Escrow.objects.select_for_update().filter(project_id=project.id).first()
            if escrow is not None:
                if escrow.received_payment:
                    raise BusinessRuleError(
                        "Cannot delete a project whose escrow received payment",
                        error_code="ESCROW_RECEIVED_PAYMENT",
                        details={"escrow_status": escrow.status},
                    )
                if Payout.objects.filter(escrow_id=escrow.id).exists():
                    raise BusinessRuleError(
                        "Cannot delete a project with payouts",
                        details={"escrow_id": str(escrow.id)},
                    )

            details = {
                "title": project.title,
                "status": project.status,
                "client_id": str(project.client_id),
                "escrow_status": escrow.status if escrow else None,
            }
            project.delete()
            record_admin_action(
                admin,
                AdminActionType.PROJECT_DELETE,
                target_type=AdminTargetType.PROJECT,
                target_id=project_id,
                details=details,
            )

        cls.get_logger().info(
            "Project deleted by admin",
            extra={"project_id": str(project_id), "admin_id": str(admin.id)},
        )


# =============================================================================
# Bids
# =============================================================================


# Maximum PENDING bids per tier. None means unlimited.
BID_LIMITS: dict[str, int | None] = {
    FreelancerTier.BRONZE: 3,
    FreelancerTier.SILVER: 5,
    FreelancerTier.GOLD: 8,
    FreelancerTier.PLATINUM: 12,
    FreelancerTier.LEGEND: None,
}


class BidService(BaseService):
    """Service for placing and deciding bids."""

    @classmethod
    def create_bid(
        cls,
        freelancer_id,
        project_id,
        amount: int,
        proposal: str = "",
        estimated_days: int = 7,
    ) -> Bid:
        """
        Place a bid on an OPEN project.

        Raises:
            NotFoundError: Project or freelancer profile missing
            BusinessRuleError: Project not open, own project, below minimum,
                or tier bid limit reached
            ConflictError: Freelancer already bid on this project
        """
        project = Project.objects.select_related("category").filter(id=project_id).first()
        if project is None:
            raise NotFoundError("Project not found")
        if project.status != ProjectStatus.OPEN:
            raise BusinessRuleError("Project is not accepting bids")
        if project.client_id == freelancer_id:
            raise BusinessRuleError("Cannot bid on your own project")

        min_price = project.category.min_price if project.category else 0
        if amount < min_price:
            raise BusinessRuleError(
                f"Bid must be at least Rp {min_price:,}",
                details={"field": "amount", "minimum": min_price},
            )

        if Bid.objects.filter(project_id=project.id, freelancer_id=freelancer_id).exists():
            raise ConflictError("You already bid on this project")

        try:
            with cls.atomic():
                # Profile row lock: a freelancer's bids are counted and inserted one at a time
                profile = (
                    FreelancerProfile.objects.select_for_update()
                    .filter(user_id=freelancer_id)
                    .first()
                )
                if profile is None:
                    raise NotFoundError("Freelancer profile not found")

                max_bids = BID_LIMITS[profile.tier]
                if max_bids is not None:
                    active_bids = Bid.objects.filter(
                        freelancer_id=freelancer_id,
                        status=BidStatus.PENDING,
                    ).count()
                    if active_bids >= max_bids:
                        raise BusinessRuleError(
                            f"{profile.tier} tier limit: max {max_bids} active bids. "
                            "Upgrade your tier for more.",
                            error_code="BID_LIMIT_REACHED",
                            details={"tier": profile.tier, "limit": max_bids},
                        )

                bid = Bid.objects.create(
                    project=project,
                    freelancer_id=freelancer_id,
                    amount=amount,
                    proposal=proposal,
                    estimated_days=estimated_days,
                )
        except IntegrityError as e:
            raise ConflictError("You already bid on this project") from e

        cls.get_logger().info(
            "Bid created",
            extra={"bid_id": str(bid.id), "project_id": str(project.id), "amount": amount},
        )
        return bid

    @classmethod
    def accept_bid(cls, bid_id, client_id) -> Bid:
        """
        Accept a bid in one transaction.

        The bid becomes ACCEPTED, every other pending bid REJECTED, the
        project IN_PROGRESS with the bidder as selected freelancer, and the
        project's conversation is created with escrow inactive.

        Raises:
            NotFoundError: Bid does not exist
            PermissionDeniedError: Caller does not own the project
            BusinessRuleError: Project not OPEN or amount outside budget
        """
        from chat.models import Conversation
        from payments.locks import lock_for_update

        bid = Bid.objects.filter(id=bid_id).first()
        if bid is None:
            raise NotFoundError("Bid not found")

        with cls.atomic():
            project = lock_for_update(Project, bid.project_id, "Project not found")
            bid = lock_for_update(Bid, bid_id, "Bid not found")

            if project.client_id != client_id:
                raise PermissionDeniedError("Not your project")
            if project.status != ProjectStatus.OPEN:
                raise BusinessRuleError("Project is not open")
            if bid.status != BidStatus.PENDING:
                raise BusinessRuleError(
                    "Only pending bids can be accepted",
                    details={"current_status": bid.status},
                )
            if not (project.budget_min <= bid.amount <= project.budget_max):
                raise BusinessRuleError(
                    "Bid amount is outside the project budget range",
                    details={
                        "amount": bid.amount,
                        "budget_min": project.budget_min,
                        "budget_max": project.budget_max,
                    },
                )

            Bid.objects.filter(project_id=project.id, status=BidStatus.PENDING).exclude(
                id=bid.id
            ).update(status=BidStatus.REJECTED)
            bid.status = BidStatus.ACCEPTED
            bid.save(update_fields=["status", "updated_at"])

            project.selected_freelancer_id = bid.freelancer_id
            project.status = ProjectStatus.IN_PROGRESS
            project.save(update_fields=["selected_freelancer", "status", "updated_at"])

            Conversation.objects.get_or_create(
                project_id=project.id,
                defaults={"escrow_active": False},
            )

        cls.get_logger().info(
            "Bid accepted",
            extra={
                "bid_id": str(bid.id),
                "project_id": str(project.id),
                "freelancer_id": str(bid.freelancer_id),
            },
        )
        return bid

    @classmethod
    def list_for_project(cls, project_id, user) -> list[Bid]:
        """
        Bids on a project.

        The project owner and admins see every bid; a freelancer sees only
        their own.
        """
        project = ProjectService.get_project(project_id)
        bids = Bid.objects.select_related("freelancer").filter(project_id=project.id)
        if not (user.is_platform_admin or project.client_id == user.id):
            bids = bids.filter(freelancer_id=user.id)
        return list(bids.order_by("amount", "created_at"))

    @classmethod
    def withdraw_bid(cls, bid_id, freelancer_id) -> Bid:
        """
        Withdraw a PENDING bid.

        Raises:
            PermissionDeniedError: Not the bidder
            BusinessRuleError: Bid is no longer PENDING
        """
        bid = Bid.objects.filter(id=bid_id).first()
        if bid is None:
            raise NotFoundError("Bid not found")
        if bid.freelancer_id != freelancer_id:
            raise PermissionDeniedError("Not your bid")

        updated = Bid.objects.filter(id=bid.id, status=BidStatus.PENDING).update(
            status=BidStatus.WITHDRAWN
        )
        if not updated:
            raise BusinessRuleError("Can only withdraw pending bids")

        bid.status = BidStatus.WITHDRAWN
        return bid


# =============================================================================
# Reviews
# =============================================================================


class ReviewService(BaseService):
    """Reviews between the two participants of a completed project."""

    @classmethod
    def create_review(
        cls,
        reviewer_id,
        project_id,
        reviewee_id,
        rating: int,
        comment: str = "",
    ) -> Review:
        """
        Leave a 1-5 star review for the other participant.

        Triggers a best-effort tier recalculation when the reviewee is a
        freelancer.

        Raises:
            NotFoundError: Project does not exist
            PermissionDeniedError: Reviewer is not a participant
            BusinessRuleError: Project not COMPLETED, or bad reviewee
            ValidationError: Rating outside 1..5
            ConflictError: Reviewer already reviewed this project
        """
        from authentication.models import User

        project = Project.objects.filter(id=project_id).first()
        if project is None:
            raise NotFoundError("Project not found")
        if project.status != ProjectStatus.COMPLETED:
            raise BusinessRuleError("Can only review completed projects")
        if not project.is_participant(reviewer_id):
            raise PermissionDeniedError("You are not a participant in this project")
        if reviewee_id == reviewer_id:
            raise BusinessRuleError("Cannot review yourself")
        if not project.is_participant(reviewee_id):
            raise BusinessRuleError("Reviewee is not a participant in this project")
        if not 1 <= rating <= 5:
            raise ValidationError(
                "Rating must be between 1 and 5",
                details={"field": "rating"},
            )

        try:
            with cls.atomic():
                review = Review.objects.create(
                    project=project,
                    reviewer_id=reviewer_id,
                    reviewee_id=reviewee_id,
                    rating=rating,
                    comment=comment,
                )
        except IntegrityError as e:
            raise ConflictError("You already reviewed this project") from e

        reviewee = User.objects.filter(id=reviewee_id).first()
        if reviewee is not None and reviewee.is_freelancer:
            cls.run_best_effort("tier recalculation", TierService.recalculate, reviewee_id)
        return review


# =============================================================================
# Tiers
# =============================================================================


@dataclass(frozen=True)
class TierRequirement:
    min_completed: int
    min_rating: float
    min_completion_rate: float
    max_dispute_rate: float


@dataclass
class TierResult:
    """Outcome of a tier recalculation."""

    tier: str
    completed_projects: int
    avg_rating: Decimal
    completion_rate: Decimal
    dispute_rate: Decimal
    exp_points: int


TIER_REQUIREMENTS: dict[str, TierRequirement] = {
    FreelancerTier.BRONZE: TierRequirement(0, 0.0, 0, 100),
    FreelancerTier.SILVER: TierRequirement(5, 4.0, 80, 100),
    FreelancerTier.GOLD: TierRequirement(15, 4.3, 85, 10),
    FreelancerTier.PLATINUM: TierRequirement(30, 4.5, 90, 5),
    FreelancerTier.LEGEND: TierRequirement(50, 4.7, 95, 3),
}

TIER_ORDER = [
    FreelancerTier.BRONZE,
    FreelancerTier.SILVER,
    FreelancerTier.GOLD,
    FreelancerTier.PLATINUM,
    FreelancerTier.LEGEND,
]

# EXP awarded per event
EXP_PROJECT_COMPLETED = 100
EXP_FIVE_STAR_REVIEW = 50
EXP_DISPUTE_PENALTY = -75

TWO_PLACES = Decimal("0.01")


def _two_places(value: float) -> Decimal:
    return Decimal(str(value)).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def qualifying_tier(
    completed: int,
    avg_rating: float,
    completion_rate: float,
    dispute_rate: float,
) -> str:
    """Highest tier whose every threshold is met."""
    tier = FreelancerTier.BRONZE
    for candidate in TIER_ORDER:
        req = TIER_REQUIREMENTS[candidate]
        if (
            completed >= req.min_completed
            and avg_rating >= req.min_rating
            and completion_rate >= req.min_completion_rate
            and dispute_rate <= req.max_dispute_rate
        ):
            tier = candidate
    return tier


class TierService(BaseService):
    """
    Recomputes a freelancer's reputation aggregates from history.

    Finished projects are those COMPLETED, CANCELLED or DISPUTED with the
    freelancer selected. Disputes are counted over every dispute ever
    opened on the freelancer's projects.
    """

    @classmethod
    def recalculate(cls, freelancer_id) -> TierResult | None:
        """
        Recompute and store the freelancer's tier and stats.

        Returns:
            TierResult, or None if the freelancer has no profile
        """
        from disputes.models import Dispute

        if not FreelancerProfile.objects.filter(user_id=freelancer_id).exists():
            return None

        project_counts = Project.objects.filter(selected_freelancer_id=freelancer_id).aggregate(
            finished=Count(
                "id",
                filter=Q(
                    status__in=[
                        ProjectStatus.COMPLETED,
                        ProjectStatus.CANCELLED,
                        ProjectStatus.DISPUTED,
                    ]
                ),
            ),
            completed=Count("id", filter=Q(status=ProjectStatus.COMPLETED)),
        )
        total_projects = project_counts["finished"]
        completed = project_counts["completed"]
        disputes = Dispute.objects.filter(project__selected_freelancer_id=freelancer_id).count()

        review_stats = Review.objects.filter(reviewee_id=freelancer_id).aggregate(
            avg=Avg("rating"),
            five_star=Count("id", filter=Q(rating=5)),
        )
        avg_rating = float(review_stats["avg"] or 0)
        five_star = review_stats["five_star"]

        if total_projects:
            completion_rate = completed / total_projects * 100
            dispute_rate = disputes / total_projects * 100
        else:
            completion_rate = 100.0
            dispute_rate = 0.0

        tier = qualifying_tier(completed, avg_rating, completion_rate, dispute_rate)
        exp_points = max(
            0,
            completed * EXP_PROJECT_COMPLETED
            + five_star * EXP_FIVE_STAR_REVIEW
            + disputes * EXP_DISPUTE_PENALTY,
        )

        result = TierResult(
            tier=tier,
            completed_projects=completed,
            avg_rating=_two_places(avg_rating),
            completion_rate=_two_places(completion_rate),
            dispute_rate=_two_places(dispute_rate),
            exp_points=exp_points,
        )
        FreelancerProfile.objects.filter(user_id=freelancer_id).update(
            tier=result.tier,
            completed_projects=result.completed_projects,
            avg_rating=result.avg_rating,
            completion_rate=result.completion_rate,
            dispute_rate=result.dispute_rate,
            exp_points=result.exp_points,
        )

        cls.get_logger().info(
            "Freelancer tier recalculated",
            extra={
                "freelancer_id": str(freelancer_id),
                "tier": result.tier,
                "completed_projects": completed,
                "exp_points": exp_points,
            },
        )
        return result

    @classmethod
    def manual_tier_adjust(cls, freelancer_id, tier: str, admin) -> FreelancerProfile:
        """
        Admin override of a freelancer's tier.

        The next recalculation overwrites it.

        Raises:
            ValidationError: Unknown tier
            NotFoundError: Freelancer has no profile
        """
        from payments.audit import record_admin_action
        from payments.state_machines import AdminActionType, AdminTargetType

        if tier not in FreelancerTier.values:
            raise ValidationError(f"Unknown tier {tier}", details={"field": "tier"})

        with cls.atomic():
            profile = (
                FreelancerProfile.objects.select_for_update()
                .filter(user_id=freelancer_id)
                .first()
            )
            if profile is None:
                raise NotFoundError("Freelancer profile not found")
            previous_tier = profile.tier
            profile.tier = tier
            profile.save(update_fields=["tier", "updated_at"])
            record_admin_action(
                admin,
                AdminActionType.TIER_ADJUST,
                target_type=AdminTargetType.FREELANCER,
                target_id=freelancer_id,
                details={"previous_tier": previous_tier, "new_tier": tier},
            )

        cls.get_logger().info(
            "Freelancer tier adjusted by admin",
            extra={"freelancer_id": str(freelancer_id), "tier": tier, "admin_id": str(admin.id)},
        )
        return profile
