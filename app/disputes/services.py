"""
Dispute service.

This module provides the DisputeService class which handles:
- Opening disputes (project and escrow move to DISPUTED with it)
- Admin review and resolution
- The auto-dispute sweep for ghosted and overdue projects

Resolution outcomes:
    FULL_REFUND     escrow -> REFUNDED, project -> CANCELLED
    NO_REFUND       escrow -> RELEASED, project -> COMPLETED
    PARTIAL_REFUND  same as NO_REFUND; the split is handled by an admin

A releasing outcome does not create a Payout: the released amount joins
the freelancer's available balance and is withdrawn through a payout
request.

Usage:
    from disputes.services import DisputeService

    dispute = DisputeService.create_dispute(user_id, project_id, reason, description)
    DisputeService.resolve(dispute.id, admin, DisputeOutcome.FULL_REFUND, "Not delivered")

    created = DisputeService.run_auto_sweep()
"""

from __future__ import annotations

from datetime import timedelta

from django.conf import settings
from django.core.paginator import Page, Paginator
from django.db import IntegrityError
from django.db.models import Q
from django.utils import timezone

from core.exceptions import (
    BusinessRuleError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from core.services import BaseService
from disputes.models import ACTIVE_DISPUTE_STATUSES, Dispute, DisputeOutcome, DisputeStatus
from marketplace.models import Project, ProjectStatus
from payments.audit import log_transaction, record_admin_action
from payments.locks import lock_for_update
from payments.models import Escrow
from payments.state_machines import (
    ActorType,
    AdminActionType,
    AdminTargetType,
    EscrowStatus,
    ReferenceType,
    TransactionType,
)

DISPUTABLE_PROJECT_STATUSES = (ProjectStatus.IN_PROGRESS, ProjectStatus.DELIVERED)

GHOSTING_REASON = "Freelancer ghosting (auto-detected)"
GHOSTING_DESCRIPTION = "No communication for 5+ days after escrow was funded."
OVERDUE_REASON = "Missed deadline (auto-detected)"
OVERDUE_DESCRIPTION = "Project deadline has passed without delivery."


class DisputeService(BaseService):
    """
    Service for the dispute state machine.

    State Flow:
        create_dispute: -> OPEN (project DISPUTED, escrow DISPUTED)
        start_review: OPEN -> UNDER_REVIEW
        resolve: OPEN/UNDER_REVIEW -> RESOLVED (escrow REFUNDED or RELEASED)
    """

    # =========================================================================
    # Opening
    # =========================================================================

    @classmethod
    def create_dispute(cls, user_id, project_id, reason: str, description: str = "") -> Dispute:
        """
        Open a dispute on behalf of a project participant.

        Raises:
            NotFoundError: Project does not exist
            PermissionDeniedError: Caller is not client or assigned freelancer
            BusinessRuleError: Project not disputable, or a dispute is active
        """
        if not (reason or "").strip():
            raise ValidationError("A reason is required", details={"field": "reason"})

        with cls.atomic():
            project = lock_for_update(Project, project_id, "Project not found")
            if not project.is_participant(user_id):
                raise PermissionDeniedError("Not a participant in this project")
            if project.status not in DISPUTABLE_PROJECT_STATUSES:
                raise BusinessRuleError(
                    "Cannot open dispute for this project status",
                    details={"project_status": project.status},
                )
            if cls._has_active_dispute(project.id):
                raise BusinessRuleError(
                    "An active dispute already exists for this project",
                    error_code="DISPUTE_ALREADY_ACTIVE",
                )

            actor_type = ActorType.CLIENT if user_id == project.client_id else ActorType.FREELANCER
            dispute = cls._open(
                project,
                initiator_id=user_id,
                reason=reason.strip(),
                description=description,
                actor_type=actor_type,
            )

        cls.get_logger().info(
            "Dispute opened",
            extra={
                "dispute_id": str(dispute.id),
                "project_id": str(project.id),
                "initiator_id": str(user_id),
            },
        )
        return dispute

    @classmethod
    def _open(
        cls,
        project: Project,
        initiator_id,
        reason: str,
        description: str,
        actor_type: str,
        is_auto_generated: bool = False,
    ) -> Dispute:
        """Insert the dispute and freeze project and escrow. Caller holds the project lock."""
        try:
            with cls.atomic():
                dispute = Dispute.objects.create(
                    project=project,
                    initiator_id=initiator_id,
                    reason=reason,
                    description=description,
                    is_auto_generated=is_auto_generated,
                )
        except IntegrityError as e:
            raise BusinessRuleError(
                "An active dispute already exists for this project",
                error_code="DISPUTE_ALREADY_ACTIVE",
            ) from e

        project.status = ProjectStatus.DISPUTED
        project.save(update_fields=["status", "updated_at"])

        # The sweep only freezes escrows that hold money
        freezable = (
            (EscrowStatus.FUNDED,)
            if is_auto_generated
            else (EscrowStatus.PENDING, EscrowStatus.FUNDED)
        )
        escrow = Escrow.objects.select_for_update().filter(project_id=project.id).first()
        if escrow is not None and escrow.status in freezable:
            from_status = escrow.status
            escrow.open_dispute()
            escrow.save()
            log_transaction(
                TransactionType.ESCROW_DISPUTED,
                reference_type=ReferenceType.ESCROW,
                reference_id=escrow.id,
                amount=escrow.total_amount,
                from_status=from_status,
                to_status=EscrowStatus.DISPUTED,
                actor_type=ActorType.SYSTEM if is_auto_generated else actor_type,
                metadata={"dispute_id": str(dispute.id), "reason": reason},
            )
        return dispute

    @staticmethod
    def _has_active_dispute(project_id) -> bool:
        return Dispute.objects.filter(
            project_id=project_id,
            status__in=ACTIVE_DISPUTE_STATUSES,
        ).exists()

    # =========================================================================
    # Admin Operations
    # =========================================================================

    @classmethod
    def start_review(cls, dispute_id, admin) -> Dispute:
        """
        Mark an OPEN dispute as picked up by an admin.

        Raises:
            BusinessRuleError: Dispute is not OPEN
        """
        with cls.atomic():
            dispute = lock_for_update(Dispute, dispute_id, "Dispute not found")
            if dispute.status != DisputeStatus.OPEN:
                raise BusinessRuleError(
                    "Only open disputes can be taken under review",
                    details={"current_status": dispute.status},
                )
            dispute.start_review()
            dispute.save()
            record_admin_action(
                admin,
                AdminActionType.DISPUTE_REVIEW,
                target_type=AdminTargetType.DISPUTE,
                target_id=dispute.id,
            )

        cls.get_logger().info(
            "Dispute under review",
            extra={"dispute_id": str(dispute.id), "admin_id": str(admin.id)},
        )
        return dispute

    @classmethod
    def resolve(cls, dispute_id, admin, outcome: str, resolution: str) -> Dispute:
        """
        Resolve an active dispute and settle the escrow.

        Raises:
            ValidationError: Unknown outcome or empty resolution
            BusinessRuleError: Dispute already resolved, or a releasing
                outcome on an escrow that was never funded
        """
        if outcome not in DisputeOutcome.values:
            raise ValidationError(f"Unknown outcome {outcome}", details={"field": "outcome"})
        resolution = (resolution or "").strip()
        if not resolution:
            raise ValidationError("A resolution is required", details={"field": "resolution"})

        with cls.atomic():
            dispute = lock_for_update(Dispute, dispute_id, "Dispute not found")
            if not dispute.is_active:
                raise BusinessRuleError("Dispute is already resolved")

            project = lock_for_update(Project, dispute.project_id, "Project not found")
            escrow = Escrow.objects.select_for_update().filter(project_id=project.id).first()

            if outcome == DisputeOutcome.FULL_REFUND:
                cls._refund(escrow, admin, dispute)
                project.status = ProjectStatus.CANCELLED
            else:
                cls._release(escrow, admin, dispute)
                project.status = ProjectStatus.COMPLETED
            project.save(update_fields=["status", "updated_at"])

            dispute.resolve(admin, outcome, resolution)
            dispute.save()

            log_transaction(
                TransactionType.DISPUTE_RESOLVED,
                reference_type=ReferenceType.DISPUTE,
                reference_id=dispute.id,
                amount=escrow.total_amount if escrow else None,
                to_status=DisputeStatus.RESOLVED,
                actor=admin,
                actor_type=ActorType.ADMIN,
                metadata={"outcome": outcome, "project_id": str(project.id)},
            )
            record_admin_action(
                admin,
                AdminActionType.DISPUTE_RESOLVE,
                target_type=AdminTargetType.DISPUTE,
                target_id=dispute.id,
                details={"outcome": outcome, "resolution": resolution},
            )

        cls.get_logger().info(
            "Dispute resolved",
            extra={
                "dispute_id": str(dispute.id),
                "outcome": outcome,
                "escrow_status": escrow.status if escrow else None,
            },
        )

        if project.selected_freelancer_id is not None:
            from marketplace.services import TierService

            cls.run_best_effort(
                "tier recalculation", TierService.recalculate, project.selected_freelancer_id
            )
        return dispute

    @classmethod
    def _refund(cls, escrow: Escrow | None, admin, dispute: Dispute) -> None:
        if escrow is None:
            return
        if escrow.status not in (EscrowStatus.PENDING, EscrowStatus.FUNDED, EscrowStatus.DISPUTED):
            raise BusinessRuleError(
                f"Cannot refund escrow with status {escrow.status}",
                details={"escrow_status": escrow.status},
            )
        from_status = escrow.status
        escrow.refund()
        escrow.save()
        log_transaction(
            TransactionType.ESCROW_REFUNDED,
            reference_type=ReferenceType.ESCROW,
            reference_id=escrow.id,
            amount=escrow.total_amount,
            from_status=from_status,
            to_status=EscrowStatus.REFUNDED,
            actor=admin,
            actor_type=ActorType.ADMIN,
            metadata={"dispute_id": str(dispute.id)},
        )

    @classmethod
    def _release(cls, escrow: Escrow | None, admin, dispute: Dispute) -> None:
        if escrow is None:
            return
        if escrow.funded_at is None:
            raise BusinessRuleError(
                "Escrow was never funded; only FULL_REFUND can close it",
                details={"escrow_status": escrow.status},
            )
        if escrow.status not in (EscrowStatus.FUNDED, EscrowStatus.DISPUTED):
            raise BusinessRuleError(
                f"Cannot release escrow with status {escrow.status}",
                details={"escrow_status": escrow.status},
            )
        from_status = escrow.status
        escrow.release_by_resolution()
        escrow.save()
        log_transaction(
            TransactionType.ESCROW_RELEASED,
            reference_type=ReferenceType.ESCROW,
            reference_id=escrow.id,
            amount=escrow.freelancer_amount,
            from_status=from_status,
            to_status=EscrowStatus.RELEASED,
            actor=admin,
            actor_type=ActorType.ADMIN,
            metadata={"dispute_id": str(dispute.id)},
        )

    # =========================================================================
    # Queries
    # =========================================================================

    @classmethod
    def list_disputes(cls, user, status=None, page: int = 1, page_size: int = 20) -> Page:
        """Admins see every dispute; participants see their projects' disputes."""
        queryset = Dispute.objects.select_related("project", "initiator")
        if not user.is_platform_admin:
            queryset = queryset.filter(
                Q(project__client_id=user.id) | Q(project__selected_freelancer_id=user.id)
            )
        if status:
            queryset = queryset.filter(status=status)
        return Paginator(queryset.order_by("-created_at"), page_size).get_page(page)

    @classmethod
    def get_dispute(cls, dispute_id, user) -> Dispute:
        """Return a dispute visible to the project's participants and admins."""
        dispute = Dispute.objects.select_related("project").filter(id=dispute_id).first()
        if dispute is None:
            raise NotFoundError("Dispute not found")
        if not (user.is_platform_admin or dispute.project.is_participant(user.id)):
            raise PermissionDeniedError("Not a participant in this project")
        return dispute

    # =========================================================================
    # Auto-dispute Sweep
    # =========================================================================

    @classmethod
    def find_ghosted_projects(cls, now=None) -> list:
        """
        IN_PROGRESS projects funded long enough ago with a silent conversation.
        """
        now = now or timezone.now()
        cutoff = now - timedelta(days=settings.AUTO_DISPUTE_GHOSTING_DAYS)
        return list(
            Project.objects.filter(
                status=ProjectStatus.IN_PROGRESS,
                escrow__status=EscrowStatus.FUNDED,
                escrow__funded_at__lt=cutoff,
            )
            .exclude(conversation__messages__created_at__gt=cutoff)
            .exclude(disputes__status__in=ACTIVE_DISPUTE_STATUSES)
            .values_list("id", flat=True)
            .distinct()
        )

    @classmethod
    def find_overdue_projects(cls, now=None) -> list:
        """IN_PROGRESS projects whose deadline has passed."""
        now = now or timezone.now()
        return list(
            Project.objects.filter(
                status=ProjectStatus.IN_PROGRESS,
                deadline__lt=now,
            )
            .exclude(disputes__status__in=ACTIVE_DISPUTE_STATUSES)
            .values_list("id", flat=True)
            .distinct()
        )

    @classmethod
    def run_auto_sweep(cls) -> list[Dispute]:
        """
        Open system disputes for ghosted and overdue projects.

        Each project is handled in its own transaction; a failure is
        logged and the sweep moves on. Safe to re-run: projects that
        already have an active dispute are skipped.

        Returns:
            Disputes created by this run
        """
        logger = cls.get_logger()
        now = timezone.now()
        cases = [
            (project_id, GHOSTING_REASON, GHOSTING_DESCRIPTION)
            for project_id in cls.find_ghosted_projects(now)
        ]
        cases += [
            (project_id, OVERDUE_REASON, OVERDUE_DESCRIPTION)
            for project_id in cls.find_overdue_projects(now)
        ]

        created = []
        for project_id, reason, description in cases:
            try:
                dispute = cls._open_auto_dispute(project_id, reason, description)
            except Exception:
                logger.exception(
                    "Auto-dispute failed for project",
                    extra={"project_id": str(project_id), "reason": reason},
                )
                continue
            if dispute is not None:
                created.append(dispute)

        logger.info(
            "Auto-dispute sweep finished",
            extra={"candidates": len(cases), "created": len(created)},
        )
        return created

    @classmethod
    def _open_auto_dispute(cls, project_id, reason: str, description: str) -> Dispute | None:
        with cls.atomic():
            project = lock_for_update(Project, project_id, "Project not found")
            # Another case in this run may already have disputed it
            if project.status != ProjectStatus.IN_PROGRESS or cls._has_active_dispute(project.id):
                return None
            dispute = cls._open(
                project,
                initiator_id=project.client_id,
                reason=reason,
                description=description,
                actor_type=ActorType.SYSTEM,
                is_auto_generated=True,
            )

        cls.get_logger().info(
            "Auto-dispute opened",
            extra={
                "dispute_id": str(dispute.id),
                "project_id": str(project_id),
                "reason": reason,
            },
        )
        return dispute
