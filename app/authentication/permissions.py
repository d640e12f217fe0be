"""
Role-based permission classes.

The marketplace has three roles (see UserRole):
- IsClient: posts projects, funds and releases escrows
- IsFreelancer: bids, delivers, requests payouts
- IsPlatformAdmin: resolves disputes, processes payouts

Per-resource checks (is this YOUR escrow?) live in the services and
raise PermissionDeniedError.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rest_framework import permissions

if TYPE_CHECKING:
    from rest_framework.request import Request
    from rest_framework.views import APIView


class IsClient(permissions.BasePermission):
    """Allows access only to users with the CLIENT role."""

    message = "Only clients can perform this action."

    def has_permission(self, request: Request, view: APIView) -> bool:
        return bool(request.user and request.user.is_authenticated and request.user.is_client)


class IsFreelancer(permissions.BasePermission):
    """Allows access only to users with the FREELANCER role."""

    message = "Only freelancers can perform this action."

    def has_permission(self, request: Request, view: APIView) -> bool:
        return bool(
            request.user and request.user.is_authenticated and request.user.is_freelancer
        )


class IsPlatformAdmin(permissions.BasePermission):
    """Allows access only to platform admins (ADMIN role or superuser)."""

    message = "Only admins can perform this action."

    def has_permission(self, request: Request, view: APIView) -> bool:
        return bool(
            request.user and request.user.is_authenticated and request.user.is_platform_admin
        )
