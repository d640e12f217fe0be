"""
Django admin configuration for disputes.

Disputes are resolved through DisputeService (API) so the escrow and
project move with them; the admin is read-only.
"""

from django.contrib import admin

from disputes.models import Dispute


@admin.register(Dispute)
class DisputeAdmin(admin.ModelAdmin):
    list_display = [
        "id",
        "project",
        "initiator",
        "status",
        "outcome",
        "is_auto_generated",
        "created_at",
        "resolved_at",
    ]
    list_filter = ["status", "outcome", "is_auto_generated", "created_at"]
    search_fields = ["project__title", "reason", "initiator__email"]
    readonly_fields = [
        "project",
        "initiator",
        "reason",
        "description",
        "is_auto_generated",
        "status",
        "outcome",
        "resolution",
        "resolved_by",
        "resolved_at",
        "created_at",
        "updated_at",
    ]
    ordering = ["-created_at"]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
