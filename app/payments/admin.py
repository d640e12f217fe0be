"""
Payment admin configuration.

Escrows and payouts are read-only here: their status fields are protected
FSM fields and every change must go through EscrowService/PayoutService
so the audit trail stays complete. The audit tables are append-only.
"""

from django.contrib import admin

from payments.models import AdminAction, Escrow, GatewayOrder, Payout, TransactionLog


class ReadOnlyAdminMixin:
    """Disables add/change/delete in the admin."""

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


class GatewayOrderInline(admin.TabularInline):
    model = GatewayOrder
    extra = 0
    can_delete = False
    fields = ["order_id", "created_at"]
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Escrow)
class EscrowAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    """
    Admin configuration for Escrow.

    Provides visibility into escrow status and gateway references.
    """

    list_display = [
        "id",
        "project",
        "client",
        "freelancer",
        "total_amount",
        "status",
        "funded_at",
        "released_at",
        "created_at",
    ]
    list_filter = ["status", "created_at"]
    search_fields = ["id", "gateway_order_id", "client__email", "freelancer__email"]
    inlines = [GatewayOrderInline]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]

    fieldsets = (
        (
            None,
            {
                "fields": ("id", "project", "client", "freelancer", "status"),
            },
        ),
        (
            "Amounts",
            {
                "fields": ("total_amount", "platform_fee", "freelancer_amount"),
            },
        ),
        (
            "Gateway",
            {
                "fields": ("gateway_order_id", "session_token"),
            },
        ),
        (
            "Status Timestamps",
            {
                "fields": ("funded_at", "released_at", "refunded_at", "disputed_at"),
            },
        ),
        (
            "Metadata",
            {
                "fields": ("created_at", "updated_at"),
                "classes": ("collapse",),
            },
        ),
    )


@admin.register(Payout)
class PayoutAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    """
    Admin configuration for Payout.

    Processing happens through the admin API so it is audit-logged.
    """

    list_display = [
        "id",
        "freelancer",
        "escrow",
        "amount",
        "status",
        "processed_at",
        "completed_at",
        "created_at",
    ]
    list_filter = ["status", "created_at"]
    search_fields = ["id", "freelancer__email", "account_number"]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]


@admin.register(TransactionLog)
class TransactionLogAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = [
        "created_at",
        "type",
        "reference_type",
        "reference_id",
        "amount",
        "from_status",
        "to_status",
        "actor_type",
    ]
    list_filter = ["type", "reference_type", "actor_type"]
    search_fields = ["reference_id"]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]


@admin.register(AdminAction)
class AdminActionAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ["created_at", "admin", "action", "target_type", "target_id"]
    list_filter = ["action", "target_type"]
    search_fields = ["target_id", "admin__email"]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]
