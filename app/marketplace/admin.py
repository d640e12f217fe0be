"""
Marketplace admin configuration.
"""

from django.contrib import admin

from marketplace.models import Bid, Category, FreelancerProfile, Project, Review
from marketplace.services import CategoryService


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ["name", "slug", "min_price"]
    search_fields = ["name", "slug"]
    prepopulated_fields = {"slug": ("name",)}

    def save_model(self, request, obj, form, change):
        super().save_model(request, obj, form, change)
        CategoryService.invalidate_cache()

    def delete_model(self, request, obj):
        super().delete_model(request, obj)
        CategoryService.invalidate_cache()


class BidInline(admin.TabularInline):
    model = Bid
    extra = 0
    fields = ["freelancer", "amount", "estimated_days", "status"]
    readonly_fields = fields


@admin.register(Project)
class ProjectAdmin(admin.ModelAdmin):
    """
    Admin configuration for Project.

    Deletion goes through the admin API (ProjectService.admin_delete),
    which refuses projects whose escrow received payment.
    """

    list_display = [
        "id",
        "title",
        "client",
        "selected_freelancer",
        "status",
        "budget_min",
        "budget_max",
        "deadline",
        "created_at",
    ]
    list_filter = ["status", "category", "created_at"]
    search_fields = ["id", "title", "client__email"]
    readonly_fields = ["id", "status", "selected_freelancer", "created_at", "updated_at"]
    date_hierarchy = "created_at"
    inlines = [BidInline]

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Review)
class ReviewAdmin(admin.ModelAdmin):
    list_display = ["project", "reviewer", "reviewee", "rating", "created_at"]
    list_filter = ["rating"]
    search_fields = ["reviewer__email", "reviewee__email"]


@admin.register(FreelancerProfile)
class FreelancerProfileAdmin(admin.ModelAdmin):
    """
    Admin configuration for FreelancerProfile.

    Tier aggregates are owned by TierService and shown read-only.
    """

    list_display = [
        "user",
        "tier",
        "completed_projects",
        "avg_rating",
        "completion_rate",
        "dispute_rate",
        "exp_points",
    ]
    list_filter = ["tier"]
    search_fields = ["user__email", "headline"]
    readonly_fields = [
        "tier",
        "completed_projects",
        "avg_rating",
        "completion_rate",
        "dispute_rate",
        "exp_points",
        "created_at",
        "updated_at",
    ]

    fieldsets = (
        (None, {"fields": ("user", "headline")}),
        (
            "Reputation",
            {
                "fields": (
                    "tier",
                    "completed_projects",
                    "avg_rating",
                    "completion_rate",
                    "dispute_rate",
                    "exp_points",
                ),
            },
        ),
        (
            "Bank Details",
            {
                "fields": ("bank_code", "bank_name", "account_number", "account_holder_name"),
            },
        ),
    )
