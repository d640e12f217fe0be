"""
URL configuration for the marketplace app.

All routes are prefixed with /api/v1/marketplace/ in the main URL configuration.
"""

from django.urls import path

from marketplace import views

app_name = "marketplace"

urlpatterns = [
    path("categories/", views.CategoryListView.as_view(), name="category-list"),
    # Projects
    path("projects/", views.ProjectListView.as_view(), name="project-list"),
    path("projects/<uuid:project_id>/", views.ProjectDetailView.as_view(), name="project-detail"),
    path(
        "projects/<uuid:project_id>/deliver/",
        views.ProjectDeliverView.as_view(),
        name="project-deliver",
    ),
    path(
        "projects/<uuid:project_id>/bids/",
        views.ProjectBidListView.as_view(),
        name="project-bids",
    ),
    path(
        "projects/<uuid:project_id>/reviews/",
        views.ProjectReviewView.as_view(),
        name="project-reviews",
    ),
    # Bids
    path("bids/<uuid:bid_id>/accept/", views.BidAcceptView.as_view(), name="bid-accept"),
    path("bids/<uuid:bid_id>/withdraw/", views.BidWithdrawView.as_view(), name="bid-withdraw"),
    # Freelancers
    path(
        "freelancers/<int:user_id>/",
        views.FreelancerProfileView.as_view(),
        name="freelancer-profile",
    ),
    # Admin
    path(
        "admin/freelancers/<int:user_id>/tier/",
        views.AdminTierAdjustView.as_view(),
        name="admin-tier-adjust",
    ),
    path(
        "admin/projects/<uuid:project_id>/",
        views.AdminProjectDeleteView.as_view(),
        name="admin-project-delete",
    ),
]
