"""
URL configuration for the disputes app.

All routes are prefixed with /api/v1/disputes/ in the main URL configuration.
"""

from django.urls import path

from disputes import views

app_name = "disputes"

urlpatterns = [
    path("", views.DisputeListView.as_view(), name="dispute-list"),
    path("<uuid:dispute_id>/", views.DisputeDetailView.as_view(), name="dispute-detail"),
    path("<uuid:dispute_id>/review/", views.DisputeReviewView.as_view(), name="dispute-review"),
    path(
        "<uuid:dispute_id>/resolve/",
        views.DisputeResolveView.as_view(),
        name="dispute-resolve",
    ),
]
