"""
End-to-end tests for the marketplace endpoints.
"""

import pytest

from marketplace.models import BidStatus, ProjectStatus
from marketplace.tests.factories import BidFactory, CategoryFactory, ProjectFactory

BASE = "/api/v1/marketplace"


@pytest.mark.django_db
class TestProjectEndpoints:
    def test_client_posts_project(self, auth_client, client_user):
        """Should create a project and return 201."""
        response = auth_client(client_user).post(
            f"{BASE}/projects/",
            {"title": "Mobile app", "budget_min": 1_000_000, "budget_max": 5_000_000},
            format="json",
        )

        assert response.status_code == 201
        assert response.data["status"] == ProjectStatus.OPEN
        assert response.data["client"]["id"] == client_user.id

    def test_freelancer_cannot_post_project(self, auth_client, freelancer):
        """Should reject non-clients at the permission layer."""
        response = auth_client(freelancer).post(
            f"{BASE}/projects/",
            {"title": "x", "budget_min": 1, "budget_max": 2},
            format="json",
        )

        assert response.status_code == 403

    def test_anonymous_rejected(self, api_client):
        """Should require authentication."""
        response = api_client.get(f"{BASE}/projects/")

        assert response.status_code == 401

    def test_inverted_budget_is_422(self, auth_client, client_user):
        """Should surface service validation errors as 422."""
        response = auth_client(client_user).post(
            f"{BASE}/projects/",
            {"title": "x", "budget_min": 5_000_000, "budget_max": 1_000_000},
            format="json",
        )

        assert response.status_code == 422
        assert response.data["error_code"] == "VALIDATION_ERROR"

    def test_list_open_projects_paginates(self, auth_client, freelancer):
        """Should return the paginated envelope of open projects."""
        ProjectFactory.create_batch(3)
        ProjectFactory(in_progress=True)

        response = auth_client(freelancer).get(f"{BASE}/projects/", {"page_size": 2})

        assert response.status_code == 200
        assert response.data["count"] == 3
        assert response.data["total_pages"] == 2
        assert len(response.data["results"]) == 2

    def test_categories_are_public(self, api_client):
        """Should list categories without authentication."""
        CategoryFactory(name="Design")

        response = api_client.get(f"{BASE}/categories/")

        assert response.status_code == 200
        assert [c["name"] for c in response.data] == ["Design"]


@pytest.mark.django_db
class TestBidFlow:
    def test_bid_then_accept(self, auth_client, client_user, freelancer):
        """Should let a freelancer bid and the owner accept."""
        project = ProjectFactory(client=client_user)

        bid_response = auth_client(freelancer).post(
            f"{BASE}/projects/{project.id}/bids/",
            {"amount": 1_500_000, "proposal": "Ready to start"},
            format="json",
        )
        accept_response = auth_client(client_user).post(
            f"{BASE}/bids/{bid_response.data['id']}/accept/"
        )

        assert bid_response.status_code == 201
        assert accept_response.status_code == 200
        assert accept_response.data["status"] == BidStatus.ACCEPTED

    def test_bid_limit_surfaces_error_code(self, auth_client, freelancer):
        """Should return 400 with BID_LIMIT_REACHED when the tier cap is hit."""
        BidFactory.create_batch(3, freelancer=freelancer)
        project = ProjectFactory()

        response = auth_client(freelancer).post(
            f"{BASE}/projects/{project.id}/bids/",
            {"amount": 1_500_000},
            format="json",
        )

        assert response.status_code == 400
        assert response.data["error_code"] == "BID_LIMIT_REACHED"
        assert response.data["details"]["limit"] == 3

    def test_deliver(self, auth_client):
        """Should let the assigned freelancer mark work delivered."""
        project = ProjectFactory(in_progress=True)

        response = auth_client(project.selected_freelancer).post(
            f"{BASE}/projects/{project.id}/deliver/"
        )

        assert response.status_code == 200
        assert response.data["status"] == ProjectStatus.DELIVERED


@pytest.mark.django_db
class TestAdminEndpoints:
    def test_admin_deletes_project(self, auth_client, admin_user):
        """Should delete the project and return 204."""
        project = ProjectFactory()

        response = auth_client(admin_user).delete(f"{BASE}/admin/projects/{project.id}/")

        assert response.status_code == 204

    def test_admin_adjusts_tier(self, auth_client, admin_user, freelancer):
        """Should set the requested tier."""
        response = auth_client(admin_user).post(
            f"{BASE}/admin/freelancers/{freelancer.id}/tier/",
            {"tier": "GOLD"},
            format="json",
        )

        assert response.status_code == 200
        assert response.data["tier"] == "GOLD"

    def test_client_cannot_adjust_tier(self, auth_client, client_user, freelancer):
        """Should reject non-admins."""
        response = auth_client(client_user).post(
            f"{BASE}/admin/freelancers/{freelancer.id}/tier/",
            {"tier": "GOLD"},
            format="json",
        )

        assert response.status_code == 403
