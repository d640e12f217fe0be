"""
Serializers for marketplace API.

Read serializers render models; the *CreateSerializer classes only check
input shape. Business rules (category minimums, tier bid limits,
budget range) live in marketplace.services.
"""

from __future__ import annotations

from rest_framework import serializers

from authentication.serializers import UserSerializer
from marketplace.models import (
    Bid,
    Category,
    FreelancerProfile,
    FreelancerTier,
    Project,
    Review,
)


class CategorySerializer(serializers.ModelSerializer):
    class Meta:
        model = Category
        fields = ["id", "name", "slug", "min_price"]
        read_only_fields = fields


class ProjectSerializer(serializers.ModelSerializer):
    client = UserSerializer(read_only=True)
    selected_freelancer = UserSerializer(read_only=True)
    category = CategorySerializer(read_only=True)

    class Meta:
        model = Project
        fields = [
            "id",
            "client",
            "selected_freelancer",
            "category",
            "title",
            "description",
            "budget_min",
            "budget_max",
            "deadline",
            "status",
            "created_at",
        ]
        read_only_fields = fields


class ProjectCreateSerializer(serializers.Serializer):
    """
    Serializer for posting a project.

    Fields:
        title: Short project title
        description: Full brief
        budget_min / budget_max: Acceptable bid range (whole IDR)
        category_id: Optional category (enforces its minimum price)
        deadline: Optional delivery deadline
    """

    title = serializers.CharField(max_length=200)
    description = serializers.CharField(allow_blank=True, default="")
    budget_min = serializers.IntegerField(min_value=1)
    budget_max = serializers.IntegerField(min_value=1)
    category_id = serializers.IntegerField(required=False, allow_null=True, default=None)
    deadline = serializers.DateTimeField(required=False, allow_null=True, default=None)


class BidSerializer(serializers.ModelSerializer):
    freelancer = UserSerializer(read_only=True)

    class Meta:
        model = Bid
        fields = [
            "id",
            "project",
            "freelancer",
            "amount",
            "proposal",
            "estimated_days",
            "status",
            "created_at",
        ]
        read_only_fields = fields


class BidCreateSerializer(serializers.Serializer):
    amount = serializers.IntegerField(min_value=1)
    proposal = serializers.CharField(allow_blank=True, default="")
    estimated_days = serializers.IntegerField(min_value=1, default=7)


class ReviewSerializer(serializers.ModelSerializer):
    class Meta:
        model = Review
        fields = ["id", "project", "reviewer", "reviewee", "rating", "comment", "created_at"]
        read_only_fields = fields


class ReviewCreateSerializer(serializers.Serializer):
    reviewee_id = serializers.IntegerField()
    rating = serializers.IntegerField(min_value=1, max_value=5)
    comment = serializers.CharField(allow_blank=True, default="")


class FreelancerProfileSerializer(serializers.ModelSerializer):
    """Public reputation view. Bank details are never exposed."""

    user = UserSerializer(read_only=True)

    class Meta:
        model = FreelancerProfile
        fields = [
            "user",
            "headline",
            "tier",
            "completed_projects",
            "avg_rating",
            "completion_rate",
            "dispute_rate",
            "exp_points",
        ]
        read_only_fields = fields


class TierAdjustSerializer(serializers.Serializer):
    tier = serializers.ChoiceField(choices=FreelancerTier.choices)
