"""
Serializers for disputes API.
"""

from __future__ import annotations

from rest_framework import serializers

from authentication.serializers import UserSerializer
from disputes.models import Dispute, DisputeOutcome


class DisputeSerializer(serializers.ModelSerializer):
    initiator = UserSerializer(read_only=True)

    class Meta:
        model = Dispute
        fields = [
            "id",
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
        ]
        read_only_fields = fields


class DisputeCreateSerializer(serializers.Serializer):
    project_id = serializers.UUIDField()
    reason = serializers.CharField(max_length=200)
    description = serializers.CharField(allow_blank=True, default="")


class DisputeResolveSerializer(serializers.Serializer):
    """
    Admin resolution.

    Fields:
        outcome: FULL_REFUND, PARTIAL_REFUND or NO_REFUND
        resolution: Explanation recorded on the dispute
    """

    outcome = serializers.ChoiceField(choices=DisputeOutcome.choices)
    resolution = serializers.CharField()
