"""
DRF serializers for arbitration app.

Request serializers enforce the API's length limits; the service layer
enforces everything that depends on stored state.
"""

from __future__ import annotations

from rest_framework import serializers

from arbitration.models import Arbitration, ArbitrationDecision, ArbitratorRating
from arbitration.services import REASON_MAX_LENGTH, REASON_MIN_LENGTH
from payments.serializers import EscrowTransactionSerializer


class ArbitrationSerializer(serializers.ModelSerializer):
    project_title = serializers.CharField(source="project.title", read_only=True)

    class Meta:
        model = Arbitration
        fields = [
            "id",
            "project",
            "project_title",
            "initiator",
            "arbitrator",
            "reason",
            "status",
            "decision",
            "contractor_percentage",
            "resolution",
            "assigned_at",
            "resolved_at",
            "created_at",
        ]
        read_only_fields = fields


class ArbitrationCreateSerializer(serializers.Serializer):
    project_id = serializers.UUIDField()
    reason = serializers.CharField(min_length=REASON_MIN_LENGTH, max_length=REASON_MAX_LENGTH)


class AssignArbitratorSerializer(serializers.Serializer):
    """Admins pass arbitrator_id; arbitrators taking a case send nothing."""

    arbitrator_id = serializers.IntegerField(required=False, allow_null=True)


class DecisionSerializer(serializers.Serializer):
    decision = serializers.ChoiceField(choices=ArbitrationDecision.choices)
    resolution = serializers.CharField(min_length=50, max_length=2000)
    contractor_percentage = serializers.DecimalField(
        max_digits=5,
        decimal_places=2,
        min_value=0,
        max_value=100,
        required=False,
        allow_null=True,
    )

    def validate(self, attrs):
        if (
            attrs["decision"] == ArbitrationDecision.SPLIT
            and attrs.get("contractor_percentage") is None
        ):
            raise serializers.ValidationError(
                {"contractor_percentage": "Required for split decisions."}
            )
        return attrs


class DecisionOutcomeSerializer(serializers.Serializer):
    arbitration = ArbitrationSerializer()
    settled = EscrowTransactionSerializer(many=True)
    contractor_total = serializers.IntegerField()
    employer_total = serializers.IntegerField()


class RatingSerializer(serializers.ModelSerializer):
    class Meta:
        model = ArbitratorRating
        fields = ["id", "arbitration", "rater", "arbitrator", "rating", "feedback", "created_at"]
        read_only_fields = fields


class RatingCreateSerializer(serializers.Serializer):
    rating = serializers.IntegerField(min_value=1, max_value=5)
    feedback = serializers.CharField(max_length=500, required=False, allow_blank=True)
