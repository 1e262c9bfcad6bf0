"""
Serializers for project listing.
"""

from rest_framework import serializers

from projects.models import Milestone, Project


class MilestoneSerializer(serializers.ModelSerializer):
    class Meta:
        model = Milestone
        fields = ["id", "title", "amount", "order", "status"]
        read_only_fields = fields


class ProjectSerializer(serializers.ModelSerializer):
    """Read-only project with its milestones."""

    employer_email = serializers.EmailField(source="employer.email", read_only=True)
    contractor_email = serializers.EmailField(
        source="contractor.email", read_only=True, default=None
    )
    milestones = MilestoneSerializer(many=True, read_only=True)

    class Meta:
        model = Project
        fields = [
            "id",
            "title",
            "description",
            "budget",
            "status",
            "employer_email",
            "contractor_email",
            "milestones",
            "created_at",
        ]
        read_only_fields = fields
