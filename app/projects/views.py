"""
Project endpoints.

Project CRUD lives outside the settlement engine; only a read-only view
of the caller's projects is exposed so clients can find milestone ids.
"""

from django.db.models import Q
from drf_spectacular.utils import extend_schema, extend_schema_view
from rest_framework import viewsets
from rest_framework.permissions import IsAuthenticated

from projects.models import Project
from projects.serializers import ProjectSerializer


@extend_schema_view(
    list=extend_schema(summary="List my projects", tags=["Projects"]),
    retrieve=extend_schema(summary="Get project", tags=["Projects"]),
)
class ProjectViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Projects where the caller is employer or contractor.

    Admins see every project.
    """

    permission_classes = [IsAuthenticated]
    serializer_class = ProjectSerializer

    def get_queryset(self):
        queryset = Project.objects.select_related("employer", "contractor").prefetch_related(
            "milestones"
        )
        user = self.request.user
        if user.is_admin:
            return queryset
        return queryset.filter(Q(employer=user) | Q(contractor=user))
