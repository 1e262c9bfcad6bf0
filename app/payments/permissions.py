"""
Permission classes for payments API.

- IsPlatformAdmin: user carries the admin role (or is a superuser)

Service methods repeat the role check, so these classes only decide
which endpoints are visible to whom.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rest_framework import permissions

if TYPE_CHECKING:
    from rest_framework.request import Request
    from rest_framework.views import APIView


class IsPlatformAdmin(permissions.BasePermission):
    """Allows access only to platform administrators."""

    message = "Only administrators can view the withdrawal queue."

    def has_permission(self, request: Request, view: APIView) -> bool:
        user = request.user
        return bool(user and user.is_authenticated and user.is_admin)
