"""
Tests for the health check and the failure_response helper.
"""

import pytest
from rest_framework import status

from core.services import ServiceResult
from core.views import failure_response


class TestFailureResponse:
    @pytest.mark.parametrize(
        ("error_code", "expected"),
        [
            ("ARBITRATION_NOT_FOUND", status.HTTP_404_NOT_FOUND),
            ("ARBITRATOR_NOT_ASSIGNED", status.HTTP_403_FORBIDDEN),
            ("CASE_NOT_IN_ASSIGNED_STATE", status.HTTP_409_CONFLICT),
            ("GATEWAY_TIMEOUT", status.HTTP_504_GATEWAY_TIMEOUT),
            ("INVALID_DECISION_INPUT", status.HTTP_400_BAD_REQUEST),
            (None, status.HTTP_400_BAD_REQUEST),
        ],
    )
    def test_status_by_error_code(self, error_code, expected):
        response = failure_response(ServiceResult.failure("Nope", error_code=error_code))

        assert response.status_code == expected
        assert response.data["success"] is False


@pytest.mark.django_db
class TestHealthCheck:
    def test_healthy_when_database_reachable(self, client, mocker):
        mocker.patch("core.views.cache.get", return_value="ok")
        mocker.patch("core.views.cache.set")

        response = client.get("/health/")

        assert response.status_code == 200
        assert response.json() == {
            "status": "healthy",
            "database": "connected",
            "cache": "connected",
        }

    def test_cache_outage_only_degrades(self, client, mocker):
        mocker.patch("core.views.cache.set", side_effect=ConnectionError("redis down"))

        response = client.get("/health/")

        assert response.status_code == 200
        assert response.json()["cache"] == "disconnected"

    def test_database_outage_is_unavailable(self, client, mocker):
        mocker.patch("core.views.cache.set")
        broken = mocker.patch("core.views.connection")
        broken.cursor.side_effect = Exception("db down")

        response = client.get("/health/")

        assert response.status_code == 503
        assert response.json()["status"] == "unhealthy"
