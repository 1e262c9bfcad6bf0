"""
Tests for notification API endpoints.
"""

from notifications.tests.factories import NotificationFactory


class TestNotificationList:
    def test_lists_only_own_notifications(self, authenticated_client, unread_notification, other_user):
        NotificationFactory(recipient=other_user)

        response = authenticated_client.get("/api/v1/notifications/")

        assert response.status_code == 200
        assert [row["id"] for row in response.data["results"]] == [str(unread_notification.id)]

    def test_filter_by_read_state(self, authenticated_client, unread_notification, read_notification):
        response = authenticated_client.get("/api/v1/notifications/?is_read=false")

        assert [row["id"] for row in response.data["results"]] == [str(unread_notification.id)]

    def test_unread_count(self, authenticated_client, unread_notification, read_notification):
        response = authenticated_client.get("/api/v1/notifications/unread-count/")

        assert response.data == {"unread_count": 1}


class TestNotificationRead:
    def test_mark_read(self, authenticated_client, unread_notification):
        response = authenticated_client.post(f"/api/v1/notifications/{unread_notification.id}/read/")

        assert response.status_code == 200
        assert response.data["is_read"] is True

    def test_foreign_notification_is_404(self, authenticated_client, other_user):
        foreign = NotificationFactory(recipient=other_user)

        response = authenticated_client.post(f"/api/v1/notifications/{foreign.id}/read/")

        assert response.status_code == 404

    def test_read_all(self, authenticated_client, unread_notification):
        response = authenticated_client.post("/api/v1/notifications/read-all/")

        assert response.data == {"marked_count": 1}
