"""
API tests for notification endpoints.

Test Classes:
    TestNotificationList: GET /api/v1/notifications/
    TestUnreadCount: GET /api/v1/notifications/unread-count/
    TestMarkSingleRead: POST /api/v1/notifications/{id}/read/
    TestMarkAllRead: POST /api/v1/notifications/read-all/
"""

from django.urls import reverse
from rest_framework import status

from notifications.models import Notification, NotificationStatus
from notifications.tests.factories import NotificationFactory


class TestNotificationList:
    def test_returns_users_notifications(self, authenticated_client, notification):
        response = authenticated_client.get(reverse("notifications:notification-list"))

        assert response.status_code == status.HTTP_200_OK
        assert response.data["count"] == 1
        assert response.data["results"][0]["id"] == str(notification.id)
        assert response.data["results"][0]["title"] == notification.title
        assert response.data["results"][0]["status"] == "UNREAD"

    def test_excludes_other_users_notifications(
        self, authenticated_client, notification, other_user_notifications
    ):
        response = authenticated_client.get(reverse("notifications:notification-list"))

        assert response.data["count"] == 1

    def test_filter_by_status(self, authenticated_client, notification, read_notification):
        url = reverse("notifications:notification-list")

        unread = authenticated_client.get(url, {"status": "UNREAD"})
        read = authenticated_client.get(url, {"status": "read"})

        assert [item["id"] for item in unread.data["results"]] == [str(notification.id)]
        assert [item["id"] for item in read.data["results"]] == [str(read_notification.id)]

    def test_requires_authentication(self, api_client, db):
        response = api_client.get(reverse("notifications:notification-list"))
        assert response.status_code == status.HTTP_401_UNAUTHORIZED


class TestUnreadCount:
    def test_counts_unread(self, authenticated_client, multiple_unread_notifications, read_notification):
        response = authenticated_client.get(reverse("notifications:notification-unread-count"))

        assert response.status_code == status.HTTP_200_OK
        assert response.data == {"unread_count": 3}


class TestMarkSingleRead:
    def test_marks_read(self, authenticated_client, notification):
        url = reverse("notifications:notification-read", kwargs={"pk": notification.id})
        response = authenticated_client.post(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data["status"] == "READ"
        notification.refresh_from_db()
        assert notification.status == NotificationStatus.READ

    def test_other_users_notification_is_404(self, authenticated_client, other_user):
        foreign = NotificationFactory(recipient=other_user)
        url = reverse("notifications:notification-read", kwargs={"pk": foreign.id})

        response = authenticated_client.post(url)

        assert response.status_code == status.HTTP_404_NOT_FOUND
        foreign.refresh_from_db()
        assert foreign.status == NotificationStatus.UNREAD


class TestMarkAllRead:
    def test_marks_all(self, authenticated_client, multiple_unread_notifications, user):
        response = authenticated_client.post(reverse("notifications:notification-read-all"))

        assert response.status_code == status.HTTP_200_OK
        assert response.data == {"marked_count": 3}
        assert not Notification.objects.filter(recipient=user, status=NotificationStatus.UNREAD).exists()
