"""
Test configuration and fixtures for notification tests.

Users and API clients come from app/conftest.py.
"""

import pytest

from notifications.tests.factories import NotificationFactory


@pytest.fixture
def notification(user):
    """Single unread notification for ``user``."""
    return NotificationFactory(recipient=user)


@pytest.fixture
def read_notification(user):
    return NotificationFactory(recipient=user, status="READ")


@pytest.fixture
def multiple_unread_notifications(user):
    return NotificationFactory.create_batch(3, recipient=user)


@pytest.fixture
def other_user_notifications(other_user):
    return NotificationFactory.create_batch(3, recipient=other_user)
