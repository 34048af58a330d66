"""
Factory Boy factories for notification models.

Usage:
    from notifications.tests.factories import NotificationFactory

    # Unread general notification
    notification = NotificationFactory(recipient=user)

    # Read payment notification
    notification = NotificationFactory(
        recipient=user,
        notification_type="payment_success",
        status="READ",
    )
"""

import factory

from core.tests.factories import UserFactory


class NotificationFactory(factory.django.DjangoModelFactory):
    """Factory for Notification; unread, general type by default."""

    class Meta:
        model = "notifications.Notification"

    recipient = factory.SubFactory(UserFactory)
    notification_type = "general"
    title = factory.Faker("sentence", nb_words=5)
    message = factory.Faker("paragraph", nb_sentences=2)
    status = "UNREAD"
    data = factory.LazyFunction(dict)
