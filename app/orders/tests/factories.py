"""
Factory Boy factories for order models.

Usage:
    from orders.tests.factories import OrderFactory, OrderItemFactory

    order = OrderFactory(total=Decimal("5000.00"))
    OrderItemFactory(order=order, quantity=2)
"""

from decimal import Decimal

import factory

from core.tests.factories import UserFactory


class OrderFactory(factory.django.DjangoModelFactory):
    """Factory for Order; PENDING with a 5,000.00 total by default."""

    class Meta:
        model = "orders.Order"

    user = factory.SubFactory(UserFactory)
    status = "PENDING"
    total = Decimal("5000.00")
    shipping_cost = Decimal("500.00")
    email = factory.LazyAttribute(lambda o: o.user.email if o.user else "guest@example.com")
    phone = "+2348012345678"
    shipping_address = factory.LazyFunction(
        lambda: {"name": "Ada Obi", "line1": "12 Marina Rd", "city": "Lagos", "country": "NG"}
    )
    billing_address = factory.LazyFunction(dict)
    shipping_method = "standard"


class OrderItemFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = "orders.OrderItem"

    order = factory.SubFactory(OrderFactory)
    position = factory.Sequence(lambda n: n)
    product_id = factory.Sequence(lambda n: f"SKU-{n:04d}")
    quantity = 1
    unit_price = Decimal("4500.00")
    size = "M"
    color = "black"
