from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.test import APIClient

from modules.accounts.actor import Actor
from modules.accounts.constants import Role
from modules.accounts.models import Account
from modules.orders.constants import ItemType, Stage
from modules.orders.models import Order, OrderItem
from shared.infrastructure.bus import InMemoryEventBus

User = get_user_model()


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


def _make_user(username: str, role: str):
    user = User.objects.create_user(
        username=username, email=f"{username}@example.com", password="testpass123"
    )
    Account.objects.create(user=user, role=role)
    return user


@pytest.fixture()
def admin_user():
    return _make_user("leon", Role.ADMIN)


@pytest.fixture()
def baker_user():
    return _make_user("amelia", Role.BAKER)


@pytest.fixture()
def other_baker_user():
    return _make_user("oliver", Role.BAKER)


@pytest.fixture()
def admin(admin_user) -> Actor:
    return Actor.from_user(admin_user)


@pytest.fixture()
def baker(baker_user) -> Actor:
    return Actor.from_user(baker_user)


@pytest.fixture()
def other_baker(other_baker_user) -> Actor:
    return Actor.from_user(other_baker_user)


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def admin_client(admin_user):
    client = APIClient()
    client.force_authenticate(user=admin_user)
    return client


@pytest.fixture()
def baker_client(baker_user):
    client = APIClient()
    client.force_authenticate(user=baker_user)
    return client


@pytest.fixture()
def other_baker_client(other_baker_user):
    client = APIClient()
    client.force_authenticate(user=other_baker_user)
    return client


@pytest.fixture()
def event_bus():
    return InMemoryEventBus()


@pytest.fixture()
def make_order():
    """Insert an order directly, bypassing the service layer."""

    def _make(
        actor: Actor,
        stage: str = Stage.DRAFT,
        price: Decimal | None = None,
        image_counts: tuple[int, ...] = (1,),
        **fields,
    ) -> Order:
        fields.setdefault("date_required", timezone.localdate() + timedelta(days=14))
        order = Order.objects.create(
            baker_id=actor.baker_id,
            baker_email=actor.email,
            stage=stage,
            price=price,
            **fields,
        )
        for index, count in enumerate(image_counts):
            OrderItem.objects.create(
                order=order,
                type=ItemType.CUTTER,
                measurement_value=Decimal("5"),
                inspiration_images=[
                    {
                        "url": f"https://cdn.example.com/{index}-{n}.png",
                        "key": f"inspiration/{index}-{n}.png",
                        "uploadedAt": "2026-01-01T00:00:00+00:00",
                    }
                    for n in range(count)
                ],
            )
        return order

    return _make


@pytest.fixture()
def tomorrow():
    return timezone.localdate() + timedelta(days=1)
