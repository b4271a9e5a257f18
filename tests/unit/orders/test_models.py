"""Unit tests for order numbering and baker ids."""

from __future__ import annotations

import pytest

from modules.accounts.constants import Role
from modules.accounts.models import Account
from modules.orders.constants import Stage
from modules.orders.models import Order

pytestmark = pytest.mark.unit


def test_baker_ids_are_sequential(baker, other_baker):
    assert baker.baker_id == "B001"
    assert other_baker.baker_id == "B002"


def test_admin_has_no_baker_id(admin_user):
    assert admin_user.account.role == Role.ADMIN
    assert admin_user.account.baker_id is None


def test_baker_id_is_uppercased(django_user_model):
    user = django_user_model.objects.create_user("isla")
    account = Account.objects.create(user=user, role=Role.BAKER, baker_id="b777")
    assert account.baker_id == "B777"


def test_order_numbers_continue_per_baker(baker, other_baker, make_order):
    first = make_order(baker)
    second = make_order(baker)
    foreign = make_order(other_baker)

    assert first.order_number == "B001-001"
    assert second.order_number == "B001-002"
    assert foreign.order_number == "B002-001"


def test_unparseable_last_number_falls_back_to_timestamp(baker, make_order):
    order = make_order(baker)
    Order.objects.filter(id=order.id).update(order_number="B001-legacy")

    with pytest.MonkeyPatch.context() as mp:
        mp.setattr(Order, "timestamp_suffix", staticmethod(lambda: "123456"))
        fallback = make_order(baker)

    assert fallback.order_number == "B001-123456"


def test_new_order_starts_in_draft_without_history(baker, make_order):
    order = make_order(baker)
    assert order.stage == Stage.DRAFT
    assert order.version == 0
    assert order.stage_history.count() == 0
    assert order.current_update_request is None


def test_to_state_counts_inspiration_images(baker, make_order):
    order = make_order(baker, image_counts=(2, 0))
    state = order.to_state()
    assert sorted(state.inspiration_counts) == [0, 2]
    assert state.baker_id == "B001"
