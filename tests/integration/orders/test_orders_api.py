"""Integration tests for the Orders API endpoints."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch

import pytest
from django.utils import timezone

from modules.orders.constants import Stage
from modules.orders.exceptions import ConcurrencyConflict
from modules.orders.models import Order, OrderStageHistory
from modules.orders.repositories import OrderDjangoRepository

pytestmark = pytest.mark.integration

ORDERS_URL = "/api/v1/orders/"


def _detail_url(order) -> str:
    return f"{ORDERS_URL}{order.id}/"


def _image(name: str = "heart") -> dict:
    return {"url": f"https://cdn.example.com/{name}.png", "key": f"uploads/{name}.png"}


def _order_payload(**overrides) -> dict:
    payload = {
        "date_required": (timezone.localdate() + timedelta(days=10)).isoformat(),
        "items": [
            {
                "type": "Cutter",
                "measurement_value": "5",
                "measurement_unit": "cm",
                "inspiration_images": [_image()],
            }
        ],
    }
    payload.update(overrides)
    return payload


class TestCreateOrder:
    def test_baker_creates_draft_order(self, baker_client):
        response = baker_client.post(ORDERS_URL, _order_payload(), format="json")

        assert response.status_code == 201
        data = response.json()
        assert data["stage"] == Stage.DRAFT
        assert data["order_number"] == "B001-001"
        assert data["baker_email"] == "amelia@example.com"
        assert data["stage_history"] == []
        assert data["allowed_stages"] == [Stage.SUBMITTED]
        assert len(data["items"]) == 1
        assert data["items"][0]["inspiration_images"][0]["key"] == "uploads/heart.png"

    def test_order_numbers_are_sequential_per_baker(self, baker_client):
        baker_client.post(ORDERS_URL, _order_payload(), format="json")
        response = baker_client.post(ORDERS_URL, _order_payload(), format="json")
        assert response.json()["order_number"] == "B001-002"

    def test_admin_cannot_create_orders(self, admin_client):
        response = admin_client.post(ORDERS_URL, _order_payload(), format="json")
        assert response.status_code == 403
        assert response.json()["code"] == "access_denied"

    def test_order_without_items_is_rejected(self, baker_client):
        response = baker_client.post(
            ORDERS_URL, _order_payload(items=[]), format="json"
        )
        assert response.status_code == 400
        assert Order.objects.count() == 0

    def test_measurement_out_of_range_is_rejected(self, baker_client):
        payload = _order_payload()
        payload["items"][0]["measurement_value"] = "0"
        response = baker_client.post(ORDERS_URL, payload, format="json")
        assert response.status_code == 400


class TestListAndRetrieve:
    def test_baker_only_sees_own_orders(
        self, baker_client, baker, other_baker, make_order
    ):
        own = make_order(baker)
        make_order(other_baker)

        response = baker_client.get(ORDERS_URL)

        assert response.status_code == 200
        results = response.json()["results"]
        assert [row["id"] for row in results] == [str(own.id)]
        assert results[0]["item_count"] == 1
        assert results[0]["has_pending_update"] is False

    def test_admin_sees_every_order(self, admin_client, baker, other_baker, make_order):
        make_order(baker)
        make_order(other_baker)
        assert admin_client.get(ORDERS_URL).json()["count"] == 2

    def test_retrieve_foreign_order_is_forbidden(
        self, other_baker_client, baker, make_order
    ):
        order = make_order(baker)
        response = other_baker_client.get(_detail_url(order))
        assert response.status_code == 403

    def test_retrieve_missing_order(self, admin_client):
        missing = "00000000-0000-0000-0000-000000000000"
        response = admin_client.get(f"{ORDERS_URL}{missing}/")
        assert response.status_code == 404
        assert response.json()["code"] == "not_found"


class TestUpdateAndDelete:
    def test_baker_updates_date_in_draft(self, baker_client, baker, make_order):
        order = make_order(baker)
        new_date = (timezone.localdate() + timedelta(days=30)).isoformat()

        response = baker_client.patch(
            _detail_url(order), {"date_required": new_date}, format="json"
        )

        assert response.status_code == 200
        assert response.json()["date_required"] == new_date
        assert response.json()["version"] == order.version + 1

    def test_baker_cannot_set_price(self, baker_client, baker, make_order):
        order = make_order(baker)
        response = baker_client.patch(
            _detail_url(order), {"price": "50.00"}, format="json"
        )
        assert response.status_code == 403

    def test_baker_cannot_edit_submitted_order(self, baker_client, baker, make_order):
        order = make_order(baker, stage=Stage.SUBMITTED)
        response = baker_client.patch(
            _detail_url(order),
            {"date_required": timezone.localdate().isoformat()},
            format="json",
        )
        assert response.status_code == 400
        assert response.json()["code"] == "order_not_editable"

    def test_admin_sets_price(self, admin_client, baker, make_order):
        order = make_order(baker, stage=Stage.UNDER_REVIEW)
        response = admin_client.patch(
            _detail_url(order), {"price": "75.50"}, format="json"
        )
        assert response.status_code == 200
        assert response.json()["price"] == "75.50"

    def test_admin_cannot_clear_price_once_priced(
        self, admin_client, baker, make_order
    ):
        order = make_order(
            baker, stage=Stage.REQUIRES_APPROVAL, price=Decimal("120")
        )

        response = admin_client.patch(
            _detail_url(order), {"price": "0"}, format="json"
        )

        assert response.status_code == 400
        assert response.json()["code"] == "missing_price"
        order.refresh_from_db()
        assert order.price == Decimal("120")

    def test_baker_deletes_draft(self, baker_client, baker, make_order):
        order = make_order(baker)
        response = baker_client.delete(_detail_url(order))
        assert response.status_code == 204
        assert not Order.objects.filter(pk=order.pk).exists()

    def test_baker_cannot_delete_printing_order(
        self, baker_client, baker, make_order
    ):
        order = make_order(baker, stage=Stage.PRINTING, price=Decimal("90"))
        response = baker_client.delete(_detail_url(order))
        assert response.status_code == 400
        assert Order.objects.filter(pk=order.pk).exists()

    def test_admin_deletes_any_order(self, admin_client, baker, make_order):
        order = make_order(baker, stage=Stage.PRINTING, price=Decimal("90"))
        assert admin_client.delete(_detail_url(order)).status_code == 204


class TestStageChange:
    def _stage_url(self, order) -> str:
        return f"{_detail_url(order)}stage/"

    def test_baker_submits_order(self, baker_client, baker, make_order):
        order = make_order(baker)

        response = baker_client.put(
            self._stage_url(order),
            {"stage": Stage.SUBMITTED, "comments": "Ready for you"},
            format="json",
        )

        assert response.status_code == 200
        data = response.json()
        assert data["stage"] == Stage.SUBMITTED
        assert data["allowed_stages"] == []
        assert len(data["stage_history"]) == 1
        assert data["stage_history"][0]["stage"] == Stage.SUBMITTED
        assert data["stage_history"][0]["comments"] == "Ready for you"

    def test_invalid_transition_reports_allowed_stages(
        self, baker_client, baker, make_order
    ):
        order = make_order(baker)

        response = baker_client.put(
            self._stage_url(order), {"stage": Stage.PRINTING}, format="json"
        )

        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "invalid_transition"
        assert body["current_stage"] == Stage.DRAFT
        assert body["allowed_stages"] == [Stage.SUBMITTED]
        assert OrderStageHistory.objects.filter(order=order).count() == 0

    def test_submission_requires_inspiration_images(
        self, baker_client, baker, make_order
    ):
        order = make_order(baker, image_counts=(1, 0))
        response = baker_client.put(
            self._stage_url(order), {"stage": Stage.SUBMITTED}, format="json"
        )
        assert response.status_code == 400
        assert response.json()["code"] == "incomplete_submission"
        assert response.json()["offending_items"] == 1

    def test_approval_requires_price(self, admin_client, baker, make_order):
        order = make_order(baker, stage=Stage.UNDER_REVIEW)
        response = admin_client.put(
            self._stage_url(order), {"stage": Stage.REQUIRES_APPROVAL}, format="json"
        )
        assert response.status_code == 400
        assert response.json()["code"] == "missing_price"

    def test_approval_with_price_persists_it(self, admin_client, baker, make_order):
        order = make_order(baker, stage=Stage.UNDER_REVIEW)
        response = admin_client.put(
            self._stage_url(order),
            {"stage": Stage.REQUIRES_APPROVAL, "price": "120"},
            format="json",
        )
        assert response.status_code == 200
        assert response.json()["price"] == "120.00"

    def test_foreign_baker_cannot_change_stage(
        self, other_baker_client, baker, make_order
    ):
        order = make_order(baker)
        response = other_baker_client.put(
            self._stage_url(order), {"stage": Stage.SUBMITTED}, format="json"
        )
        assert response.status_code == 403

    def test_unknown_stage_is_rejected(self, admin_client, baker, make_order):
        order = make_order(baker)
        response = admin_client.put(
            self._stage_url(order), {"stage": "Shipped"}, format="json"
        )
        assert response.status_code == 400

    def test_concurrent_write_returns_conflict(self, admin_client, baker, make_order):
        order = make_order(baker, stage=Stage.SUBMITTED)

        with patch.object(
            OrderDjangoRepository,
            "compare_and_swap",
            side_effect=ConcurrencyConflict(order.id, order.version),
        ):
            response = admin_client.put(
                self._stage_url(order), {"stage": Stage.UNDER_REVIEW}, format="json"
            )

        assert response.status_code == 409
        assert response.json()["code"] == "conflict"
        assert response.json()["retryable"] is True
        order.refresh_from_db()
        assert order.stage == Stage.SUBMITTED


class TestItemsAndImages:
    def _items_url(self, order) -> str:
        return f"{_detail_url(order)}items/"

    def test_add_item(self, baker_client, baker, make_order):
        order = make_order(baker)
        response = baker_client.post(
            self._items_url(order),
            {"type": "Stamp", "measurement_value": "3.5", "measurement_unit": "cm"},
            format="json",
        )
        assert response.status_code == 201
        assert len(response.json()["items"]) == 2

    def test_update_and_delete_item(self, baker_client, baker, make_order):
        order = make_order(baker, image_counts=(1, 1))
        items = {item.inspiration_images[0]["key"]: item for item in order.items.all()}
        first = items["inspiration/0-0.png"]
        second = items["inspiration/1-0.png"]

        response = baker_client.patch(
            f"{self._items_url(order)}{first.id}/",
            {"additional_comments": "Rounded edges"},
            format="json",
        )
        assert response.status_code == 200

        response = baker_client.delete(f"{self._items_url(order)}{second.id}/")
        assert response.status_code == 200
        items = response.json()["items"]
        assert [item["id"] for item in items] == [str(first.id)]
        assert items[0]["additional_comments"] == "Rounded edges"

    def test_unknown_item_is_not_found(self, baker_client, baker, make_order):
        order = make_order(baker)
        response = baker_client.delete(
            f"{self._items_url(order)}00000000-0000-0000-0000-000000000000/"
        )
        assert response.status_code == 404

    def test_attach_and_remove_inspiration_image(
        self, baker_client, baker, make_order
    ):
        order = make_order(baker)
        item = order.items.get()
        images_url = f"{self._items_url(order)}{item.id}/images/"

        response = baker_client.post(
            images_url, {"images": [_image("star")]}, format="json"
        )
        assert response.status_code == 201
        keys = [image["key"] for image in response.json()["inspiration_images"]]
        assert keys == ["inspiration/0-0.png", "uploads/star.png"]

        response = baker_client.post(
            f"{images_url}remove/", {"key": "inspiration/0-0.png"}, format="json"
        )
        assert response.status_code == 200
        keys = [image["key"] for image in response.json()["inspiration_images"]]
        assert keys == ["uploads/star.png"]

    def test_baker_cannot_attach_preview_images(
        self, baker_client, baker, make_order
    ):
        order = make_order(baker)
        item = order.items.get()
        response = baker_client.post(
            f"{self._items_url(order)}{item.id}/images/",
            {"kind": "preview", "images": [_image("preview")]},
            format="json",
        )
        assert response.status_code == 403

    def test_admin_attaches_preview_images_in_any_stage(
        self, admin_client, baker, make_order
    ):
        order = make_order(baker, stage=Stage.UNDER_REVIEW)
        item = order.items.get()
        response = admin_client.post(
            f"{self._items_url(order)}{item.id}/images/",
            {"kind": "preview", "images": [_image("preview")]},
            format="json",
        )
        assert response.status_code == 201
        assert response.json()["preview_images"][0]["key"] == "uploads/preview.png"


class TestStats:
    def test_stats_are_scoped_to_the_baker(
        self, baker_client, admin_client, baker, other_baker, make_order
    ):
        make_order(baker)
        make_order(baker, stage=Stage.SUBMITTED)
        make_order(other_baker, stage=Stage.SUBMITTED)

        own = baker_client.get(f"{ORDERS_URL}stats/overview/").json()
        assert own["total"] == 2
        assert own["by_stage"][Stage.DRAFT] == 1
        assert own["by_stage"][Stage.SUBMITTED] == 1

        everything = admin_client.get(f"{ORDERS_URL}stats/overview/").json()
        assert everything["total"] == 3
        assert everything["by_stage"][Stage.SUBMITTED] == 2
        assert everything["pending_update_requests"] == 0
