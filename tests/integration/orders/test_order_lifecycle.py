"""A single order travelling from Draft to confirmed collection details."""

from __future__ import annotations

import pytest

from modules.orders.constants import Stage

pytestmark = pytest.mark.integration


def test_full_order_lifecycle(baker_client, admin_client, tomorrow):
    response = baker_client.post(
        "/api/v1/orders/",
        {
            "date_required": (tomorrow).isoformat(),
            "items": [
                {"type": "Cutter", "measurement_value": "5", "measurement_unit": "cm"}
            ],
        },
        format="json",
    )
    assert response.status_code == 201
    order = response.json()
    order_url = f"/api/v1/orders/{order['id']}/"
    item_id = order["items"][0]["id"]

    # No inspiration image yet.
    response = baker_client.put(
        f"{order_url}stage/", {"stage": Stage.SUBMITTED}, format="json"
    )
    assert response.status_code == 400
    assert response.json()["code"] == "incomplete_submission"

    response = baker_client.post(
        f"{order_url}items/{item_id}/images/",
        {
            "images": [
                {"url": "https://cdn.example.com/bear.png", "key": "uploads/bear.png"}
            ]
        },
        format="json",
    )
    assert response.status_code == 201

    steps = [
        (baker_client, {"stage": Stage.SUBMITTED}),
        (admin_client, {"stage": Stage.UNDER_REVIEW}),
        (admin_client, {"stage": Stage.REQUIRES_APPROVAL, "price": "120"}),
        (baker_client, {"stage": Stage.READY_TO_PRINT, "comments": "Approved"}),
        (admin_client, {"stage": Stage.PRINTING}),
        (admin_client, {"stage": Stage.COMPLETED}),
    ]
    for client, payload in steps:
        response = client.put(f"{order_url}stage/", payload, format="json")
        assert response.status_code == 200, response.json()
        assert response.json()["stage"] == payload["stage"]

    order = response.json()
    assert order["price"] == "120.00"
    assert [entry["stage"] for entry in order["stage_history"]] == [
        payload["stage"] for _, payload in steps
    ]

    response = baker_client.put(
        f"{order_url}completion/",
        {
            "delivery_method": "Pickup",
            "payment_method": "Card",
            "pickup_schedule": {"date": tomorrow.isoformat(), "time": "10:00"},
        },
        format="json",
    )
    assert response.status_code == 200
    assert response.json()["details_confirmed"] is False

    response = baker_client.post(f"{order_url}completion/confirm/")
    assert response.status_code == 200
    assert response.json()["details_confirmed"] is True
    assert len(response.json()["stage_history"]) == 6
