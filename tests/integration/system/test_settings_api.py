"""Integration tests for the admin-editable system settings."""

from __future__ import annotations

from decimal import Decimal

import pytest

from modules.orders.constants import Stage
from modules.system.models import DEFAULT_NOTES, SystemSettings

pytestmark = pytest.mark.integration

SETTINGS_URL = "/api/v1/settings/"


def _german_delivery() -> dict:
    return {
        "delivery_method": "Delivery",
        "payment_method": "Card",
        "delivery_address": {
            "street": "Unter den Linden 1",
            "suburb": "Mitte",
            "state": "Berlin",
            "postcode": "10117",
            "country": "Germany",
        },
    }


def test_bakers_see_public_fields_only(baker_client):
    data = baker_client.get(SETTINGS_URL).json()

    international = data["international_addresses"]
    assert international["enabled"] is False
    assert "Australia" in international["supported_countries"]
    assert "notes" not in international
    assert "last_modified_by" not in international


def test_admins_see_audit_fields(admin_client):
    international = admin_client.get(SETTINGS_URL).json()["international_addresses"]

    assert international["notes"] == DEFAULT_NOTES
    assert international["last_modified_by"] is None


def test_admin_enables_international_delivery(admin_client, admin_user):
    response = admin_client.put(
        f"{SETTINGS_URL}international/",
        {"enabled": True, "notes": "Trial with EU customers"},
        format="json",
    )

    assert response.status_code == 200
    assert response.json()["detail"] == "International delivery enabled successfully."
    stored = SystemSettings.load()
    assert stored.international_enabled is True
    assert stored.notes == "Trial with EU customers"
    assert stored.last_modified_by_id == admin_user.pk
    assert stored.last_modified_at is not None


def test_enabled_flag_is_required(admin_client):
    response = admin_client.put(
        f"{SETTINGS_URL}international/", {"notes": "no flag"}, format="json"
    )
    assert response.status_code == 400


def test_notes_are_limited_to_1000_characters(admin_client):
    response = admin_client.put(
        f"{SETTINGS_URL}international/",
        {"enabled": True, "notes": "x" * 1001},
        format="json",
    )
    assert response.status_code == 400
    assert SystemSettings.load().international_enabled is False


def test_bakers_cannot_change_settings(baker_client):
    response = baker_client.put(
        f"{SETTINGS_URL}international/", {"enabled": True}, format="json"
    )
    assert response.status_code == 403


def test_status_endpoint(baker_client):
    data = baker_client.get(f"{SETTINGS_URL}international/status/").json()

    assert data["enabled"] is False
    assert data["supported_countries_count"] == 32
    assert data["last_modified"] is None


def test_admin_replaces_supported_countries(admin_client):
    response = admin_client.put(
        f"{SETTINGS_URL}international/countries/",
        {"countries": ["Australia", "New Zealand"]},
        format="json",
    )

    assert response.status_code == 200
    assert response.json() == {
        "supported_countries": ["Australia", "New Zealand"],
        "count": 2,
    }


@pytest.mark.parametrize("countries", [[], ["Australia", ""], "Australia"])
def test_countries_must_be_a_non_empty_list_of_names(admin_client, countries):
    response = admin_client.put(
        f"{SETTINGS_URL}international/countries/",
        {"countries": countries},
        format="json",
    )
    assert response.status_code == 400


def test_reset_requires_confirmation(admin_client):
    admin_client.put(f"{SETTINGS_URL}international/", {"enabled": True}, format="json")

    refused = admin_client.post(
        f"{SETTINGS_URL}reset/", {"confirm_reset": False}, format="json"
    )
    accepted = admin_client.post(
        f"{SETTINGS_URL}reset/", {"confirm_reset": True}, format="json"
    )

    assert refused.status_code == 400
    assert accepted.status_code == 200
    assert accepted.json()["international_addresses"]["enabled"] is False
    assert SystemSettings.objects.count() == 1


class TestAddressPolicyFollowsSettings:
    @pytest.fixture()
    def completed_order(self, baker, make_order):
        return make_order(baker, stage=Stage.COMPLETED, price=Decimal("80"))

    def _put_completion(self, client, order):
        return client.put(
            f"/api/v1/orders/{order.id}/completion/",
            _german_delivery(),
            format="json",
        )

    def test_foreign_address_rejected_by_default(self, baker_client, completed_order):
        response = self._put_completion(baker_client, completed_order)

        assert response.status_code == 400
        assert response.json()["field"] == "country"

    def test_enabling_international_accepts_it_without_restart(
        self, admin_client, baker_client, completed_order
    ):
        admin_client.put(
            f"{SETTINGS_URL}international/", {"enabled": True}, format="json"
        )

        response = self._put_completion(baker_client, completed_order)

        assert response.status_code == 200
        assert response.json()["delivery_address"]["country"] == "Germany"

    def test_country_removed_from_list_is_rejected(
        self, admin_client, baker_client, completed_order
    ):
        admin_client.put(
            f"{SETTINGS_URL}international/", {"enabled": True}, format="json"
        )
        admin_client.put(
            f"{SETTINGS_URL}international/countries/",
            {"countries": ["Australia", "New Zealand"]},
            format="json",
        )

        response = self._put_completion(baker_client, completed_order)

        assert response.status_code == 400
        assert response.json()["detail"] == "We do not deliver to Germany."
