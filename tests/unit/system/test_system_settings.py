"""Unit tests for the system settings row and its address policy."""

from __future__ import annotations

import pytest

from modules.orders.completion import AddressPolicy
from modules.system.models import SystemSettings
from modules.system.services import SystemSettingsService

pytestmark = pytest.mark.unit


def test_first_load_seeds_from_django_settings(settings):
    settings.INTERNATIONAL_ADDRESSES_ENABLED = True
    settings.SUPPORTED_COUNTRIES = ["Australia", "Japan"]

    stored = SystemSettings.load()

    assert stored.international_enabled is True
    assert stored.supported_countries == ["Australia", "Japan"]
    assert SystemSettings.load().pk == stored.pk


def test_policy_reflects_the_stored_row(admin):
    SystemSettingsService().set_supported_countries(admin, ["Australia", "Fiji"])

    policy = AddressPolicy.from_system_settings(SystemSettings.load())

    assert policy.international_enabled is False
    assert policy.default_country == "Australia"
    assert policy.supported_countries == ("Australia", "Fiji")


def test_notes_are_kept_when_only_the_flag_changes(admin):
    service = SystemSettingsService()
    service.set_international(admin, True, "Shipping to NZ")

    stored = service.set_international(admin, False)

    assert stored.international_enabled is False
    assert stored.notes == "Shipping to NZ"


def test_describe_hides_admin_fields_from_bakers(admin, baker):
    service = SystemSettingsService()

    assert "notes" in service.describe(admin)["international_addresses"]
    assert "notes" not in service.describe(baker)["international_addresses"]
    assert "created_at" not in service.describe(baker)
