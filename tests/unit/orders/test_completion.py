"""Unit tests for the completion sub-workflow rules (no database writes)."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest
from django.utils import timezone

from modules.accounts.actor import Actor
from modules.accounts.constants import Role
from modules.orders.completion import (
    AddressPolicy,
    check_confirmable,
    check_resolvable,
    check_update_request_allowed,
    clean_delivery_address,
    plan_completion_update,
    validate_postcode,
)
from modules.orders.constants import (
    DeliveryMethod,
    PaymentMethod,
    Stage,
    UpdateRequestStatus,
)
from modules.orders.dtos import CompletionUpdateDTO, DeliveryAddressDTO
from modules.orders.exceptions import (
    AccessDenied,
    CompletionAlreadyConfirmed,
    CompletionNotAvailable,
    IncompleteCompletionDetails,
    InvalidAddressFormat,
    NoPendingUpdateRequest,
    PickupInPast,
    RequiresApprovalToEdit,
    UpdateRequestAlreadyPending,
    UpdateRequestNotAllowed,
)
from modules.orders.models import CompletionUpdateRequest, Order

pytestmark = pytest.mark.unit

ADMIN = Actor(id="1", role=Role.ADMIN)
BAKER = Actor(id="2", role=Role.BAKER, baker_id="B001")
OTHER_BAKER = Actor(id="3", role=Role.BAKER, baker_id="B002")
POLICY = AddressPolicy()

SYDNEY_ADDRESS = {
    "street": "1 George St",
    "suburb": "Sydney",
    "state": "NSW",
    "postcode": "2000",
    "country": "Australia",
}


@pytest.fixture()
def now() -> datetime:
    return timezone.now()


def _order(**fields) -> Order:
    defaults = {"baker_id": "B001", "stage": Stage.COMPLETED}
    defaults.update(fields)
    return Order(**defaults)


def _pickup_payload(when: datetime) -> CompletionUpdateDTO:
    local = timezone.localtime(when)
    return CompletionUpdateDTO.model_validate(
        {
            "delivery_method": DeliveryMethod.PICKUP,
            "payment_method": PaymentMethod.CARD,
            "pickup_schedule": {
                "date": local.date(),
                "time": local.strftime("%H:%M"),
                "notes": "  side door ",
            },
        }
    )


def _delivery_payload(**address) -> CompletionUpdateDTO:
    return CompletionUpdateDTO.model_validate(
        {
            "delivery_method": DeliveryMethod.DELIVERY,
            "payment_method": PaymentMethod.CASH,
            "delivery_address": {**SYDNEY_ADDRESS, **address},
        }
    )


class TestPostcodes:
    @pytest.mark.parametrize(
        "postcode,country",
        [
            ("2000", "Australia"),
            ("90210", "United States"),
            ("90210-1234", "USA"),
            ("K1A 0B1", "Canada"),
            ("SW1A 1AA", "United Kingdom"),
            ("10115", "Germany"),
            ("75001", "France"),
            ("1012 AB", "Netherlands"),
            ("anything", "New Zealand"),
        ],
    )
    def test_valid_postcodes(self, postcode, country):
        assert validate_postcode(postcode, country) is None

    @pytest.mark.parametrize(
        "postcode,country",
        [
            ("200", "Australia"),
            ("20000", "Australia"),
            ("ABCD", "Australia"),
            ("9021", "United States"),
            ("123456", "Canada"),
            ("", "New Zealand"),
        ],
    )
    def test_invalid_postcodes(self, postcode, country):
        assert validate_postcode(postcode, country)


class TestDeliveryAddress:
    def test_country_defaults_to_home_country(self):
        address = DeliveryAddressDTO(**{**SYDNEY_ADDRESS, "country": ""})
        assert clean_delivery_address(address, POLICY)["country"] == "Australia"

    def test_foreign_country_rejected_when_international_disabled(self):
        address = DeliveryAddressDTO(
            **{**SYDNEY_ADDRESS, "country": "Germany", "postcode": "10115"}
        )
        with pytest.raises(InvalidAddressFormat) as exc_info:
            clean_delivery_address(address, POLICY)
        assert exc_info.value.extra["field"] == "country"

    def test_foreign_country_accepted_when_international_enabled(self):
        address = DeliveryAddressDTO(
            **{**SYDNEY_ADDRESS, "country": "Germany", "postcode": "10115"}
        )
        cleaned = clean_delivery_address(
            address, AddressPolicy(international_enabled=True)
        )
        assert cleaned["country"] == "Germany"

    def test_unsupported_country_is_rejected(self):
        address = DeliveryAddressDTO(
            **{**SYDNEY_ADDRESS, "country": "Atlantis", "postcode": "1234"}
        )
        policy = AddressPolicy(
            international_enabled=True, supported_countries=("Australia", "Germany")
        )
        with pytest.raises(InvalidAddressFormat, match="Atlantis"):
            clean_delivery_address(address, policy)

    def test_missing_street_is_reported(self):
        address = DeliveryAddressDTO(**{**SYDNEY_ADDRESS, "street": "  "})
        with pytest.raises(InvalidAddressFormat) as exc_info:
            clean_delivery_address(address, POLICY)
        assert exc_info.value.extra["field"] == "street"

    def test_bad_postcode_is_reported(self):
        address = DeliveryAddressDTO(**{**SYDNEY_ADDRESS, "postcode": "12345"})
        with pytest.raises(InvalidAddressFormat, match="4 digits"):
            clean_delivery_address(address, POLICY)


class TestPlanCompletionUpdate:
    def test_pickup_clears_delivery_address(self, now):
        order = _order(delivery_address=SYDNEY_ADDRESS)
        fields = plan_completion_update(
            order, BAKER, _pickup_payload(now + timedelta(days=1)), now, POLICY
        )

        assert fields["delivery_method"] == DeliveryMethod.PICKUP
        assert fields["delivery_address"] is None
        assert fields["pickup_schedule"]["notes"] == "side door"

    def test_delivery_clears_pickup_schedule(self, now):
        order = _order(pickup_schedule={"date": "2026-01-01", "time": "10:00"})
        fields = plan_completion_update(order, ADMIN, _delivery_payload(), now, POLICY)

        assert fields["pickup_schedule"] is None
        assert fields["delivery_address"]["postcode"] == "2000"

    def test_pickup_in_the_past_is_rejected(self, now):
        with pytest.raises(PickupInPast):
            plan_completion_update(
                _order(), BAKER, _pickup_payload(now - timedelta(hours=2)), now, POLICY
            )

    @pytest.mark.parametrize("stage", [s for s in Stage.values if s != Stage.COMPLETED])
    def test_only_completed_orders(self, now, stage):
        with pytest.raises(CompletionNotAvailable):
            plan_completion_update(
                _order(stage=stage), ADMIN, _delivery_payload(), now, POLICY
            )

    def test_foreign_baker_is_denied(self, now):
        with pytest.raises(AccessDenied):
            plan_completion_update(
                _order(), OTHER_BAKER, _delivery_payload(), now, POLICY
            )

    def test_confirmed_details_are_locked_for_bakers(self, now):
        with pytest.raises(RequiresApprovalToEdit):
            plan_completion_update(
                _order(details_confirmed=True), BAKER, _delivery_payload(), now, POLICY
            )

    def test_admin_may_correct_confirmed_details(self, now):
        fields = plan_completion_update(
            _order(details_confirmed=True), ADMIN, _delivery_payload(), now, POLICY
        )
        assert "details_confirmed" not in fields

    def test_methods_are_required(self, now):
        payload = CompletionUpdateDTO(delivery_method=DeliveryMethod.DELIVERY)
        with pytest.raises(IncompleteCompletionDetails):
            plan_completion_update(_order(), BAKER, payload, now, POLICY)

    def test_pickup_needs_a_schedule(self, now):
        payload = CompletionUpdateDTO(
            delivery_method=DeliveryMethod.PICKUP, payment_method=PaymentMethod.CASH
        )
        with pytest.raises(IncompleteCompletionDetails):
            plan_completion_update(_order(), BAKER, payload, now, POLICY)


class TestCheckConfirmable:
    def test_complete_pickup_details_can_be_confirmed(self, now):
        tomorrow = timezone.localdate() + timedelta(days=1)
        order = _order(
            delivery_method=DeliveryMethod.PICKUP,
            payment_method=PaymentMethod.CARD,
            pickup_schedule={"date": tomorrow.isoformat(), "time": "10:00"},
        )
        check_confirmable(order, BAKER, now, POLICY)

    def test_reports_missing_fields(self, now):
        order = _order(delivery_method=DeliveryMethod.DELIVERY)
        with pytest.raises(IncompleteCompletionDetails) as exc_info:
            check_confirmable(order, BAKER, now, POLICY)
        assert exc_info.value.extra["missing_fields"] == [
            "payment_method",
            "delivery_address",
        ]

    def test_stored_address_is_format_checked(self, now):
        order = _order(
            delivery_method=DeliveryMethod.DELIVERY,
            payment_method=PaymentMethod.CASH,
            delivery_address={**SYDNEY_ADDRESS, "postcode": "20"},
        )
        with pytest.raises(InvalidAddressFormat):
            check_confirmable(order, BAKER, now, POLICY)

    def test_admin_cannot_confirm(self, now):
        with pytest.raises(AccessDenied):
            check_confirmable(_order(), ADMIN, now, POLICY)

    def test_already_confirmed(self, now):
        with pytest.raises(CompletionAlreadyConfirmed):
            check_confirmable(_order(details_confirmed=True), BAKER, now, POLICY)


class TestUpdateRequestGuards:
    def test_requires_confirmed_details(self):
        with pytest.raises(UpdateRequestNotAllowed):
            check_update_request_allowed(_order(), BAKER, None)

    def test_only_one_pending_request(self):
        pending = CompletionUpdateRequest(status=UpdateRequestStatus.PENDING)
        with pytest.raises(UpdateRequestAlreadyPending):
            check_update_request_allowed(_order(details_confirmed=True), BAKER, pending)

    def test_resolved_request_does_not_block_a_new_one(self):
        rejected = CompletionUpdateRequest(status=UpdateRequestStatus.REJECTED)
        check_update_request_allowed(_order(details_confirmed=True), BAKER, rejected)

    def test_admin_cannot_request(self):
        with pytest.raises(AccessDenied):
            check_update_request_allowed(_order(details_confirmed=True), ADMIN, None)

    def test_resolve_needs_pending_request(self):
        approved = CompletionUpdateRequest(status=UpdateRequestStatus.APPROVED)
        with pytest.raises(NoPendingUpdateRequest):
            check_resolvable(ADMIN, approved)
        with pytest.raises(NoPendingUpdateRequest):
            check_resolvable(ADMIN, None)

    def test_baker_cannot_resolve(self):
        pending = CompletionUpdateRequest(status=UpdateRequestStatus.PENDING)
        with pytest.raises(AccessDenied):
            check_resolvable(BAKER, pending)
