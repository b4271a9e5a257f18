"""Completion sub-workflow rules.

Collection / payment details may only be set once an order is Completed.
The functions here validate a typed payload against the order and return
the fields to persist; they never write to the database.  The service layer
applies the result through the repository's compare-and-swap.

Lifecycle: ``unset -> set -> confirmed``, with the update-request overlay
``none | pending | approved | rejected``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any, Optional

from django.conf import settings
from django.utils import timezone

from modules.accounts.actor import Actor
from modules.orders.constants import (
    ADDRESS_COUNTRY_MAX_LENGTH,
    ADDRESS_INSTRUCTIONS_MAX_LENGTH,
    ADDRESS_POSTCODE_MAX_LENGTH,
    ADDRESS_STATE_MAX_LENGTH,
    ADDRESS_STREET_MAX_LENGTH,
    ADDRESS_SUBURB_MAX_LENGTH,
    COMPLETION_STAGE,
    PICKUP_NOTES_MAX_LENGTH,
    DeliveryMethod,
)
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
from modules.orders.dtos import (
    CompletionUpdateDTO,
    DeliveryAddressDTO,
    PickupScheduleDTO,
)

if TYPE_CHECKING:
    from modules.orders.models import CompletionUpdateRequest, Order


_US_ZIP = (
    re.compile(r"^[0-9]{5}(-[0-9]{4})?$"),
    "US ZIP code must be 5 digits or ZIP+4 format",
)
_UK_POSTCODE = (
    re.compile(r"^[A-Z]{1,2}[0-9R][0-9A-Z]? [0-9][A-Z]{2}$", re.IGNORECASE),
    "UK postcode must be in valid format",
)

POSTCODE_RULES: dict[str, tuple[re.Pattern[str], str]] = {
    "Australia": (re.compile(r"^[0-9]{4}$"), "Australian postcode must be 4 digits"),
    "United States": _US_ZIP,
    "USA": _US_ZIP,
    "Canada": (
        re.compile(r"^[A-Z][0-9][A-Z] [0-9][A-Z][0-9]$", re.IGNORECASE),
        "Canadian postal code must be in A1A 1A1 format",
    ),
    "United Kingdom": _UK_POSTCODE,
    "UK": _UK_POSTCODE,
    "Germany": (re.compile(r"^[0-9]{5}$"), "German postcode must be 5 digits"),
    "France": (re.compile(r"^[0-9]{5}$"), "French postal code must be 5 digits"),
    "Netherlands": (
        re.compile(r"^[0-9]{4} [A-Z]{2}$", re.IGNORECASE),
        "Dutch postcode must be in 1234 AB format",
    ),
}


@dataclass(frozen=True)
class AddressPolicy:
    international_enabled: bool = False
    default_country: str = "Australia"
    # Empty means any country is accepted once international is enabled.
    supported_countries: tuple[str, ...] = ()

    @classmethod
    def from_system_settings(cls, stored: Any) -> AddressPolicy:
        """Build the policy from the admin-editable ``SystemSettings`` row."""
        return cls(
            international_enabled=stored.international_enabled,
            default_country=settings.DEFAULT_ADDRESS_COUNTRY,
            supported_countries=tuple(stored.supported_countries),
        )


# ---------------------------------------------------------------------------
# Field validation
# ---------------------------------------------------------------------------


def validate_postcode(postcode: str, country: str) -> Optional[str]:
    """Return an error message, or ``None`` when the postcode is acceptable."""
    trimmed = postcode.strip()
    rule = POSTCODE_RULES.get(country)
    if rule is None:
        return None if trimmed else "Postal code is required"
    pattern, message = rule
    return None if pattern.match(trimmed) else message


def _require_length(
    value: str, label: str, max_length: int, required: bool = True
) -> str:
    value = (value or "").strip()
    if required and not value:
        raise InvalidAddressFormat(f"{label} is required.", field=label.lower())
    if len(value) > max_length:
        raise InvalidAddressFormat(
            f"{label} must be at most {max_length} characters.",
            field=label.lower(),
        )
    return value


def clean_delivery_address(
    address: DeliveryAddressDTO, policy: AddressPolicy
) -> dict[str, str]:
    country = (address.country or "").strip() or policy.default_country
    country = _require_length(country, "Country", ADDRESS_COUNTRY_MAX_LENGTH)
    if not policy.international_enabled and country != policy.default_country:
        raise InvalidAddressFormat(
            f"Delivery is only available within {policy.default_country}.",
            field="country",
        )
    if policy.supported_countries and country not in policy.supported_countries:
        raise InvalidAddressFormat(
            f"We do not deliver to {country}.", field="country"
        )

    cleaned = {
        "street": _require_length(address.street, "Street", ADDRESS_STREET_MAX_LENGTH),
        "suburb": _require_length(address.suburb, "Suburb", ADDRESS_SUBURB_MAX_LENGTH),
        "state": _require_length(address.state, "State", ADDRESS_STATE_MAX_LENGTH),
        "postcode": _require_length(
            address.postcode, "Postcode", ADDRESS_POSTCODE_MAX_LENGTH
        ),
        "country": country,
        "instructions": _require_length(
            address.instructions,
            "Instructions",
            ADDRESS_INSTRUCTIONS_MAX_LENGTH,
            required=False,
        ),
    }
    error = validate_postcode(cleaned["postcode"], country)
    if error:
        raise InvalidAddressFormat(error, field="postcode")
    return cleaned


def pickup_datetime(date_value: Any, time_value: str) -> datetime:
    hours, minutes = (int(part) for part in time_value.split(":"))
    naive = datetime(date_value.year, date_value.month, date_value.day, hours, minutes)
    return timezone.make_aware(naive)


def clean_pickup_schedule(
    schedule: PickupScheduleDTO, now: datetime
) -> dict[str, str]:
    if pickup_datetime(schedule.date, schedule.time) < now:
        raise PickupInPast("Pickup date and time cannot be in the past.")
    notes = (schedule.notes or "").strip()
    if len(notes) > PICKUP_NOTES_MAX_LENGTH:
        raise IncompleteCompletionDetails(
            f"Pickup notes must be at most {PICKUP_NOTES_MAX_LENGTH} characters."
        )
    return {
        "date": schedule.date.isoformat(),
        "time": schedule.time,
        "notes": notes,
    }


# ---------------------------------------------------------------------------
# Guards
# ---------------------------------------------------------------------------


def _ensure_owner(order: Order, actor: Actor) -> None:
    if actor.is_baker and order.baker_id != actor.baker_id:
        raise AccessDenied()


def _ensure_completed(order: Order) -> None:
    if order.stage != COMPLETION_STAGE:
        raise CompletionNotAvailable(
            "Completion details can only be set on completed orders.",
            current_stage=order.stage,
        )


def plan_completion_update(
    order: Order,
    actor: Actor,
    payload: CompletionUpdateDTO,
    now: datetime,
    policy: AddressPolicy,
) -> dict[str, Any]:
    """Validate a completion payload and return the fields to write.

    Setting one delivery method always clears the other method's payload.
    A baker cannot edit confirmed details; an admin correction keeps the
    lock in place.
    """
    _ensure_owner(order, actor)
    _ensure_completed(order)
    if actor.is_baker and order.details_confirmed:
        raise RequiresApprovalToEdit()

    if not payload.delivery_method or not payload.payment_method:
        raise IncompleteCompletionDetails(
            "Delivery method and payment method are required."
        )

    fields: dict[str, Any] = {
        "delivery_method": payload.delivery_method,
        "payment_method": payload.payment_method,
    }
    if payload.delivery_method == DeliveryMethod.PICKUP:
        if payload.pickup_schedule is None:
            raise IncompleteCompletionDetails("Pickup date and time are required.")
        fields["pickup_schedule"] = clean_pickup_schedule(payload.pickup_schedule, now)
        fields["delivery_address"] = None
    else:
        if payload.delivery_address is None:
            raise IncompleteCompletionDetails("A delivery address is required.")
        fields["delivery_address"] = clean_delivery_address(
            payload.delivery_address, policy
        )
        fields["pickup_schedule"] = None
    return fields


def check_confirmable(
    order: Order, actor: Actor, now: datetime, policy: AddressPolicy
) -> None:
    """Raise unless ``actor`` may lock the order's completion details now."""
    if not actor.is_baker:
        raise AccessDenied("Only the ordering baker can confirm completion details.")
    _ensure_owner(order, actor)
    _ensure_completed(order)
    if order.details_confirmed:
        raise CompletionAlreadyConfirmed("Completion details are already confirmed.")

    missing = [
        name
        for name in ("delivery_method", "payment_method")
        if not getattr(order, name)
    ]
    if order.delivery_method == DeliveryMethod.PICKUP and not order.pickup_schedule:
        missing.append("pickup_schedule")
    if order.delivery_method == DeliveryMethod.DELIVERY and not order.delivery_address:
        missing.append("delivery_address")
    if missing:
        raise IncompleteCompletionDetails(
            "Completion details are incomplete.", missing_fields=missing
        )

    # Stored payloads are re-checked: a pickup slot may have passed since.
    if order.delivery_method == DeliveryMethod.PICKUP:
        clean_pickup_schedule(PickupScheduleDTO(**order.pickup_schedule), now)
    else:
        clean_delivery_address(DeliveryAddressDTO(**order.delivery_address), policy)


def check_update_request_allowed(
    order: Order,
    actor: Actor,
    existing: Optional[CompletionUpdateRequest],
) -> None:
    if not actor.is_baker:
        raise AccessDenied("Only the ordering baker can request an update.")
    _ensure_owner(order, actor)
    if not order.details_confirmed:
        raise UpdateRequestNotAllowed(
            "Update requests are only needed once details are confirmed."
        )
    if existing is not None and existing.is_pending:
        raise UpdateRequestAlreadyPending()


def check_resolvable(
    actor: Actor, existing: Optional[CompletionUpdateRequest]
) -> None:
    if not actor.is_admin:
        raise AccessDenied("Only admins can resolve update requests.")
    if existing is None or not existing.is_pending:
        raise NoPendingUpdateRequest()
