"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer (DRF Serializers)
and the Service layer.  DTOs are immutable (``frozen=True``): each one is
the single, already-validated payload of one operation.

- ``CreateOrderDTO`` / ``CreateOrderItemDTO``: order creation.
- ``UpdateOrderDTO`` / ``UpdateOrderItemDTO``: partial edits.
- ``StageChangeDTO``: stage transition request.
- ``ImageMetadataDTO`` / ``AttachImagesDTO`` / ``RemoveImageDTO``: item
  image metadata (bytes live in object storage, never here).
- ``CompletionUpdateDTO`` (+ ``PickupScheduleDTO``, ``DeliveryAddressDTO``).
- ``UpdateRequestDTO`` / ``ResolveUpdateRequestDTO``.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Any, Dict, List, Literal, Optional

from django.utils import timezone
from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator

from modules.orders.constants import (
    ITEM_COMMENTS_MAX_LENGTH,
    MEASUREMENT_MAX,
    MEASUREMENT_MIN,
    DeliveryMethod,
    ImageKind,
    ItemType,
    MeasurementUnit,
    PaymentMethod,
    Stage,
)

TIME_PATTERN = r"^([01][0-9]|2[0-3]):[0-5][0-9]$"


def _check_measurement(v: Decimal) -> Decimal:
    if v < Decimal(MEASUREMENT_MIN) or v > Decimal(MEASUREMENT_MAX):
        raise ValueError(
            f"Measurement must be between {MEASUREMENT_MIN} and {MEASUREMENT_MAX}."
        )
    return v


Measurement = Annotated[Decimal, AfterValidator(_check_measurement)]
PickupDate = date


# ---------------------------------------------------------------------------
# Images
# ---------------------------------------------------------------------------


class ImageMetadataDTO(BaseModel):
    """Object-storage reference for one uploaded image."""

    model_config = ConfigDict(frozen=True)

    url: str = Field(min_length=1)
    key: str = Field(min_length=1)
    uploaded_at: Optional[datetime] = None

    def to_document(self) -> Dict[str, str]:
        uploaded_at = self.uploaded_at or timezone.now()
        return {
            "url": self.url,
            "key": self.key,
            "uploadedAt": uploaded_at.isoformat(),
        }


class AttachImagesDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: ImageKind = ImageKind.INSPIRATION
    images: List[ImageMetadataDTO]

    @field_validator("images")
    @classmethod
    def images_must_not_be_empty(
        cls, v: List[ImageMetadataDTO]
    ) -> List[ImageMetadataDTO]:
        if not v:
            raise ValueError("At least one image is required.")
        return v


class RemoveImageDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: ImageKind = ImageKind.INSPIRATION
    key: str = Field(min_length=1)


# ---------------------------------------------------------------------------
# Orders and items
# ---------------------------------------------------------------------------


class CreateOrderItemDTO(BaseModel):
    """Immutable DTO for a single order item in a creation request."""

    model_config = ConfigDict(frozen=True)

    type: ItemType
    measurement_value: Measurement
    measurement_unit: MeasurementUnit = MeasurementUnit.CM
    additional_comments: str = Field(default="", max_length=ITEM_COMMENTS_MAX_LENGTH)
    inspiration_images: List[ImageMetadataDTO] = Field(default_factory=list)


class CreateOrderDTO(BaseModel):
    """Immutable DTO for order creation requests.

    Validates:
    - ``items`` must contain at least one item.
    """

    model_config = ConfigDict(frozen=True)

    date_required: date
    items: List[CreateOrderItemDTO]

    @field_validator("items")
    @classmethod
    def items_must_not_be_empty(
        cls, v: List[CreateOrderItemDTO]
    ) -> List[CreateOrderItemDTO]:
        if not v:
            raise ValueError("Order must have at least one item.")
        return v


class UpdateOrderDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    date_required: Optional[date] = None
    price: Optional[Decimal] = Field(default=None, ge=0)

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class UpdateOrderItemDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Optional[ItemType] = None
    measurement_value: Optional[Measurement] = None
    measurement_unit: Optional[MeasurementUnit] = None
    additional_comments: Optional[str] = Field(
        default=None, max_length=ITEM_COMMENTS_MAX_LENGTH
    )

    def changes(self) -> Dict[str, Any]:
        return {
            k: v
            for k, v in self.model_dump(exclude_unset=True).items()
            if v is not None
        }


class StageChangeDTO(BaseModel):
    """A requested stage transition.  ``price`` only matters for Requires Approval."""

    model_config = ConfigDict(frozen=True)

    stage: Stage
    comments: str = ""
    price: Optional[Decimal] = None


# ---------------------------------------------------------------------------
# Completion sub-workflow
# ---------------------------------------------------------------------------


class PickupScheduleDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    date: PickupDate
    time: str = Field(pattern=TIME_PATTERN)
    notes: str = ""


class DeliveryAddressDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    street: str = ""
    suburb: str = ""
    state: str = ""
    postcode: str = ""
    country: str = ""
    instructions: str = ""


class CompletionUpdateDTO(BaseModel):
    """Collection / payment details.  Domain checks run in ``completion``."""

    model_config = ConfigDict(frozen=True)

    delivery_method: Optional[DeliveryMethod] = None
    payment_method: Optional[PaymentMethod] = None
    pickup_schedule: Optional[PickupScheduleDTO] = None
    delivery_address: Optional[DeliveryAddressDTO] = None


class UpdateRequestDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    reason: str = Field(min_length=1)
    requested_changes: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("reason")
    @classmethod
    def reason_must_not_be_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("A reason is required.")
        return v.strip()


class ResolveUpdateRequestDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    action: Literal["approve", "reject"]
    admin_response: str = ""
