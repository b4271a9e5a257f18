"""Unit tests for order DTOs (Pydantic v2)."""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest
from pydantic import ValidationError

from modules.orders.constants import ImageKind, ItemType, MeasurementUnit
from modules.orders.dtos import (
    AttachImagesDTO,
    CreateOrderDTO,
    CreateOrderItemDTO,
    ImageMetadataDTO,
    PickupScheduleDTO,
    ResolveUpdateRequestDTO,
    StageChangeDTO,
    UpdateOrderDTO,
    UpdateOrderItemDTO,
    UpdateRequestDTO,
)

pytestmark = pytest.mark.unit


def _item(**overrides) -> dict:
    data = {"type": ItemType.CUTTER, "measurement_value": Decimal("5")}
    data.update(overrides)
    return data


class TestCreateOrderDTO:
    def test_valid_order(self):
        dto = CreateOrderDTO(date_required=date(2026, 5, 1), items=[_item()])
        assert dto.items[0].measurement_unit == MeasurementUnit.CM
        assert dto.items[0].inspiration_images == []

    def test_items_must_not_be_empty(self):
        with pytest.raises(ValidationError, match="at least one item"):
            CreateOrderDTO(date_required=date(2026, 5, 1), items=[])

    @pytest.mark.parametrize("value", ["0", "0.05", "1000.01", "-3"])
    def test_measurement_out_of_range(self, value):
        with pytest.raises(ValidationError, match="between"):
            CreateOrderItemDTO(**_item(measurement_value=Decimal(value)))

    def test_unknown_item_type(self):
        with pytest.raises(ValidationError):
            CreateOrderItemDTO(**_item(type="Sticker"))

    def test_dto_is_frozen(self):
        dto = CreateOrderItemDTO(**_item())
        with pytest.raises(ValidationError):
            dto.measurement_value = Decimal("9")


class TestUpdateDTOs:
    def test_update_order_changes_only_include_sent_fields(self):
        assert UpdateOrderDTO(price=Decimal("10")).changes() == {
            "price": Decimal("10")
        }
        assert UpdateOrderDTO().changes() == {}

    def test_negative_price_rejected(self):
        with pytest.raises(ValidationError):
            UpdateOrderDTO(price=Decimal("-1"))

    def test_update_item_drops_nulls(self):
        dto = UpdateOrderItemDTO(additional_comments="Bigger", type=None)
        assert dto.changes() == {"additional_comments": "Bigger"}


class TestImageDTOs:
    def test_document_uses_storage_keys(self):
        uploaded = datetime(2026, 1, 2, 3, 4, tzinfo=timezone.utc)
        image = ImageMetadataDTO(
            url="https://x/y.png", key="y.png", uploaded_at=uploaded
        )
        assert image.to_document() == {
            "url": "https://x/y.png",
            "key": "y.png",
            "uploadedAt": uploaded.isoformat(),
        }

    def test_document_stamps_upload_time(self):
        document = ImageMetadataDTO(url="https://x/y.png", key="y.png").to_document()
        assert document["uploadedAt"]

    def test_attach_requires_images(self):
        with pytest.raises(ValidationError):
            AttachImagesDTO(kind=ImageKind.PREVIEW, images=[])


class TestStageAndCompletionDTOs:
    def test_stage_must_be_known(self):
        with pytest.raises(ValidationError):
            StageChangeDTO(stage="Shipped")

    def test_pickup_time_format(self):
        with pytest.raises(ValidationError):
            PickupScheduleDTO(date=date(2026, 5, 1), time="25:00")
        assert PickupScheduleDTO(date="2026-05-01", time="09:30").time == "09:30"

    def test_update_request_reason_is_stripped(self):
        assert UpdateRequestDTO(reason="  new address ").reason == "new address"

    def test_update_request_reason_cannot_be_blank(self):
        with pytest.raises(ValidationError):
            UpdateRequestDTO(reason="   ")

    def test_resolve_action_is_constrained(self):
        with pytest.raises(ValidationError):
            ResolveUpdateRequestDTO(action="maybe")
