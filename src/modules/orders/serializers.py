"""Order DRF serializers for API input/output.

The serializer operates at the Interface layer (API Views): input
serializers check request shape and types, then the view turns
``validated_data`` into the operation's Pydantic DTO.  Business rules live in
the Service Layer.
"""

from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers

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
from modules.orders.dtos import TIME_PATTERN
from modules.orders.models import (
    CompletionUpdateRequest,
    Order,
    OrderItem,
    OrderStageHistory,
)

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class ImageMetadataSerializer(serializers.Serializer):
    url = serializers.CharField(max_length=2048)
    key = serializers.CharField(max_length=512)
    uploaded_at = serializers.DateTimeField(required=False)


class CreateOrderItemSerializer(serializers.Serializer):
    """Validates a single item in an order creation request."""

    type = serializers.ChoiceField(choices=ItemType.choices)
    measurement_value = serializers.DecimalField(
        max_digits=7,
        decimal_places=2,
        min_value=Decimal(MEASUREMENT_MIN),
        max_value=Decimal(MEASUREMENT_MAX),
    )
    measurement_unit = serializers.ChoiceField(
        choices=MeasurementUnit.choices, default=MeasurementUnit.CM
    )
    additional_comments = serializers.CharField(
        required=False,
        default="",
        allow_blank=True,
        max_length=ITEM_COMMENTS_MAX_LENGTH,
    )
    inspiration_images = ImageMetadataSerializer(many=True, required=False)


class CreateOrderSerializer(serializers.Serializer):
    """Validates the order creation request payload."""

    date_required = serializers.DateField()
    items = CreateOrderItemSerializer(many=True, allow_empty=False)


class UpdateOrderSerializer(serializers.Serializer):
    date_required = serializers.DateField(required=False)
    price = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=Decimal("0"), required=False
    )


class UpdateOrderItemSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=ItemType.choices, required=False)
    measurement_value = serializers.DecimalField(
        max_digits=7,
        decimal_places=2,
        min_value=Decimal(MEASUREMENT_MIN),
        max_value=Decimal(MEASUREMENT_MAX),
        required=False,
    )
    measurement_unit = serializers.ChoiceField(
        choices=MeasurementUnit.choices, required=False
    )
    additional_comments = serializers.CharField(
        required=False, allow_blank=True, max_length=ITEM_COMMENTS_MAX_LENGTH
    )


class StageChangeSerializer(serializers.Serializer):
    stage = serializers.ChoiceField(choices=Stage.choices)
    comments = serializers.CharField(required=False, default="", allow_blank=True)
    price = serializers.DecimalField(
        max_digits=10, decimal_places=2, required=False, allow_null=True
    )


class AttachImagesSerializer(serializers.Serializer):
    kind = serializers.ChoiceField(
        choices=ImageKind.choices, default=ImageKind.INSPIRATION
    )
    images = ImageMetadataSerializer(many=True, allow_empty=False)


class RemoveImageSerializer(serializers.Serializer):
    kind = serializers.ChoiceField(
        choices=ImageKind.choices, default=ImageKind.INSPIRATION
    )
    key = serializers.CharField(max_length=512)


class PickupScheduleSerializer(serializers.Serializer):
    date = serializers.DateField()
    time = serializers.RegexField(
        TIME_PATTERN, error_messages={"invalid": "Time must be in HH:MM format."}
    )
    notes = serializers.CharField(required=False, default="", allow_blank=True)


class DeliveryAddressSerializer(serializers.Serializer):
    street = serializers.CharField(required=False, default="", allow_blank=True)
    suburb = serializers.CharField(required=False, default="", allow_blank=True)
    state = serializers.CharField(required=False, default="", allow_blank=True)
    postcode = serializers.CharField(required=False, default="", allow_blank=True)
    country = serializers.CharField(required=False, default="", allow_blank=True)
    instructions = serializers.CharField(
        required=False, default="", allow_blank=True
    )


class CompletionDetailsSerializer(serializers.Serializer):
    """Shape check only; presence and format rules are domain checks."""

    delivery_method = serializers.ChoiceField(
        choices=DeliveryMethod.choices, required=False, allow_null=True
    )
    payment_method = serializers.ChoiceField(
        choices=PaymentMethod.choices, required=False, allow_null=True
    )
    pickup_schedule = PickupScheduleSerializer(required=False, allow_null=True)
    delivery_address = DeliveryAddressSerializer(required=False, allow_null=True)


class RequestCompletionUpdateSerializer(serializers.Serializer):
    reason = serializers.CharField()
    requested_changes = serializers.JSONField(required=False, default=dict)


class ResolveCompletionUpdateSerializer(serializers.Serializer):
    admin_response = serializers.CharField(
        required=False, default="", allow_blank=True
    )


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class OrderItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderItem
        fields = [
            "id",
            "type",
            "measurement_value",
            "measurement_unit",
            "inspiration_images",
            "preview_images",
            "additional_comments",
            "created_at",
        ]
        read_only_fields = fields


class StageHistorySerializer(serializers.ModelSerializer):
    """Read serializer for stage history records."""

    class Meta:
        model = OrderStageHistory
        fields = [
            "id",
            "stage",
            "changed_by",
            "changed_at",
            "comments",
        ]
        read_only_fields = fields


class CompletionUpdateRequestSerializer(serializers.ModelSerializer):
    class Meta:
        model = CompletionUpdateRequest
        fields = [
            "id",
            "requested_by",
            "requested_at",
            "requested_changes",
            "reason",
            "status",
            "admin_response",
            "responded_by",
            "responded_at",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """Read serializer for orders with nested items, history and request.

    ``allowed_stages`` needs ``service`` and ``actor`` in the context.
    """

    items = OrderItemSerializer(many=True, read_only=True)
    stage_history = StageHistorySerializer(many=True, read_only=True)
    update_request = serializers.SerializerMethodField()
    allowed_stages = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "baker_id",
            "baker_email",
            "date_required",
            "stage",
            "price",
            "items",
            "stage_history",
            "delivery_method",
            "payment_method",
            "pickup_schedule",
            "delivery_address",
            "details_confirmed",
            "details_confirmed_at",
            "details_confirmed_by",
            "update_request",
            "allowed_stages",
            "version",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_update_request(self, obj: Order):
        request = obj.current_update_request
        if request is None:
            return None
        return CompletionUpdateRequestSerializer(request).data

    def get_allowed_stages(self, obj: Order) -> list[str]:
        service = self.context.get("service")
        actor = self.context.get("actor")
        if service is None or actor is None:
            return []
        return service.allowed_stages(actor, obj)


class OrderListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for order list (no nested relations)."""

    item_count = serializers.SerializerMethodField()
    has_pending_update = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "baker_id",
            "baker_email",
            "date_required",
            "stage",
            "price",
            "item_count",
            "delivery_method",
            "pickup_schedule",
            "details_confirmed",
            "has_pending_update",
            "created_at",
        ]
        read_only_fields = fields

    def get_item_count(self, obj: Order) -> int:
        return len(obj.items.all())

    def get_has_pending_update(self, obj: Order) -> bool:
        request = obj.current_update_request
        return request is not None and request.is_pending
