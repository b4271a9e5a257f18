"""Order, OrderItem, OrderStageHistory and CompletionUpdateRequest models.

Business rules implemented here:
- Order number is ``<bakerId>-<NNN>``, continuing the baker's last sequence.
- ``version`` is the optimistic concurrency counter; every write after the
  initial insert goes through the repository's compare-and-swap.
- Stage history is append-only and never written on creation.
- ``pickup_schedule`` / ``delivery_address`` are embedded JSON documents and
  at most one of them is set.
"""

from __future__ import annotations

import time
from decimal import Decimal
from typing import Any, Optional

import structlog
from django.conf import settings
from django.core.exceptions import ObjectDoesNotExist
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils import timezone

from modules.core.models import BaseModel
from modules.orders.constants import (
    BAKER_EDITABLE_STAGES,
    COMPLETION_STAGE,
    ITEM_COMMENTS_MAX_LENGTH,
    MEASUREMENT_MAX,
    MEASUREMENT_MIN,
    ORDER_NUMBER_DIGITS,
    ORDER_NUMBER_MAX_RETRIES,
    DeliveryMethod,
    ItemType,
    MeasurementUnit,
    PaymentMethod,
    Stage,
    UpdateRequestStatus,
)
from modules.orders.state_machine import OrderState
from shared.domain.events import DomainEventMixin

logger = structlog.get_logger(__name__)


class Order(DomainEventMixin, BaseModel):
    """Order aggregate root.

    ``order_number`` is generated on first save from the owning baker's id.
    The UUIDv7 ``id`` is used for all internal references and API lookups.
    """

    order_number: models.CharField = models.CharField(
        max_length=40, unique=True, editable=False
    )
    baker_id: models.CharField = models.CharField(max_length=20, db_index=True)
    baker_email: models.EmailField = models.EmailField(max_length=254)
    date_required: models.DateField = models.DateField()
    stage: models.CharField = models.CharField(
        max_length=20,
        choices=Stage.choices,
        default=Stage.DRAFT,
    )
    price: models.DecimalField = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal("0"))],
    )

    # Completion details (only meaningful once stage is Completed)
    delivery_method: models.CharField = models.CharField(
        max_length=10, choices=DeliveryMethod.choices, null=True, blank=True
    )
    payment_method: models.CharField = models.CharField(
        max_length=10, choices=PaymentMethod.choices, null=True, blank=True
    )
    pickup_schedule: models.JSONField = models.JSONField(null=True, blank=True)
    delivery_address: models.JSONField = models.JSONField(null=True, blank=True)
    details_confirmed: models.BooleanField = models.BooleanField(default=False)
    details_confirmed_at: models.DateTimeField = models.DateTimeField(
        null=True, blank=True
    )
    details_confirmed_by: models.ForeignKey = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )

    version: models.PositiveIntegerField = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "orders"
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["stage"], name="orders_stage_idx"),
            models.Index(fields=["-created_at"], name="orders_created_idx"),
            models.Index(
                fields=["baker_id", "-created_at"], name="orders_baker_created_idx"
            ),
        ]

    # ------------------------------------------------------------------
    # State Machine helpers
    # ------------------------------------------------------------------

    @property
    def is_completed(self) -> bool:
        return self.stage == COMPLETION_STAGE

    @property
    def is_baker_editable(self) -> bool:
        return self.stage in BAKER_EDITABLE_STAGES

    @property
    def current_update_request(self) -> Optional[CompletionUpdateRequest]:
        try:
            return self.update_request
        except ObjectDoesNotExist:
            return None

    def to_state(self, items: Optional[list[OrderItem]] = None) -> OrderState:
        """Snapshot the fields the transition validator reads."""
        if items is None:
            items = list(self.items.all())
        return OrderState(
            stage=self.stage,
            baker_id=self.baker_id,
            price=self.price,
            inspiration_counts=tuple(
                len(item.inspiration_images or []) for item in items
            ),
            version=self.version,
        )

    # ------------------------------------------------------------------
    # Order number generation
    # ------------------------------------------------------------------

    @classmethod
    def next_sequence(cls, baker_id: str) -> Optional[int]:
        """Return the next per-baker sequence number.

        ``None`` means the last order number could not be parsed and the
        caller should fall back to a timestamp-derived suffix.
        """
        last_number = (
            cls.objects.filter(baker_id=baker_id)
            .order_by("-created_at", "-id")
            .values_list("order_number", flat=True)
            .first()
        )
        if not last_number:
            return 1
        _, _, suffix = last_number.rpartition("-")
        try:
            return int(suffix) + 1
        except ValueError:
            return None

    @staticmethod
    def timestamp_suffix() -> str:
        return str(int(time.time() * 1000))[-6:]

    def generate_order_number(self) -> str:
        sequence = self.next_sequence(self.baker_id)
        if sequence is None:
            logger.warning("order.number_fallback", baker_id=self.baker_id)
            return f"{self.baker_id}-{self.timestamp_suffix()}"

        for _ in range(ORDER_NUMBER_MAX_RETRIES):
            candidate = f"{self.baker_id}-{sequence:0{ORDER_NUMBER_DIGITS}d}"
            if not Order.objects.filter(order_number=candidate).exists():
                return candidate
            sequence += 1
        raise RuntimeError(
            f"Failed to generate unique order_number after "
            f"{ORDER_NUMBER_MAX_RETRIES} attempts"
        )

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self.order_number:
            self.order_number = self.generate_order_number()
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.order_number} ({self.stage})"


class OrderItem(BaseModel):
    """Line item of a print order.

    ``inspiration_images`` (uploaded by the baker) and ``preview_images``
    (uploaded by an admin) hold object-storage metadata only:
    ``[{"url": ..., "key": ..., "uploadedAt": ...}]``.
    """

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="items",
    )
    type: models.CharField = models.CharField(max_length=20, choices=ItemType.choices)
    measurement_value: models.DecimalField = models.DecimalField(
        max_digits=7,
        decimal_places=2,
        validators=[
            MinValueValidator(Decimal(MEASUREMENT_MIN)),
            MaxValueValidator(Decimal(MEASUREMENT_MAX)),
        ],
    )
    measurement_unit: models.CharField = models.CharField(
        max_length=2,
        choices=MeasurementUnit.choices,
        default=MeasurementUnit.CM,
    )
    inspiration_images: models.JSONField = models.JSONField(default=list, blank=True)
    preview_images: models.JSONField = models.JSONField(default=list, blank=True)
    additional_comments: models.TextField = models.TextField(
        max_length=ITEM_COMMENTS_MAX_LENGTH, blank=True, default=""
    )

    class Meta:
        db_table = "order_items"
        ordering = ["created_at", "id"]

    def __str__(self) -> str:
        return f"{self.type} {self.measurement_value}{self.measurement_unit}"


class OrderStageHistory(BaseModel):
    """Append-only audit trail of stage changes.

    ``changed_by`` is nullable: the user may be deleted later, but the
    record itself is never edited or removed while the order exists.
    """

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="stage_history",
    )
    stage: models.CharField = models.CharField(max_length=20, choices=Stage.choices)
    changed_by: models.ForeignKey = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    changed_at: models.DateTimeField = models.DateTimeField(default=timezone.now)
    comments: models.TextField = models.TextField(blank=True, default="")

    class Meta:
        db_table = "order_stage_history"
        ordering = ["changed_at", "id"]
        indexes = [
            models.Index(fields=["order", "changed_at"], name="osh_order_changed_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.order_id} -> {self.stage}"


class CompletionUpdateRequest(BaseModel):
    """A baker's petition to reopen confirmed collection/payment details.

    One row per order.  A resolved request stays archived on the order until
    the next successful completion-detail update removes it.
    """

    order: models.OneToOneField = models.OneToOneField(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="update_request",
    )
    requested_by: models.ForeignKey = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    requested_at: models.DateTimeField = models.DateTimeField(default=timezone.now)
    requested_changes: models.JSONField = models.JSONField(default=dict, blank=True)
    reason: models.TextField = models.TextField()
    status: models.CharField = models.CharField(
        max_length=10,
        choices=UpdateRequestStatus.choices,
        default=UpdateRequestStatus.PENDING,
    )
    admin_response: models.TextField = models.TextField(blank=True, default="")
    responded_by: models.ForeignKey = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    responded_at: models.DateTimeField = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "order_update_requests"
        indexes = [
            models.Index(fields=["status"], name="our_status_idx"),
        ]

    @property
    def is_pending(self) -> bool:
        return self.status == UpdateRequestStatus.PENDING

    def __str__(self) -> str:
        return f"{self.order_id} update request ({self.status})"
