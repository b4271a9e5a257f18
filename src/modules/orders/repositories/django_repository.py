"""Django ORM implementation of the Order repository.

Satisfies ``IOrderRepository`` using Django's QuerySet API.

Concurrency control is optimistic: every write after creation is an
``UPDATE ... WHERE id = ? AND version = ?`` that bumps ``version``.  No row
locks are taken.  A write that matches zero rows is a conflict (or a
concurrent delete) and is surfaced to the caller, except for image-metadata
appends, which re-read and retry a bounded number of times.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Count, F, QuerySet
from django.utils import timezone

from modules.orders.constants import (
    IMAGE_APPEND_MAX_RETRIES,
    Stage,
    UpdateRequestStatus,
)
from modules.orders.exceptions import (
    ConcurrencyConflict,
    ItemNotFound,
    OrderNotFound,
)
from modules.orders.models import (
    CompletionUpdateRequest,
    Order,
    OrderItem,
    OrderStageHistory,
)
from modules.orders.repositories.interfaces import IOrderRepository
from modules.orders.state_machine import HistoryEntry

logger = structlog.get_logger(__name__)


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Create (aggregate root + children)
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(self, data: Dict[str, Any], items: List[Dict[str, Any]]) -> Order:
        """Create an order with its items atomically.

        ``data`` keys: ``baker_id``, ``baker_email``, ``date_required``.
        ``items``: dicts of ``OrderItem`` field values.
        """
        order = Order(**data)
        order.save()
        OrderItem.objects.bulk_create(
            [OrderItem(order=order, **item_data) for item_data in items]
        )

        logger.info(
            "order.created",
            order_id=str(order.id),
            order_number=order.order_number,
            item_count=len(items),
        )
        return self.get_by_id(str(order.id)) or order

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def _base_queryset(self) -> QuerySet:
        return Order.objects.select_related("update_request").prefetch_related(
            "items", "stage_history"
        )

    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order with eager-loaded items, history and request.

        Returns ``None`` for non-existent or malformed IDs.
        """
        try:
            return self._base_queryset().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet:
        queryset = self._base_queryset()
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    # ------------------------------------------------------------------
    # Compare-and-swap
    # ------------------------------------------------------------------

    @transaction.atomic
    def compare_and_swap(
        self,
        order_id: Any,
        expected_version: int,
        fields: Dict[str, Any],
        history: Optional[HistoryEntry] = None,
    ) -> int:
        updated = Order.objects.filter(id=order_id, version=expected_version).update(
            version=F("version") + 1,
            updated_at=timezone.now(),
            **fields,
        )
        if not updated:
            if not Order.objects.filter(id=order_id).exists():
                raise OrderNotFound(f"Order {order_id} not found.")
            logger.warning(
                "order.version_conflict",
                order_id=str(order_id),
                expected_version=expected_version,
            )
            raise ConcurrencyConflict(order_id, expected_version)

        if history is not None:
            OrderStageHistory.objects.create(
                order_id=order_id,
                stage=history.stage,
                changed_by_id=history.changed_by,
                changed_at=history.changed_at,
                comments=history.comments,
            )
        return expected_version + 1

    # ------------------------------------------------------------------
    # Items
    # ------------------------------------------------------------------

    def _get_item(self, order_id: Any, item_id: Any) -> OrderItem:
        try:
            item = OrderItem.objects.filter(order_id=order_id, id=item_id).first()
        except (ValueError, ValidationError):
            item = None
        if item is None:
            raise ItemNotFound(f"Item {item_id} not found.")
        return item

    @transaction.atomic
    def add_item(
        self, order_id: Any, expected_version: int, data: Dict[str, Any]
    ) -> OrderItem:
        self.compare_and_swap(order_id, expected_version, {})
        item = OrderItem.objects.create(order_id=order_id, **data)
        logger.info("order.item_added", order_id=str(order_id), item_id=str(item.id))
        return item

    @transaction.atomic
    def update_item(
        self,
        order_id: Any,
        expected_version: int,
        item_id: Any,
        changes: Dict[str, Any],
    ) -> OrderItem:
        item = self._get_item(order_id, item_id)
        self.compare_and_swap(order_id, expected_version, {})
        for field, value in changes.items():
            setattr(item, field, value)
        item.save(update_fields=list(changes))
        logger.info(
            "order.item_updated",
            order_id=str(order_id),
            item_id=str(item_id),
            fields=sorted(changes),
        )
        return item

    @transaction.atomic
    def delete_item(self, order_id: Any, expected_version: int, item_id: Any) -> None:
        item = self._get_item(order_id, item_id)
        self.compare_and_swap(order_id, expected_version, {})
        item.delete()
        logger.info("order.item_deleted", order_id=str(order_id), item_id=str(item_id))

    # ------------------------------------------------------------------
    # Image metadata
    # ------------------------------------------------------------------

    def append_item_images(
        self,
        order_id: Any,
        item_id: Any,
        field: str,
        images: List[Dict[str, str]],
    ) -> OrderItem:
        """Append to ``item.<field>``, re-reading after each lost race."""
        version = None
        for attempt in range(1, IMAGE_APPEND_MAX_RETRIES + 1):
            with transaction.atomic():
                version = (
                    Order.objects.filter(id=order_id)
                    .values_list("version", flat=True)
                    .first()
                )
                if version is None:
                    raise OrderNotFound(f"Order {order_id} not found.")
                item = self._get_item(order_id, item_id)
                try:
                    self.compare_and_swap(order_id, version, {})
                except ConcurrencyConflict:
                    logger.info(
                        "order.image_append_retry",
                        order_id=str(order_id),
                        attempt=attempt,
                    )
                    continue
                setattr(item, field, list(getattr(item, field) or []) + images)
                item.save(update_fields=[field])
                logger.info(
                    "order.images_appended",
                    order_id=str(order_id),
                    item_id=str(item_id),
                    field=field,
                    count=len(images),
                )
                return item
        raise ConcurrencyConflict(order_id, version or 0)

    @transaction.atomic
    def remove_item_image(
        self,
        order_id: Any,
        expected_version: int,
        item_id: Any,
        field: str,
        key: str,
    ) -> OrderItem:
        item = self._get_item(order_id, item_id)
        current = list(getattr(item, field) or [])
        remaining = [image for image in current if image.get("key") != key]
        if len(remaining) == len(current):
            raise ItemNotFound(f"Image {key} not found on item {item_id}.")
        self.compare_and_swap(order_id, expected_version, {})
        setattr(item, field, remaining)
        item.save(update_fields=[field])
        logger.info(
            "order.image_removed", order_id=str(order_id), item_id=str(item_id), key=key
        )
        return item

    # ------------------------------------------------------------------
    # Completion update request
    # ------------------------------------------------------------------

    def get_update_request(self, order_id: Any) -> Optional[CompletionUpdateRequest]:
        return CompletionUpdateRequest.objects.filter(order_id=order_id).first()

    @transaction.atomic
    def replace_update_request(
        self, order_id: Any, data: Dict[str, Any]
    ) -> CompletionUpdateRequest:
        CompletionUpdateRequest.objects.filter(order_id=order_id).delete()
        return CompletionUpdateRequest.objects.create(order_id=order_id, **data)

    @transaction.atomic
    def resolve_update_request(
        self, order_id: Any, data: Dict[str, Any]
    ) -> CompletionUpdateRequest:
        request = CompletionUpdateRequest.objects.get(order_id=order_id)
        for field, value in data.items():
            setattr(request, field, value)
        request.save(update_fields=list(data))
        return request

    def delete_update_request(self, order_id: Any) -> None:
        deleted, _ = CompletionUpdateRequest.objects.filter(order_id=order_id).delete()
        if deleted:
            logger.info("order.update_request_cleared", order_id=str(order_id))

    # ------------------------------------------------------------------
    # Delete / stats
    # ------------------------------------------------------------------

    @transaction.atomic
    def delete(self, id: str) -> bool:
        """Hard-delete an order; items, history and request cascade."""
        deleted, _ = Order.objects.filter(id=id).delete()
        if deleted:
            logger.info("order.deleted", order_id=str(id))
        return bool(deleted)

    def stage_counts(self, baker_id: Optional[str] = None) -> Dict[str, int]:
        queryset = Order.objects.all()
        if baker_id is not None:
            queryset = queryset.filter(baker_id=baker_id)
        counts = {stage.value: 0 for stage in Stage}
        for row in queryset.values("stage").annotate(count=Count("id")).order_by():
            counts[row["stage"]] = row["count"]
        return counts

    def pending_update_request_count(self, baker_id: Optional[str] = None) -> int:
        queryset = CompletionUpdateRequest.objects.filter(
            status=UpdateRequestStatus.PENDING
        )
        if baker_id is not None:
            queryset = queryset.filter(order__baker_id=baker_id)
        return queryset.count()
