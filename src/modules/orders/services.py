"""Order service layer (Use Cases).

Orchestrates every order operation.  All write operations are atomic: the
service defines the unit-of-work boundary, and domain events are published
on the in-process bus only once that unit of work commits.

Business rules enforced:
- Bakers only ever see and touch their own orders.
- Stage changes go through ``StageTransitionValidator`` and
  ``plan_stage_change``; the repository applies the mutation with a
  compare-and-swap on ``Order.version`` and appends exactly one history row.
- Bakers edit orders, items and inspiration images only in Draft /
  Requested Changes; preview images and pricing are admin-only.
- Orders from Requires Approval onwards keep a positive price.
- Completion details follow ``modules.orders.completion``.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

import structlog
from django.db import transaction
from django.db.models import QuerySet
from django.utils import timezone

from modules.accounts.actor import Actor
from modules.orders.completion import (
    AddressPolicy,
    check_confirmable,
    check_resolvable,
    check_update_request_allowed,
    plan_completion_update,
)
from modules.orders.constants import (
    PRICED_STAGES,
    ImageKind,
    Stage,
    UpdateRequestStatus,
)
from modules.orders.events import (
    CompletionDetailsConfirmed,
    CompletionDetailsUpdated,
    CompletionUpdateRequested,
    CompletionUpdateResolved,
    OrderCreated,
    OrderDeleted,
    OrderStageChanged,
    OrderUpdated,
)
from modules.orders.exceptions import (
    AccessDenied,
    MissingPrice,
    OrderNotEditable,
    OrderNotFound,
)
from modules.orders.state_machine import StageTransitionValidator, plan_stage_change
from modules.system.models import SystemSettings
from shared.domain.bus import IEventBus
from shared.infrastructure.bus import event_bus as default_event_bus

if TYPE_CHECKING:
    from modules.orders.dtos import (
        AttachImagesDTO,
        CompletionUpdateDTO,
        CreateOrderDTO,
        CreateOrderItemDTO,
        RemoveImageDTO,
        ResolveUpdateRequestDTO,
        StageChangeDTO,
        UpdateOrderDTO,
        UpdateOrderItemDTO,
        UpdateRequestDTO,
    )
    from modules.orders.models import Order, OrderItem
    from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)


def _item_document(dto: CreateOrderItemDTO) -> Dict[str, Any]:
    return {
        "type": dto.type,
        "measurement_value": dto.measurement_value,
        "measurement_unit": dto.measurement_unit,
        "additional_comments": dto.additional_comments,
        "inspiration_images": [
            image.to_document() for image in dto.inspiration_images
        ],
        "preview_images": [],
    }


class OrderService:
    """Application service for Order use-cases.

    Receives its collaborators via constructor injection (DIP); the
    transition validator carries the transition table, so tests can
    substitute an alternate graph.
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        validator: Optional[StageTransitionValidator] = None,
        event_bus: Optional[IEventBus] = None,
        address_policy: Optional[AddressPolicy] = None,
        clock: Callable[[], datetime] = timezone.now,
    ) -> None:
        self._order_repo = order_repository
        self._validator = validator or StageTransitionValidator()
        self._event_bus = event_bus or default_event_bus
        self._address_policy = address_policy
        self._clock = clock

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _current_address_policy(self) -> AddressPolicy:
        # Read per call so admin changes apply without a restart.
        if self._address_policy is not None:
            return self._address_policy
        return AddressPolicy.from_system_settings(SystemSettings.load())

    def _load(self, order_id: Any) -> Order:
        order = self._order_repo.get_by_id(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def _load_visible(self, actor: Actor, order_id: Any) -> Order:
        order = self._load(order_id)
        if actor.is_baker and order.baker_id != actor.baker_id:
            logger.warning(
                "order.access_denied", order_id=str(order_id), actor_id=actor.id
            )
            raise AccessDenied()
        return order

    def _ensure_editable(self, order: Order, actor: Actor) -> None:
        if actor.is_admin:
            return
        if not order.is_baker_editable:
            raise OrderNotEditable(
                f"Order cannot be edited in stage {order.stage}.",
                current_stage=order.stage,
            )

    @staticmethod
    def _event_kwargs(order: Order, actor: Actor) -> Dict[str, Any]:
        return {
            "aggregate_id": order.id,
            "order_number": order.order_number,
            "baker_id": order.baker_id,
            "baker_email": order.baker_email,
            "actor_id": actor.id,
            "actor_email": actor.email,
        }

    def _dispatch_on_commit(self, order: Order) -> None:
        """Hand the aggregate's pending events to the bus after commit."""
        events = order.pull_domain_events()
        if events:
            transaction.on_commit(lambda: self._event_bus.publish_all(events))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def visible_orders(self, actor: Actor) -> QuerySet:
        if actor.is_admin:
            return self._order_repo.list()
        return self._order_repo.list({"baker_id": actor.baker_id})

    def get_order(self, actor: Actor, order_id: Any) -> Order:
        """Retrieve a single order.

        Raises:
            OrderNotFound: the order does not exist.
            AccessDenied: a baker asked for another baker's order.
        """
        return self._load_visible(actor, order_id)

    def allowed_stages(self, actor: Actor, order: Order) -> List[str]:
        """Stages ``actor`` may move ``order`` to next, in lifecycle order."""
        if actor.is_baker and order.baker_id != actor.baker_id:
            return []
        allowed = self._validator.table.allowed_targets(actor.role, order.stage)
        return [stage for stage in Stage.values if stage in allowed]

    def stats(self, actor: Actor) -> Dict[str, Any]:
        baker_id = None if actor.is_admin else actor.baker_id
        by_stage = self._order_repo.stage_counts(baker_id)
        return {
            "total": sum(by_stage.values()),
            "by_stage": by_stage,
            "pending_update_requests": (
                self._order_repo.pending_update_request_count(baker_id)
            ),
        }

    # ------------------------------------------------------------------
    # Order commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_order(self, actor: Actor, dto: CreateOrderDTO) -> Order:
        """Create a Draft order owned by the requesting baker.

        No stage history is written on creation.

        Raises:
            AccessDenied: the actor is not a baker.
        """
        if not actor.is_baker:
            raise AccessDenied("Only bakers can create orders.")

        log = logger.bind(baker_id=actor.baker_id)
        log.info("order.creation_started", item_count=len(dto.items))

        order = self._order_repo.create(
            {
                "baker_id": actor.baker_id,
                "baker_email": actor.email,
                "date_required": dto.date_required,
            },
            [_item_document(item) for item in dto.items],
        )
        order.add_domain_event(OrderCreated(**self._event_kwargs(order, actor)))
        self._dispatch_on_commit(order)
        log.info("order.creation_completed", order_id=str(order.id))
        return order

    @transaction.atomic
    def update_order(self, actor: Actor, order_id: Any, dto: UpdateOrderDTO) -> Order:
        order = self._load_visible(actor, order_id)
        changes = dto.changes()
        if "price" in changes and not actor.is_admin:
            raise AccessDenied("Only admins can set the price.")
        if "price" in changes and order.stage in PRICED_STAGES:
            price = changes["price"]
            if price is None or price <= 0:
                raise MissingPrice()
        self._ensure_editable(order, actor)
        if not changes:
            return order

        self._order_repo.compare_and_swap(order.id, order.version, changes)
        order.add_domain_event(
            OrderUpdated(change="order", **self._event_kwargs(order, actor))
        )
        self._dispatch_on_commit(order)
        logger.info("order.updated", order_id=str(order.id), fields=sorted(changes))
        return self._load(order.id)

    @transaction.atomic
    def delete_order(self, actor: Actor, order_id: Any) -> None:
        """Hard-delete an order.

        Bakers may delete their own orders in Draft / Requested Changes only;
        admins may delete any order.
        """
        order = self._load_visible(actor, order_id)
        if actor.is_baker and not order.is_baker_editable:
            raise OrderNotEditable(
                "Orders can only be deleted in Draft or Requested Changes.",
                current_stage=order.stage,
            )
        if not self._order_repo.delete(str(order.id)):
            raise OrderNotFound(f"Order {order_id} not found.")
        order.add_domain_event(OrderDeleted(**self._event_kwargs(order, actor)))
        self._dispatch_on_commit(order)

    @transaction.atomic
    def change_stage(self, actor: Actor, order_id: Any, dto: StageChangeDTO) -> Order:
        """Move an order to ``dto.stage``.

        Validation happens entirely before the write; the stage, optional
        price and the history entry are persisted in one compare-and-swap.

        Raises:
            OrderNotFound, AccessDenied, InvalidTransition, MissingPrice,
            IncompleteSubmission, ConcurrencyConflict.
        """
        order = self._load(order_id)
        state = order.to_state()
        log = logger.bind(
            order_id=str(order.id),
            actor_id=actor.id,
            current_stage=state.stage,
            target_stage=dto.stage,
        )

        validated = self._validator.validate(state, actor, dto.stage, dto.price)
        mutation = plan_stage_change(
            state,
            validated.target_stage,
            actor,
            dto.comments,
            self._clock(),
            price=validated.price,
        )
        self._order_repo.compare_and_swap(
            order.id, state.version, dict(mutation.fields), mutation.history
        )

        if mutation.changed:
            order.add_domain_event(
                OrderStageChanged(
                    previous_stage=mutation.previous_stage,
                    new_stage=validated.target_stage,
                    comments=dto.comments,
                    **self._event_kwargs(order, actor),
                )
            )
            self._dispatch_on_commit(order)
        log.info("order.stage_changed")
        return self._load(order.id)

    # ------------------------------------------------------------------
    # Items
    # ------------------------------------------------------------------

    @transaction.atomic
    def add_item(self, actor: Actor, order_id: Any, dto: CreateOrderItemDTO) -> Order:
        order = self._load_visible(actor, order_id)
        self._ensure_editable(order, actor)
        self._order_repo.add_item(order.id, order.version, _item_document(dto))
        order.add_domain_event(
            OrderUpdated(change="items", **self._event_kwargs(order, actor))
        )
        self._dispatch_on_commit(order)
        return self._load(order.id)

    @transaction.atomic
    def update_item(
        self,
        actor: Actor,
        order_id: Any,
        item_id: Any,
        dto: UpdateOrderItemDTO,
    ) -> Order:
        order = self._load_visible(actor, order_id)
        self._ensure_editable(order, actor)
        changes = dto.changes()
        if changes:
            self._order_repo.update_item(order.id, order.version, item_id, changes)
            order.add_domain_event(
                OrderUpdated(change="items", **self._event_kwargs(order, actor))
            )
            self._dispatch_on_commit(order)
        return self._load(order.id)

    @transaction.atomic
    def delete_item(self, actor: Actor, order_id: Any, item_id: Any) -> Order:
        order = self._load_visible(actor, order_id)
        self._ensure_editable(order, actor)
        self._order_repo.delete_item(order.id, order.version, item_id)
        order.add_domain_event(
            OrderUpdated(change="items", **self._event_kwargs(order, actor))
        )
        self._dispatch_on_commit(order)
        return self._load(order.id)

    # ------------------------------------------------------------------
    # Image metadata
    # ------------------------------------------------------------------

    def _ensure_can_manage_images(
        self, order: Order, actor: Actor, kind: str
    ) -> None:
        if kind == ImageKind.PREVIEW:
            if not actor.is_admin:
                raise AccessDenied("Only admins can manage preview images.")
            return
        self._ensure_editable(order, actor)

    @transaction.atomic
    def attach_images(
        self, actor: Actor, order_id: Any, item_id: Any, dto: AttachImagesDTO
    ) -> OrderItem:
        """Append image metadata to an item (retried on version conflicts)."""
        order = self._load_visible(actor, order_id)
        self._ensure_can_manage_images(order, actor, dto.kind)
        item = self._order_repo.append_item_images(
            order.id,
            item_id,
            f"{dto.kind}_images",
            [image.to_document() for image in dto.images],
        )
        order.add_domain_event(
            OrderUpdated(change="images", **self._event_kwargs(order, actor))
        )
        self._dispatch_on_commit(order)
        return item

    @transaction.atomic
    def remove_image(
        self, actor: Actor, order_id: Any, item_id: Any, dto: RemoveImageDTO
    ) -> OrderItem:
        order = self._load_visible(actor, order_id)
        self._ensure_can_manage_images(order, actor, dto.kind)
        item = self._order_repo.remove_item_image(
            order.id, order.version, item_id, f"{dto.kind}_images", dto.key
        )
        order.add_domain_event(
            OrderUpdated(change="images", **self._event_kwargs(order, actor))
        )
        self._dispatch_on_commit(order)
        return item

    # ------------------------------------------------------------------
    # Completion sub-workflow
    # ------------------------------------------------------------------

    @transaction.atomic
    def update_completion(
        self, actor: Actor, order_id: Any, dto: CompletionUpdateDTO
    ) -> Order:
        """Set delivery / payment details on a Completed order.

        A successful update discards an archived (resolved) update request.
        """
        order = self._load(order_id)
        fields = plan_completion_update(
            order, actor, dto, self._clock(), self._current_address_policy()
        )
        self._order_repo.compare_and_swap(order.id, order.version, fields)

        existing = order.current_update_request
        if existing is not None and not existing.is_pending:
            self._order_repo.delete_update_request(order.id)

        order.add_domain_event(
            CompletionDetailsUpdated(**self._event_kwargs(order, actor))
        )
        self._dispatch_on_commit(order)
        logger.info(
            "order.completion_updated",
            order_id=str(order.id),
            delivery_method=fields["delivery_method"],
        )
        return self._load(order.id)

    @transaction.atomic
    def confirm_completion(self, actor: Actor, order_id: Any) -> Order:
        order = self._load(order_id)
        now = self._clock()
        check_confirmable(order, actor, now, self._current_address_policy())
        self._order_repo.compare_and_swap(
            order.id,
            order.version,
            {
                "details_confirmed": True,
                "details_confirmed_at": now,
                "details_confirmed_by_id": actor.id,
            },
        )
        order.add_domain_event(
            CompletionDetailsConfirmed(
                delivery_method=order.delivery_method,
                payment_method=order.payment_method,
                pickup_schedule=order.pickup_schedule,
                delivery_address=order.delivery_address,
                **self._event_kwargs(order, actor),
            )
        )
        self._dispatch_on_commit(order)
        logger.info("order.completion_confirmed", order_id=str(order.id))
        return self._load(order.id)

    @transaction.atomic
    def request_completion_update(
        self, actor: Actor, order_id: Any, dto: UpdateRequestDTO
    ) -> Order:
        order = self._load(order_id)
        check_update_request_allowed(order, actor, order.current_update_request)
        self._order_repo.compare_and_swap(order.id, order.version, {})
        self._order_repo.replace_update_request(
            order.id,
            {
                "requested_by_id": actor.id,
                "requested_at": self._clock(),
                "requested_changes": dto.requested_changes,
                "reason": dto.reason,
                "status": UpdateRequestStatus.PENDING,
            },
        )
        order.add_domain_event(
            CompletionUpdateRequested(
                reason=dto.reason,
                requested_changes=dto.requested_changes,
                **self._event_kwargs(order, actor),
            )
        )
        self._dispatch_on_commit(order)
        logger.info("order.update_requested", order_id=str(order.id))
        return self._load(order.id)

    @transaction.atomic
    def resolve_completion_update(
        self, actor: Actor, order_id: Any, dto: ResolveUpdateRequestDTO
    ) -> Order:
        """Approve (unlocks the details) or reject a pending update request."""
        order = self._load(order_id)
        check_resolvable(actor, order.current_update_request)

        approved = dto.action == "approve"
        unlock = (
            {
                "details_confirmed": False,
                "details_confirmed_at": None,
                "details_confirmed_by_id": None,
            }
            if approved
            else {}
        )
        self._order_repo.compare_and_swap(order.id, order.version, unlock)
        self._order_repo.resolve_update_request(
            order.id,
            {
                "status": (
                    UpdateRequestStatus.APPROVED
                    if approved
                    else UpdateRequestStatus.REJECTED
                ),
                "admin_response": dto.admin_response,
                "responded_by_id": actor.id,
                "responded_at": self._clock(),
            },
        )
        order.add_domain_event(
            CompletionUpdateResolved(
                action=dto.action,
                admin_response=dto.admin_response,
                **self._event_kwargs(order, actor),
            )
        )
        self._dispatch_on_commit(order)
        logger.info(
            "order.update_request_resolved", order_id=str(order.id), action=dto.action
        )
        return self._load(order.id)
