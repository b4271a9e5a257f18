"""Order API views.

Exposes the ``OrderService`` via HTTP using DRF ViewSets.
Domain exceptions are caught and translated into HTTP status codes; the view
never swallows generic exceptions.
"""

from __future__ import annotations

from typing import Any

from django_filters.rest_framework import DjangoFilterBackend
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.accounts.permissions import IsBakerOrAdmin
from modules.core.pagination import StandardResultsSetPagination
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
from modules.orders.exceptions import (
    AccessDenied,
    ConcurrencyConflict,
    ItemNotFound,
    OrderDomainError,
    OrderNotFound,
)
from modules.orders.filters import OrderFilter
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import (
    AttachImagesSerializer,
    CompletionDetailsSerializer,
    CreateOrderItemSerializer,
    CreateOrderSerializer,
    OrderItemSerializer,
    OrderListSerializer,
    OrderSerializer,
    RemoveImageSerializer,
    RequestCompletionUpdateSerializer,
    ResolveCompletionUpdateSerializer,
    StageChangeSerializer,
    UpdateOrderItemSerializer,
    UpdateOrderSerializer,
)
from modules.orders.services import OrderService

ERROR_STATUS = (
    ((OrderNotFound, ItemNotFound), status.HTTP_404_NOT_FOUND),
    ((AccessDenied,), status.HTTP_403_FORBIDDEN),
    ((ConcurrencyConflict,), status.HTTP_409_CONFLICT),
)


def domain_error_response(exc: OrderDomainError) -> Response:
    for exc_types, http_status in ERROR_STATUS:
        if isinstance(exc, exc_types):
            return Response(exc.to_dict(), status=http_status)
    return Response(exc.to_dict(), status=status.HTTP_400_BAD_REQUEST)


def invalid_payload_response(exc: PydanticValidationError) -> Response:
    return Response(
        {
            "detail": "Invalid payload.",
            "errors": exc.errors(include_url=False, include_input=False),
        },
        status=status.HTTP_400_BAD_REQUEST,
    )


class OrderViewSet(GenericViewSet):
    """ViewSet for Order operations.

    Uses ``OrderService`` with an injected repository (DIP).
    Does **not** extend ``ModelViewSet``: all ORM access goes through
    the service/repository layer.
    """

    queryset = Order.objects.none()
    permission_classes = [IsBakerOrAdmin]
    filterset_class = OrderFilter
    ordering_fields = ["created_at", "date_required", "stage", "price"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = OrderService(order_repository=OrderDjangoRepository())

    def get_throttles(self) -> list[BaseThrottle]:
        """Per-action throttle scopes."""
        throttle_scope: str | None
        if self.action == "create":
            throttle_scope = "order_creation"
        elif self.action in {"list", "retrieve"}:
            throttle_scope = "order_listing"
        else:
            throttle_scope = None
        self.throttle_scope = throttle_scope
        return super().get_throttles()

    def get_queryset(self):
        if getattr(self, "swagger_fake_view", False):
            return Order.objects.none()
        return self._service.visible_orders(self.request.actor)

    def _detail(self, request: Request, order: Order, **kwargs: Any) -> Response:
        serializer = OrderSerializer(
            order,
            context={
                "request": request,
                "service": self._service,
                "actor": request.actor,
            },
        )
        return Response(serializer.data, **kwargs)

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/

        Admins see every order, bakers only their own.  Filtering is handled
        by ``OrderFilter``; results are paginated, newest first.
        """
        queryset = self.filter_queryset(self.get_queryset())

        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(queryset, request)
        serializer = OrderListSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        try:
            order = self._service.get_order(request.actor, pk)
        except OrderDomainError as exc:
            return domain_error_response(exc)
        return self._detail(request, order)

    # ------------------------------------------------------------------
    # Create / Update / Delete
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/

        Bakers only.  The order starts in Draft with no stage history.
        """
        serializer = CreateOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            dto = CreateOrderDTO.model_validate(serializer.validated_data)
            order = self._service.create_order(request.actor, dto)
        except PydanticValidationError as exc:
            return invalid_payload_response(exc)
        except OrderDomainError as exc:
            return domain_error_response(exc)
        return self._detail(request, order, status=status.HTTP_201_CREATED)

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/orders/{pk}/

        Updates ``date_required`` and, for admins, ``price``.  Stage changes
        go through ``PUT /orders/{pk}/stage/``.
        """
        serializer = UpdateOrderSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        try:
            dto = UpdateOrderDTO.model_validate(serializer.validated_data)
            order = self._service.update_order(request.actor, pk, dto)
        except PydanticValidationError as exc:
            return invalid_payload_response(exc)
        except OrderDomainError as exc:
            return domain_error_response(exc)
        return self._detail(request, order)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/orders/{pk}/"""
        try:
            self._service.delete_order(request.actor, pk)
        except OrderDomainError as exc:
            return domain_error_response(exc)
        return Response(status=status.HTTP_204_NO_CONTENT)

    # ------------------------------------------------------------------
    # Stage transitions
    # ------------------------------------------------------------------

    @action(detail=True, methods=["put"])
    def stage(self, request: Request, pk: str | None = None) -> Response:
        """PUT /api/v1/orders/{pk}/stage/

        Body: ``{"stage": ..., "comments": ..., "price": ...}``.  ``price`` is
        required when moving to Requires Approval without a stored price.
        """
        serializer = StageChangeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            dto = StageChangeDTO.model_validate(serializer.validated_data)
            order = self._service.change_stage(request.actor, pk, dto)
        except PydanticValidationError as exc:
            return invalid_payload_response(exc)
        except OrderDomainError as exc:
            return domain_error_response(exc)
        return self._detail(request, order)

    # ------------------------------------------------------------------
    # Items and image metadata
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post"])
    def items(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/items/"""
        serializer = CreateOrderItemSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            dto = CreateOrderItemDTO.model_validate(serializer.validated_data)
            order = self._service.add_item(request.actor, pk, dto)
        except PydanticValidationError as exc:
            return invalid_payload_response(exc)
        except OrderDomainError as exc:
            return domain_error_response(exc)
        return self._detail(request, order, status=status.HTTP_201_CREATED)

    @action(
        detail=True,
        methods=["patch", "delete"],
        url_path=r"items/(?P<item_id>[^/.]+)",
    )
    def item_detail(
        self, request: Request, pk: str | None = None, item_id: str | None = None
    ) -> Response:
        """PATCH / DELETE /api/v1/orders/{pk}/items/{item_id}/"""
        try:
            if request.method == "DELETE":
                order = self._service.delete_item(request.actor, pk, item_id)
                return self._detail(request, order)

            serializer = UpdateOrderItemSerializer(data=request.data, partial=True)
            serializer.is_valid(raise_exception=True)
            dto = UpdateOrderItemDTO.model_validate(serializer.validated_data)
            order = self._service.update_item(request.actor, pk, item_id, dto)
        except PydanticValidationError as exc:
            return invalid_payload_response(exc)
        except OrderDomainError as exc:
            return domain_error_response(exc)
        return self._detail(request, order)

    @action(
        detail=True,
        methods=["post"],
        url_path=r"items/(?P<item_id>[^/.]+)/images",
    )
    def item_images(
        self, request: Request, pk: str | None = None, item_id: str | None = None
    ) -> Response:
        """POST /api/v1/orders/{pk}/items/{item_id}/images/

        Appends object-storage metadata; the upload itself happens elsewhere.
        """
        serializer = AttachImagesSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            dto = AttachImagesDTO.model_validate(serializer.validated_data)
            item = self._service.attach_images(request.actor, pk, item_id, dto)
        except PydanticValidationError as exc:
            return invalid_payload_response(exc)
        except OrderDomainError as exc:
            return domain_error_response(exc)
        return Response(OrderItemSerializer(item).data, status=status.HTTP_201_CREATED)

    @action(
        detail=True,
        methods=["post"],
        url_path=r"items/(?P<item_id>[^/.]+)/images/remove",
    )
    def remove_item_image(
        self, request: Request, pk: str | None = None, item_id: str | None = None
    ) -> Response:
        """POST /api/v1/orders/{pk}/items/{item_id}/images/remove/"""
        serializer = RemoveImageSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            dto = RemoveImageDTO.model_validate(serializer.validated_data)
            item = self._service.remove_image(request.actor, pk, item_id, dto)
        except PydanticValidationError as exc:
            return invalid_payload_response(exc)
        except OrderDomainError as exc:
            return domain_error_response(exc)
        return Response(OrderItemSerializer(item).data)

    # ------------------------------------------------------------------
    # Completion sub-workflow
    # ------------------------------------------------------------------

    @action(detail=True, methods=["put"])
    def completion(self, request: Request, pk: str | None = None) -> Response:
        """PUT /api/v1/orders/{pk}/completion/

        Sets delivery and payment details on a Completed order.
        """
        serializer = CompletionDetailsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            dto = CompletionUpdateDTO.model_validate(serializer.validated_data)
            order = self._service.update_completion(request.actor, pk, dto)
        except PydanticValidationError as exc:
            return invalid_payload_response(exc)
        except OrderDomainError as exc:
            return domain_error_response(exc)
        return self._detail(request, order)

    @action(detail=True, methods=["post"], url_path="completion/confirm")
    def confirm_completion(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/completion/confirm/"""
        try:
            order = self._service.confirm_completion(request.actor, pk)
        except OrderDomainError as exc:
            return domain_error_response(exc)
        return self._detail(request, order)

    @action(detail=True, methods=["post"], url_path="update-request")
    def update_request(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/update-request/

        A baker asks an admin to reopen confirmed details.
        """
        serializer = RequestCompletionUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            dto = UpdateRequestDTO.model_validate(serializer.validated_data)
            order = self._service.request_completion_update(request.actor, pk, dto)
        except PydanticValidationError as exc:
            return invalid_payload_response(exc)
        except OrderDomainError as exc:
            return domain_error_response(exc)
        return self._detail(request, order, status=status.HTTP_201_CREATED)

    @action(
        detail=True,
        methods=["put"],
        url_path=r"update-request/(?P<decision>approve|reject)",
    )
    def resolve_update_request(
        self, request: Request, pk: str | None = None, decision: str | None = None
    ) -> Response:
        """PUT /api/v1/orders/{pk}/update-request/{approve|reject}/"""
        serializer = ResolveCompletionUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            dto = ResolveUpdateRequestDTO(
                action=decision,
                admin_response=serializer.validated_data["admin_response"],
            )
            order = self._service.resolve_completion_update(request.actor, pk, dto)
        except PydanticValidationError as exc:
            return invalid_payload_response(exc)
        except OrderDomainError as exc:
            return domain_error_response(exc)
        return self._detail(request, order)

    # ------------------------------------------------------------------
    # Stats
    # ------------------------------------------------------------------

    @action(detail=False, methods=["get"], url_path="stats/overview")
    def stats(self, request: Request) -> Response:
        """GET /api/v1/orders/stats/overview/"""
        return Response(self._service.stats(request.actor))
