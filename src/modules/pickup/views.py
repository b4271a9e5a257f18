"""Pickup information endpoints (read-only apart from slot validation)."""

from __future__ import annotations

from datetime import date

from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.accounts.permissions import IsBakerOrAdmin
from modules.pickup.exceptions import InvalidPickupSlot
from modules.pickup.serializers import ValidateSlotSerializer
from modules.pickup.services import PickupService


class PickupView(APIView):
    permission_classes = [IsBakerOrAdmin]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = PickupService()


class PickupLocationView(PickupView):
    def get(self, request: Request) -> Response:
        """GET /api/v1/pickup/location/"""
        return Response(self._service.location())


class PickupAvailabilityView(PickupView):
    def get(self, request: Request, day: str) -> Response:
        """GET /api/v1/pickup/availability/{YYYY-MM-DD}/"""
        try:
            requested = date.fromisoformat(day)
        except ValueError:
            return Response(
                {"detail": "Date must be in YYYY-MM-DD format."},
                status=status.HTTP_400_BAD_REQUEST,
            )
        return Response(self._service.availability(requested))


class ValidatePickupSlotView(PickupView):
    def post(self, request: Request) -> Response:
        """POST /api/v1/pickup/validate-slot/"""
        serializer = ValidateSlotSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            slot = self._service.validate_slot(
                serializer.validated_data["date"], serializer.validated_data["time"]
            )
        except InvalidPickupSlot as exc:
            return Response(
                {"detail": exc.message, "valid": False},
                status=status.HTTP_400_BAD_REQUEST,
            )
        return Response(
            {"detail": "Pickup time slot is valid", "valid": True, **slot}
        )
