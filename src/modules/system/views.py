"""System settings endpoints.

Any signed-in admin or baker may read the settings (bakers need the
supported-country list for the delivery form); only admins change them.
"""

from __future__ import annotations

from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.accounts.permissions import IsAdminRole, IsBakerOrAdmin
from modules.system.serializers import (
    InternationalSettingsSerializer,
    ResetSettingsSerializer,
    SupportedCountriesSerializer,
)
from modules.system.services import SystemSettingsService


class SettingsView(APIView):
    permission_classes = [IsBakerOrAdmin]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = SystemSettingsService()


class SystemSettingsView(SettingsView):
    def get(self, request: Request) -> Response:
        """GET /api/v1/settings/"""
        return Response(self._service.describe(request.actor))


class InternationalStatusView(SettingsView):
    def get(self, request: Request) -> Response:
        """GET /api/v1/settings/international/status/"""
        return Response(self._service.international_status())


class InternationalSettingsView(SettingsView):
    permission_classes = [IsAdminRole]

    def put(self, request: Request) -> Response:
        """PUT /api/v1/settings/international/"""
        serializer = InternationalSettingsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        enabled = serializer.validated_data["enabled"]
        self._service.set_international(
            request.actor, enabled, serializer.validated_data.get("notes")
        )
        state = "enabled" if enabled else "disabled"
        return Response(
            {
                "detail": f"International delivery {state} successfully.",
                **self._service.describe(request.actor),
            }
        )


class SupportedCountriesView(SettingsView):
    permission_classes = [IsAdminRole]

    def put(self, request: Request) -> Response:
        """PUT /api/v1/settings/international/countries/"""
        serializer = SupportedCountriesSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        stored = self._service.set_supported_countries(
            request.actor, serializer.validated_data["countries"]
        )
        return Response(
            {
                "supported_countries": stored.supported_countries,
                "count": len(stored.supported_countries),
            }
        )


class ResetSettingsView(SettingsView):
    permission_classes = [IsAdminRole]

    def post(self, request: Request) -> Response:
        """POST /api/v1/settings/reset/ with ``{"confirm_reset": true}``"""
        serializer = ResetSettingsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        self._service.reset(request.actor)
        return Response(
            {
                "detail": "Settings reset to defaults.",
                **self._service.describe(request.actor),
            }
        )
