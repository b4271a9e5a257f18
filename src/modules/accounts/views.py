"""Account management endpoints.

Baker administration is admin-only; the profile and password endpoints
serve whichever admin or baker is signed in.
"""

from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import action
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework.viewsets import GenericViewSet

from modules.accounts.dtos import BakerDetailsDTO, ChangePasswordDTO, ProfileDTO
from modules.accounts.exceptions import AccountError, BakerNotFound
from modules.accounts.models import Account
from modules.accounts.permissions import IsAdminRole, IsBakerOrAdmin
from modules.accounts.serializers import (
    AccountSerializer,
    BakerDetailsSerializer,
    ChangePasswordSerializer,
    ProfileSerializer,
)
from modules.accounts.services import AccountService
from modules.core.pagination import StandardResultsSetPagination


def account_error_response(exc: AccountError) -> Response:
    if isinstance(exc, BakerNotFound):
        http_status = status.HTTP_404_NOT_FOUND
    else:
        http_status = status.HTTP_400_BAD_REQUEST
    return Response(exc.to_dict(), status=http_status)


class BakerViewSet(GenericViewSet):
    """Admin management of baker accounts under ``/api/v1/users/bakers/``."""

    queryset = Account.objects.none()
    permission_classes = [IsAdminRole]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = AccountService()

    def list(self, request: Request) -> Response:
        """GET /api/v1/users/bakers/ (newest first)"""
        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(self._service.bakers(), request)
        serializer = AccountSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        try:
            account = self._service.get_baker(pk)
        except AccountError as exc:
            return account_error_response(exc)
        return Response(AccountSerializer(account).data)

    def create(self, request: Request) -> Response:
        """POST /api/v1/users/bakers/

        Creates the account with a temporary password and emails it to the
        baker once the transaction commits.
        """
        serializer = BakerDetailsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            dto = BakerDetailsDTO.model_validate(serializer.validated_data)
            account = self._service.create_baker(request.actor, dto)
        except AccountError as exc:
            return account_error_response(exc)
        return Response(
            {
                "detail": "Baker account created successfully.",
                "baker": AccountSerializer(account).data,
                "email_queued": True,
            },
            status=status.HTTP_201_CREATED,
        )

    def update(self, request: Request, pk: str | None = None) -> Response:
        """PUT /api/v1/users/bakers/{pk}/"""
        serializer = BakerDetailsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            dto = BakerDetailsDTO.model_validate(serializer.validated_data)
            account = self._service.update_baker(request.actor, pk, dto)
        except AccountError as exc:
            return account_error_response(exc)
        return Response(AccountSerializer(account).data)

    @action(detail=True, methods=["put"], url_path="toggle-status")
    def toggle_status(self, request: Request, pk: str | None = None) -> Response:
        """PUT /api/v1/users/bakers/{pk}/toggle-status/"""
        try:
            account = self._service.toggle_active(request.actor, pk)
        except AccountError as exc:
            return account_error_response(exc)
        state = "activated" if account.user.is_active else "deactivated"
        return Response(
            {
                "detail": f"Baker {state} successfully.",
                "baker": AccountSerializer(account).data,
            }
        )

    @action(detail=True, methods=["post"], url_path="reset-password")
    def reset_password(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/users/bakers/{pk}/reset-password/"""
        try:
            self._service.reset_password(request.actor, pk)
        except AccountError as exc:
            return account_error_response(exc)
        return Response(
            {"detail": "Password reset. A temporary password was emailed."}
        )

    @action(detail=False, methods=["get"])
    def search(self, request: Request) -> Response:
        """GET /api/v1/users/bakers/search/?q=..."""
        query = request.query_params.get("q", "")
        try:
            results = list(self._service.search_bakers(query))
        except AccountError as exc:
            return account_error_response(exc)
        return Response(
            {
                "query": query.strip(),
                "results": AccountSerializer(results, many=True).data,
                "count": len(results),
            }
        )


class BakerStatsView(APIView):
    permission_classes = [IsAdminRole]

    def get(self, request: Request) -> Response:
        """GET /api/v1/users/stats/"""
        return Response(AccountService().baker_stats())


class ProfileView(APIView):
    permission_classes = [IsBakerOrAdmin]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = AccountService()

    def get(self, request: Request) -> Response:
        """GET /api/v1/users/profile/"""
        try:
            account = self._service.profile(request.actor)
        except AccountError as exc:
            return account_error_response(exc)
        return Response(AccountSerializer(account).data)

    def put(self, request: Request) -> Response:
        """PUT /api/v1/users/profile/ (name and phone number only)"""
        serializer = ProfileSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            dto = ProfileDTO.model_validate(serializer.validated_data)
            account = self._service.update_profile(request.actor, dto)
        except AccountError as exc:
            return account_error_response(exc)
        return Response(AccountSerializer(account).data)


class ChangePasswordView(APIView):
    permission_classes = [IsBakerOrAdmin]

    def post(self, request: Request) -> Response:
        """POST /api/v1/users/profile/password/

        Clears the first-login flag set by account creation or a reset.
        """
        serializer = ChangePasswordSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            dto = ChangePasswordDTO.model_validate(serializer.validated_data)
            AccountService().change_password(request.actor, dto)
        except AccountError as exc:
            return account_error_response(exc)
        return Response({"detail": "Password changed successfully."})
