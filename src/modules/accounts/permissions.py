"""DRF permission classes for the two order-system roles."""

from rest_framework import permissions

from modules.accounts.actor import Actor


class IsBakerOrAdmin(permissions.BasePermission):
    """Authenticated user holding either the baker or the admin role."""

    message = "Baker or Admin access required."

    def has_permission(self, request, view) -> bool:
        user = getattr(request, "user", None)
        if not user or not user.is_authenticated:
            return False
        actor = Actor.from_user(user)
        if actor is None:
            return False
        request.actor = actor
        return actor.is_admin or actor.is_baker


class IsAdminRole(IsBakerOrAdmin):
    message = "Admin access required."

    def has_permission(self, request, view) -> bool:
        return super().has_permission(request, view) and request.actor.is_admin
