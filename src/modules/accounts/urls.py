"""Account URL configuration."""

from __future__ import annotations

from django.urls import path
from rest_framework.routers import DefaultRouter

from modules.accounts.views import (
    BakerStatsView,
    BakerViewSet,
    ChangePasswordView,
    ProfileView,
)

router = DefaultRouter(trailing_slash=True)
router.register("users/bakers", BakerViewSet, basename="baker")

urlpatterns = [
    path("users/stats/", BakerStatsView.as_view(), name="baker_stats"),
    path("users/profile/", ProfileView.as_view(), name="profile"),
    path(
        "users/profile/password/",
        ChangePasswordView.as_view(),
        name="change_password",
    ),
] + router.urls
