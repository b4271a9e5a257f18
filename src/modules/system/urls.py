"""System settings URL configuration."""

from django.urls import path

from modules.system.views import (
    InternationalSettingsView,
    InternationalStatusView,
    ResetSettingsView,
    SupportedCountriesView,
    SystemSettingsView,
)

urlpatterns = [
    path("settings/", SystemSettingsView.as_view(), name="system_settings"),
    path(
        "settings/international/",
        InternationalSettingsView.as_view(),
        name="international_settings",
    ),
    path(
        "settings/international/status/",
        InternationalStatusView.as_view(),
        name="international_status",
    ),
    path(
        "settings/international/countries/",
        SupportedCountriesView.as_view(),
        name="supported_countries",
    ),
    path("settings/reset/", ResetSettingsView.as_view(), name="reset_settings"),
]
