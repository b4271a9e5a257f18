"""Pickup URL configuration."""

from django.urls import path

from modules.pickup.views import (
    PickupAvailabilityView,
    PickupLocationView,
    ValidatePickupSlotView,
)

urlpatterns = [
    path("pickup/location/", PickupLocationView.as_view(), name="pickup_location"),
    path(
        "pickup/availability/<str:day>/",
        PickupAvailabilityView.as_view(),
        name="pickup_availability",
    ),
    path(
        "pickup/validate-slot/",
        ValidatePickupSlotView.as_view(),
        name="pickup_validate_slot",
    ),
]
