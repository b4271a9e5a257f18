from django.apps import AppConfig


class PickupAppConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "modules.pickup"
    label = "pickup"
