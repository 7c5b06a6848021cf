from django.apps import AppConfig


class VehicleRequestsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "vehicle_requests"
    verbose_name = "Dealer vehicle requests"
