from django.apps import AppConfig


class PrelimsConfig(AppConfig):
    name = "apps.prelims"
    label = "prelims"
