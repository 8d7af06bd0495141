from django.apps import AppConfig


class MainsConfig(AppConfig):
    name = "apps.mains"
    label = "mains"
