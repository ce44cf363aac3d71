from django.apps import AppConfig


class VaultConfig(AppConfig):
    name = 'vault'
    verbose_name = 'File vault'

    def ready(self):
        from . import checks  # noqa: F401
