from django.apps import AppConfig


class ModulesConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.modules'
    verbose_name = 'Module Access'

    def ready(self):
        """Import signals when app is ready."""
        import apps.modules.signals  # noqa
