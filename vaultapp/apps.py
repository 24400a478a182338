from django.apps import AppConfig


class VaultAppConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "vaultapp"
    verbose_name = "Vault"

    def ready(self):
        import vaultapp.signals
