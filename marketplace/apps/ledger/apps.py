from django.apps import AppConfig


class LedgerConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "marketplace.apps.ledger"
    verbose_name = "Settlement ledger"

    def ready(self):
        import marketplace.apps.ledger.signals  # noqa
