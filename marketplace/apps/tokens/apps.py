from django.apps import AppConfig


class TokensConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'marketplace.apps.tokens'
    verbose_name = 'Tokens'
    
    def ready(self):
        import marketplace.apps.tokens.signals  # noqa
