from django.apps import AppConfig


class AttemptsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'attempts'
    verbose_name = 'Quiz attempt engine'
