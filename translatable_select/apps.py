# translatable_select/apps.py
from django.apps import AppConfig


class TranslatableSelectConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "translatable_select"
    verbose_name = "Translatable Select"

    def ready(self):
        # استيراد الإشارات
        from . import signals  # noqa: F401
