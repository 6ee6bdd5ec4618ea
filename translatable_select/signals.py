# translatable_select/signals.py
import logging

from django.core.signals import setting_changed
from django.dispatch import receiver

from .services.locales import clear_locale_cache

logger = logging.getLogger(__name__)

LOCALE_SETTINGS = {
    "TRANSLATABLE_SELECT",
    "LANGUAGES",
    "LANGUAGE_CODE",
    "MODELTRANSLATION_LANGUAGES",
    "INSTALLED_APPS",
}


@receiver(setting_changed)
def reset_locale_cache(sender, setting, **kwargs):
    """
    override_settings() في الاختبارات يغير مصدر اللغات،
    لذلك نفرغ الكاش حتى لا نرجع قائمة قديمة.
    """
    if setting in LOCALE_SETTINGS:
        logger.debug("Setting %s changed, clearing locale cache", setting)
        clear_locale_cache()
