# translatable_select/services/locales.py
from __future__ import annotations

import logging
import threading
from typing import Any, Iterable, Mapping, Optional, Sequence

from django.apps import apps
from django.conf import settings
from django.db import models
from django.utils import translation
from django.utils.translation import gettext_lazy as _

from translatable_select import conf
from translatable_select import translatable

logger = logging.getLogger(__name__)

# آخر خيار لو فشلت كل المصادر
HARD_FALLBACK_LOCALES = ("en",)


class LocaleStrategy(models.TextChoices):
    AUTO = "auto", _("Auto (modeltranslation, then settings)")
    MODELTRANSLATION = "modeltranslation", _("django-modeltranslation languages")
    CONFIG = "config", _("Project settings")
    MANUAL = "manual", _("Manual list")

    @classmethod
    def parse(cls, value: Any) -> "LocaleStrategy":
        if isinstance(value, cls):
            return value
        raw = str(value or "").strip().lower()
        if raw == "filament":
            # old name for the translation-plugin source
            return cls.MODELTRANSLATION
        try:
            return cls(raw)
        except ValueError:
            logger.warning("Unknown locale strategy %r, using 'auto'", value)
            return cls.AUTO


# ============================================================
# Process-wide cache (single slot)
# ============================================================
_cache_lock = threading.Lock()
_cached_locales: Optional[list[str]] = None


def clear_locale_cache() -> None:
    global _cached_locales
    with _cache_lock:
        _cached_locales = None


def _read_cache() -> Optional[list[str]]:
    with _cache_lock:
        return list(_cached_locales) if _cached_locales is not None else None


def _write_cache(locales: Sequence[str]) -> None:
    global _cached_locales
    with _cache_lock:
        _cached_locales = list(locales)


def unique_locales(values: Any) -> list[str]:
    """
    Normalize a locale list, keeping first-seen order.

    Accepts plain codes or Django-style (code, name) pairs:
        [("ar", "العربية"), ("en", "English"), "ar"] → ["ar", "en"]
    """
    if not values or isinstance(values, (str, bytes)):
        return []

    result: list[str] = []
    for item in values:
        if isinstance(item, (list, tuple)):
            item = item[0] if item else None
        if item is None:
            continue
        code = str(item).strip()
        if code and code not in result:
            result.append(code)
    return result


def _has_value(translations: Mapping[str, Any], locale: Optional[str]) -> bool:
    if not locale or locale not in translations:
        return False
    return translations[locale] not in (None, "")


# ============================================================
# Resolver
# ============================================================
class LocaleResolver:
    """
    Decide which locales matter for a lookup.

    ``current_locale`` / ``fallback_locale`` can be passed explicitly (per
    request); otherwise the active Django language and the configured
    FALLBACK_LOCALE are used.

    Nothing here raises because of configuration: a lookup that fails is
    treated as "not found" and the next source is tried.
    """

    def __init__(self, current_locale: Optional[str] = None, fallback_locale: Optional[str] = None):
        self._current_locale = current_locale
        self._fallback_locale = fallback_locale

    def _setting(self, name: str, default: Any = None) -> Any:
        try:
            return conf.get_setting(name, default)
        except Exception:
            logger.debug("Could not read TRANSLATABLE_SELECT[%s]", name, exc_info=True)
            return default

    # ------------------------------------------------------------------
    # Current / fallback
    # ------------------------------------------------------------------
    def get_current_locale(self) -> str:
        if self._current_locale:
            return self._current_locale
        return translation.get_language() or settings.LANGUAGE_CODE

    def get_fallback_locale(self) -> str:
        if self._fallback_locale:
            return self._fallback_locale
        return self._setting("FALLBACK_LOCALE") or HARD_FALLBACK_LOCALES[0]

    # ------------------------------------------------------------------
    # Available locales
    # ------------------------------------------------------------------
    def get_available_locales(self) -> list[str]:
        use_cache = bool(self._setting("CACHE_LOCALES", True))

        if use_cache:
            cached = _read_cache()
            if cached is not None:
                return cached

        locales = self._resolve_available_locales()

        if use_cache:
            _write_cache(locales)
        return list(locales)

    def _resolve_available_locales(self) -> list[str]:
        strategy = LocaleStrategy.parse(self._setting("LOCALE_STRATEGY", LocaleStrategy.AUTO))
        logger.debug("Resolving available locales with strategy %s", strategy.value)

        if strategy == LocaleStrategy.MANUAL:
            locales = unique_locales(self._setting("MANUAL_LOCALES"))
        elif strategy == LocaleStrategy.MODELTRANSLATION:
            locales = self._locales_from_modeltranslation()
        elif strategy == LocaleStrategy.CONFIG:
            locales = self._locales_from_config()
        else:
            locales = self._locales_from_modeltranslation() or self._locales_from_config()

        return locales or list(HARD_FALLBACK_LOCALES)

    def _locales_from_modeltranslation(self) -> list[str]:
        try:
            if not apps.is_installed("modeltranslation"):
                return []
            if not settings.is_overridden("MODELTRANSLATION_LANGUAGES"):
                return []
            return unique_locales(settings.MODELTRANSLATION_LANGUAGES)
        except Exception:
            logger.debug("modeltranslation locale lookup failed", exc_info=True)
            return []

    def _locales_from_config(self) -> list[str]:
        try:
            keys = self._setting("CONFIG_KEYS") or []
            for key in keys:
                try:
                    value = conf.lookup_setting(key)
                except Exception:
                    continue
                if not settings.is_overridden(key.split(".")[0]):
                    # Django's built-in default (e.g. the full LANGUAGES list)
                    continue
                locales = unique_locales(value)
                if locales:
                    return locales

            return unique_locales([settings.LANGUAGE_CODE, self.get_fallback_locale()])
        except Exception:
            logger.debug("Settings locale lookup failed", exc_info=True)
            return []

    # ------------------------------------------------------------------
    # Per-model
    # ------------------------------------------------------------------
    def get_model_locales(self, model) -> list[str]:
        if not self.is_translatable(model):
            return [self.get_current_locale()]

        hook = getattr(translatable.model_class(model), "get_translatable_locales", None)
        if callable(hook):
            try:
                locales = unique_locales(hook())
            except Exception:
                logger.debug("get_translatable_locales() failed on %r", model, exc_info=True)
                locales = []
            if locales:
                return locales

        return self.get_available_locales()

    def get_translatable_attributes(self, model) -> list[str]:
        return translatable.get_translatable_fields(model)

    def is_translatable(self, model) -> bool:
        return translatable.is_translatable(model)

    def get_best_locale_for_display(
        self,
        translations: Optional[Mapping[str, Any]],
        preferred_locale: Optional[str] = None,
    ) -> Optional[str]:
        """
        Priority: preferred → current → fallback → first non-empty value.
        """
        if not translations:
            return None

        for locale in (preferred_locale, self.get_current_locale(), self.get_fallback_locale()):
            if _has_value(translations, locale):
                return locale

        for locale, value in translations.items():
            if value not in (None, ""):
                return locale
        return None

    def resolve_search_locales(self, model, custom_locales: Optional[Iterable[str]] = None) -> list[str]:
        # قائمة فارغة صريحة تبقى فارغة
        if custom_locales is not None:
            return list(custom_locales)
        return self.get_model_locales(model)
