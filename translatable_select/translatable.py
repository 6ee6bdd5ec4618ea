# translatable_select/translatable.py
"""
Translation capability for Django models.

Two kinds of models count as "translatable":

1. Subclasses of ``TranslatableModel``: each field listed in ``translatable``
   is a JSONField holding a locale → string map, e.g.
   ``{"en": "Technology", "ar": "تكنولوجيا"}``.

2. Models registered with django-modeltranslation: each translated field has
   one column per language (``name_en``, ``name_ar``).

The rest of the app only talks to the free functions below, so it never
needs to know which of the two a model uses.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

from django.apps import apps
from django.db import models

logger = logging.getLogger(__name__)


# ============================================================
# JSON-backed translatable model
# ============================================================
class TranslatableModel(models.Model):
    """
    Abstract base for models that store translations as JSON maps.

    Usage:

        class Category(TranslatableModel):
            name = models.JSONField(default=dict)
            translatable = ["name"]
    """

    translatable: list[str] = []

    class Meta:
        abstract = True

    def get_translations(self, field: str) -> dict[str, Any]:
        if field not in self.translatable:
            return {}
        value = getattr(self, field, None)
        if not isinstance(value, dict):
            return {}
        return dict(value)

    def get_translation(self, field: str, locale: str, use_fallback: bool = True) -> str:
        translations = self.get_translations(field)
        value = translations.get(locale)
        if value not in (None, "") or not use_fallback:
            return "" if value is None else str(value)

        from .services import get_locale_resolver

        best = get_locale_resolver().get_best_locale_for_display(translations, locale)
        return str(translations[best]) if best else ""

    def set_translation(self, field: str, locale: str, value: Optional[str]):
        translations = self.get_translations(field)
        translations[locale] = value
        setattr(self, field, translations)
        return self

    def set_translations(self, field: str, translations: dict[str, Any]):
        setattr(self, field, dict(translations))
        return self


# ============================================================
# Capability helpers
# ============================================================
def model_class(model) -> Optional[type[models.Model]]:
    """Return the model class for a class or an instance, else None."""
    if isinstance(model, type) and issubclass(model, models.Model):
        return model
    if isinstance(model, models.Model):
        return type(model)
    return None


def _modeltranslation_options(model_cls):
    if model_cls is None or not apps.is_installed("modeltranslation"):
        return None

    from modeltranslation.translator import NotRegistered, translator

    try:
        return translator.get_options_for_model(model_cls)
    except NotRegistered:
        return None


def _modeltranslation_languages() -> list[str]:
    from modeltranslation import settings as mt_settings

    return list(mt_settings.AVAILABLE_LANGUAGES)


def is_translatable(model) -> bool:
    cls = model_class(model)
    if cls is None:
        return False
    if issubclass(cls, TranslatableModel):
        return True
    return _modeltranslation_options(cls) is not None


def get_translatable_fields(model) -> list[str]:
    cls = model_class(model)
    if cls is None:
        return []
    if issubclass(cls, TranslatableModel):
        return list(cls.translatable)

    opts = _modeltranslation_options(cls)
    if opts is None:
        return []
    # all_fields: {field_name: {TranslationField, ...}}, inherited fields included
    return list(opts.all_fields)


def get_non_translatable_search_fields(model) -> list[str]:
    cls = model_class(model)
    hook = getattr(cls, "get_non_translatable_search_fields", None)
    if not callable(hook):
        return []
    return list(hook() or [])


def get_translations(instance: models.Model, field: str) -> dict[str, Any]:
    """
    Return the locale → value map stored for ``field`` on ``instance``.

    Empty dict when the model or field is not translatable.
    """
    cls = model_class(instance)
    if cls is None:
        return {}
    if issubclass(cls, TranslatableModel):
        return instance.get_translations(field)

    if field not in get_translatable_fields(cls):
        return {}

    from modeltranslation.utils import build_localized_fieldname

    translations = {}
    for locale in _modeltranslation_languages():
        column = build_localized_fieldname(field, locale)
        if hasattr(instance, column):
            translations[locale] = getattr(instance, column)
    return translations


def get_localized_field_name(model, field: str, locale: str) -> Optional[str]:
    """
    For modeltranslation models return the per-language field name
    (``name`` + ``ar`` → ``name_ar``) or None if that language has no column.
    """
    cls = model_class(model)
    if _modeltranslation_options(cls) is None:
        return None

    from django.core.exceptions import FieldDoesNotExist
    from modeltranslation.utils import build_localized_fieldname

    name = build_localized_fieldname(field, locale)
    try:
        cls._meta.get_field(name)
    except FieldDoesNotExist:
        return None
    return name


def stores_json_translations(model) -> bool:
    cls = model_class(model)
    return cls is not None and issubclass(cls, TranslatableModel)
