# translatable_select/conf.py
from __future__ import annotations

import os
from typing import Any

from django.conf import settings

SETTINGS_NAME = "TRANSLATABLE_SELECT"

# ============================================================
# Defaults
# ============================================================
# كل مفتاح هنا يمكن تغييره من settings.TRANSLATABLE_SELECT
DEFAULTS: dict[str, Any] = {
    # أقصى عدد للنتائج في البحث
    "DEFAULT_LIMIT": 50,

    # auto | modeltranslation | config | manual
    "LOCALE_STRATEGY": os.getenv("TRANSLATABLE_SEARCH_LOCALE_STRATEGY", "auto"),

    # used only with the "manual" strategy
    "MANUAL_LOCALES": ["en", "ckb", "ar"],

    # Dotted settings paths checked in order by the "config" strategy.
    "CONFIG_KEYS": [
        "SUPPORTED_LOCALES",
        "LOCALES",
        "TRANSLATABLE.locales",
        "LANGUAGES",
    ],

    "CACHE_LOCALES": True,
    "FALLBACK_LOCALE": "en",

    "DATABASE": {
        "CASE_INSENSITIVE": True,
        # {field} → quoted table.column, {locale} → locale code, %s → search term
        # both sides are folded in SQL so the comparison uses one LOWER()
        "JSON_EXTRACTION": {
            "sqlite": "LOWER(json_extract({field}, '$.\"{locale}\"')) LIKE LOWER(%s)",
            "mysql": "LOWER(JSON_UNQUOTE(JSON_EXTRACT({field}, '$.\"{locale}\"'))) LIKE LOWER(%s)",
            "postgresql": "LOWER(({field} ->> '{locale}')) LIKE LOWER(%s)",
            "default": "LOWER(CAST({field} AS TEXT)) LIKE LOWER(%s)",
        },
    },

    "COMPONENT_DEFAULTS": {
        "LABEL_FIELD": "name",
        "SEARCH_LIMIT": 50,
        "SEARCHABLE": True,
    },
}


def get_config() -> dict[str, Any]:
    """
    Return DEFAULTS merged with settings.TRANSLATABLE_SELECT.

    Nested dicts are merged one level deep, so a project can override a
    single JSON template without repeating the others:

        TRANSLATABLE_SELECT = {
            "DATABASE": {"JSON_EXTRACTION": {"mysql": "..."}},
        }
    """
    user_config = getattr(settings, SETTINGS_NAME, None) or {}
    merged: dict[str, Any] = {}

    for key, default in DEFAULTS.items():
        value = user_config.get(key, default)
        if isinstance(default, dict) and isinstance(value, dict) and value is not default:
            combined = dict(default)
            for sub_key, sub_value in value.items():
                if isinstance(combined.get(sub_key), dict) and isinstance(sub_value, dict):
                    combined[sub_key] = {**combined[sub_key], **sub_value}
                else:
                    combined[sub_key] = sub_value
            value = combined
        merged[key] = value

    # مفاتيح إضافية غير معروفة نتركها كما هي
    for key, value in user_config.items():
        merged.setdefault(key, value)

    return merged


def get_setting(name: str, default: Any = None) -> Any:
    return get_config().get(name, default)


def get_database_setting(name: str, default: Any = None) -> Any:
    return (get_setting("DATABASE") or {}).get(name, default)


def get_component_default(name: str, default: Any = None) -> Any:
    return (get_setting("COMPONENT_DEFAULTS") or {}).get(name, default)


def lookup_setting(path: str) -> Any:
    """
    Resolve a dotted settings path such as "TRANSLATABLE.locales".

    The first segment is a Django setting; the rest walk into dicts or
    attributes. Missing segments raise LookupError.
    """
    head, *rest = path.split(".")
    if not hasattr(settings, head):
        raise LookupError(path)

    value = getattr(settings, head)
    for part in rest:
        if isinstance(value, dict):
            if part not in value:
                raise LookupError(path)
            value = value[part]
        elif hasattr(value, part):
            value = getattr(value, part)
        else:
            raise LookupError(path)
    return value
