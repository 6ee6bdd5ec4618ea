# translatable_select/shortcuts.py
"""
Module-level helpers for code that does not use the select field.

    from translatable_select.shortcuts import filter_translatable

    qs = filter_translatable(Category.objects.filter(is_active=True), "tech")
"""
from __future__ import annotations

from typing import Any, Callable, Iterable, Optional

from django.db import models

from .services import SearchOptions, get_search_service
from .translatable import get_translatable_fields, get_translations


def get_search_results(
    model,
    search: str,
    limit: Optional[int] = None,
    label_field: str = "name",
    search_fields: Optional[Iterable[str]] = None,
    locale: Optional[str] = None,
) -> dict[Any, str]:
    options = SearchOptions(
        search_fields=tuple(search_fields or ()),
        label_field=label_field,
        limit=limit,
    )
    return get_search_service(current_locale=locale).get_select_search_results(model, search, options)


def get_formatted_search_results(
    model,
    search: str,
    limit: Optional[int] = None,
    formatter: Optional[Callable[[models.Model], Any]] = None,
    search_fields: Optional[Iterable[str]] = None,
    locale: Optional[str] = None,
) -> dict[Any, str]:
    options = SearchOptions(
        search_fields=tuple(search_fields or ()),
        limit=limit,
        formatter=formatter,
    )
    return get_search_service(current_locale=locale).get_select_search_results(model, search, options)


def search_with_translated_labels(
    model,
    search: str,
    limit: Optional[int] = None,
    search_fields: Optional[Iterable[str]] = None,
    label_field: str = "name",
    locale: Optional[str] = None,
) -> list[models.Model]:
    """
    Search and attach ``translated_label`` to every result.
    """
    service = get_search_service(current_locale=locale)
    options = SearchOptions(search_fields=tuple(search_fields or ()), label_field=label_field, limit=limit)

    results = service.search(model, search, options)
    for instance in results:
        instance.translated_label = service.get_translated_label(instance, label_field)
    return results


def filter_translatable(
    queryset: models.QuerySet,
    search: str,
    fields: Optional[Iterable[str]] = None,
    locales: Optional[Iterable[str]] = None,
) -> models.QuerySet:
    """
    Narrow an existing queryset with the cross-locale search condition.
    Empty text leaves the queryset untouched (filter semantics, not search).
    """
    search = (search or "").strip()
    if not search:
        return queryset

    service = get_search_service()
    model = queryset.model
    search_fields = list(fields or ()) or service.get_default_search_fields(model)
    search_locales = service.locale_resolver.resolve_search_locales(model, locales)

    condition = service.build_search_condition(queryset, search, search_fields, search_locales)
    if condition is None:
        return queryset.none()
    return queryset.filter(condition)


def get_translated_label(instance: models.Model, field: str, locale: Optional[str] = None) -> str:
    return get_search_service(current_locale=locale).get_translated_label(instance, field)


def get_all_translations(instance: models.Model, field: str) -> dict[str, Any]:
    """
    Non-empty translations of ``field``, available locales first.
    A plain field comes back as {field: value}.
    """
    if field not in get_translatable_fields(instance):
        return {field: getattr(instance, field, None)}

    translations = get_translations(instance, field)
    ordered: dict[str, Any] = {}
    for locale in get_search_service().locale_resolver.get_available_locales():
        if translations.get(locale) not in (None, ""):
            ordered[locale] = translations[locale]
    for locale, value in translations.items():
        if locale not in ordered and value not in (None, ""):
            ordered[locale] = value
    return ordered
