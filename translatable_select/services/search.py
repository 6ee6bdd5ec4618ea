# translatable_select/services/search.py
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field as dc_field, fields as dc_fields
from typing import Any, Callable, Iterable, Mapping, Optional, Union

from django.db import connections, models
from django.db.models import Q
from django.db.models.expressions import RawSQL

from translatable_select import conf
from translatable_select.translatable import (
    get_localized_field_name,
    get_non_translatable_search_fields,
    get_translations,
    model_class,
    stores_json_translations,
)

from .locales import LocaleResolver

logger = logging.getLogger(__name__)

QueryModifier = Callable[[models.QuerySet], Optional[models.QuerySet]]
Formatter = Callable[[models.Model], Union[str, Mapping[Any, str]]]

# الكود يدخل داخل مسار JSON في SQL، لذلك نسمح فقط بحروف وأرقام و - _
LOCALE_CODE_RE = re.compile(r"[A-Za-z0-9_-]+")

GENERIC_TEMPLATE_KEY = "default"
GENERIC_TEMPLATE = "LOWER(CAST({field} AS TEXT)) LIKE LOWER(%s)"

VENDOR_ALIASES = {
    "pgsql": "postgresql",
    "postgres": "postgresql",
    "sqlite3": "sqlite",
    "mariadb": "mysql",
}


def get_json_template(vendor: str) -> str:
    """
    Return the JSON extraction template for a database vendor
    ("sqlite", "mysql", "postgresql", ...), or the generic fallback.
    """
    templates = {
        VENDOR_ALIASES.get(key, key): value
        for key, value in (conf.get_database_setting("JSON_EXTRACTION") or {}).items()
    }
    vendor = VENDOR_ALIASES.get(vendor, vendor)
    return templates.get(vendor) or templates.get(GENERIC_TEMPLATE_KEY) or GENERIC_TEMPLATE


def check_limit(limit) -> int:
    limit = int(limit)
    if limit < 0:
        raise ValueError(f"Search limit must be zero or more, got {limit}")
    return limit


def render_json_template(template: str, column: str, locale: str) -> str:
    return template.replace("{field}", column).replace("{locale}", locale)


@dataclass(frozen=True)
class SearchOptions:
    """
    Per-call search settings.

    - search_fields: empty → model's translatable fields (or [label_field])
    - search_locales: None → resolved from the model; an explicit empty
      tuple is kept, which matches nothing on translatable fields
    - limit: None → TRANSLATABLE_SELECT["DEFAULT_LIMIT"]
    """

    search_fields: tuple[str, ...] = ()
    label_field: str = "name"
    search_locales: Optional[tuple[str, ...]] = None
    limit: Optional[int] = None
    query_modifier: Optional[QueryModifier] = dc_field(default=None, compare=False)
    formatter: Optional[Formatter] = dc_field(default=None, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "search_fields", tuple(self.search_fields or ()))
        if self.search_locales is not None:
            object.__setattr__(self, "search_locales", tuple(self.search_locales))
        if not self.label_field:
            object.__setattr__(self, "label_field", "name")
        if self.limit is not None:
            object.__setattr__(self, "limit", check_limit(self.limit))

    @classmethod
    def coerce(cls, options: Union["SearchOptions", Mapping[str, Any], None] = None) -> "SearchOptions":
        if options is None:
            return cls()
        if isinstance(options, cls):
            return options

        known = {f.name for f in dc_fields(cls)}
        unknown = set(options) - known
        if unknown:
            raise TypeError(f"Unknown search options: {', '.join(sorted(unknown))}")
        # None in a dict means "not given"
        return cls(**{key: value for key, value in options.items() if value is not None})

    def effective_limit(self) -> int:
        if self.limit is not None:
            return self.limit
        return check_limit(conf.get_setting("DEFAULT_LIMIT", 50))


class TranslatableSearchService:
    """
    Cross-locale search for translatable models.

    A row matches when ANY search field contains the text in ANY search
    locale. Labels are picked with LocaleResolver.get_best_locale_for_display().
    """

    def __init__(self, locale_resolver: Optional[LocaleResolver] = None, using: Optional[str] = None):
        self.locale_resolver = locale_resolver or LocaleResolver()
        self.using = using

    # ------------------------------------------------------------------
    # Query building
    # ------------------------------------------------------------------
    def get_queryset(self, model, query_modifier: Optional[QueryModifier] = None) -> models.QuerySet:
        cls = model_class(model)
        if cls is None:
            raise TypeError(f"{model!r} is not a Django model")

        queryset = cls._default_manager.all()
        if self.using:
            queryset = queryset.using(self.using)

        # the modifier narrows the rows before the search condition is added
        if query_modifier is not None:
            modified = query_modifier(queryset)
            if modified is not None:
                queryset = modified
        return queryset

    def get_default_search_fields(self, model, label_field: str = "name") -> list[str]:
        fields = list(self.locale_resolver.get_translatable_attributes(model))
        for extra in get_non_translatable_search_fields(model):
            if extra not in fields:
                fields.append(extra)
        return fields or [label_field]

    def _is_case_insensitive(self) -> bool:
        return bool(conf.get_database_setting("CASE_INSENSITIVE", True))

    def _like_term(self, search: str) -> str:
        # case folding happens in the template (LOWER on both sides)
        return f"%{search}%"

    def _json_condition(self, queryset, field: str, locale: str, search: str) -> Q:
        model = queryset.model
        connection = connections[queryset.db]
        qn = connection.ops.quote_name

        column = f"{qn(model._meta.db_table)}.{qn(model._meta.get_field(field).column)}"
        template = get_json_template(connection.vendor)
        sql = render_json_template(template, column, locale)

        return Q(RawSQL(sql, [self._like_term(search)], output_field=models.BooleanField()))

    def _translatable_condition(self, queryset, field: str, locale: str, search: str) -> Optional[Q]:
        if not LOCALE_CODE_RE.fullmatch(locale or ""):
            logger.warning("Skipping invalid locale code %r for field %s", locale, field)
            return None

        if stores_json_translations(queryset.model):
            return self._json_condition(queryset, field, locale, search)

        # modeltranslation: one column per language
        localized = get_localized_field_name(queryset.model, field, locale)
        if localized is None:
            return None
        return self._plain_condition(localized, search)

    def _plain_condition(self, field: str, search: str) -> Q:
        lookup = "icontains" if self._is_case_insensitive() else "contains"
        return Q(**{f"{field}__{lookup}": search})

    def build_search_condition(
        self,
        queryset: models.QuerySet,
        search: str,
        search_fields: Iterable[str],
        search_locales: Iterable[str],
    ) -> Optional[Q]:
        """
        OR together one condition per (translatable field, locale) and one per
        plain field. None when nothing could be built (e.g. no locales).
        """
        translatable_fields = set(self.locale_resolver.get_translatable_attributes(queryset.model))
        locales = list(search_locales)
        condition = Q()

        for field in search_fields:
            if field in translatable_fields:
                for locale in locales:
                    part = self._translatable_condition(queryset, field, locale, search)
                    if part is not None:
                        condition |= part
            else:
                condition |= self._plain_condition(field, search)

        return condition if condition else None

    def search_across_locales(
        self,
        model,
        search: str,
        search_fields: Iterable[str],
        search_locales: Iterable[str],
        query_modifier: Optional[QueryModifier] = None,
        limit: Optional[int] = None,
    ) -> list[models.Model]:
        queryset = self.search_queryset(model, search, search_fields, search_locales, query_modifier)
        if limit is None:
            limit = conf.get_setting("DEFAULT_LIMIT", 50)
        results = list(queryset[: check_limit(limit)])

        logger.debug(
            "Translatable search on %s for %r returned %d row(s)",
            queryset.model._meta.label,
            search,
            len(results),
        )
        return results

    def search_queryset(
        self,
        model,
        search: str,
        search_fields: Iterable[str],
        search_locales: Iterable[str],
        query_modifier: Optional[QueryModifier] = None,
    ) -> models.QuerySet:
        queryset = self.get_queryset(model, query_modifier)
        search = (search or "").strip()
        if not search:
            # empty text never means "everything"
            return queryset.none()

        condition = self.build_search_condition(queryset, search, search_fields, search_locales)
        if condition is None:
            return queryset.none()
        return queryset.filter(condition)

    def search(self, model, search: str, options: Union[SearchOptions, Mapping[str, Any], None] = None) -> list[models.Model]:
        if not (search or "").strip():
            return []

        opts = SearchOptions.coerce(options)
        search_fields = opts.search_fields or self.get_default_search_fields(model, opts.label_field)
        search_locales = self.locale_resolver.resolve_search_locales(model, opts.search_locales)

        return self.search_across_locales(
            model,
            search,
            search_fields,
            search_locales,
            query_modifier=opts.query_modifier,
            limit=opts.effective_limit(),
        )

    # ------------------------------------------------------------------
    # Labels
    # ------------------------------------------------------------------
    def _raw_label(self, instance: models.Model, field: str) -> str:
        value = getattr(instance, field, None)
        return "" if value is None else str(value)

    def _untranslated_label(self, instance: models.Model, field: str) -> str:
        # a translation map with nothing usable in it is not a label
        if isinstance(getattr(instance, field, None), Mapping):
            return ""
        return self._raw_label(instance, field)

    def get_translated_label(self, instance: models.Model, field: str, preferred_locale: Optional[str] = None) -> str:
        if not self.locale_resolver.is_translatable(instance):
            return self._raw_label(instance, field)

        translations = get_translations(instance, field)
        if not translations:
            return self._untranslated_label(instance, field)

        best = self.locale_resolver.get_best_locale_for_display(translations, preferred_locale)
        if best is not None:
            return str(translations[best])
        return self._untranslated_label(instance, field)

    def get_translated_labels(
        self,
        instances: Iterable[models.Model],
        field: str,
        preferred_locale: Optional[str] = None,
    ) -> dict[Any, str]:
        return {
            instance.pk: self.get_translated_label(instance, field, preferred_locale)
            for instance in instances
        }

    # ------------------------------------------------------------------
    # Select field helpers
    # ------------------------------------------------------------------
    def get_select_search_results(
        self,
        model,
        search: str,
        options: Union[SearchOptions, Mapping[str, Any], None] = None,
        preferred_locale: Optional[str] = None,
    ) -> dict[Any, str]:
        """
        Search and return {pk: label} in result order.

        A formatter may return a label string or a whole {pk: label}
        mapping; duplicate keys from a formatter overwrite earlier ones.
        """
        opts = SearchOptions.coerce(options)
        results: dict[Any, str] = {}

        for instance in self.search(model, search, opts):
            if opts.formatter is not None:
                formatted = opts.formatter(instance)
                if isinstance(formatted, Mapping):
                    results.update(formatted)
                    continue
                results[instance.pk] = "" if formatted is None else str(formatted)
                continue

            results[instance.pk] = self.get_translated_label(instance, opts.label_field, preferred_locale)

        return results

    def preload_options(
        self,
        model,
        label_field: str = "name",
        query_modifier: Optional[QueryModifier] = None,
        limit: Optional[int] = None,
        preferred_locale: Optional[str] = None,
    ) -> dict[Any, str]:
        if limit is None:
            limit = conf.get_setting("DEFAULT_LIMIT", 50)

        queryset = self.get_queryset(model, query_modifier)
        return self.get_translated_labels(queryset[: check_limit(limit)], label_field, preferred_locale)
