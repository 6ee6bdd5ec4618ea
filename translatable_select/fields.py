# translatable_select/fields.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional, Union

from django import forms
from django.apps import apps
from django.core.exceptions import FieldDoesNotExist, ImproperlyConfigured, ValidationError
from django.db import models

from . import conf
from .services import LocaleResolver, SearchOptions, TranslatableSearchService
from .translatable import model_class

logger = logging.getLogger(__name__)

ModelReference = Union[str, type[models.Model]]
Flag = Union[bool, Callable[[], bool]]

RESOURCE_SUFFIX = "Resource"


def resolve_model_reference(model: ModelReference) -> type[models.Model]:
    """
    Accept a model class or an "app_label.ModelName" string.
    Setup-time check: anything else raises ImproperlyConfigured.
    """
    if isinstance(model, str):
        try:
            return apps.get_model(model)
        except (LookupError, ValueError) as exc:
            raise ImproperlyConfigured(f"'{model}' is not an installed model.") from exc

    cls = model_class(model)
    if cls is None or not isinstance(model, type):
        raise ImproperlyConfigured(f"{model!r} is not a Django model class.")
    return cls


def _model_from_candidate(candidate: Any) -> Optional[type[models.Model]]:
    """Render-time lookup: misses return None instead of raising."""
    if candidate is None:
        return None
    if isinstance(candidate, str):
        try:
            return apps.get_model(candidate)
        except (LookupError, ValueError):
            return None
    return model_class(candidate)


def _find_model_by_name(name: str) -> Optional[type[models.Model]]:
    for candidate in apps.get_models():
        if candidate.__name__ == name:
            return candidate
    return None


@dataclass(frozen=True)
class SelectHooks:
    """The four callbacks a select widget needs."""

    search_results: Callable[[str], dict]
    option_label: Callable[[Any], Optional[str]]
    option_labels: Callable[[Iterable[Any]], dict]
    options: Callable[[], dict]


# ============================================================
# Widget
# ============================================================
class TranslatableSelectWidget(forms.Select):
    """
    Select that only renders what it needs:
    - preload on: the preloaded options (plus any selected value outside them)
    - preload off: the selected values only; the rest come from the search view
    """

    def __init__(self, select: "TranslatableSelect", attrs=None):
        self.select = select
        self.allow_multiple_selected = select.is_multiple()
        super().__init__(attrs=attrs)

    def build_attrs(self, base_attrs, extra_attrs=None):
        attrs = super().build_attrs(base_attrs, extra_attrs=extra_attrs)
        attrs.update(self.select.get_widget_attrs())
        return attrs

    def value_from_datadict(self, data, files, name):
        if not self.allow_multiple_selected:
            return super().value_from_datadict(data, files, name)
        try:
            getter = data.getlist
        except AttributeError:
            getter = data.get
        return getter(name)

    def value_omitted_from_data(self, data, files, name):
        # an unselected <select multiple> sends nothing
        if self.allow_multiple_selected:
            return False
        return super().value_omitted_from_data(data, files, name)

    def optgroups(self, name, value, attrs=None):
        selected = [str(v) for v in value if v not in (None, "")]
        subgroup = []
        index = 0

        if not self.is_required and not self.allow_multiple_selected:
            subgroup.append(self.create_option(name, "", "", False, index))
            index += 1

        labels = dict(self.select.get_options()) if self.select.is_preloaded() else {}
        known = {str(key) for key in labels}
        missing = [v for v in selected if v not in known]
        if missing:
            labels.update(self.select.get_option_labels(missing))

        for pk, label in labels.items():
            subgroup.append(self.create_option(name, pk, label, str(pk) in selected, index))
            index += 1

        return [(None, subgroup, 0)]


# ============================================================
# Select builder
# ============================================================
class TranslatableSelect:
    """
    Searchable select for translatable models.

    Two ways to point it at a model:

        TranslatableSelect.for_model("category", "catalog.Category")
        TranslatableSelect.make("category").relationship("category")

    In relationship mode the related model is found at render time from a
    bound record or context (see get_model()). When it cannot be found the
    hooks return empty results instead of raising.
    """

    def __init__(self, name: str):
        self.name = name

        self._model: Optional[type[models.Model]] = None
        self._relationship_name: Optional[str] = None
        self._title_attribute: Optional[str] = None
        self._searchable_fields: list[str] = []
        self._search_locales: Optional[list[str]] = None
        self._fallback_locale: Optional[str] = None
        self._current_locale: Optional[str] = None
        self._query_modifier = None
        self._using: Optional[str] = None

        # render-time context
        self._record: Optional[models.Model] = None
        self._context: Any = None

        # passed through to the widget unchanged
        self._preload: Flag = False
        self._multiple: Flag = False
        self._searchable: Flag = bool(conf.get_component_default("SEARCHABLE", True))
        self._search_debounce: Optional[int] = None
        self._search_prompt: Optional[str] = None
        self._searching_message: Optional[str] = None
        self._no_search_results_message: Optional[str] = None
        self._search_limit: Optional[int] = None
        self._search_url: Optional[str] = None
        self._label: Optional[str] = None
        self._placeholder: Optional[str] = None
        self._helper_text: Optional[str] = None
        self._required: Flag = True
        self._disabled: Flag = False

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r}>"

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------
    @classmethod
    def make(cls, name: str) -> "TranslatableSelect":
        return cls(name)

    @classmethod
    def for_model(
        cls,
        name: str,
        model: ModelReference,
        label_field: Optional[str] = None,
        modify_query_using=None,
    ) -> "TranslatableSelect":
        select = cls(name)
        select._model = resolve_model_reference(model)
        select._title_attribute = label_field
        select._query_modifier = modify_query_using
        return select

    def relationship(self, name: Optional[str] = None, title_attribute: Optional[str] = None, modify_query_using=None):
        self._relationship_name = name or self.name
        self._title_attribute = title_attribute
        if modify_query_using is not None:
            self._query_modifier = modify_query_using
        return self

    # ------------------------------------------------------------------
    # Fluent configuration
    # ------------------------------------------------------------------
    def searchable_fields(self, fields: Iterable[str]):
        self._searchable_fields = list(fields)
        return self

    def search_locales(self, locales: Optional[Iterable[str]]):
        self._search_locales = None if locales is None else list(locales)
        return self

    def fallback_locale(self, locale: Optional[str]):
        self._fallback_locale = locale
        return self

    def locale(self, locale: Optional[str]):
        """Pin the current locale instead of reading the active language."""
        self._current_locale = locale
        return self

    def modify_query_using(self, modifier):
        self._query_modifier = modifier
        return self

    def using(self, alias: Optional[str]):
        self._using = alias
        return self

    def bind(self, record: Optional[models.Model] = None, context: Any = None, locale: Optional[str] = None):
        if record is not None:
            self._record = record
        if context is not None:
            self._context = context
        if locale is not None:
            self._current_locale = locale
        return self

    def preload(self, condition: Flag = True):
        self._preload = condition
        return self

    def multiple(self, condition: Flag = True):
        self._multiple = condition
        return self

    def searchable(self, condition: Flag = True):
        self._searchable = condition
        return self

    def search_debounce(self, milliseconds: int):
        self._search_debounce = milliseconds
        return self

    def search_prompt(self, message: Optional[str]):
        self._search_prompt = message
        return self

    def searching_message(self, message: Optional[str]):
        self._searching_message = message
        return self

    def no_search_results_message(self, message: Optional[str]):
        self._no_search_results_message = message
        return self

    def search_limit(self, limit: Optional[int]):
        self._search_limit = limit
        return self

    def search_url(self, url: Optional[str]):
        self._search_url = url
        return self

    def label(self, label: Optional[str]):
        self._label = label
        return self

    def placeholder(self, placeholder: Optional[str]):
        self._placeholder = placeholder
        return self

    def helper_text(self, text: Optional[str]):
        self._helper_text = text
        return self

    def required(self, condition: Flag = True):
        self._required = condition
        return self

    def disabled(self, condition: Flag = True):
        self._disabled = condition
        return self

    # ------------------------------------------------------------------
    # Getters
    # ------------------------------------------------------------------
    @staticmethod
    def _evaluate(flag: Flag) -> bool:
        return bool(flag() if callable(flag) else flag)

    def get_model_class(self) -> Optional[type[models.Model]]:
        return self._model

    def get_relationship_name(self) -> Optional[str]:
        return self._relationship_name

    def get_title_attribute(self) -> str:
        return self._title_attribute or conf.get_component_default("LABEL_FIELD", "name")

    def get_searchable_fields(self) -> list[str]:
        return list(self._searchable_fields)

    def get_search_locales(self) -> Optional[list[str]]:
        return None if self._search_locales is None else list(self._search_locales)

    def get_fallback_locale(self) -> Optional[str]:
        return self._fallback_locale

    def get_search_limit(self) -> int:
        if self._search_limit is not None:
            return self._search_limit
        return int(conf.get_component_default("SEARCH_LIMIT", 50))

    def get_search_debounce(self) -> Optional[int]:
        return self._search_debounce

    def get_search_prompt(self) -> Optional[str]:
        return self._search_prompt

    def get_searching_message(self) -> Optional[str]:
        return self._searching_message

    def get_no_search_results_message(self) -> Optional[str]:
        return self._no_search_results_message

    def get_label(self) -> Optional[str]:
        return self._label

    def get_placeholder(self) -> Optional[str]:
        return self._placeholder

    def get_helper_text(self) -> Optional[str]:
        return self._helper_text

    def is_preloaded(self) -> bool:
        return self._evaluate(self._preload)

    def is_multiple(self) -> bool:
        return self._evaluate(self._multiple)

    def is_searchable(self) -> bool:
        return self._evaluate(self._searchable)

    def is_required(self) -> bool:
        return self._evaluate(self._required)

    def is_disabled(self) -> bool:
        return self._evaluate(self._disabled)

    # ------------------------------------------------------------------
    # Services
    # ------------------------------------------------------------------
    def get_locale_resolver(self) -> LocaleResolver:
        return LocaleResolver(current_locale=self._current_locale, fallback_locale=self._fallback_locale)

    def get_search_service(self) -> TranslatableSearchService:
        return TranslatableSearchService(self.get_locale_resolver(), using=self._using)

    # ------------------------------------------------------------------
    # Model resolution
    # ------------------------------------------------------------------
    def get_model(self) -> Optional[type[models.Model]]:
        """
        Resolution order:
        1. the model already set or resolved
        2. relationship on the bound record
        3. relationship on the context's model (``model``, ``get_model()``,
           ``_meta.model``, ``instance``)
        4. relationship on the model named after the context class,
           e.g. ``ProductResource`` → ``Product``
        """
        if self._model is not None:
            return self._model
        if not self._relationship_name:
            return None

        owner = self._resolve_owner_model()
        if owner is None:
            logger.debug("%r: no owner model for relationship %r", self, self._relationship_name)
            return None

        try:
            related = owner._meta.get_field(self._relationship_name).related_model
        except FieldDoesNotExist:
            logger.debug("%r: %s has no field %r", self, owner._meta.label, self._relationship_name)
            return None

        related = _model_from_candidate(related)
        if related is not None:
            self._model = related
        return related

    def _resolve_owner_model(self) -> Optional[type[models.Model]]:
        if isinstance(self._record, models.Model):
            return type(self._record)

        context = self._context
        if context is None:
            return None

        get_model = getattr(context, "get_model", None)
        if callable(get_model):
            try:
                owner = _model_from_candidate(get_model())
            except Exception:
                logger.debug("%r: context.get_model() failed", self, exc_info=True)
                owner = None
            if owner is not None:
                return owner

        for candidate in (
            getattr(context, "model", None),
            getattr(getattr(context, "_meta", None), "model", None),
            getattr(context, "instance", None),
        ):
            owner = _model_from_candidate(candidate)
            if owner is not None:
                return owner

        class_name = context.__name__ if isinstance(context, type) else type(context).__name__
        if class_name.endswith(RESOURCE_SUFFIX) and len(class_name) > len(RESOURCE_SUFFIX):
            return _find_model_by_name(class_name[: -len(RESOURCE_SUFFIX)])
        return None

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------
    def get_search_results(self, search: str) -> dict[Any, str]:
        model = self.get_model()
        if model is None:
            return {}

        options = SearchOptions(
            search_fields=tuple(self._searchable_fields),
            label_field=self.get_title_attribute(),
            search_locales=self._search_locales,
            limit=self.get_search_limit(),
            query_modifier=self._query_modifier,
        )
        return self.get_search_service().get_select_search_results(model, search, options)

    def _find(self, model, value) -> Optional[models.Model]:
        try:
            return model._default_manager.filter(pk=value).first()
        except (ValueError, TypeError, ValidationError):
            return None

    def get_option_label(self, value: Any) -> Optional[str]:
        if value is None or value == "":
            return None

        model = self.get_model()
        if model is None:
            return None

        instance = self._find(model, value)
        if instance is None:
            return None
        return self.get_search_service().get_translated_label(instance, self.get_title_attribute())

    def get_option_labels(self, values: Optional[Iterable[Any]]) -> dict[Any, str]:
        values = [v for v in (values or []) if v not in (None, "")]
        if not values:
            return {}

        model = self.get_model()
        if model is None:
            return {}

        try:
            instances = list(model._default_manager.filter(pk__in=values))
        except (ValueError, TypeError, ValidationError):
            return {}
        return self.get_search_service().get_translated_labels(instances, self.get_title_attribute())

    def get_options(self) -> dict[Any, str]:
        # search-only mode: never load the whole table
        if not self.is_preloaded():
            return {}

        model = self.get_model()
        if model is None:
            return {}

        return self.get_search_service().preload_options(
            model,
            self.get_title_attribute(),
            self._query_modifier,
            self.get_search_limit(),
        )

    def hooks(self) -> SelectHooks:
        return SelectHooks(
            search_results=self.get_search_results,
            option_label=self.get_option_label,
            option_labels=self.get_option_labels,
            options=self.get_options,
        )

    # ------------------------------------------------------------------
    # Django forms
    # ------------------------------------------------------------------
    def get_widget_attrs(self) -> dict[str, str]:
        attrs = {
            "data-translatable-select": self.name,
            "data-searchable": "true" if self.is_searchable() else "false",
            "data-preload": "true" if self.is_preloaded() else "false",
        }
        optional = {
            "data-search-url": self._search_url,
            "data-search-debounce": self._search_debounce,
            "data-search-prompt": self._search_prompt,
            "data-searching-message": self._searching_message,
            "data-no-search-results-message": self._no_search_results_message,
            "placeholder": self._placeholder,
        }
        for key, value in optional.items():
            if value is not None:
                attrs[key] = str(value)
        return attrs

    def get_widget(self) -> TranslatableSelectWidget:
        return TranslatableSelectWidget(self)

    def formfield(self, form_class=None, **kwargs) -> forms.Field:
        """
        Build a ModelChoiceField / ModelMultipleChoiceField wired to the hooks.
        """
        model = self.get_model()
        if model is None:
            raise ImproperlyConfigured(f"{self!r}: cannot build a form field before the model is resolved.")

        if form_class is None:
            form_class = forms.ModelMultipleChoiceField if self.is_multiple() else forms.ModelChoiceField

        queryset = self.get_search_service().get_queryset(model, self._query_modifier)

        defaults = {
            "queryset": queryset,
            "required": self.is_required(),
            "disabled": self.is_disabled(),
            "label": self._label,
            "help_text": self._helper_text or "",
            "widget": self.get_widget(),
        }
        defaults.update(kwargs)

        field = form_class(**defaults)
        title_attribute = self.get_title_attribute()
        service = self.get_search_service()
        field.label_from_instance = lambda obj: service.get_translated_label(obj, title_attribute)
        return field
