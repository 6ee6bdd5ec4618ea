from typing import Optional

from .locales import LocaleResolver, LocaleStrategy, clear_locale_cache
from .search import SearchOptions, TranslatableSearchService, get_json_template


def get_locale_resolver(current_locale: Optional[str] = None, fallback_locale: Optional[str] = None) -> LocaleResolver:
    """
    Build a resolver for one request. The available-locales cache is
    module level, so creating resolvers is cheap.
    """
    return LocaleResolver(current_locale=current_locale, fallback_locale=fallback_locale)


def get_search_service(
    locale_resolver: Optional[LocaleResolver] = None,
    current_locale: Optional[str] = None,
) -> TranslatableSearchService:
    if locale_resolver is None:
        locale_resolver = get_locale_resolver(current_locale=current_locale)
    return TranslatableSearchService(locale_resolver)


__all__ = [
    "LocaleResolver",
    "LocaleStrategy",
    "SearchOptions",
    "TranslatableSearchService",
    "clear_locale_cache",
    "get_json_template",
    "get_locale_resolver",
    "get_search_service",
]
