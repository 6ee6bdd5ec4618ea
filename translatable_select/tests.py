from django.core.exceptions import ImproperlyConfigured
from django.test import SimpleTestCase, TestCase, override_settings
from django.utils import translation

from catalog.models import Brand, Category, Product, Tag
from translatable_select import conf
from translatable_select.fields import SelectHooks, TranslatableSelect
from translatable_select.services import (
    LocaleResolver,
    LocaleStrategy,
    SearchOptions,
    TranslatableSearchService,
    clear_locale_cache,
    get_json_template,
)
from translatable_select.translatable import (
    get_localized_field_name,
    get_translatable_fields,
    get_translations,
)
from translatable_select.shortcuts import (
    filter_translatable,
    get_all_translations,
    get_formatted_search_results,
    get_search_results,
    search_with_translated_labels,
)


def make_category(en, ku, ar, **kwargs):
    return Category.objects.create(name={"en": en, "ku": ku, "ar": ar}, **kwargs)


# ============================================================
# Settings
# ============================================================
class ConfTests(SimpleTestCase):
    @override_settings(TRANSLATABLE_SELECT={"DATABASE": {"JSON_EXTRACTION": {"mysql": "X {field} %s"}}})
    def test_nested_settings_are_merged(self):
        templates = conf.get_database_setting("JSON_EXTRACTION")

        self.assertEqual(templates["mysql"], "X {field} %s")
        self.assertIn("sqlite", templates)
        self.assertTrue(conf.get_database_setting("CASE_INSENSITIVE"))
        self.assertEqual(conf.get_setting("DEFAULT_LIMIT"), 50)

    @override_settings(TRANSLATABLE={"locales": ["en", "fr"]})
    def test_lookup_setting_walks_dotted_path(self):
        self.assertEqual(conf.lookup_setting("TRANSLATABLE.locales"), ["en", "fr"])

        with self.assertRaises(LookupError):
            conf.lookup_setting("TRANSLATABLE.missing")
        with self.assertRaises(LookupError):
            conf.lookup_setting("NOT_A_SETTING")

    def test_component_defaults(self):
        self.assertEqual(conf.get_component_default("LABEL_FIELD"), "name")
        self.assertEqual(conf.get_component_default("SEARCH_LIMIT"), 50)
        self.assertTrue(conf.get_component_default("SEARCHABLE"))


class SearchOptionsTests(SimpleTestCase):
    def test_defaults(self):
        opts = SearchOptions()
        self.assertEqual(opts.search_fields, ())
        self.assertEqual(opts.label_field, "name")
        self.assertIsNone(opts.search_locales)
        self.assertEqual(opts.effective_limit(), 50)

    def test_coerce_from_dict(self):
        opts = SearchOptions.coerce({"search_fields": ["name"], "search_locales": [], "limit": None})

        self.assertEqual(opts.search_fields, ("name",))
        # empty list is an explicit choice, None is "not given"
        self.assertEqual(opts.search_locales, ())
        self.assertIsNone(opts.limit)

    def test_negative_limit(self):
        with self.assertRaises(ValueError):
            SearchOptions(limit=-1)
        with self.assertRaises(ValueError):
            SearchOptions.coerce({"limit": -10})

        self.assertEqual(SearchOptions(limit=0).effective_limit(), 0)
        self.assertEqual(SearchOptions(limit="5").effective_limit(), 5)

    def test_coerce_rejects_unknown_keys(self):
        with self.assertRaises(TypeError):
            SearchOptions.coerce({"searchFields": ["name"]})


# ============================================================
# LocaleResolver
# ============================================================
class LocaleResolverTests(TestCase):
    def setUp(self):
        super().setUp()
        clear_locale_cache()
        self.resolver = LocaleResolver()

    def test_current_locale_explicit(self):
        self.assertEqual(LocaleResolver(current_locale="ku").get_current_locale(), "ku")

    def test_current_locale_follows_active_language(self):
        with translation.override("ar"):
            self.assertEqual(self.resolver.get_current_locale(), "ar")

    def test_fallback_locale(self):
        self.assertEqual(self.resolver.get_fallback_locale(), "en")
        self.assertEqual(LocaleResolver(fallback_locale="ar").get_fallback_locale(), "ar")

        with override_settings(TRANSLATABLE_SELECT={"LOCALE_STRATEGY": "config", "FALLBACK_LOCALE": "ku"}):
            self.assertEqual(self.resolver.get_fallback_locale(), "ku")

    @override_settings(TRANSLATABLE_SELECT={"LOCALE_STRATEGY": "manual", "MANUAL_LOCALES": ["en", "ku", "en", "ar"]})
    def test_manual_strategy_is_deduplicated(self):
        self.assertEqual(self.resolver.get_available_locales(), ["en", "ku", "ar"])

    def test_config_strategy_reads_first_configured_key(self):
        # testproject.settings: SUPPORTED_LOCALES = ["en", "ku", "ar"]
        self.assertEqual(self.resolver.get_available_locales(), ["en", "ku", "ar"])

    @override_settings(
        TRANSLATABLE_SELECT={"LOCALE_STRATEGY": "config", "CONFIG_KEYS": ["MISSING", "TRANSLATABLE.locales"]},
        TRANSLATABLE={"locales": ["en", "fr"]},
    )
    def test_config_strategy_skips_missing_keys(self):
        self.assertEqual(self.resolver.get_available_locales(), ["en", "fr"])

    @override_settings(
        TRANSLATABLE_SELECT={"LOCALE_STRATEGY": "config", "CONFIG_KEYS": ["LANGUAGES"]},
        LANGUAGES=[("ar", "العربية"), ("en", "English")],
    )
    def test_config_strategy_understands_language_pairs(self):
        self.assertEqual(self.resolver.get_available_locales(), ["ar", "en"])

    @override_settings(
        TRANSLATABLE_SELECT={"LOCALE_STRATEGY": "config", "CONFIG_KEYS": ["NOPE"], "FALLBACK_LOCALE": "en"},
        LANGUAGE_CODE="ar",
    )
    def test_config_strategy_synthesizes_app_and_fallback(self):
        self.assertEqual(self.resolver.get_available_locales(), ["ar", "en"])

    @override_settings(
        TRANSLATABLE_SELECT={"LOCALE_STRATEGY": "config", "CONFIG_KEYS": ["NOPE"], "FALLBACK_LOCALE": "en"},
        LANGUAGE_CODE="en",
    )
    def test_config_strategy_synthesized_list_is_unique(self):
        self.assertEqual(self.resolver.get_available_locales(), ["en"])

    @override_settings(TRANSLATABLE_SELECT={"LOCALE_STRATEGY": "modeltranslation"})
    def test_modeltranslation_strategy(self):
        self.assertEqual(self.resolver.get_available_locales(), ["en", "ar"])

    @override_settings(TRANSLATABLE_SELECT={"LOCALE_STRATEGY": "filament"})
    def test_filament_is_an_alias_for_modeltranslation(self):
        self.assertEqual(self.resolver.get_available_locales(), ["en", "ar"])

    @override_settings(TRANSLATABLE_SELECT={"LOCALE_STRATEGY": "modeltranslation"}, MODELTRANSLATION_LANGUAGES=())
    def test_modeltranslation_strategy_falls_back_to_en(self):
        self.assertEqual(self.resolver.get_available_locales(), ["en"])

    @override_settings(TRANSLATABLE_SELECT={"LOCALE_STRATEGY": "auto"})
    def test_auto_prefers_modeltranslation(self):
        self.assertEqual(self.resolver.get_available_locales(), ["en", "ar"])

    @override_settings(TRANSLATABLE_SELECT={"LOCALE_STRATEGY": "auto"}, MODELTRANSLATION_LANGUAGES=())
    def test_auto_then_settings(self):
        self.assertEqual(self.resolver.get_available_locales(), ["en", "ku", "ar"])

    @override_settings(TRANSLATABLE_SELECT={"LOCALE_STRATEGY": "something-else"})
    def test_unknown_strategy_behaves_like_auto(self):
        self.assertEqual(LocaleStrategy.parse("something-else"), LocaleStrategy.AUTO)
        self.assertEqual(self.resolver.get_available_locales(), ["en", "ar"])

    def test_available_locales_are_cached_until_cleared(self):
        manual = ["en", "ar"]
        with override_settings(TRANSLATABLE_SELECT={"LOCALE_STRATEGY": "manual", "MANUAL_LOCALES": manual}):
            self.assertEqual(self.resolver.get_available_locales(), ["en", "ar"])

            manual.append("ku")
            self.assertEqual(self.resolver.get_available_locales(), ["en", "ar"])
            # another resolver shares the same process-wide slot
            self.assertEqual(LocaleResolver().get_available_locales(), ["en", "ar"])

            clear_locale_cache()
            self.assertEqual(self.resolver.get_available_locales(), ["en", "ar", "ku"])

    def test_cache_can_be_disabled(self):
        manual = ["en"]
        settings_value = {"LOCALE_STRATEGY": "manual", "MANUAL_LOCALES": manual, "CACHE_LOCALES": False}
        with override_settings(TRANSLATABLE_SELECT=settings_value):
            self.assertEqual(self.resolver.get_available_locales(), ["en"])
            manual.append("ar")
            self.assertEqual(self.resolver.get_available_locales(), ["en", "ar"])

    def test_returned_list_does_not_leak_into_cache(self):
        locales = self.resolver.get_available_locales()
        locales.append("zz")
        self.assertNotIn("zz", self.resolver.get_available_locales())

    def test_model_locales(self):
        resolver = LocaleResolver(current_locale="ku")

        # not translatable → only the current locale
        self.assertEqual(resolver.get_model_locales(Brand), ["ku"])
        # translatable → available locales
        self.assertEqual(resolver.get_model_locales(Category), ["en", "ku", "ar"])
        # model override wins
        self.assertEqual(resolver.get_model_locales(Product), ["en", "ar"])
        self.assertEqual(resolver.get_model_locales(Product()), ["en", "ar"])

    def test_translatable_attributes(self):
        self.assertEqual(self.resolver.get_translatable_attributes(Category), ["name", "description"])
        self.assertEqual(self.resolver.get_translatable_attributes(Tag), ["name"])
        self.assertEqual(self.resolver.get_translatable_attributes(Brand), [])

    def test_is_translatable(self):
        self.assertTrue(self.resolver.is_translatable(Category))
        self.assertTrue(self.resolver.is_translatable(Category()))
        self.assertTrue(self.resolver.is_translatable(Tag))
        self.assertFalse(self.resolver.is_translatable(Brand))
        self.assertFalse(self.resolver.is_translatable(object()))

    def test_best_locale_current(self):
        resolver = LocaleResolver(current_locale="ku", fallback_locale="en")
        best = resolver.get_best_locale_for_display({"en": "Technology", "ku": "تەکنەلۆژیا"})
        self.assertEqual(best, "ku")

    def test_best_locale_fallback(self):
        resolver = LocaleResolver(current_locale="fr", fallback_locale="en")
        best = resolver.get_best_locale_for_display({"ku": "تەکنەلۆژیا", "en": "Technology"})
        self.assertEqual(best, "en")

    def test_best_locale_first_available(self):
        resolver = LocaleResolver(current_locale="fr", fallback_locale="de")
        self.assertEqual(resolver.get_best_locale_for_display({"ku": "K", "ar": "A"}), "ku")

    def test_best_locale_skips_empty_values(self):
        resolver = LocaleResolver(current_locale="fr", fallback_locale="de")
        translations = {"fr": "", "de": None, "ku": "", "en": "E"}
        self.assertEqual(resolver.get_best_locale_for_display(translations), "en")

    def test_best_locale_preferred(self):
        resolver = LocaleResolver(current_locale="en", fallback_locale="en")
        translations = {"en": "Technology", "ar": "تكنولوجيا"}

        self.assertEqual(resolver.get_best_locale_for_display(translations, "ar"), "ar")
        # absent preferred → current/fallback chain
        self.assertEqual(resolver.get_best_locale_for_display({"en": "X"}, "fr"), "en")

    def test_best_locale_none(self):
        self.assertIsNone(self.resolver.get_best_locale_for_display({}))
        self.assertIsNone(self.resolver.get_best_locale_for_display(None))
        self.assertIsNone(self.resolver.get_best_locale_for_display({"en": "", "ar": None}))

    def test_resolve_search_locales(self):
        self.assertEqual(self.resolver.resolve_search_locales(Category, ["en", "fr"]), ["en", "fr"])
        self.assertEqual(self.resolver.resolve_search_locales(Category, []), [])
        self.assertEqual(self.resolver.resolve_search_locales(Category), ["en", "ku", "ar"])


# ============================================================
# TranslatableModel helpers
# ============================================================
class TranslatableModelTests(SimpleTestCase):
    def test_get_translations(self):
        category = Category(name={"en": "Technology", "ar": "تكنولوجيا"})

        self.assertEqual(category.get_translations("name"), {"en": "Technology", "ar": "تكنولوجيا"})
        self.assertEqual(category.get_translations("slug"), {})
        self.assertEqual(Category(name="legacy").get_translations("name"), {})

    def test_get_translation_with_and_without_fallback(self):
        category = Category(name={"en": "Technology", "ar": "تكنولوجيا"})

        self.assertEqual(category.get_translation("name", "ar"), "تكنولوجيا")
        self.assertEqual(category.get_translation("name", "ku"), "Technology")
        self.assertEqual(category.get_translation("name", "ku", use_fallback=False), "")

    def test_set_translation(self):
        category = Category(name={"en": "Technology"})
        category.set_translation("name", "ku", "تەکنەلۆژیا")

        self.assertEqual(category.name, {"en": "Technology", "ku": "تەکنەلۆژیا"})

        category.set_translations("description", {"en": "Gadgets"})
        self.assertEqual(category.description, {"en": "Gadgets"})


class ModeltranslationCapabilityTests(TestCase):
    def test_registered_fields(self):
        self.assertEqual(get_translatable_fields(Tag), ["name"])
        self.assertEqual(get_translatable_fields(Tag()), ["name"])
        self.assertEqual(get_translatable_fields(Brand), [])

    def test_translations_per_column(self):
        tag = Tag.objects.create(name_en="Red", name_ar="أحمر")

        self.assertEqual(get_translations(tag, "name"), {"en": "Red", "ar": "أحمر"})
        self.assertEqual(get_translations(tag, "missing"), {})

    def test_localized_field_name(self):
        self.assertEqual(get_localized_field_name(Tag, "name", "ar"), "name_ar")
        self.assertIsNone(get_localized_field_name(Tag, "name", "ku"))
        self.assertIsNone(get_localized_field_name(Category, "name", "ar"))


# ============================================================
# TranslatableSearchService
# ============================================================
class BaseSearchTestCase(TestCase):
    def setUp(self):
        super().setUp()
        clear_locale_cache()

        self.tech = make_category("Technology", "تەکنەلۆژیا", "تكنولوجيا")
        self.tech.description = {"en": "Gadgets and devices"}
        self.tech.save()
        self.sports = make_category("Sports", "وەرزش", "رياضة")
        self.music = make_category("Music", "مۆسیقا", "موسيقى")

        self.brand = Brand.objects.create(code="AC", name="ACME Tools")

        self.red = Tag.objects.create(name_en="Red", name_ar="أحمر")
        self.blue = Tag.objects.create(name_en="Blue", name_ar="أزرق")

        self.service = TranslatableSearchService(LocaleResolver(current_locale="en"))


class SearchTests(BaseSearchTestCase):
    ALL_LOCALES = ["en", "ku", "ar"]

    def test_searches_across_locales(self):
        results = self.service.search_across_locales(Category, "Technology", ["name"], self.ALL_LOCALES)
        self.assertEqual(results, [self.tech])

        results = self.service.search_across_locales(Category, "وەرزش", ["name"], self.ALL_LOCALES)
        self.assertEqual(results, [self.sports])

    def test_restricted_locales(self):
        results = self.service.search_across_locales(Category, "وەرزش", ["name"], ["en"])
        self.assertEqual(results, [])

    def test_substring_matches_only_in_searched_locales(self):
        self.assertEqual(self.service.search_across_locales(Category, "echno", ["name"], ["en"]), [self.tech])
        self.assertEqual(self.service.search_across_locales(Category, "رياض", ["name"], ["ar"]), [self.sports])
        self.assertEqual(self.service.search_across_locales(Category, "رياض", ["name"], ["en", "ku"]), [])
        self.assertEqual(self.service.search_across_locales(Category, "nothing", ["name"], self.ALL_LOCALES), [])

    def test_search_is_case_insensitive(self):
        self.assertEqual(self.service.search(Category, "technology"), [self.tech])
        self.assertEqual(self.service.search(Category, "SPORTS"), [self.sports])

    def test_empty_search_returns_nothing(self):
        self.assertEqual(self.service.search(Category, ""), [])
        self.assertEqual(self.service.search(Category, "   "), [])
        self.assertEqual(self.service.search(Category, None), [])

    def test_default_locales_come_from_resolver(self):
        # settings → ["en", "ku", "ar"]
        self.assertEqual(self.service.search(Category, "مۆسیقا"), [self.music])

    def test_explicit_empty_locales_match_nothing(self):
        self.assertEqual(self.service.search(Category, "Technology", {"search_locales": []}), [])

    def test_searches_translated_description_by_default(self):
        self.assertEqual(self.service.search(Category, "gadgets"), [self.tech])
        self.assertEqual(self.service.search(Category, "gadgets", {"search_fields": ["name"]}), [])

    def test_query_modifier_runs_before_search(self):
        make_category("Inactive Technology", "", "", is_active=False)
        seen = []

        def only_active(qs):
            seen.append(qs.model)
            return qs.filter(is_active=True)

        results = self.service.search(Category, "Technology", {"query_modifier": only_active})

        self.assertEqual(results, [self.tech])
        self.assertEqual(seen, [Category])

    def test_limit(self):
        # "s" is in "Sports" and "Music"
        options = {"search_fields": ["name"], "search_locales": ["en"]}
        self.assertEqual(self.service.search(Category, "s", options), [self.sports, self.music])
        self.assertEqual(self.service.search(Category, "s", {**options, "limit": 1}), [self.sports])

    def test_default_search_fields(self):
        self.assertEqual(self.service.get_default_search_fields(Category), ["name", "description"])
        self.assertEqual(self.service.get_default_search_fields(Product), ["name", "description", "code"])
        self.assertEqual(self.service.get_default_search_fields(Brand), ["name"])
        self.assertEqual(self.service.get_default_search_fields(Brand, "code"), ["code"])

    def test_plain_fields(self):
        self.assertEqual(self.service.search(Brand, "acme"), [self.brand])

        product = Product.objects.create(code="TECH-001", name={"en": "Laptop"})
        self.assertEqual(self.service.search(Product, "tech-0"), [product])
        self.assertEqual(self.service.search(Product, "laptop"), [product])

    def test_modeltranslation_model(self):
        self.assertEqual(self.service.search_across_locales(Tag, "أحمر", ["name"], ["en", "ar"]), [self.red])
        self.assertEqual(self.service.search_across_locales(Tag, "blu", ["name"], ["en", "ar"]), [self.blue])
        self.assertEqual(self.service.search_across_locales(Tag, "أحمر", ["name"], ["en"]), [])
        # no name_ku column
        self.assertEqual(self.service.search_across_locales(Tag, "Red", ["name"], ["ku"]), [])

    def test_invalid_locale_codes_are_skipped(self):
        results = self.service.search_across_locales(
            Category, "Technology", ["name"], ["en') OR 1=1 --"]
        )
        self.assertEqual(results, [])

        results = self.service.search_across_locales(Category, "Technology", ["name"], ["bad code", "en"])
        self.assertEqual(results, [self.tech])

    def test_term_is_folded_by_the_database(self):
        self.assertEqual(self.service._like_term("Спорт"), "%Спорт%")
        for vendor in ("sqlite", "mysql", "postgresql", "oracle"):
            self.assertIn("LIKE LOWER(%s)", get_json_template(vendor))

    def test_cased_non_ascii_text(self):
        sport = Category.objects.create(name={"en": "Sport", "ru": "Спорт", "el": "Άθληση"})

        self.assertEqual(self.service.search_across_locales(Category, "Спорт", ["name"], ["en", "ru"]), [sport])
        self.assertEqual(self.service.search_across_locales(Category, "пор", ["name"], ["en", "ru"]), [sport])
        self.assertEqual(self.service.search_across_locales(Category, "Άθλ", ["name"], ["el"]), [sport])
        self.assertEqual(self.service.search_across_locales(Category, "Спорт", ["name"], ["en"]), [])

    def test_negative_limit_is_rejected(self):
        with self.assertRaises(ValueError):
            self.service.search_across_locales(Category, "Sports", ["name"], ["en"], limit=-1)
        with self.assertRaises(ValueError):
            self.service.preload_options(Category, "name", limit=-5)

    def test_zero_limit(self):
        self.assertEqual(self.service.search_across_locales(Category, "Sports", ["name"], ["en"], limit=0), [])
        self.assertEqual(self.service.preload_options(Category, "name", limit=0), {})

    def test_custom_template_is_used(self):
        never = "{field} IS NULL AND %s IS NOT NULL"
        with override_settings(TRANSLATABLE_SELECT={
            "LOCALE_STRATEGY": "config",
            "DATABASE": {"JSON_EXTRACTION": {"sqlite": never}},
        }):
            self.assertEqual(self.service.search(Category, "Technology"), [])

        self.assertEqual(self.service.search(Category, "Technology"), [self.tech])


class JsonTemplateTests(SimpleTestCase):
    def test_vendor_templates(self):
        self.assertIn("json_extract", get_json_template("sqlite"))
        self.assertIn("JSON_UNQUOTE", get_json_template("mysql"))
        self.assertIn("->>", get_json_template("postgresql"))

    def test_aliases_and_generic_fallback(self):
        self.assertEqual(get_json_template("pgsql"), get_json_template("postgresql"))
        self.assertEqual(get_json_template("oracle"), "LOWER(CAST({field} AS TEXT)) LIKE LOWER(%s)")

    @override_settings(TRANSLATABLE_SELECT={"DATABASE": {"JSON_EXTRACTION": {"oracle": "JSON_VALUE({field}, '$.{locale}') LIKE %s"}}})
    def test_custom_vendor_template(self):
        self.assertEqual(get_json_template("oracle"), "JSON_VALUE({field}, '$.{locale}') LIKE %s")


class LabelTests(BaseSearchTestCase):
    def test_label_current_locale(self):
        service = TranslatableSearchService(LocaleResolver(current_locale="ku"))
        self.assertEqual(service.get_translated_label(self.tech, "name"), "تەکنەلۆژیا")

    def test_label_fallback_locale(self):
        service = TranslatableSearchService(LocaleResolver(current_locale="fr"))
        self.assertEqual(service.get_translated_label(self.tech, "name"), "Technology")

    def test_label_preferred_locale(self):
        self.assertEqual(self.service.get_translated_label(self.tech, "name", "ar"), "تكنولوجيا")

    def test_label_non_translatable(self):
        self.assertEqual(self.service.get_translated_label(self.brand, "name"), "ACME Tools")
        self.assertEqual(self.service.get_translated_label(self.brand, "id"), str(self.brand.id))
        self.assertEqual(self.service.get_translated_label(self.brand, "missing"), "")

    def test_label_non_translatable_mapping_is_stringified(self):
        self.brand.extra = {"en": "ACME"}
        self.assertEqual(self.service.get_translated_label(self.brand, "extra"), str({"en": "ACME"}))

    def test_label_without_translations(self):
        empty = Category.objects.create(name={})
        blank = Category.objects.create(name={"en": "", "ar": None})

        self.assertEqual(self.service.get_translated_label(empty, "name"), "")
        self.assertEqual(self.service.get_translated_label(blank, "name"), "")

    def test_label_modeltranslation(self):
        arabic = TranslatableSearchService(LocaleResolver(current_locale="ar"))
        french = TranslatableSearchService(LocaleResolver(current_locale="fr"))

        self.assertEqual(arabic.get_translated_label(self.red, "name"), "أحمر")
        self.assertEqual(french.get_translated_label(self.red, "name"), "Red")

    def test_labels_keep_order(self):
        service = TranslatableSearchService(LocaleResolver(current_locale="ku"))
        labels = service.get_translated_labels([self.sports, self.tech], "name")

        self.assertEqual(list(labels.items()), [(self.sports.pk, "وەرزش"), (self.tech.pk, "تەکنەلۆژیا")])


class SelectResultsTests(BaseSearchTestCase):
    def setUp(self):
        super().setUp()
        self.tech_news = make_category("Technology News", "هەواڵی تەکنەلۆژیا", "أخبار التكنولوجيا")
        self.sports_news = make_category("Sports News", "هەواڵی وەرزش", "أخبار الرياضة")

    def test_results_match_search(self):
        options = {"search_fields": ["name"], "search_locales": ["en", "ku", "ar"]}

        found = self.service.search(Category, "News", options)
        results = self.service.get_select_search_results(Category, "News", options)

        self.assertEqual(list(results), [obj.pk for obj in found])
        self.assertEqual(results, {self.tech_news.pk: "Technology News", self.sports_news.pk: "Sports News"})

    def test_results_respect_limit(self):
        results = self.service.get_select_search_results(Category, "هەواڵی", {"limit": 1})
        self.assertEqual(list(results), [self.tech_news.pk])

    def test_preferred_locale_for_labels(self):
        results = self.service.get_select_search_results(Category, "Sports News", preferred_locale="ar")
        self.assertEqual(results, {self.sports_news.pk: "أخبار الرياضة"})

    def test_formatter_label(self):
        results = self.service.get_select_search_results(
            Category,
            "News",
            {"formatter": lambda obj: f"#{obj.pk} {obj.get_translation('name', 'ar')}"},
        )
        self.assertEqual(results[self.tech_news.pk], f"#{self.tech_news.pk} أخبار التكنولوجيا")

    def test_formatter_mapping_last_write_wins(self):
        results = self.service.get_select_search_results(
            Category,
            "News",
            {"formatter": lambda obj: {"same": obj.get_translation("name", "en")}},
        )
        self.assertEqual(results, {"same": "Sports News"})

    def test_empty_search(self):
        self.assertEqual(self.service.get_select_search_results(Category, ""), {})


class PreloadTests(BaseSearchTestCase):
    def test_preload_options(self):
        options = self.service.preload_options(Category, "name")
        self.assertEqual(
            options,
            {self.tech.pk: "Technology", self.sports.pk: "Sports", self.music.pk: "Music"},
        )

    def test_preload_with_modifier_and_limit(self):
        options = self.service.preload_options(
            Category,
            "name",
            query_modifier=lambda qs: qs.exclude(pk=self.tech.pk),
            limit=1,
        )
        self.assertEqual(options, {self.sports.pk: "Sports"})

    def test_preload_in_another_locale(self):
        service = TranslatableSearchService(LocaleResolver(current_locale="ar"))
        options = service.preload_options(Tag, "name")
        self.assertEqual(options, {self.red.pk: "أحمر", self.blue.pk: "أزرق"})


# ============================================================
# TranslatableSelect
# ============================================================
class SelectConfigurationTests(SimpleTestCase):
    def test_for_model_accepts_label_or_class(self):
        self.assertIs(TranslatableSelect.for_model("category", "catalog.Category").get_model(), Category)
        self.assertIs(TranslatableSelect.for_model("category", Category).get_model_class(), Category)

    def test_for_model_rejects_bad_models(self):
        with self.assertRaises(ImproperlyConfigured):
            TranslatableSelect.for_model("category", "catalog.Nope")
        with self.assertRaises(ImproperlyConfigured):
            TranslatableSelect.for_model("category", "not-a-label")
        with self.assertRaises(ImproperlyConfigured):
            TranslatableSelect.for_model("category", dict)
        with self.assertRaises(ImproperlyConfigured):
            TranslatableSelect.for_model("category", Category())

    def test_relationship(self):
        select = TranslatableSelect.make("category").relationship()

        self.assertEqual(select.get_relationship_name(), "category")
        self.assertEqual(select.get_title_attribute(), "name")
        self.assertIsNone(select.get_model_class())

    def test_fluent_configuration(self):
        modifier = lambda qs: qs  # noqa: E731
        select = (
            TranslatableSelect.make("category")
            .relationship("category", "description", modify_query_using=modifier)
            .searchable_fields(["name", "slug"])
            .search_locales(["en", "ar"])
            .fallback_locale("ar")
            .preload()
            .multiple()
            .searchable(False)
            .search_debounce(500)
            .search_prompt("Type…")
            .searching_message("Searching…")
            .no_search_results_message("Nothing")
            .search_limit(10)
            .label("Category")
            .placeholder("Pick one")
            .helper_text("Help")
            .required(False)
            .disabled()
        )

        self.assertEqual(select.get_title_attribute(), "description")
        self.assertEqual(select.get_searchable_fields(), ["name", "slug"])
        self.assertEqual(select.get_search_locales(), ["en", "ar"])
        self.assertEqual(select.get_fallback_locale(), "ar")
        self.assertTrue(select.is_preloaded())
        self.assertTrue(select.is_multiple())
        self.assertFalse(select.is_searchable())
        self.assertEqual(select.get_search_debounce(), 500)
        self.assertEqual(select.get_search_prompt(), "Type…")
        self.assertEqual(select.get_searching_message(), "Searching…")
        self.assertEqual(select.get_no_search_results_message(), "Nothing")
        self.assertEqual(select.get_search_limit(), 10)
        self.assertEqual(select.get_label(), "Category")
        self.assertEqual(select.get_placeholder(), "Pick one")
        self.assertEqual(select.get_helper_text(), "Help")
        self.assertFalse(select.is_required())
        self.assertTrue(select.is_disabled())

    def test_flags_can_be_callables(self):
        select = TranslatableSelect.make("category").preload(lambda: False).multiple(lambda: True)
        self.assertFalse(select.is_preloaded())
        self.assertTrue(select.is_multiple())

    def test_defaults(self):
        select = TranslatableSelect.make("category")
        self.assertTrue(select.is_searchable())
        self.assertFalse(select.is_preloaded())
        self.assertEqual(select.get_search_limit(), 50)
        self.assertIsNone(select.get_search_locales())

    def test_unresolved_model_degrades_to_empty(self):
        select = TranslatableSelect.make("category").relationship("category")

        self.assertIsNone(select.get_model())
        self.assertEqual(select.get_search_results("Technology"), {})
        self.assertIsNone(select.get_option_label(1))
        self.assertEqual(select.get_option_labels([1, 2]), {})
        self.assertEqual(select.preload().get_options(), {})

    def test_formfield_needs_a_model(self):
        with self.assertRaises(ImproperlyConfigured):
            TranslatableSelect.make("category").relationship("category").formfield()


class ProductResource:
    pass


class BrandResource:
    pass


class SelectModelResolutionTests(SimpleTestCase):
    def test_from_bound_record(self):
        select = TranslatableSelect.make("category").relationship("category").bind(record=Product())
        self.assertIs(select.get_model(), Category)
        # cached
        self.assertIs(select.get_model_class(), Category)

    def test_many_to_many(self):
        select = TranslatableSelect.make("tags").relationship().bind(record=Product())
        self.assertIs(select.get_model(), Tag)

    def test_from_context_model_attribute(self):
        class Context:
            model = Product

        select = TranslatableSelect.make("category").relationship("category").bind(context=Context())
        self.assertIs(select.get_model(), Category)

    def test_from_context_model_label(self):
        class Context:
            model = "catalog.Product"

        select = TranslatableSelect.make("brand").relationship().bind(context=Context())
        self.assertIs(select.get_model(), Brand)

    def test_from_context_get_model(self):
        class Context:
            def get_model(self):
                return Product

        select = TranslatableSelect.make("category").relationship("category").bind(context=Context())
        self.assertIs(select.get_model(), Category)

    def test_from_resource_name(self):
        select = TranslatableSelect.make("category").relationship("category").bind(context=ProductResource())
        self.assertIs(select.get_model(), Category)

    def test_unknown_relationship(self):
        select = TranslatableSelect.make("category").relationship("category").bind(context=BrandResource())
        self.assertIsNone(select.get_model())

        select = TranslatableSelect.make("missing").relationship().bind(record=Product())
        self.assertIsNone(select.get_model())

    def test_context_without_model(self):
        select = TranslatableSelect.make("category").relationship("category").bind(context=object())
        self.assertIsNone(select.get_model())


class SelectHookTests(BaseSearchTestCase):
    def setUp(self):
        super().setUp()
        self.select = TranslatableSelect.for_model("category", Category).locale("en")

    def test_search_results_hook(self):
        self.assertEqual(self.select.get_search_results("وەرزش"), {self.sports.pk: "Sports"})
        self.assertEqual(self.select.get_search_results(""), {})

    def test_search_results_use_configured_fields_and_locales(self):
        select = self.select.searchable_fields(["name"]).search_locales(["en"])

        self.assertEqual(select.get_search_results("gadgets"), {})
        self.assertEqual(select.get_search_results("وەرزش"), {})
        self.assertEqual(select.get_search_results("Sports"), {self.sports.pk: "Sports"})

    def test_search_results_respect_modifier_and_limit(self):
        select = self.select.searchable_fields(["name"]).modify_query_using(lambda qs: qs.exclude(pk=self.sports.pk))
        self.assertEqual(select.get_search_results("s"), {self.music.pk: "Music"})

        select = TranslatableSelect.for_model("category", Category).locale("en").searchable_fields(["name"]).search_limit(1)
        self.assertEqual(select.get_search_results("s"), {self.sports.pk: "Sports"})

    def test_option_label(self):
        self.assertEqual(self.select.get_option_label(self.tech.pk), "Technology")
        self.assertEqual(self.select.get_option_label(str(self.tech.pk)), "Technology")
        self.assertEqual(self.select.locale("ku").get_option_label(self.tech.pk), "تەکنەلۆژیا")

    def test_option_label_misses(self):
        self.assertIsNone(self.select.get_option_label(None))
        self.assertIsNone(self.select.get_option_label(""))
        self.assertIsNone(self.select.get_option_label(999999))
        self.assertIsNone(self.select.get_option_label("abc"))

    def test_fallback_locale_override(self):
        select = self.select.locale("fr").fallback_locale("ar")
        self.assertEqual(select.get_option_label(self.tech.pk), "تكنولوجيا")

    def test_option_labels(self):
        labels = self.select.get_option_labels([self.tech.pk, self.sports.pk])
        self.assertEqual(labels, {self.tech.pk: "Technology", self.sports.pk: "Sports"})

        self.assertEqual(self.select.get_option_labels([]), {})
        self.assertEqual(self.select.get_option_labels(None), {})
        self.assertEqual(self.select.get_option_labels(["abc"]), {})

    def test_options_only_when_preloaded(self):
        self.assertEqual(self.select.get_options(), {})

        self.select.preload()
        self.assertEqual(
            self.select.get_options(),
            {self.tech.pk: "Technology", self.sports.pk: "Sports", self.music.pk: "Music"},
        )

    def test_hooks(self):
        hooks = self.select.preload().hooks()

        self.assertIsInstance(hooks, SelectHooks)
        self.assertEqual(hooks.search_results("Music"), {self.music.pk: "Music"})
        self.assertEqual(hooks.option_label(self.music.pk), "Music")
        self.assertEqual(hooks.option_labels([self.music.pk]), {self.music.pk: "Music"})
        self.assertEqual(len(hooks.options()), 3)

    def test_relationship_select_hooks(self):
        select = (
            TranslatableSelect.make("category")
            .relationship("category", modify_query_using=lambda qs: qs.filter(pk=self.tech.pk))
            .bind(record=Product(), locale="ar")
            .preload()
        )

        self.assertEqual(select.get_search_results("تكنولوجيا"), {self.tech.pk: "تكنولوجيا"})
        self.assertEqual(select.get_search_results("رياضة"), {})
        self.assertEqual(select.get_options(), {self.tech.pk: "تكنولوجيا"})


class SelectFormFieldTests(BaseSearchTestCase):
    def test_single_formfield(self):
        field = TranslatableSelect.for_model("category", Category).locale("en").formfield()

        self.assertEqual(field.__class__.__name__, "ModelChoiceField")
        self.assertEqual(field.label_from_instance(self.tech), "Technology")
        self.assertEqual(field.clean(str(self.sports.pk)), self.sports)

    def test_multiple_formfield(self):
        field = TranslatableSelect.for_model("tags", Tag).multiple().formfield(required=False)

        self.assertEqual(field.__class__.__name__, "ModelMultipleChoiceField")
        self.assertEqual(list(field.clean([str(self.red.pk)])), [self.red])

    def test_search_only_widget_renders_selected_values(self):
        field = TranslatableSelect.for_model("category", Category).locale("en").formfield()
        html = field.widget.render("category", self.tech.pk)

        self.assertIn("Technology", html)
        self.assertNotIn("Sports", html)
        self.assertIn('data-translatable-select="category"', html)
        self.assertIn('data-preload="false"', html)

    def test_preloaded_widget_renders_all_options(self):
        field = TranslatableSelect.for_model("category", Category).locale("en").preload().formfield()
        html = field.widget.render("category", None)

        for label in ("Technology", "Sports", "Music"):
            self.assertIn(label, html)

    def test_widget_attrs(self):
        select = (
            TranslatableSelect.for_model("category", Category)
            .search_url("/search/")
            .search_debounce(250)
            .placeholder("Pick")
        )
        attrs = select.get_widget_attrs()

        self.assertEqual(attrs["data-search-url"], "/search/")
        self.assertEqual(attrs["data-search-debounce"], "250")
        self.assertEqual(attrs["placeholder"], "Pick")
        self.assertNotIn("data-search-prompt", attrs)


# ============================================================
# Shortcuts
# ============================================================
class ShortcutTests(BaseSearchTestCase):
    def test_filter_translatable(self):
        qs = filter_translatable(Category.objects.filter(is_active=True), "tech")
        self.assertEqual(list(qs), [self.tech])

        self.assertEqual(filter_translatable(Category.objects.all(), "").count(), 3)
        self.assertEqual(filter_translatable(Category.objects.all(), "Sports", locales=[]).count(), 0)

    def test_search_with_translated_labels(self):
        results = search_with_translated_labels(Category, "رياضة", locale="ku")

        self.assertEqual(results, [self.sports])
        self.assertEqual(results[0].translated_label, "وەرزش")

    def test_get_search_results(self):
        self.assertEqual(get_search_results(Category, "Sports", locale="ar"), {self.sports.pk: "رياضة"})

    def test_get_formatted_search_results(self):
        results = get_formatted_search_results(Category, "Music", formatter=lambda obj: f"[{obj.slug or '-'}]")
        self.assertEqual(results, {self.music.pk: "[-]"})

    def test_get_all_translations(self):
        self.assertEqual(
            list(get_all_translations(self.tech, "name").items()),
            [("en", "Technology"), ("ku", "تەکنەلۆژیا"), ("ar", "تكنولوجيا")],
        )
        self.assertEqual(get_all_translations(self.brand, "name"), {"name": "ACME Tools"})
        self.assertEqual(get_all_translations(self.red, "name"), {"en": "Red", "ar": "أحمر"})
