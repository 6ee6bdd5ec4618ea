from django.core.exceptions import ImproperlyConfigured
from django.http import QueryDict
from django.test import RequestFactory, TestCase
from django.urls import reverse

from catalog.forms import ProductForm
from catalog.models import Category, Product, Tag
from translatable_select.fields import TranslatableSelect
from translatable_select.services import clear_locale_cache
from translatable_select.views import TranslatableSelectSearchView


class BaseCatalogTestCase(TestCase):
    def setUp(self):
        clear_locale_cache()

        # Categories
        self.tech = Category.objects.create(
            name={"en": "Technology", "ku": "تەکنەلۆژیا", "ar": "تكنولوجيا"},
            slug="technology",
        )
        self.sports = Category.objects.create(
            name={"en": "Sports", "ku": "وەرزش", "ar": "رياضة"},
            slug="sports",
        )
        self.old_tech = Category.objects.create(
            name={"en": "Old Technology", "ar": "تكنولوجيا قديمة"},
            slug="old-technology",
            is_active=False,
        )

        # Tags
        self.red = Tag.objects.create(name_en="Red", name_ar="أحمر")
        self.blue = Tag.objects.create(name_en="Blue", name_ar="أزرق")


# ============================================================
# Search endpoint
# ============================================================
class CategorySearchViewTests(BaseCatalogTestCase):
    def setUp(self):
        super().setUp()
        self.url = reverse("catalog:category_search")

    def test_returns_select2_payload(self):
        response = self.client.get(self.url, {"term": "tech"})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response.json(),
            {
                "results": [{"id": str(self.tech.pk), "text": "Technology"}],
                "pagination": {"more": False},
            },
        )

    def test_q_parameter(self):
        data = self.client.get(self.url, {"q": "رياضة"}).json()
        self.assertEqual(data["results"], [{"id": str(self.sports.pk), "text": "Sports"}])

    def test_inactive_categories_are_hidden(self):
        data = self.client.get(self.url, {"term": "old"}).json()
        self.assertEqual(data["results"], [])

    def test_empty_term(self):
        self.assertEqual(self.client.get(self.url).json()["results"], [])
        self.assertEqual(self.client.get(self.url, {"term": "   "}).json()["results"], [])

    def test_labels_follow_request_language(self):
        data = self.client.get(self.url, {"term": "Technology"}, HTTP_ACCEPT_LANGUAGE="ar").json()
        self.assertEqual(data["results"], [{"id": str(self.tech.pk), "text": "تكنولوجيا"}])

    def test_post_not_allowed(self):
        self.assertEqual(self.client.post(self.url, {"term": "tech"}).status_code, 405)


class RelationshipSearchViewTests(BaseCatalogTestCase):
    def test_related_model_comes_from_view_model(self):
        url = reverse("catalog:product_category_search")
        data = self.client.get(url, {"term": "sports"}).json()

        self.assertEqual(data["results"], [{"id": str(self.sports.pk), "text": "Sports"}])

    def test_view_without_select(self):
        request = RequestFactory().get("/search/", {"term": "tech"})

        with self.assertRaises(ImproperlyConfigured):
            TranslatableSelectSearchView.as_view()(request)

    def test_unresolvable_relationship_returns_no_results(self):
        view = TranslatableSelectSearchView.as_view(select=TranslatableSelect.make("category").relationship())
        response = view(RequestFactory().get("/search/", {"term": "tech"}))

        self.assertEqual(response.status_code, 200)
        self.assertJSONEqual(response.content, {"results": [], "pagination": {"more": False}})

    def test_requests_do_not_share_bound_state(self):
        select = TranslatableSelect.make("category").relationship("category")
        view = TranslatableSelectSearchView.as_view(select=select, model=Product)

        view(RequestFactory().get("/search/", {"term": "tech"}))
        self.assertIsNone(select.get_model())


# ============================================================
# ProductForm
# ============================================================
class ProductFormTests(BaseCatalogTestCase):
    def test_valid_form_saves_relations(self):
        form = ProductForm(
            data={
                "code": "P-001",
                "category": str(self.tech.pk),
                "tags": [str(self.red.pk), str(self.blue.pk)],
                "is_active": "on",
            }
        )

        self.assertTrue(form.is_valid(), form.errors)
        product = form.save()

        self.assertEqual(product.category, self.tech)
        self.assertEqual(set(product.tags.all()), {self.red, self.blue})

    def test_multiple_tags_from_query_dict(self):
        data = QueryDict(mutable=True)
        data["code"] = "P-005"
        data.setlist("tags", [str(self.red.pk), str(self.blue.pk)])

        form = ProductForm(data=data)

        self.assertTrue(form.is_valid(), form.errors)
        self.assertEqual(list(form.cleaned_data["tags"]), [self.red, self.blue])

    def test_inactive_category_is_rejected(self):
        form = ProductForm(data={"code": "P-002", "category": str(self.old_tech.pk)})

        self.assertFalse(form.is_valid())
        self.assertIn("category", form.errors)

    def test_category_and_tags_are_optional(self):
        form = ProductForm(data={"code": "P-003"})
        self.assertTrue(form.is_valid(), form.errors)

    def test_category_renders_selected_value_only(self):
        product = Product.objects.create(code="P-004", category=self.sports)
        html = str(ProductForm(instance=product, locale="ku")["category"])

        self.assertIn("وەرزش", html)
        self.assertNotIn("تەکنەلۆژیا", html)
        self.assertIn('data-search-url="/catalog/categories/search/"', html)
        self.assertIn('data-search-debounce="300"', html)
        self.assertIn("form-select", html)

    def test_tags_are_preloaded_in_form_locale(self):
        html = str(ProductForm(locale="ar")["tags"])

        self.assertIn("أحمر", html)
        self.assertIn("أزرق", html)
        self.assertIn("multiple", html)

    def test_choice_labels_are_translated(self):
        form = ProductForm(locale="ar")
        self.assertEqual(form.fields["category"].label_from_instance(self.tech), "تكنولوجيا")
