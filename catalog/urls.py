from django.urls import path

from translatable_select.fields import TranslatableSelect
from translatable_select.views import TranslatableSelectSearchView

app_name = "catalog"

urlpatterns = [
    path(
        "categories/search/",
        TranslatableSelectSearchView.as_view(
            select=TranslatableSelect.for_model(
                "category",
                "catalog.Category",
                modify_query_using=lambda qs: qs.filter(is_active=True),
            ).search_limit(20),
        ),
        name="category_search",
    ),
    path(
        "products/search/",
        TranslatableSelectSearchView.as_view(
            select=TranslatableSelect.make("category").relationship("category"),
            model="catalog.Product",
        ),
        name="product_category_search",
    ),
]
