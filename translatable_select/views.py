# translatable_select/views.py
import copy
import logging

from django.core.exceptions import ImproperlyConfigured
from django.http import JsonResponse
from django.utils import translation
from django.views import View

from .fields import TranslatableSelect

logger = logging.getLogger(__name__)


class TranslatableSelectSearchView(View):
    """
    JSON endpoint used by the select while the user types.

        path(
            "categories/search/",
            TranslatableSelectSearchView.as_view(
                select=TranslatableSelect.for_model("category", "catalog.Category"),
            ),
        )

    GET ?term=... (or ?q=...) →
    {"results": [{"id": "1", "text": "Technology"}], "pagination": {"more": false}}

    The same shape Django admin's autocomplete (select2) expects.
    """

    http_method_names = ["get"]

    select: TranslatableSelect = None
    # اختياري: الموديل المالك للعلاقة لو الـ select بوضع relationship
    model = None

    def get_select(self) -> TranslatableSelect:
        if self.select is None:
            raise ImproperlyConfigured(f"{type(self).__name__} requires a 'select'.")
        # نسخة لكل طلب حتى لا يتشارك الطلبات نفس الـ bind()
        select = copy.copy(self.select)
        return select.bind(context=self, locale=translation.get_language())

    def get_search_term(self) -> str:
        return (self.request.GET.get("term") or self.request.GET.get("q") or "").strip()

    def serialize_result(self, pk, label) -> dict:
        return {"id": str(pk), "text": label}

    def get(self, request, *args, **kwargs):
        select = self.get_select()
        term = self.get_search_term()

        results = select.get_search_results(term) if term else {}
        logger.debug("Select %s search %r → %d result(s)", select.name, term, len(results))

        return JsonResponse(
            {
                "results": [self.serialize_result(pk, label) for pk, label in results.items()],
                "pagination": {"more": False},
            }
        )
