from __future__ import annotations

from django import forms
from django.utils.translation import gettext_lazy as _

from translatable_select.fields import TranslatableSelect

from .models import Product, Tag


# ============================================================
# Bootstrap Mixin (موحد)
# ============================================================
class BootstrapFormMixin:
    """
    Automatically apply Bootstrap 5 classes.
    """

    def _apply_bootstrap(self):
        for field in self.fields.values():
            widget = field.widget

            if isinstance(widget, (forms.TextInput, forms.Textarea, forms.NumberInput)):
                widget.attrs.setdefault("class", "form-control")
            elif isinstance(widget, forms.Select):
                widget.attrs.setdefault("class", "form-select")
            elif isinstance(widget, forms.CheckboxInput):
                widget.attrs.setdefault("class", "form-check-input")

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._apply_bootstrap()


# ============================================================
# Product
# ============================================================
class ProductForm(BootstrapFormMixin, forms.ModelForm):
    """
    - category: بحث عند الكتابة فقط (بدون تحميل كل التصنيفات)
    - tags: اختيار متعدد مع تحميل مسبق للوسوم
    """

    class Meta:
        model = Product
        fields = ["code", "category", "tags", "is_active"]

    def __init__(self, *args, locale=None, **kwargs):
        super().__init__(*args, **kwargs)

        self.category_select = (
            TranslatableSelect.make("category")
            .relationship("category", modify_query_using=lambda qs: qs.filter(is_active=True))
            .bind(record=self.instance, locale=locale)
            .search_url("/catalog/categories/search/")
            .search_prompt(_("اكتب للبحث عن تصنيف..."))
            .no_search_results_message(_("لا توجد نتائج."))
            .search_debounce(300)
        )
        self.fields["category"] = self.category_select.formfield(required=False, label=_("التصنيف"))

        self.tags_select = (
            TranslatableSelect.for_model("tags", Tag)
            .bind(locale=locale)
            .multiple()
            .preload()
        )
        self.fields["tags"] = self.tags_select.formfield(required=False, label=_("الوسوم"))

        self._apply_bootstrap()
