# catalog/models.py

from __future__ import annotations

from django.db import models
from django.utils.translation import gettext_lazy as _

from translatable_select.translatable import TranslatableModel


# ============================================================
# Categories (JSON translations)
# ============================================================
class Category(TranslatableModel):
    name = models.JSONField(default=dict, verbose_name=_("الاسم"))
    description = models.JSONField(default=dict, blank=True, verbose_name=_("الوصف"))
    slug = models.SlugField(max_length=120, blank=True, verbose_name=_("المعرّف (Slug)"))
    is_active = models.BooleanField(default=True, verbose_name=_("نشط"))

    translatable = ["name", "description"]

    class Meta:
        verbose_name = _("تصنيف")
        verbose_name_plural = _("التصنيفات")
        ordering = ("id",)

    def __str__(self) -> str:
        return self.get_translation("name", "en")


# ============================================================
# Brands (plain, not translatable)
# ============================================================
class Brand(models.Model):
    code = models.CharField(max_length=20, blank=True, verbose_name=_("الكود"))
    name = models.CharField(max_length=200, verbose_name=_("اسم العلامة"))

    class Meta:
        verbose_name = _("علامة تجارية")
        ordering = ("id",)

    def __str__(self) -> str:
        return self.name


# ============================================================
# Tags (modeltranslation, see translation.py)
# ============================================================
class Tag(models.Model):
    name = models.CharField(max_length=100, verbose_name=_("الاسم"))

    class Meta:
        verbose_name = _("وسم")
        ordering = ("id",)

    def __str__(self) -> str:
        return self.name or ""


# ============================================================
# Products
# ============================================================
class Product(TranslatableModel):
    category = models.ForeignKey(
        Category,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="products",
        verbose_name=_("التصنيف"),
    )
    brand = models.ForeignKey(
        Brand,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="products",
        verbose_name=_("العلامة التجارية"),
    )
    tags = models.ManyToManyField(Tag, blank=True, related_name="products", verbose_name=_("الوسوم"))

    code = models.CharField(max_length=50, blank=True, verbose_name=_("كود المنتج (SKU)"))
    name = models.JSONField(default=dict, verbose_name=_("اسم المنتج"))
    description = models.JSONField(default=dict, blank=True, verbose_name=_("الوصف"))
    is_active = models.BooleanField(default=True, verbose_name=_("نشط"))

    translatable = ["name", "description"]

    class Meta:
        verbose_name = _("منتج")
        verbose_name_plural = _("المنتجات")
        ordering = ("id",)

    def __str__(self) -> str:
        return f"{self.code} – {self.get_translation('name', 'en')}" if self.code else self.get_translation("name", "en")

    @classmethod
    def get_translatable_locales(cls) -> list[str]:
        # المنتجات تُدخل بالعربية والإنجليزية فقط
        return ["en", "ar"]

    @classmethod
    def get_non_translatable_search_fields(cls) -> list[str]:
        return ["code"]
