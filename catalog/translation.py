# catalog/translation.py

from modeltranslation.translator import register, TranslationOptions

from .models import Tag


# Tag يستخدم modeltranslation (عمود لكل لغة: name_en, name_ar)
# بينما Category و Product يخزنون الترجمات في JSON
@register(Tag)
class TagTranslationOptions(TranslationOptions):
    fields = ("name",)
