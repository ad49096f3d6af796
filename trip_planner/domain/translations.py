from __future__ import annotations

import logging
from typing import Dict, Optional

from trip_planner.domain.failures import StorageCorrupt
from trip_planner.domain.storage import KeyValueStorage

logger = logging.getLogger(__name__)

SUPPORTED_LOCALES = ("en", "ar")
LOCALE_STORAGE_KEY = "locale"

CATALOGUE: Dict[str, Dict[str, str]] = {
    "en": {
        "errorTitle": "Oops! Something went wrong.",
        "errorCreateNewPlan": "Create a New Plan",
        "apiKeyModalError": "Your API key seems to be invalid. Please enter a valid key.",
        "parseError": "The AI returned data in an unexpected format. Please try again.",
        "networkError": "Failed to reach the AI service due to a network or server issue. Please check your connection and try again.",
        "unknownError": "An unknown error occurred. Please try again.",
        "durationValidationError": "Please enter a valid number of days.",
        "destinationValidationError": "Please enter a destination.",
        "formValidationAlert": "Please fill in the destination, duration and interests.",
        "apiKeyRequired": "Please enter your API key.",
        "attractionsError": "Could not fetch attractions. Please try again.",
        "itineraryNotFoundError": "The requested itinerary could not be found. It may have been saved on another device.",
        "itineraryNoSavedPlans": "No saved plans were found on this device.",
        "itineraryLoadError": "Failed to load the saved itinerary.",
        "itinerarySaveSuccess": "Itinerary saved! You can now share the link.",
        "itinerarySaveError": "Failed to save the itinerary.",
        "nothingToSave": "There is no itinerary to save yet.",
        "categoryLandmarks & Monuments": "Landmarks & Monuments",
        "categoryMuseums & Galleries": "Museums & Galleries",
        "categoryNature & Parks": "Nature & Parks",
        "categoryShopping & Markets": "Shopping & Markets",
        "categoryEntertainment": "Entertainment",
    },
    "ar": {
        "errorTitle": "عفوًا! حدث خطأ ما.",
        "errorCreateNewPlan": "إنشاء خطة جديدة",
        "apiKeyModalError": "يبدو أن مفتاح API غير صالح. يرجى إدخال مفتاح صالح.",
        "parseError": "أعاد الذكاء الاصطناعي بيانات بتنسيق غير متوقع. يرجى المحاولة مرة أخرى.",
        "networkError": "تعذر الوصول إلى خدمة الذكاء الاصطناعي بسبب مشكلة في الشبكة أو الخادم. يرجى التحقق من اتصالك والمحاولة مرة أخرى.",
        "unknownError": "حدث خطأ غير معروف. يرجى المحاولة مرة أخرى.",
        "durationValidationError": "يرجى إدخال عدد أيام صالح.",
        "destinationValidationError": "يرجى إدخال الوجهة.",
        "formValidationAlert": "يرجى ملء الوجهة والمدة والاهتمامات.",
        "apiKeyRequired": "يرجى إدخال مفتاح API الخاص بك.",
        "attractionsError": "تعذر جلب المعالم السياحية. يرجى المحاولة مرة أخرى.",
        "itineraryNotFoundError": "تعذر العثور على خط الرحلة المطلوب. ربما تم حفظه على جهاز آخر.",
        "itineraryNoSavedPlans": "لم يتم العثور على خطط محفوظة على هذا الجهاز.",
        "itineraryLoadError": "فشل تحميل خط الرحلة المحفوظ.",
        "itinerarySaveSuccess": "تم حفظ خط الرحلة! يمكنك الآن مشاركة الرابط.",
        "itinerarySaveError": "فشل حفظ خط الرحلة.",
        "nothingToSave": "لا يوجد خط رحلة لحفظه بعد.",
        "categoryLandmarks & Monuments": "المعالم والآثار",
        "categoryMuseums & Galleries": "المتاحف والمعارض",
        "categoryNature & Parks": "الطبيعة والحدائق",
        "categoryShopping & Markets": "التسوق والأسواق",
        "categoryEntertainment": "الترفيه",
    },
}


class Translator:
    """Key lookup against the active locale; unresolved keys come back unchanged."""

    def __init__(self, storage: KeyValueStorage, default_locale: str = "en"):
        self.storage = storage
        self.default_locale = default_locale if default_locale in SUPPORTED_LOCALES else "en"

    @property
    def locale(self) -> str:
        try:
            saved = self.storage.get(LOCALE_STORAGE_KEY)
        except StorageCorrupt:
            logger.warning("Locale preference is unreadable; using %s", self.default_locale)
            return self.default_locale
        return saved if saved in SUPPORTED_LOCALES else self.default_locale

    def set_locale(self, locale: str) -> None:
        if locale not in SUPPORTED_LOCALES:
            raise ValueError(f"Unsupported locale: {locale}")
        self.storage.set(LOCALE_STORAGE_KEY, locale)
        logger.debug("Locale switched to %s", locale)

    def t(self, key: str, locale: Optional[str] = None) -> str:
        return CATALOGUE.get(locale or self.locale, {}).get(key, key)

    def catalogue(self) -> Dict[str, str]:
        return dict(CATALOGUE.get(self.locale, {}))
