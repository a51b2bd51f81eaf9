"""
Internationalization services: language detection, variable substitution and translations.
"""

from .i18n_service import I18nService
from .languages import (
    detect_language,
    get_language_by_country,
    get_language_by_phone,
    replace_variables,
)

__all__ = [
    "I18nService",
    "detect_language",
    "get_language_by_country",
    "get_language_by_phone",
    "replace_variables",
]
