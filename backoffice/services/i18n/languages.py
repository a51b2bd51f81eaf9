"""
Language detection from country codes and phone prefixes.
"""

import re
from typing import Any, Dict, Optional

from backoffice.core.config import get_settings

settings = get_settings()

COUNTRY_LANGUAGES: Dict[str, str] = {
    "BR": "pt-BR",
    "CN": "zh-CN",
    "US": "en",
    "GB": "en",
    "CA": "en",
    "AU": "en",
    "DE": "de",
    "FR": "fr",
    "IT": "it",
    "ES": "es",
    "JP": "ja",
    "KR": "ko",
    "IN": "hi",
    "MX": "es",
    "TR": "tr",
    "TH": "th",
}

PHONE_PREFIX_LANGUAGES: Dict[str, str] = {
    "+55": "pt-BR",
    "+1": "en",
    "+44": "en",
    "+61": "en",
    "+64": "en",
    "+27": "en",
    "+86": "zh-CN",
    "+852": "zh-CN",
    "+853": "zh-CN",
    "+886": "zh-CN",
    "+49": "de",
    "+33": "fr",
    "+39": "it",
    "+7": "ru",
    "+351": "pt",
    "+81": "ja",
    "+82": "ko",
    "+91": "hi",
    # Hispanohablantes
    "+34": "es",
    "+52": "es",
    "+54": "es",
    "+56": "es",
    "+57": "es",
    "+51": "es",
    "+598": "es",
    "+595": "es",
    "+593": "es",
    "+58": "es",
    "+591": "es",
    "+507": "es",
    "+506": "es",
    "+502": "es",
    "+504": "es",
    "+505": "es",
    "+503": "es",
    "+809": "es",
    "+53": "es",
}

# Del más específico al menos específico
_SORTED_PREFIXES = sorted(PHONE_PREFIX_LANGUAGES, key=len, reverse=True)

_VARIABLE_PATTERN = re.compile(r"\{\{\s*(\w+)\s*\}\}")


def get_language_by_country(country_code: Optional[str]) -> str:
    """
    Idioma principal de un país.

    Args:
        country_code: Código ISO-2

    Returns:
        str: Código de idioma, DEFAULT_LANGUAGE si el país no está mapeado
    """
    if not country_code:
        return settings.DEFAULT_LANGUAGE
    return COUNTRY_LANGUAGES.get(country_code.strip().upper(), settings.DEFAULT_LANGUAGE)


def normalize_phone(phone: str) -> str:
    """Deja sólo dígitos y ``+``, agregando el ``+`` inicial si falta."""
    clean = re.sub(r"[^\d+]", "", phone or "")
    if clean and not clean.startswith("+"):
        clean = f"+{clean}"
    return clean


def get_language_by_phone(phone: Optional[str]) -> Optional[str]:
    """
    Idioma asociado al prefijo internacional del teléfono.

    Args:
        phone: Número de teléfono en cualquier formato

    Returns:
        Optional[str]: Código de idioma, None si ningún prefijo coincide
    """
    clean = normalize_phone(phone or "")
    if not clean:
        return None

    for prefix in _SORTED_PREFIXES:
        if clean.startswith(prefix):
            return PHONE_PREFIX_LANGUAGES[prefix]

    return None


def detect_language(phone: Optional[str] = None, country_code: Optional[str] = None) -> str:
    """Detecta el idioma por teléfono primero y luego por país."""
    return get_language_by_phone(phone) or get_language_by_country(country_code)


def replace_variables(text: str, variables: Optional[Dict[str, Any]] = None) -> str:
    """
    Reemplaza ``{{ key }}`` por su valor, tolerando espacios.

    Las claves desconocidas quedan intactas.
    """
    if not variables:
        return text

    def _substitute(match: re.Match) -> str:
        key = match.group(1)
        return str(variables[key]) if key in variables else match.group(0)

    return _VARIABLE_PATTERN.sub(_substitute, text)
