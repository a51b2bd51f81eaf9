"""
I18nService: translated strings with Redis cache and DB fallback.
"""

import logging
from typing import Any, Dict, List, Optional

from backoffice.core.config import get_settings
from backoffice.core.redis_client import delete_cache, get_cache, set_cache
from backoffice.db.repositories import TranslationRepository
from backoffice.services.i18n.languages import detect_language, replace_variables

settings = get_settings()
logger = logging.getLogger(__name__)

DEFAULT_AVAILABLE_LANGUAGES = ["en", "pt-BR", "zh-CN"]


def translation_cache_key(key: str, language: str) -> str:
    return f"translation:{language}:{key}"


class I18nService:
    """
    Traducciones por (clave, idioma).

    Orden de búsqueda: cache Redis, base de datos en el idioma pedido,
    base de datos en el idioma de fallback. Sin resultado devuelve la clave.
    """

    def __init__(self, repository: Optional[TranslationRepository] = None):
        self.repository = repository or TranslationRepository()

    async def _lookup(self, key: str, language: str) -> Optional[str]:
        cache_key = translation_cache_key(key, language)

        cached = await get_cache(cache_key)
        if cached is not None:
            return cached

        value = await self.repository.get_value(key, language)
        if value is not None:
            await set_cache(cache_key, value, expire=settings.TRANSLATION_CACHE_TTL)
        return value

    async def translate(
        self,
        key: str,
        language: Optional[str] = None,
        variables: Optional[Dict[str, Any]] = None,
        fallback: Optional[str] = None,
    ) -> str:
        """
        Traduce una clave y sustituye las variables.

        Args:
            key: Clave de traducción
            language: Idioma pedido (DEFAULT_LANGUAGE si falta)
            variables: Valores para ``{{ var }}``
            fallback: Idioma de fallback (FALLBACK_LANGUAGE si falta)

        Returns:
            str: Texto traducido, o la clave si no existe traducción
        """
        language = language or settings.DEFAULT_LANGUAGE
        fallback = fallback or settings.FALLBACK_LANGUAGE

        translation = await self._lookup(key, language)
        if translation is None and fallback != language:
            translation = await self._lookup(key, fallback)

        if translation is None:
            logger.warning(f"⚠️ Translation not found for key: {key}, language: {language}")
            return key

        return replace_variables(translation, variables)

    async def add_translation(
        self, key: str, language: str, value: str, context: Optional[str] = None
    ) -> Dict[str, Any]:
        translation = await self.repository.upsert(key, language, value, context)
        await delete_cache(translation_cache_key(key, language))
        logger.info(f"✅ Translation saved: {key} [{language}]")
        return translation

    async def get_available_languages(self) -> List[str]:
        languages = await self.repository.list_languages()
        return languages or list(DEFAULT_AVAILABLE_LANGUAGES)

    def detect_language(self, phone: Optional[str] = None, country: Optional[str] = None) -> str:
        return detect_language(phone, country)
