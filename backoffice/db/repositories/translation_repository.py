"""
TranslationRepository: translated strings keyed by (key, language).
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select

from backoffice.db.models import Translation
from backoffice.db.repositories.base import BaseRepository, log_operation, with_retry

logger = logging.getLogger(__name__)


class TranslationRepository(BaseRepository):
    """Repository for translations."""

    @with_retry(max_attempts=3, delay=1.0)
    @log_operation()
    async def get_value(self, key: str, language: str) -> Optional[str]:
        async with self.get_session() as session:
            return await session.scalar(
                select(Translation.value).where(Translation.key == key, Translation.language == language)
            )

    @log_operation()
    async def upsert(self, key: str, language: str, value: str, context: Optional[str] = None) -> Dict[str, Any]:
        """
        Creates the translation or replaces its value when (key, language) exists.

        Returns:
            Dict: Stored translation
        """
        async with self.get_session() as session:
            translation = await session.scalar(
                select(Translation).where(Translation.key == key, Translation.language == language)
            )

            if translation is None:
                translation = Translation(key=key, language=language, value=value, context=context)
                session.add(translation)
            else:
                translation.value = value
                if context is not None:
                    translation.context = context

            await session.commit()
            await session.refresh(translation)
            return translation.to_dict()

    @with_retry(max_attempts=3, delay=1.0)
    @log_operation()
    async def list_languages(self) -> List[str]:
        async with self.get_session() as session:
            result = await session.execute(select(Translation.language).distinct().order_by(Translation.language))
            return [language for language in result.scalars().all()]
