"""
CountryRepository: lookup data for supported countries.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy import select

from backoffice.db.models import Country
from backoffice.db.repositories.base import BaseRepository, log_operation, with_retry


class CountryRepository(BaseRepository):
    """Repository for country lookups."""

    @with_retry(max_attempts=3, delay=1.0)
    @log_operation()
    async def list_active(self) -> List[Dict[str, Any]]:
        async with self.get_session() as session:
            result = await session.execute(select(Country).where(Country.active.is_(True)).order_by(Country.name))
            return [country.to_dict() for country in result.scalars().all()]

    @with_retry(max_attempts=3, delay=1.0)
    @log_operation()
    async def get_by_code(self, code: str) -> Optional[Dict[str, Any]]:
        async with self.get_session() as session:
            country = await session.scalar(select(Country).where(Country.code == code.upper()))
            return country.to_dict() if country else None

    @with_retry(max_attempts=3, delay=1.0)
    @log_operation()
    async def get_by_id(self, country_id: str) -> Optional[Dict[str, Any]]:
        async with self.get_session() as session:
            country = await session.get(Country, country_id)
            return country.to_dict() if country else None
