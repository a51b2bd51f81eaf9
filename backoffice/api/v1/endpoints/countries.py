"""
Endpoints de países.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends

from backoffice.api.dependencies import get_country_repository
from backoffice.api.responses import success_response
from backoffice.db.repositories import CountryRepository
from backoffice.utils.error_handler import NotFoundException

router = APIRouter()


@router.get("/", summary="Listar países ativos")
async def list_countries(repository: CountryRepository = Depends(get_country_repository)) -> Dict[str, Any]:
    return success_response(await repository.list_active())


@router.get("/{code}", summary="Obter país pelo código ISO")
async def get_country(code: str, repository: CountryRepository = Depends(get_country_repository)) -> Dict[str, Any]:
    country = await repository.get_by_code(code.upper())
    if country is None:
        raise NotFoundException("País não encontrado", resource="country", resource_id=code)
    return success_response(country)
