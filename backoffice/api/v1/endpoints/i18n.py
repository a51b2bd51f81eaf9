"""
Endpoints de internacionalización y validación de documentos.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, status

from backoffice.api.dependencies import get_i18n_service
from backoffice.api.responses import success_response
from backoffice.api.v1.schemas import DocumentValidationRequest, TranslationCreate
from backoffice.services.i18n import I18nService, get_language_by_country, get_language_by_phone
from backoffice.utils.error_handler import BadRequestException
from backoffice.utils.international_validators import validate_document

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/languages", summary="Idiomas disponíveis")
async def get_languages(service: I18nService = Depends(get_i18n_service)) -> Dict[str, Any]:
    return success_response(await service.get_available_languages())


@router.get("/translate", summary="Traduzir chave")
async def translate(
    key: str = Query(..., min_length=1),
    language: Optional[str] = Query(None),
    fallback: Optional[str] = Query(None),
    service: I18nService = Depends(get_i18n_service),
) -> Dict[str, Any]:
    """
    Traduce ``key``; si no hay traducción en el idioma ni en el fallback
    devuelve la clave tal cual.
    """
    value = await service.translate(key, language, fallback=fallback)
    return success_response({"key": key, "language": language, "value": value})


@router.post("/translations", status_code=status.HTTP_201_CREATED, summary="Criar ou atualizar tradução")
async def upsert_translation(
    payload: TranslationCreate,
    service: I18nService = Depends(get_i18n_service),
) -> Dict[str, Any]:
    translation = await service.add_translation(payload.key, payload.language, payload.value, payload.context)
    return success_response(translation, message="Tradução salva com sucesso")


@router.get("/detect-language", summary="Detectar idioma")
async def detect_language(
    phone: Optional[str] = Query(None),
    country: Optional[str] = Query(None, min_length=2, max_length=2),
    service: I18nService = Depends(get_i18n_service),
) -> Dict[str, Any]:
    if not phone and not country:
        raise BadRequestException("Informe phone ou country")

    return success_response(
        {
            "language": service.detect_language(phone, country),
            "by_phone": get_language_by_phone(phone) if phone else None,
            "by_country": get_language_by_country(country) if country else None,
        }
    )


@router.post("/validate-document", summary="Validar documento")
async def validate_document_endpoint(payload: DocumentValidationRequest) -> Dict[str, Any]:
    result = validate_document(payload.document, payload.country, payload.type)
    return success_response(
        {"country": payload.country, "type": payload.type, **result.to_dict()},
        message=result.message,
    )
