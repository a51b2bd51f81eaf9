"""
Endpoints para webhooks de pedidos de Shopify.

Shopify firma el cuerpo crudo con ``SHOPIFY_WEBHOOK_SECRET`` y envía la
firma en base64 en ``X-Shopify-Hmac-Sha256``. Sin secreto configurado la
firma no se verifica.
"""

import base64
import binascii
import hashlib
import hmac
import json
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request, status

from backoffice.api.dependencies import get_pedido_service
from backoffice.api.responses import success_response
from backoffice.core.config import get_settings
from backoffice.domain.models import StatusPedido
from backoffice.services.pedido_service import PedidoService
from backoffice.utils.error_handler import AuthenticationException, BadRequestException, ErrorCode

settings = get_settings()
logger = logging.getLogger(__name__)

router = APIRouter()

HMAC_HEADER = "X-Shopify-Hmac-Sha256"


def verify_shopify_hmac(payload: bytes, signature: Optional[str], secret: str) -> bool:
    """
    Verifica la firma HMAC-SHA256 de un webhook.

    Args:
        payload: Cuerpo crudo de la request
        signature: Valor del header X-Shopify-Hmac-Sha256 (base64)
        secret: Secreto compartido con Shopify

    Returns:
        bool: True si la firma corresponde al cuerpo
    """
    if not signature:
        return False

    expected = hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).digest()
    try:
        received = base64.b64decode(signature, validate=True)
    except (binascii.Error, ValueError):
        return False

    return hmac.compare_digest(expected, received)


async def read_shopify_webhook(request: Request) -> Dict[str, Any]:
    """
    Lee el cuerpo del webhook verificando la firma.

    Raises:
        AuthenticationException: Firma ausente o inválida
        BadRequestException: Cuerpo que no es un objeto JSON
    """
    payload_bytes = await request.body()
    topic = request.headers.get("X-Shopify-Topic")
    shop_domain = request.headers.get("X-Shopify-Shop-Domain")

    if settings.SHOPIFY_WEBHOOK_SECRET:
        signature = request.headers.get(HMAC_HEADER)
        if not verify_shopify_hmac(payload_bytes, signature, settings.SHOPIFY_WEBHOOK_SECRET):
            logger.warning(f"⚠️ Webhook {topic} de {shop_domain} com assinatura inválida")
            raise AuthenticationException("Assinatura do webhook inválida")
    else:
        logger.warning("⚠️ SHOPIFY_WEBHOOK_SECRET não configurado, assinatura não verificada")

    try:
        payload = json.loads(payload_bytes.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise BadRequestException("Payload JSON inválido", error_code=ErrorCode.INVALID_JSON) from e

    if not isinstance(payload, dict) or payload.get("id") is None:
        raise BadRequestException("Payload do webhook sem ID do pedido")

    logger.info(f"📥 Webhook {topic} recebido de {shop_domain}: pedido Shopify {payload['id']}")
    return payload


@router.post("/orders/create", status_code=status.HTTP_202_ACCEPTED, summary="Webhook orders/create")
async def order_created_webhook(
    payload: Dict[str, Any] = Depends(read_shopify_webhook),
    service: PedidoService = Depends(get_pedido_service),
) -> Dict[str, Any]:
    """
    Encola el pedido en ``order-processing`` como ``process-new-order``.

    Shopify reenvía el webhook ante cualquier respuesta no 2xx; el worker
    reutiliza el pedido ya creado para el mismo id.
    """
    job = await service.enqueue_shopify_order(payload)
    return success_response(job, message="Pedido enviado para processamento")


@router.post("/orders/cancelled", summary="Webhook orders/cancelled")
async def order_cancelled_webhook(
    payload: Dict[str, Any] = Depends(read_shopify_webhook),
    service: PedidoService = Depends(get_pedido_service),
) -> Dict[str, Any]:
    """Cancela el pedido del id Shopify; un pedido ya CANCELADO se devuelve tal cual."""
    pedido = await service.get_by_shopify_id(str(payload["id"]))

    if pedido["status"] == StatusPedido.CANCELADO.value:
        return success_response(pedido, message="Pedido já cancelado")

    pedido = await service.cancel_pedido(pedido["id"], payload.get("cancel_reason"))
    return success_response(pedido, message="Pedido cancelado com sucesso")
