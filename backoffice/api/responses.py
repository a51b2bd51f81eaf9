"""
Envelope de éxito compartido por todos los endpoints de la API v1.

El envelope de error lo construye ``backoffice.core.exception_handlers``.
"""

from typing import Any, Dict, Optional


def success_response(
    data: Any = None,
    message: Optional[str] = None,
    pagination: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Construye ``{success: true, data, message?, pagination?}``.

    Args:
        data: Payload de la respuesta
        message: Mensaje opcional para el operador
        pagination: Metadatos de ``build_pagination``

    Returns:
        Dict: Envelope de éxito
    """
    body: Dict[str, Any] = {"success": True, "data": data}

    if message:
        body["message"] = message
    if pagination is not None:
        body["pagination"] = pagination

    return body
