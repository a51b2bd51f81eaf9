"""
SupplierService: reglas de negocio de fornecedores (CNPJ, estado, avaliação).
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from backoffice.db.repositories import SupplierRepository
from backoffice.utils.error_handler import ConflictException, NotFoundException, ValidationException
from backoffice.utils.international_validators import only_digits, validate_cnpj
from backoffice.utils.pagination import build_pagination

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5


class SupplierService:
    """Operaciones CRUD y estadísticas de fornecedores."""

    def __init__(self, repository: Optional[SupplierRepository] = None):
        self.repository = repository or SupplierRepository()

    @staticmethod
    def _normalize_cnpj(cnpj: str) -> str:
        result = validate_cnpj(cnpj)
        if not result.is_valid:
            raise ValidationException(
                message="CNPJ inválido",
                field="cnpj",
                invalid_value=cnpj,
                expected_format="00.000.000/0000-00",
            )
        return only_digits(cnpj)

    async def list_suppliers(
        self, page: int, limit: int, search: Optional[str] = None, active_only: bool = False
    ) -> Tuple[List[Dict[str, Any]], Dict[str, Any]]:
        offset = (page - 1) * limit
        items, total = await self.repository.list(offset, limit, search=search, active_only=active_only)
        return items, build_pagination(page, limit, total)

    async def get_supplier(self, supplier_id: str) -> Dict[str, Any]:
        supplier = await self.repository.get_by_id(supplier_id)
        if supplier is None:
            raise NotFoundException("Fornecedor não encontrado", resource="supplier", resource_id=supplier_id)
        return supplier

    async def get_supplier_by_cnpj(self, cnpj: str) -> Dict[str, Any]:
        digits = only_digits(cnpj)
        supplier = await self.repository.get_by_cnpj(digits)
        if supplier is None:
            raise NotFoundException("Fornecedor não encontrado", resource="supplier", resource_id=digits)
        return supplier

    async def create_supplier(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Crea un fornecedor.

        Raises:
            ValidationException: CNPJ con formato o dígitos verificadores inválidos
            ConflictException: Ya existe un fornecedor con el CNPJ
        """
        data = dict(data)
        if data.get("cnpj"):
            data["cnpj"] = self._normalize_cnpj(data["cnpj"])

            if await self.repository.get_by_cnpj(data["cnpj"]):
                raise ConflictException("Já existe um fornecedor com este CNPJ", field="cnpj", value=data["cnpj"])

        supplier = await self.repository.create(data)
        logger.info(f"✅ Supplier created: {supplier['company_name']} ({supplier['id']})")
        return supplier

    async def update_supplier(self, supplier_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Actualización parcial de un fornecedor.

        Raises:
            NotFoundException: Fornecedor inexistente
            ConflictException: El CNPJ pertenece a otro fornecedor
        """
        await self.get_supplier(supplier_id)

        data = dict(data)
        if data.get("cnpj"):
            data["cnpj"] = self._normalize_cnpj(data["cnpj"])

            other = await self.repository.get_by_cnpj(data["cnpj"])
            if other and other["id"] != supplier_id:
                raise ConflictException("Já existe um fornecedor com este CNPJ", field="cnpj", value=data["cnpj"])

        supplier = await self.repository.update(supplier_id, data)
        if supplier is None:
            raise NotFoundException("Fornecedor não encontrado", resource="supplier", resource_id=supplier_id)
        return supplier

    async def toggle_status(self, supplier_id: str) -> Dict[str, Any]:
        supplier = await self.get_supplier(supplier_id)
        updated = await self.repository.update(supplier_id, {"active": not supplier["active"]})
        logger.info(f"🔄 Supplier {supplier_id} active={updated['active']}")
        return updated

    async def update_performance_rating(self, supplier_id: str, rating: float) -> Dict[str, Any]:
        """
        Actualiza la avaliação de desempenho.

        Raises:
            ValidationException: Rating fuera de 1..5
            NotFoundException: Fornecedor inexistente
        """
        if rating is None or not MIN_RATING <= rating <= MAX_RATING:
            raise ValidationException(
                message=f"Avaliação deve estar entre {MIN_RATING} e {MAX_RATING}",
                field="rating",
                invalid_value=rating,
            )

        await self.get_supplier(supplier_id)
        return await self.repository.update(supplier_id, {"performance_rating": rating})

    async def get_supplier_stats(self, supplier_id: str) -> Dict[str, Any]:
        supplier = await self.get_supplier(supplier_id)
        stats = await self.repository.get_order_stats(supplier_id)

        return {
            **stats,
            "average_processing_time": supplier.get("average_processing_time"),
            "performance_rating": supplier.get("performance_rating"),
        }
