"""
SupplierAssigner: picks the supplier that will fulfil a pedido.
"""

import logging
from typing import Any, Dict, Optional

from backoffice.db.repositories import SupplierRepository
from backoffice.services.pedido_service import PedidoService
from backoffice.utils.error_handler import NotFoundException

logger = logging.getLogger(__name__)


class SupplierAssigner:
    """
    Assigns the active supplier with the fewest open pedidos.

    Ties are broken by the higher performance_rating.
    """

    def __init__(
        self,
        supplier_repository: Optional[SupplierRepository] = None,
        pedido_service: Optional[PedidoService] = None,
    ):
        self.supplier_repository = supplier_repository or SupplierRepository()
        self.pedido_service = pedido_service or PedidoService()

    async def assign(self, pedido: Dict[str, Any]) -> Dict[str, Any]:
        """
        Assigns a supplier and confirms the pedido.

        Args:
            pedido: Pedido to assign

        Returns:
            Dict: Updated pedido (status CONFIRMADO)

        Raises:
            NotFoundException: If no supplier is active
        """
        supplier = await self.supplier_repository.find_least_loaded_active()
        if supplier is None:
            raise NotFoundException("Nenhum fornecedor ativo disponível", resource="supplier")

        logger.info(
            f"🏭 Pedido {pedido['numero_pedido']} -> supplier {supplier['company_name']} "
            f"({supplier.get('open_orders', 0)} open orders)"
        )
        return await self.pedido_service.assign_supplier(pedido["id"], supplier)
