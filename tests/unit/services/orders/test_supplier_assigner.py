"""Tests unitarios para SupplierAssigner."""

from unittest.mock import AsyncMock

import pytest

from backoffice.services.orders.supplier_assigner import SupplierAssigner
from backoffice.utils.error_handler import NotFoundException


@pytest.fixture
def supplier_repository():
    repo = AsyncMock()
    repo.find_least_loaded_active.return_value = {"id": "s1", "company_name": "Fábrica", "open_orders": 3}
    return repo


@pytest.fixture
def pedido_service():
    service = AsyncMock()
    service.assign_supplier.return_value = {"id": "p1", "supplier_id": "s1", "status": "CONFIRMADO"}
    return service


class TestSupplierAssigner:
    """Tests para la asignación de fornecedor."""

    @pytest.mark.asyncio
    async def test_assigns_least_loaded(self, supplier_repository, pedido_service):
        """Debe asignar el fornecedor devuelto por el repositorio."""
        assigner = SupplierAssigner(supplier_repository=supplier_repository, pedido_service=pedido_service)

        pedido = await assigner.assign({"id": "p1", "numero_pedido": "PED202601010001"})

        assert pedido["status"] == "CONFIRMADO"
        pedido_service.assign_supplier.assert_awaited_once_with(
            "p1", supplier_repository.find_least_loaded_active.return_value
        )

    @pytest.mark.asyncio
    async def test_no_active_supplier(self, supplier_repository, pedido_service):
        """Sin fornecedores activos debe lanzar NotFoundException."""
        supplier_repository.find_least_loaded_active.return_value = None
        assigner = SupplierAssigner(supplier_repository=supplier_repository, pedido_service=pedido_service)

        with pytest.raises(NotFoundException):
            await assigner.assign({"id": "p1", "numero_pedido": "PED202601010001"})

        pedido_service.assign_supplier.assert_not_called()
