"""Tests de los endpoints de pedidos con el servicio mockeado."""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from backoffice.api.dependencies import get_pedido_service
from backoffice.core.middleware import reset_rate_limit_cache
from backoffice.main import create_application
from backoffice.utils.error_handler import ConflictException, NotFoundException

BASE = "/api/v1/pedidos"


@pytest.fixture
def service():
    return AsyncMock()


@pytest.fixture
def client(service):
    reset_rate_limit_cache()
    app = create_application()
    app.dependency_overrides[get_pedido_service] = lambda: service
    return TestClient(app)


class TestPedidosApi:
    """Tests para /api/v1/pedidos."""

    def test_process_returns_202(self, client, service):
        """POST /process debe encolar el pedido y devolver 202."""
        service.enqueue_shopify_order.return_value = {"job_id": "1", "queue": "order-processing", "status": "waiting"}

        response = client.post(f"{BASE}/process", json={"order": {"id": 555, "line_items": []}})

        assert response.status_code == 202
        assert response.json()["data"]["job_id"] == "1"
        service.enqueue_shopify_order.assert_awaited_once_with({"id": 555, "line_items": []})

    def test_process_without_order(self, client, service):
        """Sin el campo order debe devolver 400."""
        response = client.post(f"{BASE}/process", json={})

        assert response.status_code == 400
        service.enqueue_shopify_order.assert_not_called()

    def test_create_returns_201(self, client, service):
        """POST / debe devolver 201 con el pedido creado."""
        service.create_pedido.return_value = {"id": "p1", "status": "PENDENTE", "valor_total": "20.00"}

        response = client.post(
            f"{BASE}/",
            json={"cliente_id": "c1", "itens": [{"nome": "Camiseta", "quantidade": 2, "preco_unitario": "10.00"}]},
        )

        assert response.status_code == 201
        assert response.json()["data"]["status"] == "PENDENTE"
        data = service.create_pedido.await_args.args[0]
        assert data["cliente_id"] == "c1"
        assert data["currency"] == "BRL"
        assert data["itens"][0]["quantidade"] == 2

    def test_create_without_items(self, client, service):
        """Un pedido sin ítems debe devolver 400 VALIDATION_ERROR."""
        response = client.post(f"{BASE}/", json={"cliente_id": "c1", "itens": []})

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"
        service.create_pedido.assert_not_called()

    def test_list_filters(self, client, service):
        """Debe pasar sólo los filtros informados."""
        service.list_pedidos.return_value = ([], {"page": 1, "limit": 20, "total": 0})

        response = client.get(f"{BASE}/", params={"status": "ENVIADO", "cliente_id": "c1"})

        assert response.status_code == 200
        page, limit, filters = service.list_pedidos.await_args.args
        assert page == 1
        assert filters == {"status": "ENVIADO", "cliente_id": "c1"}

    def test_list_invalid_status(self, client, service):
        """Un status desconocido debe devolver 400."""
        response = client.get(f"{BASE}/", params={"status": "PERDIDO"})

        assert response.status_code == 400
        service.list_pedidos.assert_not_called()

    def test_stats_route_is_not_captured_by_id(self, client, service):
        """/stats debe resolverse antes que /{pedido_id}."""
        service.get_stats.return_value = {"total_pedidos": 3}

        response = client.get(f"{BASE}/stats")

        assert response.json()["data"] == {"total_pedidos": 3}
        service.get_pedido.assert_not_called()

    def test_get_missing_returns_404(self, client, service):
        """Un pedido inexistente debe devolver 404 NOT_FOUND."""
        service.get_pedido.side_effect = NotFoundException("Pedido não encontrado")

        response = client.get(f"{BASE}/nope")

        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"

    def test_cancel_with_motivo(self, client, service):
        """Debe pasar el motivo al servicio."""
        service.cancel_pedido.return_value = {"id": "p1", "status": "CANCELADO"}

        response = client.post(f"{BASE}/p1/cancel", json={"motivo": "Cliente desistiu"})

        assert response.status_code == 200
        service.cancel_pedido.assert_awaited_once_with("p1", "Cliente desistiu")

    def test_cancel_without_body(self, client, service):
        """El body de cancelación es opcional."""
        service.cancel_pedido.return_value = {"id": "p1", "status": "CANCELADO"}

        response = client.post(f"{BASE}/p1/cancel")

        assert response.status_code == 200
        service.cancel_pedido.assert_awaited_once_with("p1", None)

    def test_cancel_final_status_returns_409(self, client, service):
        """Cancelar un pedido ENTREGUE debe devolver 409."""
        service.cancel_pedido.side_effect = ConflictException("Pedido com status ENTREGUE não pode ser cancelado")

        response = client.post(f"{BASE}/p1/cancel")

        assert response.status_code == 409
        assert response.json()["success"] is False

    def test_update_only_sends_set_fields(self, client, service):
        """PUT debe enviar sólo los campos informados."""
        service.update_pedido.return_value = {"id": "p1", "status": "ENVIADO"}

        response = client.put(f"{BASE}/p1", json={"status": "ENVIADO", "codigo_rastreamento": "BR123"})

        assert response.status_code == 200
        pedido_id, data = service.update_pedido.await_args.args
        assert pedido_id == "p1"
        assert set(data) == {"status", "codigo_rastreamento"}
