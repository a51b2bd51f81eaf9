"""Tests de los endpoints de clientes con el servicio mockeado."""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from backoffice.api.dependencies import get_customer_service
from backoffice.core.middleware import reset_rate_limit_cache
from backoffice.main import create_application
from backoffice.utils.error_handler import ConflictException, NotFoundException, ValidationException

BASE = "/api/v1/customers"

CUSTOMER = {"id": "c1", "name": "Ana Souza", "email": "ana@example.com", "preferred_language": "pt-BR"}


@pytest.fixture
def service():
    return AsyncMock()


@pytest.fixture
def client(service):
    reset_rate_limit_cache()
    app = create_application()
    app.dependency_overrides[get_customer_service] = lambda: service
    return TestClient(app)


class TestCreateCustomer:
    """Tests para POST /api/v1/customers."""

    def test_create_returns_201(self, client, service):
        """Debe devolver 201 con el cliente creado y sin campos nulos en el payload."""
        service.create_customer.return_value = CUSTOMER

        response = client.post(f"{BASE}/", json={"name": "Ana Souza", "email": "ana@example.com", "country_code": "br"})

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Cliente criado com sucesso"
        assert body["data"]["id"] == "c1"

        data = service.create_customer.await_args.args[0]
        assert data["country_code"] == "BR"
        assert "phone" not in data

    def test_duplicate_email_returns_409(self, client, service):
        """Un email ya registrado debe devolver 409 CONFLICT."""
        service.create_customer.side_effect = ConflictException(
            "Email já cadastrado", field="email", value="ana@example.com"
        )

        response = client.post(f"{BASE}/", json={"name": "Ana Souza", "email": "ana@example.com"})

        assert response.status_code == 409
        body = response.json()
        assert body["success"] is False
        assert body["code"] == "CONFLICT"
        assert body["message"] == "Email já cadastrado"

    def test_invalid_document_returns_400(self, client, service):
        """Un documento inválido para el país debe devolver 400."""
        service.create_customer.side_effect = ValidationException("CPF inválido", field="cpf_cnpj")

        response = client.post(f"{BASE}/", json={"name": "Ana", "cpf_cnpj": "111.111.111-11"})

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_missing_name_returns_400(self, client, service):
        """Sin nombre la validación del body debe devolver 400."""
        response = client.post(f"{BASE}/", json={"email": "ana@example.com"})

        assert response.status_code == 400
        service.create_customer.assert_not_called()

    def test_invalid_email_returns_400(self, client, service):
        """Un email mal formado debe rechazarse antes del servicio."""
        response = client.post(f"{BASE}/", json={"name": "Ana", "email": "ana-at-example"})

        assert response.status_code == 400
        service.create_customer.assert_not_called()


class TestCustomerRoutes:
    """Tests para listado, lectura, actualización y borrado."""

    def test_list_with_search_and_pagination(self, client, service):
        """Debe pasar página, límite y búsqueda al servicio."""
        pagination = {"page": 2, "limit": 5, "total": 6, "pages": 2}
        service.list_customers.return_value = ([CUSTOMER], pagination)

        response = client.get(f"{BASE}/", params={"page": 2, "limit": 5, "search": "ana"})

        assert response.status_code == 200
        assert response.json()["pagination"] == pagination
        service.list_customers.assert_awaited_once_with(2, 5, search="ana")

    def test_get_missing_returns_404(self, client, service):
        """Un cliente inexistente debe devolver 404."""
        service.get_customer.side_effect = NotFoundException("Cliente não encontrado", resource="customer")

        response = client.get(f"{BASE}/nope")

        assert response.status_code == 404
        assert response.json()["message"] == "Cliente não encontrado"

    def test_update_sends_only_set_fields(self, client, service):
        """PUT sólo debe enviar los campos presentes en el body."""
        service.update_customer.return_value = {**CUSTOMER, "phone": "+5511999998888"}

        response = client.put(f"{BASE}/c1", json={"phone": "+5511999998888"})

        assert response.status_code == 200
        service.update_customer.assert_awaited_once_with("c1", {"phone": "+5511999998888"})

    def test_delete_returns_message(self, client, service):
        """DELETE debe confirmar el borrado con data nula."""
        response = client.delete(f"{BASE}/c1")

        assert response.status_code == 200
        assert response.json() == {"success": True, "data": None, "message": "Cliente excluído com sucesso"}

    def test_delete_with_pedidos_returns_409(self, client, service):
        """Un cliente con pedidos no puede borrarse."""
        service.delete_customer.side_effect = ConflictException("Cliente possui pedidos e não pode ser excluído")

        response = client.delete(f"{BASE}/c1")

        assert response.status_code == 409
