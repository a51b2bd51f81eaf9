"""Tests de los endpoints de fornecedores con el servicio mockeado."""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from backoffice.api.dependencies import get_supplier_service
from backoffice.core.middleware import reset_rate_limit_cache
from backoffice.main import create_application
from backoffice.services.supplier_service import SupplierService
from backoffice.utils.error_handler import ConflictException, ValidationException

BASE = "/api/v1/suppliers"


@pytest.fixture
def service():
    return AsyncMock()


@pytest.fixture
def client(service):
    reset_rate_limit_cache()
    app = create_application()
    app.dependency_overrides[get_supplier_service] = lambda: service
    return TestClient(app)


class TestSuppliersApi:
    """Tests para /api/v1/suppliers."""

    def test_create_returns_201_envelope(self, client, service):
        """Debe devolver 201 con el envelope de éxito."""
        service.create_supplier.return_value = {"id": "s1", "company_name": "Fábrica"}

        response = client.post(f"{BASE}/", json={"company_name": "Fábrica", "email": "vendas@fabrica.com"})

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["data"]["id"] == "s1"
        assert body["message"] == "Fornecedor criado com sucesso"
        service.create_supplier.assert_awaited_once_with(
            {"company_name": "Fábrica", "email": "vendas@fabrica.com", "active": True}
        )

    def test_create_invalid_email(self, client, service):
        """Un email inválido debe devolver 400 VALIDATION_ERROR."""
        response = client.post(f"{BASE}/", json={"company_name": "Fábrica", "email": "no-email"})

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"
        service.create_supplier.assert_not_called()

    def test_duplicate_cnpj_returns_409(self, client, service):
        """Un ConflictException del servicio debe devolver 409."""
        service.create_supplier.side_effect = ConflictException("Já existe um fornecedor com este CNPJ")

        response = client.post(
            f"{BASE}/", json={"company_name": "Fábrica", "email": "vendas@fabrica.com", "cnpj": "11222333000181"}
        )

        assert response.status_code == 409
        body = response.json()
        assert body["success"] is False
        assert body["code"] == "CONFLICT"
        assert body["message"] == "Já existe um fornecedor com este CNPJ"

    def test_list_with_pagination(self, client, service):
        """Debe incluir la paginación en el envelope."""
        pagination = {"page": 1, "limit": 10, "total": 1, "total_pages": 1, "has_next": False, "has_prev": False}
        service.list_suppliers.return_value = ([{"id": "s1"}], pagination)

        response = client.get(f"{BASE}/", params={"limit": 10, "active_only": True})

        assert response.status_code == 200
        assert response.json()["pagination"] == pagination
        service.list_suppliers.assert_awaited_once_with(1, 10, search=None, active_only=True)

    def test_cnpj_route_is_not_captured_by_id(self, client, service):
        """/cnpj/{cnpj} debe resolverse antes que /{supplier_id}."""
        service.get_supplier_by_cnpj.return_value = {"id": "s1"}

        response = client.get(f"{BASE}/cnpj/11222333000181")

        assert response.status_code == 200
        service.get_supplier_by_cnpj.assert_awaited_once_with("11222333000181")
        service.get_supplier.assert_not_called()


class TestPerformanceRatingApi:
    """Tests para PATCH /{id}/performance-rating con el servicio real."""

    def test_out_of_range_rating_returns_400(self):
        """Una avaliação fuera de 1..5 debe devolver 400."""
        repository = AsyncMock()
        reset_rate_limit_cache()
        app = create_application()
        app.dependency_overrides[get_supplier_service] = lambda: SupplierService(repository=repository)
        client = TestClient(app)

        response = client.patch(f"{BASE}/s1/performance-rating", json={"rating": 7})

        assert response.status_code == 400
        assert response.json()["message"] == "Avaliação deve estar entre 1 e 5"
        repository.update.assert_not_called()

    def test_service_validation_error_envelope(self, client, service):
        """Un ValidationException del servicio debe devolver 400 VALIDATION_ERROR."""
        service.update_performance_rating.side_effect = ValidationException("Avaliação deve estar entre 1 e 5", field="rating")

        response = client.patch(f"{BASE}/s1/performance-rating", json={"rating": 0})

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"
