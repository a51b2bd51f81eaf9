"""Tests de las rutas generales y de los envelopes de error."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from backoffice.api.dependencies import get_country_repository
from backoffice.core.middleware import reset_rate_limit_cache
from backoffice.main import create_application


@pytest.fixture
def app():
    reset_rate_limit_cache()
    return create_application()


@pytest.fixture
def client(app):
    return TestClient(app)


class TestGeneralRoutes:
    """Tests para raíz, ping y rutas inexistentes."""

    def test_ping(self, client):
        """Debe responder pong."""
        response = client.get("/ping")

        assert response.status_code == 200
        assert response.json()["message"] == "pong"

    def test_unknown_route(self, client):
        """Una ruta inexistente debe devolver ROUTE_NOT_FOUND en portugués."""
        response = client.get("/x")

        assert response.status_code == 404
        body = response.json()
        assert body["success"] is False
        assert body["code"] == "ROUTE_NOT_FOUND"
        assert body["message"] == "Rota GET /x não encontrada"
        assert "timestamp" in body

    def test_correlation_id_is_echoed(self, client):
        """El envelope de error debe incluir el X-Correlation-ID recibido."""
        response = client.get("/x", headers={"X-Correlation-ID": "abc-123"})

        assert response.json()["correlation_id"] == "abc-123"

    def test_malformed_json(self, client):
        """Un body JSON mal formado debe devolver 400 INVALID_JSON."""
        response = client.post(
            "/api/v1/pedidos/process",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_JSON"


class TestCountriesApi:
    """Tests para /api/v1/countries."""

    def test_country_code_is_uppercased(self, app, client):
        """Debe buscar el país con el código en mayúsculas."""
        repository = AsyncMock()
        repository.get_by_code.return_value = {"id": "1", "code": "BR", "name": "Brasil"}
        app.dependency_overrides[get_country_repository] = lambda: repository

        response = client.get("/api/v1/countries/br")

        assert response.status_code == 200
        repository.get_by_code.assert_awaited_once_with("BR")

    def test_missing_country(self, app, client):
        """Un país inexistente debe devolver 404."""
        repository = AsyncMock()
        repository.get_by_code.return_value = None
        app.dependency_overrides[get_country_repository] = lambda: repository

        response = client.get("/api/v1/countries/zz")

        assert response.status_code == 404
        assert response.json()["message"] == "País não encontrado"


class TestQueuesApi:
    """Tests para /api/v1/queues."""

    def test_unknown_queue(self, client):
        """Una cola desconocida debe devolver 404."""
        with patch("backoffice.api.v1.endpoints.queues.get_queue", side_effect=KeyError("nope")):
            response = client.get("/api/v1/queues/nope/jobs/1")

        assert response.status_code == 404
        assert response.json()["message"] == "Fila nope não encontrada"

    def test_missing_job(self, client):
        """Un job inexistente debe devolver 404."""
        queue = MagicMock()
        queue.get_job = AsyncMock(return_value=None)

        with patch("backoffice.api.v1.endpoints.queues.get_queue", return_value=queue):
            response = client.get("/api/v1/queues/order-processing/jobs/99")

        assert response.status_code == 404
        assert response.json()["message"] == "Job não encontrado"

    def test_job_state(self, client):
        """Debe devolver el estado serializado del job."""
        job = MagicMock()
        job.to_dict.return_value = {"id": "1", "status": "completed", "progress": 100}
        queue = MagicMock()
        queue.get_job = AsyncMock(return_value=job)

        with patch("backoffice.api.v1.endpoints.queues.get_queue", return_value=queue):
            response = client.get("/api/v1/queues/order-processing/jobs/1")

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "completed"


class TestRateLimiting:
    """Tests para el rate limiting por IP."""

    def test_exceeding_limit_returns_429(self, client):
        """Superar el límite por minuto debe devolver 429 RATE_LIMIT_EXCEEDED."""
        from backoffice.core import middleware

        with patch.object(middleware.settings, "RATE_LIMIT_PER_MINUTE", 2):
            assert client.get("/ping").status_code == 200
            assert client.get("/ping").status_code == 200
            response = client.get("/ping")

        assert response.status_code == 429
        assert response.json()["code"] == "RATE_LIMIT_EXCEEDED"
        assert response.headers["Retry-After"] == "60"
