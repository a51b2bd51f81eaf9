"""Tests de la normalización de errores de base de datos y del timeout de requests."""

import asyncio
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import IntegrityError, NoResultFound, SQLAlchemyError

from backoffice.core import middleware
from backoffice.core.exception_handlers import classify_integrity_error
from backoffice.core.middleware import reset_rate_limit_cache
from backoffice.main import create_application

POSTGRES_MESSAGES = {
    "unique": 'duplicate key value violates unique constraint "customers_email_key"',
    "foreign_key": 'insert or update on table "pedidos" violates foreign key constraint "pedidos_cliente_id_fkey"',
    "not_null": 'null value in column "nome" of relation "pedido_itens" violates not-null constraint',
    "check": 'new row for relation "suppliers" violates check constraint "suppliers_rating_check"',
}


def integrity_error(message: str) -> IntegrityError:
    return IntegrityError("INSERT INTO tabela", {}, Exception(message))


@pytest.fixture
def client():
    reset_rate_limit_cache()
    app = create_application()

    async def raise_integrity(kind: str):
        raise integrity_error(POSTGRES_MESSAGES[kind])

    async def raise_no_result():
        raise NoResultFound("No row was found when one was required")

    async def raise_database_error():
        raise SQLAlchemyError("connection reset")

    async def slow():
        await asyncio.sleep(0.5)
        return {"ok": True}

    app.add_api_route("/errors/integrity/{kind}", raise_integrity)
    app.add_api_route("/errors/no-result", raise_no_result)
    app.add_api_route("/errors/database", raise_database_error)
    app.add_api_route("/slow", slow)
    return TestClient(app)


class TestClassifyIntegrityError:
    """Tests para classify_integrity_error."""

    @pytest.mark.parametrize(
        "kind, status_code, code",
        [
            ("unique", 409, "DUPLICATE_ENTRY"),
            ("foreign_key", 400, "FOREIGN_KEY_CONSTRAINT"),
            ("not_null", 400, "REQUIRED_FIELD_MISSING"),
            ("check", 400, "INTEGRITY_ERROR"),
        ],
    )
    def test_postgres_messages(self, kind, status_code, code):
        """Debe reconocer cada restricción en los mensajes de PostgreSQL."""
        normalized = classify_integrity_error(integrity_error(POSTGRES_MESSAGES[kind]))

        assert normalized["status_code"] == status_code
        assert normalized["code"] == code

    @pytest.mark.parametrize(
        "message, code",
        [
            ("UNIQUE constraint failed: customers.email", "DUPLICATE_ENTRY"),
            ("FOREIGN KEY constraint failed", "FOREIGN_KEY_CONSTRAINT"),
            ("NOT NULL constraint failed: pedidos.cliente_id", "REQUIRED_FIELD_MISSING"),
        ],
    )
    def test_sqlite_messages(self, message, code):
        """Debe reconocer también los mensajes de SQLite."""
        assert classify_integrity_error(integrity_error(message))["code"] == code


class TestDatabaseErrorResponses:
    """Tests para los envelopes de errores de SQLAlchemy."""

    @pytest.mark.parametrize(
        "kind, status_code, code, message",
        [
            ("unique", 409, "DUPLICATE_ENTRY", "Registro duplicado"),
            ("foreign_key", 400, "FOREIGN_KEY_CONSTRAINT", "Violação de chave estrangeira"),
            ("not_null", 400, "REQUIRED_FIELD_MISSING", "Campo obrigatório ausente"),
        ],
    )
    def test_integrity_errors(self, client, kind, status_code, code, message):
        """Cada violación de integridad debe devolver su status y código."""
        response = client.get(f"/errors/integrity/{kind}")

        assert response.status_code == status_code
        body = response.json()
        assert body["success"] is False
        assert body["code"] == code
        assert body["message"] == message

    def test_no_result_found(self, client):
        """NoResultFound debe devolver 404 RECORD_NOT_FOUND."""
        response = client.get("/errors/no-result")

        assert response.status_code == 404
        assert response.json()["code"] == "RECORD_NOT_FOUND"
        assert response.json()["message"] == "Registro não encontrado"

    def test_other_database_errors(self, client):
        """El resto de errores de SQLAlchemy debe devolver 500 DATABASE_ERROR."""
        response = client.get("/errors/database")

        assert response.status_code == 500
        assert response.json()["code"] == "DATABASE_ERROR"


class TestRequestTimeout:
    """Tests para el middleware de timeout."""

    def test_slow_request_returns_408(self, client):
        """Una request que supera REQUEST_TIMEOUT_SECONDS debe devolver 408."""
        with patch.object(middleware.settings, "REQUEST_TIMEOUT_SECONDS", 0.05):
            response = client.get("/slow")

        assert response.status_code == 408
        body = response.json()
        assert body["code"] == "REQUEST_TIMEOUT"
        assert body["message"] == "Tempo limite da requisição excedido"

    def test_fast_request_is_not_cut(self, client):
        """Una request dentro del límite debe responder normalmente."""
        response = client.get("/ping")

        assert response.status_code == 200
