"""Tests de los endpoints de i18n y validación de documentos."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from backoffice.api.dependencies import get_i18n_service
from backoffice.core.middleware import reset_rate_limit_cache
from backoffice.main import create_application

BASE = "/api/v1/i18n"


@pytest.fixture
def service():
    i18n = MagicMock()
    i18n.get_available_languages = AsyncMock(return_value=["en", "pt-BR", "es"])
    i18n.translate = AsyncMock(return_value="Pedido confirmado")
    i18n.add_translation = AsyncMock(
        return_value={"id": "t1", "key": "order.confirmed", "language": "pt-BR", "value": "Pedido confirmado"}
    )
    i18n.detect_language.return_value = "pt-BR"
    return i18n


@pytest.fixture
def client(service):
    reset_rate_limit_cache()
    app = create_application()
    app.dependency_overrides[get_i18n_service] = lambda: service
    return TestClient(app)


class TestTranslationsApi:
    """Tests para idiomas y traducciones."""

    def test_languages(self, client):
        """Debe listar los idiomas disponibles."""
        response = client.get(f"{BASE}/languages")

        assert response.status_code == 200
        assert response.json()["data"] == ["en", "pt-BR", "es"]

    def test_translate(self, client, service):
        """Debe traducir la clave con idioma y fallback."""
        response = client.get(
            f"{BASE}/translate", params={"key": "order.confirmed", "language": "pt-BR", "fallback": "en"}
        )

        assert response.status_code == 200
        assert response.json()["data"] == {"key": "order.confirmed", "language": "pt-BR", "value": "Pedido confirmado"}
        service.translate.assert_awaited_once_with("order.confirmed", "pt-BR", fallback="en")

    def test_translate_requires_key(self, client, service):
        """Sin key debe devolver 400."""
        response = client.get(f"{BASE}/translate")

        assert response.status_code == 400
        service.translate.assert_not_called()

    def test_upsert_translation_returns_201(self, client, service):
        """POST /translations debe devolver 201 con la traducción guardada."""
        response = client.post(
            f"{BASE}/translations",
            json={"key": "order.confirmed", "language": "pt-BR", "value": "Pedido confirmado"},
        )

        assert response.status_code == 201
        assert response.json()["message"] == "Tradução salva com sucesso"
        service.add_translation.assert_awaited_once_with("order.confirmed", "pt-BR", "Pedido confirmado", None)


class TestDetectLanguageApi:
    """Tests para /detect-language."""

    def test_detect_by_phone_and_country(self, client, service):
        """Debe devolver el idioma elegido y el de cada criterio."""
        response = client.get(f"{BASE}/detect-language", params={"phone": "+5511999998888", "country": "US"})

        assert response.status_code == 200
        data = response.json()["data"]
        assert data == {"language": "pt-BR", "by_phone": "pt-BR", "by_country": "en"}
        service.detect_language.assert_called_once_with("+5511999998888", "US")

    def test_requires_phone_or_country(self, client, service):
        """Sin phone ni country debe devolver 400."""
        response = client.get(f"{BASE}/detect-language")

        assert response.status_code == 400
        assert response.json()["message"] == "Informe phone ou country"


class TestValidateDocumentApi:
    """Tests para /validate-document."""

    def test_valid_cpf(self, client):
        """Un CPF válido debe devolverse normalizado."""
        response = client.post(f"{BASE}/validate-document", json={"document": "52998224725", "country": "br"})

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["country"] == "BR"
        assert data["is_valid"] is True
        assert data["normalized_value"] == "529.982.247-25"

    def test_invalid_cpf_checksum(self, client):
        """Un CPF con dígito verificador incorrecto debe marcarse inválido."""
        response = client.post(
            f"{BASE}/validate-document", json={"document": "529.982.247-26", "country": "BR", "type": "cpf"}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["data"]["is_valid"] is False
        assert body["message"] == "Invalid CPF checksum"
