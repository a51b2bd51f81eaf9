"""Tests unitarios para CustomerService."""

from unittest.mock import AsyncMock

import pytest

from backoffice.domain.models import CustomerDomain
from backoffice.services.customer_service import CustomerService
from backoffice.utils.error_handler import ConflictException, NotFoundException, ValidationException


@pytest.fixture
def repository():
    repo = AsyncMock()
    repo.get_by_id.return_value = {"id": "c1", "email": "ana@example.com"}
    repo.find_by_email.return_value = None
    repo.find_by_phone.return_value = None
    repo.count_pedidos.return_value = 0
    repo.delete.return_value = True
    repo.create.side_effect = lambda data: {"id": "c1", **data}
    repo.update.side_effect = lambda customer_id, data: {"id": customer_id, **data}
    return repo


@pytest.fixture
def country_repository():
    repo = AsyncMock()
    repo.get_by_code.return_value = {"id": "country-cn", "code": "CN"}
    repo.get_by_id.return_value = None
    return repo


@pytest.fixture
def service(repository, country_repository):
    return CustomerService(repository=repository, country_repository=country_repository)


class TestCreateCustomer:
    """Tests para create_customer."""

    @pytest.mark.asyncio
    async def test_duplicate_email(self, service, repository):
        """Debe lanzar ConflictException si el email ya existe (sin distinguir mayúsculas)."""
        repository.find_by_email.return_value = {"id": "other"}

        with pytest.raises(ConflictException):
            await service.create_customer({"name": "Ana", "email": "ANA@example.com"})

        repository.find_by_email.assert_awaited_once_with("ana@example.com")

    @pytest.mark.asyncio
    async def test_language_from_phone(self, service):
        """Debe inferir el idioma por el prefijo del teléfono."""
        customer = await service.create_customer({"name": "Ana", "phone": "+55 11 98765-4321"})

        assert customer["preferred_language"] == "pt-BR"

    @pytest.mark.asyncio
    async def test_language_from_country(self, service):
        """Sin teléfono debe usar el país y resolver country_id."""
        customer = await service.create_customer({"name": "Li", "email": "li@example.com", "country_code": "cn"})

        assert customer["preferred_language"] == "zh-CN"
        assert customer["country_id"] == "country-cn"
        assert "country_code" not in customer

    @pytest.mark.asyncio
    async def test_explicit_language_is_kept(self, service):
        """Un preferred_language explícito no se sobrescribe."""
        customer = await service.create_customer(
            {"name": "Ana", "phone": "+55 11 98765-4321", "preferred_language": "en"}
        )

        assert customer["preferred_language"] == "en"

    @pytest.mark.asyncio
    async def test_invalid_cpf(self, service, repository):
        """Debe rechazar un CPF con dígitos verificadores incorrectos."""
        with pytest.raises(ValidationException):
            await service.create_customer({"name": "Ana", "email": "ana@example.com", "cpf_cnpj": "529.982.247-24"})

        repository.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_cpf_is_normalized(self, service):
        """Debe guardar el CPF sólo con dígitos."""
        customer = await service.create_customer(
            {"name": "Ana", "email": "ana@example.com", "cpf_cnpj": "529.982.247-25"}
        )

        assert customer["cpf_cnpj"] == "52998224725"


class TestDeleteCustomer:
    """Tests para delete_customer."""

    @pytest.mark.asyncio
    async def test_with_pedidos(self, service, repository):
        """Debe lanzar ConflictException si el cliente tiene pedidos."""
        repository.count_pedidos.return_value = 2

        with pytest.raises(ConflictException):
            await service.delete_customer("c1")

        repository.delete.assert_not_called()

    @pytest.mark.asyncio
    async def test_without_pedidos(self, service, repository):
        """Debe eliminar el cliente sin pedidos."""
        await service.delete_customer("c1")

        repository.delete.assert_awaited_once_with("c1")

    @pytest.mark.asyncio
    async def test_missing(self, service, repository):
        """Debe lanzar NotFoundException si el cliente no existe."""
        repository.get_by_id.return_value = None

        with pytest.raises(NotFoundException):
            await service.delete_customer("nope")


class TestResolveOrCreate:
    """Tests para resolve_or_create."""

    @pytest.mark.asyncio
    async def test_existing_by_email(self, service, repository):
        """Debe devolver el cliente existente sin crearlo."""
        repository.find_by_email.return_value = {"id": "c9"}

        customer = await service.resolve_or_create(CustomerDomain(name="Ana", email="Ana@Example.com"))

        assert customer == {"id": "c9"}
        repository.find_by_email.assert_awaited_once_with("ana@example.com")
        repository.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_lookup_by_phone_without_email(self, service, repository):
        """Sin email debe buscar por teléfono."""
        await service.resolve_or_create(CustomerDomain(name="Ana", phone="+5511987654321"))

        repository.find_by_phone.assert_awaited_once_with("+5511987654321")
        repository.find_by_email.assert_not_called()

    @pytest.mark.asyncio
    async def test_creates_with_detected_language(self, service, repository):
        """Debe crear el cliente con el idioma detectado y el country_id."""
        customer = await service.resolve_or_create(
            CustomerDomain(name="Li", email="li@example.com", phone="+8613812345678", country_code="CN")
        )

        assert customer["preferred_language"] == "zh-CN"
        assert customer["country_id"] == "country-cn"
