"""
CustomerService: reglas de negocio de clientes.

Incluye la validación de documentos por país, la inferencia del idioma
preferido y la resolución de clientes de pedidos Shopify.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from backoffice.db.repositories import CountryRepository, CustomerRepository
from backoffice.domain.models import CustomerDomain
from backoffice.services.i18n import detect_language, get_language_by_country, get_language_by_phone
from backoffice.utils.error_handler import ConflictException, NotFoundException, ValidationException
from backoffice.utils.international_validators import only_digits, validate_document
from backoffice.utils.pagination import build_pagination

logger = logging.getLogger(__name__)


class CustomerService:
    """Operaciones CRUD de clientes y resolución desde Shopify."""

    def __init__(
        self,
        repository: Optional[CustomerRepository] = None,
        country_repository: Optional[CountryRepository] = None,
    ):
        self.repository = repository or CustomerRepository()
        self.country_repository = country_repository or CountryRepository()

    async def _resolve_country(self, data: Dict[str, Any]) -> Optional[str]:
        """
        Resuelve el código ISO del país a partir de ``country_code`` o ``country_id``.

        Completa ``country_id`` en ``data`` cuando el país existe en la base.
        """
        country_code = data.pop("country_code", None)

        if country_code:
            country = await self.country_repository.get_by_code(country_code)
            if country:
                data["country_id"] = country["id"]
            return country_code.upper()

        if data.get("country_id"):
            country = await self.country_repository.get_by_id(data["country_id"])
            if country is None:
                raise NotFoundException("País não encontrado", resource="country", resource_id=data["country_id"])
            return country["code"]

        return None

    @staticmethod
    def _validate_documents(data: Dict[str, Any], country_code: Optional[str]) -> None:
        if data.get("cpf_cnpj"):
            result = validate_document(data["cpf_cnpj"], "BR")
            if not result.is_valid:
                raise ValidationException("CPF/CNPJ inválido", field="cpf_cnpj", invalid_value=data["cpf_cnpj"])
            data["cpf_cnpj"] = only_digits(data["cpf_cnpj"])

        if data.get("document_type") and data.get("document_number") and country_code:
            result = validate_document(data["document_number"], country_code, data["document_type"])
            if not result.is_valid:
                raise ValidationException(
                    f"Documento inválido: {result.message}",
                    field="document_number",
                    invalid_value=data["document_number"],
                )
            data["document_number"] = result.normalized_value or data["document_number"]

    async def list_customers(
        self, page: int, limit: int, search: Optional[str] = None
    ) -> Tuple[List[Dict[str, Any]], Dict[str, Any]]:
        offset = (page - 1) * limit
        items, total = await self.repository.list(offset, limit, search=search)
        return items, build_pagination(page, limit, total)

    async def get_customer(self, customer_id: str) -> Dict[str, Any]:
        customer = await self.repository.get_by_id(customer_id)
        if customer is None:
            raise NotFoundException("Cliente não encontrado", resource="customer", resource_id=customer_id)
        return customer

    async def create_customer(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Crea un cliente.

        Si falta ``preferred_language`` se infiere del prefijo del teléfono y
        luego del país.

        Raises:
            ConflictException: Email ya registrado
            ValidationException: Documento inválido para el país
        """
        data = dict(data)

        if data.get("email"):
            data["email"] = data["email"].lower()
            if await self.repository.find_by_email(data["email"]):
                raise ConflictException("Email já cadastrado", field="email", value=data["email"])

        country_code = await self._resolve_country(data)
        self._validate_documents(data, country_code)

        if not data.get("preferred_language"):
            language = get_language_by_phone(data.get("phone"))
            if language is None and country_code:
                language = get_language_by_country(country_code)
            if language:
                data["preferred_language"] = language

        customer = await self.repository.create(data)
        logger.info(f"✅ Customer registered: {customer['id']} ({customer.get('preferred_language')})")
        return customer

    async def update_customer(self, customer_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Actualización parcial de un cliente.

        Raises:
            NotFoundException: Cliente inexistente
            ConflictException: El email pertenece a otro cliente
        """
        await self.get_customer(customer_id)

        data = dict(data)
        if data.get("email"):
            data["email"] = data["email"].lower()
            other = await self.repository.find_by_email(data["email"])
            if other and other["id"] != customer_id:
                raise ConflictException("Email já cadastrado", field="email", value=data["email"])

        country_code = await self._resolve_country(data)
        self._validate_documents(data, country_code)

        customer = await self.repository.update(customer_id, data)
        if customer is None:
            raise NotFoundException("Cliente não encontrado", resource="customer", resource_id=customer_id)
        return customer

    async def delete_customer(self, customer_id: str) -> None:
        """
        Elimina un cliente sin pedidos.

        Raises:
            NotFoundException: Cliente inexistente
            ConflictException: El cliente tiene pedidos vinculados
        """
        await self.get_customer(customer_id)

        pedidos = await self.repository.count_pedidos(customer_id)
        if pedidos:
            raise ConflictException(
                "Cliente possui pedidos vinculados e não pode ser excluído",
                field="cliente_id",
                value=customer_id,
            )

        if not await self.repository.delete(customer_id):
            raise NotFoundException("Cliente não encontrado", resource="customer", resource_id=customer_id)

        logger.info(f"🗑️ Customer deleted: {customer_id}")

    async def resolve_or_create(self, customer: CustomerDomain) -> Dict[str, Any]:
        """
        Busca el cliente por email (o teléfono si no hay email) y lo crea si no existe.

        Args:
            customer: Cliente construido desde el pedido Shopify

        Returns:
            Dict: Cliente persistido
        """
        field, value = customer.lookup_key

        if field == "email":
            existing = await self.repository.find_by_email(value)
        else:
            existing = await self.repository.find_by_phone(value)

        if existing:
            logger.debug(f"Customer resolved by {field}: {existing['id']}")
            return existing

        customer.preferred_language = customer.preferred_language or detect_language(
            customer.phone, customer.country_code
        )

        data = customer.to_dict()
        if customer.country_code:
            country = await self.country_repository.get_by_code(customer.country_code)
            if country:
                data["country_id"] = country["id"]

        created = await self.repository.create(data)
        logger.info(f"✅ Customer created from Shopify: {created['id']} ({customer.preferred_language})")
        return created
