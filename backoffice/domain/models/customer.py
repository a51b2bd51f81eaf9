"""
Customer domain model.

Represents a customer as received from Shopify, before persistence.
"""

from dataclasses import dataclass
from typing import Any, Optional


@dataclass
class CustomerDomain:
    """
    Domain model representing a customer.

    Attributes:
        name: Full name
        email: Email address (may be empty for phone-only customers)
        phone: Phone number in international format when available
        country_code: ISO-2 country of the shipping address
        address: Address fields mapped to the persistence columns
        preferred_language: Language to contact the customer
    """

    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    country_code: Optional[str] = None
    address: Optional[dict[str, Any]] = None
    preferred_language: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate customer data after initialization."""
        if not self.email and not self.phone:
            raise ValueError("Customer needs an email or a phone")

        if self.email and "@" not in self.email:
            raise ValueError(f"Invalid email format: {self.email}")

    @property
    def lookup_key(self) -> tuple[str, str]:
        """Campo y valor usados para resolver el cliente existente (email, o teléfono)."""
        if self.email:
            return "email", self.email.lower()
        return "phone", self.phone

    def to_dict(self) -> dict[str, Any]:
        """Convert customer to dictionary for persistence."""
        data = {
            "name": self.name,
            "email": self.email.lower() if self.email else None,
            "phone": self.phone,
            "preferred_language": self.preferred_language,
        }
        data.update(self.address or {})
        return data

    @classmethod
    def from_shopify(cls, order: dict[str, Any]) -> "CustomerDomain":
        """
        Builds the customer from a Shopify REST order payload.

        Args:
            order: Shopify order with ``customer`` and ``shipping_address``

        Returns:
            CustomerDomain: Customer with address columns filled
        """
        customer = order.get("customer") or {}
        shipping = order.get("shipping_address") or {}

        first_name = customer.get("first_name") or shipping.get("first_name") or ""
        last_name = customer.get("last_name") or shipping.get("last_name") or ""
        name = f"{first_name} {last_name}".strip() or shipping.get("name") or "Cliente Shopify"

        address = {
            "address_cep": shipping.get("zip"),
            "address_street": shipping.get("address1"),
            "address_complement": shipping.get("address2"),
            "address_city": shipping.get("city"),
            "address_state": shipping.get("province_code") or shipping.get("province"),
        }

        return cls(
            name=name,
            email=customer.get("email") or order.get("email"),
            phone=customer.get("phone") or shipping.get("phone") or order.get("phone"),
            country_code=(shipping.get("country_code") or "").upper() or None,
            address={key: value for key, value in address.items() if value},
        )
