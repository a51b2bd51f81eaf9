"""
Money value object for handling monetary amounts with currency.

Amounts are kept with two decimal places and can be rendered with the
conventions of each supported locale (R$ 1.234,56 / $1,234.56 / ¥1,234.56).
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

CURRENCY_SYMBOLS = {
    "BRL": "R$",
    "USD": "$",
    "CNY": "¥",
    "EUR": "€",
    "GBP": "£",
    "INR": "₹",
    "JPY": "¥",
}

# Moneda por defecto según el idioma del destinatario
LANGUAGE_CURRENCIES = {
    "pt-BR": "BRL",
    "en": "USD",
    "zh-CN": "CNY",
}


@dataclass(frozen=True)
class Money:
    """
    Immutable value object representing a monetary amount with currency.

    Attributes:
        amount: The monetary amount as Decimal for precision
        currency: ISO currency code (e.g., "BRL", "USD", "CNY")

    Example:
        >>> price = Money(amount=Decimal("99.90"), currency="BRL")
        >>> total = price * 3
        >>> print(total.amount)
        299.70
    """

    amount: Decimal
    currency: str = "BRL"

    def __post_init__(self) -> None:
        """Validate money object after initialization."""
        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, "amount", Decimal(str(self.amount)))

        normalized_amount = self.amount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        object.__setattr__(self, "amount", normalized_amount)

        if self.amount < 0:
            raise ValueError(f"Money amount cannot be negative: {self.amount}")

        if not self.currency or len(self.currency) != 3:
            raise ValueError(f"Invalid currency code: {self.currency}")

        object.__setattr__(self, "currency", self.currency.upper())

    def __add__(self, other: "Money") -> "Money":
        """Add two Money objects with the same currency."""
        if not isinstance(other, Money):
            raise TypeError(f"Cannot add Money with {type(other)}")

        if self.currency != other.currency:
            raise ValueError(f"Cannot add different currencies: {self.currency} and {other.currency}")

        return Money(amount=self.amount + other.amount, currency=self.currency)

    def __mul__(self, multiplier) -> "Money":
        """Multiply money by a scalar value."""
        if not isinstance(multiplier, (int, float, Decimal)):
            raise TypeError(f"Cannot multiply Money by {type(multiplier)}")

        return Money(amount=self.amount * Decimal(str(multiplier)), currency=self.currency)

    def __str__(self) -> str:
        return f"{self.currency} {self.amount:.2f}"

    @property
    def is_zero(self) -> bool:
        return self.amount == Decimal("0")

    def format(self, language: str = "pt-BR") -> str:
        """
        Formats the amount with the locale conventions of ``language``.

        pt-BR uses ``.`` for thousands and ``,`` for decimals with a space
        after the symbol; other languages use ``,`` / ``.`` and no space.

        Args:
            language: Language code of the reader

        Returns:
            str: Formatted amount, e.g. ``R$ 1.234,56``
        """
        symbol = CURRENCY_SYMBOLS.get(self.currency, f"{self.currency} ")
        grouped = f"{self.amount:,.2f}"

        if language == "pt-BR":
            grouped = grouped.replace(",", "_").replace(".", ",").replace("_", ".")
            return f"{symbol} {grouped}"

        return f"{symbol}{grouped}"

    @classmethod
    def zero(cls, currency: str = "BRL") -> "Money":
        """Create a zero Money object."""
        return cls(amount=Decimal("0"), currency=currency)

    @classmethod
    def for_language(cls, amount, language: str, currency: str = None) -> "Money":
        """Create Money using the default currency of the language when none is given."""
        return cls(amount=Decimal(str(amount)), currency=currency or LANGUAGE_CURRENCIES.get(language, "USD"))
