"""Tests unitarios para detección de idioma y sustitución de variables."""

import pytest

from backoffice.core.config import get_settings
from backoffice.services.i18n import (
    detect_language,
    get_language_by_country,
    get_language_by_phone,
    replace_variables,
)

settings = get_settings()


class TestLanguageByCountry:
    """Tests para el mapeo país → idioma."""

    @pytest.mark.parametrize(
        "country,expected",
        [("BR", "pt-BR"), ("CN", "zh-CN"), ("GB", "en"), ("MX", "es"), ("IN", "hi"), ("th", "th")],
    )
    def test_known_countries(self, country, expected):
        """Debe resolver el idioma principal del país (sin importar mayúsculas)."""
        assert get_language_by_country(country) == expected

    def test_unknown_country_uses_default_language(self):
        """Debe usar DEFAULT_LANGUAGE para países no mapeados."""
        assert get_language_by_country("ZZ") == settings.DEFAULT_LANGUAGE
        assert get_language_by_country(None) == settings.DEFAULT_LANGUAGE


class TestLanguageByPhone:
    """Tests para el mapeo prefijo telefónico → idioma."""

    @pytest.mark.parametrize(
        "phone,expected",
        [
            ("+55 (11) 98765-4321", "pt-BR"),
            ("5511987654321", "pt-BR"),
            ("+1 415 555 0123", "en"),
            ("+86 138 1234 5678", "zh-CN"),
            ("+852 9123 4567", "zh-CN"),
            ("+351 912 345 678", "pt"),
            ("+7 912 345 6789", "ru"),
            ("+598 99 123 456", "es"),
        ],
    )
    def test_prefixes(self, phone, expected):
        """Debe normalizar el número y usar el prefijo más largo que coincida."""
        assert get_language_by_phone(phone) == expected

    def test_longest_prefix_wins(self):
        """+351 (pt) debe ganarle a prefijos más cortos."""
        assert get_language_by_phone("+351123456789") == "pt"

    def test_no_match_returns_none(self):
        """Debe retornar None si ningún prefijo coincide."""
        assert get_language_by_phone("+999 1234") is None
        assert get_language_by_phone("") is None
        assert get_language_by_phone(None) is None

    def test_detect_language_prefers_phone_over_country(self):
        """Debe priorizar el teléfono sobre el país."""
        assert detect_language("+8613812345678", "BR") == "zh-CN"
        assert detect_language("+9991234", "BR") == "pt-BR"


class TestReplaceVariables:
    """Tests para la sustitución de {{ variables }}."""

    def test_replaces_with_and_without_spaces(self):
        """Debe tolerar espacios dentro de las llaves."""
        text = "Olá {{name}}, pedido {{ order }}"

        assert replace_variables(text, {"name": "Ana", "order": 42}) == "Olá Ana, pedido 42"

    def test_unknown_keys_are_left_untouched(self):
        """Debe dejar intactas las variables desconocidas."""
        assert replace_variables("Hi {{name}} {{missing}}", {"name": "Bo"}) == "Hi Bo {{missing}}"

    def test_without_variables_returns_text(self):
        """Debe retornar el texto original sin variables."""
        assert replace_variables("Hi {{name}}", None) == "Hi {{name}}"
