"""Tests unitarios para los metadatos de paginación."""

import pytest

from backoffice.utils.pagination import PaginationParams, build_pagination


class TestBuildPagination:
    """Tests para build_pagination."""

    def test_middle_page(self):
        """Debe indicar páginas anterior y siguiente en una página intermedia."""
        assert build_pagination(page=2, limit=10, total=35) == {
            "page": 2,
            "limit": 10,
            "total": 35,
            "total_pages": 4,
            "has_next": True,
            "has_prev": True,
        }

    def test_first_and_last_page(self):
        """No debe haber anterior en la primera ni siguiente en la última."""
        first = build_pagination(page=1, limit=10, total=20)
        last = build_pagination(page=2, limit=10, total=20)

        assert first["has_prev"] is False and first["has_next"] is True
        assert last["has_prev"] is True and last["has_next"] is False

    def test_empty_result(self):
        """Con total 0 debe haber 0 páginas y ninguna navegación."""
        result = build_pagination(page=1, limit=20, total=0)

        assert result["total_pages"] == 0
        assert result["has_next"] is False
        assert result["has_prev"] is False

    @pytest.mark.parametrize("total,expected_pages", [(1, 1), (20, 1), (21, 2), (100, 5)])
    def test_total_pages_rounds_up(self, total, expected_pages):
        """total_pages debe ser ceil(total / limit)."""
        assert build_pagination(page=1, limit=20, total=total)["total_pages"] == expected_pages


class TestPaginationParams:
    """Tests para el offset calculado."""

    def test_offset(self):
        """El offset debe ser (page - 1) * limit."""
        assert PaginationParams(page=3, limit=25).offset == 50
        assert PaginationParams(page=1, limit=25).offset == 0
