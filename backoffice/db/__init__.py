"""
Módulo de acceso a la base de datos del back office.

- ConnDB: Gestión exclusiva de conexiones
- models: Modelos ORM (countries, translations, customers, suppliers, pedidos)
- repositories: Operaciones de persistencia por agregado
"""

from backoffice.db.connection import (
    ConnDB,
    check_database_connection,
    close_database,
    get_db_connection,
    initialize_database,
)

__all__ = [
    "ConnDB",
    "get_db_connection",
    "initialize_database",
    "close_database",
    "check_database_connection",
]
