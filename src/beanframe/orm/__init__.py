"""
Mini object-relational mapper over SQLAlchemy Core
Bean-like entities, generated repositories and context-bound transactions
"""

from .markers import Column, GeneratedValue, Id, ORMError, query, table
from .repository import (
    Repository,
    create_repository,
    create_table,
    create_table_query,
    find_column_name,
    find_table_name,
)
from .session import create_engine_from_settings, current_connection, transaction

__all__ = [
    "Column",
    "GeneratedValue",
    "Id",
    "ORMError",
    "Repository",
    "create_engine_from_settings",
    "create_repository",
    "create_table",
    "create_table_query",
    "current_connection",
    "find_column_name",
    "find_table_name",
    "query",
    "table",
    "transaction",
]
