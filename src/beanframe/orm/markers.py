"""
ORM markers
Column metadata is attached with typing.Annotated, tables and queries with decorators

    @table("PEOPLE")
    class Person:
        id: Annotated[int | None, Id(), GeneratedValue()] = None
        name: Annotated[str, Column("LABEL")] = ""
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any


class ORMError(Exception):
    """Mapping or repository error"""

    pass


@dataclass(frozen=True)
class Id:
    """Primary key column"""


@dataclass(frozen=True)
class GeneratedValue:
    """Column value generated by the database"""


@dataclass(frozen=True)
class Column:
    """Explicit column name"""

    name: str


def table(name: str):
    """Explicit table name for an entity class"""

    def decorate(cls: type) -> type:
        cls.__table_name__ = name
        return cls

    return decorate


def query(sql: str):
    """Run ``sql`` for a repository method; binds are the method's parameter names"""

    def decorate(func: Callable[..., Any]) -> Callable[..., Any]:
        func.__query__ = sql
        return func

    return decorate
