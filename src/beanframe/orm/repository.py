"""
Entity mapping and generated repositories

Design:
- Entities are bean-like classes: a no-argument constructor plus readable and
  settable members (see mapper.properties)
- create_repository() subclasses a Repository[T, ID] declaration and fills in
  every public method: find_all, save, find_by_id, find_by_<property> and
  @query methods
"""

import inspect
import typing
from collections.abc import Callable
from typing import Any, Generic, TypeVar

import structlog
from sqlalchemy import Connection, text

from ..mapper.properties import PropertyDescriptor, default_constructor, describe_properties, is_class
from ..mapper.reader import strip_optional
from .markers import Column, GeneratedValue, Id, ORMError
from .session import current_connection

logger = structlog.get_logger(__name__)

T = TypeVar("T")
ID = TypeVar("ID")

TYPE_MAPPING: dict[type, str] = {
    int: "INTEGER",
    str: "VARCHAR(255)",
    float: "DOUBLE",
    bool: "BOOLEAN",
}


class Repository(Generic[T, ID]):
    """Declare a repository by subclassing ``Repository[Entity, IdType]``"""

    def find_all(self) -> list[T]:
        raise NotImplementedError

    def save(self, entity: T) -> T:
        raise NotImplementedError

    def find_by_id(self, id: ID) -> T | None:
        raise NotImplementedError


def find_table_name(bean_type: type) -> str:
    name = vars(bean_type).get("__table_name__") or bean_type.__name__
    return name.upper()


def find_column_name(prop: PropertyDescriptor) -> str:
    column = prop.find_metadata(Column)
    return column.name if column else prop.name


def entity_properties(bean_type: type) -> list[PropertyDescriptor]:
    """Members mapped to columns: readable and settable"""
    return [
        prop
        for prop in describe_properties(bean_type)
        if prop.getter is not None and prop.setter is not None
    ]


def find_id(bean_type: type) -> PropertyDescriptor | None:
    for prop in entity_properties(bean_type):
        if prop.find_metadata(Id):
            return prop
    return None


def column_definition(prop: PropertyDescriptor, dialect_name: str) -> str:
    declared_type, nullable = strip_optional(prop.declared_type)
    sql_type = TYPE_MAPPING.get(declared_type)
    if sql_type is None:
        raise ORMError(f"No SQL type for property '{prop.name}' of type {declared_type!r}")
    parts = [find_column_name(prop), sql_type]
    if not nullable:
        parts.append("NOT NULL")
    if prop.find_metadata(Id):
        parts.append("PRIMARY KEY")
    if prop.find_metadata(GeneratedValue):
        parts.append("AUTOINCREMENT" if dialect_name == "sqlite" else "AUTO_INCREMENT")
    return " ".join(parts)


def create_table_query(bean_type: type, dialect_name: str = "sqlite") -> str:
    columns = ",\n".join(
        column_definition(prop, dialect_name) for prop in entity_properties(bean_type)
    )
    return f"CREATE TABLE {find_table_name(bean_type)}(\n{columns})"


def create_table(bean_type: type) -> None:
    """Create the table of ``bean_type`` in the current transaction"""
    if bean_type is None:
        raise TypeError("bean type is None")
    connection = current_connection()
    query = create_table_query(bean_type, connection.dialect.name)
    logger.debug("create_table", table=find_table_name(bean_type))
    connection.execute(text(query))


def create_save_query(bean_type: type, dialect_name: str = "sqlite") -> str:
    properties = entity_properties(bean_type)
    columns = ", ".join(find_column_name(prop) for prop in properties)
    values = ", ".join(f":{prop.name}" for prop in properties)
    verb = "INSERT OR REPLACE INTO" if dialect_name == "sqlite" else "MERGE INTO"
    return f"{verb} {find_table_name(bean_type)} ({columns}) VALUES ({values})"


def _column_value(prop: PropertyDescriptor, value: Any) -> Any:
    declared_type, _ = strip_optional(prop.declared_type)
    if declared_type is bool and value is not None:
        return bool(value)
    return value


def to_entity(row: Any, bean_type: type, constructor: Callable[[], Any]) -> Any:
    instance = constructor()
    mapping = row._mapping
    for prop in entity_properties(bean_type):
        column = find_column_name(prop)
        if column in mapping:
            prop.setter(instance, _column_value(prop, mapping[column]))
    return instance


def find_all(
    connection: Connection,
    sql: str,
    bean_type: type,
    constructor: Callable[[], Any],
    params: dict[str, Any] | None = None,
) -> list[Any]:
    logger.debug("query", sql=sql, params=params)
    result = connection.execute(text(sql), params or {})
    return [to_entity(row, bean_type, constructor) for row in result]


def save(connection: Connection, bean_type: type, entity: Any) -> Any:
    query = create_save_query(bean_type, connection.dialect.name)
    params = {prop.name: prop.getter(entity) for prop in entity_properties(bean_type)}
    logger.debug("save", sql=query, params=params)
    result = connection.execute(text(query), params)
    id_property = find_id(bean_type)
    if id_property is not None and id_property.getter(entity) is None:
        if result.lastrowid is not None:
            id_property.setter(entity, result.lastrowid)
    return entity


def find_bean_type_from_repository(repo_type: type) -> type:
    for klass in repo_type.__mro__:
        for base in vars(klass).get("__orig_bases__", ()):
            if typing.get_origin(base) is Repository:
                bean_type = typing.get_args(base)[0]
                if is_class(bean_type):
                    return bean_type
                raise ORMError(
                    f"invalid type argument {bean_type!r} for repository {repo_type.__name__}"
                )
    raise ORMError(f"invalid repository class {repo_type.__name__}")


def _repository_methods(repo_type: type) -> dict[str, Callable[..., Any]]:
    methods: dict[str, Callable[..., Any]] = {}
    for klass in reversed(repo_type.__mro__):
        if klass is object or klass is typing.Generic:
            continue
        for name, member in vars(klass).items():
            if inspect.isfunction(member) and not name.startswith("_"):
                methods[name] = member
    return methods


def create_repository(repo_type: type[T]) -> T:
    """
    Instantiate a generated implementation of ``repo_type``

    Every call needs an enclosing transaction().
    """
    bean_type = find_bean_type_from_repository(repo_type)
    table_name = find_table_name(bean_type)
    constructor = default_constructor(bean_type)
    properties = {prop.name: prop for prop in entity_properties(bean_type)}
    id_property = find_id(bean_type)

    def select_first(column: str, value: Any) -> Any | None:
        sql = f"SELECT * FROM {table_name} WHERE {column} = :value"
        entities = find_all(current_connection(), sql, bean_type, constructor, {"value": value})
        return entities[0] if entities else None

    def query_method(method: Callable[..., Any], sql: str) -> Callable[..., Any]:
        signature = inspect.signature(method)

        def run(self, *args, **kwargs):
            bound = signature.bind(self, *args, **kwargs)
            bound.apply_defaults()
            params = dict(list(bound.arguments.items())[1:])
            return find_all(current_connection(), sql, bean_type, constructor, params)

        return run

    def find_by(prop: PropertyDescriptor) -> Callable[..., Any]:
        return lambda self, value: select_first(find_column_name(prop), value)

    def find_all_method(self) -> list[Any]:
        return find_all(current_connection(), f"SELECT * FROM {table_name}", bean_type, constructor)

    def save_method(self, entity: Any) -> Any:
        return save(current_connection(), bean_type, entity)

    def find_by_id_method(self, id: Any) -> Any | None:
        if id_property is None:
            raise ORMError(f"No @Id property on {bean_type.__name__}")
        return select_first(find_column_name(id_property), id)

    def unsupported(name: str) -> Callable[..., Any]:
        def run(self, *args, **kwargs):
            raise ORMError(f"unknown method {repo_type.__name__}.{name}")

        return run

    namespace: dict[str, Any] = {}
    for name, method in _repository_methods(repo_type).items():
        sql = getattr(method, "__query__", None)
        if sql is not None:
            namespace[name] = query_method(method, sql)
        elif name == "find_all":
            namespace[name] = find_all_method
        elif name == "save":
            namespace[name] = save_method
        elif name == "find_by_id":
            namespace[name] = find_by_id_method
        elif name.startswith("find_by_"):
            property_name = name.removeprefix("find_by_")
            if property_name not in properties:
                raise ORMError(f"no property named {property_name} on {bean_type.__name__}")
            namespace[name] = find_by(properties[property_name])
        else:
            namespace[name] = unsupported(name)

    implementation = type(f"{repo_type.__name__}Impl", (repo_type,), namespace)
    logger.debug("repository_created", repository=repo_type.__name__, table=table_name)
    return implementation()
