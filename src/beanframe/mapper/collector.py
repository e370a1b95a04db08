"""
Collector: how to build one typed value from keyed sub-values

A collector bundles four callables:
- qualifier(key) -> expected type of the sub-value stored under key
- supplier() -> fresh mutable accumulator
- populate(accumulator, key, value) -> install one resolved sub-value
- finisher(accumulator) -> final value

The same accumulator instance flows through supplier, populate and finisher
for the lifetime of one structural frame. ``kind`` names the JSON container
("object" or "array") the collector is built from.
"""

import dataclasses
import typing
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, Literal, TypeVar

from pydantic import BaseModel, ValidationError

from .errors import MissingPropertyError, TypeMismatchError, UnknownPropertyError
from .properties import (
    PropertyDescriptor,
    default_constructor,
    describe_properties,
    json_key,
    split_annotated,
)

B = TypeVar("B")


@dataclass(frozen=True)
class RecordMember:
    """Constructor parameter of a record-like type"""

    name: str
    declared_type: Any
    required: bool


def _record_members(record_type: type) -> dict[str, RecordMember]:
    hints = typing.get_type_hints(record_type, include_extras=True)
    if dataclasses.is_dataclass(record_type):
        fields = [
            (
                field.name,
                field.default is dataclasses.MISSING
                and field.default_factory is dataclasses.MISSING,
            )
            for field in dataclasses.fields(record_type)
            if field.init
        ]
    else:
        defaults = record_type._field_defaults
        fields = [(name, name not in defaults) for name in record_type._fields]

    members = {}
    for name, required in fields:
        declared_type, metadata = split_annotated(hints.get(name, Any))
        members[json_key(name, metadata)] = RecordMember(name, declared_type, required)
    return members


def model_keys(model_type: type[BaseModel]) -> dict[str, str]:
    """JSON key (alias, else field name) -> field name of a pydantic model"""
    return {field.alias or name: name for name, field in model_type.model_fields.items()}


@dataclass(frozen=True)
class Collector(Generic[B]):
    """Immutable description of how to materialize one value"""

    qualifier: Callable[[str | None], Any]
    supplier: Callable[[], B]
    populate: Callable[[B, str | None, Any], None]
    finisher: Callable[[B], Any]
    # JSON container this collector builds from; None accepts both
    kind: Literal["object", "array"] | None = None

    def __post_init__(self):
        for name in ("qualifier", "supplier", "populate", "finisher"):
            if not callable(getattr(self, name)):
                raise TypeError(f"collector {name} must be callable")
        if self.kind not in (None, "object", "array"):
            raise ValueError(f"unknown collector kind {self.kind!r}")

    @classmethod
    def bean(cls, bean_type: type) -> "Collector[Any]":
        """Setter-driven collector; the instance is its own final value"""
        properties = {
            prop.key: prop for prop in describe_properties(bean_type) if prop.setter
        }
        constructor = default_constructor(bean_type)

        def find_property(key: str | None) -> PropertyDescriptor:
            prop = properties.get(key)
            if prop is None:
                raise UnknownPropertyError(key, bean_type)
            return prop

        def populate(bean: Any, key: str | None, value: Any) -> None:
            find_property(key).setter(bean, value)

        return cls(
            qualifier=lambda key: find_property(key).declared_type,
            supplier=constructor,
            populate=populate,
            finisher=lambda bean: bean,
            kind="object",
        )

    @classmethod
    def record(cls, record_type: type) -> "Collector[dict[str, Any]]":
        """Constructor-driven collector for dataclasses and NamedTuples"""
        members = _record_members(record_type)

        def find_member(key: str | None) -> RecordMember:
            member = members.get(key)
            if member is None:
                raise UnknownPropertyError(key, record_type)
            return member

        def populate(staging: dict[str, Any], key: str | None, value: Any) -> None:
            staging[find_member(key).name] = value

        def finisher(staging: dict[str, Any]) -> Any:
            missing = [
                member.name
                for member in members.values()
                if member.required and member.name not in staging
            ]
            if missing:
                raise MissingPropertyError(missing, record_type)
            return record_type(**staging)

        return cls(
            qualifier=lambda key: find_member(key).declared_type,
            supplier=dict,
            populate=populate,
            finisher=finisher,
            kind="object",
        )

    @classmethod
    def model(cls, model_type: type[BaseModel]) -> "Collector[dict[str, Any]]":
        """Collector validating a pydantic model from its staged fields"""
        fields = {
            key: model_type.model_fields[name] for key, name in model_keys(model_type).items()
        }

        def qualifier(key: str | None) -> Any:
            field = fields.get(key)
            if field is None:
                raise UnknownPropertyError(key, model_type)
            return field.annotation

        def populate(staging: dict[str, Any], key: str | None, value: Any) -> None:
            qualifier(key)
            staging[key] = value

        def finisher(staging: dict[str, Any]) -> BaseModel:
            try:
                return model_type.model_validate(staging)
            except ValidationError as e:
                errors = e.errors()
                missing = [str(err["loc"][0]) for err in errors if err["type"] == "missing"]
                if missing:
                    raise MissingPropertyError(missing, model_type) from e
                first = errors[0]
                key = str(first["loc"][0]) if first["loc"] else None
                expected = fields[key].annotation if key in fields else model_type
                raise TypeMismatchError(key, expected, first.get("input")) from e

        return cls(
            qualifier=qualifier,
            supplier=dict,
            populate=populate,
            finisher=finisher,
            kind="object",
        )

    @classmethod
    def mapping(cls, value_type: Any) -> "Collector[dict[str, Any]]":
        """Collector for ``dict[str, V]``"""

        def populate(staging: dict[str, Any], key: str | None, value: Any) -> None:
            staging[key] = value

        return cls(
            qualifier=lambda _: value_type,
            supplier=dict,
            populate=populate,
            finisher=dict,
            kind="object",
        )

    # defined last: the name shadows the builtin inside the class body
    @classmethod
    def list(cls, element_type: Any, as_tuple: bool = False) -> "Collector[Any]":
        """Collector for a homogeneous sequence; keys are ignored"""
        return cls(
            qualifier=lambda _: element_type,
            supplier=lambda: [],
            populate=lambda seq, _, value: seq.append(value),
            finisher=tuple if as_tuple else lambda seq: seq.copy(),
            kind="array",
        )
