"""
Property discovery for bean-like classes
Finds the readable and settable members of a class and their declared types

Used by:
- Collector.bean: setter-driven construction
- JSONWriter: getter-driven serialization
- orm: column mapping
"""

import inspect
import operator
import typing
from collections.abc import Callable
from dataclasses import dataclass
from functools import lru_cache
from typing import Annotated, Any, ClassVar

from .errors import ConfigurationError


@dataclass(frozen=True)
class JSONProperty:
    """Annotated metadata renaming the JSON key of a member"""

    name: str


def json_property(name: str):
    """Rename the JSON key of a property; apply below ``@property``"""

    def decorate(getter):
        getter.__json_property__ = name
        return getter

    return decorate


@dataclass(frozen=True)
class PropertyDescriptor:
    """One member of a bean-like class"""

    name: str
    declared_type: Any
    getter: Callable[[Any], Any] | None
    setter: Callable[[Any, Any], None] | None
    key: str
    metadata: tuple[Any, ...] = ()

    def find_metadata(self, marker_type: type) -> Any | None:
        """First Annotated metadata item of the given type"""
        for item in self.metadata:
            if isinstance(item, marker_type):
                return item
        return None


def is_class(tp: Any) -> bool:
    """True for plain classes, false for parameterized generics like list[int]"""
    # typing.Any is a class since Python 3.11 but cannot be instantiated
    return tp is not Any and isinstance(tp, type) and typing.get_origin(tp) is None


def split_annotated(hint: Any) -> tuple[Any, tuple[Any, ...]]:
    """Split ``Annotated[T, *meta]`` into ``(T, meta)``"""
    if typing.get_origin(hint) is Annotated:
        base, *metadata = typing.get_args(hint)
        return base, tuple(metadata)
    return hint, ()


def _attribute_setter(name: str) -> Callable[[Any, Any], None]:
    def setter(instance: Any, value: Any) -> None:
        setattr(instance, name, value)

    return setter


def json_key(name: str, metadata: tuple[Any, ...]) -> str:
    for item in metadata:
        if isinstance(item, JSONProperty):
            return item.name
    return name


def _property_type(prop: property) -> tuple[Any, tuple[Any, ...]]:
    if prop.fset is not None:
        hints = typing.get_type_hints(prop.fset, include_extras=True)
        hints.pop("return", None)
        if hints:
            return split_annotated(next(iter(hints.values())))
    if prop.fget is not None:
        hints = typing.get_type_hints(prop.fget, include_extras=True)
        if "return" in hints:
            return split_annotated(hints["return"])
    return Any, ()


@lru_cache(maxsize=None)
def describe_properties(bean_type: type) -> tuple[PropertyDescriptor, ...]:
    """
    Ordered members of ``bean_type``

    Annotated class attributes come first, in declaration order across the
    MRO, followed by properties. Names starting with ``_`` and ``ClassVar``
    annotations are skipped.
    """
    if not is_class(bean_type):
        raise ConfigurationError(bean_type, "not a class")

    properties: dict[str, property] = {}
    for klass in reversed(bean_type.__mro__):
        # BaseModel's own properties (model_extra, ...) are not data members
        if klass.__module__.startswith("pydantic."):
            continue
        for name, member in vars(klass).items():
            if isinstance(member, property) and not name.startswith("_"):
                properties[name] = member

    try:
        hints = typing.get_type_hints(bean_type, include_extras=True)
    except NameError as e:
        raise ConfigurationError(bean_type, f"unresolvable annotation: {e}") from e

    descriptors: list[PropertyDescriptor] = []
    for name, hint in hints.items():
        if name.startswith("_") or name in properties:
            continue
        declared_type, metadata = split_annotated(hint)
        if declared_type is ClassVar or typing.get_origin(declared_type) is ClassVar:
            continue
        descriptors.append(
            PropertyDescriptor(
                name=name,
                declared_type=declared_type,
                getter=operator.attrgetter(name),
                setter=_attribute_setter(name),
                key=json_key(name, metadata),
                metadata=metadata,
            )
        )

    for name, prop in properties.items():
        declared_type, metadata = _property_type(prop)
        key = getattr(prop.fget, "__json_property__", None) or json_key(name, metadata)
        descriptors.append(
            PropertyDescriptor(
                name=name,
                declared_type=declared_type,
                getter=operator.attrgetter(name) if prop.fget is not None else None,
                setter=_attribute_setter(name) if prop.fset is not None else None,
                key=key,
                metadata=metadata,
            )
        )
    return tuple(descriptors)


def default_constructor(bean_type: Any) -> Callable[[], Any]:
    """No-argument factory for ``bean_type``"""
    if not is_class(bean_type):
        raise ConfigurationError(bean_type, "not a class")
    if inspect.isabstract(bean_type):
        raise ConfigurationError(bean_type, "abstract class")
    try:
        signature = inspect.signature(bean_type)
    except (TypeError, ValueError):
        # builtins without an introspectable signature
        return bean_type

    required = [
        parameter.name
        for parameter in signature.parameters.values()
        if parameter.default is parameter.empty
        and parameter.kind not in (parameter.VAR_POSITIONAL, parameter.VAR_KEYWORD)
    ]
    if required:
        raise ConfigurationError(
            bean_type, f"no no-argument constructor (requires {', '.join(required)})"
        )
    return bean_type
