"""
JSON data binder
Event-driven reader with pluggable type matchers, and a symmetric writer
"""

from .collector import Collector
from .errors import (
    ConfigurationError,
    MapperError,
    MissingPropertyError,
    StructuralError,
    TypeMismatchError,
    UnknownPropertyError,
)
from .events import JSONVisitor, parse
from .matchers import TypeMatcher
from .properties import JSONProperty, describe_properties, json_property
from .reader import BindingVisitor, JSONReader, TypeResolver
from .writer import JSONWriter

__all__ = [
    "BindingVisitor",
    "Collector",
    "ConfigurationError",
    "JSONProperty",
    "JSONReader",
    "JSONVisitor",
    "JSONWriter",
    "MapperError",
    "MissingPropertyError",
    "StructuralError",
    "TypeMatcher",
    "TypeMismatchError",
    "TypeResolver",
    "UnknownPropertyError",
    "describe_properties",
    "json_property",
    "parse",
]
