"""
JSON writer: serializes objects through their readable properties
Custom per-type functions can replace the property walk
"""

import json
import logging
import math
import operator
import threading
from collections.abc import Callable, Mapping
from enum import Enum
from functools import lru_cache
from typing import Any, TypeVar

from pydantic import BaseModel

from .collector import model_keys
from .errors import ConfigurationError
from .properties import describe_properties, is_class

logger = logging.getLogger(__name__)

T = TypeVar("T")

# (writer, instance) -> '"key": value'
Generator = Callable[["JSONWriter", Any], str]


def _generator(key: str, getter: Callable[[Any], Any]) -> Generator:
    prefix = json.dumps(key) + ": "
    return lambda writer, instance: prefix + writer.to_json(getter(instance))


@lru_cache(maxsize=None)
def _property_generators(bean_type: type) -> tuple[Generator, ...]:
    """Writes the members JSONReader can set back: models by alias, beans by key"""
    if is_class(bean_type) and issubclass(bean_type, BaseModel):
        return tuple(
            _generator(key, operator.attrgetter(name))
            for key, name in model_keys(bean_type).items()
        )
    # getter-only properties are derived values
    return tuple(
        _generator(prop.key, prop.getter)
        for prop in describe_properties(bean_type)
        if prop.getter is not None and prop.setter is not None
    )


class JSONWriter:
    """Object -> JSON text, symmetric with JSONReader"""

    def __init__(self):
        self._configurations: dict[type, Callable[[Any], str]] = {}
        self._lock = threading.Lock()

    def configure(self, tp: type[T], func: Callable[[T], str]) -> None:
        """Use ``func`` to write instances of exactly ``tp``"""
        if tp is None or func is None:
            raise TypeError("type and func are required")
        with self._lock:
            if tp in self._configurations:
                raise ConfigurationError(tp, "configuration already registered")
            self._configurations[tp] = func
        logger.debug(f"Configured JSON writer for {tp.__qualname__}")

    def to_json(self, o: Any) -> str:
        match o:
            case None:
                return "null"
            case bool():
                return "true" if o else "false"
            case str():
                return json.dumps(o)
            case float() if not math.isfinite(o):
                raise ValueError(f"Out of range float values are not JSON compliant: {o!r}")
            case int() | float():
                return repr(o)
            case Enum():
                return self.to_json(o.value)
            case tuple() if hasattr(o, "_fields"):
                return self._object_to_json(o)
            case list() | tuple():
                return "[" + ", ".join(self.to_json(item) for item in o) + "]"
            case Mapping():
                return (
                    "{"
                    + ", ".join(
                        f"{json.dumps(str(key))}: {self.to_json(value)}"
                        for key, value in o.items()
                    )
                    + "}"
                )
            case _:
                return self._object_to_json(o)

    def _object_to_json(self, o: Any) -> str:
        func = self._configurations.get(type(o))
        if func is not None:
            return func(o)
        generators = _property_generators(type(o))
        return "{" + ", ".join(generator(self, o) for generator in generators) + "}"
