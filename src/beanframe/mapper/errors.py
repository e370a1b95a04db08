"""
Exceptions raised while binding JSON to typed objects
"""

from typing import Any


def type_name(tp: Any) -> str:
    """Readable name of a class or typing construct"""
    if isinstance(tp, type):
        return tp.__qualname__
    return repr(tp)


class MapperError(Exception):
    """Base class for JSON mapping errors"""


class UnknownPropertyError(MapperError):
    """A key has no settable member on the target type"""

    def __init__(self, key: str | None, bean_type: Any):
        self.key = key
        self.bean_type = bean_type
        super().__init__(f"unknown property '{key}' for {type_name(bean_type)}")


class StructuralError(MapperError):
    """Malformed event sequence or malformed JSON text"""


class ConfigurationError(MapperError):
    """No collector can be produced for a type"""

    def __init__(self, tp: Any, reason: str):
        self.type = tp
        super().__init__(f"cannot map {type_name(tp)}: {reason}")


class TypeMismatchError(MapperError):
    """A leaf value is incompatible with the declared type"""

    def __init__(self, key: str | None, expected: Any, value: Any):
        self.key = key
        self.expected = expected
        self.value = value
        super().__init__(
            f"value {value!r} for key '{key}' is not a {type_name(expected)}"
        )


class MissingPropertyError(MapperError):
    """A constructor-built value lacks a required member"""

    def __init__(self, names: list[str], bean_type: Any):
        self.names = names
        self.bean_type = bean_type
        super().__init__(
            f"missing properties {', '.join(names)} for {type_name(bean_type)}"
        )
