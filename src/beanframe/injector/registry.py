"""
Dependency injection registry
Type-keyed suppliers with constructor and setter injection

Related Classes:
- AnnotationScanner: registers @component classes found in a package
- mapper.properties: no-argument constructor discovery
"""

import inspect
import logging
import threading
import typing
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from ..mapper.errors import ConfigurationError
from ..mapper.properties import default_constructor

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ServiceRegistrationError(Exception):
    """Service registration error"""

    pass


class ServiceResolutionError(Exception):
    """Service resolution error"""

    pass


def inject(func: Callable[..., Any]) -> Callable[..., Any]:
    """Mark an ``__init__`` or a property setter for injection"""
    func.__inject__ = True
    return func


def is_injectable(func: Any) -> bool:
    return getattr(func, "__inject__", False) is True


@dataclass(frozen=True)
class InjectableProperty:
    """Property whose setter receives a looked-up instance"""

    name: str
    service_type: type


def find_injectable_properties(tp: type) -> list[InjectableProperty]:
    """Properties of ``tp`` whose setter is marked with @inject"""
    injectables = []
    for name, member in inspect.getmembers(tp, lambda m: isinstance(m, property)):
        setter = member.fset
        if setter is None or not is_injectable(setter):
            continue
        hints = typing.get_type_hints(setter)
        hints.pop("return", None)
        if not hints:
            raise ServiceRegistrationError(
                f"Injectable setter {tp.__name__}.{name} has no type annotation"
            )
        injectables.append(InjectableProperty(name, next(iter(hints.values()))))
    return injectables


def _constructor_dependencies(impl: type) -> dict[str, type]:
    init = impl.__init__
    if not is_injectable(init):
        try:
            default_constructor(impl)
        except ConfigurationError as e:
            raise ServiceRegistrationError(
                f"{impl.__name__} needs an @inject constructor or a no-argument one"
            ) from e
        return {}

    hints = typing.get_type_hints(init)
    parameters = list(inspect.signature(init).parameters.values())[1:]
    dependencies = {}
    for parameter in parameters:
        if parameter.name not in hints:
            raise ServiceRegistrationError(
                f"Parameter '{parameter.name}' of {impl.__name__}.__init__ has no type annotation"
            )
        dependencies[parameter.name] = hints[parameter.name]
    return dependencies


class InjectorRegistry:
    """
    Registry of suppliers keyed by type
    Thread-safe; each type can be registered once
    """

    def __init__(self):
        self._registry: dict[type, Callable[[], Any]] = {}
        self._lock = threading.RLock()

    def _register(self, tp: type, supplier: Callable[[], Any]) -> None:
        with self._lock:
            if tp in self._registry:
                raise ServiceRegistrationError(f"Already an instance for {tp.__name__}")
            self._registry[tp] = supplier
        logger.debug(f"Registered {tp.__name__}")

    def register_instance(self, tp: type[T], instance: T) -> None:
        """Always return ``instance`` for ``tp``"""
        if tp is None:
            raise TypeError("type is None")
        if instance is None:
            raise TypeError("instance is None")
        self._register(tp, lambda: instance)

    def register_provider(self, tp: type[T], supplier: Callable[[], T]) -> None:
        """Call ``supplier`` on every lookup of ``tp``"""
        if tp is None:
            raise TypeError("type is None")
        if supplier is None:
            raise TypeError("supplier is None")
        self._register(tp, supplier)

    def register_provider_class(self, tp: type[T], impl: type[T] | None = None) -> None:
        """
        Build a new ``impl`` (default ``tp``) on every lookup of ``tp``

        Constructor arguments of an @inject ``__init__`` and @inject property
        setters are looked up by their annotated type.
        """
        if tp is None:
            raise TypeError("type is None")
        impl = impl or tp
        dependencies = _constructor_dependencies(impl)
        properties = find_injectable_properties(impl)

        def supplier() -> T:
            instance = impl(
                **{name: self.lookup_instance(dep) for name, dep in dependencies.items()}
            )
            for prop in properties:
                setattr(instance, prop.name, self.lookup_instance(prop.service_type))
            return instance

        self._register(tp, supplier)

    def lookup_instance(self, tp: type[T]) -> T:
        """Instance registered for ``tp``"""
        if tp is None:
            raise TypeError("type is None")
        with self._lock:
            supplier = self._registry.get(tp)
        if supplier is None:
            raise ServiceResolutionError(f"No supplier for class {getattr(tp, '__name__', tp)}")
        return supplier()

    def is_registered(self, tp: type) -> bool:
        with self._lock:
            return tp in self._registry
