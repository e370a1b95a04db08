"""
Component scanning
Imports every module of a package and registers its @component classes
"""

import importlib
import inspect
import logging
import pkgutil
from types import ModuleType

from .registry import InjectorRegistry

logger = logging.getLogger(__name__)


def component(cls: type) -> type:
    """Mark a class for registration by AnnotationScanner"""
    cls.__component__ = True
    return cls


def is_component(cls: type) -> bool:
    # vars(): a subclass of a component is not itself a component
    return vars(cls).get("__component__", False) is True


def _iter_modules(package_name: str) -> list[ModuleType]:
    package = importlib.import_module(package_name)
    modules = [package]
    if hasattr(package, "__path__"):
        for info in pkgutil.walk_packages(package.__path__, prefix=f"{package.__name__}."):
            modules.append(importlib.import_module(info.name))
    return modules


class AnnotationScanner:
    """Registers the @component classes of a package in a registry"""

    def __init__(self, registry: InjectorRegistry):
        self.registry = registry

    def find_components(self, package_name: str) -> list[type]:
        """@component classes defined in the package, module by module"""
        components = []
        for module in _iter_modules(package_name):
            for _, cls in inspect.getmembers(module, inspect.isclass):
                if cls.__module__ == module.__name__ and is_component(cls):
                    components.append(cls)
        return components

    def scan_package(self, package_name: str) -> list[type]:
        """Register every component of the package as a provider class"""
        components = self.find_components(package_name)
        for cls in components:
            self.registry.register_provider_class(cls)
        logger.info(f"Registered {len(components)} components from {package_name}")
        return components
