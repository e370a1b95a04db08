"""
Dependency injection
Type-keyed registry with constructor/setter injection and component scanning
"""

from .registry import (
    InjectorRegistry,
    ServiceRegistrationError,
    ServiceResolutionError,
    find_injectable_properties,
    inject,
)
from .scanner import AnnotationScanner, component

__all__ = [
    "AnnotationScanner",
    "InjectorRegistry",
    "ServiceRegistrationError",
    "ServiceResolutionError",
    "component",
    "find_injectable_properties",
    "inject",
]
