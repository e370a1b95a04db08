"""
beanframe - small reflective frameworks
JSON data binder, dependency injector and mini ORM
"""

__version__ = "2.0.0"

from .injector import InjectorRegistry
from .mapper import JSONReader, JSONWriter
from .settings import Settings, get_settings

__all__ = [
    "InjectorRegistry",
    "JSONReader",
    "JSONWriter",
    "Settings",
    "get_settings",
    "__version__",
]
