"""
JSON reader: binds structural parse events to a typed object graph

Design:
- TypeResolver: immutable snapshot of the registered matchers; consulted
  most-recently-registered first, falling back to Collector.bean
- BindingVisitor: explicit stack of (collector, accumulator) frames driven by
  start/end/value events; nesting depth is bounded by memory, not by the
  interpreter's recursion limit
- JSONReader: registration of matchers and the parse_json entry point
"""

import logging
import threading
import types
import typing
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Any, Literal, TypeVar, Union

from ..settings import MapperConfig, get_settings
from .collector import Collector
from .errors import StructuralError, TypeMismatchError
from .events import JSONVisitor, parse
from .matchers import BUILTIN_MATCHERS, TypeMatcher

logger = logging.getLogger(__name__)

NONE_TYPE = type(None)
SCALAR_TYPES = (str, int, float, bool, NONE_TYPE)


def strip_optional(tp: Any) -> tuple[Any, bool]:
    """``Optional[T]`` -> ``(T, True)``; other types -> ``(tp, False)``"""
    if typing.get_origin(tp) in (Union, types.UnionType):
        args = typing.get_args(tp)
        others = tuple(arg for arg in args if arg is not NONE_TYPE)
        if len(others) < len(args):
            if len(others) == 1:
                return others[0], True
            return Union[others], True
    return tp, False


def _accepts_anything(tp: Any) -> bool:
    return tp is Any or tp is object or isinstance(tp, TypeVar)


def _is_scalar_type(tp: Any) -> bool:
    origin = typing.get_origin(tp)
    if origin is Literal:
        return True
    if origin in (Union, types.UnionType):
        return all(_is_scalar_type(arg) for arg in typing.get_args(tp))
    return tp in SCALAR_TYPES or (isinstance(tp, type) and issubclass(tp, Enum))


def check_scalar(expected: Any, key: str | None, value: Any, coerce_numbers: bool = False) -> Any:
    """
    Validate a leaf value against its declared type

    Returns the value to install: unchanged, converted to the declared Enum,
    or widened to float when ``coerce_numbers`` is set.
    """
    expected, nullable = strip_optional(expected)
    if _accepts_anything(expected):
        return value
    if value is None:
        if nullable or expected is NONE_TYPE:
            return None
        raise TypeMismatchError(key, expected, value)

    origin = typing.get_origin(expected)
    if origin in (Union, types.UnionType):
        for member in typing.get_args(expected):
            try:
                return check_scalar(member, key, value, coerce_numbers)
            except TypeMismatchError:
                continue
        raise TypeMismatchError(key, expected, value)
    if origin is Literal:
        if value in typing.get_args(expected):
            return value
        raise TypeMismatchError(key, expected, value)

    if isinstance(expected, type):
        if issubclass(expected, Enum):
            try:
                return expected(value)
            except ValueError as e:
                raise TypeMismatchError(key, expected, value) from e
        # bool is an int subclass but never a JSON number
        if isinstance(value, bool) and expected is not bool:
            raise TypeMismatchError(key, expected, value)
        if expected is float and type(value) is int:
            if coerce_numbers:
                return float(value)
            raise TypeMismatchError(key, expected, value)
        if isinstance(value, expected):
            return value
    raise TypeMismatchError(key, expected, value)


@lru_cache(maxsize=None)
def _bean_collector(tp: Any) -> Collector[Any]:
    return Collector.bean(tp)


class TypeResolver:
    """Immutable view of a matcher chain"""

    def __init__(self, matchers: tuple[TypeMatcher, ...]):
        self._matchers = tuple(matchers)

    @property
    def matchers(self) -> tuple[TypeMatcher, ...]:
        return self._matchers

    def resolve(self, tp: Any) -> Collector[Any]:
        """Collector for ``tp``: first matching strategy, newest first, else bean"""
        tp, _ = strip_optional(tp)
        for matcher in reversed(self._matchers):
            collector = matcher(tp)
            if collector is not None:
                logger.debug(f"Resolved {tp!r} with {getattr(matcher, '__name__', matcher)!r}")
                return collector
        return _bean_collector(tp)


@dataclass(slots=True)
class Context:
    """One open container: its collector and accumulator"""

    collector: Collector[Any]
    data: Any


class BindingVisitor(JSONVisitor):
    """
    Event-driven builder for one document

    Each visitor owns its frame stack; use a fresh visitor per parse.
    """

    def __init__(self, root_type: Any, resolver: TypeResolver, coerce_numbers: bool = False):
        self._root_type = root_type
        self._resolver = resolver
        self._coerce_numbers = coerce_numbers
        self._contexts: list[Context] = []
        self._result: Any = None
        self._done = False

    @property
    def depth(self) -> int:
        return len(self._contexts)

    def _start(self, key: str | None, kind: str) -> None:
        if self._done:
            raise StructuralError("content after the root value")
        if self._contexts:
            item_type = self._contexts[-1].collector.qualifier(key)
        else:
            item_type = self._root_type
        base_type, _ = strip_optional(item_type)
        if _is_scalar_type(base_type):
            raise TypeMismatchError(key, base_type, kind)
        if _accepts_anything(base_type):
            collector = Collector.list(Any) if kind == "array" else Collector.mapping(Any)
        else:
            collector = self._resolver.resolve(base_type)
        if collector.kind is not None and collector.kind != kind:
            raise TypeMismatchError(key, base_type, kind)
        self._contexts.append(Context(collector, collector.supplier()))

    def _end(self, key: str | None) -> None:
        if not self._contexts:
            raise StructuralError("end of container without a matching start")
        context = self._contexts.pop()
        result = context.collector.finisher(context.data)
        if self._contexts:
            parent = self._contexts[-1]
            parent.collector.populate(parent.data, key, result)
        else:
            self._result = result
            self._done = True

    def start_object(self, key: str | None) -> None:
        self._start(key, "object")

    def end_object(self, key: str | None) -> None:
        self._end(key)

    def start_array(self, key: str | None) -> None:
        self._start(key, "array")

    def end_array(self, key: str | None) -> None:
        self._end(key)

    def value(self, key: str | None, value: Any) -> None:
        if not self._contexts:
            raise StructuralError("value outside any container")
        context = self._contexts[-1]
        expected = context.collector.qualifier(key)
        value = check_scalar(expected, key, value, self._coerce_numbers)
        context.collector.populate(context.data, key, value)

    def result(self) -> Any:
        """Assembled root value; fails if the event stream was incomplete"""
        if self._contexts:
            raise StructuralError(f"{len(self._contexts)} unterminated container(s)")
        if not self._done:
            raise StructuralError("no root container")
        return self._result


class JSONReader:
    """Deserializes JSON text into typed values"""

    def __init__(self, config: MapperConfig | None = None):
        self.config = config or get_settings().mapper
        self._lock = threading.Lock()
        self._matchers: tuple[TypeMatcher, ...] = (
            BUILTIN_MATCHERS if self.config.builtin_matchers else ()
        )
        self._resolver: TypeResolver | None = None

    def add_type_matcher(self, matcher: TypeMatcher) -> None:
        """Register a strategy; it takes precedence over earlier ones"""
        if matcher is None or not callable(matcher):
            raise TypeError("type matcher must be callable")
        with self._lock:
            self._matchers = (*self._matchers, matcher)
            self._resolver = None
        logger.info(f"Registered type matcher {getattr(matcher, '__name__', matcher)!r}")

    def resolver(self) -> TypeResolver:
        """Snapshot of the current matcher chain"""
        with self._lock:
            if self._resolver is None:
                self._resolver = TypeResolver(self._matchers)
            return self._resolver

    def parse_json(self, text: str, tp: Any) -> Any:
        """Parse ``text`` as a value of type ``tp``"""
        if text is None:
            raise TypeError("text is None")
        if tp is None:
            raise TypeError("type is None")
        visitor = BindingVisitor(tp, self.resolver(), self.config.coerce_numbers)
        parse(text, visitor)
        return visitor.result()
