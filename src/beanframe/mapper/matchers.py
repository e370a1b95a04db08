"""
Built-in type matchers
A matcher maps a requested type to a Collector, or None when it does not apply
"""

import collections.abc
import dataclasses
import typing
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel

from .collector import Collector
from .properties import is_class

TypeMatcher = Callable[[Any], Collector[Any] | None]

SEQUENCE_ORIGINS = (
    list,
    collections.abc.Sequence,
    collections.abc.MutableSequence,
    collections.abc.Iterable,
    collections.abc.Collection,
)
MAPPING_ORIGINS = (dict, collections.abc.Mapping, collections.abc.MutableMapping)


def list_matcher(tp: Any) -> Collector[Any] | None:
    """``list[E]``, ``Sequence[E]``, ``tuple[E, ...]`` and bare ``list``"""
    if tp is list:
        return Collector.list(Any)
    origin = typing.get_origin(tp)
    args = typing.get_args(tp)
    if origin in SEQUENCE_ORIGINS and len(args) == 1:
        return Collector.list(args[0])
    if origin is tuple and len(args) == 2 and args[1] is Ellipsis:
        return Collector.list(args[0], as_tuple=True)
    return None


def mapping_matcher(tp: Any) -> Collector[Any] | None:
    """``dict[str, V]``, ``Mapping[str, V]`` and bare ``dict``"""
    if tp is dict:
        return Collector.mapping(Any)
    args = typing.get_args(tp)
    if typing.get_origin(tp) in MAPPING_ORIGINS and len(args) == 2:
        key_type, value_type = args
        if key_type is str:
            return Collector.mapping(value_type)
    return None


def record_matcher(tp: Any) -> Collector[Any] | None:
    """Dataclasses and NamedTuples, built through their constructor"""
    if not is_class(tp):
        return None
    if dataclasses.is_dataclass(tp) or (issubclass(tp, tuple) and hasattr(tp, "_fields")):
        return Collector.record(tp)
    return None


def model_matcher(tp: Any) -> Collector[Any] | None:
    """Pydantic models"""
    if is_class(tp) and issubclass(tp, BaseModel):
        return Collector.model(tp)
    return None


# registration order; later entries are consulted first
BUILTIN_MATCHERS: tuple[TypeMatcher, ...] = (
    record_matcher,
    model_matcher,
    mapping_matcher,
    list_matcher,
)
