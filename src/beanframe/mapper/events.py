"""
Structural parse events
Defines the visitor contract and drives it from JSON text with ijson
"""

import io
from abc import ABC, abstractmethod
from typing import Any

import ijson

from .errors import StructuralError

SCALAR_EVENTS = frozenset({"null", "boolean", "integer", "double", "number", "string"})


class JSONVisitor(ABC):
    """Receives structural events in document order

    ``key`` is the field name the value is installed under, or ``None`` at
    the document root and for array elements.
    """

    @abstractmethod
    def start_object(self, key: str | None) -> None:
        pass

    @abstractmethod
    def end_object(self, key: str | None) -> None:
        pass

    @abstractmethod
    def start_array(self, key: str | None) -> None:
        pass

    @abstractmethod
    def end_array(self, key: str | None) -> None:
        pass

    @abstractmethod
    def value(self, key: str | None, value: Any) -> None:
        pass


def parse(text: str, visitor: JSONVisitor) -> None:
    """
    Tokenize ``text`` and push its events to ``visitor``

    ijson reports map keys as separate events; they are folded into the
    following value or container event. Each container remembers the key it
    was opened under so the matching end event carries the same key.
    """
    source = io.BytesIO(text.encode("utf-8"))
    # (is_object, key the container was opened under)
    open_containers: list[tuple[bool, str | None]] = []
    pending_key: str | None = None

    def current_key() -> str | None:
        nonlocal pending_key
        if open_containers and open_containers[-1][0]:
            key, pending_key = pending_key, None
            return key
        return None

    try:
        for event, value in ijson.basic_parse(source, use_float=True):
            if event == "map_key":
                pending_key = value
            elif event in SCALAR_EVENTS:
                visitor.value(current_key(), value)
            elif event == "start_map":
                key = current_key()
                open_containers.append((True, key))
                visitor.start_object(key)
            elif event == "start_array":
                key = current_key()
                open_containers.append((False, key))
                visitor.start_array(key)
            elif event == "end_map":
                _, key = open_containers.pop()
                visitor.end_object(key)
            elif event == "end_array":
                _, key = open_containers.pop()
                visitor.end_array(key)
            else:
                raise StructuralError(f"unexpected tokenizer event {event!r}")
    except ijson.JSONError as e:
        raise StructuralError(f"malformed JSON: {e}") from e
