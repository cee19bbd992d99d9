"""
Byte-format classifier for stored keys and values.

classify() turns an opaque byte string into exactly one SemanticValue:

    StructuredJson    bytes are UTF-8 JSON text
    PlainText         bytes are UTF-8 but not JSON
    StructuredBinary  bytes are MessagePack but not UTF-8
    RawBytes          anything else

Invariants:
    - classify() is pure, deterministic and never raises
    - Attempts run in CLASSIFICATION_ORDER and stop at the first success
    - JSON precedes text because every JSON document is also UTF-8 text
    - MessagePack comes after text: most short byte strings are valid
      MessagePack, so trying it first would misread readable data.
      A MessagePack payload that happens to be valid UTF-8 is PlainText.
    - Structured payloads are plain JSON trees (dict/list/str/int/float/bool/None)

How to change safely:
    - Reordering CLASSIFICATION_ORDER changes how stored data is displayed;
      update tests/unit/test_values.py alongside it
    - New variants need a badge, both renderings and to_dict()
"""

from __future__ import annotations

import json
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, ClassVar, Dict, Tuple, Type

import msgspec

JsonTree = Any


class SemanticValue(ABC):
    """A classified byte string.

    Attributes:
        kind: Stable identifier of the variant
        badge: Short label shown next to the value
    """

    kind: ClassVar[str]
    badge: ClassVar[str]

    @abstractmethod
    def compact(self) -> str:
        """Single-line rendering."""
        ...

    @abstractmethod
    def long(self) -> str:
        """Expanded rendering; structured values are pretty-printed."""
        ...

    @abstractmethod
    def json_data(self) -> JsonTree:
        """The payload as a JSON-serializable object."""
        ...

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "kind": self.kind,
            "badge": self.badge,
            "compact": self.compact(),
            "long": self.long(),
            "data": self.json_data(),
        }

    def __str__(self) -> str:
        return self.compact()


@dataclass(frozen=True)
class _Structured(SemanticValue):
    data: JsonTree

    def compact(self) -> str:
        return json.dumps(self.data, ensure_ascii=False, separators=(",", ":"), sort_keys=True)

    def long(self) -> str:
        return json.dumps(self.data, ensure_ascii=False, indent=2, sort_keys=True)

    def json_data(self) -> JsonTree:
        return self.data


@dataclass(frozen=True)
class StructuredJson(_Structured):
    """Bytes that parse as textual JSON."""

    kind: ClassVar[str] = "json"
    badge: ClassVar[str] = "Json"


@dataclass(frozen=True)
class StructuredBinary(_Structured):
    """Bytes that decode as MessagePack but are not UTF-8 text."""

    kind: ClassVar[str] = "msgpack"
    badge: ClassVar[str] = "MsgPack"


@dataclass(frozen=True)
class PlainText(SemanticValue):
    """UTF-8 text that is not JSON."""

    text: str

    kind: ClassVar[str] = "text"
    badge: ClassVar[str] = "String"

    def compact(self) -> str:
        return f'"{self.text}"'

    def long(self) -> str:
        return self.compact()

    def json_data(self) -> JsonTree:
        return self.text


@dataclass(frozen=True)
class RawBytes(SemanticValue):
    """Opaque bytes, rendered as 0x-prefixed lowercase hex."""

    data: bytes

    kind: ClassVar[str] = "bytes"
    badge: ClassVar[str] = "Bytes"

    def compact(self) -> str:
        return "0x" + self.data.hex()

    def long(self) -> str:
        return self.compact()

    def json_data(self) -> JsonTree:
        return self.data.hex()


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def _parse_finite_float(text: str) -> float:
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"number out of range: {text}")
    return value


def _parse_json(data: bytes) -> JsonTree:
    tree = json.loads(
        data.decode("utf-8"),
        parse_constant=_reject_constant,
        parse_float=_parse_finite_float,
    )
    # Lone surrogate escapes ("\ud800") parse but cannot be re-encoded.
    json.dumps(tree, ensure_ascii=False).encode("utf-8")
    return tree


def _decode_text(data: bytes) -> str:
    return data.decode("utf-8")


def _as_json_tree(obj: Any) -> JsonTree:
    if obj is None or isinstance(obj, (bool, int, str)):
        return obj
    if isinstance(obj, float):
        return obj if math.isfinite(obj) else None
    if isinstance(obj, list):
        return [_as_json_tree(item) for item in obj]
    if isinstance(obj, dict):
        tree = {}
        for key, value in obj.items():
            if not isinstance(key, str):
                raise ValueError(f"non-string map key {key!r}")
            tree[key] = _as_json_tree(value)
        return tree
    raise ValueError(f"{type(obj).__name__} has no JSON representation")


def _parse_msgpack(data: bytes) -> JsonTree:
    # decode() rejects trailing bytes, so the whole input must be one document.
    return _as_json_tree(msgspec.msgpack.decode(data))


CLASSIFICATION_ORDER: Tuple[Tuple[Type[SemanticValue], Callable[[bytes], Any]], ...] = (
    (StructuredJson, _parse_json),
    (PlainText, _decode_text),
    (StructuredBinary, _parse_msgpack),
)

_NOT_THIS_KIND = (ValueError, msgspec.DecodeError, RecursionError)


def classify(data: bytes) -> SemanticValue:
    """Classify a byte string.

    Args:
        data: Raw key or value bytes

    Returns:
        The first variant in CLASSIFICATION_ORDER that accepts the bytes,
        or RawBytes if none does.

    Example:
        >>> classify(b"42")
        StructuredJson(data=42)
        >>> classify(b"hello world")
        PlainText(text='hello world')
    """
    data = bytes(data)
    for variant, attempt in CLASSIFICATION_ORDER:
        try:
            payload = attempt(data)
        except _NOT_THIS_KIND:
            continue
        return variant(payload)
    return RawBytes(data)
