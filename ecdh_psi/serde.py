# Copyright 2025 Ant Group Co., Ltd.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
JSON wire envelope for batches exchanged between PSI parties.

Each wire type registers itself with ``@register_class`` and declares a
``_serde_kind`` plus ``to_json``/``from_json``. Decoding only rebuilds
registered types, so a peer cannot make us instantiate arbitrary classes.

Usage:
    from ecdh_psi import serde

    batch = serde.BytesBatch(engine.mask_items_serialized(items))
    payload = serde.dumps(batch)          # gzip-compressed JSON bytes
    items = serde.loads(payload).items    # list[bytes]
"""

from __future__ import annotations

import base64
import gzip
import json
from typing import Any, ClassVar, TypeVar

from ecdh_psi.errors import LengthMismatchError

__all__ = [
    "BytesBatch",
    "dumps",
    "from_json",
    "get_registered_class",
    "loads",
    "register_class",
    "to_json",
]

_KIND_KEY = "_kind"

_CLASS_REGISTRY: dict[str, type] = {}

T = TypeVar("T")


def register_class(cls: type[T]) -> type[T]:
    """Decorator registering a wire type under its ``_serde_kind``."""
    kind = getattr(cls, "_serde_kind", None)
    if kind is None:
        raise ValueError(
            f"{cls.__name__} must define `_serde_kind` class variable "
            "for serialization registration"
        )
    existing = _CLASS_REGISTRY.get(kind)
    if existing is not None and existing is not cls:
        raise ValueError(
            f"Duplicate _serde_kind '{kind}': already registered by {existing.__name__}"
        )
    _CLASS_REGISTRY[kind] = cls
    return cls


def get_registered_class(kind: str) -> type | None:
    return _CLASS_REGISTRY.get(kind)


def to_json(obj: Any) -> dict[str, Any]:
    kind = getattr(type(obj), "_serde_kind", None)
    if kind is None or kind not in _CLASS_REGISTRY:
        raise TypeError(f"{type(obj).__name__} is not a registered wire type")
    data = obj.to_json()
    data[_KIND_KEY] = kind
    return data


def from_json(data: dict[str, Any]) -> Any:
    if not isinstance(data, dict) or _KIND_KEY not in data:
        raise ValueError("Wire payload has no '_kind' field")
    kind = data[_KIND_KEY]
    cls = _CLASS_REGISTRY.get(kind)
    if cls is None:
        raise ValueError(f"Unknown wire type '{kind}'")
    fields = {k: v for k, v in data.items() if k != _KIND_KEY}
    return cls.from_json(fields)  # type: ignore[attr-defined]


def dumps(obj: Any, *, compress: bool = True) -> bytes:
    raw = json.dumps(to_json(obj), separators=(",", ":")).encode("utf-8")
    return gzip.compress(raw) if compress else raw


def loads(data: bytes, *, compressed: bool = True) -> Any:
    raw = gzip.decompress(data) if compressed else data
    return from_json(json.loads(raw.decode("utf-8")))


@register_class
class BytesBatch:
    """A batch of equal-width byte strings (encoded points or tokens)."""

    _serde_kind: ClassVar[str] = "ecdh_psi.BytesBatch"

    def __init__(self, items: list[bytes], item_size: int | None = None):
        self.items = [bytes(item) for item in items]
        if item_size is None:
            item_size = len(self.items[0]) if self.items else 0
        self.item_size = item_size
        for i, item in enumerate(self.items):
            if len(item) != item_size:
                raise LengthMismatchError(
                    f"entry {i}: expected {item_size} bytes, got {len(item)}"
                )

    def __len__(self) -> int:
        return len(self.items)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BytesBatch):
            return NotImplemented
        return self.item_size == other.item_size and self.items == other.items

    def to_json(self) -> dict[str, Any]:
        return {
            "item_size": self.item_size,
            "items": [base64.b64encode(item).decode("ascii") for item in self.items],
        }

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> BytesBatch:
        return cls(
            [base64.b64decode(item, validate=True) for item in data["items"]],
            item_size=int(data["item_size"]),
        )
