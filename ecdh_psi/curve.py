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

"""Curve abstraction for the masking engine.

A :class:`Curve` bundles point (de)serialization, scalar multiplication,
scalar sampling and hash-to-curve for one prime order group. Engines bind a
single curve at construction; there is no per-call dispatch between backends.

Only secp256k1 is registered. Its arithmetic comes from ``coincurve``
(libsecp256k1), whose scalar multiplication runs in constant time with respect
to the scalar.
"""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from typing import Any, ClassVar

import coincurve

from ecdh_psi.errors import (
    EntropyUnavailableError,
    InvalidEncodingError,
    InvalidPointError,
)
from ecdh_psi.hash_to_curve import DEFAULT_DST, hash_to_curve_secp256k1

__all__ = [
    "Curve",
    "Secp256k1",
    "get_curve",
    "list_curves",
]


class Curve(ABC):
    """A prime order group with a fixed-width point encoding."""

    name: ClassVar[str]
    order: ClassVar[int]
    point_size: ClassVar[int]
    scalar_size: ClassVar[int] = 32

    @abstractmethod
    def encode(self, point: Any) -> bytes:
        """Serialize a point to its canonical fixed-width encoding."""

    @abstractmethod
    def decode(self, data: bytes) -> Any:
        """Parse an encoded point.

        Raises:
            InvalidPointError: The bytes encode the identity element.
            InvalidEncodingError: The bytes are not an on-curve point.
        """

    @abstractmethod
    def multiply(self, point: Any, scalar: bytes) -> Any:
        """Return ``point * scalar`` for a big-endian scalar in [1, order-1]."""

    @abstractmethod
    def hash_to_curve(self, item: bytes) -> Any:
        """Deterministically map bytes to a non-identity point."""

    @abstractmethod
    def is_point(self, obj: Any) -> bool:
        """Whether ``obj`` is a point object of this curve."""

    def random_scalar(self) -> bytes:
        """Sample a uniform scalar in [1, order-1] from the OS entropy source.

        Out of range draws are resampled. A failing entropy source is not.
        """
        while True:
            try:
                raw = os.urandom(self.scalar_size)
            except (OSError, NotImplementedError) as e:
                raise EntropyUnavailableError(
                    f"Cannot draw a {self.name} scalar: {e}"
                ) from e
            value = int.from_bytes(raw, "big")
            if 0 < value < self.order:
                return raw


class Secp256k1(Curve):
    """secp256k1 backed by coincurve; points are ``coincurve.PublicKey``."""

    name = "secp256k1"
    order = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
    point_size = 33

    def __init__(self, dst: bytes = DEFAULT_DST):
        self._dst = dst

    def encode(self, point: coincurve.PublicKey) -> bytes:
        return point.format(compressed=True)

    def decode(self, data: bytes) -> coincurve.PublicKey:
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise InvalidEncodingError(
                f"Expected bytes, got {type(data).__name__}"
            )
        data = bytes(data)
        # SEC1 encodes the point at infinity as a single zero byte; an
        # all-zero fixed-width block is treated the same way
        if data == b"\x00" or data == b"\x00" * self.point_size:
            raise InvalidPointError("identity element is not a valid input")
        if len(data) != self.point_size:
            raise InvalidEncodingError(
                f"Expected {self.point_size} bytes, got {len(data)}"
            )
        try:
            return coincurve.PublicKey(data)
        except ValueError as e:
            raise InvalidEncodingError(f"Not a {self.name} point: {e}") from e

    def multiply(self, point: coincurve.PublicKey, scalar: bytes) -> coincurve.PublicKey:
        return point.multiply(scalar)

    def hash_to_curve(self, item: bytes) -> coincurve.PublicKey:
        return hash_to_curve_secp256k1(item, self._dst)

    def is_point(self, obj: Any) -> bool:
        return isinstance(obj, coincurve.PublicKey)

    def __repr__(self) -> str:
        return f"Secp256k1(dst={self._dst!r})"


_CURVE_REGISTRY: dict[str, Curve] = {
    Secp256k1.name: Secp256k1(),
}


def get_curve(name: str) -> Curve:
    """Return the shared backend registered under ``name``."""
    try:
        return _CURVE_REGISTRY[name]
    except KeyError:
        raise ValueError(
            f"Unknown curve '{name}', available: {list_curves()}"
        ) from None


def list_curves() -> list[str]:
    """List registered curve names."""
    return list(_CURVE_REGISTRY.keys())
