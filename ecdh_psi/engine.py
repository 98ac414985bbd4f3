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

"""ECDH-PSI masking engine.

Protocol (semi-honest, two parties with private scalars a and b):

    Step 1: Alice sends H(x)^a for her items, Bob sends H(y)^b for his.
    Step 2: Alice computes T(H(y)^b^a), Bob computes T(H(x)^a^b).
    Step 3: Equal items give equal tokens since (P^a)^b == (P^b)^a.

``mask_items`` covers step 1 and ``remask_and_finalize`` covers step 2. Each
has a ``*_serialized`` twin that speaks encoded points, the form a byte
oriented transport carries. The twins only convert at the edges; the masking
itself lives in one place.

Example:
    >>> alice, bob = EcdhPsi(), EcdhPsi()
    >>> x_points = alice.mask_items_serialized(["0", "1", "2", "3"])
    >>> y_points = bob.mask_items_serialized(["3", "4", "5", "6"])
    >>> y_final = alice.remask_and_finalize_serialized(y_points)
    >>> x_final = bob.remask_and_finalize_serialized(x_points)
    >>> x_final[3] == y_final[0]
    True
"""

from __future__ import annotations

import concurrent.futures
from collections.abc import Callable, Iterator, Sequence
from typing import Any, TypeVar

from ecdh_psi.config import PsiConfig
from ecdh_psi.curve import Curve, get_curve
from ecdh_psi.errors import (
    BatchError,
    EngineClosedError,
    InvalidPointError,
    LengthMismatchError,
)
from ecdh_psi.finalize import finalize_to_token
from ecdh_psi.logging_config import get_logger

__all__ = ["EcdhPsi", "Item"]

logger = get_logger(__name__)

Item = bytes | bytearray | memoryview | str

T = TypeVar("T")
R = TypeVar("R")


def _item_bytes(item: Any, index: int) -> bytes:
    if isinstance(item, str):
        return item.encode("utf-8")
    if isinstance(item, (bytes, bytearray, memoryview)):
        return bytes(item)
    raise TypeError(
        f"Item at index {index} must be bytes or str, got {type(item).__name__}"
    )


def _check_out(out: list | None, n: int) -> None:
    if out is not None and len(out) != n:
        raise LengthMismatchError(
            f"Output buffer holds {len(out)} entries, input has {n}"
        )


class EcdhPsi:
    """One party's masking engine.

    Owns a private scalar drawn at construction and a curve bound for the
    engine's whole lifetime. All operations are pure functions of the scalar
    and their input, so a single engine may serve concurrent calls.

    Args:
        curve: Curve instance or registered name. Defaults to ``config.curve``.
        config: Engine settings. Defaults to ``PsiConfig.from_env()``.

    Raises:
        EntropyUnavailableError: No scalar could be drawn.
    """

    def __init__(
        self,
        curve: Curve | str | None = None,
        *,
        config: PsiConfig | None = None,
    ):
        self._config = config if config is not None else PsiConfig.from_env()
        if curve is None:
            curve = self._config.curve
        self._curve = get_curve(curve) if isinstance(curve, str) else curve
        self._scalar = bytearray(self._curve.random_scalar())
        self._closed = False
        logger.debug(
            f"Initialized EcdhPsi on {self._curve.name} "
            f"(num_workers={self._config.num_workers})"
        )

    @property
    def curve(self) -> Curve:
        return self._curve

    @property
    def config(self) -> PsiConfig:
        return self._config

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Wipe the private scalar. Later masking calls raise EngineClosedError."""
        if self._closed:
            return
        for i in range(len(self._scalar)):
            self._scalar[i] = 0
        self._closed = True
        logger.debug("EcdhPsi closed, scalar wiped")

    def __enter__(self) -> EcdhPsi:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"EcdhPsi(curve={self._curve.name}, {state})"

    # =========== Step 1: mask own items ===========

    def mask_items(
        self, items: Sequence[Item], out: list | None = None
    ) -> list[Any]:
        """Compute ``HashToCurve(item) * scalar`` for every item.

        Args:
            items: Items to mask; ``str`` items are UTF-8 encoded.
            out: Optional pre-sized list that receives the points.

        Returns:
            Points in input order (``out`` itself when given).

        Raises:
            LengthMismatchError: ``out`` and ``items`` differ in length.
            TypeError: An item is neither bytes nor str.
        """
        _check_out(out, len(items))
        data = [_item_bytes(item, i) for i, item in enumerate(items)]
        scalar = self._secret()
        curve = self._curve

        def mask_one(item: bytes) -> Any:
            return curve.multiply(curve.hash_to_curve(item), scalar)

        points = list(self._imap(mask_one, data))
        logger.debug(f"Masked {len(points)} items")
        if out is None:
            return points
        out[:] = points
        return out

    def mask_items_serialized(self, items: Sequence[Item]) -> list[bytes]:
        """Like :meth:`mask_items`, returning encoded points for transport."""
        return [self._curve.encode(p) for p in self.mask_items(items)]

    # =========== Step 2: remask peer points ===========

    def remask_and_finalize(
        self,
        points: Sequence[Any],
        out: list | None = None,
        *,
        fail_fast: bool | None = None,
    ) -> list[int]:
        """Compute ``FinalizeToToken(Encode(point * scalar))`` per peer point.

        Args:
            points: Points received from the peer, already masked by its scalar.
            out: Optional pre-sized list that receives the tokens.
            fail_fast: Raise on the first invalid entry instead of processing
                the whole batch. Defaults to ``config.fail_fast``.

        Returns:
            128-bit integer tokens in input order (``out`` itself when given).

        Raises:
            LengthMismatchError: ``out`` and ``points`` differ in length.
            InvalidPointError: With fail_fast, the lowest-index invalid entry.
            BatchError: Without fail_fast, every invalid entry plus the
                partial token list.
        """
        _check_out(out, len(points))
        tokens = self._remask(points, self._check_point, fail_fast)
        if out is None:
            return tokens
        out[:] = tokens
        return out

    def remask_and_finalize_serialized(
        self,
        serialized_points: Sequence[bytes],
        *,
        fail_fast: bool | None = None,
    ) -> list[int]:
        """Like :meth:`remask_and_finalize`, decoding each entry first.

        Malformed entries surface as InvalidEncodingError, identity encodings
        as InvalidPointError, both carrying the entry index.
        """
        return self._remask(serialized_points, self._decode_point, fail_fast)

    # =========== internals ===========

    def _secret(self) -> bytes:
        if self._closed:
            raise EngineClosedError("EcdhPsi engine is closed")
        return bytes(self._scalar)

    def _check_point(self, index: int, point: Any) -> Any:
        if point is None:
            raise InvalidPointError("identity element is not a valid input", index)
        if not self._curve.is_point(point):
            raise InvalidPointError(
                f"expected a {self._curve.name} point, got {type(point).__name__}",
                index,
            )
        return point

    def _decode_point(self, index: int, data: bytes) -> Any:
        try:
            return self._curve.decode(data)
        except InvalidPointError as e:
            raise type(e)(str(e), index) from e

    def _remask(
        self,
        entries: Sequence[Any],
        prepare: Callable[[int, Any], Any],
        fail_fast: bool | None,
    ) -> list[int]:
        if fail_fast is None:
            fail_fast = self._config.fail_fast
        scalar = self._secret()
        curve = self._curve

        def remask_one(indexed: tuple[int, Any]) -> int | InvalidPointError:
            index, entry = indexed
            try:
                point = prepare(index, entry)
            except InvalidPointError as e:
                return e
            return finalize_to_token(curve.encode(curve.multiply(point, scalar)))

        results = self._imap(remask_one, list(enumerate(entries)))
        tokens: list[Any] = []
        failures: dict[int, InvalidPointError] = {}
        for index, result in enumerate(results):
            if isinstance(result, InvalidPointError):
                if fail_fast:
                    results.close()
                    logger.warning(f"Rejected entry {index}: {result}")
                    raise result
                failures[index] = result
                tokens.append(None)
            else:
                tokens.append(result)

        if failures:
            logger.warning(
                f"Rejected {len(failures)} of {len(tokens)} entries: "
                f"indices {sorted(failures)}"
            )
            raise BatchError(failures, tokens)
        logger.debug(f"Finalized {len(tokens)} peer points")
        return tokens

    def _imap(self, fn: Callable[[T], R], values: list[T]) -> Iterator[R]:
        workers = self._config.num_workers
        if workers > 1 and len(values) >= self._config.parallel_threshold:
            with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as pool:
                yield from pool.map(fn, values)
        else:
            for value in values:
                yield fn(value)
