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

"""Exceptions raised by the ECDH-PSI engine and its collaborators."""

from __future__ import annotations

__all__ = [
    "BatchError",
    "EngineClosedError",
    "EntropyUnavailableError",
    "InvalidEncodingError",
    "InvalidPointError",
    "LengthMismatchError",
    "PsiError",
]


class PsiError(Exception):
    """Base exception for ECDH-PSI errors."""


class InvalidPointError(PsiError):
    """Raised when an input is not a usable curve point.

    Covers the identity element and any object that is not a point of the
    engine's curve. ``index`` is the position of the offending entry within
    its batch, or None when the error is not tied to a batch.
    """

    def __init__(self, message: str, index: int | None = None):
        self.index = index
        if index is not None:
            message = f"entry {index}: {message}"
        super().__init__(message)


class InvalidEncodingError(InvalidPointError):
    """Raised when bytes do not decode to a valid on-curve point."""


class BatchError(InvalidPointError):
    """Raised after a whole batch was processed and some entries failed.

    Attributes:
        failures: Mapping from entry index to the error raised for it.
        partial: Results in input order, with None at failed indices.
    """

    def __init__(self, failures: dict[int, InvalidPointError], partial: list):
        self.failures = dict(sorted(failures.items()))
        self.partial = partial
        first = next(iter(self.failures))
        super().__init__(
            f"{len(self.failures)} of {len(partial)} entries rejected "
            f"(first at index {first}: {self.failures[first]})"
        )

    @property
    def indices(self) -> list[int]:
        return list(self.failures)


class EntropyUnavailableError(PsiError):
    """Raised when the OS entropy source cannot produce a private scalar."""


class LengthMismatchError(PsiError, ValueError):
    """Raised when a caller-supplied buffer or wire field has the wrong size."""


class EngineClosedError(PsiError):
    """Raised when a masking operation is called on a closed engine."""
