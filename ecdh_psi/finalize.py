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

"""Reduction of doubly-masked points to 128-bit comparison tokens.

Tokens are compared for equality only. With n tokens the expected number of
accidental collisions is about n^2 / 2^129, negligible for sets well below
2^32 elements.
"""

from __future__ import annotations

import hashlib

from ecdh_psi.errors import LengthMismatchError

__all__ = [
    "TOKEN_BYTES",
    "finalize_to_token",
    "token_from_bytes",
    "token_to_bytes",
]

TOKEN_BYTES = 16

_PERSON = b"ecdh-psi-token"


def finalize_to_token(encoded_point: bytes) -> int:
    """Hash an encoded point to an unsigned 128-bit integer token."""
    digest = hashlib.blake2b(
        encoded_point, digest_size=TOKEN_BYTES, person=_PERSON
    ).digest()
    return int.from_bytes(digest, "big")


def token_to_bytes(token: int) -> bytes:
    return token.to_bytes(TOKEN_BYTES, "big")


def token_from_bytes(data: bytes) -> int:
    if len(data) != TOKEN_BYTES:
        raise LengthMismatchError(
            f"Token must be {TOKEN_BYTES} bytes, got {len(data)}"
        )
    return int.from_bytes(data, "big")
