# Copyright 2025 Ant Group Co., Ltd.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#   http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

import hashlib

import pytest

from ecdh_psi import (
    LengthMismatchError,
    finalize_to_token,
    token_from_bytes,
    token_to_bytes,
)


def test_token_is_deterministic():
    point = b"\x02" + bytes(range(32))
    assert finalize_to_token(point) == finalize_to_token(point)


def test_token_matches_personalized_blake2b():
    """Tokens are stable across processes: pin the exact construction."""
    point = b"\x03" + b"\x11" * 32
    digest = hashlib.blake2b(point, digest_size=16, person=b"ecdh-psi-token").digest()
    assert finalize_to_token(point) == int.from_bytes(digest, "big")


def test_token_width():
    tokens = [finalize_to_token(bytes([2, i]) + b"\x00" * 31) for i in range(64)]
    assert all(0 <= t < 2**128 for t in tokens)
    assert len(set(tokens)) == 64


def test_token_bytes_conversion():
    token = finalize_to_token(b"\x02" + b"\x07" * 32)
    raw = token_to_bytes(token)
    assert len(raw) == 16
    assert token_from_bytes(raw) == token
    assert token_to_bytes(0) == b"\x00" * 16


@pytest.mark.parametrize("data", [b"", b"\x00" * 15, b"\x00" * 17])
def test_token_from_bytes_wrong_length(data):
    with pytest.raises(LengthMismatchError):
        token_from_bytes(data)
