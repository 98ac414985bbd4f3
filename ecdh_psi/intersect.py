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

"""Intersection over finalized tokens.

Tokens are packed into fixed-width ``S16`` numpy arrays so membership runs as
a sort-based ``np.isin``. Results are always ordered by the local side.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from ecdh_psi.finalize import TOKEN_BYTES, token_to_bytes

__all__ = [
    "intersection_indices",
    "intersection_mask",
    "match_pairs",
    "tokens_to_array",
]


def tokens_to_array(tokens: Sequence[int]) -> np.ndarray:
    """Pack integer tokens into a ``(n,)`` array of 16-byte big-endian strings."""
    return np.array(
        [token_to_bytes(t) for t in tokens], dtype=f"S{TOKEN_BYTES}"
    ).reshape(len(tokens))


def intersection_mask(local: Sequence[int], peer: Sequence[int]) -> np.ndarray:
    """Boolean mask over ``local``: True where the token also occurs in ``peer``."""
    if len(local) == 0:
        return np.zeros(0, dtype=bool)
    return np.isin(tokens_to_array(local), tokens_to_array(peer))


def intersection_indices(local: Sequence[int], peer: Sequence[int]) -> np.ndarray:
    """Ascending local indices whose token occurs in ``peer``."""
    return np.flatnonzero(intersection_mask(local, peer))


def match_pairs(local: Sequence[int], peer: Sequence[int]) -> list[tuple[int, int]]:
    """Pair each matching local index with the first peer index of its token.

    Pairs are ordered by local index.
    """
    first_seen: dict[int, int] = {}
    for j, token in enumerate(peer):
        first_seen.setdefault(token, j)
    return [
        (i, first_seen[token]) for i, token in enumerate(local) if token in first_seen
    ]
