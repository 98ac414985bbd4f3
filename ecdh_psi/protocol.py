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

"""Two-party ECDH-PSI driver.

Both parties run the same symmetric schedule over a :class:`Channel`:

    1. send H(own)^k                      (tag "masked_items")
    2. recv H(peer)^k', compute T(H(peer)^k'^k)
    3. send those tokens back to the peer  (tag "peer_tokens")
    4. recv T(H(own)^k^k'), intersect with the tokens from step 2

Each party ends up with the indices of its own items that the peer also holds.
"""

from __future__ import annotations

import concurrent.futures
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from ecdh_psi.channel import Channel, LocalLink
from ecdh_psi.config import PsiConfig
from ecdh_psi.engine import EcdhPsi, Item
from ecdh_psi.errors import LengthMismatchError
from ecdh_psi.finalize import token_from_bytes, token_to_bytes
from ecdh_psi.intersect import intersection_indices
from ecdh_psi.logging_config import get_logger

__all__ = ["MASKED_ITEMS_TAG", "PEER_TOKENS_TAG", "PsiResult", "run_party", "run_two_party"]

logger = get_logger(__name__)

MASKED_ITEMS_TAG = "masked_items"
PEER_TOKENS_TAG = "peer_tokens"


@dataclass
class PsiResult:
    """Outcome of one party's run.

    Attributes:
        indices: Ascending indices of own items found in the peer's set.
        self_tokens: Tokens of own items, as finalized by the peer.
        peer_tokens: Tokens of the peer's items, as finalized locally.
    """

    indices: np.ndarray
    self_tokens: list[int]
    peer_tokens: list[int]

    def select(self, items: Sequence[Item]) -> list[Item]:
        """Return the intersecting items out of the list the party ran with."""
        return [items[i] for i in self.indices]


def run_party(
    engine: EcdhPsi,
    items: Sequence[Item],
    channel: Channel,
    *,
    timeout: float | None = None,
) -> PsiResult:
    """Run one side of the protocol over ``channel``."""
    channel.send(MASKED_ITEMS_TAG, engine.mask_items_serialized(items))

    peer_points = channel.recv(MASKED_ITEMS_TAG, timeout)
    peer_tokens = engine.remask_and_finalize_serialized(peer_points, fail_fast=True)
    channel.send(PEER_TOKENS_TAG, [token_to_bytes(t) for t in peer_tokens])

    self_tokens = [token_from_bytes(b) for b in channel.recv(PEER_TOKENS_TAG, timeout)]
    if len(self_tokens) != len(items):
        raise LengthMismatchError(
            f"Peer returned {len(self_tokens)} tokens for {len(items)} items"
        )

    indices = intersection_indices(self_tokens, peer_tokens)
    logger.info(
        f"PSI done: {len(items)} local, {len(peer_tokens)} peer, "
        f"{len(indices)} in intersection"
    )
    return PsiResult(indices=indices, self_tokens=self_tokens, peer_tokens=peer_tokens)


def run_two_party(
    x_items: Sequence[Item],
    y_items: Sequence[Item],
    *,
    config: PsiConfig | None = None,
    use_serde: bool = True,
    timeout: float | None = None,
) -> tuple[PsiResult, PsiResult]:
    """Run both parties in-process over a :class:`LocalLink`.

    Each party gets a fresh engine, closed once its side finishes.

    Returns:
        (alice_result, bob_result) for ``x_items`` and ``y_items`` respectively.
    """
    link = LocalLink(use_serde=use_serde)

    def party(items: Sequence[Item], channel: Channel) -> PsiResult:
        with EcdhPsi(config=config) as engine:
            return run_party(engine, items, channel, timeout=timeout)

    with concurrent.futures.ThreadPoolExecutor(max_workers=2) as executor:
        alice = executor.submit(party, x_items, link.left)
        bob = executor.submit(party, y_items, link.right)
        # A failed party would leave its peer blocked in recv
        done, _ = concurrent.futures.wait(
            [alice, bob], return_when=concurrent.futures.FIRST_EXCEPTION
        )
        if any(f.exception() is not None for f in done):
            link.shutdown()
        try:
            return alice.result(), bob.result()
        finally:
            link.shutdown()
