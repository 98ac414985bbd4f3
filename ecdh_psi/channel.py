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

"""Point-to-point transport used to exchange batches between two parties.

The engine never talks to the network. A :class:`Channel` is the seam where a
deployment plugs in its own secure, ordered transport; :class:`ThreadChannel`
is the in-memory implementation used for local runs and tests.
"""

from __future__ import annotations

import threading
import time
from abc import ABC, abstractmethod

from ecdh_psi import serde
from ecdh_psi.errors import PsiError
from ecdh_psi.logging_config import get_logger

__all__ = [
    "Channel",
    "ChannelClosedError",
    "LocalLink",
    "RecvTimeoutError",
    "ThreadChannel",
]

logger = get_logger(__name__)


class ChannelClosedError(PsiError):
    """Raised by recv once the channel endpoint has been shut down."""


class RecvTimeoutError(TimeoutError):
    """Raised when no message arrives for a tag within the timeout."""


class Channel(ABC):
    """One endpoint of a confidential, integrity-protected link to the peer.

    Messages are batches of byte strings matched by tag.
    """

    @abstractmethod
    def send(self, tag: str, batch: list[bytes]) -> None:
        """Deliver ``batch`` to the peer under ``tag``."""

    @abstractmethod
    def recv(self, tag: str, timeout: float | None = None) -> list[bytes]:
        """Block until the peer's batch for ``tag`` arrives."""


class ThreadChannel(Channel):
    """In-memory channel endpoint backed by a condition-guarded mailbox.

    Args:
        name: Label used in log records.
        use_serde: Round-trip every batch through ``serde.dumps``/``loads``
            so local runs exercise the wire envelope.
    """

    def __init__(self, name: str, *, use_serde: bool = False):
        self.name = name
        self.use_serde = use_serde
        self.peer: ThreadChannel | None = None
        self._mailbox: dict[str, object] = {}
        self._cond = threading.Condition()
        self._shutdown = False

    def connect(self, peer: ThreadChannel) -> None:
        self.peer = peer

    def shutdown(self) -> None:
        with self._cond:
            self._shutdown = True
            self._cond.notify_all()

    def send(self, tag: str, batch: list[bytes]) -> None:
        if self.peer is None:
            raise RuntimeError(f"Channel {self.name} is not connected")
        payload: object = list(batch)
        if self.use_serde:
            payload = serde.dumps(serde.BytesBatch(batch))
        logger.debug(f"{self.name} -> {self.peer.name}: tag={tag}, {len(batch)} entries")
        self.peer._on_receive(tag, payload)

    def recv(self, tag: str, timeout: float | None = None) -> list[bytes]:
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._cond:
            while tag not in self._mailbox and not self._shutdown:
                remaining = None if deadline is None else deadline - time.monotonic()
                if remaining is not None and remaining <= 0:
                    raise RecvTimeoutError(
                        f"{self.name}: no message for tag '{tag}' "
                        f"within {timeout}s"
                    )
                self._cond.wait(remaining)
            if tag not in self._mailbox:
                raise ChannelClosedError(f"Channel {self.name} shut down")
            payload = self._mailbox.pop(tag)

        if self.use_serde:
            return serde.loads(payload).items  # type: ignore[arg-type]
        return payload  # type: ignore[return-value]

    def _on_receive(self, tag: str, payload: object) -> None:
        with self._cond:
            if self._shutdown:
                raise ChannelClosedError(f"Channel {self.name} shut down")
            if tag in self._mailbox:
                raise RuntimeError(
                    f"Mailbox overflow for tag '{tag}' at {self.name}"
                )
            self._mailbox[tag] = payload
            self._cond.notify_all()


class LocalLink:
    """A connected pair of :class:`ThreadChannel` endpoints."""

    def __init__(self, *, use_serde: bool = False, names: tuple[str, str] = ("alice", "bob")):
        self.left = ThreadChannel(names[0], use_serde=use_serde)
        self.right = ThreadChannel(names[1], use_serde=use_serde)
        self.left.connect(self.right)
        self.right.connect(self.left)

    def endpoints(self) -> tuple[ThreadChannel, ThreadChannel]:
        return self.left, self.right

    def shutdown(self) -> None:
        self.left.shutdown()
        self.right.shutdown()
