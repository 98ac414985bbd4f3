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

"""Engine settings, optionally read from ``ECDH_PSI_*`` environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any

from ecdh_psi.curve import list_curves

__all__ = ["PsiConfig"]

_TRUTHY = ("1", "true", "yes")


@dataclass(frozen=True)
class PsiConfig:
    """Settings shared by every engine built from this config.

    Attributes:
        curve: Registered curve name; both parties must agree on it.
        num_workers: Thread pool size for batch operations. 1 disables the pool.
        parallel_threshold: Smallest batch that is fanned out to the pool.
        fail_fast: Default failure mode of the remask operations.
    """

    curve: str = "secp256k1"
    num_workers: int = 1
    parallel_threshold: int = 256
    fail_fast: bool = False

    def __post_init__(self) -> None:
        if self.num_workers < 1:
            raise ValueError(f"num_workers must be >= 1, got {self.num_workers}")
        if self.parallel_threshold < 1:
            raise ValueError(
                f"parallel_threshold must be >= 1, got {self.parallel_threshold}"
            )
        if self.curve not in list_curves():
            raise ValueError(
                f"Unknown curve '{self.curve}', available: {list_curves()}"
            )

    @classmethod
    def from_env(cls, **overrides: Any) -> PsiConfig:
        """Build a config from the environment; keyword overrides win."""
        values: dict[str, Any] = {}
        if "ECDH_PSI_CURVE" in os.environ:
            values["curve"] = os.environ["ECDH_PSI_CURVE"]
        if "ECDH_PSI_NUM_WORKERS" in os.environ:
            values["num_workers"] = int(os.environ["ECDH_PSI_NUM_WORKERS"])
        if "ECDH_PSI_PARALLEL_THRESHOLD" in os.environ:
            values["parallel_threshold"] = int(
                os.environ["ECDH_PSI_PARALLEL_THRESHOLD"]
            )
        if "ECDH_PSI_FAIL_FAST" in os.environ:
            values["fail_fast"] = (
                os.environ["ECDH_PSI_FAIL_FAST"].lower() in _TRUTHY
            )
        values.update(overrides)
        return cls(**values)
