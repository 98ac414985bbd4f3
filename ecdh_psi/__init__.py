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

"""Two-party Private Set Intersection via ECDH masking.

    import ecdh_psi

    alice, bob = ecdh_psi.EcdhPsi(), ecdh_psi.EcdhPsi()
    x_points = alice.mask_items_serialized(x)     # sent to Bob
    y_points = bob.mask_items_serialized(y)       # sent to Alice
    y_final = alice.remask_and_finalize_serialized(y_points)
    x_final = bob.remask_and_finalize_serialized(x_points)
    ecdh_psi.intersection_indices(x_final, y_final)
"""

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("ecdh-psi")
except PackageNotFoundError:
    # Source checkout without an installed distribution
    __version__ = "0.0.0-dev"

from ecdh_psi.channel import (
    Channel,
    ChannelClosedError,
    LocalLink,
    RecvTimeoutError,
    ThreadChannel,
)
from ecdh_psi.config import PsiConfig
from ecdh_psi.curve import Curve, Secp256k1, get_curve, list_curves
from ecdh_psi.engine import EcdhPsi
from ecdh_psi.errors import (
    BatchError,
    EngineClosedError,
    EntropyUnavailableError,
    InvalidEncodingError,
    InvalidPointError,
    LengthMismatchError,
    PsiError,
)
from ecdh_psi.finalize import finalize_to_token, token_from_bytes, token_to_bytes
from ecdh_psi.hash_to_curve import expand_message_xmd, hash_to_curve_secp256k1
from ecdh_psi.intersect import (
    intersection_indices,
    intersection_mask,
    match_pairs,
    tokens_to_array,
)
from ecdh_psi.logging_config import disable_logging, get_logger, setup_logging
from ecdh_psi.protocol import PsiResult, run_party, run_two_party

__all__ = [
    "BatchError",
    "Channel",
    "ChannelClosedError",
    "Curve",
    "EcdhPsi",
    "EngineClosedError",
    "EntropyUnavailableError",
    "InvalidEncodingError",
    "InvalidPointError",
    "LengthMismatchError",
    "LocalLink",
    "PsiConfig",
    "PsiError",
    "PsiResult",
    "RecvTimeoutError",
    "Secp256k1",
    "ThreadChannel",
    "__version__",
    "disable_logging",
    "expand_message_xmd",
    "finalize_to_token",
    "get_curve",
    "get_logger",
    "hash_to_curve_secp256k1",
    "intersection_indices",
    "intersection_mask",
    "list_curves",
    "match_pairs",
    "run_party",
    "run_two_party",
    "setup_logging",
    "token_from_bytes",
    "token_to_bytes",
    "tokens_to_array",
]
