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

"""Deterministic mapping of arbitrary items to secp256k1 points.

The map is try-and-increment over RFC 9380 ``expand_message_xmd`` (SHA-256):

    for c in 0..255:
        u = expand_message_xmd(I2OSP(c, 1) || item, DST, 49)
        x = OS2IP(u[:48]) mod p
        if x^3 + 7 is a square mod p:
            return decompress((0x02 | (u[48] & 1)) || I2OSP(x, 32))

Using 48 bytes per candidate keeps the bias of ``x`` below 2^-128 and the
parity byte makes both points with a given ``x`` equally likely. The fixed
width counter prefix keeps distinct items on disjoint candidate streams. The
result depends only on the item and the DST, never on a party's key.
"""

from __future__ import annotations

import hashlib

import coincurve

__all__ = [
    "DEFAULT_DST",
    "SECP256K1_P",
    "expand_message_xmd",
    "hash_to_curve_secp256k1",
]

DEFAULT_DST = b"ECDH-PSI-V01-with-secp256k1_XMD:SHA-256_TAI_"

SECP256K1_P = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEFFFFFC2F
SECP256K1_B = 7

_FIELD_BYTES = 32
_CANDIDATE_BYTES = 48
_MAX_ATTEMPTS = 256


def expand_message_xmd(msg: bytes, dst: bytes, len_in_bytes: int) -> bytes:
    """RFC 9380 section 5.3.1 expand_message_xmd with SHA-256."""
    b_in_bytes = hashlib.sha256().digest_size
    r_in_bytes = hashlib.sha256().block_size
    if len(dst) > 255:
        raise ValueError(f"DST must be at most 255 bytes, got {len(dst)}")
    ell = (len_in_bytes + b_in_bytes - 1) // b_in_bytes
    if ell > 255 or len_in_bytes > 65535:
        raise ValueError(f"Cannot expand to {len_in_bytes} bytes")

    dst_prime = dst + bytes([len(dst)])
    z_pad = b"\x00" * r_in_bytes
    l_i_b_str = len_in_bytes.to_bytes(2, "big")

    b_0 = hashlib.sha256(z_pad + msg + l_i_b_str + b"\x00" + dst_prime).digest()
    b_i = hashlib.sha256(b_0 + b"\x01" + dst_prime).digest()
    uniform = [b_i]
    for i in range(2, ell + 1):
        mixed = bytes(x ^ y for x, y in zip(b_0, b_i))
        b_i = hashlib.sha256(mixed + bytes([i]) + dst_prime).digest()
        uniform.append(b_i)
    return b"".join(uniform)[:len_in_bytes]


def _is_square(value: int) -> bool:
    # Euler's criterion; value is never 0 here since secp256k1 has no 2-torsion
    return pow(value, (SECP256K1_P - 1) // 2, SECP256K1_P) == 1


def hash_to_curve_secp256k1(
    item: bytes, dst: bytes = DEFAULT_DST
) -> coincurve.PublicKey:
    """Hash ``item`` to a uniformly distributed, non-identity secp256k1 point."""
    for counter in range(_MAX_ATTEMPTS):
        uniform = expand_message_xmd(
            bytes([counter]) + item, dst, _CANDIDATE_BYTES + 1
        )
        x = int.from_bytes(uniform[:_CANDIDATE_BYTES], "big") % SECP256K1_P
        if not _is_square((pow(x, 3, SECP256K1_P) + SECP256K1_B) % SECP256K1_P):
            continue
        prefix = 0x02 | (uniform[_CANDIDATE_BYTES] & 1)
        return coincurve.PublicKey(bytes([prefix]) + x.to_bytes(_FIELD_BYTES, "big"))
    raise RuntimeError(
        f"hash_to_curve found no curve point within {_MAX_ATTEMPTS} attempts"
    )
