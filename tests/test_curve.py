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

"""Tests for the curve abstraction and hash-to-curve."""

import coincurve
import pytest

from ecdh_psi import (
    InvalidEncodingError,
    InvalidPointError,
    Secp256k1,
    expand_message_xmd,
    finalize_to_token,
    get_curve,
    hash_to_curve_secp256k1,
    list_curves,
)
from ecdh_psi.hash_to_curve import DEFAULT_DST, SECP256K1_P

# RFC 9380 appendix K.1
QUUX_DST = b"QUUX-V01-CS02-with-expander-SHA256-128"


@pytest.fixture
def curve():
    return get_curve("secp256k1")


def _affine_x_y(point: coincurve.PublicKey) -> tuple[int, int]:
    raw = point.format(compressed=False)
    return int.from_bytes(raw[1:33], "big"), int.from_bytes(raw[33:], "big")


class TestExpandMessageXmd:
    @pytest.mark.parametrize(
        "msg,expected",
        [
            (
                b"",
                "68a985b87eb6b46952128911f2a4412bbc302a9d759667f87f7a21d803f07235",
            ),
            (
                b"abc",
                "d8ccab23b5985ccea865c6c97b6e5b8350e794e603b4b97902f53a8a0d605615",
            ),
        ],
    )
    def test_rfc9380_vectors(self, msg, expected):
        assert expand_message_xmd(msg, QUUX_DST, 0x20).hex() == expected

    def test_output_length(self):
        assert len(expand_message_xmd(b"abc", QUUX_DST, 49)) == 49
        assert len(expand_message_xmd(b"abc", QUUX_DST, 255 * 32)) == 255 * 32

    def test_rejects_long_dst(self):
        with pytest.raises(ValueError, match="DST"):
            expand_message_xmd(b"", b"x" * 256, 32)

    def test_rejects_long_output(self):
        with pytest.raises(ValueError):
            expand_message_xmd(b"", QUUX_DST, 255 * 32 + 1)


class TestHashToCurve:
    def test_deterministic(self):
        a = hash_to_curve_secp256k1(b"item")
        b = hash_to_curve_secp256k1(b"item")
        assert a.format() == b.format()

    def test_point_is_on_curve(self):
        for i in range(20):
            x, y = _affine_x_y(hash_to_curve_secp256k1(str(i).encode()))
            assert (y * y - x * x * x - 7) % SECP256K1_P == 0

    def test_distinct_items_distinct_points(self):
        encoded = {hash_to_curve_secp256k1(str(i).encode()).format() for i in range(200)}
        assert len(encoded) == 200

    def test_counter_prefix_keeps_items_apart(self):
        """An item and the same item with a trailing byte never share a point."""
        assert (
            hash_to_curve_secp256k1(b"a").format()
            != hash_to_curve_secp256k1(b"a\x01").format()
        )

    def test_empty_item(self):
        assert len(hash_to_curve_secp256k1(b"").format()) == 33

    def test_both_parities_occur(self):
        prefixes = {hash_to_curve_secp256k1(str(i).encode()).format()[0] for i in range(64)}
        assert prefixes == {0x02, 0x03}

    @pytest.mark.parametrize(
        "item,expected",
        [
            (
                b"",
                "0285093902170ca3c2815182f78b04003c3435fb263b2b46a25fe7e336a7b08a1d",
            ),
            # first candidate is off the curve, the second one is taken
            (
                b"3",
                "023ef7b8a170d362755571735817b3d4bdff1b79dbd3e45b0f48ccd22d3e52db25",
            ),
        ],
    )
    def test_known_answers(self, item, expected):
        assert hash_to_curve_secp256k1(item).format().hex() == expected

    def test_default_dst(self):
        assert DEFAULT_DST == b"ECDH-PSI-V01-with-secp256k1_XMD:SHA-256_TAI_"

    def test_domain_separation(self):
        item = b"item"
        assert (
            hash_to_curve_secp256k1(item, b"DST-A").format()
            != hash_to_curve_secp256k1(item, b"DST-B").format()
        )


class TestDoubleMaskKnownAnswer:
    """H("3")^a^b and its token for a = 0x11..11, b = 0x22..22."""

    SCALAR_A = b"\x11" * 32
    SCALAR_B = b"\x22" * 32
    MASKED_A = "02c8de02a4f54fa809b2772d3f1b6768b3dddb87c4eea5ca289de35f6d142f32cc"
    MASKED_AB = "03c6de65505187b3bdcd2178b0b0638366a8b112a148a01bdba0d3d5948e4702bc"
    TOKEN = 0xBB8A35542C5E74E059E5BEB066C6846E

    def test_masked_points(self, curve):
        masked_a = curve.multiply(curve.hash_to_curve(b"3"), self.SCALAR_A)
        assert curve.encode(masked_a).hex() == self.MASKED_A
        masked_ab = curve.multiply(masked_a, self.SCALAR_B)
        assert curve.encode(masked_ab).hex() == self.MASKED_AB

    def test_order_of_masking(self, curve):
        masked_b = curve.multiply(curve.hash_to_curve(b"3"), self.SCALAR_B)
        masked_ba = curve.multiply(masked_b, self.SCALAR_A)
        assert curve.encode(masked_ba).hex() == self.MASKED_AB

    def test_token(self, curve):
        masked = curve.multiply(
            curve.multiply(curve.hash_to_curve(b"3"), self.SCALAR_A), self.SCALAR_B
        )
        assert finalize_to_token(curve.encode(masked)) == self.TOKEN


class TestSecp256k1:
    def test_registry(self, curve):
        assert "secp256k1" in list_curves()
        assert isinstance(curve, Secp256k1)
        assert get_curve("secp256k1") is curve

    def test_unknown_curve(self):
        with pytest.raises(ValueError, match="Unknown curve"):
            get_curve("p999")

    def test_encode_decode(self, curve):
        point = curve.hash_to_curve(b"x")
        encoded = curve.encode(point)
        assert len(encoded) == curve.point_size
        assert curve.encode(curve.decode(encoded)) == encoded

    @pytest.mark.parametrize("data", [b"\x00", b"\x00" * 33])
    def test_decode_identity(self, curve, data):
        with pytest.raises(InvalidPointError) as exc_info:
            curve.decode(data)
        assert not isinstance(exc_info.value, InvalidEncodingError)
        assert exc_info.value.index is None

    @pytest.mark.parametrize(
        "data",
        [
            b"",
            b"\x02\x01",
            b"\x02" + b"\xff" * 32,
            b"\x05" + b"\x01" * 32,
            b"\x04" + b"\x01" * 64,
        ],
    )
    def test_decode_malformed(self, curve, data):
        with pytest.raises(InvalidEncodingError):
            curve.decode(data)

    def test_decode_rejects_non_bytes(self, curve):
        with pytest.raises(InvalidEncodingError):
            curve.decode("02" * 33)

    def test_multiply_commutes(self, curve):
        point = curve.hash_to_curve(b"shared")
        a, b = curve.random_scalar(), curve.random_scalar()
        ab = curve.multiply(curve.multiply(point, a), b)
        ba = curve.multiply(curve.multiply(point, b), a)
        assert curve.encode(ab) == curve.encode(ba)

    def test_random_scalar_range(self, curve):
        for _ in range(16):
            scalar = curve.random_scalar()
            assert len(scalar) == 32
            assert 0 < int.from_bytes(scalar, "big") < curve.order

    def test_random_scalar_resamples_out_of_range(self, curve, monkeypatch):
        draws = iter([b"\x00" * 32, b"\xff" * 32, b"\x00" * 31 + b"\x05"])
        monkeypatch.setattr("ecdh_psi.curve.os.urandom", lambda n: next(draws))
        assert int.from_bytes(curve.random_scalar(), "big") == 5

    def test_is_point(self, curve):
        assert curve.is_point(curve.hash_to_curve(b"p"))
        assert not curve.is_point(None)
        assert not curve.is_point(b"\x02" * 33)
