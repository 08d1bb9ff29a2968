import numpy as np
import pytest
from hypothesis import given, strategies as st

from cardinality.digest import digest64
from cardinality.errors import DigestFailure


class TestDigest:
    @given(st.one_of(st.text(), st.integers(-2**63, 2**63 - 1), st.binary()))
    def test_digest_range_and_determinism(self, key):
        h = digest64(key)
        assert 0 <= h < 2**64
        assert digest64(key) == h

    @pytest.mark.parametrize("key", [np.int8(-3), np.int64(2**62), np.uint32(7), np.uint64(5)])
    def test_numpy_integers_match_int(self, key):
        assert digest64(key) == digest64(int(key))

    def test_numpy_integer_out_of_range(self):
        with pytest.raises(DigestFailure):
            digest64(np.uint64(2**63))

    def test_key_types_are_separate(self):
        assert digest64(1) != digest64("1")
        assert digest64("a") != digest64(b"a")

    def test_int64_bounds(self):
        assert 0 <= digest64(2**63 - 1) < 2**64
        assert 0 <= digest64(-2**63) < 2**64
        with pytest.raises(DigestFailure):
            digest64(2**63)
        with pytest.raises(DigestFailure):
            digest64(-2**63 - 1)

    @pytest.mark.parametrize("key", [1.5, None, True, False, ["a"], {"a": 1}])
    def test_unsupported(self, key):
        with pytest.raises(DigestFailure) as info:
            digest64(key)
        assert info.value.key is key

    def test_lone_surrogate(self):
        with pytest.raises(DigestFailure):
            digest64("\ud800")

    def test_top_bits_spread(self):
        # Every bucket of a 16-register bank is reached by a modest key set
        buckets = {digest64(f"k{i}") >> 60 for i in range(1000)}
        assert buckets == set(range(16))
