"""Tests for coin balance rules."""

import pytest

from personahub.domain.billing import UnlimitedGrantPolicy, apply_delta, can_cover, can_deduct_one

pytestmark = pytest.mark.unit


class TestApplyDelta:
    def test_finite_balance_adds_delta(self):
        assert apply_delta(10, 5, UnlimitedGrantPolicy.PRESERVE) == 15
        assert apply_delta(10, -4, UnlimitedGrantPolicy.FINALIZE) == 6

    def test_preserve_keeps_unlimited(self):
        assert apply_delta(None, 100, UnlimitedGrantPolicy.PRESERVE) is None
        assert apply_delta(None, -100, UnlimitedGrantPolicy.PRESERVE) is None

    def test_finalize_treats_unlimited_as_zero(self):
        assert apply_delta(None, 100, UnlimitedGrantPolicy.FINALIZE) == 100


class TestCoverage:
    @pytest.mark.parametrize(
        "balance,amount,expected",
        [(None, 10_000, True), (50, 50, True), (49, 50, False), (0, 0, True)],
    )
    def test_can_cover(self, balance, amount, expected):
        assert can_cover(balance, amount) is expected

    @pytest.mark.parametrize("balance,expected", [(None, True), (1, True), (0, False)])
    def test_can_deduct_one(self, balance, expected):
        assert can_deduct_one(balance) is expected
