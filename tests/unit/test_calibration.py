"""
Unit tests for permutation p-value calibration.

Covers the strict-exceedance rule for per-power p-values, rank-based null
p-values (including ties and the single-replicate case), the adaptive
minimum-p rule, and invariance to replicate order.
"""

from __future__ import annotations

import numpy as np
import pytest

from aspupath.calibration import (
    adaptive_pvalue,
    calibrate,
    null_pvalue_matrix,
    permutation_pvalues,
)

# ---------------------------------------------------------------------------
# permutation_pvalues
# ---------------------------------------------------------------------------


@pytest.mark.unit
class TestPermutationPvalues:
    def test_strict_exceedance_on_absolute_values(self):
        """Ties with the observed statistic do not count; signs are ignored."""
        null = np.array([[1.0], [2.0], [3.0], [-4.0]])
        p = permutation_pvalues(np.array([2.0]), null)
        np.testing.assert_allclose(p, [0.5])

    def test_negative_observed_uses_absolute_value(self):
        null = np.array([[1.0], [2.0], [3.0], [-4.0]])
        p = permutation_pvalues(np.array([-2.5]), null)
        np.testing.assert_allclose(p, [0.5])

    def test_zero_when_nothing_exceeds(self):
        null = np.array([[0.1, 5.0], [0.2, 6.0]])
        p = permutation_pvalues(np.array([10.0, 1.0]), null)
        np.testing.assert_allclose(p, [0.0, 1.0])

    def test_values_are_multiples_of_one_over_n_perm(self):
        rng = np.random.default_rng(5)
        n_perm = 37
        null = rng.normal(size=(n_perm, 4))
        p = permutation_pvalues(rng.normal(size=4), null)
        np.testing.assert_allclose(p * n_perm, np.round(p * n_perm))
        assert ((p >= 0) & (p <= 1)).all()


# ---------------------------------------------------------------------------
# null_pvalue_matrix
# ---------------------------------------------------------------------------


@pytest.mark.unit
class TestNullPvalueMatrix:
    def test_distinct_values(self):
        null = np.array([[1.0], [2.0], [3.0], [4.0]])
        np.testing.assert_allclose(null_pvalue_matrix(null)[:, 0], [1.0, 2 / 3, 1 / 3, 0.0])

    def test_ties_get_average_rank(self):
        null = np.array([[1.0], [1.0], [2.0]])
        np.testing.assert_allclose(null_pvalue_matrix(null)[:, 0], [0.75, 0.75, 0.0])

    def test_ranks_use_absolute_values(self):
        null = np.array([[-3.0], [1.0], [2.0]])
        np.testing.assert_allclose(null_pvalue_matrix(null)[:, 0], [0.0, 1.0, 0.5])

    def test_single_replicate_gives_ones(self):
        null = np.array([[0.3, -7.0, 2.0]])
        np.testing.assert_array_equal(null_pvalue_matrix(null), np.ones((1, 3)))

    def test_columns_ranked_independently(self):
        null = np.array([[1.0, 4.0], [2.0, 3.0], [3.0, 2.0], [4.0, 1.0]])
        p0 = null_pvalue_matrix(null)
        np.testing.assert_allclose(p0[:, 0], p0[::-1, 1])


# ---------------------------------------------------------------------------
# adaptive_pvalue
# ---------------------------------------------------------------------------


@pytest.mark.unit
class TestAdaptivePvalue:
    def test_worked_example(self):
        """Null minimum p-values [1, 2/3, 1/3, 0] against an observed min p of 0.5."""
        null = np.array([[1.0], [2.0], [3.0], [4.0]])
        assert adaptive_pvalue(np.array([0.5]), null) == pytest.approx(0.5)

    def test_uses_row_minimum_over_powers(self):
        null = np.array([[1.0, 4.0], [2.0, 3.0], [3.0, 2.0], [4.0, 1.0]])
        # Row minima of P0: [0, 1/3, 1/3, 0]
        assert adaptive_pvalue(np.array([0.5, 0.9]), null) == pytest.approx(1.0)
        assert adaptive_pvalue(np.array([0.3, 0.9]), null) == pytest.approx(0.5)

    def test_zero_observed_p_gives_zero(self):
        null = np.array([[1.0], [2.0], [3.0], [4.0]])
        assert adaptive_pvalue(np.array([0.0, 0.25]), np.hstack([null, null])) == 0.0

    def test_invariant_under_replicate_order(self):
        rng = np.random.default_rng(21)
        null = rng.normal(size=(50, 3))
        observed = rng.normal(size=3)
        spu, aspu = calibrate(observed, null)
        order = rng.permutation(50)
        spu_shuffled, aspu_shuffled = calibrate(observed, null[order])
        np.testing.assert_allclose(spu, spu_shuffled)
        assert aspu == aspu_shuffled


@pytest.mark.unit
def test_calibrate_returns_per_power_and_adaptive():
    null = np.array([[1.0, 1.0], [2.0, 2.0], [3.0, 3.0], [4.0, 4.0]])
    spu, aspu = calibrate(np.array([2.5, 5.0]), null)
    np.testing.assert_allclose(spu, [0.5, 0.0])
    assert aspu == pytest.approx(0.0)
