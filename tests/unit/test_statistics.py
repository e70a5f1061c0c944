"""
Unit tests for aspupath/statistics.py.

Tests the sign-preserving power helper at its boundaries, hand-computed gene
statistics for all three normalizations, the Inf (max) statistic, single-SNP
genes, even-power non-negativity, and the pathway max combination.
"""

from __future__ import annotations

import math

import numpy as np
import pytest

from aspupath.exceptions import DegenerateStatisticError
from aspupath.statistics import (
    block_starts,
    combine_pathway,
    compute_gene_statistics,
    compute_statistics,
    signed_pow,
)


@pytest.mark.unit
class TestSignedPow:
    def test_zero_with_inf_exponent_is_zero(self):
        assert float(signed_pow(0.0, math.inf)) == 0.0

    def test_zero_with_fractional_exponent_is_zero(self):
        assert float(signed_pow(0.0, 1 / 3)) == 0.0

    def test_negative_cube_root(self):
        assert float(signed_pow(-8.0, 1 / 3)) == pytest.approx(-2.0)

    def test_positive_square_root(self):
        assert float(signed_pow(9.0, 0.5)) == pytest.approx(3.0)

    def test_negative_fractional_power_is_real(self):
        result = signed_pow(np.array([-4.0, 4.0]), 0.5)
        np.testing.assert_allclose(result, [-2.0, 2.0])
        assert not np.isnan(result).any()


@pytest.mark.unit
class TestComputeGeneStatistics:
    def test_hand_computed_values(self):
        scores = np.array([1.0, -2.0, 3.0, 4.0])
        stats = compute_gene_statistics(scores, [3, 1], [1.0, 2.0, math.inf])

        # power 1: gene A a = 2, gene B a = 4
        np.testing.assert_allclose(stats.unnorm[0], [2.0, 4.0])
        np.testing.assert_allclose(stats.root[0], [2.0, 4.0])
        np.testing.assert_allclose(stats.std[0], [2.0 / 3.0, 4.0])

        # power 2: gene A a = 14, gene B a = 16
        np.testing.assert_allclose(stats.unnorm[1], [14.0, 16.0])
        np.testing.assert_allclose(stats.root[1], [np.sqrt(14.0), 4.0])
        np.testing.assert_allclose(stats.std[1], [np.sqrt(14.0 / 3.0), 4.0])

        # Inf: max |u| for all three variants
        for arr in (stats.unnorm, stats.root, stats.std):
            np.testing.assert_allclose(arr[2], [3.0, 4.0])

    def test_shapes(self):
        stats = compute_gene_statistics(np.arange(1.0, 7.0), [2, 1, 3], [1.0, 2.0])
        assert stats.unnorm.shape == (2, 3)
        assert stats.root.shape == (2, 3)
        assert stats.std.shape == (2, 3)

    def test_negative_odd_power_sum_keeps_sign(self):
        stats = compute_gene_statistics(np.array([-3.0, 1.0]), [2], [3.0])
        assert stats.unnorm[0, 0] == pytest.approx(-26.0)
        assert stats.root[0, 0] == pytest.approx(-(26.0 ** (1 / 3)))
        assert stats.std[0, 0] == pytest.approx(-(13.0 ** (1 / 3)))

    def test_fractional_power_with_negative_scores_is_defined(self):
        stats = compute_gene_statistics(np.array([-4.0, 1.0, -0.25]), [3], [0.5])
        # signed square roots: -2 + 1 - 0.5
        assert stats.unnorm[0, 0] == pytest.approx(-1.5)
        assert stats.root[0, 0] == pytest.approx(-2.25)
        assert not np.isnan(stats.std).any()

    @pytest.mark.parametrize("power", [1.0, 2.0, 3.0, 0.5, 1.5, math.inf])
    def test_single_snp_gene_reduces_to_abs_score(self, power):
        scores = np.array([-2.5, 0.75, 4.0])
        stats = compute_gene_statistics(scores, [1, 1, 1], [power])
        np.testing.assert_allclose(np.abs(stats.root[0]), np.abs(scores))
        np.testing.assert_allclose(np.abs(stats.std[0]), np.abs(scores))

    def test_power_two_sums_are_non_negative(self):
        rng = np.random.default_rng(3)
        scores = rng.normal(scale=5.0, size=40)
        stats = compute_gene_statistics(scores, [10, 10, 20], [2.0])
        assert (stats.unnorm[0] >= 0).all()
        np.testing.assert_array_equal(np.sign(stats.root[0]), 1.0)

    def test_zero_scores_give_zero_statistics(self):
        stats = compute_gene_statistics(np.zeros(4), [2, 2], [1.0, 0.5, math.inf])
        for arr in stats.as_dict().values():
            np.testing.assert_array_equal(arr, 0.0)

    def test_nan_statistic_raises(self):
        scores = np.array([np.inf, -np.inf])
        with pytest.raises(DegenerateStatisticError):
            compute_gene_statistics(scores, [2], [1.0])


@pytest.mark.unit
class TestCombinePathway:
    def test_max_absolute_value_over_genes(self):
        scores = np.array([1.0, -2.0, 3.0, -4.0])
        gene_stats = compute_gene_statistics(scores, [3, 1], [1.0, math.inf])
        pathway = combine_pathway(gene_stats)
        # power 1: gene A = 2, gene B = -4
        assert pathway.unnorm[0] == pytest.approx(4.0)
        assert pathway.std[0] == pytest.approx(4.0)
        assert pathway.root[1] == pytest.approx(4.0)

    def test_combines_stacked_replicates_along_gene_axis(self):
        rng = np.random.default_rng(11)
        gene_stats = compute_gene_statistics(rng.normal(size=6), [3, 3], [1.0, 2.0])
        stacked = type(gene_stats)(
            unnorm=np.stack([gene_stats.unnorm, -gene_stats.unnorm]),
            root=np.stack([gene_stats.root, gene_stats.root]),
            std=np.stack([gene_stats.std, gene_stats.std]),
        )
        pathway = combine_pathway(stacked)
        assert pathway.unnorm.shape == (2, 2)
        np.testing.assert_allclose(pathway.unnorm[0], pathway.unnorm[1])

    def test_compute_statistics_returns_both_levels(self):
        gene_stats, pathway = compute_statistics(np.array([1.0, 2.0, 3.0]), [1, 2], [1.0])
        assert gene_stats.std.shape == (1, 2)
        assert pathway.std.shape == (1,)


@pytest.mark.unit
def test_block_starts():
    np.testing.assert_array_equal(block_starts([3, 1, 2]), [0, 3, 4])
