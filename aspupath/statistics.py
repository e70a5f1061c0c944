# File: aspupath/statistics.py
# Location: aspupath/aspupath/statistics.py
"""
Gene-level Sum of Powered Score statistics and their pathway-level maxima.

For a gene with scores ``u_1..u_m`` and a finite power γ the powered sum is
``a = Σ u_i^γ``. Three normalizations are reported:

==========  ==================================
``unnorm``  ``a``
``root``    ``sign(a) * |a|^(1/γ)``
``std``     ``sign(a) * (|a| / m)^(1/γ)``
==========  ==================================

For γ = Inf all three are ``max |u_i|``. Fractional roots are only ever taken
through ``signed_pow``: a negative base with a non-integer exponent has no real
value, so the sign is factored out first. The same rule applies to the
elementwise ``u_i^γ`` when γ itself is not an integer.

The pathway statistic for each power and normalization is the maximum
absolute gene statistic.

All functions here are pure; they are called once on the observed scores and
once per permutation replicate.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from aspupath.exceptions import DegenerateStatisticError


def signed_pow(value, exponent):
    """Sign-preserving power: ``sign(value) * |value| ** exponent``.

    >>> float(signed_pow(-8.0, 1 / 3))
    -2.0
    >>> float(signed_pow(0.0, float("inf")))
    0.0
    """
    value = np.asarray(value, dtype=np.float64)
    with np.errstate(over="ignore"):
        return np.sign(value) * np.abs(value) ** exponent


def _powered(scores: np.ndarray, power: float) -> np.ndarray:
    with np.errstate(over="ignore"):
        if float(power).is_integer():
            # Plain power keeps even powers non-negative and odd powers signed
            return scores**power
        return signed_pow(scores, power)


def block_starts(sizes: Sequence[int]) -> np.ndarray:
    """Offsets of each gene block in a gene-ordered score vector."""
    sizes_arr = np.asarray(sizes, dtype=np.int64)
    return np.concatenate(([0], np.cumsum(sizes_arr)[:-1])).astype(np.int64)


@dataclass
class StatisticSet:
    """
    One array per normalization variant.

    Gene-level sets hold arrays of shape ``(n_powers, n_genes)``; pathway-level
    sets hold arrays of shape ``(n_powers,)``. Stacked null sets add a leading
    replicate axis.
    """

    unnorm: np.ndarray
    root: np.ndarray
    std: np.ndarray

    def variant(self, name: str) -> np.ndarray:
        return getattr(self, name)

    def as_dict(self) -> dict[str, np.ndarray]:
        return {"unnorm": self.unnorm, "root": self.root, "std": self.std}


def compute_gene_statistics(
    scores: np.ndarray,
    sizes: Sequence[int],
    powers: Sequence[float],
) -> StatisticSet:
    """
    Reduce a gene-ordered score vector to per-gene SPU statistics.

    Parameters
    ----------
    scores : np.ndarray, shape (sum(sizes),)
        Score vector in gene-block order.
    sizes : sequence of int
        Units per gene (each >= 1).
    powers : sequence of float
        Power set; ``math.inf`` selects the max statistic.

    Returns
    -------
    StatisticSet
        Arrays of shape ``(n_powers, n_genes)``.

    Raises
    ------
    DegenerateStatisticError
        If any statistic is NaN.
    """
    scores = np.asarray(scores, dtype=np.float64).ravel()
    starts = block_starts(sizes)
    counts = np.asarray(sizes, dtype=np.float64)
    n_powers, n_genes = len(powers), len(starts)

    unnorm = np.empty((n_powers, n_genes), dtype=np.float64)
    root = np.empty_like(unnorm)
    std = np.empty_like(unnorm)

    for j, power in enumerate(powers):
        if math.isinf(power):
            max_abs = np.maximum.reduceat(np.abs(scores), starts)
            unnorm[j] = root[j] = std[j] = max_abs
            continue
        a = np.add.reduceat(_powered(scores, power), starts)
        unnorm[j] = a
        root[j] = signed_pow(a, 1.0 / power)
        with np.errstate(over="ignore"):
            std[j] = np.sign(a) * (np.abs(a) / counts) ** (1.0 / power)

    for arr in (unnorm, root, std):
        bad = np.argwhere(np.isnan(arr))
        if bad.size:
            j, g = bad[0]
            raise DegenerateStatisticError(powers[int(j)], int(g))

    return StatisticSet(unnorm=unnorm, root=root, std=std)


def combine_pathway(gene_stats: StatisticSet) -> StatisticSet:
    """Pathway statistics: max over genes (last axis) of the absolute gene statistics."""
    return StatisticSet(
        unnorm=np.abs(gene_stats.unnorm).max(axis=-1),
        root=np.abs(gene_stats.root).max(axis=-1),
        std=np.abs(gene_stats.std).max(axis=-1),
    )


def compute_statistics(
    scores: np.ndarray,
    sizes: Sequence[int],
    powers: Sequence[float],
) -> tuple[StatisticSet, StatisticSet]:
    """Gene-level and pathway-level statistics for one score vector."""
    gene_stats = compute_gene_statistics(scores, sizes, powers)
    return gene_stats, combine_pathway(gene_stats)
