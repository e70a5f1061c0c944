# File: aspupath/calibration.py
# Location: aspupath/aspupath/calibration.py
"""
Permutation p-values for the SPU statistics and the adaptive minimum-p test.

Two passes:

1. ``permutation_pvalues``: per power, the fraction of replicates whose
   absolute pathway statistic is strictly larger than the observed one.
2. ``adaptive_pvalue``: each replicate is treated as a pseudo-observation.
   ``null_pvalue_matrix`` gives it a per-power p-value against the other
   replicates, the row minimum is its null minimum-p, and the adaptive
   p-value is the fraction of null minimum-p values strictly smaller than the
   observed minimum per-power p-value.

Both rules return multiples of ``1 / n_perm`` in [0, 1].
"""

from __future__ import annotations

import logging

import numpy as np
from scipy.stats import rankdata

logger = logging.getLogger("aspupath")


def permutation_pvalues(observed: np.ndarray, null: np.ndarray) -> np.ndarray:
    """
    Per-power permutation p-values.

    Parameters
    ----------
    observed : np.ndarray, shape (n_powers,)
        Observed pathway statistics.
    null : np.ndarray, shape (n_perm, n_powers)
        Pathway statistics of the permutation replicates.

    Returns
    -------
    np.ndarray, shape (n_powers,)
        ``#{b : |null[b, j]| > |observed[j]|} / n_perm``.
    """
    null = np.atleast_2d(np.asarray(null, dtype=np.float64))
    observed = np.asarray(observed, dtype=np.float64)
    n_perm = null.shape[0]
    exceed = np.abs(null) > np.abs(observed)[np.newaxis, :]
    return exceed.sum(axis=0) / n_perm


def null_pvalue_matrix(null: np.ndarray) -> np.ndarray:
    """
    Per-power p-value of every replicate against the remaining replicates.

    ``P0[b, j] = (n_perm - rank(|null[:, j]|)[b]) / (n_perm - 1)`` with average
    ranks for ties, i.e. the share of the other replicates with a larger
    absolute statistic (ties counting one half).

    With a single replicate there is nothing to compare against and every
    entry is 1.
    """
    null = np.atleast_2d(np.asarray(null, dtype=np.float64))
    n_perm = null.shape[0]
    if n_perm == 1:
        return np.ones_like(null)
    ranks = rankdata(np.abs(null), method="average", axis=0)
    return (n_perm - ranks) / (n_perm - 1)


def adaptive_pvalue(observed_pvalues: np.ndarray, null: np.ndarray) -> float:
    """
    Minimum-p (aSPU) p-value calibrated against the permutation null.

    Parameters
    ----------
    observed_pvalues : np.ndarray, shape (n_powers,)
        Per-power p-values of the real data (``permutation_pvalues`` output).
    null : np.ndarray, shape (n_perm, n_powers)
        Pathway statistics of the permutation replicates.

    Returns
    -------
    float
        ``#{b : min_j P0[b, j] < min_j p_j} / n_perm``.
    """
    null_min = null_pvalue_matrix(null).min(axis=1)
    observed_min = float(np.min(observed_pvalues))
    return float((null_min < observed_min).sum() / len(null_min))


def calibrate(observed: np.ndarray, null: np.ndarray) -> tuple[np.ndarray, float]:
    """Per-power p-values and the adaptive p-value for one normalization variant."""
    spu = permutation_pvalues(observed, null)
    aspu = adaptive_pvalue(spu, null)
    logger.debug(f"Calibrated: min SPU p={spu.min():.4g}, aSPU p={aspu:.4g}")
    return spu, aspu
