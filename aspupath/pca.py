# File: aspupath/pca.py
# Location: aspupath/aspupath/pca.py
"""
Per-gene principal component reduction of correlated SNPs.

Public API
----------
extract_pcs(block, cutoff=0.95)
    Replace one gene's SNP columns by the leading principal component scores
    that explain at least ``cutoff`` of the variance.
reduce_gene_blocks(genotypes, sizes, cutoff=0.95)
    Apply ``extract_pcs`` to every gene block of a gene-ordered matrix and
    return the reduced matrix with the new per-gene column counts.

Reduction uses observed genotypes only. Phenotype permutation never touches
the predictors, so the reduced matrix is computed once per call.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import numpy as np

logger = logging.getLogger("aspupath")


def extract_pcs(block: np.ndarray, cutoff: float = 0.95) -> np.ndarray:
    """Return principal component scores of *block* reaching *cutoff* variance.

    Parameters
    ----------
    block : np.ndarray, shape (n_samples, m)
        Predictor columns of one gene.
    cutoff : float
        Required cumulative proportion of variance explained, in (0, 1].

    Returns
    -------
    np.ndarray, shape (n_samples, k)
        Component scores of the centered block, ``1 <= k <= m``. A single
        column block is returned unchanged.
    """
    block = np.asarray(block, dtype=np.float64)
    if block.ndim == 1:
        block = block.reshape(-1, 1)
    if block.shape[1] < 2:
        return block

    centered = block - block.mean(axis=0)
    # SVD of the centered block: scores = U * s, variances proportional to s**2
    left, singular, _ = np.linalg.svd(centered, full_matrices=False)
    variances = singular**2
    total = variances.sum()
    if total <= 0:
        # Monomorphic block: nothing to rotate, keep one (constant) column
        logger.debug("extract_pcs: zero-variance block reduced to one column")
        return block[:, :1]

    prop = np.cumsum(variances) / total
    # Guard against round-off leaving the last cumulative value just below 1
    n_keep = int(np.searchsorted(prop, min(cutoff, 1.0) - 1e-12, side="left")) + 1
    n_keep = min(n_keep, block.shape[1])
    return left[:, :n_keep] * singular[:n_keep]


def reduce_gene_blocks(
    genotypes: np.ndarray,
    sizes: Sequence[int],
    cutoff: float = 0.95,
) -> tuple[np.ndarray, list[int]]:
    """Reduce each contiguous gene block of *genotypes* to its leading PCs.

    Parameters
    ----------
    genotypes : np.ndarray, shape (n_samples, sum(sizes))
        Gene-block ordered predictor matrix.
    sizes : sequence of int
        Number of columns per gene, in block order.
    cutoff : float
        Variance proportion passed to ``extract_pcs``.

    Returns
    -------
    reduced : np.ndarray, shape (n_samples, sum(new_sizes))
    new_sizes : list[int]
        Retained components per gene (each >= 1).
    """
    if not 0 < cutoff <= 1:
        logger.warning(
            "pca: variance cutoff %.3f outside (0, 1]; clipping to the valid range.", cutoff
        )
        cutoff = float(np.clip(cutoff, 1e-12, 1.0))

    blocks: list[np.ndarray] = []
    new_sizes: list[int] = []
    start = 0
    for size in sizes:
        pcs = extract_pcs(genotypes[:, start : start + size], cutoff=cutoff)
        blocks.append(pcs)
        new_sizes.append(pcs.shape[1])
        start += size

    logger.info(
        f"PCA reduction: {int(sum(sizes))} SNP columns -> {int(sum(new_sizes))} components "
        f"(cutoff={cutoff})"
    )
    return np.hstack(blocks), new_sizes
