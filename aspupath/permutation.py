# File: aspupath/permutation.py
# Location: aspupath/aspupath/permutation.py
"""
Permutation null distribution for the pathway SPU statistics.

Each replicate shuffles the phenotype labels (genotypes and covariates stay
in place), scores the shuffled phenotype with the shared ScoreModel, and
recomputes the gene and pathway statistics. Replicates are independent tasks
that return their own rows; ``run_permutations`` only assembles them.

Random streams
--------------
Replicate ``b`` draws its permutation from
``np.random.default_rng(SeedSequence(seed).spawn(n_perm)[b])``. The output is
therefore identical for any worker count, and bit-identical across runs that
use the same seed.

Parallel execution
------------------
With ``workers != 1`` batches of replicate indices run in a
ProcessPoolExecutor. Each task receives the read-only inputs (ScoreModel,
phenotype, gene sizes, powers) and returns finished rows. Any exception inside
a replicate propagates and aborts the whole run; a partial null distribution
is never returned.
"""

from __future__ import annotations

import logging
import os
import time
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from aspupath.null_model import ScoreModel
from aspupath.statistics import StatisticSet, compute_statistics

logger = logging.getLogger("aspupath")


@dataclass
class NullDistribution:
    """
    Full permutation null, kept row by row for the second-level calibration.

    Fields
    ------
    gene : StatisticSet
        Gene statistics, arrays of shape ``(n_perm, n_powers, n_genes)``.
    pathway : StatisticSet
        Pathway statistics, arrays of shape ``(n_perm, n_powers)``.
    """

    gene: StatisticSet
    pathway: StatisticSet

    @property
    def n_perm(self) -> int:
        return int(self.pathway.std.shape[0])


def _worker_initializer() -> None:
    """Set BLAS thread counts to 1 in worker processes to prevent oversubscription."""
    os.environ["OPENBLAS_NUM_THREADS"] = "1"
    os.environ["MKL_NUM_THREADS"] = "1"
    os.environ["OMP_NUM_THREADS"] = "1"


def replicate_seeds(seed: int | None, n_perm: int) -> list[np.random.SeedSequence]:
    """One independent child seed per replicate, derived from *seed*."""
    root = np.random.SeedSequence(seed)
    if seed is None:
        logger.info(f"No permutation seed given; using entropy {root.entropy}")
    return root.spawn(n_perm)


def run_replicate(
    score_model: ScoreModel,
    phenotype: np.ndarray,
    sizes: Sequence[int],
    powers: Sequence[float],
    seed_seq: np.random.SeedSequence,
) -> tuple[StatisticSet, StatisticSet]:
    """Statistics for one permuted phenotype: ``(gene_stats, pathway_stats)``."""
    rng = np.random.default_rng(seed_seq)
    permuted = rng.permutation(phenotype)
    return compute_statistics(score_model.score(permuted), sizes, powers)


def _run_replicate_batch(args: tuple) -> list[tuple[int, StatisticSet, StatisticSet]]:
    """Run a batch of replicates in a worker process and return indexed rows.

    Parameters
    ----------
    args : tuple
        (score_model, phenotype, sizes, powers, [(replicate_index, seed_seq), ...])
    """
    score_model, phenotype, sizes, powers, indexed_seeds = args
    rows = []
    for b, seed_seq in indexed_seeds:
        gene_stats, pathway_stats = run_replicate(score_model, phenotype, sizes, powers, seed_seq)
        rows.append((b, gene_stats, pathway_stats))
    return rows


def _allocate(n_perm: int, n_powers: int, n_genes: int) -> tuple[StatisticSet, StatisticSet]:
    gene = StatisticSet(
        unnorm=np.empty((n_perm, n_powers, n_genes)),
        root=np.empty((n_perm, n_powers, n_genes)),
        std=np.empty((n_perm, n_powers, n_genes)),
    )
    pathway = StatisticSet(
        unnorm=np.empty((n_perm, n_powers)),
        root=np.empty((n_perm, n_powers)),
        std=np.empty((n_perm, n_powers)),
    )
    return gene, pathway


def _store(
    gene: StatisticSet,
    pathway: StatisticSet,
    b: int,
    gene_row: StatisticSet,
    pathway_row: StatisticSet,
) -> None:
    for name, arr in gene.as_dict().items():
        arr[b] = gene_row.variant(name)
    for name, arr in pathway.as_dict().items():
        arr[b] = pathway_row.variant(name)


def run_permutations(
    score_model: ScoreModel,
    phenotype: np.ndarray,
    sizes: Sequence[int],
    powers: Sequence[float],
    n_perm: int,
    seed: int | None = None,
    workers: int = 1,
) -> NullDistribution:
    """
    Build the permutation null distribution.

    Parameters
    ----------
    score_model : ScoreModel
        Shared phenotype-independent fits; never refitted here.
    phenotype : np.ndarray, shape (n_samples,)
        Observed phenotype to be shuffled.
    sizes : sequence of int
        Score units per gene.
    powers : sequence of float
        Power set.
    n_perm : int
        Number of replicates (>= 1, validated by the caller).
    seed : int | None
        Root seed for the per-replicate streams.
    workers : int
        1 = sequential, -1 = one per CPU, otherwise the pool size.

    Returns
    -------
    NullDistribution
    """
    phenotype = np.asarray(phenotype, dtype=np.float64)
    sizes = [int(s) for s in sizes]
    powers = list(powers)
    seeds = replicate_seeds(seed, n_perm)
    gene, pathway = _allocate(n_perm, len(powers), len(sizes))

    start_time = time.time()
    actual_workers = (os.cpu_count() or 1) if workers == -1 else max(1, int(workers))
    # Don't over-provision workers for small permutation counts
    if actual_workers > 1 and n_perm < actual_workers * 2:
        actual_workers = max(1, n_perm // 2)

    if actual_workers == 1:
        for b, seed_seq in enumerate(seeds):
            gene_row, pathway_row = run_replicate(score_model, phenotype, sizes, powers, seed_seq)
            _store(gene, pathway, b, gene_row, pathway_row)
    else:
        import concurrent.futures

        indexed = list(enumerate(seeds))
        n_batches = actual_workers * 4
        batches = [indexed[i::n_batches] for i in range(n_batches) if indexed[i::n_batches]]
        args_list = [(score_model, phenotype, sizes, powers, batch) for batch in batches]
        logger.info(
            f"Parallel permutations: {actual_workers} workers, {len(batches)} batches, "
            f"{n_perm} replicates"
        )
        with concurrent.futures.ProcessPoolExecutor(
            max_workers=actual_workers,
            initializer=_worker_initializer,
        ) as executor:
            for rows in executor.map(_run_replicate_batch, args_list):
                for b, gene_row, pathway_row in rows:
                    _store(gene, pathway, b, gene_row, pathway_row)

    elapsed = time.time() - start_time
    logger.info(f"Permutation null complete: {n_perm} replicates in {elapsed:.2f}s")
    return NullDistribution(gene=gene, pathway=pathway)
