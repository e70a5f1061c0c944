# File: aspupath/engine.py
# Location: aspupath/aspupath/engine.py
"""
PathwaySingleTest: orchestrator for the SPUpathSingle / aSPUpathSingle tests.

Pipeline for one call:

1. Validate trait model, power set, permutation count and input dimensions.
   Nothing is fitted or permuted before every check has passed.
2. Map SNPs to genes and reorder predictor columns into gene blocks.
3. Optionally reduce each gene block to its leading principal components.
4. Fit the phenotype-independent score model once (covariate case).
5. Compute observed gene and pathway statistics.
6. Build the permutation null distribution.
7. Calibrate per-power and adaptive p-values for all three normalizations.

Output mapping
--------------
``SPUpathSingle<pow>`` per power, holding the standardized-variant p-value,
followed by ``aSPUpathSingle``. The unnormalized and root-normalized families
are available on PathwayTestResult.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

import numpy as np

from aspupath.base import (
    ASPU_LABEL,
    REPORTED_VARIANT,
    VARIANTS,
    PathwayConfig,
    PathwayTestResult,
    normalize_trait_kind,
    output_labels,
    parse_powers,
)
from aspupath.calibration import calibrate
from aspupath.exceptions import DimensionMismatchError, InvalidPermutationCountError
from aspupath.gene_mapping import map_snps_to_genes
from aspupath.null_model import build_score_model
from aspupath.pca import reduce_gene_blocks
from aspupath.permutation import run_permutations
from aspupath.statistics import compute_statistics

logger = logging.getLogger("aspupath")


def validate_n_perm(n_perm: Any) -> int:
    """Return *n_perm* as int or raise InvalidPermutationCountError."""
    if isinstance(n_perm, bool) or not isinstance(n_perm, (int, np.integer)) or n_perm <= 0:
        raise InvalidPermutationCountError(n_perm)
    if n_perm < 20:
        logger.warning(
            f"n_perm={n_perm}: p-value resolution is only 1/{n_perm}; use more permutations "
            "for anything but smoke tests."
        )
    return int(n_perm)


def _as_arrays(
    phenotype: Any,
    genotypes: Any,
    covariates: Any,
) -> tuple[np.ndarray, np.ndarray, np.ndarray | None]:
    y = np.asarray(phenotype, dtype=np.float64)
    if y.ndim == 2 and 1 in y.shape:
        y = y.ravel()
    x = np.asarray(genotypes, dtype=np.float64)
    if x.ndim == 1:
        x = x.reshape(-1, 1)
    cov = None
    if covariates is not None:
        cov = np.asarray(covariates, dtype=np.float64)
        if cov.ndim == 1:
            cov = cov.reshape(-1, 1)
    return y, x, cov


def validate_dimensions(
    phenotype: np.ndarray,
    genotypes: np.ndarray,
    covariates: np.ndarray | None,
    n_snp_info: int,
) -> None:
    """Raise DimensionMismatchError unless all row and column counts agree."""
    if phenotype.ndim != 1:
        raise DimensionMismatchError(
            f"Phenotype must be a vector, got shape {phenotype.shape}",
            phenotype=phenotype.shape,
        )
    if genotypes.shape[0] != phenotype.shape[0]:
        raise DimensionMismatchError(
            f"Phenotype has {phenotype.shape[0]} subjects but the predictor matrix "
            f"has {genotypes.shape[0]} rows",
            phenotype=phenotype.shape,
            genotypes=genotypes.shape,
        )
    if covariates is not None and covariates.shape[0] != phenotype.shape[0]:
        raise DimensionMismatchError(
            f"Phenotype has {phenotype.shape[0]} subjects but the covariate matrix "
            f"has {covariates.shape[0]} rows",
            phenotype=phenotype.shape,
            covariates=covariates.shape,
        )
    if genotypes.shape[1] != n_snp_info:
        raise DimensionMismatchError(
            f"Predictor matrix has {genotypes.shape[1]} columns but the SNP table "
            f"has {n_snp_info} rows",
            genotypes=genotypes.shape,
            n_snp_info=n_snp_info,
        )


class PathwaySingleTest:
    """
    Single-gene based pathway SPU and adaptive SPU tests.

    Usage
    -----
    >>> config = PathwayConfig(pow=[1, 2, float("inf")], n_perm=100, seed=1)
    >>> result = PathwaySingleTest(config).run(y, x, snp_info, gene_info)
    >>> result.pvalues["aSPUpathSingle"]

    Parameters
    ----------
    config : PathwayConfig, optional
        Runtime options. Defaults to ``PathwayConfig()``.
    """

    def __init__(self, config: PathwayConfig | None = None) -> None:
        self._config = config or PathwayConfig()

    @property
    def config(self) -> PathwayConfig:
        return self._config

    def run(
        self,
        phenotype: Any,
        genotypes: Any,
        snp_info: Any,
        gene_info: Any,
        covariates: Any = None,
    ) -> PathwayTestResult:
        """
        Run the test on one pathway.

        Parameters
        ----------
        phenotype : array-like, shape (n_samples,)
            0/1 disease indicator or quantitative trait.
        genotypes : array-like, shape (n_samples, n_snps)
            Predictor matrix; column j is described by row j of *snp_info*.
        snp_info : DataFrame or 2-D array-like
            (SNP id, chromosome, position) per predictor column.
        gene_info : DataFrame or 2-D array-like
            (gene id, chromosome, start, end) per gene of the pathway.
        covariates : array-like, shape (n_samples, k), optional

        Returns
        -------
        PathwayTestResult

        Raises
        ------
        InvalidTraitKindError, InvalidPowerError, InvalidPermutationCountError,
        DimensionMismatchError, EmptyGeneMappingError
            Structural problems, raised before any fitting or permutation.
        DegenerateStatisticError
            An undefined statistic (implementation bug).
        """
        cfg = self._config
        trait_kind = normalize_trait_kind(cfg.model)
        powers = parse_powers(cfg.pow)
        n_perm = validate_n_perm(cfg.n_perm)
        y, x, cov = _as_arrays(phenotype, genotypes, covariates)
        validate_dimensions(y, x, cov, len(snp_info))
        mapping = map_snps_to_genes(snp_info, gene_info)

        predictors = mapping.reduce_matrix(x)
        sizes = mapping.sizes
        if cfg.use_pcs:
            predictors, sizes = reduce_gene_blocks(predictors, sizes, cutoff=cfg.varprop)

        logger.info(
            f"SPUpathSingle: {len(y)} subjects, {mapping.n_genes} genes, "
            f"{predictors.shape[1]} score units, powers={powers}, n_perm={n_perm}"
        )

        score_model = build_score_model(y, predictors, cov, trait_kind)
        observed_scores = score_model.score(y)
        _, observed = compute_statistics(observed_scores, sizes, powers)

        null = run_permutations(
            score_model,
            y,
            sizes,
            powers,
            n_perm,
            seed=cfg.seed,
            workers=cfg.permutation_workers,
        )

        spu_pvalues: dict[str, np.ndarray] = {}
        aspu_pvalues: dict[str, float] = {}
        for variant in VARIANTS:
            spu, aspu = calibrate(observed.variant(variant), null.pathway.variant(variant))
            spu_pvalues[variant] = spu
            aspu_pvalues[variant] = aspu

        labels = output_labels(powers)
        values = [float(p) for p in spu_pvalues[REPORTED_VARIANT]]
        values.append(aspu_pvalues[REPORTED_VARIANT])
        pvalues = dict(zip(labels, values, strict=True))

        logger.info(f"{ASPU_LABEL} p-value: {pvalues[ASPU_LABEL]:.4g}")
        return PathwayTestResult(
            pvalues=pvalues,
            powers=powers,
            spu_pvalues=spu_pvalues,
            aspu_pvalues=aspu_pvalues,
            observed=observed.as_dict(),
            gene_ids=mapping.gene_ids,
            n_snps=mapping.sizes,
            n_units=list(sizes),
            n_perm=n_perm,
            extra={"trait_kind": trait_kind, "covariate_adjusted": score_model.fitted is not None},
        )


def aspu_path_single(
    Y: Any,
    X: Any,
    cov: Any = None,
    model: str = "binomial",
    snp_info: Any = None,
    gene_info: Any = None,
    pow: Iterable[Any] | str = tuple(range(1, 9)),
    n_perm: int = 200,
    use_pcs: bool = False,
    varprop: float = 0.95,
    seed: int | None = None,
    workers: int = 1,
) -> dict[str, float]:
    """
    P-values of the SPUpathSingle tests and the aSPUpathSingle test.

    Parameters
    ----------
    Y : array-like, shape (n,)
        Phenotype: 0/1 disease indicator or quantitative trait.
    X : array-like, shape (n, p)
        Genotype (or other predictor) matrix.
    cov : array-like, shape (n, k), optional
        Covariates.
    model : str
        ``"binomial"`` for a binary trait, ``"gaussian"`` for a quantitative one.
    snp_info, gene_info : DataFrame or 2-D array-like
        SNP (id, chromosome, position) and gene (id, chromosome, start, end)
        tables.
    pow : iterable or str
        Powers; include ``math.inf`` / ``"inf"`` for the max statistic.
    n_perm : int
        Number of permutations.
    use_pcs : bool
        Use per-gene principal components instead of raw SNPs.
    varprop : float
        Variance proportion the retained components must explain.
    seed : int, optional
        Root seed for reproducible permutations.
    workers : int
        Worker processes for the permutation loop.

    Returns
    -------
    dict[str, float]
        ``{"SPUpathSingle<pow>": p, ..., "aSPUpathSingle": p}``.
    """
    if snp_info is None or gene_info is None:
        raise ValueError("snp_info and gene_info are required")
    config = PathwayConfig(
        pow=parse_powers(pow),
        n_perm=n_perm,
        model=model,
        use_pcs=use_pcs,
        varprop=varprop,
        seed=seed,
        permutation_workers=workers,
    )
    return PathwaySingleTest(config).run(Y, X, snp_info, gene_info, covariates=cov).pvalues
