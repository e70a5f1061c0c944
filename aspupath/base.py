# File: aspupath/base.py
# Location: aspupath/aspupath/base.py
"""
Core data containers for the pathway association engine.

Defines the PathwayConfig dataclass (runtime options with defaults matching
the classic aSPUpathSingle call), the PathwayTestResult dataclass returned by
PathwaySingleTest, and the helpers that normalize trait models and power sets.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass, field, fields
from typing import Any

import numpy as np

from aspupath.exceptions import InvalidPowerError, InvalidTraitKindError

logger = logging.getLogger("aspupath")

# Normalization variants, in the order they are reported.
VARIANTS = ("unnorm", "root", "std")

# The variant whose p-values populate the standard output mapping.
REPORTED_VARIANT = "std"

SPU_LABEL = "SPUpathSingle"
ASPU_LABEL = "aSPUpathSingle"

# Accepted spellings -> canonical trait kind
_TRAIT_ALIASES = {
    "binomial": "binary",
    "binary": "binary",
    "gaussian": "continuous",
    "continuous": "continuous",
    "quantitative": "continuous",
}


def normalize_trait_kind(model: Any) -> str:
    """
    Map a trait model name to its canonical kind.

    Parameters
    ----------
    model : str
        ``"binomial"``/``"binary"`` for case-control traits,
        ``"gaussian"``/``"continuous"``/``"quantitative"`` for continuous ones.

    Returns
    -------
    str
        ``"binary"`` or ``"continuous"``.

    Raises
    ------
    InvalidTraitKindError
        For anything else, including non-strings.
    """
    if isinstance(model, str) and model.lower() in _TRAIT_ALIASES:
        return _TRAIT_ALIASES[model.lower()]
    raise InvalidTraitKindError(model, tuple(_TRAIT_ALIASES))


def _parse_single_power(value: Any) -> float:
    if isinstance(value, str):
        token = value.strip()
        if token.lower() in ("inf", "infinity", "+inf"):
            return math.inf
        try:
            value = float(token)
        except ValueError:
            raise InvalidPowerError(f"Cannot parse power {value!r}", value) from None
    try:
        power = float(value)
    except (TypeError, ValueError):
        raise InvalidPowerError(f"Power {value!r} is not a number", value) from None
    if math.isnan(power) or power <= 0:
        raise InvalidPowerError(f"Powers must be positive reals or Inf, got {value!r}", value)
    return power


def parse_powers(powers: str | Iterable[Any]) -> list[float]:
    """
    Normalize a power set to a list of floats, with ``math.inf`` as the max sentinel.

    Examples
    --------
    >>> parse_powers("1,2,inf")
    [1.0, 2.0, inf]
    >>> parse_powers([1, 0.5, "Inf"])
    [1.0, 0.5, inf]
    """
    if isinstance(powers, str):
        items: list[Any] = [p for p in powers.split(",") if p.strip()]
    else:
        items = list(np.ravel(np.asarray(powers, dtype=object)))
    if not items:
        raise InvalidPowerError("Power set must not be empty")
    parsed = [_parse_single_power(p) for p in items]
    if len(parsed) > 20:
        logger.warning(
            "%d powers requested; each one adds a column to every null matrix.", len(parsed)
        )
    return parsed


def format_power(power: float) -> str:
    """Render a power the way output labels print it (``1``, ``0.5``, ``Inf``)."""
    if math.isinf(power):
        return "Inf"
    return format(power, ".15g")


def output_labels(powers: Iterable[float]) -> list[str]:
    """Labels of the output mapping: one per power, then the adaptive entry."""
    return [f"{SPU_LABEL}{format_power(p)}" for p in powers] + [ASPU_LABEL]


@dataclass
class PathwayConfig:
    """
    Configuration for a single-gene based pathway test.

    Defaults mirror the classic ``aSPUpathSingle(pow=1:8, n.perm=200)`` call.

    Fields
    ------
    pow : list[float]
        Power set. Finite positive reals and/or ``math.inf`` (max statistic).
    n_perm : int
        Number of phenotype permutations. Resolution of every p-value is
        ``1 / n_perm``.
    model : str
        ``"binomial"`` (logistic null model) or ``"gaussian"`` (linear).
        Only used when covariates are supplied.
    use_pcs : bool
        Replace each gene's SNPs by the leading principal components.
    varprop : float
        Cumulative variance proportion the retained components must reach.
    seed : int | None
        Root seed for the per-replicate random streams. None draws fresh
        entropy, so results are then not reproducible.
    permutation_workers : int
        Worker processes for the permutation loop. 1 = sequential,
        -1 = ``os.cpu_count()``.
    """

    pow: list[float] = field(default_factory=lambda: [float(p) for p in range(1, 9)])
    n_perm: int = 200
    model: str = "binomial"
    use_pcs: bool = False
    varprop: float = 0.95
    seed: int | None = None
    permutation_workers: int = 1

    @classmethod
    def from_dict(cls, cfg: dict[str, Any]) -> PathwayConfig:
        """
        Build a config from a plain dict (e.g. loaded JSON), ignoring unknown keys.

        ``pow`` may be a list or a comma-separated string.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(cfg) - known)
        if unknown:
            logger.warning(f"Ignoring unknown configuration keys: {unknown}")
        kwargs = {k: v for k, v in cfg.items() if k in known}
        if "pow" in kwargs:
            kwargs["pow"] = parse_powers(kwargs["pow"])
        return cls(**kwargs)


@dataclass
class PathwayTestResult:
    """
    Result of one SPUpathSingle / aSPUpathSingle run.

    Fields
    ------
    pvalues : dict[str, float]
        Ordered output mapping: ``SPUpathSingle<pow>`` per power (standardized
        variant) followed by ``aSPUpathSingle``.
    powers : list[float]
        Power set used, in order.
    spu_pvalues : dict[str, np.ndarray]
        Per-power permutation p-values for every variant (``unnorm``,
        ``root``, ``std``), each of shape ``(n_powers,)``.
    aspu_pvalues : dict[str, float]
        Adaptive p-value for every variant.
    observed : dict[str, np.ndarray]
        Observed pathway statistics per variant, shape ``(n_powers,)``.
    gene_ids : list[str]
        Genes that received at least one SNP, in gene-table order.
    n_snps : list[int]
        Mapped SNPs per gene.
    n_units : list[int]
        Score units per gene after optional PCA reduction.
    n_perm : int
        Permutations performed.
    """

    pvalues: dict[str, float]
    powers: list[float]
    spu_pvalues: dict[str, np.ndarray]
    aspu_pvalues: dict[str, float]
    observed: dict[str, np.ndarray]
    gene_ids: list[str]
    n_snps: list[int]
    n_units: list[int]
    n_perm: int
    extra: dict[str, Any] = field(default_factory=dict)

    def to_frame(self):
        """Tabulate per-power p-values for all variants (rows = powers)."""
        import pandas as pd

        df = pd.DataFrame(
            {variant: self.spu_pvalues[variant] for variant in VARIANTS},
            index=[format_power(p) for p in self.powers],
        )
        df.loc["aSPU"] = [self.aspu_pvalues[variant] for variant in VARIANTS]
        df.index.name = "pow"
        return df
