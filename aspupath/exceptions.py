"""
Exception classes for the pathway association engine.

Every error raised deliberately by aspupath derives from AspuPathError and
carries a ``details`` dict for logging. Structural errors also subclass
ValueError so callers that only catch ValueError keep working.

Structural validation (trait kind, dimensions, power set, permutation count,
gene mapping) happens before any regression fit or permutation replicate runs.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class AspuPathError(Exception):
    """Base exception for all aspupath errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """Initialize aspupath error.

        Parameters
        ----------
        message : str
            Error message
        details : dict, optional
            Additional error details
        """
        super().__init__(message)
        self.details = details or {}


class InvalidTraitKindError(AspuPathError, ValueError):
    """Raised when the trait kind is not one of the recognized models."""

    def __init__(self, model: Any, allowed: tuple):
        """Initialize invalid trait kind error."""
        message = f"Unknown trait model {model!r}. Expected one of: {', '.join(allowed)}"
        super().__init__(message, {"model": model, "allowed": list(allowed)})


class DimensionMismatchError(AspuPathError, ValueError):
    """Raised when phenotype, predictor and covariate row counts disagree."""

    def __init__(self, message: str, **shapes: Any):
        """Initialize dimension mismatch error."""
        super().__init__(message, dict(shapes))


class EmptyGeneMappingError(AspuPathError, ValueError):
    """Raised when no gene window contains any SNP."""

    def __init__(self, n_genes: int, n_snps: int):
        """Initialize empty gene mapping error."""
        message = (
            f"No SNP mapped to any of {n_genes} gene(s); "
            f"the pathway is empty after mapping {n_snps} SNP(s)."
        )
        super().__init__(message, {"n_genes": n_genes, "n_snps": n_snps})


class DegenerateStatisticError(AspuPathError, ArithmeticError):
    """Raised when a gene statistic is undefined (NaN).

    The sign-preserving power transform rules this out for finite scores, so
    reaching this error means the input or the engine is broken.
    """

    def __init__(self, power: float, gene_index: int):
        """Initialize degenerate statistic error."""
        message = f"Undefined statistic for power {power} at gene index {gene_index}"
        super().__init__(message, {"power": power, "gene_index": gene_index})


class InvalidPermutationCountError(AspuPathError, ValueError):
    """Raised when the permutation count is not a positive integer."""

    def __init__(self, n_perm: Any):
        """Initialize invalid permutation count error."""
        message = f"n_perm must be a positive integer, got {n_perm!r}"
        super().__init__(message, {"n_perm": n_perm})


class InvalidPowerError(AspuPathError, ValueError):
    """Raised when the power set is empty or holds a non-positive exponent."""

    def __init__(self, message: str, power: Any = None):
        """Initialize invalid power error."""
        super().__init__(message, {"power": power})
