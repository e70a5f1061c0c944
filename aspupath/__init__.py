# File: aspupath/__init__.py
# Location: aspupath/aspupath/__init__.py

"""
aspupath Package.

Pathway-level association testing with the single-gene based Sum of Powered
Score tests (SPUpathSingle) and the adaptive aSPUpathSingle test, calibrated
by phenotype permutation.

Public API
----------
aspu_path_single   : Function entry point returning the p-value mapping
PathwaySingleTest  : Orchestrator returning a full PathwayTestResult
PathwayConfig      : Configuration dataclass
PathwayTestResult  : Result dataclass (all normalization families)
map_snps_to_genes  : SNP-to-gene window mapping
"""

from .base import PathwayConfig, PathwayTestResult
from .engine import PathwaySingleTest, aspu_path_single
from .gene_mapping import GeneMapping, map_snps_to_genes
from .version import __version__

__all__ = [
    "GeneMapping",
    "PathwayConfig",
    "PathwaySingleTest",
    "PathwayTestResult",
    "__version__",
    "aspu_path_single",
    "map_snps_to_genes",
]
