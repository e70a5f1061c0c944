"""Shared pytest fixtures for all test modules."""

from __future__ import annotations

from typing import Any, Dict

import numpy as np
import pandas as pd
import pytest

from tests.helpers import make_gene_info, make_snp_info


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast unit tests")
    config.addinivalue_line("markers", "slow: tests that spawn worker processes")


@pytest.fixture
def two_gene_tables() -> Dict[str, pd.DataFrame]:
    """Two genes on chromosome 1 with three SNPs each."""
    snp_info = make_snp_info(["1"] * 6, [100, 200, 300, 1100, 1200, 1300])
    gene_info = make_gene_info([("GENE_A", "1", 50, 350), ("GENE_B", "1", 1000, 1400)])
    return {"snp_info": snp_info, "gene_info": gene_info}


@pytest.fixture
def small_pathway(two_gene_tables) -> Dict[str, Any]:
    """n=30 subjects, 2 genes x 3 SNPs, binary phenotype, no covariates."""
    rng = np.random.default_rng(20150601)
    n = 30
    genotypes = rng.binomial(2, 0.3, size=(n, 6)).astype(np.float64)
    phenotype = np.array([0, 1] * (n // 2), dtype=np.float64)
    rng.shuffle(phenotype)
    return {
        "phenotype": phenotype,
        "genotypes": genotypes,
        "covariates": rng.normal(size=(n, 2)),
        **two_gene_tables,
    }


@pytest.fixture
def quantitative_pathway(two_gene_tables) -> Dict[str, Any]:
    """n=100 subjects with a continuous trait driven by the first SNP."""
    rng = np.random.default_rng(7)
    n = 100
    genotypes = rng.binomial(2, 0.4, size=(n, 6)).astype(np.float64)
    phenotype = 3.0 * genotypes[:, 0] + rng.normal(scale=0.1, size=n)
    return {"phenotype": phenotype, "genotypes": genotypes, **two_gene_tables}
