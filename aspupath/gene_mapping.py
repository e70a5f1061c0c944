# File: aspupath/gene_mapping.py
# Location: aspupath/aspupath/gene_mapping.py
"""
SNP-to-gene assignment by chromosome and position window.

``map_snps_to_genes`` walks the gene table in order and collects, for every
gene, the SNPs on the same chromosome whose position lies in the closed window
``[start, end]``. Genes without SNPs are dropped, so downstream code must index
genes through ``GeneMapping.groups`` rather than gene-table rows.

Overlapping windows
-------------------
A SNP inside two overlapping gene windows is assigned to the first gene in
gene-table order only (first-match-wins). Later genes do not see it, and a
gene whose SNPs were all claimed earlier is dropped like any empty gene.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import numpy as np
import pandas as pd

from aspupath.exceptions import DimensionMismatchError, EmptyGeneMappingError

logger = logging.getLogger("aspupath")


@dataclass
class GeneMapping:
    """
    Ordered collection of non-empty SNP index groups, one per mapped gene.

    Fields
    ------
    gene_ids : list[str]
        Identifiers of genes that received at least one SNP.
    groups : list[np.ndarray]
        Column indices into the original predictor matrix, one int array per
        gene, in SNP-table order.
    n_total_snps : int
        Number of rows in the SNP table (mapped or not).
    overlaps : dict[int, str]
        SNP index -> later gene whose window also contained it.
    """

    gene_ids: list[str]
    groups: list[np.ndarray]
    n_total_snps: int
    overlaps: dict[int, str] = field(default_factory=dict)

    @property
    def snp_order(self) -> np.ndarray:
        """Concatenated indices: the gene-block column order of the reduced matrix."""
        return np.concatenate(self.groups)

    @property
    def sizes(self) -> list[int]:
        """Number of SNPs per mapped gene."""
        return [len(g) for g in self.groups]

    @property
    def n_genes(self) -> int:
        return len(self.groups)

    @property
    def n_mapped(self) -> int:
        return int(sum(self.sizes))

    def reduce_matrix(self, genotypes: np.ndarray) -> np.ndarray:
        """Select and reorder predictor columns into gene-block order."""
        genotypes = np.asarray(genotypes, dtype=np.float64)
        if genotypes.shape[1] != self.n_total_snps:
            raise DimensionMismatchError(
                f"Predictor matrix has {genotypes.shape[1]} columns but the SNP table "
                f"has {self.n_total_snps} rows",
                n_columns=genotypes.shape[1],
                n_snp_info=self.n_total_snps,
            )
        return genotypes[:, self.snp_order]


def _chrom_key(value: Any) -> str:
    """Normalize a chromosome label so 1, 1.0 and "1" compare equal."""
    if isinstance(value, (int, np.integer)):
        return str(int(value))
    if isinstance(value, (float, np.floating)) and float(value).is_integer():
        return str(int(value))
    return str(value).strip()


def _as_table(table: Any, n_cols: int, what: str) -> pd.DataFrame:
    df = table if isinstance(table, pd.DataFrame) else pd.DataFrame(np.asarray(table, dtype=object))
    if df.shape[1] < n_cols:
        raise ValueError(f"{what} needs at least {n_cols} columns, got {df.shape[1]}")
    return df.iloc[:, :n_cols]


def map_snps_to_genes(snp_info: Any, gene_info: Any) -> GeneMapping:
    """
    Assign SNPs to gene windows.

    Parameters
    ----------
    snp_info : DataFrame or 2-D array-like
        One row per predictor column. Columns (positional): SNP id,
        chromosome, position.
    gene_info : DataFrame or 2-D array-like
        One row per gene. Columns (positional): gene id, chromosome, start,
        end. Windows are closed intervals.

    Returns
    -------
    GeneMapping

    Raises
    ------
    EmptyGeneMappingError
        If no gene window contains a SNP.
    """
    snps = _as_table(snp_info, 3, "SNP info")
    genes = _as_table(gene_info, 4, "Gene info")

    snp_chrom = np.array([_chrom_key(c) for c in snps.iloc[:, 1]], dtype=object)
    snp_pos = pd.to_numeric(snps.iloc[:, 2]).to_numpy(dtype=np.float64)
    n_snps = len(snps)

    claimed_by = np.full(n_snps, -1, dtype=np.int64)
    gene_ids: list[str] = []
    groups: list[np.ndarray] = []
    overlaps: dict[int, str] = {}

    for g, (gene_id, chrom, start, end) in enumerate(genes.itertuples(index=False, name=None)):
        in_window = (
            (snp_chrom == _chrom_key(chrom))
            & (float(start) <= snp_pos)
            & (snp_pos <= float(end))
        )
        already = in_window & (claimed_by >= 0)
        for idx in np.flatnonzero(already):
            overlaps[int(idx)] = str(gene_id)
            logger.debug(
                f"SNP {snps.iloc[idx, 0]} also lies in gene {gene_id}; "
                f"keeping its first assignment (gene row {claimed_by[idx]})"
            )
        members = np.flatnonzero(in_window & (claimed_by < 0))
        if members.size == 0:
            logger.debug(f"Gene {gene_id}: no SNPs in window, dropped")
            continue
        claimed_by[members] = g
        gene_ids.append(str(gene_id))
        groups.append(members.astype(np.int64))

    if not groups:
        raise EmptyGeneMappingError(len(genes), n_snps)

    n_unmapped = int((claimed_by < 0).sum())
    if n_unmapped:
        logger.debug(f"{n_unmapped} of {n_snps} SNPs fall outside every gene window (excluded)")
    logger.info(
        f"Mapped {n_snps - n_unmapped} SNPs to {len(groups)} of {len(genes)} genes"
    )
    return GeneMapping(gene_ids=gene_ids, groups=groups, n_total_snps=n_snps, overlaps=overlaps)
