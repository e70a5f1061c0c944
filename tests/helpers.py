"""Table builders shared by test modules."""

from __future__ import annotations

import pandas as pd


def make_snp_info(chroms, positions, prefix: str = "rs") -> pd.DataFrame:
    """SNP table with ids rs1..rsN."""
    return pd.DataFrame(
        {
            "snp": [f"{prefix}{i + 1}" for i in range(len(positions))],
            "chr": [str(c) for c in chroms],
            "pos": positions,
        }
    )


def make_gene_info(rows) -> pd.DataFrame:
    """Gene table from (id, chr, start, end) tuples."""
    return pd.DataFrame(rows, columns=["gene", "chr", "start", "end"])
