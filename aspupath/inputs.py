# File: aspupath/inputs.py
# Location: aspupath/aspupath/inputs.py
"""
Delimited-file loaders used by the command-line interface.

All loaders auto-detect the delimiter from the file extension (.tsv/.tab ->
tab, .csv -> comma) with a csv.Sniffer fallback. Per-sample tables (phenotype,
covariates) are aligned to the genotype sample order; a sample missing from
such a table is an error raised before any statistics run.

The library entry point (``aspu_path_single``) never reads files; it takes
in-memory arrays.
"""

from __future__ import annotations

import csv
import logging
import os
from collections.abc import Sequence

import numpy as np
import pandas as pd

logger = logging.getLogger("aspupath")


def _detect_sep(filepath: str) -> str:
    ext = os.path.splitext(filepath)[1].lower()
    if ext in (".tsv", ".tab"):
        return "\t"
    if ext == ".csv":
        return ","
    try:
        with open(filepath) as fh:
            sample_text = fh.read(2048)
        return csv.Sniffer().sniff(sample_text).delimiter
    except csv.Error:
        return "\t"  # bioinformatics default


def _read_sample_table(filepath: str) -> pd.DataFrame:
    df = pd.read_csv(filepath, sep=_detect_sep(filepath), index_col=0)
    # Sample IDs are always compared as strings
    df.index = df.index.astype(str)
    return df


def _align(df: pd.DataFrame, samples: Sequence[str], what: str) -> pd.DataFrame:
    samples_list = list(samples)
    missing = set(samples_list) - set(df.index)
    if missing:
        sorted_missing = sorted(missing)
        preview = sorted_missing[:10]
        suffix = f" ... and {len(sorted_missing) - 10} more" if len(sorted_missing) > 10 else ""
        raise ValueError(
            f"{len(sorted_missing)} genotype sample(s) missing from {what}: {preview}{suffix}"
        )
    extra = set(df.index) - set(samples_list)
    if extra:
        extra_preview = sorted(extra)[:5]
        logger.warning(
            "%s has %d extra sample(s) not in the genotype file: %s%s",
            what,
            len(extra),
            extra_preview,
            " ..." if len(extra) > 5 else "",
        )
    return df.reindex(samples_list)


def load_genotypes(filepath: str) -> tuple[np.ndarray, list[str], list[str]]:
    """
    Load a samples x SNPs predictor table.

    Returns
    -------
    genotypes : np.ndarray, shape (n_samples, n_snps), float64
    samples : list[str]
        Sample IDs (first column), in file order.
    snp_ids : list[str]
        Column headers, in file order.
    """
    df = _read_sample_table(filepath)
    genotypes = df.apply(pd.to_numeric, errors="raise").to_numpy(dtype=np.float64)
    if np.isnan(genotypes).any():
        raise ValueError(f"Genotype file '{filepath}' contains missing values; impute first.")
    logger.info(f"Loaded genotypes: {genotypes.shape[0]} samples x {genotypes.shape[1]} SNPs")
    return genotypes, list(df.index), [str(c) for c in df.columns]


def load_phenotype(
    filepath: str,
    samples: Sequence[str],
    column: str | None = None,
) -> np.ndarray:
    """
    Load one phenotype column aligned to *samples*.

    Parameters
    ----------
    filepath : str
        First column = sample ID, header required.
    samples : sequence of str
        Genotype sample order.
    column : str | None
        Phenotype column name. None = first data column.
    """
    df = _read_sample_table(filepath)
    if column is None:
        column = df.columns[0]
    elif column not in df.columns:
        raise ValueError(
            f"Phenotype column '{column}' not found in '{filepath}'. "
            f"Available columns: {list(df.columns)}"
        )
    aligned = _align(df[[column]], samples, "phenotype file")
    values = pd.to_numeric(aligned[column], errors="coerce").to_numpy(dtype=np.float64)
    if np.isnan(values).any():
        raise ValueError(f"Phenotype column '{column}' has missing or non-numeric values")
    return values


def load_covariates(
    filepath: str,
    samples: Sequence[str],
    covariate_columns: list[str] | None = None,
    categorical_columns: list[str] | None = None,
) -> tuple[np.ndarray, list[str]]:
    """
    Load, align, and encode a covariate file.

    Categorical columns are one-hot encoded with ``drop_first=True``. When
    *categorical_columns* is None, non-numeric columns with <= 5 levels are
    treated as categorical.

    Returns
    -------
    covariates : np.ndarray, shape (n_samples, k), float64
    column_names : list[str]
    """
    df = _read_sample_table(filepath)
    if covariate_columns is not None:
        df = df[covariate_columns]
    df_aligned = _align(df, samples, "covariate file")

    if categorical_columns is None:
        categorical_columns = [
            col
            for col in df_aligned.columns
            if not pd.api.types.is_numeric_dtype(df_aligned[col]) and df_aligned[col].nunique() <= 5
        ]
    if categorical_columns:
        df_aligned = pd.get_dummies(
            df_aligned,
            columns=categorical_columns,
            drop_first=True,
            dtype=float,
        )

    covariate_matrix = df_aligned.to_numpy(dtype=np.float64)
    if np.isnan(covariate_matrix).any():
        raise ValueError(f"Covariate file '{filepath}' contains missing values")
    return covariate_matrix, [str(c) for c in df_aligned.columns]


def load_snp_info(filepath: str) -> pd.DataFrame:
    """SNP table with columns (id, chromosome, position); header row required."""
    df = pd.read_csv(filepath, sep=_detect_sep(filepath))
    if df.shape[1] < 3:
        raise ValueError(f"SNP info file '{filepath}' needs 3 columns (id, chr, pos)")
    return df.iloc[:, :3]


def load_gene_info(filepath: str) -> pd.DataFrame:
    """Gene table with columns (id, chromosome, start, end); header row required."""
    df = pd.read_csv(filepath, sep=_detect_sep(filepath))
    if df.shape[1] < 4:
        raise ValueError(f"Gene info file '{filepath}' needs 4 columns (id, chr, start, end)")
    return df.iloc[:, :4]


def align_snp_info(snp_info: pd.DataFrame, snp_ids: Sequence[str]) -> pd.DataFrame:
    """
    Reorder SNP table rows to match the genotype column order.

    Raises
    ------
    ValueError
        If a genotype column has no SNP table row.
    """
    by_id = snp_info.set_index(snp_info.iloc[:, 0].astype(str), drop=False)
    if by_id.index.has_duplicates:
        raise ValueError("SNP info has duplicate SNP ids")
    missing = [s for s in snp_ids if s not in by_id.index]
    if missing:
        preview = missing[:10]
        suffix = f" ... and {len(missing) - 10} more" if len(missing) > 10 else ""
        raise ValueError(
            f"{len(missing)} genotype column(s) missing from SNP info: {preview}{suffix}"
        )
    return by_id.loc[list(snp_ids)].reset_index(drop=True)
