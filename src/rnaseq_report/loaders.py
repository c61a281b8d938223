"""
Count and TPM matrix loading.

Both matrices are gene × sample tables with the gene identifier in the first
column. ``load_experiment`` matches their columns to the sample plan and
returns a BiocPy SummarizedExperiment with ``counts`` and ``tpm`` assays.
"""

from __future__ import annotations
from pathlib import Path
from typing import Union

import numpy as np
import pandas as pd
from biocframe import BiocFrame
from summarizedexperiment import SummarizedExperiment

from .errors import MalformedInputError, SampleMismatchError
from .logger import get_logger
from .sample_plan import SamplePlan

logger = get_logger(__name__)

MatrixSource = Union[str, Path, pd.DataFrame]

_TAB_SUFFIXES = (".tsv", ".txt", ".tab")


def _delimiter_for(path: Path) -> str:
    suffixes = [s.lower() for s in path.suffixes]
    # strip compression suffix
    if suffixes and suffixes[-1] in (".gz", ".bz2", ".xz", ".zip", ".zst"):
        suffixes = suffixes[:-1]
    if suffixes and suffixes[-1] in _TAB_SUFFIXES:
        return "\t"
    return ","


def read_matrix(source: MatrixSource, name: str = "matrix") -> pd.DataFrame:
    """
    Read a gene × sample table.

    Comma-delimited unless the file name ends in ``.tsv``/``.txt``/``.tab``
    (before any compression suffix); compression is inferred.

    Args:
        source: File path or DataFrame (returned as a copy).
        name: Label used in error messages.

    Returns:
        DataFrame indexed by gene id (str) with one column per sample.

    Raises:
        MalformedInputError: If the table has no sample columns or duplicated
            gene identifiers.
    """
    if isinstance(source, pd.DataFrame):
        df = source.copy()
    else:
        path = Path(source)
        df = pd.read_csv(path, sep=_delimiter_for(path), index_col=0, compression="infer")
        logger.debug("Read %s %s: %d genes x %d samples", name, path, df.shape[0], df.shape[1])

    if df.shape[1] == 0:
        raise MalformedInputError(f"{name} has no sample columns")
    df.index = df.index.astype(str)
    df.columns = [str(c).strip() for c in df.columns]
    dups = df.index[df.index.duplicated()].unique().tolist()
    if dups:
        raise MalformedInputError(f"{name} has duplicated gene identifiers: {dups[:10]}")
    return df


def match_samples(df: pd.DataFrame, plan: SamplePlan, name: str = "matrix") -> pd.DataFrame:
    """
    Reorder and relabel columns to the sample plan.

    Columns are looked up by ``sample_id`` and renamed to ``display_name``;
    columns not in the plan are dropped with a warning.

    Raises:
        SampleMismatchError: If a plan sample has no column.
    """
    missing = [s for s in plan.sample_ids if s not in df.columns]
    if missing:
        raise SampleMismatchError(
            f"{name} has no column for samples {missing}", missing=missing
        )
    extra = [c for c in df.columns if c not in set(plan.sample_ids)]
    if extra:
        logger.warning("Ignoring %d %s columns not in the sample plan: %s", len(extra), name, extra)

    out = df.loc[:, plan.sample_ids]
    out.columns = plan.display_names
    return out


def _numeric(df: pd.DataFrame, name: str) -> pd.DataFrame:
    converted = df.apply(pd.to_numeric, errors="coerce")
    if converted.isna().to_numpy().any():
        genes = converted.index[converted.isna().any(axis=1)].tolist()
        raise MalformedInputError(f"{name} has missing or non-numeric values for genes {genes[:10]}")
    return converted


def drop_zero_rows(counts: pd.DataFrame) -> pd.DataFrame:
    """Remove genes whose counts sum to zero across all samples."""
    return counts.loc[counts.sum(axis=1) > 0]


def load_experiment(
    counts: MatrixSource,
    tpm: MatrixSource,
    plan: SamplePlan,
) -> SummarizedExperiment:
    """
    Load raw counts and TPM into one SummarizedExperiment.

    Columns follow the sample plan order and are named by display name.
    Genes with zero total raw count are removed, and the TPM rows are aligned
    to the remaining genes.

    Args:
        counts: Raw count table (path or DataFrame).
        tpm: TPM table (path or DataFrame), same gene/sample identifiers.
        plan: The sample plan.

    Returns:
        SummarizedExperiment with assays ``counts`` (int64) and ``tpm``
        (float64), column_data from the plan and
        ``metadata["n_dropped_zero"]``.

    Raises:
        SampleMismatchError: If a plan sample is missing from either table.
        MalformedInputError: If counts are negative/non-integer, values are
            non-numeric, or a retained gene has no TPM row.
    """
    raw = _numeric(match_samples(read_matrix(counts, "count matrix"), plan, "count matrix"), "count matrix")
    tpm_df = _numeric(match_samples(read_matrix(tpm, "TPM matrix"), plan, "TPM matrix"), "TPM matrix")

    values = raw.to_numpy(dtype=float)
    if (values < 0).any():
        raise MalformedInputError("count matrix has negative values")
    if not np.all(np.mod(values, 1) == 0):
        raise MalformedInputError("count matrix has non-integer values")

    kept = drop_zero_rows(raw)
    n_dropped = raw.shape[0] - kept.shape[0]
    logger.info(
        "Count matrix: %d genes, %d with zero total count removed, %d samples",
        raw.shape[0], n_dropped, kept.shape[1],
    )

    absent = kept.index.difference(tpm_df.index)
    if len(absent) > 0:
        raise MalformedInputError(
            f"TPM matrix has no row for {len(absent)} genes, e.g. {absent[:10].tolist()}"
        )
    tpm_aligned = tpm_df.loc[kept.index]

    gene_ids = kept.index.tolist()
    return SummarizedExperiment(
        assays={
            "counts": kept.to_numpy(dtype=np.int64),
            "tpm": tpm_aligned.to_numpy(dtype=np.float64),
        },
        row_data=BiocFrame({"gene_id": np.asarray(gene_ids, dtype=object)}, row_names=gene_ids),
        column_data=plan.column_data(),
        row_names=gene_ids,
        column_names=plan.display_names,
        metadata={"n_dropped_zero": n_dropped, "n_genes_raw": raw.shape[0]},
    )
