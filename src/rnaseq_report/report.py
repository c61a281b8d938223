"""
Result export and headline numbers.
"""

from __future__ import annotations
import csv
import json
from pathlib import Path
from typing import Any, Dict, Union

import pandas as pd

from .differential import RESULT_COLUMNS, DifferentialResult
from .logger import get_logger

logger = get_logger(__name__)


def significance_mask(
    results: pd.DataFrame,
    fdr_threshold: float = 0.05,
    logfc_threshold: float = 1.0,
    logfc_col: str = "log_fc",
    fdr_col: str = "adj_p_value",
) -> pd.Series:
    """True where adjusted p < fdr_threshold and |log2 FC| > logfc_threshold."""
    return (results[fdr_col] < fdr_threshold) & (results[logfc_col].abs() > logfc_threshold)


def summarize_results(
    result: DifferentialResult,
    fdr_threshold: float = 0.05,
    logfc_threshold: float = 1.0,
) -> Dict[str, Any]:
    """Headline counts for the report."""
    table = result.table
    sig = significance_mask(table, fdr_threshold, logfc_threshold)
    return {
        "contrast": result.contrast.name,
        "fdr_threshold": fdr_threshold,
        "logfc_threshold": logfc_threshold,
        "tested": int(len(table)),
        "significant": int(sig.sum()),
        "up": int((sig & (table["log_fc"] > 0)).sum()),
        "down": int((sig & (table["log_fc"] < 0)).sum()),
    }


def export_results_csv(result: DifferentialResult, path: Union[str, Path]) -> Path:
    """
    Write the full result table as CSV.

    Columns gene_id, log_fc, ave_expr, t_statistic, p_value, adj_p_value in
    adjusted p-value order; fields unquoted, no row index.
    """
    path = Path(path)
    result.table.loc[:, RESULT_COLUMNS].to_csv(
        path, index=False, quoting=csv.QUOTE_NONE, escapechar="\\",
    )
    logger.info("Wrote %d rows to %s", len(result), path)
    return path


def write_summary(summary: Dict[str, Any], path: Union[str, Path]) -> Path:
    """Write run summary numbers as JSON."""
    path = Path(path)
    with open(path, "w", encoding="utf-8") as handle:
        json.dump(summary, handle, indent=2, sort_keys=True)
    return path
