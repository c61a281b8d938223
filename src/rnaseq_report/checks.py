"""
Argument checks shared by the R wrappers (deseq2, edger, limma).

They raise builtin exceptions: these are API misuse, not bad input files.
"""

from __future__ import annotations
from typing import Any, Optional

import pandas as pd


def check_se(se: Any, name: str = "se") -> None:
    """Raise TypeError unless ``se`` looks like a SummarizedExperiment."""
    lacking = [attr for attr in ("assays", "assay_names", "column_names") if not hasattr(se, attr)]
    if lacking:
        raise TypeError(
            f"`{name}` must be a SummarizedExperiment, "
            f"{type(se).__name__} has no {', '.join(lacking)}"
        )


def check_assay_exists(se: Any, assay: str) -> None:
    if assay not in se.assay_names:
        raise KeyError(
            f"Assay '{assay}' not found. Available assays: {list(se.assay_names)}"
        )


def check_r_assay(se: Any, assay: str) -> None:
    """Raise unless ``assay`` exists and is backed by an R matrix."""
    from .r_init import check_r_initialized
    check_r_initialized(se, assay)


def check_column(se: Any, column: str) -> None:
    """Raise KeyError unless column_data has ``column``."""
    coldata = se.get_column_data()
    if coldata is None or column not in coldata.column_names:
        raise KeyError(f"Column '{column}' not found in column_data.")


def check_design(design: Any, n_samples: Optional[int] = None) -> None:
    """A design is a samples × coefficients DataFrame, one row per sample."""
    if not isinstance(design, pd.DataFrame):
        raise TypeError(f"`design` must be a pandas DataFrame, got {type(design).__name__}")
    if n_samples is not None and len(design) != n_samples:
        raise ValueError(
            f"Design matrix has {len(design)} rows for {n_samples} samples"
        )
