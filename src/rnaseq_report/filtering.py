"""
Filter genes by TPM expression.

A gene is kept when its TPM reaches ``threshold`` in at least
``min_samples`` samples. The filter reads the ``tpm`` assay and subsets the
whole experiment, so raw counts and TPM stay aligned.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, TypeVar

import numpy as np

from .logger import get_logger

logger = get_logger(__name__)

SE = TypeVar("SE")


@dataclass(frozen=True)
class FilterResult:
    """Outcome of :func:`filter_expressed`.

    Attributes:
        experiment: Experiment restricted to the retained genes.
        mask: Boolean mask over the input genes (True = retained).
        n_before: Gene count before filtering (N).
        n_after: Gene count after filtering (N_f).
        threshold: TPM threshold used.
        min_samples: Number of qualifying samples required.
    """
    experiment: Any
    mask: np.ndarray
    n_before: int
    n_after: int
    threshold: float
    min_samples: int

    @property
    def retained_genes(self) -> list:
        return list(self.experiment.row_names)


def expressed_mask(tpm: Any, threshold: float = 1.0, min_samples: int = 1) -> np.ndarray:
    """Boolean mask of genes with TPM >= threshold in >= min_samples samples."""
    if min_samples < 1:
        raise ValueError("min_samples must be at least 1")
    tpm = np.asarray(tpm, dtype=float)
    return (tpm >= threshold).sum(axis=1) >= min_samples


def filter_expressed(
    se: SE,
    threshold: float = 1.0,
    min_samples: int = 1,
    assay: str = "tpm",
) -> FilterResult:
    """
    Keep genes expressed above a TPM threshold.

    Args:
        se: SummarizedExperiment with a TPM assay.
        threshold: Minimum TPM. Default: 1.0.
        min_samples: Samples that must reach the threshold. Default: 1.
        assay: Name of the TPM assay. Default: "tpm".

    Returns:
        FilterResult with the filtered experiment, preserving row and column order.

    Raises:
        KeyError: If the assay does not exist.
    """
    if assay not in se.assay_names:
        raise KeyError(f"Assay '{assay}' not found. Available assays: {list(se.assay_names)}")

    mask = expressed_mask(se.assays[assay], threshold=threshold, min_samples=min_samples)
    filtered = se[mask, :]
    n_before, n_after = int(mask.size), int(mask.sum())
    logger.info(
        "Expression filter (TPM >= %g in >= %d samples): %d of %d genes retained",
        threshold, min_samples, n_after, n_before,
    )
    return FilterResult(
        experiment=filtered,
        mask=mask,
        n_before=n_before,
        n_after=n_after,
        threshold=threshold,
        min_samples=min_samples,
    )
