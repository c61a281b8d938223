"""
Exploratory analysis of a variance-stabilized matrix.

PCA on the most variable genes and Ward clustering of samples on all genes.
Both take a genes × samples matrix (NumPy array, DataFrame, or an assay of a
SummarizedExperiment via :func:`assay_frame`).
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence

import numpy as np
import pandas as pd
from scipy.cluster import hierarchy
from scipy.spatial import distance

from .logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class PCAResult:
    """Principal components of the sample × gene matrix.

    Attributes:
        scores: Samples × components DataFrame (columns ``PC1``, ``PC2``, ...).
        percent_variance: Percentage of total variance per component.
        genes: Genes the decomposition was computed on.
    """
    scores: pd.DataFrame
    percent_variance: np.ndarray
    genes: List[str]

    def rounded_percent(self, n: int = 2) -> List[int]:
        """Display values: percent variance of the first ``n`` components, rounded."""
        return [int(round(v)) for v in self.percent_variance[:n]]


@dataclass(frozen=True)
class ClusteringResult:
    """Sample distances and their hierarchical clustering.

    Attributes:
        distances: Square samples × samples Euclidean distance DataFrame.
        linkage: SciPy linkage matrix.
        order: Sample names in dendrogram leaf order.
        method: Linkage method.
    """
    distances: pd.DataFrame
    linkage: np.ndarray
    order: List[str]
    method: str


def assay_frame(se: Any, assay: str) -> pd.DataFrame:
    """Genes × samples DataFrame view of an assay."""
    if assay not in se.assay_names:
        raise KeyError(f"Assay '{assay}' not found. Available assays: {list(se.assay_names)}")
    return pd.DataFrame(
        np.asarray(se.assays[assay], dtype=float),
        index=[str(x) for x in se.row_names],
        columns=[str(x) for x in se.column_names],
    )


def _as_frame(matrix: Any, samples: Optional[Sequence[str]] = None) -> pd.DataFrame:
    if isinstance(matrix, pd.DataFrame):
        return matrix.astype(float)
    arr = np.asarray(matrix, dtype=float)
    if arr.ndim != 2:
        raise ValueError(f"Expected a 2D genes x samples matrix, got shape {arr.shape}")
    columns = list(samples) if samples is not None else [f"S{i + 1}" for i in range(arr.shape[1])]
    return pd.DataFrame(arr, index=[f"G{i + 1}" for i in range(arr.shape[0])], columns=columns)


def top_variable_genes(matrix: pd.DataFrame, n_top: int = 1000) -> pd.DataFrame:
    """Rows with the highest variance across samples, ties kept in input order."""
    variances = matrix.var(axis=1, ddof=1).to_numpy()
    order = np.argsort(-variances, kind="stable")[: min(n_top, matrix.shape[0])]
    return matrix.iloc[np.sort(order)]


def run_pca(
    matrix: Any,
    n_top: int = 1000,
    samples: Optional[Sequence[str]] = None,
) -> PCAResult:
    """
    PCA of samples on the ``n_top`` most variable genes.

    Each gene is centered across samples; the centered samples × genes matrix
    is decomposed by SVD. Component k explains
    ``s_k**2 / sum(s**2) * 100`` percent of the variance.

    Args:
        matrix: Genes × samples transformed expression.
        n_top: Number of highest-variance genes. Default: 1000.
        samples: Sample names when ``matrix`` is a bare array.

    Returns:
        PCAResult with scores on all components.
    """
    if n_top < 1:
        raise ValueError("n_top must be positive")
    frame = _as_frame(matrix, samples)
    if frame.shape[1] < 2:
        raise ValueError("PCA needs at least two samples")

    selected = top_variable_genes(frame, n_top)
    x = selected.to_numpy().T
    x = x - x.mean(axis=0, keepdims=True)

    u, s, _ = np.linalg.svd(x, full_matrices=False)
    eigen = s ** 2
    total = eigen.sum()
    percent = eigen / total * 100.0 if total > 0 else np.zeros_like(eigen)

    scores = pd.DataFrame(
        u * s,
        index=frame.columns,
        columns=[f"PC{i + 1}" for i in range(s.size)],
    )
    logger.debug(
        "PCA on %d genes: PC1 %.1f%%, PC2 %.1f%%",
        selected.shape[0], percent[0], percent[1] if percent.size > 1 else 0.0,
    )
    return PCAResult(scores=scores, percent_variance=percent, genes=selected.index.tolist())


def cluster_samples(
    matrix: Any,
    method: str = "ward",
    samples: Optional[Sequence[str]] = None,
) -> ClusteringResult:
    """
    Euclidean sample distances on all genes and agglomerative clustering.

    Args:
        matrix: Genes × samples transformed expression.
        method: SciPy linkage method. Default: "ward" (minimum variance).
        samples: Sample names when ``matrix`` is a bare array.

    Returns:
        ClusteringResult with the distance matrix, linkage and leaf order.
    """
    frame = _as_frame(matrix, samples)
    if frame.shape[1] < 2:
        raise ValueError("Clustering needs at least two samples")

    condensed = distance.pdist(frame.to_numpy().T, metric="euclidean")
    linkage = hierarchy.linkage(condensed, method=method)
    names = [str(c) for c in frame.columns]
    order = [names[i] for i in hierarchy.leaves_list(linkage)]
    distances = pd.DataFrame(distance.squareform(condensed), index=names, columns=names)
    return ClusteringResult(distances=distances, linkage=linkage, order=order, method=method)
