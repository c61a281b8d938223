"""rnaseq_report: reproducible RNA-seq differential expression report.

Loads a sample plan, a raw count matrix and a TPM matrix, runs DESeq2
variance stabilization with PCA and Ward clustering for exploration, filters
to expressed genes and tests one condition contrast with edgeR TMM +
limma-voom.

The R-backed subpackages are not imported here, so loading, filtering and
plotting work without R:

    >>> from rnaseq_report import load_sample_plan, load_experiment, filter_expressed
    >>> plan = load_sample_plan("samples.csv")
    >>> se = load_experiment("counts.csv.gz", "tpm.csv.gz", plan)
    >>> filtered = filter_expressed(se, threshold=1.0)
    >>> import rnaseq_report.limma  # checks the limma R package
"""

from __future__ import annotations

__version__ = "0.1.0"

from .config import ReportConfig
from .design import Contrast, build_design, check_full_rank
from .differential import DifferentialResult, run_differential_expression
from .errors import (
    DesignRankDeficientError,
    MalformedInputError,
    ReportError,
    SampleMismatchError,
)
from .exploratory import ClusteringResult, PCAResult, assay_frame, cluster_samples, run_pca
from .filtering import FilterResult, filter_expressed
from .loaders import load_experiment, read_matrix
from .pipeline import AnalysisRun, run_analysis
from .sample_plan import SamplePlan, load_sample_plan

__all__ = [
    "AnalysisRun",
    "ClusteringResult",
    "Contrast",
    "DesignRankDeficientError",
    "DifferentialResult",
    "FilterResult",
    "MalformedInputError",
    "PCAResult",
    "ReportConfig",
    "ReportError",
    "SampleMismatchError",
    "SamplePlan",
    "assay_frame",
    "build_design",
    "check_full_rank",
    "cluster_samples",
    "filter_expressed",
    "load_experiment",
    "load_sample_plan",
    "read_matrix",
    "run_analysis",
    "run_differential_expression",
    "run_pca",
]
