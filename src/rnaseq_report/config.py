"""Run configuration."""

from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

PathLike = Union[str, Path]


@dataclass
class ReportConfig:
    """Configuration for one analysis run.

    The significance convention (``fdr_threshold`` and ``logfc_threshold``)
    is shared by the volcano plot and the headline counts.
    """
    samples: PathLike
    counts: PathLike
    tpm: PathLike
    outdir: PathLike = "results"
    reference: Optional[str] = None
    test: Optional[str] = None
    levels: Optional[List[str]] = None
    tpm_threshold: float = 1.0
    min_samples: int = 1
    n_top: int = 1000
    fdr_threshold: float = 0.05
    logfc_threshold: float = 1.0
    blind_vst: bool = True
    make_plots: bool = True
    renv: Optional[PathLike] = None
    install_missing: bool = False
    results_name: str = "differential_expression.csv"
    figure_names: dict = field(default_factory=lambda: {
        "library_size": "library_size.png",
        "detected_genes": "detected_genes.png",
        "pca": "pca.png",
        "distances": "sample_distances.png",
        "pvalues": "pvalue_histogram.png",
        "volcano": "volcano.png",
    })

    def __post_init__(self):
        if self.tpm_threshold < 0:
            raise ValueError("tpm_threshold must be non-negative")
        if self.min_samples < 1:
            raise ValueError("min_samples must be at least 1")
        if self.n_top < 1:
            raise ValueError("n_top must be positive")
        if not 0 < self.fdr_threshold < 1:
            raise ValueError("fdr_threshold must be in (0, 1)")
        if self.logfc_threshold < 0:
            raise ValueError("logfc_threshold must be non-negative")
        self.outdir = Path(self.outdir)
