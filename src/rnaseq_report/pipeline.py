"""
One analysis run, from input files to results table and figures.

All intermediate results live on an :class:`AnalysisRun` instance; a new
run starts from a new instance and never sees state from an earlier one.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Optional

import pandas as pd

from .config import ReportConfig
from .design import Contrast
from .differential import DifferentialResult, run_differential_expression
from .errors import MalformedInputError
from .exploratory import ClusteringResult, PCAResult, assay_frame, cluster_samples, run_pca
from .filtering import FilterResult, filter_expressed
from .loaders import load_experiment
from .logger import get_logger
from .sample_plan import SamplePlan, load_sample_plan

logger = get_logger(__name__)


def resolve_contrast(plan: SamplePlan, reference: Optional[str] = None, test: Optional[str] = None) -> Contrast:
    """
    Pick the contrast.

    Without arguments the first level is the reference and the second the
    test. A missing side defaults to the first level that is not the other
    side.

    Raises:
        MalformedInputError: If the plan has fewer than two conditions or a
            named condition is not a plan level.
    """
    levels = plan.levels
    if len(levels) < 2:
        raise MalformedInputError(f"Need at least two conditions, found {levels}")
    unknown = [str(x) for x in (reference, test) if x is not None and str(x) not in levels]
    if unknown:
        raise MalformedInputError(f"Conditions {unknown} are not in the sample plan levels {levels}")

    if reference is None:
        reference = next(lvl for lvl in levels if lvl != test)
    if test is None:
        test = next(lvl for lvl in levels if lvl != reference)
    return Contrast(test=str(test), reference=str(reference))


@dataclass
class AnalysisRun:
    """Run-scoped context holding the configuration and every stage's output."""
    config: ReportConfig
    plan: Optional[SamplePlan] = None
    experiment: Any = None
    transformed: Any = None
    pca: Optional[PCAResult] = None
    clustering: Optional[ClusteringResult] = None
    filtered: Optional[FilterResult] = None
    contrast: Optional[Contrast] = None
    result: Optional[DifferentialResult] = None
    summary: Optional[Dict[str, Any]] = None

    def prepare_r(self) -> None:
        """Activate the renv (if configured) and check the R packages."""
        from .r_utils import ANALYSIS_R_PACKAGES, activate_renv, ensure_r_dependencies

        if self.config.renv is not None:
            activate_renv(self.config.renv)
        ensure_r_dependencies(ANALYSIS_R_PACKAGES, install=self.config.install_missing)

    def load(self) -> "AnalysisRun":
        cfg = self.config
        self.plan = load_sample_plan(cfg.samples, levels=cfg.levels)
        self.contrast = resolve_contrast(self.plan, cfg.reference, cfg.test)
        self.experiment = load_experiment(cfg.counts, cfg.tpm, self.plan)
        return self

    def explore(self) -> "AnalysisRun":
        from . import deseq2

        self.transformed = deseq2.vst(self.experiment, blind=self.config.blind_vst)
        matrix = assay_frame(self.transformed, "vst")
        self.pca = run_pca(matrix, n_top=self.config.n_top)
        self.clustering = cluster_samples(matrix, method="ward")
        logger.info(
            "PCA: PC1 %d%%, PC2 %d%% variance; cluster order %s",
            *self.pca.rounded_percent(2), self.clustering.order,
        )
        return self

    def filter(self) -> "AnalysisRun":
        self.filtered = filter_expressed(
            self.experiment,
            threshold=self.config.tpm_threshold,
            min_samples=self.config.min_samples,
        )
        return self

    def test(self) -> "AnalysisRun":
        self.result = run_differential_expression(
            self.filtered.experiment,
            self.contrast,
            levels=self.plan.levels,
            fdr_threshold=self.config.fdr_threshold,
        )
        return self

    def render(self) -> "AnalysisRun":
        from . import report

        cfg = self.config
        outdir = cfg.outdir
        outdir.mkdir(parents=True, exist_ok=True)
        report.export_results_csv(self.result, outdir / cfg.results_name)

        self.summary = {
            "n_samples": len(self.plan),
            "n_genes_raw": int(self.experiment.metadata.get("n_genes_raw", self.experiment.shape[0])),
            "n_genes_nonzero": int(self.experiment.shape[0]),
            "n_genes_expressed": self.filtered.n_after,
            "tpm_threshold": cfg.tpm_threshold,
            "pca_percent_variance": self.pca.rounded_percent(2),
            **report.summarize_results(self.result, cfg.fdr_threshold, cfg.logfc_threshold),
        }
        report.write_summary(self.summary, outdir / "summary.json")

        if cfg.make_plots:
            self._render_figures()
        logger.info(
            "%s: %d significant (%d up, %d down) of %d tested",
            self.summary["contrast"], self.summary["significant"],
            self.summary["up"], self.summary["down"], self.summary["tested"],
        )
        return self

    def _render_figures(self) -> None:
        import matplotlib.pyplot as plt
        from . import plots

        cfg = self.config
        names = cfg.figure_names
        conditions = self.plan.conditions
        counts = assay_frame(self.experiment, "counts")
        tpm = assay_frame(self.experiment, "tpm")
        annotations = pd.DataFrame(
            {"condition": conditions, "replicate": self.plan.replicates},
            index=self.plan.display_names,
        )
        table = self.result.table

        figures = [
            plots.library_size_barplot(counts, conditions, save_path=cfg.outdir / names["library_size"]),
            plots.detected_genes_barplot(tpm, conditions, cfg.tpm_threshold,
                                         save_path=cfg.outdir / names["detected_genes"]),
            plots.pca_plot(self.pca, conditions, save_path=cfg.outdir / names["pca"]),
            plots.distance_heatmap(self.clustering, annotations, save_path=cfg.outdir / names["distances"]),
            plots.pvalue_histogram(table, save_path=cfg.outdir / names["pvalues"]),
            plots.volcano_plot(
                table,
                fdr_threshold=cfg.fdr_threshold,
                logfc_threshold=cfg.logfc_threshold,
                title=f"Differential expression: {self.contrast.test} vs {self.contrast.reference}",
                save_path=cfg.outdir / names["volcano"],
            ),
        ]
        for fig in figures:
            plt.close(fig)

    def run(self) -> "AnalysisRun":
        """Execute every stage in order; any error aborts the run.

        Inputs are validated before R is started.
        """
        self.load()
        self.prepare_r()
        return self.explore().filter().test().render()


def run_analysis(config: ReportConfig) -> AnalysisRun:
    """Run the full analysis in a fresh context."""
    return AnalysisRun(config=config).run()
