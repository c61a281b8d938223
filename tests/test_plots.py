"""Smoke tests for the report figures."""

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import pytest

from rnaseq_report import plots
from rnaseq_report.exploratory import cluster_samples, run_pca

from conftest import CONDITIONS, DISPLAY_NAMES


@pytest.fixture
def log_matrix(simulated_counts):
    return pd.DataFrame(np.log2(simulated_counts + 1.0), columns=DISPLAY_NAMES)


@pytest.fixture
def results_table():
    rng = np.random.default_rng(11)
    p = rng.uniform(size=200)
    p[:10] = 1e-8
    return pd.DataFrame({
        "gene_id": [f"g{i}" for i in range(200)],
        "log_fc": np.r_[np.full(10, 2.0), rng.normal(0, 0.3, 190)],
        "p_value": p,
        "adj_p_value": np.minimum(p * 20, 1.0),
    })


@pytest.fixture(autouse=True)
def close_figures():
    yield
    plt.close("all")


class TestSampleFigures:

    def test_library_size(self, log_matrix, tmp_path):
        path = tmp_path / "library_size.png"
        fig = plots.library_size_barplot(log_matrix, CONDITIONS, save_path=path)
        assert isinstance(fig, plt.Figure)
        assert path.exists()

    def test_detected_genes(self, log_matrix, tmp_path):
        path = tmp_path / "detected.png"
        plots.detected_genes_barplot(log_matrix, CONDITIONS, threshold=8.0, save_path=path)
        assert path.exists()

    def test_pca(self, log_matrix, tmp_path):
        path = tmp_path / "pca.png"
        fig = plots.pca_plot(run_pca(log_matrix), CONDITIONS, save_path=path)
        assert path.exists()
        assert "PC1" in fig.axes[0].get_xlabel()

    def test_distance_heatmap(self, log_matrix, tmp_path):
        path = tmp_path / "distances.png"
        annotations = pd.DataFrame(
            {"condition": CONDITIONS, "replicate": [1, 2, 1, 2]}, index=DISPLAY_NAMES
        )
        fig = plots.distance_heatmap(cluster_samples(log_matrix), annotations, save_path=path)
        assert isinstance(fig, plt.Figure)
        assert path.exists()


class TestResultFigures:

    def test_pvalue_histogram(self, results_table, tmp_path):
        path = tmp_path / "pvalues.png"
        plots.pvalue_histogram(results_table, save_path=path)
        assert path.exists()

    def test_volcano(self, results_table, tmp_path):
        path = tmp_path / "volcano.png"
        fig = plots.volcano_plot(results_table, save_path=path, dpi=72)
        assert path.exists()
        assert "Significant: 10/200" in fig.axes[0].texts[0].get_text()

    def test_volcano_handles_zero_p_values(self, results_table):
        table = results_table.copy()
        table.loc[0, "adj_p_value"] = 0.0
        fig = plots.volcano_plot(table)
        assert isinstance(fig, plt.Figure)
