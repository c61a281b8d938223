"""Tests for PCA and sample clustering."""

import numpy as np
import pandas as pd
import pytest
from scipy.cluster import hierarchy

from rnaseq_report.exploratory import (
    ClusteringResult,
    PCAResult,
    assay_frame,
    cluster_samples,
    run_pca,
    top_variable_genes,
)

from conftest import DISPLAY_NAMES, N_DE


@pytest.fixture
def log_matrix(simulated_counts):
    return pd.DataFrame(
        np.log2(simulated_counts + 1.0),
        index=[f"G{i}" for i in range(simulated_counts.shape[0])],
        columns=DISPLAY_NAMES,
    )


@pytest.fixture
def grouped_matrix():
    """Two clear groups of three samples each."""
    rng = np.random.default_rng(3)
    x = rng.normal(8.0, 0.2, size=(50, 6))
    x[:, 3:] += 3.0
    return pd.DataFrame(x, columns=["a1", "a2", "a3", "b1", "b2", "b3"])


class TestTopVariableGenes:

    def test_picks_highest_variance_in_input_order(self):
        df = pd.DataFrame(
            [[0, 0], [0, 10], [0, 1], [0, 5]],
            index=["flat", "big", "small", "mid"],
            dtype=float,
        )
        assert top_variable_genes(df, 2).index.tolist() == ["big", "mid"]

    def test_n_top_larger_than_matrix(self, log_matrix):
        assert top_variable_genes(log_matrix, 10_000).shape == log_matrix.shape


class TestRunPCA:

    def test_percent_variance(self, log_matrix):
        pca = run_pca(log_matrix)
        assert isinstance(pca, PCAResult)
        assert (pca.percent_variance >= 0).all()
        assert pca.percent_variance.sum() <= 100.0 + 1e-6
        assert np.all(np.diff(pca.percent_variance) <= 1e-9)

    def test_scores_indexed_by_sample(self, log_matrix):
        pca = run_pca(log_matrix)
        assert pca.scores.index.tolist() == DISPLAY_NAMES
        assert pca.scores.columns[0] == "PC1"

    def test_n_top_restricts_genes(self, log_matrix):
        pca = run_pca(log_matrix, n_top=N_DE)
        assert len(pca.genes) == N_DE
        # the 4-fold genes dominate the variance
        assert set(pca.genes) == {f"G{i}" for i in range(N_DE)}

    def test_pc1_separates_conditions(self, log_matrix):
        pc1 = run_pca(log_matrix, n_top=N_DE).scores["PC1"]
        ctrl, trt = pc1[["ctrl_1", "ctrl_2"]], pc1[["trt_1", "trt_2"]]
        assert np.sign(ctrl).nunique() == 1
        assert np.sign(trt).nunique() == 1
        assert np.sign(ctrl.iloc[0]) != np.sign(trt.iloc[0])

    def test_rounded_percent(self):
        pca = PCAResult(
            scores=pd.DataFrame(),
            percent_variance=np.array([61.6, 20.4, 18.0]),
            genes=[],
        )
        assert pca.rounded_percent() == [62, 20]

    def test_bare_array_with_sample_names(self, log_matrix):
        pca = run_pca(log_matrix.to_numpy(), samples=["a", "b", "c", "d"])
        assert pca.scores.index.tolist() == ["a", "b", "c", "d"]

    def test_needs_two_samples(self):
        with pytest.raises(ValueError):
            run_pca(np.ones((5, 1)))


class TestClusterSamples:

    def test_distances(self, grouped_matrix):
        result = cluster_samples(grouped_matrix)
        assert isinstance(result, ClusteringResult)
        d = result.distances.to_numpy()
        np.testing.assert_allclose(d, d.T)
        np.testing.assert_allclose(np.diag(d), 0.0)
        assert result.method == "ward"

    def test_order_is_permutation(self, grouped_matrix):
        result = cluster_samples(grouped_matrix)
        assert sorted(result.order) == sorted(grouped_matrix.columns)
        assert result.linkage.shape == (5, 4)

    def test_two_clusters_match_groups(self, grouped_matrix):
        result = cluster_samples(grouped_matrix)
        labels = hierarchy.fcluster(result.linkage, 2, criterion="maxclust")
        assert len(set(labels[:3])) == 1
        assert len(set(labels[3:])) == 1
        assert labels[0] != labels[3]

    def test_needs_two_samples(self):
        with pytest.raises(ValueError):
            cluster_samples(np.ones((5, 1)))


def test_assay_frame(experiment):
    df = assay_frame(experiment, "counts")
    assert df.columns.tolist() == DISPLAY_NAMES
    assert df.shape == experiment.shape
    with pytest.raises(KeyError):
        assay_frame(experiment, "vst")
