"""
Shared fixtures: a simulated two-condition experiment.

100 genes x 4 samples (ctrl_1, ctrl_2, trt_1, trt_2). The first 10 genes are
4-fold up in ``trt``; every other gene is drawn from the same distribution
in both conditions.
"""

import numpy as np
import pandas as pd
import pytest

from rnaseq_report.loaders import load_experiment
from rnaseq_report.sample_plan import load_sample_plan

N_GENES = 100
N_DE = 10
N_LOW_TPM = 5
SAMPLE_IDS = ["S1", "S2", "S3", "S4"]
DISPLAY_NAMES = ["ctrl_1", "ctrl_2", "trt_1", "trt_2"]
CONDITIONS = ["ctrl", "ctrl", "trt", "trt"]


def gene_ids(n=N_GENES):
    return [f"GENE{i:04d}" for i in range(n)]


def simulate_counts(seed=7, n_genes=N_GENES, n_de=N_DE, fold=4, size=50.0):
    """Negative binomial counts, genes x [ctrl_1, ctrl_2, trt_1, trt_2].

    Every count is an independent NB(mean, size) draw; the ``trt`` mean is
    ``fold`` times the ``ctrl`` mean for the first ``n_de`` genes.
    """
    rng = np.random.default_rng(seed)
    mu = rng.uniform(200, 500, size=n_genes)
    mu_trt = mu.copy()
    mu_trt[:n_de] *= fold
    ctrl = rng.negative_binomial(size, size / (size + mu[:, None]), size=(n_genes, 2))
    trt = rng.negative_binomial(size, size / (size + mu_trt[:, None]), size=(n_genes, 2))
    return np.hstack([ctrl, trt]).astype(np.int64)


@pytest.fixture
def sample_plan_frame():
    return pd.DataFrame({
        "sample_id": SAMPLE_IDS,
        "display_name": DISPLAY_NAMES,
        "condition": CONDITIONS,
        "replicate": [1, 2, 1, 2],
    })


@pytest.fixture
def plan(sample_plan_frame):
    return load_sample_plan(sample_plan_frame)


@pytest.fixture
def simulated_counts():
    return simulate_counts()


@pytest.fixture
def count_frame(simulated_counts):
    """Raw counts keyed by sample id, plus two genes with no reads."""
    df = pd.DataFrame(simulated_counts, index=gene_ids(), columns=SAMPLE_IDS)
    zeros = pd.DataFrame(0, index=["ZERO0001", "ZERO0002"], columns=SAMPLE_IDS)
    return pd.concat([df, zeros])


@pytest.fixture
def tpm_frame(count_frame):
    """TPM-like values; the last simulated genes stay below 1 TPM everywhere."""
    tpm = count_frame / count_frame.sum(axis=0) * 1e6
    low = gene_ids()[-N_LOW_TPM:]
    tpm.loc[low, :] = 0.5
    return tpm.astype(float)


@pytest.fixture
def experiment(count_frame, tpm_frame, plan):
    return load_experiment(count_frame, tpm_frame, plan)


@pytest.fixture
def input_files(tmp_path, sample_plan_frame, count_frame, tpm_frame):
    """The simulated inputs written the way a user would hand them over."""
    samples = tmp_path / "sample_plan.csv"
    counts = tmp_path / "raw_counts.csv.gz"
    tpm = tmp_path / "tpm.tsv"
    sample_plan_frame.to_csv(samples, index=False)
    count_frame.rename_axis("gene_id").to_csv(counts)
    tpm_frame.rename_axis("gene_id").to_csv(tpm, sep="\t")
    return {"samples": samples, "counts": counts, "tpm": tpm}


@pytest.fixture(scope="session")
def r_packages():
    """Skip when rpy2, R or the Bioconductor packages are unavailable."""
    pytest.importorskip("rpy2")
    try:
        from rnaseq_report.r_utils import ANALYSIS_R_PACKAGES, missing_r_packages
        missing = missing_r_packages(ANALYSIS_R_PACKAGES)
    except Exception as exc:  # R itself may fail to start
        pytest.skip(f"R is not available: {exc}")
    if missing:
        pytest.skip(f"Missing R packages: {missing}")
    return True
