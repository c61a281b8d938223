"""Tests for count/TPM matrix loading."""

import numpy as np
import pandas as pd
import pytest

from rnaseq_report.errors import MalformedInputError, ReportError, SampleMismatchError
from rnaseq_report.loaders import drop_zero_rows, load_experiment, match_samples, read_matrix

from conftest import DISPLAY_NAMES, N_GENES, SAMPLE_IDS


class TestReadMatrix:
    """Delimiter and compression inference."""

    def test_compressed_csv(self, tmp_path, count_frame):
        path = tmp_path / "counts.csv.gz"
        count_frame.rename_axis("gene_id").to_csv(path)
        df = read_matrix(path)
        assert list(df.columns) == SAMPLE_IDS
        assert df.shape == count_frame.shape
        assert df.loc["GENE0003", "S2"] == count_frame.loc["GENE0003", "S2"]

    def test_tsv(self, tmp_path, tpm_frame):
        path = tmp_path / "tpm.tsv"
        tpm_frame.rename_axis("gene_id").to_csv(path, sep="\t")
        df = read_matrix(path)
        assert list(df.columns) == SAMPLE_IDS
        np.testing.assert_allclose(df.to_numpy(), tpm_frame.to_numpy())

    def test_duplicate_gene_ids(self, tmp_path):
        path = tmp_path / "dups.csv"
        path.write_text("gene_id,S1,S2\nA,1,2\nB,3,4\nA,5,6\n")
        with pytest.raises(MalformedInputError, match="duplicated"):
            read_matrix(path, "count matrix")


class TestMatchSamples:
    """Columns are matched to the plan by sample id."""

    def test_reorders_and_renames(self, count_frame, plan):
        shuffled = count_frame[["S3", "S1", "S4", "S2"]]
        matched = match_samples(shuffled, plan)
        assert list(matched.columns) == DISPLAY_NAMES
        pd.testing.assert_series_equal(
            matched["trt_1"], count_frame["S3"], check_names=False
        )

    def test_extra_columns_dropped(self, count_frame, plan):
        extra = count_frame.assign(S9=1)
        matched = match_samples(extra, plan)
        assert list(matched.columns) == DISPLAY_NAMES

    def test_missing_sample(self, count_frame, plan):
        with pytest.raises(SampleMismatchError) as excinfo:
            match_samples(count_frame.drop(columns=["S2", "S4"]), plan, "count matrix")
        err = excinfo.value
        assert err.missing == ["S2", "S4"]
        assert isinstance(err, KeyError)
        assert isinstance(err, ReportError)
        assert str(err).startswith("count matrix has no column")


class TestLoadExperiment:
    """The combined SummarizedExperiment."""

    def test_shape_and_names(self, experiment):
        assert experiment.shape == (N_GENES, 4)
        assert list(experiment.column_names) == DISPLAY_NAMES
        assert set(experiment.assay_names) == {"counts", "tpm"}

    def test_zero_count_genes_removed(self, experiment):
        counts = np.asarray(experiment.assays["counts"])
        assert (counts.sum(axis=1) > 0).all()
        assert "ZERO0001" not in list(experiment.row_names)
        assert experiment.metadata["n_dropped_zero"] == 2
        assert experiment.metadata["n_genes_raw"] == N_GENES + 2

    def test_assay_types(self, experiment):
        assert np.asarray(experiment.assays["counts"]).dtype == np.int64
        assert np.asarray(experiment.assays["tpm"]).dtype == np.float64

    def test_tpm_aligned_to_counts(self, count_frame, tpm_frame, plan):
        se = load_experiment(count_frame, tpm_frame.iloc[::-1], plan)
        genes = list(se.row_names)
        expected = tpm_frame.loc[genes, SAMPLE_IDS].to_numpy()
        np.testing.assert_allclose(np.asarray(se.assays["tpm"]), expected)

    def test_column_data_from_plan(self, experiment):
        coldata = experiment.get_column_data()
        assert list(coldata["condition"]) == ["ctrl", "ctrl", "trt", "trt"]
        assert list(coldata["replicate"]) == [1, 2, 1, 2]

    def test_from_files(self, input_files, plan):
        se = load_experiment(input_files["counts"], input_files["tpm"], plan)
        assert se.shape == (N_GENES, 4)

    def test_negative_counts(self, count_frame, tpm_frame, plan):
        bad = count_frame.copy()
        bad.iloc[0, 0] = -1
        with pytest.raises(MalformedInputError, match="negative"):
            load_experiment(bad, tpm_frame, plan)

    def test_fractional_counts(self, count_frame, tpm_frame, plan):
        bad = count_frame.astype(float)
        bad.iloc[0, 0] = 2.5
        with pytest.raises(MalformedInputError, match="non-integer"):
            load_experiment(bad, tpm_frame, plan)

    def test_non_numeric_counts(self, count_frame, tpm_frame, plan):
        bad = count_frame.astype(object)
        bad.iloc[3, 1] = "n/a"
        with pytest.raises(MalformedInputError, match="GENE0003"):
            load_experiment(bad, tpm_frame, plan)

    def test_missing_tpm_row(self, count_frame, tpm_frame, plan):
        with pytest.raises(MalformedInputError, match="TPM matrix has no row"):
            load_experiment(count_frame, tpm_frame.drop(index="GENE0000"), plan)

    def test_missing_tpm_row_for_zero_gene_is_fine(self, count_frame, tpm_frame, plan):
        se = load_experiment(count_frame, tpm_frame.drop(index="ZERO0001"), plan)
        assert se.shape == (N_GENES, 4)

    def test_missing_tpm_sample(self, count_frame, tpm_frame, plan):
        with pytest.raises(SampleMismatchError) as excinfo:
            load_experiment(count_frame, tpm_frame.drop(columns="S3"), plan)
        assert excinfo.value.missing == ["S3"]


def test_drop_zero_rows():
    df = pd.DataFrame({"a": [0, 1, 0], "b": [0, 0, 2]}, index=["x", "y", "z"])
    assert list(drop_zero_rows(df).index) == ["y", "z"]
