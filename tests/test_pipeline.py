"""Tests for the run configuration, the analysis run and the command line."""

import json

import pandas as pd
import pytest

from rnaseq_report.cli import build_parser, config_from_args, main
from rnaseq_report.config import ReportConfig
from rnaseq_report.differential import RESULT_COLUMNS
from rnaseq_report.errors import MalformedInputError, SampleMismatchError
from rnaseq_report.pipeline import AnalysisRun, resolve_contrast, run_analysis
from rnaseq_report.sample_plan import load_sample_plan

from conftest import N_GENES, N_LOW_TPM


def make_config(input_files, outdir, **kwargs):
    return ReportConfig(
        samples=input_files["samples"],
        counts=input_files["counts"],
        tpm=input_files["tpm"],
        outdir=outdir,
        **kwargs
    )


class TestReportConfig:

    def test_defaults(self, input_files, tmp_path):
        config = make_config(input_files, tmp_path / "out")
        assert config.tpm_threshold == 1.0
        assert config.fdr_threshold == 0.05
        assert config.logfc_threshold == 1.0
        assert config.blind_vst is True
        assert config.outdir == tmp_path / "out"

    @pytest.mark.parametrize("field, value", [
        ("tpm_threshold", -1.0),
        ("min_samples", 0),
        ("n_top", 0),
        ("fdr_threshold", 1.5),
        ("logfc_threshold", -0.5),
    ])
    def test_invalid_values(self, input_files, tmp_path, field, value):
        with pytest.raises(ValueError):
            make_config(input_files, tmp_path, **{field: value})


class TestResolveContrast:

    def test_defaults_to_first_two_levels(self, plan):
        contrast = resolve_contrast(plan)
        assert (contrast.test, contrast.reference) == ("trt", "ctrl")

    def test_explicit_reference(self, plan):
        contrast = resolve_contrast(plan, reference="trt")
        assert (contrast.test, contrast.reference) == ("ctrl", "trt")

    def test_first_level_as_test(self, plan):
        contrast = resolve_contrast(plan, test="ctrl")
        assert (contrast.test, contrast.reference) == ("ctrl", "trt")

    def test_explicit_both(self, plan):
        contrast = resolve_contrast(plan, reference="trt", test="ctrl")
        assert contrast.name == "ctrl-trt"

    @pytest.mark.parametrize("kwargs", [
        {"reference": "EGF"},
        {"test": "EGF"},
        {"reference": "ctrl", "test": "EGF"},
    ])
    def test_unknown_condition(self, plan, kwargs):
        with pytest.raises(MalformedInputError, match="EGF"):
            resolve_contrast(plan, **kwargs)

    def test_same_condition_twice(self, plan):
        with pytest.raises(MalformedInputError, match="itself"):
            resolve_contrast(plan, reference="ctrl", test="ctrl")

    def test_unknown_reference_fails_on_load(self, input_files, tmp_path):
        config = make_config(input_files, tmp_path, reference="EGF")
        with pytest.raises(MalformedInputError, match="EGF"):
            AnalysisRun(config).load()

    def test_single_condition(self, sample_plan_frame):
        plan = load_sample_plan(sample_plan_frame.assign(condition="ctrl"))
        with pytest.raises(MalformedInputError, match="two conditions"):
            resolve_contrast(plan)


class TestAnalysisRunLoad:
    """Stages that do not need R."""

    def test_load_and_filter(self, input_files, tmp_path):
        run = AnalysisRun(make_config(input_files, tmp_path)).load().filter()
        assert run.experiment.shape == (N_GENES, 4)
        assert run.filtered.n_after == N_GENES - N_LOW_TPM
        assert run.contrast.name == "trt-ctrl"
        assert run.result is None

    def test_runs_do_not_share_state(self, input_files, tmp_path):
        first = AnalysisRun(make_config(input_files, tmp_path)).load()
        second = AnalysisRun(make_config(input_files, tmp_path))
        assert first.plan is not None
        assert second.plan is None

    def test_mismatched_samples(self, input_files, tmp_path):
        counts = pd.read_csv(input_files["counts"], index_col=0).drop(columns="S4")
        counts.to_csv(input_files["counts"])
        with pytest.raises(SampleMismatchError):
            AnalysisRun(make_config(input_files, tmp_path)).load()


class TestCommandLine:

    def test_parser(self):
        args = build_parser().parse_args([
            "--samples", "s.csv", "--counts", "c.csv", "--tpm", "t.csv",
            "--levels", "ctrl, trt", "--lfc", "1.5", "--no-blind", "--no-plots",
        ])
        config = config_from_args(args)
        assert config.levels == ["ctrl", "trt"]
        assert config.logfc_threshold == 1.5
        assert config.blind_vst is False
        assert config.make_plots is False
        assert str(config.outdir) == "results"

    def test_required_arguments(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--samples", "s.csv"])

    def test_malformed_plan_exits_with_2(self, input_files, tmp_path, capsys):
        bad = tmp_path / "bad_plan.csv"
        bad.write_text("sample_id,condition\nS1,ctrl\n")
        code = main([
            "--samples", str(bad),
            "--counts", str(input_files["counts"]),
            "--tpm", str(input_files["tpm"]),
            "--outdir", str(tmp_path / "out"),
        ])
        assert code == 2
        assert "replicate" in capsys.readouterr().err

    def test_missing_file_exits_with_2(self, input_files, tmp_path, capsys):
        code = main([
            "--samples", str(input_files["samples"]),
            "--counts", str(tmp_path / "nope.csv"),
            "--tpm", str(input_files["tpm"]),
        ])
        assert code == 2
        assert "error" in capsys.readouterr().err


@pytest.mark.usefixtures("r_packages")
class TestFullRun:

    def test_outputs(self, input_files, tmp_path):
        outdir = tmp_path / "report"
        run = run_analysis(make_config(input_files, outdir))

        table = pd.read_csv(outdir / "differential_expression.csv")
        assert table.columns.tolist() == RESULT_COLUMNS
        assert len(table) == N_GENES - N_LOW_TPM
        assert table["adj_p_value"].is_monotonic_increasing

        summary = json.loads((outdir / "summary.json").read_text())
        assert summary["n_genes_raw"] == N_GENES + 2
        assert summary["n_genes_nonzero"] == N_GENES
        assert summary["n_genes_expressed"] == N_GENES - N_LOW_TPM
        assert summary["contrast"] == "trt-ctrl"
        assert summary["significant"] >= 9
        assert summary["up"] == summary["significant"]
        assert len(summary["pca_percent_variance"]) == 2

        for name in run.config.figure_names.values():
            assert (outdir / name).exists()

    def test_cli_no_plots(self, input_files, tmp_path):
        outdir = tmp_path / "cli"
        code = main([
            "--samples", str(input_files["samples"]),
            "--counts", str(input_files["counts"]),
            "--tpm", str(input_files["tpm"]),
            "--outdir", str(outdir),
            "--reference", "ctrl", "--test", "trt",
            "--no-plots",
        ])
        assert code == 0
        assert (outdir / "differential_expression.csv").exists()
        assert not (outdir / "volcano.png").exists()
