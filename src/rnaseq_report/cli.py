"""
Command line entry point.

Usage examples:
  rnaseq-report --samples sample_plan.csv --counts raw_counts.csv.gz \\
      --tpm tpm.csv.gz --reference untreated --test EGF --outdir results
  rnaseq-report ... --lfc 1.5 --no-plots --install-missing

Outputs in --outdir:
- differential_expression.csv (ranked results, unquoted, no index)
- summary.json (gene counts, PCA variance, headline DE counts)
- library_size.png, detected_genes.png, pca.png, sample_distances.png,
  pvalue_histogram.png, volcano.png (unless --no-plots)
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from .config import ReportConfig
from .errors import ReportError
from .logger import get_logger, set_level

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rnaseq-report",
        description="Exploratory analysis and limma-voom differential expression "
                    "for a two-condition RNA-seq experiment.",
    )
    parser.add_argument("--samples", required=True,
                        help="Sample plan table (sample_id, condition, replicate[, display_name])")
    parser.add_argument("--counts", required=True, help="Raw count matrix (genes x samples)")
    parser.add_argument("--tpm", required=True, help="TPM matrix (genes x samples)")
    parser.add_argument("--outdir", default="results", help="Output directory (default: results)")
    parser.add_argument("--reference", help="Reference condition (default: first in sample plan)")
    parser.add_argument("--test", help="Test condition (default: second in sample plan)")
    parser.add_argument("--levels", help="Comma-separated condition level order")
    parser.add_argument("--tpm-threshold", type=float, default=1.0,
                        help="Minimum TPM for a gene to count as expressed (default: 1.0)")
    parser.add_argument("--min-samples", type=int, default=1,
                        help="Samples that must reach --tpm-threshold (default: 1)")
    parser.add_argument("--n-top", type=int, default=1000,
                        help="Most variable genes used for PCA (default: 1000)")
    parser.add_argument("--fdr", type=float, default=0.05,
                        help="Adjusted p-value cutoff for significance (default: 0.05)")
    parser.add_argument("--lfc", type=float, default=1.0,
                        help="|log2 fold change| cutoff for significance (default: 1.0)")
    parser.add_argument("--no-blind", action="store_true",
                        help="Use the condition design for the variance-stabilizing transform")
    parser.add_argument("--no-plots", action="store_true", help="Skip figure rendering")
    parser.add_argument("--renv", help="Activate the renv project in this directory first")
    parser.add_argument("--install-missing", action="store_true",
                        help="Install missing Bioconductor packages via BiocManager")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def config_from_args(args: argparse.Namespace) -> ReportConfig:
    levels = [x.strip() for x in args.levels.split(",") if x.strip()] if args.levels else None
    return ReportConfig(
        samples=args.samples,
        counts=args.counts,
        tpm=args.tpm,
        outdir=args.outdir,
        reference=args.reference,
        test=args.test,
        levels=levels,
        tpm_threshold=args.tpm_threshold,
        min_samples=args.min_samples,
        n_top=args.n_top,
        fdr_threshold=args.fdr,
        logfc_threshold=args.lfc,
        blind_vst=not args.no_blind,
        make_plots=not args.no_plots,
        renv=args.renv,
        install_missing=args.install_missing,
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.verbose:
        set_level(logging.DEBUG)

    from .pipeline import run_analysis

    try:
        config = config_from_args(args)
        run = run_analysis(config)
    except (ReportError, ValueError, ImportError, OSError) as exc:
        print(f"rnaseq-report: error: {exc}", file=sys.stderr)
        return 2

    logger.info("Results written to %s", run.config.outdir)
    return 0


if __name__ == "__main__":
    sys.exit(main())
