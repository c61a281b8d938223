"""Diagnostic plots for the report.

Every function takes plain tables (DataFrames, analysis result objects),
returns the matplotlib Figure and saves it when ``save_path`` is given.
"""

from __future__ import annotations
from pathlib import Path
from typing import Optional, Sequence, Union

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns

from .exploratory import ClusteringResult, PCAResult
from .logger import get_logger

logger = get_logger(__name__)

PathLike = Union[str, Path]

TEXT_COLOR = "#2c3e50"
SIG_COLOR = "#e74c3c"
NONSIG_COLOR = "#95a5a6"


def _save(fig: plt.Figure, save_path: Optional[PathLike], dpi: int = 150) -> None:
    if save_path:
        fig.savefig(save_path, dpi=dpi, bbox_inches="tight", facecolor="white")
        logger.info("Figure saved to: %s", save_path)


def _condition_palette(conditions: Sequence[str]) -> dict:
    levels = list(pd.unique(pd.Series(list(conditions), dtype=str)))
    return dict(zip(levels, sns.color_palette("Set2", n_colors=max(len(levels), 1))))


def _style_axes(ax: plt.Axes) -> None:
    for spine in ax.spines.values():
        spine.set_color(TEXT_COLOR)
    ax.grid(True, alpha=0.2, linestyle=":", linewidth=0.8)
    ax.set_axisbelow(True)
    ax.tick_params(colors=TEXT_COLOR)


def sample_barplot(
    values: pd.Series,
    conditions: Sequence[str],
    title: str,
    ylabel: str,
    figsize: tuple = (8, 5),
    save_path: Optional[PathLike] = None,
) -> plt.Figure:
    """Bar per sample, colored by condition."""
    palette = _condition_palette(conditions)
    fig, ax = plt.subplots(figsize=figsize)
    ax.bar(
        [str(s) for s in values.index],
        values.to_numpy(dtype=float),
        color=[palette[str(c)] for c in conditions],
        edgecolor="white",
    )
    ax.set_title(title, fontweight="bold", color=TEXT_COLOR)
    ax.set_ylabel(ylabel, color=TEXT_COLOR)
    ax.tick_params(axis="x", rotation=45)
    handles = [plt.Rectangle((0, 0), 1, 1, color=color) for color in palette.values()]
    ax.legend(handles, list(palette.keys()), title="condition", frameon=False)
    _style_axes(ax)
    fig.tight_layout()
    _save(fig, save_path)
    return fig


def library_size_barplot(
    counts: pd.DataFrame,
    conditions: Sequence[str],
    save_path: Optional[PathLike] = None,
) -> plt.Figure:
    """Total raw counts per sample (millions)."""
    totals = counts.sum(axis=0) / 1e6
    return sample_barplot(
        totals, conditions,
        title="Library size", ylabel="Total counts (millions)",
        save_path=save_path,
    )


def detected_genes_barplot(
    tpm: pd.DataFrame,
    conditions: Sequence[str],
    threshold: float = 1.0,
    save_path: Optional[PathLike] = None,
) -> plt.Figure:
    """Number of genes with TPM >= threshold per sample."""
    detected = (tpm >= threshold).sum(axis=0)
    return sample_barplot(
        detected, conditions,
        title=f"Genes with TPM >= {threshold:g}", ylabel="Genes",
        save_path=save_path,
    )


def pca_plot(
    pca: PCAResult,
    conditions: Sequence[str],
    figsize: tuple = (7, 6),
    save_path: Optional[PathLike] = None,
) -> plt.Figure:
    """Samples on the first two principal components, labelled by name."""
    palette = _condition_palette(conditions)
    scores = pca.scores
    pc1, pc2 = pca.rounded_percent(2) if scores.shape[1] > 1 else (pca.rounded_percent(1)[0], 0)
    y = scores["PC2"] if "PC2" in scores.columns else pd.Series(0.0, index=scores.index)

    fig, ax = plt.subplots(figsize=figsize)
    for level, color in palette.items():
        mask = np.asarray([str(c) == level for c in conditions])
        ax.scatter(scores["PC1"][mask], y[mask], s=80, color=color, label=level,
                   edgecolors="white", linewidth=1, zorder=2)
    for name, xv, yv in zip(scores.index, scores["PC1"], y):
        ax.annotate(str(name), (xv, yv), textcoords="offset points", xytext=(5, 5),
                    fontsize=9, color=TEXT_COLOR)

    ax.set_xlabel(f"PC1: {pc1}% variance", color=TEXT_COLOR)
    ax.set_ylabel(f"PC2: {pc2}% variance", color=TEXT_COLOR)
    ax.set_title(f"PCA ({len(pca.genes)} most variable genes)", fontweight="bold", color=TEXT_COLOR)
    ax.legend(frameon=False, title="condition")
    _style_axes(ax)
    fig.tight_layout()
    _save(fig, save_path)
    return fig


def distance_heatmap(
    clustering: ClusteringResult,
    annotations: pd.DataFrame,
    figsize: tuple = (8, 7),
    save_path: Optional[PathLike] = None,
) -> plt.Figure:
    """
    Sample distance heatmap clustered with the precomputed linkage.

    Args:
        clustering: Result of :func:`cluster_samples`.
        annotations: Samples × tracks DataFrame (e.g. condition, replicate)
            indexed like the distance matrix; each track becomes a color bar.
    """
    tracks = {}
    legend = []
    for i, column in enumerate(annotations.columns):
        values = annotations[column].astype(str)
        levels = list(pd.unique(values))
        colors = sns.color_palette("Set2" if i % 2 == 0 else "Pastel1", n_colors=len(levels))
        lut = dict(zip(levels, colors))
        tracks[column] = values.map(lut)
        legend.extend((f"{column}: {lvl}", lut[lvl]) for lvl in levels)
    col_colors = pd.DataFrame(tracks, index=annotations.index) if tracks else None

    grid = sns.clustermap(
        clustering.distances,
        row_linkage=clustering.linkage,
        col_linkage=clustering.linkage,
        col_colors=col_colors,
        row_colors=col_colors,
        cmap="Blues_r",
        figsize=figsize,
        cbar_kws={"label": "Euclidean distance"},
    )
    grid.ax_heatmap.set_xlabel("")
    grid.ax_heatmap.set_ylabel("")
    for label, color in legend:
        grid.ax_col_dendrogram.bar(0, 0, color=color, label=label, linewidth=0)
    if legend:
        grid.ax_col_dendrogram.legend(loc="center", ncol=min(len(legend), 4), frameon=False, fontsize=8)
    grid.fig.suptitle(f"Sample distances ({clustering.method} linkage)", color=TEXT_COLOR, y=1.02)
    _save(grid.fig, save_path)
    return grid.fig


def pvalue_histogram(
    results: pd.DataFrame,
    p_col: str = "p_value",
    bins: int = 50,
    figsize: tuple = (7, 5),
    save_path: Optional[PathLike] = None,
) -> plt.Figure:
    """Histogram of raw p-values."""
    fig, ax = plt.subplots(figsize=figsize)
    ax.hist(results[p_col].dropna(), bins=np.linspace(0, 1, bins + 1),
            color=NONSIG_COLOR, edgecolor="white")
    ax.set_xlabel("p-value", color=TEXT_COLOR)
    ax.set_ylabel("Genes", color=TEXT_COLOR)
    ax.set_title("p-value distribution", fontweight="bold", color=TEXT_COLOR)
    _style_axes(ax)
    fig.tight_layout()
    _save(fig, save_path)
    return fig


def volcano_plot(
    results: pd.DataFrame,
    logfc_col: str = "log_fc",
    fdr_col: str = "adj_p_value",
    fdr_threshold: float = 0.05,
    logfc_threshold: float = 1.0,
    figsize: tuple = (10, 8),
    title: str = "Volcano Plot",
    xlabel: str = "log₂(Fold Change)",
    ylabel: str = "-log₁₀(Adjusted p-value)",
    save_path: Optional[PathLike] = None,
    **kwargs
) -> plt.Figure:
    """
    Create a publication-quality volcano plot.

    Points with adjusted p-value < ``fdr_threshold`` and
    |log2 FC| > ``logfc_threshold`` are highlighted.

    Args:
        results: DataFrame with differential expression results.
        logfc_col: Column name for log fold change (default: "log_fc").
        fdr_col: Column name for adjusted p-value (default: "adj_p_value").
        fdr_threshold: FDR significance threshold (default: 0.05).
        logfc_threshold: Log fold change threshold for highlighting (default: 1.0).
        figsize: Figure size tuple (default: (10, 8)).
        title: Plot title.
        xlabel: X-axis label.
        ylabel: Y-axis label.
        save_path: Path to save figure (optional).
        **kwargs: Additional arguments for customization
            - point_size: Size of points (default: 30)
            - sig_color: Color for significant points
            - nonsig_color: Color for non-significant points
            - alpha: Transparency (default: 0.7)
            - dpi: DPI for saved figure (default: 300)

    Returns:
        matplotlib.figure.Figure: The figure object.
    """
    from .report import significance_mask

    point_size = kwargs.get("point_size", 30)
    sig_color = kwargs.get("sig_color", SIG_COLOR)
    nonsig_color = kwargs.get("nonsig_color", NONSIG_COLOR)
    alpha = kwargs.get("alpha", 0.7)
    dpi = kwargs.get("dpi", 300)

    df = results.copy()
    # floor at the smallest positive double so -log10 stays finite
    df["neg_log10_fdr"] = -np.log10(df[fdr_col].clip(lower=np.finfo(float).tiny))
    sig_mask = significance_mask(df, fdr_threshold, logfc_threshold, logfc_col, fdr_col)

    fig, ax = plt.subplots(figsize=figsize, dpi=100)

    non_sig = df[~sig_mask]
    ax.scatter(
        non_sig[logfc_col], non_sig["neg_log10_fdr"],
        s=point_size, color=nonsig_color, alpha=alpha * 0.5,
        edgecolors="none", label="Not significant", zorder=1,
    )
    sig = df[sig_mask]
    ax.scatter(
        sig[logfc_col], sig["neg_log10_fdr"],
        s=point_size * 1.3, color=sig_color, alpha=alpha,
        edgecolors="white", linewidth=1,
        label=f"FDR < {fdr_threshold}, |logFC| > {logfc_threshold}", zorder=2,
    )

    for x in (-logfc_threshold, logfc_threshold):
        ax.axvline(x, color="#34495e", linestyle="--", linewidth=1.5, alpha=0.6, zorder=0)
    ax.axhline(-np.log10(fdr_threshold), color="#34495e", linestyle="--", linewidth=1.5, alpha=0.6, zorder=0)

    ax.set_xlabel(xlabel, fontsize=13, fontweight="bold", color=TEXT_COLOR)
    ax.set_ylabel(ylabel, fontsize=13, fontweight="bold", color=TEXT_COLOR)
    ax.set_title(title, fontsize=15, fontweight="bold", color=TEXT_COLOR, pad=20)
    _style_axes(ax)
    ax.legend(loc="upper right", frameon=True, fontsize=10, framealpha=0.95)

    n_sig = int(sig_mask.sum())
    stats_text = (
        f"Significant: {n_sig}/{len(df)}\n"
        f"Up-regulated: {int((sig_mask & (df[logfc_col] > 0)).sum())}\n"
        f"Down-regulated: {int((sig_mask & (df[logfc_col] < 0)).sum())}"
    )
    ax.text(
        0.02, 0.98, stats_text,
        transform=ax.transAxes, fontsize=10, verticalalignment="top",
        bbox=dict(boxstyle="round", facecolor="white", alpha=0.85, edgecolor=TEXT_COLOR),
        family="monospace", color=TEXT_COLOR,
    )

    fig.tight_layout()
    _save(fig, save_path, dpi=dpi)
    return fig
