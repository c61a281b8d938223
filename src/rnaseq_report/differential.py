"""
Differential expression engine.

``run_differential_expression`` is the one entry point the report uses:
TMM normalization (edgeR), voom precision weights, weighted linear model,
contrast, empirical Bayes moderation and BH correction (limma). The result
is a :class:`DifferentialResult`; no R object leaves this module.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence

import numpy as np
import pandas as pd

from .design import Contrast, build_design, check_full_rank
from .logger import get_logger

logger = get_logger(__name__)

RESULT_COLUMNS = ["gene_id", "log_fc", "ave_expr", "t_statistic", "p_value", "adj_p_value"]


@dataclass(frozen=True, init=False, eq=False)
class DifferentialResult:
    """Per-gene statistics for one contrast, sorted by adjusted p-value.

    The result does not change after construction: ``table`` and ``design``
    return copies.

    Attributes:
        table: DataFrame with ``RESULT_COLUMNS`` plus ``b_statistic``.
        contrast: The contrast the statistics refer to.
        design: Design matrix the model was fit with.
        norm_factors: TMM normalization factor per sample.
    """
    _table: pd.DataFrame = field(repr=False)
    contrast: Contrast
    _design: pd.DataFrame = field(repr=False)
    norm_factors: Dict[str, float] = field(default_factory=dict)

    def __init__(
        self,
        table: pd.DataFrame,
        contrast: Contrast,
        design: pd.DataFrame,
        norm_factors: Optional[Dict[str, float]] = None,
    ):
        missing = [c for c in RESULT_COLUMNS if c not in table.columns]
        if missing:
            raise ValueError(f"Result table lacks columns {missing}")
        ordered = table.sort_values(
            ["adj_p_value", "p_value", "gene_id"], kind="mergesort"
        ).reset_index(drop=True)
        object.__setattr__(self, "_table", ordered)
        object.__setattr__(self, "contrast", contrast)
        object.__setattr__(self, "_design", design.copy())
        object.__setattr__(self, "norm_factors", dict(norm_factors or {}))

    @property
    def table(self) -> pd.DataFrame:
        return self._table.copy()

    @property
    def design(self) -> pd.DataFrame:
        return self._design.copy()

    def __len__(self) -> int:
        return len(self._table)

    def to_frame(self) -> pd.DataFrame:
        """A copy of the result table."""
        return self.table

    def lookup(self, gene_id: str) -> pd.Series:
        rows = self._table.loc[self._table["gene_id"] == gene_id]
        if rows.empty:
            raise KeyError(gene_id)
        return rows.iloc[0].copy()


def _conditions(se: Any, column: str) -> list:
    coldata = se.get_column_data()
    if coldata is None or column not in coldata.column_names:
        raise KeyError(f"Column '{column}' not found in column_data.")
    return [str(x) for x in coldata[column]]


def run_differential_expression(
    se: Any,
    contrast: Contrast,
    condition: str = "condition",
    levels: Optional[Sequence[str]] = None,
    assay: str = "counts",
    norm_method: str = "TMM",
    fdr_threshold: float = 0.05,
) -> DifferentialResult:
    """
    Test every gene of ``se`` for the ``contrast``.

    Args:
        se: SummarizedExperiment with a raw count assay (already filtered).
        contrast: Condition comparison, ``test - reference``.
        condition: column_data column holding condition labels.
        levels: Design column order. Default: order of first appearance.
        assay: Raw count assay. Default: "counts".
        norm_method: edgeR normalization method. Default: "TMM".
        fdr_threshold: Adjusted p-value cutoff for the count in the log.

    Returns:
        DifferentialResult sorted ascending by adjusted p-value.

    Raises:
        DesignRankDeficientError: If the design is rank deficient or leaves
            no residual degrees of freedom.
        MalformedInputError: If a contrast level is not a design level.
    """
    samples = [str(x) for x in se.column_names]
    design = build_design(_conditions(se, condition), levels=levels, samples=samples)
    contrast_vec = contrast.vector(design.columns)
    check_full_rank(design)

    from . import edger, limma
    from .r_init import initialize_r

    logger.info(
        "Differential expression %s on %d genes x %d samples",
        contrast.name, se.shape[0], se.shape[1],
    )

    se_r = initialize_r(se, assay=assay)
    se_r = edger.calc_norm_factors(se_r, assay=assay, method=norm_method)
    norm_factors = np.asarray(se_r.get_column_data()["norm.factors"], dtype=float)

    se_voom = limma.voom(se_r, design, assay=assay)
    model = (
        limma.lm_fit(se_voom, design)
        .contrasts_fit(contrast_vec)
        .e_bayes()
    )
    table = model.top_table(adjust_method="BH", sort_by="PValue")

    result = DifferentialResult(
        table=table.loc[:, RESULT_COLUMNS + ["b_statistic"]],
        contrast=contrast,
        design=design,
        norm_factors=dict(zip(samples, norm_factors.tolist())),
    )
    logger.info(
        "%d genes tested, %d with adjusted p-value < %g",
        len(result), int((result.table["adj_p_value"] < fdr_threshold).sum()), fdr_threshold,
    )
    return result
