"""
Per-gene result table (limma::topTable) with Python column names.
"""

from __future__ import annotations
from typing import Any, Optional, Union

import pandas as pd

from ..rpy2_manager import get_r_environment
from .lm_fit import LimmaModel, check_model
from .utils import _limma

TOP_TABLE_COLUMNS = {
    "logFC": "log_fc",
    "AveExpr": "ave_expr",
    "t": "t_statistic",
    "P.Value": "p_value",
    "adj.P.Val": "adj_p_value",
    "B": "b_statistic",
}

SORT_BY = {"PValue": "p", "logFC": "logFC", "AveExpr": "AveExpr", "B": "B", "none": "none"}


def top_table(
    model: LimmaModel,
    coef: Optional[Union[int, str]] = None,
    n: Optional[int] = None,
    adjust_method: str = "BH",
    sort_by: str = "PValue",
    **kwargs: Any
) -> pd.DataFrame:
    """
    Statistics for every gene (or the top ``n``) of one coefficient.

    P-values are two-sided for the moderated t-statistic; ``adjust_method``
    "BH" adds Benjamini-Hochberg adjusted p-values computed over all genes.
    eBayes is run first if the model has not been moderated.

    Args:
        model: Fitted model.
        coef: 1-based coefficient index or name. Defaults to the contrast.
        n: Number of rows. Default: all genes.
        adjust_method: p.adjust method. Default: "BH".
        sort_by: "PValue", "logFC", "AveExpr", "B" or "none".
        **kwargs: Forwarded to ``limma::topTable``.

    Returns:
        DataFrame with gene_id, log_fc, ave_expr, t_statistic, p_value,
        adj_p_value and b_statistic.

    Raises:
        ValueError: If ``coef`` is missing for a model without a contrast,
            or ``sort_by`` is unknown.
    """
    check_model(model)
    if sort_by not in SORT_BY:
        raise ValueError(f"sort_by must be one of {list(SORT_BY)}, got {sort_by!r}")
    if coef is None:
        if model.contrast_fit is None:
            raise ValueError("Specify `coef` for a model without a contrast")
        coef = 1

    if model.ebayes is None:
        model = model.e_bayes()

    r = get_r_environment()
    if n is None:
        n = int(r.ro.baseenv["nrow"](model.ebayes)[0])

    table_r = _limma().topTable(
        model.ebayes,
        coef=coef,
        number=n,
        **{"adjust.method": adjust_method, "sort.by": SORT_BY[sort_by]},
        **kwargs
    )
    with r.localconverter(r.default_converter + r.pandas2ri.converter):
        df = r.get_conversion().rpy2py(table_r)

    df = df.rename(columns=TOP_TABLE_COLUMNS)
    df.index = df.index.astype(str)
    return df.rename_axis("gene_id").reset_index()
