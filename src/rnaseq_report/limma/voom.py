"""
log-CPM transformation with precision weights (limma::voom).
"""

from __future__ import annotations
from typing import Optional, Sequence, TypeVar, Union

import numpy as np
import pandas as pd

from ..checks import check_assay_exists, check_design, check_r_assay, check_se
from ..r_init import get_rmat, pandas_to_r_matrix
from ..rmatrixadapter import RMatrixAdapter
from ..rpy2_manager import get_r_environment
from .utils import _limma

SE = TypeVar("SE")


def _library_sizes(se, assay: str, lib_size) -> Optional[np.ndarray]:
    if lib_size is not None:
        return np.asarray(lib_size, dtype=float)
    coldata = se.get_column_data()
    if coldata is None or "norm.factors" not in coldata.column_names:
        return None
    totals = np.asarray(se.assays[assay], dtype=float).sum(axis=0)
    return totals * np.asarray(coldata["norm.factors"], dtype=float)


def voom(
    se: SE,
    design: pd.DataFrame,
    assay: str = "counts",
    lib_size: Optional[Union[pd.Series, Sequence, np.ndarray]] = None,
    log_expr_assay: str = "log_expr",
    weights_assay: str = "weights",
    in_place: bool = False,
    **kwargs
) -> SE:
    """
    Transform counts to log2-CPM and attach voom precision weights.

    ``log2((count + 0.5) / (lib_size + 1) * 1e6)`` per gene and sample; a
    lowess trend of residual standard deviation against mean log-CPM is
    fitted under ``design`` and turned into one weight per observation.

    Library sizes default to column sums times ``norm.factors`` when
    :func:`rnaseq_report.edger.calc_norm_factors` has been run, and to plain
    column sums otherwise.

    Args:
        se: Experiment with an R-backed count assay.
        design: Samples × coefficients design.
        assay: Count assay. Default: "counts".
        lib_size: Explicit library sizes, overriding the above.
        log_expr_assay: Output assay for log-CPM. Default: "log_expr".
        weights_assay: Output assay for the weights. Default: "weights".
        in_place: Modify ``se`` instead of returning a copy.
        **kwargs: Forwarded to ``limma::voom``.

    Returns:
        Experiment with two additional R-backed assays.
    """
    check_se(se)
    check_assay_exists(se, assay)
    check_r_assay(se, assay)
    check_design(design, se.shape[1])

    r = get_r_environment()
    sizes = _library_sizes(se, assay, lib_size)

    out = _limma().voom(
        get_rmat(se, assay),
        pandas_to_r_matrix(design),
        lib_size=r.ro.NULL if sizes is None else r.FloatVector(sizes.tolist()),
        plot=False,
        **kwargs
    )
    getitem = r.ro.baseenv["[["]

    output = se._define_output(in_place=in_place)
    assays = dict(output.assays)
    assays[log_expr_assay] = RMatrixAdapter(getitem(out, "E"), r)
    assays[weights_assay] = RMatrixAdapter(getitem(out, "weights"), r)
    output._assays = assays
    return output
