"""
TMM normalization factors (edgeR::calcNormFactors).

The factors are kept in ``column_data["norm.factors"]``; voom picks them up
from there to form effective library sizes.
"""

from __future__ import annotations
from typing import Optional, TypeVar

import numpy as np
from biocframe import BiocFrame

from ..checks import check_assay_exists, check_r_assay, check_se
from ..logger import get_logger
from ..r_init import get_rmat
from .utils import _prep_edger

logger = get_logger(__name__)

SE = TypeVar("SE")

NORM_FACTORS = "norm.factors"


def calc_norm_factors(
    se: SE,
    assay: str = "counts",
    method: str = "TMM",
    refColumn: Optional[int] = None,
    logratioTrim: float = 0.3,
    sumTrim: float = 0.05,
    doWeighting: bool = True,
    Acutoff: float = -1e10,
    in_place: bool = False,
    **kwargs
) -> SE:
    """
    Compute one scaling factor per sample.

    For TMM every sample is compared with a reference sample (by default the
    one whose upper quartile is closest to the mean upper quartile): gene
    log-ratios M and average log-abundances A are trimmed by ``logratioTrim``
    and ``sumTrim`` and the precision-weighted mean of the remaining M gives
    the factor. edgeR rescales the factors to a geometric mean of one.

    Args:
        se: Experiment with an R-backed raw count assay.
        assay: Count assay. Default: "counts".
        method: "TMM", "TMMwsp", "RLE", "upperquartile" or "none".
        refColumn: 0-based reference sample, or None for edgeR's choice.
        logratioTrim: Fraction of M values trimmed at each end.
        sumTrim: Fraction of A values trimmed at each end.
        doWeighting: Weight M values by their asymptotic precision.
        Acutoff: Minimum A for a gene to be used.
        in_place: Modify ``se`` instead of returning a copy.
        **kwargs: Forwarded to ``edgeR::calcNormFactors``.

    Returns:
        Experiment with ``norm.factors`` in column_data.
    """
    check_se(se)
    check_assay_exists(se, assay)
    check_r_assay(se, assay)

    r, edger = _prep_edger()
    factors_r = edger.calcNormFactors(
        get_rmat(se, assay),
        method=method,
        refColumn=r.ro.NULL if refColumn is None else int(refColumn) + 1,
        logratioTrim=logratioTrim,
        sumTrim=sumTrim,
        doWeighting=doWeighting,
        Acutoff=Acutoff,
        **kwargs
    )
    factors = np.asarray(r.r2py(factors_r), dtype=float)
    logger.debug("%s normalization factors: %s", method, np.round(factors, 4).tolist())

    output = se._define_output(in_place=in_place)
    coldata = output.get_column_data()
    if coldata is None:
        coldata = BiocFrame({NORM_FACTORS: factors}, row_names=list(se.column_names))
    else:
        coldata = coldata.set_column(NORM_FACTORS, factors)
    return output.set_column_data(coldata, in_place=True)


def effective_lib_sizes(se: SE, assay: str = "counts") -> np.ndarray:
    """Column sums of ``assay`` times the stored normalization factors.

    Raises:
        KeyError: If calc_norm_factors has not been run.
    """
    check_se(se)
    check_assay_exists(se, assay)
    coldata = se.get_column_data()
    if coldata is None or NORM_FACTORS not in coldata.column_names:
        raise KeyError(f"No '{NORM_FACTORS}' in column_data; run calc_norm_factors first.")
    totals = np.asarray(se.assays[assay], dtype=float).sum(axis=0)
    return totals * np.asarray(coldata[NORM_FACTORS], dtype=float)
