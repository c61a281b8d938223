"""
Size factors and variance-stabilizing transformation via DESeq2.

``estimate_size_factors`` stores DESeq2's median-of-ratios factors in
``column_data["size_factor"]``; ``vst`` stores the transformed matrix as an
R-backed assay for the exploratory analysis.
"""

from __future__ import annotations
from typing import Any, TypeVar

import numpy as np
import pandas as pd

from ..checks import check_assay_exists, check_column, check_se
from ..logger import get_logger
from ..r_init import get_rmat, is_r_initialized, numpy_to_r_matrix
from ..rmatrixadapter import RMatrixAdapter
from .utils import _prep_deseq2

logger = get_logger(__name__)

SE = TypeVar("SE")


def _check_counts(se: Any, assay: str) -> None:
    values = np.asarray(se.assays[assay], dtype=float)
    if (values < 0).any() or not np.all(np.mod(values, 1) == 0):
        raise ValueError(f"Assay '{assay}' must hold non-negative integer counts")


def _counts_rmat(se: Any, assay: str) -> Any:
    if is_r_initialized(se, assay):
        return get_rmat(se, assay)
    return numpy_to_r_matrix(
        np.asarray(se.assays[assay]).astype(np.int32),
        rownames=se.row_names,
        colnames=se.column_names,
    )


def estimate_size_factors(
    se: SE,
    assay: str = "counts",
    in_place: bool = False,
) -> SE:
    """
    Compute DESeq2 size factors and store them in column_data.

    Wraps ``DESeq2::estimateSizeFactorsForMatrix`` (median of ratios to the
    per-gene geometric mean).

    Args:
        se: SummarizedExperiment with a raw count assay.
        assay: Name of the counts assay. Default: "counts".
        in_place: If True, modify se in place. Default: False.

    Returns:
        SummarizedExperiment with ``size_factor`` in column_data.
    """
    check_se(se)
    check_assay_exists(se, assay)
    _check_counts(se, assay)

    r, pkg, _ = _prep_deseq2()
    factors = np.asarray(
        r.r2py(pkg.estimateSizeFactorsForMatrix(_counts_rmat(se, assay))), dtype=float
    )
    logger.debug("DESeq2 size factors: %s", np.round(factors, 3).tolist())

    output = se._define_output(in_place=in_place)
    coldata = output.get_column_data()
    if coldata is not None:
        new_coldata = coldata.set_column("size_factor", factors)
    else:
        from biocframe import BiocFrame
        new_coldata = BiocFrame({"size_factor": factors}, row_names=se.column_names)
    return output.set_column_data(new_coldata, in_place=True)


def vst(
    se: SE,
    assay: str = "counts",
    blind: bool = True,
    condition: str = "condition",
    fit_type: str = "parametric",
    nsub: int = 1000,
    out_assay: str = "vst",
    in_place: bool = False,
) -> SE:
    """
    Variance-stabilizing transformation of raw counts.

    Wraps ``DESeq2::vst``; when the experiment has fewer than ``nsub`` genes
    ``DESeq2::varianceStabilizingTransformation`` is used instead, since
    ``vst`` subsamples ``nsub`` genes to fit the dispersion trend.

    Args:
        se: SummarizedExperiment with a raw count assay.
        assay: Name of the counts assay. Default: "counts".
        blind: Ignore the sample conditions when fitting the dispersion
            trend. Default: True.
        condition: column_data column used as design when ``blind`` is False.
        fit_type: Dispersion trend type forwarded as ``fitType``.
        nsub: Genes subsampled by ``vst``. Default: 1000.
        out_assay: Name of the output assay. Default: "vst".
        in_place: If True, modify se in place. Default: False.

    Returns:
        SummarizedExperiment with the transformed assay and size factors.

    Example:
        >>> se = deseq2.vst(se)
        >>> pca = run_pca(assay_frame(se, "vst"))
    """
    check_se(se)
    check_assay_exists(se, assay)
    if not blind:
        check_column(se, condition)

    output = estimate_size_factors(se, assay=assay, in_place=in_place)

    r, pkg, se_pkg = _prep_deseq2()
    counts_r = _counts_rmat(output, assay)

    if blind:
        obj = counts_r
    else:
        levels = pd.unique(np.asarray(output.get_column_data()[condition], dtype=str))
        coldata = pd.DataFrame(
            {"condition": pd.Categorical(np.asarray(output.get_column_data()[condition], dtype=str),
                                         categories=levels)},
            index=[str(x) for x in output.column_names],
        )
        with r.localconverter(r.default_converter + r.pandas2ri.converter):
            coldata_r = r.get_conversion().py2rpy(coldata)
        obj = pkg.DESeqDataSetFromMatrix(
            countData=counts_r,
            colData=coldata_r,
            design=r.ro.Formula("~ condition"),
        )

    n_genes = output.shape[0]
    if n_genes >= nsub:
        transformed = pkg.vst(obj, blind=blind, nsub=nsub, fitType=fit_type)
    else:
        logger.debug("%d genes < nsub=%d, using varianceStabilizingTransformation", n_genes, nsub)
        transformed = pkg.varianceStabilizingTransformation(obj, blind=blind, fitType=fit_type)

    if not blind:
        transformed = se_pkg.assay(transformed)

    new_assays = dict(output.assays)
    new_assays[out_assay] = RMatrixAdapter(transformed, r)
    output._assays = new_assays
    logger.info("Variance-stabilizing transformation of %d genes (blind=%s)", n_genes, blind)
    return output
