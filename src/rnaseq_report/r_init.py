"""
Move SummarizedExperiment assays into R.

The edgeR, limma and DESeq2 wrappers read their input assay as an R matrix
with gene and sample dimnames. ``initialize_r`` swaps a NumPy assay for an
:class:`RMatrixAdapter`; the other helpers check for and unwrap it.

Usage:
    >>> se = initialize_r(se, assay="counts")
    >>> se = edger.calc_norm_factors(se)
"""

from __future__ import annotations
from typing import Any, Optional, Sequence, TypeVar

import numpy as np

from .rmatrixadapter import RMatrixAdapter
from .rpy2_manager import get_r_environment, set_colnames, set_rownames

SE = TypeVar("SE")


def numpy_to_r_matrix(
    mat: Any,
    rownames: Optional[Sequence[str]] = None,
    colnames: Optional[Sequence[str]] = None,
) -> Any:
    """2D array as an R matrix (integer or double, following the dtype)."""
    rmat = get_r_environment().py2r(np.ascontiguousarray(mat))
    if rownames is not None:
        rmat = set_rownames(rmat, rownames)
    if colnames is not None:
        rmat = set_colnames(rmat, colnames)
    return rmat


def pandas_to_r_matrix(df) -> Any:
    """Numeric DataFrame as a double R matrix with its index and columns as dimnames."""
    return numpy_to_r_matrix(df.to_numpy(dtype=float), rownames=df.index, colnames=df.columns)


def _assay_missing(se: Any, assay: str) -> KeyError:
    return KeyError(f"Assay '{assay}' not found. Available: {list(se.assay_names)}")


def initialize_r(se: SE, assay: str = "counts", in_place: bool = False) -> SE:
    """
    Back ``assay`` by an R matrix named by the experiment's row and column names.

    Already R-backed assays are left as they are.

    Raises:
        KeyError: If the assay does not exist.
    """
    if assay not in se.assay_names:
        raise _assay_missing(se, assay)
    if is_r_initialized(se, assay):
        return se

    rmat = numpy_to_r_matrix(np.asarray(se.assays[assay]), se.row_names, se.column_names)
    output = se._define_output(in_place=in_place)
    assays = dict(output.assays)
    assays[assay] = RMatrixAdapter(rmat, get_r_environment())
    output._assays = assays
    return output


def is_r_initialized(se: Any, assay: str) -> bool:
    return assay in se.assay_names and isinstance(se.assays[assay], RMatrixAdapter)


def check_r_initialized(se: Any, assay: str) -> None:
    """
    Raises:
        KeyError: If the assay does not exist.
        TypeError: If the assay is still a NumPy array.
    """
    if assay not in se.assay_names:
        raise _assay_missing(se, assay)
    if not is_r_initialized(se, assay):
        raise TypeError(
            f"Assay '{assay}' is not R-initialized; call initialize_r(se, assay='{assay}') first."
        )


def get_rmat(se: Any, assay: str) -> Any:
    """The R matrix behind an R-backed assay."""
    check_r_initialized(se, assay)
    return se.assays[assay].rmat
