"""
RMatrixAdapter: a numpy array-compatible wrapper around R matrices.

Assays produced by R (voom log-expression and weights, the DESeq2
transform) stay in R until a Python consumer asks for them. The adapter
supports ``np.asarray``, ``shape`` and 2D slicing, which is what
SummarizedExperiment needs to hold and subset it.
"""

from __future__ import annotations
from typing import Any, Optional, Sequence, Union
import numpy as np
from numpy.typing import NDArray

from .rpy2_manager import Rpy2ManagerProto, get_r_environment, r_dim

IndexLike = Union[slice, int, Sequence[int], Sequence[bool], NDArray[Any]]


def _to_r_index(idx: IndexLike, n: int, r: Any) -> Any:
    """Python row/column index (0-based, negatives allowed) as an R index vector."""
    if isinstance(idx, slice):
        positions = np.arange(n)[idx]
    elif isinstance(idx, (int, np.integer)):
        positions = np.arange(n)[[int(idx)]]
    elif isinstance(idx, (list, tuple, np.ndarray)):
        arr = np.asarray(idx)
        if arr.dtype == bool:
            if arr.size != n:
                raise IndexError(f"Boolean index of length {arr.size} for dimension {n}")
            return r.BoolVector(arr.tolist())
        positions = np.arange(n)[arr.astype(int)]
    else:
        raise TypeError(f"Unsupported index type: {type(idx).__name__}")
    return r.IntVector((positions + 1).tolist())


class RMatrixAdapter:
    """R matrix held as a SummarizedExperiment assay.

    Example:
        >>> adapter = RMatrixAdapter(r_matrix)
        >>> adapter.shape
        (100, 4)
        >>> adapter[:10, [0, 2]]
        <RMatrixAdapter (10, 2)>
        >>> np.asarray(adapter)
    """

    __slots__ = ("_rmat", "_shape", "_r")

    def __init__(self, rmat: Any, r_manager: Optional[Rpy2ManagerProto] = None) -> None:
        self._rmat = rmat
        self._r = r_manager if r_manager is not None else get_r_environment()
        self._shape = r_dim(rmat)

    @property
    def shape(self) -> tuple:
        return self._shape

    @property
    def rmat(self) -> Any:
        """The wrapped rpy2 matrix."""
        return self._rmat

    def to_numpy(self) -> NDArray[Any]:
        return np.asarray(self._r.r2py(self._rmat))

    def __array__(self, dtype: Any = None, copy: Any = None) -> NDArray[Any]:
        arr = self.to_numpy()
        return arr if dtype is None else arr.astype(dtype, copy=False)

    def __getitem__(self, key: Union[IndexLike, tuple]) -> "RMatrixAdapter":
        """Subset in R; the result is again an R matrix (``drop=FALSE``)."""
        rows, cols = key if isinstance(key, tuple) else (key, slice(None))
        nrow, ncol = self._shape
        out = self._r.ro.baseenv["["](
            self._rmat,
            _to_r_index(rows, nrow, self._r),
            _to_r_index(cols, ncol, self._r),
            drop=False,
        )
        return RMatrixAdapter(out, self._r)

    def __len__(self) -> int:
        return self._shape[0]

    def __repr__(self) -> str:
        return f"<RMatrixAdapter {self._shape}>"
