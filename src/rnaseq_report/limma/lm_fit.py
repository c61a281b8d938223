"""
Weighted per-gene linear models (limma::lmFit) and the model handle that
carries them through contrasts, moderation and ranking.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, List, Literal, Optional, Sequence, TypeVar, Union

import pandas as pd

from ..checks import check_assay_exists, check_design, check_r_assay, check_se
from ..r_init import get_rmat, is_r_initialized, pandas_to_r_matrix
from ..rpy2_manager import get_r_environment
from .utils import _limma

SE = TypeVar("SE")


@dataclass
class LimmaModel:
    """R fit objects of one limma analysis.

    ``lm_fit`` is set by :func:`lm_fit`; ``contrast_fit`` and ``ebayes`` are
    filled by the chained methods. Applying a new contrast clears ``ebayes``.

    Attributes:
        sample_names: Column names of the fitted experiment.
        feature_names: Gene identifiers, in fit order.
        lm_fit: MArrayLM from lmFit.
        design: Design matrix the model was fit with.
        contrast: Contrast weights over the design columns.
        contrast_fit: MArrayLM from contrasts.fit.
        ebayes: MArrayLM from eBayes.
        method: "ls" or "robust".
    """
    sample_names: Optional[List[str]] = None
    feature_names: Optional[List[str]] = None
    lm_fit: Optional[Any] = None
    design: Optional[pd.DataFrame] = None
    contrast: Optional[List[float]] = None
    contrast_fit: Optional[Any] = None
    ebayes: Optional[Any] = None
    method: Optional[str] = None

    @property
    def coefficients(self) -> List[str]:
        return [] if self.design is None else [str(c) for c in self.design.columns]

    def contrasts_fit(self, contrast: Sequence[Union[int, float]]) -> "LimmaModel":
        from .contrasts_fit import contrasts_fit
        return contrasts_fit(self, contrast)

    def e_bayes(self, proportion: float = 0.01, trend: bool = False, robust: bool = False, **kwargs) -> "LimmaModel":
        from .e_bayes import e_bayes
        return e_bayes(self, proportion=proportion, trend=trend, robust=robust, **kwargs)

    def top_table(self, coef: Optional[Union[int, str]] = None, n: Optional[int] = None,
                  adjust_method: str = "BH", sort_by: str = "PValue", **kwargs) -> pd.DataFrame:
        from .top_table import top_table
        return top_table(self, coef=coef, n=n, adjust_method=adjust_method, sort_by=sort_by, **kwargs)


def check_model(model: Any, fitted: bool = True) -> None:
    """Raise TypeError for non-models and ValueError for models without a fit."""
    if not isinstance(model, LimmaModel):
        raise TypeError(f"Expected a LimmaModel, got {type(model).__name__}")
    if fitted and model.lm_fit is None:
        raise ValueError("LimmaModel has not been fitted; call lm_fit first")


def lm_fit(
    se: SE,
    design: pd.DataFrame,
    assay: str = "log_expr",
    weights_assay: Optional[str] = "weights",
    method: Literal["ls", "robust"] = "ls",
    **kwargs: Any,
) -> LimmaModel:
    """
    Fit one linear model per gene of ``assay`` on the design columns.

    The voom precision weights in ``weights_assay`` are used when that assay
    is present and R-backed, making each fit weighted least squares.

    Args:
        se: Experiment with an R-backed log-expression assay (voom output).
        design: Samples × coefficients design.
        assay: Log-expression assay. Default: "log_expr".
        weights_assay: Weights assay, or None for an unweighted fit.
        method: "ls" (least squares) or "robust" (M-estimation).
        **kwargs: Forwarded to ``limma::lmFit``.

    Returns:
        LimmaModel with ``lm_fit`` set.

    Example:
        >>> model = limma.lm_fit(se_voom, build_design(conditions))
        >>> table = model.contrasts_fit([-1, 1]).e_bayes().top_table()
    """
    check_se(se)
    check_assay_exists(se, assay)
    check_r_assay(se, assay)
    check_design(design, se.shape[1])

    r = get_r_environment()
    if weights_assay is not None and is_r_initialized(se, weights_assay):
        weights = get_rmat(se, weights_assay)
    else:
        weights = r.ro.NULL

    fit = _limma().lmFit(
        get_rmat(se, assay),
        pandas_to_r_matrix(design),
        weights=weights,
        method=method,
        **kwargs,
    )
    return LimmaModel(
        sample_names=[str(s) for s in se.column_names],
        feature_names=[str(g) for g in se.row_names],
        lm_fit=fit,
        design=design,
        method=method,
    )
