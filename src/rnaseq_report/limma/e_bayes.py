"""
Empirical Bayes variance moderation (limma::eBayes).
"""

from __future__ import annotations
from dataclasses import replace
from typing import Any

from .lm_fit import LimmaModel, check_model
from .utils import _limma


def e_bayes(
    model: LimmaModel,
    proportion: float = 0.01,
    trend: bool = False,
    robust: bool = False,
    **kwargs: Any
) -> LimmaModel:
    """
    Moderate the per-gene residual variances.

    A scaled inverse chi-square prior is fitted to all gene variances and
    each variance is shrunk toward it; t-statistics then use the prior plus
    residual degrees of freedom. Runs on the contrast fit when there is one.

    Args:
        model: Fitted model, optionally with a contrast.
        proportion: Assumed fraction of differentially expressed genes (for B).
        trend: Let the prior variance depend on average expression.
        robust: Robust estimation of the prior.
        **kwargs: Forwarded to ``limma::eBayes``.

    Returns:
        A new LimmaModel with ``ebayes`` set.
    """
    check_model(model)
    fit = model.contrast_fit if model.contrast_fit is not None else model.lm_fit
    eb = _limma().eBayes(fit, proportion=proportion, trend=trend, robust=robust, **kwargs)
    return replace(model, ebayes=eb)
