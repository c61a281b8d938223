"""
Re-express a fitted model in terms of one contrast (limma::contrasts.fit).
"""

from __future__ import annotations
from dataclasses import replace
from typing import Sequence, Union

import numpy as np

from ..rpy2_manager import get_r_environment
from .lm_fit import LimmaModel, check_model
from .utils import _limma


def contrasts_fit(model: LimmaModel, contrast: Sequence[Union[int, float]]) -> LimmaModel:
    """
    Estimate ``sum(contrast * coefficients)`` and its standard error per gene.

    Args:
        model: Fitted model.
        contrast: One weight per design column, e.g. ``[-1, 1]`` for the
            second condition against the first.

    Returns:
        A new LimmaModel with ``contrast_fit`` set and ``ebayes`` cleared.

    Raises:
        ValueError: If the model is unfitted or the contrast length does not
            match the design.
    """
    check_model(model)

    weights = np.asarray(contrast, dtype=float)
    n_coef = len(model.coefficients)
    if n_coef and weights.shape != (n_coef,):
        raise ValueError(
            f"Contrast has {weights.size} weights for {n_coef} coefficients {model.coefficients}"
        )

    r = get_r_environment()
    fit = _limma().contrasts_fit(model.lm_fit, contrasts=r.FloatVector(weights.tolist()))
    return replace(model, contrast=weights.tolist(), contrast_fit=fit, ebayes=None)
