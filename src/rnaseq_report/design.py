"""
Design matrices and contrasts for a one-factor experiment.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np
import pandas as pd

from .errors import DesignRankDeficientError, MalformedInputError


@dataclass(frozen=True)
class Contrast:
    """Difference of two condition coefficients: ``test - reference``."""
    test: str
    reference: str

    def __post_init__(self):
        if self.test == self.reference:
            raise MalformedInputError(f"Contrast compares '{self.test}' with itself")

    @property
    def name(self) -> str:
        return f"{self.test}-{self.reference}"

    def swapped(self) -> "Contrast":
        return Contrast(test=self.reference, reference=self.test)

    def vector(self, levels: Sequence[str]) -> np.ndarray:
        """Contrast weights over the design columns ``levels``.

        Raises:
            MalformedInputError: If either condition is not a design level.
        """
        levels = list(levels)
        missing = [lvl for lvl in (self.test, self.reference) if lvl not in levels]
        if missing:
            raise MalformedInputError(f"Contrast levels {missing} are not design levels {levels}")
        weights = np.zeros(len(levels), dtype=float)
        weights[levels.index(self.test)] = 1.0
        weights[levels.index(self.reference)] = -1.0
        return weights


def build_design(
    conditions: Sequence[str],
    levels: Optional[Sequence[str]] = None,
    samples: Optional[Sequence[str]] = None,
) -> pd.DataFrame:
    """
    One indicator column per condition level, no intercept.

    Args:
        conditions: Condition label per sample.
        levels: Column order. Default: order of first appearance.
        samples: Row labels. Default: ``0..n-1``.

    Returns:
        Samples × levels float DataFrame.

    Raises:
        MalformedInputError: If a sample's condition is not among ``levels``.
    """
    conditions = [str(c) for c in conditions]
    if levels is None:
        levels = list(pd.unique(pd.Series(conditions)))
    levels = [str(lvl) for lvl in levels]
    unknown = sorted(set(conditions) - set(levels))
    if unknown:
        raise MalformedInputError(f"Conditions {unknown} are not among levels {levels}")

    factor = pd.Categorical(conditions, categories=levels)
    design = pd.get_dummies(factor).astype(float)
    design.columns = levels
    design.index = list(samples) if samples is not None else range(len(conditions))
    return design


def check_full_rank(design: pd.DataFrame) -> None:
    """
    Check that the design can be fit and leaves residual degrees of freedom.

    Raises:
        DesignRankDeficientError: If the design is not full column rank
            (e.g. a level without samples, collinear columns) or has as many
            coefficients as samples.
    """
    x = design.to_numpy(dtype=float)
    n_samples, n_coef = x.shape
    empty = [str(c) for c, total in zip(design.columns, x.sum(axis=0)) if total == 0]
    if empty:
        raise DesignRankDeficientError(f"Condition levels without samples: {empty}")
    rank = np.linalg.matrix_rank(x)
    if rank < n_coef:
        raise DesignRankDeficientError(
            f"Design matrix has rank {rank} but {n_coef} columns {list(design.columns)}"
        )
    if n_samples <= n_coef:
        raise DesignRankDeficientError(
            f"Design with {n_coef} coefficients and {n_samples} samples "
            f"leaves no residual degrees of freedom"
        )
