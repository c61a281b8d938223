"""
Sample plan: which sample belongs to which condition and replicate.

The plan fixes the column order of every matrix in the analysis and the
display names that appear in plots and tables.
"""

from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Union

import numpy as np
import pandas as pd
from biocframe import BiocFrame

from .errors import MalformedInputError
from .logger import get_logger

logger = get_logger(__name__)

REQUIRED_COLUMNS = ("sample_id", "condition", "replicate")
PLAN_COLUMNS = ("sample_id", "display_name", "condition", "replicate")


@dataclass(frozen=True)
class SamplePlan:
    """Ordered sample records.

    Attributes:
        frame: DataFrame with columns ``sample_id``, ``display_name``,
            ``condition`` (categorical, categories = condition levels) and
            ``replicate`` (int), in plan order.
    """
    frame: pd.DataFrame

    def __len__(self) -> int:
        return len(self.frame)

    @property
    def sample_ids(self) -> List[str]:
        return self.frame["sample_id"].tolist()

    @property
    def display_names(self) -> List[str]:
        return self.frame["display_name"].tolist()

    @property
    def conditions(self) -> List[str]:
        return self.frame["condition"].astype(str).tolist()

    @property
    def replicates(self) -> List[int]:
        return self.frame["replicate"].astype(int).tolist()

    @property
    def levels(self) -> List[str]:
        """Condition levels in declared order."""
        return [str(x) for x in self.frame["condition"].cat.categories]

    def column_data(self) -> BiocFrame:
        """Sample annotations for a SummarizedExperiment, keyed by display name."""
        return BiocFrame(
            {
                "sample_id": np.asarray(self.sample_ids, dtype=object),
                "condition": np.asarray(self.conditions, dtype=object),
                "replicate": np.asarray(self.replicates, dtype=int),
            },
            row_names=self.display_names,
        )

    def with_levels(self, levels: Sequence[str]) -> "SamplePlan":
        """Return a plan whose condition levels follow ``levels``."""
        return SamplePlan(_set_levels(self.frame.copy(), levels))


def _normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    df = df.copy()
    df.columns = [str(c).strip().lower() for c in df.columns]
    return df


def _set_levels(df: pd.DataFrame, levels: Optional[Sequence[str]]) -> pd.DataFrame:
    observed = pd.unique(df["condition"].astype(str))
    if levels is None:
        levels = list(observed)
    else:
        levels = [str(x) for x in levels]
        unknown = sorted(set(observed) - set(levels))
        if unknown:
            raise MalformedInputError(
                f"Conditions {unknown} are not among the declared levels {levels}"
            )
    df["condition"] = pd.Categorical(df["condition"].astype(str), categories=levels)
    return df


def load_sample_plan(
    source: Union[str, Path, pd.DataFrame],
    levels: Optional[Sequence[str]] = None,
) -> SamplePlan:
    """
    Read a sample plan table.

    The delimiter is sniffed and compression inferred from the file name.
    Column names are matched case-insensitively. ``display_name`` is optional
    and defaults to ``sample_id``.

    Args:
        source: Path to the table, or an already loaded DataFrame.
        levels: Optional explicit condition level order. Default: order of
            first appearance.

    Returns:
        SamplePlan in file order.

    Raises:
        MalformedInputError: If required columns are missing or have blank
            cells, identifiers are not unique, the plan is empty or
            replicates are not integers.
    """
    if isinstance(source, pd.DataFrame):
        df = source
    else:
        df = pd.read_csv(source, sep=None, engine="python", dtype=str, comment="#")
        logger.debug("Read sample plan %s (%d rows)", source, len(df))

    df = _normalize_columns(df)
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise MalformedInputError(
            f"Sample plan is missing required columns {missing}; found {list(df.columns)}"
        )
    if df.empty:
        raise MalformedInputError("Sample plan has no rows")

    blank = pd.Series(False, index=df.index)
    for col in REQUIRED_COLUMNS:
        blank |= df[col].isna() | (df[col].astype(str).str.strip() == "")
    if blank.any():
        rows = (np.flatnonzero(blank.to_numpy()) + 1).tolist()
        raise MalformedInputError(
            f"Sample plan has blank {'/'.join(REQUIRED_COLUMNS)} values in rows {rows}"
        )

    df["sample_id"] = df["sample_id"].astype(str).str.strip()
    if "display_name" not in df.columns:
        df["display_name"] = df["sample_id"]
    df["display_name"] = df["display_name"].fillna(df["sample_id"]).astype(str).str.strip()
    df["condition"] = df["condition"].astype(str).str.strip()

    for col in ("sample_id", "display_name"):
        dups = df.loc[df[col].duplicated(), col].unique().tolist()
        if dups:
            raise MalformedInputError(f"Sample plan {col} values are not unique: {dups}")

    replicate = pd.to_numeric(df["replicate"], errors="coerce")
    if replicate.isna().any() or not np.all(np.mod(replicate, 1) == 0):
        bad = df.loc[replicate.isna() | (np.mod(replicate.fillna(0), 1) != 0), "sample_id"].tolist()
        raise MalformedInputError(f"Replicate must be an integer for samples {bad}")
    df["replicate"] = replicate.astype(int)

    df = _set_levels(df, levels)
    frame = df.loc[:, list(PLAN_COLUMNS)].reset_index(drop=True)
    logger.info(
        "Sample plan: %d samples, conditions %s",
        len(frame), dict(frame["condition"].value_counts(sort=False)),
    )
    return SamplePlan(frame)
