"""Limma: Linear Models for Microarray and RNA-Seq Data.

Python wrappers for the R limma functions the differential expression
engine needs, with R-backing via rpy2.

Functional API:
    >>> import rnaseq_report.limma as limma
    >>> se_voom = limma.voom(se, design)
    >>> model = limma.lm_fit(se_voom, design)
    >>> results = model.contrasts_fit([-1, 1]).e_bayes().top_table()
"""

# Check limma R package on module import
from ..r_utils import ensure_r_dependencies
ensure_r_dependencies(["limma"])

from .voom import voom
from .lm_fit import lm_fit, LimmaModel
from .contrasts_fit import contrasts_fit
from .e_bayes import e_bayes
from .top_table import top_table
from .utils import _limma

__all__ = [
    "voom",
    "lm_fit",
    "contrasts_fit",
    "e_bayes",
    "top_table",
    "LimmaModel",
    "_limma",
]
