"""EdgeR: TMM normalization for the differential expression engine.

Functional API:
    >>> import rnaseq_report.edger as edger
    >>> se = edger.calc_norm_factors(initialize_r(se), method="TMM")
    >>> se.get_column_data()["norm.factors"]
"""

# Check edgeR R package on module import
from ..r_utils import ensure_r_dependencies
ensure_r_dependencies(["edgeR"])

from .calc_norm_factors import calc_norm_factors, effective_lib_sizes
from .utils import _prep_edger

__all__ = [
    "calc_norm_factors",
    "effective_lib_sizes",
    "_prep_edger",
]
