"""DESeq2: size factors and variance-stabilizing transformation.

Used for the exploratory half of the report only; the differential test
runs on edgeR/limma.

Functional API:
    >>> import rnaseq_report.deseq2 as deseq2
    >>> se = deseq2.vst(se, blind=True)
    >>> np.asarray(se.assays["vst"])
"""

# Check DESeq2 R package on module import
from ..r_utils import ensure_r_dependencies
ensure_r_dependencies(["DESeq2", "SummarizedExperiment"])

from .vst import estimate_size_factors, vst
from .utils import _prep_deseq2

__all__ = [
    "estimate_size_factors",
    "vst",
    "_prep_deseq2",
]
