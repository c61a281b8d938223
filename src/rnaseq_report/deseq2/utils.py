from functools import lru_cache
from typing import Any, Tuple

from ..rpy2_manager import get_r_environment


@lru_cache(maxsize=1)
def _prep_deseq2() -> Tuple[Any, Any, Any]:
    """Lazily prepare the DESeq2 runtime.

    Returns:
        Tuple ``(r_env, DESeq2_pkg, SummarizedExperiment_pkg)``.
    """
    r = get_r_environment()
    return r, r.lazy_import_r_packages("DESeq2"), r.lazy_import_r_packages("SummarizedExperiment")
