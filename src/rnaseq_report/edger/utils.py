from functools import lru_cache

from ..rpy2_manager import get_r_environment


@lru_cache(maxsize=1)
def _prep_edger():
    """Lazily prepare the edgeR runtime.

    Returns:
        Tuple[Any, Any]: ``(r_env, edgeR_pkg)``.

    Notes:
        The result is cached (LRU) to avoid repeated imports.
    """
    r = get_r_environment()
    return r, r.lazy_import_r_packages("edgeR")
