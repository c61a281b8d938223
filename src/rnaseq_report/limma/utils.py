from typing import Any

from ..rpy2_manager import get_r_environment

_limma_pkg: Any = None


def _limma() -> Any:
    """Lazily import and return the R `limma` package via rpy2.

    Notes:
        The package is imported only once and cached in a module-level variable
        for subsequent calls.
    """
    global _limma_pkg
    if _limma_pkg is None:
        _limma_pkg = get_r_environment().lazy_import_r_packages("limma")
    return _limma_pkg
