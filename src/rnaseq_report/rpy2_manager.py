"""
Lazy host for the rpy2 components used across the package.

Importing this module does not start R. The embedded interpreter is started
the first time the manager is constructed, which keeps the loaders, the
exploratory analysis and the plots usable without R.
"""

from __future__ import annotations

from typing import Any, ContextManager, Dict, Protocol, Sequence, runtime_checkable

from .logger import get_logger

logger = get_logger(__name__)


@runtime_checkable
class Rpy2ManagerProto(Protocol):
    """The parts of :class:`Rpy2Manager` the R-backed assays rely on."""

    ro: Any
    numpy2ri: Any
    pandas2ri: Any
    default_converter: Any
    IntVector: Any
    FloatVector: Any
    StrVector: Any
    BoolVector: Any

    def localconverter(self, conv) -> ContextManager[None]: ...
    def get_conversion(self) -> Any: ...
    def lazy_import_r_packages(self, package: str) -> Any: ...
    def py2r(self, obj: Any) -> Any: ...
    def r2py(self, sexp: Any) -> Any: ...


class Rpy2Manager:
    """Singleton bundling ``rpy2.robjects``, converters and vector constructors."""

    _instance = None
    _initialized = False

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if self._initialized:
            return
        logger.debug("Starting embedded R through rpy2")

        import rpy2.robjects as ro
        from rpy2.robjects import default_converter, numpy2ri, pandas2ri
        from rpy2.robjects.conversion import get_conversion, localconverter
        from rpy2.robjects.packages import importr
        from rpy2.robjects.vectors import BoolVector, FloatVector, IntVector, StrVector

        self.ro = ro
        self.numpy2ri = numpy2ri
        self.pandas2ri = pandas2ri
        self.default_converter = default_converter
        self.IntVector = IntVector
        self.FloatVector = FloatVector
        self.StrVector = StrVector
        self.BoolVector = BoolVector
        self._localconverter = localconverter
        self._get_conversion = get_conversion
        self._importr = importr
        self._packages: Dict[str, Any] = {}

        self._initialized = True

    def localconverter(self, conv) -> ContextManager[None]:
        return self._localconverter(conv)

    def get_conversion(self) -> Any:
        return self._get_conversion()

    def lazy_import_r_packages(self, package: str) -> Any:
        """Import an R package once and cache the handle."""
        if package not in self._packages:
            logger.debug("Importing R package %s", package)
            self._packages[package] = self._importr(package)
        return self._packages[package]

    def py2r(self, obj: Any) -> Any:
        """Convert a NumPy array (or scalar) to the equivalent R object."""
        with self.localconverter(self.default_converter + self.numpy2ri.converter):
            return self.get_conversion().py2rpy(obj)

    def r2py(self, sexp: Any) -> Any:
        """Convert an R vector or matrix to NumPy."""
        with self.localconverter(self.default_converter + self.numpy2ri.converter):
            return self.get_conversion().rpy2py(sexp)


def get_r_environment() -> Rpy2Manager:
    """Return the process-wide :class:`Rpy2Manager`."""
    return Rpy2Manager()


def r_dim(rmat: Any) -> tuple:
    """Dimensions of an R matrix as a tuple of ints."""
    r = get_r_environment()
    return tuple(int(x) for x in r.ro.baseenv["dim"](rmat))


def _set_dimnames(setter: str, rmat: Any, names: Sequence[str]) -> Any:
    r = get_r_environment()
    return r.ro.baseenv[setter](rmat, r.StrVector([str(x) for x in names]))


def set_rownames(rmat: Any, names: Sequence[str]) -> Any:
    """Return ``rmat`` with R rownames set."""
    return _set_dimnames("rownames<-", rmat, names)


def set_colnames(rmat: Any, names: Sequence[str]) -> Any:
    """Return ``rmat`` with R colnames set."""
    return _set_dimnames("colnames<-", rmat, names)
